from __future__ import annotations

from flask import Flask, flash, redirect, render_template, request, session, url_for

from ..common.web import admin_required, flash_unexpected, login_required
from ..core.enums import PlanType
from ..core.exceptions import NotFoundError, ValidationError
from ..container import Container
from .service import ORDER_SORTS


def register(app: Flask, container: Container) -> None:
    @app.route("/checkout/<product_id>", methods=["GET", "POST"], endpoint="checkout")
    @login_required
    def checkout(product_id: str):
        try:
            product = container.catalog_service.get_active_product(product_id)
        except NotFoundError as e:
            flash(str(e), "warning")
            return redirect(url_for("products"))

        plan = request.values.get("plan", PlanType.LIFETIME.value)
        if request.method == "POST":
            try:
                container.order_service.create_order(
                    user_id=session["user_id"],
                    product_id=product_id,
                    plan_type=plan,
                    account_number=request.form.get("account_number", ""),
                    slip_url=request.form.get("slip_url", ""),
                )
                flash("Order placed! We will verify your payment shortly.", "success")
                return redirect(url_for("billing"))
            except (ValidationError, NotFoundError) as e:
                flash(str(e), "danger")
            except Exception as e:
                flash_unexpected("placing the order", e)

        try:
            amount = product.price_for(plan)
        except ValueError:
            plan, amount = PlanType.LIFETIME.value, product.price_lifetime
        return render_template(
            "orders/checkout.html",
            product=product,
            plan=plan,
            amount=amount,
            payment=container.payment_service.get_settings(),
        )

    @app.route("/dashboard/billing", endpoint="billing")
    @login_required
    def billing():
        orders = container.order_service.list_billing(session["user_id"])
        return render_template("dashboard/billing.html", orders=orders, active_page="billing")

    @app.route("/admin/orders", endpoint="admin_orders")
    @admin_required
    def admin_orders():
        status = request.args.get("status", "all")
        search = request.args.get("q", "")
        sort = request.args.get("sort", "newest")
        orders, counts = container.order_service.list_admin(status=status, search=search, sort=sort)
        return render_template(
            "admin/orders.html",
            orders=orders,
            counts=counts,
            status=status,
            search=search,
            sort=sort,
            sorts=ORDER_SORTS,
            active_page="admin_orders",
        )

    @app.route("/admin/orders/<order_id>/approve", methods=["POST"], endpoint="approve_order")
    @admin_required
    def approve_order(order_id: str):
        try:
            result = container.order_service.approve(order_id=order_id)
            if result.license_created:
                flash("Order approved. A new license was issued.", "success")
            else:
                flash("Order approved. The license was renewed.", "success")
            if result.warning:
                flash(result.warning, "warning")
        except (ValidationError, NotFoundError) as e:
            flash(str(e), "danger")
        except Exception as e:
            flash_unexpected("approving the order", e)
        return redirect(url_for("admin_orders", status=request.args.get("status", "all")))

    @app.route("/admin/orders/<order_id>/reject", methods=["POST"], endpoint="reject_order")
    @admin_required
    def reject_order(order_id: str):
        try:
            result = container.order_service.reject(order_id=order_id)
            if result.warning:
                flash(result.warning, "warning")
            else:
                flash("Order rejected.", "info")
        except (ValidationError, NotFoundError) as e:
            flash(str(e), "danger")
        except Exception as e:
            flash_unexpected("rejecting the order", e)
        return redirect(url_for("admin_orders", status=request.args.get("status", "all")))
