from __future__ import annotations

from flask import Flask, flash, redirect, render_template, request, session, url_for

from ..common.web import admin_required, flash_unexpected
from ..core.exceptions import NotFoundError, ValidationError
from ..container import Container
from .model import CATEGORIES
from .service import FILTER_KINDS

_DELETE_CODE_KEY = "delete_product_code"


def _filters_from_args() -> dict:
    return {kind: request.args.get(kind, "") for kind in FILTER_KINDS}


def register(app: Flask, container: Container) -> None:
    @app.route("/", endpoint="home")
    def home():
        # Referral links land here: /?ref=CODE
        ref = (request.args.get("ref") or "").strip()
        if ref:
            session["ref"] = ref
        products = container.catalog_service.list_storefront()
        return render_template("catalog/index.html", products=products, categories=CATEGORIES, filters={})

    @app.route("/products", endpoint="products")
    def products():
        filters = _filters_from_args()
        items = container.catalog_service.list_storefront(filters)
        return render_template("catalog/index.html", products=items, categories=CATEGORIES, filters=filters)

    @app.route("/products/<product_id>", endpoint="product_detail")
    def product_detail(product_id: str):
        try:
            product = container.catalog_service.get_active_product(product_id)
        except NotFoundError as e:
            flash(str(e), "warning")
            return redirect(url_for("products"))
        banner = container.ib_service.banner_state(session.get("user_id"))
        return render_template("catalog/detail.html", product=product, banner=banner, categories=CATEGORIES)

    @app.route("/admin/products", endpoint="admin_products")
    @admin_required
    def admin_products():
        filters = _filters_from_args()
        items = container.catalog_service.list_admin(filters)
        return render_template(
            "admin/products.html",
            products=items,
            categories=CATEGORIES,
            filters=filters,
            pending_delete=(session.get(_DELETE_CODE_KEY) or {}).get("product_id"),
            active_page="admin_products",
        )

    @app.route("/admin/products/new", methods=["GET", "POST"], endpoint="admin_product_new")
    @admin_required
    def admin_product_new():
        if request.method == "POST":
            try:
                container.catalog_service.create_product(request.form.to_dict())
                flash("Product created.", "success")
                return redirect(url_for("admin_products"))
            except ValidationError as e:
                flash(str(e), "danger")
            except Exception as e:
                flash_unexpected("creating the product", e)

        return render_template(
            "admin/product_form.html",
            product=None,
            form=request.form,
            categories=CATEGORIES,
            active_page="admin_products",
        )

    @app.route("/admin/products/<product_id>/edit", methods=["GET", "POST"], endpoint="admin_product_edit")
    @admin_required
    def admin_product_edit(product_id: str):
        try:
            product = container.catalog_service.get_product(product_id)
        except NotFoundError as e:
            flash(str(e), "danger")
            return redirect(url_for("admin_products"))

        if request.method == "POST":
            try:
                container.catalog_service.update_product(product_id, request.form.to_dict())
                flash("Product updated.", "success")
                return redirect(url_for("admin_products"))
            except (ValidationError, NotFoundError) as e:
                flash(str(e), "danger")
            except Exception as e:
                flash_unexpected("updating the product", e)

        return render_template(
            "admin/product_form.html",
            product=product,
            form=request.form,
            categories=CATEGORIES,
            active_page="admin_products",
        )

    @app.route("/admin/products/<product_id>/delete-code", methods=["POST"], endpoint="admin_product_delete_code")
    @admin_required
    def admin_product_delete_code(product_id: str):
        try:
            session[_DELETE_CODE_KEY] = container.catalog_service.issue_delete_code(
                product_id=product_id, admin_email=session.get("email") or ""
            )
            flash("A deletion code has been issued. Enter it to confirm.", "info")
        except NotFoundError as e:
            flash(str(e), "danger")
        except Exception as e:
            flash_unexpected("issuing the deletion code", e)
        return redirect(url_for("admin_products"))

    @app.route("/admin/products/<product_id>/delete", methods=["POST"], endpoint="admin_product_delete")
    @admin_required
    def admin_product_delete(product_id: str):
        record = session.get(_DELETE_CODE_KEY)
        try:
            container.catalog_service.delete_with_code(
                product_id=product_id,
                code=request.form.get("code", ""),
                record=record,
            )
            session.pop(_DELETE_CODE_KEY, None)
            flash("Product deleted.", "success")
        except (ValidationError, NotFoundError) as e:
            if container.catalog_service.delete_code_spent(record):
                session.pop(_DELETE_CODE_KEY, None)
            elif record:
                # nested change: reassign so the session cookie is rewritten
                session[_DELETE_CODE_KEY] = record
            flash(str(e), "danger")
        except Exception as e:
            flash_unexpected("deleting the product", e)
        return redirect(url_for("admin_products"))
