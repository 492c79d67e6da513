from __future__ import annotations

from flask import Flask, abort, flash, redirect, render_template, request, send_file, url_for

from ..common.web import admin_required, flash_unexpected, login_required
from ..core.enums import PlanType
from ..core.exceptions import NotFoundError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/checkout/<product_id>/payment-qr.png", endpoint="payment_qr")
    @login_required
    def payment_qr(product_id: str):
        try:
            product = container.catalog_service.get_active_product(product_id)
            amount = product.price_for(request.args.get("plan", PlanType.LIFETIME.value))
        except (NotFoundError, ValueError):
            abort(404)
        if amount is None:
            abort(404)

        buf = container.payment_service.checkout_qr(amount=amount, reference=product.name)
        return send_file(buf, mimetype="image/png")

    @app.route("/admin/settings", methods=["GET", "POST"], endpoint="admin_settings")
    @admin_required
    def admin_settings():
        if request.method == "POST":
            try:
                container.payment_service.update_settings(
                    bank_name=request.form.get("bank_name"),
                    account_name=request.form.get("account_name"),
                    account_number=request.form.get("account_number"),
                    qr_image_url=request.form.get("qr_image_url"),
                )
                flash("Payment settings saved.", "success")
                return redirect(url_for("admin_settings"))
            except Exception as e:
                flash_unexpected("saving payment settings", e)

        settings = container.payment_service.get_settings()
        return render_template("admin/settings.html", settings=settings, active_page="admin_settings")
