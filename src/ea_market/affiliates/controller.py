from __future__ import annotations

from flask import Flask, flash, redirect, render_template, request, session, url_for

from ..common.web import admin_required, flash_unexpected, login_required
from ..core.exceptions import NotFoundError, ValidationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/dashboard/affiliate", endpoint="affiliate")
    @login_required
    def affiliate():
        overview = container.affiliate_service.overview(session["user_id"])
        return render_template("dashboard/affiliate.html", overview=overview, active_page="affiliate")

    @app.route("/admin/affiliates", endpoint="admin_affiliates")
    @admin_required
    def admin_affiliates():
        search = request.args.get("q", "")
        rows = container.affiliate_service.list_for_admin(search=search)
        return render_template("admin/affiliates.html", rows=rows, search=search, active_page="admin_affiliates")

    @app.route("/admin/affiliates/<profile_id>/rate", methods=["POST"], endpoint="admin_affiliate_rate")
    @admin_required
    def admin_affiliate_rate(profile_id: str):
        try:
            rate = container.affiliate_service.update_commission_rate(
                profile_id=profile_id, rate=request.form.get("commission_rate", "")
            )
            flash(f"Commission rate set to {rate}%.", "success")
        except (ValidationError, NotFoundError) as e:
            flash(str(e), "danger")
        except Exception as e:
            flash_unexpected("updating the commission rate", e)
        return redirect(url_for("admin_affiliates", q=request.args.get("q", "")))
