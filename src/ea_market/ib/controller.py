from __future__ import annotations

import logging

from flask import Flask, flash, jsonify, redirect, render_template, request, session, url_for

from ..common.web import admin_required, api_admin_required, flash_unexpected, json_object_body, login_required
from ..core.exceptions import NotFoundError, ValidationError
from ..container import Container

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    @app.route("/products/<product_id>/ib-apply", methods=["POST"], endpoint="ib_apply")
    @login_required
    def ib_apply(product_id: str):
        try:
            container.ib_service.apply(
                user_id=session["user_id"],
                broker_id=request.form.get("broker_id", ""),
                verification_data=request.form.get("verification_data", ""),
            )
            flash("IB application submitted. Please wait for admin approval.", "success")
        except ValidationError as e:
            flash(str(e), "danger")
        except Exception as e:
            flash_unexpected("submitting the IB application", e)
        return redirect(url_for("product_detail", product_id=product_id))

    @app.route("/admin/ib-requests", endpoint="admin_ib_requests")
    @admin_required
    def admin_ib_requests():
        requests_ = container.ib_service.list_pending()
        return render_template("admin/ib_requests.html", requests=requests_, active_page="admin_ib_requests")

    @app.route("/admin/ib-requests/<membership_id>/<action>", methods=["POST"], endpoint="admin_ib_decide")
    @admin_required
    def admin_ib_decide(membership_id: str, action: str):
        try:
            if action == "approve":
                container.ib_service.approve(membership_id)
                flash("IB application approved.", "success")
            elif action == "reject":
                container.ib_service.reject(membership_id)
                flash("IB application rejected.", "info")
            else:
                flash("Invalid action", "danger")
        except (ValidationError, NotFoundError) as e:
            flash(str(e), "danger")
        except Exception as e:
            flash_unexpected("deciding the IB application", e)
        return redirect(url_for("admin_ib_requests"))

    @app.route("/api/admin/ib-requests/<profile_id>", methods=["PATCH"], endpoint="api_ib_status")
    @api_admin_required
    def api_ib_status(profile_id: str):
        body = json_object_body()
        try:
            status = container.ib_service.set_profile_status(
                profile_id=profile_id,
                action=body.get("action") or "",
                expiry_date=body.get("expiryDate"),
            )
            return jsonify({"success": True, "status": status.value}), 200
        except ValidationError as e:
            return jsonify({"error": str(e)}), 400
        except NotFoundError as e:
            return jsonify({"error": str(e)}), 404
        except Exception:
            logger.exception("Unexpected error updating IB status of %s", profile_id)
            return jsonify({"error": "Internal Server Error"}), 500
