from __future__ import annotations

from flask import Flask, flash, jsonify, redirect, render_template, request, session, url_for

from ..common.web import admin_required, flash_unexpected, json_object_body, login_required
from ..core.enums import PlanType
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..container import Container
from .service import LICENSE_SORT_KEYS


def register(app: Flask, container: Container) -> None:
    @app.route("/api/verify-license", methods=["POST"], endpoint="api_verify_license")
    def api_verify_license():
        body = json_object_body()
        result = container.license_verifier.verify(
            account_number=body.get("account_number"),
            product_ref=body.get("product_id"),
            api_key=request.headers.get("x-api-key"),
        )
        return jsonify(result.to_payload()), result.http_status

    @app.route("/dashboard/licenses", endpoint="my_licenses")
    @login_required
    def my_licenses():
        licenses = container.license_service.list_for_customer(session["user_id"])
        return render_template("dashboard/licenses.html", licenses=licenses, active_page="my_licenses")

    @app.route("/dashboard/licenses/<license_id>/account", methods=["POST"], endpoint="change_license_account")
    @login_required
    def change_license_account(license_id: str):
        try:
            container.license_service.change_account_number(
                user_id=session["user_id"],
                license_id=license_id,
                account_number=request.form.get("account_number", ""),
            )
            flash("Account number updated.", "success")
        except (ValidationError, AuthorizationError, NotFoundError) as e:
            flash(str(e), "danger")
        except Exception as e:
            flash_unexpected("changing the account number", e)
        return redirect(url_for("my_licenses"))

    @app.route("/admin/licenses", endpoint="admin_licenses")
    @admin_required
    def admin_licenses():
        args = request.args
        licenses = container.license_service.list_admin(
            search=args.get("q", ""),
            product_name=args.get("product", "all"),
            group=args.get("group", "all"),
            plan=args.get("plan", "all"),
            active_only=args.get("active") == "1",
            expiring_soon=args.get("expiring") == "1",
            ib_only=args.get("ib") == "1",
            sort_key=args.get("sort") or None,
            direction=args.get("dir", "asc"),
        )
        return render_template(
            "admin/licenses.html",
            licenses=licenses,
            options=container.license_service.filter_options(),
            plans=[p.value for p in PlanType],
            sort_keys=LICENSE_SORT_KEYS,
            args=args,
            active_page="admin_licenses",
        )

    @app.route("/admin/licenses/<license_id>", methods=["POST"], endpoint="admin_license_update")
    @admin_required
    def admin_license_update(license_id: str):
        try:
            container.license_service.admin_update(
                license_id=license_id,
                is_active=request.form.get("is_active") == "1",
                expiry_input=request.form.get("expiry_date", ""),
            )
            flash("License updated.", "success")
        except (ValidationError, NotFoundError) as e:
            flash(str(e), "danger")
        except Exception as e:
            flash_unexpected("updating the license", e)
        return redirect(url_for("admin_licenses"))
