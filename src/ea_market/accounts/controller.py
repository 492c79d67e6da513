from __future__ import annotations

from datetime import timedelta

from flask import Flask, flash, redirect, render_template, request, session, url_for

from ..common.web import admin_required, flash_unexpected, is_admin, login_required
from ..core.exceptions import AuthenticationError, NotFoundError, ValidationError
from ..container import Container
from .service import CUSTOMER_SORTS


def register(app: Flask, container: Container) -> None:
    @app.route("/login", methods=["GET", "POST"], endpoint="login")
    def login():
        if "user_id" in session:
            return redirect(url_for("dashboard"))

        if request.method == "POST":
            email = request.form.get("email", "")
            password = request.form.get("password", "")
            remember = request.form.get("remember_me")

            try:
                s_user = container.auth_service.authenticate(email, password)

                session.permanent = bool(remember)
                app.permanent_session_lifetime = timedelta(days=7)

                session["user_id"] = s_user.user_id
                session["email"] = s_user.email
                session["name"] = s_user.full_name
                session["role"] = s_user.role.value

                flash("Signed in successfully!", "success")
                next_url = request.args.get("next") or ""
                if next_url.startswith("/") and not next_url.startswith("//"):
                    return redirect(next_url)
                return redirect(url_for("dashboard"))
            except AuthenticationError as e:
                flash(str(e), "danger")
            except Exception as e:
                flash_unexpected("signing in", e)

        return render_template("login.html")

    @app.route("/register", methods=["GET", "POST"], endpoint="register")
    def register_account():
        if "user_id" in session:
            return redirect(url_for("dashboard"))

        ref = request.args.get("ref") or session.get("ref") or ""
        if request.method == "POST":
            try:
                container.auth_service.register(
                    email=request.form.get("email", ""),
                    password=request.form.get("password", ""),
                    full_name=request.form.get("full_name", ""),
                    referral_code=request.form.get("ref") or ref,
                )
                session.pop("ref", None)
                flash("Account created. Please sign in.", "success")
                return redirect(url_for("login"))
            except ValidationError as e:
                flash(str(e), "danger")
            except Exception as e:
                flash_unexpected("registering", e)

        return render_template("register.html", ref=ref)

    @app.route("/logout", endpoint="logout")
    def logout():
        session.clear()
        flash("Signed out.", "info")
        return redirect(url_for("login"))

    @app.route("/dashboard", endpoint="dashboard")
    @login_required
    def dashboard():
        if is_admin():
            return redirect(url_for("admin_dashboard"))
        user_id = session["user_id"]
        stats = container.account_service.dashboard_stats(user_id)
        licenses = container.license_service.list_for_customer(user_id)
        return render_template("dashboard/index.html", stats=stats, licenses=licenses, active_page="dashboard")

    @app.route("/dashboard/settings", methods=["GET", "POST"], endpoint="settings")
    @login_required
    def settings():
        user_id = session["user_id"]
        if request.method == "POST":
            action = request.form.get("action", "profile")
            try:
                if action == "password":
                    container.account_service.change_password(
                        user_id=user_id,
                        new_password=request.form.get("new_password", ""),
                        confirm_password=request.form.get("confirm_password", ""),
                    )
                    flash("Password changed.", "success")
                else:
                    session["name"] = container.account_service.update_name(
                        user_id=user_id, full_name=request.form.get("full_name", "")
                    )
                    flash("Profile updated.", "success")
                return redirect(url_for("settings"))
            except (ValidationError, NotFoundError) as e:
                flash(str(e), "danger")
            except Exception as e:
                flash_unexpected("saving settings", e)

        profile = container.account_service.get_profile(user_id)
        return render_template("dashboard/settings.html", profile=profile, active_page="settings")

    @app.route("/admin/users", endpoint="admin_users")
    @admin_required
    def admin_users():
        search = request.args.get("q", "")
        sort = request.args.get("sort", "spent-high")
        users = container.account_service.list_customers(search=search, sort=sort)
        return render_template(
            "admin/users.html",
            users=users,
            search=search,
            sort=sort,
            sorts=CUSTOMER_SORTS,
            active_page="admin_users",
        )

    @app.route("/admin/users/<profile_id>", endpoint="admin_user_detail")
    @admin_required
    def admin_user_detail(profile_id: str):
        group_by = request.args.get("group", "account")
        try:
            detail = container.account_service.customer_detail(profile_id, group_by=group_by)
        except NotFoundError as e:
            flash(str(e), "danger")
            return redirect(url_for("admin_users"))
        return render_template("admin/user_detail.html", active_page="admin_users", **detail)
