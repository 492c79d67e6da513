from __future__ import annotations

import logging
from functools import wraps

from flask import current_app, flash, jsonify, redirect, render_template, request, session, url_for

from ..core.enums import Role

logger = logging.getLogger(__name__)


def current_user() -> dict:
    return {
        "id": session.get("user_id"),
        "full_name": session.get("name"),
        "email": session.get("email"),
        "role": session.get("role"),
    }


def is_admin() -> bool:
    return session.get("role") == Role.ADMIN.value


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            flash("Please sign in to continue.", "warning")
            return redirect(url_for("login"))
        return view(*args, **kwargs)

    return wrapper


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return redirect(url_for("login"))
        if not is_admin():
            return render_template("403.html", current_user=current_user()), 403
        return view(*args, **kwargs)

    return wrapper


def api_admin_required(view):
    """JSON variant of admin_required: 401 without a session, 403 for non-admins."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return jsonify({"error": "Unauthorized"}), 401
        if not is_admin():
            return jsonify({"error": "Forbidden"}), 403
        return view(*args, **kwargs)

    return wrapper


def json_object_body() -> dict:
    """Request JSON as a dict; unparsable or non-object bodies become {}."""
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


def flash_unexpected(action: str, exc: Exception) -> None:
    logger.exception("Unexpected error while %s", action)
    if bool(current_app.config.get("DEBUG", False)):
        flash(f"System error while {action}: {exc}", "danger")
    else:
        flash(f"System error while {action}", "danger")
