from __future__ import annotations

import logging

from flask import Flask, flash, jsonify, redirect, render_template, request, session, url_for

from ..common.web import admin_required, api_admin_required, flash_unexpected, json_object_body
from ..core.exceptions import NotFoundError, ValidationError
from ..container import Container

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    @app.route("/admin/brokers", methods=["GET", "POST"], endpoint="admin_brokers")
    @admin_required
    def admin_brokers():
        if request.method == "POST":
            try:
                container.broker_service.create_broker(
                    name=request.form.get("name", ""),
                    ib_link=request.form.get("ib_link", ""),
                    owner_id=session["user_id"],
                )
                flash("Broker added.", "success")
                return redirect(url_for("admin_brokers"))
            except ValidationError as e:
                flash(str(e), "danger")
            except Exception as e:
                flash_unexpected("adding the broker", e)

        brokers = container.broker_service.list_all()
        return render_template("admin/brokers.html", brokers=brokers, active_page="admin_brokers")

    @app.route("/admin/brokers/<broker_id>/update", methods=["POST"], endpoint="admin_broker_update")
    @admin_required
    def admin_broker_update(broker_id: str):
        try:
            container.broker_service.update_broker(
                broker_id,
                name=request.form.get("name", ""),
                ib_link=request.form.get("ib_link", ""),
            )
            flash("Broker updated.", "success")
        except (ValidationError, NotFoundError) as e:
            flash(str(e), "danger")
        except Exception as e:
            flash_unexpected("updating the broker", e)
        return redirect(url_for("admin_brokers"))

    @app.route("/admin/brokers/<broker_id>/toggle", methods=["POST"], endpoint="admin_broker_toggle")
    @admin_required
    def admin_broker_toggle(broker_id: str):
        try:
            broker = container.broker_service.toggle_active(broker_id)
            flash(f"{broker.name} is now {'active' if broker.is_active else 'inactive'}.", "success")
        except (ValidationError, NotFoundError) as e:
            flash(str(e), "danger")
        except Exception as e:
            flash_unexpected("toggling the broker", e)
        return redirect(url_for("admin_brokers"))

    @app.route("/admin/brokers/<broker_id>/delete", methods=["POST"], endpoint="admin_broker_delete")
    @admin_required
    def admin_broker_delete(broker_id: str):
        try:
            container.broker_service.delete_broker(broker_id)
            flash("Broker deleted.", "success")
        except NotFoundError as e:
            flash(str(e), "danger")
        except Exception as e:
            flash_unexpected("deleting the broker", e)
        return redirect(url_for("admin_brokers"))

    @app.route("/api/admin/brokers", methods=["POST"], endpoint="api_create_broker")
    @api_admin_required
    def api_create_broker():
        body = json_object_body()
        try:
            broker = container.broker_service.create_broker(
                name=body.get("name") or "",
                ib_link=body.get("ibLink"),
                owner_id=session["user_id"],
            )
            return jsonify({"broker": broker.to_dict()}), 201
        except ValidationError as e:
            return jsonify({"error": str(e)}), 400
        except Exception:
            logger.exception("Unexpected error creating broker")
            return jsonify({"error": "Internal Server Error"}), 500

    @app.route("/api/admin/brokers/<broker_id>", methods=["PATCH"], endpoint="api_update_broker")
    @api_admin_required
    def api_update_broker(broker_id: str):
        body = json_object_body()
        try:
            broker = container.broker_service.update_broker(
                broker_id,
                name=body.get("name"),
                ib_link=body.get("ibLink"),
                is_active=body.get("isActive"),
            )
            return jsonify({"broker": broker.to_dict()}), 200
        except ValidationError as e:
            return jsonify({"error": str(e)}), 400
        except NotFoundError as e:
            return jsonify({"error": str(e)}), 404
        except Exception:
            logger.exception("Unexpected error updating broker")
            return jsonify({"error": "Internal Server Error"}), 500

    @app.route("/api/admin/brokers/<broker_id>", methods=["DELETE"], endpoint="api_delete_broker")
    @api_admin_required
    def api_delete_broker(broker_id: str):
        try:
            container.broker_service.delete_broker(broker_id)
            return jsonify({"success": True}), 200
        except NotFoundError as e:
            return jsonify({"error": str(e)}), 404
        except Exception:
            logger.exception("Unexpected error deleting broker")
            return jsonify({"error": "Internal Server Error"}), 500
