from __future__ import annotations

from flask import Flask, render_template, request, send_file

from ..common.web import admin_required
from ..container import Container
from .service import PRODUCT_SORTS


def register(app: Flask, container: Container) -> None:
    @app.route("/admin", endpoint="admin_dashboard")
    @admin_required
    def admin_dashboard():
        reports = container.report_service
        time_range = request.args.get("range", "30d")
        search = request.args.get("q", "")
        category = request.args.get("category", "all")
        sort = request.args.get("sort", "sales-desc")
        return render_template(
            "admin/dashboard.html",
            stats=reports.dashboard_stats(),
            metrics=reports.product_metrics(search=search, category=category, sort=sort),
            trend=reports.sales_trend(time_range),
            top_products=reports.top_products(),
            by_category=reports.sales_by_category(),
            time_range=time_range,
            search=search,
            category=category,
            sort=sort,
            sorts=PRODUCT_SORTS,
            active_page="admin_dashboard",
        )

    @app.route("/admin/orders/export.xlsx", endpoint="export_orders")
    @admin_required
    def export_orders():
        output = container.report_service.export_orders_xlsx()
        return send_file(
            output,
            download_name="orders.xlsx",
            as_attachment=True,
            mimetype="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        )
