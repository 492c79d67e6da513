from __future__ import annotations

import io
from collections import defaultdict
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable

import pandas as pd

from ..catalog.repository import ProductRepository
from ..common.datetime_utils import now_utc
from ..core.constants import TOP_PRODUCTS_LIMIT
from ..core.enums import OrderStatus
from ..licenses.repository import LicenseRepository
from ..orders.repository import OrderRepository

PRODUCT_SORTS = ("sales-desc", "sales-asc", "revenue-desc", "price-desc", "price-asc", "name-asc")
TREND_RANGES = {"7d": 7, "30d": 30, "all": 365}

_ZERO = Decimal("0")


def _completed(rows):
    return [r for r in rows if r.get("status") == OrderStatus.COMPLETED.value]


class ReportService:
    """Admin dashboard figures computed from orders, products and licenses."""

    def __init__(
        self,
        products: ProductRepository,
        orders: OrderRepository,
        licenses: LicenseRepository,
        *,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._products = products
        self._orders = orders
        self._licenses = licenses
        self._clock = clock

    def dashboard_stats(self) -> dict:
        orders = list(self._orders.list_admin_rows())
        licenses = self._licenses.list_admin_rows()
        return {
            "total_products": len(self._products.list_all()),
            "total_orders": len(orders),
            "total_revenue": sum((r["amount"] for r in _completed(orders)), _ZERO),
            "active_licenses": sum(1 for r in licenses if r.get("is_active")),
        }

    def product_metrics(self, *, search: str = "", category: str = "all", sort: str = "sales-desc") -> list[dict]:
        sales: dict = defaultdict(int)
        revenue: dict = defaultdict(lambda: _ZERO)
        for r in _completed(self._orders.list_admin_rows()):
            sales[r["product_id"]] += 1
            revenue[r["product_id"]] += r["amount"]
        active: dict = defaultdict(int)
        for r in self._licenses.list_admin_rows():
            if r.get("is_active"):
                active[r["product_id"]] += 1

        rows = [
            {
                "product": p,
                "sales_count": sales[p.product_id],
                "revenue": revenue[p.product_id],
                "active_licenses": active[p.product_id],
            }
            for p in self._products.list_all()
        ]

        q = (search or "").strip().lower()
        if q:
            rows = [r for r in rows if q in r["product"].name.lower()]
        if category and category != "all":
            rows = [r for r in rows if category in (r["product"].asset_class, r["product"].platform)]

        if sort == "sales-asc":
            rows.sort(key=lambda r: r["sales_count"])
        elif sort == "revenue-desc":
            rows.sort(key=lambda r: r["revenue"], reverse=True)
        elif sort == "price-desc":
            rows.sort(key=lambda r: r["product"].price_lifetime, reverse=True)
        elif sort == "price-asc":
            rows.sort(key=lambda r: r["product"].price_lifetime)
        elif sort == "name-asc":
            rows.sort(key=lambda r: r["product"].name.lower())
        else:
            rows.sort(key=lambda r: r["sales_count"], reverse=True)
        return rows

    def sales_trend(self, time_range: str = "30d") -> list[dict]:
        """Completed revenue per day, oldest first, including empty days."""
        days = TREND_RANGES.get(time_range, TREND_RANGES["30d"])
        today = self._clock().date()
        start = today - timedelta(days=days)

        buckets = {start + timedelta(days=i): _ZERO for i in range(days + 1)}
        for r in _completed(self._orders.list_admin_rows()):
            created = r.get("created_at")
            if created is None:
                continue
            day = created.date()
            if day in buckets:
                buckets[day] += r["amount"]
        return [{"date": d.isoformat(), "amount": amount} for d, amount in buckets.items()]

    def top_products(self, limit: int = TOP_PRODUCTS_LIMIT) -> list[dict]:
        totals: dict = defaultdict(lambda: _ZERO)
        for r in _completed(self._orders.list_admin_rows()):
            totals[r.get("product_name") or "Unknown Product"] += r["amount"]
        ranked = sorted(totals.items(), key=lambda kv: kv[1], reverse=True)[:limit]
        return [{"name": name, "sales": amount} for name, amount in ranked]

    def sales_by_category(self) -> list[dict]:
        totals: dict = defaultdict(lambda: _ZERO)
        for r in _completed(self._orders.list_admin_rows()):
            totals[r.get("asset_class") or "EA"] += r["amount"]
        return [{"name": name, "value": amount} for name, amount in totals.items()]

    def export_orders_xlsx(self) -> io.BytesIO:
        data = []
        for r in self._orders.list_admin_rows():
            created = r.get("created_at")
            data.append(
                {
                    "Order ID": r["order_id"],
                    "Created (UTC)": created.strftime("%Y-%m-%d %H:%M") if created else "",
                    "Customer": r.get("customer_name") or "",
                    "Email": r.get("customer_email") or "",
                    "Product": r.get("product_name") or "",
                    "Plan": r.get("plan_type") or "",
                    "Account": r.get("account_number") or "",
                    "Amount": float(r.get("amount") or 0),
                    "Status": r.get("status") or "",
                }
            )

        df = pd.DataFrame(
            data,
            columns=["Order ID", "Created (UTC)", "Customer", "Email", "Product", "Plan", "Account", "Amount", "Status"],
        )
        output = io.BytesIO()
        with pd.ExcelWriter(output, engine="openpyxl") as writer:
            df.to_excel(writer, index=False, sheet_name="Orders")
        output.seek(0)
        return output
