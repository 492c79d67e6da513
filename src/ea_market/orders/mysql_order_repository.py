from __future__ import annotations

from decimal import Decimal
from typing import Optional, Sequence

from ..core.enums import OrderStatus, PlanType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, new_id, to_decimal
from .model import Order
from .repository import OrderRepository


class MySQLOrderRepository(OrderRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, order_id: str) -> Optional[Order]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT id, user_id, product_id, amount, plan_type, account_number, slip_url, status, created_at
                FROM orders
                WHERE id=%s
                """,
                (order_id,),
            )
            row = fetchone(cur)
            if not row:
                return None
            return Order(
                order_id=row["id"],
                user_id=row["user_id"],
                product_id=row["product_id"],
                amount=to_decimal(row["amount"]),
                plan_type=PlanType(row.get("plan_type") or PlanType.LIFETIME.value),
                account_number=row.get("account_number") or "",
                slip_url=row.get("slip_url"),
                status=OrderStatus(row["status"]),
                created_at=row.get("created_at"),
            )

    def create(
        self,
        *,
        user_id: str,
        product_id: str,
        amount: Decimal,
        plan_type: PlanType,
        account_number: str,
        slip_url: str,
    ) -> str:
        order_id = new_id()
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO orders(id, user_id, product_id, amount, plan_type, account_number, slip_url, status)
                VALUES(%s,%s,%s,%s,%s,%s,%s,'pending')
                """,
                (order_id, user_id, product_id, amount, plan_type.value, account_number, slip_url),
            )
        return order_id

    def decide(self, *, order_id: str, status: OrderStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE orders SET status=%s WHERE id=%s AND status='pending'",
                (status.value, order_id),
            )
            return cur.rowcount > 0

    def revert_to_pending(self, order_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE orders SET status='pending' WHERE id=%s", (order_id,))
            return cur.rowcount > 0

    def list_for_user(self, user_id: str) -> Sequence[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT o.id AS order_id, o.product_id, o.amount, o.plan_type, o.account_number,
                       o.slip_url, o.status, o.created_at,
                       p.name AS product_name
                FROM orders o
                JOIN products p ON p.id = o.product_id
                WHERE o.user_id=%s
                ORDER BY o.created_at DESC
                """,
                (user_id,),
            )
            rows = fetchall(cur)
            for r in rows:
                r["amount"] = to_decimal(r.get("amount"))
            return rows

    def list_admin_rows(self) -> Sequence[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT o.id AS order_id, o.user_id, o.product_id, o.amount, o.plan_type,
                       o.account_number, o.slip_url, o.status, o.created_at,
                       p.name AS product_name, p.asset_class, p.platform,
                       pr.full_name AS customer_name, pr.email AS customer_email
                FROM orders o
                JOIN products p ON p.id = o.product_id
                JOIN profiles pr ON pr.id = o.user_id
                ORDER BY o.created_at DESC
                """
            )
            rows = fetchall(cur)
            for r in rows:
                r["amount"] = to_decimal(r.get("amount"))
            return rows
