from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import PlanType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, new_id
from .model import License
from .repository import LicenseRepository

_COLUMNS = "id, user_id, product_id, account_number, type, is_active, expiry_date, created_at"


def _to_license(row: dict) -> License:
    return License(
        license_id=row["id"],
        user_id=row["user_id"],
        product_id=row["product_id"],
        account_number=row["account_number"],
        plan_type=PlanType(row["type"]),
        is_active=bool(row["is_active"]),
        expiry_date=row.get("expiry_date"),
        created_at=row.get("created_at"),
    )


class MySQLLicenseRepository(LicenseRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, license_id: str) -> Optional[License]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM licenses WHERE id=%s", (license_id,))
            row = fetchone(cur)
            return _to_license(row) if row else None

    def list_active_matches(self, *, account_number: str, product_id: str) -> Sequence[License]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM licenses
                WHERE account_number=%s AND product_id=%s AND is_active=1
                """,
                (account_number, product_id),
            )
            return [_to_license(r) for r in fetchall(cur)]

    def find_for_account(self, *, user_id: str, product_id: str, account_number: str) -> Optional[License]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM licenses
                WHERE user_id=%s AND product_id=%s AND TRIM(account_number)=%s
                ORDER BY created_at DESC
                LIMIT 1
                """,
                (user_id, product_id, account_number.strip()),
            )
            row = fetchone(cur)
            return _to_license(row) if row else None

    def create(
        self,
        *,
        user_id: str,
        product_id: str,
        account_number: str,
        plan_type: PlanType,
        expiry_date: Optional[datetime],
    ) -> str:
        license_id = new_id()
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO licenses(id, user_id, product_id, account_number, type, is_active, expiry_date)
                VALUES(%s,%s,%s,%s,%s,1,%s)
                """,
                (license_id, user_id, product_id, account_number.strip(), plan_type.value, expiry_date),
            )
        return license_id

    def renew(self, *, license_id: str, plan_type: PlanType, expiry_date: Optional[datetime]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE licenses SET type=%s, is_active=1, expiry_date=%s WHERE id=%s",
                (plan_type.value, expiry_date, license_id),
            )
            return cur.rowcount > 0

    def deactivate_for_account(self, *, user_id: str, product_id: str, account_number: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE licenses SET is_active=0
                WHERE user_id=%s AND product_id=%s AND TRIM(account_number)=%s
                """,
                (user_id, product_id, account_number.strip()),
            )
            return int(cur.rowcount)

    def admin_update(self, *, license_id: str, is_active: bool, expiry_date: Optional[datetime]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE licenses SET is_active=%s, expiry_date=%s WHERE id=%s",
                (1 if is_active else 0, expiry_date, license_id),
            )
            return cur.rowcount > 0

    def update_account_number(self, *, license_id: str, account_number: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE licenses SET account_number=%s WHERE id=%s", (account_number, license_id))
            return cur.rowcount > 0

    def list_for_user(self, user_id: str) -> Sequence[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT l.id AS license_id, l.product_id, l.account_number, l.type AS plan_type,
                       l.is_active, l.expiry_date, l.created_at,
                       p.name AS product_name, p.version, p.file_url
                FROM licenses l
                JOIN products p ON p.id = l.product_id
                WHERE l.user_id=%s
                ORDER BY l.created_at DESC
                """,
                (user_id,),
            )
            return fetchall(cur)

    def list_admin_rows(self) -> Sequence[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT l.id AS license_id, l.user_id, l.product_id, l.account_number,
                       l.type AS plan_type, l.is_active, l.expiry_date, l.created_at,
                       p.name AS product_name, p.asset_class, p.platform,
                       pr.full_name AS customer_name, pr.email AS customer_email,
                       pr.ib_account_number
                FROM licenses l
                JOIN products p ON p.id = l.product_id
                JOIN profiles pr ON pr.id = l.user_id
                ORDER BY l.created_at DESC
                """
            )
            return fetchall(cur)
