from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional, Sequence

from ..core.enums import IbStatus, Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, new_id, to_decimal
from .model import Profile
from .repository import ProfileRepository

_COLUMNS = (
    "id, email, password_hash, full_name, role, referral_code, referred_by, commission_rate, "
    "accumulated_commission, ib_status, ib_expiry_date, ib_account_number, created_at"
)


def _to_profile(row: dict) -> Profile:
    return Profile(
        profile_id=row["id"],
        email=row["email"],
        password_hash=row["password_hash"],
        full_name=row.get("full_name"),
        role=Role(row["role"]),
        referral_code=row.get("referral_code"),
        referred_by=row.get("referred_by"),
        commission_rate=to_decimal(row.get("commission_rate")),
        accumulated_commission=to_decimal(row.get("accumulated_commission")),
        ib_status=IbStatus(row.get("ib_status") or IbStatus.NONE.value),
        ib_expiry_date=row.get("ib_expiry_date"),
        ib_account_number=row.get("ib_account_number"),
        created_at=row.get("created_at"),
    )


class MySQLProfileRepository(ProfileRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _get_where(self, column: str, value: str) -> Optional[Profile]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM profiles WHERE {column}=%s", (value,))
            row = fetchone(cur)
            return _to_profile(row) if row else None

    def get_by_id(self, profile_id: str) -> Optional[Profile]:
        return self._get_where("id", profile_id)

    def get_by_email(self, email: str) -> Optional[Profile]:
        return self._get_where("email", email)

    def get_by_referral_code(self, referral_code: str) -> Optional[Profile]:
        return self._get_where("referral_code", referral_code)

    def create(
        self,
        *,
        email: str,
        password_hash: str,
        full_name: str,
        role: Role,
        referral_code: str,
        referred_by: Optional[str],
    ) -> str:
        profile_id = new_id()
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO profiles(id, email, password_hash, full_name, role, referral_code, referred_by)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (profile_id, email, password_hash, full_name, role.value, referral_code, referred_by),
            )
        return profile_id

    def update_full_name(self, profile_id: str, full_name: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE profiles SET full_name=%s WHERE id=%s", (full_name, profile_id))
            return cur.rowcount > 0

    def update_password_hash(self, profile_id: str, password_hash: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE profiles SET password_hash=%s WHERE id=%s", (password_hash, profile_id))
            return cur.rowcount > 0

    def list_all(self) -> Sequence[Profile]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM profiles ORDER BY created_at DESC")
            return [_to_profile(r) for r in fetchall(cur)]

    def list_customer_stats(self) -> Sequence[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT p.id, p.email, p.full_name, p.role, p.created_at,
                       COALESCE(o.total_spent, 0) AS total_spent,
                       COALESCE(o.order_count, 0) AS order_count,
                       COALESCE(l.active_licenses, 0) AS active_licenses
                FROM profiles p
                LEFT JOIN (
                    SELECT user_id,
                           SUM(CASE WHEN status='completed' THEN amount ELSE 0 END) AS total_spent,
                           COUNT(*) AS order_count
                    FROM orders GROUP BY user_id
                ) o ON o.user_id = p.id
                LEFT JOIN (
                    SELECT user_id, COUNT(*) AS active_licenses
                    FROM licenses WHERE is_active=1 GROUP BY user_id
                ) l ON l.user_id = p.id
                ORDER BY p.created_at DESC
                """
            )
            out: list[dict] = []
            for r in fetchall(cur):
                r["total_spent"] = to_decimal(r.get("total_spent"))
                r["order_count"] = int(r.get("order_count") or 0)
                r["active_licenses"] = int(r.get("active_licenses") or 0)
                out.append(r)
            return out

    def update_commission_rate(self, profile_id: str, rate: Decimal) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE profiles SET commission_rate=%s WHERE id=%s", (rate, profile_id))
            return cur.rowcount > 0

    def add_commission(self, profile_id: str, amount: Decimal) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE profiles SET accumulated_commission = accumulated_commission + %s WHERE id=%s",
                (amount, profile_id),
            )
            return cur.rowcount > 0

    def update_ib_status(self, profile_id: str, *, status: IbStatus, expiry_date: Optional[datetime]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            if expiry_date is None:
                cur.execute("UPDATE profiles SET ib_status=%s WHERE id=%s", (status.value, profile_id))
            else:
                cur.execute(
                    "UPDATE profiles SET ib_status=%s, ib_expiry_date=%s WHERE id=%s",
                    (status.value, expiry_date, profile_id),
                )
            return cur.rowcount > 0
