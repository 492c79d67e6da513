from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import MembershipStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, new_id
from .model import IbMembership
from .repository import IbMembershipRepository

_COLUMNS = "id, user_id, broker_id, verification_data, status, created_at, updated_at"


def _to_membership(row: dict) -> IbMembership:
    return IbMembership(
        membership_id=row["id"],
        user_id=row["user_id"],
        broker_id=row["broker_id"],
        verification_data=row["verification_data"],
        status=MembershipStatus(row["status"]),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


class MySQLIbMembershipRepository(IbMembershipRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, membership_id: str) -> Optional[IbMembership]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM ib_memberships WHERE id=%s", (membership_id,))
            row = fetchone(cur)
            return _to_membership(row) if row else None

    def list_for_user(self, user_id: str) -> Sequence[IbMembership]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM ib_memberships WHERE user_id=%s ORDER BY created_at DESC",
                (user_id,),
            )
            return [_to_membership(r) for r in fetchall(cur)]

    def exists_for_other_user(self, *, broker_id: str, verification_data: str, user_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT id FROM ib_memberships
                WHERE broker_id=%s AND verification_data=%s
                  AND status IN ('pending', 'approved') AND user_id<>%s
                LIMIT 1
                """,
                (broker_id, verification_data, user_id),
            )
            return fetchone(cur) is not None

    def create(self, *, user_id: str, broker_id: str, verification_data: str) -> str:
        membership_id = new_id()
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO ib_memberships(id, user_id, broker_id, verification_data, status)
                VALUES(%s,%s,%s,%s,'pending')
                """,
                (membership_id, user_id, broker_id, verification_data),
            )
        return membership_id

    def decide(self, *, membership_id: str, status: MembershipStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE ib_memberships SET status=%s WHERE id=%s AND status='pending'",
                (status.value, membership_id),
            )
            return cur.rowcount > 0

    def list_pending_rows(self) -> Sequence[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT m.id AS membership_id, m.user_id, m.broker_id, m.verification_data,
                       m.status, m.created_at, m.updated_at,
                       p.full_name AS customer_name, p.email AS customer_email,
                       b.name AS broker_name
                FROM ib_memberships m
                JOIN profiles p ON p.id = m.user_id
                JOIN brokers b ON b.id = m.broker_id
                WHERE m.status='pending'
                ORDER BY m.updated_at DESC
                """
            )
            return fetchall(cur)
