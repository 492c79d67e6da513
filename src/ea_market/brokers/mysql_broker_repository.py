from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, new_id
from .model import Broker
from .repository import BrokerRepository

_COLUMNS = "id, name, ib_link, is_active, owner_id, created_at"
_UPDATABLE = ("name", "ib_link", "is_active")


def _to_broker(row: dict) -> Broker:
    return Broker(
        broker_id=row["id"],
        name=row["name"],
        ib_link=row.get("ib_link"),
        is_active=bool(row.get("is_active", True)),
        owner_id=row.get("owner_id"),
        created_at=row.get("created_at"),
    )


class MySQLBrokerRepository(BrokerRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, broker_id: str) -> Optional[Broker]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM brokers WHERE id=%s", (broker_id,))
            row = fetchone(cur)
            return _to_broker(row) if row else None

    def list_all(self) -> Sequence[Broker]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM brokers ORDER BY created_at DESC")
            return [_to_broker(r) for r in fetchall(cur)]

    def list_active(self, *, owner_id: Optional[str] = None) -> Sequence[Broker]:
        with db_cursor(self._conn_factory) as (_, cur):
            if owner_id:
                cur.execute(
                    f"SELECT {_COLUMNS} FROM brokers WHERE is_active=1 AND owner_id=%s ORDER BY name",
                    (owner_id,),
                )
            else:
                cur.execute(f"SELECT {_COLUMNS} FROM brokers WHERE is_active=1 ORDER BY name")
            return [_to_broker(r) for r in fetchall(cur)]

    def create(self, *, name: str, ib_link: Optional[str], owner_id: Optional[str]) -> str:
        broker_id = new_id()
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO brokers(id, name, ib_link, is_active, owner_id) VALUES(%s,%s,%s,1,%s)",
                (broker_id, name, ib_link, owner_id),
            )
        return broker_id

    def update(self, *, broker_id: str, changes: dict) -> bool:
        fields = [k for k in _UPDATABLE if k in changes]
        if not fields:
            return False
        assignments = ", ".join(f"{k}=%s" for k in fields)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE brokers SET {assignments} WHERE id=%s",
                (*[changes[k] for k in fields], broker_id),
            )
            return cur.rowcount > 0

    def delete_by_id(self, broker_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM brokers WHERE id=%s", (broker_id,))
            return cur.rowcount > 0
