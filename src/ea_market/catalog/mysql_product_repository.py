from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, new_id, optional_decimal, to_decimal
from .model import Product
from .repository import ProductRepository

_COLUMNS = (
    "id, name, product_key, description, price_monthly, price_quarterly, price_lifetime, "
    "image_url, file_url, version, platform, asset_class, strategy, is_active, created_at"
)
_WRITABLE = (
    "name",
    "product_key",
    "description",
    "price_monthly",
    "price_quarterly",
    "price_lifetime",
    "image_url",
    "file_url",
    "version",
    "platform",
    "asset_class",
    "strategy",
    "is_active",
)


def _to_product(row: dict) -> Product:
    return Product(
        product_id=row["id"],
        name=row["name"],
        product_key=row.get("product_key"),
        description=row.get("description"),
        price_monthly=to_decimal(row.get("price_monthly")),
        price_quarterly=optional_decimal(row.get("price_quarterly")),
        price_lifetime=to_decimal(row.get("price_lifetime")),
        image_url=row.get("image_url"),
        file_url=row.get("file_url"),
        version=row.get("version") or "1.0",
        platform=row.get("platform"),
        asset_class=row.get("asset_class"),
        strategy=row.get("strategy"),
        is_active=bool(row.get("is_active", True)),
        created_at=row.get("created_at"),
    )


class MySQLProductRepository(ProductRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, product_id: str) -> Optional[Product]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM products WHERE id=%s", (product_id,))
            row = fetchone(cur)
            return _to_product(row) if row else None

    def get_by_key(self, product_key: str) -> Optional[Product]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM products WHERE product_key=%s", (product_key,))
            row = fetchone(cur)
            return _to_product(row) if row else None

    def list_all(self, *, active_only: bool = False) -> Sequence[Product]:
        sql = f"SELECT {_COLUMNS} FROM products"
        if active_only:
            sql += " WHERE is_active=1"
        sql += " ORDER BY created_at DESC"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql)
            return [_to_product(r) for r in fetchall(cur)]

    def create(self, *, data: dict) -> str:
        product_id = new_id()
        fields = [k for k in _WRITABLE if k in data]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"INSERT INTO products(id, {', '.join(fields)}) VALUES(%s{', %s' * len(fields)})",
                (product_id, *[data[k] for k in fields]),
            )
        return product_id

    def update(self, *, product_id: str, data: dict) -> bool:
        fields = [k for k in _WRITABLE if k in data]
        if not fields:
            return False
        assignments = ", ".join(f"{k}=%s" for k in fields)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE products SET {assignments} WHERE id=%s",
                (*[data[k] for k in fields], product_id),
            )
            return cur.rowcount > 0

    def delete_by_id(self, product_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM products WHERE id=%s", (product_id,))
            return cur.rowcount > 0
