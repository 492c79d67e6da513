from __future__ import annotations

from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, new_id
from .model import PaymentSettings
from .repository import PaymentSettingsRepository


class MySQLPaymentSettingsRepository(PaymentSettingsRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self) -> Optional[PaymentSettings]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT id, bank_name, account_name, account_number, qr_image_url, updated_at
                FROM payment_settings
                ORDER BY updated_at DESC
                LIMIT 1
                """
            )
            row = fetchone(cur)
            if not row:
                return None
            return PaymentSettings(
                settings_id=row["id"],
                bank_name=row.get("bank_name"),
                account_name=row.get("account_name"),
                account_number=row.get("account_number"),
                qr_image_url=row.get("qr_image_url"),
                updated_at=row.get("updated_at"),
            )

    def upsert(
        self,
        *,
        bank_name: Optional[str],
        account_name: Optional[str],
        account_number: Optional[str],
        qr_image_url: Optional[str],
    ) -> str:
        current = self.get()
        with db_cursor(self._conn_factory) as (_, cur):
            if current:
                cur.execute(
                    """
                    UPDATE payment_settings
                    SET bank_name=%s, account_name=%s, account_number=%s, qr_image_url=%s,
                        updated_at=UTC_TIMESTAMP()
                    WHERE id=%s
                    """,
                    (bank_name, account_name, account_number, qr_image_url, current.settings_id),
                )
                return current.settings_id
            settings_id = new_id()
            cur.execute(
                """
                INSERT INTO payment_settings(id, bank_name, account_name, account_number, qr_image_url, updated_at)
                VALUES(%s,%s,%s,%s,%s,UTC_TIMESTAMP())
                """,
                (settings_id, bank_name, account_name, account_number, qr_image_url),
            )
            return settings_id
