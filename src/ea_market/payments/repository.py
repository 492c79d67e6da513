from __future__ import annotations

from typing import Optional, Protocol

from .model import PaymentSettings


class PaymentSettingsRepository(Protocol):
    def get(self) -> Optional[PaymentSettings]:
        raise NotImplementedError

    def upsert(
        self,
        *,
        bank_name: Optional[str],
        account_name: Optional[str],
        account_number: Optional[str],
        qr_image_url: Optional[str],
    ) -> str:
        raise NotImplementedError
