from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class PaymentSettings:
    """Bank details shown at checkout (single row)."""

    settings_id: Optional[str] = None
    bank_name: Optional[str] = None
    account_name: Optional[str] = None
    account_number: Optional[str] = None
    qr_image_url: Optional[str] = None
    updated_at: Optional[datetime] = None

    @property
    def is_configured(self) -> bool:
        return bool(self.bank_name and self.account_number)
