from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import PlanType, VerifyStatus


@dataclass(frozen=True)
class License:
    """A purchased right to run one product on one trading account.

    `expiry_date` is None for lifetime licenses.
    """

    license_id: str
    user_id: str
    product_id: str
    account_number: str
    plan_type: PlanType
    is_active: bool
    expiry_date: Optional[datetime]
    created_at: Optional[datetime] = None

    @property
    def is_lifetime(self) -> bool:
        return self.plan_type == PlanType.LIFETIME


@dataclass(frozen=True)
class VerifyResult:
    """Outcome of a license check, as returned to the EA."""

    status: VerifyStatus
    message: str
    http_status: int = 200
    expiry_date: Optional[str] = None

    def to_payload(self) -> dict:
        payload = {"status": self.status.value, "message": self.message}
        if self.expiry_date is not None:
            payload["expiry_date"] = self.expiry_date
        return payload
