from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from ..core.constants import DEFAULT_COMMISSION_RATE
from ..core.enums import IbStatus, Role


@dataclass(frozen=True)
class Profile:
    """Domain entity: a shop account (customer or admin).

    Note: plain data object, no DB access here.
    """

    profile_id: str
    email: str
    password_hash: str
    full_name: Optional[str]
    role: Role
    referral_code: Optional[str] = None
    referred_by: Optional[str] = None
    commission_rate: Decimal = Decimal(str(DEFAULT_COMMISSION_RATE))
    accumulated_commission: Decimal = Decimal("0.00")
    ib_status: IbStatus = IbStatus.NONE
    ib_expiry_date: Optional[datetime] = None
    ib_account_number: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def display_name(self) -> str:
        return self.full_name or self.email
