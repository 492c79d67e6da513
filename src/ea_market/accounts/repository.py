from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional, Protocol, Sequence

from ..core.enums import IbStatus, Role
from .model import Profile


class ProfileRepository(Protocol):
    """Repository interface for profiles.

    Services depend on this protocol, not on a concrete database.
    """

    def get_by_id(self, profile_id: str) -> Optional[Profile]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[Profile]:
        raise NotImplementedError

    def get_by_referral_code(self, referral_code: str) -> Optional[Profile]:
        raise NotImplementedError

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
        raise NotImplementedError

    def update_full_name(self, profile_id: str, full_name: str) -> bool:
        raise NotImplementedError

    def update_password_hash(self, profile_id: str, password_hash: str) -> bool:
        raise NotImplementedError

    def list_all(self) -> Sequence[Profile]:
        raise NotImplementedError

    def list_customer_stats(self) -> Sequence[dict]:
        raise NotImplementedError

    def update_commission_rate(self, profile_id: str, rate: Decimal) -> bool:
        raise NotImplementedError

    def add_commission(self, profile_id: str, amount: Decimal) -> bool:
        raise NotImplementedError

    def update_ib_status(self, profile_id: str, *, status: IbStatus, expiry_date: Optional[datetime]) -> bool:
        raise NotImplementedError
