from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import PlanType
from .model import License


class LicenseRepository(Protocol):
    def get_by_id(self, license_id: str) -> Optional[License]:
        raise NotImplementedError

    def list_active_matches(self, *, account_number: str, product_id: str) -> Sequence[License]:
        raise NotImplementedError

    def find_for_account(self, *, user_id: str, product_id: str, account_number: str) -> Optional[License]:
        raise NotImplementedError

    def create(
        self,
        *,
        user_id: str,
        product_id: str,
        account_number: str,
        plan_type: PlanType,
        expiry_date: Optional[datetime],
    ) -> str:
        raise NotImplementedError

    def renew(self, *, license_id: str, plan_type: PlanType, expiry_date: Optional[datetime]) -> bool:
        raise NotImplementedError

    def deactivate_for_account(self, *, user_id: str, product_id: str, account_number: str) -> int:
        raise NotImplementedError

    def admin_update(self, *, license_id: str, is_active: bool, expiry_date: Optional[datetime]) -> bool:
        raise NotImplementedError

    def update_account_number(self, *, license_id: str, account_number: str) -> bool:
        raise NotImplementedError

    def list_for_user(self, user_id: str) -> Sequence[dict]:
        raise NotImplementedError

    def list_admin_rows(self) -> Sequence[dict]:
        raise NotImplementedError
