from __future__ import annotations

from decimal import Decimal
from typing import Optional, Protocol, Sequence

from ..core.enums import OrderStatus, PlanType
from .model import Order


class OrderRepository(Protocol):
    def get_by_id(self, order_id: str) -> Optional[Order]:
        raise NotImplementedError

    def create(
        self,
        *,
        user_id: str,
        product_id: str,
        amount: Decimal,
        plan_type: PlanType,
        account_number: str,
        slip_url: str,
    ) -> str:
        raise NotImplementedError

    def decide(self, *, order_id: str, status: OrderStatus) -> bool:
        """Move a pending order to `status`; False when it was not pending."""
        raise NotImplementedError

    def revert_to_pending(self, order_id: str) -> bool:
        raise NotImplementedError

    def list_for_user(self, user_id: str) -> Sequence[dict]:
        raise NotImplementedError

    def list_admin_rows(self) -> Sequence[dict]:
        raise NotImplementedError
