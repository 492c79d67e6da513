from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import OrderStatus, PlanType


@dataclass(frozen=True)
class Order:
    order_id: str
    user_id: str
    product_id: str
    amount: Decimal
    plan_type: PlanType
    account_number: str
    slip_url: Optional[str]
    status: OrderStatus
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class ApprovalResult:
    """What approving an order did to the buyer's license."""

    license_id: str
    license_created: bool
    expiry_date: Optional[datetime]
    commission: Optional[Decimal] = None
    warning: Optional[str] = None


@dataclass(frozen=True)
class RejectionResult:
    deactivated: int
    warning: Optional[str] = None
