from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ..brokers.model import Broker
from ..core.enums import MembershipStatus


@dataclass(frozen=True)
class IbMembership:
    """One customer's IB application with one broker."""

    membership_id: str
    user_id: str
    broker_id: str
    verification_data: str
    status: MembershipStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class IbBannerState:
    """What the product page shows about free IB usage."""

    visible: bool
    has_pending: bool = False
    available_brokers: list[Broker] = field(default_factory=list)
