from __future__ import annotations

import math
from datetime import datetime
from typing import Optional, Tuple, Union

from ..common.datetime_utils import add_months
from ..core.enums import PlanType

_PLAN_MONTHS = {
    PlanType.MONTHLY: 1,
    PlanType.QUARTERLY: 3,
}


def compute_expiry(
    plan_type: Union[PlanType, str],
    now: datetime,
    current_expiry: Optional[datetime] = None,
) -> Optional[datetime]:
    """Expiry after buying `plan_type`; None means lifetime.

    Time left on an unexpired license is carried over, so renewals extend from
    the current expiry rather than from `now`.
    """
    plan = PlanType(plan_type)
    if plan == PlanType.LIFETIME:
        return None

    start = current_expiry if current_expiry is not None and current_expiry > now else now
    return add_months(start, _PLAN_MONTHS[plan])


def renewal_terms(
    plan_type: Union[PlanType, str],
    now: datetime,
    *,
    current_type: Optional[PlanType] = None,
    current_expiry: Optional[datetime] = None,
) -> Tuple[PlanType, Optional[datetime]]:
    """(type, expiry) a license gets after an approved order.

    A lifetime license is never downgraded by a later timed purchase.
    """
    if current_type == PlanType.LIFETIME:
        return PlanType.LIFETIME, None
    plan = PlanType(plan_type)
    return plan, compute_expiry(plan, now, current_expiry)


def days_remaining(expiry: Optional[datetime], now: datetime) -> Optional[int]:
    if expiry is None:
        return None
    return math.ceil((expiry - now).total_seconds() / 86400)


def is_expired(expiry: Optional[datetime], now: datetime) -> bool:
    return expiry is not None and now > expiry
