from __future__ import annotations

import logging
from typing import Iterable, Optional

from ..accounts.repository import ProfileRepository
from ..brokers.model import Broker
from ..brokers.repository import BrokerRepository
from ..common.datetime_utils import parse_form_datetime
from ..common.validators import require_non_empty
from ..core.constants import IB_UPLINE_MAX_DEPTH
from ..core.enums import IbStatus, MembershipStatus
from ..core.exceptions import NotFoundError, ValidationError
from .model import IbBannerState
from .repository import IbMembershipRepository

logger = logging.getLogger(__name__)


class IbService:
    """Use case: introducing-broker applications and approvals.

    Brokers offered to a customer belong to the shop owner at the top of the
    customer's referral chain (a "root admin"), falling back to every active
    broker when the chain does not reach one.
    """

    def __init__(
        self,
        memberships: IbMembershipRepository,
        brokers: BrokerRepository,
        profiles: ProfileRepository,
        *,
        root_admin_emails: Iterable[str] = (),
    ):
        self._memberships = memberships
        self._brokers = brokers
        self._profiles = profiles
        self._root_emails = {e.strip().lower() for e in root_admin_emails if e and e.strip()}

    def find_root_admin_id(self, user_id: str) -> Optional[str]:
        profile = self._profiles.get_by_id(user_id)
        current = profile.referred_by if profile else None
        for _ in range(IB_UPLINE_MAX_DEPTH):
            if not current:
                break
            upline = self._profiles.get_by_id(current)
            if not upline:
                break
            if upline.email.lower() in self._root_emails:
                return upline.profile_id
            current = upline.referred_by
        return None

    def offered_brokers(self, user_id: Optional[str]) -> list[Broker]:
        owner_id = self.find_root_admin_id(user_id) if user_id else None
        return list(self._brokers.list_active(owner_id=owner_id))

    def banner_state(self, user_id: Optional[str]) -> IbBannerState:
        brokers = self.offered_brokers(user_id)
        if not user_id:
            return IbBannerState(visible=True, available_brokers=brokers)

        memberships = list(self._memberships.list_for_user(user_id))
        if any(m.status == MembershipStatus.APPROVED for m in memberships):
            return IbBannerState(visible=False)

        applied = {m.broker_id for m in memberships}
        return IbBannerState(
            visible=True,
            has_pending=any(m.status == MembershipStatus.PENDING for m in memberships),
            available_brokers=[b for b in brokers if b.broker_id not in applied],
        )

    def apply(self, *, user_id: str, broker_id: str, verification_data: str) -> str:
        broker_id = require_non_empty(broker_id, "Broker")
        data = require_non_empty(verification_data, "Verification data")

        if broker_id not in {b.broker_id for b in self.offered_brokers(user_id)}:
            raise ValidationError("This broker is not available")
        if self._memberships.exists_for_other_user(broker_id=broker_id, verification_data=data, user_id=user_id):
            raise ValidationError("This account is already registered by another user")
        if any(m.broker_id == broker_id for m in self._memberships.list_for_user(user_id)):
            raise ValidationError("You have already applied with this broker")

        membership_id = self._memberships.create(user_id=user_id, broker_id=broker_id, verification_data=data)
        logger.info("IB application %s from %s for broker %s", membership_id, user_id, broker_id)
        return membership_id

    def list_pending(self) -> list[dict]:
        return list(self._memberships.list_pending_rows())

    def _decide(self, membership_id: str, status: MembershipStatus) -> None:
        membership = self._memberships.get_by_id(membership_id)
        if not membership:
            raise NotFoundError("IB application not found")
        if membership.status != MembershipStatus.PENDING or not self._memberships.decide(
            membership_id=membership_id, status=status
        ):
            raise ValidationError("Only pending applications can be decided")
        logger.info("IB application %s %s", membership_id, status.value)

    def approve(self, membership_id: str) -> None:
        self._decide(membership_id, MembershipStatus.APPROVED)

    def reject(self, membership_id: str) -> None:
        self._decide(membership_id, MembershipStatus.REJECTED)

    def set_profile_status(self, *, profile_id: str, action: str, expiry_date: Optional[str] = None) -> IbStatus:
        if action not in ("approve", "reject"):
            raise ValidationError("Invalid action")

        expiry = None
        if action == "approve":
            if not expiry_date or not str(expiry_date).strip():
                raise ValidationError("Expiry date is required for approval")
            try:
                expiry = parse_form_datetime(str(expiry_date))
            except ValueError:
                raise ValidationError("Expiry date is not valid")
        status = IbStatus.APPROVED if action == "approve" else IbStatus.REJECTED

        if not self._profiles.update_ib_status(profile_id, status=status, expiry_date=expiry):
            raise NotFoundError("Profile not found")
        logger.info("Profile %s IB status set to %s (expiry=%s)", profile_id, status.value, expiry)
        return status
