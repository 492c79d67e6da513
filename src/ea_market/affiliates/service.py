from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional

from ..accounts.repository import ProfileRepository
from ..core.constants import MAX_COMMISSION_RATE
from ..core.enums import IbStatus
from ..core.exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

_CENT = Decimal("0.01")


def commission_for(amount: Decimal, rate: Decimal) -> Decimal:
    return (Decimal(amount) * Decimal(rate) / Decimal(100)).quantize(_CENT, rounding=ROUND_HALF_UP)


def referral_link(site_url: str, referral_code: Optional[str]) -> str:
    if not referral_code:
        return ""
    return f"{(site_url or '').rstrip('/')}/?ref={referral_code}"


class AffiliateService:
    """Use case: referral programme (links, commission rates, accrual)."""

    def __init__(self, profiles: ProfileRepository, *, site_url: str = ""):
        self._profiles = profiles
        self._site_url = site_url

    def overview(self, profile_id: str) -> dict:
        profile = self._profiles.get_by_id(profile_id)
        if not profile:
            raise NotFoundError("Profile not found")
        return {
            "referral_code": profile.referral_code,
            "referral_link": referral_link(self._site_url, profile.referral_code),
            "commission_rate": profile.commission_rate,
            "accumulated_commission": profile.accumulated_commission,
            "is_ib": profile.ib_status == IbStatus.APPROVED,
            "ib_expiry_date": profile.ib_expiry_date,
        }

    def list_for_admin(self, *, search: str = "") -> list[dict]:
        profiles = list(self._profiles.list_all())
        names = {p.profile_id: p.display_name for p in profiles}
        q = (search or "").strip().lower()

        out: list[dict] = []
        for p in profiles:
            if q and not (
                q in (p.full_name or "").lower()
                or q in p.email.lower()
                or q in (p.referral_code or "").lower()
            ):
                continue
            out.append(
                {
                    "id": p.profile_id,
                    "full_name": p.full_name,
                    "email": p.email,
                    "referral_code": p.referral_code,
                    "upline": names.get(p.referred_by, "-") if p.referred_by else "-",
                    "commission_rate": p.commission_rate,
                    "accumulated_commission": p.accumulated_commission,
                    "ib_status": p.ib_status.value,
                }
            )
        return out

    def update_commission_rate(self, *, profile_id: str, rate) -> Decimal:
        try:
            value = Decimal(str(rate).strip())
        except InvalidOperation:
            raise ValidationError("Commission rate must be a number")
        if not value.is_finite() or value < 0 or value > Decimal(str(MAX_COMMISSION_RATE)):
            raise ValidationError("Commission rate must be between 0 and 100")

        value = value.quantize(_CENT)
        if not self._profiles.update_commission_rate(profile_id, value):
            raise NotFoundError("Profile not found")
        logger.info("Commission rate of %s set to %s%%", profile_id, value)
        return value

    def accrue_commission(self, *, buyer_id: str, amount: Decimal) -> Optional[Decimal]:
        """Credit the buyer's referrer; returns the credited amount, if any."""
        buyer = self._profiles.get_by_id(buyer_id)
        if not buyer or not buyer.referred_by:
            return None
        referrer = self._profiles.get_by_id(buyer.referred_by)
        if not referrer:
            return None

        commission = commission_for(amount, referrer.commission_rate)
        if commission <= 0:
            return None
        self._profiles.add_commission(referrer.profile_id, commission)
        logger.info("Commission %s credited to %s for purchase by %s", commission, referrer.email, buyer.email)
        return commission
