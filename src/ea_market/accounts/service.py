from __future__ import annotations

import logging
import secrets
import string
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.validators import require_email, require_min_length, require_non_empty
from ..core.constants import MIN_PASSWORD_LENGTH, REFERRAL_CODE_LENGTH
from ..core.enums import OrderStatus, Role
from ..core.exceptions import AuthenticationError, NotFoundError, ValidationError
from ..licenses.repository import LicenseRepository
from ..licenses.service import group_active_licenses
from ..orders.repository import OrderRepository
from .repository import ProfileRepository

logger = logging.getLogger(__name__)

CUSTOMER_SORTS = ("spent-high", "spent-low", "orders-high")


@dataclass(frozen=True)
class SessionUser:
    """What we store into the Flask session after login."""

    user_id: str
    email: str
    full_name: str
    role: Role


def generate_referral_code() -> str:
    alphabet = string.ascii_uppercase + string.digits
    return "".join(secrets.choice(alphabet) for _ in range(REFERRAL_CODE_LENGTH))


class AuthService:
    """Use case: login and self-service registration."""

    def __init__(self, profiles: ProfileRepository):
        self._profiles = profiles

    def authenticate(self, email: str, password: str) -> SessionUser:
        profile = self._profiles.get_by_email((email or "").strip().lower())
        if not profile:
            raise AuthenticationError("Invalid email or password")

        try:
            ok = check_password_hash(profile.password_hash, password or "")
        except ValueError:
            # placeholder or corrupted hash values
            ok = False
        if not ok:
            raise AuthenticationError("Invalid email or password")

        return SessionUser(
            user_id=profile.profile_id,
            email=profile.email,
            full_name=profile.display_name,
            role=profile.role,
        )

    def register(self, *, email: str, password: str, full_name: str, referral_code: Optional[str] = None) -> str:
        email = require_email(email)
        require_min_length(password, "Password", MIN_PASSWORD_LENGTH)
        full_name = (full_name or "").strip()

        if self._profiles.get_by_email(email):
            raise ValidationError("This email is already registered")

        referred_by = None
        code = (referral_code or "").strip()
        if code:
            referrer = self._profiles.get_by_referral_code(code)
            if referrer:
                referred_by = referrer.profile_id
            else:
                logger.info("Ignoring unknown referral code %r at registration", code)

        new_code = generate_referral_code()
        while self._profiles.get_by_referral_code(new_code):
            new_code = generate_referral_code()

        profile_id = self._profiles.create(
            email=email,
            password_hash=generate_password_hash(password),
            full_name=full_name or email.split("@")[0],
            role=Role.CUSTOMER,
            referral_code=new_code,
            referred_by=referred_by,
        )
        logger.info("Registered %s (referred_by=%s)", email, referred_by)
        return profile_id


class AccountService:
    """Use case: customer dashboard/settings and the admin customer views."""

    def __init__(self, profiles: ProfileRepository, orders: OrderRepository, licenses: LicenseRepository):
        self._profiles = profiles
        self._orders = orders
        self._licenses = licenses

    def get_profile(self, profile_id: str):
        profile = self._profiles.get_by_id(profile_id)
        if not profile:
            raise NotFoundError("Profile not found")
        return profile

    def dashboard_stats(self, user_id: str) -> dict:
        licenses = list(self._licenses.list_for_user(user_id))
        orders = self._orders.list_for_user(user_id)
        active = sum(1 for lic in licenses if lic.get("is_active"))
        invested = sum(
            (o["amount"] for o in orders if o.get("status") == OrderStatus.COMPLETED.value),
            Decimal("0"),
        )
        return {
            "active_licenses": active,
            "total_investment": invested,
            "total_products": len(licenses),
            "account_status": "Active" if active > 0 else "Standby",
        }

    def update_name(self, *, user_id: str, full_name: str) -> str:
        full_name = require_non_empty(full_name, "Full name")
        if not self._profiles.update_full_name(user_id, full_name):
            raise NotFoundError("Profile not found")
        return full_name

    def change_password(self, *, user_id: str, new_password: str, confirm_password: str) -> None:
        require_min_length(new_password, "Password", MIN_PASSWORD_LENGTH)
        if new_password != confirm_password:
            raise ValidationError("Passwords do not match")
        if not self._profiles.update_password_hash(user_id, generate_password_hash(new_password)):
            raise NotFoundError("Profile not found")
        logger.info("Password changed for %s", user_id)

    def list_customers(self, *, search: str = "", sort: str = "spent-high") -> list[dict]:
        rows = list(self._profiles.list_customer_stats())
        q = (search or "").strip().lower()
        if q:
            rows = [
                r
                for r in rows
                if q in (r.get("email") or "").lower()
                or q in (r.get("full_name") or "").lower()
                or q in str(r.get("id") or "").lower()
            ]

        if sort == "spent-low":
            rows.sort(key=lambda r: r["total_spent"])
        elif sort == "orders-high":
            rows.sort(key=lambda r: r["order_count"], reverse=True)
        else:
            rows.sort(key=lambda r: r["total_spent"], reverse=True)
        return rows

    def customer_detail(self, profile_id: str, *, group_by: str = "account") -> dict:
        profile = self.get_profile(profile_id)
        licenses = list(self._licenses.list_for_user(profile_id))
        orders = list(self._orders.list_for_user(profile_id))
        total_spent = sum(
            (o["amount"] for o in orders if o.get("status") == OrderStatus.COMPLETED.value),
            Decimal("0"),
        )
        return {
            "profile": profile,
            "active_groups": group_active_licenses(licenses, by=group_by),
            "inactive_licenses": [lic for lic in licenses if not lic.get("is_active")],
            "orders": orders,
            "total_spent": total_spent,
            "group_by": "product" if group_by == "product" else "account",
        }
