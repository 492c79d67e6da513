from __future__ import annotations

import hmac
import logging
from collections import OrderedDict
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Sequence

from ..catalog.repository import ProductRepository
from ..common.datetime_utils import now_utc, parse_form_datetime
from ..common.validators import is_uuid, require_non_empty
from ..core.constants import EXPIRING_SOON_DAYS, LIFETIME_LABEL
from ..core.enums import PlanType, VerifyStatus
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from .expiry import days_remaining, is_expired
from .model import License, VerifyResult
from .repository import LicenseRepository

logger = logging.getLogger(__name__)

LICENSE_SORT_KEYS = ("expiry_date", "created_at", "customer_name")


def _latest(matches: Sequence[License]) -> License:
    # Lifetime (no expiry) outranks any dated license.
    return max(matches, key=lambda lic: (lic.expiry_date is None, lic.expiry_date or datetime.min))


def _iso_utc(value: datetime) -> str:
    return value.replace(tzinfo=timezone.utc).isoformat()


class LicenseVerifier:
    """Use case: answer an EA asking whether its trading account is licensed."""

    def __init__(
        self,
        licenses: LicenseRepository,
        products: ProductRepository,
        *,
        api_key: str = "",
        clock: Callable[[], datetime] = now_utc,
    ):
        self._licenses = licenses
        self._products = products
        self._api_key = api_key or ""
        self._clock = clock

    def verify(self, *, account_number, product_ref, api_key: Optional[str]) -> VerifyResult:
        try:
            return self._verify(account_number=account_number, product_ref=product_ref, api_key=api_key)
        except Exception as e:
            logger.exception("License verification failed")
            return VerifyResult(VerifyStatus.ERROR, f"Server Error: {e}", http_status=500)

    def _verify(self, *, account_number, product_ref, api_key: Optional[str]) -> VerifyResult:
        if self._api_key and not hmac.compare_digest((api_key or "").encode(), self._api_key.encode()):
            logger.warning("Rejected license check with an invalid API key")
            return VerifyResult(VerifyStatus.ERROR, "Invalid API Key", http_status=401)

        account = str(account_number).strip() if account_number is not None else ""
        ref = str(product_ref).strip() if product_ref is not None else ""
        if not account or not ref:
            return VerifyResult(VerifyStatus.ERROR, "Missing parameters", http_status=400)

        product_id = ref
        if not is_uuid(ref):
            product = self._products.get_by_key(ref)
            if not product:
                return VerifyResult(VerifyStatus.INVALID, "Invalid Product ID/Key")
            product_id = product.product_id

        matches = self._licenses.list_active_matches(account_number=account, product_id=product_id)
        if not matches:
            logger.info("No active license for account=%s product=%s", account, product_id)
            return VerifyResult(VerifyStatus.INVALID, "License not found or inactive")

        lic = _latest(matches)
        if is_expired(lic.expiry_date, self._clock()):
            return VerifyResult(VerifyStatus.EXPIRED, "License Expired")

        expiry = _iso_utc(lic.expiry_date) if lic.expiry_date else LIFETIME_LABEL
        return VerifyResult(VerifyStatus.ACTIVE, "License Verified", expiry_date=expiry)


def group_active_licenses(rows: Sequence[dict], *, by: str = "account") -> "OrderedDict[str, list[dict]]":
    """Bucket active license rows by trading account or by product name."""
    field = "product_name" if by == "product" else "account_number"
    groups: "OrderedDict[str, list[dict]]" = OrderedDict()
    for r in rows:
        if not r.get("is_active"):
            continue
        groups.setdefault(str(r.get(field) or "-"), []).append(r)
    return groups


class LicenseService:
    """Use case: license tables for admins and customers."""

    def __init__(self, licenses: LicenseRepository, *, clock: Callable[[], datetime] = now_utc):
        self._licenses = licenses
        self._clock = clock

    def _decorate(self, row: dict, now: datetime) -> dict:
        out = dict(row)
        out["is_lifetime"] = out.get("plan_type") == PlanType.LIFETIME.value
        expiry = None if out["is_lifetime"] else out.get("expiry_date")
        out["days_remaining"] = days_remaining(expiry, now)
        out["is_expired"] = is_expired(expiry, now)
        ib_account = out.get("ib_account_number")
        out["is_ib"] = bool(ib_account) and ib_account == out.get("account_number")
        return out

    def list_admin(
        self,
        *,
        search: str = "",
        product_name: str = "all",
        group: str = "all",
        plan: str = "all",
        active_only: bool = False,
        expiring_soon: bool = False,
        ib_only: bool = False,
        sort_key: Optional[str] = None,
        direction: str = "asc",
    ) -> list[dict]:
        now = self._clock()
        rows = [self._decorate(r, now) for r in self._licenses.list_admin_rows()]

        q = (search or "").strip().lower()
        if q:
            rows = [
                r
                for r in rows
                if q in (r.get("account_number") or "").lower()
                or q in (r.get("customer_name") or "").lower()
                or q in (r.get("customer_email") or "").lower()
            ]
        if product_name and product_name != "all":
            rows = [r for r in rows if r.get("product_name") == product_name]
        if group and group != "all":
            rows = [r for r in rows if group in (r.get("asset_class"), r.get("platform"))]
        if plan and plan != "all":
            rows = [r for r in rows if r.get("plan_type") == plan]

        if active_only:
            rows = [r for r in rows if r.get("is_active")]
        if expiring_soon:
            horizon = now + timedelta(days=EXPIRING_SOON_DAYS)
            rows = [
                r
                for r in rows
                if not r["is_lifetime"] and r.get("expiry_date") and now <= r["expiry_date"] <= horizon
            ]
        if ib_only:
            rows = [r for r in rows if r["is_ib"]]

        reverse = direction == "desc"
        if sort_key == "expiry_date":
            rows.sort(key=lambda r: (r["is_lifetime"], r.get("expiry_date") or datetime.min), reverse=reverse)
        elif sort_key == "created_at":
            rows.sort(key=lambda r: r.get("created_at") or datetime.min, reverse=reverse)
        elif sort_key == "customer_name":
            rows.sort(key=lambda r: r.get("customer_name") or "", reverse=reverse)
        return rows

    def filter_options(self) -> dict:
        rows = self._licenses.list_admin_rows()
        names = sorted({r["product_name"] for r in rows if r.get("product_name")})
        groups = sorted({(r.get("asset_class") or r.get("platform")) for r in rows} - {None, ""})
        return {"product_names": names, "groups": groups}

    def admin_update(self, *, license_id: str, is_active: bool, expiry_input: str = "") -> None:
        lic = self._licenses.get_by_id(license_id)
        if not lic:
            raise NotFoundError("License not found")

        expiry_date: Optional[datetime] = None
        if not lic.is_lifetime:
            raw = require_non_empty(expiry_input, "Expiry date")
            try:
                expiry_date = parse_form_datetime(raw)
            except ValueError:
                raise ValidationError("Expiry date is not valid")

        if not self._licenses.admin_update(license_id=license_id, is_active=is_active, expiry_date=expiry_date):
            raise ValidationError("Failed to update license")
        logger.info("License %s updated (active=%s, expiry=%s)", license_id, is_active, expiry_date)

    def list_for_customer(self, user_id: str) -> list[dict]:
        now = self._clock()
        return [self._decorate(r, now) for r in self._licenses.list_for_user(user_id)]

    def change_account_number(self, *, user_id: str, license_id: str, account_number: str) -> None:
        account = require_non_empty(account_number, "Account number")

        lic = self._licenses.get_by_id(license_id)
        if not lic:
            raise NotFoundError("License not found")
        if lic.user_id != user_id:
            raise AuthorizationError("You do not own this license")
        if lic.account_number.strip() == account:
            return

        clash = self._licenses.find_for_account(user_id=user_id, product_id=lic.product_id, account_number=account)
        if clash and clash.license_id != license_id:
            raise ValidationError("You already have a license for this product on that account")

        if not self._licenses.update_account_number(license_id=license_id, account_number=account):
            raise ValidationError("Failed to change account number")
        logger.info("License %s moved to account %s", license_id, account)
