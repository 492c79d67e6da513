from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional

from ..affiliates.service import AffiliateService
from ..catalog.repository import ProductRepository
from ..common.datetime_utils import now_utc
from ..common.validators import require_non_empty
from ..core.enums import OrderStatus, PlanType
from ..core.exceptions import NotFoundError, ValidationError
from ..licenses.expiry import renewal_terms
from ..licenses.repository import LicenseRepository
from .model import ApprovalResult, Order, RejectionResult
from .repository import OrderRepository

logger = logging.getLogger(__name__)

ORDER_SORTS = ("newest", "oldest", "amount-high", "amount-low")


class OrderService:
    """Use case: checkout, billing history and admin decisions on orders."""

    def __init__(
        self,
        orders: OrderRepository,
        products: ProductRepository,
        licenses: LicenseRepository,
        affiliates: AffiliateService,
        *,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._orders = orders
        self._products = products
        self._licenses = licenses
        self._affiliates = affiliates
        self._clock = clock

    def create_order(
        self,
        *,
        user_id: str,
        product_id: str,
        plan_type: str,
        account_number: str,
        slip_url: str,
    ) -> str:
        product = self._products.get_by_id(product_id)
        if not product or not product.is_active:
            raise NotFoundError("Product is not available")

        try:
            plan = PlanType(plan_type)
        except ValueError:
            raise ValidationError("Unknown plan")
        amount: Optional[Decimal] = product.price_for(plan)
        if amount is None:
            raise ValidationError("This plan is not offered for this product")

        account = require_non_empty(account_number, "Account number")
        slip = require_non_empty(slip_url, "Payment slip")

        order_id = self._orders.create(
            user_id=user_id,
            product_id=product_id,
            amount=amount,
            plan_type=plan,
            account_number=account,
            slip_url=slip,
        )
        logger.info("Order %s placed: %s %s for account %s", order_id, product.name, plan.value, account)
        return order_id

    def list_billing(self, user_id: str) -> list[dict]:
        return list(self._orders.list_for_user(user_id))

    def list_admin(self, *, status: str = "all", search: str = "", sort: str = "newest") -> tuple[list[dict], dict]:
        rows = list(self._orders.list_admin_rows())

        counts = {"all": len(rows)}
        for s in OrderStatus:
            counts[s.value] = sum(1 for r in rows if r.get("status") == s.value)

        if status and status != "all":
            rows = [r for r in rows if r.get("status") == status]

        q = (search or "").strip().lower()
        if q:
            rows = [
                r
                for r in rows
                if q in (r.get("product_name") or "").lower()
                or q in (r.get("customer_name") or "").lower()
                or q in (r.get("customer_email") or "").lower()
                or q in (r.get("account_number") or "").lower()
            ]

        if sort == "oldest":
            rows.sort(key=lambda r: r.get("created_at") or datetime.min)
        elif sort == "amount-high":
            rows.sort(key=lambda r: r.get("amount") or Decimal("0"), reverse=True)
        elif sort == "amount-low":
            rows.sort(key=lambda r: r.get("amount") or Decimal("0"))
        else:
            rows.sort(key=lambda r: r.get("created_at") or datetime.min, reverse=True)
        return rows, counts

    def approve(self, *, order_id: str) -> ApprovalResult:
        order = self._orders.get_by_id(order_id)
        if not order:
            raise NotFoundError("Order not found")
        if order.status != OrderStatus.PENDING:
            raise ValidationError("Only pending orders can be approved")
        if not self._orders.decide(order_id=order_id, status=OrderStatus.COMPLETED):
            raise ValidationError("Only pending orders can be approved")

        try:
            license_id, created, expiry = self._grant_license(order)
        except Exception:
            # no license granted: the order stays pending
            self._orders.revert_to_pending(order_id)
            logger.error("Order %s reverted to pending: license write failed", order_id)
            raise

        commission, warning = None, None
        try:
            commission = self._affiliates.accrue_commission(buyer_id=order.user_id, amount=order.amount)
        except Exception:
            logger.warning("Order %s approved but commission could not be credited", order_id, exc_info=True)
            warning = "Order approved but the referral commission could not be credited. Please check the database."

        logger.info(
            "Order %s approved: license %s %s (expiry=%s)",
            order_id,
            license_id,
            "created" if created else "renewed",
            expiry,
        )
        return ApprovalResult(
            license_id=license_id,
            license_created=created,
            expiry_date=expiry,
            commission=commission,
            warning=warning,
        )

    def _grant_license(self, order: Order) -> tuple[str, bool, Optional[datetime]]:
        now = self._clock()
        account = order.account_number.strip()
        existing = self._licenses.find_for_account(
            user_id=order.user_id, product_id=order.product_id, account_number=account
        )

        if existing:
            plan, expiry = renewal_terms(
                order.plan_type, now, current_type=existing.plan_type, current_expiry=existing.expiry_date
            )
            self._licenses.renew(license_id=existing.license_id, plan_type=plan, expiry_date=expiry)
            return existing.license_id, False, expiry

        plan, expiry = renewal_terms(order.plan_type, now)
        license_id = self._licenses.create(
            user_id=order.user_id,
            product_id=order.product_id,
            account_number=account,
            plan_type=plan,
            expiry_date=expiry,
        )
        return license_id, True, expiry

    def reject(self, *, order_id: str) -> RejectionResult:
        order = self._orders.get_by_id(order_id)
        if not order:
            raise NotFoundError("Order not found")
        if order.status != OrderStatus.PENDING:
            raise ValidationError("Only pending orders can be rejected")
        if not self._orders.decide(order_id=order_id, status=OrderStatus.REJECTED):
            raise ValidationError("Only pending orders can be rejected")
        logger.info("Order %s rejected", order_id)

        if not order.account_number.strip():
            return RejectionResult(deactivated=0)
        try:
            count = self._licenses.deactivate_for_account(
                user_id=order.user_id, product_id=order.product_id, account_number=order.account_number
            )
        except Exception:
            logger.warning("Order %s rejected but its license could not be deactivated", order_id, exc_info=True)
            return RejectionResult(
                deactivated=0,
                warning="Order rejected but the license could not be deactivated. Please check the database.",
            )
        return RejectionResult(deactivated=count)
