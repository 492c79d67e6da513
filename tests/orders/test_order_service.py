from __future__ import annotations

from datetime import datetime
from decimal import Decimal

import pytest

from ea_market.affiliates.service import AffiliateService
from ea_market.core.enums import OrderStatus, PlanType
from ea_market.core.exceptions import NotFoundError, ValidationError
from ea_market.orders.service import OrderService

NOW = datetime(2026, 3, 15, 12, 0, 0)


def _service(repos):
    return OrderService(
        repos.orders,
        repos.products,
        repos.licenses,
        AffiliateService(repos.profiles),
        clock=lambda: NOW,
    )


def test_create_order_uses_plan_price(repos):
    product = repos.products.add(monthly="30", quarterly="80")
    svc = _service(repos)

    oid = svc.create_order(
        user_id="u1",
        product_id=product.product_id,
        plan_type="quarterly",
        account_number=" 555 ",
        slip_url="https://files.example.com/s.png",
    )

    order = repos.orders.get_by_id(oid)
    assert order.amount == Decimal("80")
    assert order.account_number == "555"
    assert order.status == OrderStatus.PENDING


def test_create_order_rejects_missing_plan_price_and_slip(repos):
    product = repos.products.add(quarterly=None)
    svc = _service(repos)

    with pytest.raises(ValidationError):
        svc.create_order(user_id="u1", product_id=product.product_id, plan_type="quarterly",
                         account_number="1", slip_url="s")
    with pytest.raises(ValidationError):
        svc.create_order(user_id="u1", product_id=product.product_id, plan_type="monthly",
                         account_number="1", slip_url=" ")
    with pytest.raises(ValidationError):
        svc.create_order(user_id="u1", product_id=product.product_id, plan_type="weekly",
                         account_number="1", slip_url="s")


def test_create_order_for_inactive_product(repos):
    product = repos.products.add(is_active=False)
    with pytest.raises(NotFoundError):
        _service(repos).create_order(user_id="u1", product_id=product.product_id, plan_type="monthly",
                                     account_number="1", slip_url="s")


def test_approve_creates_license(repos):
    product = repos.products.add()
    order = repos.orders.add(user_id="u1", product_id=product.product_id, plan_type=PlanType.MONTHLY)

    result = _service(repos).approve(order_id=order.order_id)

    assert result.license_created is True
    assert result.expiry_date == datetime(2026, 4, 15, 12, 0, 0)
    lic = repos.licenses.get_by_id(result.license_id)
    assert lic.account_number == "12345"
    assert lic.is_active is True
    assert repos.orders.get_by_id(order.order_id).status == OrderStatus.COMPLETED


def test_approve_renews_existing_license_from_current_expiry(repos):
    product = repos.products.add()
    existing = repos.licenses.add(user_id="u1", product_id=product.product_id, expiry_date=datetime(2026, 3, 20),
                                  is_active=False)
    order = repos.orders.add(user_id="u1", product_id=product.product_id, plan_type=PlanType.QUARTERLY)

    result = _service(repos).approve(order_id=order.order_id)

    assert result.license_created is False
    assert result.license_id == existing.license_id
    lic = repos.licenses.get_by_id(existing.license_id)
    assert lic.expiry_date == datetime(2026, 6, 20)
    assert lic.plan_type == PlanType.QUARTERLY
    assert lic.is_active is True


def test_approve_never_downgrades_lifetime(repos):
    product = repos.products.add()
    existing = repos.licenses.add(user_id="u1", product_id=product.product_id, plan_type=PlanType.LIFETIME)
    order = repos.orders.add(user_id="u1", product_id=product.product_id, plan_type=PlanType.MONTHLY)

    _service(repos).approve(order_id=order.order_id)

    lic = repos.licenses.get_by_id(existing.license_id)
    assert lic.plan_type == PlanType.LIFETIME
    assert lic.expiry_date is None


def test_approve_twice_is_rejected(repos):
    product = repos.products.add()
    order = repos.orders.add(user_id="u1", product_id=product.product_id)
    svc = _service(repos)
    svc.approve(order_id=order.order_id)

    with pytest.raises(ValidationError):
        svc.approve(order_id=order.order_id)
    assert len(repos.licenses.items) == 1


def test_approve_credits_referrer(repos):
    referrer = repos.profiles.add(email="ref@example.com", commission_rate=Decimal("10.00"))
    buyer = repos.profiles.add(email="buyer@example.com", referred_by=referrer.profile_id)
    product = repos.products.add()
    order = repos.orders.add(user_id=buyer.profile_id, product_id=product.product_id, amount="123.45")

    result = _service(repos).approve(order_id=order.order_id)

    assert result.commission == Decimal("12.35")
    assert repos.profiles.get_by_id(referrer.profile_id).accumulated_commission == Decimal("12.35")


def test_reject_deactivates_license(repos):
    product = repos.products.add()
    lic = repos.licenses.add(user_id="u1", product_id=product.product_id, expiry_date=datetime(2026, 5, 1))
    order = repos.orders.add(user_id="u1", product_id=product.product_id)

    result = _service(repos).reject(order_id=order.order_id)

    assert result.deactivated == 1
    assert result.warning is None
    assert repos.licenses.get_by_id(lic.license_id).is_active is False
    assert repos.orders.get_by_id(order.order_id).status == OrderStatus.REJECTED


def test_reject_reports_warning_when_deactivation_fails(repos):
    product = repos.products.add()
    repos.licenses.fail_deactivate = True
    order = repos.orders.add(user_id="u1", product_id=product.product_id)

    result = _service(repos).reject(order_id=order.order_id)

    assert result.deactivated == 0
    assert "could not be deactivated" in result.warning
    assert repos.orders.get_by_id(order.order_id).status == OrderStatus.REJECTED


def test_reject_unknown_order(repos):
    with pytest.raises(NotFoundError):
        _service(repos).reject(order_id="missing")


def test_admin_list_counts_and_filters(repos):
    repos.orders.admin_rows = [
        {"order_id": "a", "status": "pending", "amount": Decimal("10"), "created_at": datetime(2026, 3, 1),
         "product_name": "Gold EA", "customer_name": "Alice", "customer_email": "a@x.com", "account_number": "1"},
        {"order_id": "b", "status": "completed", "amount": Decimal("50"), "created_at": datetime(2026, 3, 2),
         "product_name": "Grid EA", "customer_name": "Bob", "customer_email": "b@x.com", "account_number": "2"},
        {"order_id": "c", "status": "completed", "amount": Decimal("30"), "created_at": datetime(2026, 3, 3),
         "product_name": "Gold EA", "customer_name": "Carol", "customer_email": "c@x.com", "account_number": "3"},
    ]
    svc = _service(repos)

    rows, counts = svc.list_admin()
    assert counts == {"all": 3, "pending": 1, "completed": 2, "rejected": 0}
    assert [r["order_id"] for r in rows] == ["c", "b", "a"]

    rows, _ = svc.list_admin(status="completed", sort="amount-high")
    assert [r["order_id"] for r in rows] == ["b", "c"]

    rows, _ = svc.list_admin(search="gold", sort="oldest")
    assert [r["order_id"] for r in rows] == ["a", "c"]


def test_failed_license_write_leaves_order_pending(repos, monkeypatch):
    product = repos.products.add()
    order = repos.orders.add(user_id="u1", product_id=product.product_id)
    svc = _service(repos)

    def boom(**kwargs):
        raise RuntimeError("connection lost")

    monkeypatch.setattr(repos.licenses, "create", boom)
    with pytest.raises(RuntimeError):
        svc.approve(order_id=order.order_id)
    assert repos.orders.get_by_id(order.order_id).status == OrderStatus.PENDING
    assert repos.licenses.items == {}

    monkeypatch.undo()
    result = svc.approve(order_id=order.order_id)
    assert result.license_created is True
    assert repos.orders.get_by_id(order.order_id).status == OrderStatus.COMPLETED


def test_failed_commission_keeps_license_and_warns(repos, monkeypatch):
    referrer = repos.profiles.add(email="ref@example.com")
    buyer = repos.profiles.add(email="buyer@example.com", referred_by=referrer.profile_id)
    product = repos.products.add()
    order = repos.orders.add(user_id=buyer.profile_id, product_id=product.product_id)

    def boom(profile_id, amount):
        raise RuntimeError("connection lost")

    monkeypatch.setattr(repos.profiles, "add_commission", boom)
    result = _service(repos).approve(order_id=order.order_id)

    assert result.warning
    assert result.commission is None
    assert repos.licenses.get_by_id(result.license_id).is_active is True
    assert repos.orders.get_by_id(order.order_id).status == OrderStatus.COMPLETED
