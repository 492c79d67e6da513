from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from ea_market.catalog.service import CatalogService
from ea_market.core.exceptions import NotFoundError, ValidationError

NOW = datetime(2026, 3, 15, 12, 0, 0)


def _form(**kw):
    form = {"name": "Gold EA", "price_monthly": "30", "price_lifetime": "300", "is_active": "1"}
    form.update(kw)
    return form


def test_create_product_applies_defaults(repos):
    svc = CatalogService(repos.products, clock=lambda: NOW)
    pid = svc.create_product(_form(price_quarterly="", platform="mt5"))

    product = repos.products.get_by_id(pid)
    assert product.version == "1.0"
    assert product.price_quarterly is None
    assert product.price_monthly == Decimal("30.00")
    assert product.platform == "mt5"
    assert product.is_active is True


@pytest.mark.parametrize(
    "overrides",
    [
        {"name": " "},
        {"price_monthly": ""},
        {"price_lifetime": "-5"},
        {"price_quarterly": "abc"},
        {"asset_class": "stocks"},
    ],
)
def test_create_product_validation(repos, overrides):
    with pytest.raises(ValidationError):
        CatalogService(repos.products).create_product(_form(**overrides))


def test_product_key_must_be_unique(repos):
    repos.products.add(product_key="GOLD-EA-V1")
    svc = CatalogService(repos.products)
    with pytest.raises(ValidationError):
        svc.create_product(_form(product_key="GOLD-EA-V1"))


def test_update_keeps_own_product_key(repos):
    product = repos.products.add(product_key="GOLD-EA-V1")
    svc = CatalogService(repos.products)
    svc.update_product(product.product_id, _form(name="Gold EA v2", product_key="GOLD-EA-V1", is_active=""))
    updated = repos.products.get_by_id(product.product_id)
    assert updated.name == "Gold EA v2"
    assert updated.is_active is False


def test_storefront_hides_inactive_and_filters(repos):
    repos.products.add(name="A", platform="mt4", asset_class="gold")
    repos.products.add(name="B", platform="mt5", asset_class="gold")
    repos.products.add(name="C", platform="mt5", is_active=False)
    svc = CatalogService(repos.products)

    assert sorted(p.name for p in svc.list_storefront()) == ["A", "B"]
    assert [p.name for p in svc.list_storefront({"platform": "mt5"})] == ["B"]
    assert sorted(p.name for p in svc.list_admin({"platform": "mt5"})) == ["B", "C"]


def test_get_active_product_rejects_inactive(repos):
    product = repos.products.add(is_active=False)
    with pytest.raises(NotFoundError):
        CatalogService(repos.products).get_active_product(product.product_id)


def test_delete_needs_matching_code(repos, caplog):
    product = repos.products.add()
    svc = CatalogService(repos.products, clock=lambda: NOW)

    with caplog.at_level(logging.WARNING, logger="ea_market.catalog.service"):
        record = svc.issue_delete_code(product_id=product.product_id, admin_email="admin@example.com")
    code = re.search(r"(\d{6})$", caplog.records[-1].getMessage()).group(1)
    assert record["code_hash"] != code

    with pytest.raises(ValidationError, match="incorrect"):
        svc.delete_with_code(product_id=product.product_id, code="000000" if code != "000000" else "111111",
                             record=record)
    with pytest.raises(ValidationError, match="first"):
        svc.delete_with_code(product_id="other", code=code, record=record)

    svc.delete_with_code(product_id=product.product_id, code=code, record=record)
    assert repos.products.get_by_id(product.product_id) is None


def test_delete_code_expires(repos):
    product = repos.products.add()
    issued = CatalogService(repos.products, clock=lambda: NOW).issue_delete_code(
        product_id=product.product_id, admin_email="admin@example.com"
    )
    later = CatalogService(repos.products, clock=lambda: NOW + timedelta(minutes=11))
    with pytest.raises(ValidationError, match="expired"):
        later.delete_with_code(product_id=product.product_id, code="123456", record=issued)


def test_delete_code_locks_after_repeated_wrong_guesses(repos, caplog):
    product = repos.products.add()
    svc = CatalogService(repos.products, clock=lambda: NOW)
    with caplog.at_level(logging.WARNING, logger="ea_market.catalog.service"):
        record = svc.issue_delete_code(product_id=product.product_id, admin_email="admin@example.com")
    code = re.search(r"(\d{6})$", caplog.records[-1].getMessage()).group(1)
    wrong = "000000" if code != "000000" else "111111"

    for _ in range(4):
        with pytest.raises(ValidationError, match="incorrect"):
            svc.delete_with_code(product_id=product.product_id, code=wrong, record=record)
    with pytest.raises(ValidationError, match="Too many"):
        svc.delete_with_code(product_id=product.product_id, code=wrong, record=record)
    assert svc.delete_code_spent(record)

    with pytest.raises(ValidationError, match="Too many"):
        svc.delete_with_code(product_id=product.product_id, code=code, record=record)
    assert repos.products.get_by_id(product.product_id) is not None


def test_oversized_price_is_a_field_error(repos):
    with pytest.raises(ValidationError, match="too large"):
        CatalogService(repos.products).create_product(_form(price_monthly="1e400"))
