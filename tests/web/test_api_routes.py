from __future__ import annotations

from datetime import timedelta

import pytest

from ea_market.common.datetime_utils import now_utc
from ea_market.core.enums import IbStatus, PlanType, Role


@pytest.fixture
def admin(repos):
    return repos.profiles.add(email="admin@example.com", role=Role.ADMIN, full_name="Admin")


@pytest.fixture
def customer(repos):
    return repos.profiles.add(email="customer@example.com", full_name="Customer")


def test_verify_license_active_lifetime(repos, app_factory):
    product = repos.products.add(product_key="GOLD-EA-V1")
    repos.licenses.add(product_id=product.product_id, account_number="777", plan_type=PlanType.LIFETIME)
    client = app_factory(license_api_key="k").test_client()

    resp = client.post(
        "/api/verify-license",
        json={"account_number": "777", "product_id": "GOLD-EA-V1"},
        headers={"x-api-key": "k"},
    )

    assert resp.status_code == 200
    assert resp.get_json() == {"status": "active", "message": "License Verified", "expiry_date": "Lifetime"}


def test_verify_license_rejects_bad_key(app_factory):
    client = app_factory(license_api_key="k").test_client()
    resp = client.post("/api/verify-license", json={"account_number": "1", "product_id": "x"})
    assert resp.status_code == 401
    assert resp.get_json()["message"] == "Invalid API Key"


def test_verify_license_missing_or_malformed_body(app_factory):
    client = app_factory().test_client()
    assert client.post("/api/verify-license", json={"account_number": "1"}).status_code == 400
    resp = client.post("/api/verify-license", data="{not json", content_type="application/json")
    assert resp.status_code == 400
    assert resp.get_json() == {"status": "error", "message": "Missing parameters"}


@pytest.mark.parametrize("payload", [["777", "GOLD-EA-V1"], "777", 42])
def test_verify_license_non_object_body(app_factory, payload):
    resp = app_factory().test_client().post("/api/verify-license", json=payload)
    assert resp.status_code == 400
    assert resp.get_json() == {"status": "error", "message": "Missing parameters"}


def test_verify_license_expired(repos, app_factory):
    product = repos.products.add()
    repos.licenses.add(product_id=product.product_id, expiry_date=now_utc() - timedelta(days=1))
    client = app_factory().test_client()
    resp = client.post("/api/verify-license", json={"account_number": "12345", "product_id": product.product_id})
    assert resp.status_code == 200
    assert resp.get_json()["status"] == "expired"


def test_broker_api_requires_admin_session(app_factory, customer, login):
    client = app_factory().test_client()
    resp = client.post("/api/admin/brokers", json={"name": "Exness"})
    assert resp.status_code == 401
    assert resp.get_json() == {"error": "Unauthorized"}

    login(client, customer)
    resp = client.post("/api/admin/brokers", json={"name": "Exness"})
    assert resp.status_code == 403
    assert resp.get_json() == {"error": "Forbidden"}


def test_broker_api_crud(repos, app_factory, admin, login):
    client = app_factory().test_client()
    login(client, admin)

    resp = client.post("/api/admin/brokers", json={"name": "Exness", "ibLink": "https://exness.example.com/ib"})
    assert resp.status_code == 201
    broker = resp.get_json()["broker"]
    assert broker["name"] == "Exness"
    assert broker["owner_id"] == admin.profile_id

    assert client.post("/api/admin/brokers", json={"name": " "}).status_code == 400

    resp = client.patch(f"/api/admin/brokers/{broker['id']}", json={})
    assert resp.status_code == 400
    assert resp.get_json() == {"error": "No fields to update"}

    resp = client.patch(f"/api/admin/brokers/{broker['id']}", json={"isActive": False})
    assert resp.status_code == 200
    assert resp.get_json()["broker"]["is_active"] is False

    assert client.patch("/api/admin/brokers/missing", json={"name": "X"}).status_code == 404

    resp = client.delete(f"/api/admin/brokers/{broker['id']}")
    assert resp.get_json() == {"success": True}
    assert repos.brokers.items == {}


def test_ib_status_api(repos, app_factory, admin, customer, login):
    client = app_factory().test_client()
    login(client, admin)
    url = f"/api/admin/ib-requests/{customer.profile_id}"

    resp = client.patch(url, json={"action": "approve"})
    assert resp.status_code == 400
    assert resp.get_json() == {"error": "Expiry date is required for approval"}

    assert client.patch(url, json={"action": "ban"}).status_code == 400

    resp = client.patch(url, json={"action": "approve", "expiryDate": "2026-12-31"})
    assert resp.status_code == 200
    assert resp.get_json() == {"success": True, "status": "approved"}
    assert repos.profiles.get_by_id(customer.profile_id).ib_status == IbStatus.APPROVED

    assert client.patch("/api/admin/ib-requests/missing", json={"action": "reject"}).status_code == 404


def test_admin_apis_answer_json_for_non_object_bodies(repos, app_factory, admin, customer, login):
    broker = repos.brokers.add(name="Exness")
    client = app_factory().test_client()
    login(client, admin)

    resp = client.post("/api/admin/brokers", json=["Exness"])
    assert resp.status_code == 400
    assert resp.get_json() == {"error": "Name is required"}

    resp = client.patch(f"/api/admin/brokers/{broker.broker_id}", json="x")
    assert resp.get_json() == {"error": "No fields to update"}

    resp = client.patch(f"/api/admin/ib-requests/{customer.profile_id}", json=[1, 2])
    assert resp.status_code == 400
    assert "error" in resp.get_json()


def test_broker_api_rejects_string_is_active(repos, app_factory, admin, login):
    broker = repos.brokers.add(name="Exness")
    client = app_factory().test_client()
    login(client, admin)

    resp = client.patch(f"/api/admin/brokers/{broker.broker_id}", json={"isActive": "false"})

    assert resp.status_code == 400
    assert resp.get_json() == {"error": "isActive must be a boolean"}
    assert repos.brokers.get_by_id(broker.broker_id).is_active is True
