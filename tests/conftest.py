from __future__ import annotations

import uuid
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from types import SimpleNamespace

import pytest

from ea_market.accounts.model import Profile
from ea_market.brokers.model import Broker
from ea_market.catalog.model import Product
from ea_market.container import wire_services
from ea_market.core.enums import MembershipStatus, OrderStatus, PlanType, Role
from ea_market.ib.model import IbMembership
from ea_market.licenses.model import License
from ea_market.orders.model import Order
from ea_market.payments.model import PaymentSettings

FIXED_NOW = datetime(2026, 3, 15, 12, 0, 0)


def _new_id() -> str:
    return str(uuid.uuid4())


class FakeProfilesRepo:
    def __init__(self):
        self.items: dict[str, Profile] = {}

    def add(self, *, email, role=Role.CUSTOMER, full_name=None, referred_by=None, referral_code=None, **extra):
        pid = _new_id()
        self.items[pid] = Profile(
            profile_id=pid,
            email=email,
            password_hash="x",
            full_name=full_name,
            role=role,
            referral_code=referral_code,
            referred_by=referred_by,
            **extra,
        )
        return self.items[pid]

    def get_by_id(self, profile_id):
        return self.items.get(profile_id)

    def get_by_email(self, email):
        return next((p for p in self.items.values() if p.email == email), None)

    def get_by_referral_code(self, referral_code):
        return next((p for p in self.items.values() if p.referral_code == referral_code), None)

    def create(self, *, email, password_hash, full_name, role, referral_code, referred_by):
        pid = _new_id()
        self.items[pid] = Profile(
            profile_id=pid,
            email=email,
            password_hash=password_hash,
            full_name=full_name,
            role=role,
            referral_code=referral_code,
            referred_by=referred_by,
        )
        return pid

    def _update(self, profile_id, **changes):
        if profile_id not in self.items:
            return False
        self.items[profile_id] = replace(self.items[profile_id], **changes)
        return True

    def update_full_name(self, profile_id, full_name):
        return self._update(profile_id, full_name=full_name)

    def update_password_hash(self, profile_id, password_hash):
        return self._update(profile_id, password_hash=password_hash)

    def list_all(self):
        return list(self.items.values())

    def list_customer_stats(self):
        return []

    def update_commission_rate(self, profile_id, rate):
        return self._update(profile_id, commission_rate=rate)

    def add_commission(self, profile_id, amount):
        p = self.items.get(profile_id)
        if not p:
            return False
        return self._update(profile_id, accumulated_commission=p.accumulated_commission + amount)

    def update_ib_status(self, profile_id, *, status, expiry_date):
        return self._update(profile_id, ib_status=status, ib_expiry_date=expiry_date)


class FakeProductsRepo:
    def __init__(self):
        self.items: dict[str, Product] = {}

    def add(self, *, name="Gold EA", product_key=None, monthly="30", quarterly="80", lifetime="300", **extra):
        data = {
            "name": name,
            "product_key": product_key,
            "description": None,
            "price_monthly": Decimal(monthly),
            "price_quarterly": Decimal(quarterly) if quarterly is not None else None,
            "price_lifetime": Decimal(lifetime),
        }
        data.update(extra)
        return self.items[self.create(data=data)]

    def get_by_id(self, product_id):
        return self.items.get(product_id)

    def get_by_key(self, product_key):
        return next((p for p in self.items.values() if p.product_key == product_key), None)

    def list_all(self, *, active_only=False):
        return [p for p in self.items.values() if p.is_active or not active_only]

    def create(self, *, data):
        pid = _new_id()
        self.items[pid] = Product(product_id=pid, **data)
        return pid

    def update(self, *, product_id, data):
        if product_id not in self.items:
            return False
        self.items[product_id] = replace(self.items[product_id], **data)
        return True

    def delete_by_id(self, product_id):
        return self.items.pop(product_id, None) is not None


class FakeOrdersRepo:
    def __init__(self):
        self.items: dict[str, Order] = {}
        self.admin_rows: list[dict] = []
        self.user_rows: list[dict] = []

    def add(self, *, user_id, product_id, amount="30", plan_type=PlanType.MONTHLY, account_number="12345",
            status=OrderStatus.PENDING):
        oid = _new_id()
        self.items[oid] = Order(
            order_id=oid,
            user_id=user_id,
            product_id=product_id,
            amount=Decimal(amount),
            plan_type=plan_type,
            account_number=account_number,
            slip_url="https://files.example.com/slip.png",
            status=status,
            created_at=FIXED_NOW,
        )
        return self.items[oid]

    def get_by_id(self, order_id):
        return self.items.get(order_id)

    def create(self, *, user_id, product_id, amount, plan_type, account_number, slip_url):
        oid = _new_id()
        self.items[oid] = Order(
            order_id=oid,
            user_id=user_id,
            product_id=product_id,
            amount=amount,
            plan_type=plan_type,
            account_number=account_number,
            slip_url=slip_url,
            status=OrderStatus.PENDING,
            created_at=FIXED_NOW,
        )
        return oid

    def decide(self, *, order_id, status):
        order = self.items.get(order_id)
        if not order or order.status != OrderStatus.PENDING:
            return False
        self.items[order_id] = replace(order, status=status)
        return True

    def revert_to_pending(self, order_id):
        order = self.items.get(order_id)
        if not order:
            return False
        self.items[order_id] = replace(order, status=OrderStatus.PENDING)
        return True

    def list_for_user(self, user_id):
        return [r for r in self.user_rows if r.get("user_id", user_id) == user_id]

    def list_admin_rows(self):
        return list(self.admin_rows)


class FakeLicensesRepo:
    def __init__(self):
        self.items: dict[str, License] = {}
        self.admin_rows: list[dict] = []
        self.user_rows: list[dict] = []
        self.fail_deactivate = False

    def add(self, *, user_id="u1", product_id, account_number="12345", plan_type=PlanType.MONTHLY,
            is_active=True, expiry_date=None):
        lid = _new_id()
        self.items[lid] = License(
            license_id=lid,
            user_id=user_id,
            product_id=product_id,
            account_number=account_number,
            plan_type=plan_type,
            is_active=is_active,
            expiry_date=expiry_date,
            created_at=FIXED_NOW,
        )
        return self.items[lid]

    def get_by_id(self, license_id):
        return self.items.get(license_id)

    def list_active_matches(self, *, account_number, product_id):
        return [
            lic
            for lic in self.items.values()
            if lic.is_active and lic.product_id == product_id and lic.account_number.strip() == account_number
        ]

    def find_for_account(self, *, user_id, product_id, account_number):
        return next(
            (
                lic
                for lic in self.items.values()
                if lic.user_id == user_id
                and lic.product_id == product_id
                and lic.account_number.strip() == account_number.strip()
            ),
            None,
        )

    def create(self, *, user_id, product_id, account_number, plan_type, expiry_date):
        return self.add(
            user_id=user_id,
            product_id=product_id,
            account_number=account_number,
            plan_type=plan_type,
            expiry_date=expiry_date,
        ).license_id

    def renew(self, *, license_id, plan_type, expiry_date):
        lic = self.items[license_id]
        self.items[license_id] = replace(lic, plan_type=plan_type, expiry_date=expiry_date, is_active=True)
        return True

    def deactivate_for_account(self, *, user_id, product_id, account_number):
        if self.fail_deactivate:
            raise RuntimeError("connection lost")
        count = 0
        for lid, lic in list(self.items.items()):
            if lic.user_id == user_id and lic.product_id == product_id and lic.account_number == account_number:
                self.items[lid] = replace(lic, is_active=False)
                count += 1
        return count

    def admin_update(self, *, license_id, is_active, expiry_date):
        if license_id not in self.items:
            return False
        self.items[license_id] = replace(self.items[license_id], is_active=is_active, expiry_date=expiry_date)
        return True

    def update_account_number(self, *, license_id, account_number):
        if license_id not in self.items:
            return False
        self.items[license_id] = replace(self.items[license_id], account_number=account_number)
        return True

    def list_for_user(self, user_id):
        return [r for r in self.user_rows if r.get("user_id", user_id) == user_id]

    def list_admin_rows(self):
        return list(self.admin_rows)


class FakeBrokersRepo:
    def __init__(self):
        self.items: dict[str, Broker] = {}

    def add(self, *, name="Exness", owner_id=None, is_active=True):
        bid = _new_id()
        self.items[bid] = Broker(broker_id=bid, name=name, ib_link=None, is_active=is_active, owner_id=owner_id)
        return self.items[bid]

    def get_by_id(self, broker_id):
        return self.items.get(broker_id)

    def list_all(self):
        return list(self.items.values())

    def list_active(self, *, owner_id=None):
        return [
            b for b in self.items.values() if b.is_active and (owner_id is None or b.owner_id == owner_id)
        ]

    def create(self, *, name, ib_link, owner_id):
        bid = _new_id()
        self.items[bid] = Broker(broker_id=bid, name=name, ib_link=ib_link, is_active=True, owner_id=owner_id)
        return bid

    def update(self, *, broker_id, changes):
        if broker_id not in self.items:
            return False
        self.items[broker_id] = replace(self.items[broker_id], **changes)
        return True

    def delete_by_id(self, broker_id):
        return self.items.pop(broker_id, None) is not None


class FakeMembershipsRepo:
    def __init__(self):
        self.items: dict[str, IbMembership] = {}

    def add(self, *, user_id, broker_id, verification_data="IB-1", status=MembershipStatus.PENDING):
        mid = _new_id()
        self.items[mid] = IbMembership(
            membership_id=mid,
            user_id=user_id,
            broker_id=broker_id,
            verification_data=verification_data,
            status=status,
            created_at=FIXED_NOW,
        )
        return self.items[mid]

    def get_by_id(self, membership_id):
        return self.items.get(membership_id)

    def list_for_user(self, user_id):
        return [m for m in self.items.values() if m.user_id == user_id]

    def exists_for_other_user(self, *, broker_id, verification_data, user_id):
        return any(
            m.broker_id == broker_id
            and m.verification_data == verification_data
            and m.user_id != user_id
            and m.status in (MembershipStatus.PENDING, MembershipStatus.APPROVED)
            for m in self.items.values()
        )

    def create(self, *, user_id, broker_id, verification_data):
        return self.add(user_id=user_id, broker_id=broker_id, verification_data=verification_data).membership_id

    def decide(self, *, membership_id, status):
        m = self.items.get(membership_id)
        if not m or m.status != MembershipStatus.PENDING:
            return False
        self.items[membership_id] = replace(m, status=status)
        return True

    def list_pending_rows(self):
        return [
            {
                "membership_id": m.membership_id,
                "user_id": m.user_id,
                "broker_id": m.broker_id,
                "verification_data": m.verification_data,
                "status": m.status.value,
                "created_at": m.created_at,
                "customer_name": None,
                "customer_email": None,
                "broker_name": None,
            }
            for m in self.items.values()
            if m.status == MembershipStatus.PENDING
        ]


class FakePaymentSettingsRepo:
    def __init__(self):
        self.settings = None

    def get(self):
        return self.settings

    def upsert(self, *, bank_name, account_name, account_number, qr_image_url):
        self.settings = PaymentSettings(
            settings_id="ps-1",
            bank_name=bank_name,
            account_name=account_name,
            account_number=account_number,
            qr_image_url=qr_image_url,
        )
        return "ps-1"


@pytest.fixture
def repos():
    return SimpleNamespace(
        profiles=FakeProfilesRepo(),
        products=FakeProductsRepo(),
        orders=FakeOrdersRepo(),
        licenses=FakeLicensesRepo(),
        brokers=FakeBrokersRepo(),
        memberships=FakeMembershipsRepo(),
        payment_settings=FakePaymentSettingsRepo(),
    )


@pytest.fixture
def make_container(repos):
    def _make(**settings):
        return wire_services(
            conn=None,
            profiles_repo=repos.profiles,
            products_repo=repos.products,
            orders_repo=repos.orders,
            licenses_repo=repos.licenses,
            brokers_repo=repos.brokers,
            memberships_repo=repos.memberships,
            payment_settings_repo=repos.payment_settings,
            **settings,
        )

    return _make


@pytest.fixture
def app_factory(monkeypatch, make_container):
    from ea_market.main import create_app

    monkeypatch.setenv("APP_ENV", "testing")

    def _app(**settings):
        app = create_app(make_container(**settings))
        return app

    return _app


def login_as(client, profile):
    with client.session_transaction() as sess:
        sess["user_id"] = profile.profile_id
        sess["email"] = profile.email
        sess["name"] = profile.display_name
        sess["role"] = profile.role.value


@pytest.fixture
def login():
    return login_as
