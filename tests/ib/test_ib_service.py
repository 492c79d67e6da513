from __future__ import annotations

from datetime import datetime

import pytest

from ea_market.core.enums import IbStatus, MembershipStatus, Role
from ea_market.core.exceptions import NotFoundError, ValidationError
from ea_market.ib.service import IbService


def _service(repos):
    return IbService(repos.memberships, repos.brokers, repos.profiles, root_admin_emails=["Root@Example.com"])


def test_guest_sees_every_active_broker(repos):
    repos.brokers.add(name="Exness")
    repos.brokers.add(name="XM", is_active=False)
    banner = _service(repos).banner_state(None)
    assert banner.visible is True
    assert [b.name for b in banner.available_brokers] == ["Exness"]


def test_brokers_follow_root_admin_of_referral_chain(repos):
    root = repos.profiles.add(email="root@example.com", role=Role.ADMIN)
    mid = repos.profiles.add(email="mid@example.com", referred_by=root.profile_id)
    user = repos.profiles.add(email="user@example.com", referred_by=mid.profile_id)
    repos.brokers.add(name="Root broker", owner_id=root.profile_id)
    repos.brokers.add(name="Other broker", owner_id="someone-else")

    svc = _service(repos)
    assert svc.find_root_admin_id(user.profile_id) == root.profile_id
    assert [b.name for b in svc.offered_brokers(user.profile_id)] == ["Root broker"]


def test_without_root_admin_all_active_brokers_are_offered(repos):
    user = repos.profiles.add(email="user@example.com")
    repos.brokers.add(name="A", owner_id="x")
    repos.brokers.add(name="B", owner_id="y")
    assert len(_service(repos).offered_brokers(user.profile_id)) == 2


def test_banner_hidden_once_approved(repos):
    user = repos.profiles.add(email="user@example.com")
    broker = repos.brokers.add()
    repos.memberships.add(user_id=user.profile_id, broker_id=broker.broker_id, status=MembershipStatus.APPROVED)
    assert _service(repos).banner_state(user.profile_id).visible is False


def test_banner_excludes_brokers_already_applied(repos):
    user = repos.profiles.add(email="user@example.com")
    applied = repos.brokers.add(name="Exness")
    repos.brokers.add(name="XM")
    repos.memberships.add(user_id=user.profile_id, broker_id=applied.broker_id)

    banner = _service(repos).banner_state(user.profile_id)
    assert banner.has_pending is True
    assert [b.name for b in banner.available_brokers] == ["XM"]


def test_apply_validations(repos):
    user = repos.profiles.add(email="user@example.com")
    other = repos.profiles.add(email="other@example.com")
    broker = repos.brokers.add()
    svc = _service(repos)

    with pytest.raises(ValidationError):
        svc.apply(user_id=user.profile_id, broker_id=broker.broker_id, verification_data=" ")
    with pytest.raises(ValidationError):
        svc.apply(user_id=user.profile_id, broker_id="unknown", verification_data="IB-1")

    repos.memberships.add(user_id=other.profile_id, broker_id=broker.broker_id, verification_data="IB-1")
    with pytest.raises(ValidationError, match="another user"):
        svc.apply(user_id=user.profile_id, broker_id=broker.broker_id, verification_data="IB-1")

    mid = svc.apply(user_id=user.profile_id, broker_id=broker.broker_id, verification_data="IB-2")
    assert repos.memberships.get_by_id(mid).status == MembershipStatus.PENDING
    with pytest.raises(ValidationError, match="already applied"):
        svc.apply(user_id=user.profile_id, broker_id=broker.broker_id, verification_data="IB-3")


def test_decide_only_pending(repos):
    broker = repos.brokers.add()
    m = repos.memberships.add(user_id="u1", broker_id=broker.broker_id)
    svc = _service(repos)

    svc.approve(m.membership_id)
    assert repos.memberships.get_by_id(m.membership_id).status == MembershipStatus.APPROVED
    with pytest.raises(ValidationError):
        svc.reject(m.membership_id)
    with pytest.raises(NotFoundError):
        svc.approve("missing")


def test_set_profile_status(repos):
    user = repos.profiles.add(email="user@example.com")
    svc = _service(repos)

    with pytest.raises(ValidationError, match="Invalid action"):
        svc.set_profile_status(profile_id=user.profile_id, action="maybe")
    with pytest.raises(ValidationError, match="Expiry date is required"):
        svc.set_profile_status(profile_id=user.profile_id, action="approve")

    status = svc.set_profile_status(profile_id=user.profile_id, action="approve", expiry_date="2026-12-31T00:00:00Z")
    assert status == IbStatus.APPROVED
    assert repos.profiles.get_by_id(user.profile_id).ib_expiry_date == datetime(2026, 12, 31)

    assert svc.set_profile_status(profile_id=user.profile_id, action="reject") == IbStatus.REJECTED
    with pytest.raises(NotFoundError):
        svc.set_profile_status(profile_id="missing", action="reject")
