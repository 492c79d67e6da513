from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import MembershipStatus
from .model import IbMembership


class IbMembershipRepository(Protocol):
    def get_by_id(self, membership_id: str) -> Optional[IbMembership]:
        raise NotImplementedError

    def list_for_user(self, user_id: str) -> Sequence[IbMembership]:
        raise NotImplementedError

    def exists_for_other_user(self, *, broker_id: str, verification_data: str, user_id: str) -> bool:
        """Pending/approved membership with this verification data held by someone else."""
        raise NotImplementedError

    def create(self, *, user_id: str, broker_id: str, verification_data: str) -> str:
        raise NotImplementedError

    def decide(self, *, membership_id: str, status: MembershipStatus) -> bool:
        raise NotImplementedError

    def list_pending_rows(self) -> Sequence[dict]:
        raise NotImplementedError
