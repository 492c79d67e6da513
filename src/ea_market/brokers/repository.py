from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Broker


class BrokerRepository(Protocol):
    def get_by_id(self, broker_id: str) -> Optional[Broker]:
        raise NotImplementedError

    def list_all(self) -> Sequence[Broker]:
        raise NotImplementedError

    def list_active(self, *, owner_id: Optional[str] = None) -> Sequence[Broker]:
        raise NotImplementedError

    def create(self, *, name: str, ib_link: Optional[str], owner_id: Optional[str]) -> str:
        raise NotImplementedError

    def update(self, *, broker_id: str, changes: dict) -> bool:
        raise NotImplementedError

    def delete_by_id(self, broker_id: str) -> bool:
        raise NotImplementedError
