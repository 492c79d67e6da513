from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class Broker:
    """Partner broker a customer can open an IB account with."""

    broker_id: str
    name: str
    ib_link: Optional[str]
    is_active: bool
    owner_id: Optional[str] = None
    created_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.broker_id,
            "name": self.name,
            "ib_link": self.ib_link,
            "is_active": self.is_active,
            "owner_id": self.owner_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
