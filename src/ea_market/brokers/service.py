from __future__ import annotations

import logging
from typing import Optional

from ..common.validators import require_non_empty
from ..core.exceptions import NotFoundError, ValidationError
from .model import Broker
from .repository import BrokerRepository

logger = logging.getLogger(__name__)


class BrokerService:
    """Use case: admin management of partner brokers."""

    def __init__(self, brokers: BrokerRepository):
        self._brokers = brokers

    def list_all(self) -> list[Broker]:
        return list(self._brokers.list_all())

    def get_broker(self, broker_id: str) -> Broker:
        broker = self._brokers.get_by_id(broker_id)
        if not broker:
            raise NotFoundError("Broker not found")
        return broker

    def create_broker(self, *, name: str, ib_link: Optional[str], owner_id: Optional[str]) -> Broker:
        name = require_non_empty(name, "Name")
        link = (ib_link or "").strip() or None
        broker_id = self._brokers.create(name=name, ib_link=link, owner_id=owner_id)
        logger.info("Broker created: %s (%s)", name, broker_id)
        return self.get_broker(broker_id)

    def update_broker(
        self,
        broker_id: str,
        *,
        name: Optional[str] = None,
        ib_link: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> Broker:
        """Apply only the fields that were given; at least one is required."""
        changes: dict = {}
        if name is not None:
            changes["name"] = require_non_empty(name, "Name")
        if ib_link is not None:
            changes["ib_link"] = ib_link.strip() or None
        if is_active is not None:
            if not isinstance(is_active, bool):
                raise ValidationError("isActive must be a boolean")
            changes["is_active"] = is_active
        if not changes:
            raise ValidationError("No fields to update")

        self.get_broker(broker_id)
        self._brokers.update(broker_id=broker_id, changes=changes)
        logger.info("Broker %s updated: %s", broker_id, sorted(changes))
        return self.get_broker(broker_id)

    def toggle_active(self, broker_id: str) -> Broker:
        broker = self.get_broker(broker_id)
        return self.update_broker(broker_id, is_active=not broker.is_active)

    def delete_broker(self, broker_id: str) -> None:
        if not self._brokers.delete_by_id(broker_id):
            raise NotFoundError("Broker not found")
        logger.info("Broker deleted: %s", broker_id)
