from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

ADMIN_DATA_UPDATE = "adminDataUpdate"

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DataChangeEvent:
    type: str
    action: str
    data: Any = None
    timestamp: str = field(default_factory=lambda: datetime.now(UTC).isoformat())

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "action": self.action,
            "data": self.data,
            "timestamp": self.timestamp,
        }


Subscriber = Callable[[DataChangeEvent], None]


class DataChangeBus:
    """In-process broadcast of entity changes; delivery is synchronous and in subscription order."""

    name = ADMIN_DATA_UPDATE

    def __init__(self) -> None:
        self._subscribers: list[Subscriber] = []

    def subscribe(self, subscriber: Subscriber) -> Callable[[], None]:
        self._subscribers.append(subscriber)

        def unsubscribe() -> None:
            if subscriber in self._subscribers:
                self._subscribers.remove(subscriber)

        return unsubscribe

    def publish(self, event: DataChangeEvent) -> None:
        for subscriber in list(self._subscribers):
            subscriber(event)

    def notify_data_change(self, type_: str, action: str, data: Any = None) -> DataChangeEvent:
        event = DataChangeEvent(type=type_, action=action, data=data)
        logger.debug("Data change notification: %s %s", type_, action)
        self.publish(event)
        return event
