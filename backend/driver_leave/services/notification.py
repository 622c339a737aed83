from __future__ import annotations

import logging
from typing import Any, Protocol, runtime_checkable

from driver_leave.models.enums import EventType

logger = logging.getLogger(__name__)


@runtime_checkable
class NotificationSink(Protocol):
    """Interface for the notification delivery service.

    Delivery is best-effort; the leave workflow never waits on or retries it.
    """

    async def notify(self, event_type: EventType, payload: dict[str, Any]) -> None:
        """Deliver a notification for a committed leave event."""
        ...


class LoggingNotificationSink:
    """Default sink that writes notifications to the application log."""

    async def notify(self, event_type: EventType, payload: dict[str, Any]) -> None:
        logger.info("Notification %s: %s", event_type.value, payload.get("message", payload))


class InMemoryNotificationSink:
    """In-memory sink that keeps every notification, for tests and local runs."""

    def __init__(self) -> None:
        self.sent: list[tuple[EventType, dict[str, Any]]] = []

    async def notify(self, event_type: EventType, payload: dict[str, Any]) -> None:
        self.sent.append((event_type, payload))

    def of_type(self, event_type: EventType) -> list[dict[str, Any]]:
        return [payload for sent_type, payload in self.sent if sent_type == event_type]


_notification_sink: NotificationSink = LoggingNotificationSink()


def get_notification_sink() -> NotificationSink:
    """Return the active notification sink."""
    return _notification_sink


def set_notification_sink(sink: NotificationSink) -> None:
    """Override the sink (for testing or production wiring)."""
    global _notification_sink
    _notification_sink = sink
