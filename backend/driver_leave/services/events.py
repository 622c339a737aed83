"""Domain events published after a committed leave transition.

Both sinks are best-effort: a failing sink is logged and skipped, and the
already committed operation still succeeds.
"""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field

from driver_leave.models.enums import AuditAction, AuditEntityType, EventType
from driver_leave.services.audit import get_audit_sink
from driver_leave.services.notification import get_notification_sink

logger = logging.getLogger(__name__)

_AUDIT_MAPPING: dict[EventType, tuple[AuditEntityType, AuditAction]] = {
    EventType.REQUEST_SUBMITTED: (AuditEntityType.LEAVE_REQUEST, AuditAction.SUBMIT),
    EventType.REQUEST_UPDATED: (AuditEntityType.LEAVE_REQUEST, AuditAction.UPDATE),
    EventType.REQUEST_APPROVED: (AuditEntityType.LEAVE_REQUEST, AuditAction.APPROVE),
    EventType.REQUEST_REJECTED: (AuditEntityType.LEAVE_REQUEST, AuditAction.REJECT),
    EventType.REQUEST_DELETED: (AuditEntityType.LEAVE_REQUEST, AuditAction.DELETE),
    EventType.DRIVER_REGISTERED: (AuditEntityType.DRIVER, AuditAction.CREATE),
}


def _now_utc() -> datetime:
    return datetime.now(UTC)


class LeaveEvent(BaseModel):
    """A committed change to a leave request or a driver's ledger account."""

    event_type: EventType
    entity_id: uuid.UUID
    driver_code: str
    actor: str
    before: dict[str, Any] | None = None
    after: dict[str, Any] | None = None
    occurred_at: datetime = Field(default_factory=_now_utc)

    def describe(self) -> str:
        """Human-readable notification text."""
        state = self.after or self.before or {}
        days = state.get("requested_days")
        span = f"{state.get('start_date')} to {state.get('end_date')}"
        match self.event_type:
            case EventType.REQUEST_SUBMITTED:
                return f"{self.driver_code} has submitted a holiday request for {days} days from {span}"
            case EventType.REQUEST_UPDATED:
                return f"Holiday request of {self.driver_code} was changed to {days} days from {span} by {self.actor}"
            case EventType.REQUEST_APPROVED:
                return f"Holiday request of {self.driver_code} for {span} was approved by {self.actor}"
            case EventType.REQUEST_REJECTED:
                return f"Holiday request of {self.driver_code} for {span} was rejected by {self.actor}"
            case EventType.REQUEST_DELETED:
                return f"Holiday request of {self.driver_code} for {span} was deleted by {self.actor}"
            case _:
                return f"Driver {self.driver_code} was registered with {state.get('annual_allowance_days')} days"

    def notification_payload(self) -> dict[str, Any]:
        state = self.after or self.before or {}
        return {
            "entity_id": str(self.entity_id),
            "driver_code": self.driver_code,
            "actor": self.actor,
            "status": state.get("status"),
            "requested_days": state.get("requested_days"),
            "start_date": state.get("start_date"),
            "end_date": state.get("end_date"),
            "occurred_at": self.occurred_at.isoformat(),
            "message": self.describe(),
        }


async def publish_event(event: LeaveEvent) -> None:
    """Hand a committed event to the notification and audit sinks."""
    try:
        await get_notification_sink().notify(event.event_type, event.notification_payload())
    except Exception:
        logger.exception("Notification sink failed for %s on %s", event.event_type.value, event.entity_id)

    entity_type, action = _AUDIT_MAPPING[event.event_type]
    try:
        await get_audit_sink().record(
            entity_type=entity_type,
            entity_id=event.entity_id,
            action=action,
            before=event.before,
            after=event.after,
            actor=event.actor,
        )
    except Exception:
        logger.exception("Audit sink failed for %s on %s", event.event_type.value, event.entity_id)
