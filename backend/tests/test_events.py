from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import TYPE_CHECKING, Any

import pytest
from sqlalchemy import select

from driver_leave.models.audit import AuditLog
from driver_leave.models.driver import Driver
from driver_leave.models.enums import AuditAction, AuditEntityType, EventType, LeaveStatus
from driver_leave.schemas.request import SubmitRequestPayload
from driver_leave.services.audit import DatabaseAuditSink, set_audit_sink
from driver_leave.services.events import LeaveEvent, publish_event
from driver_leave.services.notification import set_notification_sink
from driver_leave.services.submission import submit_request

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from driver_leave.services.audit import InMemoryAuditSink
    from driver_leave.services.notification import InMemoryNotificationSink


class _BrokenNotificationSink:
    async def notify(self, event_type: EventType, payload: dict[str, Any]) -> None:
        raise ConnectionError("SMTP relay down")


class _BrokenAuditSink:
    async def record(self, **kwargs: Any) -> None:
        raise ConnectionError("audit store down")


def _event(event_type: EventType = EventType.REQUEST_APPROVED) -> LeaveEvent:
    return LeaveEvent(
        event_type=event_type,
        entity_id=uuid.uuid4(),
        driver_code="D1",
        actor="fleet-admin@example.com",
        before={"status": "PENDING", "requested_days": 5, "start_date": "2025-06-01", "end_date": "2025-06-05"},
        after={"status": "APPROVED", "requested_days": 5, "start_date": "2025-06-01", "end_date": "2025-06-05"},
    )


def test_event_description() -> None:
    assert _event().describe() == (
        "Holiday request of D1 for 2025-06-01 to 2025-06-05 was approved by fleet-admin@example.com"
    )


def test_update_event_description() -> None:
    event = _event(EventType.REQUEST_UPDATED)
    assert event.describe() == (
        "Holiday request of D1 was changed to 5 days from 2025-06-01 to 2025-06-05 by fleet-admin@example.com"
    )


def test_notification_payload() -> None:
    event = _event()
    payload = event.notification_payload()
    assert payload["entity_id"] == str(event.entity_id)
    assert payload["status"] == "APPROVED"
    assert payload["requested_days"] == 5
    assert payload["message"] == event.describe()


def test_deleted_event_uses_before_state() -> None:
    event = _event(EventType.REQUEST_DELETED).model_copy(update={"after": None})
    assert event.notification_payload()["status"] == "PENDING"
    assert "was deleted by" in event.describe()


async def test_publish_reaches_both_sinks(
    notifications: InMemoryNotificationSink,
    audit_entries: InMemoryAuditSink,
) -> None:
    event = _event()
    await publish_event(event)

    assert notifications.of_type(EventType.REQUEST_APPROVED)[0]["entity_id"] == str(event.entity_id)
    entry = audit_entries.entries[0]
    assert entry["entity_type"] == AuditEntityType.LEAVE_REQUEST
    assert entry["action"] == AuditAction.APPROVE
    assert entry["entity_id"] == event.entity_id


async def test_notification_failure_still_audits(
    audit_entries: InMemoryAuditSink,
    caplog: pytest.LogCaptureFixture,
) -> None:
    set_notification_sink(_BrokenNotificationSink())
    with caplog.at_level(logging.ERROR, logger="driver_leave.services.events"):
        await publish_event(_event())

    assert len(audit_entries.entries) == 1
    assert "Notification sink failed" in caplog.text


async def test_sink_failures_do_not_fail_submission(db_session: AsyncSession) -> None:
    db_session.add(Driver(external_code="D1", annual_allowance_days=10))
    await db_session.commit()
    set_notification_sink(_BrokenNotificationSink())
    set_audit_sink(_BrokenAuditSink())

    response = await submit_request(
        db_session,
        SubmitRequestPayload(driver_code="D1", start_date=date(2025, 6, 1), end_date=date(2025, 6, 2), reason="x"),
    )
    assert response.status == LeaveStatus.PENDING


async def test_database_audit_sink_writes_row(session_factory: async_sessionmaker[AsyncSession]) -> None:
    sink = DatabaseAuditSink(session_factory)
    entity_id = uuid.uuid4()

    await sink.record(
        entity_type=AuditEntityType.LEAVE_REQUEST,
        entity_id=entity_id,
        action=AuditAction.REJECT,
        before={"status": "APPROVED"},
        after={"status": "REJECTED"},
        actor="fleet-admin@example.com",
    )

    async with session_factory() as session:
        rows = (await session.execute(select(AuditLog))).scalars().all()
    assert len(rows) == 1
    assert rows[0].entity_id == entity_id
    assert rows[0].action == "REJECT"
    assert rows[0].before_json == {"status": "APPROVED"}
    assert rows[0].after_json == {"status": "REJECTED"}
