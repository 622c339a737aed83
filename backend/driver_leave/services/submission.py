# ruff: noqa: TC003
from __future__ import annotations

from datetime import UTC, date, datetime
from typing import TYPE_CHECKING

from driver_leave.exceptions import InvalidRangeError, OverlappingRequestError
from driver_leave.models.enums import EventType, LeaveStatus
from driver_leave.models.request import LeaveRequest
from driver_leave.services.events import LeaveEvent, publish_event
from driver_leave.services.ledger import _claim_driver, _lock_driver, resolve_driver
from driver_leave.services.overlap import find_overlap
from driver_leave.services.request import _build_request_response, _request_audit_dict
from driver_leave.services.transaction import run_serialized

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from driver_leave.schemas.request import RequestResponse, SubmitRequestPayload


def count_requested_days(start_date: date, end_date: date) -> int:
    """Inclusive calendar-day count; same-day leave is one day."""
    if end_date < start_date:
        raise InvalidRangeError(start_date, end_date)
    return (end_date - start_date).days + 1


async def submit_request(
    session: AsyncSession,
    payload: SubmitRequestPayload,
    actor: str | None = None,
) -> RequestResponse:
    """Submit a leave request in PENDING state.

    Flow:
    1. Resolve the driver code (404 if unknown).
    2. Validate the range and count the inclusive days.
    3. Inside the driver's critical section: reject any overlap with a pending
       or approved request, claim the driver version, insert the request.
    4. Commit, then publish REQUEST_SUBMITTED.

    The balance is not touched; days are deducted only on approval.
    """
    driver = await resolve_driver(session, payload.driver_code)
    driver_id = driver.id
    requested_days = count_requested_days(payload.start_date, payload.end_date)

    async def _submit() -> LeaveRequest:
        locked = await _lock_driver(session, driver_id)

        conflict = await find_overlap(session, locked.id, payload.start_date, payload.end_date)
        if conflict is not None:
            raise OverlappingRequestError(conflict.id)

        await _claim_driver(session, locked)

        leave_request = LeaveRequest(
            driver_id=locked.id,
            start_date=payload.start_date,
            end_date=payload.end_date,
            requested_days=requested_days,
            leave_type=payload.leave_type.value,
            reason=payload.reason,
            emergency_contact=payload.emergency_contact,
            emergency_phone=payload.emergency_phone,
            notes=payload.notes,
            status=LeaveStatus.PENDING.value,
            submitted_at=datetime.now(UTC),
        )
        session.add(leave_request)
        await session.flush()
        return leave_request

    leave_request = await run_serialized(session, _submit, label=f"submit[{payload.driver_code}]")
    await session.refresh(leave_request)

    await publish_event(
        LeaveEvent(
            event_type=EventType.REQUEST_SUBMITTED,
            entity_id=leave_request.id,
            driver_code=payload.driver_code,
            actor=actor or payload.driver_code,
            after=_request_audit_dict(leave_request, payload.driver_code),
        )
    )
    return _build_request_response(leave_request, payload.driver_code)
