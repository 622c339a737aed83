"""Approval state machine for leave requests.

Transitions::

    PENDING  -> APPROVED   (deducts requested_days from the balance)
    PENDING  -> REJECTED
    PENDING  -> PENDING    (edit: new dates or details, overlap re-checked)
    APPROVED -> REJECTED   (reversal: gives the days back)
    PENDING | APPROVED -> deleted (reversal first when APPROVED)

A decided request never returns to PENDING. This module is the only writer
of ``LeaveRequest.status`` and of ``Driver.used_days``; every transition runs
its checks and both writes inside one ``run_serialized`` unit keyed on the
driver, so concurrent decisions for a driver behave as if applied one at a
time.
"""

# ruff: noqa: TC003
from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, update
from sqlalchemy.orm.attributes import set_committed_value
from sqlmodel import col

from driver_leave.exceptions import (
    InsufficientBalanceError,
    InvalidTransitionError,
    OverlappingRequestError,
)
from driver_leave.models.enums import EventType, LeaveStatus
from driver_leave.models.request import LeaveRequest
from driver_leave.services.events import LeaveEvent, publish_event
from driver_leave.services.ledger import _adjust_used, _claim_driver, _lock_driver
from driver_leave.services.overlap import find_overlap
from driver_leave.services.request import (
    _build_request_response,
    _get_request_or_404,
    _request_audit_dict,
)
from driver_leave.services.submission import count_requested_days
from driver_leave.services.transaction import ConcurrentUpdateError, run_serialized

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from driver_leave.models.driver import Driver
    from driver_leave.schemas.request import DecisionPayload, RequestResponse, UpdateRequestPayload


# Optional details that an edit may set back to null.
_CLEARABLE_FIELDS = {"emergency_contact", "emergency_phone", "notes"}


@dataclass
class _Outcome:
    """What a committed transition changed, captured before the commit."""

    request: LeaveRequest
    driver_code: str
    before: dict[str, Any]
    after: dict[str, Any] | None


# ---------------------------------------------------------------------------
# Store primitives
# ---------------------------------------------------------------------------


async def _swap_request(session: AsyncSession, request: LeaveRequest, values: dict[str, Any]) -> None:
    """Write ``values`` to ``request`` if its status and version are unchanged."""
    result = await session.execute(
        update(LeaveRequest)
        .where(
            col(LeaveRequest.id) == request.id,
            col(LeaveRequest.status) == request.status,
            col(LeaveRequest.version) == request.version,
        )
        .values(**values, version=request.version + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:  # type: ignore[attr-defined]
        raise ConcurrentUpdateError(f"request {request.id} changed since version {request.version}")

    for key, value in values.items():
        set_committed_value(request, key, value)
    set_committed_value(request, "version", request.version + 1)


async def _swap_status(
    session: AsyncSession,
    request: LeaveRequest,
    new_status: LeaveStatus,
    decided_by: str,
    decision_note: str | None,
) -> None:
    """Move ``request`` to ``new_status`` and stamp the decision."""
    await _swap_request(
        session,
        request,
        {
            "status": new_status.value,
            "decided_by": decided_by,
            "decided_at": datetime.now(UTC),
            "decision_note": decision_note,
        },
    )


async def _remove(session: AsyncSession, request: LeaveRequest) -> None:
    """Delete ``request`` if its version is unchanged."""
    result = await session.execute(
        delete(LeaveRequest)
        .where(col(LeaveRequest.id) == request.id, col(LeaveRequest.version) == request.version)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:  # type: ignore[attr-defined]
        raise ConcurrentUpdateError(f"request {request.id} changed since version {request.version}")
    session.expunge(request)


async def _enter(session: AsyncSession, request_id: uuid.UUID) -> tuple[LeaveRequest, Driver]:
    """Load the request, then lock its driver and reload the request under that lock."""
    request = await _get_request_or_404(session, request_id)
    driver = await _lock_driver(session, request.driver_id)
    request = await _get_request_or_404(session, request_id)
    return request, driver


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def approve_request(
    session: AsyncSession,
    approver: str,
    request_id: uuid.UUID,
    payload: DecisionPayload | None = None,
) -> RequestResponse:
    """Approve a pending request and deduct its days from the driver's balance.

    1. Load the request (404) and require PENDING.
    2. Lock the driver and re-check overlap, excluding this request.
    3. Check remaining >= requested_days.
    4. used_days += requested_days and status -> APPROVED, committed together.
    5. Publish REQUEST_APPROVED.
    """
    note = payload.note if payload else None

    async def _approve() -> _Outcome:
        request, driver = await _enter(session, request_id)
        if request.status != LeaveStatus.PENDING.value:
            raise InvalidTransitionError(request.status, LeaveStatus.APPROVED.value)

        conflict = await find_overlap(
            session, driver.id, request.start_date, request.end_date, exclude_request_id=request.id
        )
        if conflict is not None:
            raise OverlappingRequestError(conflict.id)

        remaining = driver.annual_allowance_days - driver.used_days
        if remaining < request.requested_days:
            raise InsufficientBalanceError(remaining, request.requested_days)

        before = _request_audit_dict(request, driver.external_code)
        await _adjust_used(session, driver, request.requested_days)
        await _swap_status(session, request, LeaveStatus.APPROVED, approver, note)
        return _Outcome(request, driver.external_code, before, _request_audit_dict(request, driver.external_code))

    outcome = await run_serialized(session, _approve, label=f"approve[{request_id}]")
    await session.refresh(outcome.request)
    await _publish(EventType.REQUEST_APPROVED, outcome, approver)
    return _build_request_response(outcome.request, outcome.driver_code)


async def reject_request(
    session: AsyncSession,
    approver: str,
    request_id: uuid.UUID,
    payload: DecisionPayload | None = None,
) -> RequestResponse:
    """Reject a pending request, or reverse an approved one.

    Rejecting an APPROVED request gives its days back (floored at zero) in the
    same commit as the status change. Rejecting a REJECTED request is an
    invalid transition and leaves the ledger untouched.
    """
    note = payload.note if payload else None

    async def _reject() -> _Outcome:
        request, driver = await _enter(session, request_id)
        if request.status == LeaveStatus.REJECTED.value:
            raise InvalidTransitionError(request.status, LeaveStatus.REJECTED.value)

        before = _request_audit_dict(request, driver.external_code)
        if request.status == LeaveStatus.APPROVED.value:
            await _adjust_used(session, driver, -request.requested_days)
        else:
            await _claim_driver(session, driver)
        await _swap_status(session, request, LeaveStatus.REJECTED, approver, note)
        return _Outcome(request, driver.external_code, before, _request_audit_dict(request, driver.external_code))

    outcome = await run_serialized(session, _reject, label=f"reject[{request_id}]")
    await session.refresh(outcome.request)
    await _publish(EventType.REQUEST_REJECTED, outcome, approver)
    return _build_request_response(outcome.request, outcome.driver_code)


async def update_request(
    session: AsyncSession,
    actor: str,
    request_id: uuid.UUID,
    payload: UpdateRequestPayload,
) -> RequestResponse:
    """Edit a pending request's dates or details.

    1. Load the request (404) and require PENDING.
    2. Merge the given fields and recount the inclusive days.
    3. Lock the driver and re-check overlap, excluding this request.
    4. Write the new values with compare-and-swap and commit.
    5. Publish REQUEST_UPDATED.

    The balance is untouched; a pending request has not been deducted yet.
    """
    changes = {
        key: value
        for key, value in payload.model_dump(exclude_unset=True).items()
        if value is not None or key in _CLEARABLE_FIELDS
    }
    if "leave_type" in changes:
        changes["leave_type"] = changes["leave_type"].value

    async def _update() -> _Outcome:
        request, driver = await _enter(session, request_id)
        if request.status != LeaveStatus.PENDING.value:
            raise InvalidTransitionError(request.status, LeaveStatus.PENDING.value)

        start_date = changes.get("start_date", request.start_date)
        end_date = changes.get("end_date", request.end_date)
        requested_days = count_requested_days(start_date, end_date)

        conflict = await find_overlap(session, driver.id, start_date, end_date, exclude_request_id=request.id)
        if conflict is not None:
            raise OverlappingRequestError(conflict.id)

        before = _request_audit_dict(request, driver.external_code)
        await _claim_driver(session, driver)
        await _swap_request(session, request, {**changes, "requested_days": requested_days})
        return _Outcome(request, driver.external_code, before, _request_audit_dict(request, driver.external_code))

    outcome = await run_serialized(session, _update, label=f"update[{request_id}]")
    await session.refresh(outcome.request)
    await _publish(EventType.REQUEST_UPDATED, outcome, actor)
    return _build_request_response(outcome.request, outcome.driver_code)


async def delete_request(
    session: AsyncSession,
    actor: str,
    request_id: uuid.UUID,
) -> None:
    """Delete a request, giving back its days first if it was approved."""

    async def _delete() -> _Outcome:
        request, driver = await _enter(session, request_id)
        before = _request_audit_dict(request, driver.external_code)
        if request.status == LeaveStatus.APPROVED.value:
            await _adjust_used(session, driver, -request.requested_days)
        else:
            await _claim_driver(session, driver)
        await _remove(session, request)
        return _Outcome(request, driver.external_code, before, None)

    outcome = await run_serialized(session, _delete, label=f"delete[{request_id}]")
    await _publish(EventType.REQUEST_DELETED, outcome, actor)


async def _publish(event_type: EventType, outcome: _Outcome, actor: str) -> None:
    await publish_event(
        LeaveEvent(
            event_type=event_type,
            entity_id=outcome.request.id,
            driver_code=outcome.driver_code,
            actor=actor,
            before=outcome.before,
            after=outcome.after,
        )
    )
