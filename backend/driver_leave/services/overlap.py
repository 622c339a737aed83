# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlmodel import col

from driver_leave.models.enums import ACTIVE_STATUSES
from driver_leave.models.request import LeaveRequest
from driver_leave.services.ledger import resolve_driver

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession


async def find_overlap(
    session: AsyncSession,
    driver_id: uuid.UUID,
    start_date: date,
    end_date: date,
    exclude_request_id: uuid.UUID | None = None,
) -> LeaveRequest | None:
    """Return the earliest pending or approved request sharing a day with the range.

    Bounds are inclusive on both sides: a request ending on the day another
    starts overlaps it.
    """
    query = select(LeaveRequest).where(
        col(LeaveRequest.driver_id) == driver_id,
        col(LeaveRequest.status).in_([s.value for s in ACTIVE_STATUSES]),
        col(LeaveRequest.start_date) <= end_date,
        col(LeaveRequest.end_date) >= start_date,
    )
    if exclude_request_id is not None:
        query = query.where(col(LeaveRequest.id) != exclude_request_id)

    result = await session.execute(query.order_by(col(LeaveRequest.start_date)).limit(1))
    return result.scalar_one_or_none()


async def has_overlap(
    session: AsyncSession,
    driver_code: str,
    start_date: date,
    end_date: date,
    exclude_request_id: uuid.UUID | None = None,
) -> bool:
    """Return True if the driver already has active leave on any day of the range."""
    driver = await resolve_driver(session, driver_code)
    conflict = await find_overlap(session, driver.id, start_date, end_date, exclude_request_id)
    return conflict is not None
