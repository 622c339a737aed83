"""Leave request store: lookups, listings and aggregate reporting."""

# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date
from typing import TYPE_CHECKING, Any

from sqlalchemy import extract, func, select
from sqlmodel import col

from driver_leave.exceptions import RequestNotFoundError
from driver_leave.models.driver import Driver
from driver_leave.models.enums import LeaveStatus, LeaveType
from driver_leave.models.request import LeaveRequest
from driver_leave.schemas.request import (
    LeaveTypeBreakdown,
    MonthlyTrend,
    RequestListResponse,
    RequestResponse,
    RequestSummaryResponse,
    StatusBreakdown,
)
from driver_leave.services.audit import model_to_audit_dict

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _build_request_response(request: LeaveRequest, driver_code: str) -> RequestResponse:
    """Map a request model to its response schema."""
    return RequestResponse(
        id=request.id,
        driver_code=driver_code,
        start_date=request.start_date,
        end_date=request.end_date,
        requested_days=request.requested_days,
        leave_type=LeaveType(request.leave_type),
        reason=request.reason,
        emergency_contact=request.emergency_contact,
        emergency_phone=request.emergency_phone,
        notes=request.notes,
        status=LeaveStatus(request.status),
        submitted_at=request.submitted_at,
        decided_at=request.decided_at,
        decided_by=request.decided_by,
        decision_note=request.decision_note,
        created_at=request.created_at,
    )


def _request_audit_dict(request: LeaveRequest, driver_code: str) -> dict[str, Any]:
    data = model_to_audit_dict(request)
    data["driver_code"] = driver_code
    return data


async def _get_request_or_404(session: AsyncSession, request_id: uuid.UUID) -> LeaveRequest:
    """Fetch a request by ID with fresh column values. Raises 404 if not found."""
    result = await session.execute(
        select(LeaveRequest)
        .where(col(LeaveRequest.id) == request_id)
        .execution_options(populate_existing=True)
    )
    request = result.scalar_one_or_none()
    if request is None:
        raise RequestNotFoundError(request_id)
    return request


def _year_before(day: date) -> date:
    """Same calendar day one year earlier; Feb 29 maps to Feb 28."""
    if day.month == 2 and day.day == 29:
        return date(day.year - 1, 2, 28)
    return day.replace(year=day.year - 1)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def get_request(session: AsyncSession, request_id: uuid.UUID) -> RequestResponse:
    """Get a single request by ID."""
    result = await session.execute(
        select(LeaveRequest, Driver.external_code)
        .join(Driver, col(Driver.id) == col(LeaveRequest.driver_id))
        .where(col(LeaveRequest.id) == request_id)
    )
    row = result.one_or_none()
    if row is None:
        raise RequestNotFoundError(request_id)
    return _build_request_response(row[0], row[1])


async def list_requests(
    session: AsyncSession,
    status_filter: LeaveStatus | None = None,
    driver_code: str | None = None,
    offset: int = 0,
    limit: int = 50,
) -> RequestListResponse:
    """List requests with optional filters, most recently submitted first."""
    filters = []
    if status_filter is not None:
        filters.append(col(LeaveRequest.status) == status_filter.value)
    if driver_code is not None:
        filters.append(col(Driver.external_code) == driver_code)

    count_result = await session.execute(
        select(func.count())
        .select_from(LeaveRequest)
        .join(Driver, col(Driver.id) == col(LeaveRequest.driver_id))
        .where(*filters)
    )
    total = count_result.scalar_one()

    result = await session.execute(
        select(LeaveRequest, Driver.external_code)
        .join(Driver, col(Driver.id) == col(LeaveRequest.driver_id))
        .where(*filters)
        .order_by(col(LeaveRequest.submitted_at).desc(), col(LeaveRequest.id))
        .offset(offset)
        .limit(limit)
    )

    return RequestListResponse(
        items=[_build_request_response(request, code) for request, code in result.all()],
        total=total,
    )


async def get_request_summary(session: AsyncSession, today: date | None = None) -> RequestSummaryResponse:
    """Request analytics: by status, by leave type and by month.

    Monthly trends cover requests starting within the last twelve months,
    keyed ``YYYY-MM`` on ``start_date``.
    """
    days = col(LeaveRequest.requested_days)
    status_rows = await session.execute(
        select(
            col(LeaveRequest.status),
            func.count().label("count"),
            func.coalesce(func.sum(days), 0).label("total_days"),
        )
        .group_by(col(LeaveRequest.status))
        .order_by(col(LeaveRequest.status))
    )
    type_rows = await session.execute(
        select(
            col(LeaveRequest.leave_type),
            func.count().label("count"),
            func.coalesce(func.sum(days), 0).label("total_days"),
            func.avg(days).label("avg_days"),
        )
        .group_by(col(LeaveRequest.leave_type))
        .order_by(col(LeaveRequest.leave_type))
    )

    cutoff = _year_before(today or date.today())
    year = extract("year", col(LeaveRequest.start_date))
    month = extract("month", col(LeaveRequest.start_date))
    month_rows = await session.execute(
        select(
            year.label("year"),
            month.label("month"),
            func.count().label("requests"),
            func.coalesce(func.sum(days), 0).label("total_days"),
        )
        .where(col(LeaveRequest.start_date) >= cutoff)
        .group_by(year, month)
        .order_by(year, month)
    )

    return RequestSummaryResponse(
        by_status=[
            StatusBreakdown(status=LeaveStatus(status), count=count, total_days=int(total_days))
            for status, count, total_days in status_rows.all()
        ],
        by_leave_type=[
            LeaveTypeBreakdown(
                leave_type=LeaveType(leave_type),
                count=count,
                total_days=int(total_days),
                avg_days=round(float(avg_days), 2),
            )
            for leave_type, count, total_days, avg_days in type_rows.all()
        ],
        monthly_trends=[
            MonthlyTrend(month=f"{int(y):04d}-{int(m):02d}", requests=requests, total_days=int(total_days))
            for y, m, requests, total_days in month_rows.all()
        ],
    )
