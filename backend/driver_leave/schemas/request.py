# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Self

from pydantic import BaseModel, Field, model_validator

from driver_leave.models.enums import LeaveStatus, LeaveType

# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class SubmitRequestPayload(BaseModel):
    """Request body for submitting a new leave request.

    The date range is checked by the submission service, not here, so an
    inverted range is reported as ``InvalidRangeError``.
    """

    driver_code: str = Field(min_length=1, max_length=64)
    start_date: date
    end_date: date
    reason: str = Field(min_length=1, max_length=2000)
    leave_type: LeaveType = LeaveType.ANNUAL
    emergency_contact: str | None = Field(default=None, max_length=255)
    emergency_phone: str | None = Field(default=None, max_length=64)
    notes: str | None = Field(default=None, max_length=2000)


class UpdateRequestPayload(BaseModel):
    """Request body for editing a pending leave request. Omitted fields are kept."""

    start_date: date | None = None
    end_date: date | None = None
    reason: str | None = Field(default=None, min_length=1, max_length=2000)
    leave_type: LeaveType | None = None
    emergency_contact: str | None = Field(default=None, max_length=255)
    emergency_phone: str | None = Field(default=None, max_length=64)
    notes: str | None = Field(default=None, max_length=2000)

    @model_validator(mode="after")
    def _require_change(self) -> Self:
        if not self.model_fields_set:
            msg = "at least one field must be provided"
            raise ValueError(msg)
        return self


class DecisionPayload(BaseModel):
    """Request body for approve/reject actions."""

    note: str | None = Field(default=None, max_length=1000)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class RequestResponse(BaseModel):
    """Response schema for a single leave request."""

    id: uuid.UUID
    driver_code: str
    start_date: date
    end_date: date
    requested_days: int
    leave_type: LeaveType
    reason: str
    emergency_contact: str | None
    emergency_phone: str | None
    notes: str | None
    status: LeaveStatus
    submitted_at: datetime
    decided_at: datetime | None
    decided_by: str | None
    decision_note: str | None
    created_at: datetime


class RequestListResponse(BaseModel):
    """Paginated list of leave requests."""

    items: list[RequestResponse]
    total: int


class StatusBreakdown(BaseModel):
    status: LeaveStatus
    count: int
    total_days: int


class LeaveTypeBreakdown(BaseModel):
    leave_type: LeaveType
    count: int
    total_days: int
    avg_days: float


class MonthlyTrend(BaseModel):
    """Requests and days per calendar month of ``start_date`` (``YYYY-MM``)."""

    month: str
    requests: int
    total_days: int


class RequestSummaryResponse(BaseModel):
    """Request counts and day totals grouped by status and by leave type."""

    by_status: list[StatusBreakdown]
    by_leave_type: list[LeaveTypeBreakdown]
    monthly_trends: list[MonthlyTrend]
