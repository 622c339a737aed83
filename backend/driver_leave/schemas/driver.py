# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import BaseModel, Field

from driver_leave.models.enums import EmploymentType, LeaveType

# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class RegisterDriverPayload(BaseModel):
    """Request body for opening a driver's leave ledger account."""

    external_code: str = Field(min_length=1, max_length=64)
    name: str | None = Field(default=None, max_length=255)
    employment_type: EmploymentType = EmploymentType.FULLTIME
    annual_allowance_days: int | None = Field(
        default=None,
        ge=0,
        le=365,
        description="Overrides the allowance policy default for the employment type",
    )


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class DriverResponse(BaseModel):
    """Response schema for a driver's ledger account."""

    id: uuid.UUID
    external_code: str
    name: str | None
    employment_type: EmploymentType
    annual_allowance_days: int
    used_days: int
    remaining_days: int
    created_at: datetime


class BalanceResponse(BaseModel):
    """Remaining vacation balance for a driver."""

    external_code: str
    allowance: int
    used: int
    remaining: int


class VacationHistoryItem(BaseModel):
    """An approved leave request counted in a vacation summary."""

    request_id: uuid.UUID
    start_date: date
    end_date: date
    requested_days: int
    leave_type: LeaveType
    decided_at: datetime | None


class VacationSummaryResponse(BaseModel):
    """A driver's allowance, usage and approved leave for one calendar year."""

    external_code: str
    name: str | None
    employment_type: EmploymentType
    year: int
    balance: BalanceResponse
    approved_days_in_year: int
    history: list[VacationHistoryItem]
