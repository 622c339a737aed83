# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date, datetime

import sqlalchemy as sa
from sqlmodel import Field

from driver_leave.models.base import TimestampMixin, UUIDBase, VersionedMixin
from driver_leave.models.enums import LeaveStatus, LeaveType


class LeaveRequest(UUIDBase, TimestampMixin, VersionedMixin, table=True):
    """A driver's leave request with approval workflow state."""

    __tablename__ = "leave_request"
    __table_args__ = (
        sa.Index("ix_leave_request_driver_status", "driver_id", "status"),
        sa.CheckConstraint("end_date >= start_date", name="ck_leave_request_range"),
        sa.CheckConstraint("requested_days >= 1", name="ck_leave_request_days_positive"),
    )

    driver_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("driver.id", ondelete="CASCADE"), nullable=False, index=True),
    )
    start_date: date
    end_date: date
    requested_days: int
    leave_type: str = Field(default=LeaveType.ANNUAL, max_length=50, sa_column_kwargs={"server_default": "ANNUAL"})
    reason: str
    emergency_contact: str | None = Field(default=None, max_length=255)
    emergency_phone: str | None = Field(default=None, max_length=64)
    notes: str | None = None
    status: str = Field(
        default=LeaveStatus.PENDING, max_length=50, index=True, sa_column_kwargs={"server_default": "PENDING"}
    )
    submitted_at: datetime = Field(sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    decided_at: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    decided_by: str | None = Field(default=None, max_length=255)
    decision_note: str | None = None
