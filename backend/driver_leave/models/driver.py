from __future__ import annotations

import sqlalchemy as sa
from sqlmodel import Field

from driver_leave.models.base import TimestampMixin, UUIDBase, VersionedMixin
from driver_leave.models.enums import EmploymentType


class Driver(UUIDBase, TimestampMixin, VersionedMixin, table=True):
    """A driver's leave ledger account: annual allowance and days already used.

    ``used_days`` is written only through the approval workflow. ``version`` is
    bumped by every write inside the driver's critical section, including
    submissions, so all of a driver's ledger operations serialize on it.
    """

    __tablename__ = "driver"
    __table_args__ = (
        sa.CheckConstraint("annual_allowance_days >= 0", name="ck_driver_allowance_non_negative"),
        sa.CheckConstraint("used_days >= 0", name="ck_driver_used_non_negative"),
        sa.CheckConstraint("used_days <= annual_allowance_days", name="ck_driver_used_within_allowance"),
    )

    external_code: str = Field(max_length=64, unique=True, index=True)
    name: str | None = Field(default=None, max_length=255)
    employment_type: str = Field(
        default=EmploymentType.FULLTIME, max_length=50, sa_column_kwargs={"server_default": "FULLTIME"}
    )
    annual_allowance_days: int
    used_days: int = Field(default=0, sa_column_kwargs={"server_default": "0"})
