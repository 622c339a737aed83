from sqlmodel import SQLModel

from driver_leave.models.audit import AuditLog
from driver_leave.models.base import TimestampMixin, UUIDBase
from driver_leave.models.driver import Driver
from driver_leave.models.enums import (
    ACTIVE_STATUSES,
    AuditAction,
    AuditEntityType,
    EmploymentType,
    EventType,
    LeaveStatus,
    LeaveType,
)
from driver_leave.models.request import LeaveRequest

__all__ = [
    "ACTIVE_STATUSES",
    "AuditAction",
    "AuditEntityType",
    "AuditLog",
    "Driver",
    "EmploymentType",
    "EventType",
    "LeaveRequest",
    "LeaveStatus",
    "LeaveType",
    "SQLModel",
    "TimestampMixin",
    "UUIDBase",
]
