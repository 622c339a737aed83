from __future__ import annotations

import enum


class LeaveStatus(enum.StrEnum):
    """State machine for leave requests."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


# Statuses that occupy calendar days and take part in overlap checks.
ACTIVE_STATUSES = (LeaveStatus.PENDING, LeaveStatus.APPROVED)


class LeaveType(enum.StrEnum):
    """Kind of leave. Every type is deducted from the annual allowance."""

    ANNUAL = "ANNUAL"
    SICK = "SICK"
    PERSONAL = "PERSONAL"
    EMERGENCY = "EMERGENCY"


class EmploymentType(enum.StrEnum):
    """Employment category used to pick a default allowance."""

    FULLTIME = "FULLTIME"
    MINIJOB = "MINIJOB"


class EventType(enum.StrEnum):
    """Domain events emitted after a committed transition."""

    REQUEST_SUBMITTED = "REQUEST_SUBMITTED"
    REQUEST_UPDATED = "REQUEST_UPDATED"
    REQUEST_APPROVED = "REQUEST_APPROVED"
    REQUEST_REJECTED = "REQUEST_REJECTED"
    REQUEST_DELETED = "REQUEST_DELETED"
    DRIVER_REGISTERED = "DRIVER_REGISTERED"


class AuditEntityType(enum.StrEnum):
    """Entity type recorded in the audit log."""

    DRIVER = "DRIVER"
    LEAVE_REQUEST = "LEAVE_REQUEST"


class AuditAction(enum.StrEnum):
    """Action recorded in the audit log."""

    CREATE = "CREATE"
    SUBMIT = "SUBMIT"
    UPDATE = "UPDATE"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    DELETE = "DELETE"
