from __future__ import annotations

from typing import Protocol, runtime_checkable

from driver_leave.config import get_settings
from driver_leave.models.enums import EmploymentType


@runtime_checkable
class AllowancePolicy(Protocol):
    """Interface for the policy that supplies default annual allowances."""

    def default_allowance_days(self, employment_type: EmploymentType) -> int:
        """Return the annual allowance for a newly registered driver."""
        ...


class SettingsAllowancePolicy:
    """Allowance policy backed by application settings."""

    def default_allowance_days(self, employment_type: EmploymentType) -> int:
        settings = get_settings()
        if employment_type == EmploymentType.MINIJOB:
            return settings.minijob_allowance_days
        return settings.fulltime_allowance_days


class FixedAllowancePolicy:
    """Allowance policy with an explicit table, for tests and imports."""

    def __init__(self, allowances: dict[EmploymentType, int]) -> None:
        self._allowances = dict(allowances)

    def default_allowance_days(self, employment_type: EmploymentType) -> int:
        return self._allowances.get(employment_type, 0)


_allowance_policy: AllowancePolicy = SettingsAllowancePolicy()


def get_allowance_policy() -> AllowancePolicy:
    """Return the active allowance policy."""
    return _allowance_policy


def set_allowance_policy(policy: AllowancePolicy) -> None:
    """Override the policy (for testing or production wiring)."""
    global _allowance_policy
    _allowance_policy = policy
