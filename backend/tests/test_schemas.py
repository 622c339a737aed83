from __future__ import annotations

from datetime import date

import pytest
from pydantic import ValidationError

from driver_leave.models.enums import EmploymentType, LeaveType
from driver_leave.schemas.auth import AuthContext
from driver_leave.schemas.driver import RegisterDriverPayload
from driver_leave.schemas.request import DecisionPayload, SubmitRequestPayload


def test_register_payload_defaults() -> None:
    payload = RegisterDriverPayload(external_code="DRV-1")
    assert payload.employment_type == EmploymentType.FULLTIME
    assert payload.annual_allowance_days is None


def test_register_payload_rejects_negative_allowance() -> None:
    with pytest.raises(ValidationError):
        RegisterDriverPayload(external_code="DRV-1", annual_allowance_days=-1)


def test_register_payload_rejects_empty_code() -> None:
    with pytest.raises(ValidationError):
        RegisterDriverPayload(external_code="")


def test_submit_payload_parses_dates() -> None:
    payload = SubmitRequestPayload.model_validate(
        {"driver_code": "D1", "start_date": "2025-06-01", "end_date": "2025-06-05", "reason": "Trip"}
    )
    assert payload.start_date == date(2025, 6, 1)
    assert payload.leave_type == LeaveType.ANNUAL


def test_submit_payload_accepts_inverted_range() -> None:
    """Range order is a business rule checked by the submission service."""
    payload = SubmitRequestPayload(
        driver_code="D1", start_date=date(2025, 6, 5), end_date=date(2025, 6, 1), reason="Trip"
    )
    assert payload.end_date < payload.start_date


def test_submit_payload_requires_reason() -> None:
    with pytest.raises(ValidationError):
        SubmitRequestPayload(driver_code="D1", start_date=date(2025, 6, 1), end_date=date(2025, 6, 1), reason="")


def test_submit_payload_rejects_unknown_leave_type() -> None:
    with pytest.raises(ValidationError):
        SubmitRequestPayload.model_validate(
            {
                "driver_code": "D1",
                "start_date": "2025-06-01",
                "end_date": "2025-06-01",
                "reason": "x",
                "leave_type": "SABBATICAL",
            }
        )


def test_decision_payload_note_optional() -> None:
    assert DecisionPayload().note is None


def test_auth_context_admin() -> None:
    assert AuthContext(user_id="a", role="admin").is_admin
    assert not AuthContext(user_id="a").is_admin
