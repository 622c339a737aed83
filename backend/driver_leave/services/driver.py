"""Driver directory: ledger accounts keyed by the human-entered external code."""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from driver_leave.exceptions import DriverAlreadyExistsError
from driver_leave.models.driver import Driver
from driver_leave.models.enums import EmploymentType, EventType, LeaveStatus, LeaveType
from driver_leave.models.request import LeaveRequest
from driver_leave.schemas.driver import DriverResponse, VacationHistoryItem, VacationSummaryResponse
from driver_leave.services.allowance import get_allowance_policy
from driver_leave.services.audit import model_to_audit_dict
from driver_leave.services.events import LeaveEvent, publish_event
from driver_leave.services.ledger import _build_balance_response, resolve_driver

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from driver_leave.schemas.driver import RegisterDriverPayload


def _build_driver_response(driver: Driver) -> DriverResponse:
    """Map a driver model to its response schema."""
    return DriverResponse(
        id=driver.id,
        external_code=driver.external_code,
        name=driver.name,
        employment_type=EmploymentType(driver.employment_type),
        annual_allowance_days=driver.annual_allowance_days,
        used_days=driver.used_days,
        remaining_days=driver.annual_allowance_days - driver.used_days,
        created_at=driver.created_at,
    )


async def register_driver(
    session: AsyncSession,
    actor: str,
    payload: RegisterDriverPayload,
) -> DriverResponse:
    """Open a ledger account with the allowance policy's default unless one is given."""
    allowance = payload.annual_allowance_days
    if allowance is None:
        allowance = get_allowance_policy().default_allowance_days(payload.employment_type)

    driver = Driver(
        external_code=payload.external_code,
        name=payload.name,
        employment_type=payload.employment_type.value,
        annual_allowance_days=allowance,
    )
    session.add(driver)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise DriverAlreadyExistsError(payload.external_code) from None
    await session.refresh(driver)

    await publish_event(
        LeaveEvent(
            event_type=EventType.DRIVER_REGISTERED,
            entity_id=driver.id,
            driver_code=driver.external_code,
            actor=actor,
            after=model_to_audit_dict(driver),
        )
    )
    return _build_driver_response(driver)


async def get_driver(session: AsyncSession, external_code: str) -> DriverResponse:
    """Get a driver's ledger account by external code."""
    driver = await resolve_driver(session, external_code)
    return _build_driver_response(driver)


async def get_vacation_summary(
    session: AsyncSession,
    external_code: str,
    year: int | None = None,
) -> VacationSummaryResponse:
    """Balance plus the approved requests starting in ``year`` (default: current year)."""
    driver = await resolve_driver(session, external_code)
    year = year or date.today().year

    result = await session.execute(
        select(LeaveRequest)
        .where(
            col(LeaveRequest.driver_id) == driver.id,
            col(LeaveRequest.status) == LeaveStatus.APPROVED.value,
            col(LeaveRequest.start_date) >= date(year, 1, 1),
            col(LeaveRequest.start_date) <= date(year, 12, 31),
        )
        .order_by(col(LeaveRequest.start_date).desc())
    )
    approved = list(result.scalars().all())

    history = [
        VacationHistoryItem(
            request_id=r.id,
            start_date=r.start_date,
            end_date=r.end_date,
            requested_days=r.requested_days,
            leave_type=LeaveType(r.leave_type),
            decided_at=r.decided_at,
        )
        for r in approved
    ]

    return VacationSummaryResponse(
        external_code=driver.external_code,
        name=driver.name,
        employment_type=EmploymentType(driver.employment_type),
        year=year,
        balance=_build_balance_response(driver),
        approved_days_in_year=sum(item.requested_days for item in history),
        history=history,
    )
