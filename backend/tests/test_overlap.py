from __future__ import annotations

from datetime import UTC, date, datetime
from typing import TYPE_CHECKING

import pytest

from driver_leave.exceptions import DriverNotFoundError
from driver_leave.models.driver import Driver
from driver_leave.models.enums import LeaveStatus
from driver_leave.models.request import LeaveRequest
from driver_leave.services.overlap import find_overlap, has_overlap

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession


@pytest.fixture
async def driver(db_session: AsyncSession) -> Driver:
    driver = Driver(external_code="D1", annual_allowance_days=30)
    db_session.add(driver)
    await db_session.commit()
    return driver


async def _add_request(
    session: AsyncSession,
    driver: Driver,
    start: date,
    end: date,
    status: LeaveStatus = LeaveStatus.PENDING,
) -> LeaveRequest:
    request = LeaveRequest(
        driver_id=driver.id,
        start_date=start,
        end_date=end,
        requested_days=(end - start).days + 1,
        reason="test",
        status=status.value,
        submitted_at=datetime.now(UTC),
    )
    session.add(request)
    await session.commit()
    return request


async def test_no_requests_no_overlap(db_session: AsyncSession, driver: Driver) -> None:
    assert not await has_overlap(db_session, "D1", date(2025, 6, 1), date(2025, 6, 5))


async def test_shared_boundary_day_overlaps(db_session: AsyncSession, driver: Driver) -> None:
    await _add_request(db_session, driver, date(2025, 6, 1), date(2025, 6, 5))
    assert await has_overlap(db_session, "D1", date(2025, 6, 5), date(2025, 6, 8))
    assert await has_overlap(db_session, "D1", date(2025, 5, 28), date(2025, 6, 1))


async def test_adjacent_ranges_do_not_overlap(db_session: AsyncSession, driver: Driver) -> None:
    await _add_request(db_session, driver, date(2025, 6, 1), date(2025, 6, 5))
    assert not await has_overlap(db_session, "D1", date(2025, 6, 6), date(2025, 6, 10))
    assert not await has_overlap(db_session, "D1", date(2025, 5, 25), date(2025, 5, 31))


async def test_contained_range_overlaps(db_session: AsyncSession, driver: Driver) -> None:
    await _add_request(db_session, driver, date(2025, 6, 1), date(2025, 6, 30), LeaveStatus.APPROVED)
    assert await has_overlap(db_session, "D1", date(2025, 6, 10), date(2025, 6, 12))


async def test_rejected_requests_are_ignored(db_session: AsyncSession, driver: Driver) -> None:
    await _add_request(db_session, driver, date(2025, 6, 1), date(2025, 6, 5), LeaveStatus.REJECTED)
    assert not await has_overlap(db_session, "D1", date(2025, 6, 1), date(2025, 6, 5))


async def test_excluded_request_is_ignored(db_session: AsyncSession, driver: Driver) -> None:
    request = await _add_request(db_session, driver, date(2025, 6, 1), date(2025, 6, 5))
    assert not await has_overlap(
        db_session, "D1", date(2025, 6, 1), date(2025, 6, 5), exclude_request_id=request.id
    )


async def test_other_drivers_are_ignored(db_session: AsyncSession, driver: Driver) -> None:
    other = Driver(external_code="D2", annual_allowance_days=30)
    db_session.add(other)
    await db_session.commit()
    await _add_request(db_session, other, date(2025, 6, 1), date(2025, 6, 5))
    assert not await has_overlap(db_session, "D1", date(2025, 6, 1), date(2025, 6, 5))


async def test_find_overlap_returns_conflicting_request(db_session: AsyncSession, driver: Driver) -> None:
    existing = await _add_request(db_session, driver, date(2025, 6, 1), date(2025, 6, 5))
    conflict = await find_overlap(db_session, driver.id, date(2025, 6, 4), date(2025, 6, 6))
    assert conflict is not None
    assert conflict.id == existing.id


async def test_unknown_driver(db_session: AsyncSession) -> None:
    with pytest.raises(DriverNotFoundError):
        await has_overlap(db_session, "NOPE", date(2025, 6, 1), date(2025, 6, 5))
