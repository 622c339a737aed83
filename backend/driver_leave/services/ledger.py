"""Driver ledger: annual allowance, used days and the remaining balance.

Reads are public. Writes are module-private and only called by the approval
workflow and submission inside ``run_serialized``; each write is a
compare-and-swap on ``Driver.version`` and raises ``ConcurrentUpdateError``
when another transaction has touched the driver since it was read.
"""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from sqlalchemy import select, update
from sqlalchemy.orm.attributes import set_committed_value
from sqlmodel import col

from driver_leave.exceptions import DriverNotFoundError
from driver_leave.models.driver import Driver
from driver_leave.schemas.driver import BalanceResponse
from driver_leave.services.transaction import ConcurrentUpdateError

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


def _build_balance_response(driver: Driver) -> BalanceResponse:
    return BalanceResponse(
        external_code=driver.external_code,
        allowance=driver.annual_allowance_days,
        used=driver.used_days,
        remaining=driver.annual_allowance_days - driver.used_days,
    )


async def resolve_driver(session: AsyncSession, external_code: str) -> Driver:
    """Resolve an external driver code to its ledger account. Raises 404 if unknown."""
    result = await session.execute(select(Driver).where(col(Driver.external_code) == external_code))
    driver = result.scalar_one_or_none()
    if driver is None:
        raise DriverNotFoundError(external_code)
    return driver


async def get_balance(session: AsyncSession, external_code: str) -> BalanceResponse:
    """Return (allowance, used, remaining) for a driver."""
    driver = await resolve_driver(session, external_code)
    return _build_balance_response(driver)


# ---------------------------------------------------------------------------
# Critical-section helpers (approval workflow and submission only)
# ---------------------------------------------------------------------------


async def _lock_driver(session: AsyncSession, driver_id: uuid.UUID) -> Driver:
    """Load the driver with a FOR UPDATE lock and fresh column values."""
    result = await session.execute(
        select(Driver)
        .where(col(Driver.id) == driver_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    driver = result.scalar_one_or_none()
    if driver is None:
        raise DriverNotFoundError(str(driver_id))
    return driver


async def _swap_driver(session: AsyncSession, driver: Driver, used_days: int) -> None:
    """Write ``used_days`` and bump ``version`` if nobody else has since the read."""
    result = await session.execute(
        update(Driver)
        .where(col(Driver.id) == driver.id, col(Driver.version) == driver.version)
        .values(used_days=used_days, version=driver.version + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:  # type: ignore[attr-defined]
        raise ConcurrentUpdateError(f"driver {driver.external_code} changed since version {driver.version}")
    set_committed_value(driver, "used_days", used_days)
    set_committed_value(driver, "version", driver.version + 1)


async def _claim_driver(session: AsyncSession, driver: Driver) -> None:
    """Enter the driver's critical section without changing the balance."""
    await _swap_driver(session, driver, driver.used_days)


async def _adjust_used(session: AsyncSession, driver: Driver, delta: int) -> int:
    """Apply ``delta`` to ``used_days`` and return the new value.

    Negative deltas are reversals and are floored at zero; hitting the floor
    means the ledger and the approved requests disagree, which is logged.
    """
    if not session.in_transaction():
        msg = "ledger adjustments must run inside the approval transaction"
        raise RuntimeError(msg)

    new_used = driver.used_days + delta
    if new_used < 0:
        logger.warning(
            "Ledger integrity: reversing %d days for driver %s would leave used_days=%d; clamping to 0",
            -delta,
            driver.external_code,
            new_used,
        )
        new_used = 0

    await _swap_driver(session, driver, new_used)
    return new_used
