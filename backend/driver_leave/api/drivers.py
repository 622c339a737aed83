# ruff: noqa: B008
from __future__ import annotations

from fastapi import APIRouter, Query, status

from driver_leave.api.deps import AdminDep, AuthDep
from driver_leave.db import SessionDep
from driver_leave.schemas.driver import (
    BalanceResponse,
    DriverResponse,
    RegisterDriverPayload,
    VacationSummaryResponse,
)
from driver_leave.services import driver as driver_service
from driver_leave.services import ledger as ledger_service

drivers_router = APIRouter(prefix="/drivers", tags=["drivers"])


@drivers_router.post("", response_model=DriverResponse, status_code=status.HTTP_201_CREATED)
async def register_driver(
    payload: RegisterDriverPayload,
    session: SessionDep,
    auth: AdminDep,
) -> DriverResponse:
    """Open a leave ledger account for a driver (admin only)."""
    return await driver_service.register_driver(session, auth.user_id, payload)


@drivers_router.get("/{external_code}", response_model=DriverResponse)
async def get_driver(
    external_code: str,
    session: SessionDep,
    auth: AuthDep,
) -> DriverResponse:
    """Get a driver's ledger account."""
    return await driver_service.get_driver(session, external_code)


@drivers_router.get("/{external_code}/balance", response_model=BalanceResponse)
async def get_balance(
    external_code: str,
    session: SessionDep,
) -> BalanceResponse:
    """Get a driver's allowance, used and remaining days. Public, like submission."""
    return await ledger_service.get_balance(session, external_code)


@drivers_router.get("/{external_code}/vacation-summary", response_model=VacationSummaryResponse)
async def get_vacation_summary(
    external_code: str,
    session: SessionDep,
    auth: AuthDep,
    year: int | None = Query(default=None, ge=1900, le=9999),
) -> VacationSummaryResponse:
    """Get a driver's balance and approved leave for a calendar year."""
    return await driver_service.get_vacation_summary(session, external_code, year)
