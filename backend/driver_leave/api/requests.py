# ruff: noqa: B008, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query, Response, status

from driver_leave.api.deps import AdminDep, AuthDep, OptionalActorDep
from driver_leave.db import SessionDep
from driver_leave.models.enums import LeaveStatus
from driver_leave.schemas.request import (
    DecisionPayload,
    RequestListResponse,
    RequestResponse,
    RequestSummaryResponse,
    SubmitRequestPayload,
    UpdateRequestPayload,
)
from driver_leave.services import approval as approval_service
from driver_leave.services import request as request_service
from driver_leave.services import submission as submission_service

requests_router = APIRouter(prefix="/requests", tags=["requests"])


@requests_router.post("", response_model=RequestResponse, status_code=status.HTTP_201_CREATED)
async def submit_request(
    payload: SubmitRequestPayload,
    session: SessionDep,
    actor: OptionalActorDep,
) -> RequestResponse:
    """Submit a new leave request. Drivers may submit without an account login."""
    return await submission_service.submit_request(session, payload, actor)


@requests_router.get("", response_model=RequestListResponse)
async def list_requests(
    session: SessionDep,
    auth: AuthDep,
    status_filter: LeaveStatus | None = Query(default=None, alias="status"),
    driver_code: str | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> RequestListResponse:
    """List leave requests with optional filters."""
    return await request_service.list_requests(session, status_filter, driver_code, offset, limit)


@requests_router.get("/summary", response_model=RequestSummaryResponse)
async def get_request_summary(
    session: SessionDep,
    auth: AuthDep,
) -> RequestSummaryResponse:
    """Request counts and day totals by status and leave type."""
    return await request_service.get_request_summary(session)


@requests_router.get("/{request_id}", response_model=RequestResponse)
async def get_request(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> RequestResponse:
    """Get a single leave request."""
    return await request_service.get_request(session, request_id)


@requests_router.patch("/{request_id}", response_model=RequestResponse)
async def update_request(
    request_id: uuid.UUID,
    payload: UpdateRequestPayload,
    session: SessionDep,
    auth: AdminDep,
) -> RequestResponse:
    """Edit the dates or details of a pending leave request (admin only)."""
    return await approval_service.update_request(session, auth.user_id, request_id, payload)


@requests_router.post("/{request_id}/approve", response_model=RequestResponse)
async def approve_request(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: AdminDep,
    payload: DecisionPayload | None = None,
) -> RequestResponse:
    """Approve a pending leave request (admin only)."""
    return await approval_service.approve_request(session, auth.user_id, request_id, payload)


@requests_router.post("/{request_id}/reject", response_model=RequestResponse)
async def reject_request(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: AdminDep,
    payload: DecisionPayload | None = None,
) -> RequestResponse:
    """Reject a pending request or reverse an approved one (admin only)."""
    return await approval_service.reject_request(session, auth.user_id, request_id, payload)


@requests_router.delete("/{request_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_request(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: AdminDep,
) -> Response:
    """Delete a leave request, restoring the balance if it was approved (admin only)."""
    await approval_service.delete_request(session, auth.user_id, request_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
