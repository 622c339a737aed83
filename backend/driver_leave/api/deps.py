# ruff: noqa: B008
from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Header, status

from driver_leave.exceptions import AppError
from driver_leave.schemas.auth import AuthContext


async def get_auth_context(
    x_user_id: str = Header(min_length=1, max_length=255),
    x_role: str = Header(default="dispatcher"),
) -> AuthContext:
    """Extract dev auth context from request headers."""
    return AuthContext(user_id=x_user_id, role=x_role)


AuthDep = Annotated[AuthContext, Depends(get_auth_context)]


async def require_admin(
    auth: AuthDep,
) -> AuthContext:
    """Require admin role for the request."""
    if not auth.is_admin:
        raise AppError("Admin access required", status_code=status.HTTP_403_FORBIDDEN)
    return auth


AdminDep = Annotated[AuthContext, Depends(require_admin)]


async def get_optional_actor(
    x_user_id: str | None = Header(default=None, max_length=255),
) -> str | None:
    """Identity of the caller when one is supplied; public submissions may omit it."""
    return x_user_id


OptionalActorDep = Annotated[str | None, Depends(get_optional_actor)]
