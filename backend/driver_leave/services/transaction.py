"""Per-driver critical section: commit-or-retry around optimistic ledger writes.

Every write path (submit, approve, reject, delete) runs its read-check-write
steps as one operation callable. The callable locks the driver row, validates,
writes with compare-and-swap on ``version`` and returns; this module commits
it. A lost swap or a transient lock error rolls the whole transaction back and
re-runs the operation from fresh reads, so the net effect per driver is always
that of some serial order.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, TypeVar

from sqlalchemy.exc import DBAPIError

from driver_leave.config import get_settings
from driver_leave.exceptions import RetryExceededError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

T = TypeVar("T")

# PostgreSQL serialization_failure and deadlock_detected.
_TRANSIENT_SQLSTATES = {"40001", "40P01"}
_TRANSIENT_MESSAGES = ("database is locked", "deadlock detected", "could not serialize")


class ConcurrentUpdateError(Exception):
    """A compare-and-swap write matched no row because another writer got there first."""


def is_transient_error(exc: BaseException) -> bool:
    """Return True for database errors that are resolved by retrying the transaction."""
    if isinstance(exc, ConcurrentUpdateError):
        return True
    if not isinstance(exc, DBAPIError):
        return False
    orig = exc.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate in _TRANSIENT_SQLSTATES:
        return True
    message = str(orig).lower()
    return any(fragment in message for fragment in _TRANSIENT_MESSAGES)


async def run_serialized(
    session: AsyncSession,
    operation: Callable[[], Awaitable[T]],
    *,
    label: str,
) -> T:
    """Run ``operation`` and commit, retrying the whole unit on concurrency conflicts.

    Business errors raised by ``operation`` roll back and propagate untouched.
    After ``ledger_max_retries`` conflicting attempts a ``RetryExceededError``
    is raised; nothing from any attempt is left committed.
    """
    settings = get_settings()
    attempts = max(settings.ledger_max_retries, 1)

    for attempt in range(1, attempts + 1):
        try:
            result = await operation()
            await session.commit()
        except Exception as exc:
            await session.rollback()
            if not is_transient_error(exc):
                raise
            logger.warning("%s: concurrent update on attempt %d/%d (%s)", label, attempt, attempts, exc)
            if attempt < attempts:
                await asyncio.sleep(settings.ledger_retry_backoff_seconds * attempt)
        else:
            return result

    logger.error("%s: giving up after %d conflicting attempts", label, attempts)
    raise RetryExceededError(attempts)
