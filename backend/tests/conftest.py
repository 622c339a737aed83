from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from driver_leave.db import get_session
from driver_leave.main import app
from driver_leave.models import SQLModel
from driver_leave.services.audit import DatabaseAuditSink, InMemoryAuditSink, set_audit_sink
from driver_leave.services.notification import (
    InMemoryNotificationSink,
    LoggingNotificationSink,
    set_notification_sink,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterator
    from pathlib import Path

    from sqlalchemy.ext.asyncio import AsyncEngine


@pytest.fixture
async def engine(tmp_path: Path) -> AsyncIterator[AsyncEngine]:
    """Create a fresh database for each test.

    Uses TEST_DATABASE_URL when set (e.g. a PostgreSQL container in CI),
    otherwise a throwaway SQLite file.
    """
    url = os.environ.get("TEST_DATABASE_URL") or f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}"
    _engine = create_async_engine(url)
    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
        await conn.run_sync(SQLModel.metadata.create_all)
    yield _engine
    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await _engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncSession]:
    """Yield a session on the per-test database."""
    async with session_factory() as session:
        yield session


@pytest.fixture(autouse=True)
def notifications() -> Iterator[InMemoryNotificationSink]:
    """Capture notifications in memory for every test."""
    sink = InMemoryNotificationSink()
    set_notification_sink(sink)
    yield sink
    set_notification_sink(LoggingNotificationSink())


@pytest.fixture(autouse=True)
def audit_entries() -> Iterator[InMemoryAuditSink]:
    """Capture audit records in memory for every test."""
    sink = InMemoryAuditSink()
    set_audit_sink(sink)
    yield sink
    set_audit_sink(DatabaseAuditSink())


@pytest.fixture
async def async_client(session_factory: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncClient]:
    """Async HTTP client with the database session dependency overridden.

    Each request gets its own session, as in production.
    """

    async def _override_get_session() -> AsyncIterator[AsyncSession]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = _override_get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
