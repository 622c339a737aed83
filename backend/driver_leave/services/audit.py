from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from driver_leave.db import get_session_factory
from driver_leave.models.audit import AuditLog

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
    from sqlmodel import SQLModel

    from driver_leave.models.enums import AuditAction, AuditEntityType


def model_to_audit_dict(model: SQLModel) -> dict[str, Any]:
    """Serialize a SQLModel instance to a JSON-safe dict for audit logging."""
    data: dict[str, Any] = {}
    for key, value in model.model_dump().items():
        if isinstance(value, uuid.UUID):
            data[key] = str(value)
        elif isinstance(value, (datetime, date)):
            data[key] = value.isoformat()
        else:
            data[key] = value
    return data


def write_audit_log(
    session: AsyncSession,
    *,
    actor: str,
    entity_type: AuditEntityType,
    entity_id: uuid.UUID,
    action: AuditAction,
    before_json: dict[str, Any] | None = None,
    after_json: dict[str, Any] | None = None,
) -> AuditLog:
    """Add an immutable audit log entry to the caller's transaction."""
    entry = AuditLog(
        actor=actor,
        entity_type=entity_type.value,
        entity_id=entity_id,
        action=action.value,
        before_json=before_json,
        after_json=after_json,
    )
    session.add(entry)
    return entry


@runtime_checkable
class AuditSink(Protocol):
    """Interface for the append-only audit trail.

    The leave workflow writes to it after committing and never reads it back.
    """

    async def record(
        self,
        *,
        entity_type: AuditEntityType,
        entity_id: uuid.UUID,
        action: AuditAction,
        before: dict[str, Any] | None,
        after: dict[str, Any] | None,
        actor: str,
    ) -> None:
        """Append one audit entry."""
        ...


class DatabaseAuditSink:
    """Audit sink that persists entries to ``audit_log`` in their own transaction."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None) -> None:
        self._session_factory = session_factory

    async def record(
        self,
        *,
        entity_type: AuditEntityType,
        entity_id: uuid.UUID,
        action: AuditAction,
        before: dict[str, Any] | None,
        after: dict[str, Any] | None,
        actor: str,
    ) -> None:
        factory = self._session_factory or get_session_factory()
        async with factory() as session:
            write_audit_log(
                session,
                actor=actor,
                entity_type=entity_type,
                entity_id=entity_id,
                action=action,
                before_json=before,
                after_json=after,
            )
            await session.commit()


class InMemoryAuditSink:
    """In-memory audit sink for tests."""

    def __init__(self) -> None:
        self.entries: list[dict[str, Any]] = []

    async def record(
        self,
        *,
        entity_type: AuditEntityType,
        entity_id: uuid.UUID,
        action: AuditAction,
        before: dict[str, Any] | None,
        after: dict[str, Any] | None,
        actor: str,
    ) -> None:
        self.entries.append(
            {
                "entity_type": entity_type,
                "entity_id": entity_id,
                "action": action,
                "before": before,
                "after": after,
                "actor": actor,
            }
        )


_audit_sink: AuditSink = DatabaseAuditSink()


def get_audit_sink() -> AuditSink:
    """Return the active audit sink."""
    return _audit_sink


def set_audit_sink(sink: AuditSink) -> None:
    """Override the sink (for testing or production wiring)."""
    global _audit_sink
    _audit_sink = sink
