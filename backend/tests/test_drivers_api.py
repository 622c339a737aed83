from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy.exc import OperationalError

from driver_leave.models.enums import EmploymentType
from driver_leave.services import ledger
from driver_leave.services.allowance import (
    FixedAllowancePolicy,
    SettingsAllowancePolicy,
    get_allowance_policy,
    set_allowance_policy,
)

if TYPE_CHECKING:
    from collections.abc import Iterator

    from httpx import AsyncClient

    from driver_leave.services.audit import InMemoryAuditSink

ADMIN_HEADERS = {"X-User-Id": "fleet-admin@example.com", "X-Role": "admin"}
DISPATCHER_HEADERS = {"X-User-Id": "dispatcher@example.com", "X-Role": "dispatcher"}


@pytest.fixture
def fixed_policy() -> Iterator[None]:
    set_allowance_policy(FixedAllowancePolicy({EmploymentType.FULLTIME: 30, EmploymentType.MINIJOB: 12}))
    yield
    set_allowance_policy(SettingsAllowancePolicy())


async def _register(client: AsyncClient, code: str, **extra: object) -> dict:
    response = await client.post("/drivers", json={"external_code": code, **extra}, headers=ADMIN_HEADERS)
    assert response.status_code == 201, response.text
    return response.json()


async def test_register_fulltime_default_allowance(async_client: AsyncClient) -> None:
    data = await _register(async_client, "DRV-2023-0001", name="John Smith")
    assert data["employment_type"] == "FULLTIME"
    assert data["annual_allowance_days"] == 25
    assert data["used_days"] == 0
    assert data["remaining_days"] == 25


async def test_register_minijob_default_allowance(async_client: AsyncClient) -> None:
    data = await _register(async_client, "DRV-2022-0003", employment_type="MINIJOB")
    assert data["annual_allowance_days"] == 15


async def test_register_explicit_allowance_overrides_policy(async_client: AsyncClient) -> None:
    data = await _register(async_client, "D1", annual_allowance_days=10)
    assert data["annual_allowance_days"] == 10


@pytest.mark.usefixtures("fixed_policy")
async def test_register_uses_configured_policy(async_client: AsyncClient) -> None:
    assert isinstance(get_allowance_policy(), FixedAllowancePolicy)
    data = await _register(async_client, "D1", employment_type="MINIJOB")
    assert data["annual_allowance_days"] == 12


async def test_register_duplicate_code(async_client: AsyncClient) -> None:
    await _register(async_client, "D1")
    response = await async_client.post("/drivers", json={"external_code": "D1"}, headers=ADMIN_HEADERS)
    assert response.status_code == 409
    assert response.json()["error"] == "DriverAlreadyExistsError"


async def test_register_requires_admin(async_client: AsyncClient) -> None:
    response = await async_client.post("/drivers", json={"external_code": "D1"}, headers=DISPATCHER_HEADERS)
    assert response.status_code == 403


async def test_register_requires_identity(async_client: AsyncClient) -> None:
    response = await async_client.post("/drivers", json={"external_code": "D1"})
    assert response.status_code == 422


async def test_register_is_audited(async_client: AsyncClient, audit_entries: InMemoryAuditSink) -> None:
    await _register(async_client, "D1")
    entry = audit_entries.entries[0]
    assert entry["entity_type"] == "DRIVER"
    assert entry["action"] == "CREATE"
    assert entry["actor"] == ADMIN_HEADERS["X-User-Id"]
    assert entry["after"]["external_code"] == "D1"


async def test_get_driver(async_client: AsyncClient) -> None:
    await _register(async_client, "D1", name="Emma Wilson")
    response = await async_client.get("/drivers/D1", headers=DISPATCHER_HEADERS)
    assert response.status_code == 200
    assert response.json()["name"] == "Emma Wilson"


async def test_get_unknown_driver(async_client: AsyncClient) -> None:
    response = await async_client.get("/drivers/NOPE", headers=DISPATCHER_HEADERS)
    assert response.status_code == 404
    body = response.json()
    assert body["error"] == "DriverNotFoundError"
    assert body["context"] == {"external_code": "NOPE"}


async def test_get_balance_without_login(async_client: AsyncClient) -> None:
    await _register(async_client, "D1", annual_allowance_days=10)
    response = await async_client.get("/drivers/D1/balance")
    assert response.status_code == 200
    assert response.json() == {"external_code": "D1", "allowance": 10, "used": 0, "remaining": 10}


async def test_vacation_summary(async_client: AsyncClient) -> None:
    await _register(async_client, "D1", annual_allowance_days=20)
    for start, end in [("2025-03-03", "2025-03-05"), ("2025-08-11", "2025-08-15"), ("2026-01-05", "2026-01-06")]:
        created = await async_client.post(
            "/requests",
            json={"driver_code": "D1", "start_date": start, "end_date": end, "reason": "Holiday"},
        )
        await async_client.post(f"/requests/{created.json()['id']}/approve", headers=ADMIN_HEADERS)
    await async_client.post(
        "/requests",
        json={"driver_code": "D1", "start_date": "2025-10-01", "end_date": "2025-10-02", "reason": "Pending"},
    )

    response = await async_client.get("/drivers/D1/vacation-summary?year=2025", headers=DISPATCHER_HEADERS)

    assert response.status_code == 200
    data = response.json()
    assert data["year"] == 2025
    assert data["approved_days_in_year"] == 8
    assert [item["start_date"] for item in data["history"]] == ["2025-08-11", "2025-03-03"]
    assert data["balance"] == {"external_code": "D1", "allowance": 20, "used": 10, "remaining": 10}


async def test_persistence_failure_renders_internal_error(
    async_client: AsyncClient,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    async def _broken_resolve(*args: object, **kwargs: object) -> None:
        raise OperationalError("SELECT driver", {}, Exception("connection reset"))

    monkeypatch.setattr(ledger, "resolve_driver", _broken_resolve)

    response = await async_client.get("/drivers/D1/balance")

    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "InternalError"
    assert body["status_code"] == 500
    assert "connection reset" not in body["detail"]
