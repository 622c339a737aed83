"""Seed script for development data.

Run with:  python -m driver_leave.seed
Requires the API to be running on BASE_URL.
"""

from __future__ import annotations

import asyncio
import sys

import httpx

BASE_URL = "http://localhost:8000"
ADMIN_USER = "fleet-admin@example.com"

HEADERS = {
    "Content-Type": "application/json",
    "X-User-Id": ADMIN_USER,
    "X-Role": "admin",
}

DRIVERS = [
    {"external_code": "DRV-2023-0001", "name": "John Smith", "employment_type": "FULLTIME"},
    {"external_code": "DRV-2023-0002", "name": "Sarah Johnson", "employment_type": "FULLTIME"},
    {"external_code": "DRV-2022-0003", "name": "Mike Davis", "employment_type": "MINIJOB"},
    {"external_code": "DRV-2024-0004", "name": "Emma Wilson", "employment_type": "FULLTIME"},
    {"external_code": "DRV-2025-0005", "name": "James Brown", "employment_type": "MINIJOB"},
]

# (driver, start, end, leave type, reason, approve?)
REQUESTS = [
    ("DRV-2023-0001", "2025-05-01", "2025-05-03", "PERSONAL", "Family visit", True),
    ("DRV-2023-0001", "2025-07-01", "2025-07-07", "ANNUAL", "Summer holiday", True),
    ("DRV-2023-0002", "2025-08-15", "2025-08-20", "SICK", "Recovery after surgery", False),
    ("DRV-2022-0003", "2025-09-10", "2025-09-15", "PERSONAL", "Moving house", False),
    ("DRV-2024-0004", "2025-06-01", "2025-06-05", "ANNUAL", "Short trip", True),
    ("DRV-2025-0005", "2025-07-20", "2025-07-25", "ANNUAL", "Beach week", True),
]


async def _safe_post(client: httpx.AsyncClient, url: str, json: dict | None, label: str) -> dict | None:
    """POST with 409-conflict tolerance so the script can be re-run."""
    resp = await client.post(url, json=json, headers=HEADERS)
    if resp.status_code in (200, 201):
        print(f"  [OK] {label}")
        return resp.json()
    if resp.status_code == 409:
        print(f"  [SKIP] {label} ({resp.json().get('error')})")
        return None
    print(f"  [ERROR] {label}: {resp.status_code} {resp.text[:200]}")
    return None


async def seed_drivers(client: httpx.AsyncClient) -> None:
    print("\nDrivers")
    for driver in DRIVERS:
        await _safe_post(client, f"{BASE_URL}/drivers", driver, f"Driver {driver['external_code']}")


async def seed_requests(client: httpx.AsyncClient) -> None:
    print("\nLeave requests")
    for code, start, end, leave_type, reason, approve in REQUESTS:
        created = await _safe_post(
            client,
            f"{BASE_URL}/requests",
            {
                "driver_code": code,
                "start_date": start,
                "end_date": end,
                "leave_type": leave_type,
                "reason": reason,
            },
            f"Request {code} {start}..{end}",
        )
        if created is not None and approve:
            await _safe_post(
                client,
                f"{BASE_URL}/requests/{created['id']}/approve",
                {"note": "Seeded approval"},
                f"Approve {code} {start}..{end}",
            )


async def main() -> None:
    print("=" * 60)
    print("  Driver Leave - Development Seed Script")
    print("=" * 60)

    async with httpx.AsyncClient(timeout=30.0) as client:
        try:
            resp = await client.get(f"{BASE_URL}/health")
            if resp.status_code != 200:
                print(f"API health check failed: {resp.status_code}")
                sys.exit(1)
            print("\n[OK] API is healthy")
        except httpx.ConnectError:
            print("ERROR: Cannot connect to API at", BASE_URL)
            sys.exit(1)

        await seed_drivers(client)
        await seed_requests(client)

    print("\n" + "=" * 60)
    print("  Seeding complete!")
    print("=" * 60)


if __name__ == "__main__":
    asyncio.run(main())
