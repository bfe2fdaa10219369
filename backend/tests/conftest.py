"""Shared fixtures: sample fleet data and an in-memory stand-in for the data source."""

from __future__ import annotations

import sys
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from servicecenter.analytics import services as analytics_services  # noqa: E402
from servicecenter.auth.dependencies import CurrentUser  # noqa: E402
from servicecenter.calls import routes as call_routes  # noqa: E402
from servicecenter.calls import services as call_services  # noqa: E402
from servicecenter.common.models import ServiceRecord, Vehicle  # noqa: E402
from servicecenter.db.client import RecordNotFound  # noqa: E402
from servicecenter.service_records import routes as service_record_routes  # noqa: E402
from servicecenter.vehicles import routes as vehicle_routes  # noqa: E402

NOW = date(2024, 5, 15)
USER_ID = "user-1"


def _matches(row: Mapping[str, Any], where: Optional[Mapping[str, Any]]) -> bool:
    for column, expected in (where or {}).items():
        if isinstance(expected, Mapping):
            expected = expected.get("eq")
        if row.get(column) != expected:
            return False
    return True


class FakeTable:
    def __init__(self, name: str) -> None:
        self.name = name
        self.rows: List[Dict[str, Any]] = []
        self.created: List[Dict[str, Any]] = []
        self.updates: List[Dict[str, Any]] = []

    async def find_many(
        self,
        where: Optional[Mapping[str, Any]] = None,
        order: Optional[Mapping[str, str]] = None,
        take: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        rows = [dict(row) for row in self.rows if _matches(row, where)]
        for column, direction in reversed(list((order or {}).items())):
            rows.sort(key=lambda row: str(row.get(column) or ""), reverse=direction == "desc")
        return rows[:take] if take is not None else rows

    async def find_first(self, where=None, order=None) -> Optional[Dict[str, Any]]:
        rows = await self.find_many(where=where, order=order, take=1)
        return rows[0] if rows else None

    async def find_unique(self, where: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        return await self.find_first(where=where)

    async def create(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        row = dict(data)
        row.setdefault("id", f"{self.name}-{len(self.rows) + 1}")
        self.rows.append(row)
        self.created.append(row)
        return dict(row)

    async def update(self, where: Mapping[str, Any], data: Mapping[str, Any]) -> Dict[str, Any]:
        matched = [row for row in self.rows if _matches(row, where)]
        if not matched:
            raise RecordNotFound(f"No {self.name} row matches {dict(where)}", status_code=404)
        for row in matched:
            row.update(data)
        self.updates.append(dict(data))
        return dict(matched[0])

    async def delete(self, where: Mapping[str, Any]) -> Dict[str, Any]:
        matched = [row for row in self.rows if _matches(row, where)]
        if not matched:
            raise RecordNotFound(f"No {self.name} row matches {dict(where)}", status_code=404)
        self.rows = [row for row in self.rows if row not in matched]
        return dict(matched[0])

    async def count(self, where: Optional[Mapping[str, Any]] = None) -> int:
        return len([row for row in self.rows if _matches(row, where)])


class FakeDB:
    def __init__(self) -> None:
        self.vehicle = FakeTable("vehicles")
        self.servicerecord = FakeTable("service_records")
        self.callrecord = FakeTable("call_records")
        self.connected = False
        self.connect_calls = 0

    async def connect(self) -> None:
        self.connected = True
        self.connect_calls += 1

    async def disconnect(self) -> None:
        self.connected = False


@pytest.fixture(autouse=True)
def clear_analytics_caches():
    analytics_services.snapshot_cache.invalidate()
    analytics_services.view_cache.invalidate()
    analytics_services._snapshot_locks.clear()
    yield
    analytics_services.snapshot_cache.invalidate()
    analytics_services.view_cache.invalidate()


@pytest.fixture()
def fake_db(monkeypatch: pytest.MonkeyPatch) -> FakeDB:
    db = FakeDB()
    for module in (analytics_services, call_routes, call_services, service_record_routes, vehicle_routes):
        monkeypatch.setattr(module, "db", db)
    return db


@pytest.fixture()
def current_user() -> CurrentUser:
    return CurrentUser(id=USER_ID, email="owner@example.com")


def make_vehicle(vehicle_id: str, owner: str, **fields: Any) -> Vehicle:
    return Vehicle(id=vehicle_id, owner=owner, **fields)


def make_record(
    record_id: str,
    vehicle_id: str,
    day: date,
    labor: float = 0,
    parts: Optional[List[Dict[str, Any]]] = None,
    discount: float = 0,
    technician: Optional[str] = None,
    service_type: str = "General Service",
    **fields: Any,
) -> ServiceRecord:
    return ServiceRecord(
        id=record_id,
        vehicle_id=vehicle_id,
        date=day,
        type=service_type,
        parts=parts or [],
        labor_cost=labor,
        discount=discount,
        technician=technician,
        **fields,
    )


@pytest.fixture()
def vehicles() -> List[Vehicle]:
    return [
        make_vehicle("V1", "Alice", make="Bajaj", bike_model="Pulsar 150", year=2021),
        make_vehicle("V2", "Bob", make="TVS", bike_model="Apache RTR", year=2022),
        make_vehicle("V3", "Alice", type="car", make="Honda", car_model="City", year=2019),
    ]


@pytest.fixture()
def records() -> List[ServiceRecord]:
    return [
        make_record("S1", "V1", date(2024, 5, 14), labor=45, parts=[{"name": "Filter", "cost": 15}],
                    discount=10, technician="Bob", service_type="Oil Change", kilometers=1000),
        make_record("S2", "V2", date(2024, 5, 10), labor=80, technician="Carol",
                    service_type="Brake Service"),
        make_record("S3", "V1", date(2024, 4, 20), labor=30, parts=[{"name": "Chain", "cost": 20}],
                    technician="Bob", service_type="General Service", kilometers=800),
        make_record("S4", "V3", date(2024, 2, 5), labor=100, service_type="Oil Change"),
    ]
