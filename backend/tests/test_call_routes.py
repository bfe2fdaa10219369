from __future__ import annotations

import asyncio
from datetime import date, datetime, timedelta, timezone

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from conftest import NOW, USER_ID, FakeDB, make_vehicle
from servicecenter.analytics import services as analytics_services
from servicecenter.auth.dependencies import get_current_user
from servicecenter.calls import routes, services
from servicecenter.common.enums import VehicleStatus
from servicecenter.common.models import CallRecord


@pytest.fixture()
def client(fake_db: FakeDB, current_user) -> TestClient:
    app = FastAPI()
    app.include_router(routes.router)
    app.dependency_overrides[get_current_user] = lambda: current_user
    return TestClient(app)


def fleet():
    return [
        make_vehicle("V1", "Alice", status=VehicleStatus.UPCOMING, next_service=NOW + timedelta(days=6)),
        make_vehicle("V2", "Bob", status=VehicleStatus.OVERDUE, next_service=NOW - timedelta(days=4)),
        make_vehicle("V3", "Carol", status=VehicleStatus.UPCOMING, next_service=NOW + timedelta(days=1)),
        make_vehicle("V4", "Dave", status=VehicleStatus.UPCOMING, next_service=NOW + timedelta(days=20)),
        make_vehicle("V5", "Erin", status=VehicleStatus.ACTIVE, next_service=NOW + timedelta(days=90)),
    ]


def test_vehicles_needing_calls_puts_overdue_first() -> None:
    due = services.vehicles_needing_calls(fleet(), NOW)

    assert [v.id for v in due] == ["V2", "V3", "V1"]


def test_urgency_labels() -> None:
    labels = {v.id: services.urgency_label(v, NOW) for v in fleet()}

    assert labels["V2"] == "Overdue"
    assert labels["V3"] == "Urgent (1 days)"
    assert labels["V1"] == "Soon (6 days)"
    assert labels["V4"] == "Scheduled"


def test_call_list_counts_only_due_vehicles() -> None:
    call_records = [
        CallRecord(id="C1", vehicle_id="V3", called=True),
        CallRecord(id="C2", vehicle_id="V5", called=True),
    ]

    result = services.build_call_list(fleet(), call_records, NOW)

    assert result["called_count"] == 1
    assert result["pending_count"] == 2
    entry = next(e for e in result["vehicles"] if e["vehicle"].id == "V3")
    assert entry["called"] is True
    assert entry["days_until_service"] == 1


def test_due_endpoint(client: TestClient, fake_db: FakeDB) -> None:
    today = date.today()
    fake_db.vehicle.rows = [
        {"id": "V1", "owner": "Alice", "status": "overdue",
         "next_service": (today - timedelta(days=1)).isoformat(), "user_id": USER_ID},
        {"id": "V2", "owner": "Bob", "status": "upcoming",
         "next_service": (today + timedelta(days=3)).isoformat(), "user_id": USER_ID},
    ]
    fake_db.callrecord.rows = [{"id": "C1", "vehicle_id": "V2", "called": False, "user_id": USER_ID}]

    data = client.get("/calls/due").json()

    assert [entry["vehicle"]["id"] for entry in data["vehicles"]] == ["V1", "V2"]
    assert data["vehicles"][1]["urgency"] == "Soon (3 days)"
    assert data["called_count"] == 0
    assert data["pending_count"] == 2


def test_mark_called_creates_then_updates(client: TestClient, fake_db: FakeDB) -> None:
    analytics_services.snapshot_cache.set((USER_ID,), "stale")

    created = client.put("/calls/V1", json={"called": True, "notes": "Left voicemail"})

    assert created.status_code == 200
    assert created.json()["called"] is True
    assert created.json()["call_date"] is not None
    assert len(fake_db.callrecord.rows) == 1
    assert analytics_services.snapshot_cache.get((USER_ID,)) is None

    updated = client.put("/calls/V1", json={"called": False})

    assert updated.json()["called"] is False
    assert updated.json()["call_date"] is None
    assert len(fake_db.callrecord.rows) == 1


def test_upsert_sets_call_date_from_clock(fake_db: FakeDB) -> None:
    now = datetime(2024, 5, 15, 9, 30, tzinfo=timezone.utc)

    record = asyncio.run(services.upsert_call_record(USER_ID, "V9", True, now=now))

    assert record.call_date == now
    assert fake_db.callrecord.rows[0]["user_id"] == USER_ID


def test_list_call_records(client: TestClient, fake_db: FakeDB) -> None:
    fake_db.callrecord.rows = [
        {"id": "C1", "vehicle_id": "V1", "called": True, "user_id": USER_ID},
        {"id": "C2", "vehicle_id": "V2", "called": False, "user_id": "someone-else"},
    ]

    data = client.get("/calls/records").json()

    assert [r["id"] for r in data] == ["C1"]
