from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional

from servicecenter.common.enums import VehicleStatus
from servicecenter.common.models import CallRecord, Vehicle
from servicecenter.common.utils import days_until_service
from servicecenter.db.client import db


def vehicles_needing_calls(vehicles: Iterable[Vehicle], today: date, window_days: int = 7) -> List[Vehicle]:
    """Overdue vehicles plus upcoming ones due within ``window_days``; overdue first."""

    horizon = today + timedelta(days=window_days)
    due = [
        vehicle
        for vehicle in vehicles
        if vehicle.status == VehicleStatus.OVERDUE
        or (
            vehicle.status == VehicleStatus.UPCOMING
            and vehicle.next_service is not None
            and vehicle.next_service <= horizon
        )
    ]
    return sorted(
        due,
        key=lambda v: (v.status != VehicleStatus.OVERDUE, v.next_service or date.max),
    )


def urgency_label(vehicle: Vehicle, today: date) -> str:
    if vehicle.status == VehicleStatus.OVERDUE:
        return "Overdue"
    days = days_until_service(vehicle.next_service, today)
    if days is None:
        return "Scheduled"
    if days <= 2:
        return f"Urgent ({days} days)"
    if days <= 7:
        return f"Soon ({days} days)"
    return "Scheduled"


def build_call_list(
    vehicles: Iterable[Vehicle],
    call_records: Iterable[CallRecord],
    today: date,
    window_days: int = 7,
) -> Dict[str, Any]:
    by_vehicle = {record.vehicle_id: record for record in call_records}
    entries = []
    for vehicle in vehicles_needing_calls(vehicles, today, window_days):
        record = by_vehicle.get(vehicle.id)
        entries.append(
            {
                "vehicle": vehicle,
                "days_until_service": days_until_service(vehicle.next_service, today),
                "urgency": urgency_label(vehicle, today),
                "called": bool(record and record.called),
                "call_record": record,
            }
        )
    called = sum(1 for entry in entries if entry["called"])
    return {
        "vehicles": entries,
        "called_count": called,
        "pending_count": len(entries) - called,
    }


async def upsert_call_record(
    user_id: str,
    vehicle_id: str,
    called: bool,
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
) -> CallRecord:
    """Insert or update the single call record kept per vehicle."""

    now = now or datetime.now(timezone.utc)
    call_date = now.isoformat() if called else None

    existing = await db.callrecord.find_first(where={"vehicle_id": vehicle_id, "user_id": user_id})
    if existing:
        row = await db.callrecord.update(
            where={"id": existing["id"]},
            data={
                "called": called,
                "call_date": call_date,
                "notes": notes,
                "updated_at": now.isoformat(),
            },
        )
    else:
        row = await db.callrecord.create(
            {
                "vehicle_id": vehicle_id,
                "called": called,
                "call_date": call_date,
                "notes": notes,
                "user_id": user_id,
            }
        )
    return CallRecord.model_validate(row)
