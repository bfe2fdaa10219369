# File: backend/servicecenter/service_records/routes.py
# Service entry: records the work done on a vehicle and rolls the vehicle's
# service dates and odometer forward. Records are never edited afterwards.

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException

from servicecenter.analytics.services import invalidate_snapshot
from servicecenter.auth.dependencies import CurrentUser, get_current_user
from servicecenter.common.models import ServiceRecord, ServiceRecordCreate, Vehicle
from servicecenter.common.utils import compute_vehicle_status, generate_service_record_id
from servicecenter.core.config import settings
from servicecenter.db.client import DataSourceError, db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/service-records", tags=["service records"])


def vehicle_changes_for(record: ServiceRecordCreate, vehicle: Vehicle, today: date) -> Dict[str, Any]:
    """Fields to write back onto the vehicle after ``record`` is saved."""

    next_service = record.next_service or vehicle.next_service
    changes: Dict[str, Any] = {
        "last_service": record.date.isoformat(),
        "next_service": next_service.isoformat() if next_service else None,
        "status": compute_vehicle_status(
            next_service, today, settings.business.upcoming_window_days
        ).value,
        "updated_at": datetime.now(timezone.utc).isoformat(),
    }
    if record.kilometers > 0:
        changes["current_kilometers"] = max(record.kilometers, vehicle.current_kilometers)
        changes["last_service_kilometers"] = record.kilometers
    return changes


@router.get("/")
async def list_service_records(
    vehicle_id: Optional[str] = None,
    user: CurrentUser = Depends(get_current_user),
) -> List[ServiceRecord]:
    where: Dict[str, Any] = {"user_id": user.id}
    if vehicle_id:
        where["vehicle_id"] = vehicle_id

    await db.connect()
    try:
        rows = await db.servicerecord.find_many(where=where, order={"date": "desc"})
    except DataSourceError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    finally:
        await db.disconnect()

    return [ServiceRecord.model_validate(row) for row in rows]


@router.post("/", status_code=201)
async def add_service_record(
    data: ServiceRecordCreate,
    user: CurrentUser = Depends(get_current_user),
) -> ServiceRecord:
    payload = data.model_dump(mode="json", exclude={"next_service"})
    payload["id"] = generate_service_record_id()
    payload["user_id"] = user.id

    await db.connect()
    try:
        vehicle_row = await db.vehicle.find_unique(where={"id": data.vehicle_id, "user_id": user.id})
        if not vehicle_row:
            raise HTTPException(status_code=404, detail="Vehicle not found")
        vehicle = Vehicle.model_validate(vehicle_row)

        row = await db.servicerecord.create(payload)
        invalidate_snapshot(user.id)
        try:
            await db.vehicle.update(
                where={"id": vehicle.id},
                data=vehicle_changes_for(data, vehicle, date.today()),
            )
        except DataSourceError as exc:
            # The record is stored; failing here would invite a duplicate on retry.
            logger.error(
                "Service record %s saved but vehicle %s was not rolled forward: %s",
                payload["id"],
                vehicle.id,
                exc,
            )
    except DataSourceError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    finally:
        await db.disconnect()

    logger.info("Service record %s added for vehicle %s", payload["id"], vehicle.id)
    return ServiceRecord.model_validate(row)
