# File: backend/servicecenter/vehicles/routes.py
# Vehicle registration, editing, listing with filters, and per-vehicle service history.

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException

from servicecenter.analytics.metrics import fleet_stats
from servicecenter.analytics.services import invalidate_snapshot
from servicecenter.auth.dependencies import CurrentUser, get_current_user
from servicecenter.common.enums import VehicleSort
from servicecenter.common.models import ServiceRecord, Vehicle, VehicleCreate, VehicleUpdate
from servicecenter.common.utils import compute_vehicle_status
from servicecenter.core.config import settings
from servicecenter.db.client import DataSourceError, RecordNotFound, db

from . import services

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/vehicles", tags=["vehicles"])


def _check_vehicle_type(vehicle_type: str) -> None:
    if vehicle_type not in settings.business.vehicle_types:
        allowed = ", ".join(settings.business.vehicle_types)
        raise HTTPException(status_code=400, detail=f"Vehicle type must be one of: {allowed}")


async def _find_vehicle(vehicle_id: str, user: CurrentUser) -> Vehicle:
    row = await db.vehicle.find_unique(where={"id": vehicle_id, "user_id": user.id})
    if not row:
        raise HTTPException(status_code=404, detail="Vehicle not found")
    return Vehicle.model_validate(row)


@router.get("/")
async def list_vehicles(
    search: str = "",
    make: Optional[str] = None,
    service_filter: Optional[str] = None,
    sort: Optional[VehicleSort] = None,
    user: CurrentUser = Depends(get_current_user),
) -> Dict[str, Any]:
    await db.connect()
    try:
        rows = await db.vehicle.find_many(where={"user_id": user.id}, order={"created_at": "desc"})
    except DataSourceError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    finally:
        await db.disconnect()

    vehicles = [Vehicle.model_validate(row) for row in rows]
    filtered = services.filter_vehicles(
        vehicles, date.today(), search=search, make=make, service_filter=service_filter
    )
    return {
        "vehicles": services.sort_vehicles(filtered, sort),
        "total_count": len(filtered),
    }


@router.get("/stats")
async def vehicle_stats(user: CurrentUser = Depends(get_current_user)) -> Dict[str, Any]:
    await db.connect()
    try:
        rows = await db.vehicle.find_many(where={"user_id": user.id})
    except DataSourceError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    finally:
        await db.disconnect()
    return fleet_stats(Vehicle.model_validate(row) for row in rows)


@router.post("/", status_code=201)
async def add_vehicle(data: VehicleCreate, user: CurrentUser = Depends(get_current_user)) -> Vehicle:
    _check_vehicle_type(data.type.value)

    payload = data.model_dump(mode="json")
    if data.last_service_kilometers is None:
        payload["last_service_kilometers"] = data.current_kilometers
    payload["status"] = compute_vehicle_status(
        data.next_service, date.today(), settings.business.upcoming_window_days
    ).value
    payload["user_id"] = user.id

    await db.connect()
    try:
        if await db.vehicle.find_unique(where={"id": data.id}):
            raise HTTPException(status_code=409, detail="A vehicle with this id already exists")
        row = await db.vehicle.create(payload)
    except DataSourceError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    finally:
        await db.disconnect()

    invalidate_snapshot(user.id)
    logger.info("Registered vehicle %s for %s", data.id, user.id)
    return Vehicle.model_validate(row)


@router.get("/{vehicle_id}")
async def get_vehicle(vehicle_id: str, user: CurrentUser = Depends(get_current_user)) -> Vehicle:
    await db.connect()
    try:
        return await _find_vehicle(vehicle_id, user)
    except DataSourceError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    finally:
        await db.disconnect()


@router.patch("/{vehicle_id}")
async def update_vehicle(
    vehicle_id: str,
    data: VehicleUpdate,
    user: CurrentUser = Depends(get_current_user),
) -> Vehicle:
    changes = data.model_dump(mode="json", exclude_unset=True)
    if "type" in changes:
        _check_vehicle_type(changes["type"])
    if "next_service" in changes:
        changes["status"] = compute_vehicle_status(
            data.next_service, date.today(), settings.business.upcoming_window_days
        ).value
    changes["updated_at"] = datetime.now(timezone.utc).isoformat()

    await db.connect()
    try:
        await _find_vehicle(vehicle_id, user)
        row = await db.vehicle.update(where={"id": vehicle_id}, data=changes)
    except RecordNotFound as exc:
        raise HTTPException(status_code=404, detail="Vehicle not found") from exc
    except DataSourceError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    finally:
        await db.disconnect()

    invalidate_snapshot(user.id)
    logger.info("Updated vehicle %s", vehicle_id)
    return Vehicle.model_validate(row)


@router.delete("/{vehicle_id}")
async def delete_vehicle(vehicle_id: str, user: CurrentUser = Depends(get_current_user)) -> Dict[str, str]:
    await db.connect()
    try:
        await db.vehicle.delete(where={"id": vehicle_id, "user_id": user.id})
    except RecordNotFound as exc:
        raise HTTPException(status_code=404, detail="Vehicle not found") from exc
    except DataSourceError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    finally:
        await db.disconnect()

    invalidate_snapshot(user.id)
    logger.info("Deleted vehicle %s", vehicle_id)
    return {"message": "Vehicle deleted"}


@router.get("/{vehicle_id}/history")
async def get_vehicle_history(vehicle_id: str, user: CurrentUser = Depends(get_current_user)) -> Dict[str, Any]:
    await db.connect()
    try:
        vehicle = await _find_vehicle(vehicle_id, user)
        rows = await db.servicerecord.find_many(
            where={"vehicle_id": vehicle_id},
            order={"date": "desc"},
        )
    except DataSourceError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    finally:
        await db.disconnect()

    return {
        "vehicle": vehicle,
        "service_records": [ServiceRecord.model_validate(row) for row in rows],
    }
