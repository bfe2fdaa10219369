# File: backend/servicecenter/calls/routes.py
# Follow-up calls to owners whose vehicles are overdue or due for service soon.

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException

from servicecenter.analytics.services import fetch_call_records, fetch_vehicles, invalidate_snapshot
from servicecenter.auth.dependencies import CurrentUser, get_current_user
from servicecenter.common.models import CallRecord, CallRecordUpsert
from servicecenter.core.config import settings
from servicecenter.db.client import DataSourceError, db

from . import services

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/calls", tags=["calls"])


@router.get("/records")
async def list_call_records(user: CurrentUser = Depends(get_current_user)) -> List[CallRecord]:
    await db.connect()
    try:
        return await fetch_call_records(user.id)
    except DataSourceError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    finally:
        await db.disconnect()


@router.get("/due")
async def vehicles_due_for_calls(user: CurrentUser = Depends(get_current_user)) -> Dict[str, Any]:
    await db.connect()
    try:
        vehicles = await fetch_vehicles(user.id)
        call_records = await fetch_call_records(user.id)
    except DataSourceError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    finally:
        await db.disconnect()

    return services.build_call_list(
        vehicles, call_records, date.today(), settings.business.call_window_days
    )


@router.put("/{vehicle_id}")
async def update_call_status(
    vehicle_id: str,
    data: CallRecordUpsert,
    user: CurrentUser = Depends(get_current_user),
) -> CallRecord:
    await db.connect()
    try:
        record = await services.upsert_call_record(user.id, vehicle_id, data.called, data.notes)
    except DataSourceError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    finally:
        await db.disconnect()

    invalidate_snapshot(user.id)
    logger.info("Call status for vehicle %s set to %s", vehicle_id, data.called)
    return record
