# File: backend/servicecenter/analytics/routes.py
# Dashboard endpoints. Each one loads the caller's snapshot and hands it to the
# pure analytics functions; results are memoized per snapshot version.

from __future__ import annotations

from datetime import date
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException

from servicecenter.analytics import services
from servicecenter.analytics.metrics import build_analytics, build_dashboard_summary, revenue_summary
from servicecenter.analytics.windows import ALL_TECHNICIANS
from servicecenter.auth.dependencies import CurrentUser, get_current_user
from servicecenter.common.enums import TimeWindow
from servicecenter.core.config import settings
from servicecenter.db.client import DataSourceError

router = APIRouter(prefix="/analytics", tags=["analytics"])


async def load_user_snapshot(user: CurrentUser) -> services.Snapshot:
    try:
        return await services.load_snapshot(user.id)
    except DataSourceError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc


@router.get("/dashboard")
async def analytics_dashboard(
    window: TimeWindow = TimeWindow.MONTH,
    technician: str = ALL_TECHNICIANS,
    user: CurrentUser = Depends(get_current_user),
) -> Dict[str, Any]:
    snapshot = await load_user_snapshot(user)
    today = date.today()
    return services.cached_view(
        snapshot,
        "dashboard",
        (window.value, technician, today),
        lambda: build_analytics(
            snapshot.vehicles,
            snapshot.records,
            today,
            window=window,
            technician=technician,
            palette=settings.analytics.chart_colors,
        ),
    )


@router.get("/summary")
async def dashboard_summary(user: CurrentUser = Depends(get_current_user)) -> Dict[str, Any]:
    snapshot = await load_user_snapshot(user)
    today = date.today()
    return services.cached_view(
        snapshot,
        "summary",
        (today,),
        lambda: build_dashboard_summary(
            snapshot.vehicles,
            snapshot.records,
            snapshot.call_record_count,
            today,
            service_types=settings.business.service_types,
        ),
    )


@router.get("/revenue")
async def revenue(user: CurrentUser = Depends(get_current_user)) -> Dict[str, float]:
    snapshot = await load_user_snapshot(user)
    today = date.today()
    return services.cached_view(
        snapshot,
        "revenue",
        (today,),
        lambda: revenue_summary(snapshot.records, today),
    )
