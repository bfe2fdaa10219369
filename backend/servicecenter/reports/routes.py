# backend/servicecenter/reports/routes.py
# Tabular reports (revenue, services, technicians, customers) with CSV export.

from __future__ import annotations

from datetime import date
from io import StringIO
from typing import Any, Dict

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from servicecenter.analytics import services
from servicecenter.analytics.reports import build_report, report_chart, report_frame, report_table
from servicecenter.analytics.routes import load_user_snapshot
from servicecenter.analytics.windows import filter_by_window
from servicecenter.auth.dependencies import CurrentUser, get_current_user
from servicecenter.common.enums import ReportSort, ReportType, TimeWindow
from servicecenter.core.config import settings

router = APIRouter(prefix="/reports", tags=["reports"])


def _report_rows(snapshot: services.Snapshot, report_type: ReportType, window: TimeWindow, sort: ReportSort):
    today = date.today()

    def build():
        records = filter_by_window(snapshot.records, window, today)
        return records, build_report(report_type, records, snapshot.vehicles, sort)

    return services.cached_view(
        snapshot,
        "report",
        (report_type.value, window.value, sort.value, today),
        build,
    )


# Export a report as CSV
@router.get("/{report_type}.csv")
async def export_report_csv(
    report_type: ReportType,
    window: TimeWindow = TimeWindow.MONTH,
    sort: ReportSort = ReportSort.DATE,
    user: CurrentUser = Depends(get_current_user),
):
    snapshot = await load_user_snapshot(user)
    _, rows = _report_rows(snapshot, report_type, window, sort)

    df = report_frame(report_type, rows, settings.business.currency_symbol)
    stream = StringIO()
    df.to_csv(stream, index=False)
    stream.seek(0)
    filename = f"{report_type.value}_report_{window.value}_{date.today().isoformat()}.csv"
    return StreamingResponse(stream, media_type="text/csv", headers={
        "Content-Disposition": f"attachment; filename={filename}"
    })


# Report rows plus display table and chart data
@router.get("/{report_type}")
async def get_report(
    report_type: ReportType,
    window: TimeWindow = TimeWindow.MONTH,
    sort: ReportSort = ReportSort.DATE,
    user: CurrentUser = Depends(get_current_user),
) -> Dict[str, Any]:
    snapshot = await load_user_snapshot(user)
    records, rows = _report_rows(snapshot, report_type, window, sort)
    headers, table = report_table(report_type, rows, settings.business.currency_symbol)

    return {
        "report_type": report_type.value,
        "window": window.value,
        "sort": sort.value,
        "records_analyzed": len(records),
        "rows": rows,
        "headers": headers,
        "table": table,
        "chart": report_chart(report_type, records),
    }
