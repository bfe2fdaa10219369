"""Record selection by trailing time window and by technician."""

from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, List, Optional, Union

from dateutil.relativedelta import relativedelta

from servicecenter.common.enums import TimeWindow
from servicecenter.common.models import ServiceRecord

DateLike = Union[date, datetime]

ALL_TECHNICIANS = "all"

_WINDOW_DELTAS = {
    TimeWindow.WEEK: relativedelta(days=7),
    TimeWindow.MONTH: relativedelta(months=1),
    TimeWindow.QUARTER: relativedelta(months=3),
    TimeWindow.YEAR: relativedelta(years=1),
}


def as_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def window_start(window: TimeWindow | str, now: DateLike) -> Optional[date]:
    """
    First calendar day included in ``window``.

    Month and year windows step back by calendar months (clamped to the end of
    shorter months), not by a fixed number of days. ``all`` has no start.
    """
    window = TimeWindow(window)
    if window == TimeWindow.ALL:
        return None
    return as_date(now) - _WINDOW_DELTAS[window]


def filter_by_window(
    records: Iterable[ServiceRecord],
    window: TimeWindow | str,
    now: DateLike,
) -> List[ServiceRecord]:
    start = window_start(window, now)
    if start is None:
        return list(records)
    return [record for record in records if record.date >= start]


def filter_by_technician(
    records: Iterable[ServiceRecord],
    technician: Optional[str] = ALL_TECHNICIANS,
) -> List[ServiceRecord]:
    if not technician or technician == ALL_TECHNICIANS:
        return list(records)
    return [record for record in records if record.technician == technician]


def in_month(record: ServiceRecord, year: int, month: int) -> bool:
    return record.date.year == year and record.date.month == month


def list_technicians(records: Iterable[ServiceRecord]) -> List[str]:
    """Distinct technician names in first-seen order."""
    seen: dict[str, None] = {}
    for record in records:
        if record.technician:
            seen.setdefault(record.technician, None)
    return list(seen)
