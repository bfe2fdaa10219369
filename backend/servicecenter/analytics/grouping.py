"""Group-by reducers behind the dashboard charts and report tables."""

from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Any, Callable, Dict, Hashable, Iterable, List, Optional, Sequence, TypeVar

from dateutil.relativedelta import relativedelta

from servicecenter.analytics.money import net_value, parts_total
from servicecenter.analytics.windows import DateLike, as_date, in_month
from servicecenter.common.models import ServiceRecord, Vehicle

T = TypeVar("T")

# Fixed English names so chart labels do not depend on the process locale.
MONTH_ABBR = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
DAY_ABBR = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


def group_by(
    records: Iterable[ServiceRecord],
    key: Callable[[ServiceRecord], Optional[Hashable]],
) -> Dict[Hashable, List[ServiceRecord]]:
    """Bucket records by ``key`` in first-seen order; ``None`` keys are dropped."""
    groups: Dict[Hashable, List[ServiceRecord]] = {}
    for record in records:
        bucket = key(record)
        if bucket is None:
            continue
        groups.setdefault(bucket, []).append(record)
    return groups


def reduce_group(
    group: Iterable[ServiceRecord],
    reducer: Callable[[T, ServiceRecord], T],
    initial: T,
) -> T:
    value = initial
    for record in group:
        value = reducer(value, record)
    return value


def month_label(day: date) -> str:
    return f"{MONTH_ABBR[day.month - 1]} {day.year % 100:02d}"


def monthly_series(
    records: Sequence[ServiceRecord],
    now: DateLike,
    months: int = 6,
) -> List[Dict[str, Any]]:
    """Revenue and service count for the trailing ``months`` months, oldest first."""
    first_of_month = as_date(now).replace(day=1)
    series = []
    for offset in range(months - 1, -1, -1):
        month_start = first_of_month - relativedelta(months=offset)
        bucket = [r for r in records if in_month(r, month_start.year, month_start.month)]
        series.append(
            {
                "month": month_label(month_start),
                "revenue": reduce_group(bucket, lambda acc, r: acc + net_value(r), 0.0),
                "services": len(bucket),
            }
        )
    return series


def daily_series(
    records: Sequence[ServiceRecord],
    now: DateLike,
    days: int = 7,
) -> List[Dict[str, Any]]:
    """
    Service counts for today and the preceding ``days - 1`` days, oldest first.

    Buckets match on the exact calendar date, so each weekday label covers a
    single day only.
    """
    today = as_date(now)
    series = []
    for offset in range(days - 1, -1, -1):
        day = today - relativedelta(days=offset)
        series.append(
            {
                "day": DAY_ABBR[day.weekday()],
                "date": day,
                "services": sum(1 for r in records if r.date == day),
            }
        )
    return series


def service_type_distribution(
    records: Iterable[ServiceRecord],
    palette: Sequence[str],
) -> List[Dict[str, Any]]:
    counts = {name: len(group) for name, group in group_by(records, lambda r: r.type).items()}
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return [
        {"name": name, "value": value, "color": palette[index % len(palette)] if palette else None}
        for index, (name, value) in enumerate(ranked)
    ]


def technician_totals(records: Iterable[ServiceRecord]) -> Dict[str, Dict[str, float]]:
    """Per technician counts and money totals. Unassigned records are left out."""
    totals: Dict[str, Dict[str, float]] = {}
    for technician, group in group_by(records, lambda r: r.technician).items():
        totals[technician] = {
            "services": len(group),
            "parts": sum(parts_total(r) for r in group),
            "labor": sum(r.labor_cost for r in group),
            "discount": sum(r.discount for r in group),
            "revenue": sum(net_value(r) for r in group),
        }
    return totals


def customer_totals(
    records: Iterable[ServiceRecord],
    vehicles: Iterable[Vehicle],
) -> Dict[str, Dict[str, Any]]:
    """
    Per customer totals keyed by the vehicle owner name.

    There is no separate customer entity: two owners sharing a name are merged.
    Records whose vehicle cannot be resolved are skipped.
    """
    by_id = {vehicle.id: vehicle for vehicle in vehicles}
    stats: Dict[str, Dict[str, Any]] = defaultdict(
        lambda: {"services": 0, "vehicles": set(), "total_spent": 0.0, "last_service": None}
    )
    for record in records:
        vehicle = by_id.get(record.vehicle_id)
        if vehicle is None:
            continue
        entry = stats[vehicle.owner]
        entry["services"] += 1
        entry["vehicles"].add(vehicle.id)
        entry["total_spent"] += net_value(record)
        if entry["last_service"] is None or record.date > entry["last_service"]:
            entry["last_service"] = record.date
    return dict(stats)
