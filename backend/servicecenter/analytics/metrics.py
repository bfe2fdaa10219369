"""
Composite dashboard metrics.

Every function here is pure: it only looks at the vehicles and service
records it is handed plus the explicit ``now``. Callers that want a
reproducible top-performer tie-break must pass records in a stable order
(the data source returns them newest first).
"""

from __future__ import annotations

from collections import Counter
from typing import Any, Dict, Iterable, List, Optional, Sequence

from servicecenter.analytics.grouping import (
    customer_totals,
    daily_series,
    group_by,
    monthly_series,
    service_type_distribution,
    technician_totals,
)
from servicecenter.analytics.money import net_value, round_half_up, total_net_value
from servicecenter.analytics.windows import (
    ALL_TECHNICIANS,
    DateLike,
    as_date,
    filter_by_technician,
    filter_by_window,
    in_month,
    list_technicians,
)
from servicecenter.common.enums import TimeWindow, VehicleStatus, VehicleType
from servicecenter.common.models import ServiceRecord, Vehicle

NO_PERFORMER = {"name": "N/A", "services": 0}


def average_service_value(records: Sequence[ServiceRecord]) -> float:
    if not records:
        return 0.0
    return total_net_value(records) / len(records)


def monthly_services(records: Iterable[ServiceRecord], now: DateLike) -> int:
    today = as_date(now)
    return sum(1 for r in records if in_month(r, today.year, today.month))


def repeat_business_rate(records: Iterable[ServiceRecord]) -> int:
    """Share of serviced vehicles with more than one record, as a whole percent."""
    per_vehicle = Counter(record.vehicle_id for record in records)
    if not per_vehicle:
        return 0
    repeat = sum(1 for count in per_vehicle.values() if count > 1)
    return round_half_up(repeat / len(per_vehicle) * 100)


def average_monthly_growth(monthly_revenue: Sequence[Dict[str, Any]]) -> float:
    """
    Mean month-over-month revenue change in percent, to two decimals.

    Transitions out of a zero-revenue month are skipped.
    """
    revenues = [entry["revenue"] for entry in monthly_revenue]
    rates = [
        (current - previous) / previous * 100
        for previous, current in zip(revenues, revenues[1:])
        if previous > 0
    ]
    if not rates:
        return 0.0
    return round_half_up(sum(rates) / len(rates), 2)


def customer_lifetime_value(
    records: Iterable[ServiceRecord],
    vehicles: Iterable[Vehicle],
) -> float:
    customers = customer_totals(records, vehicles)
    if not customers:
        return 0.0
    return sum(entry["total_spent"] for entry in customers.values()) / len(customers)


def top_performer(records: Iterable[ServiceRecord]) -> Dict[str, Any]:
    """Technician with the most records; on a tie the first one encountered wins."""
    top = dict(NO_PERFORMER)
    for name, group in group_by(records, lambda r: r.technician).items():
        if len(group) > top["services"]:
            top = {"name": name, "services": len(group)}
    return top


def technician_earnings(records: Iterable[ServiceRecord]) -> List[Dict[str, Any]]:
    earnings = [
        {"technician": name, "total_earnings": round_half_up(totals["revenue"])}
        for name, totals in technician_totals(records).items()
    ]
    return sorted(earnings, key=lambda row: row["total_earnings"], reverse=True)


def revenue_summary(records: Iterable[ServiceRecord], now: DateLike) -> Dict[str, float]:
    today = as_date(now)
    if today.month == 1:
        previous_year, previous_month = today.year - 1, 12
    else:
        previous_year, previous_month = today.year, today.month - 1

    total = monthly = previous = 0.0
    for record in records:
        value = net_value(record)
        total += value
        if in_month(record, today.year, today.month):
            monthly += value
        if in_month(record, previous_year, previous_month):
            previous += value

    if previous > 0:
        change = (monthly - previous) / previous * 100
    else:
        change = 100.0 if monthly > 0 else 0.0

    return {
        "total_revenue": total,
        "monthly_revenue": monthly,
        "previous_month_revenue": previous,
        "percentage_change": change,
    }


def fleet_stats(vehicles: Iterable[Vehicle]) -> Dict[str, Any]:
    vehicles = list(vehicles)
    by_type = Counter(vehicle.type for vehicle in vehicles)
    by_status = Counter(vehicle.status for vehicle in vehicles)
    return {
        "total_vehicles": len(vehicles),
        "by_type": {kind.value: by_type.get(kind, 0) for kind in VehicleType},
        "by_status": {status.value: by_status.get(status, 0) for status in VehicleStatus},
    }


def build_dashboard_summary(
    vehicles: Sequence[Vehicle],
    records: Sequence[ServiceRecord],
    call_record_count: int,
    now: DateLike,
    service_types: Sequence[str] = (),
) -> Dict[str, Any]:
    """Headline numbers for the home dashboard over the whole history."""
    revenue = revenue_summary(records, now)

    type_counts: Dict[str, int] = {name: 0 for name in service_types}
    for record in records:
        if record.type:
            type_counts[record.type] = type_counts.get(record.type, 0) + 1
    used_types = sorted(
        ({"name": name, "count": count} for name, count in type_counts.items() if count > 0),
        key=lambda item: item["count"],
        reverse=True,
    )

    performer = top_performer(records)
    return {
        "total_vehicles": len(vehicles),
        "total_service_records": len(records),
        "total_call_records": call_record_count,
        "total_revenue": revenue["total_revenue"],
        "monthly_revenue": revenue["monthly_revenue"],
        "monthly_services": monthly_services(records, now),
        "technicians": list_technicians(records),
        "service_types": used_types,
        "top_performing_technician": (
            {"name": performer["name"], "service_count": performer["services"]}
            if performer["services"]
            else None
        ),
    }


def build_analytics(
    vehicles: Sequence[Vehicle],
    records: Sequence[ServiceRecord],
    now: DateLike,
    window: TimeWindow | str = TimeWindow.MONTH,
    technician: Optional[str] = ALL_TECHNICIANS,
    palette: Sequence[str] = (),
) -> Dict[str, Any]:
    """The enhanced analytics bundle for one window/technician selection."""
    technicians = list_technicians(records)
    selected = filter_by_technician(filter_by_window(records, window, now), technician)

    monthly_revenue = monthly_series(selected, now)
    return {
        "metrics": {
            "average_service_value": round_half_up(average_service_value(selected)),
            "monthly_services": monthly_services(selected, now),
            "repeat_business_rate": repeat_business_rate(selected),
            "total_revenue": round_half_up(total_net_value(selected)),
            "avg_monthly_growth": average_monthly_growth(monthly_revenue),
        },
        "monthly_revenue": monthly_revenue,
        "service_types": service_type_distribution(selected, palette),
        "daily_services": daily_series(selected, now),
        "top_performer": top_performer(selected),
        "revenue_trend": [
            {"name": entry["month"], "revenue": entry["revenue"], "services": entry["services"]}
            for entry in monthly_revenue
        ],
        "technician_earnings": technician_earnings(selected),
        "customer_lifetime_value": round_half_up(customer_lifetime_value(selected, vehicles)),
        "technicians": technicians,
        "records_analyzed": len(selected),
    }
