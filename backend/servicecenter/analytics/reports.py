"""Row-oriented report views used by the report tables, charts and CSV export."""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, Iterable, List, Sequence, Tuple

import pandas as pd

from servicecenter.analytics.grouping import MONTH_ABBR, customer_totals, group_by, technician_totals
from servicecenter.analytics.money import format_money, net_value, parts_total
from servicecenter.common.enums import ReportSort, ReportType
from servicecenter.common.models import ServiceRecord, Vehicle

UNKNOWN = "Unknown"
UNASSIGNED = "Unassigned"
NO_NOTES = "No notes"

REPORT_HEADERS: Dict[ReportType, List[str]] = {
    ReportType.REVENUE: ["Date", "Customer", "Service", "Technician", "Parts", "Labor", "Discount", "Total"],
    ReportType.SERVICES: ["Date", "Customer", "Vehicle", "Service", "Technician", "Status", "Notes"],
    ReportType.TECHNICIANS: ["Technician", "Services", "Parts Cost", "Labor Cost", "Discounts", "Total Revenue"],
    ReportType.CUSTOMERS: ["Customer", "Services", "Vehicles", "Total Spent", "Last Service"],
}


def format_report_date(day: date) -> str:
    return f"{MONTH_ABBR[day.month - 1]} {day.day:02d}, {day.year}"


def _short_date(day: date) -> str:
    return f"{MONTH_ABBR[day.month - 1]} {day.day:02d}"


def revenue_report(
    records: Iterable[ServiceRecord],
    vehicles: Iterable[Vehicle],
    sort: ReportSort | str = ReportSort.DATE,
) -> List[Dict[str, Any]]:
    by_id = {vehicle.id: vehicle for vehicle in vehicles}
    rows = []
    for record in records:
        vehicle = by_id.get(record.vehicle_id)
        rows.append(
            {
                "id": record.id,
                "date": record.date,
                "customer": vehicle.owner if vehicle else UNKNOWN,
                "service": record.type,
                "technician": record.technician or UNASSIGNED,
                "parts": parts_total(record),
                "labor": record.labor_cost,
                "discount": record.discount,
                "total": net_value(record),
            }
        )
    if ReportSort(sort) == ReportSort.VALUE:
        return sorted(rows, key=lambda row: row["total"], reverse=True)
    return sorted(rows, key=lambda row: row["date"], reverse=True)


def services_report(
    records: Iterable[ServiceRecord],
    vehicles: Iterable[Vehicle],
    sort: ReportSort | str = ReportSort.DATE,
) -> List[Dict[str, Any]]:
    by_id = {vehicle.id: vehicle for vehicle in vehicles}
    rows = []
    for record in records:
        vehicle = by_id.get(record.vehicle_id)
        rows.append(
            {
                "id": record.id,
                "date": record.date,
                "customer": vehicle.owner if vehicle else UNKNOWN,
                "vehicle": vehicle.display_name if vehicle else UNKNOWN,
                "service": record.type,
                "technician": record.technician or UNASSIGNED,
                # An odometer reading is the only completion signal a record carries.
                "status": "Completed" if record.kilometers > 0 else "Pending",
                "notes": record.notes or NO_NOTES,
            }
        )
    if ReportSort(sort) == ReportSort.VALUE:
        return sorted(rows, key=lambda row: row["customer"])
    return sorted(rows, key=lambda row: row["date"], reverse=True)


def technicians_report(records: Iterable[ServiceRecord]) -> List[Dict[str, Any]]:
    rows = [
        {
            "technician": name,
            "services": totals["services"],
            "parts": totals["parts"],
            "labor": totals["labor"],
            "discount": totals["discount"],
            "total": totals["labor"] + totals["parts"] - totals["discount"],
        }
        for name, totals in technician_totals(records).items()
    ]
    return sorted(rows, key=lambda row: row["total"], reverse=True)


def customers_report(
    records: Iterable[ServiceRecord],
    vehicles: Iterable[Vehicle],
) -> List[Dict[str, Any]]:
    rows = [
        {
            "customer": owner,
            "services": stats["services"],
            "vehicles": len(stats["vehicles"]),
            "total_spent": stats["total_spent"],
            "last_service": stats["last_service"],
        }
        for owner, stats in customer_totals(records, vehicles).items()
    ]
    return sorted(rows, key=lambda row: row["total_spent"], reverse=True)


def build_report(
    report_type: ReportType | str,
    records: Sequence[ServiceRecord],
    vehicles: Sequence[Vehicle],
    sort: ReportSort | str = ReportSort.DATE,
) -> List[Dict[str, Any]]:
    report_type = ReportType(report_type)
    if report_type == ReportType.REVENUE:
        return revenue_report(records, vehicles, sort)
    if report_type == ReportType.SERVICES:
        return services_report(records, vehicles, sort)
    if report_type == ReportType.TECHNICIANS:
        return technicians_report(records)
    return customers_report(records, vehicles)


def report_chart(report_type: ReportType | str, records: Sequence[ServiceRecord]) -> List[Dict[str, Any]]:
    """Chart companion data shown above each report table."""
    report_type = ReportType(report_type)
    if report_type == ReportType.REVENUE:
        by_day = group_by(records, lambda r: r.date)
        return [
            {"date": _short_date(day), "value": sum(net_value(r) for r in by_day[day])}
            for day in sorted(by_day)
        ]
    if report_type == ReportType.SERVICES:
        return [
            {"name": name, "count": len(group)}
            for name, group in group_by(records, lambda r: r.type).items()
        ]
    if report_type == ReportType.TECHNICIANS:
        return [
            {"name": name, "services": totals["services"], "revenue": totals["revenue"]}
            for name, totals in technician_totals(records).items()
        ]
    return []


def report_table(
    report_type: ReportType | str,
    rows: Iterable[Dict[str, Any]],
    currency_symbol: str = "",
) -> Tuple[List[str], List[List[str]]]:
    """Headers plus display strings for each row."""
    report_type = ReportType(report_type)
    money = lambda value: format_money(value, currency_symbol)  # noqa: E731

    table: List[List[str]] = []
    for row in rows:
        if report_type == ReportType.REVENUE:
            table.append([
                format_report_date(row["date"]),
                row["customer"],
                row["service"],
                row["technician"],
                money(row["parts"]),
                money(row["labor"]),
                money(row["discount"]),
                money(row["total"]),
            ])
        elif report_type == ReportType.SERVICES:
            table.append([
                format_report_date(row["date"]),
                row["customer"],
                row["vehicle"],
                row["service"],
                row["technician"],
                row["status"],
                row["notes"],
            ])
        elif report_type == ReportType.TECHNICIANS:
            table.append([
                row["technician"],
                str(row["services"]),
                money(row["parts"]),
                money(row["labor"]),
                money(row["discount"]),
                money(row["total"]),
            ])
        else:
            table.append([
                row["customer"],
                str(row["services"]),
                str(row["vehicles"]),
                money(row["total_spent"]),
                format_report_date(row["last_service"]),
            ])
    return REPORT_HEADERS[report_type], table


def report_frame(
    report_type: ReportType | str,
    rows: Iterable[Dict[str, Any]],
    currency_symbol: str = "",
) -> pd.DataFrame:
    headers, table = report_table(report_type, rows, currency_symbol)
    return pd.DataFrame(table, columns=headers)
