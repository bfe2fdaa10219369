from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable, List, Optional

from servicecenter.common.enums import VehicleSort, VehicleStatus
from servicecenter.common.models import Vehicle

RECENT_SERVICE_DAYS = 30


def _matches_search(vehicle: Vehicle, term: str) -> bool:
    term = term.lower()
    haystack = (vehicle.id, vehicle.owner, vehicle.make or "", vehicle.model or "", vehicle.model_name)
    return any(term in value.lower() for value in haystack)


def filter_vehicles(
    vehicles: Iterable[Vehicle],
    today: date,
    search: str = "",
    make: Optional[str] = None,
    service_filter: Optional[str] = None,
) -> List[Vehicle]:
    """Apply the vehicle list search box, manufacturer and service filters."""

    results = []
    for vehicle in vehicles:
        if search and not _matches_search(vehicle, search):
            continue
        if make and make != "all" and vehicle.make != make:
            continue
        if service_filter == "recent":
            cutoff = today - timedelta(days=RECENT_SERVICE_DAYS)
            if vehicle.last_service is None or vehicle.last_service < cutoff:
                continue
        elif service_filter in (VehicleStatus.OVERDUE.value, VehicleStatus.UPCOMING.value):
            if vehicle.status != service_filter:
                continue
        results.append(vehicle)
    return results


def _status_rank(vehicle: Vehicle) -> int:
    if vehicle.status == VehicleStatus.OVERDUE:
        return 0
    if vehicle.status == VehicleStatus.UPCOMING:
        return 1
    return 2


def sort_vehicles(vehicles: Iterable[Vehicle], sort: Optional[VehicleSort]) -> List[Vehicle]:
    vehicles = list(vehicles)
    # Vehicles without a date sort last.
    if sort == VehicleSort.NEXT_SERVICE_ASC:
        return sorted(vehicles, key=lambda v: v.next_service or date.max)
    if sort == VehicleSort.OVERDUE_PRIORITY:
        return sorted(vehicles, key=lambda v: (_status_rank(v), v.next_service or date.max))
    if sort == VehicleSort.LAST_SERVICE_DESC:
        return sorted(vehicles, key=lambda v: v.last_service or date.min, reverse=True)
    return vehicles
