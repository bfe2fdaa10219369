from datetime import date, datetime, timedelta, timezone
from typing import Optional

from servicecenter.common.enums import VehicleStatus


def compute_vehicle_status(
    next_service: Optional[date],
    today: date,
    upcoming_days: int = 30,
) -> VehicleStatus:
    """
    Derive the service status stored on a vehicle at write time.
    """
    if next_service is None:
        return VehicleStatus.ACTIVE
    if next_service < today:
        return VehicleStatus.OVERDUE
    if next_service <= today + timedelta(days=upcoming_days):
        return VehicleStatus.UPCOMING
    return VehicleStatus.ACTIVE


def days_until_service(next_service: Optional[date], today: date) -> Optional[int]:
    if next_service is None:
        return None
    return (next_service - today).days


def generate_service_record_id(now: Optional[datetime] = None) -> str:
    """Build an ``SRV`` id from the last six digits of the epoch milliseconds."""
    now = now or datetime.now(timezone.utc)
    millis = int(now.timestamp() * 1000)
    return f"SRV{str(millis)[-6:]}"
