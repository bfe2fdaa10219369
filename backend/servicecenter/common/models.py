from __future__ import annotations

import datetime as dt
import json
import logging
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator

from servicecenter.common.enums import VehicleStatus, VehicleType

logger = logging.getLogger(__name__)


def _coerce_date(value: Any) -> Any:
    # Timestamp columns come back as full ISO strings; only the calendar day matters.
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, str) and len(value) > 10:
        return value[:10]
    return value


class Part(BaseModel):
    name: str = ""
    cost: float = 0

    @field_validator("name", mode="before")
    @classmethod
    def _default_name(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("cost", mode="before")
    @classmethod
    def _default_cost(cls, value: Any) -> Any:
        return 0 if value is None else value


class Vehicle(BaseModel):
    id: str
    type: VehicleType = VehicleType.BIKE
    make: Optional[str] = None
    model: Optional[str] = None
    bike_model: Optional[str] = None
    car_model: Optional[str] = None
    year: Optional[int] = None
    engine_capacity: Optional[float] = None
    owner: str = ""
    phone: str = ""
    last_service: Optional[dt.date] = None
    next_service: Optional[dt.date] = None
    last_service_kilometers: int = 0
    current_kilometers: int = 0
    status: VehicleStatus = VehicleStatus.ACTIVE
    user_id: Optional[str] = None
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None

    @field_validator("last_service", "next_service", mode="before")
    @classmethod
    def _parse_dates(cls, value: Any) -> Any:
        return _coerce_date(value)

    @field_validator("last_service_kilometers", "current_kilometers", mode="before")
    @classmethod
    def _default_kilometers(cls, value: Any) -> Any:
        return 0 if value is None else value

    @field_validator("owner", "phone", mode="before")
    @classmethod
    def _default_text(cls, value: Any) -> Any:
        return "" if value is None else value

    @property
    def model_name(self) -> str:
        name = self.bike_model or self.car_model
        if name:
            return name
        return " ".join(part for part in (self.make, self.model) if part)

    @property
    def display_name(self) -> str:
        name = self.model_name or "Unknown"
        return f"{name} ({self.year})" if self.year else name


class ServiceRecord(BaseModel):
    id: str
    vehicle_id: str
    date: dt.date
    type: str = ""
    parts: List[Part] = Field(default_factory=list)
    labor_cost: float = 0
    discount: float = 0
    technician: Optional[str] = None
    notes: str = ""
    has_coupon: bool = False
    coupon_type: Optional[str] = None
    kilometers: int = 0
    service_center_name: Optional[str] = None
    user_id: Optional[str] = None

    @field_validator("date", mode="before")
    @classmethod
    def _parse_date(cls, value: Any) -> Any:
        return _coerce_date(value)

    @field_validator("parts", mode="before")
    @classmethod
    def _parse_parts(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except json.JSONDecodeError:
                logger.warning("Failed to parse parts JSON string: %r", value)
                return []
        if not isinstance(value, list):
            return []
        return value

    @field_validator("labor_cost", "discount", "kilometers", mode="before")
    @classmethod
    def _default_zero(cls, value: Any) -> Any:
        return 0 if value is None else value

    @field_validator("technician", mode="before")
    @classmethod
    def _blank_technician(cls, value: Any) -> Any:
        return value or None

    @field_validator("notes", mode="before")
    @classmethod
    def _default_notes(cls, value: Any) -> Any:
        return value or ""

    @field_validator("has_coupon", mode="before")
    @classmethod
    def _default_coupon(cls, value: Any) -> Any:
        return bool(value)


class CallRecord(BaseModel):
    id: Optional[str] = None
    vehicle_id: str
    called: bool = False
    call_date: Optional[dt.datetime] = None
    notes: Optional[str] = None


class VehicleCreate(BaseModel):
    id: str
    type: VehicleType
    make: Optional[str] = None
    model: Optional[str] = None
    bike_model: Optional[str] = None
    car_model: Optional[str] = None
    year: int
    engine_capacity: Optional[float] = None
    owner: str
    phone: str = ""
    last_service: Optional[dt.date] = None
    next_service: Optional[dt.date] = None
    last_service_kilometers: Optional[int] = Field(default=None, ge=0)
    current_kilometers: int = Field(default=0, ge=0)


class VehicleUpdate(BaseModel):
    type: Optional[VehicleType] = None
    make: Optional[str] = None
    model: Optional[str] = None
    bike_model: Optional[str] = None
    car_model: Optional[str] = None
    year: Optional[int] = None
    engine_capacity: Optional[float] = None
    owner: Optional[str] = None
    phone: Optional[str] = None
    last_service: Optional[dt.date] = None
    next_service: Optional[dt.date] = None
    last_service_kilometers: Optional[int] = Field(default=None, ge=0)
    current_kilometers: Optional[int] = Field(default=None, ge=0)


class ServiceRecordCreate(BaseModel):
    vehicle_id: str
    date: dt.date
    type: str
    parts: List[Part] = Field(default_factory=list)
    labor_cost: float = Field(default=0, ge=0)
    discount: float = Field(default=0, ge=0)
    technician: Optional[str] = None
    notes: str = ""
    has_coupon: bool = False
    coupon_type: Optional[str] = None
    kilometers: int = Field(default=0, ge=0)
    next_service: Optional[dt.date] = None
    service_center_name: Optional[str] = None

    @field_validator("parts")
    @classmethod
    def _unique_part_names(cls, parts: List[Part]) -> List[Part]:
        names = [part.name for part in parts]
        if len(names) != len(set(names)):
            raise ValueError("Part names must be unique within a service record")
        return parts


class CallRecordUpsert(BaseModel):
    called: bool
    notes: Optional[str] = None
