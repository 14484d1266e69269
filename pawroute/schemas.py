"""
Pydantic models for visit payloads coming from outside the process.

Shared by the HTTP actions and the command line so both validate visits
the same way before they become domain objects.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from .models import Coordinate, HomeBase, ServiceType, Visit


class LatLng(BaseModel):
    """Simple latitude/longitude container."""

    lat: float = Field(..., ge=-90, le=90, description="Latitude in decimal degrees")
    lng: float = Field(..., ge=-180, le=180, description="Longitude in decimal degrees")

    def to_coordinate(self) -> Coordinate:
        return Coordinate(lat=self.lat, lng=self.lng)

    @classmethod
    def from_coordinate(cls, coordinate: Coordinate) -> "LatLng":
        return cls(lat=coordinate.lat, lng=coordinate.lng)


class VisitIn(BaseModel):
    """A visit as submitted by a client."""

    id: Optional[UUID] = None
    client_name: str = Field(..., alias="clientName")
    pet_name: str = Field(..., alias="petName")
    address: str
    location: LatLng
    start_iso: str = Field(..., alias="startIso", description="Window start (ISO8601)")
    end_iso: str = Field(..., alias="endIso", description="Window end (ISO8601)")
    duration_min: float = Field(..., ge=0, alias="durationMin")
    service_type: str = Field(ServiceType.WALK.value, alias="serviceType")
    notes: Optional[str] = None
    is_completed: bool = Field(False, alias="isCompleted")

    model_config = {"populate_by_name": True}

    @field_validator("start_iso", "end_iso")
    @classmethod
    def _validate_isoformat(cls, value: str) -> str:
        try:
            datetime.fromisoformat(value)
        except ValueError as exc:
            raise ValueError("Invalid ISO8601 datetime string") from exc
        return value

    @field_validator("service_type")
    @classmethod
    def _validate_service_type(cls, value: str) -> str:
        known = [service.value for service in ServiceType]
        if value not in known:
            raise ValueError(f"Unknown service type {value!r}; expected one of {known}")
        return value

    @model_validator(mode="after")
    def _check_window(self) -> "VisitIn":
        if datetime.fromisoformat(self.end_iso) <= datetime.fromisoformat(self.start_iso):
            raise ValueError("endIso must be after startIso")
        return self

    def to_visit(self) -> Visit:
        extra = {"id": self.id} if self.id is not None else {}
        return Visit(
            client_name=self.client_name,
            pet_name=self.pet_name,
            address=self.address,
            coordinate=self.location.to_coordinate(),
            start_time=datetime.fromisoformat(self.start_iso),
            end_time=datetime.fromisoformat(self.end_iso),
            duration_minutes=self.duration_min,
            service_type=ServiceType(self.service_type),
            notes=self.notes,
            is_completed=self.is_completed,
            **extra,
        )


class HomeBaseIn(BaseModel):
    name: str = "Home Base"
    address: Optional[str] = None
    location: Optional[LatLng] = None
    use_current_location: bool = Field(False, alias="useCurrentLocation")
    is_set: bool = Field(True, alias="isSet")

    model_config = {"populate_by_name": True}

    def to_home_base(self) -> HomeBase:
        return HomeBase(
            name=self.name,
            address=self.address,
            coordinate=self.location.to_coordinate() if self.location else None,
            use_current_location=self.use_current_location,
            is_set=self.is_set,
        )
