"""Pydantic models for the route optimization HTTP actions."""

from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from pawroute.models import OverlappingTimeWindow, Route, Visit
from pawroute.schemas import HomeBaseIn, LatLng, VisitIn
from pawroute.tools.config_loader import PROFILE_NAME_PATTERN


class OptimizeRouteRequest(BaseModel):
    visits: List[VisitIn] = Field(default_factory=list)
    home_base: Optional[HomeBaseIn] = Field(default=None, alias="homeBase")
    profile: Optional[str] = Field(
        default=None, pattern=PROFILE_NAME_PATTERN, description="Optimizer profile name"
    )

    model_config = {"populate_by_name": True}


class DetectOverlapsRequest(BaseModel):
    visits: List[VisitIn] = Field(default_factory=list)


class RouteStop(BaseModel):
    """One visit in an optimized route."""

    id: UUID
    pet_name: str = Field(..., alias="petName")
    client_name: str = Field(..., alias="clientName")
    address: str
    location: LatLng
    start_iso: str = Field(..., alias="startIso")
    end_iso: str = Field(..., alias="endIso")
    duration_min: float = Field(..., alias="durationMin")
    service_type: str = Field(..., alias="serviceType")
    time_window: str = Field(..., alias="timeWindow")

    model_config = {"populate_by_name": True}

    @classmethod
    def from_visit(cls, visit: Visit) -> "RouteStop":
        return cls(
            id=visit.id,
            pet_name=visit.pet_name,
            client_name=visit.client_name,
            address=visit.address,
            location=LatLng.from_coordinate(visit.coordinate),
            start_iso=visit.start_time.isoformat(),
            end_iso=visit.end_time.isoformat(),
            duration_min=visit.duration_minutes,
            service_type=visit.service_type.value,
            time_window=visit.time_window_label,
        )


class RouteResponse(BaseModel):
    id: UUID
    stops: List[RouteStop]
    excluded: List[RouteStop] = Field(default_factory=list)
    total_distance_miles: float = Field(..., alias="totalDistanceMiles")
    total_travel_time_sec: float = Field(..., alias="totalTravelTimeSec")
    efficiency: float
    formatted_distance: str = Field(..., alias="formattedDistance")
    formatted_travel_time: str = Field(..., alias="formattedTravelTime")
    efficiency_rating: str = Field(..., alias="efficiencyRating")
    feasible: bool
    origin: str
    reasoning: Optional[str] = None
    created_at: str = Field(..., alias="createdAt")

    model_config = {"populate_by_name": True}

    @classmethod
    def from_route(cls, route: Route, requested: Optional[List[Visit]] = None) -> "RouteResponse":
        excluded = route.excluded_visits(requested) if requested else []
        return cls(
            id=route.id,
            stops=[RouteStop.from_visit(visit) for visit in route.visits],
            excluded=[RouteStop.from_visit(visit) for visit in excluded],
            total_distance_miles=route.total_distance,
            total_travel_time_sec=route.total_travel_time,
            efficiency=route.efficiency,
            formatted_distance=route.formatted_distance,
            formatted_travel_time=route.formatted_travel_time,
            efficiency_rating=route.efficiency_rating,
            feasible=route.feasible,
            origin=route.origin.value,
            reasoning=route.reasoning,
            created_at=route.created_at.isoformat(),
        )


class OverlapGroup(BaseModel):
    start_iso: str = Field(..., alias="startIso")
    end_iso: str = Field(..., alias="endIso")
    label: str
    visit_ids: List[UUID] = Field(..., alias="visitIds")
    pet_names: List[str] = Field(..., alias="petNames")

    model_config = {"populate_by_name": True}

    @classmethod
    def from_window(cls, window: OverlappingTimeWindow) -> "OverlapGroup":
        return cls(
            start_iso=window.start_time.isoformat(),
            end_iso=window.end_time.isoformat(),
            label=window.label,
            visit_ids=[visit.id for visit in window.visits],
            pet_names=window.pet_names,
        )


class DetectOverlapsResponse(BaseModel):
    overlaps: List[OverlapGroup]
    tight_window_ids: List[UUID] = Field(default_factory=list, alias="tightWindowIds")

    model_config = {"populate_by_name": True}
