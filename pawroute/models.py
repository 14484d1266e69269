"""
Domain models for the route optimizer.

Visits, home bases and routes are immutable value objects. Each
optimization pass works on its own list of visits and produces a brand
new Route; nothing in here is ever mutated in place.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import List, Optional, Sequence
from uuid import UUID, uuid4


def format_clock(value: datetime) -> str:
    """Format a timestamp as a 12-hour clock string, e.g. ``9:05 AM``."""
    hour = value.hour % 12 or 12
    suffix = "AM" if value.hour < 12 else "PM"
    return f"{hour}:{value.minute:02d} {suffix}"


class ServiceType(Enum):
    """Closed set of pet-care service categories."""
    WALK = "Dog Walk"
    SITTING = "Pet Sitting"
    DROP_IN = "Drop-in Visit"
    OVERNIGHT = "Overnight"

    @property
    def icon(self) -> str:
        return {
            ServiceType.WALK: "figure.walk",
            ServiceType.SITTING: "house.fill",
            ServiceType.DROP_IN: "clock",
            ServiceType.OVERNIGHT: "moon.fill",
        }[self]

    @property
    def color(self) -> str:
        return {
            ServiceType.WALK: "blue",
            ServiceType.SITTING: "green",
            ServiceType.DROP_IN: "orange",
            ServiceType.OVERNIGHT: "purple",
        }[self]


class RouteOrigin(Enum):
    """Which path produced a route.

    AI only when the model's reply was interpreted; everything else,
    including a lone visit returned untouched, is FALLBACK.
    """

    AI = "ai"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class Coordinate:
    """Geographic coordinate in decimal degrees."""
    lat: float
    lng: float


@dataclass(frozen=True)
class Visit:
    """A scheduled pet-care appointment."""

    client_name: str
    pet_name: str
    address: str
    coordinate: Coordinate
    start_time: datetime
    end_time: datetime
    duration_minutes: float
    service_type: ServiceType = ServiceType.WALK
    notes: Optional[str] = None
    is_completed: bool = False
    id: UUID = field(default_factory=uuid4)

    @property
    def window_minutes(self) -> float:
        """Length of the time window in minutes."""
        return (self.end_time - self.start_time).total_seconds() / 60

    @property
    def is_flexible(self) -> bool:
        """True when the visit could start at more than one offset."""
        return self.window_minutes > self.duration_minutes

    @property
    def has_tight_window(self) -> bool:
        """True when the service cannot finish inside its own window."""
        return self.window_minutes < self.duration_minutes

    @property
    def latest_start(self) -> datetime:
        """Latest start that still finishes by the end of the window."""
        latest = self.end_time - timedelta(minutes=self.duration_minutes)
        return max(latest, self.start_time)

    @property
    def time_window_label(self) -> str:
        return f"{format_clock(self.start_time)} - {format_clock(self.end_time)}"

    @property
    def display_name(self) -> str:
        return f"{self.pet_name} ({self.client_name})"


@dataclass(frozen=True)
class HomeBase:
    """Optional start/end point of a day's route."""

    name: str = "Home Base"
    address: Optional[str] = None
    coordinate: Optional[Coordinate] = None
    use_current_location: bool = False
    is_set: bool = False
    id: UUID = field(default_factory=uuid4)

    @classmethod
    def configured(cls, name: str, address: str, coordinate: Coordinate) -> "HomeBase":
        """Home base with a fixed, resolved address."""
        return cls(name=name, address=address, coordinate=coordinate, is_set=True)

    @property
    def display_address(self) -> str:
        if self.use_current_location:
            return "Using current location"
        if self.address:
            return self.address
        return "No address set"

    @property
    def is_ready(self) -> bool:
        """Only ready home bases take part in optimization."""
        return self.is_set and self.coordinate is not None


@dataclass(frozen=True)
class OverlappingTimeWindow:
    """Visits that share exactly the same time window."""

    start_time: datetime
    end_time: datetime
    visits: List[Visit]

    @property
    def label(self) -> str:
        return f"{format_clock(self.start_time)} - {format_clock(self.end_time)}"

    @property
    def pet_names(self) -> List[str]:
        return [visit.pet_name for visit in self.visits]


@dataclass(frozen=True)
class Route:
    """
    Ordered route produced by the optimizer.

    The order of ``visits`` is the plan. ``total_travel_time`` is in
    seconds and ``total_distance`` in miles. When ``feasible`` is False,
    ``visits`` is a strict subset of the input and ``reasoning`` names the
    visits that could not be placed.
    """

    visits: List[Visit]
    total_distance: float
    total_travel_time: float
    efficiency: float
    created_at: datetime = field(default_factory=datetime.now)
    reasoning: Optional[str] = None
    feasible: bool = True
    origin: RouteOrigin = RouteOrigin.FALLBACK
    id: UUID = field(default_factory=uuid4)

    @property
    def formatted_distance(self) -> str:
        return f"{self.total_distance:.1f} mi"

    @property
    def formatted_travel_time(self) -> str:
        seconds = int(self.total_travel_time)
        hours = seconds // 3600
        minutes = (seconds % 3600) // 60
        if hours > 0:
            return f"{hours}h {minutes}m"
        return f"{minutes}m"

    @property
    def efficiency_rating(self) -> str:
        if self.efficiency >= 0.8:
            return "green"
        if self.efficiency >= 0.6:
            return "yellow"
        return "red"

    def excluded_visits(self, requested: Sequence[Visit]) -> List[Visit]:
        """Visits from ``requested`` that are not part of this route."""
        placed = {visit.id for visit in self.visits}
        return [visit for visit in requested if visit.id not in placed]
