"""
Pytest configuration and shared fixtures for pawroute tests.

This file provides:
- Visit factories and sample schedules
- Fake optimization model and fake directions client
- Dummy API keys so nothing reads a developer's real credentials
"""

from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest

from pawroute.errors import RouteCalculationFailed
from pawroute.models import Coordinate, HomeBase, ServiceType, Visit
from pawroute.routing.directions import RouteLeg


# ==============================================================================
# Environment
# ==============================================================================

@pytest.fixture(autouse=True)
def dummy_api_keys(monkeypatch):
    """Every test starts with placeholder credentials."""
    monkeypatch.setenv("GEMINI_API_KEY", "test-gemini-key")
    monkeypatch.setenv("GOOGLE_MAPS_API_KEY", "test-maps-key")
    monkeypatch.delenv("PAWROUTE_PROFILE", raising=False)


# ==============================================================================
# Visits
# ==============================================================================

DAY = datetime(2024, 5, 6)

AUSTIN_POINTS = {
    "downtown": Coordinate(lat=30.2672, lng=-97.7431),
    "hyde_park": Coordinate(lat=30.3050, lng=-97.7290),
    "zilker": Coordinate(lat=30.2669, lng=-97.7729),
    "mueller": Coordinate(lat=30.2986, lng=-97.7056),
    "south_congress": Coordinate(lat=30.2456, lng=-97.7497),
}


def _at(hour: int, minute: int = 0) -> datetime:
    return DAY.replace(hour=hour, minute=minute)


@pytest.fixture
def make_visit() -> Callable[..., Visit]:
    """Factory for visits on a fixed day; times are (hour, minute) tuples."""

    def factory(
        pet_name: str,
        client_name: str,
        start: Tuple[int, int],
        end: Tuple[int, int],
        duration: float = 30,
        place: str = "downtown",
        service_type: ServiceType = ServiceType.WALK,
        notes: Optional[str] = None,
    ) -> Visit:
        return Visit(
            client_name=client_name,
            pet_name=pet_name,
            address=f"{place.replace('_', ' ').title()}, Austin, TX",
            coordinate=AUSTIN_POINTS[place],
            start_time=_at(*start),
            end_time=_at(*end),
            duration_minutes=duration,
            service_type=service_type,
            notes=notes,
        )

    return factory


@pytest.fixture
def sample_visits(make_visit) -> List[Visit]:
    """Three visits with disjoint windows, already in chronological order."""
    return [
        make_visit("Buddy", "Alice Smith", (9, 0), (10, 0), place="downtown"),
        make_visit("Luna", "Bob Jones", (11, 30), (12, 30), place="hyde_park",
                   service_type=ServiceType.DROP_IN),
        make_visit("Max", "Carol White", (14, 0), (15, 0), place="zilker",
                   service_type=ServiceType.SITTING, notes="Feed after walk"),
    ]


@pytest.fixture
def overlapping_visits(make_visit) -> List[Visit]:
    """Two visits sharing 7:00-8:00 AM plus one later visit."""
    return [
        make_visit("Rex", "Dana Lee", (7, 0), (8, 0), place="mueller"),
        make_visit("Bella", "Evan Park", (7, 0), (8, 0), place="hyde_park"),
        make_visit("Coco", "Fay Kim", (9, 0), (10, 0), place="south_congress"),
    ]


@pytest.fixture
def home_base() -> HomeBase:
    return HomeBase.configured(
        name="Studio",
        address="500 E 5th St, Austin, TX",
        coordinate=AUSTIN_POINTS["downtown"],
    )


# ==============================================================================
# Fakes
# ==============================================================================

class FakeModel:
    """Optimization model stub returning a canned reply or raising."""

    def __init__(self, reply: str = "", error: Optional[Exception] = None):
        self.reply = reply
        self.error = error
        self.prompts: List[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


class FakeDirections:
    """Directions stub; pairs listed in ``failing`` raise RouteCalculationFailed."""

    def __init__(self, leg: RouteLeg = RouteLeg(distance_miles=3.0, travel_time_seconds=600.0),
                 failing: Optional[List[Tuple[str, str]]] = None):
        self.leg = leg
        self.failing = set(failing or [])
        self.calls: List[Tuple[Coordinate, Coordinate]] = []

    async def route(self, origin: Coordinate, destination: Coordinate) -> RouteLeg:
        self.calls.append((origin, destination))
        names = {value: key for key, value in AUSTIN_POINTS.items()}
        if (names.get(origin), names.get(destination)) in self.failing:
            raise RouteCalculationFailed()
        return self.leg


@pytest.fixture
def fake_model_factory() -> Callable[..., FakeModel]:
    return FakeModel


@pytest.fixture
def fake_directions() -> FakeDirections:
    return FakeDirections()


@pytest.fixture
def fake_directions_factory() -> Callable[..., FakeDirections]:
    return FakeDirections


def gemini_payload(text: str) -> Dict[str, Any]:
    """Wrap reply text in a generateContent response envelope."""
    return {"candidates": [{"content": {"parts": [{"text": text}], "role": "model"}}]}


@pytest.fixture
def gemini_envelope() -> Callable[[str], Dict[str, Any]]:
    return gemini_payload
