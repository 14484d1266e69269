"""Closed-form distance and travel time estimates."""

from __future__ import annotations

import math

from ..models import Coordinate

EARTH_RADIUS_MILES = 3959.0

# ~30 mph average in town
SECONDS_PER_MILE = 120.0

METERS_TO_MILES = 0.000621371


def estimate_distance_miles(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(a.lat), math.radians(b.lat)
    d_phi = math.radians(b.lat - a.lat)
    d_lambda = math.radians(b.lng - a.lng)

    h = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return EARTH_RADIUS_MILES * c


def estimate_travel_time(distance_miles: float, seconds_per_mile: float = SECONDS_PER_MILE) -> float:
    """Rough driving time in seconds for a straight-line distance."""
    return distance_miles * seconds_per_mile


def meters_to_miles(meters: float) -> float:
    return meters * METERS_TO_MILES
