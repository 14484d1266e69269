"""
pawroute.spatial: geographic estimates used when live directions are unavailable.
"""

from .geo import (
    EARTH_RADIUS_MILES,
    SECONDS_PER_MILE,
    estimate_distance_miles,
    estimate_travel_time,
    meters_to_miles,
)

__all__ = [
    "EARTH_RADIUS_MILES",
    "SECONDS_PER_MILE",
    "estimate_distance_miles",
    "estimate_travel_time",
    "meters_to_miles",
]
