"""
FieldMask constants for the Google Routes API.

Only the fields the optimizer reads are requested, which keeps
computeRoutes on the cheapest billing SKU.

Reference:
- Routes API: https://developers.google.com/maps/documentation/routes/compute_routes
"""

from typing import Dict, List

# computeRoutes: distance and duration only
ROUTES_DISTANCE_FIELDS = [
    "routes.duration",
    "routes.distanceMeters",
]


def get_fieldmask_header(fields: List[str]) -> Dict[str, str]:
    """
    Generate X-Goog-FieldMask header from field list.

    Example:
        >>> get_fieldmask_header(ROUTES_DISTANCE_FIELDS)
        {'X-Goog-FieldMask': 'routes.duration,routes.distanceMeters'}
    """
    return {"X-Goog-FieldMask": ",".join(fields)}


def get_routes_distance_mask() -> Dict[str, str]:
    """Get FieldMask header for Routes computeRoutes."""
    return get_fieldmask_header(ROUTES_DISTANCE_FIELDS)
