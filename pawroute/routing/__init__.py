"""Routing utilities: live directions, overlap detection and the fallback optimizer."""

from .directions import (
    DirectionsClient,
    RouteLeg,
    TravelMode,
    exponential_backoff_with_jitter,
    parse_duration_seconds,
    ROUTES_URL,
)

from .overlap import (
    detect_overlapping_windows,
    detect_tight_windows,
)

from .fallback import (
    FallbackOptimizer,
    RouteMetrics,
    order_by_time_window,
    calculate_efficiency,
    FALLBACK_REASONING,
    BASELINE_MILES_PER_VISIT,
)

__all__ = [
    # Directions
    "DirectionsClient",
    "RouteLeg",
    "TravelMode",
    "exponential_backoff_with_jitter",
    "parse_duration_seconds",
    "ROUTES_URL",

    # Overlaps
    "detect_overlapping_windows",
    "detect_tight_windows",

    # Fallback
    "FallbackOptimizer",
    "RouteMetrics",
    "order_by_time_window",
    "calculate_efficiency",
    "FALLBACK_REASONING",
    "BASELINE_MILES_PER_VISIT",
]
