"""
Deterministic time-window ordering used when the AI path is unavailable.

This module provides the fallback optimizer. It is used when:
- The external optimization model is disabled by configuration
- The model call fails for any reason (credentials, transport, bad envelope)

Visits are ordered by start time, with non-flexible visits ahead of
flexible ones that start at the same moment. Route metrics are computed
pairwise from live directions, and each pair that cannot be looked up is
replaced by a straight-line estimate. One failed lookup never fails the
whole route.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

import httpx
import pandas as pd

from ..errors import MissingCredential, RouteCalculationFailed
from ..models import Route, RouteOrigin, Visit
from ..spatial import estimate_distance_miles, estimate_travel_time
from .directions import DirectionsClient, RouteLeg

logger = logging.getLogger(__name__)

FALLBACK_REASONING = "Fallback optimization: Visits ordered by start time"

BASELINE_MILES_PER_VISIT = 10.0
DEFAULT_MAX_CONCURRENT_LOOKUPS = 4

ProgressCallback = Callable[[float], None]


@dataclass
class RouteMetrics:
    """Totals for an ordered list of visits."""

    total_distance: float
    """Miles, summed over consecutive pairs."""

    total_travel_time: float
    """Seconds of driving only; service time is not included."""

    num_legs: int
    num_estimated_legs: int
    """Legs that used the straight-line estimate instead of live directions."""


def order_by_time_window(visits: Sequence[Visit]) -> List[Visit]:
    """
    Sort visits by start time, non-flexible first on ties.

    The sort is stable, so visits with the same start and flexibility keep
    their input order.
    """
    if not visits:
        return []

    frame = pd.DataFrame({
        "position": range(len(visits)),
        "start": [visit.start_time for visit in visits],
        "flexible": [visit.is_flexible for visit in visits],
    })
    ordered = frame.sort_values(["start", "flexible", "position"], kind="mergesort")
    return [visits[int(i)] for i in ordered["position"]]


def calculate_efficiency(
    num_visits: int,
    total_distance: float,
    baseline_miles: float = BASELINE_MILES_PER_VISIT,
) -> float:
    """
    Score a route in [0, 1] from its average distance between visits.

    A route averaging ``baseline_miles`` or less between stops scores 1.0.
    """
    if num_visits <= 1 or total_distance <= 0:
        return 1.0
    avg_distance_per_visit = total_distance / (num_visits - 1)
    return max(0.0, min(1.0, baseline_miles / avg_distance_per_visit))


class FallbackOptimizer:
    """Time-window ordering with pairwise directions metrics."""

    def __init__(
        self,
        directions: Optional[DirectionsClient] = None,
        max_concurrent_lookups: int = DEFAULT_MAX_CONCURRENT_LOOKUPS,
        baseline_miles_per_visit: float = BASELINE_MILES_PER_VISIT,
        seconds_per_mile: float = 120.0,
    ):
        self.directions = directions
        self.max_concurrent_lookups = max(1, max_concurrent_lookups)
        self.baseline_miles_per_visit = baseline_miles_per_visit
        self.seconds_per_mile = seconds_per_mile

    def _estimate(self, origin: Visit, destination: Visit) -> RouteLeg:
        miles = estimate_distance_miles(origin.coordinate, destination.coordinate)
        return RouteLeg(
            distance_miles=miles,
            travel_time_seconds=estimate_travel_time(miles, self.seconds_per_mile),
        )

    async def _leg(
        self,
        semaphore: asyncio.Semaphore,
        origin: Visit,
        destination: Visit,
    ) -> Tuple[RouteLeg, bool]:
        if self.directions is None:
            return self._estimate(origin, destination), True

        async with semaphore:
            try:
                return await self.directions.route(origin.coordinate, destination.coordinate), False
            except (RouteCalculationFailed, MissingCredential, httpx.HTTPError, ValueError) as exc:
                logger.warning(
                    "Directions lookup %s -> %s failed (%s); using straight-line estimate",
                    origin.pet_name, destination.pet_name, exc,
                )
                return self._estimate(origin, destination), True

    async def compute_metrics(self, ordered: Sequence[Visit]) -> RouteMetrics:
        """
        Sum distance and drive time over consecutive visits.

        Lookups run concurrently up to ``max_concurrent_lookups``; results
        come back in pair order regardless of completion order.
        """
        if len(ordered) < 2:
            return RouteMetrics(total_distance=0.0, total_travel_time=0.0, num_legs=0, num_estimated_legs=0)

        semaphore = asyncio.Semaphore(self.max_concurrent_lookups)
        pairs = list(zip(ordered[:-1], ordered[1:]))
        results = await asyncio.gather(*(self._leg(semaphore, a, b) for a, b in pairs))

        return RouteMetrics(
            total_distance=sum(leg.distance_miles for leg, _ in results),
            total_travel_time=sum(leg.travel_time_seconds for leg, _ in results),
            num_legs=len(results),
            num_estimated_legs=sum(1 for _, estimated in results if estimated),
        )

    async def optimize(
        self,
        visits: Sequence[Visit],
        on_progress: Optional[ProgressCallback] = None,
    ) -> Route:
        """
        Order visits by time window and compute route metrics.

        A single visit short-circuits to zero distance/time and efficiency 1.0
        without any lookups.
        """
        if on_progress:
            on_progress(0.5)

        ordered = order_by_time_window(visits)

        if on_progress:
            on_progress(0.8)

        metrics = await self.compute_metrics(ordered)
        if metrics.num_estimated_legs:
            logger.info(
                "Fallback metrics used estimates for %d of %d legs",
                metrics.num_estimated_legs, metrics.num_legs,
            )

        efficiency = calculate_efficiency(
            len(ordered), metrics.total_distance, self.baseline_miles_per_visit
        )

        if on_progress:
            on_progress(1.0)

        return Route(
            visits=ordered,
            total_distance=metrics.total_distance,
            total_travel_time=metrics.total_travel_time,
            efficiency=efficiency,
            reasoning=FALLBACK_REASONING,
            feasible=True,
            origin=RouteOrigin.FALLBACK,
        )
