"""
Live driving directions between two coordinates.

Wraps the Google Routes API ``computeRoutes`` endpoint and converts the
provider's meters/duration into miles/seconds. Transient failures (5xx,
connection errors) are retried here with exponential backoff and jitter;
callers never retry. Callers MUST still be prepared for every call to fail
and substitute a geographic estimate.
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

import httpx

from ..errors import MissingCredential, RouteCalculationFailed
from ..models import Coordinate
from ..spatial import meters_to_miles
from ..tools.config_loader import GOOGLE_MAPS_KEY_ENV, get_secret
from ..tools.fields import get_routes_distance_mask

logger = logging.getLogger(__name__)

ROUTES_URL = "https://routes.googleapis.com/directions/v2:computeRoutes"

# Retry configuration
DEFAULT_MAX_RETRIES = 2
BACKOFF_BASE = 2
BACKOFF_MAX = 8


class TravelMode(Enum):
    """Supported travel modes for Routes API."""
    DRIVE = "DRIVE"
    TWO_WHEELER = "TWO_WHEELER"
    BICYCLE = "BICYCLE"
    WALK = "WALK"


@dataclass(frozen=True)
class RouteLeg:
    """Distance and travel time for one origin/destination pair."""
    distance_miles: float
    travel_time_seconds: float


def exponential_backoff_with_jitter(attempt: int) -> float:
    """
    Calculate backoff time with exponential growth and jitter.

    Formula: min(BACKOFF_BASE^attempt + random(0,1), BACKOFF_MAX)
    """
    base_delay = BACKOFF_BASE ** attempt
    jitter = random.random()
    return min(base_delay + jitter, BACKOFF_MAX)


def parse_duration_seconds(value: Any) -> float:
    """Parse a protobuf Duration string such as ``"912s"`` or ``"3.5s"``."""
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip()
    if text.endswith("s"):
        text = text[:-1]
    return float(text)


def _waypoint(point: Coordinate) -> Dict[str, Any]:
    return {"location": {"latLng": {"latitude": point.lat, "longitude": point.lng}}}


class DirectionsClient:
    """Async client for point-to-point driving directions."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        mode: TravelMode = TravelMode.DRIVE,
        timeout: float = 15.0,
        max_retries: int = DEFAULT_MAX_RETRIES,
        url: str = ROUTES_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._api_key = api_key
        self.mode = mode
        self.timeout = timeout
        self.max_retries = max(0, max_retries)
        self.url = url
        self._transport = transport

    @property
    def api_key(self) -> str:
        # Looked up lazily so the client can be built before keys are set
        return self._api_key or get_secret(GOOGLE_MAPS_KEY_ENV)

    def _build_body(self, origin: Coordinate, destination: Coordinate) -> Dict[str, Any]:
        return {
            "origin": _waypoint(origin),
            "destination": _waypoint(destination),
            "travelMode": self.mode.value,
        }

    @staticmethod
    def _parse_leg(data: Any) -> RouteLeg:
        if not isinstance(data, dict):
            raise RouteCalculationFailed("Directions response is not a JSON object")
        routes = data.get("routes") or []
        if not isinstance(routes, list) or not routes:
            raise RouteCalculationFailed()
        first = routes[0]
        if not isinstance(first, dict):
            raise RouteCalculationFailed("Malformed route in directions response")
        try:
            meters = float(first.get("distanceMeters", 0))
            seconds = parse_duration_seconds(first.get("duration", "0s"))
        except (TypeError, ValueError, OverflowError) as exc:
            raise RouteCalculationFailed(f"Malformed route in directions response: {exc}") from exc
        return RouteLeg(distance_miles=meters_to_miles(meters), travel_time_seconds=seconds)

    async def route(self, origin: Coordinate, destination: Coordinate) -> RouteLeg:
        """
        Fetch driving distance and time between two coordinates.

        Raises:
            MissingCredential: If no Google Maps key is configured
            RouteCalculationFailed: If the provider returned no usable route
            httpx.HTTPError: If the request still fails after retries
        """
        api_key = self.api_key
        if not api_key:
            raise MissingCredential(GOOGLE_MAPS_KEY_ENV)

        headers = {
            "X-Goog-Api-Key": api_key,
            **get_routes_distance_mask(),
        }
        body = self._build_body(origin, destination)

        attempts = self.max_retries + 1
        for attempt in range(attempts):
            try:
                async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                    response = await client.post(self.url, json=body, headers=headers)
                    response.raise_for_status()
                    try:
                        data = response.json()
                    except ValueError as exc:
                        raise RouteCalculationFailed("Directions response is not JSON") from exc
                    return self._parse_leg(data)

            except httpx.HTTPStatusError as e:
                if attempt < attempts - 1 and e.response.status_code >= 500:
                    delay = exponential_backoff_with_jitter(attempt)
                    logger.debug("Directions server error %s, retrying in %.1fs", e.response.status_code, delay)
                    await asyncio.sleep(delay)
                    continue
                raise

            except httpx.TransportError as e:
                if attempt < attempts - 1:
                    delay = exponential_backoff_with_jitter(attempt)
                    logger.debug("Directions transport error %r, retrying in %.1fs", e, delay)
                    await asyncio.sleep(delay)
                    continue
                raise

        raise RouteCalculationFailed("Directions lookup failed after retries")
