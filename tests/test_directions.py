"""Tests for the Routes API directions client."""

import asyncio
import json

import httpx
import pytest

from pawroute.errors import MissingCredential, RouteCalculationFailed
from pawroute.models import Coordinate
from pawroute.routing import directions as directions_module
from pawroute.routing.directions import (
    BACKOFF_MAX,
    DirectionsClient,
    TravelMode,
    exponential_backoff_with_jitter,
    parse_duration_seconds,
)

ORIGIN = Coordinate(lat=30.2672, lng=-97.7431)
DESTINATION = Coordinate(lat=30.3050, lng=-97.7290)

ONE_MILE_ROUTE = {"routes": [{"distanceMeters": 1609.344, "duration": "300s"}]}


@pytest.fixture(autouse=True)
def no_backoff(monkeypatch):
    """Retries happen immediately in tests."""
    monkeypatch.setattr(directions_module, "exponential_backoff_with_jitter", lambda attempt: 0)


class Replay:
    """MockTransport handler replaying a list of responses or exceptions."""

    def __init__(self, *steps):
        self.steps = list(steps)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        step = self.steps.pop(0) if len(self.steps) > 1 else self.steps[0]
        if isinstance(step, type) and issubclass(step, Exception):
            raise step("simulated", request=request)
        status, payload = step
        return httpx.Response(status, json=payload)


def make_client(handler, **kwargs) -> DirectionsClient:
    return DirectionsClient(transport=httpx.MockTransport(handler), **kwargs)


class TestRoute:
    """Successful lookups and request shape."""

    def test_converts_units(self):
        handler = Replay((200, ONE_MILE_ROUTE))
        leg = asyncio.run(make_client(handler).route(ORIGIN, DESTINATION))

        assert leg.distance_miles == pytest.approx(1.0, abs=1e-4)
        assert leg.travel_time_seconds == 300.0

    def test_request_shape(self):
        handler = Replay((200, ONE_MILE_ROUTE))
        asyncio.run(make_client(handler, mode=TravelMode.WALK).route(ORIGIN, DESTINATION))

        request = handler.requests[0]
        body = json.loads(request.content)
        assert request.headers["X-Goog-Api-Key"] == "test-maps-key"
        assert request.headers["X-Goog-FieldMask"] == "routes.duration,routes.distanceMeters"
        assert body["travelMode"] == "WALK"
        assert body["origin"]["location"]["latLng"] == {"latitude": 30.2672, "longitude": -97.7431}
        assert body["destination"]["location"]["latLng"]["latitude"] == 30.3050

    def test_no_routes_raises(self):
        handler = Replay((200, {}))
        with pytest.raises(RouteCalculationFailed):
            asyncio.run(make_client(handler).route(ORIGIN, DESTINATION))

    def test_malformed_route_raises(self):
        handler = Replay((200, {"routes": [{"distanceMeters": "far", "duration": "soon"}]}))
        with pytest.raises(RouteCalculationFailed):
            asyncio.run(make_client(handler).route(ORIGIN, DESTINATION))

    @pytest.mark.parametrize(
        "payload",
        [[], ["x"], {"routes": ["x"]}, {"routes": {"distanceMeters": 10}}, {"routes": [{"distanceMeters": 10**400}]}],
    )
    def test_unexpected_body_shape_raises_route_failure(self, payload):
        handler = Replay((200, payload))
        with pytest.raises(RouteCalculationFailed):
            asyncio.run(make_client(handler).route(ORIGIN, DESTINATION))

    def test_non_json_body_raises_route_failure(self):
        def handler(request):
            return httpx.Response(200, content=b"<html>oops</html>")

        with pytest.raises(RouteCalculationFailed):
            asyncio.run(make_client(handler).route(ORIGIN, DESTINATION))

    def test_missing_key(self, monkeypatch):
        monkeypatch.delenv("GOOGLE_MAPS_API_KEY", raising=False)
        handler = Replay((200, ONE_MILE_ROUTE))

        with pytest.raises(MissingCredential, match="GOOGLE_MAPS_API_KEY"):
            asyncio.run(make_client(handler).route(ORIGIN, DESTINATION))
        assert handler.requests == []


class TestRetries:
    """Transient failures are retried inside the client."""

    def test_server_error_then_success(self):
        handler = Replay((503, {}), (200, ONE_MILE_ROUTE))
        leg = asyncio.run(make_client(handler).route(ORIGIN, DESTINATION))

        assert leg.travel_time_seconds == 300.0
        assert len(handler.requests) == 2

    def test_gives_up_after_max_retries(self):
        handler = Replay((500, {}))

        with pytest.raises(httpx.HTTPStatusError):
            asyncio.run(make_client(handler, max_retries=2).route(ORIGIN, DESTINATION))
        assert len(handler.requests) == 3

    def test_client_error_not_retried(self):
        handler = Replay((403, {}))

        with pytest.raises(httpx.HTTPStatusError):
            asyncio.run(make_client(handler).route(ORIGIN, DESTINATION))
        assert len(handler.requests) == 1

    def test_negative_retries_still_attempt_once(self):
        handler = Replay((200, ONE_MILE_ROUTE))
        client = make_client(handler, max_retries=-3)

        leg = asyncio.run(client.route(ORIGIN, DESTINATION))

        assert client.max_retries == 0
        assert leg.travel_time_seconds == 300.0
        assert len(handler.requests) == 1

    def test_transport_error_retried(self):
        handler = Replay(httpx.ConnectError, (200, ONE_MILE_ROUTE))
        leg = asyncio.run(make_client(handler).route(ORIGIN, DESTINATION))

        assert leg.distance_miles == pytest.approx(1.0, abs=1e-4)
        assert len(handler.requests) == 2


class TestHelpers:
    @pytest.mark.parametrize("value,expected", [("912s", 912.0), ("3.5s", 3.5), (12, 12.0), ("0s", 0.0)])
    def test_parse_duration(self, value, expected):
        assert parse_duration_seconds(value) == expected

    def test_backoff_bounds(self):
        first = exponential_backoff_with_jitter(0)
        assert 1 <= first < 2
        assert exponential_backoff_with_jitter(10) == BACKOFF_MAX
