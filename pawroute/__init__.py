"""
pawroute: time-window aware route optimization for pet-care visits.

The entry point is ``RouteAssembler.optimize`` (or ``optimize_route`` for a
profile-configured assembler).
"""

from .errors import (
    RouteOptimizationError,
    NoVisitsError,
    RouteCalculationFailed,
    OptimizationClientError,
    MissingCredential,
    InvalidEndpoint,
    TransportError,
    InvalidResponse,
    SerializationError,
)
from .models import (
    Coordinate,
    HomeBase,
    OverlappingTimeWindow,
    Route,
    RouteOrigin,
    ServiceType,
    Visit,
)
from .optimizer import OptimizationState, RouteAssembler, optimize_route

__version__ = "0.1.0"

__all__ = [
    "RouteOptimizationError",
    "NoVisitsError",
    "RouteCalculationFailed",
    "OptimizationClientError",
    "MissingCredential",
    "InvalidEndpoint",
    "TransportError",
    "InvalidResponse",
    "SerializationError",
    "Coordinate",
    "HomeBase",
    "OverlappingTimeWindow",
    "Route",
    "RouteOrigin",
    "ServiceType",
    "Visit",
    "OptimizationState",
    "RouteAssembler",
    "optimize_route",
]
