"""
Error taxonomy for route optimization.

Only ``NoVisitsError`` ever reaches callers of the assembler. Everything
under ``OptimizationClientError`` triggers the fallback path, and
``RouteCalculationFailed`` is recovered per pair with a geographic estimate.
"""

from __future__ import annotations

from typing import Optional


class RouteOptimizationError(Exception):
    """Base class for route optimization failures."""


class NoVisitsError(RouteOptimizationError):
    """Raised when optimization is requested for an empty visit list."""

    def __init__(self, message: str = "No visits to optimize"):
        super().__init__(message)


class RouteCalculationFailed(RouteOptimizationError):
    """The directions provider returned no route between two points."""

    def __init__(self, message: str = "Failed to calculate route between locations"):
        super().__init__(message)


class OptimizationClientError(RouteOptimizationError):
    """Base class for failures of the external optimization model call."""


class MissingCredential(OptimizationClientError):
    def __init__(self, variable: str = "GEMINI_API_KEY"):
        self.variable = variable
        super().__init__(f"Missing {variable}. Set it in the environment or .env file.")


class InvalidEndpoint(OptimizationClientError):
    def __init__(self, url: str):
        self.url = url
        super().__init__(f"Invalid optimization endpoint URL: {url!r}")


class TransportError(OptimizationClientError):
    """The HTTP request itself failed (DNS, connect, timeout, ...)."""

    def __init__(self, cause: Exception):
        self.cause = cause
        super().__init__(f"Request failed: {cause}")


class InvalidResponse(OptimizationClientError):
    """Non-200 status, or a body without the expected text field."""

    def __init__(self, message: str = "Invalid response from optimization API", status_code: Optional[int] = None):
        self.status_code = status_code
        if status_code is not None:
            message = f"{message} (status {status_code})"
        super().__init__(message)


class SerializationError(OptimizationClientError):
    """The request body could not be encoded."""
