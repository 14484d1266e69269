"""Configuration and Google Maps Platform helpers."""

from .fields import (
    get_fieldmask_header,
    get_routes_distance_mask,
    ROUTES_DISTANCE_FIELDS,
)
from .config_loader import (
    ConfigLoader,
    OptimizerSettings,
    get_config,
    get_secret,
    configure_logging,
    GEMINI_KEY_ENV,
    GOOGLE_MAPS_KEY_ENV,
)

__all__ = [
    "get_fieldmask_header",
    "get_routes_distance_mask",
    "ROUTES_DISTANCE_FIELDS",
    "ConfigLoader",
    "OptimizerSettings",
    "get_config",
    "get_secret",
    "configure_logging",
    "GEMINI_KEY_ENV",
    "GOOGLE_MAPS_KEY_ENV",
]
