"""
Configuration loader for optimizer profiles and environment variables.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

GEMINI_KEY_ENV = "GEMINI_API_KEY"
GOOGLE_MAPS_KEY_ENV = "GOOGLE_MAPS_API_KEY"
PROFILE_ENV = "PAWROUTE_PROFILE"
DEFAULT_PROFILE = "default"
PROFILE_NAME_PATTERN = r"^[A-Za-z0-9_-]+$"

DEFAULT_GEMINI_URL = (
    "https://generativelanguage.googleapis.com/v1beta/models/gemini-1.5-flash:generateContent"
)


class ConfigLoader:
    """Load and manage configuration from YAML files and environment."""

    CONFIG_DIR = Path(__file__).parent.parent.parent / "configs"

    @classmethod
    def load_profile(cls, profile_name: str = DEFAULT_PROFILE) -> Dict[str, Any]:
        """
        Load an optimizer profile.

        Args:
            profile_name: Name of the profile (default, offline)

        Returns:
            Dictionary with configuration values

        Raises:
            FileNotFoundError: If profile doesn't exist
            ValueError: If the name is not a plain file stem
        """
        if not re.fullmatch(PROFILE_NAME_PATTERN, profile_name or ""):
            raise ValueError(f"Invalid profile name '{profile_name}'")

        profile_path = cls.CONFIG_DIR / f"{profile_name}.yaml"

        if not profile_path.exists():
            available = [f.stem for f in cls.CONFIG_DIR.glob("*.yaml")]
            raise FileNotFoundError(
                f"Profile '{profile_name}' not found. Available profiles: {', '.join(available)}"
            )

        with open(profile_path, "r") as f:
            return yaml.safe_load(f) or {}

    @classmethod
    def get_profile_from_env(cls) -> Optional[str]:
        """Get profile name from PAWROUTE_PROFILE environment variable."""
        return os.getenv(PROFILE_ENV)

    @classmethod
    def load_default_or_env_profile(cls) -> Dict[str, Any]:
        profile = cls.get_profile_from_env() or DEFAULT_PROFILE
        return cls.load_profile(profile)


def get_config() -> Dict[str, Any]:
    """Convenience function to get current configuration."""
    return ConfigLoader.load_default_or_env_profile()


def get_secret(name: str) -> str:
    """
    Read a credential at call time.

    ``.env`` is loaded on every lookup so that modules stay importable
    without any keys configured. Returns an empty string when unset.
    """
    load_dotenv()
    return os.getenv(name, "").strip()


@dataclass
class OptimizerSettings:
    """Typed view of an optimizer profile."""

    ai_enabled: bool = True
    gemini_url: str = DEFAULT_GEMINI_URL
    temperature: float = 0.1
    max_output_tokens: int = 2048
    request_timeout_sec: float = 30.0
    timezone_label: str = "Central Time (Austin, TX)"

    directions_mode: str = "DRIVE"
    directions_timeout_sec: float = 15.0
    directions_max_retries: int = 2

    max_concurrent_lookups: int = 4
    baseline_miles_per_visit: float = 10.0
    estimate_seconds_per_mile: float = 120.0

    @classmethod
    def from_profile(cls, profile: Dict[str, Any]) -> "OptimizerSettings":
        """Build settings from a nested profile dict; missing keys keep defaults."""
        ai_cfg = profile.get("ai", {}) or {}
        directions_cfg = profile.get("directions", {}) or {}
        fallback_cfg = profile.get("fallback", {}) or {}

        mapping = {
            "ai_enabled": ai_cfg.get("enabled"),
            "gemini_url": ai_cfg.get("url"),
            "temperature": ai_cfg.get("temperature"),
            "max_output_tokens": ai_cfg.get("max_output_tokens"),
            "request_timeout_sec": ai_cfg.get("timeout_sec"),
            "timezone_label": profile.get("timezone_label"),
            "directions_mode": directions_cfg.get("mode"),
            "directions_timeout_sec": directions_cfg.get("timeout_sec"),
            "directions_max_retries": directions_cfg.get("max_retries"),
            "max_concurrent_lookups": fallback_cfg.get("max_concurrent_lookups"),
            "baseline_miles_per_visit": fallback_cfg.get("baseline_miles_per_visit"),
            "estimate_seconds_per_mile": fallback_cfg.get("estimate_seconds_per_mile"),
        }
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in mapping.items() if k in known and v is not None})

    @classmethod
    def load(cls, profile_name: Optional[str] = None) -> "OptimizerSettings":
        if profile_name:
            return cls.from_profile(ConfigLoader.load_profile(profile_name))
        return cls.from_profile(ConfigLoader.load_default_or_env_profile())


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging from ``PAWROUTE_LOG_LEVEL`` (default INFO)."""
    load_dotenv()
    level_name = (level or os.getenv("PAWROUTE_LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
