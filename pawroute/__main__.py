"""
Command line entry point.

    python -m pawroute visits.json --home-lat 30.27 --home-lng -97.74 --profile offline

``visits.json`` holds a JSON array of visits in the same shape the HTTP
action accepts: ``clientName``, ``petName``, ``address``,
``location`` (``{"lat": .., "lng": ..}``), ``startIso``, ``endIso``,
``durationMin`` and optionally ``serviceType`` and ``notes``. The
optimized route is printed to stdout as JSON. Invalid input exits with
status 2.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from pydantic import ValidationError

from .errors import NoVisitsError
from .models import Coordinate, HomeBase, Route, Visit
from .optimizer import optimize_route
from .schemas import VisitIn
from .tools.config_loader import configure_logging

logger = logging.getLogger("pawroute")


def load_visits(path: Path) -> List[Visit]:
    """Read and validate a visits file; raises ``ValidationError`` or ``ValueError``."""
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)
    if not isinstance(raw, list):
        raise ValueError(f"{path} must contain a JSON array of visits")
    return [VisitIn.model_validate(item).to_visit() for item in raw]


def route_to_dict(route: Route) -> Dict[str, Any]:
    return {
        "id": str(route.id),
        "origin": route.origin.value,
        "feasible": route.feasible,
        "order": [
            {
                "id": str(visit.id),
                "pet": visit.pet_name,
                "client": visit.client_name,
                "timeWindow": visit.time_window_label,
            }
            for visit in route.visits
        ],
        "totalDistanceMiles": round(route.total_distance, 2),
        "totalTravelTimeSec": round(route.total_travel_time, 1),
        "efficiency": round(route.efficiency, 3),
        "formattedDistance": route.formatted_distance,
        "formattedTravelTime": route.formatted_travel_time,
        "reasoning": route.reasoning,
    }


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pawroute", description="Optimize a day of pet-care visits.")
    parser.add_argument("visits", type=Path, help="JSON file with an array of visits")
    parser.add_argument("--home-lat", type=float, default=None)
    parser.add_argument("--home-lng", type=float, default=None)
    parser.add_argument("--home-name", default="Home Base")
    parser.add_argument("--home-address", default=None)
    parser.add_argument("--profile", default=None, help="Optimizer profile (default, offline)")
    parser.add_argument("--log-level", default=None, help="Overrides PAWROUTE_LOG_LEVEL")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if (args.home_lat is None) != (args.home_lng is None):
        parser.error("--home-lat and --home-lng must be given together")
    configure_logging(args.log_level)

    home_base = None
    if args.home_lat is not None:
        home_base = HomeBase.configured(
            name=args.home_name,
            address=args.home_address or f"{args.home_lat}, {args.home_lng}",
            coordinate=Coordinate(lat=args.home_lat, lng=args.home_lng),
        )

    try:
        visits = load_visits(args.visits)
    except (OSError, ValidationError, ValueError) as exc:
        logger.error("Cannot read visits from %s: %s", args.visits, exc)
        return 2

    try:
        route = asyncio.run(optimize_route(visits, home_base, profile=args.profile))
    except NoVisitsError as exc:
        logger.error("%s", exc)
        return 1
    except (FileNotFoundError, ValueError) as exc:
        logger.error("Cannot load profile: %s", exc)
        return 2

    json.dump(route_to_dict(route), sys.stdout, indent=2)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
