"""FastAPI server exposing route optimization as HTTP actions."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from pawroute import __version__
from pawroute.errors import NoVisitsError
from pawroute.optimizer import RouteAssembler
from pawroute.routing import detect_overlapping_windows, detect_tight_windows
from pawroute.tools import OptimizerSettings, configure_logging

from .schemas.models import (
    DetectOverlapsRequest,
    DetectOverlapsResponse,
    OptimizeRouteRequest,
    OverlapGroup,
    RouteResponse,
)

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="Pawroute Route Server", version=__version__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def build_assembler(profile: Optional[str]) -> RouteAssembler:
    """Wire an assembler with live clients for ``profile``."""
    return RouteAssembler.from_settings(OptimizerSettings.load(profile))


@app.get("/health")
async def health_check() -> Dict[str, str]:
    return {"status": "ok"}


@app.post("/actions/optimize_route")
async def optimize_route_action(request: OptimizeRouteRequest) -> Dict[str, Any]:
    visits = [visit.to_visit() for visit in request.visits]
    home_base = request.home_base.to_home_base() if request.home_base else None

    try:
        assembler = build_assembler(request.profile)
    except FileNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    try:
        route = await assembler.optimize(visits, home_base)
    except NoVisitsError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    logger.info(
        "Optimized %d visit(s) via %s path (feasible=%s)",
        len(visits), route.origin.value, route.feasible,
    )
    return RouteResponse.from_route(route, visits).model_dump(by_alias=True, mode="json")


@app.post("/actions/detect_overlaps")
async def detect_overlaps_action(request: DetectOverlapsRequest) -> Dict[str, Any]:
    visits = [visit.to_visit() for visit in request.visits]
    response = DetectOverlapsResponse(
        overlaps=[OverlapGroup.from_window(window) for window in detect_overlapping_windows(visits)],
        tight_window_ids=[visit.id for visit in detect_tight_windows(visits)],
    )
    return response.model_dump(by_alias=True, mode="json")
