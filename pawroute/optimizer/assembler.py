"""
Route assembly: the single public entry point of the optimizer.

Pipeline for two or more visits:

    overlap annotation -> prompt -> model request -> reply interpretation

Any ``OptimizationClientError`` from the request (missing key, transport
failure, bad envelope), or a disabled AI path, hands the visits to the
fallback optimizer instead. The two paths never run for the same request.

Observable states are OPTIMIZING, SUCCEEDED and FAILED. Falling back is an
internal step; the resulting Route carries ``origin=RouteOrigin.FALLBACK``.
A single visit is returned as-is without consulting the model and is also
tagged FALLBACK.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Optional, Protocol, Sequence

from ..errors import NoVisitsError, OptimizationClientError
from ..models import HomeBase, Route, RouteOrigin, Visit
from ..routing.directions import DirectionsClient, TravelMode
from ..routing.fallback import FallbackOptimizer
from ..routing.overlap import detect_overlapping_windows, detect_tight_windows
from ..tools.config_loader import OptimizerSettings
from .gemini import GeminiClient
from .interpreter import interpret_reply
from .prompt import DEFAULT_TIMEZONE_LABEL, build_route_prompt

logger = logging.getLogger(__name__)

SINGLE_VISIT_REASONING = "Single visit - no optimization needed"


class OptimizationState(Enum):
    IDLE = "idle"
    OPTIMIZING = "optimizing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class OptimizationModel(Protocol):
    """Anything that turns a prompt into a raw reply."""

    async def generate(self, prompt: str) -> str: ...


ProgressCallback = Callable[[float], None]
StateCallback = Callable[[OptimizationState], None]


class _Progress:
    """Forwards progress fractions, never letting them go backwards."""

    def __init__(self, callback: Optional[ProgressCallback]):
        self._callback = callback
        self.value = 0.0

    def __call__(self, fraction: float) -> None:
        fraction = max(self.value, min(1.0, fraction))
        self.value = fraction
        if self._callback:
            self._callback(fraction)


class RouteAssembler:
    """
    Orchestrates AI ordering with a deterministic fallback.

    Collaborators are injected so tests can substitute fakes. Passing
    ``model=None`` gives the AI-free configuration.
    """

    def __init__(
        self,
        model: Optional[OptimizationModel] = None,
        fallback: Optional[FallbackOptimizer] = None,
        timezone_label: str = DEFAULT_TIMEZONE_LABEL,
    ):
        self.model = model
        self.fallback = fallback or FallbackOptimizer()
        self.timezone_label = timezone_label
        self.state = OptimizationState.IDLE

    @classmethod
    def from_settings(cls, settings: OptimizerSettings) -> "RouteAssembler":
        """Wire live clients from a loaded profile."""
        directions = DirectionsClient(
            mode=TravelMode[settings.directions_mode.upper()],
            timeout=settings.directions_timeout_sec,
            max_retries=settings.directions_max_retries,
        )
        fallback = FallbackOptimizer(
            directions=directions,
            max_concurrent_lookups=settings.max_concurrent_lookups,
            baseline_miles_per_visit=settings.baseline_miles_per_visit,
            seconds_per_mile=settings.estimate_seconds_per_mile,
        )
        model = None
        if settings.ai_enabled:
            model = GeminiClient(
                url=settings.gemini_url,
                temperature=settings.temperature,
                max_output_tokens=settings.max_output_tokens,
                timeout=settings.request_timeout_sec,
                timezone_label=settings.timezone_label,
            )
        return cls(model=model, fallback=fallback, timezone_label=settings.timezone_label)

    @property
    def is_optimizing(self) -> bool:
        return self.state is OptimizationState.OPTIMIZING

    def _set_state(self, state: OptimizationState, on_state: Optional[StateCallback]) -> None:
        self.state = state
        if on_state:
            on_state(state)

    async def optimize(
        self,
        visits: Sequence[Visit],
        home_base: Optional[HomeBase] = None,
        on_progress: Optional[ProgressCallback] = None,
        on_state: Optional[StateCallback] = None,
    ) -> Route:
        """
        Produce an ordered Route for ``visits``.

        Raises:
            NoVisitsError: If ``visits`` is empty. No network call is made.
        """
        visits = list(visits)
        progress = _Progress(on_progress)

        if not visits:
            self._set_state(OptimizationState.FAILED, on_state)
            raise NoVisitsError()

        self._set_state(OptimizationState.OPTIMIZING, on_state)
        try:
            route = await self._optimize(visits, home_base, progress)
        except BaseException:
            # Cancellation and unexpected errors never leave a partial route
            self._set_state(OptimizationState.FAILED, on_state)
            raise

        progress(1.0)
        self._set_state(OptimizationState.SUCCEEDED, on_state)
        return route

    async def _optimize(
        self,
        visits: Sequence[Visit],
        home_base: Optional[HomeBase],
        progress: _Progress,
    ) -> Route:
        if len(visits) == 1:
            return Route(
                visits=list(visits),
                total_distance=0.0,
                total_travel_time=0.0,
                efficiency=1.0,
                reasoning=SINGLE_VISIT_REASONING,
                feasible=True,
                origin=RouteOrigin.FALLBACK,
            )

        if self.model is None:
            logger.info("AI optimization disabled; ordering %d visits by time window", len(visits))
            return await self.fallback.optimize(visits, on_progress=progress)

        overlaps = detect_overlapping_windows(visits)
        if overlaps:
            logger.info("Found %d shared time window(s)", len(overlaps))
        for visit in detect_tight_windows(visits):
            logger.warning(
                "Visit %s has a %d minute service in a %.0f minute window",
                visit.pet_name, int(visit.duration_minutes), visit.window_minutes,
            )
        progress(0.1)

        prompt = build_route_prompt(
            visits, home_base, overlaps=overlaps, timezone_label=self.timezone_label
        )
        progress(0.2)

        try:
            reply = await self.model.generate(prompt)
        except OptimizationClientError as exc:
            logger.warning("AI optimization failed (%s); falling back to time-based ordering", exc)
            return await self.fallback.optimize(visits, on_progress=progress)
        progress(0.7)

        interpreted = interpret_reply(reply, visits)
        progress(0.9)

        return Route(
            visits=interpreted.visits,
            total_distance=interpreted.total_distance,
            total_travel_time=interpreted.total_travel_time,
            efficiency=interpreted.efficiency,
            reasoning=interpreted.reasoning,
            feasible=interpreted.feasible,
            origin=RouteOrigin.AI,
        )


async def optimize_route(
    visits: Sequence[Visit],
    home_base: Optional[HomeBase] = None,
    profile: Optional[str] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> Route:
    """Optimize with live clients configured from a profile."""
    assembler = RouteAssembler.from_settings(OptimizerSettings.load(profile))
    return await assembler.optimize(visits, home_base, on_progress=on_progress)
