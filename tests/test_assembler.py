"""Tests for the route assembler: AI path, fallback path and observation hooks."""

import asyncio
import json

import httpx
import pytest

from pawroute.errors import InvalidResponse, MissingCredential, NoVisitsError, TransportError
from pawroute.models import RouteOrigin
from pawroute.optimizer import (
    GeminiClient,
    OptimizationState,
    RouteAssembler,
    SINGLE_VISIT_REASONING,
    optimize_route,
)
from pawroute.routing import FALLBACK_REASONING, FallbackOptimizer
from pawroute.tools import OptimizerSettings


def reply(order, **extra) -> str:
    document = {"optimizedOrder": order, "estimatedTotalDistance": 9.5,
                "estimatedTotalTime": 120, "efficiency": 88, "reasoning": "Closest first"}
    document.update(extra)
    return "```json\n" + json.dumps(document) + "\n```"


@pytest.fixture
def assembler_factory(fake_model_factory, fake_directions):
    def factory(model_reply="", error=None, with_model=True):
        model = fake_model_factory(reply=model_reply, error=error) if with_model else None
        return RouteAssembler(model=model, fallback=FallbackOptimizer(directions=fake_directions))
    return factory


class TestEdgeCases:
    """Empty and single-visit inputs never touch the network."""

    def test_empty_raises(self, assembler_factory):
        assembler = assembler_factory()
        states = []

        with pytest.raises(NoVisitsError, match="No visits to optimize"):
            asyncio.run(assembler.optimize([], on_state=states.append))

        assert assembler.model.prompts == []
        assert states == [OptimizationState.FAILED]
        assert assembler.state is OptimizationState.FAILED

    def test_single_visit(self, assembler_factory, sample_visits, fake_directions):
        assembler = assembler_factory(model_reply=reply([1]))
        route = asyncio.run(assembler.optimize(sample_visits[:1]))

        assert route.visits == sample_visits[:1]
        assert route.total_distance == 0.0
        assert route.total_travel_time == 0.0
        assert route.efficiency == 1.0
        assert route.feasible
        assert route.reasoning == SINGLE_VISIT_REASONING
        assert route.origin is RouteOrigin.FALLBACK
        assert assembler.model.prompts == []
        assert fake_directions.calls == []

    def test_single_visit_without_model(self, assembler_factory, sample_visits):
        route = asyncio.run(assembler_factory(with_model=False).optimize(sample_visits[:1]))
        assert route.origin is RouteOrigin.FALLBACK
        assert route.reasoning == SINGLE_VISIT_REASONING


class TestAIPath:
    """Successful model calls."""

    def test_full_permutation(self, assembler_factory, sample_visits, fake_directions):
        assembler = assembler_factory(model_reply=reply([3, 1, 2]))
        route = asyncio.run(assembler.optimize(sample_visits))

        assert route.visits == [sample_visits[2], sample_visits[0], sample_visits[1]]
        assert route.origin is RouteOrigin.AI
        assert route.total_distance == 9.5
        assert route.total_travel_time == 120 * 60
        assert route.efficiency == pytest.approx(0.88)
        assert route.reasoning == "Closest first"
        assert fake_directions.calls == []

    def test_omitting_reply_keeps_every_visit(self, assembler_factory, sample_visits):
        shuffled = [sample_visits[1], sample_visits[2], sample_visits[0]]
        assembler = assembler_factory(model_reply=reply([1, 2]))

        route = asyncio.run(assembler.optimize(shuffled))

        assert route.visits == sample_visits
        assert route.feasible
        assert route.origin is RouteOrigin.AI

    def test_malformed_reply_sorted_by_time(self, assembler_factory, sample_visits):
        shuffled = [sample_visits[2], sample_visits[1], sample_visits[0]]
        assembler = assembler_factory(model_reply="I am unable to comply.")

        route = asyncio.run(assembler.optimize(shuffled))

        assert route.visits == sample_visits

    def test_infeasible_reply(self, assembler_factory, sample_visits):
        assembler = assembler_factory(model_reply=reply([1, 2], feasibleRoute=False))
        route = asyncio.run(assembler.optimize(sample_visits))

        assert not route.feasible
        assert route.visits == sample_visits[:2]
        assert route.excluded_visits(sample_visits) == [sample_visits[2]]
        assert "Max (Carol White)" in route.reasoning

    def test_prompt_mentions_overlaps_and_home(self, assembler_factory, overlapping_visits, home_base):
        assembler = assembler_factory(model_reply=reply([2, 1, 3]))
        asyncio.run(assembler.optimize(overlapping_visits, home_base))

        prompt = assembler.model.prompts[0]
        assert "OVERLAPPING TIME WINDOWS DETECTED" in prompt
        assert "Rex, Bella" in prompt
        assert "- Name: Studio" in prompt


class TestFallbackPath:
    """Client failures hand the visits to the fallback optimizer."""

    @pytest.mark.parametrize(
        "error",
        [
            MissingCredential(),
            TransportError(httpx.ConnectError("down")),
            InvalidResponse("API error", status_code=500),
        ],
    )
    def test_client_failure_falls_back(self, assembler_factory, sample_visits, error):
        shuffled = [sample_visits[2], sample_visits[0], sample_visits[1]]
        assembler = assembler_factory(error=error)

        route = asyncio.run(assembler.optimize(shuffled))

        assert route.origin is RouteOrigin.FALLBACK
        assert route.visits == sample_visits
        assert {v.id for v in route.visits} == {v.id for v in shuffled}
        assert route.total_distance == pytest.approx(6.0)
        assert route.total_travel_time == pytest.approx(1200.0)
        assert route.reasoning == FALLBACK_REASONING
        assert route.feasible
        assert assembler.state is OptimizationState.SUCCEEDED

    def test_ai_free_configuration(self, assembler_factory, sample_visits):
        assembler = assembler_factory(with_model=False)
        route = asyncio.run(assembler.optimize(sample_visits))

        assert route.origin is RouteOrigin.FALLBACK
        assert route.visits == sample_visits

    def test_disjoint_visits_unchanged_and_feasible(self, assembler_factory, sample_visits):
        route = asyncio.run(assembler_factory(with_model=False).optimize(sample_visits))
        assert [v.pet_name for v in route.visits] == ["Buddy", "Luna", "Max"]
        assert route.feasible

    def test_unexpected_error_propagates(self, assembler_factory, sample_visits):
        assembler = assembler_factory(error=RuntimeError("bug"))
        states = []

        with pytest.raises(RuntimeError, match="bug"):
            asyncio.run(assembler.optimize(sample_visits, on_state=states.append))

        assert states == [OptimizationState.OPTIMIZING, OptimizationState.FAILED]


class TestObservation:
    """Progress and state callbacks."""

    @pytest.mark.parametrize("error", [None, TransportError(httpx.ConnectError("down"))])
    def test_progress_monotonic_and_complete(self, assembler_factory, sample_visits, error):
        assembler = assembler_factory(model_reply=reply([1, 2, 3]), error=error)
        seen = []

        asyncio.run(assembler.optimize(sample_visits, on_progress=seen.append))

        assert seen == sorted(seen)
        assert all(0.0 <= value <= 1.0 for value in seen)
        assert seen[-1] == 1.0

    def test_state_sequence(self, assembler_factory, sample_visits):
        assembler = assembler_factory(model_reply=reply([1, 2, 3]))
        states = []

        asyncio.run(assembler.optimize(sample_visits, on_state=states.append))

        assert states == [OptimizationState.OPTIMIZING, OptimizationState.SUCCEEDED]
        assert not assembler.is_optimizing

    def test_is_optimizing_during_call(self, sample_visits, fake_directions):
        observed = []

        class ObservingModel:
            async def generate(self, prompt):
                observed.append(assembler.is_optimizing)
                return reply([1, 2, 3])

        assembler = RouteAssembler(model=ObservingModel(), fallback=FallbackOptimizer(fake_directions))
        asyncio.run(assembler.optimize(sample_visits))

        assert observed == [True]

    def test_cancellation_marks_failed(self, sample_visits, fake_directions):
        class HangingModel:
            async def generate(self, prompt):
                await asyncio.sleep(10)
                return ""

        assembler = RouteAssembler(model=HangingModel(), fallback=FallbackOptimizer(fake_directions))

        async def scenario():
            task = asyncio.create_task(assembler.optimize(sample_visits))
            await asyncio.sleep(0.01)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        asyncio.run(scenario())
        assert assembler.state is OptimizationState.FAILED
        assert not assembler.is_optimizing


class TestWiring:
    """Construction from profiles."""

    def test_offline_settings_have_no_model(self):
        assembler = RouteAssembler.from_settings(OptimizerSettings(ai_enabled=False))
        assert assembler.model is None

    def test_settings_propagate(self):
        settings = OptimizerSettings(
            temperature=0.3, max_concurrent_lookups=7, baseline_miles_per_visit=5.0,
            timezone_label="Pacific Time",
        )
        assembler = RouteAssembler.from_settings(settings)

        assert isinstance(assembler.model, GeminiClient)
        assert assembler.model.temperature == 0.3
        assert assembler.fallback.max_concurrent_lookups == 7
        assert assembler.fallback.baseline_miles_per_visit == 5.0
        assert assembler.timezone_label == "Pacific Time"

    def test_optimize_route_offline_profile(self, sample_visits, monkeypatch):
        monkeypatch.delenv("GOOGLE_MAPS_API_KEY", raising=False)
        route = asyncio.run(optimize_route(sample_visits, profile="offline"))

        assert route.origin is RouteOrigin.FALLBACK
        assert route.visits == sample_visits
        assert route.total_distance > 0
