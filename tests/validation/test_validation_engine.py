"""Tests for ValidationCanvasEngine — assumptions, pivots and kill."""

from __future__ import annotations

import json
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from helpers import NOW, completed, failed, make_analysis, make_runner

from venture_lab.agents.runner import Paused
from venture_lab.errors import CanvasKilledError, GenerationError
from venture_lab.models.canvas import (
    AssumptionStatus,
    AssumptionType,
    CanvasStatus,
    ValidationCanvas,
)
from venture_lab.models.foundation import DocumentKind
from venture_lab.validation.engine import DEFAULT_THRESHOLDS, ValidationCanvasEngine, downstream_of

ASSUMPTIONS_JSON = json.dumps(
    {
        "demand": {"statement": "Patients search for second opinions", "evidence": ["2k/mo"]},
        "reachability": {"statement": "SEO reaches them", "evidence": []},
        "engagement": {"statement": "They sign up", "evidence": []},
        "wtp": {"statement": "They pay $99", "evidence": []},
    }
)

PIVOTS_JSON = json.dumps(
    [
        {"statement": "Target caregivers", "evidence": ["forum volume"], "impact": "Bigger audience"},
        {"statement": "Target clinics", "evidence": [], "impact": "B2B revenue"},
        {"statement": "Target insurers", "evidence": [], "impact": "Fewer buyers"},
        {"statement": "Fourth idea", "evidence": [], "impact": "Ignored"},
    ]
)


class InMemoryCanvasRepo:
    def __init__(self) -> None:
        self.canvases: dict[str, ValidationCanvas] = {}
        self.upserts = 0

    async def get_for_idea(self, idea_id: str) -> ValidationCanvas | None:
        canvas = self.canvases.get(idea_id)
        return canvas.model_copy(deep=True) if canvas else None

    async def create_if_absent(self, canvas: ValidationCanvas) -> bool:
        if canvas.id in self.canvases:
            return False
        self.canvases[canvas.id] = canvas.model_copy(deep=True)
        return True

    async def upsert(self, canvas: ValidationCanvas) -> ValidationCanvas:
        self.upserts += 1
        self.canvases[canvas.id] = canvas.model_copy(deep=True)
        return canvas


@pytest.fixture
def canvases() -> InMemoryCanvasRepo:
    return InMemoryCanvasRepo()


@pytest.fixture
def analyses() -> MagicMock:
    repo = MagicMock()
    repo.get_for_idea = AsyncMock(return_value=make_analysis())
    return repo


@pytest.fixture
def docs() -> MagicMock:
    repo = MagicMock()
    repo.mark_stale = AsyncMock(return_value=True)
    return repo


@pytest.fixture
def build(canvases: InMemoryCanvasRepo, analyses: MagicMock, docs: MagicMock, prompts: MagicMock):
    def factory(*outcomes, clock=lambda: NOW) -> ValidationCanvasEngine:
        return ValidationCanvasEngine(
            canvases_repo=canvases,
            analyses_repo=analyses,
            docs_repo=docs,
            runner=make_runner(*outcomes),
            prompts=prompts,
            clock=clock,
        )

    return factory


async def _canvas_with_suggestions(build, assumption_type: AssumptionType = AssumptionType.DEMAND):
    engine = build(completed(ASSUMPTIONS_JSON), completed(PIVOTS_JSON))
    await engine.generate_assumptions("idea-1")
    await engine.generate_pivot_suggestions("idea-1", assumption_type)
    return engine


@pytest.mark.unit
class TestGenerateAssumptions:
    """Canvas creation from the analysis."""

    async def test_creates_five_assumptions_with_thresholds(
        self, build, canvases: InMemoryCanvasRepo
    ) -> None:
        canvas = await build(completed(ASSUMPTIONS_JSON)).generate_assumptions("idea-1")

        assert list(canvas.assumptions) == list(AssumptionType)
        demand = canvas.assumptions[AssumptionType.DEMAND]
        assert demand.statement == "Patients search for second opinions"
        assert demand.evidence == ["2k/mo"]
        assert demand.status == AssumptionStatus.UNTESTED
        assert demand.linked_stage == "analysis"
        assert canvas.assumptions[AssumptionType.WTP].threshold.window_days == 60
        assert "idea-1" in canvases.canvases

    async def test_missing_type_gets_placeholder(self, build) -> None:
        canvas = await build(completed(ASSUMPTIONS_JSON)).generate_assumptions("idea-1")
        differentiation = canvas.assumptions[AssumptionType.DIFFERENTIATION]
        assert differentiation.statement == "[No statement generated for differentiation]"
        assert differentiation.threshold == DEFAULT_THRESHOLDS[AssumptionType.DIFFERENTIATION]

    async def test_unusable_reply_still_creates_canvas(self, build) -> None:
        """A completed reply without usable JSON falls back to placeholders."""
        canvas = await build(completed("I cannot help with that.")).generate_assumptions("idea-1")
        assert len(canvas.assumptions) == 5

    async def test_failed_step_stores_nothing(self, build, canvases: InMemoryCanvasRepo) -> None:
        """An LLM outage raises instead of persisting a placeholder canvas."""
        engine = build(failed("LLM call failed: 503"))

        with pytest.raises(GenerationError, match="503"):
            await engine.generate_assumptions("idea-1")

        assert canvases.canvases == {}

    async def test_paused_step_stores_nothing(self, build, canvases: InMemoryCanvasRepo) -> None:
        with pytest.raises(GenerationError, match="paused"):
            await build(Paused()).generate_assumptions("idea-1")
        assert canvases.canvases == {}

    async def test_retry_after_failure_creates_canvas(self, build, canvases: InMemoryCanvasRepo) -> None:
        with pytest.raises(GenerationError):
            await build(failed()).generate_assumptions("idea-1")

        canvas = await build(completed(ASSUMPTIONS_JSON)).generate_assumptions("idea-1")

        demand = canvas.assumptions[AssumptionType.DEMAND]
        assert demand.statement == "Patients search for second opinions"

    async def test_existing_canvas_is_not_overwritten(self, build) -> None:
        first = await build(completed(ASSUMPTIONS_JSON)).generate_assumptions("idea-1")
        engine = build()
        second = await engine.generate_assumptions("idea-1")
        assert second.assumptions == first.assumptions
        engine._runner.run_step.assert_not_awaited()

    async def test_no_analysis(self, build, analyses: MagicMock) -> None:
        analyses.get_for_idea.return_value = None
        assert await build().generate_assumptions("idea-1") is None


@pytest.mark.unit
class TestPivots:
    """Suggestions and adopting one."""

    async def test_suggestions_are_capped_at_three(self, build, canvases: InMemoryCanvasRepo) -> None:
        await _canvas_with_suggestions(build)
        stored = canvases.canvases["idea-1"].pivot_suggestions[AssumptionType.DEMAND]
        assert [s.statement for s in stored] == ["Target caregivers", "Target clinics", "Target insurers"]

    async def test_unusable_suggestions_return_empty(self, build, canvases: InMemoryCanvasRepo) -> None:
        engine = build(completed(ASSUMPTIONS_JSON), failed())
        await engine.generate_assumptions("idea-1")
        assert await engine.generate_pivot_suggestions("idea-1", AssumptionType.DEMAND) == []
        assert canvases.canvases["idea-1"].pivot_suggestions == {}

    async def test_no_canvas(self, build) -> None:
        assert await build().generate_pivot_suggestions("idea-1", AssumptionType.DEMAND) is None

    async def test_apply_pivot_updates_assumption_and_history(
        self, build, canvases: InMemoryCanvasRepo, docs: MagicMock
    ) -> None:
        engine = await _canvas_with_suggestions(build)
        canvas = await engine.apply_pivot("idea-1", AssumptionType.DEMAND, 1)

        demand = canvas.assumptions[AssumptionType.DEMAND]
        assert demand.status == AssumptionStatus.PIVOTED
        assert demand.statement == "Target clinics"
        history = canvas.pivot_history[AssumptionType.DEMAND]
        assert history[0].from_statement == "Patients search for second opinions"
        assert history[0].to_statement == "Target clinics"
        assert history[0].reason == "B2B revenue"
        assert history[0].timestamp == NOW
        assert [a.statement for a in history[0].alternatives] == ["Target caregivers", "Target insurers"]
        assert AssumptionType.DEMAND not in canvas.pivot_suggestions
        docs.mark_stale.assert_awaited_once_with("idea-1", DocumentKind.STRATEGY)
        assert canvases.canvases["idea-1"].assumptions[AssumptionType.DEMAND].statement == "Target clinics"

    async def test_pivot_resets_downstream_assumptions(self, build) -> None:
        engine = await _canvas_with_suggestions(build)
        await engine.update_assumption_status("idea-1", AssumptionType.REACHABILITY, AssumptionStatus.VALIDATED)
        await engine.update_assumption_status("idea-1", AssumptionType.WTP, AssumptionStatus.TESTING)

        canvas = await engine.apply_pivot("idea-1", AssumptionType.DEMAND, 0)

        for assumption_type in downstream_of(AssumptionType.DEMAND):
            assumption = canvas.assumptions[assumption_type]
            assert assumption.status == AssumptionStatus.UNTESTED
            assert assumption.validated_at is None
            assert assumption.testing_since is None

    async def test_engagement_pivot_leaves_strategy_alone(self, build, docs: MagicMock) -> None:
        engine = await _canvas_with_suggestions(build, AssumptionType.ENGAGEMENT)
        canvas = await engine.apply_pivot("idea-1", AssumptionType.ENGAGEMENT, 0)
        docs.mark_stale.assert_not_awaited()
        assert canvas.assumptions[AssumptionType.DEMAND].status == AssumptionStatus.UNTESTED

    async def test_bad_index_raises(self, build) -> None:
        engine = await _canvas_with_suggestions(build)
        with pytest.raises(ValueError, match="Invalid suggestion index"):
            await engine.apply_pivot("idea-1", AssumptionType.DEMAND, 3)
        with pytest.raises(ValueError):
            await engine.apply_pivot("idea-1", AssumptionType.WTP, 0)


@pytest.mark.unit
class TestStatusAndEvaluation:
    async def test_invalidation_requests_pivot_suggestions(
        self, build, canvases: InMemoryCanvasRepo
    ) -> None:
        engine = build(completed(ASSUMPTIONS_JSON), completed(PIVOTS_JSON))
        await engine.generate_assumptions("idea-1")

        assumption = await engine.update_assumption_status(
            "idea-1", AssumptionType.DEMAND, AssumptionStatus.INVALIDATED
        )

        assert assumption.invalidated_at == NOW
        stored = canvases.canvases["idea-1"]
        assert stored.assumptions[AssumptionType.DEMAND].status == AssumptionStatus.INVALIDATED
        assert len(stored.pivot_suggestions[AssumptionType.DEMAND]) == 3

    async def test_evaluate_reports_elapsed_windows(self, build) -> None:
        clock_now = [NOW]
        engine = build(completed(ASSUMPTIONS_JSON), clock=lambda: clock_now[0])
        await engine.generate_assumptions("idea-1")
        await engine.update_assumption_status("idea-1", AssumptionType.REACHABILITY, AssumptionStatus.TESTING)
        await engine.update_assumption_status("idea-1", AssumptionType.ENGAGEMENT, AssumptionStatus.TESTING)

        clock_now[0] = NOW + timedelta(days=31)
        due = await engine.evaluate_assumptions("idea-1")
        assert [a.type for a in due] == [AssumptionType.ENGAGEMENT]

        clock_now[0] = NOW + timedelta(days=46)
        due = await engine.evaluate_assumptions("idea-1")
        assert [a.type for a in due] == [AssumptionType.REACHABILITY, AssumptionType.ENGAGEMENT]


@pytest.mark.unit
class TestKill:
    """A killed canvas is terminal."""

    async def test_kill_is_idempotent(self, build, canvases: InMemoryCanvasRepo) -> None:
        clock_now = [NOW]
        engine = build(completed(ASSUMPTIONS_JSON), clock=lambda: clock_now[0])
        await engine.generate_assumptions("idea-1")

        first = await engine.kill("idea-1", "No demand")
        clock_now[0] = NOW + timedelta(days=1)
        second = await engine.kill("idea-1", "Changed my mind")

        assert first.status == CanvasStatus.KILLED
        assert second.killed_reason == "No demand"
        assert second.killed_at == NOW

    async def test_killed_canvas_rejects_mutations(self, build) -> None:
        engine = build(completed(ASSUMPTIONS_JSON))
        await engine.generate_assumptions("idea-1")
        await engine.kill("idea-1", "No demand")

        with pytest.raises(CanvasKilledError):
            await engine.update_assumption_status(
                "idea-1", AssumptionType.DEMAND, AssumptionStatus.VALIDATED
            )
        with pytest.raises(CanvasKilledError):
            await engine.generate_pivot_suggestions("idea-1", AssumptionType.DEMAND)
        with pytest.raises(CanvasKilledError):
            await engine.apply_pivot("idea-1", AssumptionType.DEMAND, 0)
        assert await engine.evaluate_assumptions("idea-1") == []

    async def test_kill_without_canvas(self, build) -> None:
        assert await build().kill("idea-1", "reason") is None
