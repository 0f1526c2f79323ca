"""ValidationCanvasEngine — assumption tracking, pivots and the kill decision per idea.

A killed canvas is terminal: every mutating operation raises
``CanvasKilledError`` and evaluation skips it.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import TYPE_CHECKING

from pydantic import ValidationError

from venture_lab.agents.llm import parse_llm_json
from venture_lab.agents.runner import Completed, Failed, Paused
from venture_lab.errors import CanvasKilledError, GenerationError
from venture_lab.models.base import utcnow
from venture_lab.models.canvas import (
    Assumption,
    AssumptionStatus,
    AssumptionType,
    CanvasStatus,
    PivotRecord,
    PivotSuggestion,
    Threshold,
    ValidationCanvas,
)
from venture_lab.models.foundation import DocumentKind

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from venture_lab.agents.prompts import PromptCache
    from venture_lab.agents.runner import AgentRunner
    from venture_lab.database.repositories.analyses import AnalysisRepository
    from venture_lab.database.repositories.canvas import CanvasRepository
    from venture_lab.database.repositories.foundation import FoundationRepository

logger = logging.getLogger(__name__)

# Pivoting one type resets every type after it.
ASSUMPTION_ORDER: tuple[AssumptionType, ...] = (
    AssumptionType.DEMAND,
    AssumptionType.REACHABILITY,
    AssumptionType.ENGAGEMENT,
    AssumptionType.WTP,
    AssumptionType.DIFFERENTIATION,
)

LINKED_STAGES: dict[AssumptionType, str] = {
    AssumptionType.DEMAND: "analysis",
    AssumptionType.REACHABILITY: "content",
    AssumptionType.ENGAGEMENT: "painted-door",
    AssumptionType.WTP: "analytics",
    AssumptionType.DIFFERENTIATION: "analytics",
}

DEFAULT_THRESHOLDS: dict[AssumptionType, Threshold] = {
    AssumptionType.DEMAND: Threshold(
        validated="500+ monthly searches for primary keyword cluster AND < 20 direct competitors",
        invalidated="< 100 monthly searches OR > 50 direct competitors with established authority",
        window_days=0,
    ),
    AssumptionType.REACHABILITY: Threshold(
        validated="Any content piece ranks in top 50 for a target keyword"
        " OR 100+ organic sessions/month",
        invalidated="0 ranking keywords and < 10 organic sessions/month after evaluation window",
        window_days=45,
    ),
    AssumptionType.ENGAGEMENT: Threshold(
        validated="3%+ email signup conversion rate from organic visitors"
        " OR 2+ min avg time on site",
        invalidated="< 0.5% signup rate AND < 30s avg time on site after evaluation window",
        window_days=30,
    ),
    AssumptionType.WTP: Threshold(
        validated="1%+ click-through to pricing/purchase page from engaged visitors",
        invalidated="0 pricing page visits after 100+ engaged sessions",
        window_days=60,
    ),
    AssumptionType.DIFFERENTIATION: Threshold(
        validated="Sustained or growing organic traffic over 3 consecutive analytics periods",
        invalidated="Declining traffic over 3 consecutive periods OR new direct competitor"
        " capturing > 50% of target keywords",
        window_days=90,
    ),
}

# Pivots that change the audience or the angle invalidate the strategy document.
STRATEGY_PIVOTS = frozenset({AssumptionType.DEMAND, AssumptionType.DIFFERENTIATION})


def downstream_of(assumption_type: AssumptionType) -> list[AssumptionType]:
    index = ASSUMPTION_ORDER.index(assumption_type)
    return list(ASSUMPTION_ORDER[index + 1 :])


class ValidationCanvasEngine:
    def __init__(
        self,
        *,
        canvases_repo: CanvasRepository,
        analyses_repo: AnalysisRepository,
        docs_repo: FoundationRepository,
        runner: AgentRunner,
        prompts: PromptCache,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._canvases = canvases_repo
        self._analyses = analyses_repo
        self._docs = docs_repo
        self._runner = runner
        self._prompts = prompts
        self._clock = clock

    async def get_canvas(self, idea_id: str) -> ValidationCanvas | None:
        return await self._canvases.get_for_idea(idea_id)

    async def generate_assumptions(self, idea_id: str) -> ValidationCanvas | None:
        """Create the canvas and its five assumptions from the idea's analysis.

        Returns ``None`` when no analysis exists. An existing canvas is
        returned unchanged, never overwritten. Raises ``GenerationError``
        without storing anything when the LLM step does not complete;
        placeholders only fill keys a completed reply left out.
        """
        existing = await self._canvases.get_for_idea(idea_id)
        if existing is not None:
            return existing
        analysis = await self._analyses.get_for_idea(idea_id)
        if analysis is None:
            return None

        stage = "validation:assumptions"
        outcome = await self._runner.run_step(
            stage=stage,
            subject_id=idea_id,
            instructions=self._prompts.get_or_load("assumptions"),
            prompt=f"Context:\n{analysis.context()}",
        )
        if isinstance(outcome, Failed):
            raise GenerationError(f"Assumption generation failed: {outcome.error}")
        if isinstance(outcome, Paused):
            raise GenerationError(f"Assumption generation paused: {outcome.reason}")
        generated = self._parse_json(outcome, stage=stage, idea_id=idea_id)
        if not isinstance(generated, dict):
            generated = {}

        assumptions: dict[AssumptionType, Assumption] = {}
        for assumption_type in ASSUMPTION_ORDER:
            entry = generated.get(assumption_type.value)
            if not isinstance(entry, dict):
                entry = {}
            assumptions[assumption_type] = Assumption(
                type=assumption_type,
                statement=entry.get("statement")
                or f"[No statement generated for {assumption_type.value}]",
                evidence=[str(e) for e in entry.get("evidence") or []],
                threshold=DEFAULT_THRESHOLDS[assumption_type].model_copy(),
                linked_stage=LINKED_STAGES[assumption_type],
            )

        canvas = ValidationCanvas(id=idea_id, idea_id=idea_id, assumptions=assumptions)
        if not await self._canvases.create_if_absent(canvas):
            logger.info("Canvas created concurrently, keeping stored one — idea=%s", idea_id)
            return await self._canvases.get_for_idea(idea_id)
        logger.info("Canvas generated — idea=%s", idea_id)
        return canvas

    async def generate_pivot_suggestions(
        self, idea_id: str, assumption_type: AssumptionType
    ) -> list[PivotSuggestion] | None:
        """Ask for 2-3 ranked pivot directions and store them on the canvas.

        Returns ``None`` when there is no canvas, and an empty list when the
        LLM produced nothing usable.
        """
        canvas = await self._mutable_canvas(idea_id)
        if canvas is None:
            return None
        assumption = self._assumption(canvas, assumption_type)

        analysis = await self._analyses.get_for_idea(idea_id)
        lines = [
            f"Type: {assumption_type.value}",
            f"Statement: {assumption.statement}",
            "Evidence that invalidated it: "
            f"{', '.join(assumption.evidence) or 'Insufficient data'}",
        ]
        if analysis is not None:
            if analysis.seo_data:
                lines.append(f"SEO data: {analysis.seo_data[:1000]}")
            if analysis.competitors:
                lines.append(f"Competitors: {analysis.competitors[:500]}")

        data = await self._ask_json(
            stage="validation:pivots",
            idea_id=idea_id,
            prompt_name="pivots",
            prompt="\n".join(lines),
        )
        suggestions: list[PivotSuggestion] = []
        if isinstance(data, list):
            for raw in data[:3]:
                try:
                    suggestions.append(PivotSuggestion.model_validate(raw))
                except ValidationError:
                    logger.warning("Skipping malformed pivot suggestion — idea=%s", idea_id)
        if not suggestions:
            return []

        canvas.pivot_suggestions[assumption_type] = suggestions
        await self._canvases.upsert(canvas)
        logger.info(
            "Pivot suggestions stored — idea=%s type=%s count=%d",
            idea_id,
            assumption_type,
            len(suggestions),
        )
        return suggestions

    async def apply_pivot(
        self,
        idea_id: str,
        assumption_type: AssumptionType,
        suggestion_index: int,
    ) -> ValidationCanvas | None:
        """Adopt one stored suggestion as the new direction for an assumption.

        Raises ``ValueError`` for an unknown assumption or an index outside the
        stored suggestions.
        """
        canvas = await self._mutable_canvas(idea_id)
        if canvas is None:
            return None
        assumption = self._assumption(canvas, assumption_type)

        suggestions = canvas.pivot_suggestions.get(assumption_type, [])
        if not 0 <= suggestion_index < len(suggestions):
            raise ValueError(
                f"Invalid suggestion index: {suggestion_index}. Available: {len(suggestions)}"
            )
        chosen = suggestions[suggestion_index]
        now = self._clock()

        canvas.pivot_history.setdefault(assumption_type, []).append(
            PivotRecord(
                from_statement=assumption.statement,
                to_statement=chosen.statement,
                reason=chosen.impact,
                timestamp=now,
                alternatives=[s for i, s in enumerate(suggestions) if i != suggestion_index],
            )
        )
        assumption.status = AssumptionStatus.PIVOTED
        assumption.statement = chosen.statement
        assumption.evidence = list(chosen.evidence)
        assumption.testing_since = None
        assumption.validated_at = None
        assumption.invalidated_at = now
        canvas.pivot_suggestions.pop(assumption_type, None)

        for downstream in downstream_of(assumption_type):
            other = canvas.assumptions.get(downstream)
            if other is not None and other.status != AssumptionStatus.UNTESTED:
                other.status = AssumptionStatus.UNTESTED
                other.testing_since = None
                other.validated_at = None
                other.invalidated_at = None

        await self._canvases.upsert(canvas)
        if assumption_type in STRATEGY_PIVOTS:
            await self._docs.mark_stale(idea_id, DocumentKind.STRATEGY)
        logger.info(
            "Pivot applied — idea=%s type=%s index=%d", idea_id, assumption_type, suggestion_index
        )
        return canvas

    async def kill(self, idea_id: str, reason: str) -> ValidationCanvas | None:
        """Mark the canvas killed. Killing an already killed canvas keeps the first kill."""
        canvas = await self._canvases.get_for_idea(idea_id)
        if canvas is None:
            return None
        if canvas.is_killed:
            return canvas
        canvas.status = CanvasStatus.KILLED
        canvas.killed_at = self._clock()
        canvas.killed_reason = reason
        await self._canvases.upsert(canvas)
        logger.info("Canvas killed — idea=%s reason=%s", idea_id, reason)
        return canvas

    async def update_assumption_status(
        self,
        idea_id: str,
        assumption_type: AssumptionType,
        status: AssumptionStatus,
    ) -> Assumption | None:
        """Curator-driven status change; invalidation also requests pivot suggestions."""
        canvas = await self._mutable_canvas(idea_id)
        if canvas is None:
            return None
        assumption = self._assumption(canvas, assumption_type)
        now = self._clock()

        assumption.status = status
        match status:
            case AssumptionStatus.VALIDATED:
                assumption.validated_at = now
                assumption.invalidated_at = None
            case AssumptionStatus.INVALIDATED | AssumptionStatus.PIVOTED:
                assumption.invalidated_at = now
                assumption.validated_at = None
            case AssumptionStatus.TESTING:
                assumption.testing_since = now
                assumption.validated_at = None
                assumption.invalidated_at = None
            case AssumptionStatus.UNTESTED:
                assumption.testing_since = None
                assumption.validated_at = None
                assumption.invalidated_at = None
        await self._canvases.upsert(canvas)
        logger.info(
            "Assumption status updated — idea=%s type=%s status=%s",
            idea_id,
            assumption_type,
            status,
        )

        if status == AssumptionStatus.INVALIDATED:
            await self.generate_pivot_suggestions(idea_id, assumption_type)
        return assumption

    async def evaluate_assumptions(self, idea_id: str) -> list[Assumption]:
        """Return ``testing`` assumptions whose observation window has elapsed.

        Status changes stay with the curator; this only reports what is due.
        """
        canvas = await self._canvases.get_for_idea(idea_id)
        if canvas is None or canvas.is_killed:
            return []
        now = self._clock()
        due = []
        for assumption_type in ASSUMPTION_ORDER:
            assumption = canvas.assumptions.get(assumption_type)
            if assumption is None or assumption.status != AssumptionStatus.TESTING:
                continue
            started = assumption.testing_since or canvas.updated_at
            if now - started >= timedelta(days=assumption.threshold.window_days):
                due.append(assumption)
        return due

    async def _mutable_canvas(self, idea_id: str) -> ValidationCanvas | None:
        canvas = await self._canvases.get_for_idea(idea_id)
        if canvas is not None and canvas.is_killed:
            raise CanvasKilledError(f"Canvas for {idea_id} is killed")
        return canvas

    @staticmethod
    def _assumption(canvas: ValidationCanvas, assumption_type: AssumptionType) -> Assumption:
        assumption = canvas.assumptions.get(assumption_type)
        if assumption is None:
            raise ValueError(f"No assumption found for {assumption_type}")
        return assumption

    async def _ask_json(self, *, stage: str, idea_id: str, prompt_name: str, prompt: str) -> object:
        outcome = await self._runner.run_step(
            stage=stage,
            subject_id=idea_id,
            instructions=self._prompts.get_or_load(prompt_name),
            prompt=prompt,
        )
        if not isinstance(outcome, Completed):
            logger.warning("LLM step did not complete — stage=%s idea=%s", stage, idea_id)
            return None
        return self._parse_json(outcome, stage=stage, idea_id=idea_id)

    @staticmethod
    def _parse_json(outcome: Completed, *, stage: str, idea_id: str) -> object:
        try:
            return parse_llm_json(outcome.result.output)
        except ValueError:
            logger.warning("LLM returned invalid JSON — stage=%s idea=%s", stage, idea_id)
            return None
