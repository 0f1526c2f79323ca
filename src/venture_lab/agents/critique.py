"""Critique round — runs a recipe's critics concurrently and applies the editor rubric."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from pydantic import ValidationError

from venture_lab.agents.editor import apply_editor_rubric
from venture_lab.agents.llm import parse_llm_json
from venture_lab.agents.runner import Completed, Failed
from venture_lab.models.critique import Critique, CritiqueIssue, EditorDecision

if TYPE_CHECKING:
    from venture_lab.agents.advisors import Advisor, ContentRecipe
    from venture_lab.agents.prompts import PromptCache
    from venture_lab.agents.runner import AgentRunner

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CritiqueRound:
    critiques: list[Critique]
    decision: EditorDecision


class CritiqueService:
    """Ask every named critic for a scored critique of one draft."""

    def __init__(self, runner: AgentRunner, prompts: PromptCache, concurrency: int = 2) -> None:
        self._runner = runner
        self._prompts = prompts
        self._concurrency = max(1, concurrency)

    async def run_round(
        self,
        *,
        subject_id: str,
        draft: str,
        recipe: ContentRecipe,
        context: str = "",
        previous_avg_score: float | None = None,
    ) -> CritiqueRound:
        semaphore = asyncio.Semaphore(self._concurrency)

        async def bounded(advisor: Advisor) -> Critique:
            async with semaphore:
                return await self._critique(advisor, subject_id, draft, recipe, context)

        critiques = list(await asyncio.gather(*(bounded(a) for a in recipe.critics())))
        decision = apply_editor_rubric(critiques, recipe.min_aggregate_score, previous_avg_score)
        logger.info(
            "Critique round — subject=%s critics=%d avg=%.2f high=%d decision=%s",
            subject_id,
            len(critiques),
            decision.avg_score,
            decision.high_issue_count,
            decision.decision,
        )
        return CritiqueRound(critiques=critiques, decision=decision)

    async def _critique(
        self,
        advisor: Advisor,
        subject_id: str,
        draft: str,
        recipe: ContentRecipe,
        context: str,
    ) -> Critique:
        instructions = "\n\n".join(
            [
                self._prompts.advisor(advisor.id),
                self._prompts.get_or_load("critique"),
                f"Your evaluation expertise: {advisor.evaluation_expertise}",
            ]
        )
        prompt = "\n\n".join(
            part
            for part in (
                f"Content type: {recipe.content_type}",
                f"Evaluation emphasis: {recipe.evaluation_emphasis}"
                if recipe.evaluation_emphasis
                else "",
                f"Context:\n{context}" if context else "",
                f"Draft to critique:\n{draft}",
            )
            if part
        )

        outcome = await self._runner.run_step(
            stage=f"critique:{advisor.id}",
            subject_id=subject_id,
            instructions=instructions,
            prompt=prompt,
        )
        if isinstance(outcome, Failed):
            return self._failed(advisor, outcome.error)
        if not isinstance(outcome, Completed):
            return self._failed(advisor, "critique not run")

        try:
            data = parse_llm_json(outcome.result.output)
            issues = [CritiqueIssue.model_validate(i) for i in data.get("issues", [])]
            score = float(data["score"])
        except (ValueError, KeyError, TypeError, AttributeError, ValidationError) as exc:
            logger.warning("Unparsable critique — advisor=%s error=%s", advisor.id, exc)
            return self._failed(advisor, f"Unparsable critique: {exc}")
        return Critique(advisor_id=advisor.id, name=advisor.name, score=score, issues=issues)

    @staticmethod
    def _failed(advisor: Advisor, error: str) -> Critique:
        return Critique(advisor_id=advisor.id, name=advisor.name, score=0, error=error)
