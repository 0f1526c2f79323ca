"""Tests for the concurrent critique round."""

from __future__ import annotations

import json

import pytest
from helpers import completed, failed, make_runner

from venture_lab.agents.advisors import ContentRecipe
from venture_lab.agents.critique import CritiqueService
from venture_lab.models.critique import Decision


def _reply(score: float, *issues: tuple[str, str]) -> str:
    return json.dumps(
        {"score": score, "issues": [{"severity": s, "description": d} for s, d in issues]}
    )


RECIPE = ContentRecipe("blog-post", "copywriter", ("seo-expert", "copywriter"), 7.0)


@pytest.mark.unit
class TestRunRound:
    """Critique collection and rubric application."""

    async def test_approves_when_scores_clear_threshold(self, prompts) -> None:
        runner = make_runner(completed(_reply(8)), completed(_reply(7)))
        service = CritiqueService(runner, prompts, concurrency=1)

        round_ = await service.run_round(subject_id="p1", draft="Draft", recipe=RECIPE)

        assert [c.advisor_id for c in round_.critiques] == ["seo-expert", "copywriter"]
        assert round_.decision.decision == Decision.APPROVE
        assert round_.decision.avg_score == 7.5

    async def test_high_issue_requests_revision(self, prompts) -> None:
        runner = make_runner(completed(_reply(9, ("high", "Wrong intent"))), completed(_reply(9)))
        round_ = await CritiqueService(runner, prompts).run_round(
            subject_id="p1", draft="Draft", recipe=RECIPE
        )
        assert round_.decision.decision == Decision.REVISE
        assert round_.decision.brief == "[HIGH] (SEO Expert) Wrong intent"

    async def test_failed_and_unparsable_critics_score_zero(self, prompts) -> None:
        """Broken critics contribute a zero score with an error."""
        runner = make_runner(failed("timeout"), completed("not json"))
        round_ = await CritiqueService(runner, prompts).run_round(
            subject_id="p1", draft="Draft", recipe=RECIPE
        )
        assert [c.score for c in round_.critiques] == [0, 0]
        assert all(c.error for c in round_.critiques)
        assert round_.decision.decision == Decision.REVISE

    async def test_previous_score_enables_oscillation_guard(self, prompts) -> None:
        runner = make_runner(completed(_reply(5)), completed(_reply(5)))
        round_ = await CritiqueService(runner, prompts).run_round(
            subject_id="p1", draft="Draft", recipe=RECIPE, previous_avg_score=6.0
        )
        assert round_.decision.decision == Decision.APPROVE

    async def test_advisor_prompt_used_as_instructions(self, prompts) -> None:
        runner = make_runner(completed(_reply(8)), completed(_reply(8)))
        await CritiqueService(runner, prompts).run_round(
            subject_id="p1", draft="Draft", recipe=RECIPE, context="Positioning"
        )
        first = runner.run_step.call_args_list[0].kwargs
        assert first["stage"] == "critique:seo-expert"
        assert "<advisor seo-expert>" in first["instructions"]
        assert "Positioning" in first["prompt"]
