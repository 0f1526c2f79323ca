"""Content pipeline — write, critique and revise calendar pieces for one idea."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from venture_lab.agents.advisors import get_recipe
from venture_lab.agents.runner import Failed
from venture_lab.models.base import utcnow
from venture_lab.models.critique import Decision
from venture_lab.models.work_item import WorkItemStatus

if TYPE_CHECKING:
    from collections.abc import Sequence

    from venture_lab.agents.advisors import ContentRecipe
    from venture_lab.agents.critique import CritiqueRound, CritiqueService
    from venture_lab.agents.prompts import PromptCache
    from venture_lab.agents.runner import AgentRunner, StepOutcome
    from venture_lab.database.repositories.content import (
        ContentCalendarRepository,
        ContentPieceRepository,
    )
    from venture_lab.database.repositories.foundation import FoundationRepository
    from venture_lab.models.content import ContentPiece
    from venture_lab.models.progress import PipelineProgress
    from venture_lab.models.work_item import WorkItem
    from venture_lab.pipeline.budget import TimeBudget
    from venture_lab.pipeline.scheduler import GenerationScheduler

logger = logging.getLogger(__name__)

PIPELINE = "content"


class ContentPipeline:
    def __init__(
        self,
        *,
        calendars_repo: ContentCalendarRepository,
        pieces_repo: ContentPieceRepository,
        docs_repo: FoundationRepository,
        runner: AgentRunner,
        critique: CritiqueService,
        prompts: PromptCache,
        scheduler: GenerationScheduler,
    ) -> None:
        self._calendars = calendars_repo
        self._pieces = pieces_repo
        self._docs = docs_repo
        self._runner = runner
        self._critique = critique
        self._prompts = prompts
        self._scheduler = scheduler

    async def plan(self, idea_id: str) -> list[ContentPiece] | None:
        """Calendar entries as work items, using the generated piece where one exists."""
        calendar = await self._calendars.get_for_idea(idea_id)
        if calendar is None:
            return None
        generated = {p.id: p for p in await self._pieces.list_for_idea(idea_id)}
        return [generated.get(entry.id) or calendar.to_piece(entry) for entry in calendar.pieces]

    async def run(
        self,
        idea_id: str,
        piece_ids: Sequence[str],
        budget: TimeBudget | None = None,
    ) -> PipelineProgress | None:
        """Generate the requested pieces in the order given.

        Returns ``None`` when the idea has no calendar or another run already
        owns it. Ids not on the calendar raise ``ValueError``.
        """
        plan = await self.plan(idea_id)
        if plan is None:
            logger.warning("Content run skipped, no calendar — idea=%s", idea_id)
            return None
        return await self._scheduler.run(
            pipeline=PIPELINE,
            subject_id=idea_id,
            plan=plan,
            requested_ids=piece_ids,
            handler=_ContentWork(
                self,
                idea_id,
                runner=self._runner,
                critique=self._critique,
                prompts=self._prompts,
                pieces_repo=self._pieces,
            ),
            budget=budget,
        )

    async def foundation_context(self, idea_id: str, recipe: ContentRecipe) -> str:
        parts = []
        for kind in recipe.context_docs:
            doc = await self._docs.get_doc(idea_id, kind)
            if doc is not None and doc.content:
                parts.append(f"## {kind}\n{doc.content}")
        return "\n\n".join(parts)


class _ContentWork:
    """Scheduler handler for one content run."""

    def __init__(
        self,
        pipeline: ContentPipeline,
        idea_id: str,
        *,
        runner: AgentRunner,
        critique: CritiqueService,
        prompts: PromptCache,
        pieces_repo: ContentPieceRepository,
    ) -> None:
        self._pipeline = pipeline
        self._idea_id = idea_id
        self._runner = runner
        self._critique = critique
        self._prompts = prompts
        self._pieces = pieces_repo
        self._context: dict[str, str] = {}

    def revision_rounds(self, item: WorkItem) -> int:
        recipe = get_recipe(item.kind)
        return recipe.max_revision_rounds if recipe else 1

    async def generate(
        self,
        item: WorkItem,
        *,
        budget: TimeBudget | None,
        brief: str | None = None,
        previous_draft: str | None = None,
    ) -> StepOutcome:
        piece: ContentPiece = item  # type: ignore[assignment]
        recipe = get_recipe(piece.kind)
        if recipe is None:
            return Failed(f"No recipe for content type: {piece.kind}")

        instructions = "\n\n".join(
            [self._prompts.advisor(recipe.author_id), self._prompts.get_or_load("content")]
        )
        parts = [
            f"Content type: {piece.kind}",
            f"Title: {piece.title}",
        ]
        if piece.target_keywords:
            parts.append(f"Target keywords: {', '.join(piece.target_keywords)}")
        context = await self._foundation_context(recipe)
        if context:
            parts.append(f"Foundation documents:\n{context}")
        if previous_draft:
            parts.append(f"Previous draft:\n{previous_draft}")
        if brief:
            parts.append(f"Editor brief — fix these issues:\n{brief}")

        return await self._runner.run_step(
            stage=f"{PIPELINE}:{piece.kind}",
            subject_id=piece.id,
            instructions=instructions,
            prompt="\n\n".join(parts),
            budget=budget,
        )

    async def review(
        self, item: WorkItem, draft: str, previous_avg_score: float | None
    ) -> CritiqueRound | None:
        recipe = get_recipe(item.kind)
        if recipe is None or not recipe.named_critics:
            return None
        return await self._critique.run_round(
            subject_id=item.id,
            draft=draft,
            recipe=recipe,
            context=await self._foundation_context(recipe),
            previous_avg_score=previous_avg_score,
        )

    async def save(self, item: WorkItem, content: str, review: CritiqueRound | None) -> None:
        piece: ContentPiece = item  # type: ignore[assignment]
        piece.content = content
        piece.status = WorkItemStatus.COMPLETE
        piece.error = None
        piece.version += 1
        piece.generated_at = utcnow()
        piece.word_count = len(content.split())
        if review is None:
            piece.quality = None
        elif review.decision.decision == Decision.APPROVE:
            piece.quality = "approved"
        else:
            piece.quality = "needs-review"
        await self._pieces.upsert(piece)

    async def mark_failed(self, item: WorkItem, error: str) -> None:
        piece: ContentPiece = item  # type: ignore[assignment]
        piece.status = WorkItemStatus.ERROR
        piece.error = error
        await self._pieces.upsert(piece)

    async def _foundation_context(self, recipe: ContentRecipe) -> str:
        cached = self._context.get(recipe.content_type)
        if cached is None:
            cached = await self._pipeline.foundation_context(self._idea_id, recipe)
            self._context[recipe.content_type] = cached
        return cached
