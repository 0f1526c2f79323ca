"""GenerationScheduler — walks a batch of work items through generate and review."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

from venture_lab.agents.runner import PAUSE_REASON, Completed, Failed, Paused
from venture_lab.models.critique import Decision
from venture_lab.models.progress import PipelineStep
from venture_lab.models.work_item import WorkItemStatus
from venture_lab.pipeline.dependencies import order_items

if TYPE_CHECKING:
    from collections.abc import Sequence

    from venture_lab.agents.critique import CritiqueRound
    from venture_lab.agents.runner import StepOutcome
    from venture_lab.models.progress import PipelineProgress
    from venture_lab.models.work_item import WorkItem
    from venture_lab.pipeline.budget import TimeBudget
    from venture_lab.pipeline.progress import PipelineProgressStore

logger = logging.getLogger(__name__)


class WorkHandler(Protocol):
    """Per-pipeline behaviour the scheduler drives for each work item."""

    def revision_rounds(self, item: WorkItem) -> int: ...

    async def generate(
        self,
        item: WorkItem,
        *,
        budget: TimeBudget | None,
        brief: str | None = None,
        previous_draft: str | None = None,
    ) -> StepOutcome: ...

    async def review(
        self, item: WorkItem, draft: str, previous_avg_score: float | None
    ) -> CritiqueRound | None: ...

    async def save(self, item: WorkItem, content: str, review: CritiqueRound | None) -> None: ...

    async def mark_failed(self, item: WorkItem, error: str) -> None: ...


class _PauseRequested(Exception):
    """Internal unwinding from the review loop back to the batch loop."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class _ItemFailed(Exception):
    """A generation step failed; the item is marked as an error."""


class GenerationScheduler:
    def __init__(self, store: PipelineProgressStore) -> None:
        self._store = store

    async def run(
        self,
        *,
        pipeline: str,
        subject_id: str,
        plan: Sequence[WorkItem],
        requested_ids: Sequence[str],
        handler: WorkHandler,
        by_dependency: bool = False,
        budget: TimeBudget | None = None,
    ) -> PipelineProgress | None:
        """Generate the requested items; returns ``None`` if the subject is already running.

        Raises ``ValueError`` when a requested id is not part of the plan.
        """
        by_id = {item.id: item for item in plan}
        unknown = [i for i in requested_ids if i not in by_id]
        if unknown:
            raise ValueError(f"Unknown work item ids: {', '.join(unknown)}")

        batch = [by_id[i] for i in dict.fromkeys(requested_ids)]
        if by_dependency:
            batch = order_items(batch)

        steps = [PipelineStep(item_id=item.id, name=_label(item)) for item in batch]
        progress = await self._store.begin(pipeline, subject_id, steps)
        if progress is None:
            return None

        requested = {item.id for item in batch}
        for item in batch:
            if item.id in progress.completed_ids:
                logger.debug("Item already complete — id=%s", item.id)
                continue

            missing = self._missing(item, plan, progress, requested)
            if missing:
                error = f"Prerequisites not complete: {', '.join(missing)}"
                item.status = WorkItemStatus.ERROR
                item.error = error
                await self._store.record_item(progress, item.id, error=error)
                logger.warning("Item blocked — id=%s missing=%s", item.id, missing)
                continue

            await self._store.start_item(progress, item.id)
            item.status = WorkItemStatus.RUNNING
            try:
                content, review = await self._generate_reviewed(item, handler, budget)
                await handler.save(item, content, review)
            except _PauseRequested as pause:
                item.status = WorkItemStatus.PENDING
                await self._store.pause(progress, pause.reason)
                return progress
            except _ItemFailed as failure:
                await self._fail_item(progress, item, handler, str(failure))
                continue
            except Exception as exc:
                logger.exception("Item failed — pipeline=%s id=%s", pipeline, item.id)
                await self._fail_item(progress, item, handler, str(exc) or type(exc).__name__)
                continue

            item.status = WorkItemStatus.COMPLETE
            item.error = None
            detail = f"avg {review.decision.avg_score:.1f}" if review and review.critiques else None
            await self._store.record_item(progress, item.id, detail=detail)

        await self._store.finish(progress)
        return progress

    async def _generate_reviewed(
        self,
        item: WorkItem,
        handler: WorkHandler,
        budget: TimeBudget | None,
    ) -> tuple[str, CritiqueRound | None]:
        """Draft, then critique and revise until approved or out of rounds."""
        draft = _unwrap(await handler.generate(item, budget=budget))
        rounds = max(1, handler.revision_rounds(item))
        previous_avg: float | None = None
        review: CritiqueRound | None = None

        for round_number in range(1, rounds + 1):
            if budget is not None and budget.exhausted():
                raise _PauseRequested(PAUSE_REASON)
            review = await handler.review(item, draft, previous_avg)
            if review is None or review.decision.decision == Decision.APPROVE:
                break
            if round_number == rounds:
                logger.info(
                    "Revision rounds exhausted, keeping last draft — id=%s rounds=%d",
                    item.id,
                    rounds,
                )
                break
            previous_avg = review.decision.avg_score
            outcome = await handler.generate(
                item, budget=budget, brief=review.decision.brief, previous_draft=draft
            )
            if isinstance(outcome, Failed):
                logger.warning(
                    "Revision failed, keeping previous draft — id=%s error=%s",
                    item.id,
                    outcome.error,
                )
                break
            draft = _unwrap(outcome)

        return draft, review

    async def _fail_item(
        self,
        progress: PipelineProgress,
        item: WorkItem,
        handler: WorkHandler,
        error: str,
    ) -> None:
        item.status = WorkItemStatus.ERROR
        item.error = error
        await handler.mark_failed(item, error)
        await self._store.record_item(progress, item.id, error=error)

    @staticmethod
    def _missing(
        item: WorkItem,
        plan: Sequence[WorkItem],
        progress: PipelineProgress,
        requested: set[str],
    ) -> list[str]:
        done = {
            p.kind
            for p in plan
            if p.id in progress.completed_ids
            or (p.status == WorkItemStatus.COMPLETE and p.id not in requested)
        }
        return [kind for kind in item.depends_on if kind not in done]


def _unwrap(outcome: StepOutcome) -> str:
    match outcome:
        case Completed(result=result):
            return result.output
        case Paused(reason=reason):
            raise _PauseRequested(reason)
        case Failed(error=error):
            raise _ItemFailed(error)
    raise TypeError(f"Unexpected step outcome: {outcome!r}")


def _label(item: WorkItem) -> str:
    return getattr(item, "title", None) or item.kind
