"""PipelineProgressStore — persisted step-by-step state and the pause/resume protocol.

The progress record doubles as the per-subject mutex: a fresh ``running``
record means another invocation owns the subject, and the trigger is a
no-op. Writes that change ownership (start, resume) are conditional on the
record's etag so two concurrent triggers cannot both win.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import TYPE_CHECKING

from venture_lab.models.base import utcnow
from venture_lab.models.progress import (
    PipelineProgress,
    PipelineStep,
    ProgressStatus,
    StepStatus,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from datetime import datetime

    from venture_lab.config import PipelineConfig
    from venture_lab.database.repositories.progress import PipelineProgressRepository

logger = logging.getLogger(__name__)

RESUME_LIMIT_ERROR = "Resume limit reached — reset the pipeline to start over"


class PipelineProgressStore:
    def __init__(
        self,
        repo: PipelineProgressRepository,
        config: PipelineConfig,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._repo = repo
        self._config = config
        self._clock = clock

    async def poll(self, pipeline: str, subject_id: str) -> PipelineProgress:
        """Return the stored record, or an unsaved ``not_started`` record when none exists."""
        progress = await self._repo.get_for(pipeline, subject_id)
        if progress is None:
            return PipelineProgress(
                id=PipelineProgress.record_id(pipeline, subject_id),
                pipeline=pipeline,
                subject_id=subject_id,
                status=ProgressStatus.NOT_STARTED,
            )
        return progress

    async def begin(
        self,
        pipeline: str,
        subject_id: str,
        steps: Sequence[PipelineStep],
    ) -> PipelineProgress | None:
        """Claim the subject and return the record to run against.

        Returns ``None`` when the trigger should be a no-op: another
        invocation holds a fresh ``running`` record, lost a concurrent claim,
        or the resume limit has been exhausted.
        """
        found = await self._repo.get_for_with_etag(pipeline, subject_id)
        now = self._clock()

        if found is None:
            progress = PipelineProgress(
                id=PipelineProgress.record_id(pipeline, subject_id),
                pipeline=pipeline,
                subject_id=subject_id,
                status=ProgressStatus.RUNNING,
                steps=[s.model_copy() for s in steps],
                started_at=now,
            )
            if not await self._repo.create_if_absent(progress):
                logger.info(
                    "Pipeline claim lost — pipeline=%s subject=%s", pipeline, subject_id
                )
                return None
            logger.info(
                "Pipeline started — pipeline=%s subject=%s steps=%d",
                pipeline,
                subject_id,
                len(steps),
            )
            return progress

        progress, etag = found
        if progress.status == ProgressStatus.RUNNING and not self._is_stale(progress, now):
            logger.info(
                "Pipeline already running — pipeline=%s subject=%s", pipeline, subject_id
            )
            return None

        if progress.status in (ProgressStatus.COMPLETE, ProgressStatus.ERROR):
            if progress.error == RESUME_LIMIT_ERROR:
                logger.warning(
                    "Pipeline needs reset — pipeline=%s subject=%s", pipeline, subject_id
                )
                return None
            # A finished run triggered again is a new run; only paused runs resume.
            progress.resume_count = 0
            progress.completed_ids = []
            progress.failed_ids = []
            progress.steps = []
            progress.current_step = ""
            progress.started_at = now
            progress.completed_at = None
        elif progress.status in (ProgressStatus.PAUSED, ProgressStatus.RUNNING):
            progress.resume_count += 1
            if progress.resume_count > self._config.max_resumes:
                progress.status = ProgressStatus.ERROR
                progress.error = RESUME_LIMIT_ERROR
                await self._repo.replace_if_unchanged(progress, etag)
                logger.warning(
                    "Pipeline resume limit reached — pipeline=%s subject=%s resumes=%d",
                    pipeline,
                    subject_id,
                    progress.resume_count - 1,
                )
                return None

        progress.status = ProgressStatus.RUNNING
        progress.error = None
        progress.steps = self._merge_steps(progress, steps)
        if progress.started_at is None:
            progress.started_at = now
        if not await self._repo.replace_if_unchanged(progress, etag):
            logger.info("Pipeline claim lost — pipeline=%s subject=%s", pipeline, subject_id)
            return None
        logger.info(
            "Pipeline resumed — pipeline=%s subject=%s resume=%d completed=%d",
            pipeline,
            subject_id,
            progress.resume_count,
            len(progress.completed_ids),
        )
        return progress

    async def start_item(self, progress: PipelineProgress, item_id: str) -> None:
        step = progress.step(item_id)
        if step is not None:
            step.status = StepStatus.RUNNING
            step.detail = None
            progress.current_step = step.name
        await self._repo.upsert(progress)

    async def record_item(
        self,
        progress: PipelineProgress,
        item_id: str,
        *,
        error: str | None = None,
        detail: str | None = None,
    ) -> None:
        """Persist the outcome of one item immediately after it finishes."""
        step = progress.step(item_id)
        if error is None:
            if item_id not in progress.completed_ids:
                progress.completed_ids.append(item_id)
            if item_id in progress.failed_ids:
                progress.failed_ids.remove(item_id)
            if step is not None:
                step.status = StepStatus.COMPLETE
                step.detail = detail
        else:
            if item_id not in progress.failed_ids and item_id not in progress.completed_ids:
                progress.failed_ids.append(item_id)
            if step is not None:
                step.status = StepStatus.ERROR
                step.detail = error
        await self._repo.upsert(progress)

    async def pause(self, progress: PipelineProgress, reason: str) -> None:
        """Stop cooperatively; unfinished steps stay pending for the next invocation."""
        for step in progress.steps:
            if step.status == StepStatus.RUNNING:
                step.status = StepStatus.PENDING
        progress.status = ProgressStatus.PAUSED
        progress.current_step = reason
        await self._repo.upsert(progress)
        logger.info(
            "Pipeline paused — pipeline=%s subject=%s completed=%d",
            progress.pipeline,
            progress.subject_id,
            len(progress.completed_ids),
        )

    async def finish(self, progress: PipelineProgress) -> None:
        progress.status = ProgressStatus.COMPLETE
        progress.current_step = ""
        progress.completed_at = self._clock()
        if progress.failed_ids:
            progress.error = f"{len(progress.failed_ids)} item(s) failed"
        await self._repo.upsert(progress)
        logger.info(
            "Pipeline complete — pipeline=%s subject=%s completed=%d failed=%d",
            progress.pipeline,
            progress.subject_id,
            len(progress.completed_ids),
            len(progress.failed_ids),
        )

    async def fail(self, progress: PipelineProgress, error: str) -> None:
        progress.status = ProgressStatus.ERROR
        progress.error = error
        await self._repo.upsert(progress)
        logger.error(
            "Pipeline failed — pipeline=%s subject=%s error=%s",
            progress.pipeline,
            progress.subject_id,
            error,
        )

    async def reset(self, pipeline: str, subject_id: str) -> bool:
        """Delete the record so the next trigger starts a fresh run."""
        deleted = await self._repo.delete_for(pipeline, subject_id)
        logger.info(
            "Pipeline reset — pipeline=%s subject=%s existed=%s", pipeline, subject_id, deleted
        )
        return deleted

    def _is_stale(self, progress: PipelineProgress, now: datetime) -> bool:
        return now - progress.updated_at > timedelta(seconds=self._config.stale_after_seconds)

    @staticmethod
    def _merge_steps(
        progress: PipelineProgress, steps: Sequence[PipelineStep]
    ) -> list[PipelineStep]:
        """Keep finished steps, add newly requested ones, and re-queue the rest."""
        merged: list[PipelineStep] = []
        seen: set[str] = set()
        for step in [*progress.steps, *steps]:
            if step.item_id in seen:
                continue
            seen.add(step.item_id)
            if step.item_id in progress.completed_ids:
                merged.append(step.model_copy(update={"status": StepStatus.COMPLETE}))
            else:
                merged.append(
                    step.model_copy(update={"status": StepStatus.PENDING, "detail": None})
                )
        return merged
