"""Background worker — runs accepted pipeline jobs outside the request that triggered them."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from venture_lab.models.progress import ProgressStatus
from venture_lab.pipeline.budget import TimeBudget

if TYPE_CHECKING:
    from venture_lab.config import PipelineConfig
    from venture_lab.models.progress import PipelineProgress

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineJob:
    pipeline: str
    subject_id: str
    params: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @property
    def key(self) -> tuple[str, str]:
        return (self.pipeline, self.subject_id)


JobRunner = Callable[[PipelineJob, TimeBudget], Awaitable["PipelineProgress | None"]]


class PipelineWorker:
    """Single-consumer asyncio queue of pipeline jobs.

    Acceptance is decoupled from completion: :meth:`submit` only says whether
    the job was queued, and the progress record reports how it went. A job
    that comes back paused is queued again with a fresh time budget; the
    progress store's resume limit bounds how often that can happen.
    """

    def __init__(self, runners: dict[str, JobRunner], config: PipelineConfig) -> None:
        self._runners = runners
        self._config = config
        self._queue: asyncio.Queue[PipelineJob] = asyncio.Queue()
        self._pending: set[tuple[str, str]] = set()
        self._running = False
        self._task: asyncio.Task | None = None

    def submit(self, job: PipelineJob) -> bool:
        """Queue a job. Returns False if one for the same pipeline and subject is pending."""
        if job.pipeline not in self._runners:
            raise ValueError(f"Unknown pipeline: {job.pipeline}")
        if job.key in self._pending:
            logger.info(
                "Job already queued — pipeline=%s subject=%s", job.pipeline, job.subject_id
            )
            return False
        self._pending.add(job.key)
        self._queue.put_nowait(job)
        logger.info("Job queued — pipeline=%s subject=%s", job.pipeline, job.subject_id)
        return True

    def is_pending(self, pipeline: str, subject_id: str) -> bool:
        return (pipeline, subject_id) in self._pending

    async def start(self) -> None:
        self._running = True
        self._task = asyncio.create_task(self._loop())
        logger.info("Pipeline worker started")

    async def stop(self) -> None:
        self._running = False
        if self._task:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None
        logger.info("Pipeline worker stopped")

    async def join(self) -> None:
        """Wait until every queued job (including re-queued pauses) has been processed."""
        await self._queue.join()

    async def _loop(self) -> None:
        while self._running:
            job = await self._queue.get()
            try:
                await self.process(job)
            finally:
                self._queue.task_done()

    async def process(self, job: PipelineJob) -> PipelineProgress | None:
        """Run one job invocation under a fresh time budget."""
        budget = TimeBudget(self._config.time_budget_seconds)
        try:
            progress = await self._runners[job.pipeline](job, budget)
        except Exception:
            logger.exception(
                "Job failed — pipeline=%s subject=%s", job.pipeline, job.subject_id
            )
            self._pending.discard(job.key)
            return None

        if progress is not None and progress.status == ProgressStatus.PAUSED:
            logger.info(
                "Job paused, re-queued — pipeline=%s subject=%s resume=%d",
                job.pipeline,
                job.subject_id,
                progress.resume_count,
            )
            self._queue.put_nowait(job)
        else:
            self._pending.discard(job.key)
        return progress
