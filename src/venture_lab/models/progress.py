"""Pipeline progress model — persisted step-by-step state of one orchestrated run."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field

from venture_lab.models.base import DocumentBase


class ProgressStatus(StrEnum):
    NOT_STARTED = "not_started"
    PENDING = "pending"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETE = "complete"
    ERROR = "error"


class StepStatus(StrEnum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETE = "complete"
    ERROR = "error"


class PipelineStep(BaseModel):
    """One planned WorkItem as seen by the progress display."""

    item_id: str
    name: str
    status: StepStatus = StepStatus.PENDING
    detail: str | None = None


class PipelineProgress(DocumentBase):
    """Progress of a pipeline run for one subject, keyed ``{pipeline}-{subject_id}``.

    ``completed_ids`` only ever grows within a run; it is the resume cursor.
    """

    pipeline: str
    subject_id: str
    status: ProgressStatus = ProgressStatus.PENDING
    current_step: str = ""
    steps: list[PipelineStep] = Field(default_factory=list)
    error: str | None = None
    completed_ids: list[str] = Field(default_factory=list)
    failed_ids: list[str] = Field(default_factory=list)
    resume_count: int = 0
    started_at: datetime | None = None
    completed_at: datetime | None = None

    @staticmethod
    def record_id(pipeline: str, subject_id: str) -> str:
        return f"{pipeline}-{subject_id}"

    def step(self, item_id: str) -> PipelineStep | None:
        return next((s for s in self.steps if s.item_id == item_id), None)
