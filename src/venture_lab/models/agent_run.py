"""AgentRun document model — one record per AgentRunner step."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import Field

from venture_lab.models.base import DocumentBase


class AgentRunStatus(StrEnum):
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class AgentRun(DocumentBase):
    """A single generative step: which stage ran, for which subject, with what outcome."""

    stage: str
    trigger_id: str
    status: AgentRunStatus = AgentRunStatus.RUNNING
    input: dict = Field(default_factory=dict)
    output: dict | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
