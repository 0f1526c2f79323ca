"""WorkItem model — one generatable unit (foundation document or content piece)."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import Field

from venture_lab.models.base import DocumentBase


class WorkItemStatus(StrEnum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETE = "complete"
    ERROR = "error"


class WorkItem(DocumentBase):
    """A unit of generation owned by a single pipeline run at a time.

    ``depends_on`` lists the ``kind`` values that must be complete before this
    item may be generated. Items are never deleted; re-generation supersedes
    the content in place and bumps ``version``.
    """

    kind: str
    depends_on: list[str] = Field(default_factory=list)
    status: WorkItemStatus = WorkItemStatus.PENDING
    error: str | None = None
    content: str | None = None
    generated_at: datetime | None = None
    version: int = 0
