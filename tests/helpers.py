"""Factories and in-memory fakes shared by the test suite."""

from __future__ import annotations

import itertools
from datetime import UTC, datetime
from typing import Any
from unittest.mock import AsyncMock, MagicMock

from venture_lab.agents.runner import Completed, Failed, StepResult
from venture_lab.models.analysis import Analysis
from venture_lab.models.content import CalendarEntry, ContentCalendar, ContentPiece
from venture_lab.models.progress import PipelineProgress
from venture_lab.models.work_item import WorkItemStatus

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


class InMemoryProgressRepo:
    """Progress repository backed by a dict, with etags bumped on every write."""

    def __init__(self) -> None:
        self.records: dict[str, PipelineProgress] = {}
        self.etags: dict[str, str] = {}
        self.writes: list[PipelineProgress] = []
        self._counter = itertools.count(1)

    def _store(self, progress: PipelineProgress) -> None:
        self.records[progress.id] = progress.model_copy(deep=True)
        self.etags[progress.id] = f"etag-{next(self._counter)}"
        self.writes.append(progress.model_copy(deep=True))

    async def get_for(self, pipeline: str, subject_id: str) -> PipelineProgress | None:
        record = self.records.get(PipelineProgress.record_id(pipeline, subject_id))
        return record.model_copy(deep=True) if record else None

    async def get_for_with_etag(
        self, pipeline: str, subject_id: str
    ) -> tuple[PipelineProgress, str] | None:
        record_id = PipelineProgress.record_id(pipeline, subject_id)
        if record_id not in self.records:
            return None
        return self.records[record_id].model_copy(deep=True), self.etags[record_id]

    async def create_if_absent(self, progress: PipelineProgress) -> bool:
        if progress.id in self.records:
            return False
        self._store(progress)
        return True

    async def replace_if_unchanged(self, progress: PipelineProgress, etag: str) -> bool:
        if self.etags.get(progress.id) != etag:
            return False
        self._store(progress)
        return True

    async def upsert(self, progress: PipelineProgress) -> PipelineProgress:
        self._store(progress)
        return progress

    async def delete_for(self, pipeline: str, subject_id: str) -> bool:
        record_id = PipelineProgress.record_id(pipeline, subject_id)
        self.etags.pop(record_id, None)
        return self.records.pop(record_id, None) is not None


def completed(text: str, document: str | None = None) -> Completed:
    return Completed(StepResult(chat_text=text, document=document))


def failed(error: str = "boom") -> Failed:
    return Failed(error)


def make_runner(*outcomes: Any) -> MagicMock:
    """AgentRunner stand-in whose run_step returns the given outcomes in order."""
    runner = MagicMock()
    runner.run_step = AsyncMock(side_effect=list(outcomes))
    return runner


def make_analysis(idea_id: str = "idea-1", **overrides: Any) -> Analysis:
    data: dict[str, Any] = {
        "id": idea_id,
        "idea_name": "SecondLook",
        "summary": "Second opinions for rare diagnoses",
        "keywords": ["second opinion", "rare disease"],
        "competitors": "Acme Health",
        "seo_data": '{"keywords": []}',
    }
    data.update(overrides)
    return Analysis(**data)


def make_calendar(
    idea_id: str = "idea-1",
    entries: list[tuple[str, int]] | None = None,
    **overrides: Any,
) -> ContentCalendar:
    """Calendar with ``(piece_id, priority)`` blog-post entries."""
    entries = entries if entries is not None else [("p1", 1), ("p2", 2)]
    data: dict[str, Any] = {
        "id": idea_id,
        "idea_id": idea_id,
        "pieces": [
            CalendarEntry(
                id=piece_id,
                kind="blog-post",
                title=f"Post {piece_id}",
                slug=f"post-{piece_id}",
                priority=priority,
            )
            for piece_id, priority in entries
        ],
    }
    data.update(overrides)
    return ContentCalendar(**data)


def make_piece(
    piece_id: str,
    idea_id: str = "idea-1",
    *,
    status: WorkItemStatus = WorkItemStatus.COMPLETE,
    priority: int = 0,
    kind: str = "blog-post",
    content: str | None = "---\nstatus: draft\n---\nBody",
) -> ContentPiece:
    return ContentPiece(
        id=piece_id,
        idea_id=idea_id,
        kind=kind,
        title=f"Post {piece_id}",
        slug=f"post-{piece_id}",
        priority=priority,
        status=status,
        content=content if status == WorkItemStatus.COMPLETE else None,
    )
