"""Content calendar and content piece models."""

from __future__ import annotations

from pydantic import BaseModel, Field

from venture_lab.models.base import DocumentBase
from venture_lab.models.work_item import WorkItem


class ContentPiece(WorkItem):
    """A planned or generated piece of marketing content.

    ``kind`` carries the content type (``blog-post``, ``social-post``, ...).
    """

    idea_id: str
    title: str
    slug: str
    priority: int = 0
    target_keywords: list[str] = Field(default_factory=list)
    word_count: int | None = None
    quality: str | None = None


class CalendarEntry(BaseModel):
    """A planned slot on a calendar before (or after) generation."""

    id: str
    kind: str
    title: str
    slug: str
    priority: int = 0
    target_keywords: list[str] = Field(default_factory=list)


class ContentCalendar(DocumentBase):
    """The ordered content plan for one idea (document id = idea id)."""

    idea_id: str
    target_id: str = "default"
    active: bool = True
    strategy_summary: str = ""
    pieces: list[CalendarEntry] = Field(default_factory=list)

    def to_piece(self, entry: CalendarEntry) -> ContentPiece:
        """Build a pending ContentPiece for a planned calendar entry."""
        return ContentPiece(
            id=entry.id,
            idea_id=self.idea_id,
            kind=entry.kind,
            title=entry.title,
            slug=entry.slug,
            priority=entry.priority,
            target_keywords=list(entry.target_keywords),
        )
