"""Repositories for the content_calendars and content_pieces containers."""

from __future__ import annotations

from venture_lab.database.repositories.base import BaseRepository
from venture_lab.models.content import ContentCalendar, ContentPiece


class ContentCalendarRepository(BaseRepository[ContentCalendar]):
    """Calendars are partitioned by /id (the idea id)."""

    container_name = "content_calendars"
    model_class = ContentCalendar

    async def get_for_idea(self, idea_id: str) -> ContentCalendar | None:
        return await self.get(idea_id, idea_id)

    async def list_all(self) -> list[ContentCalendar]:
        """Fetch all calendars in a stable order (oldest first)."""
        return await self.query(
            "SELECT * FROM c WHERE NOT IS_DEFINED(c.deleted_at) ORDER BY c.created_at ASC",
        )


class ContentPieceRepository(BaseRepository[ContentPiece]):
    """Generated pieces are partitioned by /idea_id."""

    container_name = "content_pieces"
    model_class = ContentPiece

    async def list_for_idea(self, idea_id: str) -> list[ContentPiece]:
        return await self.query(
            "SELECT * FROM c WHERE c.idea_id = @idea_id AND NOT IS_DEFINED(c.deleted_at)",
            [{"name": "@idea_id", "value": idea_id}],
        )
