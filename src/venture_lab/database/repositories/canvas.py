"""Repository for the canvases container (partitioned by /id)."""

from __future__ import annotations

from venture_lab.database.repositories.base import BaseRepository
from venture_lab.models.canvas import ValidationCanvas


class CanvasRepository(BaseRepository[ValidationCanvas]):
    container_name = "canvases"
    model_class = ValidationCanvas

    async def get_for_idea(self, idea_id: str) -> ValidationCanvas | None:
        return await self.get(idea_id, idea_id)
