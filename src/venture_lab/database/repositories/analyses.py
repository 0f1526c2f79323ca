"""Repository for the analyses container (partitioned by /id)."""

from __future__ import annotations

from venture_lab.database.repositories.base import BaseRepository
from venture_lab.models.analysis import Analysis


class AnalysisRepository(BaseRepository[Analysis]):
    container_name = "analyses"
    model_class = Analysis

    async def get_for_idea(self, idea_id: str) -> Analysis | None:
        return await self.get(idea_id, idea_id)
