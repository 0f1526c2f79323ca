"""Repository for the pipeline_progress container (partitioned by /id)."""

from __future__ import annotations

from venture_lab.database.repositories.base import BaseRepository
from venture_lab.models.progress import PipelineProgress


class PipelineProgressRepository(BaseRepository[PipelineProgress]):
    container_name = "pipeline_progress"
    model_class = PipelineProgress

    async def get_for(self, pipeline: str, subject_id: str) -> PipelineProgress | None:
        record_id = PipelineProgress.record_id(pipeline, subject_id)
        return await self.get(record_id, record_id)

    async def get_for_with_etag(
        self, pipeline: str, subject_id: str
    ) -> tuple[PipelineProgress, str] | None:
        record_id = PipelineProgress.record_id(pipeline, subject_id)
        return await self.get_with_etag(record_id, record_id)

    async def delete_for(self, pipeline: str, subject_id: str) -> bool:
        record_id = PipelineProgress.record_id(pipeline, subject_id)
        return await self.delete(record_id, record_id)
