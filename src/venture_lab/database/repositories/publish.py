"""Repositories for the publish_records and publish_log containers."""

from __future__ import annotations

from venture_lab.database.repositories.base import BaseRepository
from venture_lab.models.publish import PublishLogEntry, PublishRecord


class PublishRecordRepository(BaseRepository[PublishRecord]):
    """Records are keyed by piece id and partitioned by /idea_id."""

    container_name = "publish_records"
    model_class = PublishRecord

    async def is_published(self, idea_id: str, piece_id: str) -> bool:
        return await self.get(piece_id, idea_id) is not None

    async def published_ids(self, idea_id: str) -> set[str]:
        """Return the ids of every piece already published for an idea."""
        records = await self.query(
            "SELECT * FROM c WHERE c.idea_id = @idea_id",
            [{"name": "@idea_id", "value": idea_id}],
        )
        return {r.piece_id for r in records}

    async def record(self, record: PublishRecord) -> bool:
        """Append a record. Returns False when the piece was already recorded."""
        return await self.create_if_absent(record)


class PublishLogRepository(BaseRepository[PublishLogEntry]):
    """Log entries are partitioned by /log_date."""

    container_name = "publish_log"
    model_class = PublishLogEntry

    async def add(self, entry: PublishLogEntry) -> PublishLogEntry:
        return await self.create(entry)

    async def list_recent(self, limit: int = 50) -> list[PublishLogEntry]:
        return await self.query(
            "SELECT TOP @limit * FROM c ORDER BY c.created_at DESC",
            [{"name": "@limit", "value": limit}],
        )
