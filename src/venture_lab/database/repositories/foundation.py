"""Repository for the foundation_docs container (partitioned by /idea_id)."""

from __future__ import annotations

from venture_lab.database.repositories.base import BaseRepository
from venture_lab.models.foundation import FoundationDocument


class FoundationRepository(BaseRepository[FoundationDocument]):
    container_name = "foundation_docs"
    model_class = FoundationDocument

    async def get_doc(self, idea_id: str, kind: str) -> FoundationDocument | None:
        return await self.get(FoundationDocument.document_id(idea_id, kind), idea_id)

    async def list_for_idea(self, idea_id: str) -> list[FoundationDocument]:
        """Fetch every foundation document stored for an idea."""
        return await self.query(
            "SELECT * FROM c WHERE c.idea_id = @idea_id AND NOT IS_DEFINED(c.deleted_at)",
            [{"name": "@idea_id", "value": idea_id}],
        )

    async def mark_stale(self, idea_id: str, kind: str) -> bool:
        """Flag a document for regeneration. Returns False when it does not exist."""
        doc = await self.get_doc(idea_id, kind)
        if doc is None:
            return False
        doc.stale = True
        await self.upsert(doc)
        return True
