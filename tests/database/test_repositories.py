"""Tests for BaseRepository and the container repositories."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from azure.core import MatchConditions
from azure.cosmos.exceptions import (
    CosmosHttpResponseError,
    CosmosResourceExistsError,
    CosmosResourceNotFoundError,
)

from venture_lab.database.repositories.content import ContentPieceRepository
from venture_lab.database.repositories.foundation import FoundationRepository
from venture_lab.database.repositories.progress import PipelineProgressRepository
from venture_lab.database.repositories.publish import PublishRecordRepository
from venture_lab.models.content import ContentPiece
from venture_lab.models.foundation import DocumentKind
from venture_lab.models.progress import PipelineProgress, ProgressStatus
from venture_lab.models.publish import PublishRecord


def _repo(cls):
    mock_db = MagicMock()
    mock_container = AsyncMock()
    mock_db.get_container_client.return_value = mock_container
    return cls(mock_db)


def _progress_item(**overrides):
    item = {
        "id": "content-idea-1",
        "pipeline": "content",
        "subject_id": "idea-1",
        "status": "running",
        "completed_ids": ["p1"],
        "_etag": "etag-7",
        "created_at": "2026-01-01T00:00:00+00:00",
        "updated_at": "2026-01-01T00:00:00+00:00",
    }
    item.update(overrides)
    return item


class TestPipelineProgressRepository:
    """Test the Pipeline Progress Repository."""

    @pytest.fixture
    def repo(self) -> PipelineProgressRepository:
        return _repo(PipelineProgressRepository)

    async def test_get_for_reads_by_record_id(self, repo: PipelineProgressRepository) -> None:
        """Verify the record id doubles as the partition key."""
        repo._container.read_item.return_value = _progress_item()  # noqa: SLF001

        progress = await repo.get_for("content", "idea-1")

        assert progress.status == ProgressStatus.RUNNING
        assert progress.completed_ids == ["p1"]
        repo._container.read_item.assert_awaited_once_with(  # noqa: SLF001
            item="content-idea-1", partition_key="content-idea-1"
        )

    async def test_get_for_missing_returns_none(self, repo: PipelineProgressRepository) -> None:
        """Verify a missing record reads as None."""
        repo._container.read_item.side_effect = CosmosResourceNotFoundError()  # noqa: SLF001
        assert await repo.get_for("content", "idea-1") is None

    async def test_get_for_with_etag(self, repo: PipelineProgressRepository) -> None:
        """Verify the etag is returned alongside the record."""
        repo._container.read_item.return_value = _progress_item()  # noqa: SLF001

        progress, etag = await repo.get_for_with_etag("content", "idea-1")

        assert progress.id == "content-idea-1"
        assert etag == "etag-7"

    async def test_replace_if_unchanged_uses_etag_match(
        self, repo: PipelineProgressRepository
    ) -> None:
        """Verify conditional replace passes the etag and match condition."""
        progress = PipelineProgress(id="content-idea-1", pipeline="content", subject_id="idea-1")

        assert await repo.replace_if_unchanged(progress, "etag-7") is True

        kwargs = repo._container.replace_item.call_args.kwargs  # noqa: SLF001
        assert kwargs["etag"] == "etag-7"
        assert kwargs["match_condition"] is MatchConditions.IfNotModified

    async def test_replace_if_unchanged_returns_false_on_conflict(
        self, repo: PipelineProgressRepository
    ) -> None:
        """Verify a precondition failure means someone else wrote first."""
        repo._container.replace_item.side_effect = CosmosHttpResponseError(  # noqa: SLF001
            status_code=412, message="Precondition Failed"
        )
        progress = PipelineProgress(id="content-idea-1", pipeline="content", subject_id="idea-1")

        assert await repo.replace_if_unchanged(progress, "etag-7") is False

    async def test_replace_if_unchanged_reraises_other_errors(
        self, repo: PipelineProgressRepository
    ) -> None:
        """Verify non-412 errors propagate."""
        repo._container.replace_item.side_effect = CosmosHttpResponseError(  # noqa: SLF001
            status_code=503, message="Service Unavailable"
        )
        progress = PipelineProgress(id="content-idea-1", pipeline="content", subject_id="idea-1")

        with pytest.raises(CosmosHttpResponseError):
            await repo.replace_if_unchanged(progress, "etag-7")

    async def test_create_if_absent_conflict(self, repo: PipelineProgressRepository) -> None:
        """Verify an existing id is reported rather than raised."""
        repo._container.create_item.side_effect = CosmosResourceExistsError()  # noqa: SLF001
        progress = PipelineProgress(id="content-idea-1", pipeline="content", subject_id="idea-1")

        assert await repo.create_if_absent(progress) is False

    async def test_delete_for(self, repo: PipelineProgressRepository) -> None:
        """Verify delete reports whether the record existed."""
        assert await repo.delete_for("content", "idea-1") is True
        repo._container.delete_item.side_effect = CosmosResourceNotFoundError()  # noqa: SLF001
        assert await repo.delete_for("content", "idea-1") is False


class TestFoundationRepository:
    """Test the Foundation Repository."""

    @pytest.fixture
    def repo(self) -> FoundationRepository:
        return _repo(FoundationRepository)

    async def test_list_for_idea_queries_by_idea(self, repo: FoundationRepository) -> None:
        """Verify list_for_idea filters on idea id."""
        repo.query = AsyncMock(return_value=[])

        await repo.list_for_idea("idea-1")

        call_args = repo.query.call_args
        assert "@idea_id" in call_args[0][0]
        assert call_args[0][1] == [{"name": "@idea_id", "value": "idea-1"}]

    async def test_mark_stale(self, repo: FoundationRepository) -> None:
        """Verify the stale flag is written back."""
        repo._container.read_item.return_value = {  # noqa: SLF001
            "id": "idea-1-strategy",
            "idea_id": "idea-1",
            "kind": "strategy",
            "status": "complete",
            "content": "Plan",
        }

        assert await repo.mark_stale("idea-1", DocumentKind.STRATEGY) is True

        body = repo._container.upsert_item.call_args.kwargs["body"]  # noqa: SLF001
        assert body["stale"] is True
        assert body["content"] == "Plan"

    async def test_mark_stale_missing(self, repo: FoundationRepository) -> None:
        """Verify a missing document is not created."""
        repo._container.read_item.side_effect = CosmosResourceNotFoundError()  # noqa: SLF001

        assert await repo.mark_stale("idea-1", DocumentKind.STRATEGY) is False
        repo._container.upsert_item.assert_not_called()  # noqa: SLF001


class TestPublishRecordRepository:
    """Test the Publish Record Repository."""

    @pytest.fixture
    def repo(self) -> PublishRecordRepository:
        return _repo(PublishRecordRepository)

    async def test_published_ids(self, repo: PublishRecordRepository) -> None:
        """Verify piece ids are collected from the idea's records."""
        record = PublishRecord(
            id="p1",
            idea_id="idea-1",
            piece_id="p1",
            slug="post-p1",
            commit_sha="abc",
            file_path="content/blog/post-p1.md",
            published_at="2026-01-01T00:00:00+00:00",
        )
        repo.query = AsyncMock(return_value=[record])

        assert await repo.published_ids("idea-1") == {"p1"}

    async def test_is_published_reads_by_piece_id(self, repo: PublishRecordRepository) -> None:
        """Verify the record is looked up in the idea's partition."""
        repo._container.read_item.side_effect = CosmosResourceNotFoundError()  # noqa: SLF001

        assert await repo.is_published("idea-1", "p1") is False
        repo._container.read_item.assert_awaited_once_with(  # noqa: SLF001
            item="p1", partition_key="idea-1"
        )


class TestBaseRepository:
    """Behaviour shared by every repository."""

    async def test_soft_deleted_documents_read_as_missing(self) -> None:
        """Verify get ignores documents with deleted_at set."""
        repo = _repo(ContentPieceRepository)
        repo._container.read_item.return_value = {  # noqa: SLF001
            "id": "p1",
            "idea_id": "idea-1",
            "kind": "blog-post",
            "title": "Post",
            "slug": "post",
            "deleted_at": "2026-01-02T00:00:00+00:00",
        }

        assert await repo.get("p1", "idea-1") is None

    async def test_query_validates_rows(self) -> None:
        """Verify query rows are parsed into the model class."""
        repo = _repo(ContentPieceRepository)

        async def rows():
            yield {"id": "p1", "idea_id": "idea-1", "kind": "blog-post", "title": "T", "slug": "t"}

        repo._container.query_items = MagicMock(return_value=rows())  # noqa: SLF001

        pieces = await repo.list_for_idea("idea-1")

        assert [p.id for p in pieces] == ["p1"]

    async def test_upsert_drops_none_fields(self) -> None:
        """Verify cleared optional fields are not stored."""
        repo = _repo(ContentPieceRepository)
        piece = ContentPiece(id="p1", idea_id="idea-1", kind="blog-post", title="T", slug="t")
        await repo.upsert(piece)

        body = repo._container.upsert_item.call_args.kwargs["body"]  # noqa: SLF001
        assert "content" not in body
        assert body["status"] == "pending"
