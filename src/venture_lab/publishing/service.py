"""PublishService — idempotent publish of one piece per scheduled trigger."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

import httpx

from venture_lab.errors import ConfigurationError
from venture_lab.models.base import utcnow
from venture_lab.models.publish import PublishAction, PublishLogEntry, PublishRecord
from venture_lab.models.work_item import WorkItemStatus
from venture_lab.publishing.github import content_path, mark_published

if TYPE_CHECKING:
    from venture_lab.config import GitHubConfig
    from venture_lab.database.repositories.publish import (
        PublishLogRepository,
        PublishRecordRepository,
    )
    from venture_lab.publishing.github import GitHubPublisher
    from venture_lab.publishing.selector import PipelineCandidate, PublishSelector

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PublishResult:
    action: PublishAction
    detail: str
    idea_id: str | None = None
    piece_id: str | None = None
    commit_sha: str | None = None

    @property
    def ok(self) -> bool:
        return self.action != PublishAction.ERROR


class PublishService:
    """Publishing checks for a PublishRecord before any commit is attempted.

    The record is the cross-process guard; the lock only stops two triggers
    in this process from racing between the check and the commit.
    """

    def __init__(
        self,
        *,
        selector: PublishSelector,
        publisher: GitHubPublisher,
        records_repo: PublishRecordRepository,
        log_repo: PublishLogRepository,
        config: GitHubConfig,
    ) -> None:
        self._selector = selector
        self._publisher = publisher
        self._records = records_repo
        self._log = log_repo
        self._config = config
        self._lock = asyncio.Lock()

    async def publish_next(self, idea_id: str | None = None) -> PublishResult:
        """Publish the highest-priority unpublished piece.

        Raises ``ConfigurationError`` before selecting anything when GitHub
        is not configured.
        """
        self._require_configured()
        async with self._lock:
            candidate = await self._selector.find_next_piece_to_publish(idea_id)
            if candidate is None:
                return await self._logged(
                    PublishResult(
                        action=PublishAction.NOTHING_TO_PUBLISH,
                        detail="No unpublished content pieces found",
                        idea_id=idea_id,
                    )
                )
            return await self._publish(candidate)

    async def publish_piece(self, idea_id: str, piece_id: str) -> PublishResult:
        self._require_configured()
        async with self._lock:
            candidate = await self._selector.find_piece(idea_id, piece_id)
            if candidate is None:
                return PublishResult(
                    action=PublishAction.NOT_FOUND,
                    detail=f"Piece {piece_id} not found on calendar for {idea_id}",
                    idea_id=idea_id,
                    piece_id=piece_id,
                )
            if candidate.piece.status != WorkItemStatus.COMPLETE or not candidate.piece.content:
                return PublishResult(
                    action=PublishAction.NOTHING_TO_PUBLISH,
                    detail=f"Piece {piece_id} has not been generated",
                    idea_id=idea_id,
                    piece_id=piece_id,
                )
            return await self._publish(candidate)

    async def recent_log(self, limit: int = 50) -> list[PublishLogEntry]:
        return await self._log.list_recent(limit)

    def _require_configured(self) -> None:
        if not self._config.is_configured:
            raise ConfigurationError(
                "Publishing not configured — set GITHUB_TOKEN and GITHUB_REPOSITORY"
            )

    async def _publish(self, candidate: PipelineCandidate) -> PublishResult:
        calendar, piece = candidate.calendar, candidate.piece

        if await self._records.is_published(calendar.idea_id, piece.id):
            logger.info("Piece already published — idea=%s piece=%s", calendar.idea_id, piece.id)
            return PublishResult(
                action=PublishAction.ALREADY_PUBLISHED,
                detail=f"Piece {piece.id} is already published",
                idea_id=calendar.idea_id,
                piece_id=piece.id,
            )

        path = content_path(self._config.content_dir, piece.kind, piece.slug)
        try:
            commit = await self._publisher.commit_file(
                path,
                mark_published(piece.content or ""),
                f"Publish: {piece.title} ({piece.kind})",
            )
        except httpx.HTTPError as exc:
            logger.exception("Publish failed — idea=%s piece=%s", calendar.idea_id, piece.id)
            return await self._logged(
                PublishResult(
                    action=PublishAction.ERROR,
                    detail=f"Publish failed: {exc}",
                    idea_id=calendar.idea_id,
                    piece_id=piece.id,
                )
            )

        recorded = await self._records.record(
            PublishRecord(
                id=piece.id,
                idea_id=calendar.idea_id,
                piece_id=piece.id,
                slug=piece.slug,
                commit_sha=commit.sha,
                file_path=commit.path,
                published_at=utcnow(),
                target_id=calendar.target_id,
                site_url=self._config.site_url,
            )
        )
        if not recorded:
            logger.warning(
                "Publish record already existed — idea=%s piece=%s", calendar.idea_id, piece.id
            )
        return await self._logged(
            PublishResult(
                action=PublishAction.PUBLISHED,
                detail=f'Published "{piece.title}" to {commit.path}',
                idea_id=calendar.idea_id,
                piece_id=piece.id,
                commit_sha=commit.sha,
            )
        )

    async def _logged(self, result: PublishResult) -> PublishResult:
        now = utcnow()
        await self._log.add(
            PublishLogEntry(
                log_date=now.date().isoformat(),
                action=result.action,
                detail=result.detail,
                idea_id=result.idea_id,
                piece_id=result.piece_id,
            )
        )
        return result
