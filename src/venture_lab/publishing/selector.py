"""PublishSelector — deterministically picks the next complete, unpublished piece."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from venture_lab.models.work_item import WorkItemStatus

if TYPE_CHECKING:
    from venture_lab.database.repositories.content import (
        ContentCalendarRepository,
        ContentPieceRepository,
    )
    from venture_lab.database.repositories.publish import PublishRecordRepository
    from venture_lab.models.content import ContentCalendar, ContentPiece

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineCandidate:
    calendar: ContentCalendar
    piece: ContentPiece


class PublishSelector:
    """Reads calendars, generated pieces and publish records; never calls the LLM."""

    def __init__(
        self,
        calendars_repo: ContentCalendarRepository,
        pieces_repo: ContentPieceRepository,
        records_repo: PublishRecordRepository,
    ) -> None:
        self._calendars = calendars_repo
        self._pieces = pieces_repo
        self._records = records_repo

    async def find_next_piece_to_publish(
        self, idea_id: str | None = None
    ) -> PipelineCandidate | None:
        """Return the first publishable candidate, or ``None`` when nothing qualifies.

        Order is calendar priority, then calendar order, then position on the
        calendar.
        """
        candidates = await self.candidates(idea_id)
        if not candidates:
            return None
        choice = candidates[0]
        logger.info(
            "Next piece selected — idea=%s piece=%s priority=%d",
            choice.calendar.idea_id,
            choice.piece.id,
            choice.piece.priority,
        )
        return choice

    async def candidates(self, idea_id: str | None = None) -> list[PipelineCandidate]:
        ranked: list[tuple[tuple[int, int, int], PipelineCandidate]] = []
        for calendar_index, calendar in enumerate(await self._calendars_for(idea_id)):
            if not calendar.active:
                continue
            published = await self._records.published_ids(calendar.idea_id)
            for piece_index, piece in enumerate(await self._merged_pieces(calendar)):
                if piece.status != WorkItemStatus.COMPLETE or piece.id in published:
                    continue
                ranked.append(
                    (
                        (piece.priority, calendar_index, piece_index),
                        PipelineCandidate(calendar=calendar, piece=piece),
                    )
                )
        ranked.sort(key=lambda pair: pair[0])
        return [candidate for _, candidate in ranked]

    async def find_piece(self, idea_id: str, piece_id: str) -> PipelineCandidate | None:
        """Look up one calendar piece regardless of its generation or publish state."""
        calendar = await self._calendars.get_for_idea(idea_id)
        if calendar is None:
            return None
        for piece in await self._merged_pieces(calendar):
            if piece.id == piece_id:
                return PipelineCandidate(calendar=calendar, piece=piece)
        return None

    async def _calendars_for(self, idea_id: str | None) -> list[ContentCalendar]:
        if idea_id is None:
            return await self._calendars.list_all()
        calendar = await self._calendars.get_for_idea(idea_id)
        return [calendar] if calendar is not None else []

    async def _merged_pieces(self, calendar: ContentCalendar) -> list[ContentPiece]:
        """Generated pieces take precedence, but the calendar's priority wins."""
        generated = {p.id: p for p in await self._pieces.list_for_idea(calendar.idea_id)}
        merged = []
        for entry in calendar.pieces:
            piece = generated.get(entry.id)
            if piece is None:
                merged.append(calendar.to_piece(entry))
            else:
                merged.append(piece.model_copy(update={"priority": entry.priority}))
        return merged
