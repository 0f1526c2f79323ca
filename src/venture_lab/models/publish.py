"""Publish record and publish log models."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from venture_lab.models.base import DocumentBase


class PublishAction(StrEnum):
    PUBLISHED = "published"
    ALREADY_PUBLISHED = "already_published"
    NOTHING_TO_PUBLISH = "nothing_to_publish"
    NOT_FOUND = "not_found"
    ERROR = "error"


class PublishRecord(DocumentBase):
    """Append-only marker that a piece has been published (document id = piece id).

    The existence of a record is the guard against publishing a piece twice.
    """

    idea_id: str
    piece_id: str
    slug: str
    commit_sha: str
    file_path: str
    published_at: datetime
    target_id: str = "default"
    site_url: str = ""


class PublishLogEntry(DocumentBase):
    """One line of the publish activity log, partitioned by ``log_date``."""

    log_date: str
    action: PublishAction
    detail: str
    idea_id: str | None = None
    piece_id: str | None = None
