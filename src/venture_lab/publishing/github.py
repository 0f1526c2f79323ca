"""GitHub contents API client used to commit published pieces to the site repository."""

from __future__ import annotations

import base64
import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

import httpx

from venture_lab.errors import ConfigurationError

if TYPE_CHECKING:
    from venture_lab.config import GitHubConfig

logger = logging.getLogger(__name__)

_TYPE_DIRS = {
    "blog-post": "blog",
    "comparison": "comparison",
    "faq": "faq",
    "social-post": "social",
    "website": "pages",
}

_DRAFT_STATUS = re.compile(r"^(status:[ \t]*)draft[ \t]*$", re.MULTILINE)


@dataclass(frozen=True)
class CommitResult:
    sha: str
    path: str
    html_url: str = ""


def content_path(content_dir: str, content_type: str, slug: str) -> str:
    """Repository path for a piece, e.g. ``content/blog/my-post.md``."""
    directory = _TYPE_DIRS.get(content_type, content_type)
    return f"{content_dir.strip('/')}/{directory}/{slug}.md"


def mark_published(markdown: str) -> str:
    """Flip a ``status: draft`` front-matter line to ``status: published``."""
    return _DRAFT_STATUS.sub(r"\1published", markdown, count=1)


class GitHubPublisher:
    """Create or update one file per commit through the contents API."""

    def __init__(self, config: GitHubConfig, client: httpx.AsyncClient | None = None) -> None:
        self._config = config
        self._client = client

    @property
    def is_configured(self) -> bool:
        return self._config.is_configured

    async def commit_file(self, path: str, content: str, message: str) -> CommitResult:
        """Write ``content`` to ``path``; an existing file is updated in place.

        Raises ``ConfigurationError`` when no token or repository is set and
        ``httpx.HTTPStatusError`` when GitHub rejects the request.
        """
        if not self._config.is_configured:
            raise ConfigurationError(
                "Publishing not configured — set GITHUB_TOKEN and GITHUB_REPOSITORY"
            )
        if self._client is not None:
            return await self._commit(self._client, path, content, message)
        async with httpx.AsyncClient(timeout=30) as client:
            return await self._commit(client, path, content, message)

    async def _commit(
        self, client: httpx.AsyncClient, path: str, content: str, message: str
    ) -> CommitResult:
        url = f"{self._config.api_url.rstrip('/')}/repos/{self._config.repository}/contents/{path}"
        headers = {
            "Authorization": f"Bearer {self._config.token}",
            "Accept": "application/vnd.github+json",
        }

        existing = await client.get(url, headers=headers, params={"ref": self._config.branch})
        sha: str | None = None
        if existing.status_code != httpx.codes.NOT_FOUND:
            existing.raise_for_status()
            sha = existing.json().get("sha")

        body = {
            "message": message,
            "content": base64.b64encode(content.encode("utf-8")).decode("ascii"),
            "branch": self._config.branch,
        }
        if sha:
            body["sha"] = sha

        response = await client.put(url, headers=headers, json=body)
        response.raise_for_status()
        data = response.json()
        commit_sha = (data.get("commit") or {}).get("sha") or ""
        if not commit_sha:
            logger.warning(
                "Commit response without sha — repo=%s path=%s", self._config.repository, path
            )
        result = CommitResult(
            sha=commit_sha,
            path=path,
            html_url=(data.get("content") or {}).get("html_url", ""),
        )
        logger.info(
            "Committed file — repo=%s path=%s sha=%s updated=%s",
            self._config.repository,
            path,
            result.sha,
            sha is not None,
        )
        return result
