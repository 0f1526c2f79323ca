"""Publish routes — scheduled trigger, single-piece publish, and the activity log."""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, status

from venture_lab.errors import ConfigurationError
from venture_lab.models.publish import PublishAction
from venture_lab.routes.deps import get_services, not_found
from venture_lab.startup import Services

router = APIRouter(prefix="/publish", tags=["publish"])


def _not_configured(exc: ConfigurationError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))


@router.post("/run")
async def run(idea_id: str | None = None, services: Services = Depends(get_services)) -> dict:
    """Publish the next eligible piece. Safe to call on a schedule."""
    try:
        result = await services.publishing.publish_next(idea_id)
    except ConfigurationError as exc:
        raise _not_configured(exc) from exc
    return asdict(result)


@router.post("/{idea_id}/{piece_id}")
async def publish_piece(
    idea_id: str, piece_id: str, services: Services = Depends(get_services)
) -> dict:
    try:
        result = await services.publishing.publish_piece(idea_id, piece_id)
    except ConfigurationError as exc:
        raise _not_configured(exc) from exc
    if result.action == PublishAction.NOT_FOUND:
        raise not_found(result.detail)
    return asdict(result)


@router.get("/log")
async def log(limit: int = 50, services: Services = Depends(get_services)) -> list[dict]:
    return [entry.model_dump(mode="json") for entry in await services.publishing.recent_log(limit)]
