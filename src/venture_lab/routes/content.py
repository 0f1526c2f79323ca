"""Content routes — trigger piece generation and poll its progress."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from venture_lab.pipeline.content import PIPELINE
from venture_lab.pipeline.worker import PipelineJob
from venture_lab.routes.deps import bad_request, get_services, not_found
from venture_lab.startup import Services

router = APIRouter(prefix="/content", tags=["content"])


class GenerateRequest(BaseModel):
    piece_ids: list[str]


@router.post("/{idea_id}/generate", status_code=status.HTTP_202_ACCEPTED)
async def generate(
    idea_id: str,
    body: GenerateRequest,
    services: Services = Depends(get_services),
) -> dict:
    plan = await services.content.plan(idea_id)
    if plan is None:
        raise not_found(f"No content calendar for {idea_id}")
    known = {piece.id for piece in plan}
    unknown = [p for p in body.piece_ids if p not in known]
    if unknown:
        raise bad_request(f"Unknown piece ids: {', '.join(unknown)}")
    accepted = services.worker.submit(
        PipelineJob(PIPELINE, idea_id, {"piece_ids": body.piece_ids})
    )
    return {"accepted": accepted, "idea_id": idea_id}


@router.get("/{idea_id}/progress")
async def progress(idea_id: str, services: Services = Depends(get_services)) -> dict:
    record = await services.progress.poll(PIPELINE, idea_id)
    return record.model_dump(mode="json")


@router.post("/{idea_id}/reset")
async def reset(idea_id: str, services: Services = Depends(get_services)) -> dict:
    if services.worker.is_pending(PIPELINE, idea_id):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail="Pipeline is queued or running"
        )
    return {"reset": await services.progress.reset(PIPELINE, idea_id)}
