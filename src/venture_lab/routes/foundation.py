"""Foundation routes — trigger generation, poll progress, reset, and chat with a document."""

from __future__ import annotations

import json
from collections.abc import AsyncIterator

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

from venture_lab.models.foundation import DocumentKind
from venture_lab.pipeline.foundation import PIPELINE
from venture_lab.pipeline.worker import PipelineJob
from venture_lab.routes.deps import bad_request, get_services, not_found
from venture_lab.startup import Services

router = APIRouter(prefix="/foundation", tags=["foundation"])


class GenerateRequest(BaseModel):
    kinds: list[str] | None = None
    strategic_inputs: dict[str, str] = Field(default_factory=dict)


class ChatRequest(BaseModel):
    messages: list[dict[str, str]]
    current_content: str | None = None


def _kind(value: str) -> DocumentKind:
    try:
        return DocumentKind(value)
    except ValueError:
        raise bad_request(f"Unknown document type: {value}") from None


@router.post("/{idea_id}/generate", status_code=status.HTTP_202_ACCEPTED)
async def generate(
    idea_id: str,
    body: GenerateRequest,
    services: Services = Depends(get_services),
) -> dict:
    """Queue foundation generation; a duplicate trigger is accepted as a no-op."""
    kinds = [_kind(k).value for k in body.kinds] if body.kinds is not None else None
    if not await services.foundation.has_analysis(idea_id):
        raise not_found(f"No analysis found for {idea_id}")
    accepted = services.worker.submit(
        PipelineJob(
            PIPELINE,
            idea_id,
            {"kinds": kinds, "strategic_inputs": body.strategic_inputs},
        )
    )
    return {"accepted": accepted, "idea_id": idea_id}


@router.get("/{idea_id}/progress")
async def progress(idea_id: str, services: Services = Depends(get_services)) -> dict:
    record = await services.progress.poll(PIPELINE, idea_id)
    return record.model_dump(mode="json")


@router.post("/{idea_id}/reset")
async def reset(idea_id: str, services: Services = Depends(get_services)) -> dict:
    """Clear stored progress so the next trigger is a fresh run."""
    if services.worker.is_pending(PIPELINE, idea_id):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail="Pipeline is queued or running"
        )
    return {"reset": await services.progress.reset(PIPELINE, idea_id)}


@router.get("/{idea_id}/documents")
async def documents(idea_id: str, services: Services = Depends(get_services)) -> list[dict]:
    plan = await services.foundation.plan(idea_id)
    return [doc.model_dump(mode="json") for doc in plan]


@router.post("/{idea_id}/{kind}/chat")
async def chat(
    idea_id: str,
    kind: str,
    body: ChatRequest,
    services: Services = Depends(get_services),
) -> StreamingResponse:
    """Stream the advisor's reply as newline-delimited JSON events."""
    doc = await services.foundation.get_document(idea_id, _kind(kind))
    if doc is None:
        raise not_found(f"No {kind} document for {idea_id}")

    async def events() -> AsyncIterator[str]:
        async for event in services.foundation.chat(doc, body.messages, body.current_content):
            yield json.dumps(event.to_dict()) + "\n"

    return StreamingResponse(events(), media_type="application/x-ndjson")
