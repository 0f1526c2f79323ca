"""Validation canvas routes — assumptions, pivots, status changes and the kill switch."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from venture_lab.errors import CanvasKilledError, GenerationError
from venture_lab.models.canvas import AssumptionStatus, AssumptionType
from venture_lab.routes.deps import bad_request, get_services, not_found
from venture_lab.startup import Services

router = APIRouter(prefix="/validation", tags=["validation"])


class TypeRequest(BaseModel):
    type: AssumptionType


class PivotRequest(BaseModel):
    type: AssumptionType
    suggestion_index: int


class StatusRequest(BaseModel):
    type: AssumptionType
    status: AssumptionStatus


class KillRequest(BaseModel):
    reason: str


def _killed(exc: CanvasKilledError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))


@router.get("/{idea_id}")
async def get_canvas(idea_id: str, services: Services = Depends(get_services)) -> dict:
    canvas = await services.validation.get_canvas(idea_id)
    if canvas is None:
        raise not_found("No validation canvas found")
    return canvas.model_dump(mode="json")


@router.post("/{idea_id}/generate")
async def generate(idea_id: str, services: Services = Depends(get_services)) -> dict:
    try:
        canvas = await services.validation.generate_assumptions(idea_id)
    except GenerationError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    if canvas is None:
        raise not_found("No analysis found for this idea")
    return canvas.model_dump(mode="json")


@router.post("/{idea_id}/pivot-suggestions")
async def pivot_suggestions(
    idea_id: str, body: TypeRequest, services: Services = Depends(get_services)
) -> list[dict]:
    try:
        suggestions = await services.validation.generate_pivot_suggestions(idea_id, body.type)
    except CanvasKilledError as exc:
        raise _killed(exc) from exc
    except ValueError as exc:
        raise bad_request(str(exc)) from exc
    if suggestions is None:
        raise not_found("No validation canvas found")
    return [s.model_dump(mode="json") for s in suggestions]


@router.post("/{idea_id}/pivot")
async def pivot(
    idea_id: str, body: PivotRequest, services: Services = Depends(get_services)
) -> dict:
    try:
        canvas = await services.validation.apply_pivot(idea_id, body.type, body.suggestion_index)
    except CanvasKilledError as exc:
        raise _killed(exc) from exc
    except ValueError as exc:
        raise bad_request(str(exc)) from exc
    if canvas is None:
        raise not_found("No validation canvas found")
    return canvas.model_dump(mode="json")


@router.post("/{idea_id}/status")
async def update_status(
    idea_id: str, body: StatusRequest, services: Services = Depends(get_services)
) -> dict:
    try:
        assumption = await services.validation.update_assumption_status(
            idea_id, body.type, body.status
        )
    except CanvasKilledError as exc:
        raise _killed(exc) from exc
    except ValueError as exc:
        raise bad_request(str(exc)) from exc
    if assumption is None:
        raise not_found("No validation canvas found")
    return assumption.model_dump(mode="json")


@router.post("/{idea_id}/kill")
async def kill(idea_id: str, body: KillRequest, services: Services = Depends(get_services)) -> dict:
    if not body.reason.strip():
        raise bad_request("Missing required field: reason")
    canvas = await services.validation.kill(idea_id, body.reason)
    if canvas is None:
        raise not_found("No validation canvas found")
    return canvas.model_dump(mode="json")


@router.get("/{idea_id}/due")
async def due(idea_id: str, services: Services = Depends(get_services)) -> list[dict]:
    """Testing assumptions whose observation window has elapsed."""
    assumptions = await services.validation.evaluate_assumptions(idea_id)
    return [a.model_dump(mode="json") for a in assumptions]
