"""Health route — reports which external services are configured and reachable."""

from __future__ import annotations

from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(request: Request) -> dict:
    state = request.app.state
    settings = state.settings
    return {
        "status": "ok" if getattr(state, "services", None) is not None else "degraded",
        "environment": settings.app.env,
        "database": getattr(state, "cosmos", None) is not None,
        "llm": bool(getattr(state, "llm_configured", False)),
        "publishing": settings.github.is_configured,
    }
