"""Web app entry point — FastAPI factory, lifespan wiring and the uvicorn runner."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from agent_framework.observability import create_resource, enable_instrumentation
from azure.monitor.opentelemetry import configure_azure_monitor
from fastapi import FastAPI

from venture_lab.config import load_settings
from venture_lab.errors import ConfigurationError
from venture_lab.logging import configure_logging
from venture_lab.routes import content, foundation, health, publish, validation
from venture_lab.startup import build_services, init_chat_client, init_database

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = app.state.settings
    app.state.cosmos = None
    app.state.services = None

    try:
        app.state.cosmos = await init_database(settings)
    except ConfigurationError as exc:
        logger.error("%s", exc)  # noqa: TRY400

    chat_client = init_chat_client(settings)
    app.state.llm_configured = chat_client is not None

    if app.state.cosmos is not None and chat_client is not None:
        app.state.services = build_services(settings, app.state.cosmos.database, chat_client)
        await app.state.services.worker.start()
        logger.info("Services ready — env=%s", settings.app.env)
    else:
        logger.warning("Running without services — pipelines report not configured")

    yield

    if app.state.services is not None:
        await app.state.services.worker.stop()
    if app.state.cosmos is not None:
        await app.state.cosmos.close()
    logger.info("Shutdown complete")


def create_app() -> FastAPI:
    settings = load_settings()
    configure_logging(settings.app.log_level)

    if settings.monitor.connection_string:
        configure_azure_monitor(
            connection_string=settings.monitor.connection_string,
            resource=create_resource(service_name="venture-lab"),
        )
        enable_instrumentation()
        logger.info("Azure Monitor OpenTelemetry configured with agent instrumentation")

    app = FastAPI(title="Venture Lab", lifespan=lifespan)
    app.state.settings = settings
    app.include_router(health.router)
    app.include_router(foundation.router)
    app.include_router(content.router)
    app.include_router(validation.router)
    app.include_router(publish.router)
    return app


def main() -> None:
    """Entry point for the web process."""
    uvicorn.run("venture_lab.app:create_app", factory=True, host="0.0.0.0", port=8000)  # noqa: S104


if __name__ == "__main__":
    main()
