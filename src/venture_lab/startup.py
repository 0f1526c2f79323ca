"""Composition root — builds repositories, pipelines and services from settings."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from venture_lab.agents.critique import CritiqueService
from venture_lab.agents.llm import create_chat_client
from venture_lab.agents.prompts import PromptCache
from venture_lab.agents.runner import AgentRunner
from venture_lab.database.client import CosmosClient
from venture_lab.database.repositories import (
    AgentRunRepository,
    AnalysisRepository,
    CanvasRepository,
    ContentCalendarRepository,
    ContentPieceRepository,
    FoundationRepository,
    PipelineProgressRepository,
    PublishLogRepository,
    PublishRecordRepository,
)
from venture_lab.errors import ConfigurationError
from venture_lab.pipeline import content as content_pipeline
from venture_lab.pipeline import foundation as foundation_pipeline
from venture_lab.pipeline.content import ContentPipeline
from venture_lab.pipeline.foundation import FoundationPipeline
from venture_lab.pipeline.progress import PipelineProgressStore
from venture_lab.pipeline.scheduler import GenerationScheduler
from venture_lab.pipeline.worker import PipelineJob, PipelineWorker
from venture_lab.publishing.github import GitHubPublisher
from venture_lab.publishing.selector import PublishSelector
from venture_lab.publishing.service import PublishService
from venture_lab.validation.engine import ValidationCanvasEngine

if TYPE_CHECKING:
    from azure.cosmos.aio import DatabaseProxy

    from venture_lab.config import Settings
    from venture_lab.models.progress import PipelineProgress
    from venture_lab.pipeline.budget import TimeBudget

logger = logging.getLogger(__name__)


@dataclass
class Services:
    prompts: PromptCache
    progress: PipelineProgressStore
    foundation: FoundationPipeline
    content: ContentPipeline
    validation: ValidationCanvasEngine
    publishing: PublishService
    worker: PipelineWorker


async def init_database(settings: Settings) -> CosmosClient:
    """Connect to Cosmos DB. Raises ``ConfigurationError`` when it is not configured."""
    cosmos = CosmosClient(settings.cosmos)
    await cosmos.initialize()
    return cosmos


def init_chat_client(settings: Settings) -> object | None:
    """Create the LLM chat client, or return None when no provider is configured."""
    try:
        return create_chat_client(settings.openai)
    except ConfigurationError as exc:
        logger.warning("%s", exc)
        return None


def build_services(
    settings: Settings,
    database: DatabaseProxy,
    chat_client: object,
    prompts: PromptCache | None = None,
) -> Services:
    prompts = prompts or PromptCache()
    runner = AgentRunner(chat_client, AgentRunRepository(database))
    progress = PipelineProgressStore(PipelineProgressRepository(database), settings.pipeline)
    scheduler = GenerationScheduler(progress)

    docs_repo = FoundationRepository(database)
    analyses_repo = AnalysisRepository(database)
    calendars_repo = ContentCalendarRepository(database)
    pieces_repo = ContentPieceRepository(database)
    records_repo = PublishRecordRepository(database)

    foundation = FoundationPipeline(
        docs_repo=docs_repo,
        analyses_repo=analyses_repo,
        runner=runner,
        prompts=prompts,
        scheduler=scheduler,
    )
    content = ContentPipeline(
        calendars_repo=calendars_repo,
        pieces_repo=pieces_repo,
        docs_repo=docs_repo,
        runner=runner,
        critique=CritiqueService(runner, prompts, settings.pipeline.critic_concurrency),
        prompts=prompts,
        scheduler=scheduler,
    )
    validation = ValidationCanvasEngine(
        canvases_repo=CanvasRepository(database),
        analyses_repo=analyses_repo,
        docs_repo=docs_repo,
        runner=runner,
        prompts=prompts,
    )
    publishing = PublishService(
        selector=PublishSelector(calendars_repo, pieces_repo, records_repo),
        publisher=GitHubPublisher(settings.github),
        records_repo=records_repo,
        log_repo=PublishLogRepository(database),
        config=settings.github,
    )

    async def run_foundation(job: PipelineJob, budget: TimeBudget) -> PipelineProgress | None:
        return await foundation.run(
            job.subject_id,
            kinds=job.params.get("kinds"),
            strategic_inputs=job.params.get("strategic_inputs"),
            budget=budget,
        )

    async def run_content(job: PipelineJob, budget: TimeBudget) -> PipelineProgress | None:
        return await content.run(job.subject_id, job.params.get("piece_ids", []), budget=budget)

    worker = PipelineWorker(
        {
            foundation_pipeline.PIPELINE: run_foundation,
            content_pipeline.PIPELINE: run_content,
        },
        settings.pipeline,
    )
    return Services(
        prompts=prompts,
        progress=progress,
        foundation=foundation,
        content=content,
        validation=validation,
        publishing=publishing,
        worker=worker,
    )
