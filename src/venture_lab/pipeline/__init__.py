"""Resumable generation pipelines: scheduling, progress, and the background worker."""

from venture_lab.pipeline.budget import TimeBudget
from venture_lab.pipeline.content import ContentPipeline
from venture_lab.pipeline.foundation import FoundationPipeline
from venture_lab.pipeline.progress import PipelineProgressStore
from venture_lab.pipeline.scheduler import GenerationScheduler
from venture_lab.pipeline.worker import PipelineJob, PipelineWorker

__all__ = [
    "ContentPipeline",
    "FoundationPipeline",
    "GenerationScheduler",
    "PipelineJob",
    "PipelineProgressStore",
    "PipelineWorker",
    "TimeBudget",
]
