"""Shared fixtures for the test suite."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from helpers import InMemoryProgressRepo

from venture_lab.config import PipelineConfig


@pytest.fixture
def progress_repo() -> InMemoryProgressRepo:
    return InMemoryProgressRepo()


@pytest.fixture
def pipeline_config() -> PipelineConfig:
    return PipelineConfig(
        time_budget_seconds=270,
        max_resumes=5,
        stale_after_seconds=900,
        critic_concurrency=2,
    )


@pytest.fixture
def prompts() -> MagicMock:
    """PromptCache stand-in returning a short marker per prompt name."""
    cache = MagicMock()
    cache.get_or_load.side_effect = lambda name: f"<prompt {name}>"
    cache.advisor.side_effect = lambda advisor_id: f"<advisor {advisor_id}>"
    return cache
