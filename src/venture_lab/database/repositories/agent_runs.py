"""Repository for the agent_runs container (partitioned by /trigger_id)."""

from __future__ import annotations

from venture_lab.database.repositories.base import BaseRepository
from venture_lab.models.agent_run import AgentRun


class AgentRunRepository(BaseRepository[AgentRun]):
    """One document per AgentRunner step; written by the runner, read for diagnostics."""

    container_name = "agent_runs"
    model_class = AgentRun
