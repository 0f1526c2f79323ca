"""Repository modules for each Cosmos DB container."""

from venture_lab.database.repositories.agent_runs import AgentRunRepository
from venture_lab.database.repositories.analyses import AnalysisRepository
from venture_lab.database.repositories.canvas import CanvasRepository
from venture_lab.database.repositories.content import (
    ContentCalendarRepository,
    ContentPieceRepository,
)
from venture_lab.database.repositories.foundation import FoundationRepository
from venture_lab.database.repositories.progress import PipelineProgressRepository
from venture_lab.database.repositories.publish import (
    PublishLogRepository,
    PublishRecordRepository,
)

__all__ = [
    "AgentRunRepository",
    "AnalysisRepository",
    "CanvasRepository",
    "ContentCalendarRepository",
    "ContentPieceRepository",
    "FoundationRepository",
    "PipelineProgressRepository",
    "PublishLogRepository",
    "PublishRecordRepository",
]
