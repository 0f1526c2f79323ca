"""Data models for Cosmos DB document types."""

from venture_lab.models.agent_run import AgentRun, AgentRunStatus
from venture_lab.models.analysis import Analysis
from venture_lab.models.canvas import (
    Assumption,
    AssumptionStatus,
    AssumptionType,
    CanvasStatus,
    PivotRecord,
    PivotSuggestion,
    Threshold,
    ValidationCanvas,
)
from venture_lab.models.content import CalendarEntry, ContentCalendar, ContentPiece
from venture_lab.models.critique import Critique, CritiqueIssue, Decision, EditorDecision, Severity
from venture_lab.models.foundation import DocumentKind, FoundationDocument
from venture_lab.models.progress import PipelineProgress, PipelineStep, ProgressStatus, StepStatus
from venture_lab.models.publish import PublishAction, PublishLogEntry, PublishRecord
from venture_lab.models.work_item import WorkItem, WorkItemStatus

__all__ = [
    "AgentRun",
    "AgentRunStatus",
    "Analysis",
    "Assumption",
    "AssumptionStatus",
    "AssumptionType",
    "CalendarEntry",
    "CanvasStatus",
    "ContentCalendar",
    "ContentPiece",
    "Critique",
    "CritiqueIssue",
    "Decision",
    "DocumentKind",
    "EditorDecision",
    "FoundationDocument",
    "PipelineProgress",
    "PipelineStep",
    "PivotRecord",
    "PivotSuggestion",
    "ProgressStatus",
    "PublishAction",
    "PublishLogEntry",
    "PublishRecord",
    "Severity",
    "StepStatus",
    "Threshold",
    "ValidationCanvas",
    "WorkItem",
    "WorkItemStatus",
]
