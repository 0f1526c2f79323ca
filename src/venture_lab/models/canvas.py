"""Validation canvas models — assumptions, pivots, and kill state per idea."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field

from venture_lab.models.base import DocumentBase


class AssumptionType(StrEnum):
    DEMAND = "demand"
    REACHABILITY = "reachability"
    ENGAGEMENT = "engagement"
    WTP = "wtp"
    DIFFERENTIATION = "differentiation"


class AssumptionStatus(StrEnum):
    UNTESTED = "untested"
    TESTING = "testing"
    VALIDATED = "validated"
    INVALIDATED = "invalidated"
    PIVOTED = "pivoted"


class CanvasStatus(StrEnum):
    ACTIVE = "active"
    KILLED = "killed"


class Threshold(BaseModel):
    validated: str
    invalidated: str
    window_days: int = 0


class Assumption(BaseModel):
    type: AssumptionType
    status: AssumptionStatus = AssumptionStatus.UNTESTED
    statement: str
    evidence: list[str] = Field(default_factory=list)
    threshold: Threshold
    linked_stage: str
    testing_since: datetime | None = None
    validated_at: datetime | None = None
    invalidated_at: datetime | None = None


class PivotSuggestion(BaseModel):
    statement: str
    evidence: list[str] = Field(default_factory=list)
    impact: str = ""
    experiment: str = ""


class PivotRecord(BaseModel):
    from_statement: str
    to_statement: str
    reason: str
    suggested_by: str = "system"
    approved_by: str = "curator"
    timestamp: datetime
    alternatives: list[PivotSuggestion] = Field(default_factory=list)


class ValidationCanvas(DocumentBase):
    """Assumption tracking for one idea (document id = idea id)."""

    idea_id: str
    status: CanvasStatus = CanvasStatus.ACTIVE
    killed_at: datetime | None = None
    killed_reason: str | None = None
    assumptions: dict[AssumptionType, Assumption] = Field(default_factory=dict)
    pivot_suggestions: dict[AssumptionType, list[PivotSuggestion]] = Field(default_factory=dict)
    pivot_history: dict[AssumptionType, list[PivotRecord]] = Field(default_factory=dict)

    @property
    def is_killed(self) -> bool:
        return self.status == CanvasStatus.KILLED
