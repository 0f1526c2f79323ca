"""Critique and editor decision models for the review gate."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field


class Severity(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Decision(StrEnum):
    APPROVE = "approve"
    REVISE = "revise"


class CritiqueIssue(BaseModel):
    severity: Severity
    description: str
    suggestion: str = ""


class Critique(BaseModel):
    """One reviewer's evaluation of a draft. Lives only for one review round."""

    advisor_id: str
    name: str
    score: float
    issues: list[CritiqueIssue] = Field(default_factory=list)
    error: str | None = None


class EditorDecision(BaseModel):
    decision: Decision
    brief: str = ""
    avg_score: float = 0.0
    high_issue_count: int = 0
