"""Analysis model — research output that seeds foundation and canvas generation."""

from __future__ import annotations

from pydantic import Field

from venture_lab.models.base import DocumentBase


class Analysis(DocumentBase):
    """Research results for an idea (document id = idea id)."""

    idea_name: str
    summary: str = ""
    description: str = ""
    target_user: str = ""
    scores: dict[str, float] = Field(default_factory=dict)
    keywords: list[str] = Field(default_factory=list)
    competitors: str = ""
    seo_data: str = ""

    def context(self) -> str:
        """Render the analysis as prompt context."""
        lines = [f"Business: {self.idea_name}"]
        if self.description:
            lines.append(f"Description: {self.description}")
        if self.target_user:
            lines.append(f"Target user: {self.target_user}")
        if self.summary:
            lines.append(f"Summary: {self.summary}")
        if self.keywords:
            lines.append(f"Top keywords: {', '.join(self.keywords[:5])}")
        if self.competitors:
            lines.append(f"Competitors: {self.competitors[:500]}")
        return "\n".join(lines)
