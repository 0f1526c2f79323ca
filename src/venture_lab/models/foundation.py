"""Foundation document model — the seven strategy documents built per idea."""

from __future__ import annotations

from enum import StrEnum

from venture_lab.models.work_item import WorkItem


class DocumentKind(StrEnum):
    STRATEGY = "strategy"
    POSITIONING = "positioning"
    BRAND_VOICE = "brand-voice"
    DESIGN_PRINCIPLES = "design-principles"
    SEO_STRATEGY = "seo-strategy"
    SOCIAL_MEDIA_STRATEGY = "social-media-strategy"
    VISUAL_IDENTITY = "visual-identity"


class FoundationDocument(WorkItem):
    """A foundation document for one idea, keyed ``{idea_id}-{kind}``.

    ``stale`` is set when an upstream change (such as a demand pivot)
    invalidates the document; a stale document is regenerated on the next run.
    """

    idea_id: str
    advisor_id: str | None = None
    stale: bool = False

    @staticmethod
    def document_id(idea_id: str, kind: str) -> str:
        return f"{idea_id}-{kind}"
