"""Advisor registry, foundation-document assignments, and content recipes."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from venture_lab.models.foundation import DocumentKind


class AdvisorRole(StrEnum):
    AUTHOR = "author"
    CRITIC = "critic"
    EDITOR = "editor"
    STRATEGIST = "strategist"


@dataclass(frozen=True)
class Advisor:
    id: str
    name: str
    role: AdvisorRole
    evaluation_expertise: str = ""
    context_docs: tuple[DocumentKind, ...] = ()


ADVISORS: tuple[Advisor, ...] = (
    Advisor(
        "seth-godin",
        "Seth Godin",
        AdvisorRole.STRATEGIST,
        "Is the audience narrow enough to be remarkable to? Is the promise specific and risky?",
    ),
    Advisor(
        "richard-rumelt",
        "Richard Rumelt",
        AdvisorRole.STRATEGIST,
        "Does the plan name the crux, commit to a guiding policy, and avoid fluff?",
        (DocumentKind.STRATEGY,),
    ),
    Advisor(
        "april-dunford",
        "April Dunford",
        AdvisorRole.STRATEGIST,
        "Is the positioning anchored in real competitive alternatives and unique value?",
        (DocumentKind.POSITIONING,),
    ),
    Advisor(
        "copywriter",
        "Brand Copywriter",
        AdvisorRole.AUTHOR,
        "Does the copy match the brand voice, stay concrete, and earn every sentence?",
        (DocumentKind.BRAND_VOICE,),
    ),
    Advisor(
        "oli-gardner",
        "Oli Gardner",
        AdvisorRole.CRITIC,
        "Does the page keep one goal, a clear hierarchy, and a visible call to action?",
        (DocumentKind.DESIGN_PRINCIPLES,),
    ),
    Advisor(
        "joanna-wiebe",
        "Joanna Wiebe",
        AdvisorRole.CRITIC,
        "Is the copy built from the reader's own words and does it drive one action?",
        (DocumentKind.POSITIONING,),
    ),
    Advisor(
        "shirin-oreizy",
        "Shirin Oreizy",
        AdvisorRole.CRITIC,
        "Does the content reduce friction and respect how people actually decide?",
    ),
    Advisor(
        "seo-expert",
        "SEO Expert",
        AdvisorRole.CRITIC,
        "Does the content target the keyword intent with sound structure and depth?",
        (DocumentKind.SEO_STRATEGY,),
    ),
    Advisor(
        "joe-pulizzi",
        "Joe Pulizzi",
        AdvisorRole.EDITOR,
        "Is this content differentiated enough to build an audience over time?",
    ),
)

_BY_ID = {advisor.id: advisor for advisor in ADVISORS}

DOC_ADVISOR_MAP: dict[DocumentKind, str] = {
    DocumentKind.STRATEGY: "seth-godin",
    DocumentKind.POSITIONING: "april-dunford",
    DocumentKind.BRAND_VOICE: "copywriter",
    DocumentKind.DESIGN_PRINCIPLES: "oli-gardner",
    DocumentKind.SEO_STRATEGY: "seo-expert",
    DocumentKind.SOCIAL_MEDIA_STRATEGY: "april-dunford",
    DocumentKind.VISUAL_IDENTITY: "copywriter",
}


def get_advisor(advisor_id: str) -> Advisor | None:
    return _BY_ID.get(advisor_id)


@dataclass(frozen=True)
class ContentRecipe:
    """How one content type is written and reviewed."""

    content_type: str
    author_id: str
    named_critics: tuple[str, ...] = ()
    min_aggregate_score: float = 4.0
    max_revision_rounds: int = 3
    evaluation_emphasis: str = ""
    context_docs: tuple[DocumentKind, ...] = field(
        default=(DocumentKind.POSITIONING, DocumentKind.BRAND_VOICE)
    )

    def critics(self) -> list[Advisor]:
        """Resolve named critics, silently skipping ids missing from the registry."""
        return [a for a in (get_advisor(i) for i in self.named_critics) if a is not None]


RECIPES: dict[str, ContentRecipe] = {
    "website": ContentRecipe(
        "website",
        "copywriter",
        ("oli-gardner", "joanna-wiebe", "shirin-oreizy", "copywriter"),
        evaluation_emphasis="Conversion clarity: one goal per page, benefit-led headline.",
        context_docs=(
            DocumentKind.POSITIONING,
            DocumentKind.BRAND_VOICE,
            DocumentKind.DESIGN_PRINCIPLES,
        ),
    ),
    "blog-post": ContentRecipe(
        "blog-post",
        "copywriter",
        ("seo-expert", "joe-pulizzi", "copywriter"),
        evaluation_emphasis="Search intent match, original insight, scannable structure.",
        context_docs=(
            DocumentKind.POSITIONING,
            DocumentKind.BRAND_VOICE,
            DocumentKind.SEO_STRATEGY,
        ),
    ),
    "comparison": ContentRecipe(
        "comparison",
        "copywriter",
        ("seo-expert", "april-dunford"),
        evaluation_emphasis="Fair treatment of alternatives and a clear reason to choose.",
    ),
    "faq": ContentRecipe(
        "faq",
        "copywriter",
        ("seo-expert",),
        max_revision_rounds=2,
        evaluation_emphasis="Direct answers to questions people actually search for.",
    ),
    "social-post": ContentRecipe(
        "social-post",
        "copywriter",
        ("copywriter",),
        max_revision_rounds=2,
        evaluation_emphasis="Hook in the first line, one idea, platform-native tone.",
        context_docs=(DocumentKind.BRAND_VOICE, DocumentKind.SOCIAL_MEDIA_STRATEGY),
    ),
}


def get_recipe(content_type: str) -> ContentRecipe | None:
    return RECIPES.get(content_type)
