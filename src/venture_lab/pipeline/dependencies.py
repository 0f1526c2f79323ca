"""Prerequisite graph for foundation documents and dependency-ordered scheduling."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING

from venture_lab.models.foundation import DocumentKind

if TYPE_CHECKING:
    from venture_lab.models.work_item import WorkItem

# strategy is the single root; everything else builds on positioning.
DOC_DEPENDENCIES: dict[DocumentKind, frozenset[DocumentKind]] = {
    DocumentKind.STRATEGY: frozenset(),
    DocumentKind.POSITIONING: frozenset({DocumentKind.STRATEGY}),
    DocumentKind.BRAND_VOICE: frozenset({DocumentKind.POSITIONING}),
    DocumentKind.DESIGN_PRINCIPLES: frozenset({DocumentKind.POSITIONING, DocumentKind.STRATEGY}),
    DocumentKind.SEO_STRATEGY: frozenset({DocumentKind.POSITIONING}),
    DocumentKind.SOCIAL_MEDIA_STRATEGY: frozenset(
        {DocumentKind.POSITIONING, DocumentKind.BRAND_VOICE}
    ),
    DocumentKind.VISUAL_IDENTITY: frozenset({DocumentKind.POSITIONING, DocumentKind.BRAND_VOICE}),
}

# Tie-break for kinds that become ready at the same time.
PRIORITY: tuple[DocumentKind, ...] = (
    DocumentKind.STRATEGY,
    DocumentKind.POSITIONING,
    DocumentKind.BRAND_VOICE,
    DocumentKind.DESIGN_PRINCIPLES,
    DocumentKind.SEO_STRATEGY,
    DocumentKind.SOCIAL_MEDIA_STRATEGY,
    DocumentKind.VISUAL_IDENTITY,
)


def topological_order(
    nodes: Sequence[str],
    dependencies: dict[str, Iterable[str]],
) -> list[str]:
    """Kahn's algorithm; ready nodes are taken in their ``nodes`` order.

    Dependencies on nodes outside ``nodes`` are ignored, so a subset of the
    graph can be ordered on its own. Raises ``ValueError`` on a cycle.
    """
    members = set(nodes)
    waiting = {n: {d for d in dependencies.get(n, ()) if d in members and d != n} for n in nodes}
    order: list[str] = []
    while waiting:
        ready = [n for n in nodes if n in waiting and not waiting[n]]
        if not ready:
            raise ValueError(f"Dependency cycle among: {sorted(waiting)}")
        node = ready[0]
        order.append(node)
        del waiting[node]
        for deps in waiting.values():
            deps.discard(node)
    return order


def generation_order(kinds: Iterable[DocumentKind] | None = None) -> list[DocumentKind]:
    """Order foundation kinds so every kind follows its prerequisites."""
    wanted = set(PRIORITY if kinds is None else kinds)
    nodes = [k for k in PRIORITY if k in wanted]
    return [DocumentKind(k) for k in topological_order(nodes, DOC_DEPENDENCIES)]


def order_items(items: Sequence[WorkItem]) -> list[WorkItem]:
    """Order work items by their ``depends_on`` kinds, keeping input order for ties."""
    by_kind: dict[str, list[WorkItem]] = {}
    for item in items:
        by_kind.setdefault(item.kind, []).append(item)
    kinds = list(by_kind)
    deps = {item.kind: item.depends_on for item in items}
    return [item for kind in topological_order(kinds, deps) for item in by_kind[kind]]


def missing_prerequisites(
    kind: DocumentKind | str, completed: Iterable[str]
) -> list[DocumentKind]:
    """Prerequisites of ``kind`` that are not in ``completed``, in priority order."""
    done = set(completed)
    needed = DOC_DEPENDENCIES.get(DocumentKind(kind), frozenset())
    return [k for k in PRIORITY if k in needed and k not in done]
