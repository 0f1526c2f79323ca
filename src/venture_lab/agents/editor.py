"""Mechanical editor rubric — decides approve or revise from critic scores.

No LLM judgement is involved: the decision is a pure function of its
inputs, which is what lets a revise loop rely on it to terminate.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from venture_lab.models.critique import Decision, EditorDecision, Severity

if TYPE_CHECKING:
    from collections.abc import Sequence

    from venture_lab.models.critique import Critique


def apply_editor_rubric(
    critiques: Sequence[Critique],
    min_aggregate_score: float,
    previous_avg_score: float | None = None,
) -> EditorDecision:
    """Apply the rubric rules in order.

    1. No critiques: approve with a zero average.
    2. Any high-severity issue: revise, whatever the scores.
    3. Average fell below the previous round's: approve (oscillation guard).
    4. Average at or above ``min_aggregate_score``: approve.
    5. Otherwise: revise.

    The brief lists every high then every medium issue, one per line, as
    ``[SEVERITY] (advisor name) description``. Low-severity issues are ignored.
    """
    if not critiques:
        return EditorDecision(decision=Decision.APPROVE)

    avg_score = sum(c.score for c in critiques) / len(critiques)

    high = [(c.name, i) for c in critiques for i in c.issues if i.severity == Severity.HIGH]
    medium = [(c.name, i) for c in critiques for i in c.issues if i.severity == Severity.MEDIUM]
    brief = "\n".join(
        f"[{issue.severity.upper()}] ({name}) {issue.description}" for name, issue in high + medium
    )

    def decide(decision: Decision) -> EditorDecision:
        return EditorDecision(
            decision=decision,
            brief=brief,
            avg_score=avg_score,
            high_issue_count=len(high),
        )

    if high:
        return decide(Decision.REVISE)
    if previous_avg_score is not None and avg_score < previous_avg_score:
        return decide(Decision.APPROVE)
    if avg_score >= min_aggregate_score:
        return decide(Decision.APPROVE)
    return decide(Decision.REVISE)
