"""
Human-readable rationale and documentation-gap text.
"""

from collections.abc import Sequence

from core.domain.criteria import Highlight, held_clauses, unmet_requirements
from core.domain.models import MetricsBag
from core.services.rating_evaluator import TierDecision


def format_rating(percent: int | None) -> str:
    """``"50%"`` for a rating, ``"Not rated"`` when there is none."""
    return "Not rated" if percent is None else f"{percent}%"


def build_rationale(
    decision: TierDecision,
    metrics: MetricsBag,
    highlights: Sequence[Highlight] = (),
    diagnostic_code: str | None = None,
) -> list[str]:
    """
    Explain a decision: the decision line, the clauses that justified the
    chosen tier, then any highlighted metrics that carry a value.
    """
    under = f" under DC {diagnostic_code}" if diagnostic_code else ""
    tier = decision.tier
    if decision.matched:
        lines = [f"Evidence supports {format_rating(tier.percent)}{under}: {tier.summary}"]
    else:
        lines = [
            f"No rating criteria met; defaulting to the lowest tier "
            f"({format_rating(tier.percent)}{under}): {tier.summary}"
        ]
    lines.extend(clause.describe(metrics) for clause in held_clauses(tier.predicate, metrics))

    seen = {line.split(":", 1)[0] for line in lines[1:]}
    for highlight in highlights:
        rendered = highlight.render(metrics)
        if rendered is not None and highlight.label not in seen:
            lines.append(rendered)
    return lines


def build_gaps(decision: TierDecision, metrics: MetricsBag) -> list[str]:
    """Unmet requirements of the next tier up; empty at the maximum tier."""
    target = decision.next_tier
    if target is None:
        return []
    suffix = f" to reach the {format_rating(target.percent)} tier"
    return [
        fragment[:1].upper() + fragment[1:] + suffix
        for fragment in unmet_requirements(target.predicate, metrics)
        if fragment
    ]
