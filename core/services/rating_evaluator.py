"""
Maps a metrics bag onto a criteria table.
"""

from dataclasses import dataclass

from core.domain.criteria import CriteriaTable, CriteriaTier
from core.domain.models import MetricsBag


@dataclass(frozen=True)
class TierDecision:
    """The tier a metrics bag supports.

    ``matched`` is False when no tier predicate held and the table's lowest
    tier was used as a fallback.
    """

    tier: CriteriaTier
    matched: bool
    next_tier: CriteriaTier | None

    @property
    def percent(self) -> int:
        return self.tier.percent

    @property
    def is_max(self) -> bool:
        return self.next_tier is None


def evaluate(table: CriteriaTable, metrics: MetricsBag) -> TierDecision:
    """Pick the highest tier whose predicate holds, scanning from the top."""
    for tier in table.highest_first():
        if tier.qualifies(metrics):
            return TierDecision(tier=tier, matched=True, next_tier=table.next_above(tier.percent))
    lowest = table.lowest
    return TierDecision(tier=lowest, matched=False, next_tier=table.next_above(lowest.percent))
