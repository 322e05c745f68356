"""
Rating criteria as data.

A condition's rating schedule is a ``CriteriaTable``: an ordered list of tiers,
each pairing a percentage with a predicate over the condition's metrics. The
predicate language is deliberately small (clauses combined with all/any) so
that the same structure drives evaluation, rationale text and gap text.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Literal

from core.domain.models import MetricsBag, MetricValue

DAYS_PER_MONTH = 30.0
DAYS_PER_WEEK = 7.0


class CriteriaError(ValueError):
    """Raised when a criteria table is malformed."""


class ClauseOp(str, Enum):
    AT_LEAST = "at_least"
    MORE_THAN = "more_than"
    AT_MOST = "at_most"
    EQUALS = "equals"


_OP_TEXT = {
    ClauseOp.AT_LEAST: "at least",
    ClauseOp.MORE_THAN: "more than",
    ClauseOp.AT_MOST: "at most",
    ClauseOp.EQUALS: "exactly",
}


def format_metric(value: MetricValue) -> str:
    """Render a metric for human-readable text."""
    if value is None:
        return "not reported"
    if isinstance(value, bool):
        return "yes" if value else "no"
    if isinstance(value, float):
        return f"{value:.2f}" if 0 < abs(value) < 1 else f"{value:.1f}"
    return str(value)


def _format_target(target: float | int | bool | str) -> str:
    if isinstance(target, float) and target.is_integer():
        return str(int(target))
    return format_metric(target)


def _pct(ratio: float) -> str:
    return f"{ratio * 100:.0f}%"


@dataclass(frozen=True)
class Clause:
    """A single comparison of one metric against a threshold.

    A clause over a metric that is missing or ``None`` never holds.

    ``rate`` marks the metric as a per-month or per-week rate derived from
    ``count_metric`` over the metrics bag's ``span_days``; gap text then
    reports how many more occurrences must be documented.
    """

    metric: str
    op: ClauseOp
    target: float | int | bool | str
    label: str
    noun: str | None = None
    count_metric: str | None = None
    rate: Literal["month", "week"] | None = None
    as_percent: bool = False
    gap: str | None = None

    def value(self, metrics: MetricsBag) -> MetricValue:
        return metrics.get(self.metric)

    def holds(self, metrics: MetricsBag) -> bool:
        value = self.value(metrics)
        if value is None:
            return False
        if self.op is ClauseOp.EQUALS:
            return value == self.target
        if isinstance(value, (bool, str)) or isinstance(self.target, (bool, str)):
            return False
        if self.op is ClauseOp.AT_LEAST:
            return value >= self.target
        if self.op is ClauseOp.MORE_THAN:
            return value > self.target
        return value <= self.target

    def _render(self, value: MetricValue) -> str:
        if self.as_percent and isinstance(value, (int, float)) and not isinstance(value, bool):
            return _pct(float(value))
        return format_metric(value)

    def requirement(self) -> str:
        if isinstance(self.target, bool):
            return "required" if self.target else "must be absent"
        if self.as_percent and isinstance(self.target, (int, float)):
            return f"{_OP_TEXT[self.op]} {_pct(float(self.target))} required"
        return f"{_OP_TEXT[self.op]} {_format_target(self.target)} required"

    def describe(self, metrics: MetricsBag) -> str:
        """e.g. ``Prostrating attacks per month: 4.0 (at least 4 required)``."""
        return f"{self.label}: {self._render(self.value(metrics))} ({self.requirement()})"

    def shortfall(self, metrics: MetricsBag) -> int | None:
        """Occurrences still missing for a count- or rate-style clause."""
        if self.noun is None or self.op not in {ClauseOp.AT_LEAST, ClauseOp.MORE_THAN}:
            return None
        if isinstance(self.target, (bool, str)):
            return None
        if self.rate is not None:
            count = metrics.get(self.count_metric) if self.count_metric else None
            span = metrics.get("span_days")
            if not isinstance(count, (int, float)) or not isinstance(span, (int, float)):
                return None
            per = DAYS_PER_MONTH if self.rate == "month" else DAYS_PER_WEEK
            required = self.target * (span / per)
        else:
            count = self.value(metrics)
            if not isinstance(count, (int, float)) or isinstance(count, bool):
                return None
            required = self.target
        if self.op is ClauseOp.AT_LEAST:
            missing = math.ceil(round(required - count, 9))
        else:
            missing = math.floor(round(required - count, 9)) + 1
        return max(missing, 1)

    def gap_text(self, metrics: MetricsBag) -> str:
        """Describe what is missing for this clause to hold."""
        value = self.value(metrics)
        if value is None:
            return f"start recording {self.label.lower()}"
        if self.gap is not None:
            return self.gap
        missing = self.shortfall(metrics)
        if missing is not None and self.noun is not None:
            return f"document {missing} more {self.noun}"
        return f"{self.label} is {self._render(value)} ({self.requirement()})"


@dataclass(frozen=True)
class AllOf:
    clauses: tuple["Predicate", ...]

    def holds(self, metrics: MetricsBag) -> bool:
        return all(c.holds(metrics) for c in self.clauses)


@dataclass(frozen=True)
class AnyOf:
    clauses: tuple["Predicate", ...]

    def holds(self, metrics: MetricsBag) -> bool:
        return any(c.holds(metrics) for c in self.clauses)


@dataclass(frozen=True)
class Always:
    def holds(self, metrics: MetricsBag) -> bool:
        return True


ALWAYS = Always()

Predicate = Clause | AllOf | AnyOf | Always


def all_of(*clauses: Predicate) -> AllOf:
    return AllOf(tuple(clauses))


def any_of(*clauses: Predicate) -> AnyOf:
    return AnyOf(tuple(clauses))


def held_clauses(predicate: Predicate, metrics: MetricsBag) -> list[Clause]:
    """Clauses that justify a holding predicate, in declaration order."""
    if isinstance(predicate, Clause):
        return [predicate] if predicate.holds(metrics) else []
    if isinstance(predicate, AllOf):
        return [c for child in predicate.clauses for c in held_clauses(child, metrics)]
    if isinstance(predicate, AnyOf):
        for child in predicate.clauses:
            if child.holds(metrics):
                return held_clauses(child, metrics)
    return []


def unmet_requirements(predicate: Predicate, metrics: MetricsBag) -> list[str]:
    """Human-readable fragments for each unmet part of a predicate.

    Alternatives of an unmet ``AnyOf`` collapse into a single fragment
    joined with "or".
    """
    if predicate.holds(metrics):
        return []
    if isinstance(predicate, Clause):
        return [predicate.gap_text(metrics)]
    if isinstance(predicate, AllOf):
        return [frag for child in predicate.clauses for frag in unmet_requirements(child, metrics)]
    if isinstance(predicate, AnyOf):
        options = [" and ".join(unmet_requirements(child, metrics)) for child in predicate.clauses]
        return [" or ".join(o for o in options if o)]
    return []


def metrics_referenced(predicate: Predicate) -> set[str]:
    if isinstance(predicate, Clause):
        names = {predicate.metric}
        if predicate.count_metric:
            names.add(predicate.count_metric)
        return names
    if isinstance(predicate, (AllOf, AnyOf)):
        return set().union(*(metrics_referenced(c) for c in predicate.clauses))
    return set()


@dataclass(frozen=True)
class CriteriaTier:
    percent: int
    summary: str
    predicate: Predicate = ALWAYS

    def qualifies(self, metrics: MetricsBag) -> bool:
        return self.predicate.holds(metrics)


@dataclass(frozen=True)
class CriteriaTable:
    """Ordered rating tiers for one condition, lowest percent first."""

    tiers: tuple[CriteriaTier, ...]
    _by_percent: dict[int, CriteriaTier] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not self.tiers:
            raise CriteriaError("criteria table needs at least one tier")
        percents = [t.percent for t in self.tiers]
        for p in percents:
            if not 0 <= p <= 100:
                raise CriteriaError(f"tier percent out of range: {p}")
        if len(set(percents)) != len(percents):
            raise CriteriaError(f"duplicate tier percents: {percents}")
        if percents != sorted(percents):
            raise CriteriaError(f"tiers must be listed in ascending order: {percents}")
        object.__setattr__(self, "_by_percent", {t.percent: t for t in self.tiers})

    @classmethod
    def of(cls, *tiers: CriteriaTier) -> "CriteriaTable":
        return cls(tuple(tiers))

    @property
    def percents(self) -> tuple[int, ...]:
        return tuple(t.percent for t in self.tiers)

    @property
    def lowest(self) -> CriteriaTier:
        return self.tiers[0]

    @property
    def max_percent(self) -> int:
        return self.tiers[-1].percent

    def tier_for(self, percent: int) -> CriteriaTier | None:
        return self._by_percent.get(percent)

    def next_above(self, percent: int) -> CriteriaTier | None:
        for tier in self.tiers:
            if tier.percent > percent:
                return tier
        return None

    def highest_first(self) -> tuple[CriteriaTier, ...]:
        return tuple(reversed(self.tiers))


@dataclass(frozen=True)
class Highlight:
    """A supporting metric surfaced in the rationale when it has a value."""

    metric: str
    label: str
    as_percent: bool = False

    def render(self, metrics: MetricsBag) -> str | None:
        value = metrics.get(self.metric)
        if value is None:
            return None
        if self.as_percent and isinstance(value, (int, float)) and not isinstance(value, bool):
            return f"{self.label}: {_pct(float(value))}"
        return f"{self.label}: {format_metric(value)}"
