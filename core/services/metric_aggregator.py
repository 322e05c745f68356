"""
Shared aggregation helpers used by condition modules.

Every condition module reduces its ``Selection`` to a flat metrics bag. The
helpers here cover the recurring pieces: observation span, per-month and
per-week rates, severity statistics, tag and keyword counts.
"""

from collections import Counter
from collections.abc import Callable, Iterable, Sequence
from datetime import UTC, date, datetime

from core.config import AnalysisConfig
from core.domain.criteria import DAYS_PER_MONTH, DAYS_PER_WEEK
from core.domain.models import MetricsBag, ObservationEntry
from core.services.log_selector import Selection

SECONDS_PER_DAY = 86_400.0


def span_days(timestamps: Iterable[datetime], minimum_days: int) -> float:
    """Days between the oldest and newest observation, floored at ``minimum_days``."""
    stamps = list(timestamps)
    if not stamps:
        return float(minimum_days)
    elapsed = (max(stamps) - min(stamps)).total_seconds() / SECONDS_PER_DAY
    return max(elapsed, float(minimum_days))


def per_month(count: int, span: float) -> float:
    return count / (span / DAYS_PER_MONTH)


def per_week(count: int, span: float) -> float:
    return count / (span / DAYS_PER_WEEK)


def count_where(entries: Iterable[ObservationEntry], predicate: Callable[[ObservationEntry], bool]) -> int:
    return sum(1 for e in entries if predicate(e))


def count_tagged(entries: Iterable[ObservationEntry], *tags: str) -> int:
    wanted = set(tags)
    return sum(1 for e in entries if e.condition_tag in wanted)


def distinct_tags(entries: Iterable[ObservationEntry]) -> int:
    return len({e.condition_tag for e in entries})


def utc_day(timestamp: datetime) -> date:
    """Calendar day of ``timestamp`` on the UTC clock, whatever offset it was logged with."""
    return timestamp.astimezone(UTC).date()


def distinct_days(entries: Iterable[ObservationEntry]) -> int:
    return len({utc_day(e.timestamp) for e in entries if e.timestamp is not None})


def days_with_tags(entries: Iterable[ObservationEntry], *tags: str) -> int:
    wanted = set(tags)
    return distinct_days(e for e in entries if e.condition_tag in wanted)


def severity_stats(entries: Sequence[ObservationEntry]) -> tuple[float | None, int | None]:
    """Average (2dp) and maximum severity; ``(None, None)`` when empty."""
    values = [e.severity for e in entries if e.severity is not None]
    if not values:
        return None, None
    return round(sum(values) / len(values), 2), max(values)


def share(part: int, whole: int) -> float | None:
    if whole <= 0:
        return None
    return part / whole


def most_common(values: Iterable[str | None]) -> str | None:
    """Most frequent non-empty value; ties go to the alphabetically first."""
    counts = Counter(v for v in values if v)
    if not counts:
        return None
    return min(counts.items(), key=lambda item: (-item[1], item[0]))[0]


def keyword_hits(entries: Iterable[ObservationEntry], keywords: Iterable[str]) -> int:
    """Number of entries whose notes mention at least one keyword (case-insensitive)."""
    words = tuple(k.lower() for k in keywords)
    return sum(1 for e in entries if e.notes and any(w in e.notes.lower() for w in words))


def base_metrics(selection: Selection, config: AnalysisConfig) -> MetricsBag:
    """Metrics every condition reports, regardless of its rule set."""
    entries = selection.entries
    span = span_days((e.timestamp for e in entries if e.timestamp), config.minimum_span_days)
    avg, peak = severity_stats(entries)
    return {
        "total_count": len(entries),
        "span_days": round(span, 2),
        "days_logged": distinct_days(entries),
        "severity_avg": avg,
        "severity_max": peak,
        "flare_up_count": count_where(entries, lambda e: e.flare_up is True),
    }
