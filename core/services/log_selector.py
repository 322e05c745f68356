"""
Selects the observations relevant to one condition inside its evaluation window.
"""

from collections.abc import Collection, Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta

import structlog

from core.domain.models import Measurement, ObservationEntry

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Selection:
    """Entries (and measurements) for one condition, oldest first."""

    condition: str
    entries: tuple[ObservationEntry, ...]
    period_days: int
    window_start: datetime | None = None
    window_end: datetime | None = None
    measurements: tuple[Measurement, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.entries and not self.measurements

    def __len__(self) -> int:
        return len(self.entries)


def _matches(entry: ObservationEntry, tags: Collection[str], payload_kinds: Collection[str]) -> bool:
    if entry.condition_tag in tags:
        return True
    return entry.payload_kind is not None and entry.payload_kind in payload_kinds


def select_entries(
    condition: str,
    entries: Iterable[ObservationEntry],
    *,
    tags: Collection[str],
    payload_kinds: Collection[str] = (),
    period_days: int,
    as_of: datetime | None = None,
    measurements: Iterable[Measurement] = (),
    measurement_types: Collection[str] = (),
) -> Selection:
    """
    Filter a snapshot down to one condition's evaluation window.

    Malformed entries (no timestamp or no severity) are skipped. The window
    ends at ``as_of`` when given, otherwise at the newest matching
    observation, and covers the preceding ``period_days``. Output order is
    (timestamp, id) ascending regardless of input order.
    """
    matched: list[ObservationEntry] = []
    for entry in entries:
        if not _matches(entry, tags, payload_kinds):
            continue
        if not entry.is_well_formed:
            logger.debug(
                "entry_excluded",
                condition=condition,
                entry_id=entry.id,
                reason="missing_timestamp" if entry.timestamp is None else "missing_severity",
            )
            continue
        matched.append(entry)

    readings = [
        m
        for m in measurements
        if m.measurement_type in measurement_types and m.timestamp is not None
    ]

    anchor = as_of
    if anchor is None:
        stamps = [e.timestamp for e in matched] + [m.timestamp for m in readings]
        if not stamps:
            return Selection(condition=condition, entries=(), period_days=period_days)
        anchor = max(stamps)  # type: ignore[type-var]

    start = anchor - timedelta(days=period_days)

    def in_window(ts: datetime | None) -> bool:
        return ts is not None and start < ts <= anchor

    windowed = sorted(
        (e for e in matched if in_window(e.timestamp)),
        key=lambda e: (e.timestamp, e.id),
    )
    windowed_readings = sorted(
        (m for m in readings if in_window(m.timestamp)),
        key=lambda m: (m.timestamp, m.id),
    )
    return Selection(
        condition=condition,
        entries=tuple(windowed),
        period_days=period_days,
        window_start=start,
        window_end=anchor,
        measurements=tuple(windowed_readings),
    )
