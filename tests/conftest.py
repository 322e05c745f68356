"""
Shared fixtures: deterministic observation builders.

Every timestamp is derived from a fixed anchor, never from the wall clock,
so analyses are reproducible.
"""

from __future__ import annotations

import itertools
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from core.domain.models import Measurement, ObservationEntry

ANCHOR = datetime(2025, 3, 31, 9, 0, tzinfo=UTC)

EntryFactory = Callable[..., ObservationEntry]
MeasurementFactory = Callable[..., Measurement]


@pytest.fixture
def anchor() -> datetime:
    return ANCHOR


@pytest.fixture
def make_entry() -> EntryFactory:
    """Build an entry ``days_ago`` days before the anchor."""
    ids = itertools.count(1)

    def _make(
        tag: str,
        days_ago: float = 0,
        severity: int | None = 5,
        notes: str = "",
        payload: dict[str, Any] | None = None,
        entry_id: str | None = None,
        **extra: Any,
    ) -> ObservationEntry:
        record: dict[str, Any] = {
            "id": entry_id or f"e{next(ids):04d}",
            "timestamp": ANCHOR - timedelta(days=days_ago),
            "symptomId": tag,
            "severity": severity,
            "notes": notes,
            "payload": payload,
            **extra,
        }
        return ObservationEntry.model_validate(record)

    return _make


@pytest.fixture
def make_reading() -> MeasurementFactory:
    ids = itertools.count(1)

    def _make(
        systolic: float,
        diastolic: float,
        days_ago: float = 0,
        medication_taken: bool | None = None,
    ) -> Measurement:
        return Measurement.model_validate(
            {
                "id": f"bp{next(ids):04d}",
                "timestamp": ANCHOR - timedelta(days=days_ago),
                "type": "blood-pressure",
                "values": {"systolic": systolic, "diastolic": diastolic},
                "medicationTaken": medication_taken,
            }
        )

    return _make


def migraine_payload(prostrating: bool | None = True, duration: str | None = "4-24h") -> dict[str, Any]:
    return {"kind": "migraine", "prostrating": prostrating, "duration": duration}


@pytest.fixture
def prostrating_payload() -> Callable[..., dict[str, Any]]:
    return migraine_payload
