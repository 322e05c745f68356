"""
Migraine analysis scenarios.
"""

import pytest

from adapters.conditions import analyze, build_registry
from core.domain.models import AnalysisStatus
from core.services.rating_engine import RatingEngine


@pytest.fixture
def engine() -> RatingEngine:
    return RatingEngine(build_registry())


def test_four_prolonged_prostrating_attacks_in_a_month(engine, make_entry, prostrating_payload) -> None:
    entries = [make_entry("migraine", days_ago=d, severity=8, payload=prostrating_payload()) for d in (1, 8, 15, 22)]

    result = engine.analyze("migraine", entries)

    assert result.status is AnalysisStatus.ANALYZED
    assert result.supported_rating == 50
    assert result.gaps == []
    assert result.metrics["prostrating_per_month"] == 4.0
    assert result.metrics["prolonged_prostrating_count"] == 4
    assert any("4" in line for line in result.rating_rationale)
    assert result.rating_rationale[0].startswith("Evidence supports 50% under DC 8100")


def test_single_attack_supports_thirty_with_gap(engine, make_entry, prostrating_payload) -> None:
    result = engine.analyze("migraine", [make_entry("migraine", severity=7, payload=prostrating_payload())])

    assert result.supported_rating == 30
    assert result.gaps == ["Document 3 more prostrating attacks to reach the 50% tier"]


def test_short_attacks_never_reach_fifty(engine, make_entry, prostrating_payload) -> None:
    entries = [
        make_entry("migraine", days_ago=d, payload=prostrating_payload(duration="1-4h")) for d in range(0, 30, 5)
    ]

    result = engine.analyze("migraine", entries)

    assert result.supported_rating == 30
    assert result.gaps == ["Document 1 more prostrating attacks lasting 4 hours or more to reach the 50% tier"]


def test_attacks_spread_over_two_months(engine, make_entry, prostrating_payload) -> None:
    # One prostrating attack over a 60 day span averages one in two months
    entries = [
        make_entry("migraine", days_ago=60, payload=prostrating_payload(prostrating=True)),
        make_entry("migraine", days_ago=0, payload=prostrating_payload(prostrating=False)),
    ]

    result = engine.analyze("migraine", entries)

    assert result.metrics["span_days"] == 60.0
    assert result.metrics["prostrating_per_month"] == 0.5
    assert result.supported_rating == 10


def test_entry_without_payload_still_counts(engine, make_entry) -> None:
    result = engine.analyze("migraine", [make_entry("migraine", severity=6)])

    assert result.has_data
    assert result.metrics["total_count"] == 1
    assert result.metrics["severity_avg"] == 6.0
    assert result.metrics["prostrating_unreported_count"] == 1
    assert result.metrics["prostrating_per_month"] is None
    assert result.supported_rating == 0
    assert result.gaps == ["Start recording prostrating attacks per month to reach the 10% tier"]


def test_payload_claims_entry_with_other_tag(engine, make_entry, prostrating_payload) -> None:
    result = engine.analyze("migraine", [make_entry("headache", payload=prostrating_payload())])
    assert result.matched_entries == 1
    assert result.supported_rating == 30


def test_no_entries_is_no_data(make_entry) -> None:
    result = analyze("migraine", [make_entry("tinnitus")])
    assert result.status is AnalysisStatus.NO_DATA
    assert result.supported_rating is None
