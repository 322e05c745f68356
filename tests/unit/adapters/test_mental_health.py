"""
Mental health conditions under the shared general rating formula.
"""

import pytest

from adapters.conditions import build_registry
from adapters.conditions.mental_health import GENERALIZED_ANXIETY, PANIC_DISORDER, PTSD
from core.services.rating_engine import RatingEngine


@pytest.fixture
def engine() -> RatingEngine:
    return RatingEngine(build_registry())


def test_panic_clauses_only_where_panic_is_tracked() -> None:
    assert "panic_per_week" in str(PTSD.criteria)
    assert "panic_per_week" in str(PANIC_DISORDER.criteria)
    assert "panic_per_week" not in str(GENERALIZED_ANXIETY.criteria)


def test_few_entries_support_ten(engine, make_entry) -> None:
    entries = [make_entry("gad-worry", days_ago=d) for d in (0, 10, 20)]
    result = engine.analyze("generalized-anxiety", entries)
    assert result.supported_rating == 10


def test_frequent_varied_symptoms_support_thirty(engine, make_entry) -> None:
    tags = ["ptsd-nightmare", "ptsd-flashback"]
    entries = [make_entry(tags[i % 2], days_ago=i * 7) for i in range(5)]

    result = engine.analyze("ptsd", entries)

    assert result.metrics["symptom_types"] == 2
    assert result.supported_rating == 30


def test_weekly_panic_attacks_support_thirty(engine, make_entry) -> None:
    entries = [make_entry("panic-attack", days_ago=d) for d in (0, 14, 28)]

    result = engine.analyze("panic-disorder", entries)

    assert result.metrics["panic_count"] == 3
    assert result.metrics["panic_per_week"] == pytest.approx(0.7)
    assert result.supported_rating == 30


def test_frequent_panic_supports_fifty(engine, make_entry) -> None:
    entries = [make_entry("panic-attack", days_ago=d) for d in range(0, 30, 3)]
    result = engine.analyze("panic-disorder", entries)
    assert result.metrics["panic_per_week"] > 1
    assert result.supported_rating == 50


def test_work_impact_from_notes(engine, make_entry) -> None:
    entries = [
        make_entry("depression", days_ago=0, notes="Called off work again"),
        make_entry("depression", days_ago=20, notes="could not focus at my job"),
        make_entry("depression", days_ago=40, notes="stayed in bed"),
    ]

    result = engine.analyze("major-depression", entries)

    assert result.metrics["work_impact"] == 2
    assert result.supported_rating == 30
    assert any("Entries mentioning work impact: 2" == line for line in result.rating_rationale)


def test_crisis_notes_reach_seventy(engine, make_entry) -> None:
    entries = [make_entry("bipolar-manic", notes="ended up in the emergency room")]

    result = engine.analyze("bipolar", entries)

    assert result.metrics["severe_symptoms"] == 1
    assert result.supported_rating == 70
    assert result.gaps == []


def test_gap_offers_alternatives(engine, make_entry) -> None:
    entries = [make_entry("anxiety", days_ago=d) for d in (0, 10, 20)]

    result = engine.analyze("generalized-anxiety", entries)

    assert len(result.gaps) == 1
    assert " or " in result.gaps[0]
    assert result.gaps[0].endswith("to reach the 30% tier")
