"""
Hypertensive vascular disease (DC 7101).

Driven by blood-pressure measurements rather than symptom entries. A
threshold counts when it is met "predominantly", i.e. by more than half of
the readings in the window, and only once readings span at least three
distinct days.
"""

from collections.abc import Sequence

from core.config import AnalysisConfig
from core.domain.criteria import (
    ALWAYS,
    AllOf,
    Clause,
    ClauseOp,
    CriteriaTable,
    CriteriaTier,
    Highlight,
    Predicate,
    all_of,
    any_of,
)
from core.domain.models import ConditionKey, Measurement, MetricsBag
from core.services.log_selector import Selection
from core.services.metric_aggregator import base_metrics, share, utc_day
from core.services.registry import ConditionModule

BLOOD_PRESSURE = "blood-pressure"
PREDOMINANT = 0.5
MIN_READING_DAYS = 3

DIASTOLIC_THRESHOLDS = (100, 110, 120, 130)
SYSTOLIC_THRESHOLDS = (160, 200)


def _predominant(side: str, threshold: int) -> Clause:
    return Clause(
        f"{side}_{threshold}_share",
        ClauseOp.MORE_THAN,
        PREDOMINANT,
        f"Readings with {side} {threshold} or higher",
        as_percent=True,
    )


def _gated(*alternatives: Predicate) -> AllOf:
    reading_days = Clause(
        "reading_days",
        ClauseOp.AT_LEAST,
        MIN_READING_DAYS,
        "Days with blood pressure readings",
        noun="days with blood pressure readings",
    )
    if len(alternatives) == 1:
        return all_of(reading_days, alternatives[0])
    return all_of(reading_days, any_of(*alternatives))


HYPERTENSION_CRITERIA = CriteriaTable.of(
    CriteriaTier(0, "Readings do not meet the compensable thresholds", ALWAYS),
    CriteriaTier(
        10,
        "Diastolic predominantly 100 or more, systolic predominantly 160 or more, "
        "or continuous medication with a history of diastolic 100 or more",
        _gated(
            _predominant("diastolic", 100),
            _predominant("systolic", 160),
            all_of(
                Clause(
                    "on_medication",
                    ClauseOp.EQUALS,
                    True,
                    "Blood pressure medication taken",
                    gap="record blood pressure medication use",
                ),
                Clause("max_diastolic", ClauseOp.AT_LEAST, 100, "Highest diastolic reading"),
            ),
        ),
    ),
    CriteriaTier(
        20,
        "Diastolic predominantly 110 or more, or systolic predominantly 200 or more",
        _gated(_predominant("diastolic", 110), _predominant("systolic", 200)),
    ),
    CriteriaTier(40, "Diastolic predominantly 120 or more", _gated(_predominant("diastolic", 120))),
    CriteriaTier(60, "Diastolic predominantly 130 or more", _gated(_predominant("diastolic", 130))),
)


def _values(readings: Sequence[Measurement], name: str) -> list[float]:
    return [m.values[name] for m in readings if name in m.values]


def aggregate_hypertension(selection: Selection, config: AnalysisConfig) -> MetricsBag:
    metrics = base_metrics(selection, config)
    readings = selection.measurements
    systolic = _values(readings, "systolic")
    diastolic = _values(readings, "diastolic")

    medication = [m.medication_taken for m in readings if m.medication_taken is not None]
    metrics.update(
        {
            "symptom_count": len(selection.entries),
            "reading_count": len(readings),
            "reading_days": len({utc_day(m.timestamp) for m in readings if m.timestamp}),
            "avg_systolic": round(sum(systolic) / len(systolic)) if systolic else None,
            "avg_diastolic": round(sum(diastolic) / len(diastolic)) if diastolic else None,
            "max_diastolic": max(diastolic) if diastolic else None,
            "on_medication": any(medication) if medication else None,
        }
    )
    for threshold in DIASTOLIC_THRESHOLDS:
        metrics[f"diastolic_{threshold}_share"] = share(
            sum(1 for v in diastolic if v >= threshold), len(diastolic)
        )
    for threshold in SYSTOLIC_THRESHOLDS:
        metrics[f"systolic_{threshold}_share"] = share(
            sum(1 for v in systolic if v >= threshold), len(systolic)
        )
    return metrics


HYPERTENSION = ConditionModule(
    key=ConditionKey.HYPERTENSION.value,
    name="Hypertension",
    diagnostic_code="7101",
    cfr_reference="38 CFR 4.104",
    aggregate=aggregate_hypertension,
    criteria=HYPERTENSION_CRITERIA,
    symptom_tags=frozenset(
        {"high-blood-pressure", "hypertension-headache", "chest-pressure", "palpitations", "hypertension"}
    ),
    measurement_types=frozenset({BLOOD_PRESSURE}),
    highlights=(
        Highlight("reading_count", "Blood pressure readings"),
        Highlight("avg_systolic", "Average systolic"),
        Highlight("avg_diastolic", "Average diastolic"),
        Highlight("symptom_count", "Hypertension symptom entries"),
    ),
)
