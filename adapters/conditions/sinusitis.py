"""
Chronic sinusitis (DC 6510).
"""

from core.config import AnalysisConfig
from core.domain.criteria import (
    ALWAYS,
    Clause,
    ClauseOp,
    CriteriaTable,
    CriteriaTier,
    Highlight,
    all_of,
    any_of,
)
from core.domain.models import ConditionKey, MetricsBag
from core.services.log_selector import Selection
from core.services.metric_aggregator import base_metrics, count_tagged
from core.services.registry import ConditionModule


def _symptom_days(target: int) -> Clause:
    return Clause(
        "days_logged", ClauseOp.AT_LEAST, target, "Days with sinus symptoms", noun="days with sinus symptoms"
    )


SINUSITIS_CRITERIA = CriteriaTable.of(
    CriteriaTier(0, "Detected by imaging only, no symptoms documented", ALWAYS),
    CriteriaTier(10, "One or two incapacitating or three to six non-incapacitating episodes per year", _symptom_days(3)),
    CriteriaTier(
        30,
        "Three or more incapacitating or more than six non-incapacitating episodes per year",
        all_of(
            _symptom_days(60),
            any_of(
                Clause(
                    "facial_pain_count",
                    ClauseOp.AT_LEAST,
                    15,
                    "Facial pain episodes",
                    noun="facial pain episodes",
                ),
                Clause(
                    "headache_count",
                    ClauseOp.AT_LEAST,
                    15,
                    "Sinus headaches",
                    noun="sinus headaches",
                ),
            ),
        ),
    ),
)


def aggregate_sinusitis(selection: Selection, config: AnalysisConfig) -> MetricsBag:
    metrics = base_metrics(selection, config)
    entries = selection.entries
    metrics.update(
        {
            "facial_pain_count": count_tagged(entries, "sinusitis-facial-pain"),
            "pressure_count": count_tagged(entries, "sinusitis-pressure"),
            "congestion_count": count_tagged(entries, "sinusitis-congestion"),
            "headache_count": count_tagged(entries, "sinusitis-headache"),
            "drainage_count": count_tagged(entries, "sinusitis-drainage"),
        }
    )
    return metrics


SINUSITIS = ConditionModule(
    key=ConditionKey.SINUSITIS.value,
    name="Chronic Sinusitis",
    diagnostic_code="6510",
    cfr_reference="38 CFR 4.97",
    aggregate=aggregate_sinusitis,
    criteria=SINUSITIS_CRITERIA,
    symptom_tags=frozenset(
        {
            "sinusitis-facial-pain",
            "sinusitis-pressure",
            "sinusitis-congestion",
            "sinusitis-headache",
            "sinusitis-drainage",
        }
    ),
    highlights=(
        Highlight("total_count", "Sinus symptom entries"),
        Highlight("facial_pain_count", "Facial pain episodes"),
        Highlight("headache_count", "Sinus headaches"),
    ),
)
