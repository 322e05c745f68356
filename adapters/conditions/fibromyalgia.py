"""
Fibromyalgia (DC 5025).

Rated on how constant the widespread musculoskeletal pain and its companion
symptoms are. The rating floor is 10% once symptoms are documented, so the
table has no 0% tier. Evaluated over a longer 180-day window.
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
from core.domain.models import ConditionKey, MetricsBag, PainPayload
from core.services.log_selector import Selection
from core.services.metric_aggregator import (
    base_metrics,
    count_tagged,
    count_where,
    distinct_tags,
    most_common,
    per_month,
    share,
)
from core.services.registry import ConditionModule

SEVERE_SEVERITY = 8


def _symptoms_per_month(target: float) -> Clause:
    return Clause(
        "symptoms_per_month",
        ClauseOp.AT_LEAST,
        target,
        "Symptom entries per month",
        noun="fibromyalgia symptom entries",
        count_metric="total_count",
        rate="month",
    )


FIBROMYALGIA_CRITERIA = CriteriaTable.of(
    CriteriaTier(10, "Symptoms that require continuous medication for control", ALWAYS),
    CriteriaTier(
        20,
        "Episodic, with exacerbations present more than one-third of the time",
        any_of(
            _symptoms_per_month(10),
            all_of(
                Clause(
                    "symptom_types",
                    ClauseOp.AT_LEAST,
                    3,
                    "Distinct symptom types",
                    noun="distinct fibromyalgia symptom types",
                ),
                Clause(
                    "severe_count",
                    ClauseOp.AT_LEAST,
                    1,
                    "Severe episodes",
                    noun="severe episodes (severity 8 or higher)",
                ),
            ),
        ),
    ),
    CriteriaTier(
        40,
        "Constant or nearly constant, refractory to therapy",
        all_of(
            _symptoms_per_month(20),
            Clause("severity_avg", ClauseOp.AT_LEAST, 7, "Average severity"),
            Clause(
                "severe_share",
                ClauseOp.AT_LEAST,
                0.4,
                "Share of severe episodes",
                as_percent=True,
            ),
        ),
    ),
)


def aggregate_fibromyalgia(selection: Selection, config: AnalysisConfig) -> MetricsBag:
    metrics = base_metrics(selection, config)
    span = float(metrics["span_days"])  # type: ignore[arg-type]
    entries = selection.entries
    severe = count_where(entries, lambda e: e.severity is not None and e.severity >= SEVERE_SEVERITY)
    pain_types = (p.pain_type if p else None for p in (e.payload_as(PainPayload) for e in entries))
    metrics.update(
        {
            "symptoms_per_month": per_month(len(entries), span),
            "symptom_types": distinct_tags(entries),
            "severe_count": severe,
            "severe_share": share(severe, len(entries)),
            "widespread_pain_count": count_tagged(entries, "fibro-widespread-pain"),
            "tender_points_count": count_tagged(entries, "fibro-tender-points"),
            "most_common_pain_type": most_common(pain_types),
        }
    )
    return metrics


FIBROMYALGIA = ConditionModule(
    key=ConditionKey.FIBROMYALGIA.value,
    name="Fibromyalgia",
    diagnostic_code="5025",
    cfr_reference="38 CFR 4.71a",
    aggregate=aggregate_fibromyalgia,
    criteria=FIBROMYALGIA_CRITERIA,
    symptom_tags=frozenset(
        {
            "fibro-widespread-pain",
            "fibro-tender-points",
            "fibro-fatigue",
            "fibro-sleep",
            "fibro-stiffness",
            "fibro-cognitive",
        }
    ),
    evaluation_period_days=180,
    highlights=(
        Highlight("total_count", "Symptom entries logged"),
        Highlight("days_logged", "Days with symptoms"),
        Highlight("symptom_types", "Distinct symptom types"),
        Highlight("severity_avg", "Average severity"),
        Highlight("most_common_pain_type", "Most common pain type"),
    ),
)
