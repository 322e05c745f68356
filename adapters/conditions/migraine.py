"""
Migraine (DC 8100).

Key concepts:
- Prostrating attack: an attack severe enough to halt ordinary activity
- Prolonged: a prostrating attack lasting 4 hours or more
- Frequency is judged per month over the observed span
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
)
from core.domain.models import ConditionKey, MetricsBag, MigrainePayload
from core.services.log_selector import Selection
from core.services.metric_aggregator import base_metrics, most_common, per_month
from core.services.registry import ConditionModule

_prostrating_per_month = dict(
    metric="prostrating_per_month",
    op=ClauseOp.AT_LEAST,
    label="Prostrating attacks per month",
    noun="prostrating attacks",
    count_metric="prostrating_count",
    rate="month",
)

MIGRAINE_CRITERIA = CriteriaTable.of(
    CriteriaTier(0, "Less frequent attacks", ALWAYS),
    CriteriaTier(
        10,
        "Characteristic prostrating attacks averaging one in 2 months",
        Clause(target=0.5, **_prostrating_per_month),
    ),
    CriteriaTier(
        30,
        "Characteristic prostrating attacks occurring on average once a month",
        Clause(target=1, **_prostrating_per_month),
    ),
    CriteriaTier(
        50,
        "Very frequent completely prostrating and prolonged attacks",
        all_of(
            Clause(target=4, **_prostrating_per_month),
            Clause(
                "prolonged_prostrating_count",
                ClauseOp.AT_LEAST,
                1,
                "Prolonged prostrating attacks",
                noun="prostrating attacks lasting 4 hours or more",
            ),
        ),
    ),
)


def aggregate_migraine(selection: Selection, config: AnalysisConfig) -> MetricsBag:
    metrics = base_metrics(selection, config)
    span = float(metrics["span_days"])  # type: ignore[arg-type]
    payloads = [e.payload_as(MigrainePayload) for e in selection.entries]

    reported = [p for p in payloads if p is not None and p.prostrating is not None]
    prostrating = [p for p in reported if p.prostrating]
    prolonged = [p for p in prostrating if p.is_prolonged]

    metrics.update(
        {
            "total_per_month": per_month(len(selection.entries), span),
            "prostrating_unreported_count": len(payloads) - len(reported),
            "aura_count": sum(1 for p in payloads if p is not None and p.aura),
            "most_common_duration": most_common(
                p.duration.value if p is not None and p.duration else None for p in payloads
            ),
        }
    )
    if reported:
        metrics["prostrating_count"] = len(prostrating)
        metrics["prostrating_per_month"] = per_month(len(prostrating), span)
        metrics["prolonged_prostrating_count"] = len(prolonged)
    else:
        # Nothing answered the prostrating question; leave the criteria metrics unreported
        metrics["prostrating_count"] = None
        metrics["prostrating_per_month"] = None
        metrics["prolonged_prostrating_count"] = None
    return metrics


MIGRAINE = ConditionModule(
    key=ConditionKey.MIGRAINE.value,
    name="Migraine",
    diagnostic_code="8100",
    cfr_reference="38 CFR 4.124a",
    aggregate=aggregate_migraine,
    criteria=MIGRAINE_CRITERIA,
    symptom_tags=frozenset({"migraine"}),
    payload_kinds=frozenset({"migraine"}),
    highlights=(
        Highlight("total_count", "Migraines logged"),
        Highlight("prostrating_count", "Prostrating attacks"),
        Highlight("prolonged_prostrating_count", "Prolonged prostrating attacks"),
        Highlight("severity_avg", "Average severity"),
        Highlight("most_common_duration", "Most common duration"),
    ),
)
