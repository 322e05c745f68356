"""
Ear conditions: recurrent tinnitus (DC 6260) and Meniere's syndrome (DC 6205).
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
from core.services.metric_aggregator import base_metrics, count_tagged, per_week
from core.services.registry import ConditionModule

# Tinnitus

TINNITUS_CRITERIA = CriteriaTable.of(
    CriteriaTier(0, "Tinnitus logged, recurrence not yet established", ALWAYS),
    CriteriaTier(
        10,
        "Recurrent tinnitus (a single rating regardless of severity or ears affected)",
        Clause(
            "days_logged",
            ClauseOp.AT_LEAST,
            2,
            "Days with tinnitus logged",
            noun="days with tinnitus logged",
        ),
    ),
)


def aggregate_tinnitus(selection: Selection, config: AnalysisConfig) -> MetricsBag:
    return base_metrics(selection, config)


TINNITUS = ConditionModule(
    key=ConditionKey.TINNITUS.value,
    name="Tinnitus",
    diagnostic_code="6260",
    cfr_reference="38 CFR 4.87",
    aggregate=aggregate_tinnitus,
    criteria=TINNITUS_CRITERIA,
    symptom_tags=frozenset({"tinnitus"}),
    highlights=(
        Highlight("total_count", "Tinnitus entries logged"),
        Highlight("severity_avg", "Average severity"),
    ),
)


# Meniere's syndrome


def _menieres_rate(target: float) -> Clause:
    return Clause(
        "episodes_per_week",
        ClauseOp.AT_LEAST,
        target,
        "Episodes per week",
        noun="Meniere's episodes",
        count_metric="total_count",
        rate="week",
    )


def _vertigo(target: int) -> Clause:
    return Clause("vertigo_count", ClauseOp.AT_LEAST, target, "Vertigo attacks", noun="vertigo attacks")


_TRIAD = Clause(
    "has_triad",
    ClauseOp.EQUALS,
    True,
    "Vertigo, tinnitus and hearing loss all documented",
    gap="document the full triad of vertigo, tinnitus and hearing loss",
)

MENIERES_CRITERIA = CriteriaTable.of(
    CriteriaTier(0, "Symptoms minimal or well controlled", ALWAYS),
    CriteriaTier(
        30,
        "Hearing impairment with vertigo less than once a month, with or without tinnitus",
        all_of(
            _menieres_rate(0.5),
            any_of(
                _vertigo(1),
                Clause(
                    "tinnitus_count",
                    ClauseOp.AT_LEAST,
                    1,
                    "Tinnitus episodes",
                    noun="tinnitus episodes",
                ),
            ),
        ),
    ),
    CriteriaTier(
        60,
        "Hearing impairment with attacks of vertigo and cerebellar gait one to four times a month",
        all_of(_menieres_rate(1), _vertigo(4), _TRIAD),
    ),
    CriteriaTier(
        100,
        "Hearing impairment with attacks of vertigo and cerebellar gait more than once weekly",
        all_of(_menieres_rate(3), _vertigo(10), _TRIAD),
    ),
)


def aggregate_menieres(selection: Selection, config: AnalysisConfig) -> MetricsBag:
    metrics = base_metrics(selection, config)
    span = float(metrics["span_days"])  # type: ignore[arg-type]
    entries = selection.entries
    vertigo = count_tagged(entries, "menieres-vertigo")
    tinnitus = count_tagged(entries, "menieres-tinnitus")
    hearing_loss = count_tagged(entries, "menieres-hearing-loss")
    metrics.update(
        {
            "episodes_per_week": per_week(len(entries), span),
            "vertigo_count": vertigo,
            "tinnitus_count": tinnitus,
            "hearing_loss_count": hearing_loss,
            "nausea_count": count_tagged(entries, "menieres-nausea"),
            "has_triad": vertigo > 0 and tinnitus > 0 and hearing_loss > 0,
        }
    )
    return metrics


MENIERES = ConditionModule(
    key=ConditionKey.MENIERES.value,
    name="Meniere's Disease",
    diagnostic_code="6205",
    cfr_reference="38 CFR 4.85",
    aggregate=aggregate_menieres,
    criteria=MENIERES_CRITERIA,
    symptom_tags=frozenset(
        {"menieres-vertigo", "menieres-tinnitus", "menieres-hearing-loss", "menieres-nausea"}
    ),
    highlights=(
        Highlight("total_count", "Meniere's episodes logged"),
        Highlight("vertigo_count", "Vertigo attacks"),
        Highlight("hearing_loss_count", "Hearing loss episodes"),
    ),
)
