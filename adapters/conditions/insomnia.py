"""
Insomnia (DC 8108, rated by analogy).

Daytime dysfunction counts fatigue and irritability entries attributed to
poor sleep.
"""

from core.config import AnalysisConfig
from core.domain.criteria import ALWAYS, Clause, ClauseOp, CriteriaTable, CriteriaTier, Highlight, all_of
from core.domain.models import ConditionKey, MetricsBag
from core.services.log_selector import Selection
from core.services.metric_aggregator import base_metrics, count_tagged, per_week
from core.services.registry import ConditionModule


def _nights_per_week(target: float) -> Clause:
    return Clause(
        "nights_per_week",
        ClauseOp.AT_LEAST,
        target,
        "Disturbed nights per week",
        noun="disturbed nights",
        count_metric="total_count",
        rate="week",
    )


INSOMNIA_CRITERIA = CriteriaTable.of(
    CriteriaTier(0, "Occasional sleep disturbance", ALWAYS),
    CriteriaTier(10, "Sleep disturbance at least weekly", _nights_per_week(1)),
    CriteriaTier(30, "Frequent sleep disturbance, several nights a week", _nights_per_week(3)),
    CriteriaTier(
        50,
        "Nearly nightly sleep disturbance with marked daytime dysfunction",
        all_of(
            _nights_per_week(6),
            Clause(
                "daytime_dysfunction_count",
                ClauseOp.AT_LEAST,
                15,
                "Daytime dysfunction episodes",
                noun="daytime fatigue or irritability episodes",
            ),
        ),
    ),
)


def aggregate_insomnia(selection: Selection, config: AnalysisConfig) -> MetricsBag:
    metrics = base_metrics(selection, config)
    span = float(metrics["span_days"])  # type: ignore[arg-type]
    entries = selection.entries
    fatigue = count_tagged(entries, "insomnia-fatigue")
    irritability = count_tagged(entries, "insomnia-irritability")
    metrics.update(
        {
            "nights_per_week": per_week(len(entries), span),
            "difficulty_falling_asleep_count": count_tagged(entries, "insomnia-difficulty-falling-asleep"),
            "difficulty_staying_asleep_count": count_tagged(entries, "insomnia-difficulty-staying-asleep"),
            "early_waking_count": count_tagged(entries, "insomnia-early-waking"),
            "fatigue_count": fatigue,
            "irritability_count": irritability,
            "daytime_dysfunction_count": fatigue + irritability,
        }
    )
    return metrics


INSOMNIA = ConditionModule(
    key=ConditionKey.INSOMNIA.value,
    name="Insomnia",
    diagnostic_code="8108",
    cfr_reference="38 CFR 4.124a",
    aggregate=aggregate_insomnia,
    criteria=INSOMNIA_CRITERIA,
    symptom_tags=frozenset(
        {
            "insomnia-difficulty-falling-asleep",
            "insomnia-difficulty-staying-asleep",
            "insomnia-early-waking",
            "insomnia-fatigue",
            "insomnia-irritability",
        }
    ),
    highlights=(
        Highlight("total_count", "Insomnia entries logged"),
        Highlight("fatigue_count", "Daytime fatigue episodes"),
        Highlight("irritability_count", "Irritability episodes"),
    ),
)
