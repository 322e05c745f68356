"""
Mental disorders rated under the General Rating Formula (38 CFR 4.130).

PTSD, major depression, generalized anxiety, panic disorder and bipolar
disorder share one formula. Symptom logs can only approximate occupational
and social impairment, so the metrics here lean on frequency, variety,
panic episodes and what the notes say about work, relationships and crises.
"""

from core.config import AnalysisConfig
from core.domain.criteria import (
    ALWAYS,
    Clause,
    ClauseOp,
    CriteriaTable,
    CriteriaTier,
    Highlight,
    Predicate,
    all_of,
    any_of,
)
from core.domain.models import ConditionKey, MetricsBag
from core.services.log_selector import Selection
from core.services.metric_aggregator import (
    base_metrics,
    count_where,
    distinct_tags,
    keyword_hits,
    per_month,
    per_week,
)
from core.services.registry import ConditionModule

IMPACT_KEYWORDS: dict[str, tuple[str, ...]] = {
    "work_impact": (
        "work", "job", "employment", "productivity", "performance", "absent", "late", "called off",
    ),
    "social_impact": ("relationship", "family", "friends", "isolated", "alone", "avoiding", "social"),
    "daily_impact": ("shower", "hygiene", "eat", "sleep", "basic", "daily", "routine"),
    "severe_symptoms": ("suicidal", "hospital", "emergency", "crisis", "violent", "dangerous"),
}


def _symptoms_per_month(op: ClauseOp, target: float) -> Clause:
    return Clause(
        "symptoms_per_month",
        op,
        target,
        "Symptom entries per month",
        noun="symptom entries",
        count_metric="total_count",
        rate="month",
    )


def _symptom_types(target: int) -> Clause:
    return Clause(
        "symptom_types", ClauseOp.AT_LEAST, target, "Distinct symptom types", noun="symptom types"
    )


def _panic_per_week(op: ClauseOp, target: float) -> Clause:
    return Clause(
        "panic_per_week",
        op,
        target,
        "Panic episodes per week",
        noun="panic episodes",
        count_metric="panic_count",
        rate="week",
    )


def _impact(metric: str, op: ClauseOp, target: int, label: str) -> Clause:
    return Clause(metric, op, target, label, noun=f"entries describing {label.lower()}")


def general_rating_formula(tracks_panic: bool) -> CriteriaTable:
    """Build the shared table; panic clauses only apply when panic symptoms are tracked."""
    moderate: list[Predicate] = [
        all_of(_symptoms_per_month(ClauseOp.AT_LEAST, 4), _symptom_types(2)),
        _impact("work_impact", ClauseOp.AT_LEAST, 2, "Work impact"),
        _impact("social_impact", ClauseOp.AT_LEAST, 2, "Social impact"),
    ]
    considerable: list[Predicate] = [
        all_of(_symptoms_per_month(ClauseOp.MORE_THAN, 12), _symptom_types(3)),
        all_of(
            _impact("work_impact", ClauseOp.MORE_THAN, 5, "Work impact"),
            _impact("social_impact", ClauseOp.MORE_THAN, 5, "Social impact"),
        ),
    ]
    if tracks_panic:
        moderate.insert(0, _panic_per_week(ClauseOp.AT_LEAST, 0.25))
        considerable.insert(0, _panic_per_week(ClauseOp.MORE_THAN, 1))

    return CriteriaTable.of(
        CriteriaTier(0, "Diagnosed, symptoms not severe enough to interfere with functioning", ALWAYS),
        CriteriaTier(
            10,
            "Mild or transient symptoms",
            Clause("total_count", ClauseOp.AT_LEAST, 3, "Symptom entries", noun="symptom entries"),
        ),
        CriteriaTier(
            30,
            "Occasional decrease in work efficiency and intermittent inability to perform tasks",
            any_of(*moderate),
        ),
        CriteriaTier(
            50,
            "Reduced reliability and productivity",
            any_of(*considerable),
        ),
        CriteriaTier(
            70,
            "Deficiencies in most areas such as work, family relations and mood",
            Clause(
                "severe_symptoms",
                ClauseOp.AT_LEAST,
                1,
                "Entries describing crisis-level symptoms",
                gap="seek professional evaluation and document any crisis care or hospitalization",
            ),
        ),
    )


def make_aggregator(panic_tags: frozenset[str]):
    def aggregate(selection: Selection, config: AnalysisConfig) -> MetricsBag:
        metrics = base_metrics(selection, config)
        span = float(metrics["span_days"])  # type: ignore[arg-type]
        entries = selection.entries
        metrics["symptoms_per_month"] = per_month(len(entries), span)
        metrics["symptom_types"] = distinct_tags(entries)
        if panic_tags:
            panic_count = count_where(entries, lambda e: e.condition_tag in panic_tags)
            metrics["panic_count"] = panic_count
            metrics["panic_per_week"] = per_week(panic_count, span)
        for metric, keywords in IMPACT_KEYWORDS.items():
            metrics[metric] = keyword_hits(entries, keywords)
        return metrics

    return aggregate


def mental_health_module(
    key: ConditionKey, name: str, diagnostic_code: str, tags: frozenset[str]
) -> ConditionModule:
    panic_tags = frozenset(t for t in tags if "panic" in t)
    return ConditionModule(
        key=key.value,
        name=name,
        diagnostic_code=diagnostic_code,
        cfr_reference="38 CFR 4.130",
        aggregate=make_aggregator(panic_tags),
        criteria=general_rating_formula(tracks_panic=bool(panic_tags)),
        symptom_tags=tags,
        highlights=(
            Highlight("total_count", "Symptom entries logged"),
            Highlight("symptom_types", "Distinct symptom types"),
            Highlight("panic_count", "Panic episodes"),
            Highlight("work_impact", "Entries mentioning work impact"),
            Highlight("social_impact", "Entries mentioning social impact"),
            Highlight("daily_impact", "Entries mentioning daily living impact"),
        ),
    )


PTSD = mental_health_module(
    ConditionKey.PTSD,
    "Post-Traumatic Stress Disorder",
    "9411",
    frozenset(
        {
            "ptsd-nightmare",
            "ptsd-flashback",
            "ptsd-hypervigilance",
            "ptsd-avoidance",
            "ptsd-panic",
            "nightmares",
        }
    ),
)

MAJOR_DEPRESSION = mental_health_module(
    ConditionKey.MAJOR_DEPRESSION,
    "Major Depressive Disorder",
    "9434",
    frozenset({"depression", "mdd-episode", "mdd-anhedonia", "mdd-hopelessness"}),
)

GENERALIZED_ANXIETY = mental_health_module(
    ConditionKey.GENERALIZED_ANXIETY,
    "Generalized Anxiety Disorder",
    "9400",
    frozenset({"anxiety", "gad-worry", "gad-restlessness", "gad-muscle-tension"}),
)

PANIC_DISORDER = mental_health_module(
    ConditionKey.PANIC_DISORDER,
    "Panic Disorder",
    "9412",
    frozenset({"panic-attack", "panic-agoraphobia", "panic-anticipatory-anxiety"}),
)

BIPOLAR = mental_health_module(
    ConditionKey.BIPOLAR,
    "Bipolar Disorder",
    "9432",
    frozenset({"bipolar-manic", "bipolar-depressive", "bipolar-mixed"}),
)
