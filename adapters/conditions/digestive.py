"""
Digestive system conditions: irritable bowel syndrome (DC 7319) and
gastroesophageal reflux disease (DC 7346).

Key concepts:
- Episode rates are per week over the observed span
- Bristol stool scale 6-7 counts as diarrhea, 1-2 as constipation
- GERD severity depends on which distinct symptoms co-occur
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
from core.domain.models import ConditionKey, DigestivePayload, MetricsBag, ObservationEntry
from core.services.log_selector import Selection
from core.services.metric_aggregator import (
    base_metrics,
    count_tagged,
    count_where,
    distinct_tags,
    per_week,
)
from core.services.registry import ConditionModule

BRISTOL_DIARRHEA_MIN = 6
BRISTOL_CONSTIPATION_MAX = 2


def _episodes_per_week(target: float, noun: str) -> Clause:
    return Clause(
        "episodes_per_week",
        ClauseOp.AT_LEAST,
        target,
        "Episodes per week",
        noun=noun,
        count_metric="total_count",
        rate="week",
    )


def _documented(metric: str, label: str) -> Clause:
    return Clause(metric, ClauseOp.AT_LEAST, 1, label, gap=f"document {label.lower()}")


# Irritable bowel syndrome

IBS_CRITERIA = CriteriaTable.of(
    CriteriaTier(0, "Mild disturbances of bowel function, diet controlled", ALWAYS),
    CriteriaTier(
        10,
        "Moderate, with frequent episodes of bowel disturbance",
        _episodes_per_week(1, "IBS episodes"),
    ),
    CriteriaTier(
        30,
        "Severe, with diarrhea or alternating diarrhea and constipation and constant abdominal distress",
        all_of(
            _episodes_per_week(3, "IBS episodes"),
            _documented("diarrhea_count", "Diarrhea episodes"),
            _documented("abdominal_pain_count", "Abdominal pain episodes"),
        ),
    ),
)


def _ibs_stool(entry: ObservationEntry) -> int | None:
    payload = entry.payload_as(DigestivePayload)
    return payload.bristol_scale if payload is not None else None


def aggregate_ibs(selection: Selection, config: AnalysisConfig) -> MetricsBag:
    metrics = base_metrics(selection, config)
    span = float(metrics["span_days"])  # type: ignore[arg-type]
    entries = selection.entries

    def diarrhea(e: ObservationEntry) -> bool:
        stool = _ibs_stool(e)
        return e.condition_tag == "ibs-diarrhea" or (stool is not None and stool >= BRISTOL_DIARRHEA_MIN)

    def constipation(e: ObservationEntry) -> bool:
        stool = _ibs_stool(e)
        return e.condition_tag == "ibs-constipation" or (
            stool is not None and stool <= BRISTOL_CONSTIPATION_MAX
        )

    diarrhea_count = count_where(entries, diarrhea)
    constipation_count = count_where(entries, constipation)
    metrics.update(
        {
            "episodes_per_week": per_week(len(entries), span),
            "diarrhea_count": diarrhea_count,
            "constipation_count": constipation_count,
            "abdominal_pain_count": count_tagged(entries, "ibs-pain"),
            "bloating_count": count_tagged(entries, "ibs-bloating"),
            "urgency_count": count_tagged(entries, "ibs-urgency"),
            "alternating_pattern": diarrhea_count > 0 and constipation_count > 0,
        }
    )
    return metrics


IBS = ConditionModule(
    key=ConditionKey.IBS.value,
    name="Irritable Bowel Syndrome",
    diagnostic_code="7319",
    cfr_reference="38 CFR 4.114",
    aggregate=aggregate_ibs,
    criteria=IBS_CRITERIA,
    symptom_tags=frozenset(
        {"ibs-diarrhea", "ibs-constipation", "ibs-pain", "ibs-bloating", "ibs-urgency"}
    ),
    highlights=(
        Highlight("total_count", "IBS episodes logged"),
        Highlight("diarrhea_count", "Diarrhea episodes"),
        Highlight("constipation_count", "Constipation episodes"),
        Highlight("abdominal_pain_count", "Abdominal pain episodes"),
        Highlight("alternating_pattern", "Alternating diarrhea and constipation"),
    ),
)


# Gastroesophageal reflux disease

GERD_CRITERIA = CriteriaTable.of(
    CriteriaTier(0, "Symptoms do not meet the compensable criteria", ALWAYS),
    CriteriaTier(
        10,
        "Two or more symptoms of less severity",
        Clause("symptom_types", ClauseOp.AT_LEAST, 2, "Distinct GERD symptoms", noun="distinct GERD symptoms"),
    ),
    CriteriaTier(
        30,
        "Persistently recurrent epigastric distress with dysphagia, pyrosis and regurgitation",
        all_of(
            _episodes_per_week(3, "GERD episodes"),
            _documented("heartburn_count", "Heartburn episodes"),
            _documented("regurgitation_count", "Regurgitation episodes"),
            any_of(
                _documented("chest_pain_count", "Chest pain episodes"),
                _documented("dysphagia_count", "Difficulty swallowing episodes"),
            ),
        ),
    ),
    CriteriaTier(
        60,
        "Vomiting, material weight loss and hematemesis or melena",
        all_of(
            _documented("vomiting_count", "Vomiting episodes"),
            _documented("weight_loss_count", "Weight loss entries"),
            _documented("bleeding_count", "Bleeding episodes"),
        ),
    ),
)


def aggregate_gerd(selection: Selection, config: AnalysisConfig) -> MetricsBag:
    metrics = base_metrics(selection, config)
    span = float(metrics["span_days"])  # type: ignore[arg-type]
    entries = selection.entries

    def bleeding(e: ObservationEntry) -> bool:
        payload = e.payload_as(DigestivePayload)
        return e.condition_tag == "gerd-hematemesis" or (
            payload is not None and payload.blood_present is True
        )

    metrics.update(
        {
            "episodes_per_week": per_week(len(entries), span),
            "symptom_types": distinct_tags(entries),
            "heartburn_count": count_tagged(entries, "gerd-heartburn"),
            "regurgitation_count": count_tagged(entries, "gerd-regurgitation"),
            "chest_pain_count": count_tagged(entries, "gerd-chest-pain"),
            "dysphagia_count": count_tagged(entries, "gerd-difficulty-swallowing"),
            "nausea_count": count_tagged(entries, "gerd-nausea"),
            "vomiting_count": count_tagged(entries, "gerd-vomiting"),
            "weight_loss_count": count_tagged(entries, "gerd-weight-loss"),
            "bleeding_count": count_where(entries, bleeding),
        }
    )
    return metrics


GERD = ConditionModule(
    key=ConditionKey.GERD.value,
    name="Gastroesophageal Reflux Disease",
    diagnostic_code="7346",
    cfr_reference="38 CFR 4.114",
    aggregate=aggregate_gerd,
    criteria=GERD_CRITERIA,
    symptom_tags=frozenset(
        {
            "gerd-heartburn",
            "gerd-regurgitation",
            "gerd-chest-pain",
            "gerd-difficulty-swallowing",
            "gerd-nausea",
            "gerd-vomiting",
            "gerd-weight-loss",
            "gerd-hematemesis",
        }
    ),
    highlights=(
        Highlight("total_count", "GERD episodes logged"),
        Highlight("symptom_types", "Distinct GERD symptoms"),
        Highlight("heartburn_count", "Heartburn episodes"),
        Highlight("regurgitation_count", "Regurgitation episodes"),
    ),
)
