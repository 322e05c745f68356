"""
Sleep apnea syndromes (DC 6847).
"""

from core.config import AnalysisConfig
from core.domain.criteria import ALWAYS, Clause, ClauseOp, CriteriaTable, CriteriaTier, Highlight, any_of
from core.domain.models import ConditionKey, MetricsBag, ObservationEntry, SleepPayload
from core.services.log_selector import Selection
from core.services.metric_aggregator import base_metrics, most_common, share
from core.services.registry import ConditionModule

SLEEPINESS_KEYWORDS = ("tired", "sleepy", "fatigue")
POOR_QUALITY_MAX = 3

SLEEP_APNEA_CRITERIA = CriteriaTable.of(
    CriteriaTier(0, "Asymptomatic but with documented sleep disorder breathing", ALWAYS),
    CriteriaTier(
        30,
        "Persistent daytime hypersomnolence",
        any_of(
            Clause(
                "sleepiness_ratio",
                ClauseOp.AT_LEAST,
                0.5,
                "Nights with daytime sleepiness",
                as_percent=True,
                gap="log daytime sleepiness on at least half of your sleep entries",
            ),
            Clause(
                "unrested_nights",
                ClauseOp.AT_LEAST,
                10,
                "Nights feeling unrested",
                noun="nights feeling unrested",
            ),
        ),
    ),
    CriteriaTier(
        50,
        "Requires use of a breathing assistance device such as CPAP",
        Clause(
            "breathing_device_nights",
            ClauseOp.AT_LEAST,
            1,
            "Nights using a breathing device",
            gap="document breathing assistance device use (CPAP, BiPAP or similar)",
        ),
    ),
)


def _sleepy(entry: ObservationEntry, payload: SleepPayload | None) -> bool:
    if payload is not None:
        if payload.feel_rested is False:
            return True
        if payload.quality is not None and payload.quality <= POOR_QUALITY_MAX:
            return True
    notes = entry.notes.lower()
    return any(word in notes for word in SLEEPINESS_KEYWORDS)


def aggregate_sleep_apnea(selection: Selection, config: AnalysisConfig) -> MetricsBag:
    metrics = base_metrics(selection, config)
    pairs = [(e, e.payload_as(SleepPayload)) for e in selection.entries]
    payloads = [p for _, p in pairs if p is not None]

    sleepy = sum(1 for e, p in pairs if _sleepy(e, p))
    qualities = [p.quality for p in payloads if p.quality is not None]
    hours = [p.hours_slept for p in payloads if p.hours_slept is not None]
    device_answers = [p.breathing_device_used for p in payloads if p.breathing_device_used is not None]

    metrics.update(
        {
            "daytime_sleepiness_count": sleepy,
            "sleepiness_ratio": share(sleepy, len(pairs)),
            "unrested_nights": sum(1 for p in payloads if p.feel_rested is False),
            "avg_sleep_quality": round(sum(qualities) / len(qualities), 2) if qualities else None,
            "avg_hours_slept": round(sum(hours) / len(hours), 2) if hours else None,
            "breathing_device_nights": (
                sum(1 for used in device_answers if used) if device_answers else None
            ),
            "device_type": most_common(p.device_type for p in payloads if p.breathing_device_used),
        }
    )
    return metrics


SLEEP_APNEA = ConditionModule(
    key=ConditionKey.SLEEP_APNEA.value,
    name="Sleep Apnea",
    diagnostic_code="6847",
    cfr_reference="38 CFR 4.97",
    aggregate=aggregate_sleep_apnea,
    criteria=SLEEP_APNEA_CRITERIA,
    symptom_tags=frozenset({"sleep-issues", "sleep-apnea"}),
    payload_kinds=frozenset({"sleep"}),
    highlights=(
        Highlight("total_count", "Sleep entries logged"),
        Highlight("unrested_nights", "Nights feeling unrested"),
        Highlight("avg_sleep_quality", "Average sleep quality"),
        Highlight("avg_hours_slept", "Average hours slept"),
        Highlight("device_type", "Breathing device"),
    ),
)
