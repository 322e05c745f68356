"""
Scenario tests for each shipped condition module, plus registry-wide checks.
"""

import random
from datetime import UTC, datetime, timedelta

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from adapters.conditions import SHIPPED_MODULES, build_registry
from core.domain.models import AnalysisStatus, ConditionKey, Measurement, ObservationEntry
from core.services.rating_engine import RatingEngine
from core.services.registry import ConditionModule

ANCHOR = datetime(2025, 3, 31, 9, 0, tzinfo=UTC)


@pytest.fixture
def engine() -> RatingEngine:
    return RatingEngine(build_registry())


class TestRegistry:
    def test_every_condition_key_is_shipped(self) -> None:
        registry = build_registry()
        assert len(registry) == len(ConditionKey)
        assert set(registry.keys()) == {k.value for k in ConditionKey}

    def test_payload_kinds_have_single_owner(self) -> None:
        kinds = [kind for m in SHIPPED_MODULES for kind in m.payload_kinds]
        assert len(kinds) == len(set(kinds))

    @pytest.mark.parametrize("module", SHIPPED_MODULES, ids=lambda m: m.key)
    def test_module_metadata(self, module) -> None:
        assert module.diagnostic_code.isdigit()
        assert module.cfr_reference is not None and module.cfr_reference.startswith("38 CFR")
        assert module.symptom_tags
        assert module.evaluation_period_days > 0

    def test_empty_snapshot_has_no_data_everywhere(self, engine: RatingEngine) -> None:
        summary = engine.analyze_all([])
        assert {r.status for r in summary.results.values()} == {AnalysisStatus.NO_DATA}
        assert summary.combined_rating == 0
        assert summary.rated == {}


class TestSleepApnea:
    @staticmethod
    def _night(make_entry, days_ago: int, **sleep):
        return make_entry("sleep-issues", days_ago=days_ago, payload={"kind": "sleep", **sleep})

    def test_daytime_sleepiness_supports_thirty(self, engine, make_entry) -> None:
        entries = [self._night(make_entry, d, feelRested=False, hoursSlept=5) for d in range(4)]

        result = engine.analyze("sleep-apnea", entries)

        assert result.metrics["sleepiness_ratio"] == 1.0
        assert result.metrics["avg_hours_slept"] == 5.0
        assert result.metrics["breathing_device_nights"] is None
        assert result.supported_rating == 30
        assert result.gaps == ["Start recording nights using a breathing device to reach the 50% tier"]

    def test_breathing_device_supports_fifty(self, engine, make_entry) -> None:
        entries = [
            self._night(make_entry, 0, breathingDeviceUsed=True, deviceType="CPAP"),
            self._night(make_entry, 1, breathingDeviceUsed=False),
        ]

        result = engine.analyze("sleep-apnea", entries)

        assert result.metrics["breathing_device_nights"] == 1
        assert result.metrics["device_type"] == "CPAP"
        assert result.supported_rating == 50

    def test_sleepy_notes_count(self, engine, make_entry) -> None:
        entries = [make_entry("sleep-apnea", days_ago=d, notes="so tired today") for d in range(2)]
        entries.append(make_entry("sleep-apnea", days_ago=3))

        result = engine.analyze("sleep-apnea", entries)

        assert result.metrics["daytime_sleepiness_count"] == 2
        assert result.supported_rating == 30


class TestDigestive:
    def test_ibs_weekly_episodes(self, engine, make_entry) -> None:
        entries = [make_entry("ibs-bloating", days_ago=d) for d in (0, 5, 10, 15, 20)]
        assert engine.analyze("ibs", entries).supported_rating == 10

    def test_ibs_severe(self, engine, make_entry) -> None:
        tags = ("ibs-diarrhea", "ibs-pain")
        entries = [make_entry(tags[i % 2], days_ago=i * 2) for i in range(14)]

        result = engine.analyze("ibs", entries)

        assert result.metrics["episodes_per_week"] >= 3
        assert result.supported_rating == 30

    def test_bristol_scale_drives_stool_counts(self, engine, make_entry) -> None:
        entries = [
            make_entry("ibs-bloating", days_ago=0, payload={"kind": "digestive", "bristolScale": 7}),
            make_entry("ibs-bloating", days_ago=1, payload={"kind": "digestive", "bristolScale": 1}),
        ]

        result = engine.analyze("ibs", entries)

        assert result.metrics["diarrhea_count"] == 1
        assert result.metrics["constipation_count"] == 1
        assert result.metrics["alternating_pattern"] is True

    def test_gerd_two_symptoms(self, engine, make_entry) -> None:
        entries = [make_entry("gerd-heartburn", days_ago=0), make_entry("gerd-regurgitation", days_ago=1)]
        assert engine.analyze("gerd", entries).supported_rating == 10

    def test_gerd_severe_triad(self, engine, make_entry) -> None:
        entries = [
            make_entry("gerd-vomiting", days_ago=0),
            make_entry("gerd-weight-loss", days_ago=1),
            make_entry("gerd-nausea", days_ago=2, payload={"kind": "digestive", "bloodPresent": True}),
        ]

        result = engine.analyze("gerd", entries)

        assert result.metrics["bleeding_count"] == 1
        assert result.supported_rating == 60


class TestEar:
    def test_single_day_of_tinnitus(self, engine, make_entry) -> None:
        result = engine.analyze("tinnitus", [make_entry("tinnitus")])
        assert result.supported_rating == 0
        assert result.gaps == ["Document 1 more days with tinnitus logged to reach the 10% tier"]

    def test_recurrent_tinnitus(self, engine, make_entry) -> None:
        result = engine.analyze("tinnitus", [make_entry("tinnitus", days_ago=d) for d in (0, 3)])
        assert result.supported_rating == 10
        assert result.gaps == []

    def test_same_instant_at_different_offsets_is_one_day(self, engine, make_entry) -> None:
        entries = [
            make_entry("tinnitus", timestamp="2025-03-30T23:30:00-05:00"),
            make_entry("tinnitus", timestamp="2025-03-31T04:30:00+00:00"),
        ]

        result = engine.analyze("tinnitus", entries)

        assert result.metrics["days_logged"] == 1
        assert result.supported_rating == 0

    def test_menieres_vertigo_episodes(self, engine, make_entry) -> None:
        entries = [make_entry("menieres-vertigo", days_ago=d) for d in (0, 10, 20)]
        result = engine.analyze("menieres", entries)
        assert result.supported_rating == 30
        assert "Document the full triad of vertigo, tinnitus and hearing loss to reach the 60% tier" in result.gaps

    def test_menieres_with_triad(self, engine, make_entry) -> None:
        entries = [make_entry("menieres-vertigo", days_ago=d) for d in (0, 7, 14, 21)]
        entries += [make_entry("menieres-tinnitus", days_ago=3), make_entry("menieres-hearing-loss", days_ago=4)]

        result = engine.analyze("menieres", entries)

        assert result.metrics["has_triad"] is True
        assert result.supported_rating == 60


class TestFibromyalgia:
    def test_floor_is_ten(self, engine, make_entry) -> None:
        result = engine.analyze("fibromyalgia", [make_entry("fibro-fatigue", severity=3)])
        assert result.supported_rating == 10
        assert result.rating_rationale[0].startswith("Evidence supports 10% under DC 5025")

    def test_longer_window(self, engine, make_entry) -> None:
        entries = [make_entry("fibro-stiffness", days_ago=150), make_entry("fibro-stiffness", days_ago=0)]
        assert engine.analyze("fibromyalgia", entries).matched_entries == 2

    def test_varied_severe_symptoms_support_twenty(self, engine, make_entry) -> None:
        entries = [
            make_entry("fibro-widespread-pain", days_ago=0, severity=9, payload={"kind": "pain", "painType": "aching"}),
            make_entry("fibro-fatigue", days_ago=1, severity=4),
            make_entry("fibro-cognitive", days_ago=2, severity=3),
        ]

        result = engine.analyze("fibromyalgia", entries)

        assert result.metrics["most_common_pain_type"] == "aching"
        assert result.supported_rating == 20

    def test_constant_severe_symptoms_support_forty(self, engine, make_entry) -> None:
        entries = [make_entry("fibro-widespread-pain", days_ago=d * 1.5, severity=8) for d in range(20)]
        assert engine.analyze("fibromyalgia", entries).supported_rating == 40


class TestSinusitis:
    def test_few_symptom_days(self, engine, make_entry) -> None:
        entries = [make_entry("sinusitis-congestion", days_ago=d) for d in (0, 4, 9)]
        assert engine.analyze("sinusitis", entries).supported_rating == 10

    def test_near_constant_symptoms(self, engine, make_entry) -> None:
        entries = [make_entry("sinusitis-facial-pain", days_ago=d) for d in range(60)]
        result = engine.analyze("sinusitis", entries)
        assert result.metrics["days_logged"] == 60
        assert result.supported_rating == 30


class TestInsomnia:
    @pytest.mark.parametrize(("nights", "expected"), [(4, 0), (5, 10), (13, 30)])
    def test_nightly_frequency(self, engine, make_entry, nights: int, expected: int) -> None:
        entries = [make_entry("insomnia-early-waking", days_ago=d * 2) for d in range(nights)]
        assert engine.analyze("insomnia", entries).supported_rating == expected

    def test_daytime_dysfunction_needed_for_fifty(self, engine, make_entry) -> None:
        entries = [make_entry("insomnia-fatigue", days_ago=d) for d in range(28)]
        result = engine.analyze("insomnia", entries)
        assert result.supported_rating == 50
        assert result.metrics["daytime_dysfunction_count"] == 28


ALL_TAGS = sorted({tag for module in SHIPPED_MODULES for tag in module.symptom_tags})
NOTES = (
    "",
    "called off work",
    "had to lie down in a dark room",
    "so tired today",
    "ended up in the emergency room",
    "could not focus at my job",
)
MAYBE = st.sampled_from([True, False, None])

payloads = st.one_of(
    st.none(),
    st.fixed_dictionaries(
        {
            "kind": st.just("migraine"),
            "duration": st.sampled_from([None, "less-than-1h", "1-4h", "4-24h", "1-2d", "ongoing"]),
            "prostrating": MAYBE,
        }
    ),
    st.fixed_dictionaries(
        {
            "kind": st.just("sleep"),
            "hoursSlept": st.integers(min_value=0, max_value=24).map(lambda half_hours: half_hours / 2),
            "feelRested": MAYBE,
            "breathingDeviceUsed": MAYBE,
            "deviceType": st.sampled_from([None, "CPAP", "BiPAP"]),
        }
    ),
    st.fixed_dictionaries(
        {"kind": st.just("digestive"), "bristolScale": st.integers(min_value=1, max_value=7), "bloodPresent": MAYBE}
    ),
    st.fixed_dictionaries({"kind": st.just("pain"), "painType": st.sampled_from([None, "aching", "burning", "sharp"])}),
)


@st.composite
def snapshots(draw: st.DrawFn) -> tuple[list[ObservationEntry], list[Measurement]]:
    """Mixed entries across every shipped condition plus blood-pressure readings."""
    entries = [
        ObservationEntry.model_validate(
            {
                "id": f"e{i:03d}",
                "timestamp": ANCHOR - timedelta(hours=draw(st.integers(min_value=0, max_value=24 * 200))),
                "symptomId": draw(st.sampled_from(ALL_TAGS)),
                "severity": draw(st.one_of(st.none(), st.integers(min_value=0, max_value=10))),
                "notes": draw(st.sampled_from(NOTES)),
                "payload": draw(payloads),
            }
        )
        for i in range(draw(st.integers(min_value=0, max_value=25)))
    ]
    readings = [
        Measurement.model_validate(
            {
                "id": f"bp{i:03d}",
                "timestamp": ANCHOR - timedelta(hours=draw(st.integers(min_value=0, max_value=24 * 60))),
                "type": "blood-pressure",
                "values": {
                    "systolic": draw(st.integers(min_value=100, max_value=220)),
                    "diastolic": draw(st.integers(min_value=60, max_value=140)),
                },
                "medicationTaken": draw(MAYBE),
            }
        )
        for i in range(draw(st.integers(min_value=0, max_value=8)))
    ]
    return entries, readings


@pytest.mark.parametrize("module", SHIPPED_MODULES, ids=lambda m: m.key)
@settings(max_examples=40, deadline=None)
@given(snapshot=snapshots(), seed=st.integers(min_value=0, max_value=1000))
def test_rating_properties_hold_for_every_condition(
    module: ConditionModule, snapshot: tuple[list[ObservationEntry], list[Measurement]], seed: int
) -> None:
    entries, readings = snapshot
    engine = RatingEngine(build_registry())

    result = engine.analyze(module.key, entries, readings)

    assert engine.analyze(module.key, entries, readings) == result

    rng = random.Random(seed)
    shuffled_entries, shuffled_readings = entries[:], readings[:]
    rng.shuffle(shuffled_entries)
    rng.shuffle(shuffled_readings)
    assert engine.analyze(module.key, shuffled_entries, shuffled_readings) == result

    if not result.has_data:
        assert result.supported_rating is None
        return
    assert result.supported_rating in module.criteria.percents
    assert (result.gaps == []) == (result.supported_rating == module.criteria.max_percent)
