"""
Domain models for health evidence analysis.

These models represent the core business concepts and are framework-agnostic.
They use Pydantic for validation; parsing is tolerant so that one malformed
observation can be represented (and later excluded) without failing a batch.
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Annotated, Any, Literal, TypeVar

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    ValidatorFunctionWrapHandler,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

MetricValue = int | float | bool | str | None
MetricsBag = dict[str, MetricValue]


class ConditionKey(str, Enum):
    """Conditions with a registered rule set."""

    MIGRAINE = "migraine"
    SLEEP_APNEA = "sleep-apnea"
    PTSD = "ptsd"
    MAJOR_DEPRESSION = "major-depression"
    GENERALIZED_ANXIETY = "generalized-anxiety"
    PANIC_DISORDER = "panic-disorder"
    BIPOLAR = "bipolar"
    IBS = "ibs"
    GERD = "gerd"
    TINNITUS = "tinnitus"
    MENIERES = "menieres"
    FIBROMYALGIA = "fibromyalgia"
    HYPERTENSION = "hypertension"
    SINUSITIS = "sinusitis"
    INSOMNIA = "insomnia"


class DurationBucket(str, Enum):
    """Universal episode duration buckets."""

    MINUTES = "minutes"
    HOURS = "hours"
    DAY = "day"
    DAYS = "days"
    ONGOING = "ongoing"


class TimeOfDay(str, Enum):
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    NIGHT = "night"


class MigraineDuration(str, Enum):
    LESS_THAN_1H = "less-than-1h"
    ONE_TO_4H = "1-4h"
    FOUR_TO_24H = "4-24h"
    ONE_TO_2D = "1-2d"
    MORE_THAN_2D = "more-than-2d"
    ONGOING = "ongoing"


# Attacks lasting 4 hours or more count as prolonged
PROLONGED_MIGRAINE_DURATIONS = frozenset(
    {
        MigraineDuration.FOUR_TO_24H,
        MigraineDuration.ONE_TO_2D,
        MigraineDuration.MORE_THAN_2D,
        MigraineDuration.ONGOING,
    }
)


class _Payload(BaseModel):
    """Base for condition-specific payload variants.

    Optional booleans are tri-state: True, False, or None when the question
    was left unanswered.
    """

    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )

    @model_validator(mode="before")
    @classmethod
    def blank_means_unreported(cls, data: Any) -> Any:
        # Data-entry forms send "" for untouched selects
        if isinstance(data, dict):
            return {k: (None if v == "" else v) for k, v in data.items()}
        return data

    # Every variant field except the `kind` discriminator: pydantic forbids
    # wrap validators on a discriminator field
    @field_validator(
        "duration",
        "prostrating",
        "aura",
        "nausea",
        "light_sensitivity",
        "sound_sensitivity",
        "triggers",
        "hours_slept",
        "quality",
        "wake_ups",
        "feel_rested",
        "nightmares",
        "breathing_device_used",
        "device_type",
        "bristol_scale",
        "episodes_per_day",
        "urgency",
        "blood_present",
        "meal_related",
        "nighttime_symptoms",
        "pain_type",
        "radiating",
        "limited_range_of_motion",
        "widespread",
        mode="wrap",
        check_fields=False,
    )
    @classmethod
    def invalid_means_unreported(
        cls, v: Any, handler: ValidatorFunctionWrapHandler, info: ValidationInfo
    ) -> Any:
        # An out-of-range or unknown answer does not sink the whole entry
        try:
            return handler(v)
        except ValidationError:
            if info.field_name == "kind":
                raise
            return None


class MigrainePayload(_Payload):
    kind: Literal["migraine"] = "migraine"
    duration: MigraineDuration | None = None
    prostrating: bool | None = None
    aura: bool | None = None
    nausea: bool | None = None
    light_sensitivity: bool | None = None
    sound_sensitivity: bool | None = None
    triggers: str | None = None

    @property
    def is_prolonged(self) -> bool | None:
        if self.duration is None:
            return None
        return self.duration in PROLONGED_MIGRAINE_DURATIONS


class SleepPayload(_Payload):
    kind: Literal["sleep"] = "sleep"
    hours_slept: float | None = Field(None, ge=0.0, le=24.0)
    quality: int | None = Field(None, ge=0, le=10, description="Self-rated sleep quality")
    wake_ups: int | None = Field(None, ge=0)
    feel_rested: bool | None = None
    nightmares: bool | None = None
    breathing_device_used: bool | None = None
    device_type: str | None = Field(None, description="cpap, bipap, apap, inspire, other")


class DigestivePayload(_Payload):
    kind: Literal["digestive"] = "digestive"
    bristol_scale: int | None = Field(None, ge=1, le=7)
    episodes_per_day: int | None = Field(None, ge=0)
    urgency: str | None = None
    blood_present: bool | None = None
    meal_related: bool | None = None
    nighttime_symptoms: bool | None = None


class PainPayload(_Payload):
    kind: Literal["pain"] = "pain"
    pain_type: str | None = Field(None, description="sharp, dull, burning, throbbing, ...")
    radiating: bool | None = None
    limited_range_of_motion: bool | None = None
    widespread: bool | None = None


P = TypeVar("P", bound=_Payload)

Payload = Annotated[
    MigrainePayload | SleepPayload | DigestivePayload | PainPayload,
    Field(discriminator="kind"),
]

# Store field name for each payload variant, in the order kept when a
# record carries more than one and its tag names none of them
_PAYLOAD_FIELDS = {
    "migraineData": "migraine",
    "sleepData": "sleep",
    "giData": "digestive",
    "painData": "pain",
}

# Symptom tag prefixes that name the variant a record is about
_TAG_PAYLOAD_HINTS = (
    ("migraine", "migraineData"),
    ("sleep", "sleepData"),
    ("nightmare", "sleepData"),
    ("ibs-", "giData"),
    ("gerd-", "giData"),
    ("fibro-", "painData"),
)


def _pick_payload_field(tag: Any, present: list[str]) -> str:
    if isinstance(tag, str):
        for prefix, field in _TAG_PAYLOAD_HINTS:
            if tag.startswith(prefix) and field in present:
                return field
    return present[0]


def _coerce_timestamp(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


class ObservationEntry(BaseModel):
    """One logged health observation.

    Immutable. Records that lack a usable timestamp or severity are still
    accepted here; the log selector excludes them from analysis.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str
    timestamp: datetime | None = None
    condition_tag: str = Field(alias="symptomId", description="Symptom / category tag")
    severity: int | None = Field(None, description="Ordinal 0-10, None when missing or invalid")
    notes: str = ""
    payload: Payload | None = None

    # Universal tags
    flare_up: bool | None = Field(None, alias="flareUp")
    duration_bucket: DurationBucket | None = Field(None, alias="durationBucket")
    time_of_day: TimeOfDay | None = Field(None, alias="timeOfDay")

    @model_validator(mode="before")
    @classmethod
    def lift_store_payload(cls, data: Any) -> Any:
        """Map the store's ``<variant>Data`` sub-objects onto the tagged payload.

        Data-entry forms attach several variants to some symptoms (pain
        details on an ``ibs-pain`` entry, say). One variant is kept: the one
        the symptom tag points at, else the first in ``_PAYLOAD_FIELDS``
        order. The others are dropped.
        """
        if not isinstance(data, dict) or data.get("payload") is not None:
            return data
        present = [name for name in _PAYLOAD_FIELDS if isinstance(data.get(name), dict) and data[name]]
        lifted = {k: v for k, v in data.items() if k not in _PAYLOAD_FIELDS}
        if not present:
            return lifted
        chosen = _pick_payload_field(data.get("symptomId", data.get("condition_tag")), present)
        lifted["payload"] = {**data[chosen], "kind": _PAYLOAD_FIELDS[chosen]}
        return lifted

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v

    @field_validator("timestamp", mode="before")
    @classmethod
    def tolerant_timestamp(cls, v: Any) -> datetime | None:
        return _coerce_timestamp(v)

    @field_validator("severity", mode="before")
    @classmethod
    def tolerant_severity(cls, v: Any) -> int | None:
        if v is None or isinstance(v, bool):
            return None
        try:
            value = float(v)
        except (TypeError, ValueError):
            return None
        if value != value or not 0 <= value <= 10:  # NaN or out of range
            return None
        return int(round(value))

    @field_validator("notes", mode="before")
    @classmethod
    def notes_default(cls, v: Any) -> Any:
        return "" if v is None else v

    @property
    def is_well_formed(self) -> bool:
        return self.timestamp is not None and self.severity is not None

    @property
    def payload_kind(self) -> str | None:
        return self.payload.kind if self.payload is not None else None

    def payload_as(self, payload_type: type[P]) -> P | None:
        """Return the payload only when it is the requested variant."""
        if isinstance(self.payload, payload_type):
            return self.payload
        return None


class Measurement(BaseModel):
    """Auxiliary structured measurement (e.g. a blood pressure reading)."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str
    timestamp: datetime | None = None
    measurement_type: str = Field(alias="type")
    values: dict[str, float] = Field(default_factory=dict)
    medication_taken: bool | None = Field(None, alias="medicationTaken")

    @model_validator(mode="before")
    @classmethod
    def lift_metadata(cls, data: Any) -> Any:
        if isinstance(data, dict) and isinstance(data.get("metadata"), dict):
            lifted = dict(data)
            metadata = lifted.pop("metadata")
            lifted.setdefault("medicationTaken", metadata.get("medicationTaken"))
            return lifted
        return data

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v

    @field_validator("timestamp", mode="before")
    @classmethod
    def tolerant_timestamp(cls, v: Any) -> datetime | None:
        return _coerce_timestamp(v)


class AnalysisStatus(str, Enum):
    ANALYZED = "analyzed"
    NO_DATA = "no_data"
    UNSUPPORTED = "unsupported"
    ERROR = "error"


class AnalysisResult(BaseModel):
    """Outcome of analyzing one condition against an observation snapshot."""

    model_config = ConfigDict(frozen=True)

    condition: str
    status: AnalysisStatus
    has_data: bool
    supported_rating: int | None = None
    rating_rationale: list[str] = Field(default_factory=list)
    gaps: list[str] = Field(default_factory=list)
    metrics: MetricsBag = Field(default_factory=dict)

    # Display metadata
    condition_name: str | None = None
    diagnostic_code: str | None = None
    matched_entries: int = Field(default=0, ge=0)
    window_start: datetime | None = None
    window_end: datetime | None = None

    @model_validator(mode="after")
    def rating_tracks_data(self) -> "AnalysisResult":
        if self.has_data != (self.supported_rating is not None):
            raise ValueError("supported_rating must be set exactly when has_data is true")
        if self.status in {AnalysisStatus.UNSUPPORTED, AnalysisStatus.ERROR} and self.has_data:
            raise ValueError(f"{self.status.value} results cannot carry data")
        return self

    @property
    def is_supported(self) -> bool:
        return self.status != AnalysisStatus.UNSUPPORTED


class CombinedRatingStep(BaseModel):
    model_config = ConfigDict(frozen=True)

    step: int = Field(ge=1)
    condition: str
    rating: int = Field(ge=0, le=100)
    disability_added: float
    remaining_efficiency: float


class CombinedRating(BaseModel):
    """Whole-person combination of individual ratings."""

    model_config = ConfigDict(frozen=True)

    combined_rating: int = Field(ge=0, le=100)
    breakdown: list[CombinedRatingStep] = Field(default_factory=list)
    total_disability: float = Field(ge=0.0, le=100.0)
    remaining_efficiency: float = Field(ge=0.0, le=100.0)


class EvidenceSummary(BaseModel):
    """Full evidence summary across every registered condition."""

    model_config = ConfigDict(frozen=True)

    results: dict[str, AnalysisResult]
    combined_rating: int = Field(default=0, ge=0, le=100)
    combined_breakdown: list[CombinedRatingStep] = Field(default_factory=list)

    @classmethod
    def from_results(
        cls, results: dict[str, AnalysisResult], combined: CombinedRating
    ) -> "EvidenceSummary":
        return cls(
            results=results,
            combined_rating=combined.combined_rating,
            combined_breakdown=combined.breakdown,
        )

    @property
    def rated(self) -> dict[str, AnalysisResult]:
        return {k: r for k, r in self.results.items() if r.supported_rating is not None}
