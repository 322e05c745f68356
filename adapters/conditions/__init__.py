"""
Shipped condition modules and the default engine built from them.

Adding a condition means writing one module (metadata, aggregation and a
criteria table) and listing it in ``SHIPPED_MODULES``; the engine itself
does not change.
"""

from collections.abc import Iterable
from datetime import datetime
from functools import lru_cache

from core.config import get_config
from core.domain.models import (
    AnalysisResult,
    ConditionKey,
    EvidenceSummary,
    Measurement,
    ObservationEntry,
)
from core.services.rating_engine import RatingEngine
from core.services.registry import ConditionModule, ConditionRegistry

from .digestive import GERD, IBS
from .ear import MENIERES, TINNITUS
from .fibromyalgia import FIBROMYALGIA
from .hypertension import HYPERTENSION
from .insomnia import INSOMNIA
from .mental_health import BIPOLAR, GENERALIZED_ANXIETY, MAJOR_DEPRESSION, PANIC_DISORDER, PTSD
from .migraine import MIGRAINE
from .sinusitis import SINUSITIS
from .sleep_apnea import SLEEP_APNEA

SHIPPED_MODULES: tuple[ConditionModule, ...] = (
    MIGRAINE,
    SLEEP_APNEA,
    PTSD,
    MAJOR_DEPRESSION,
    GENERALIZED_ANXIETY,
    PANIC_DISORDER,
    BIPOLAR,
    IBS,
    GERD,
    TINNITUS,
    MENIERES,
    FIBROMYALGIA,
    HYPERTENSION,
    SINUSITIS,
    INSOMNIA,
)


def build_registry(modules: Iterable[ConditionModule] = SHIPPED_MODULES) -> ConditionRegistry:
    registry = ConditionRegistry()
    for module in modules:
        registry.register(module)
    return registry


@lru_cache
def get_default_engine() -> RatingEngine:
    """Get cached engine over every shipped condition."""
    return RatingEngine(build_registry(), get_config().analysis)


def analyze(
    condition: str | ConditionKey,
    entries: Iterable[ObservationEntry],
    measurements: Iterable[Measurement] = (),
    as_of: datetime | None = None,
) -> AnalysisResult:
    return get_default_engine().analyze(condition, entries, measurements, as_of)


def analyze_all(
    entries: Iterable[ObservationEntry],
    measurements: Iterable[Measurement] = (),
    as_of: datetime | None = None,
) -> EvidenceSummary:
    return get_default_engine().analyze_all(entries, measurements, as_of)


__all__ = [
    "SHIPPED_MODULES",
    "analyze",
    "analyze_all",
    "build_registry",
    "get_default_engine",
]
