"""
Core services for the application.

This package contains the generic analysis pipeline: log selection,
metric aggregation helpers, tier evaluation, rationale rendering, the
condition registry and the rating engine that ties them together.
"""

from .combined_rating import combine_ratings, combine_ratings_detailed
from .log_selector import Selection, select_entries
from .observation_store import (
    InMemoryObservationStore,
    ObservationStore,
    Result,
    load_entries,
    load_measurements,
    parse_entry,
)
from .rating_engine import RatingEngine
from .rating_evaluator import TierDecision, evaluate
from .rationale import build_gaps, build_rationale, format_rating
from .registry import ConditionModule, ConditionRegistry, RegistryError

__all__ = [
    "ConditionModule",
    "ConditionRegistry",
    "InMemoryObservationStore",
    "ObservationStore",
    "RatingEngine",
    "RegistryError",
    "Result",
    "Selection",
    "TierDecision",
    "build_gaps",
    "build_rationale",
    "combine_ratings",
    "combine_ratings_detailed",
    "evaluate",
    "format_rating",
    "load_entries",
    "load_measurements",
    "parse_entry",
    "select_entries",
]
