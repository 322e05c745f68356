"""
Combined rating using the whole-person method (38 CFR 4.25).

Ratings are applied highest first, each one taking its percentage of the
efficiency left over by the previous ones. The resulting disability is
rounded to the nearest 10, halves rounding up.
"""

import math
from collections.abc import Iterable

from core.domain.models import CombinedRating, CombinedRatingStep


def _round_to_ten(disability: float) -> int:
    return int(math.floor(round(disability, 6) / 10 + 0.5)) * 10


def _round1(value: float) -> float:
    return math.floor(value * 10 + 0.5) / 10


def combine_ratings(ratings: Iterable[int]) -> int:
    """Combine individual percentages; zeros do not contribute."""
    efficiency = 100.0
    for rating in sorted((r for r in ratings if r > 0), reverse=True):
        efficiency -= efficiency * rating / 100
    return _round_to_ten(100.0 - efficiency)


def combine_ratings_detailed(conditions: Iterable[tuple[str, int]]) -> CombinedRating:
    """Combine ``(condition, rating)`` pairs and keep each step of the arithmetic."""
    ordered = sorted(((name, r) for name, r in conditions if r > 0), key=lambda c: -c[1])

    efficiency = 100.0
    steps: list[CombinedRatingStep] = []
    for index, (name, rating) in enumerate(ordered, start=1):
        disability = efficiency * rating / 100
        efficiency -= disability
        steps.append(
            CombinedRatingStep(
                step=index,
                condition=name,
                rating=rating,
                disability_added=_round1(disability),
                remaining_efficiency=_round1(efficiency),
            )
        )

    total = 100.0 - efficiency
    return CombinedRating(
        combined_rating=_round_to_ten(total),
        breakdown=steps,
        total_disability=_round1(total),
        remaining_efficiency=_round1(efficiency),
    )
