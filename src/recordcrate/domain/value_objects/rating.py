"""Rating normalization between star ratings and the 0-100 percent score.

Hey future me - this is THE SINGLE SOURCE OF TRUTH for rating math!

Two conventions exist in stored data:
    legacy clients:  overallRating on a 0-5 scale (stars)
    current clients: overallRating on a 0-100 scale (percent)

Per-track ratings are ALWAYS 0-5 stars in half-star steps. The canonical
overall score is percent: round(mean(stars) * 20).

All rounding here is half-up (2.5 -> 3), never Python's banker's rounding,
so the numbers match what the web client computes.
"""

import math
from collections.abc import Iterable
from enum import Enum
from typing import Any

from recordcrate.domain.exceptions import InvalidRatingInput

MIN_STARS = 0.0
MAX_STARS = 5.0
MIN_PERCENT = 0
MAX_PERCENT = 100
PERCENT_PER_STAR = 20


class RatingScale(str, Enum):
    """How an overall rating value is expressed.

    Stored on every review row so the legacy conversion can only ever run
    on rows explicitly tagged FIVE_STAR.
    """

    PERCENT = "percent"
    FIVE_STAR = "five_star"

    @classmethod
    def from_string(cls, value: str | None) -> "RatingScale":
        """Parse a scale name, defaulting to PERCENT."""
        if not value:
            return cls.PERCENT
        try:
            return cls(value.strip().lower())
        except ValueError as e:
            raise InvalidRatingInput(
                f"Unknown rating scale: {value!r}", field="ratingScale"
            ) from e


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _require_finite(value: Any, field: str) -> float:
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise InvalidRatingInput(f"{field} must be a number", field=field)
    if not math.isfinite(value):
        raise InvalidRatingInput(f"{field} must be finite", field=field)
    return float(value)


def round_to_half_star(value: float) -> float:
    """Round a star rating to the nearest 0.5 and clamp it to [0, 5].

    7.3 -> 5.0, 3.74 -> 3.5, 3.75 -> 4.0, -1 -> 0.0
    """
    stars = _require_finite(value, "rating")
    rounded = math.floor(stars * 2 + 0.5) / 2
    return min(MAX_STARS, max(MIN_STARS, rounded))


def clamp_percent(value: float) -> int:
    """Round to the nearest integer and clamp to [0, 100].

    Idempotent: clamp_percent(clamp_percent(x)) == clamp_percent(x).
    """
    percent = _require_finite(value, "overallRating")
    return min(MAX_PERCENT, max(MIN_PERCENT, _round_half_up(percent)))


def _extract_rating(entry: Any) -> Any:
    if isinstance(entry, dict):
        return entry.get("rating")
    return getattr(entry, "rating", entry)


def stars_to_percent(song_ratings: Iterable[Any]) -> int:
    """Convert per-track star ratings to an overall percent.

    Accepts dicts ({"rating": 4.5}), objects with a ``rating`` attribute,
    or bare numbers. Each rating is rounded to a half star first, then the
    mean is scaled by 20.

    Raises:
        InvalidRatingInput: empty list or a non-numeric rating
    """
    stars = [round_to_half_star(_extract_rating(entry)) for entry in song_ratings]
    if not stars:
        raise InvalidRatingInput(
            "songRatings is empty; supply overallRating directly",
            field="songRatings",
        )
    mean = sum(stars) / len(stars)
    return clamp_percent(mean * PERCENT_PER_STAR)


def legacy_five_scale_to_percent(value: float) -> int:
    """Migrate a 0-5 overall rating to percent.

    Range guard: values above 5 are already percent and pass through
    clamp_percent unchanged, so running this twice is harmless.
    """
    rating = _require_finite(value, "overallRating")
    if rating <= MAX_STARS:
        return clamp_percent(rating * PERCENT_PER_STAR)
    return clamp_percent(rating)


def percent_to_stars(percent: float) -> float:
    """Display mapping: 0-100 percent -> 0-5 stars in half-star steps."""
    return round_to_half_star(clamp_percent(percent) / PERCENT_PER_STAR)
