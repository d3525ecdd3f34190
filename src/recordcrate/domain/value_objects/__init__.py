"""Domain value objects."""

from recordcrate.domain.value_objects.rating import (
    RatingScale,
    clamp_percent,
    legacy_five_scale_to_percent,
    percent_to_stars,
    round_to_half_star,
    stars_to_percent,
)

__all__ = [
    "RatingScale",
    "clamp_percent",
    "legacy_five_scale_to_percent",
    "percent_to_stars",
    "round_to_half_star",
    "stars_to_percent",
]
