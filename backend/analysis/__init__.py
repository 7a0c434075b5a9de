"""Analysis utilities - pure functions over simulated time series."""

from analysis.signals import (
    band_exits,
    excursion_count,
    is_growing,
    mean,
    population_variance,
    round_half_up,
    sign_flips,
    value_range,
)

__all__ = [
    "band_exits",
    "excursion_count",
    "is_growing",
    "mean",
    "population_variance",
    "round_half_up",
    "sign_flips",
    "value_range",
]
