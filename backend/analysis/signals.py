"""Time-series statistics for simulated climate curves and control loops.

Pure functions over plain float sequences. Deviation series are expressed
in tolerance units: a value <= 1.0 means the loop is inside its band.
"""

import math
from collections.abc import Sequence

import numpy as np
from scipy.signal import find_peaks  # pyright: ignore[reportUnknownVariableType]


def population_variance(values: Sequence[float]) -> float:
    """Population variance (ddof=0). Empty input -> 0."""
    if not values:
        return 0.0
    return float(np.var(np.asarray(values, dtype=np.float64)))


def mean(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    return float(np.mean(np.asarray(values, dtype=np.float64)))


def value_range(values: Sequence[float]) -> float:
    """max - min, or 0 for an empty series."""
    if not values:
        return 0.0
    arr = np.asarray(values, dtype=np.float64)
    return float(arr.max() - arr.min())


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (67.5 -> 68)."""
    return math.floor(value + 0.5)


def band_exits(deviation: Sequence[float], limit: float = 1.0) -> int:
    """Number of transitions from inside the band to outside it."""
    exits = 0
    for prev, cur in zip(deviation, deviation[1:], strict=False):
        if prev <= limit < cur:
            exits += 1
    return exits


def excursion_count(deviation: Sequence[float], limit: float = 1.0) -> int:
    """Number of distinct excursions above ``limit``.

    Interior excursions are found as peaks above the limit; an excursion
    still open at either edge of the series has no peak and is picked up
    from the band crossings instead.
    """
    if len(deviation) < 3:
        return band_exits(deviation, limit)
    peaks, _ = find_peaks(np.asarray(deviation, dtype=np.float64), height=limit)
    return max(len(peaks), band_exits(deviation, limit))


def sign_flips(values: Sequence[float]) -> int:
    """Count sign changes, ignoring exact zeros."""
    flips = 0
    last_sign = 0
    for v in values:
        sign = (v > 0) - (v < 0)
        if sign == 0:
            continue
        if last_sign and sign != last_sign:
            flips += 1
        last_sign = sign
    return flips


def is_growing(deviation: Sequence[float]) -> bool:
    """True when the least-squares trend of the series is increasing."""
    if len(deviation) < 2:
        return False
    x = np.arange(len(deviation), dtype=np.float64)
    slope = np.polyfit(x, np.asarray(deviation, dtype=np.float64), 1)[0]
    return bool(slope > 1e-9)
