"""Per-frame pressure statistics.

All statistics come from a single pass over the flattened frame:
min/max, mean, population standard deviation (no Bessel correction),
contact area (pixels at/above the seating threshold) and coefficient of
variation.
"""

from __future__ import annotations

from math import sqrt

import numpy as np

from ..common.precision import round_percent
from ..contracts.records import FrameStats


def contact_area_pct(frame: np.ndarray, threshold_au: int) -> float:
    """Share of pixels with value >= ``threshold_au``, in percent (unrounded)."""
    samples = np.asarray(frame)
    if samples.size == 0:
        return 0.0
    count = int(np.count_nonzero(samples >= threshold_au))
    return count * 100.0 / samples.size


def coefficient_of_variation(mean: float, std: float) -> float:
    # Sin presión media no hay CoV definido: se reporta 0.
    if mean <= 0:
        return 0.0
    return std / mean * 100.0


def compute_frame_stats(frame: np.ndarray, contact_threshold_au: int) -> FrameStats:
    """Compute the statistics stored for one frame.

    The sum is accumulated in int64 and the sum of squares in float64 (exact
    for 16-bit sensor values); float cancellation in ``E[x^2] - E[x]^2`` is
    clamped to zero.
    """
    samples = np.asarray(frame, dtype=np.int64)
    n = samples.size
    if n == 0:
        raise ValueError("empty frame")

    total = int(samples.sum())
    as_float = samples.astype(np.float64)
    total_sq = float(np.dot(as_float, as_float))
    mean = total / n
    variance = total_sq / n - mean * mean
    if variance < 0:
        variance = 0.0
    std = sqrt(variance)

    contact_px = int(np.count_nonzero(samples >= contact_threshold_au))

    return FrameStats(
        min_au=int(samples.min()),
        max_au=int(samples.max()),
        mean_au=mean,
        std_au=std,
        contact_px=contact_px,
        contact_pct=round_percent(contact_px * 100.0 / n),
        cov_pct=round_percent(coefficient_of_variation(mean, std)),
    )
