"""Canonical numeric precision for persisted pressure metrics.

Precision policy:
- Frame statistics (mean/std AU): 5 decimals, matches the DB column scale.
- Contact area % and coefficient of variation %: 2 decimals.
- Pressure performance index (PPI): 3 decimals.
- Internal calculations use float64; rounding happens only when a value is
  turned into a persisted record, never in intermediate steps.

Python ``round`` (half-to-even) is used everywhere so stored values can be
reproduced exactly from the raw samples.
"""

from __future__ import annotations

import math

STAT_PRECISION = 5
PERCENT_PRECISION = 2
PPI_PRECISION = 3


def _round(value: float, decimals: int) -> float:
    if not math.isfinite(value):
        return value
    factor = 10 ** decimals
    return round(value * factor) / factor


def round_stat(value: float) -> float:
    return _round(value, STAT_PRECISION)


def round_percent(value: float) -> float:
    return _round(value, PERCENT_PRECISION)


def round_ppi(value: float) -> float:
    return _round(value, PPI_PRECISION)
