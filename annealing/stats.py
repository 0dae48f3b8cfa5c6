"""Robust statistics on sorted samples.

All helpers expect an ascending sequence and never re-sort their input, so the
caller sorts once and reuses the result for every statistic.
"""

from __future__ import annotations

import math
from typing import List, Optional, Sequence

from .errors import InvalidParameter


# Factors that turn MAD and IQR into estimates of a normal standard deviation.
MAD_NORMAL_CONSISTENCY = 1.4826
IQR_NORMAL_CONSISTENCY = 0.7413


def _require_values(values: Sequence[float]) -> None:
    if len(values) == 0:
        raise InvalidParameter("statistics need at least one value")


def median_sorted(values: Sequence[float]) -> float:
    """Median of an ascending sequence (mean of the two middle values if even)."""

    _require_values(values)
    n = len(values)
    mid = n // 2
    if n % 2 == 1:
        return float(values[mid])
    return 0.5 * (values[mid - 1] + values[mid])


def median_absolute_deviation(values: Sequence[float], median: Optional[float] = None) -> float:
    """Median of ``|x - median|`` over an ascending sequence.

    Args:
        values: ascending sample.
        median: precomputed median of `values`; computed when omitted.
    """

    _require_values(values)
    center = median_sorted(values) if median is None else median
    deviations: List[float] = sorted(abs(v - center) for v in values)
    return median_sorted(deviations)


def quantile_sorted(values: Sequence[float], q: float) -> float:
    """Linear-interpolation quantile at position ``q * (n - 1)``."""

    _require_values(values)
    if not 0.0 <= q <= 1.0:
        raise InvalidParameter(f"quantile must lie in [0, 1], got {q!r}")

    pos = q * (len(values) - 1)
    i = int(math.floor(pos))
    j = min(i + 1, len(values) - 1)
    frac = pos - i
    return (1.0 - frac) * values[i] + frac * values[j]


def iqr_sorted(values: Sequence[float]) -> float:
    """Interquartile range ``Q3 - Q1``."""

    return quantile_sorted(values, 0.75) - quantile_sorted(values, 0.25)


__all__ = [
    "IQR_NORMAL_CONSISTENCY",
    "MAD_NORMAL_CONSISTENCY",
    "iqr_sorted",
    "median_absolute_deviation",
    "median_sorted",
    "quantile_sorted",
]
