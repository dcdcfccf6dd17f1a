"""
Shared statistics for the metric calculators

All helpers take any sequence and work on a private copy, so several
scopes can share the same input without one reordering it under another.
"""

import math
from typing import List, Optional, Sequence

import numpy as np


def distance(x1: float, y1: float, x2: float, y2: float) -> float:
    """Euclidean distance between two points"""
    return math.hypot(x2 - x1, y2 - y1)


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean; 0.0 for an empty sequence"""
    if len(values) == 0:
        return 0.0
    return float(np.mean(np.asarray(values, dtype=float)))


def coefficient_of_variation(values: Sequence[float], ddof: int = 0) -> Optional[float]:
    """
    Standard deviation divided by the mean.

    Args:
        values: Samples
        ddof: 0 for population variance, 1 for Bessel-corrected sample variance

    Returns:
        The CV, or None when it is undefined (too few samples or zero mean)
    """
    if len(values) <= ddof or len(values) == 0:
        return None
    data = np.asarray(values, dtype=float)
    avg = float(np.mean(data))
    if avg == 0:
        return None
    return float(np.std(data, ddof=ddof)) / avg


def rank_value(sorted_values: Sequence[float], fraction: float) -> float:
    """
    Order statistic at floor(n * fraction), clamped to the last element.

    Nearest-rank without interpolation, so thresholds move only when a
    sample actually crosses them.
    """
    index = min(int(len(sorted_values) * fraction), len(sorted_values) - 1)
    return sorted_values[index]


def percentile_cutoff_filter(
    values: Sequence[float],
    percentile: float = 0.95,
    multiplier: float = 1.5
) -> List[float]:
    """
    Drop values above percentile(values) * multiplier.

    Returns:
        Kept values in their original order
    """
    if len(values) == 0:
        return []
    cutoff = rank_value(sorted(values), percentile) * multiplier
    return [v for v in values if v <= cutoff]


def iqr_filter(values: Sequence[float], multiplier: float = 1.5) -> List[float]:
    """
    Drop values outside [Q1 - k*IQR, Q3 + k*IQR].

    Q1 and Q3 are the order statistics at n//4 and 3n//4.

    Returns:
        Kept values in ascending order
    """
    if len(values) == 0:
        return []
    ordered = sorted(values)
    q1 = ordered[len(ordered) // 4]
    q3 = ordered[(len(ordered) * 3) // 4]
    iqr = q3 - q1
    low = q1 - multiplier * iqr
    high = q3 + multiplier * iqr
    return [v for v in ordered if low <= v <= high]
