"""
Statistics helpers for simulation output.

Percentiles use linear interpolation between order statistics (numpy's
default method), never nearest-rank.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Sequence

import numpy as np

DEFAULT_HISTOGRAM_BINS = 25


@dataclass
class HistogramBin:
    min: float
    max: float
    count: int
    percentage: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "min": round(self.min, 2),
            "max": round(self.max, 2),
            "count": self.count,
            "percentage": round(self.percentage, 2),
        }


def percentile(values: Sequence[float], p: float) -> float:
    """p-th percentile (0-100) of ``values``; 0.0 for an empty sequence."""
    if len(values) == 0:
        return 0.0
    return float(np.percentile(np.asarray(values, dtype=float), p))


def build_histogram(values: Sequence[float], bin_count: int = DEFAULT_HISTOGRAM_BINS) -> List[HistogramBin]:
    """
    Equal-width histogram for display.

    Values outside [0.5 x p5, 1.5 x p95] are dropped first so a few extreme
    paths do not flatten the chart. Only the histogram sees this trimming.
    Returns an empty list when nothing is left or all values are equal.
    """
    data = np.asarray(values, dtype=float)
    if data.size == 0:
        return []

    p5, p95 = np.percentile(data, [5, 95])
    trimmed = data[(data >= p5 * 0.5) & (data <= p95 * 1.5)]
    if trimmed.size == 0:
        return []

    low, high = float(trimmed.min()), float(trimmed.max())
    if high - low == 0:
        return []

    counts, edges = np.histogram(trimmed, bins=bin_count, range=(low, high))
    total = trimmed.size
    return [
        HistogramBin(
            min=float(edges[i]),
            max=float(edges[i + 1]),
            count=int(count),
            percentage=count / total * 100,
        )
        for i, count in enumerate(counts)
    ]
