"""
Window Statistics
=================

Mean / population standard deviation and frame-to-frame jitter over a
window of observations.
"""

import numpy as np
from dataclasses import dataclass, asdict
from typing import Dict, Sequence, Union


Values = Union[Sequence[float], np.ndarray]


@dataclass(frozen=True)
class MetricStats:
    """(mean, std) pair for one metric over the window."""

    mean: float = 0.0
    std: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        """Serialize to JSON-compatible dict."""
        return asdict(self)


def mean_std(values: Values) -> MetricStats:
    """
    Mean and population standard deviation (divides by N).

    Returns MetricStats(0, 0) for an empty input.
    """
    data = np.asarray(values, dtype=np.float64)
    if data.size == 0:
        return MetricStats()

    mean = float(data.mean())
    std = float(np.sqrt(np.mean((data - mean) ** 2)))
    return MetricStats(mean=mean, std=std)


def mean_abs_delta(values: Values) -> float:
    """
    Mean absolute difference between consecutive values.

    Catches oscillation around a stable mean that a windowed std can hide.
    Returns 0.0 for fewer than two values.
    """
    data = np.asarray(values, dtype=np.float64)
    if data.size < 2:
        return 0.0
    return float(np.abs(np.diff(data)).mean())
