"""
Frame History Module
====================

Fixed-capacity sliding window of per-frame shadow metrics.

Design:
- Preallocated numpy ring buffer, no per-frame reallocation
- Monotonic write cursor; slot = cursor % capacity
- FIFO: oldest observation overwritten once full
- Caller must serialize append() calls
"""

import numpy as np
from dataclasses import dataclass, astuple
from typing import Tuple

from umbra_shadow.segmentation.summary import ShadowSummary


METRIC_NAMES: Tuple[str, ...] = (
    "area",
    "width",
    "height",
    "centroid_x",
    "centroid_y",
    "intensity",
)


@dataclass(frozen=True)
class FrameMetrics:
    """
    Metrics derived from one ShadowSummary.

    width/height are max - min (not inclusive pixel spans), so a single
    pixel shadow has zero width.
    """

    area: float
    width: float
    height: float
    centroid_x: float
    centroid_y: float
    intensity: float

    @classmethod
    def from_summary(cls, summary: ShadowSummary) -> 'FrameMetrics':
        """Derive window metrics from a segmentation summary."""
        width = summary.max_x - summary.min_x
        height = summary.max_y - summary.min_y
        return cls(
            area=float(summary.pixel_count),
            width=float(width),
            height=float(height),
            centroid_x=summary.min_x + width / 2,
            centroid_y=summary.min_y + height / 2,
            intensity=float(summary.average_intensity),
        )

    def as_row(self) -> Tuple[float, ...]:
        """Values in METRIC_NAMES order."""
        return astuple(self)


class FrameHistory:
    """
    Ring buffer of FrameMetrics with a fixed capacity.

    State:
        _buffer: (capacity, len(METRIC_NAMES)) float64 array
        _cursor: total number of appends since last clear()

    Usage:
        history = FrameHistory(capacity=25)
        history.append(FrameMetrics.from_summary(summary))
        if history.is_full:
            areas = history.column("area")
    """

    def __init__(self, capacity: int = 25):
        """
        Initialize empty history.

        Args:
            capacity: Maximum number of observations kept
        """
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")

        self.capacity = capacity
        self._buffer = np.zeros((capacity, len(METRIC_NAMES)), dtype=np.float64)
        self._cursor = 0

    def append(self, metrics: FrameMetrics) -> None:
        """Store one observation, evicting the oldest when full."""
        self._buffer[self._cursor % self.capacity] = metrics.as_row()
        self._cursor += 1

    def ordered(self) -> np.ndarray:
        """
        Copy of stored rows, oldest first.

        Returns:
            (len(self), len(METRIC_NAMES)) float64 array
        """
        if self._cursor <= self.capacity:
            return self._buffer[:self._cursor].copy()

        start = self._cursor % self.capacity
        return np.concatenate((self._buffer[start:], self._buffer[:start]))

    def column(self, name: str) -> np.ndarray:
        """
        One metric across the window, oldest first.

        Raises:
            KeyError: If name is not one of METRIC_NAMES
        """
        if name not in METRIC_NAMES:
            raise KeyError(f"Unknown metric '{name}'. Available: {METRIC_NAMES}")
        return self.ordered()[:, METRIC_NAMES.index(name)]

    @property
    def is_full(self) -> bool:
        """True once capacity observations have been stored."""
        return self._cursor >= self.capacity

    @property
    def total_observed(self) -> int:
        """Observations appended since the last clear (including evicted)."""
        return self._cursor

    def clear(self) -> None:
        """Drop all observations."""
        self._buffer.fill(0.0)
        self._cursor = 0

    def __len__(self) -> int:
        """Number of observations currently in the window."""
        return min(self._cursor, self.capacity)

    def __repr__(self) -> str:
        """Human-readable representation."""
        return f"FrameHistory(size={len(self)}, capacity={self.capacity})"
