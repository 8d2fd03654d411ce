"""
Stability Tracker Module
========================

Stateful sliding-window test deciding when the live shadow signal is
trustworthy enough to commit as a calibration or measurement sample.

Design:
- Encapsulates a FrameHistory (one tracker per sampling session)
- observe() appends; verdict recomputed only once the window is full
- Immutable StabilityVerdict snapshots
- Caller must serialize observe() calls
"""

from dataclasses import dataclass, field
from typing import Dict, Any, Optional, Tuple

from umbra_shadow.segmentation.summary import ShadowSummary
from umbra_shadow.analytics.history import FrameHistory, FrameMetrics
from umbra_shadow.analytics.stats import MetricStats, mean_std, mean_abs_delta
from umbra_shadow.logging import StructuredLogger, LogEvent


@dataclass(frozen=True)
class StabilityThresholds:
    """
    Tuned limits of the multi-factor stability test.

    Attributes:
        window_size: Observations required before any verdict
        min_mean_area: Mean area must exceed this (px)
        max_area_cv: Area std must stay below this fraction of the mean
        max_dimension_std: Width and height std limit (px)
        max_centroid_std: Centroid x and y std limit (px)
        max_dimension_jitter: Mean |frame-to-frame delta| of width/height (px)
        max_mean_intensity: Mean shadow gray level must stay below this
    """

    window_size: int = 25
    min_mean_area: float = 150.0
    max_area_cv: float = 0.05
    max_dimension_std: float = 3.0
    max_centroid_std: float = 2.0
    max_dimension_jitter: float = 1.5
    max_mean_intensity: float = 65.0

    def __post_init__(self):
        """Validate thresholds."""
        if self.window_size < 2:
            raise ValueError(f"window_size must be >= 2, got {self.window_size}")
        if self.min_mean_area < 0:
            raise ValueError(f"min_mean_area must be >= 0, got {self.min_mean_area}")
        for name in (
            "max_area_cv",
            "max_dimension_std",
            "max_centroid_std",
            "max_dimension_jitter",
            "max_mean_intensity",
        ):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be > 0, got {getattr(self, name)}")


CHECK_NAMES: Tuple[str, ...] = (
    "area_present",
    "area_stable",
    "dimensions_stable",
    "position_stable",
    "jitter_low",
    "shadow_quality",
)


@dataclass(frozen=True)
class StabilityVerdict:
    """
    Immutable result of the stability test.

    Attributes:
        stable: True only when every check passed on a full window
        evaluated: False while the window is still filling
        observations: Observations in the window when computed
        area, width, height, centroid_x, centroid_y, intensity: (mean, std)
        width_jitter, height_jitter: Mean |delta| between consecutive frames
        failed_checks: Names of the checks that did not pass
    """

    stable: bool = False
    evaluated: bool = False
    observations: int = 0
    area: MetricStats = field(default_factory=MetricStats)
    width: MetricStats = field(default_factory=MetricStats)
    height: MetricStats = field(default_factory=MetricStats)
    centroid_x: MetricStats = field(default_factory=MetricStats)
    centroid_y: MetricStats = field(default_factory=MetricStats)
    intensity: MetricStats = field(default_factory=MetricStats)
    width_jitter: float = 0.0
    height_jitter: float = 0.0
    failed_checks: Tuple[str, ...] = ()

    @classmethod
    def not_ready(cls, observations: int = 0) -> 'StabilityVerdict':
        """Verdict for a window that has not filled yet."""
        return cls(observations=observations)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return {
            'stable': self.stable,
            'evaluated': self.evaluated,
            'observations': self.observations,
            'area': self.area.to_dict(),
            'width': self.width.to_dict(),
            'height': self.height.to_dict(),
            'centroid_x': self.centroid_x.to_dict(),
            'centroid_y': self.centroid_y.to_dict(),
            'intensity': self.intensity.to_dict(),
            'width_jitter': self.width_jitter,
            'height_jitter': self.height_jitter,
            'failed_checks': list(self.failed_checks),
        }

    def __str__(self) -> str:
        """Human-readable representation."""
        if not self.evaluated:
            return f"ACQUIRING ({self.observations} frames)"
        if self.stable:
            return f"LOCKED area={self.area.mean:.0f}±{self.area.std:.1f}"
        return f"ACQUIRING failed={','.join(self.failed_checks)}"


def evaluate_window(history: FrameHistory, thresholds: StabilityThresholds) -> StabilityVerdict:
    """
    Run the multi-factor test over a history window.

    Pure function of the window contents: any single statistic can look
    stable while the shape drifts, so all checks must agree.

    Args:
        history: Window of observations (evaluated regardless of fill level)
        thresholds: Test limits

    Returns:
        Evaluated StabilityVerdict
    """
    area = mean_std(history.column("area"))
    widths = history.column("width")
    heights = history.column("height")
    width = mean_std(widths)
    height = mean_std(heights)
    centroid_x = mean_std(history.column("centroid_x"))
    centroid_y = mean_std(history.column("centroid_y"))
    intensity = mean_std(history.column("intensity"))
    width_jitter = mean_abs_delta(widths)
    height_jitter = mean_abs_delta(heights)

    checks = {
        "area_present": area.mean > thresholds.min_mean_area,
        "area_stable": area.std < area.mean * thresholds.max_area_cv,
        "dimensions_stable": (
            width.std < thresholds.max_dimension_std
            and height.std < thresholds.max_dimension_std
        ),
        "position_stable": (
            centroid_x.std < thresholds.max_centroid_std
            and centroid_y.std < thresholds.max_centroid_std
        ),
        "jitter_low": (
            width_jitter < thresholds.max_dimension_jitter
            and height_jitter < thresholds.max_dimension_jitter
        ),
        "shadow_quality": intensity.mean < thresholds.max_mean_intensity,
    }
    failed = tuple(name for name in CHECK_NAMES if not checks[name])

    return StabilityVerdict(
        stable=not failed,
        evaluated=True,
        observations=len(history),
        area=area,
        width=width,
        height=height,
        centroid_x=centroid_x,
        centroid_y=centroid_y,
        intensity=intensity,
        width_jitter=width_jitter,
        height_jitter=height_jitter,
        failed_checks=failed,
    )


class StabilityTracker:
    """
    Sliding-window stability tracker for shadow summaries.

    Design Philosophy:
    - Single Responsibility: history + verdict only
    - Stateful but encapsulated (no module-level caches)
    - One instance per sampling session, reset() on pause/restart

    Usage:
        tracker = StabilityTracker()

        # Each frame
        tracker.observe(result.summary)
        if tracker.current_verdict().stable:
            commit(result.summary.pixel_count)
    """

    def __init__(
        self,
        thresholds: Optional[StabilityThresholds] = None,
        logger: Optional[StructuredLogger] = None,
    ):
        """
        Initialize tracker with an empty window.

        Args:
            thresholds: Test limits (defaults if None)
            logger: Optional structured logger for lock/loss transitions
        """
        self.thresholds = thresholds or StabilityThresholds()
        self.logger = logger
        self._history = FrameHistory(capacity=self.thresholds.window_size)
        self._verdict = StabilityVerdict.not_ready()

    @property
    def history(self) -> FrameHistory:
        """Underlying observation window (read it, don't append to it)."""
        return self._history

    def observe(self, summary: ShadowSummary) -> StabilityVerdict:
        """
        Add one frame's summary to the window.

        Args:
            summary: Segmentation summary for the newest frame

        Returns:
            The verdict after this observation
        """
        self._history.append(FrameMetrics.from_summary(summary))

        if not self._history.is_full:
            self._verdict = StabilityVerdict.not_ready(len(self._history))
            return self._verdict

        previous = self._verdict
        self._verdict = evaluate_window(self._history, self.thresholds)

        if self.logger is not None and previous.stable != self._verdict.stable:
            self._log_transition(summary)

        return self._verdict

    def current_verdict(self) -> StabilityVerdict:
        """Most recent verdict (not evaluated until the window fills)."""
        return self._verdict

    @property
    def is_stable(self) -> bool:
        """Shortcut for current_verdict().stable."""
        return self._verdict.stable

    def reset(self) -> None:
        """Clear history and verdict."""
        self._history.clear()
        self._verdict = StabilityVerdict.not_ready()

    def _log_transition(self, summary: ShadowSummary) -> None:
        """Emit stability.locked / stability.lost."""
        metadata = {
            'pixel_count': summary.pixel_count,
            'area_mean': round(self._verdict.area.mean, 2),
            'area_std': round(self._verdict.area.std, 2),
            'observed': self._history.total_observed,
        }
        if self._verdict.stable:
            self.logger.info(
                event=LogEvent.STABILITY_LOCKED,
                message="Shadow signal locked",
                metadata=metadata,
            )
        else:
            metadata['failed_checks'] = list(self._verdict.failed_checks)
            self.logger.info(
                event=LogEvent.STABILITY_LOST,
                message="Shadow signal lost lock",
                metadata=metadata,
            )

    def __len__(self) -> int:
        """Number of observations in the window."""
        return len(self._history)

    def __repr__(self) -> str:
        """Human-readable representation."""
        return (
            f"StabilityTracker(observed={len(self._history)}/"
            f"{self._history.capacity}, stable={self._verdict.stable})"
        )
