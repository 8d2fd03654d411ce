"""
Analytics Layer
===============

Bounded Context: Temporal stability and calibration (stateful).

Responsibilities:
- Keep a fixed-size window of per-frame shadow metrics
- Decide when the signal is stable enough to trust
- Drive the baseline calibration workflow

Design Philosophy:
- Mutable state lives in explicit instances (one per session)
- Immutable outputs (StabilityVerdict, MetricStats)
- Caller serializes updates
"""

from umbra_shadow.analytics.stats import MetricStats, mean_std, mean_abs_delta
from umbra_shadow.analytics.history import FrameHistory, FrameMetrics, METRIC_NAMES
from umbra_shadow.analytics.stability import (
    StabilityTracker,
    StabilityThresholds,
    StabilityVerdict,
    evaluate_window,
)
from umbra_shadow.analytics.calibration import (
    BaselineCalibrator,
    CalibrationConfig,
    CalibrationError,
    CalibrationStep,
)

__all__ = [
    "MetricStats",
    "mean_std",
    "mean_abs_delta",
    "FrameHistory",
    "FrameMetrics",
    "METRIC_NAMES",
    "StabilityTracker",
    "StabilityThresholds",
    "StabilityVerdict",
    "evaluate_window",
    "BaselineCalibrator",
    "CalibrationConfig",
    "CalibrationError",
    "CalibrationStep",
]
