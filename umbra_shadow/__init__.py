"""
Umbra Shadow Monitor v1.0
=========================

Bounded Context: Shadow-based standoff estimation from video frames.

Design Philosophy:
- Separation of Concerns: Segmentation, Analytics, Estimation, Rendering separated
- Stateless per-frame work, stateful history in explicit instances
- One entry point per frame: SamplingSession.process_frame()
- Fail fast on malformed input, never on "no shadow"

Architecture:

    umbra_shadow/
    ├── segmentation/      # Per-frame shadow extraction (stateless)
    │   ├── frame.py       # Frame validation, buffer conversion
    │   ├── summary.py     # ShadowSummary
    │   └── segmenter.py   # ShadowSegmenter (Otsu + saturation)
    │
    ├── analytics/         # Temporal state (stateful)
    │   ├── stats.py       # mean/std, jitter
    │   ├── history.py     # FrameHistory ring buffer
    │   ├── stability.py   # StabilityTracker, StabilityVerdict
    │   └── calibration.py # BaselineCalibrator
    │
    ├── estimation/        # Area -> standoff (pure)
    ├── rendering/         # ShadowVisualizer (drawing)
    ├── logging/           # Structured JSON logging
    │
    └── pipeline.py        # SamplingSession + video orchestration

Usage:

    # 1. Segment (stateless)
    from umbra_shadow import ShadowSegmenter

    result = ShadowSegmenter().segment(rgb_frame)
    print(result.summary.pixel_count, result.summary.bounding_box)

    # 2. Track stability (stateful)
    from umbra_shadow import StabilityTracker

    tracker = StabilityTracker()
    tracker.observe(result.summary)
    verdict = tracker.current_verdict()

    # 3. Or use a session (segment + track per frame)
    from umbra_shadow import SamplingSession

    session = SamplingSession()
    session.start()
    frame_result = session.process_frame(rgb_frame)

    # 4. Estimate standoff from the committed baseline
    from umbra_shadow import StandoffEstimator

    estimator = StandoffEstimator(light_distance=50.0, reference_area=baseline)
    print(estimator.estimate(frame_result.pixel_count))
"""

# Segmentation Layer (stateless)
from umbra_shadow.segmentation import (
    FrameShapeError,
    ShadowSegmenter,
    ShadowSummary,
    SegmentationConfig,
    SegmentationResult,
    frame_from_buffer,
)

# Analytics Layer (stateful)
from umbra_shadow.analytics import (
    StabilityTracker,
    StabilityThresholds,
    StabilityVerdict,
    BaselineCalibrator,
    CalibrationConfig,
    CalibrationError,
    CalibrationStep,
)

# Estimation Layer (pure)
from umbra_shadow.estimation import StandoffEstimator, ProximityLabel

# Rendering Layer (stateless)
from umbra_shadow.rendering import ShadowVisualizer

# Pipeline (orchestration)
from umbra_shadow.pipeline import (
    SamplingSession,
    FrameResult,
    ShadowMonitorPipeline,
    PipelineBuilder,
)

__all__ = [
    # Segmentation
    "FrameShapeError",
    "ShadowSegmenter",
    "ShadowSummary",
    "SegmentationConfig",
    "SegmentationResult",
    "frame_from_buffer",
    # Analytics
    "StabilityTracker",
    "StabilityThresholds",
    "StabilityVerdict",
    "BaselineCalibrator",
    "CalibrationConfig",
    "CalibrationError",
    "CalibrationStep",
    # Estimation
    "StandoffEstimator",
    "ProximityLabel",
    # Rendering
    "ShadowVisualizer",
    # Pipeline
    "SamplingSession",
    "FrameResult",
    "ShadowMonitorPipeline",
    "PipelineBuilder",
]

__version__ = "1.0.0"
