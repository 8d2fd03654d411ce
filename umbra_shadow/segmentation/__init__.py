"""
Segmentation Layer
==================

Bounded Context: Per-frame shadow extraction.

Responsibilities:
- Frame shape validation
- Grayscale / histogram / Otsu threshold
- Saturation-based shadow vs dark-object disambiguation
- Bounding box and intensity summary
- NO history, NO stability decisions, NO drawing on display frames

Design Philosophy:
- Pure functions where possible
- Immutable outputs
- Fail-fast validation
- Zero side effects (input frames are never modified)
"""

from umbra_shadow.segmentation.frame import FrameShapeError, validate_frame, frame_from_buffer
from umbra_shadow.segmentation.summary import ShadowSummary
from umbra_shadow.segmentation.segmenter import (
    ShadowSegmenter,
    SegmentationConfig,
    SegmentationResult,
)

__all__ = [
    "FrameShapeError",
    "validate_frame",
    "frame_from_buffer",
    "ShadowSummary",
    "ShadowSegmenter",
    "SegmentationConfig",
    "SegmentationResult",
]
