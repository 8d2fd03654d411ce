"""
Structured Log Event Types
==========================

Bounded Context: Observability Event Taxonomy

Typed event names for structured logging.

Event Naming Convention:
    <category>.<action>

    category: session, frame, stability, calibration, error

Example Log Query (CloudWatch Insights):
    fields @timestamp, event, metadata.pixel_count
    | filter event = "stability.locked"
    | stats count() by bin(5m)
"""

from enum import Enum


class LogEvent(str, Enum):
    """
    Typed log event names for structured logging.

    Categories:
    - session.*: Sampling session lifecycle
    - frame.*: Per-frame processing (DEBUG only for high-rate events)
    - stability.*: Verdict transitions
    - calibration.*: Baseline workflow
    - error.*: Error conditions
    """

    # ========== Session Events ==========
    SESSION_STARTED = "session.started"
    """Sampling session started (history cleared)."""

    SESSION_STOPPED = "session.stopped"
    """Sampling session stopped (history cleared)."""

    # ========== Frame Events ==========
    FRAME_SEGMENTED = "frame.segmented"
    """Frame segmented into a shadow summary."""

    FRAME_DROPPED = "frame.dropped"
    """Frame dropped because the previous one was still processing."""

    # ========== Stability Events ==========
    STABILITY_LOCKED = "stability.locked"
    """Verdict changed from acquiring to stable."""

    STABILITY_LOST = "stability.lost"
    """Verdict changed from stable to acquiring."""

    # ========== Calibration Events ==========
    CALIBRATION_STEP = "calibration.step"
    """Calibration workflow moved to another step."""

    CALIBRATION_COMMITTED = "calibration.committed"
    """Baseline area committed."""

    # ========== Error Events ==========
    FRAME_SHAPE_ERROR = "error.frame_shape"
    """Frame buffer did not describe a valid RGB image."""

    CAPTURE_ERROR = "error.capture"
    """Frame source failed to deliver a frame."""


# Event categories for filtering
SESSION_EVENTS = {
    LogEvent.SESSION_STARTED,
    LogEvent.SESSION_STOPPED,
}

STABILITY_EVENTS = {
    LogEvent.STABILITY_LOCKED,
    LogEvent.STABILITY_LOST,
}

ERROR_EVENTS = {
    LogEvent.FRAME_SHAPE_ERROR,
    LogEvent.CAPTURE_ERROR,
}
