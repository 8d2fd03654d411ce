"""Frame and summary builders shared by the test modules."""

import numpy as np

from umbra_shadow.segmentation import ShadowSummary


WHITE = (255, 255, 255)


def make_frame(width, height, background=WHITE):
    """Solid RGB uint8 frame."""
    frame = np.empty((height, width, 3), dtype=np.uint8)
    frame[:, :] = background
    return frame


def paint(frame, x, y, width, height, color):
    """Fill a rectangle in place and return the frame."""
    frame[y:y + height, x:x + width] = color
    return frame


def shadow_summary(
    pixel_count=500,
    min_x=10,
    min_y=10,
    max_x=34,
    max_y=29,
    average_intensity=40.0,
):
    """ShadowSummary with a plausible hand-shadow default."""
    return ShadowSummary(
        pixel_count=pixel_count,
        min_x=min_x,
        min_y=min_y,
        max_x=max_x,
        max_y=max_y,
        average_intensity=average_intensity,
    )


class RecordingLogger:
    """Stand-in for StructuredLogger that keeps every call."""

    def __init__(self):
        self.records = []

    def _record(self, level, event, message, metadata=None, exc_info=None):
        self.records.append({
            'level': level,
            'event': event,
            'message': message,
            'metadata': metadata or {},
            'exc_info': exc_info,
        })

    def debug(self, event, message, metadata=None):
        self._record('DEBUG', event, message, metadata)

    def info(self, event, message, metadata=None):
        self._record('INFO', event, message, metadata)

    def warning(self, event, message, metadata=None):
        self._record('WARNING', event, message, metadata)

    def error(self, event, message, metadata=None, exc_info=None):
        self._record('ERROR', event, message, metadata, exc_info)

    def events(self):
        return [record['event'] for record in self.records]


