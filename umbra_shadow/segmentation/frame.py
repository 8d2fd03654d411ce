"""
Frame Validation Module
=======================

Shape checks for raw RGB frames handed over by the frame source.

Design:
- Fail fast: invalid shapes are rejected before any pixel is read
- Frames are plain numpy arrays (height, width, channels), uint8
- Alpha channel (RGBA canvas buffers) is accepted and ignored
"""

import numpy as np
from typing import Union


SUPPORTED_CHANNELS = (3, 4)


class FrameShapeError(ValueError):
    """Raised when a frame buffer does not describe a valid RGB image."""
    pass


def validate_frame(frame: np.ndarray) -> np.ndarray:
    """
    Validate a frame and return its RGB view.

    Args:
        frame: Array of shape (height, width, 3|4), dtype uint8

    Returns:
        View of shape (height, width, 3) (alpha dropped if present)

    Raises:
        FrameShapeError: If the array is not a non-empty 8-bit RGB(A) image
    """
    if not isinstance(frame, np.ndarray):
        raise FrameShapeError(f"frame must be np.ndarray, got {type(frame).__name__}")
    if frame.ndim != 3:
        raise FrameShapeError(
            f"frame must have shape (height, width, channels), got {frame.shape}"
        )
    if frame.shape[2] not in SUPPORTED_CHANNELS:
        raise FrameShapeError(
            f"frame must have 3 (RGB) or 4 (RGBA) channels, got {frame.shape[2]}"
        )
    if frame.dtype != np.uint8:
        raise FrameShapeError(f"frame must be uint8, got {frame.dtype}")

    height, width = frame.shape[:2]
    if width <= 0 or height <= 0:
        raise FrameShapeError(f"frame must have positive area, got {width}x{height}")

    return frame[:, :, :3]


def frame_from_buffer(
    buffer: Union[bytes, bytearray, memoryview, np.ndarray],
    width: int,
    height: int,
    channels: int = 3,
) -> np.ndarray:
    """
    Build a frame from a flat, row-major pixel buffer.

    Args:
        buffer: Interleaved 8-bit samples (RGBRGB... or RGBARGBA...)
        width: Declared frame width in pixels
        height: Declared frame height in pixels
        channels: Samples per pixel (3 or 4)

    Returns:
        Array of shape (height, width, channels), dtype uint8

    Raises:
        FrameShapeError: If dimensions are not positive or the buffer length
            does not match width * height * channels
    """
    if width <= 0 or height <= 0:
        raise FrameShapeError(f"frame must have positive area, got {width}x{height}")
    if channels not in SUPPORTED_CHANNELS:
        raise FrameShapeError(f"channels must be 3 or 4, got {channels}")

    if isinstance(buffer, np.ndarray):
        if buffer.dtype != np.uint8:
            raise FrameShapeError(f"buffer must be uint8, got {buffer.dtype}")
        flat = buffer.reshape(-1)
    else:
        flat = np.frombuffer(buffer, dtype=np.uint8)

    expected = width * height * channels
    if flat.size != expected:
        raise FrameShapeError(
            f"buffer length {flat.size} does not match {width}x{height}x{channels} "
            f"(expected {expected})"
        )

    return flat.reshape(height, width, channels)
