"""Tests for frame validation and buffer conversion."""

import numpy as np
import pytest

from umbra_shadow.segmentation import FrameShapeError, validate_frame, frame_from_buffer


class TestValidateFrame:
    """Shape and dtype checks for incoming frames."""

    def test_rgb_frame_returned_as_is(self):
        frame = np.zeros((2, 3, 3), dtype=np.uint8)
        rgb = validate_frame(frame)
        assert rgb.shape == (2, 3, 3)

    def test_alpha_channel_is_dropped(self):
        frame = np.zeros((2, 3, 4), dtype=np.uint8)
        assert validate_frame(frame).shape == (2, 3, 3)

    def test_frame_shape_error_is_value_error(self):
        assert issubclass(FrameShapeError, ValueError)

    @pytest.mark.parametrize("frame", [
        np.zeros((4, 4), dtype=np.uint8),
        np.zeros((4, 4, 2), dtype=np.uint8),
        np.zeros((4, 4, 5), dtype=np.uint8),
        np.zeros((4, 4, 3), dtype=np.float32),
        np.zeros((0, 4, 3), dtype=np.uint8),
        np.zeros((4, 0, 3), dtype=np.uint8),
    ])
    def test_invalid_frames_rejected(self, frame):
        with pytest.raises(FrameShapeError):
            validate_frame(frame)

    def test_non_array_rejected(self):
        with pytest.raises(FrameShapeError):
            validate_frame([[[0, 0, 0]]])


class TestFrameFromBuffer:
    """Flat interleaved buffers -> (height, width, channels) frames."""

    def test_rgb_bytes(self):
        buffer = bytes(range(2 * 3 * 3))
        frame = frame_from_buffer(buffer, width=3, height=2)

        assert frame.shape == (2, 3, 3)
        assert frame.dtype == np.uint8
        # Row-major: second row starts after 3 RGB triples
        assert tuple(frame[1, 0]) == (9, 10, 11)

    def test_rgba_array(self):
        buffer = np.arange(2 * 2 * 4, dtype=np.uint8)
        frame = frame_from_buffer(buffer, width=2, height=2, channels=4)
        assert frame.shape == (2, 2, 4)

    def test_length_mismatch(self):
        with pytest.raises(FrameShapeError, match="does not match"):
            frame_from_buffer(bytes(10), width=2, height=2)

    def test_zero_area(self):
        with pytest.raises(FrameShapeError):
            frame_from_buffer(b"", width=0, height=3)

    def test_unsupported_channels(self):
        with pytest.raises(FrameShapeError):
            frame_from_buffer(bytes(8), width=2, height=2, channels=2)

    def test_non_uint8_array(self):
        with pytest.raises(FrameShapeError):
            frame_from_buffer(np.zeros(12, dtype=np.int32), width=2, height=2)
