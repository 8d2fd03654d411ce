"""Pytest configuration and shared fixtures for Umbra tests."""

import pytest

from tests.helpers import RecordingLogger, make_frame, paint


@pytest.fixture
def recording_logger():
    return RecordingLogger()


@pytest.fixture
def white_frame():
    return make_frame(4, 4)


@pytest.fixture
def square_shadow_frame():
    """4x4 white frame with a black 2x2 square at (1, 1)."""
    return paint(make_frame(4, 4), 1, 1, 2, 2, (0, 0, 0))


@pytest.fixture
def hand_shadow_frame():
    """64x48 light-gray surface with a 20x10 gray shadow."""
    return paint(make_frame(64, 48, (200, 200, 200)), 20, 15, 20, 10, (40, 40, 40))
