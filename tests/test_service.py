"""Tests for ShadowSamplingService with a scripted capture device."""

import threading
import time

import numpy as np
import pytest

from umbra_processor import CaptureConfig, MonitorConfig, ShadowSamplingService
from umbra_shadow.logging import LogEvent
from tests.helpers import make_frame, paint


class FakeCapture:
    """cv2.VideoCapture stand-in that plays a fixed list of frames."""

    def __init__(self, frames, opened=True):
        self._frames = list(frames)
        self._opened = opened
        self.released = False

    def isOpened(self):
        return self._opened

    def read(self):
        if not self._frames:
            return False, None
        return True, self._frames.pop(0)

    def release(self):
        self.released = True


def bgr_hand_frame():
    return paint(make_frame(64, 48, (200, 200, 200)), 20, 15, 20, 10, (40, 40, 40))


@pytest.fixture
def config():
    return MonitorConfig(capture=CaptureConfig(source=0, downscale=1, max_fps=None))


def run_to_completion(service):
    service.start()
    service.wait(timeout=10.0)
    snapshot = service.snapshot()
    service.stop()
    return snapshot


class TestShadowSamplingService:

    def test_every_frame_processed_or_dropped(self, config):
        capture = FakeCapture([bgr_hand_frame() for _ in range(40)])
        service = ShadowSamplingService(config, capture_factory=lambda source: capture)

        processed = []
        service.add_listener(processed.append)

        snapshot = run_to_completion(service)

        assert snapshot.frames_captured == 40
        assert len(processed) + snapshot.frames_dropped == 40
        assert service.session.frames_processed == len(processed)
        assert capture.released

    def test_results_in_arrival_order(self, config):
        capture = FakeCapture([bgr_hand_frame() for _ in range(10)])
        service = ShadowSamplingService(config, capture_factory=lambda source: capture)

        indices = []
        service.add_listener(lambda result: indices.append(result.frame_index))
        run_to_completion(service)

        assert indices == sorted(indices)
        assert indices == list(range(len(indices)))

    def test_snapshot_has_estimate(self, config):
        capture = FakeCapture([bgr_hand_frame() for _ in range(3)])
        service = ShadowSamplingService(config, capture_factory=lambda source: capture)
        service.apply_baseline(200)

        snapshot = run_to_completion(service)

        assert snapshot.result.pixel_count == 200
        assert snapshot.estimate.standoff == pytest.approx(0.0)
        assert snapshot.frame.shape == (48, 64, 3)

    def test_source_exhausted_after_last_frame(self, config):
        capture = FakeCapture([bgr_hand_frame()])
        service = ShadowSamplingService(config, capture_factory=lambda source: capture)

        service.start()
        service.wait(timeout=10.0)
        assert service.source_exhausted

        service.stop()
        assert not service.source_exhausted

    def test_source_that_will_not_open(self, config):
        capture = FakeCapture([], opened=False)
        service = ShadowSamplingService(config, capture_factory=lambda source: capture)

        with pytest.raises(RuntimeError, match="Failed to open"):
            service.start()

        assert capture.released
        assert not service.is_running

    def test_end_of_stream_logged(self, config, recording_logger):
        capture = FakeCapture([bgr_hand_frame()])
        service = ShadowSamplingService(
            config,
            structured_logger=recording_logger,
            capture_factory=lambda source: capture,
        )

        run_to_completion(service)

        events = recording_logger.events()
        assert events[0] == LogEvent.SESSION_STARTED
        assert LogEvent.CAPTURE_ERROR in events
        assert events[-1] == LogEvent.SESSION_STOPPED

    def test_listener_error_does_not_stop_processing(self, config):
        capture = FakeCapture([bgr_hand_frame() for _ in range(5)])
        service = ShadowSamplingService(config, capture_factory=lambda source: capture)

        calls = []

        def failing_listener(result):
            calls.append(result.frame_index)
            raise RuntimeError("listener failure")

        service.add_listener(failing_listener)
        run_to_completion(service)

        assert len(calls) == service.session.frames_processed
        assert len(calls) >= 1

    def test_stop_interrupts_endless_source(self, config):
        class EndlessCapture(FakeCapture):
            def read(self):
                return True, bgr_hand_frame()

        capture = EndlessCapture([])
        service = ShadowSamplingService(config, capture_factory=lambda source: capture)

        started = threading.Event()
        service.add_listener(lambda result: started.set())
        service.start()
        assert started.wait(timeout=5.0)
        assert not service.source_exhausted
        service.stop()

        assert not service.is_running
        assert capture.released


class GatedCapture(FakeCapture):
    """Delivers the first frame, then waits until `ready()` before the rest."""

    def __init__(self, frames, ready, timeout=5.0):
        super().__init__(frames)
        self._ready = ready
        self._timeout = timeout
        self._reads = 0

    def read(self):
        if self._reads == 1:
            deadline = time.monotonic() + self._timeout
            while not self._ready() and time.monotonic() < deadline:
                time.sleep(0.005)
        self._reads += 1
        return super().read()


class TestFaultTolerance:

    def test_malformed_frame_skipped(self, config, recording_logger):
        bad = np.zeros((48, 64, 3), dtype=np.float32)
        capture = GatedCapture(
            [bad] + [bgr_hand_frame() for _ in range(10)],
            ready=lambda: LogEvent.FRAME_SHAPE_ERROR in recording_logger.events(),
        )
        service = ShadowSamplingService(
            config,
            structured_logger=recording_logger,
            capture_factory=lambda source: capture,
        )

        processed = []
        service.add_listener(processed.append)
        snapshot = run_to_completion(service)

        assert snapshot.frames_captured == 11
        assert snapshot.frames_failed == 1
        assert len(processed) >= 1
        assert len(processed) + snapshot.frames_dropped == 10
        assert snapshot.result.pixel_count == 200

    def test_unexpected_processing_error_skipped(self, config, recording_logger):
        capture = FakeCapture([bgr_hand_frame() for _ in range(3)])
        service = ShadowSamplingService(
            config,
            structured_logger=recording_logger,
            capture_factory=lambda source: capture,
        )

        calls = []
        original = service.session.process_frame

        def flaky_process_frame(frame):
            calls.append(frame)
            if len(calls) == 1:
                raise RuntimeError("decoder hiccup")
            return original(frame)

        service.session.process_frame = flaky_process_frame
        snapshot = run_to_completion(service)

        assert snapshot.frames_failed == 1
        assert len(calls) == 3 - snapshot.frames_dropped
        assert LogEvent.CAPTURE_ERROR in recording_logger.events()


class TestRestart:

    def test_stop_discards_pending_frame(self, config):
        capture = FakeCapture([bgr_hand_frame()])
        service = ShadowSamplingService(config, capture_factory=lambda source: capture)

        service.start()
        service.wait(timeout=10.0)
        service._offer(bgr_hand_frame())
        service.stop()

        assert service._frames.empty()

    def test_restart_starts_from_fresh_frames(self, config):
        light = make_frame(64, 48, (200, 200, 200))
        captures = iter([
            FakeCapture([bgr_hand_frame() for _ in range(3)]),
            FakeCapture([light.copy() for _ in range(3)]),
        ])
        service = ShadowSamplingService(config, capture_factory=lambda source: next(captures))

        results = []
        service.add_listener(results.append)
        run_to_completion(service)
        assert results[-1].pixel_count == 200

        # A frame left over from the first run must not reach the second one
        service._offer(bgr_hand_frame())
        results.clear()
        run_to_completion(service)

        assert results
        assert results[0].frame_index == 0
        assert all(result.pixel_count == 0 for result in results)
