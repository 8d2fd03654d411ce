"""
Shadow Sampling Service - live camera orchestrator.

This module provides the ShadowSamplingService class which drives a
SamplingSession from an OpenCV capture device.

Threading Model:
- Capture Thread: reads frames from the device, rate-limited to max_fps
- Processing Thread: segments frames and feeds the stability tracker

Frames are handed over through a single-slot queue. When the processing
thread falls behind, the pending frame is replaced by the newest one
(dropped), so frames are never processed out of order or concurrently.
"""

import queue
import threading
import time
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

import cv2
import numpy as np

from umbra_shadow.segmentation import ShadowSegmenter, FrameShapeError
from umbra_shadow.analytics import StabilityTracker, BaselineCalibrator
from umbra_shadow.estimation import StandoffEstimator, StandoffEstimate
from umbra_shadow.pipeline import SamplingSession, FrameResult, prepare_frame
from umbra_shadow.logging import StructuredLogger, LogEvent
from umbra_processor.config import MonitorConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ServiceSnapshot:
    """
    Latest state of the service, safe to read from any thread.

    Attributes:
        result: Latest FrameResult (None before the first frame)
        estimate: Standoff estimate for the latest frame
        frame: Latest BGR capture frame (for display)
        frames_captured: Frames read from the device
        frames_dropped: Frames replaced before processing
        frames_failed: Frames that could not be processed
    """

    result: Optional[FrameResult]
    estimate: Optional[StandoffEstimate]
    frame: Optional[np.ndarray]
    frames_captured: int
    frames_dropped: int
    frames_failed: int = 0


class ShadowSamplingService:
    """
    Live shadow sampling service.

    Usage:
        config = MonitorConfig.from_yaml("monitor.yaml")
        service = ShadowSamplingService(config)

        service.start()
        snapshot = service.snapshot()
        ...
        service.stop()
    """

    def __init__(
        self,
        config: MonitorConfig,
        structured_logger: Optional[StructuredLogger] = None,
        capture_factory: Callable = cv2.VideoCapture,
    ):
        """
        Initialize the service (no device is opened yet).

        Args:
            config: Monitor configuration
            structured_logger: Optional structured logger for session events
            capture_factory: Callable(source) returning a cv2.VideoCapture-like
                object (isOpened/read/release)
        """
        self.config = config
        self.structured_logger = structured_logger
        self.capture_factory = capture_factory

        self.session = SamplingSession(
            segmenter=ShadowSegmenter(config.segmentation),
            tracker=StabilityTracker(config.stability, logger=structured_logger),
            logger=structured_logger,
            session_id=config.service_id,
        )
        self.calibrator = BaselineCalibrator(config.calibration, logger=structured_logger)
        self.estimator = StandoffEstimator(
            light_distance=config.estimator.light_distance,
            reference_area=config.estimator.reference_area,
        )

        self._capture = None
        self._frames: "queue.Queue[np.ndarray]" = queue.Queue(maxsize=1)
        self._stop_event = threading.Event()
        self._capture_done = threading.Event()
        self._capture_thread: Optional[threading.Thread] = None
        self._processing_thread: Optional[threading.Thread] = None
        self._listeners: List[Callable[[FrameResult], None]] = []

        self._state_lock = threading.Lock()
        self._latest_frame: Optional[np.ndarray] = None
        self._latest_estimate: Optional[StandoffEstimate] = None
        self._frames_captured = 0
        self._frames_dropped = 0
        self._frames_failed = 0
        self._running = False

        logger.info(f"ShadowSamplingService initialized for service_id={config.service_id}")

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def source_exhausted(self) -> bool:
        """True once the capture thread has stopped reading from the device."""
        return self._running and self._capture_done.is_set()

    def add_listener(self, listener: Callable[[FrameResult], None]) -> None:
        """Register a callback invoked (on the processing thread) per result."""
        self._listeners.append(listener)

    def apply_baseline(self, reference_area: float) -> None:
        """Use a committed baseline area for subsequent estimates."""
        self.estimator = StandoffEstimator(
            light_distance=self.config.estimator.light_distance,
            reference_area=reference_area,
        )
        logger.info(f"Baseline applied: reference_area={reference_area}")

    def start(self) -> None:
        """
        Open the capture device and start both threads (non-blocking).

        Raises:
            RuntimeError: If the capture device cannot be opened
        """
        if self._running:
            logger.warning("Service already running")
            return

        self._capture = self.capture_factory(self.config.capture.source)
        if not self._capture.isOpened():
            self._capture.release()
            self._capture = None
            raise RuntimeError(f"Failed to open capture source: {self.config.capture.source}")

        self._stop_event.clear()
        self._capture_done.clear()
        self._drain_frames()
        with self._state_lock:
            self._frames_captured = 0
            self._frames_dropped = 0
            self._frames_failed = 0
            self._latest_frame = None
            self._latest_estimate = None

        self.session.start()

        self._capture_thread = threading.Thread(
            target=self._capture_loop,
            name="CaptureThread",
            daemon=True
        )
        self._processing_thread = threading.Thread(
            target=self._processing_loop,
            name="ShadowProcessingThread",
            daemon=True
        )
        self._capture_thread.start()
        self._processing_thread.start()
        self._running = True

        logger.info("Shadow sampling service started")

    def wait(self, timeout: Optional[float] = None) -> None:
        """Block until the source is exhausted (or stop() is called)."""
        if self._capture_thread is not None:
            self._capture_thread.join(timeout)
        if self._processing_thread is not None:
            self._processing_thread.join(timeout)

    def stop(self) -> None:
        """Stop both threads, release the device, discard the history and any pending frame."""
        if not self._running:
            logger.warning("Service not running")
            return

        logger.info("Stopping shadow sampling service")
        self._stop_event.set()

        for thread in (self._capture_thread, self._processing_thread):
            if thread is not None:
                thread.join(timeout=5.0)
        self._drain_frames()

        if self._capture is not None:
            self._capture.release()
            self._capture = None

        self.session.stop()
        self._running = False
        logger.info("Shadow sampling service stopped")

    def snapshot(self) -> ServiceSnapshot:
        """Latest result, estimate and frame counters."""
        with self._state_lock:
            return ServiceSnapshot(
                result=self.session.latest,
                estimate=self._latest_estimate,
                frame=self._latest_frame,
                frames_captured=self._frames_captured,
                frames_dropped=self._frames_dropped,
                frames_failed=self._frames_failed,
            )

    def _capture_loop(self) -> None:
        """Read frames until the source ends or stop is requested."""
        max_fps = self.config.capture.max_fps
        interval = 1.0 / max_fps if max_fps else 0.0
        last_read = 0.0

        try:
            while not self._stop_event.is_set():
                if interval:
                    delay = interval - (time.monotonic() - last_read)
                    if delay > 0:
                        time.sleep(delay)
                    last_read = time.monotonic()

                ok, frame = self._capture.read()
                if not ok or frame is None:
                    if self.structured_logger is not None:
                        self.structured_logger.warning(
                            event=LogEvent.CAPTURE_ERROR,
                            message="Capture source returned no frame, ending capture",
                            metadata={'source': str(self.config.capture.source)},
                        )
                    break

                with self._state_lock:
                    self._frames_captured += 1
                    self._latest_frame = frame

                self._offer(frame)
        finally:
            self._capture_done.set()

    def _offer(self, frame: np.ndarray) -> None:
        """Put a frame in the single-slot queue, replacing a pending one."""
        while True:
            try:
                self._frames.put_nowait(frame)
                return
            except queue.Full:
                try:
                    self._frames.get_nowait()
                except queue.Empty:
                    continue
                with self._state_lock:
                    self._frames_dropped += 1

    def _drain_frames(self) -> None:
        """Discard a frame left pending by a previous run."""
        while True:
            try:
                self._frames.get_nowait()
            except queue.Empty:
                return

    def _processing_loop(self) -> None:
        """Process frames in arrival order until capture ends and the queue drains."""
        while not self._stop_event.is_set():
            try:
                frame = self._frames.get(timeout=0.1)
            except queue.Empty:
                # Capture may have queued its last frame after the timeout
                if self._capture_done.is_set() and self._frames.empty():
                    break
                continue

            try:
                result = self.session.process_frame(
                    prepare_frame(frame, self.config.capture.downscale)
                )
            except FrameShapeError as e:
                # SamplingSession already emitted error.frame_shape
                logger.warning(f"Skipping malformed frame: {e}")
                self._count_failure()
                continue
            except Exception as e:
                logger.error(f"Error processing frame: {e}", exc_info=True)
                if self.structured_logger is not None:
                    self.structured_logger.error(
                        event=LogEvent.CAPTURE_ERROR,
                        message="Frame could not be processed, skipping",
                        metadata={'source': str(self.config.capture.source)},
                        exc_info=e,
                    )
                self._count_failure()
                continue

            if result is None:
                continue

            estimate = self.estimator.estimate(result.pixel_count)
            with self._state_lock:
                self._latest_estimate = estimate

            for listener in self._listeners:
                try:
                    listener(result)
                except Exception as e:
                    logger.error(f"Result listener error: {e}", exc_info=True)

    def _count_failure(self) -> None:
        with self._state_lock:
            self._frames_failed += 1
