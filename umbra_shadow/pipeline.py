"""
Shadow Sampling Pipeline Module
===============================

Bounded Context: Per-frame orchestration of segmentation and stability.

Design:
- SamplingSession: the single process_frame() entry point; owns one
  StabilityTracker per sampling session
- Frames are processed strictly in order; a frame that arrives while
  another is in progress is dropped, never interleaved
- ShadowMonitorPipeline: offline video processing with annotated output
- Builder pattern: fluent configuration, fail fast at build time

Dependencies:
- supervision (video utils)
- opencv (resize, color conversion)
- umbra_shadow.segmentation / analytics / rendering / estimation
"""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional, Tuple

import cv2
import numpy as np
import supervision as sv

from umbra_shadow.segmentation import ShadowSegmenter, ShadowSummary, FrameShapeError
from umbra_shadow.analytics import StabilityTracker, StabilityThresholds, StabilityVerdict
from umbra_shadow.estimation import StandoffEstimator, StandoffEstimate
from umbra_shadow.rendering import ShadowVisualizer
from umbra_shadow.logging import StructuredLogger, LogEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FrameResult:
    """
    Result of processing one frame.

    Attributes:
        frame_index: 0-based index within the session
        summary: Segmentation summary
        verdict: Stability verdict after observing this frame
        mask: Boolean shadow mask (segmentation resolution)
    """

    frame_index: int
    summary: ShadowSummary
    verdict: StabilityVerdict
    mask: np.ndarray

    @property
    def pixel_count(self) -> int:
        return self.summary.pixel_count

    @property
    def stable(self) -> bool:
        return self.verdict.stable


class SamplingSession:
    """
    Sampling controller: segment each frame and feed the stability tracker.

    Thread Safety:
    - process_frame() is non-reentrant; concurrent callers get None
      (frame dropped) instead of blocking
    - start()/stop() clear the tracker history

    Usage:
        session = SamplingSession()
        session.start()

        for frame in frames:
            result = session.process_frame(frame)
            if result is not None and result.stable:
                ...

        session.stop()
    """

    def __init__(
        self,
        segmenter: Optional[ShadowSegmenter] = None,
        tracker: Optional[StabilityTracker] = None,
        logger: Optional[StructuredLogger] = None,
        session_id: str = "default",
    ):
        """
        Initialize an inactive session.

        Args:
            segmenter: Frame segmenter (default config if None)
            tracker: Stability tracker (default thresholds if None)
            logger: Optional structured logger
            session_id: Identifier included in log metadata
        """
        self.segmenter = segmenter or ShadowSegmenter()
        self.tracker = tracker or StabilityTracker(logger=logger)
        self.logger = logger
        self.session_id = session_id

        self._lock = threading.Lock()
        self._drop_lock = threading.Lock()
        self._active = False
        self._latest: Optional[FrameResult] = None
        self._frames_processed = 0
        self._frames_dropped = 0

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def latest(self) -> Optional[FrameResult]:
        """Most recent FrameResult (None before the first frame)."""
        return self._latest

    @property
    def frames_processed(self) -> int:
        return self._frames_processed

    @property
    def frames_dropped(self) -> int:
        return self._frames_dropped

    def start(self) -> None:
        """Start (or restart) sampling with an empty history."""
        with self._lock:
            self.tracker.reset()
            self._latest = None
            self._frames_processed = 0
            with self._drop_lock:
                self._frames_dropped = 0
            self._active = True

        if self.logger is not None:
            self.logger.info(
                event=LogEvent.SESSION_STARTED,
                message="Sampling session started",
                metadata={
                    'session_id': self.session_id,
                    'window': self.tracker.thresholds.window_size,
                },
            )

    def stop(self) -> None:
        """Stop sampling and discard the history."""
        with self._lock:
            self._active = False
            self.tracker.reset()

        if self.logger is not None:
            self.logger.info(
                event=LogEvent.SESSION_STOPPED,
                message="Sampling session stopped",
                metadata={
                    'session_id': self.session_id,
                    'frames_processed': self._frames_processed,
                    'frames_dropped': self._frames_dropped,
                },
            )

    def process_frame(self, frame: np.ndarray) -> Optional[FrameResult]:
        """
        Segment one RGB frame and feed the tracker.

        Args:
            frame: RGB(A) uint8 array of shape (height, width, 3|4)

        Returns:
            FrameResult, or None if the frame was dropped because a previous
            frame is still being processed

        Raises:
            RuntimeError: If the session has not been started
            FrameShapeError: If the frame is malformed
        """
        if not self._lock.acquire(blocking=False):
            # _lock is held by the busy caller, so drops need their own lock
            with self._drop_lock:
                self._frames_dropped += 1
            if self.logger is not None:
                self.logger.debug(
                    event=LogEvent.FRAME_DROPPED,
                    message="Frame dropped (processing busy)",
                    metadata={'session_id': self.session_id},
                )
            return None

        try:
            if not self._active:
                raise RuntimeError("Sampling session not started. Call start() first.")

            try:
                segmentation = self.segmenter.segment(frame)
            except FrameShapeError as e:
                if self.logger is not None:
                    self.logger.error(
                        event=LogEvent.FRAME_SHAPE_ERROR,
                        message="Rejected malformed frame",
                        metadata={'session_id': self.session_id},
                        exc_info=e,
                    )
                raise

            verdict = self.tracker.observe(segmentation.summary)
            result = FrameResult(
                frame_index=self._frames_processed,
                summary=segmentation.summary,
                verdict=verdict,
                mask=segmentation.mask,
            )
            self._latest = result
            self._frames_processed += 1

            if self.logger is not None:
                self.logger.debug(
                    event=LogEvent.FRAME_SEGMENTED,
                    message=str(segmentation.summary),
                    metadata={
                        'frame_index': result.frame_index,
                        'pixel_count': result.pixel_count,
                        'threshold': segmentation.threshold,
                        'stable': verdict.stable,
                    },
                )
            return result
        finally:
            self._lock.release()

    def poll(self) -> Tuple[int, bool]:
        """(pixel_count, stable) of the latest frame, (0, False) before any."""
        latest = self._latest
        if latest is None:
            return 0, False
        return latest.pixel_count, latest.stable

    def __repr__(self) -> str:
        """Human-readable representation."""
        return (
            f"SamplingSession(id={self.session_id}, active={self._active}, "
            f"processed={self._frames_processed}, dropped={self._frames_dropped})"
        )


def prepare_frame(frame_bgr: np.ndarray, downscale: int = 1) -> np.ndarray:
    """
    Convert a BGR capture frame into the RGB frame handed to segmentation.

    Args:
        frame_bgr: (H, W, 3) uint8 BGR frame from OpenCV / supervision
        downscale: Integer reduction factor (1 = full resolution)

    Returns:
        (H // downscale, W // downscale, 3) uint8 RGB frame
    """
    if downscale < 1:
        raise ValueError(f"downscale must be >= 1, got {downscale}")

    if downscale > 1:
        height, width = frame_bgr.shape[:2]
        size = (max(1, width // downscale), max(1, height // downscale))
        frame_bgr = cv2.resize(frame_bgr, size, interpolation=cv2.INTER_AREA)

    return cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)


def default_output_folder(application_name: str = "shadow_monitor") -> str:
    """Timestamped run folder, ./runs/<application>/<YYYYmmdd_HHMMSS>."""
    folder = Path("runs") / application_name / datetime.now().strftime('%Y%m%d_%H%M%S')
    folder.mkdir(parents=True, exist_ok=True)
    return str(folder)


@dataclass
class PipelineConfig:
    """
    Pipeline configuration.

    Design:
    - All dependencies injected
    - Validated at construction
    """

    session: SamplingSession
    visualizer: ShadowVisualizer
    video_path: Optional[str] = None
    output_folder: Optional[str] = None
    estimator: Optional[StandoffEstimator] = None
    stride: int = 1
    downscale: int = 4
    show_mask: bool = False


@dataclass(frozen=True)
class PipelineReport:
    """Summary of one pipeline run."""

    frames_processed: int
    stable_frames: int
    first_lock_index: Optional[int]
    final_result: Optional[FrameResult]
    final_estimate: Optional[StandoffEstimate]
    output_path: Optional[str]

    def __str__(self) -> str:
        lock = "never" if self.first_lock_index is None else f"frame {self.first_lock_index}"
        return (
            f"{self.frames_processed} frames, {self.stable_frames} stable, "
            f"first lock: {lock}"
        )


class ShadowMonitorPipeline:
    """
    Orchestrates shadow monitoring over a sequence of frames.

    Pipeline stages (per frame):
    1. Downscale + BGR -> RGB
    2. Segmentation + stability (SamplingSession)
    3. Optional standoff estimation
    4. Visualization (rendering layer)

    Usage:
        pipeline = (
            PipelineBuilder()
            .with_video("hand.mp4")
            .with_estimator(StandoffEstimator(light_distance=50, reference_area=2000))
            .build()
        )

        report = pipeline.process()
    """

    def __init__(self, config: PipelineConfig):
        """
        Initialize pipeline with configuration.

        Args:
            config: Pipeline configuration (validated)
        """
        self.config = config
        self._validate_config()

    def _validate_config(self) -> None:
        """Validate configuration (fail fast)."""
        if self.config.video_path is not None and not Path(self.config.video_path).exists():
            raise FileNotFoundError(f"Video not found: {self.config.video_path}")
        if self.config.stride < 1:
            raise ValueError(f"stride must be >= 1, got {self.config.stride}")
        if self.config.downscale < 1:
            raise ValueError(f"downscale must be >= 1, got {self.config.downscale}")

    def process(self) -> PipelineReport:
        """
        Process the configured video and write an annotated copy.

        Returns:
            PipelineReport for the run

        Raises:
            ValueError: If no video path was configured
        """
        if self.config.video_path is None:
            raise ValueError("No video configured (use .with_video() or run())")

        video_info = sv.VideoInfo.from_video_path(self.config.video_path)
        frames_generator = sv.get_video_frames_generator(
            self.config.video_path, stride=self.config.stride
        )

        output_folder = self.config.output_folder or default_output_folder()
        output_path = f"{output_folder}/shadow_monitor_output.mp4"
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)

        with sv.VideoSink(output_path, video_info) as sink:
            report = self.run(frames_generator, sink=sink)

        logger.info(f"Shadow monitoring completed. Output: {output_path}")
        return PipelineReport(
            frames_processed=report.frames_processed,
            stable_frames=report.stable_frames,
            first_lock_index=report.first_lock_index,
            final_result=report.final_result,
            final_estimate=report.final_estimate,
            output_path=output_path,
        )

    def run(self, frames: Iterable[np.ndarray], sink: Optional[sv.VideoSink] = None) -> PipelineReport:
        """
        Process BGR frames in order through a fresh session.

        Args:
            frames: Iterable of (H, W, 3) uint8 BGR frames
            sink: Optional VideoSink receiving annotated frames

        Returns:
            PipelineReport (output_path is None)
        """
        session = self.config.session
        session.start()

        stable_frames = 0
        first_lock_index: Optional[int] = None
        result: Optional[FrameResult] = None
        estimate: Optional[StandoffEstimate] = None

        try:
            for frame in frames:
                result = session.process_frame(prepare_frame(frame, self.config.downscale))
                if result is None:
                    continue

                if result.stable:
                    stable_frames += 1
                    if first_lock_index is None:
                        first_lock_index = result.frame_index

                if self.config.estimator is not None:
                    estimate = self.config.estimator.estimate(result.pixel_count)

                if sink is not None:
                    sink.write_frame(self.annotate(frame, result, estimate))
        finally:
            processed = session.frames_processed
            session.stop()

        return PipelineReport(
            frames_processed=processed,
            stable_frames=stable_frames,
            first_lock_index=first_lock_index,
            final_result=result,
            final_estimate=estimate,
            output_path=None,
        )

    def annotate(
        self,
        frame: np.ndarray,
        result: FrameResult,
        estimate: Optional[StandoffEstimate] = None,
    ) -> np.ndarray:
        """
        Draw overlays for one processed frame.

        Args:
            frame: Original BGR frame (not modified)
            result: Processing result for this frame
            estimate: Optional standoff estimate to print

        Returns:
            Annotated copy of the frame
        """
        visualizer = self.config.visualizer
        annotated = frame.copy()

        if self.config.show_mask:
            annotated = visualizer.draw_mask(annotated, result.mask, opacity=0.5)

        annotated = visualizer.draw_lock_brackets(annotated, result.summary, result.verdict)
        annotated = visualizer.draw_status(annotated, result.summary, result.verdict)

        if estimate is not None:
            annotated = sv.draw_text(
                scene=annotated,
                text=str(estimate),
                text_anchor=sv.Point(x=annotated.shape[1] // 2, y=20),
                text_color=visualizer.text_color,
                text_scale=visualizer.text_scale,
                text_thickness=visualizer.text_thickness,
                background_color=sv.Color(r=0, g=0, b=0),
            )

        return annotated


class PipelineBuilder:
    """
    Builder for ShadowMonitorPipeline.

    Design:
    - Fluent API for construction
    - Fail-fast validation
    - Sensible defaults

    Usage:
        pipeline = (
            PipelineBuilder()
            .with_video("hand.mp4")
            .with_downscale(4)
            .with_thresholds(StabilityThresholds(window_size=30))
            .build()
        )
    """

    def __init__(self):
        self._video_path: Optional[str] = None
        self._output_folder: Optional[str] = None
        self._segmenter: Optional[ShadowSegmenter] = None
        self._thresholds: Optional[StabilityThresholds] = None
        self._visualizer: Optional[ShadowVisualizer] = None
        self._estimator: Optional[StandoffEstimator] = None
        self._logger: Optional[StructuredLogger] = None
        self._stride: int = 1
        self._downscale: int = 4
        self._show_mask: bool = False

    def with_video(self, video_path: str) -> "PipelineBuilder":
        """Set input video path."""
        self._video_path = video_path
        return self

    def with_output_folder(self, folder: str) -> "PipelineBuilder":
        """Set output folder."""
        self._output_folder = folder
        return self

    def with_segmenter(self, segmenter: ShadowSegmenter) -> "PipelineBuilder":
        """Set shadow segmenter."""
        self._segmenter = segmenter
        return self

    def with_thresholds(self, thresholds: StabilityThresholds) -> "PipelineBuilder":
        """Set stability thresholds."""
        self._thresholds = thresholds
        return self

    def with_visualizer(self, visualizer: ShadowVisualizer) -> "PipelineBuilder":
        """Set visualizer."""
        self._visualizer = visualizer
        return self

    def with_estimator(self, estimator: StandoffEstimator) -> "PipelineBuilder":
        """Set standoff estimator."""
        self._estimator = estimator
        return self

    def with_logger(self, structured_logger: StructuredLogger) -> "PipelineBuilder":
        """Set structured logger for session events."""
        self._logger = structured_logger
        return self

    def with_stride(self, stride: int) -> "PipelineBuilder":
        """Set frame stride (process every N frames)."""
        self._stride = stride
        return self

    def with_downscale(self, downscale: int) -> "PipelineBuilder":
        """Set segmentation downscale factor."""
        self._downscale = downscale
        return self

    def with_mask_overlay(self, enabled: bool = True) -> "PipelineBuilder":
        """Blend the shadow mask into annotated frames."""
        self._show_mask = enabled
        return self

    def build(self) -> ShadowMonitorPipeline:
        """
        Build the pipeline.

        Returns:
            Configured pipeline

        Raises:
            FileNotFoundError: If the configured video does not exist
            ValueError: If stride or downscale is invalid
        """
        tracker = StabilityTracker(thresholds=self._thresholds, logger=self._logger)
        session = SamplingSession(
            segmenter=self._segmenter,
            tracker=tracker,
            logger=self._logger,
        )
        visualizer = self._visualizer or ShadowVisualizer(scale=self._downscale)

        config = PipelineConfig(
            session=session,
            visualizer=visualizer,
            video_path=self._video_path,
            output_folder=self._output_folder,
            estimator=self._estimator,
            stride=self._stride,
            downscale=self._downscale,
            show_mask=self._show_mask,
        )

        return ShadowMonitorPipeline(config)
