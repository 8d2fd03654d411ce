#!/usr/bin/env python3
"""
Shadow Monitor - Entry Point
============================

Runs the shadow segmentation + stability pipeline either offline on a
video file or live on a camera.

Usage:
    # Annotate a recorded video
    python run_shadow_monitor.py video data/videos/hand.mp4 --light-distance 50

    # Live camera with calibration keys
    python run_shadow_monitor.py live --config config/monitor.yaml

Live keys:
    c  advance the calibration workflow (begin / confirm clear / capture / commit)
    x  cancel calibration
    m  toggle mask overlay
    q  quit

Logs:
    - Console: INFO level (structured JSON for session/stability events)
    - File: logs/shadow_monitor.log (optional)
"""

import argparse
from dataclasses import replace
import logging
import signal
import sys
from pathlib import Path
from typing import Optional

import cv2
import supervision as sv

from umbra_shadow import (
    PipelineBuilder,
    ShadowSegmenter,
    ShadowVisualizer,
    StandoffEstimator,
    CalibrationStep,
    CalibrationError,
)
from umbra_shadow.logging import create_logger
from umbra_processor import MonitorConfig, ShadowSamplingService


# ─────────────────────────────────────────────────────────────────────────────
# Logging Setup
# ─────────────────────────────────────────────────────────────────────────────

def setup_logging(log_file: Optional[Path] = None) -> logging.Logger:
    """
    Setup logging for the monitor.

    Args:
        log_file: Optional path to log file

    Returns:
        Logger instance for the entry point
    """
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout),
            *(
                [logging.FileHandler(log_file)]
                if log_file
                else []
            )
        ]
    )

    return logging.getLogger(__name__)


def load_config(config_path: Optional[Path]) -> MonitorConfig:
    """Load YAML config, or defaults when no path is given."""
    if config_path is None:
        return MonitorConfig()
    return MonitorConfig.from_yaml(config_path)


# ─────────────────────────────────────────────────────────────────────────────
# Offline video
# ─────────────────────────────────────────────────────────────────────────────

def run_video(args, config: MonitorConfig, logger: logging.Logger) -> int:
    """Process a video file and write an annotated copy."""
    light_distance = args.light_distance or config.estimator.light_distance
    reference_area = args.reference_area or config.estimator.reference_area

    builder = (
        PipelineBuilder()
        .with_video(str(args.video))
        .with_segmenter(ShadowSegmenter(config.segmentation))
        .with_thresholds(config.stability)
        .with_estimator(StandoffEstimator(light_distance, reference_area))
        .with_logger(create_logger("pipeline"))
        .with_stride(args.stride)
        .with_downscale(config.capture.downscale)
        .with_mask_overlay(args.show_mask)
    )
    if args.output:
        builder = builder.with_output_folder(str(args.output))

    report = builder.build().process()

    logger.info(f"Run summary: {report}")
    if report.final_estimate is not None:
        logger.info(f"Final estimate: {report.final_estimate}")
    logger.info(f"Output: {report.output_path}")
    return 0


# ─────────────────────────────────────────────────────────────────────────────
# Live camera
# ─────────────────────────────────────────────────────────────────────────────

class LiveMonitorApp:
    """
    Live camera monitor with on-screen overlay and calibration keys.

    Handles:
    - Service lifecycle
    - Signal handling (SIGTERM, SIGINT)
    - Display loop (main thread, OpenCV window)
    """

    WINDOW_NAME = "Umbra Shadow Monitor"

    def __init__(self, config: MonitorConfig, logger: logging.Logger):
        self.config = config
        self.logger = logger
        self.service = ShadowSamplingService(
            config,
            structured_logger=create_logger("live"),
        )
        self.visualizer = ShadowVisualizer(scale=config.capture.downscale)
        self.show_mask = False
        self._shutdown_requested = False

    def run(self) -> int:
        """Run until 'q', a signal, or the source ends."""
        signal.signal(signal.SIGTERM, self._signal_handler)
        signal.signal(signal.SIGINT, self._signal_handler)

        self.service.start()
        self.logger.info("Live monitor started. Keys: c=calibrate x=cancel m=mask q=quit")

        try:
            while not self._shutdown_requested and not self.service.source_exhausted:
                snapshot = self.service.snapshot()
                if snapshot.frame is not None:
                    cv2.imshow(self.WINDOW_NAME, self._render(snapshot))

                key = cv2.waitKey(15) & 0xFF
                if key == ord('q'):
                    break
                self._handle_key(key)
        finally:
            self.shutdown()

        return 0

    def _render(self, snapshot):
        frame = snapshot.frame.copy()
        result = snapshot.result
        if result is None:
            return frame

        if self.show_mask:
            frame = self.visualizer.draw_mask(frame, result.mask, opacity=0.5)
        frame = self.visualizer.draw_lock_brackets(frame, result.summary, result.verdict)
        frame = self.visualizer.draw_status(frame, result.summary, result.verdict)

        lines = [f"Calibration: {self.service.calibrator.step.name}"]
        if snapshot.estimate is not None:
            lines.append(str(snapshot.estimate))
        for row, text in enumerate(lines):
            frame = sv.draw_text(
                scene=frame,
                text=text,
                text_anchor=sv.Point(x=frame.shape[1] // 2, y=20 + 28 * row),
                text_color=sv.Color(r=255, g=255, b=255),
                text_scale=0.5,
                background_color=sv.Color(r=0, g=0, b=0),
            )
        return frame

    def _handle_key(self, key: int) -> None:
        calibrator = self.service.calibrator
        pixel_count, stable = self.service.session.poll()

        try:
            if key == ord('m'):
                self.show_mask = not self.show_mask
            elif key == ord('x'):
                calibrator.cancel()
            elif key == ord('c'):
                if calibrator.step is CalibrationStep.INTRO:
                    calibrator.begin()
                elif calibrator.step is CalibrationStep.CLEAR_SURFACE:
                    calibrator.confirm_clear(pixel_count)
                elif calibrator.step is CalibrationStep.PLACE_OBJECT:
                    calibrator.capture(pixel_count, stable)
                elif calibrator.step is CalibrationStep.CONFIRM:
                    self.service.apply_baseline(calibrator.commit())
        except CalibrationError as e:
            self.logger.warning(f"Calibration: {e}")

    def shutdown(self) -> None:
        """Stop the service and close the window."""
        if self._shutdown_requested and not self.service.is_running:
            return
        self._shutdown_requested = True
        if self.service.is_running:
            self.service.stop()
        cv2.destroyAllWindows()

    def _signal_handler(self, signum, frame):
        signal_name = signal.Signals(signum).name
        self.logger.info(f"Received signal {signal_name} ({signum})")
        self._shutdown_requested = True


def run_live(args, config: MonitorConfig, logger: logging.Logger) -> int:
    """Run the live monitor on the configured (or overridden) camera."""
    if args.camera is not None:
        config = replace(config, capture=replace(config.capture, source=args.camera))
    return LiveMonitorApp(config, logger).run()


# ─────────────────────────────────────────────────────────────────────────────
# CLI
# ─────────────────────────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    """
    Build the command-line parser.

    Returns:
        argparse.ArgumentParser with the video and live subcommands
    """
    parser = argparse.ArgumentParser(
        description="Umbra Shadow Monitor - shadow segmentation + stability lock",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python run_shadow_monitor.py video data/videos/hand.mp4 --reference-area 1800
  python run_shadow_monitor.py live --camera 1
  python run_shadow_monitor.py --config config/monitor.yaml live
"""
    )

    parser.add_argument('--config', type=Path, default=None, help='Path to monitor YAML config')
    parser.add_argument('--log-file', type=Path, default=None, help='Optional log file')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    video = subparsers.add_parser('video', help='Annotate a video file')
    video.add_argument('video', type=Path, help='Input video path')
    video.add_argument('--output', type=Path, default=None, help='Output folder (default: runs/...)')
    video.add_argument('--stride', type=int, default=1, help='Process every N frames')
    video.add_argument('--light-distance', type=float, default=None, help='Light-to-surface distance (cm)')
    video.add_argument('--reference-area', type=float, default=None, help='Baseline shadow area (px)')
    video.add_argument('--show-mask', action='store_true', help='Blend the shadow mask into the output')

    live = subparsers.add_parser('live', help='Live camera monitor')
    live.add_argument('--camera', type=int, default=None, help='Camera index (overrides config)')

    return parser


def main():
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    logger = setup_logging(args.log_file)

    try:
        config = load_config(args.config)
        if args.command == 'video':
            sys.exit(run_video(args, config, logger))
        elif args.command == 'live':
            sys.exit(run_live(args, config, logger))
    except (FileNotFoundError, ValueError, RuntimeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
