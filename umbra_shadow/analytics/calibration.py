"""
Baseline Calibration Module
===========================

Guided workflow that captures the reference (baseline) shadow area with
the object touching the surface.

Steps:
    INTRO -> CLEAR_SURFACE -> PLACE_OBJECT -> CONFIRM -> COMPLETE

Design:
- Small explicit state machine, driven by (pixel_count, stable) polls
- can_*() predicates expose gating without raising
- Disallowed transitions raise CalibrationError (fail fast)
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Optional

from umbra_shadow.logging import StructuredLogger, LogEvent


class CalibrationError(RuntimeError):
    """Raised on a calibration transition that is not allowed right now."""
    pass


class CalibrationStep(IntEnum):
    """Workflow steps, in order."""
    INTRO = 0
    CLEAR_SURFACE = 1
    PLACE_OBJECT = 2
    CONFIRM = 3
    COMPLETE = 4


@dataclass(frozen=True)
class CalibrationConfig:
    """
    Gating limits for the calibration workflow.

    Attributes:
        clear_surface_max_area: Largest shadow area still counted as a clear view
        min_baseline_area: Smallest shadow area accepted as a baseline
    """

    clear_surface_max_area: int = 100
    min_baseline_area: int = 200

    def __post_init__(self):
        """Validate calibration configuration."""
        if self.clear_surface_max_area < 0:
            raise ValueError(
                f"clear_surface_max_area must be >= 0, got {self.clear_surface_max_area}"
            )
        if self.min_baseline_area <= 0:
            raise ValueError(
                f"min_baseline_area must be > 0, got {self.min_baseline_area}"
            )


class BaselineCalibrator:
    """
    Baseline area capture workflow.

    The tracker supplies the stability verdict and the raw count; the
    calibrator only decides whether a capture is allowed.

    Usage:
        calibrator = BaselineCalibrator()
        calibrator.begin()

        # Each frame
        if calibrator.step is CalibrationStep.CLEAR_SURFACE and calibrator.can_confirm_clear(count):
            calibrator.confirm_clear(count)
        elif calibrator.can_capture(count, verdict.stable):
            calibrator.capture(count, verdict.stable)

        baseline = calibrator.commit()
    """

    def __init__(
        self,
        config: Optional[CalibrationConfig] = None,
        logger: Optional[StructuredLogger] = None,
    ):
        """
        Initialize calibrator at the INTRO step.

        Args:
            config: Gating limits (defaults if None)
            logger: Optional structured logger for step changes
        """
        self.config = config or CalibrationConfig()
        self.logger = logger
        self._step = CalibrationStep.INTRO
        self._captured_area: Optional[int] = None
        self._baseline_area: Optional[int] = None

    @property
    def step(self) -> CalibrationStep:
        """Current workflow step."""
        return self._step

    @property
    def captured_area(self) -> Optional[int]:
        """Area captured at PLACE_OBJECT (None before capture)."""
        return self._captured_area

    @property
    def baseline_area(self) -> Optional[int]:
        """Committed baseline (None until COMPLETE)."""
        return self._baseline_area

    @property
    def is_complete(self) -> bool:
        """True once a baseline has been committed."""
        return self._step is CalibrationStep.COMPLETE

    def can_confirm_clear(self, pixel_count: int) -> bool:
        """Surface counts as clear when almost no shadow is visible."""
        return (
            self._step is CalibrationStep.CLEAR_SURFACE
            and pixel_count <= self.config.clear_surface_max_area
        )

    def can_capture(self, pixel_count: int, stable: bool) -> bool:
        """Capture requires a locked signal and a large enough shadow."""
        return (
            self._step is CalibrationStep.PLACE_OBJECT
            and stable
            and pixel_count >= self.config.min_baseline_area
        )

    def begin(self) -> None:
        """INTRO -> CLEAR_SURFACE."""
        self._require(CalibrationStep.INTRO, "begin")
        self._advance(CalibrationStep.CLEAR_SURFACE)

    def confirm_clear(self, pixel_count: int) -> None:
        """
        CLEAR_SURFACE -> PLACE_OBJECT.

        Raises:
            CalibrationError: If not at CLEAR_SURFACE or shadow still visible
        """
        self._require(CalibrationStep.CLEAR_SURFACE, "confirm_clear")
        if not self.can_confirm_clear(pixel_count):
            raise CalibrationError(
                f"Surface not clear: {pixel_count}px of shadow "
                f"(max {self.config.clear_surface_max_area}px)"
            )
        self._advance(CalibrationStep.PLACE_OBJECT)

    def capture(self, pixel_count: int, stable: bool) -> int:
        """
        PLACE_OBJECT -> CONFIRM, storing pixel_count.

        Returns:
            The captured area

        Raises:
            CalibrationError: If not at PLACE_OBJECT, not stable, or area too small
        """
        self._require(CalibrationStep.PLACE_OBJECT, "capture")
        if not stable:
            raise CalibrationError("Cannot capture baseline: signal not stable")
        if pixel_count < self.config.min_baseline_area:
            raise CalibrationError(
                f"Cannot capture baseline: {pixel_count}px below minimum "
                f"{self.config.min_baseline_area}px"
            )

        self._captured_area = int(pixel_count)
        self._advance(CalibrationStep.CONFIRM)
        return self._captured_area

    def commit(self) -> int:
        """
        CONFIRM -> COMPLETE.

        Returns:
            The committed baseline area
        """
        self._require(CalibrationStep.CONFIRM, "commit")
        self._baseline_area = self._captured_area
        self._advance(CalibrationStep.COMPLETE)

        if self.logger is not None:
            self.logger.info(
                event=LogEvent.CALIBRATION_COMMITTED,
                message="Baseline area committed",
                metadata={'baseline_area': self._baseline_area},
            )
        return self._baseline_area

    def back(self) -> None:
        """Return to the previous step (not allowed from INTRO or COMPLETE)."""
        if self._step in (CalibrationStep.INTRO, CalibrationStep.COMPLETE):
            raise CalibrationError(f"Cannot go back from {self._step.name}")
        if self._step is CalibrationStep.CONFIRM:
            self._captured_area = None
        self._advance(CalibrationStep(self._step - 1))

    def cancel(self) -> None:
        """Abandon the workflow and return to INTRO."""
        self._captured_area = None
        self._baseline_area = None
        self._advance(CalibrationStep.INTRO)

    def _require(self, expected: CalibrationStep, action: str) -> None:
        if self._step is not expected:
            raise CalibrationError(
                f"'{action}' requires step {expected.name}, current step is {self._step.name}"
            )

    def _advance(self, step: CalibrationStep) -> None:
        previous = self._step
        self._step = step
        if self.logger is not None:
            self.logger.info(
                event=LogEvent.CALIBRATION_STEP,
                message=f"Calibration {previous.name} -> {step.name}",
                metadata={'from': previous.name, 'to': step.name},
            )

    def __repr__(self) -> str:
        """Human-readable representation."""
        return f"BaselineCalibrator(step={self._step.name}, captured={self._captured_area})"
