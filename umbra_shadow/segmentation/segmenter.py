"""
Shadow Segmenter Module
=======================

Stateless conversion of one RGB frame into a binary shadow mask.

Pipeline (each stage a pure transform):
1. Perceptual grayscale
2. 256-bin histogram + Otsu threshold
3. Clamp threshold to [threshold_min, threshold_max]
4. Saturation gate (rejects dark saturated objects)
5. Aggregate count / bounding box / mean intensity
6. Black-on-white visualization mask

Design:
- All stage helpers are static (no instance state besides config)
- Input frame is never mutated
- Vectorized with numpy
"""

import numpy as np
from dataclasses import dataclass
from typing import Optional

from umbra_shadow.segmentation.frame import validate_frame
from umbra_shadow.segmentation.summary import ShadowSummary


LUMA_WEIGHTS = (0.299, 0.587, 0.114)
HISTOGRAM_BINS = 256


@dataclass(frozen=True)
class SegmentationConfig:
    """
    Tuning constants for shadow classification.

    Attributes:
        threshold_min: Lower clamp for the Otsu threshold
        threshold_max: Upper clamp for the Otsu threshold
        saturation_max: Pixels at or above this saturation are treated as
            colored objects unless darker than dark_floor
        dark_floor: Pixels darker than this pass regardless of saturation
    """

    threshold_min: int = 30
    threshold_max: int = 80
    saturation_max: float = 60.0
    dark_floor: int = 30

    def __post_init__(self):
        """Validate segmentation configuration."""
        if not 0 <= self.threshold_min <= self.threshold_max <= 255:
            raise ValueError(
                "Thresholds must satisfy 0 <= threshold_min <= threshold_max <= 255, "
                f"got [{self.threshold_min}, {self.threshold_max}]"
            )
        if not 0.0 <= self.saturation_max <= 255.0:
            raise ValueError(
                f"saturation_max must be in [0, 255], got {self.saturation_max}"
            )
        if not 0 <= self.dark_floor <= 255:
            raise ValueError(f"dark_floor must be in [0, 255], got {self.dark_floor}")


@dataclass(frozen=True)
class SegmentationResult:
    """
    Output of ShadowSegmenter.segment().

    Attributes:
        summary: Pixel count, bounding box and mean intensity
        mask: Boolean (height, width) array, True = shadow
        visualization: (height, width, 3) uint8, shadow black / rest white
        threshold: Clamped threshold actually applied
        otsu_threshold: Raw Otsu threshold before clamping
    """

    summary: ShadowSummary
    mask: np.ndarray
    visualization: np.ndarray
    threshold: int
    otsu_threshold: int


class ShadowSegmenter:
    """
    Segments cast shadows with Otsu thresholding plus a saturation check.

    Otsu adapts the cutoff to ambient lighting; the clamp bounds worst-case
    behavior under extreme exposure; the saturation check keeps dark but
    strongly colored objects out of the mask.

    Usage:
        segmenter = ShadowSegmenter()
        result = segmenter.segment(rgb_frame)
        print(result.summary.pixel_count)
    """

    def __init__(self, config: Optional[SegmentationConfig] = None):
        """
        Initialize segmenter.

        Args:
            config: Classification constants (defaults if None)
        """
        self.config = config or SegmentationConfig()

    def segment(self, frame: np.ndarray) -> SegmentationResult:
        """
        Run the full segmentation pipeline on one frame.

        Args:
            frame: RGB(A) uint8 array of shape (height, width, 3|4)

        Returns:
            SegmentationResult (summary is all-zero when no shadow is found)

        Raises:
            FrameShapeError: If the frame shape or dtype is invalid
        """
        rgb = validate_frame(frame)

        gray = self.to_grayscale(rgb)
        otsu = self.otsu_threshold(self.histogram(gray))
        threshold = self.clamp_threshold(
            otsu, self.config.threshold_min, self.config.threshold_max
        )

        mask = self.classify(
            gray,
            self.saturation(rgb),
            threshold,
            saturation_max=self.config.saturation_max,
            dark_floor=self.config.dark_floor,
        )

        return SegmentationResult(
            summary=self.summarize(mask, gray),
            mask=mask,
            visualization=self.render_mask(mask),
            threshold=threshold,
            otsu_threshold=otsu,
        )

    @staticmethod
    def to_grayscale(rgb: np.ndarray) -> np.ndarray:
        """
        Perceptual luminance, rounded half up and clamped to [0, 255].

        Args:
            rgb: (height, width, 3) uint8 array

        Returns:
            (height, width) uint8 array
        """
        channels = rgb.astype(np.float64)
        luma = (
            channels[..., 0] * LUMA_WEIGHTS[0]
            + channels[..., 1] * LUMA_WEIGHTS[1]
            + channels[..., 2] * LUMA_WEIGHTS[2]
        )
        return np.clip(np.floor(luma + 0.5), 0, 255).astype(np.uint8)

    @staticmethod
    def histogram(gray: np.ndarray) -> np.ndarray:
        """256-bin histogram of grayscale values."""
        return np.bincount(gray.ravel(), minlength=HISTOGRAM_BINS)[:HISTOGRAM_BINS]

    @staticmethod
    def otsu_threshold(histogram: np.ndarray) -> int:
        """
        Two-class Otsu threshold.

        For each candidate t, class B holds levels < t and class F levels
        >= t. Splits with an empty class are skipped. The first t maximizing
        wB * wF * (meanB - meanF)^2 wins.

        Args:
            histogram: 256 bin counts

        Returns:
            Threshold in [1, 255], or 0 when no split has two populated classes
        """
        hist = np.asarray(histogram, dtype=np.float64)
        levels = np.arange(hist.size, dtype=np.float64)

        total = hist.sum()
        total_sum = (levels * hist).sum()

        # Candidate t = 1..255 uses the cumulative sums up to level t-1
        weight_b = np.cumsum(hist)[:-1]
        sum_b = np.cumsum(levels * hist)[:-1]
        weight_f = total - weight_b

        valid = (weight_b > 0) & (weight_f > 0)
        if not valid.any():
            return 0

        mean_b = np.divide(sum_b, weight_b, out=np.zeros_like(sum_b), where=valid)
        mean_f = np.divide(total_sum - sum_b, weight_f, out=np.zeros_like(sum_b), where=valid)

        between = np.where(valid, weight_b * weight_f * (mean_b - mean_f) ** 2, 0.0)
        best = int(np.argmax(between))
        if between[best] <= 0.0:
            return 0

        return best + 1

    @staticmethod
    def clamp_threshold(threshold: int, lower: int, upper: int) -> int:
        """Clamp a threshold into [lower, upper]."""
        return int(min(max(threshold, lower), upper))

    @staticmethod
    def saturation(rgb: np.ndarray) -> np.ndarray:
        """
        HSV-style saturation scaled to [0, 255].

        sat = 255 * (max - min) / max, and 0 where max == 0.

        Args:
            rgb: (height, width, 3) uint8 array

        Returns:
            (height, width) float64 array
        """
        channels = rgb.astype(np.float64)
        high = channels.max(axis=2)
        low = channels.min(axis=2)

        ratio = np.divide(high - low, high, out=np.zeros_like(high), where=high > 0)
        return ratio * 255.0

    @staticmethod
    def classify(
        gray: np.ndarray,
        saturation: np.ndarray,
        threshold: int,
        saturation_max: float = 60.0,
        dark_floor: int = 30,
    ) -> np.ndarray:
        """
        Shadow test: dark AND (desaturated OR very dark).

        Args:
            gray: (height, width) uint8 luminance
            saturation: (height, width) saturation in [0, 255]
            threshold: Clamped luminance threshold
            saturation_max: Saturation limit for shadow pixels
            dark_floor: Luminance below which saturation is ignored

        Returns:
            Boolean (height, width) mask, True = shadow
        """
        dark = gray < threshold
        return dark & ((saturation < saturation_max) | (gray < dark_floor))

    @staticmethod
    def summarize(mask: np.ndarray, gray: np.ndarray) -> ShadowSummary:
        """
        Aggregate a shadow mask into a ShadowSummary.

        Args:
            mask: Boolean (height, width) shadow mask
            gray: (height, width) luminance used for the intensity mean

        Returns:
            ShadowSummary (ShadowSummary.empty() when mask has no pixels)
        """
        ys, xs = np.nonzero(mask)
        count = int(xs.size)
        if count == 0:
            return ShadowSummary.empty()

        intensity_sum = int(gray[ys, xs].sum(dtype=np.int64))

        return ShadowSummary(
            pixel_count=count,
            min_x=int(xs.min()),
            min_y=int(ys.min()),
            max_x=int(xs.max()),
            max_y=int(ys.max()),
            average_intensity=intensity_sum / count,
        )

    @staticmethod
    def render_mask(mask: np.ndarray) -> np.ndarray:
        """Shadow pixels black, all others white, as (height, width, 3) uint8."""
        visual = np.where(mask, 0, 255).astype(np.uint8)
        return np.repeat(visual[:, :, np.newaxis], 3, axis=2)
