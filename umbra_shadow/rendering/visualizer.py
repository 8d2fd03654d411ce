"""
Shadow Visualizer Module
========================

Pure visualization layer for segmentation and stability results.

Design:
- Stateless rendering (pure functions of frame + results)
- No business logic: verdicts are computed elsewhere
- Draws on BGR display frames (OpenCV / supervision convention)
- Summary coordinates can be scaled up when segmentation ran on a
  downscaled copy of the frame

Dependencies:
- supervision (draw utilities, Color, Point, Rect)
- opencv (mask blending)
- numpy (arrays)
"""

import cv2
import numpy as np
import supervision as sv
from typing import Optional, Tuple

from umbra_shadow.segmentation.summary import ShadowSummary
from umbra_shadow.analytics.stability import StabilityVerdict


LOCKED_COLOR = sv.Color(r=16, g=185, b=129)
TRACKING_COLOR = sv.Color(r=245, g=158, b=11)


class ShadowVisualizer:
    """
    Stateless visualizer for shadow overlays.

    Usage:
        visualizer = ShadowVisualizer(scale=4)

        frame = visualizer.draw_mask(frame, result.mask)
        frame = visualizer.draw_lock_brackets(frame, result.summary, verdict)
        frame = visualizer.draw_status(frame, result.summary, verdict)
    """

    def __init__(
        self,
        locked_color: sv.Color = LOCKED_COLOR,
        tracking_color: sv.Color = TRACKING_COLOR,
        text_color: sv.Color = sv.Color(r=255, g=255, b=255),
        scale: float = 1.0,
        padding: int = 2,
        corner_fraction: float = 0.2,
        text_scale: float = 0.5,
        text_thickness: int = 1,
        fill_opacity: float = 0.08,
        min_overlay_pixels: int = 10,
    ):
        """
        Initialize visualizer with style configuration.

        Args:
            locked_color: Bracket/label color when stable
            tracking_color: Bracket/label color while acquiring
            text_color: Label text color
            scale: Factor mapping summary coordinates to display pixels
            padding: Padding around the bounding box (summary pixels)
            corner_fraction: Bracket length as a fraction of the shorter box side
            text_scale: Scale factor for text
            text_thickness: Thickness for text
            fill_opacity: Opacity of the box tint (0-1)
            min_overlay_pixels: Skip brackets/label for shadows this small
        """
        if scale <= 0:
            raise ValueError(f"scale must be > 0, got {scale}")

        self.locked_color = locked_color
        self.tracking_color = tracking_color
        self.text_color = text_color
        self.scale = scale
        self.padding = padding
        self.corner_fraction = corner_fraction
        self.text_scale = text_scale
        self.text_thickness = text_thickness
        self.fill_opacity = fill_opacity
        self.min_overlay_pixels = min_overlay_pixels

    def color_for(self, verdict: Optional[StabilityVerdict]) -> sv.Color:
        """Emerald when locked, amber otherwise."""
        if verdict is not None and verdict.stable:
            return self.locked_color
        return self.tracking_color

    def box_rect(self, summary: ShadowSummary) -> sv.Rect:
        """Padded bounding box in display coordinates."""
        x = (summary.min_x - self.padding) * self.scale
        y = (summary.min_y - self.padding) * self.scale
        width = (summary.max_x - summary.min_x + 2 * self.padding) * self.scale
        height = (summary.max_y - summary.min_y + 2 * self.padding) * self.scale
        return sv.Rect(x=int(x), y=int(y), width=int(width), height=int(height))

    def draw_mask(
        self,
        frame: np.ndarray,
        mask: np.ndarray,
        opacity: float = 1.0,
    ) -> np.ndarray:
        """
        Blend the black/white shadow mask over a frame.

        Args:
            frame: (H, W, 3) uint8 display frame
            mask: Boolean shadow mask (resized to the frame if needed)
            opacity: 1.0 replaces the frame by the mask

        Returns:
            New frame with mask drawn
        """
        visual = np.where(mask, 0, 255).astype(np.uint8)
        height, width = frame.shape[:2]
        if visual.shape != (height, width):
            visual = cv2.resize(visual, (width, height), interpolation=cv2.INTER_NEAREST)
        visual = cv2.cvtColor(visual, cv2.COLOR_GRAY2BGR)

        if opacity >= 1.0:
            return visual
        return cv2.addWeighted(visual, opacity, frame, 1.0 - opacity, 0)

    def draw_lock_brackets(
        self,
        frame: np.ndarray,
        summary: ShadowSummary,
        verdict: Optional[StabilityVerdict] = None,
    ) -> np.ndarray:
        """
        Draw corner brackets around the shadow bounding box.

        Args:
            frame: Display frame to draw on
            summary: Segmentation summary
            verdict: Current stability verdict (None = acquiring)

        Returns:
            Frame with brackets (unchanged for tiny or empty shadows)
        """
        if summary.pixel_count <= self.min_overlay_pixels:
            return frame

        color = self.color_for(verdict)
        thickness = 2 if verdict is not None and verdict.stable else 1
        rect = self.box_rect(summary)

        frame = sv.draw_filled_rectangle(
            scene=frame,
            rect=rect,
            color=color,
            opacity=self.fill_opacity,
        )

        for start, end in self._bracket_segments(rect):
            frame = sv.draw_line(
                scene=frame,
                start=start,
                end=end,
                color=color,
                thickness=thickness,
            )

        return frame

    def draw_status(
        self,
        frame: np.ndarray,
        summary: ShadowSummary,
        verdict: Optional[StabilityVerdict] = None,
    ) -> np.ndarray:
        """
        Draw LOCKED/TRACKING label next to the bounding box.

        Args:
            frame: Display frame to draw on
            summary: Segmentation summary
            verdict: Current stability verdict (None = acquiring)

        Returns:
            Frame with label (unchanged for tiny or empty shadows)
        """
        if summary.pixel_count <= self.min_overlay_pixels:
            return frame

        stable = verdict is not None and verdict.stable
        rect = self.box_rect(summary)
        text = f"{'LOCKED' if stable else 'TRACKING'}: {summary.pixel_count}PX2"

        # Above the box when there is room, otherwise below it
        if rect.y > 15 * self.scale:
            anchor_y = rect.y - 10
        else:
            anchor_y = rect.y + rect.height + 14

        return sv.draw_text(
            scene=frame,
            text=text,
            text_anchor=sv.Point(x=rect.x + rect.width // 2, y=anchor_y),
            text_color=self.text_color,
            text_scale=self.text_scale,
            text_thickness=self.text_thickness,
            background_color=self.color_for(verdict),
        )

    def _bracket_segments(self, rect: sv.Rect) -> Tuple[Tuple[sv.Point, sv.Point], ...]:
        """Eight line segments forming the four corner brackets."""
        x, y, w, h = rect.x, rect.y, rect.width, rect.height
        corner = max(1, int(min(w, h) * self.corner_fraction))

        def seg(x1, y1, x2, y2):
            return (sv.Point(x=x1, y=y1), sv.Point(x=x2, y=y2))

        return (
            # Top left
            seg(x, y + corner, x, y), seg(x, y, x + corner, y),
            # Top right
            seg(x + w - corner, y, x + w, y), seg(x + w, y, x + w, y + corner),
            # Bottom right
            seg(x + w, y + h - corner, x + w, y + h), seg(x + w, y + h, x + w - corner, y + h),
            # Bottom left
            seg(x + corner, y + h, x, y + h), seg(x, y + h, x, y + h - corner),
        )
