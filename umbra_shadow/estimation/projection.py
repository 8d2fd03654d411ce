"""
Shadow Projection Model
=======================

Closed-form point-light projection relating object standoff to shadow area.

Model:
    scale = L / (L - h)
    A_shadow = A_ref * scale^2
    h = L - L * sqrt(A_ref / A_shadow)

where L is the light-to-surface distance, h the object-to-surface
standoff, and A_ref the shadow area with the object touching the surface.
"""

import math
from dataclasses import dataclass
from enum import Enum


MIN_LIGHT_GAP = 0.1
TOUCHING_BELOW = 2.0
NEAR_BELOW = 10.0


class ProximityLabel(str, Enum):
    """Coarse standoff classification."""
    TOUCHING = "Touching"
    NEAR = "Near"
    AWAY = "Away"


def projection_scale(light_distance: float, standoff: float) -> float:
    """Magnification L / (L - h); the gap is floored at MIN_LIGHT_GAP."""
    gap = max(MIN_LIGHT_GAP, light_distance - standoff)
    return light_distance / gap


def projected_shadow_area(reference_area: float, light_distance: float, standoff: float) -> float:
    """Shadow area expected for an object at `standoff`."""
    return reference_area * projection_scale(light_distance, standoff) ** 2


def estimate_standoff(light_distance: float, reference_area: float, observed_area: float) -> float:
    """
    Invert the projection model.

    Args:
        light_distance: Light-to-surface distance L
        reference_area: Baseline shadow area (object touching the surface)
        observed_area: Current shadow area

    Returns:
        Estimated standoff h in [0, L]. L when either area is not positive,
        0 when the observed shadow is smaller than the baseline.
    """
    if observed_area <= 0 or reference_area <= 0:
        return light_distance

    ratio = reference_area / observed_area
    if ratio > 1:
        return 0.0

    return max(0.0, light_distance - light_distance * math.sqrt(ratio))


def proximity_label(standoff: float) -> ProximityLabel:
    """TOUCHING below 2, NEAR below 10, AWAY otherwise (same units as L)."""
    if standoff < TOUCHING_BELOW:
        return ProximityLabel.TOUCHING
    if standoff < NEAR_BELOW:
        return ProximityLabel.NEAR
    return ProximityLabel.AWAY


@dataclass(frozen=True)
class StandoffEstimate:
    """Result of one standoff estimation."""

    standoff: float
    label: ProximityLabel
    observed_area: int

    def __str__(self) -> str:
        return f"h={self.standoff:.1f} ({self.label.value}, {self.observed_area}px)"


@dataclass(frozen=True)
class StandoffEstimator:
    """
    Standoff estimator bound to a light distance and a baseline area.

    Attributes:
        light_distance: Light-to-surface distance L (e.g. cm)
        reference_area: Baseline shadow area in pixels
    """

    light_distance: float
    reference_area: float

    def __post_init__(self):
        """Validate geometry."""
        if self.light_distance <= 0:
            raise ValueError(f"light_distance must be > 0, got {self.light_distance}")
        if self.reference_area <= 0:
            raise ValueError(f"reference_area must be > 0, got {self.reference_area}")

    def estimate(self, observed_area: int) -> StandoffEstimate:
        """Estimate standoff and label from an observed shadow area."""
        standoff = estimate_standoff(self.light_distance, self.reference_area, observed_area)
        return StandoffEstimate(
            standoff=standoff,
            label=proximity_label(standoff),
            observed_area=int(observed_area),
        )

    def expected_area(self, standoff: float) -> float:
        """Forward model: shadow area at a given standoff."""
        return projected_shadow_area(self.reference_area, self.light_distance, standoff)
