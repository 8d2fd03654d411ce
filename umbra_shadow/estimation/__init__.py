"""
Estimation Layer
================

Bounded Context: Shadow area -> standoff distance (pure functions).

Consumes only the shadow pixel count; knows nothing about frames,
windows or stability.
"""

from umbra_shadow.estimation.projection import (
    ProximityLabel,
    StandoffEstimate,
    StandoffEstimator,
    estimate_standoff,
    projected_shadow_area,
    projection_scale,
    proximity_label,
)

__all__ = [
    "ProximityLabel",
    "StandoffEstimate",
    "StandoffEstimator",
    "estimate_standoff",
    "projected_shadow_area",
    "projection_scale",
    "proximity_label",
]
