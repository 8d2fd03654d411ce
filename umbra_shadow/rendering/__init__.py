"""
Rendering Layer
===============

Bounded Context: Shadow overlay visualization.

Responsibilities:
- Blend the shadow mask over display frames
- Draw lock brackets around the shadow bounding box
- Render LOCKED / TRACKING status
- Pure rendering - no logic, no state

Design:
- Stateless drawing functions
- Uses supervision drawing utilities
- Configurable styles
"""

from umbra_shadow.rendering.visualizer import ShadowVisualizer, LOCKED_COLOR, TRACKING_COLOR

__all__ = [
    "ShadowVisualizer",
    "LOCKED_COLOR",
    "TRACKING_COLOR",
]
