"""
Shadow Summary Module
=====================

Immutable per-frame result of shadow segmentation.

Design Principles:
- Immutability: frozen=True, one summary per frame
- Validation: constructor enforces bounding box invariants
- Serialization: to_dict()/from_dict() for logs and consumers
"""

from dataclasses import dataclass, asdict
from typing import Dict, Any, Tuple


@dataclass(frozen=True)
class ShadowSummary:
    """
    Pixel count, bounding box and mean intensity of the detected shadow.

    Coordinates are absolute pixel indices, origin top-left, and the box is
    inclusive (max_x/max_y are the last shadow column/row).

    Attributes:
        pixel_count: Number of pixels classified as shadow
        min_x: Leftmost shadow column
        min_y: Topmost shadow row
        max_x: Rightmost shadow column
        max_y: Bottom shadow row
        average_intensity: Mean grayscale value of shadow pixels (0-255)

    Invariants:
        - pixel_count >= 0
        - pixel_count > 0: min_x <= max_x and min_y <= max_y
        - pixel_count == 0: box and intensity are all zero

    Example:
        >>> summary = ShadowSummary(pixel_count=4, min_x=1, min_y=1, max_x=2, max_y=2)
        >>> summary.bounding_box
        (1, 1, 2, 2)
    """
    pixel_count: int = 0
    min_x: int = 0
    min_y: int = 0
    max_x: int = 0
    max_y: int = 0
    average_intensity: float = 0.0

    def __post_init__(self):
        """Validate invariants."""
        if self.pixel_count < 0:
            raise ValueError(f"pixel_count must be >= 0, got {self.pixel_count}")
        if not 0.0 <= self.average_intensity <= 255.0:
            raise ValueError(
                f"average_intensity must be in [0, 255], got {self.average_intensity}"
            )

        if self.pixel_count == 0:
            if any(self.bounding_box) or self.average_intensity != 0.0:
                raise ValueError(
                    "Empty summary must have an all-zero bounding box and intensity, "
                    f"got box={self.bounding_box}, intensity={self.average_intensity}"
                )
            return

        if min(self.bounding_box) < 0:
            raise ValueError(f"Bounding box must be non-negative, got {self.bounding_box}")
        if self.min_x > self.max_x or self.min_y > self.max_y:
            raise ValueError(f"Bounding box min must not exceed max, got {self.bounding_box}")

    @classmethod
    def empty(cls) -> 'ShadowSummary':
        """Summary for a frame with no shadow pixels."""
        return cls()

    @property
    def is_empty(self) -> bool:
        """True when no pixel was classified as shadow."""
        return self.pixel_count == 0

    @property
    def bounding_box(self) -> Tuple[int, int, int, int]:
        """(min_x, min_y, max_x, max_y)."""
        return (self.min_x, self.min_y, self.max_x, self.max_y)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ShadowSummary':
        """Deserialize from dict.

        Args:
            data: Dictionary with keys: pixel_count, min_x, min_y, max_x,
                max_y, average_intensity

        Returns:
            ShadowSummary instance

        Raises:
            ValueError: If required keys missing or invalid values
        """
        try:
            return cls(
                pixel_count=int(data['pixel_count']),
                min_x=int(data['min_x']),
                min_y=int(data['min_y']),
                max_x=int(data['max_x']),
                max_y=int(data['max_y']),
                average_intensity=float(data['average_intensity'])
            )
        except KeyError as e:
            raise ValueError(f"Missing required ShadowSummary field: {e}")
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid ShadowSummary data: {e}")

    def __str__(self) -> str:
        """Human-readable representation."""
        if self.is_empty:
            return "no shadow"
        return f"{self.pixel_count}px box={self.bounding_box} I={self.average_intensity:.1f}"
