"""
Configuration schema for the shadow sampling service.

This module defines the configuration structure for the live monitor:
capture settings, segmentation constants, stability thresholds,
calibration gating and the standoff estimator geometry.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union
import yaml

from umbra_shadow.segmentation import SegmentationConfig
from umbra_shadow.analytics import StabilityThresholds, CalibrationConfig


@dataclass(frozen=True)
class CaptureConfig:
    """
    Frame source configuration.

    Attributes:
        source: Camera index (int) or video file / stream URL (str)
        downscale: Integer reduction applied before segmentation
        max_fps: Capture rate limit (None = as fast as the source delivers)
    """

    source: Union[int, str] = 0
    downscale: int = 4
    max_fps: Optional[int] = 30

    def __post_init__(self):
        """Validate capture configuration."""
        if isinstance(self.source, str) and not self.source:
            raise ValueError("source cannot be empty")
        if isinstance(self.source, int) and self.source < 0:
            raise ValueError(f"camera index must be >= 0, got {self.source}")

        if not 1 <= self.downscale <= 16:
            raise ValueError(f"downscale must be in [1, 16], got {self.downscale}")

        if self.max_fps is not None and not 1 <= self.max_fps <= 240:
            raise ValueError(f"max_fps must be in [1, 240], got {self.max_fps}")


@dataclass(frozen=True)
class EstimatorConfig:
    """
    Projection geometry.

    Attributes:
        light_distance: Light-to-surface distance (cm)
        reference_area: Baseline shadow area (px) used until calibration
    """

    light_distance: float = 50.0
    reference_area: float = 2000.0

    def __post_init__(self):
        """Validate estimator configuration."""
        if self.light_distance <= 0:
            raise ValueError(f"light_distance must be > 0, got {self.light_distance}")
        if self.reference_area <= 0:
            raise ValueError(f"reference_area must be > 0, got {self.reference_area}")


@dataclass(frozen=True)
class MonitorConfig:
    """
    Main configuration for the shadow sampling service.

    Loaded from YAML and validated at startup. Every section is optional.
    Immutable after construction (frozen dataclass).
    """

    service_id: str = "umbra"
    capture: CaptureConfig = field(default_factory=CaptureConfig)
    segmentation: SegmentationConfig = field(default_factory=SegmentationConfig)
    stability: StabilityThresholds = field(default_factory=StabilityThresholds)
    calibration: CalibrationConfig = field(default_factory=CalibrationConfig)
    estimator: EstimatorConfig = field(default_factory=EstimatorConfig)

    def __post_init__(self):
        """Validate monitor configuration."""
        if not self.service_id:
            raise ValueError("service_id cannot be empty")

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "MonitorConfig":
        """
        Build configuration from a parsed YAML mapping.

        Raises:
            ValueError: On unknown keys or invalid values
        """
        data = data or {}

        known = {"service_id", "capture", "segmentation", "stability", "calibration", "estimator"}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown configuration sections: {sorted(unknown)}")

        try:
            return cls(
                service_id=data.get("service_id", "umbra"),
                capture=CaptureConfig(**(data.get("capture") or {})),
                segmentation=SegmentationConfig(**(data.get("segmentation") or {})),
                stability=StabilityThresholds(**(data.get("stability") or {})),
                calibration=CalibrationConfig(**(data.get("calibration") or {})),
                estimator=EstimatorConfig(**(data.get("estimator") or {})),
            )
        except TypeError as e:
            raise ValueError(f"Invalid configuration: {e}")

    @classmethod
    def from_yaml(cls, yaml_path: Path) -> "MonitorConfig":
        """
        Load configuration from YAML file.

        Example YAML:
            service_id: "desk_cam"

            capture:
              source: 0            # camera index or video path
              downscale: 4
              max_fps: 30

            segmentation:
              threshold_min: 30
              threshold_max: 80
              saturation_max: 60
              dark_floor: 30

            stability:
              window_size: 25
              min_mean_area: 150
              max_area_cv: 0.05
              max_dimension_std: 3.0
              max_centroid_std: 2.0
              max_dimension_jitter: 1.5
              max_mean_intensity: 65

            calibration:
              clear_surface_max_area: 100
              min_baseline_area: 200

            estimator:
              light_distance: 50
              reference_area: 2000

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the YAML is invalid or values fail validation
        """
        path = Path(yaml_path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {yaml_path}")

        try:
            with open(path) as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {yaml_path}: {e}")

        if data is not None and not isinstance(data, dict):
            raise ValueError(f"Top level of {yaml_path} must be a mapping")

        return cls.from_dict(data)
