"""
umbra_processor - Live Shadow Sampling Service

This package drives the shadow segmentation / stability core from a live
capture device and loads its configuration from YAML.

Architecture:
- ShadowSamplingService: capture + processing threads around a SamplingSession
- MonitorConfig: configuration management

Threading Model:
- Capture Thread (reads the device, rate limited)
- Processing Thread (segmentation + stability, strictly in order)
"""

from umbra_processor.config import MonitorConfig, CaptureConfig, EstimatorConfig
from umbra_processor.service import ShadowSamplingService, ServiceSnapshot

__all__ = [
    "MonitorConfig",
    "CaptureConfig",
    "EstimatorConfig",
    "ShadowSamplingService",
    "ServiceSnapshot",
]
