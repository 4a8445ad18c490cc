"""
Sensor Quality Pipeline
=======================

Per-reading quality assessment and smoothing for environmental sensor data.
"""

from sensor_quality.config import QualityConfig, load_config, setup_logging
from sensor_quality.domain.devices import SensorCapabilities, SensorDevice
from sensor_quality.domain.sensors import MetricSnapshot, SensorKind
from sensor_quality.services import ProcessedReading, RuleTable, SensorQualityService

__version__ = "1.0.0"

__all__ = [
    "MetricSnapshot",
    "ProcessedReading",
    "QualityConfig",
    "RuleTable",
    "SensorCapabilities",
    "SensorDevice",
    "SensorKind",
    "SensorQualityService",
    "load_config",
    "setup_logging",
]
