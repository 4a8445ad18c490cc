"""
Enums Module
============

Enumeration types for the sensor quality pipeline.
"""

from sensor_quality.domain.sensors.fields import SensorKind
from sensor_quality.enums.common import IssueCode, SmoothingAlgorithm, ValidationSeverity

__all__ = [
    "IssueCode",
    "SensorKind",
    "SmoothingAlgorithm",
    "ValidationSeverity",
]
