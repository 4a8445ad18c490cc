"""
Domain Layer for Sensor Data
============================
Value objects for snapshots, rules and validation outcomes.
"""

from sensor_quality.domain.sensors.fields import FIELD_ALIASES, UNIT_MAP, SensorKind, get_sensor_kind
from sensor_quality.domain.sensors.rules import SmoothingConfiguration, ValidationRule
from sensor_quality.domain.sensors.snapshot import MetricSnapshot, coerce_float
from sensor_quality.domain.sensors.validation import (
    VALID_SCORE_THRESHOLD,
    DeviceQualityStatistics,
    SnapshotValidation,
    ValidationIssue,
    ValidationResult,
)

__all__ = [
    "FIELD_ALIASES",
    "UNIT_MAP",
    "VALID_SCORE_THRESHOLD",
    "DeviceQualityStatistics",
    "MetricSnapshot",
    "SensorKind",
    "SmoothingConfiguration",
    "SnapshotValidation",
    "ValidationIssue",
    "ValidationResult",
    "ValidationRule",
    "coerce_float",
    "get_sensor_kind",
]
