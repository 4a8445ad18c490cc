"""
Common Enumerations
====================

Enums shared by the validator, the smoother and the schemas.
"""

from enum import Enum


class ValidationSeverity(str, Enum):
    """
    Severity attached to a validation issue.
    Used by: validator, schemas
    """
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"

    def __str__(self) -> str:
        return self.value


class IssueCode(str, Enum):
    """
    Stable issue codes emitted by the validator.
    Used by: validator (checks and correction), statistics
    """
    PHYSICAL_IMPOSSIBILITY = "physical_impossibility"
    OPERATIONAL_OUT_OF_RANGE = "operational_out_of_range"
    EXCESSIVE_CHANGE_RATE = "excessive_change_rate"
    VPD_INCONSISTENCY = "vpd_inconsistency"
    TEMPERATURE_SPIKE = "temperature_spike"
    HUMIDITY_TEMPERATURE_MISMATCH = "humidity_temperature_mismatch"
    POSSIBLE_SENSOR_FREEZE = "possible_sensor_freeze"
    STATISTICAL_OUTLIER = "statistical_outlier"
    UNSUPPORTED_SENSOR = "unsupported_sensor"
    DEVICE_OUT_OF_OPERATING_RANGE = "device_out_of_operating_range"
    CALIBRATION_NEEDED = "calibration_needed"

    def __str__(self) -> str:
        return self.value


class SmoothingAlgorithm(str, Enum):
    """
    Filter families available to the smoother.
    Used by: rule table defaults, smoother dispatch
    """
    EWMA = "ewma"
    MOVING_AVERAGE = "moving_average"
    MEDIAN = "median"
    SAVITZKY_GOLAY = "savitzky_golay"
    KALMAN = "kalman"
    ADAPTIVE = "adaptive"
    LOW_PASS = "low_pass"

    def __str__(self) -> str:
        return self.value
