"""
Domain Layer
============
Value objects, device collaborator interfaces and exceptions.
"""

from sensor_quality.domain.exceptions import (
    ConfigurationError,
    RuleConfigurationError,
    SensorQualityError,
    ValidationError,
)

__all__ = [
    "ConfigurationError",
    "RuleConfigurationError",
    "SensorQualityError",
    "ValidationError",
]
