"""
Schemas Module
==============

Pydantic models for serialising quality results and validating externally
supplied smoothing configurations.
"""

from sensor_quality.schemas.quality import (
    DeviceQualityStatisticsSchema,
    MetricSnapshotSchema,
    SmoothingConfigSchema,
    SmoothingStatisticsSchema,
    SnapshotValidationSchema,
    ValidationIssueSchema,
    ValidationResultSchema,
)

__all__ = [
    "DeviceQualityStatisticsSchema",
    "MetricSnapshotSchema",
    "SmoothingConfigSchema",
    "SmoothingStatisticsSchema",
    "SnapshotValidationSchema",
    "ValidationIssueSchema",
    "ValidationResultSchema",
]
