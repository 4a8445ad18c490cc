"""
Quality Schemas
===============

Pydantic models for serialising validation outcomes and statistics, and for
validating externally supplied smoothing configurations.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from sensor_quality.domain.exceptions import ValidationError
from sensor_quality.domain.sensors import (
    DeviceQualityStatistics,
    MetricSnapshot,
    SmoothingConfiguration,
    SnapshotValidation,
    ValidationIssue,
    ValidationResult,
)
from sensor_quality.enums.common import IssueCode, SmoothingAlgorithm, ValidationSeverity

if TYPE_CHECKING:
    from sensor_quality.services.smoother import SmoothingStatistics


class ValidationIssueSchema(BaseModel):
    """A single issue found with a metric value"""

    code: IssueCode = Field(..., description="Stable issue code")
    message: str = Field(..., description="Human-readable description")
    severity: ValidationSeverity = Field(default=ValidationSeverity.INFO, description="Issue severity")

    model_config = ConfigDict(use_enum_values=True)

    @classmethod
    def from_issue(cls, issue: ValidationIssue) -> ValidationIssueSchema:
        return cls(code=issue.code, message=issue.message, severity=issue.severity)


class ValidationResultSchema(BaseModel):
    """Quality assessment of one metric"""

    sensor_kind: str = Field(..., description="Sensor kind, e.g. 'temperature'")
    value: float = Field(..., description="Raw value that was validated")
    quality_score: float = Field(..., ge=0, le=100, description="Metric quality score (0-100)")
    is_valid: bool = Field(..., description="Score at or above the validity threshold")
    issues: list[ValidationIssueSchema] = Field(default_factory=list)
    device_id: str | None = Field(default=None)
    timestamp: datetime | None = Field(default=None)

    @classmethod
    def from_result(cls, result: ValidationResult) -> ValidationResultSchema:
        return cls(
            sensor_kind=result.sensor_kind.value,
            value=result.value,
            quality_score=result.quality_score,
            is_valid=result.is_valid,
            issues=[ValidationIssueSchema.from_issue(issue) for issue in result.issues],
            device_id=result.device_id,
            timestamp=result.timestamp,
        )


class SnapshotValidationSchema(BaseModel):
    """Aggregate outcome of validating one snapshot"""

    aggregate_score: float = Field(..., ge=0, le=100, description="Product of metric scores (0-100)")
    is_valid: bool = Field(..., description="Aggregate score at or above the validity threshold")
    issue_count: int = Field(default=0, ge=0)
    results: list[ValidationResultSchema] = Field(default_factory=list)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "aggregate_score": 10.0,
                "is_valid": False,
                "issue_count": 1,
                "results": [
                    {
                        "sensor_kind": "temperature",
                        "value": 150.0,
                        "quality_score": 10.0,
                        "is_valid": False,
                        "issues": [
                            {
                                "code": "physical_impossibility",
                                "message": "Value outside physically possible range [-50.0, 100.0]",
                                "severity": "critical",
                            }
                        ],
                    }
                ],
            }
        }
    )

    @classmethod
    def from_validation(cls, validation: SnapshotValidation) -> SnapshotValidationSchema:
        return cls(
            aggregate_score=validation.aggregate_score,
            is_valid=validation.is_valid,
            issue_count=validation.issue_count,
            results=[ValidationResultSchema.from_result(result) for result in validation.results],
        )


class MetricSnapshotSchema(BaseModel):
    """Timestamped multi-metric sample"""

    device_id: str
    timestamp: datetime
    values: dict[str, float] = Field(default_factory=dict, description="Kind -> value for measured kinds")

    @classmethod
    def from_snapshot(cls, snapshot: MetricSnapshot) -> MetricSnapshotSchema:
        return cls(**snapshot.to_dict())


class DeviceQualityStatisticsSchema(BaseModel):
    """Per-device quality figures"""

    sample_count: int = Field(default=0, ge=0, description="Snapshots currently held in history")
    average_quality: float = Field(default=100.0, ge=0, le=100, description="Running mean aggregate score")
    last_validation_time: datetime | None = Field(default=None)
    issue_count: int = Field(default=0, ge=0, description="Issues raised since the last clear")
    validation_count: int = Field(default=0, ge=0)

    @classmethod
    def from_statistics(cls, stats: DeviceQualityStatistics) -> DeviceQualityStatisticsSchema:
        return cls(
            sample_count=stats.sample_count,
            average_quality=stats.average_quality,
            last_validation_time=stats.last_validation_time,
            issue_count=stats.issue_count,
            validation_count=stats.validation_count,
        )


class SmoothingStatisticsSchema(BaseModel):
    """Smoother buffer and throughput figures"""

    total_buffers: int = Field(default=0, ge=0)
    total_data_points: int = Field(default=0, ge=0)
    average_buffer_size: float = Field(default=0.0, ge=0)
    buffer_sizes: dict[str, int] = Field(default_factory=dict)
    kalman_states: int = Field(default=0, ge=0)
    total_smoothed_points: int = Field(default=0, ge=0)
    last_smoothing_time: datetime | None = Field(default=None)

    @classmethod
    def from_statistics(cls, stats: SmoothingStatistics) -> SmoothingStatisticsSchema:
        return cls(
            total_buffers=stats.total_buffers,
            total_data_points=stats.total_data_points,
            average_buffer_size=stats.average_buffer_size,
            buffer_sizes=dict(stats.buffer_sizes),
            kalman_states=stats.kalman_states,
            total_smoothed_points=stats.total_smoothed_points,
            last_smoothing_time=stats.last_smoothing_time,
        )


class SmoothingConfigSchema(BaseModel):
    """Externally supplied smoothing configuration for one sensor kind"""

    algorithm: SmoothingAlgorithm = Field(..., description="Filter family")
    window_size: int = Field(..., ge=1, description="History window in samples")
    alpha: float = Field(..., gt=0, le=1, description="Weight (EWMA/adaptive) or cutoff proxy (low-pass)")
    threshold: float = Field(default=1.0, ge=0)
    adaptive_window: bool = Field(default=False)

    model_config = ConfigDict(
        extra="forbid",
        json_schema_extra={
            "example": {
                "algorithm": "ewma",
                "window_size": 10,
                "alpha": 0.3,
                "threshold": 1.0,
                "adaptive_window": True,
            }
        },
    )

    @field_validator("algorithm", mode="before")
    @classmethod
    def normalize_algorithm(cls, v):
        if isinstance(v, str):
            return SmoothingAlgorithm(v.strip().lower())
        return v

    def to_domain(self) -> SmoothingConfiguration:
        return SmoothingConfiguration(
            algorithm=self.algorithm,
            window_size=self.window_size,
            alpha=self.alpha,
            threshold=self.threshold,
            adaptive_window=self.adaptive_window,
        )

    @classmethod
    def to_configuration(
        cls,
        data: Mapping[str, Any],
        base: SmoothingConfiguration | None = None,
    ) -> SmoothingConfiguration:
        """
        Validate ``data`` and build a SmoothingConfiguration.

        Args:
            data: Raw configuration fields
            base: Existing configuration supplying fields missing from ``data``

        Raises:
            ValidationError: If the merged fields do not form a valid configuration
        """
        merged = {**base.to_dict(), **data} if base is not None else dict(data)
        try:
            return cls.model_validate(merged).to_domain()
        except PydanticValidationError as e:
            raise ValidationError(
                "Invalid smoothing configuration",
                detail={"errors": e.errors(include_url=False, include_context=False)},
            ) from e
