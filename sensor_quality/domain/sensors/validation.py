"""
Validation Results
==================
Issues, per-metric results and per-snapshot outcomes produced by the validator.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from sensor_quality.domain.sensors.fields import SensorKind
from sensor_quality.enums.common import IssueCode, ValidationSeverity

VALID_SCORE_THRESHOLD = 70.0


@dataclass(frozen=True)
class ValidationIssue:
    """A single problem found with a metric value."""

    code: IssueCode
    message: str
    severity: ValidationSeverity = ValidationSeverity.INFO

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code.value, "message": self.message, "severity": self.severity.value}


@dataclass(frozen=True)
class ValidationResult:
    """Quality assessment of one metric of one snapshot."""

    sensor_kind: SensorKind
    value: float
    quality_score: float
    issues: tuple[ValidationIssue, ...] = ()
    device_id: str | None = None
    timestamp: datetime | None = None

    @property
    def is_valid(self) -> bool:
        return self.quality_score >= VALID_SCORE_THRESHOLD

    @property
    def has_critical(self) -> bool:
        return any(issue.severity == ValidationSeverity.CRITICAL for issue in self.issues)

    @property
    def has_warning(self) -> bool:
        return any(issue.severity == ValidationSeverity.WARNING for issue in self.issues)

    @property
    def issue_codes(self) -> list[IssueCode]:
        return [issue.code for issue in self.issues]

    def to_dict(self) -> dict[str, Any]:
        return {
            "sensor_kind": self.sensor_kind.value,
            "value": self.value,
            "quality_score": self.quality_score,
            "issues": [issue.to_dict() for issue in self.issues],
            "device_id": self.device_id,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "is_valid": self.is_valid,
        }


@dataclass(frozen=True)
class SnapshotValidation:
    """Aggregate outcome of validating one snapshot."""

    aggregate_score: float
    results: tuple[ValidationResult, ...] = ()
    valid_threshold: float = VALID_SCORE_THRESHOLD

    @property
    def is_valid(self) -> bool:
        return self.aggregate_score >= self.valid_threshold

    @property
    def issue_count(self) -> int:
        return sum(len(result.issues) for result in self.results)

    def result_for(self, kind: SensorKind) -> ValidationResult | None:
        for result in self.results:
            if result.sensor_kind == kind:
                return result
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "aggregate_score": self.aggregate_score,
            "is_valid": self.is_valid,
            "results": [result.to_dict() for result in self.results],
        }


@dataclass
class DeviceQualityStatistics:
    """Running quality figures for one device."""

    sample_count: int = 0
    validation_count: int = 0
    issue_count: int = 0
    average_quality: float = 100.0
    last_validation_time: datetime | None = None
    last_results: tuple[ValidationResult, ...] = field(default=(), repr=False)

    def record(self, validation: SnapshotValidation, when: datetime) -> None:
        """Fold one validation into the running averages."""
        self.validation_count += 1
        self.issue_count += validation.issue_count
        self.average_quality += (validation.aggregate_score - self.average_quality) / self.validation_count
        self.last_validation_time = when
        self.last_results = validation.results

    def to_dict(self) -> dict[str, Any]:
        return {
            "sample_count": self.sample_count,
            "average_quality": round(self.average_quality, 4),
            "last_validation_time": self.last_validation_time.isoformat() if self.last_validation_time else None,
            "issue_count": self.issue_count,
            "validation_count": self.validation_count,
        }
