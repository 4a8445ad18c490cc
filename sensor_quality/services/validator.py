"""
Validator
=========
Scores each metric of an incoming snapshot and proposes corrections.

Six independent checks run per present metric:

1. physical plausibility      (critical, x0.1)
2. operational range          (warning,  x0.7)
3. rate of change             (warning,  x0.8)
4. cross-sensor consistency   (x0.9; VPD, temperature and humidity only)
5. statistical outlier        (x0.85)
6. device-specific            (x0.95; needs a device lookup)

Each fired check multiplies the metric's score (starting at 100) by its
penalty; the snapshot's aggregate score is the product of the metric scores.
Checks always look at the history *before* the snapshot being validated; the
snapshot is appended only after scoring.
"""

from __future__ import annotations

import logging
import math
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace
from datetime import datetime

from sensor_quality.domain.devices import Device, DeviceLookup
from sensor_quality.domain.sensors import (
    VALID_SCORE_THRESHOLD,
    DeviceQualityStatistics,
    MetricSnapshot,
    SensorKind,
    SnapshotValidation,
    ValidationIssue,
    ValidationResult,
    ValidationRule,
)
from sensor_quality.enums.common import IssueCode, ValidationSeverity
from sensor_quality.services.history_store import HistoryStore
from sensor_quality.services.rule_table import RuleTable
from sensor_quality.utils.concurrency import synchronized
from sensor_quality.utils.filters import mean_and_std, median
from sensor_quality.utils.psychrometrics import calculate_vpd_kpa
from sensor_quality.utils.time import utc_now, whole_minutes_between

logger = logging.getLogger(__name__)

PHYSICAL_PENALTY = 0.1
OPERATIONAL_PENALTY = 0.7
CHANGE_RATE_PENALTY = 0.8
CONSISTENCY_PENALTY = 0.9
OUTLIER_PENALTY = 0.85
DEVICE_PENALTY = 0.95

VPD_TOLERANCE_KPA = 0.5
TEMPERATURE_SPIKE_SAMPLES = 3
TEMPERATURE_SPIKE_DELTA_C = 10.0
MIN_OUTLIER_SAMPLES = 3
OUTLIER_WARNING_FACTOR = 1.5

OPERATIONAL_BLEND_SAMPLES = 5
OPERATIONAL_BLEND_CURRENT_WEIGHT = 0.3
OUTLIER_MEDIAN_SAMPLES = 10


def clamp_score(score: float) -> float:
    return min(max(score, 0.0), 100.0)


def score_from_penalties(penalties: Iterable[float], start: float = 100.0) -> float:
    """Multiply ``start`` by every penalty and clamp to [0, 100]."""
    score = start
    for penalty in penalties:
        score *= penalty
    return clamp_score(score)


def aggregate_scores(metric_scores: Iterable[float]) -> float:
    """Aggregate per-metric scores: 100 x product of (score / 100), clamped."""
    return score_from_penalties(score / 100.0 for score in metric_scores)


@dataclass(frozen=True)
class _MetricContext:
    """Everything one metric's checks need, captured before the append."""

    device_id: str
    kind: SensorKind
    value: float
    timestamp: datetime
    rule: ValidationRule
    history_size: int
    previous: MetricSnapshot | None
    device: Device | None


class Validator:
    """
    Per-reading quality assessment.

    The validator owns the quality cache (per-device statistics and the last
    results); raw history is shared with the smoother through HistoryStore.
    """

    def __init__(
        self,
        rule_table: RuleTable,
        history: HistoryStore,
        device_lookup: DeviceLookup | None = None,
        valid_threshold: float = VALID_SCORE_THRESHOLD,
    ):
        """
        Initialize the validator.

        Args:
            rule_table: Source of per-kind ValidationRule
            history: Shared raw history
            device_lookup: Optional resolver for device capabilities
            valid_threshold: Aggregate score at or above which a snapshot is valid
        """
        self.rule_table = rule_table
        self.history = history
        self.device_lookup = device_lookup
        self.valid_threshold = valid_threshold
        self._lock = threading.Lock()
        self._stats: dict[str, DeviceQualityStatistics] = {}

        self._checks: tuple[tuple[Callable[[_MetricContext], ValidationIssue | None], float], ...] = (
            (self._check_physical, PHYSICAL_PENALTY),
            (self._check_operational, OPERATIONAL_PENALTY),
            (self._check_change_rate, CHANGE_RATE_PENALTY),
            (self._check_consistency, CONSISTENCY_PENALTY),
            (self._check_outlier, OUTLIER_PENALTY),
            (self._check_device, DEVICE_PENALTY),
        )

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(self, device_id: str, snapshot: MetricSnapshot) -> SnapshotValidation:
        """
        Validate one snapshot, then append it to the device history.

        Args:
            device_id: Device that produced the snapshot
            snapshot: Snapshot to score

        Returns:
            SnapshotValidation with the aggregate score and one result per
            present metric, in SensorKind order
        """
        with self.history.device_lock(device_id):
            history_size = self.history.size(device_id)
            previous = self.history.last_snapshot(device_id)
            device = self._resolve_device(device_id)

            results = tuple(
                self._validate_metric(
                    _MetricContext(
                        device_id=device_id,
                        kind=kind,
                        value=value,
                        timestamp=snapshot.timestamp,
                        rule=self.rule_table.rule_for(kind),
                        history_size=history_size,
                        previous=previous,
                        device=device,
                    )
                )
                for kind, value in snapshot.items()
            )
            validation = SnapshotValidation(
                aggregate_score=aggregate_scores(result.quality_score for result in results),
                results=results,
                valid_threshold=self.valid_threshold,
            )

            self.history.append(device_id, snapshot)
            self.history.mark_validated(device_id, snapshot.timestamp)
            self._record(device_id, validation, snapshot.timestamp)

        logger.debug(
            "Validated %d metrics for device %s: aggregate %.2f, %d issues",
            len(results), device_id, validation.aggregate_score, validation.issue_count,
        )
        return validation

    def is_data_valid(self, device_id: str, snapshot: MetricSnapshot) -> bool:
        """Validate and report whether the aggregate score passes the threshold."""
        return self.validate(device_id, snapshot).is_valid

    def _validate_metric(self, ctx: _MetricContext) -> ValidationResult:
        issues: list[ValidationIssue] = []
        penalties: list[float] = []
        for check, penalty in self._checks:
            issue = check(ctx)
            if issue is None:
                continue
            issues.append(issue)
            penalties.append(penalty)
            if issue.severity == ValidationSeverity.CRITICAL:
                logger.warning("Device %s %s=%s: %s", ctx.device_id, ctx.kind, ctx.value, issue.message)
            else:
                logger.debug("Device %s %s=%s: %s", ctx.device_id, ctx.kind, ctx.value, issue.message)

        return ValidationResult(
            sensor_kind=ctx.kind,
            value=ctx.value,
            quality_score=score_from_penalties(penalties),
            issues=tuple(issues),
            device_id=ctx.device_id,
            timestamp=ctx.timestamp,
        )

    def _resolve_device(self, device_id: str) -> Device | None:
        if self.device_lookup is None:
            return None
        try:
            return self.device_lookup(device_id)
        except Exception as e:
            logger.warning("Device lookup failed for %s, skipping device checks: %s", device_id, e)
            return None

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    def _check_physical(self, ctx: _MetricContext) -> ValidationIssue | None:
        if ctx.rule.is_physically_possible(ctx.value):
            return None
        return ValidationIssue(
            IssueCode.PHYSICAL_IMPOSSIBILITY,
            f"Value outside physically possible range [{ctx.rule.min_physical}, {ctx.rule.max_physical}]",
            ValidationSeverity.CRITICAL,
        )

    def _check_operational(self, ctx: _MetricContext) -> ValidationIssue | None:
        # A physically impossible value is reported once, as physical_impossibility
        if ctx.rule.is_operational(ctx.value) or not ctx.rule.is_physically_possible(ctx.value):
            return None
        return ValidationIssue(
            IssueCode.OPERATIONAL_OUT_OF_RANGE,
            f"Value outside normal operational range [{ctx.rule.min_operational}, {ctx.rule.max_operational}]",
            ValidationSeverity.WARNING,
        )

    def _check_change_rate(self, ctx: _MetricContext) -> ValidationIssue | None:
        if ctx.history_size < 2:
            return None
        last_value = self.history.last_value(ctx.device_id, ctx.kind)
        if last_value is None:
            return None

        elapsed = whole_minutes_between(self.history.last_timestamp(ctx.device_id), ctx.timestamp)
        if elapsed <= 0:
            return None

        change_rate = abs(ctx.value - last_value) / elapsed
        if change_rate <= ctx.rule.max_change_rate_per_minute:
            return None
        return ValidationIssue(
            IssueCode.EXCESSIVE_CHANGE_RATE,
            f"Rate of change exceeds physical limits: {change_rate:.2f} {ctx.kind.unit}/min",
            ValidationSeverity.WARNING,
        )

    def _check_consistency(self, ctx: _MetricContext) -> ValidationIssue | None:
        if ctx.kind == SensorKind.VPD:
            return self._check_vpd_consistency(ctx)
        if ctx.kind == SensorKind.TEMPERATURE:
            return self._check_temperature_consistency(ctx)
        if ctx.kind == SensorKind.HUMIDITY:
            return self._check_humidity_consistency(ctx)
        return None

    def _check_vpd_consistency(self, ctx: _MetricContext) -> ValidationIssue | None:
        if ctx.previous is None:
            return None
        expected = calculate_vpd_kpa(
            ctx.previous.get(SensorKind.TEMPERATURE),
            ctx.previous.get(SensorKind.HUMIDITY),
        )
        if expected is None or abs(ctx.value - expected) <= VPD_TOLERANCE_KPA:
            return None
        return ValidationIssue(
            IssueCode.VPD_INCONSISTENCY,
            f"VPD inconsistent with temperature and humidity: calculated {expected:.2f}, measured {ctx.value:.2f}",
            ValidationSeverity.WARNING,
        )

    def _check_temperature_consistency(self, ctx: _MetricContext) -> ValidationIssue | None:
        recent = self.history.values(ctx.device_id, SensorKind.TEMPERATURE, TEMPERATURE_SPIKE_SAMPLES)
        if len(recent) < TEMPERATURE_SPIKE_SAMPLES:
            return None
        difference = abs(ctx.value - sum(recent) / len(recent))
        if difference <= TEMPERATURE_SPIKE_DELTA_C:
            return None
        return ValidationIssue(
            IssueCode.TEMPERATURE_SPIKE,
            f"Unusual temperature deviation: {difference:.1f}°C from recent average",
            ValidationSeverity.WARNING,
        )

    def _check_humidity_consistency(self, ctx: _MetricContext) -> ValidationIssue | None:
        temperature = ctx.previous.get(SensorKind.TEMPERATURE) if ctx.previous is not None else None
        if temperature is None:
            return None
        if temperature > 35.0 and ctx.value > 90.0:
            return ValidationIssue(
                IssueCode.HUMIDITY_TEMPERATURE_MISMATCH,
                "Unlikely combination: high temperature with very high humidity",
                ValidationSeverity.INFO,
            )
        if temperature < 0.0 and ctx.value < 10.0:
            return ValidationIssue(
                IssueCode.POSSIBLE_SENSOR_FREEZE,
                "Possible sensor freezing: low temperature with very low humidity",
                ValidationSeverity.WARNING,
            )
        return None

    def _check_outlier(self, ctx: _MetricContext) -> ValidationIssue | None:
        values = self.history.values(ctx.device_id, ctx.kind, ctx.rule.smoothing_window_size)
        if len(values) < MIN_OUTLIER_SAMPLES:
            return None
        mean, std = mean_and_std(values)
        if not math.isfinite(std):
            return None
        if std <= 0:
            # Flat history: any departure from it is an unbounded deviation
            if ctx.value == mean:
                return None
            z_score = math.inf
        else:
            z_score = abs((ctx.value - mean) / std)

        if z_score <= ctx.rule.outlier_z_threshold:
            return None
        severity = (
            ValidationSeverity.WARNING
            if z_score > ctx.rule.outlier_z_threshold * OUTLIER_WARNING_FACTOR
            else ValidationSeverity.INFO
        )
        return ValidationIssue(
            IssueCode.STATISTICAL_OUTLIER,
            f"Value is {z_score:.1f} standard deviations from recent average",
            severity,
        )

    def _check_device(self, ctx: _MetricContext) -> ValidationIssue | None:
        device = ctx.device
        if device is None:
            return None

        if not device.capabilities.supports(ctx.kind):
            return ValidationIssue(
                IssueCode.UNSUPPORTED_SENSOR,
                f"Device does not support {ctx.kind} readings",
                ValidationSeverity.CRITICAL,
            )

        ambient = device.ambient_conditions()
        if ambient is not None and not device.capabilities.is_operating_condition_in_range(*ambient):
            return ValidationIssue(
                IssueCode.DEVICE_OUT_OF_OPERATING_RANGE,
                "Device operating outside specified environmental conditions",
                ValidationSeverity.WARNING,
            )

        if device.needs_calibration or device.is_calibration_overdue():
            return ValidationIssue(
                IssueCode.CALIBRATION_NEEDED,
                "Device calibration is overdue or required",
                ValidationSeverity.WARNING,
            )
        return None

    # ------------------------------------------------------------------
    # Correction
    # ------------------------------------------------------------------

    def correct(self, device_id: str, result: ValidationResult) -> float:
        """
        Corrected value for one validation result.

        Only the first correctable issue, in the result's issue order, is
        applied; later issues are ignored even when they are also
        correctable. Corrections read history strictly older than the
        result's own snapshot.

        Args:
            device_id: Device the result belongs to
            result: Result returned by validate()

        Returns:
            Corrected value (the raw value when nothing applies)
        """
        with self.history.device_lock(device_id):
            for issue in result.issues:
                if issue.code == IssueCode.PHYSICAL_IMPOSSIBILITY:
                    return self.rule_table.rule_for(result.sensor_kind).clamp_physical(result.value)
                if issue.code == IssueCode.OPERATIONAL_OUT_OF_RANGE:
                    return self._blend_with_history(device_id, result)
                if issue.code == IssueCode.EXCESSIVE_CHANGE_RATE:
                    return self._limit_change_rate(device_id, result)
                if issue.code == IssueCode.STATISTICAL_OUTLIER:
                    return self._replace_with_median(device_id, result)
        return result.value

    def correct_snapshot(
        self,
        device_id: str,
        snapshot: MetricSnapshot,
        validation: SnapshotValidation,
    ) -> MetricSnapshot:
        """Apply correct() to every validated metric of ``snapshot``."""
        values = dict(snapshot.values)
        for result in validation.results:
            corrected = self.correct(device_id, result)
            if corrected != result.value:
                logger.debug("Corrected %s for device %s: %s -> %s", result.sensor_kind, device_id, result.value, corrected)
            values[result.sensor_kind] = corrected
        return snapshot.with_values(values)

    def _blend_with_history(self, device_id: str, result: ValidationResult) -> float:
        recent = self.history.values(device_id, result.sensor_kind, OPERATIONAL_BLEND_SAMPLES, before=result.timestamp)
        if not recent:
            return result.value
        average = sum(recent) / len(recent)
        return result.value * OPERATIONAL_BLEND_CURRENT_WEIGHT + average * (1 - OPERATIONAL_BLEND_CURRENT_WEIGHT)

    def _limit_change_rate(self, device_id: str, result: ValidationResult) -> float:
        last_value = self.history.last_value(device_id, result.sensor_kind, before=result.timestamp)
        if last_value is None:
            return result.value
        elapsed = whole_minutes_between(
            self.history.last_timestamp(device_id, before=result.timestamp),
            result.timestamp or utc_now(),
        )
        if elapsed <= 0:
            return result.value

        max_change = self.rule_table.rule_for(result.sensor_kind).max_change_rate_per_minute * elapsed
        actual_change = result.value - last_value
        if abs(actual_change) <= max_change:
            return result.value
        return last_value + math.copysign(max_change, actual_change)

    def _replace_with_median(self, device_id: str, result: ValidationResult) -> float:
        recent = self.history.values(device_id, result.sensor_kind, OUTLIER_MEDIAN_SAMPLES, before=result.timestamp)
        if len(recent) < MIN_OUTLIER_SAMPLES:
            return result.value
        return median(recent)

    # ------------------------------------------------------------------
    # Quality cache
    # ------------------------------------------------------------------

    @synchronized
    def _record(self, device_id: str, validation: SnapshotValidation, when: datetime) -> None:
        self._stats.setdefault(device_id, DeviceQualityStatistics()).record(validation, when)

    @synchronized
    def results_for(self, device_id: str) -> tuple[ValidationResult, ...]:
        """Results of the device's most recent validation."""
        stats = self._stats.get(device_id)
        return stats.last_results if stats else ()

    @synchronized
    def average_quality(self, device_id: str) -> float:
        """Running mean aggregate score; 100 for a device never validated."""
        stats = self._stats.get(device_id)
        return stats.average_quality if stats else 100.0

    def get_statistics(self) -> dict[str, DeviceQualityStatistics]:
        """Per-device quality statistics for every device with history or validations."""
        with self._lock:
            cached = {device_id: replace(stats) for device_id, stats in self._stats.items()}
        device_ids = list(dict.fromkeys([*self.history.device_ids(), *cached]))

        statistics: dict[str, DeviceQualityStatistics] = {}
        for device_id in device_ids:
            stats = cached.get(device_id, DeviceQualityStatistics())
            stats.sample_count = self.history.size(device_id)
            stats.last_validation_time = self.history.last_validation(device_id) or stats.last_validation_time
            statistics[device_id] = stats
        return statistics

    def clear_history(self, device_id: str) -> None:
        """Forget a device's history and quality cache."""
        self.history.clear(device_id)
        with self._lock:
            self._stats.pop(device_id, None)

    def clear_all(self) -> None:
        self.history.clear_all()
        with self._lock:
            self._stats.clear()
