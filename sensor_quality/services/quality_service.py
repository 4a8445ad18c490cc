"""
Sensor Quality Service
======================
Facade that wires the rule table, history store, validator and smoother.

Typical use::

    service = SensorQualityService()
    processed = service.process("dev-1", {"temperature": 22.4, "humidity": 55})
    processed.validation.aggregate_score
    processed.smoothed.get(SensorKind.TEMPERATURE)
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sensor_quality.config import QualityConfig, load_config, validate_config
from sensor_quality.domain.devices import DeviceLookup
from sensor_quality.domain.sensors import (
    MetricSnapshot,
    SensorKind,
    SmoothingConfiguration,
    SnapshotValidation,
    ValidationResult,
)
from sensor_quality.services.history_store import HistoryStore
from sensor_quality.services.rule_table import RuleTable
from sensor_quality.services.smoother import Smoother, SmoothingStatistics
from sensor_quality.services.validator import Validator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessedReading:
    """Everything process() produced for one snapshot."""

    device_id: str
    snapshot: MetricSnapshot
    validation: SnapshotValidation | None = None
    corrected: MetricSnapshot | None = None
    smoothed: MetricSnapshot | None = None

    @property
    def output(self) -> MetricSnapshot:
        """Most refined snapshot available: smoothed, else corrected, else raw."""
        return self.smoothed or self.corrected or self.snapshot

    @property
    def is_valid(self) -> bool | None:
        return self.validation.is_valid if self.validation is not None else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "device_id": self.device_id,
            "snapshot": self.snapshot.to_dict(),
            "validation": self.validation.to_dict() if self.validation else None,
            "corrected": self.corrected.to_dict() if self.corrected else None,
            "smoothed": self.smoothed.to_dict() if self.smoothed else None,
        }


class SensorQualityService:
    """
    Entry point for hosts feeding device readings.

    Owns one HistoryStore shared by a Validator and a Smoother. Readings of
    one device are serialised on that device's lock; different devices run
    independently.
    """

    def __init__(
        self,
        config: QualityConfig | None = None,
        rule_table: RuleTable | None = None,
        history: HistoryStore | None = None,
        device_lookup: DeviceLookup | None = None,
    ):
        """
        Initialize the service.

        Args:
            config: Runtime configuration (loaded from the environment when None)
            rule_table: Rule table (defaults for every kind when None)
            history: History store (sized from ``config`` when None)
            device_lookup: Optional resolver used by device-specific checks
        """
        if config is None:
            config = load_config()
        else:
            for warning in validate_config(config):
                logger.warning("Configuration warning: %s", warning)
        self.config = config

        self.rule_table = rule_table or RuleTable()
        self.history = history or HistoryStore(
            capacity=config.history_capacity,
            compact_to=config.compact_to,
            kalman_capacity=config.kalman_capacity,
        )
        self.validator = Validator(
            self.rule_table,
            self.history,
            device_lookup=device_lookup,
            valid_threshold=config.valid_threshold,
        )
        self.smoother = Smoother(self.rule_table, self.history)

        self._lock = threading.Lock()
        self._processed = 0

        logger.info(
            "SensorQualityService initialized (history=%d, compact_to=%d, compaction_interval=%d)",
            self.history.capacity, self.history.compact_to, config.compaction_interval,
        )

    @staticmethod
    def _as_snapshot(
        device_id: str,
        snapshot: MetricSnapshot | Mapping[str, Any],
        timestamp: datetime | None = None,
    ) -> MetricSnapshot:
        if isinstance(snapshot, MetricSnapshot):
            return snapshot
        return MetricSnapshot.from_readings(device_id, snapshot, timestamp)

    # ------------------------------------------------------------------
    # Per-reading operations
    # ------------------------------------------------------------------

    def process(
        self,
        device_id: str,
        snapshot: MetricSnapshot | Mapping[str, Any],
        *,
        validate: bool = True,
        smooth: bool = True,
        correct: bool = False,
        timestamp: datetime | None = None,
    ) -> ProcessedReading:
        """
        Run one snapshot through the pipeline.

        The snapshot is appended to history exactly once: by the validator
        when ``validate`` is set, otherwise here. Smoothing then sees it as
        the newest historical entry. With ``correct`` the corrected values
        are what gets smoothed.

        Args:
            device_id: Device that produced the reading
            snapshot: MetricSnapshot or raw ``{field: value}`` payload
            validate: Score the snapshot
            smooth: Smooth the snapshot
            correct: Apply corrections (requires ``validate``)
            timestamp: Timestamp for a raw payload (now when None)

        Returns:
            ProcessedReading with whichever stages ran
        """
        snapshot = self._as_snapshot(device_id, snapshot, timestamp)

        with self.history.device_lock(device_id):
            if validate:
                validation = self.validator.validate(device_id, snapshot)
            else:
                validation = None
                self.history.append(device_id, snapshot)

            corrected = None
            if correct and validation is not None:
                corrected = self.validator.correct_snapshot(device_id, snapshot, validation)

            smoothed = self.smoother.smooth(device_id, corrected or snapshot) if smooth else None

        self._after_process()
        return ProcessedReading(
            device_id=device_id,
            snapshot=snapshot,
            validation=validation,
            corrected=corrected,
            smoothed=smoothed,
        )

    def _after_process(self) -> None:
        interval = self.config.compaction_interval
        with self._lock:
            self._processed += 1
            due = interval > 0 and self._processed % interval == 0
        if due:
            self.compact()

    def validate(
        self,
        device_id: str,
        snapshot: MetricSnapshot | Mapping[str, Any],
        timestamp: datetime | None = None,
    ) -> SnapshotValidation:
        """Validate a snapshot (and append it to history)."""
        return self.validator.validate(device_id, self._as_snapshot(device_id, snapshot, timestamp))

    def correct(self, device_id: str, result: ValidationResult) -> float:
        return self.validator.correct(device_id, result)

    def smooth(
        self,
        device_id: str,
        snapshot: MetricSnapshot | Mapping[str, Any],
        timestamp: datetime | None = None,
    ) -> MetricSnapshot:
        """Smooth a snapshot against existing history without appending it."""
        return self.smoother.smooth(device_id, self._as_snapshot(device_id, snapshot, timestamp))

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def compact(self) -> int:
        dropped = self.history.compact()
        if dropped:
            logger.info("Compacted sensor history: %d snapshots dropped", dropped)
        return dropped

    def clear_history(self, device_id: str) -> None:
        """Forget history, Kalman state and quality statistics of one device."""
        self.validator.clear_history(device_id)
        logger.info("Cleared quality history for device %s", device_id)

    def clear_all(self) -> None:
        self.validator.clear_all()
        self.smoother.reset_counters()
        with self._lock:
            self._processed = 0
        logger.info("Cleared quality history for all devices")

    # ------------------------------------------------------------------
    # Configuration and statistics
    # ------------------------------------------------------------------

    def update_smoothing_config(
        self,
        kind: SensorKind,
        config: SmoothingConfiguration | Mapping[str, Any],
    ) -> SmoothingConfiguration:
        return self.smoother.update_smoothing_config(kind, config)

    def get_statistics(self) -> dict[str, dict[str, Any]]:
        """Per-device quality statistics as plain dicts."""
        return {device_id: stats.to_dict() for device_id, stats in self.validator.get_statistics().items()}

    def get_smoothing_statistics(self) -> SmoothingStatistics:
        return self.smoother.get_statistics()
