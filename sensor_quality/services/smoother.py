"""
Smoother
========
Per-metric denoising driven by the rule table's smoothing configurations.

The smoother reads raw history (which already ends with the current snapshot
when called through the quality service) and owns only the Kalman state in
the history store. It never appends raw history itself.
"""

from __future__ import annotations

import logging
import math
import threading
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from sensor_quality.domain.exceptions import ValidationError
from sensor_quality.domain.sensors import MetricSnapshot, SensorKind, SmoothingConfiguration
from sensor_quality.enums.common import SmoothingAlgorithm
from sensor_quality.schemas.quality import SmoothingConfigSchema
from sensor_quality.services.history_store import HistoryStore
from sensor_quality.services.rule_table import RuleTable
from sensor_quality.utils import filters
from sensor_quality.utils.concurrency import synchronized
from sensor_quality.utils.time import utc_now

logger = logging.getLogger(__name__)

MIN_HISTORY_SAMPLES = 2


@dataclass
class SmoothingStatistics:
    """Buffer and throughput figures for the smoother."""

    total_buffers: int = 0
    total_data_points: int = 0
    average_buffer_size: float = 0.0
    buffer_sizes: dict[str, int] = field(default_factory=dict)
    kalman_states: int = 0
    total_smoothed_points: int = 0
    last_smoothing_time: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_buffers": self.total_buffers,
            "total_data_points": self.total_data_points,
            "average_buffer_size": self.average_buffer_size,
            "buffer_sizes": dict(self.buffer_sizes),
            "kalman_states": self.kalman_states,
            "total_smoothed_points": self.total_smoothed_points,
            "last_smoothing_time": self.last_smoothing_time.isoformat() if self.last_smoothing_time else None,
        }


def apply_filter(
    config: SmoothingConfiguration,
    history: Sequence[float],
    current: float,
    kalman_prior: float | None = None,
) -> float:
    """
    Run the configured algorithm over ``history`` (oldest first) and ``current``.

    Kalman ignores ``history`` and uses ``kalman_prior`` instead; every other
    algorithm returns ``current`` when fewer than two historical values exist.
    """
    algorithm = config.algorithm
    if algorithm == SmoothingAlgorithm.KALMAN:
        return filters.kalman_step(current, kalman_prior).value

    if len(history) < MIN_HISTORY_SAMPLES:
        return float(current)

    if algorithm == SmoothingAlgorithm.EWMA:
        return filters.ewma(history, current, config.alpha)
    if algorithm == SmoothingAlgorithm.MOVING_AVERAGE:
        return filters.moving_average(history, config.window_size, current)
    if algorithm == SmoothingAlgorithm.MEDIAN:
        return filters.median_filter(history, config.window_size, current)
    if algorithm == SmoothingAlgorithm.SAVITZKY_GOLAY:
        return filters.savitzky_golay(history, config.window_size, current)
    if algorithm == SmoothingAlgorithm.ADAPTIVE:
        return filters.adaptive_ewma(history, current, config.alpha)
    if algorithm == SmoothingAlgorithm.LOW_PASS:
        return filters.low_pass(history, current, config.alpha)
    return float(current)


class Smoother:
    """Filter bank applied per device and metric."""

    def __init__(self, rule_table: RuleTable, history: HistoryStore):
        self.rule_table = rule_table
        self.history = history
        self._lock = threading.Lock()
        self._smoothed_points = 0
        self._last_smoothing_time: datetime | None = None

    def smooth(self, device_id: str, snapshot: MetricSnapshot) -> MetricSnapshot:
        """
        Smooth every present metric of ``snapshot``.

        Each call counts as one smoothed point, whatever the number of metrics.

        Args:
            device_id: Device that produced the snapshot
            snapshot: Raw snapshot

        Returns:
            New snapshot with the same timestamp and smoothed values
        """
        with self.history.device_lock(device_id):
            smoothed = {kind: self._smooth_metric(device_id, kind, value) for kind, value in snapshot.items()}
        self._count()
        return snapshot.with_values(smoothed)

    def smooth_value(self, device_id: str, kind: SensorKind, value: float) -> float:
        """Smooth a single value against the device's history."""
        kind = SensorKind(kind)
        with self.history.device_lock(device_id):
            result = self._smooth_metric(device_id, kind, float(value))
        self._count()
        return result

    def _smooth_metric(self, device_id: str, kind: SensorKind, value: float) -> float:
        config = self.rule_table.smoothing_config_for(kind)

        if config.algorithm == SmoothingAlgorithm.KALMAN:
            states = self.history.kalman_state(device_id, kind)
            result = apply_filter(config, (), value, states[-1] if states else None)
            if math.isfinite(result):
                self.history.push_kalman_state(device_id, kind, result)
        else:
            recent = self.history.values(device_id, kind, config.window_size)
            result = apply_filter(config, recent, value)

        if not math.isfinite(result):
            logger.warning("Smoothing %s for device %s produced %s; keeping raw value", kind, device_id, result)
            return value
        return result

    def smooth_series(
        self,
        series: Sequence[float],
        config: SmoothingConfiguration | SensorKind,
    ) -> list[float]:
        """
        Batch-smooth a flat series, oldest first.

        Each point is smoothed against up to ``window_size`` preceding raw
        points. Kalman state is local to the call and never touches the
        history store.

        Args:
            series: Raw values, oldest first
            config: Smoothing configuration, or a kind to take it from the rule table
        """
        if not isinstance(config, SmoothingConfiguration):
            config = self.rule_table.smoothing_config_for(config)

        values = [float(v) for v in series]
        smoothed: list[float] = []
        kalman_prior: float | None = None
        for index, value in enumerate(values):
            window = values[max(0, index - config.window_size):index]
            result = apply_filter(config, window, value, kalman_prior)
            if not math.isfinite(result):
                result = value
            if config.algorithm == SmoothingAlgorithm.KALMAN:
                kalman_prior = result
            smoothed.append(result)
        return smoothed

    @synchronized
    def _count(self) -> None:
        self._smoothed_points += 1
        self._last_smoothing_time = utc_now()

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def smoothing_config(self, kind: SensorKind) -> SmoothingConfiguration:
        return self.rule_table.smoothing_config_for(kind)

    def update_smoothing_config(
        self,
        kind: SensorKind,
        config: SmoothingConfiguration | Mapping[str, Any],
    ) -> SmoothingConfiguration:
        """
        Replace the smoothing configuration for ``kind``.

        A mapping is validated through SmoothingConfigSchema first; fields it
        omits keep their current values.

        Raises:
            ValidationError: If a mapping does not describe a valid configuration
        """
        if isinstance(config, Mapping):
            config = SmoothingConfigSchema.to_configuration(config, base=self.rule_table.smoothing_config_for(kind))
        elif not isinstance(config, SmoothingConfiguration):
            raise ValidationError(f"Unsupported smoothing configuration: {config!r}")
        self.rule_table.set_smoothing_config(kind, config)
        return config

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    def get_statistics(self) -> SmoothingStatistics:
        buffer_sizes = {device_id: self.history.size(device_id) for device_id in self.history.device_ids()}
        total = sum(buffer_sizes.values())
        with self._lock:
            smoothed_points = self._smoothed_points
            last_time = self._last_smoothing_time
        return SmoothingStatistics(
            total_buffers=len(buffer_sizes),
            total_data_points=total,
            average_buffer_size=total / len(buffer_sizes) if buffer_sizes else 0.0,
            buffer_sizes=buffer_sizes,
            kalman_states=self.history.kalman_state_count(),
            total_smoothed_points=smoothed_points,
            last_smoothing_time=last_time,
        )

    def reset_counters(self) -> None:
        with self._lock:
            self._smoothed_points = 0
            self._last_smoothing_time = None
