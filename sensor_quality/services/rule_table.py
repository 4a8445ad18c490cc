"""
Rule Table
==========
Per-kind validation rules and smoothing configurations.

The table is total over SensorKind: construction fails if any kind is
missing, so a lookup can never miss at runtime. Entries are immutable and
are replaced wholesale.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping

from sensor_quality.domain.exceptions import RuleConfigurationError
from sensor_quality.domain.sensors import SensorKind, SmoothingConfiguration, ValidationRule
from sensor_quality.enums.common import SmoothingAlgorithm
from sensor_quality.utils.concurrency import synchronized

logger = logging.getLogger(__name__)


DEFAULT_VALIDATION_RULES: dict[SensorKind, ValidationRule] = {
    SensorKind.TEMPERATURE: ValidationRule(
        min_physical=-50.0, max_physical=100.0,
        min_operational=-20.0, max_operational=60.0,
        max_change_rate_per_minute=5.0, smoothing_window_size=5, outlier_z_threshold=3.0,
    ),
    SensorKind.HUMIDITY: ValidationRule(
        min_physical=0.0, max_physical=100.0,
        min_operational=5.0, max_operational=95.0,
        max_change_rate_per_minute=20.0, smoothing_window_size=5, outlier_z_threshold=3.0,
    ),
    SensorKind.PH: ValidationRule(
        min_physical=0.0, max_physical=14.0,
        min_operational=3.0, max_operational=11.0,
        max_change_rate_per_minute=2.0, smoothing_window_size=10, outlier_z_threshold=2.5,
    ),
    SensorKind.EC: ValidationRule(
        min_physical=0.0, max_physical=10.0,
        min_operational=0.1, max_operational=5.0,
        max_change_rate_per_minute=1.0, smoothing_window_size=8, outlier_z_threshold=3.0,
    ),
    SensorKind.CO2: ValidationRule(
        min_physical=0.0, max_physical=5000.0,
        min_operational=200.0, max_operational=2000.0,
        max_change_rate_per_minute=100.0, smoothing_window_size=5, outlier_z_threshold=3.0,
    ),
    SensorKind.VPD: ValidationRule(
        min_physical=0.0, max_physical=10.0,
        min_operational=0.2, max_operational=4.0,
        max_change_rate_per_minute=1.0, smoothing_window_size=5, outlier_z_threshold=2.5,
    ),
    SensorKind.LIGHT_INTENSITY: ValidationRule(
        min_physical=0.0, max_physical=3000.0,
        min_operational=0.0, max_operational=2000.0,
        max_change_rate_per_minute=500.0, smoothing_window_size=3, outlier_z_threshold=3.0,
    ),
    SensorKind.SOIL_MOISTURE: ValidationRule(
        min_physical=0.0, max_physical=100.0,
        min_operational=5.0, max_operational=90.0,
        max_change_rate_per_minute=15.0, smoothing_window_size=10, outlier_z_threshold=2.5,
    ),
    SensorKind.WATER_LEVEL: ValidationRule(
        min_physical=0.0, max_physical=100.0,
        min_operational=0.0, max_operational=100.0,
        max_change_rate_per_minute=50.0, smoothing_window_size=5, outlier_z_threshold=3.0,
    ),
    SensorKind.AIR_PRESSURE: ValidationRule(
        min_physical=800.0, max_physical=1200.0,
        min_operational=900.0, max_operational=1100.0,
        max_change_rate_per_minute=10.0, smoothing_window_size=10, outlier_z_threshold=2.0,
    ),
    SensorKind.WIND_SPEED: ValidationRule(
        min_physical=0.0, max_physical=50.0,
        min_operational=0.0, max_operational=20.0,
        max_change_rate_per_minute=5.0, smoothing_window_size=5, outlier_z_threshold=3.0,
    ),
}


DEFAULT_SMOOTHING_CONFIGS: dict[SensorKind, SmoothingConfiguration] = {
    SensorKind.TEMPERATURE: SmoothingConfiguration(SmoothingAlgorithm.EWMA, 10, 0.3, 1.0, True),
    SensorKind.HUMIDITY: SmoothingConfiguration(SmoothingAlgorithm.EWMA, 8, 0.25, 2.0, True),
    SensorKind.PH: SmoothingConfiguration(SmoothingAlgorithm.KALMAN, 15, 0.1, 0.1, True),
    SensorKind.EC: SmoothingConfiguration(SmoothingAlgorithm.SAVITZKY_GOLAY, 7, 0.2, 0.2, False),
    SensorKind.CO2: SmoothingConfiguration(SmoothingAlgorithm.MOVING_AVERAGE, 5, 0.4, 50.0, True),
    SensorKind.VPD: SmoothingConfiguration(SmoothingAlgorithm.EWMA, 12, 0.35, 0.2, True),
    SensorKind.LIGHT_INTENSITY: SmoothingConfiguration(SmoothingAlgorithm.MEDIAN, 3, 0.5, 100.0, False),
    SensorKind.SOIL_MOISTURE: SmoothingConfiguration(SmoothingAlgorithm.KALMAN, 20, 0.15, 1.0, True),
    SensorKind.WATER_LEVEL: SmoothingConfiguration(SmoothingAlgorithm.MOVING_AVERAGE, 6, 0.3, 5.0, False),
    SensorKind.AIR_PRESSURE: SmoothingConfiguration(SmoothingAlgorithm.LOW_PASS, 10, 0.2, 1.0, False),
    SensorKind.WIND_SPEED: SmoothingConfiguration(SmoothingAlgorithm.ADAPTIVE, 10, 0.3, 1.0, True),
}


def _require_total(name: str, table: Mapping) -> None:
    missing = [kind.value for kind in SensorKind if kind not in table]
    if missing:
        raise RuleConfigurationError(f"{name} missing entries for: {', '.join(missing)}", detail={"missing": missing})


class RuleTable:
    """
    Lookup of ValidationRule and SmoothingConfiguration by SensorKind.

    Reads are plain dict lookups; replacements swap a whole entry under a
    lock so readers always see either the old or the new value.
    """

    def __init__(
        self,
        rules: Mapping[SensorKind, ValidationRule] | None = None,
        smoothing_configs: Mapping[SensorKind, SmoothingConfiguration] | None = None,
    ):
        """
        Initialize the rule table.

        Args:
            rules: Validation rules per kind (defaults to DEFAULT_VALIDATION_RULES)
            smoothing_configs: Smoothing configs per kind (defaults to DEFAULT_SMOOTHING_CONFIGS)

        Raises:
            RuleConfigurationError: If either mapping does not cover every SensorKind
        """
        self._lock = threading.Lock()
        if rules is None:
            rules = DEFAULT_VALIDATION_RULES
        if smoothing_configs is None:
            smoothing_configs = DEFAULT_SMOOTHING_CONFIGS
        self._rules: dict[SensorKind, ValidationRule] = dict(rules)
        self._smoothing: dict[SensorKind, SmoothingConfiguration] = dict(smoothing_configs)
        _require_total("Validation rule table", self._rules)
        _require_total("Smoothing configuration table", self._smoothing)

    @staticmethod
    def _kind(kind: SensorKind) -> SensorKind:
        try:
            return SensorKind(kind)
        except ValueError:
            raise RuleConfigurationError(f"Unknown sensor kind: {kind!r}") from None

    def kinds(self) -> list[SensorKind]:
        return list(SensorKind)

    def rule_for(self, kind: SensorKind) -> ValidationRule:
        return self._rules[self._kind(kind)]

    def smoothing_config_for(self, kind: SensorKind) -> SmoothingConfiguration:
        return self._smoothing[self._kind(kind)]

    @synchronized
    def set_rule(self, kind: SensorKind, rule: ValidationRule) -> None:
        """Replace the validation rule for ``kind``."""
        kind = self._kind(kind)
        self._rules[kind] = rule
        logger.info("Validation rule for %s replaced: %s", kind, rule.to_dict())

    @synchronized
    def set_smoothing_config(self, kind: SensorKind, config: SmoothingConfiguration) -> None:
        """Replace the smoothing configuration for ``kind``."""
        kind = self._kind(kind)
        self._smoothing[kind] = config
        logger.info("Smoothing configuration for %s replaced: %s", kind, config.to_dict())
