"""
Shared test fixtures for the sensor quality test suite.

Provides:
- Rule table, history store, validator and smoother wired together
- A fixed reference time and snapshot factory helpers
- Device doubles for the device-specific checks

Usage:
    def test_example(validator, make_snapshot):
        validation = validator.validate("dev-1", make_snapshot(temperature=22.0))
        assert validation.is_valid
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from sensor_quality.config import QualityConfig
from sensor_quality.domain.devices import SensorCapabilities, SensorDevice
from sensor_quality.domain.sensors import MetricSnapshot, SensorKind
from sensor_quality.services.history_store import HistoryStore
from sensor_quality.services.quality_service import SensorQualityService
from sensor_quality.services.rule_table import RuleTable
from sensor_quality.services.smoother import Smoother
from sensor_quality.services.validator import Validator

# ---------------------------------------------------------------------------
# Logging: keep test output clean
# ---------------------------------------------------------------------------
logging.getLogger("sensor_quality").setLevel(logging.WARNING)

DEVICE_ID = "dev-1"
BASE_TIME = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


# ========================== Snapshot Helpers ===============================


@pytest.fixture()
def base_time() -> datetime:
    """Fixed reference time; tests offset from it in whole minutes."""
    return BASE_TIME


@pytest.fixture()
def make_snapshot():
    """Factory for snapshots: ``make_snapshot(minutes=0, device_id=..., **values)``."""

    def _make(minutes: float = 0, device_id: str = DEVICE_ID, **values: Any) -> MetricSnapshot:
        return MetricSnapshot(
            device_id=device_id,
            timestamp=BASE_TIME + timedelta(minutes=minutes),
            values={SensorKind(kind): value for kind, value in values.items()},
        )

    return _make


@pytest.fixture()
def seed_history(history, make_snapshot):
    """Append one snapshot per value, one minute apart, starting at ``start`` minutes."""

    def _seed(kind: str, values: list[float], start: float = -100, device_id: str = DEVICE_ID) -> None:
        for offset, value in enumerate(values):
            history.append(device_id, make_snapshot(start + offset, device_id=device_id, **{kind: value}))

    return _seed


# ========================== Engine Fixtures ================================


@pytest.fixture()
def rule_table() -> RuleTable:
    return RuleTable()


@pytest.fixture()
def history() -> HistoryStore:
    return HistoryStore()


@pytest.fixture()
def validator(rule_table, history) -> Validator:
    return Validator(rule_table, history)


@pytest.fixture()
def smoother(rule_table, history) -> Smoother:
    return Smoother(rule_table, history)


@pytest.fixture()
def quality_config() -> QualityConfig:
    return QualityConfig(
        history_capacity=1000,
        compact_to=500,
        kalman_capacity=100,
        valid_threshold=70.0,
        compaction_interval=0,
        debug=False,
        log_file=None,
    )


@pytest.fixture()
def service(quality_config) -> SensorQualityService:
    return SensorQualityService(config=quality_config)


# ========================== Device Doubles =================================


@pytest.fixture()
def calibrated_device() -> SensorDevice:
    """Device supporting every kind, freshly calibrated, no ambient data."""
    return SensorDevice(
        id=DEVICE_ID,
        capabilities=SensorCapabilities(supported_sensors=frozenset(SensorKind)),
        last_calibration=datetime.now(timezone.utc),
    )

