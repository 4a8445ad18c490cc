"""Tests for the concrete device collaborator implementations."""

from datetime import datetime, timedelta, timezone

from sensor_quality.domain.devices import Device, DeviceCapabilities, SensorCapabilities, SensorDevice
from sensor_quality.domain.sensors import SensorKind

NOW = datetime(2024, 6, 1, tzinfo=timezone.utc)


def _device(**kwargs) -> SensorDevice:
    capabilities = SensorCapabilities(supported_sensors=frozenset({SensorKind.TEMPERATURE, SensorKind.HUMIDITY}))
    return SensorDevice(id="dev-1", capabilities=capabilities, **kwargs)


class TestSensorCapabilities:
    def test_supports(self):
        capabilities = _device().capabilities
        assert capabilities.supports(SensorKind.TEMPERATURE)
        assert not capabilities.supports(SensorKind.CO2)

    def test_operating_range_is_inclusive(self):
        capabilities = SensorCapabilities()
        assert capabilities.is_operating_condition_in_range(60.0, 100.0)
        assert capabilities.is_operating_condition_in_range(-20.0, 0.0)
        assert not capabilities.is_operating_condition_in_range(61.0, 50.0)
        assert not capabilities.is_operating_condition_in_range(25.0, 101.0)


class TestSensorDevice:
    def test_satisfies_protocols(self):
        device = _device()
        assert isinstance(device, Device)
        assert isinstance(device.capabilities, DeviceCapabilities)

    def test_never_calibrated_is_overdue(self):
        assert _device().is_calibration_overdue(now=NOW)

    def test_calibration_interval_counts_whole_days(self):
        assert not _device(last_calibration=NOW - timedelta(days=30, hours=23)).is_calibration_overdue(now=NOW)
        assert _device(last_calibration=NOW - timedelta(days=31)).is_calibration_overdue(now=NOW)

    def test_ambient_conditions_from_metadata(self):
        assert _device().ambient_conditions() is None
        assert _device(metadata={"temperature": 70, "humidity": "40"}).ambient_conditions() == (70.0, 40.0)
