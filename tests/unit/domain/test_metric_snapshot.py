"""Tests for MetricSnapshot, field aliases and value coercion."""

from datetime import datetime, timedelta, timezone

import pytest

from sensor_quality.domain.sensors import MetricSnapshot, SensorKind, coerce_float, get_sensor_kind


class TestCoerceFloat:
    @pytest.mark.parametrize("raw, expected", [(1, 1.0), (2.5, 2.5), ("3.25", 3.25), (" 4 ", 4.0)])
    def test_numeric_values(self, raw, expected):
        assert coerce_float(raw) == expected

    @pytest.mark.parametrize("raw", [None, True, False, "abc", float("nan"), float("inf"), [1.0], {}])
    def test_rejected_values(self, raw):
        assert coerce_float(raw) is None


class TestSensorKind:
    def test_aliases_resolve(self):
        assert get_sensor_kind("temp") is SensorKind.TEMPERATURE
        assert get_sensor_kind("RH") is SensorKind.HUMIDITY
        assert get_sensor_kind(" ppfd ") is SensorKind.LIGHT_INTENSITY

    def test_canonical_names_resolve(self):
        for kind in SensorKind:
            assert get_sensor_kind(kind.value) is kind

    def test_unknown_field_returns_none(self):
        assert get_sensor_kind("battery") is None

    def test_units(self):
        assert SensorKind.TEMPERATURE.unit == "°C"
        assert SensorKind.VPD.unit == "kPa"
        assert str(SensorKind.CO2) == "co2"


class TestMetricSnapshot:
    def test_from_readings_resolves_and_filters(self):
        snapshot = MetricSnapshot.from_readings(
            "dev-1",
            {"temp": "21.5", "humidity": 55, "battery": 90, "co2": None, "ph": "n/a"},
        )
        assert snapshot.get(SensorKind.TEMPERATURE) == 21.5
        assert snapshot.get(SensorKind.HUMIDITY) == 55.0
        assert snapshot.get(SensorKind.CO2) is None
        assert snapshot.present_kinds() == [SensorKind.TEMPERATURE, SensorKind.HUMIDITY]

    def test_naive_timestamp_is_taken_as_utc(self):
        snapshot = MetricSnapshot("dev-1", datetime(2024, 1, 1, 8, 0), {SensorKind.PH: 6.0})
        assert snapshot.timestamp.tzinfo is not None
        assert snapshot.timestamp.utcoffset() == timedelta(0)

    def test_values_are_read_only(self):
        snapshot = MetricSnapshot("dev-1", datetime.now(timezone.utc), {SensorKind.PH: 6.0})
        with pytest.raises(TypeError):
            snapshot.values[SensorKind.PH] = 7.0

    def test_items_follow_kind_order(self):
        snapshot = MetricSnapshot(
            "dev-1",
            datetime.now(timezone.utc),
            {SensorKind.CO2: 800.0, SensorKind.TEMPERATURE: 22.0, "humidity": 50.0},
        )
        assert [kind for kind, _ in snapshot.items()] == [SensorKind.TEMPERATURE, SensorKind.HUMIDITY, SensorKind.CO2]

    def test_with_value_keeps_timestamp_and_original(self):
        snapshot = MetricSnapshot("dev-1", datetime.now(timezone.utc), {SensorKind.PH: 6.0})
        updated = snapshot.with_value(SensorKind.PH, 6.5)
        assert updated.get(SensorKind.PH) == 6.5
        assert snapshot.get(SensorKind.PH) == 6.0
        assert updated.timestamp == snapshot.timestamp

    def test_to_dict(self):
        timestamp = datetime(2024, 1, 1, tzinfo=timezone.utc)
        snapshot = MetricSnapshot("dev-1", timestamp, {SensorKind.EC: 1.5})
        assert snapshot.to_dict() == {
            "device_id": "dev-1",
            "timestamp": "2024-01-01T00:00:00+00:00",
            "values": {"ec": 1.5},
        }

    def test_from_readings_parses_iso_timestamp(self):
        snapshot = MetricSnapshot.from_readings("dev-1", {"ph": 6.0}, timestamp="2024-01-01T10:00:00Z")
        assert snapshot.timestamp == datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)

    def test_constructor_drops_non_finite_values(self):
        snapshot = MetricSnapshot(
            "dev-1",
            datetime.now(timezone.utc),
            {SensorKind.TEMPERATURE: float("nan"), SensorKind.HUMIDITY: float("inf"), SensorKind.PH: 6.0},
        )
        assert snapshot.present_kinds() == [SensorKind.PH]
        assert snapshot.get(SensorKind.TEMPERATURE) is None
