"""Tests for the SensorQualityService facade."""

from dataclasses import replace

import pytest

from sensor_quality.domain.sensors import SensorKind
from sensor_quality.enums.common import IssueCode, SmoothingAlgorithm
from sensor_quality.services.quality_service import SensorQualityService

DEVICE_ID = "dev-1"


class TestProcess:
    def test_validates_appends_and_smooths(self, service, make_snapshot):
        processed = service.process(DEVICE_ID, make_snapshot(0, temperature=22.0, humidity=55.0))

        assert processed.validation.aggregate_score == pytest.approx(100.0)
        assert processed.is_valid is True
        assert processed.smoothed.get(SensorKind.TEMPERATURE) == 22.0
        assert processed.corrected is None
        assert processed.output is processed.smoothed
        assert service.history.size(DEVICE_ID) == 1

    def test_appends_when_validation_disabled(self, service, make_snapshot):
        processed = service.process(DEVICE_ID, make_snapshot(0, ec=1.5), validate=False)
        assert processed.validation is None
        assert processed.is_valid is None
        assert service.history.size(DEVICE_ID) == 1

    def test_raw_payload_is_accepted(self, service, base_time):
        processed = service.process(DEVICE_ID, {"temp": "21.0", "rh": 50, "battery": 3.3}, timestamp=base_time)
        assert processed.snapshot.present_kinds() == [SensorKind.TEMPERATURE, SensorKind.HUMIDITY]
        assert processed.snapshot.timestamp == base_time

    def test_correction_feeds_smoothing(self, service, make_snapshot):
        processed = service.process(DEVICE_ID, make_snapshot(0, temperature=150.0), correct=True)
        assert processed.validation.result_for(SensorKind.TEMPERATURE).issue_codes == [
            IssueCode.PHYSICAL_IMPOSSIBILITY
        ]
        assert processed.corrected.get(SensorKind.TEMPERATURE) == 100.0
        assert processed.smoothed.get(SensorKind.TEMPERATURE) == 100.0

    def test_smoothing_can_be_skipped(self, service, make_snapshot):
        processed = service.process(DEVICE_ID, make_snapshot(0, ph=6.0), smooth=False)
        assert processed.smoothed is None
        assert processed.output is processed.snapshot
        assert service.history.kalman_state(DEVICE_ID, SensorKind.PH) == []

    def test_constant_stream_is_stable(self, service, make_snapshot):
        for minute in range(12):
            processed = service.process(DEVICE_ID, make_snapshot(minute, temperature=21.0, humidity=50.0))
        assert processed.smoothed.get(SensorKind.TEMPERATURE) == 21.0
        assert processed.smoothed.get(SensorKind.HUMIDITY) == 50.0
        assert processed.validation.issue_count == 0

    def test_to_dict(self, service, make_snapshot):
        data = service.process(DEVICE_ID, make_snapshot(0, co2=800.0)).to_dict()
        assert data["device_id"] == DEVICE_ID
        assert data["validation"]["aggregate_score"] == pytest.approx(100.0)
        assert data["corrected"] is None


class TestDelegates:
    def test_validate_and_correct(self, service, make_snapshot):
        validation = service.validate(DEVICE_ID, make_snapshot(0, humidity=120.0))
        result = validation.result_for(SensorKind.HUMIDITY)
        assert service.correct(DEVICE_ID, result) == 100.0

    def test_smooth_does_not_append(self, service, make_snapshot):
        service.smooth(DEVICE_ID, make_snapshot(0, temperature=20.0))
        assert service.history.size(DEVICE_ID) == 0

    def test_update_smoothing_config_from_mapping(self, service):
        config = service.update_smoothing_config(SensorKind.CO2, {"algorithm": "median", "window_size": 3})
        assert config.algorithm is SmoothingAlgorithm.MEDIAN
        assert service.rule_table.smoothing_config_for(SensorKind.CO2) is config


class TestStatisticsAndMaintenance:
    def test_statistics_shape(self, service, make_snapshot):
        service.process(DEVICE_ID, make_snapshot(0, temperature=22.0))
        service.process(DEVICE_ID, make_snapshot(1, temperature=150.0))

        stats = service.get_statistics()[DEVICE_ID]
        assert set(stats) == {
            "sample_count",
            "average_quality",
            "last_validation_time",
            "issue_count",
            "validation_count",
        }
        assert stats["sample_count"] == 2
        assert stats["issue_count"] == 1
        assert stats["average_quality"] == pytest.approx(55.0)

        smoothing = service.get_smoothing_statistics()
        assert smoothing.total_smoothed_points == 2

    def test_clear_history(self, service, make_snapshot):
        service.process(DEVICE_ID, make_snapshot(0, ph=6.0))
        service.clear_history(DEVICE_ID)
        assert service.get_statistics() == {}
        assert service.history.kalman_state(DEVICE_ID, SensorKind.PH) == []

    def test_clear_all(self, service, make_snapshot):
        service.process("a", make_snapshot(0, device_id="a", ph=6.0))
        service.process("b", make_snapshot(0, device_id="b", ph=6.0))
        service.clear_all()
        assert service.get_statistics() == {}
        assert service.get_smoothing_statistics().total_smoothed_points == 0

    def test_manual_compaction(self, quality_config, make_snapshot):
        service = SensorQualityService(config=replace(quality_config, history_capacity=10, compact_to=3))
        for minute in range(8):
            service.process(DEVICE_ID, make_snapshot(minute, co2=800.0), smooth=False)
        assert service.compact() == 5
        assert service.history.size(DEVICE_ID) == 3

    def test_automatic_compaction(self, quality_config, make_snapshot):
        config = replace(quality_config, history_capacity=10, compact_to=2, compaction_interval=4)
        service = SensorQualityService(config=config)
        for minute in range(3):
            service.process(DEVICE_ID, make_snapshot(minute, co2=800.0))
        assert service.history.size(DEVICE_ID) == 3

        service.process(DEVICE_ID, make_snapshot(3, co2=800.0))
        assert service.history.size(DEVICE_ID) == 2

    def test_history_capacity_is_respected(self, quality_config, make_snapshot):
        service = SensorQualityService(config=replace(quality_config, history_capacity=5, compact_to=2))
        for minute in range(9):
            service.process(DEVICE_ID, make_snapshot(minute, co2=800.0))
        assert service.history.size(DEVICE_ID) == 5
        assert service.get_statistics()[DEVICE_ID]["validation_count"] == 9

    def test_config_warnings_are_logged(self, quality_config, caplog):
        with caplog.at_level("WARNING", logger="sensor_quality.services.quality_service"):
            SensorQualityService(config=replace(quality_config, compact_to=5000))
        assert "compact_to" in caplog.text
