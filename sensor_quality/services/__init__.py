"""
Services Module
===============

Stateful engines of the sensor quality pipeline and the facade tying them
together.
"""

from sensor_quality.services.history_store import HistoryStore
from sensor_quality.services.quality_service import ProcessedReading, SensorQualityService
from sensor_quality.services.rule_table import DEFAULT_SMOOTHING_CONFIGS, DEFAULT_VALIDATION_RULES, RuleTable
from sensor_quality.services.smoother import Smoother, SmoothingStatistics
from sensor_quality.services.validator import Validator

__all__ = [
    "DEFAULT_SMOOTHING_CONFIGS",
    "DEFAULT_VALIDATION_RULES",
    "HistoryStore",
    "ProcessedReading",
    "RuleTable",
    "SensorQualityService",
    "Smoother",
    "SmoothingStatistics",
    "Validator",
]
