"""
Configuration for the Sensor Quality Pipeline
=============================================
Runtime settings loaded from environment variables, plus the logging setup.
Rule and filter constants are not configured here; they live in the rule
table and are replaced through its API.
"""

from __future__ import annotations

import logging
import os
import sys
from contextlib import suppress
from dataclasses import dataclass, field
from logging.handlers import RotatingFileHandler

CONSOLE_HANDLER_NAME = "sensor_quality_console"
FILE_HANDLER_NAME = "sensor_quality_file"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.lower() in {"1", "true", "t", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be an integer.") from None


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be a number.") from None


@dataclass
class QualityConfig:
    """Runtime configuration loaded from environment variables."""

    # Raw history per device (FIFO) and the size periodic compaction trims to
    history_capacity: int = field(default_factory=lambda: _env_int("SENSOR_QUALITY_HISTORY_CAPACITY", 1000))
    compact_to: int = field(default_factory=lambda: _env_int("SENSOR_QUALITY_COMPACT_TO", 500))
    # Kalman state buffer per (device, kind)
    kalman_capacity: int = field(default_factory=lambda: _env_int("SENSOR_QUALITY_KALMAN_CAPACITY", 100))

    valid_threshold: float = field(default_factory=lambda: _env_float("SENSOR_QUALITY_VALID_THRESHOLD", 70.0))

    # Compact every N processed readings; 0 disables automatic compaction
    compaction_interval: int = field(default_factory=lambda: _env_int("SENSOR_QUALITY_COMPACTION_INTERVAL", 0))

    debug: bool = field(default_factory=lambda: _env_bool("SENSOR_QUALITY_DEBUG", False))
    log_file: str | None = field(default_factory=lambda: os.getenv("SENSOR_QUALITY_LOG_FILE") or None)


def validate_config(config: QualityConfig) -> list[str]:
    """
    Check a configuration for problems.

    Returns:
        List of warning messages; raises ValueError for unusable values.
    """
    if config.history_capacity < 1:
        raise ValueError("history_capacity must be >= 1")
    if config.kalman_capacity < 1:
        raise ValueError("kalman_capacity must be >= 1")
    if config.compaction_interval < 0:
        raise ValueError("compaction_interval must be >= 0")

    warnings: list[str] = []
    if config.compact_to > config.history_capacity:
        warnings.append(
            f"compact_to ({config.compact_to}) exceeds history_capacity ({config.history_capacity}); "
            "compaction will never trim"
        )
    if config.compact_to < 1:
        warnings.append("compact_to < 1 empties device history on every compaction")
    if not 0.0 <= config.valid_threshold <= 100.0:
        warnings.append(f"valid_threshold {config.valid_threshold} is outside [0, 100]")
    return warnings


def load_config() -> QualityConfig:
    """Helper for callers to load and validate configuration."""
    config = QualityConfig()
    logger = logging.getLogger("sensor_quality.config")
    for warning in validate_config(config):
        logger.warning("Configuration warning: %s", warning)
    return config


def setup_logging(debug: bool = False, log_file: str | None = None) -> None:
    """Setup logging configuration.

    Safe to call repeatedly: named handlers are added once and only their
    level is refreshed on later calls.
    """
    log_level = logging.DEBUG if debug else logging.INFO

    root = logging.getLogger()
    root.setLevel(log_level)

    has_console = any(getattr(h, "name", "") == CONSOLE_HANDLER_NAME for h in root.handlers)
    has_file = any(getattr(h, "name", "") == FILE_HANDLER_NAME for h in root.handlers)
    added_handler = False

    stream = sys.stdout
    with suppress(AttributeError, ValueError):
        stream.reconfigure(encoding="utf-8", errors="replace")
    formatter = logging.Formatter(LOG_FORMAT)

    if not has_console:
        console_handler = logging.StreamHandler(stream=stream)
        console_handler.name = CONSOLE_HANDLER_NAME
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)
        added_handler = True

    if log_file and not has_file:
        directory = os.path.dirname(log_file)
        if directory:
            os.makedirs(directory, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.name = FILE_HANDLER_NAME
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)
        added_handler = True

    for handler in root.handlers:
        if getattr(handler, "name", "") in {CONSOLE_HANDLER_NAME, FILE_HANDLER_NAME}:
            handler.setLevel(log_level)

    if added_handler:
        root.info("Logging initialized at level: %s", logging.getLevelName(log_level))
