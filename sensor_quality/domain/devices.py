"""
Device Collaborator Interfaces
==============================
What the validator needs to know about the device that produced a reading.

The device registry lives outside this package; it is reached through a
``DeviceLookup`` callable returning any object that satisfies ``Device``.
``SensorCapabilities`` and ``SensorDevice`` are plain implementations for
hosts that do not already have their own device model.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol, runtime_checkable

from sensor_quality.domain.sensors.fields import SensorKind
from sensor_quality.utils.time import ensure_utc, utc_now


@runtime_checkable
class DeviceCapabilities(Protocol):
    def supports(self, kind: SensorKind) -> bool: ...

    def is_operating_condition_in_range(self, ambient_temperature: float, ambient_humidity: float) -> bool: ...


@runtime_checkable
class Device(Protocol):
    capabilities: DeviceCapabilities
    needs_calibration: bool

    def is_calibration_overdue(self) -> bool: ...

    def ambient_conditions(self) -> tuple[float, float] | None: ...


# Type alias for device resolver function
DeviceLookup = Callable[[str], "Device | None"]


@dataclass(frozen=True)
class SensorCapabilities:
    """Static capability sheet of a device model."""

    supported_sensors: frozenset[SensorKind] = field(default_factory=frozenset)
    calibration_interval_days: int = 30
    operating_temperature_min: float = -20.0
    operating_temperature_max: float = 60.0
    operating_humidity_min: float = 0.0
    operating_humidity_max: float = 100.0

    def supports(self, kind: SensorKind) -> bool:
        return kind in self.supported_sensors

    def is_operating_condition_in_range(self, ambient_temperature: float, ambient_humidity: float) -> bool:
        return (
            self.operating_temperature_min <= ambient_temperature <= self.operating_temperature_max
            and self.operating_humidity_min <= ambient_humidity <= self.operating_humidity_max
        )


@dataclass
class SensorDevice:
    """
    Minimal device record.

    ``metadata`` may carry the ambient ``temperature`` and ``humidity`` the
    device itself is exposed to.
    """

    id: str
    capabilities: SensorCapabilities
    needs_calibration: bool = False
    last_calibration: datetime | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def is_calibration_overdue(self, now: datetime | None = None) -> bool:
        if self.last_calibration is None:
            return True
        elapsed = ensure_utc(now or utc_now()) - ensure_utc(self.last_calibration)
        return elapsed.days > self.capabilities.calibration_interval_days

    def ambient_conditions(self) -> tuple[float, float] | None:
        temperature = self.metadata.get("temperature")
        humidity = self.metadata.get("humidity")
        if temperature is None or humidity is None:
            return None
        return float(temperature), float(humidity)
