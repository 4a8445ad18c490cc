"""
Metric Snapshot Value Object
============================
Immutable multi-metric sample taken from one device in one acquisition cycle.
"""

from __future__ import annotations

import math
import numbers
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any

from sensor_quality.domain.sensors.fields import SensorKind, get_sensor_kind
from sensor_quality.utils.time import coerce_datetime, ensure_utc, utc_now


def coerce_float(value: Any) -> float | None:
    """
    Safely coerce a value to float.

    Returns None for:
    - None values
    - Boolean values (to avoid True->1.0)
    - Unparseable strings
    - NaN and infinities
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, numbers.Real):
        result = float(value)
    elif isinstance(value, str):
        try:
            result = float(value)
        except (ValueError, TypeError):
            return None
    else:
        return None
    return result if math.isfinite(result) else None


@dataclass(frozen=True)
class MetricSnapshot:
    """
    One timestamped sample from a device.

    A kind missing from ``values`` was not measured this cycle. Values that
    are not finite numbers are dropped on construction.
    """

    device_id: str
    timestamp: datetime
    values: Mapping[SensorKind, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        cleaned: dict[SensorKind, float] = {}
        for kind, value in self.values.items():
            number = coerce_float(value)
            if number is not None:
                cleaned[SensorKind(kind)] = number
        object.__setattr__(self, "timestamp", ensure_utc(self.timestamp))
        object.__setattr__(self, "values", MappingProxyType(cleaned))

    @classmethod
    def from_readings(
        cls,
        device_id: str,
        readings: Mapping[str, Any],
        timestamp: datetime | str | None = None,
    ) -> MetricSnapshot:
        """
        Build a snapshot from a raw ``{field: value}`` payload.

        Field names are resolved through the alias table; unknown fields and
        non-numeric values are dropped. ``timestamp`` may be an ISO-8601
        string; a missing or unparseable one means "now".
        """
        values: dict[SensorKind, float] = {}
        for name, raw in (readings or {}).items():
            kind = get_sensor_kind(name)
            if kind is None:
                continue
            number = coerce_float(raw)
            if number is not None:
                values[kind] = number
        return cls(device_id=device_id, timestamp=coerce_datetime(timestamp) or utc_now(), values=values)

    def get(self, kind: SensorKind) -> float | None:
        """Value for ``kind`` or None when not measured."""
        return self.values.get(kind)

    def present_kinds(self) -> list[SensorKind]:
        """Measured kinds in SensorKind declaration order."""
        return [kind for kind in SensorKind if kind in self.values]

    def items(self) -> Iterator[tuple[SensorKind, float]]:
        for kind in self.present_kinds():
            yield kind, self.values[kind]

    def with_value(self, kind: SensorKind, value: float) -> MetricSnapshot:
        """Return a copy with ``kind`` set to ``value``."""
        updated = dict(self.values)
        updated[kind] = value
        return MetricSnapshot(device_id=self.device_id, timestamp=self.timestamp, values=updated)

    def with_values(self, values: Mapping[SensorKind, float]) -> MetricSnapshot:
        """Return a copy whose measurements are replaced by ``values``."""
        return MetricSnapshot(device_id=self.device_id, timestamp=self.timestamp, values=values)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary"""
        return {
            "device_id": self.device_id,
            "timestamp": self.timestamp.isoformat(),
            "values": {kind.value: value for kind, value in self.items()},
        }
