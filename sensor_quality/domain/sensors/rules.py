"""
Validation Rules and Smoothing Configuration
============================================
Static per-kind thresholds for the validator and filter settings for the
smoother. Both are immutable; reconfiguration replaces an entry wholesale.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from typing import Any

from sensor_quality.domain.exceptions import RuleConfigurationError
from sensor_quality.enums.common import SmoothingAlgorithm


@dataclass(frozen=True)
class ValidationRule:
    """
    Bounds and thresholds for one sensor kind.

    ``min_physical``/``max_physical`` are hard sensor limits, the operational
    pair is the expected normal envelope. ``smoothing_window_size`` doubles as
    the outlier sample window.
    """

    min_physical: float
    max_physical: float
    min_operational: float
    max_operational: float
    max_change_rate_per_minute: float
    smoothing_window_size: int
    outlier_z_threshold: float

    def __post_init__(self) -> None:
        if not (self.min_physical <= self.min_operational <= self.max_operational <= self.max_physical):
            raise RuleConfigurationError(
                "Rule bounds must satisfy min_physical <= min_operational <= max_operational <= max_physical",
                detail=self.to_dict(),
            )
        if self.smoothing_window_size < 1:
            raise RuleConfigurationError("smoothing_window_size must be >= 1", detail=self.to_dict())
        if self.max_change_rate_per_minute <= 0 or self.outlier_z_threshold <= 0:
            raise RuleConfigurationError(
                "max_change_rate_per_minute and outlier_z_threshold must be positive",
                detail=self.to_dict(),
            )

    def is_physically_possible(self, value: float) -> bool:
        return self.min_physical <= value <= self.max_physical

    def is_operational(self, value: float) -> bool:
        return self.min_operational <= value <= self.max_operational

    def clamp_physical(self, value: float) -> float:
        return min(max(value, self.min_physical), self.max_physical)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class SmoothingConfiguration:
    """Filter selection and parameters for one sensor kind."""

    algorithm: SmoothingAlgorithm
    window_size: int
    alpha: float
    threshold: float
    adaptive_window: bool = False

    def __post_init__(self) -> None:
        try:
            object.__setattr__(self, "algorithm", SmoothingAlgorithm(self.algorithm))
        except ValueError:
            raise RuleConfigurationError(f"Unknown smoothing algorithm: {self.algorithm!r}") from None
        if self.window_size < 1:
            raise RuleConfigurationError("window_size must be >= 1", detail=self.to_dict())
        if not 0 < self.alpha <= 1:
            raise RuleConfigurationError("alpha must be in (0, 1]", detail=self.to_dict())

    def with_changes(self, **changes: Any) -> SmoothingConfiguration:
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "algorithm": self.algorithm.value,
            "window_size": self.window_size,
            "alpha": self.alpha,
            "threshold": self.threshold,
            "adaptive_window": self.adaptive_window,
        }
