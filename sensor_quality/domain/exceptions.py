"""Exception hierarchy for the sensor quality pipeline.

Per-reading problems never raise: they are reported as validation issues.
Exceptions are reserved for programming and configuration errors, which
should surface at startup.

Hierarchy
---------
::

    SensorQualityError (base)
    ├── ValidationError           (bad input to a configuration call)
    └── ConfigurationError        (missing / invalid configuration)
        └── RuleConfigurationError (rule table incomplete or inconsistent)
"""

from __future__ import annotations


class SensorQualityError(Exception):
    """Base exception for all sensor quality errors.

    Parameters
    ----------
    message:
        Human-readable description.
    detail:
        Optional machine-readable context dict attached to the error for
        structured logging.
    """

    def __init__(self, message: str = "", *, detail: dict | None = None) -> None:
        super().__init__(message)
        self.detail = detail or {}


class ValidationError(SensorQualityError):
    """Caller supplied invalid or incomplete configuration input."""


class ConfigurationError(SensorQualityError):
    """Missing or invalid configuration."""


class RuleConfigurationError(ConfigurationError):
    """A validation rule or smoothing configuration is missing or violates its invariants."""
