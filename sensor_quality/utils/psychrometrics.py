"""
Psychrometric Calculations
==========================

Pure air-science helpers used by the cross-sensor consistency checks.

Functions:
- calculate_svp_kpa: Saturation vapor pressure (Tetens)
- calculate_vpd_kpa: Vapor Pressure Deficit
"""
from __future__ import annotations

import math
from typing import Optional

# Tetens constants
TETENS_A = 17.27
TETENS_B = 237.7
SVP_AT_ZERO_KPA = 0.6108


def calculate_svp_kpa(temperature_c: float) -> float:
    """
    Calculate Saturation Vapor Pressure (SVP) in kPa using the Tetens formula.

    SVP = 0.6108 × exp(17.27 × T / (T + 237.7))

    Args:
        temperature_c: Temperature in Celsius

    Returns:
        Saturation vapor pressure in kPa
    """
    return SVP_AT_ZERO_KPA * math.exp((TETENS_A * temperature_c) / (TETENS_B + temperature_c))


def calculate_vpd_kpa(temperature_c: Optional[float], relative_humidity: Optional[float]) -> Optional[float]:
    """
    Calculate Vapor Pressure Deficit (VPD) in kPa.

    VPD = SVP × (1 - RH/100)

    Args:
        temperature_c: Temperature in Celsius
        relative_humidity: Relative humidity percentage (0-100)

    Returns:
        VPD in kPa, or None if either input is missing
    """
    if temperature_c is None or relative_humidity is None:
        return None
    svp = calculate_svp_kpa(float(temperature_c))
    return svp * (1 - float(relative_humidity) / 100.0)
