"""
Unit tests for sensor_quality.utils.psychrometrics module.

Tests the Tetens-based calculations used by the VPD consistency check:
- SVP (Saturation Vapor Pressure)
- VPD (Vapor Pressure Deficit)
"""

import pytest

from sensor_quality.utils.psychrometrics import calculate_svp_kpa, calculate_vpd_kpa


class TestSaturationVaporPressure:
    """Test saturation vapor pressure calculation (Tetens formula)."""

    def test_svp_at_0c(self):
        """SVP at 0°C is the Tetens constant 0.6108 kPa."""
        assert calculate_svp_kpa(0) == pytest.approx(0.6108)

    def test_svp_at_20c(self):
        """SVP at 20°C should be approximately 2.34 kPa."""
        svp = calculate_svp_kpa(20)
        assert 2.3 < svp < 2.4

    def test_svp_at_25c(self):
        """SVP at 25°C should be approximately 3.17 kPa."""
        svp = calculate_svp_kpa(25)
        assert 3.1 < svp < 3.2


class TestVPD:
    """Test Vapor Pressure Deficit calculation."""

    def test_vpd_100_percent_humidity_is_zero(self):
        """At 100% RH, VPD should be 0."""
        vpd = calculate_vpd_kpa(25, 100)
        assert vpd == pytest.approx(0, abs=0.01)

    def test_vpd_0_percent_humidity_equals_svp(self):
        """At 0% RH, VPD should equal SVP."""
        temp = 25
        vpd = calculate_vpd_kpa(temp, 0)
        svp = calculate_svp_kpa(temp)
        assert vpd == pytest.approx(svp, rel=0.01)

    def test_vpd_typical_grow_room_conditions(self):
        """25°C at 60% RH should give VPD around 1.26 kPa."""
        vpd = calculate_vpd_kpa(25, 60)
        assert vpd == pytest.approx(1.264, abs=0.005)

    def test_vpd_negative_temperature(self):
        """VPD should work with sub-zero temperatures."""
        vpd = calculate_vpd_kpa(-5, 80)
        assert vpd > 0

    @pytest.mark.parametrize("temp, rh", [(None, 60), (25, None), (None, None)])
    def test_vpd_missing_input_is_none(self, temp, rh):
        """Missing temperature or humidity yields None."""
        assert calculate_vpd_kpa(temp, rh) is None
