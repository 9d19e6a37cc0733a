"""Tests for the water property interface and validity domain."""

import math

import pytest

from hydroprop.core.errors import OutOfDomainInput
from hydroprop.water.base import DomainReport, ValidityDomain, WaterProperties


class TestValidityDomain:
    """Test suite for ValidityDomain clamping."""

    def test_inside_domain_unchanged(self) -> None:
        """Test that in-range inputs pass through with an empty report."""
        t, s, p, report = ValidityDomain().clamp(15.0, 35.0, 101325.0)

        assert (t, s, p) == (15.0, 35.0, 101325.0)
        assert report.in_domain

    def test_clamps_to_nearest_boundary(self) -> None:
        """Test that out-of-range inputs move onto the boundary."""
        t, s, p, report = ValidityDomain().clamp(-50.0, 60.0, 1.0e9)

        assert (t, s, p) == (-2.0, 50.0, 1.0e8)
        assert report.clamped == ("temperature_c", "salinity_psu", "pressure_pa")
        assert not report.in_domain

    def test_boundaries_are_inclusive(self) -> None:
        """Test that the closed range ends are in domain."""
        _, _, _, report = ValidityDomain().clamp(40.0, 0.0, 1.0e3)

        assert report.in_domain

    def test_nan_passes_through(self) -> None:
        """Test that NaN is neither clamped nor reported."""
        t, _, _, report = ValidityDomain().clamp(math.nan, 35.0, 101325.0)

        assert math.isnan(t)
        assert report.in_domain

    def test_strict_mode_raises(self) -> None:
        """Test that strict mode raises instead of clamping."""
        with pytest.raises(OutOfDomainInput) as exc_info:
            ValidityDomain().clamp(15.0, 80.0, 101325.0, strict=True)

        assert exc_info.value.name == "salinity_psu"
        assert exc_info.value.high == 50.0

    def test_clamp_temperature(self) -> None:
        """Test clamping temperature alone."""
        t, report = ValidityDomain().clamp_temperature(45.0)

        assert t == 40.0
        assert report.clamped == ("temperature_c",)

    def test_unbounded_never_clamps(self) -> None:
        """Test the unbounded domain."""
        t, s, p, report = ValidityDomain.unbounded().clamp(-100.0, 500.0, 1.0)

        assert (t, s, p) == (-100.0, 500.0, 1.0)
        assert report.in_domain


class TestDomainReport:
    """Test suite for DomainReport."""

    def test_merge_keeps_unique_names_in_order(self) -> None:
        """Test that merging reports does not duplicate names."""
        first = DomainReport(("temperature_c",))
        second = DomainReport(("pressure_pa", "temperature_c"))

        assert first.merge(second).clamped == ("temperature_c", "pressure_pa")


class TestWaterProperties:
    """Test suite for WaterProperties."""

    def test_kinematic_viscosity(self) -> None:
        """Test kinematic viscosity from dynamic viscosity and density."""
        props = WaterProperties(density_kgm3=1000.0, viscosity_pas=1.0e-3, vapor_pressure_pa=2339.0)

        assert props.kinematic_viscosity_m2s == pytest.approx(1.0e-6)
        assert props.report.in_domain
