"""Pytest configuration and shared fixtures."""

import pytest

from hydroprop.environment import EnvironmentParameters
from hydroprop.propeller.coefficients import CoefficientCurve, CoefficientTable
from hydroprop.propeller.geometry import PropellerGeometry
from hydroprop.water.constant import ConstantWaterProperties

KT_SAMPLES = [(0.0, 0.34), (0.2, 0.292), (0.4, 0.229), (0.6, 0.154), (0.8, 0.067), (0.9, 0.019)]
KQ_SAMPLES = [(0.0, 0.0412), (0.2, 0.0366), (0.4, 0.0303), (0.6, 0.0222), (0.8, 0.0121), (0.9, 0.0063)]


@pytest.fixture
def kt_curve() -> CoefficientCurve:
    return CoefficientCurve.from_pairs("kt", KT_SAMPLES)


@pytest.fixture
def kq_curve() -> CoefficientCurve:
    return CoefficientCurve.from_pairs("kq", KQ_SAMPLES)


@pytest.fixture
def table(kt_curve: CoefficientCurve, kq_curve: CoefficientCurve) -> CoefficientTable:
    return CoefficientTable.load(kt_curve, kq_curve)


@pytest.fixture
def flat_table() -> CoefficientTable:
    """Table with constant KT=0.3, KQ=0.04 for dimensional checks."""
    kt = CoefficientCurve.from_pairs("kt", [(-10.0, 0.3), (10.0, 0.3)])
    kq = CoefficientCurve.from_pairs("kq", [(-10.0, 0.04), (10.0, 0.04)])
    return CoefficientTable.load(kt, kq)


@pytest.fixture
def seawater() -> ConstantWaterProperties:
    """Constant seawater: rho=1025, p_v=2339 Pa (20 C)."""
    return ConstantWaterProperties(density_kgm3=1025.0, viscosity_pas=1.08e-3, vapor_pressure_pa=2339.0)


@pytest.fixture
def geometry() -> PropellerGeometry:
    return PropellerGeometry(diameter_m=4.0, pitch_m=3.2, blade_count=4, area_ratio=0.55, rpm=120.0)


@pytest.fixture
def environment() -> EnvironmentParameters:
    return EnvironmentParameters(
        pressure_pa=101325.0, temperature_c=20.0, salinity_psu=35.0, flow_velocity_mps=3.0
    )
