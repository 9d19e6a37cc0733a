"""Equation-based seawater property estimates.

Density follows the UNESCO EOS-80 equation of state (Millero & Poisson 1981
one-atmosphere polynomial with the secant bulk modulus for pressure).
Dynamic viscosity follows Sharqawy, Lienhard & Zubair (2010), which
neglects the small pressure dependence. Vapor pressure is the Hyland-Wexler
correlation for pure water.

Valid for -2..40 C, 0..50 PSU and up to 100 MPa absolute; inputs outside
are clamped.
"""

import math
from typing import Any

from hydroprop.core.errors import InvalidConfiguration
from hydroprop.core.logging_system import get_logger
from hydroprop.water.base import IWaterPropertyModel, ValidityDomain

logger = get_logger(__name__)

ATMOSPHERIC_PRESSURE_PA = 101325.0
IPTS68_FACTOR = 1.00024  # ITS-90 -> IPTS-68, EOS-80 coefficients use IPTS-68

# Ranges the correlations are published for; a configured domain may only narrow them
CORRELATION_DOMAIN = ValidityDomain()
DOMAIN_FIELDS = ("temperature_c", "salinity_psu", "pressure_pa")


def _pure_water_density(t: float) -> float:
    return (
        999.842594
        + 6.793952e-2 * t
        - 9.095290e-3 * t**2
        + 1.001685e-4 * t**3
        - 1.120083e-6 * t**4
        + 6.536332e-9 * t**5
    )


def density_one_atmosphere(temperature_c: float, salinity_psu: float) -> float:
    """EOS-80 density at atmospheric pressure (kg/m3)."""
    t = temperature_c * IPTS68_FACTOR
    s = salinity_psu
    b = 8.24493e-1 - 4.0899e-3 * t + 7.6438e-5 * t**2 - 8.2467e-7 * t**3 + 5.3875e-9 * t**4
    c = -5.72466e-3 + 1.0227e-4 * t - 1.6546e-6 * t**2
    d = 4.8314e-4
    return _pure_water_density(t) + b * s + c * s**1.5 + d * s**2


def secant_bulk_modulus(temperature_c: float, salinity_psu: float, gauge_pressure_bar: float) -> float:
    """EOS-80 secant bulk modulus K(S, T, p) in bar."""
    t = temperature_c * IPTS68_FACTOR
    s = salinity_psu
    p = gauge_pressure_bar

    kw = 19652.21 + 148.4206 * t - 2.327105 * t**2 + 1.360477e-2 * t**3 - 5.155288e-5 * t**4
    k0 = (
        kw
        + s * (54.6746 - 0.603459 * t + 1.09987e-2 * t**2 - 6.1670e-5 * t**3)
        + s**1.5 * (7.944e-2 + 1.6483e-2 * t - 5.3009e-4 * t**2)
    )

    aw = 3.239908 + 1.43713e-3 * t + 1.16092e-4 * t**2 - 5.77905e-7 * t**3
    a = aw + s * (2.2838e-3 - 1.0981e-5 * t - 1.6078e-6 * t**2) + 1.91075e-4 * s**1.5

    bw = 8.50935e-5 - 6.12293e-6 * t + 5.2787e-8 * t**2
    b = bw + s * (-9.9348e-7 + 2.0816e-8 * t + 9.1697e-10 * t**2)

    return k0 + a * p + b * p**2


def pure_water_viscosity(temperature_c: float) -> float:
    """Dynamic viscosity of pure water (Pa.s)."""
    return 4.2844e-5 + 1.0 / (0.157 * (temperature_c + 64.993) ** 2 - 91.296)


def hyland_wexler_vapor_pressure(temperature_c: float) -> float:
    """Saturation vapor pressure of pure water over liquid (Pa)."""
    t = temperature_c + 273.15
    ln_p = (
        -5.8002206e3 / t
        + 1.3914993
        - 4.8640239e-2 * t
        + 4.1764768e-5 * t**2
        - 1.4452093e-8 * t**3
        + 6.5459673 * math.log(t)
    )
    return math.exp(ln_p)


def _checked_range(name: str, value: Any) -> tuple[float, float]:
    field = f"water_properties.formula.{name}"
    try:
        low, high = (float(v) for v in value)
    except (TypeError, ValueError) as e:
        raise InvalidConfiguration(f"must be a [min, max] pair, got {value!r}", field=field) from e

    if not (math.isfinite(low) and math.isfinite(high) and low <= high):
        raise InvalidConfiguration(f"must be finite with min <= max, got {value!r}", field=field)
    limit_low, limit_high = getattr(CORRELATION_DOMAIN, name)
    if low < limit_low or high > limit_high:
        raise InvalidConfiguration(
            f"must lie within [{limit_low}, {limit_high}], got {value!r}", field=field
        )
    return low, high


class SeawaterEquationOfState(IWaterPropertyModel):
    """Seawater properties from published correlations.

    Examples:
        >>> model = SeawaterEquationOfState()
        >>> model.compute_density(15.0, 35.0, 101325.0)  # ~1025.97
        >>> model.compute_vapor_pressure(20.0)  # ~2339
    """

    def __init__(self, domain: ValidityDomain | None = None) -> None:
        """Initialize the model.

        Args:
            domain: Validity domain, inside CORRELATION_DOMAIN.

        Raises:
            InvalidConfiguration: If a range is malformed or wider than the
                correlations allow.
        """
        domain = domain or CORRELATION_DOMAIN
        self.domain = ValidityDomain(
            *(_checked_range(name, getattr(domain, name)) for name in DOMAIN_FIELDS)
        )

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "SeawaterEquationOfState":
        """Create from a ``water_properties.formula`` section.

        Optional keys ``temperature_c``, ``salinity_psu``, ``pressure_pa``
        narrow the validity domain with ``[min, max]`` pairs.
        """
        ranges = (config.get(name, getattr(CORRELATION_DOMAIN, name)) for name in DOMAIN_FIELDS)
        return cls(ValidityDomain(*ranges))

    def compute_density(self, temperature_c: float, salinity_psu: float, pressure_pa: float) -> float:
        t, s, p, _ = self.domain.clamp(temperature_c, salinity_psu, pressure_pa)
        rho0 = density_one_atmosphere(t, s)

        # Below one atmosphere the compressibility term is negligible
        gauge_bar = max(0.0, (p - ATMOSPHERIC_PRESSURE_PA) / 1.0e5)
        if gauge_bar == 0.0:
            return rho0
        return rho0 / (1.0 - gauge_bar / secant_bulk_modulus(t, s, gauge_bar))

    def compute_viscosity(self, temperature_c: float, salinity_psu: float, pressure_pa: float) -> float:
        t, s, _, _ = self.domain.clamp(temperature_c, salinity_psu, pressure_pa)
        s_kgkg = s / 1000.0
        a = 1.541 + 1.998e-2 * t - 9.52e-5 * t**2
        b = 7.974 - 7.561e-2 * t + 4.724e-4 * t**2
        return pure_water_viscosity(t) * (1.0 + a * s_kgkg + b * s_kgkg**2)

    def compute_vapor_pressure(self, temperature_c: float) -> float:
        t, _ = self.domain.clamp_temperature(temperature_c)
        return hyland_wexler_vapor_pressure(t)
