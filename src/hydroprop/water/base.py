"""Base interface for water property models.

A water property model estimates density and dynamic viscosity from
temperature, salinity and pressure, and vapor pressure from temperature.
Implementations are interchangeable: the engine only depends on this
interface.

Inputs outside a model's validity domain are clamped to the nearest boundary
and reported through a DomainReport instead of failing, so the simulation
keeps running at frame rate.
"""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum

from hydroprop.core.errors import OutOfDomainInput


class WaterPropertyStrategy(Enum):
    """Available water property strategies, selected by configuration."""

    CONSTANT = "constant"
    FORMULA = "formula"
    GRID = "grid"


@dataclass(frozen=True)
class DomainReport:
    """Result of checking model inputs against a validity domain.

    Attributes:
        clamped: Names of the inputs that were moved onto the domain boundary.
    """

    clamped: tuple[str, ...] = ()

    @property
    def in_domain(self) -> bool:
        return not self.clamped

    def merge(self, other: "DomainReport") -> "DomainReport":
        names = self.clamped + tuple(n for n in other.clamped if n not in self.clamped)
        return DomainReport(names)


@dataclass(frozen=True)
class ValidityDomain:
    """Closed validity ranges of a water property model.

    Attributes:
        temperature_c: (min, max) temperature in degrees Celsius.
        salinity_psu: (min, max) practical salinity.
        pressure_pa: (min, max) absolute pressure in Pascals.
    """

    temperature_c: tuple[float, float] = (-2.0, 40.0)
    salinity_psu: tuple[float, float] = (0.0, 50.0)
    pressure_pa: tuple[float, float] = (1.0e3, 1.0e8)

    @classmethod
    def unbounded(cls) -> "ValidityDomain":
        inf = math.inf
        return cls((-inf, inf), (-inf, inf), (-inf, inf))

    def clamp(
        self,
        temperature_c: float,
        salinity_psu: float,
        pressure_pa: float,
        strict: bool = False,
    ) -> tuple[float, float, float, DomainReport]:
        """Clamp inputs onto the domain.

        NaN inputs are passed through untouched so the caller's anomaly
        detection sees them.

        Args:
            temperature_c: Water temperature (C).
            salinity_psu: Salinity (PSU).
            pressure_pa: Absolute pressure (Pa).
            strict: Raise instead of clamping.

        Returns:
            Clamped (temperature, salinity, pressure) and the domain report.

        Raises:
            OutOfDomainInput: In strict mode, for the first offending input.
        """
        clamped: list[str] = []
        values = []
        for name, value, (low, high) in (
            ("temperature_c", temperature_c, self.temperature_c),
            ("salinity_psu", salinity_psu, self.salinity_psu),
            ("pressure_pa", pressure_pa, self.pressure_pa),
        ):
            if not math.isnan(value) and not low <= value <= high:
                if strict:
                    raise OutOfDomainInput(name, value, low, high)
                value = min(max(value, low), high)
                clamped.append(name)
            values.append(value)

        return values[0], values[1], values[2], DomainReport(tuple(clamped))

    def clamp_temperature(self, temperature_c: float) -> tuple[float, DomainReport]:
        """Clamp a temperature alone (vapor pressure only depends on it)."""
        low, high = self.temperature_c
        if math.isnan(temperature_c) or low <= temperature_c <= high:
            return temperature_c, DomainReport()
        return min(max(temperature_c, low), high), DomainReport(("temperature_c",))


@dataclass(frozen=True)
class WaterProperties:
    """Water properties resolved for one set of ambient conditions.

    Attributes:
        density_kgm3: Density (kg/m3).
        viscosity_pas: Dynamic viscosity (Pa.s).
        vapor_pressure_pa: Vapor pressure (Pa).
        report: Which inputs had to be clamped.
    """

    density_kgm3: float
    viscosity_pas: float
    vapor_pressure_pa: float
    report: DomainReport = field(default_factory=DomainReport)

    @property
    def kinematic_viscosity_m2s(self) -> float:
        return self.viscosity_pas / self.density_kgm3


class IWaterPropertyModel(ABC):
    """Interface for water property estimation.

    All methods are pure functions of their arguments. Subclasses clamp
    out-of-domain inputs to ``self.domain`` before evaluating.
    """

    domain: ValidityDomain = ValidityDomain()

    @abstractmethod
    def compute_density(self, temperature_c: float, salinity_psu: float, pressure_pa: float) -> float:
        """Compute density in kg/m3."""

    @abstractmethod
    def compute_viscosity(self, temperature_c: float, salinity_psu: float, pressure_pa: float) -> float:
        """Compute dynamic viscosity in Pa.s."""

    @abstractmethod
    def compute_vapor_pressure(self, temperature_c: float) -> float:
        """Compute vapor pressure in Pa."""

    def evaluate(self, temperature_c: float, salinity_psu: float, pressure_pa: float) -> WaterProperties:
        """Compute all properties and report any clamping.

        Args:
            temperature_c: Water temperature (C).
            salinity_psu: Salinity (PSU).
            pressure_pa: Absolute pressure (Pa).

        Returns:
            WaterProperties with the domain report attached.
        """
        _, _, _, report = self.domain.clamp(temperature_c, salinity_psu, pressure_pa)
        return WaterProperties(
            density_kgm3=self.compute_density(temperature_c, salinity_psu, pressure_pa),
            viscosity_pas=self.compute_viscosity(temperature_c, salinity_psu, pressure_pa),
            vapor_pressure_pa=self.compute_vapor_pressure(temperature_c),
            report=report,
        )
