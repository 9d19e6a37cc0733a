"""Constant water properties supplied directly by configuration."""

from typing import Any

from hydroprop.core.errors import InvalidConfiguration
from hydroprop.water.base import IWaterPropertyModel, ValidityDomain


class ConstantWaterProperties(IWaterPropertyModel):
    """Water property model returning fixed values.

    Inputs are ignored, so the validity domain is unbounded and nothing is
    ever clamped. Defaults describe seawater at 15 C and 35 PSU.
    """

    def __init__(
        self,
        density_kgm3: float = 1025.0,
        viscosity_pas: float = 1.22e-3,
        vapor_pressure_pa: float = 1705.0,
    ) -> None:
        for name, value in (
            ("density_kgm3", density_kgm3),
            ("viscosity_pas", viscosity_pas),
        ):
            if not value > 0.0:
                raise InvalidConfiguration(f"must be positive, got {value!r}", field=name)
        if not vapor_pressure_pa >= 0.0:
            raise InvalidConfiguration(
                f"must be non-negative, got {vapor_pressure_pa!r}", field="vapor_pressure_pa"
            )

        self.density_kgm3 = float(density_kgm3)
        self.viscosity_pas = float(viscosity_pas)
        self.vapor_pressure_pa = float(vapor_pressure_pa)
        self.domain = ValidityDomain.unbounded()

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "ConstantWaterProperties":
        return cls(
            density_kgm3=config.get("density_kgm3", 1025.0),
            viscosity_pas=config.get("viscosity_pas", 1.22e-3),
            vapor_pressure_pa=config.get("vapor_pressure_pa", 1705.0),
        )

    def compute_density(self, temperature_c: float, salinity_psu: float, pressure_pa: float) -> float:
        return self.density_kgm3

    def compute_viscosity(self, temperature_c: float, salinity_psu: float, pressure_pa: float) -> float:
        return self.viscosity_pas

    def compute_vapor_pressure(self, temperature_c: float) -> float:
        return self.vapor_pressure_pa
