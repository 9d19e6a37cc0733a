"""Ambient water conditions around the propeller.

EnvironmentParameters is an immutable snapshot written by the control
surface between ticks. Density and viscosity are either explicit overrides
or derived from (pressure, temperature, salinity) by a water property model;
WaterPropertyResolver re-derives them only when one of those three changes.
"""

import math
from dataclasses import dataclass, replace
from typing import Any

from hydroprop.core.errors import InvalidConfiguration
from hydroprop.water.base import IWaterPropertyModel, WaterProperties

MEASURED_FIELDS = ("pressure_pa", "temperature_c", "salinity_psu", "flow_velocity_mps")

# Configuration key -> field name for the optional overrides
OVERRIDE_FIELDS = {
    "density_kgm3": "density_override_kgm3",
    "viscosity_pas": "viscosity_override_pas",
}


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _to_float(raw: Any, key: str) -> float:
    try:
        return float(raw)
    except (TypeError, ValueError) as e:
        raise InvalidConfiguration(f"must be a number, got {raw!r}", field=f"environment.{key}") from e


@dataclass(frozen=True)
class EnvironmentParameters:
    """Ambient conditions for one tick.

    Attributes:
        pressure_pa: Absolute static pressure at the propeller (Pa).
        temperature_c: Water temperature (C).
        salinity_psu: Practical salinity (PSU).
        flow_velocity_mps: Advance velocity (m/s); negative for reverse flow.
        density_override_kgm3: Fixed density; None to derive it.
        viscosity_override_pas: Fixed dynamic viscosity; None to derive it.
    """

    pressure_pa: float = 101325.0
    temperature_c: float = 15.0
    salinity_psu: float = 35.0
    flow_velocity_mps: float = 0.0
    density_override_kgm3: float | None = None
    viscosity_override_pas: float | None = None

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Check types and bounds.

        NaN or out-of-domain values are accepted: they are per-tick
        conditions the engine flags, not configuration errors.

        Raises:
            InvalidConfiguration: Naming the first offending field.
        """
        for name in MEASURED_FIELDS:
            value = getattr(self, name)
            if not _is_number(value):
                raise InvalidConfiguration(f"must be a number, got {value!r}", field=f"environment.{name}")
        if self.pressure_pa <= 0.0:
            raise InvalidConfiguration(f"must be > 0, got {self.pressure_pa!r}", field="environment.pressure_pa")

        for key, name in OVERRIDE_FIELDS.items():
            value = getattr(self, name)
            if value is None:
                continue
            if not (_is_number(value) and value > 0.0):
                raise InvalidConfiguration(f"must be > 0, got {value!r}", field=f"environment.{key}")

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "EnvironmentParameters":
        """Create from an ``environment`` configuration section.

        Raises:
            InvalidConfiguration: If a value is not numeric, pressure is not
                positive, or an override is not positive.
        """
        defaults = cls()
        values: dict[str, Any] = {}
        for name in MEASURED_FIELDS:
            values[name] = _to_float(config.get(name, getattr(defaults, name)), name)

        for key, name in OVERRIDE_FIELDS.items():
            raw = config.get(key)
            if raw is not None:
                values[name] = _to_float(raw, key)

        return cls(**values)

    def with_changes(self, **changes: Any) -> "EnvironmentParameters":
        """Return a validated copy with some fields replaced."""
        return replace(self, **changes)

    @property
    def state_key(self) -> tuple[float, float, float]:
        """The inputs derived water properties depend on."""
        return (self.temperature_c, self.salinity_psu, self.pressure_pa)

    def is_finite(self) -> bool:
        return all(
            math.isfinite(v)
            for v in (self.pressure_pa, self.temperature_c, self.salinity_psu, self.flow_velocity_mps)
        )


class WaterPropertyResolver:
    """Resolves density, viscosity and vapor pressure for an environment.

    Results from the model are cached against (temperature, salinity,
    pressure) and recomputed whenever any of them changes. Overrides on the
    environment replace the derived density or viscosity.

    Examples:
        >>> resolver = WaterPropertyResolver(SeawaterEquationOfState())
        >>> props = resolver.resolve(EnvironmentParameters(temperature_c=20.0))
        >>> round(props.vapor_pressure_pa)
        2339
    """

    def __init__(self, model: IWaterPropertyModel) -> None:
        self.model = model
        self._cached_key: tuple[float, float, float] | None = None
        self._cached: WaterProperties | None = None

    def resolve(self, environment: EnvironmentParameters) -> WaterProperties:
        key = environment.state_key
        if self._cached is None or key != self._cached_key:
            self._cached = self.model.evaluate(*key)
            self._cached_key = key

        props = self._cached
        if environment.density_override_kgm3 is None and environment.viscosity_override_pas is None:
            return props

        return replace(
            props,
            density_kgm3=(
                environment.density_override_kgm3
                if environment.density_override_kgm3 is not None
                else props.density_kgm3
            ),
            viscosity_pas=(
                environment.viscosity_override_pas
                if environment.viscosity_override_pas is not None
                else props.viscosity_pas
            ),
        )

    def invalidate(self) -> None:
        self._cached_key = None
        self._cached = None
