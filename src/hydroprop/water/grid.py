"""Precomputed property grid with trilinear lookup.

A PropertyGrid samples another water property model on a regular
(temperature, salinity, pressure) lattice once at startup. At run time,
density and viscosity are interpolated trilinearly and vapor pressure
linearly along the temperature axis, which is cheaper than evaluating the
full equation of state every frame.

Grids can be saved to and reloaded from ``.npz`` files.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import numpy as np
from scipy.interpolate import RegularGridInterpolator

from hydroprop.core.errors import InvalidConfiguration, UpstreamUnavailable
from hydroprop.core.logging_system import get_logger
from hydroprop.water.base import IWaterPropertyModel, ValidityDomain

logger = get_logger(__name__)

DEFAULT_TEMPERATURE_AXIS = {"min": -2.0, "max": 40.0, "count": 43}
DEFAULT_SALINITY_AXIS = {"min": 0.0, "max": 50.0, "count": 26}
DEFAULT_PRESSURE_AXIS = {"min": 1.0e3, "max": 1.0e7, "count": 21}


def _axis(definition: Any, name: str) -> np.ndarray:
    """Build an axis from ``{min, max, count}`` or an explicit list of points."""
    if isinstance(definition, dict):
        try:
            values = np.linspace(float(definition["min"]), float(definition["max"]), int(definition["count"]))
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidConfiguration(f"axis needs min, max and count ({e})", field=name) from e
    else:
        values = np.asarray(definition, dtype=float)
        if values.ndim != 1:
            raise InvalidConfiguration("axis must be a flat list", field=name)

    if len(values) < 2 or not np.all(np.diff(values) > 0):
        raise InvalidConfiguration("axis needs at least 2 strictly increasing points", field=name)
    return values


@dataclass(frozen=True)
class PropertyGrid:
    """Sampled water properties on a regular (T, S, P) lattice.

    Attributes:
        temperature_c: Temperature axis (C).
        salinity_psu: Salinity axis (PSU).
        pressure_pa: Pressure axis (Pa, absolute).
        density_kgm3: Density samples, shape (nT, nS, nP).
        viscosity_pas: Viscosity samples, shape (nT, nS, nP).
        vapor_pressure_pa: Vapor pressure samples along the temperature axis.
    """

    temperature_c: np.ndarray
    salinity_psu: np.ndarray
    pressure_pa: np.ndarray
    density_kgm3: np.ndarray
    viscosity_pas: np.ndarray
    vapor_pressure_pa: np.ndarray

    @classmethod
    def build(
        cls,
        model: IWaterPropertyModel,
        temperature_c: Any = DEFAULT_TEMPERATURE_AXIS,
        salinity_psu: Any = DEFAULT_SALINITY_AXIS,
        pressure_pa: Any = DEFAULT_PRESSURE_AXIS,
    ) -> "PropertyGrid":
        """Sample ``model`` over the given axes."""
        t_axis = _axis(temperature_c, "grid.temperature_c")
        s_axis = _axis(salinity_psu, "grid.salinity_psu")
        p_axis = _axis(pressure_pa, "grid.pressure_pa")

        shape = (len(t_axis), len(s_axis), len(p_axis))
        density = np.empty(shape)
        viscosity = np.empty(shape)
        for i, t in enumerate(t_axis):
            for j, s in enumerate(s_axis):
                for k, p in enumerate(p_axis):
                    density[i, j, k] = model.compute_density(t, s, p)
                    viscosity[i, j, k] = model.compute_viscosity(t, s, p)
        vapor = np.array([model.compute_vapor_pressure(t) for t in t_axis])

        logger.info(
            "Built property grid %dx%dx%d from %s", *shape, type(model).__name__
        )
        return cls(t_axis, s_axis, p_axis, density, viscosity, vapor)

    @classmethod
    def load(cls, path: str | Path) -> "PropertyGrid":
        """Load a grid saved with :meth:`save`.

        Raises:
            UpstreamUnavailable: If the file does not exist or lacks arrays.
        """
        path = Path(path)
        if not path.exists():
            raise UpstreamUnavailable(f"Property grid file not found: {path}")

        with np.load(path) as data:
            try:
                grid = cls(
                    temperature_c=data["temperature_c"],
                    salinity_psu=data["salinity_psu"],
                    pressure_pa=data["pressure_pa"],
                    density_kgm3=data["density_kgm3"],
                    viscosity_pas=data["viscosity_pas"],
                    vapor_pressure_pa=data["vapor_pressure_pa"],
                )
            except KeyError as e:
                raise UpstreamUnavailable(f"Property grid {path} is missing array {e}") from e

        expected = (len(grid.temperature_c), len(grid.salinity_psu), len(grid.pressure_pa))
        if grid.density_kgm3.shape != expected or grid.viscosity_pas.shape != expected:
            raise InvalidConfiguration(
                f"grid arrays have shape {grid.density_kgm3.shape}, expected {expected}",
                field="water_properties.grid.file",
            )

        logger.info("Loaded property grid from %s", path)
        return grid

    def save(self, path: str | Path) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        np.savez(
            path,
            temperature_c=self.temperature_c,
            salinity_psu=self.salinity_psu,
            pressure_pa=self.pressure_pa,
            density_kgm3=self.density_kgm3,
            viscosity_pas=self.viscosity_pas,
            vapor_pressure_pa=self.vapor_pressure_pa,
        )

    @property
    def domain(self) -> ValidityDomain:
        return ValidityDomain(
            temperature_c=(float(self.temperature_c[0]), float(self.temperature_c[-1])),
            salinity_psu=(float(self.salinity_psu[0]), float(self.salinity_psu[-1])),
            pressure_pa=(float(self.pressure_pa[0]), float(self.pressure_pa[-1])),
        )


class GridWaterProperties(IWaterPropertyModel):
    """Water property model backed by a PropertyGrid.

    Returns the same units as the model the grid was sampled from. The
    validity domain is the grid's extent.
    """

    def __init__(self, grid: PropertyGrid) -> None:
        self.grid = grid
        self.domain = grid.domain
        axes = (grid.temperature_c, grid.salinity_psu, grid.pressure_pa)
        # Inputs are clamped first; NaN propagates as NaN instead of raising
        self._density = RegularGridInterpolator(
            axes, grid.density_kgm3, method="linear", bounds_error=False, fill_value=np.nan
        )
        self._viscosity = RegularGridInterpolator(
            axes, grid.viscosity_pas, method="linear", bounds_error=False, fill_value=np.nan
        )

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "GridWaterProperties":
        """Create from a ``water_properties.grid`` section.

        With ``file`` set the grid is loaded from disk; otherwise it is
        sampled from the ``source`` strategy (``formula`` by default) over
        the configured axes.
        """
        grid_file = config.get("file")
        if grid_file:
            return cls(PropertyGrid.load(grid_file))

        from hydroprop.water import create_water_model

        source_name = config.get("source", "formula")
        if source_name == "grid":
            raise InvalidConfiguration("grid cannot be sampled from itself", field="water_properties.grid.source")
        source = create_water_model(source_name, config.get(source_name, {}))
        grid = PropertyGrid.build(
            source,
            temperature_c=config.get("temperature_c", DEFAULT_TEMPERATURE_AXIS),
            salinity_psu=config.get("salinity_psu", DEFAULT_SALINITY_AXIS),
            pressure_pa=config.get("pressure_pa", DEFAULT_PRESSURE_AXIS),
        )
        return cls(grid)

    def _lookup(self, interpolator: RegularGridInterpolator, t: float, s: float, p: float) -> float:
        t, s, p, _ = self.domain.clamp(t, s, p)
        return float(interpolator([[t, s, p]])[0])

    def compute_density(self, temperature_c: float, salinity_psu: float, pressure_pa: float) -> float:
        return self._lookup(self._density, temperature_c, salinity_psu, pressure_pa)

    def compute_viscosity(self, temperature_c: float, salinity_psu: float, pressure_pa: float) -> float:
        return self._lookup(self._viscosity, temperature_c, salinity_psu, pressure_pa)

    def compute_vapor_pressure(self, temperature_c: float) -> float:
        t, _ = self.domain.clamp_temperature(temperature_c)
        return float(np.interp(t, self.grid.temperature_c, self.grid.vapor_pressure_pa))
