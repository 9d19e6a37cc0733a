"""Typed simulation configuration.

Turns a YAML configuration into validated objects: default environment and
geometry, the coefficient table, the water property model, engine settings,
loop settings, scripted scenario events and export options. Any problem is
reported as InvalidConfiguration naming the failing dotted field, before the
simulation starts.

Example configuration:
    environment:
      pressure_pa: 101325
      temperature_c: 15
      salinity_psu: 35
      flow_velocity_mps: 3.0
    propeller:
      diameter_m: 4.0
      pitch_m: 3.2
      blade_count: 4
      area_ratio: 0.55
      rpm: 120
    coefficients:
      interpolation: linear
      kt: [[0.0, 0.45], [0.5, 0.30], [1.0, 0.08]]
      kq_file: curves/kq.csv
    cavitation:
      sigma_threshold: 1.5
    water_properties:
      strategy: formula
    engine:
      epsilon: 0.01
    simulation:
      physics_hz: 60
      duration_s: 10
    scenario:
      - time_s: 2.0
        propeller: {rpm: 150}
    export:
      csv: frames.csv
"""

import dataclasses
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from hydroprop.core.config import ConfigError, ConfigLoader
from hydroprop.core.errors import InvalidConfiguration
from hydroprop.core.logging_system import get_logger
from hydroprop.environment import OVERRIDE_FIELDS, EnvironmentParameters
from hydroprop.physics.hydrodynamics import EngineSettings
from hydroprop.propeller.coefficients import CoefficientCurve, CoefficientTable, InterpolationMode
from hydroprop.propeller.geometry import PropellerGeometry
from hydroprop.water import WaterPropertyStrategy, create_water_model
from hydroprop.water.base import IWaterPropertyModel

logger = get_logger(__name__)

# Environment fields a scenario event may reset to None
_OPTIONAL_ENVIRONMENT_FIELDS = frozenset(OVERRIDE_FIELDS.values())


@dataclass(frozen=True)
class ScenarioEvent:
    """Parameter changes applied at a simulated time.

    Attributes:
        time_s: Simulated time at which the changes take effect (s).
        geometry: PropellerGeometry field changes.
        environment: EnvironmentParameters field changes.
    """

    time_s: float
    geometry: dict[str, Any] = field(default_factory=dict)
    environment: dict[str, Any] = field(default_factory=dict)


@dataclass
class SimulationConfig:
    """Everything needed to build and run a simulation."""

    environment: EnvironmentParameters
    geometry: PropellerGeometry
    table: CoefficientTable
    water_strategy: WaterPropertyStrategy
    water_config: dict[str, Any]
    settings: EngineSettings
    physics_hz: float = 60.0
    duration_s: float = 10.0
    realtime: bool = False
    scenario: list[ScenarioEvent] = field(default_factory=list)
    export_csv: Path | None = None
    export_flags: bool = False

    @classmethod
    def from_file(cls, path: str | Path) -> "SimulationConfig":
        """Load and validate a configuration file.

        Raises:
            InvalidConfiguration: If the file cannot be read or is invalid.
            UpstreamUnavailable: If a referenced curve or grid file is missing.
        """
        try:
            loader = ConfigLoader.load(path)
        except ConfigError as e:
            raise InvalidConfiguration(str(e)) from e
        return cls.from_loader(loader)

    @classmethod
    def from_loader(cls, loader: ConfigLoader) -> "SimulationConfig":
        environment = EnvironmentParameters.from_config(_section(loader, "environment"))
        geometry = PropellerGeometry.from_config(_section(loader, "propeller"))
        table = _load_table(loader)
        strategy, water_config = _water_settings(loader)

        settings = EngineSettings(
            sigma_threshold=_number(loader, "cavitation.sigma_threshold", 1.5),
            epsilon=_number(loader, "engine.epsilon", 0.01),
            smoothing_time_constant_s=_number(loader, "engine.smoothing_time_constant_s", 0.0),
        )

        physics_hz = _number(loader, "simulation.physics_hz", 60.0)
        if not physics_hz > 0.0:
            raise InvalidConfiguration(f"must be > 0, got {physics_hz!r}", field="simulation.physics_hz")
        duration_s = _number(loader, "simulation.duration_s", 10.0)
        if not duration_s >= 0.0:
            raise InvalidConfiguration(f"must be >= 0, got {duration_s!r}", field="simulation.duration_s")

        export_csv = loader.get("export.csv")
        config = cls(
            environment=environment,
            geometry=geometry,
            table=table,
            water_strategy=strategy,
            water_config=water_config,
            settings=settings,
            physics_hz=physics_hz,
            duration_s=duration_s,
            realtime=bool(loader.get("simulation.realtime", False)),
            scenario=_scenario(loader, geometry, environment),
            export_csv=loader.resolve_path(export_csv) if export_csv else None,
            export_flags=bool(loader.get("export.include_flags", False)),
        )
        logger.info(
            "Simulation config: D=%.3fm, Z=%d, water=%s, %d scenario events",
            geometry.diameter_m,
            geometry.blade_count,
            strategy.value,
            len(config.scenario),
        )
        return config

    def create_water_model(self) -> IWaterPropertyModel:
        return create_water_model(self.water_strategy, self.water_config)


def _section(loader: ConfigLoader, key: str) -> dict[str, Any]:
    try:
        return loader.get_section(key, required=False)
    except ConfigError as e:
        raise InvalidConfiguration(str(e), field=key) from e


def _number(loader: ConfigLoader, key: str, default: float) -> float:
    raw = loader.get(key, default)
    try:
        return float(raw)
    except (TypeError, ValueError) as e:
        raise InvalidConfiguration(f"must be a number, got {raw!r}", field=key) from e


def _load_curve(loader: ConfigLoader, name: str) -> CoefficientCurve:
    field_name = f"coefficients.{name}"
    samples = loader.get(field_name)
    curve_file = loader.get(f"{field_name}_file")

    if samples is not None and curve_file is not None:
        raise InvalidConfiguration(f"set either {name} or {name}_file, not both", field=field_name)
    if curve_file is not None:
        return CoefficientCurve.from_csv(field_name, loader.resolve_path(curve_file))
    if samples is None:
        raise InvalidConfiguration("no samples or file configured", field=field_name)
    if not isinstance(samples, list):
        raise InvalidConfiguration("must be a list of [J, value] pairs", field=field_name)
    return CoefficientCurve.from_pairs(field_name, samples)


def _load_table(loader: ConfigLoader) -> CoefficientTable:
    mode = InterpolationMode.parse(loader.get("coefficients.interpolation", "linear"))
    return CoefficientTable.load(_load_curve(loader, "kt"), _load_curve(loader, "kq"), mode)


def _water_settings(loader: ConfigLoader) -> tuple[WaterPropertyStrategy, dict[str, Any]]:
    raw = loader.get("water_properties.strategy", WaterPropertyStrategy.FORMULA.value)
    try:
        strategy = WaterPropertyStrategy(str(raw).lower())
    except ValueError as e:
        choices = ", ".join(s.value for s in WaterPropertyStrategy)
        raise InvalidConfiguration(
            f"unknown strategy {raw!r} (expected one of: {choices})", field="water_properties.strategy"
        ) from e

    section = dict(_section(loader, f"water_properties.{strategy.value}"))
    if strategy is WaterPropertyStrategy.GRID and section.get("file"):
        section["file"] = str(loader.resolve_path(section["file"]))
    return strategy, section


def _scenario(
    loader: ConfigLoader, geometry: PropellerGeometry, environment: EnvironmentParameters
) -> list[ScenarioEvent]:
    raw_events = loader.get("scenario", [])
    if not isinstance(raw_events, list):
        raise InvalidConfiguration("must be a list of events", field="scenario")

    geometry_fields = {f.name for f in dataclasses.fields(PropellerGeometry)}
    environment_fields = {f.name for f in dataclasses.fields(EnvironmentParameters)}
    events = []

    for index, raw in enumerate(raw_events):
        field_name = f"scenario[{index}]"
        if not isinstance(raw, dict) or "time_s" not in raw:
            raise InvalidConfiguration("event must be a mapping with time_s", field=field_name)

        geometry_changes = dict(raw.get("propeller") or {})
        unknown = set(geometry_changes) - geometry_fields
        if unknown:
            raise InvalidConfiguration(f"unknown propeller fields: {sorted(unknown)}", field=field_name)

        environment_changes = {
            OVERRIDE_FIELDS.get(k, k): v for k, v in (raw.get("environment") or {}).items()
        }
        unknown = set(environment_changes) - environment_fields
        if unknown:
            raise InvalidConfiguration(f"unknown environment fields: {sorted(unknown)}", field=field_name)

        try:
            time_s = float(raw["time_s"])
            geometry_changes = {
                k: v if k == "blade_count" else float(v) for k, v in geometry_changes.items()
            }
            environment_changes = {
                k: None if v is None and k in _OPTIONAL_ENVIRONMENT_FIELDS else float(v)
                for k, v in environment_changes.items()
            }
        except (TypeError, ValueError) as e:
            raise InvalidConfiguration(f"values must be numbers ({e})", field=field_name) from e

        events.append(ScenarioEvent(time_s, geometry_changes, environment_changes))

    events.sort(key=lambda e: e.time_s)

    # Fail fast: every intermediate geometry and environment must itself be valid
    for event in events:
        geometry = geometry.with_changes(**event.geometry)
        environment = environment.with_changes(**event.environment)

    return events
