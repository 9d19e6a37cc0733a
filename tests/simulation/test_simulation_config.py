"""Tests for typed simulation configuration."""

from pathlib import Path

import pytest
import yaml

from hydroprop.core.config import ConfigLoader
from hydroprop.core.errors import InvalidConfiguration, UpstreamUnavailable
from hydroprop.propeller.coefficients import InterpolationMode
from hydroprop.simulation.config import ScenarioEvent, SimulationConfig
from hydroprop.water import ConstantWaterProperties, WaterPropertyStrategy

EXAMPLE_CONFIG = Path(__file__).resolve().parents[2] / "config" / "example_propeller.yaml"


def _base_config() -> dict:
    return {
        "environment": {"temperature_c": 20.0, "flow_velocity_mps": 3.0},
        "propeller": {"diameter_m": 4.0, "pitch_m": 3.2, "blade_count": 4, "area_ratio": 0.55, "rpm": 120},
        "coefficients": {
            "kt": [[0.0, 0.45], [0.5, 0.30], [1.0, 0.08]],
            "kq": [[0.0, 0.060], [0.5, 0.045], [1.0, 0.020]],
        },
    }


def _load(data: dict, base_dir: Path | None = None) -> SimulationConfig:
    return SimulationConfig.from_loader(ConfigLoader(data, base_dir=base_dir))


class TestSimulationConfig:
    """Test suite for SimulationConfig."""

    def test_minimal_config_uses_defaults(self) -> None:
        """Test that omitted sections fall back to defaults."""
        config = _load(_base_config())

        assert config.geometry.rpm == 120.0
        assert config.environment.flow_velocity_mps == 3.0
        assert config.table.mode is InterpolationMode.LINEAR
        assert config.water_strategy is WaterPropertyStrategy.FORMULA
        assert config.settings.sigma_threshold == 1.5
        assert config.physics_hz == 60.0
        assert config.scenario == []
        assert config.export_csv is None

    def test_example_file_loads(self) -> None:
        """Test that the shipped example configuration is valid."""
        config = SimulationConfig.from_file(EXAMPLE_CONFIG)

        assert config.table.is_loaded
        assert config.geometry.diameter_m == 4.0
        assert len(config.scenario) == 3
        assert config.scenario == sorted(config.scenario, key=lambda e: e.time_s)

    def test_missing_file(self, tmp_path: Path) -> None:
        """Test that a missing file is a configuration error."""
        with pytest.raises(InvalidConfiguration, match="not found"):
            SimulationConfig.from_file(tmp_path / "missing.yaml")

    def test_curve_from_file_relative_to_config(self, tmp_path: Path) -> None:
        """Test that curve files resolve against the config directory."""
        (tmp_path / "curves").mkdir()
        (tmp_path / "curves" / "kq.csv").write_text("J,KQ\n0.0,0.06\n0.5,0.045\n1.0,0.02\n")
        data = _base_config()
        del data["coefficients"]["kq"]
        data["coefficients"]["kq_file"] = "curves/kq.csv"
        path = tmp_path / "propeller.yaml"
        path.write_text(yaml.safe_dump(data))

        config = SimulationConfig.from_file(path)

        assert config.table.kq_curve.values == (0.06, 0.045, 0.02)

    def test_missing_curve_file(self, tmp_path: Path) -> None:
        """Test that a referenced curve file must exist."""
        data = _base_config()
        del data["coefficients"]["kt"]
        data["coefficients"]["kt_file"] = "missing.csv"

        with pytest.raises(UpstreamUnavailable):
            _load(data, tmp_path)

    def test_curve_and_file_both_set(self) -> None:
        """Test that inline samples and a file are mutually exclusive."""
        data = _base_config()
        data["coefficients"]["kt_file"] = "kt.csv"

        with pytest.raises(InvalidConfiguration) as exc_info:
            _load(data)

        assert exc_info.value.field == "coefficients.kt"

    def test_curve_missing(self) -> None:
        """Test that both curves are required."""
        data = _base_config()
        del data["coefficients"]["kq"]

        with pytest.raises(InvalidConfiguration) as exc_info:
            _load(data)

        assert exc_info.value.field == "coefficients.kq"

    def test_invalid_geometry_fails_before_start(self) -> None:
        """Test that malformed geometry is reported at load time."""
        data = _base_config()
        data["propeller"]["diameter_m"] = -4.0

        with pytest.raises(InvalidConfiguration) as exc_info:
            _load(data)

        assert exc_info.value.field == "propeller.diameter_m"

    def test_water_strategy(self) -> None:
        """Test selecting the constant strategy with its section."""
        data = _base_config()
        data["water_properties"] = {"strategy": "constant", "constant": {"density_kgm3": 1000.0}}

        config = _load(data)
        model = config.create_water_model()

        assert isinstance(model, ConstantWaterProperties)
        assert model.density_kgm3 == 1000.0

    def test_unknown_water_strategy(self) -> None:
        """Test that an unknown strategy name is rejected."""
        data = _base_config()
        data["water_properties"] = {"strategy": "lookup"}

        with pytest.raises(InvalidConfiguration) as exc_info:
            _load(data)

        assert exc_info.value.field == "water_properties.strategy"

    def test_grid_file_resolved(self, tmp_path: Path) -> None:
        """Test that a grid file path resolves against the config directory."""
        data = _base_config()
        data["water_properties"] = {"strategy": "grid", "grid": {"file": "grid.npz"}}

        config = _load(data, tmp_path)

        assert config.water_config["file"] == str(tmp_path / "grid.npz")

    @pytest.mark.parametrize(
        "key,value,field",
        [
            ("simulation", {"physics_hz": 0}, "simulation.physics_hz"),
            ("simulation", {"duration_s": -1}, "simulation.duration_s"),
            ("cavitation", {"sigma_threshold": "low"}, "cavitation.sigma_threshold"),
            ("engine", {"epsilon": 0.0}, "engine.epsilon"),
        ],
    )
    def test_invalid_settings(self, key: str, value: dict, field: str) -> None:
        """Test that loop and engine settings are validated."""
        data = _base_config()
        data[key] = value

        with pytest.raises(InvalidConfiguration) as exc_info:
            _load(data)

        assert exc_info.value.field == field

    def test_export_path(self, tmp_path: Path) -> None:
        """Test export settings."""
        data = _base_config()
        data["export"] = {"csv": "out/frames.csv", "include_flags": True}

        config = _load(data, tmp_path)

        assert config.export_csv == tmp_path / "out" / "frames.csv"
        assert config.export_flags


class TestScenario:
    """Tests for scripted scenario events."""

    def test_events_sorted_and_aliased(self) -> None:
        """Test ordering and the density alias."""
        data = _base_config()
        data["scenario"] = [
            {"time_s": 5.0, "environment": {"density_kgm3": 1000.0}},
            {"time_s": 1.0, "propeller": {"rpm": 150}},
        ]

        config = _load(data)

        assert config.scenario == [
            ScenarioEvent(1.0, {"rpm": 150}, {}),
            ScenarioEvent(5.0, {}, {"density_override_kgm3": 1000.0}),
        ]

    def test_unknown_field(self) -> None:
        """Test that unknown propeller fields are rejected."""
        data = _base_config()
        data["scenario"] = [{"time_s": 1.0, "propeller": {"rake": 3.0}}]

        with pytest.raises(InvalidConfiguration, match="rake") as exc_info:
            _load(data)

        assert exc_info.value.field == "scenario[0]"

    def test_event_needs_time(self) -> None:
        """Test that every event has a time."""
        data = _base_config()
        data["scenario"] = [{"propeller": {"rpm": 100}}]

        with pytest.raises(InvalidConfiguration, match="time_s"):
            _load(data)

    def test_invalid_intermediate_geometry(self) -> None:
        """Test that a scripted geometry change is validated at load time."""
        data = _base_config()
        data["scenario"] = [{"time_s": 3.0, "propeller": {"area_ratio": 2.0}}]

        with pytest.raises(InvalidConfiguration) as exc_info:
            _load(data)

        assert exc_info.value.field == "propeller.area_ratio"

    def test_null_measured_field_rejected(self) -> None:
        """Test that only the overrides may be reset to null."""
        data = _base_config()
        data["scenario"] = [{"time_s": 0.5, "environment": {"pressure_pa": None}}]

        with pytest.raises(InvalidConfiguration) as exc_info:
            _load(data)

        assert exc_info.value.field == "scenario[0]"

    @pytest.mark.parametrize(
        "changes,field",
        [
            ({"pressure_pa": 0.0}, "environment.pressure_pa"),
            ({"pressure_pa": -5.0e4}, "environment.pressure_pa"),
            ({"density_kgm3": -1000.0}, "environment.density_kgm3"),
            ({"viscosity_pas": 0.0}, "environment.viscosity_pas"),
        ],
    )
    def test_invalid_intermediate_environment(self, changes: dict, field: str) -> None:
        """Test that scripted environment changes follow the same rules as the environment section."""
        data = _base_config()
        data["scenario"] = [{"time_s": 2.0, "environment": changes}]

        with pytest.raises(InvalidConfiguration) as exc_info:
            _load(data)

        assert exc_info.value.field == field

    def test_override_can_be_cleared(self) -> None:
        """Test that a scripted override may later be reset to the derived value."""
        data = _base_config()
        data["scenario"] = [
            {"time_s": 4.0, "environment": {"density_kgm3": None}},
            {"time_s": 1.0, "environment": {"density_kgm3": 1000.0}},
        ]

        config = _load(data)

        assert config.scenario[1] == ScenarioEvent(4.0, {}, {"density_override_kgm3": None})
