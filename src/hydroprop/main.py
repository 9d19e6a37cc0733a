"""HydroProp - real-time marine propeller hydrodynamics.

Command line entry point. Loads a simulation configuration, wires the
engine, state, loop and frame loggers together and runs a scripted
simulation; or prints water properties for given conditions.

Typical usage:
    hydroprop run config/example_propeller.yaml --csv frames.csv
    hydroprop properties --temperature 20 --salinity 35
"""

import argparse
import sys
from pathlib import Path

from hydroprop.core.errors import HydroPropError
from hydroprop.core.event_bus import EventBus
from hydroprop.core.logging_system import LoggingError, get_logger, initialize_logging, shutdown_logging
from hydroprop.environment import EnvironmentParameters, WaterPropertyResolver
from hydroprop.export.frame_logger import CsvFrameLogger, IFrameLogger, MemoryFrameLogger
from hydroprop.physics.hydrodynamics import FrameFlag, HydrodynamicsEngine
from hydroprop.simulation.config import SimulationConfig
from hydroprop.simulation.sim_loop import SimulationLoop
from hydroprop.simulation.state import PropellerState
from hydroprop.water import WaterPropertyStrategy, create_water_model

logger = get_logger(__name__)


class HydroProp:
    """Application object: owns the configured engine, loop and loggers.

    Examples:
        >>> app = HydroProp(SimulationConfig.from_file("config/example_propeller.yaml"))
        >>> app.run()
        >>> app.history.results[-1].thrust_n
    """

    def __init__(self, config: SimulationConfig, csv_path: Path | None = None) -> None:
        """Build all collaborators. Fails before any tick on invalid setup.

        Args:
            config: Validated simulation configuration.
            csv_path: Export file, overriding ``export.csv`` from the config.
        """
        self.config = config
        water_model = config.create_water_model()
        self.event_bus = EventBus()
        self.state = PropellerState(config.geometry, config.environment)
        self.history = MemoryFrameLogger()
        self.history.attach(self.event_bus)
        self.frame_loggers: list[IFrameLogger] = []

        csv_path = csv_path or config.export_csv
        if csv_path is not None:
            self.frame_loggers.append(CsvFrameLogger(csv_path, include_flags=config.export_flags))

        self.engine = HydrodynamicsEngine(
            config.table,
            water_model,
            config.settings,
            state=self.state,
            event_bus=self.event_bus,
            frame_loggers=self.frame_loggers,
        )
        self.loop = SimulationLoop(
            self.engine,
            self.state,
            physics_hz=config.physics_hz,
            scenario=config.scenario,
        )

    def run(self, duration_s: float | None = None) -> None:
        duration_s = self.config.duration_s if duration_s is None else duration_s
        try:
            if self.config.realtime:
                self.loop.run(duration_s)
            else:
                self.loop.run_for(duration_s)
        finally:
            self.shutdown()

    def shutdown(self) -> None:
        for frame_logger in [self.history, *self.frame_loggers]:
            frame_logger.close()

    def summary(self) -> str:
        results = self.history.results
        if not results:
            return "No frames computed"

        last = results[-1]
        anomalies = sum(1 for r in results if r.flags & FrameFlag.NUMERICAL_ANOMALY)
        risky = sum(1 for r in results if r.cavitation_risk)
        return (
            f"{len(results)} frames, t={last.time_s:.3f}s\n"
            f"  J={last.j:.4f} KT={last.kt:.4f} KQ={last.kq:.5f}\n"
            f"  thrust={last.thrust_n:.1f} N torque={last.torque_nm:.1f} N.m "
            f"power={last.shaft_power_w / 1000.0:.2f} kW\n"
            f"  sigma={last.sigma:.3f} cavitation_risk={last.cavitation_risk}\n"
            f"  frames at cavitation risk: {risky}, anomalous frames: {anomalies}"
        )


def _run_command(args: argparse.Namespace) -> int:
    config = SimulationConfig.from_file(args.config)
    app = HydroProp(config, csv_path=args.csv)
    app.run(args.duration)
    print(app.summary())
    return 0


def _properties_command(args: argparse.Namespace) -> int:
    model = create_water_model(WaterPropertyStrategy(args.strategy))
    environment = EnvironmentParameters(
        pressure_pa=args.pressure,
        temperature_c=args.temperature,
        salinity_psu=args.salinity,
    )
    props = WaterPropertyResolver(model).resolve(environment)
    print(f"density:        {props.density_kgm3:.4f} kg/m3")
    print(f"viscosity:      {props.viscosity_pas:.6e} Pa.s")
    print(f"vapor pressure: {props.vapor_pressure_pa:.1f} Pa")
    if not props.report.in_domain:
        print(f"clamped inputs: {', '.join(props.report.clamped)}")
    return 0


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="HydroProp - marine propeller hydrodynamics")
    parser.add_argument("--log-config", type=Path, help="Logging configuration YAML file")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Run a scripted simulation")
    run_parser.add_argument("config", type=Path, help="Simulation configuration YAML file")
    run_parser.add_argument("--csv", type=Path, help="Write frames to this CSV file")
    run_parser.add_argument("--duration", type=float, help="Simulated duration in seconds")
    run_parser.set_defaults(handler=_run_command)

    props_parser = subparsers.add_parser("properties", help="Print water properties")
    props_parser.add_argument("--temperature", type=float, default=15.0, help="Temperature (C)")
    props_parser.add_argument("--salinity", type=float, default=35.0, help="Salinity (PSU)")
    props_parser.add_argument("--pressure", type=float, default=101325.0, help="Absolute pressure (Pa)")
    props_parser.add_argument(
        "--strategy",
        choices=[WaterPropertyStrategy.FORMULA.value, WaterPropertyStrategy.CONSTANT.value],
        default=WaterPropertyStrategy.FORMULA.value,
        help="Water property strategy",
    )
    props_parser.set_defaults(handler=_properties_command)

    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Main entry point.

    Returns:
        Exit code (0 for success, 1 for configuration or startup errors).
    """
    args = parse_args(argv)
    try:
        initialize_logging(args.log_config, use_platform_dir=False)
    except LoggingError as e:
        print(f"hydroprop: {e}", file=sys.stderr)
        return 1

    try:
        return args.handler(args)
    except HydroPropError as e:
        logger.error("Startup failed: %s", e)
        print(f"hydroprop: {e}", file=sys.stderr)
        return 1
    finally:
        shutdown_logging()


if __name__ == "__main__":
    sys.exit(main())
