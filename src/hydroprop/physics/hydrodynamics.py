"""Per-tick hydrodynamic response of a marine propeller.

The engine turns the current propeller geometry, shaft speed and ambient
water state into thrust, torque, shaft power and a cavitation indicator,
using the open-water coefficient curves and a water property model.

Physics model (SI units, n in rev/s):
    - Advance ratio: J = V_A / (n * D), denominator floored at epsilon
    - Thrust: T = KT * rho * n^2 * D^4
    - Torque: Q = KQ * rho * n^2 * D^5
    - Shaft power: P = 2 * pi * n * Q
    - Tip speed: V_tip = pi * D * |n|
    - Cavitation number: sigma = (p - p_v) / (0.5 * rho * V_tip^2 + epsilon)

Every frame is a pure function of its inputs unless smoothing is enabled.
A frame that would contain NaN or infinity is replaced by the last valid
frame, flagged, so a transient bad input never stops the loop.

Typical usage example:
    engine = HydrodynamicsEngine(table, SeawaterEquationOfState(),
                                 EngineSettings(sigma_threshold=1.5))
    result = engine.step(environment, geometry, dt=1.0 / 60.0)
"""

import math
from collections.abc import Iterable
from dataclasses import dataclass, fields, replace
from enum import Flag, auto
from typing import TYPE_CHECKING

from hydroprop.core.errors import InvalidConfiguration, NumericalAnomaly, UpstreamUnavailable
from hydroprop.core.event_bus import Event, EventBus
from hydroprop.core.logging_system import get_logger
from hydroprop.environment import EnvironmentParameters, WaterPropertyResolver
from hydroprop.propeller.coefficients import CoefficientTable
from hydroprop.propeller.geometry import PropellerGeometry
from hydroprop.water.base import IWaterPropertyModel

if TYPE_CHECKING:
    from hydroprop.export.frame_logger import IFrameLogger
    from hydroprop.simulation.state import PropellerState

logger = get_logger(__name__)

TWO_PI = 2.0 * math.pi


class FrameFlag(Flag):
    """Condition flags attached to a frame.

    Attributes:
        OUT_OF_DOMAIN: Water property inputs were clamped.
        NUMERICAL_ANOMALY: The frame computation produced NaN or infinity.
        SUBSTITUTED: The values are copied from the last valid frame.
    """

    NONE = 0
    OUT_OF_DOMAIN = auto()
    NUMERICAL_ANOMALY = auto()
    SUBSTITUTED = auto()

    def describe(self) -> str:
        """Pipe-separated flag names, empty for NONE."""
        return "|".join(flag.name for flag in FrameFlag if flag.value and flag in self)


@dataclass(frozen=True)
class FrameResult:
    """Hydrodynamic response for one tick.

    Attributes:
        step: Tick index, starting at 0.
        j: Advance ratio.
        kt: Thrust coefficient.
        kq: Torque coefficient.
        thrust_n: Axial thrust (N).
        torque_nm: Shaft torque (N.m).
        shaft_power_w: Shaft power (W).
        tip_speed_mps: Blade tip speed magnitude (m/s).
        sigma: Cavitation number at the blade tip.
        cavitation_risk: True when sigma is below the calibrated threshold.
        time_s: Simulated time at the end of the tick (s).
        density_kgm3: Water density used (kg/m3).
        viscosity_pas: Dynamic viscosity used (Pa.s).
        vapor_pressure_pa: Vapor pressure used (Pa).
        open_water_efficiency: J * KT / (2 * pi * KQ).
        reynolds_number: rho * V_tip * D / mu.
        flags: Condition flags.
    """

    step: int
    j: float
    kt: float
    kq: float
    thrust_n: float
    torque_nm: float
    shaft_power_w: float
    tip_speed_mps: float
    sigma: float
    cavitation_risk: bool
    time_s: float = 0.0
    density_kgm3: float = 0.0
    viscosity_pas: float = 0.0
    vapor_pressure_pa: float = 0.0
    open_water_efficiency: float = 0.0
    reynolds_number: float = 0.0
    flags: FrameFlag = FrameFlag.NONE

    @classmethod
    def quiescent(cls, step: int, time_s: float, flags: FrameFlag) -> "FrameResult":
        """An all-zero frame, used when no valid frame exists yet."""
        return cls(
            step=step,
            j=0.0,
            kt=0.0,
            kq=0.0,
            thrust_n=0.0,
            torque_nm=0.0,
            shaft_power_w=0.0,
            tip_speed_mps=0.0,
            sigma=0.0,
            cavitation_risk=False,
            time_s=time_s,
            flags=flags,
        )

    @property
    def is_valid(self) -> bool:
        return not (self.flags & FrameFlag.NUMERICAL_ANOMALY)

    def non_finite_fields(self) -> list[str]:
        """Names of float fields holding NaN or infinity."""
        return [
            f.name
            for f in fields(self)
            if isinstance(getattr(self, f.name), float) and not math.isfinite(getattr(self, f.name))
        ]


@dataclass
class FrameEvent(Event):
    """Published on the event bus once per tick."""

    result: FrameResult | None = None


@dataclass(frozen=True)
class EngineSettings:
    """Calibration constants for the engine.

    Attributes:
        sigma_threshold: Cavitation number below which risk is reported.
            Calibrated per propeller.
        epsilon: Floor for the advance-ratio and dynamic-pressure
            denominators near zero RPM.
        smoothing_time_constant_s: First-order filter time constant applied
            to RPM and advance velocity; 0 disables smoothing.
    """

    sigma_threshold: float = 1.5
    epsilon: float = 0.01
    smoothing_time_constant_s: float = 0.0

    def __post_init__(self) -> None:
        if not math.isfinite(self.sigma_threshold):
            raise InvalidConfiguration("must be finite", field="cavitation.sigma_threshold")
        if not (math.isfinite(self.epsilon) and self.epsilon > 0.0):
            raise InvalidConfiguration(f"must be > 0, got {self.epsilon!r}", field="engine.epsilon")
        if not (math.isfinite(self.smoothing_time_constant_s) and self.smoothing_time_constant_s >= 0.0):
            raise InvalidConfiguration(
                f"must be >= 0, got {self.smoothing_time_constant_s!r}",
                field="engine.smoothing_time_constant_s",
            )


@dataclass
class _Smoother:
    """First-order low-pass state for RPM and advance velocity."""

    time_constant_s: float
    rpm: float | None = None
    flow_velocity_mps: float | None = None

    def filter(self, rpm: float, velocity: float, dt: float) -> tuple[float, float]:
        if self.time_constant_s <= 0.0 or self.rpm is None or self.flow_velocity_mps is None:
            return rpm, velocity
        alpha = dt / (self.time_constant_s + dt) if dt > 0.0 else 0.0
        return (
            self.rpm + alpha * (rpm - self.rpm),
            self.flow_velocity_mps + alpha * (velocity - self.flow_velocity_mps),
        )

    def commit(self, rpm: float, velocity: float) -> None:
        self.rpm = rpm
        self.flow_velocity_mps = velocity


class HydrodynamicsEngine:
    """Computes one FrameResult per tick.

    Collaborators are injected: the coefficient table, the water property
    model, an optional PropellerState for ``tick``, an optional event bus and
    any number of frame loggers.

    Examples:
        >>> engine = HydrodynamicsEngine(table, ConstantWaterProperties(),
        ...                              EngineSettings(sigma_threshold=1.5))
        >>> result = engine.step(EnvironmentParameters(flow_velocity_mps=3.0),
        ...                      PropellerGeometry(diameter_m=4.0, rpm=120.0), 0.016)
        >>> result.thrust_n > 0
        True
    """

    def __init__(
        self,
        table: CoefficientTable,
        water_model: IWaterPropertyModel,
        settings: EngineSettings | None = None,
        state: "PropellerState | None" = None,
        event_bus: EventBus | None = None,
        frame_loggers: Iterable["IFrameLogger"] = (),
    ) -> None:
        self.table = table
        self.settings = settings or EngineSettings()
        self.state = state
        self.event_bus = event_bus
        self.frame_loggers: list[IFrameLogger] = list(frame_loggers)

        self._resolver = WaterPropertyResolver(water_model)
        self._smoother = _Smoother(self.settings.smoothing_time_constant_s)
        self._next_step = 0
        self._time_s = 0.0
        self._last_valid: FrameResult | None = None
        self._anomaly_count = 0
        self._out_of_domain = False

        logger.info(
            "HydrodynamicsEngine initialized: sigma_threshold=%.3f, epsilon=%g, water_model=%s",
            self.settings.sigma_threshold,
            self.settings.epsilon,
            type(water_model).__name__,
        )

    @property
    def water_model(self) -> IWaterPropertyModel:
        return self._resolver.model

    @property
    def step_count(self) -> int:
        return self._next_step

    @property
    def last_valid_result(self) -> FrameResult | None:
        return self._last_valid

    def add_frame_logger(self, frame_logger: "IFrameLogger") -> None:
        self.frame_loggers.append(frame_logger)

    def tick(self, dt: float) -> FrameResult:
        """Advance one tick using a snapshot of the bound PropellerState.

        Raises:
            UpstreamUnavailable: If no PropellerState is bound.
        """
        if self.state is None:
            raise UpstreamUnavailable("No PropellerState bound to the engine")
        geometry, environment = self.state.snapshot()
        return self.step(environment, geometry, dt)

    def step(self, environment: EnvironmentParameters, geometry: PropellerGeometry, dt: float) -> FrameResult:
        """Compute, record and dispatch the frame for the given inputs.

        Args:
            environment: Ambient water state for this tick.
            geometry: Validated propeller geometry and shaft speed.
            dt: Elapsed time since the previous tick (s).

        Returns:
            The frame result, possibly substituted and flagged.

        Raises:
            UpstreamUnavailable: If the coefficient table is not loaded.
        """
        step = self._next_step
        self._next_step += 1
        if math.isfinite(dt) and dt > 0.0:
            self._time_s += dt

        try:
            result = self._compute(step, environment, geometry, dt)
        except NumericalAnomaly as e:
            result = self._substitute(step, e)
        else:
            if self._anomaly_count:
                logger.info("Frame %d valid again after %d anomalous frames", step, self._anomaly_count)
                self._anomaly_count = 0
            self._last_valid = result

        self._track_domain(result)
        self._dispatch(result)
        return result

    def reset(self) -> None:
        """Forget history: step counter, time, smoothing and last valid frame."""
        self._next_step = 0
        self._time_s = 0.0
        self._last_valid = None
        self._anomaly_count = 0
        self._out_of_domain = False
        self._smoother = _Smoother(self.settings.smoothing_time_constant_s)
        self._resolver.invalidate()

    def _compute(
        self, step: int, environment: EnvironmentParameters, geometry: PropellerGeometry, dt: float
    ) -> FrameResult:
        eps = self.settings.epsilon
        diameter = geometry.diameter_m

        try:
            water = self._resolver.resolve(environment)
            rho = water.density_kgm3
            rpm, velocity = self._smoother.filter(geometry.rpm, environment.flow_velocity_mps, dt)

            n = rpm / 60.0
            denominator = n * diameter
            if abs(denominator) < eps:
                denominator = math.copysign(eps, denominator)
            j = velocity / denominator

            kt, kq = self.table.evaluate(j)

            n_squared = n * n
            thrust = kt * rho * n_squared * diameter**4
            torque = kq * rho * n_squared * diameter**5
            power = TWO_PI * n * torque

            tip_speed = abs(math.pi * diameter * n)
            dynamic_pressure = 0.5 * rho * tip_speed * tip_speed
            sigma = (environment.pressure_pa - water.vapor_pressure_pa) / (dynamic_pressure + eps)

            efficiency = j * kt / (TWO_PI * kq) if abs(kq) > 1e-12 else 0.0
            reynolds = rho * tip_speed * diameter / water.viscosity_pas
        except (ZeroDivisionError, OverflowError) as e:
            raise NumericalAnomaly(f"frame {step}: {e}") from e

        result = FrameResult(
            step=step,
            j=j,
            kt=kt,
            kq=kq,
            thrust_n=thrust,
            torque_nm=torque,
            shaft_power_w=power,
            tip_speed_mps=tip_speed,
            sigma=sigma,
            cavitation_risk=sigma < self.settings.sigma_threshold,
            time_s=self._time_s,
            density_kgm3=rho,
            viscosity_pas=water.viscosity_pas,
            vapor_pressure_pa=water.vapor_pressure_pa,
            open_water_efficiency=efficiency,
            reynolds_number=reynolds,
            flags=FrameFlag.NONE if water.report.in_domain else FrameFlag.OUT_OF_DOMAIN,
        )

        bad = result.non_finite_fields()
        if bad:
            raise NumericalAnomaly(f"frame {step}: non-finite {', '.join(bad)}")

        self._smoother.commit(rpm, velocity)
        return result

    def _substitute(self, step: int, error: NumericalAnomaly) -> FrameResult:
        self._anomaly_count += 1
        if self._anomaly_count == 1:
            logger.warning("Numerical anomaly, substituting last valid frame: %s", error)
        else:
            logger.debug("Numerical anomaly (%d in a row): %s", self._anomaly_count, error)

        flags = FrameFlag.NUMERICAL_ANOMALY | FrameFlag.SUBSTITUTED
        if self._last_valid is None:
            return FrameResult.quiescent(step, self._time_s, flags)
        return replace(self._last_valid, step=step, time_s=self._time_s, flags=self._last_valid.flags | flags)

    def _track_domain(self, result: FrameResult) -> None:
        if result.flags & FrameFlag.SUBSTITUTED:
            return
        out_of_domain = bool(result.flags & FrameFlag.OUT_OF_DOMAIN)
        if out_of_domain and not self._out_of_domain:
            logger.warning(
                "Water property inputs outside validity domain at frame %d; values clamped", result.step
            )
        elif self._out_of_domain and not out_of_domain:
            logger.info("Water property inputs back inside validity domain at frame %d", result.step)
        self._out_of_domain = out_of_domain

    def _dispatch(self, result: FrameResult) -> None:
        if self.event_bus is not None:
            self.event_bus.publish(FrameEvent(result=result))
        for frame_logger in self.frame_loggers:
            frame_logger.log_frame(result)

