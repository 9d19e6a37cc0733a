"""Fixed-timestep simulation loop.

Drives the engine at a fixed physics rate, either paced against the wall
clock (interactive use) or as fast as possible (scripted runs). Scenario
events are applied to the shared PropellerState between ticks, never during
one.

Typical usage example:
    from hydroprop.simulation.sim_loop import SimulationLoop

    loop = SimulationLoop(engine, state, physics_hz=60, scenario=config.scenario)
    loop.run_for(10.0)
"""

import time
from collections.abc import Callable, Iterable

from hydroprop.core.logging_system import get_logger
from hydroprop.physics.hydrodynamics import FrameResult, HydrodynamicsEngine
from hydroprop.simulation.config import ScenarioEvent
from hydroprop.simulation.state import PropellerState

logger = get_logger(__name__)


class SimulationLoop:
    """Fixed-timestep loop around a HydrodynamicsEngine.

    Examples:
        >>> loop = SimulationLoop(engine, state, physics_hz=60)
        >>> loop.run_for(2.0)  # 120 ticks, no sleeping
        120
    """

    def __init__(
        self,
        engine: HydrodynamicsEngine,
        state: PropellerState,
        physics_hz: float = 60.0,
        scenario: Iterable[ScenarioEvent] = (),
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the loop.

        Args:
            engine: Engine to tick. Its state is bound to ``state``.
            state: Shared propeller state read once per tick.
            physics_hz: Tick rate in Hz.
            scenario: Timed parameter changes, in any order.
            clock: Monotonic clock in seconds (replaceable for tests).
            sleep: Sleep function used for real-time pacing.
        """
        if not physics_hz > 0:
            raise ValueError(f"physics_hz must be > 0, got {physics_hz!r}")

        self.engine = engine
        self.state = state
        self.engine.state = state
        self.physics_hz = physics_hz
        self.physics_dt = 1.0 / physics_hz
        self.scenario = sorted(scenario, key=lambda e: e.time_s)
        self._clock = clock
        self._sleep = sleep

        self.running = False
        self.paused = False
        self.sim_time = 0.0
        self.tick_count = 0
        self.physics_accumulator = 0.0
        self.last_result: FrameResult | None = None
        self._next_event = 0
        self._last_time = 0.0

    def run_for(self, duration_s: float) -> int:
        """Run ``duration_s`` of simulated time without real-time pacing.

        Returns:
            Number of ticks executed.
        """
        steps = int(round(duration_s * self.physics_hz))
        logger.info("Running %d ticks (%.3fs at %.1f Hz)", steps, duration_s, self.physics_hz)
        for _ in range(steps):
            self._update_physics(self.physics_dt)
        return steps

    def run(self, duration_s: float | None = None) -> None:
        """Run paced against the clock until stopped or ``duration_s`` elapses."""
        self.running = True
        self._last_time = self._clock()
        logger.info("Simulation loop started")

        try:
            while self.running:
                self.advance(self._clock() - self._last_time)
                if duration_s is not None and self.sim_time >= duration_s - 1e-9:
                    break
                self._limit_rate()
        except KeyboardInterrupt:
            logger.info("Simulation loop interrupted by user")
        finally:
            self.running = False
            logger.info("Simulation loop stopped at t=%.3fs", self.sim_time)

    def advance(self, frame_time: float) -> list[FrameResult]:
        """Consume ``frame_time`` of host time, ticking at the fixed rate.

        This is the entry point for a host that owns its own frame loop.

        Returns:
            Results of the ticks executed during this frame.
        """
        self._last_time += frame_time
        if self.paused:
            return []

        self.physics_accumulator += frame_time

        # Clamp accumulator to prevent spiral of death
        max_accumulator = self.physics_dt * 5
        if self.physics_accumulator > max_accumulator:
            logger.warning("Physics accumulator clamped: %.3fs", self.physics_accumulator)
            self.physics_accumulator = max_accumulator

        results = []
        while self.physics_accumulator >= self.physics_dt:
            results.append(self._update_physics(self.physics_dt))
            self.physics_accumulator -= self.physics_dt
        return results

    def _update_physics(self, dt: float) -> FrameResult:
        self._apply_due_events()
        self.last_result = self.engine.tick(dt)
        self.tick_count += 1
        self.sim_time = self.tick_count * self.physics_dt
        return self.last_result

    def _apply_due_events(self) -> None:
        # Small tolerance so an event at t lands on the tick starting at t
        while self._next_event < len(self.scenario):
            event = self.scenario[self._next_event]
            if event.time_s > self.sim_time + 1e-9:
                break
            self.state.apply(event.geometry, event.environment)
            logger.info(
                "Scenario event at t=%.3fs: propeller=%s environment=%s",
                event.time_s,
                event.geometry,
                event.environment,
            )
            self._next_event += 1

    def _limit_rate(self) -> None:
        elapsed = self._clock() - self._last_time
        sleep_time = self.physics_dt - elapsed
        if sleep_time > 0:
            self._sleep(sleep_time)

    def stop(self) -> None:
        """Stop the loop at the end of the current frame."""
        self.running = False
        logger.info("Simulation loop stop requested")

    def pause(self) -> None:
        self.paused = True
        logger.info("Simulation loop paused")

    def resume(self) -> None:
        self.paused = False
        self.physics_accumulator = 0.0
        logger.info("Simulation loop resumed")

    def is_running(self) -> bool:
        return self.running

    def is_paused(self) -> bool:
        return self.paused
