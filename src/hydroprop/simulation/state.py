"""Shared propeller state with atomic snapshot-and-swap updates.

The control surface (UI, scripted scenario) writes between ticks and the
engine reads one consistent snapshot per tick. Geometry and environment are
immutable values, so a swap under the lock is all the synchronisation
needed.
"""

import threading
from typing import Any

from hydroprop.core.logging_system import get_logger
from hydroprop.environment import EnvironmentParameters
from hydroprop.propeller.geometry import PropellerGeometry

logger = get_logger(__name__)


class PropellerState:
    """Current propeller geometry and ambient environment.

    Examples:
        >>> state = PropellerState(PropellerGeometry(rpm=0.0), EnvironmentParameters())
        >>> state.update_geometry(rpm=120.0)
        >>> geometry, environment = state.snapshot()
    """

    def __init__(
        self,
        geometry: PropellerGeometry | None = None,
        environment: EnvironmentParameters | None = None,
    ) -> None:
        self._lock = threading.Lock()
        self._geometry = geometry or PropellerGeometry()
        self._environment = environment or EnvironmentParameters()

    def snapshot(self) -> tuple[PropellerGeometry, EnvironmentParameters]:
        with self._lock:
            return self._geometry, self._environment

    @property
    def geometry(self) -> PropellerGeometry:
        return self.snapshot()[0]

    @property
    def environment(self) -> EnvironmentParameters:
        return self.snapshot()[1]

    def update_geometry(self, **changes: Any) -> PropellerGeometry:
        """Replace geometry fields atomically.

        Raises:
            InvalidConfiguration: If the new geometry is malformed; the state
                is left unchanged.
        """
        with self._lock:
            # Validation happens in the constructor, before the swap
            self._geometry = self._geometry.with_changes(**changes)
            geometry = self._geometry
        logger.debug("Geometry updated: %s", changes)
        return geometry

    def update_environment(self, **changes: Any) -> EnvironmentParameters:
        """Replace environment fields atomically.

        Raises:
            InvalidConfiguration: If the new environment is malformed; the
                state is left unchanged.
        """
        with self._lock:
            self._environment = self._environment.with_changes(**changes)
            environment = self._environment
        logger.debug("Environment updated: %s", changes)
        return environment

    def apply(self, geometry_changes: dict[str, Any], environment_changes: dict[str, Any]) -> None:
        """Apply geometry and environment changes as one atomic update."""
        with self._lock:
            geometry = self._geometry.with_changes(**geometry_changes) if geometry_changes else self._geometry
            environment = (
                self._environment.with_changes(**environment_changes)
                if environment_changes
                else self._environment
            )
            self._geometry, self._environment = geometry, environment
