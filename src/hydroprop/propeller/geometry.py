"""Propeller geometry and operating point.

Geometry is validated when it is created or changed, never per frame. A
malformed propeller therefore stops the simulation before the first tick.
"""

import math
from dataclasses import dataclass, replace
from typing import Any

from hydroprop.core.errors import InvalidConfiguration

MAX_AREA_RATIO = 1.2


@dataclass(frozen=True)
class PropellerGeometry:
    """Geometry and shaft speed of a fixed-pitch marine propeller.

    Attributes:
        diameter_m: Propeller diameter (m), > 0.
        pitch_m: Nominal pitch (m), > 0.
        blade_count: Number of blades, >= 2.
        area_ratio: Expanded blade area ratio AE/A0, in (0, 1.2].
        rpm: Shaft speed (rev/min). Negative values denote reverse rotation.

    Examples:
        >>> geometry = PropellerGeometry(diameter_m=4.0, pitch_m=3.2, blade_count=4,
        ...                              area_ratio=0.55, rpm=120.0)
        >>> geometry.rps
        2.0
    """

    diameter_m: float = 4.0
    pitch_m: float = 3.2
    blade_count: int = 4
    area_ratio: float = 0.55
    rpm: float = 0.0

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Check geometry bounds.

        Raises:
            InvalidConfiguration: Naming the first offending field.
        """
        if not (math.isfinite(self.diameter_m) and self.diameter_m > 0.0):
            raise InvalidConfiguration(f"must be > 0, got {self.diameter_m!r}", field="propeller.diameter_m")
        if not (math.isfinite(self.pitch_m) and self.pitch_m > 0.0):
            raise InvalidConfiguration(f"must be > 0, got {self.pitch_m!r}", field="propeller.pitch_m")
        if isinstance(self.blade_count, bool) or not isinstance(self.blade_count, int) or self.blade_count < 2:
            raise InvalidConfiguration(
                f"must be an integer >= 2, got {self.blade_count!r}", field="propeller.blade_count"
            )
        if not (0.0 < self.area_ratio <= MAX_AREA_RATIO):
            raise InvalidConfiguration(
                f"must be in (0, {MAX_AREA_RATIO}], got {self.area_ratio!r}", field="propeller.area_ratio"
            )

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "PropellerGeometry":
        """Create from a ``propeller`` configuration section."""
        defaults = cls()
        try:
            return cls(
                diameter_m=float(config.get("diameter_m", defaults.diameter_m)),
                pitch_m=float(config.get("pitch_m", defaults.pitch_m)),
                blade_count=config.get("blade_count", defaults.blade_count),
                area_ratio=float(config.get("area_ratio", defaults.area_ratio)),
                rpm=float(config.get("rpm", defaults.rpm)),
            )
        except (TypeError, ValueError) as e:
            raise InvalidConfiguration(f"invalid value ({e})", field="propeller") from e

    def with_changes(self, **changes: Any) -> "PropellerGeometry":
        """Return a validated copy with some fields replaced."""
        return replace(self, **changes)

    @property
    def rps(self) -> float:
        """Shaft speed in revolutions per second, sign preserved."""
        return self.rpm / 60.0

    @property
    def pitch_ratio(self) -> float:
        return self.pitch_m / self.diameter_m

    @property
    def disc_area_m2(self) -> float:
        return math.pi * (self.diameter_m / 2.0) ** 2
