"""Water property models.

Three interchangeable strategies implement IWaterPropertyModel:
constant values, the seawater equation of state, and a precomputed grid.
They are created by name through a ComponentRegistry so configuration can
swap them without touching the engine.
"""

from typing import Any

from hydroprop.core.errors import InvalidConfiguration
from hydroprop.core.registry import ComponentRegistry, RegistryError
from hydroprop.water.base import (
    DomainReport,
    IWaterPropertyModel,
    ValidityDomain,
    WaterProperties,
    WaterPropertyStrategy,
)
from hydroprop.water.constant import ConstantWaterProperties
from hydroprop.water.grid import GridWaterProperties, PropertyGrid
from hydroprop.water.seawater import SeawaterEquationOfState

__all__ = [
    "ConstantWaterProperties",
    "DomainReport",
    "GridWaterProperties",
    "IWaterPropertyModel",
    "PropertyGrid",
    "SeawaterEquationOfState",
    "ValidityDomain",
    "WaterProperties",
    "WaterPropertyStrategy",
    "build_water_registry",
    "create_water_model",
]


def build_water_registry() -> ComponentRegistry:
    """Create a registry holding the built-in strategies."""
    registry = ComponentRegistry()
    registry.register(WaterPropertyStrategy.CONSTANT.value, ConstantWaterProperties.from_config)
    registry.register(WaterPropertyStrategy.FORMULA.value, SeawaterEquationOfState.from_config)
    registry.register(WaterPropertyStrategy.GRID.value, GridWaterProperties.from_config)
    return registry


def create_water_model(
    strategy: str | WaterPropertyStrategy,
    config: dict[str, Any] | None = None,
    registry: ComponentRegistry | None = None,
) -> IWaterPropertyModel:
    """Create a water property model by strategy name.

    Args:
        strategy: Strategy name or enum member.
        config: Strategy-specific configuration section.
        registry: Registry to create from (built-in strategies by default).

    Raises:
        InvalidConfiguration: If the strategy is unknown.
    """
    name = strategy.value if isinstance(strategy, WaterPropertyStrategy) else str(strategy).lower()
    registry = registry or build_water_registry()
    try:
        return registry.create(name, config or {})
    except RegistryError as e:
        raise InvalidConfiguration(str(e), field="water_properties.strategy") from e
