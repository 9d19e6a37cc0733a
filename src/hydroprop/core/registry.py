"""Component registry for pluggable implementations.

Used to select water property strategies by name from configuration.

Typical usage example:
    from hydroprop.core.registry import ComponentRegistry

    registry = ComponentRegistry()
    registry.register("formula", SeawaterEquationOfState.from_config)
    model = registry.create("formula", {})
"""

from typing import Any

from hydroprop.core.logging_system import get_logger

logger = get_logger(__name__)


class RegistryError(Exception):
    """Raised when registry operations fail."""


class ComponentRegistry:
    """Registry of factories keyed by name.

    A factory is any callable accepting a configuration dictionary, usually
    a class or a ``from_config`` classmethod.
    """

    def __init__(self) -> None:
        self._components: dict[str, Any] = {}

    def register(self, name: str, factory: Any) -> None:
        """Register a factory under ``name``.

        Raises:
            RegistryError: If name is already registered.
        """
        if name in self._components:
            raise RegistryError(f"Component already registered: {name}")

        self._components[name] = factory
        logger.debug("Registered component: %s -> %s", name, getattr(factory, "__qualname__", factory))

    def unregister(self, name: str) -> None:
        """Unregister a component.

        Raises:
            RegistryError: If name is not registered.
        """
        if name not in self._components:
            raise RegistryError(f"Component not registered: {name}")

        del self._components[name]

    def create(self, name: str, config: dict[str, Any]) -> Any:
        """Create an instance from the factory registered under ``name``.

        Raises:
            RegistryError: If name is not registered. Exceptions raised by
                the factory itself propagate unchanged so callers keep the
                original error type.
        """
        if name not in self._components:
            raise RegistryError(
                f"Component not registered: {name} (available: {', '.join(self.list_components())})"
            )

        return self._components[name](config)

    def is_registered(self, name: str) -> bool:
        return name in self._components

    def list_components(self) -> list[str]:
        """Get all registered names in registration order."""
        return list(self._components.keys())
