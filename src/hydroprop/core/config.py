"""Configuration loader for YAML files.

Provides loading with dotted-key access, defaults and section lookup. Typed
interpretation of the simulation settings lives in
``hydroprop.simulation.config``.

Typical usage example:
    from hydroprop.core.config import ConfigLoader

    config = ConfigLoader.load("config/propeller.yaml")
    threshold = config.get("cavitation.sigma_threshold", default=1.5)
"""

from pathlib import Path
from typing import Any

import yaml

from hydroprop.core.logging_system import get_logger

logger = get_logger(__name__)


class ConfigError(Exception):
    """Raised when configuration files cannot be read or written."""


class ConfigLoader:
    """Configuration loader for YAML files.

    Examples:
        >>> config = ConfigLoader.load("config/propeller.yaml")
        >>> diameter = config.get("propeller.diameter_m", default=4.0)
    """

    def __init__(self, data: dict[str, Any] | None = None, base_dir: Path | None = None) -> None:
        """Initialize with configuration data.

        Args:
            data: Configuration dictionary.
            base_dir: Directory that relative file paths in the configuration
                are resolved against (the YAML file's directory when loaded).
        """
        self._data = data if data is not None else {}
        self.base_dir = base_dir or Path.cwd()

    @classmethod
    def load(cls, path: str | Path) -> "ConfigLoader":
        """Load configuration from a YAML file.

        Raises:
            ConfigError: If the file is missing, unreadable or not a mapping.
        """
        path = Path(path)

        if not path.exists():
            raise ConfigError(f"Configuration file not found: {path}")

        try:
            with path.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to load configuration: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError(f"Configuration root must be a mapping: {path}")

        logger.info("Loaded configuration from: %s", path)
        return cls(data, base_dir=path.parent)

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value using dot notation.

        Examples:
            >>> config.get("environment.temperature_c", default=15.0)
        """
        value = self._data

        for k in key.split("."):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value using dot notation."""
        keys = key.split(".")
        data = self._data

        for k in keys[:-1]:
            if k not in data:
                data[k] = {}
            data = data[k]

        data[keys[-1]] = value

    def get_section(self, key: str, required: bool = True) -> dict[str, Any]:
        """Get an entire configuration section.

        Args:
            key: Section key (supports dot notation).
            required: If False, a missing section yields an empty dict.

        Raises:
            ConfigError: If the section is missing (and required) or is not
                a mapping.
        """
        value = self.get(key)

        if value is None:
            if not required:
                return {}
            raise ConfigError(f"Configuration section not found: {key}")

        if not isinstance(value, dict):
            raise ConfigError(f"Configuration key is not a section: {key}")

        return value

    def resolve_path(self, value: str | Path) -> Path:
        """Resolve a path from the configuration relative to ``base_dir``."""
        path = Path(value)
        return path if path.is_absolute() else self.base_dir / path

    def save(self, path: str | Path) -> None:
        """Save configuration to a YAML file.

        Raises:
            ConfigError: If the file cannot be written.
        """
        path = Path(path)

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("w", encoding="utf-8") as f:
                yaml.safe_dump(self._data, f, default_flow_style=False, sort_keys=False)
        except OSError as e:
            raise ConfigError(f"Failed to save configuration: {e}") from e

        logger.info("Saved configuration to: %s", path)

    def merge(self, other: "ConfigLoader") -> None:
        """Merge another configuration into this one; ``other`` wins."""
        self._data = self._merge_dicts(self._data, other._data)

    def _merge_dicts(self, base: dict, override: dict) -> dict:
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_dicts(result[key], value)
            else:
                result[key] = value

        return result

    def to_dict(self) -> dict[str, Any]:
        """Get the configuration as a dictionary."""
        return self._data.copy()
