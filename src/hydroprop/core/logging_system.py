"""Logging system for the simulation core and its collaborators.

Logging is configured from YAML, with per-component levels, platform-aware
log locations and rotation on every simulation start.

Importing this module configures nothing. Until the application calls
initialize_logging(), get_logger() hands out plain loggers that propagate to
whatever the host process has set up. initialize_logging() (re)applies the
``components`` section to every logger already handed out, so module-level
loggers created at import time pick up their configured levels.

Platform-specific log locations:
    - macOS: ~/Library/Logs/HydroProp/hydroprop.log
    - Linux: ~/.hydroprop/logs/hydroprop.log
    - Windows: %AppData%/HydroProp/Logs/hydroprop.log

Typical usage example:
    from hydroprop.core.logging_system import get_logger

    logger = get_logger(__name__)
    logger.info("Coefficient table loaded: %d samples", count)
"""

import logging
import logging.handlers
import os
import platform
import time
from pathlib import Path
from typing import Any

import yaml

_logging_config: dict[str, Any] = {}
_loggers_cache: dict[str, logging.Logger] = {}
_initialized = False

# Handlers this module installed; nothing else is removed or closed
_root_handlers: list[logging.Handler] = []
_dedicated_handlers: dict[str, logging.Handler] = {}
_previous_root_level: int | None = None


class LoggingError(Exception):
    """Raised when logging system operations fail."""


def get_platform_log_dir() -> Path:
    """Get platform-specific log directory.

    Returns:
        Path to the platform-appropriate log directory.
    """
    system = platform.system()

    if system == "Darwin":
        return Path.home() / "Library" / "Logs" / "HydroProp"
    elif system == "Windows":
        appdata = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
        return appdata / "HydroProp" / "Logs"
    else:
        return Path.home() / ".hydroprop" / "logs"


def rotate_logs(log_dir: Path, log_filename: str = "hydroprop.log", keep_count: int = 5) -> None:
    """Rotate logs on startup, keeping the last N runs.

    Renames the current log to ``<name>.1``, shifts older logs up by one and
    deletes logs beyond ``keep_count``.

    Args:
        log_dir: Directory containing log files.
        log_filename: Base name of the log file.
        keep_count: Number of old logs to keep.
    """
    log_file = log_dir / log_filename
    if not log_file.exists():
        return

    oldest_log = log_dir / f"{log_filename}.{keep_count}"
    if oldest_log.exists():
        oldest_log.unlink()

    for i in range(keep_count - 1, 0, -1):
        old_log = log_dir / f"{log_filename}.{i}"
        if old_log.exists():
            old_log.rename(log_dir / f"{log_filename}.{i + 1}")

    log_file.rename(log_dir / f"{log_filename}.1")


def initialize_logging(config_path: str | Path | None = None, use_platform_dir: bool = True) -> None:
    """Initialize the logging system from YAML configuration.

    Call at application startup, before the simulation loop is built. Calling
    it again replaces the handlers installed by the previous call and
    re-applies the ``components`` section to every known logger.

    Args:
        config_path: Path to a logging configuration YAML file. If None, the
            default configuration is used.
        use_platform_dir: If True, write logs to the platform directory;
            otherwise use ``log_dir`` from the configuration.

    Raises:
        LoggingError: If the configuration file cannot be read.
    """
    global _logging_config, _initialized, _previous_root_level

    if config_path:
        config_path = Path(config_path)
        if not config_path.exists():
            raise LoggingError(f"Logging config file not found: {config_path}")
        try:
            with config_path.open("r", encoding="utf-8") as f:
                _logging_config = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise LoggingError(f"Failed to load logging config: {e}") from e
    else:
        _logging_config = _get_default_config()

    if use_platform_dir:
        _logging_config["log_dir"] = str(get_platform_log_dir())

    # The previous combined log must be closed before it is rotated
    _release_handlers()

    log_dir = Path(_logging_config.get("log_dir", "logs"))
    file_config = _logging_config.get("combined_log", {})
    if file_config.get("enabled", True):
        log_dir.mkdir(parents=True, exist_ok=True)
        rotate_logs(
            log_dir,
            file_config.get("filename", "hydroprop.log"),
            file_config.get("backup_count", 5),
        )

    if _previous_root_level is None:
        _previous_root_level = logging.getLogger().level
    _configure_root_logger()
    _initialized = True

    components = _logging_config.get("components") or {}
    for name in set(_loggers_cache) | set(components):
        _apply_component_config(_loggers_cache.setdefault(name, logging.getLogger(name)))


def _get_default_config() -> dict[str, Any]:
    """Get default logging configuration.

    The default keeps logging on the console only; file output is opt-in from
    the YAML file so library use does not create log directories.
    """
    return {
        "version": 1,
        "level": "INFO",
        "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        "date_format": "%Y-%m-%d %H:%M:%S",
        "log_dir": "logs",
        "combined_log": {
            "enabled": False,
            "filename": "hydroprop.log",
            "backup_count": 5,
        },
        "console": {
            "enabled": True,
            "level": "WARNING",
        },
        "components": {},
    }


def _configure_root_logger() -> None:
    """Add console and file handlers to the root logger.

    Handlers installed by the host process are left in place.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, _logging_config.get("level", "DEBUG")))

    console_config = _logging_config.get("console", {})
    if console_config.get("enabled", True):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(getattr(logging, console_config.get("level", "INFO")))
        console_handler.setFormatter(_get_formatter())
        _root_handlers.append(console_handler)

    file_config = _logging_config.get("combined_log", {})
    if file_config.get("enabled", True):
        log_dir = Path(_logging_config.get("log_dir", "logs"))
        file_handler = logging.FileHandler(
            log_dir / file_config.get("filename", "hydroprop.log"),
            mode="w",
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(_get_formatter())
        _root_handlers.append(file_handler)

    for handler in _root_handlers:
        root_logger.addHandler(handler)


def _apply_component_config(logger: logging.Logger) -> None:
    """Apply the ``components`` entry for ``logger``, or reset it if there is none."""
    name = logger.name
    component_config = (_logging_config.get("components") or {}).get(name, {})

    old_handler = _dedicated_handlers.pop(name, None)
    if old_handler is not None:
        logger.removeHandler(old_handler)
        old_handler.close()

    if not component_config.get("enabled", True):
        logger.disabled = True
        logger.setLevel(logging.NOTSET)
        return

    logger.disabled = False
    level = component_config.get("level")
    logger.setLevel(getattr(logging, level) if level else logging.NOTSET)

    if component_config.get("dedicated_file", False):
        log_dir = Path(_logging_config.get("log_dir", "logs"))
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_dir / f"{name}.log",
            maxBytes=component_config.get("max_bytes", 10485760),
            backupCount=component_config.get("backup_count", 5),
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(_get_formatter())
        logger.addHandler(file_handler)
        _dedicated_handlers[name] = file_handler


def _release_handlers() -> None:
    root_logger = logging.getLogger()
    for handler in _root_handlers:
        root_logger.removeHandler(handler)
        handler.close()
    _root_handlers.clear()

    for name, handler in _dedicated_handlers.items():
        logging.getLogger(name).removeHandler(handler)
        handler.close()
    _dedicated_handlers.clear()


class MillisecondFormatter(logging.Formatter):
    """Formatter that appends milliseconds with a dot separator."""

    def formatTime(self, record, datefmt=None):
        ct = self.converter(record.created)
        s = time.strftime(datefmt or "%Y-%m-%d %H:%M:%S", ct)
        return f"{s}.{int(record.msecs):03d}"


def _get_formatter() -> logging.Formatter:
    fmt = _logging_config.get("format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    datefmt = _logging_config.get("date_format", "%Y-%m-%d %H:%M:%S")
    return MillisecondFormatter(fmt, datefmt)


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a simulation component.

    Loggers are cached. Each component can be tuned in the logging YAML under
    the ``components`` section (``level``, ``enabled``, ``dedicated_file``).
    Before initialize_logging() runs the logger is returned untouched, and the
    section is applied to it once logging is initialized.

    Args:
        name: Logger name (usually the module ``__name__``).

    Returns:
        Logger instance.

    Note:
        Use lazy formatting (%) instead of f-strings; frame-rate code logs
        from inside the tick.
    """
    if name in _loggers_cache:
        return _loggers_cache[name]

    logger = logging.getLogger(name)
    if _initialized:
        _apply_component_config(logger)
    _loggers_cache[name] = logger
    return logger


def shutdown_logging() -> None:
    """Close the handlers installed by initialize_logging().

    Component levels are reset and the root logger gets back the level it had
    before initialization. Call at application shutdown.
    """
    global _initialized, _previous_root_level

    _release_handlers()
    for logger in _loggers_cache.values():
        logger.setLevel(logging.NOTSET)
        logger.disabled = False

    if _previous_root_level is not None:
        logging.getLogger().setLevel(_previous_root_level)
        _previous_root_level = None
    _initialized = False
