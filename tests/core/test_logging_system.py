"""Unit tests for the logging system with platform-aware paths and rotation."""

import logging
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest
import yaml

from hydroprop.core.logging_system import (
    LoggingError,
    get_logger,
    get_platform_log_dir,
    initialize_logging,
    rotate_logs,
    shutdown_logging,
)


def _write_config(directory: Path, **overrides) -> Path:
    config = {
        "level": "DEBUG",
        "log_dir": str(directory / "logs"),
        "combined_log": {"enabled": True, "filename": "hydroprop.log", "backup_count": 3},
        "console": {"enabled": False},
        "components": {},
    }
    config.update(overrides)
    path = directory / "logging.yaml"
    path.write_text(yaml.safe_dump(config))
    return path


class TestPlatformLogDir:
    """Tests for get_platform_log_dir function."""

    def test_macos_log_dir(self) -> None:
        """Test macOS log directory path."""
        with patch("platform.system", return_value="Darwin"):
            log_dir = get_platform_log_dir()
            assert log_dir == Path.home() / "Library" / "Logs" / "HydroProp"

    def test_linux_log_dir(self) -> None:
        """Test Linux log directory path."""
        with patch("platform.system", return_value="Linux"):
            log_dir = get_platform_log_dir()
            assert log_dir == Path.home() / ".hydroprop" / "logs"

    def test_windows_log_dir(self) -> None:
        """Test Windows log directory path."""
        with patch("platform.system", return_value="Windows"):
            with patch.dict("os.environ", {"APPDATA": "C:/Users/Test/AppData/Roaming"}):
                log_dir = get_platform_log_dir()
                assert "HydroProp" in str(log_dir)
                assert "Logs" in str(log_dir)

    def test_unknown_platform_defaults_to_linux(self) -> None:
        """Test unknown platform defaults to Linux-style path."""
        with patch("platform.system", return_value="FreeBSD"):
            log_dir = get_platform_log_dir()
            assert log_dir == Path.home() / ".hydroprop" / "logs"


class TestLogRotation:
    """Tests for log rotation functionality."""

    def test_rotate_logs_no_existing_log(self) -> None:
        """Test rotation when no log file exists - should do nothing."""
        with tempfile.TemporaryDirectory() as tmpdir:
            log_dir = Path(tmpdir)
            rotate_logs(log_dir, "test.log", 5)
            assert len(list(log_dir.glob("*"))) == 0

    def test_rotate_logs_multiple_files(self) -> None:
        """Test rotation shifts every existing log up by one."""
        with tempfile.TemporaryDirectory() as tmpdir:
            log_dir = Path(tmpdir)
            (log_dir / "test.log").write_text("current")
            (log_dir / "test.log.1").write_text("previous-1")
            (log_dir / "test.log.2").write_text("previous-2")

            rotate_logs(log_dir, "test.log", 5)

            assert not (log_dir / "test.log").exists()
            assert (log_dir / "test.log.1").read_text() == "current"
            assert (log_dir / "test.log.2").read_text() == "previous-1"
            assert (log_dir / "test.log.3").read_text() == "previous-2"

    def test_rotate_logs_deletes_oldest(self) -> None:
        """Test that the log beyond keep_count is deleted."""
        with tempfile.TemporaryDirectory() as tmpdir:
            log_dir = Path(tmpdir)
            (log_dir / "test.log").write_text("current")
            (log_dir / "test.log.1").write_text("old-1")
            (log_dir / "test.log.2").write_text("old-2")

            rotate_logs(log_dir, "test.log", keep_count=2)

            assert (log_dir / "test.log.1").read_text() == "current"
            assert (log_dir / "test.log.2").read_text() == "old-1"
            assert not (log_dir / "test.log.3").exists()


class TestLoggingInitialization:
    """Tests for logging system initialization."""

    def teardown_method(self) -> None:
        shutdown_logging()

    def test_initialize_with_platform_dir(self) -> None:
        """Test that the combined log lands in the platform directory."""
        with tempfile.TemporaryDirectory() as tmpdir:
            config_path = _write_config(Path(tmpdir))
            platform_dir = Path(tmpdir) / "platform"
            with patch("hydroprop.core.logging_system.get_platform_log_dir", return_value=platform_dir):
                initialize_logging(config_path, use_platform_dir=True)
                get_logger("test").info("Test message")
                shutdown_logging()

            assert (platform_dir / "hydroprop.log").exists()

    def test_initialize_without_platform_dir(self) -> None:
        """Test that log_dir from the configuration is used."""
        with tempfile.TemporaryDirectory() as tmpdir:
            config_path = _write_config(Path(tmpdir))
            initialize_logging(config_path, use_platform_dir=False)
            get_logger("test").info("Test message")
            shutdown_logging()

            log_file = Path(tmpdir) / "logs" / "hydroprop.log"
            assert "Test message" in log_file.read_text()

    def test_initialize_rotates_previous_run(self) -> None:
        """Test that a log from a previous run is rotated on start."""
        with tempfile.TemporaryDirectory() as tmpdir:
            config_path = _write_config(Path(tmpdir))
            log_dir = Path(tmpdir) / "logs"
            log_dir.mkdir()
            (log_dir / "hydroprop.log").write_text("previous run")

            initialize_logging(config_path, use_platform_dir=False)
            shutdown_logging()

            assert (log_dir / "hydroprop.log.1").read_text() == "previous run"

    def test_default_config_creates_no_log_files(self) -> None:
        """Test that the default configuration logs to the console only."""
        with tempfile.TemporaryDirectory() as tmpdir:
            platform_dir = Path(tmpdir) / "platform"
            with patch("hydroprop.core.logging_system.get_platform_log_dir", return_value=platform_dir):
                initialize_logging(use_platform_dir=True)
                get_logger("test").warning("Console only")

            assert not platform_dir.exists()

    def test_initialize_with_missing_config(self) -> None:
        """Test initialization fails with a missing config file."""
        with pytest.raises(LoggingError, match="Logging config file not found"):
            initialize_logging(config_path="/nonexistent/config.yaml")

    def test_initialize_with_invalid_yaml(self) -> None:
        """Test initialization fails with an unparsable config file."""
        with tempfile.TemporaryDirectory() as tmpdir:
            config_path = Path(tmpdir) / "logging.yaml"
            config_path.write_text("level: [unclosed")

            with pytest.raises(LoggingError, match="Failed to load logging config"):
                initialize_logging(config_path)


class TestLoggerFunctionality:
    """Tests for logger creation and per-component configuration."""

    def teardown_method(self) -> None:
        shutdown_logging()

    def test_get_logger_returns_cached_logger(self) -> None:
        """Test that get_logger returns the same logger for the same name."""
        initialize_logging(use_platform_dir=False)

        logger = get_logger("hydroprop.test_component")

        assert isinstance(logger, logging.Logger)
        assert logger.name == "hydroprop.test_component"
        assert get_logger("hydroprop.test_component") is logger

    def test_component_level(self) -> None:
        """Test that a component level from the configuration is applied."""
        with tempfile.TemporaryDirectory() as tmpdir:
            config_path = _write_config(
                Path(tmpdir), components={"hydroprop.quiet_component": {"level": "ERROR"}}
            )
            initialize_logging(config_path, use_platform_dir=False)

            logger = get_logger("hydroprop.quiet_component")

            assert logger.level == logging.ERROR

    def test_disabled_component(self) -> None:
        """Test that a disabled component logger is muted."""
        with tempfile.TemporaryDirectory() as tmpdir:
            config_path = _write_config(
                Path(tmpdir), components={"hydroprop.muted_component": {"enabled": False}}
            )
            initialize_logging(config_path, use_platform_dir=False)

            logger = get_logger("hydroprop.muted_component")

            assert logger.disabled

    def test_dedicated_file(self) -> None:
        """Test that a component can write to its own file."""
        with tempfile.TemporaryDirectory() as tmpdir:
            config_path = _write_config(
                Path(tmpdir), components={"hydroprop.frames": {"dedicated_file": True}}
            )
            initialize_logging(config_path, use_platform_dir=False)

            logger = get_logger("hydroprop.frames")
            logger.info("Frame written")
            shutdown_logging()

            assert not logger.handlers

            assert "Frame written" in (Path(tmpdir) / "logs" / "hydroprop.frames.log").read_text()

    def test_component_level_applies_to_module_logger(self) -> None:
        """Test that loggers created at import time pick up component levels."""
        import hydroprop.physics.hydrodynamics  # noqa: F401

        with tempfile.TemporaryDirectory() as tmpdir:
            config_path = _write_config(
                Path(tmpdir),
                components={"hydroprop.physics.hydrodynamics": {"level": "ERROR"}},
            )
            initialize_logging(config_path, use_platform_dir=False)

            assert logging.getLogger("hydroprop.physics.hydrodynamics").level == logging.ERROR

            initialize_logging(use_platform_dir=False)

            assert logging.getLogger("hydroprop.physics.hydrodynamics").level == logging.NOTSET

    def test_reinitialize_replaces_dedicated_file(self) -> None:
        """Test that initializing twice does not stack dedicated handlers."""
        with tempfile.TemporaryDirectory() as tmpdir:
            config_path = _write_config(
                Path(tmpdir), components={"hydroprop.frames": {"dedicated_file": True}}
            )
            initialize_logging(config_path, use_platform_dir=False)
            initialize_logging(config_path, use_platform_dir=False)

            assert len(get_logger("hydroprop.frames").handlers) == 1

            shutdown_logging()


class TestHostLogging:
    """Tests for embedding the package in a process that owns logging."""

    @pytest.fixture
    def host_handler(self):
        shutdown_logging()
        root = logging.getLogger()
        previous_level = root.level
        handler = logging.NullHandler()
        root.addHandler(handler)
        root.setLevel(logging.DEBUG)
        yield handler
        root.removeHandler(handler)
        root.setLevel(previous_level)

    def test_get_logger_leaves_root_untouched(self, host_handler: logging.Handler) -> None:
        """Test that loggers can be obtained without configuring logging."""
        logger = get_logger("hydroprop.embedded")
        root = logging.getLogger()

        assert host_handler in root.handlers
        assert root.level == logging.DEBUG
        assert logger.level == logging.NOTSET

    def test_shutdown_restores_host_configuration(self, host_handler: logging.Handler) -> None:
        """Test that initializing and shutting down keeps the host's handler and level."""
        with tempfile.TemporaryDirectory() as tmpdir:
            initialize_logging(_write_config(Path(tmpdir), level="ERROR"), use_platform_dir=False)
            root = logging.getLogger()

            assert host_handler in root.handlers
            assert root.level == logging.ERROR

            shutdown_logging()

        assert root.handlers.count(host_handler) == 1
        assert root.level == logging.DEBUG
