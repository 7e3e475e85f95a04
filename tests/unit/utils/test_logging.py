"""Unit tests for logging utilities."""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

import pytest
from pyfakefs.fake_filesystem import FakeFilesystem

from gitmeta.config import LogFormat, LoggingConfig, LogLevel
from gitmeta.utils import create_logger
from gitmeta.utils._logging import _create_logger, _log_level_from_string


class TestLogLevelFromString:
    @pytest.mark.parametrize(
        ("level", "expected"),
        [
            ("debug", logging.DEBUG),
            ("INFO", logging.INFO),
            ("warning", logging.WARNING),
            ("error", logging.ERROR),
            ("nonsense", logging.WARNING),
        ],
    )
    def test_maps_names(self, level: str, expected: int) -> None:
        assert _log_level_from_string(level) == expected

    def test_debug_environment_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GITMETA_DEBUG", "1")

        assert _log_level_from_string("error") == logging.DEBUG
        assert _log_level_from_string("error", respect_env=False) == logging.ERROR


class TestCreateLogger:
    def test_creates_log_directory_if_missing(self, fs: FakeFilesystem) -> None:
        log_path = Path("/logs/test.log")
        assert not log_path.parent.exists()

        _ = _create_logger(str(log_path), log_level=logging.INFO)

        assert log_path.parent.exists()

    def test_default_format_is_json(self, fs: FakeFilesystem) -> None:
        logger = _create_logger("/logs/test.log", log_level=logging.INFO)

        logger.info("test_event", key="value")

        log_content = Path("/logs/test.log").read_text()
        assert '"event": "test_event"' in log_content
        assert '"key": "value"' in log_content
        assert '"level": "info"' in log_content

    def test_text_format(self, fs: FakeFilesystem) -> None:
        logger = _create_logger(
            "/logs/test.log", log_level=logging.INFO, log_format="text"
        )

        logger.info("test_event", key="value")

        log_content = Path("/logs/test.log").read_text()
        assert "test_event" in log_content
        assert "key=value" in log_content

    def test_level_filters_messages(self, fs: FakeFilesystem) -> None:
        logger = _create_logger("/logs/test.log", log_level=logging.ERROR)

        logger.debug("debug_level_message")
        logger.error("error_level_message")

        content = Path("/logs/test.log").read_text()
        assert "debug_level_message" not in content
        assert "error_level_message" in content

    def test_stderr_without_file(self, capsys: pytest.CaptureFixture[str]) -> None:
        logger = _create_logger(None, log_level=logging.WARNING)

        logger.warning("to_stderr", path="a.txt")

        captured = capsys.readouterr()
        assert "to_stderr" in captured.err
        assert captured.out == ""


class TestCreateLoggerRotation:
    def test_with_rotation_uses_stdlib_logger(self, fs: FakeFilesystem) -> None:
        _ = _create_logger(
            "/logs/rotating.log",
            log_level=logging.INFO,
            max_bytes=1000,
            backup_count=3,
        )

        handlers = [
            handler
            for name in logging.root.manager.loggerDict
            if name.startswith("gitmeta.rotating.")
            for handler in logging.getLogger(name).handlers
        ]
        assert handlers
        handler = handlers[-1]
        assert isinstance(handler, RotatingFileHandler)
        assert handler.maxBytes == 1000
        assert handler.backupCount == 3

    def test_rotation_requires_both_params(self, fs: FakeFilesystem) -> None:
        logger = _create_logger(
            "/logs/partial.log", log_level=logging.INFO, max_bytes=10
        )

        logger.info("first_message")

        assert "first_message" in Path("/logs/partial.log").read_text()
        assert not any(
            name.startswith("gitmeta.partial.")
            for name in logging.root.manager.loggerDict
        )


class TestCreateLoggerFromConfig:
    def test_uses_configured_file_level_and_format(self, fs: FakeFilesystem) -> None:
        config = LoggingConfig(
            level=LogLevel.INFO, format=LogFormat.TEXT, file="/logs/gitmeta.log"
        )

        logger = create_logger(config)
        logger.debug("hidden")
        logger.info("shown", count=2)

        content = Path("/logs/gitmeta.log").read_text()
        assert "hidden" not in content
        assert "shown" in content
        assert "count=2" in content

    def test_binds_context(self, fs: FakeFilesystem) -> None:
        config = LoggingConfig(level=LogLevel.INFO, file="/logs/gitmeta.log")

        logger = create_logger(config, repository="/repo", component="test")
        logger.info("bound")

        content = Path("/logs/gitmeta.log").read_text()
        assert '"repository": "/repo"' in content
        assert '"component": "test"' in content

    def test_default_config_logs_warnings_to_stderr(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        logger = create_logger()
        logger.info("quiet")
        logger.warning("loud")

        err = capsys.readouterr().err
        assert "quiet" not in err
        assert "loud" in err
