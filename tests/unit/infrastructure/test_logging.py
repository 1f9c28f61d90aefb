"""Tests for structured logging configuration."""

from __future__ import annotations

import json

import pytest
import structlog

from wtmigrate.infrastructure.logging import configure_logging


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_json_logs_go_to_stderr(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging(json_logs=True)

        structlog.get_logger().warning("upstream_restore_failed", branch="main")

        captured = capsys.readouterr()
        assert captured.out == ""
        event = json.loads(captured.err.strip().splitlines()[-1])
        assert event["event"] == "upstream_restore_failed"
        assert event["branch"] == "main"
        assert event["level"] == "warning"

    def test_debug_hidden_by_default(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging()

        structlog.get_logger().debug("git_command")

        assert "git_command" not in capsys.readouterr().err

    def test_debug_shown_when_enabled(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging(debug=True)

        structlog.get_logger().debug("git_command")

        assert "git_command" in capsys.readouterr().err

    def test_module_logger_follows_reconfiguration(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        logger = structlog.get_logger()
        configure_logging()
        logger.info("first")

        configure_logging(debug=True)
        logger.info("second")

        err = capsys.readouterr().err
        assert "first" not in err
        assert "second" in err
