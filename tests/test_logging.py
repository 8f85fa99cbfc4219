"""Tests for logging configuration."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

import pytest
from loguru import logger

from github_org_sync.logging import (
    LogContext,
    bind_item,
    bind_repo,
    get_logger,
    reset_logging,
    setup_logging,
)

if TYPE_CHECKING:
    from collections.abc import Generator


@pytest.fixture(autouse=True)
def _reset_logging_state() -> Generator[None, None, None]:
    """Reset loguru state before and after each test."""
    reset_logging()
    yield
    reset_logging()


@pytest.fixture
def captured() -> Generator[list[str], None, None]:
    """Messages written after setup, formatted with their bound extras."""
    messages: list[str] = []
    setup_logging(level="DEBUG")
    handler_id = logger.add(lambda msg: messages.append(str(msg)), format="{extra} | {message}")
    yield messages
    logger.remove(handler_id)


class TestSetupLogging:
    """Tests for setup_logging function."""

    def test_default_level_filters_debug(self, capsys: pytest.CaptureFixture[str]) -> None:
        setup_logging(level="INFO")

        get_logger("test").debug("hidden debug")
        get_logger("test").info("shown info")

        err = capsys.readouterr().err
        assert "shown info" in err
        assert "hidden debug" not in err

    def test_setup_logging_verbose_takes_precedence(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test verbose takes precedence over quiet when both set."""
        setup_logging(level="INFO", verbose=True, quiet=True)

        get_logger("test").debug("debug message")

        assert "debug message" in capsys.readouterr().err

    def test_quiet_keeps_warnings(self, capsys: pytest.CaptureFixture[str]) -> None:
        setup_logging(level="INFO", quiet=True)

        get_logger("test").info("chatty")
        get_logger("test").warning("important")

        err = capsys.readouterr().err
        assert "important" in err
        assert "chatty" not in err

    def test_setup_logging_with_file(self, tmp_path: Path) -> None:
        """Test file logging setup."""
        log_file = tmp_path / "sync.log"
        setup_logging(level="INFO", log_file=log_file)

        get_logger("test").info("Test file message")
        logger.complete()

        assert log_file.exists()
        assert "Test file message" in log_file.read_text()

    @pytest.mark.parametrize("level", ["DEBUG", "INFO", "WARNING", "ERROR"])
    def test_log_level_accepted(self, level: str, capsys: pytest.CaptureFixture[str]) -> None:
        setup_logging(level=level)  # type: ignore[arg-type]

        get_logger("test").log(level, "at configured level")

        assert "at configured level" in capsys.readouterr().err


class TestInterceptHandler:
    """Tests for stdlib logging interception."""

    def test_intercept_stdlib_logging(self, captured: list[str]) -> None:
        """Stdlib records (SQLAlchemy, httpx) are routed to loguru."""
        logging.getLogger("test_stdlib_intercept").warning("Hello from stdlib")

        message = next(msg for msg in captured if "Hello from stdlib" in msg)
        # Intercepted records are named after the calling module
        assert "'name':" in message

    def test_sqlalchemy_logging_controlled(self) -> None:
        setup_logging(level="INFO")

        assert logging.getLogger("sqlalchemy.engine").level >= logging.WARNING

    def test_httpx_quiet_unless_debug(self) -> None:
        setup_logging(level="INFO")
        assert logging.getLogger("httpx").level == logging.WARNING

        setup_logging(level="INFO", verbose=True)
        assert logging.getLogger("httpx").level == logging.DEBUG


class TestContextBinding:
    """Tests for context binding helpers."""

    def test_get_logger_binds_name(self, captured: list[str]) -> None:
        get_logger("my_test_module").info("Test message")

        assert any("my_test_module" in msg for msg in captured)

    def test_bind_repo(self, captured: list[str]) -> None:
        bind_repo("acme/widgets").info("Test repo message")

        assert any("acme/widgets" in msg for msg in captured)

    def test_bind_item(self, captured: list[str]) -> None:
        bind_item("acme/widgets", "pull_request", 123).info("Test item message")

        output = "".join(captured)
        assert "acme/widgets" in output
        assert "pull_request" in output
        assert "123" in output

    def test_log_context_manager(self, captured: list[str]) -> None:
        with LogContext(org="acme", entity="comment"):
            logger.info("Inside context")
        logger.info("Outside context")

        inside = next(msg for msg in captured if "Inside context" in msg)
        outside = next(msg for msg in captured if "Outside context" in msg)
        assert "acme" in inside
        assert "acme" not in outside


class TestResetLogging:
    """Tests for reset_logging function."""

    def test_reset_logging_removes_sinks(self, capsys: pytest.CaptureFixture[str]) -> None:
        setup_logging(level="INFO")

        reset_logging()
        get_logger("test").warning("after reset")

        assert "after reset" not in capsys.readouterr().err
