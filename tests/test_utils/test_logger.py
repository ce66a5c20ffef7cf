from __future__ import annotations

import io
import sys
import logging
from unittest.mock import MagicMock, patch

import pytest

from upkeep.utils.logger import (
    ColoredFormatter,
    get_logger,
    level_for_verbosity,
    setup_logging,
)


def _record(level: int = logging.INFO, msg: str = "hello") -> logging.LogRecord:
    return logging.LogRecord("upkeep.test", level, __file__, 1, msg, None, None)


@pytest.fixture
def captured_stream() -> io.StringIO:
    return io.StringIO()


@pytest.mark.unit
class TestColoredFormatter:
    """Tests for ColoredFormatter."""

    def test_format_with_color(self) -> None:
        formatter = ColoredFormatter("%(levelname)s: %(message)s", use_color=True)

        with patch.object(ColoredFormatter, "_should_use_color", return_value=True):
            output = formatter.format(_record(logging.ERROR))

        assert output == "\033[31mERROR\033[0m: hello"

    def test_format_without_color(self) -> None:
        formatter = ColoredFormatter("%(levelname)s: %(message)s", use_color=False)

        assert formatter.format(_record(logging.WARNING)) == "WARNING: hello"

    def test_format_restores_levelname(self) -> None:
        formatter = ColoredFormatter("%(levelname)s", use_color=True)
        record = _record(logging.DEBUG)

        with patch.object(ColoredFormatter, "_should_use_color", return_value=True):
            formatter.format(record)

        assert record.levelname == "DEBUG"

    @pytest.mark.parametrize("env", ["NO_COLOR", "CI"])
    def test_should_use_color_respects_env(
        self, monkeypatch: pytest.MonkeyPatch, env: str
    ) -> None:
        monkeypatch.setenv(env, "1")

        assert ColoredFormatter._should_use_color() is False

    def test_should_use_color_tty(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("CI", raising=False)
        fake_stderr = MagicMock()
        fake_stderr.isatty.return_value = True

        with patch.object(sys, "stderr", fake_stderr):
            assert ColoredFormatter._should_use_color() is True

    def test_should_use_color_isatty_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("CI", raising=False)
        fake_stderr = MagicMock()
        fake_stderr.isatty.side_effect = OSError("closed")

        with patch.object(sys, "stderr", fake_stderr):
            assert ColoredFormatter._should_use_color() is False


@pytest.mark.unit
class TestLevelForVerbosity:
    @pytest.mark.parametrize(
        "verbose, expected",
        [
            (-1, logging.WARNING),
            (0, logging.WARNING),
            (1, logging.INFO),
            (2, logging.DEBUG),
            (5, logging.DEBUG),
        ],
    )
    def test_mapping(self, verbose: int, expected: int) -> None:
        assert level_for_verbosity(verbose) == expected


@pytest.mark.unit
class TestSetupLogging:
    """Tests for setup_logging."""

    def test_configures_root_logger(self, captured_stream: io.StringIO) -> None:
        setup_logging(level=logging.DEBUG, stream=captured_stream)

        root = logging.getLogger("upkeep")
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert root.propagate is False

    def test_replaces_previous_handlers(self, captured_stream: io.StringIO) -> None:
        setup_logging(stream=captured_stream)
        setup_logging(stream=captured_stream)

        assert len(logging.getLogger("upkeep").handlers) == 1

    def test_writes_default_format(
        self, captured_stream: io.StringIO, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("NO_COLOR", "1")
        setup_logging(level=logging.INFO, stream=captured_stream)

        get_logger("core.scheduler").info("resolving %d", 3)
        get_logger("core.scheduler").debug("hidden")

        assert captured_stream.getvalue() == "INFO: resolving 3\n"

    def test_verbose_format_includes_logger_name(
        self, captured_stream: io.StringIO, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("NO_COLOR", "1")
        setup_logging(level=logging.INFO, verbose=True, stream=captured_stream)

        get_logger("registry").warning("slow")

        output = captured_stream.getvalue()
        assert "upkeep.registry - WARNING - slow" in output


@pytest.mark.unit
class TestGetLogger:
    """Tests for get_logger name handling."""

    @pytest.mark.parametrize("name", [None, "", "upkeep"])
    def test_root_logger(self, name) -> None:
        assert get_logger(name).name == "upkeep"

    def test_relative_name_is_namespaced(self) -> None:
        assert get_logger("core.exclusion").name == "upkeep.core.exclusion"

    def test_qualified_name_is_kept(self) -> None:
        assert get_logger("upkeep.core.exclusion").name == "upkeep.core.exclusion"

    def test_same_instance(self) -> None:
        assert get_logger("http") is get_logger("upkeep.http")

    def test_silent_without_configuration(self) -> None:
        logger = get_logger("unconfigured.module")

        assert any(isinstance(h, logging.NullHandler) for h in logger.handlers)
