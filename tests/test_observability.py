"""
Tests for logging setup and terminal progress rendering.
"""

import logging
from pathlib import Path

import click
import pytest
from click.testing import CliRunner

from dotkit.core.observability.logging_config import _parse_level, resolve_level, setup_logging
from dotkit.core.observability.reporter import Reporter
from dotkit.ui.cli.render import ClickReporter


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for h in root.handlers:
        if h not in handlers:
            h.close()
    root.handlers[:] = handlers
    root.setLevel(level)


class TestSetupLogging:
    def test_parse_level(self):
        assert _parse_level("debug") == logging.DEBUG
        assert _parse_level("INFO") == logging.INFO
        assert _parse_level("nonsense") == logging.WARNING
        assert _parse_level(None) == logging.WARNING

    def test_resolve_level_precedence(self):
        assert resolve_level(debug=True, quiet=True) == "DEBUG"
        assert resolve_level(verbose=True, quiet=True) == "INFO"
        assert resolve_level(quiet=True, env_level="DEBUG") == "ERROR"
        assert resolve_level(env_level="INFO") == "INFO"
        assert resolve_level() == "WARNING"

    def test_console_level(self):
        setup_logging(level="ERROR")
        root = logging.getLogger()
        assert root.level == logging.ERROR
        assert len(root.handlers) == 1

    def test_file_handler_with_own_level(self, tmp_path: Path):
        log_file = tmp_path / "dotkit.log"
        setup_logging(level="WARNING", log_file=str(log_file), log_file_level="DEBUG")

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 2

        logging.getLogger("dotkit.test").debug("written to file only")
        for h in root.handlers:
            h.flush()
        assert "written to file only" in log_file.read_text()

    def test_reporter_mirrors_into_logging(self, caplog: pytest.LogCaptureFixture):
        with caplog.at_level(logging.INFO, logger="dotkit.progress"):
            Reporter().warning("font missing")
            Reporter().success("linked")
        assert "font missing" in caplog.text
        assert "ok: linked" in caplog.text


def _render(quiet: bool, emit) -> str:
    @click.command()
    def show():
        emit(ClickReporter(quiet=quiet))

    return CliRunner().invoke(show).output


class TestClickReporter:
    def test_glyphs(self):
        def emit(r):
            r.header("Setting up ZSH")
            r.section("Linking zsh configuration")
            r.success("Linked .zshrc")
            r.warning("git not found")
            r.info("detail")

        out = _render(False, emit)
        assert "=== Setting up ZSH ===" in out
        assert "→ Linking zsh configuration" in out
        assert "✓ Linked .zshrc" in out
        assert "! git not found" in out
        assert "  detail" in out

    def test_quiet_keeps_warnings_and_errors(self):
        def emit(r):
            r.header("Setting up ZSH")
            r.success("Linked .zshrc")
            r.warning("git not found")
            r.error("link failed")

        out = _render(True, emit)
        assert "Setting up ZSH" not in out
        assert "Linked .zshrc" not in out
        assert "! git not found" in out
        assert "✗ link failed" in out


class TestProgressEcho:
    def test_console_hides_progress_but_file_keeps_it(self, tmp_path: Path, capsys):
        log_file = tmp_path / "logs" / "dotkit.log"
        setup_logging(level="INFO", log_file=str(log_file), echo_progress=False)

        Reporter().warning("tmux not found")
        logging.getLogger("dotkit.core.services.installer").warning("clone failed")
        for h in logging.getLogger().handlers:
            h.flush()

        err = capsys.readouterr().err
        assert "tmux not found" not in err
        assert "clone failed" in err
        assert "tmux not found" in log_file.read_text()
