"""Tests for the fmt module (ANSI-formatted output helpers)."""

import logging
from io import StringIO

from rich.console import Console
from rich.logging import RichHandler

from simple_agent import fmt


def _capture(func, *args, **kwargs):
    """Call a fmt function with a captured console and return plain-text output."""
    buf = StringIO()
    old = fmt._console
    fmt._console = Console(file=buf, no_color=True, width=80)
    try:
        func(*args, **kwargs)
    finally:
        fmt._console = old
    return buf.getvalue()


class TestLifecycle:
    def test_banner(self):
        assert "***Agent started***" in _capture(fmt.banner, "***Agent started***")

    def test_completion_ok(self):
        out = _capture(fmt.completion, 4, "ok")
        assert "✓ Agent finished: 4 turns" in out
        assert "exit=" not in out

    def test_completion_max_turns(self):
        out = _capture(fmt.completion, 10, "max_turns")
        assert "Agent finished: 10 turns, exit=max_turns" in out

    def test_shutdown_sigint(self):
        out = _capture(fmt.shutdown, "SIGINT")
        assert "Received SIGINT (Ctrl-C), shutting down..." in out

    def test_shutdown_sigterm(self):
        out = _capture(fmt.shutdown, "SIGTERM")
        assert "Received SIGTERM, shutting down..." in out


class TestConversation:
    def test_first_request(self):
        out = _capture(fmt.first_request, "SYS\nthe task")
        assert "First request" in out
        assert "SYS\nthe task" in out

    def test_response_numbered(self):
        out = _capture(fmt.response, 3, "thoughts: []\nrun: ls")
        assert "Response 3" in out
        assert "run: ls" in out

    def test_request_numbered(self):
        out = _capture(fmt.request, 2, "stdout: ''")
        assert "Request 2" in out

    def test_markup_not_interpreted(self):
        out = _capture(fmt.response, 1, "[bold]not markup[/bold]")
        assert "[bold]not markup[/bold]" in out

    def test_llm_timing(self):
        assert "LLM responded in 1.4s" in _capture(fmt.llm_timing, 1.4)


class TestErrors:
    def test_parse_error(self):
        out = _capture(fmt.parse_error, "missing field 'run'")
        assert "✗ Error parsing response" in out
        assert "missing field 'run'" in out

    def test_command_error(self):
        out = _capture(fmt.command_error, "No such file or directory")
        assert "✗ Error trying to run command" in out
        assert "No such file or directory" in out

    def test_warning(self):
        out = _capture(fmt.warning, "max turns reached")
        assert "Warning: max turns reached" in out

    def test_error(self):
        out = _capture(fmt.error, "model llama3 not found")
        assert "Error: model llama3 not found" in out


class TestInit:
    def test_no_color(self):
        old = fmt._console
        try:
            fmt.init(no_color=True)
            assert fmt._console.no_color is True
        finally:
            fmt._console = old

    def test_color_forced(self):
        old = fmt._console
        try:
            fmt.init(color=True)
            assert fmt._console.is_terminal
            assert fmt._console.no_color is False
        finally:
            fmt._console = old


class TestSetupLogging:
    def test_default_level(self, monkeypatch):
        monkeypatch.delenv(fmt.LOG_LEVEL_ENV, raising=False)
        fmt.setup_logging()
        logger = logging.getLogger("simple_agent")
        assert logger.level == logging.WARNING
        assert isinstance(logger.handlers[0], RichHandler)
        assert logger.propagate is False

    def test_level_from_env(self, monkeypatch):
        monkeypatch.setenv(fmt.LOG_LEVEL_ENV, "debug")
        fmt.setup_logging()
        assert logging.getLogger("simple_agent").level == logging.DEBUG

    def test_bogus_level_falls_back(self, monkeypatch):
        monkeypatch.setenv(fmt.LOG_LEVEL_ENV, "chatty")
        fmt.setup_logging()
        assert logging.getLogger("simple_agent").level == logging.WARNING

    def test_idempotent(self, monkeypatch):
        monkeypatch.delenv(fmt.LOG_LEVEL_ENV, raising=False)
        fmt.setup_logging()
        fmt.setup_logging()
        assert len(logging.getLogger("simple_agent").handlers) == 1
