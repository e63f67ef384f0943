"""ANSI-formatted stderr output using Rich."""

import logging
import os

from rich.console import Console
from rich.logging import RichHandler
from rich.rule import Rule
from rich.text import Text

LOG_LEVEL_ENV = "SIMPLE_AGENT_LOG"

_console = Console(stderr=True)


def init(*, color: bool = False, no_color: bool = False) -> None:
    """Reconfigure the module-level console from CLI flags.

    Call once at startup, before any output.
    """
    global _console
    kwargs: dict = {"stderr": True}
    if color:
        kwargs["force_terminal"] = True
        kwargs["no_color"] = False
    if no_color:
        kwargs["no_color"] = True
    _console = Console(**kwargs)


def setup_logging() -> None:
    """Route stdlib logging to stderr, level taken from SIMPLE_AGENT_LOG."""
    level_name = os.environ.get(LOG_LEVEL_ENV, "WARNING").upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.WARNING
    handler = RichHandler(console=_console, show_path=False)
    root = logging.getLogger("simple_agent")
    root.handlers[:] = [handler]
    root.setLevel(level)
    root.propagate = False


# -- Run lifecycle -----------------------------------------------------------


def banner(msg: str) -> None:
    _console.print(Text(msg, style="bold"))


def completion(turns: int, exit_code: str) -> None:
    if exit_code == "ok":
        _console.print(
            Text(f"  \u2713 Agent finished: {turns} turns", style="bold green")
        )
    else:
        _console.print(
            Text(f"  Agent finished: {turns} turns, exit={exit_code}", style="bold red")
        )


def shutdown(signal_name: str) -> None:
    if signal_name == "SIGINT":
        msg = "Received SIGINT (Ctrl-C), shutting down..."
    else:
        msg = f"Received {signal_name}, shutting down..."
    _console.print(Text(msg, style="bold yellow"))


# -- Conversation ------------------------------------------------------------


def _section(title: str, body: str, style: str) -> None:
    _console.print(Rule(title, style=style))
    _console.print(Text(body))


def first_request(text: str) -> None:
    _section("First request", text, "cyan")


def response(n: int, text: str) -> None:
    _section(f"Response {n}", text, "blue")


def request(n: int, text: str) -> None:
    _section(f"Request {n}", text, "cyan")


def llm_timing(elapsed: float) -> None:
    _console.print(Text(f"  LLM responded in {elapsed:.1f}s", style="green"))


def parse_error(msg: str) -> None:
    header = Text()
    header.append("  \u2717 Error parsing response", style="bold red")
    _console.print(header)
    _console.print(Text(f"    {msg}", style="red"))


def command_error(msg: str) -> None:
    header = Text()
    header.append("  \u2717 Error trying to run command", style="bold red")
    _console.print(header)
    _console.print(Text(f"    {msg}", style="red"))


# -- Diagnostics -------------------------------------------------------------


def model_info(msg: str) -> None:
    _console.print(Text(f"  {msg}", style="dim"))


def info(msg: str) -> None:
    _console.print(Text(f"  {msg}", style="dim"))


def warning(msg: str) -> None:
    line = Text()
    line.append("  \u26a0 Warning: ", style="yellow")
    line.append(msg, style="yellow")
    _console.print(line)


def error(msg: str) -> None:
    line = Text()
    line.append("Error: ", style="bold red")
    line.append(msg, style="red")
    _console.print(line)
