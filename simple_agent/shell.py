"""Run one model-issued command through a shell interpreter."""

import logging
import os
import signal
import subprocess
import sys
import time

from .cancel import CancelToken, Cancelled
from .directive import CommandOutput
from .report import AgentError

logger = logging.getLogger(__name__)

DEFAULT_SHELL = "bash"
_REAP_TIMEOUT = 5  # seconds


class OutputDecodeError(AgentError):
    """Raised when a command writes bytes that are not valid UTF-8."""


def _abandon(proc: subprocess.Popen) -> None:
    """Tear down a command the operator cancelled.

    The shell runs in its own session, so the terminal's SIGINT never reaches
    it or anything it started in the background. Kill the whole session,
    then reap the shell so no zombie outlives the run.
    """
    logger.debug("killing command session %d", proc.pid)
    if sys.platform == "win32":
        subprocess.run(
            ["taskkill", "/T", "/F", "/PID", str(proc.pid)],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            check=False,
        )
    else:
        try:
            os.killpg(proc.pid, signal.SIGKILL)
        except ProcessLookupError:
            pass
    if proc.poll() is None:
        proc.kill()
    try:
        proc.communicate(timeout=_REAP_TIMEOUT)
    except subprocess.TimeoutExpired:
        logger.warning("command session %d did not exit after SIGKILL", proc.pid)


def _decode(payload: bytes, stream: str) -> str:
    try:
        return payload.decode("utf-8")
    except UnicodeDecodeError as e:
        raise OutputDecodeError(f"command {stream} is not valid UTF-8: {e}") from e


def run_shell_command(
    command: str,
    *,
    shell: str = DEFAULT_SHELL,
    cwd: str | None = None,
    cancel: CancelToken | None = None,
) -> CommandOutput:
    """Execute ``<shell> -c <command>`` and capture both streams fully.

    Raises OSError when the shell cannot be started, OutputDecodeError when
    either stream is not UTF-8, and Cancelled when the operator interrupts
    the wait (the command's session is killed first). A non-zero exit is not
    an error. ``exit_code`` is None when the process died from a signal.
    """
    if cancel is not None:
        cancel.check()

    popen_kwargs: dict = dict(
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        stdin=subprocess.DEVNULL,
        cwd=cwd,
    )
    if sys.platform != "win32":
        popen_kwargs["start_new_session"] = True

    started = time.monotonic()
    proc = None
    try:
        proc = subprocess.Popen([shell, "-c", command], **popen_kwargs)
        if cancel is not None:
            cancel.check()
        raw_stdout, raw_stderr = proc.communicate()
    except (Cancelled, KeyboardInterrupt):
        if proc is not None:
            _abandon(proc)
        raise

    exit_code = proc.returncode if proc.returncode >= 0 else None
    logger.debug(
        "command finished in %.2fs with exit code %s",
        time.monotonic() - started,
        exit_code,
    )

    stdout = _decode(raw_stdout, "stdout")
    logger.debug("stdout: %s", stdout)
    stderr = _decode(raw_stderr, "stderr")
    logger.debug("stderr: %s", stderr)
    return CommandOutput(stdout=stdout, stderr=stderr, exit_code=exit_code)
