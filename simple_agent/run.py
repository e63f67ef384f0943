"""The agent control loop: send, parse, execute, report, repeat."""

import logging
import time

from . import fmt
from .cancel import CancelToken
from .directive import (
    PARSE_ERROR_STDOUT,
    SPAWN_ERROR_STDOUT,
    CommandOutput,
    ParseError,
    encode_output,
    parse_directive,
)
from .providers import ChatProvider
from .report import AgentError, ReportCollector
from .shell import DEFAULT_SHELL, run_shell_command

logger = logging.getLogger(__name__)


def handle_response(
    response: str,
    turn: int,
    *,
    shell: str = DEFAULT_SHELL,
    cwd: str | None = None,
    cancel: CancelToken | None = None,
    report: ReportCollector | None = None,
) -> CommandOutput | None:
    """Turn one assistant reply into the outcome to report back.

    Returns None when the model asked to STOP. Parse failures and shell
    spawn failures become error outcomes so the model can correct itself;
    non-UTF-8 command output and cancellation propagate.
    """
    try:
        directive = parse_directive(response)
    except ParseError as e:
        fmt.parse_error(str(e))
        if report:
            report.record_parse_error(turn, str(e))
        return CommandOutput(stdout=PARSE_ERROR_STDOUT, stderr=str(e), exit_code=None)

    if directive.is_stop:
        return None

    for thought in directive.reasoning:
        logger.debug("thought: %s", thought)

    t0 = time.monotonic()
    try:
        output = run_shell_command(
            directive.command, shell=shell, cwd=cwd, cancel=cancel
        )
    except OSError as e:
        fmt.command_error(str(e))
        if report:
            report.record_command(
                turn, directive.command, None, time.monotonic() - t0, spawned=False
            )
        return CommandOutput(stdout=SPAWN_ERROR_STDOUT, stderr=str(e), exit_code=None)

    if report:
        report.record_command(
            turn, directive.command, output.exit_code, time.monotonic() - t0
        )
    return output


def run_agent(
    provider: ChatProvider,
    message: str,
    *,
    shell: str = DEFAULT_SHELL,
    cwd: str | None = None,
    max_turns: int | None = None,
    cancel: CancelToken | None = None,
    report: ReportCollector | None = None,
) -> tuple[int, bool]:
    """Drive the conversation until the model sends STOP.

    Returns (turns, exhausted). exhausted is True only when *max_turns* was
    reached without a STOP. Backend errors abort the loop immediately.
    """
    cancel = cancel or CancelToken()
    fmt.info("Sending first request (may take a short while if using Ollama)")

    turn = 0
    while max_turns is None or turn < max_turns:
        turn += 1
        cancel.check()
        if turn > 1:
            fmt.request(turn, message)

        t0 = time.monotonic()
        try:
            response = provider.send(message)
        except AgentError:
            if report:
                report.record_llm_call(turn, time.monotonic() - t0, "error")
            raise
        elapsed = time.monotonic() - t0
        if report:
            report.record_llm_call(turn, elapsed, "ok")
        fmt.llm_timing(elapsed)
        fmt.response(turn, response)

        output = handle_response(
            response, turn, shell=shell, cwd=cwd, cancel=cancel, report=report
        )
        if output is None:
            fmt.completion(turn, "ok")
            return turn, False

        message = encode_output(output)

    fmt.completion(turn, "max_turns")
    return turn, True
