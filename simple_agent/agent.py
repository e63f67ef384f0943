"""Command-line entry point: set up a chat backend and run the agent loop."""

import argparse
import logging
import signal
import sys
from importlib import metadata
from pathlib import Path

from . import fmt
from .cancel import CancelToken, Cancelled, install_signal_handlers
from .config import _UNSET, apply_config_to_args, load_config
from .prompts import load_text, render_task
from .providers import PROVIDERS, create_provider
from .report import AgentError, ConfigError, ReportCollector
from .run import run_agent

logger = logging.getLogger(__name__)


def build_parser():
    """Build and return the argument parser."""
    parser = argparse.ArgumentParser(
        prog="simple-agent",
        description=(
            "Let a language model drive a shell: the model answers in YAML with "
            "a command to run, sees the command's output, and repeats until it "
            "replies STOP."
        ),
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Print the version and exit.",
    )
    parser.add_argument(
        "--provider",
        choices=PROVIDERS,
        default=_UNSET,
        help="Chat backend: ollama (local server) or openrouter (hosted API). Default: ollama.",
    )
    parser.add_argument(
        "--model",
        type=str,
        default=_UNSET,
        help="The model to use.",
    )
    parser.add_argument(
        "-u",
        "--url",
        "--base-url",
        dest="base_url",
        default=_UNSET,
        help=(
            "Backend base URL (default: http://localhost:11434 for ollama, "
            "https://openrouter.ai/api/v1 for openrouter)."
        ),
    )
    parser.add_argument(
        "--task",
        default=_UNSET,
        help="File containing the task to execute (default: task.md).",
    )
    parser.add_argument(
        "--system",
        default=_UNSET,
        help="The path to the system prompt (default: system.md).",
    )
    parser.add_argument(
        "--task-template",
        default=_UNSET,
        help="The path to the template that will wrap the task (default: task_template.hbs).",
    )
    parser.add_argument(
        "--shell",
        default=_UNSET,
        help="Shell used to run commands as '<shell> -c <command>' (default: bash).",
    )
    parser.add_argument(
        "--max-turns",
        type=int,
        default=_UNSET,
        help="Stop after this many model turns (default: unlimited).",
    )
    parser.add_argument(
        "--report",
        type=str,
        default=None,
        metavar="FILE",
        help="Write a JSON run report to FILE.",
    )

    color_group = parser.add_mutually_exclusive_group()
    color_group.add_argument(
        "--color",
        action="store_true",
        default=_UNSET,
        help="Force ANSI color even when stderr is not a TTY.",
    )
    color_group.add_argument(
        "--no-color",
        action="store_true",
        default=_UNSET,
        help="Disable ANSI color even when stderr is a TTY.",
    )

    return parser


def main():
    parser = build_parser()
    args = parser.parse_args()

    if args.version:
        try:
            version = metadata.version("simple-agent")
        except metadata.PackageNotFoundError:
            version = "unknown"
        print(version)
        sys.exit(0)

    try:
        config = load_config(Path.cwd())
    except ConfigError as e:
        fmt.error(str(e))
        sys.exit(1)
    apply_config_to_args(args, config)

    if not args.model:
        parser.error("--model is required (or set 'model' in a config file)")
    if args.max_turns is not None and args.max_turns < 1:
        parser.error("--max-turns must be at least 1")

    fmt.init(color=args.color, no_color=args.no_color)
    fmt.setup_logging()
    fmt.banner("***Agent started***")
    logger.debug("arguments: %s", vars(args))

    report = ReportCollector() if args.report else None

    def _write_report(outcome, exit_code, error_message=None):
        if not report:
            return
        report.finalize(
            task=args.task,
            model=args.model,
            provider=args.provider,
            settings={
                "base_url": args.base_url,
                "system": args.system,
                "task_template": args.task_template,
                "shell": args.shell,
                "max_turns": args.max_turns,
            },
            outcome=outcome,
            exit_code=exit_code,
            turns=report.max_turn_seen,
            error_message=error_message,
        )
        try:
            report.write(args.report)
        except OSError as e:
            fmt.error(f"Failed to write report to {args.report}: {e}")
            return
        fmt.info(f"Report written to {args.report}")

    def _shutdown(signum):
        name = Cancelled(signum).signal_name
        fmt.shutdown(name)
        _write_report("cancelled", 128 + signum, f"cancelled by {name}")
        sys.exit(128 + signum)

    cancel = CancelToken()
    restore_signals = install_signal_handlers(cancel)
    try:
        _turns, exhausted = _run_main(args, cancel, report)
    except Cancelled as e:
        _shutdown(e.signum)
    except KeyboardInterrupt:
        _shutdown(signal.SIGINT)
    except AgentError as e:
        # A signal can surface as a client error raised from inside the
        # interrupted call.
        if cancel.is_set():
            _shutdown(cancel.signum)
        fmt.error(str(e))
        _write_report("error", 1, str(e))
        sys.exit(1)
    finally:
        restore_signals()

    if exhausted:
        fmt.warning("max turns reached, agent stopped.")
        _write_report("exhausted", 2)
        sys.exit(2)

    _write_report("success", 0)
    fmt.banner("***Agent finished***")


def _run_main(args, cancel, report):
    task = load_text(args.task, "task")
    system = load_text(args.system, "system prompt")
    task_template = load_text(args.task_template, "task template")
    task_rendered = render_task(task_template, task)

    provider = create_provider(
        args.provider,
        model=args.model,
        system_prompt=system,
        base_url=args.base_url,
    )
    fmt.model_info(f"Model: {args.model}")
    chat_id = getattr(provider, "chat_id", None)
    if chat_id:
        fmt.model_info(f"Chat ID: {chat_id}")

    fmt.first_request(provider.render(task_rendered))
    return run_agent(
        provider,
        task_rendered,
        shell=args.shell,
        max_turns=args.max_turns,
        cancel=cancel,
        report=report,
    )


if __name__ == "__main__":
    main()
