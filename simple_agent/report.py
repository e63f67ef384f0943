"""JSON report generation for agent runs."""

import json
from datetime import datetime, timezone


class AgentError(Exception):
    """Raised by the agent loop or setup helpers for reportable runtime failures."""


class ConfigError(AgentError):
    """Raised for invalid configuration (missing model, bad config file, etc.)."""


class ReportCollector:
    """Accumulates events during an agent run for JSON report output."""

    def __init__(self):
        self.events: list[dict] = []
        self.llm_calls = 0
        self.commands_run = 0
        self.spawn_failures = 0
        self.parse_errors = 0
        self.total_llm_time = 0.0
        self.total_command_time = 0.0
        self.max_turn_seen = 0
        self._last_report: dict | None = None

    def _see_turn(self, turn: int):
        if turn > self.max_turn_seen:
            self.max_turn_seen = turn

    def record_llm_call(self, turn: int, duration: float, outcome: str):
        self.llm_calls += 1
        self.total_llm_time += duration
        self._see_turn(turn)
        self.events.append(
            {
                "turn": turn,
                "type": "llm_call",
                "duration_s": round(duration, 3),
                "outcome": outcome,
            }
        )

    def record_command(
        self,
        turn: int,
        command: str,
        exit_code: int | None,
        duration: float,
        *,
        spawned: bool = True,
    ):
        self.total_command_time += duration
        self._see_turn(turn)
        if spawned:
            self.commands_run += 1
        else:
            self.spawn_failures += 1
        self.events.append(
            {
                "turn": turn,
                "type": "command",
                "command": command,
                "exit_code": exit_code,
                "spawned": spawned,
                "duration_s": round(duration, 3),
            }
        )

    def record_parse_error(self, turn: int, error: str):
        self.parse_errors += 1
        self._see_turn(turn)
        self.events.append({"turn": turn, "type": "parse_error", "error": error})

    def build_report(
        self,
        *,
        task: str,
        model: str,
        provider: str,
        settings: dict,
        outcome: str,
        exit_code: int,
        turns: int,
        error_message: str | None = None,
    ) -> dict:
        result: dict = {
            "outcome": outcome,
            "exit_code": exit_code,
        }
        if error_message is not None:
            result["error_message"] = error_message

        return {
            "version": 1,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "task": task,
            "model": model,
            "provider": provider,
            "settings": settings,
            "result": result,
            "stats": {
                "turns": turns,
                "llm_calls": self.llm_calls,
                "commands_run": self.commands_run,
                "spawn_failures": self.spawn_failures,
                "parse_errors": self.parse_errors,
                "total_llm_time_s": round(self.total_llm_time, 3),
                "total_command_time_s": round(self.total_command_time, 3),
            },
            "timeline": self.events,
        }

    def finalize(self, **kwargs) -> dict:
        """Build the report and keep it for a later write()."""
        self._last_report = self.build_report(**kwargs)
        return self._last_report

    def write(self, path: str):
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self._last_report, f, indent=2)
            f.write("\n")
