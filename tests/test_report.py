"""Tests for the JSON run report."""

import json

import pytest

from simple_agent.report import AgentError, ConfigError, ReportCollector


def _build(rc, **overrides):
    kwargs = dict(
        task="task.md",
        model="m",
        provider="ollama",
        settings={},
        outcome="success",
        exit_code=0,
        turns=rc.max_turn_seen,
    )
    kwargs.update(overrides)
    return rc.build_report(**kwargs)


class TestReportCollector:
    def test_empty_report(self):
        rc = ReportCollector()
        r = _build(rc)
        assert r["version"] == 1
        assert r["task"] == "task.md"
        assert r["provider"] == "ollama"
        assert r["result"] == {"outcome": "success", "exit_code": 0}
        assert r["stats"]["turns"] == 0
        assert r["stats"]["llm_calls"] == 0
        assert r["stats"]["commands_run"] == 0
        assert r["timeline"] == []
        assert "timestamp" in r

    def test_llm_call_tracking(self):
        rc = ReportCollector()
        rc.record_llm_call(1, 2.5, "ok")
        rc.record_llm_call(2, 1.3, "error")
        assert rc.llm_calls == 2
        assert rc.total_llm_time == pytest.approx(3.8)
        assert rc.max_turn_seen == 2
        assert [e["outcome"] for e in rc.events] == ["ok", "error"]

    def test_command_tracking(self):
        rc = ReportCollector()
        rc.record_command(1, "ls", 0, 0.01)
        rc.record_command(2, "false", 1, 0.02)
        rc.record_command(3, "ls", None, 0.0, spawned=False)
        assert rc.commands_run == 2
        assert rc.spawn_failures == 1
        assert rc.total_command_time == pytest.approx(0.03)
        assert rc.events[1]["exit_code"] == 1
        assert rc.events[2]["spawned"] is False

    def test_parse_error_tracking(self):
        rc = ReportCollector()
        rc.record_parse_error(4, "missing field 'run'")
        assert rc.parse_errors == 1
        assert rc.max_turn_seen == 4
        assert rc.events == [
            {"turn": 4, "type": "parse_error", "error": "missing field 'run'"}
        ]

    def test_error_message_included_only_when_set(self):
        rc = ReportCollector()
        assert "error_message" not in _build(rc)["result"]
        r = _build(rc, outcome="error", exit_code=1, error_message="model x not found")
        assert r["result"]["error_message"] == "model x not found"

    def test_durations_rounded(self):
        rc = ReportCollector()
        rc.record_llm_call(1, 1.23456789, "ok")
        assert rc.events[0]["duration_s"] == 1.235
        assert _build(rc)["stats"]["total_llm_time_s"] == 1.235

    def test_write(self, tmp_path):
        rc = ReportCollector()
        rc.record_llm_call(1, 0.5, "ok")
        rc.finalize(
            task="task.md",
            model="m",
            provider="openrouter",
            settings={"shell": "bash"},
            outcome="success",
            exit_code=0,
            turns=1,
        )
        path = tmp_path / "report.json"
        rc.write(str(path))
        data = json.loads(path.read_text())
        assert data["provider"] == "openrouter"
        assert data["settings"] == {"shell": "bash"}
        assert data["stats"]["llm_calls"] == 1
        assert path.read_text().endswith("\n")


class TestErrors:
    def test_config_error_is_agent_error(self):
        assert issubclass(ConfigError, AgentError)
