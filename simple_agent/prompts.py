"""Loading the task, system prompt and task template, and rendering the task."""

from pathlib import Path

import jinja2

from .report import AgentError

_env = jinja2.Environment(autoescape=False, keep_trailing_newline=True)


def load_text(path: str | Path, what: str) -> str:
    """Read a UTF-8 text file, raising AgentError("failed to read <what>")."""
    try:
        return Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise AgentError(f"failed to read {what} from {path}: {e}") from e


def render_task(template: str, task: str) -> str:
    """Expand ``{{task}}`` in *template* with the raw task text (no escaping)."""
    try:
        return _env.from_string(template).render(task=task)
    except jinja2.TemplateError as e:
        raise AgentError(f"failed to render task template: {e}") from e
