"""Directive parsing and command-output encoding.

The model replies with a small YAML document::

    thoughts:
      - "look around first"
    run: ls -la

and the client answers with the outcome of running ``run``, in the same
notation::

    stdout: |
      ...
    stderr: ''
    exit_code: 0
"""

from dataclasses import asdict, dataclass

import yaml

STOP = "STOP"
PARSE_ERROR_STDOUT = "Error parsing response"
SPAWN_ERROR_STDOUT = "Error trying to run command"

# ASCII whitespace as used for trimming: no vertical tab.
ASCII_WHITESPACE = " \t\n\x0c\r"

FENCE_OPENERS = ("```yaml", "```yml")
FENCE_CLOSER = "```"

# Accepted keys, wire name first.
_REASONING_KEYS = ("thoughts", "reasoning")
_COMMAND_KEYS = ("run", "command")


class ParseError(ValueError):
    """Raised when assistant text cannot be turned into a Directive."""


@dataclass(frozen=True)
class Directive:
    """A parsed model reply: free-text reasoning plus the command to run."""

    reasoning: list[str]
    command: str

    @property
    def is_stop(self) -> bool:
        return self.command.strip(ASCII_WHITESPACE) == STOP


@dataclass
class CommandOutput:
    """Outcome of one turn, reported back to the model."""

    stdout: str
    stderr: str
    exit_code: int | None = None


def strip_fences(content: str) -> str:
    """Trim whitespace and drop an optional ```yaml / ```yml fence pair.

    Opening and closing markers are stripped independently of each other.
    """
    content = content.strip(ASCII_WHITESPACE)
    for opener in FENCE_OPENERS:
        if content.startswith(opener):
            content = content[len(opener) :]
            break
    if content.endswith(FENCE_CLOSER):
        content = content[: -len(FENCE_CLOSER)]
    return content


def _pick(document: dict, keys: tuple[str, ...]):
    for key in keys:
        if key in document:
            return document[key]
    raise ParseError(f"missing field {keys[0]!r}")


def parse_directive(content: str) -> Directive:
    """Parse raw assistant text into a Directive or raise ParseError."""
    body = strip_fences(content)
    try:
        document = yaml.safe_load(body)
    except yaml.YAMLError as e:
        raise ParseError(f"invalid YAML: {e}") from e

    if not isinstance(document, dict):
        raise ParseError(
            f"expected a mapping with 'thoughts' and 'run' fields, "
            f"got {type(document).__name__}"
        )

    reasoning = _pick(document, _REASONING_KEYS)
    if not isinstance(reasoning, list):
        raise ParseError(
            f"'thoughts' must be a list of strings, got {type(reasoning).__name__}"
        )
    for i, item in enumerate(reasoning):
        if not isinstance(item, str):
            raise ParseError(
                f"thoughts[{i}]: expected string, got {type(item).__name__}"
            )

    command = _pick(document, _COMMAND_KEYS)
    if not isinstance(command, str):
        raise ParseError(f"'run' must be a string, got {type(command).__name__}")
    if not command.strip(ASCII_WHITESPACE):
        raise ParseError("'run' is empty")

    return Directive(reasoning=reasoning, command=command)


class _OutputDumper(yaml.SafeDumper):
    pass


def _represent_str(dumper: yaml.SafeDumper, data: str):
    # PyYAML falls back to a quoted scalar when block style cannot hold the text.
    # NEL reads back as a line break in block and single-quoted scalars.
    if "\x85" in data:
        style = '"'
    elif "\n" in data:
        style = "|"
    else:
        style = None
    return dumper.represent_scalar("tag:yaml.org,2002:str", data, style=style)


_OutputDumper.add_representer(str, _represent_str)


def encode_output(output: CommandOutput) -> str:
    """Serialize a CommandOutput as YAML (stdout, stderr, exit_code order)."""
    return yaml.dump(
        asdict(output),
        Dumper=_OutputDumper,
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
    )
