"""simple-agent: a language model driving a shell, one YAML command at a time."""

from .directive import CommandOutput, Directive, ParseError, encode_output, parse_directive
from .providers import ChatProvider, create_provider
from .run import run_agent

__all__ = [
    "ChatProvider",
    "CommandOutput",
    "Directive",
    "ParseError",
    "create_provider",
    "encode_output",
    "parse_directive",
    "run_agent",
]
