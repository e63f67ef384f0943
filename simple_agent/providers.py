"""Chat backend interface, backend errors and the backend selector.

Every backend exposes the same two operations:

- ``render(message)`` prefixes the system prompt (``system + "\\n" + message``).
- ``send(message)`` renders, transmits and returns the raw assistant text.

The control loop only ever talks to a ``ChatProvider``; which concrete
backend sits behind it is decided once, by ``create_provider``.
"""

import abc

from .cancel import Cancelled
from .report import AgentError, ConfigError

PROVIDERS = ("ollama", "openrouter")


class BackendError(AgentError):
    """Base class for failures talking to a chat backend."""


class TransportError(BackendError):
    """Network or protocol failure from the underlying client library."""


class NoReplyError(BackendError):
    """The local-model service returned no message body."""


class NoContentError(BackendError):
    """The hosted API returned a choice without text content."""


class ModelNotFoundError(BackendError):
    """The requested model is not known to the local-model service."""


class MissingCredentialError(BackendError):
    """The hosted API key is missing from the environment."""


class ChatProvider(abc.ABC):
    """A remote chat service reachable through render()/send()."""

    name = ""

    def __init__(self, model: str, system_prompt: str):
        self.model = model
        self.system_prompt = system_prompt

    def render(self, message: str) -> str:
        return f"{self.system_prompt}\n{message}"

    @abc.abstractmethod
    def send(self, message: str) -> str:
        """Send *message* (rendered) and return the assistant's reply text."""


def completion(**kwargs):
    """Call LiteLLM, mapping any client failure to TransportError."""
    import litellm

    litellm.suppress_debug_info = True

    try:
        return litellm.completion(**kwargs)
    except Cancelled:
        raise
    except Exception as e:
        raise TransportError(f"LLM call failed: {e}") from e


def first_message(response):
    """Return the message of the first choice, or None if there is none."""
    choices = getattr(response, "choices", None)
    if not choices:
        return None
    return getattr(choices[0], "message", None)


def create_provider(
    provider: str,
    *,
    model: str,
    system_prompt: str,
    base_url: str | None = None,
) -> ChatProvider:
    """Build and validate the backend named *provider*.

    The ollama backend checks that *model* is installed on the server; the
    openrouter backend requires OPENROUTER_API_KEY in the environment.
    """
    if provider == "ollama":
        from .ollama import OllamaChatProvider

        return OllamaChatProvider.connect(model, system_prompt, base_url=base_url)
    if provider == "openrouter":
        from .openrouter import OpenRouterChatProvider

        return OpenRouterChatProvider.from_env(model, system_prompt, base_url=base_url)
    raise ConfigError(
        f"unknown provider {provider!r} (expected one of: {', '.join(PROVIDERS)})"
    )
