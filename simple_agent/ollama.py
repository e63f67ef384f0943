"""Local-model backend: an Ollama server reached through LiteLLM."""

import http.client
import json
import logging
import urllib.request
import uuid

from .providers import (
    ChatProvider,
    ModelNotFoundError,
    NoReplyError,
    TransportError,
    completion,
    first_message,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:11434"


def list_models(base_url: str, timeout: float = 10) -> list[str]:
    """Return the names of the models installed on the Ollama server."""
    url = f"{base_url.rstrip('/')}/api/tags"
    logger.debug("listing models from %s", url)
    try:
        req = urllib.request.Request(url)
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            data = json.loads(resp.read().decode())
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise TransportError(f"invalid JSON from {url}: {e}") from e
    except (OSError, http.client.HTTPException, ValueError) as e:
        raise TransportError(
            f"couldn't list available models, is Ollama running and reachable "
            f"at {base_url}? ({e})"
        ) from e

    entries = data.get("models") if isinstance(data, dict) else None
    return [
        entry["name"]
        for entry in entries or []
        if isinstance(entry, dict) and isinstance(entry.get("name"), str)
    ]


class OllamaChatProvider(ChatProvider):
    """Stateful chat against a local model.

    The conversation is identified by ``chat_id``; the user/assistant history
    recorded under that id is replayed on every call, so the model sees all
    prior turns while the loop itself only ever hands over the latest message.
    """

    name = "ollama"

    def __init__(
        self,
        model: str,
        system_prompt: str,
        *,
        base_url: str = DEFAULT_BASE_URL,
        chat_id: str | None = None,
    ):
        super().__init__(model, system_prompt)
        self.base_url = base_url
        self.chat_id = chat_id or str(uuid.uuid4())
        self.history: list[dict] = []

    @classmethod
    def connect(
        cls, model: str, system_prompt: str, *, base_url: str | None = None
    ) -> "OllamaChatProvider":
        """Verify *model* is available on the server, then build the provider."""
        base_url = base_url or DEFAULT_BASE_URL
        if model not in list_models(base_url):
            raise ModelNotFoundError(f"model {model} not found")
        return cls(model, system_prompt, base_url=base_url)

    def send(self, message: str) -> str:
        user_message = {"role": "user", "content": self.render(message)}
        response = completion(
            model=f"ollama_chat/{self.model}",
            messages=[*self.history, user_message],
            api_base=self.base_url,
        )
        reply = first_message(response)
        content = getattr(reply, "content", None)
        if content is None:
            raise NoReplyError("no message received from Ollama")

        self.history.append(user_message)
        self.history.append({"role": "assistant", "content": content})
        logger.debug("chat %s now holds %d messages", self.chat_id, len(self.history))
        return content
