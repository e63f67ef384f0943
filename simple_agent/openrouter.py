"""Hosted-API backend: OpenRouter reached through LiteLLM."""

import os

from .providers import (
    ChatProvider,
    MissingCredentialError,
    NoContentError,
    completion,
    first_message,
)

DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"
API_KEY_ENV = "OPENROUTER_API_KEY"


def litellm_model(model_id: str) -> str:
    # Only strip the prefix if the user already included the LiteLLM
    # "openrouter/" prefix (i.e. "openrouter/openrouter/free"). Don't strip
    # org names like "openrouter" in "openrouter/free".
    bare_id = (
        model_id[len("openrouter/") :]
        if model_id.startswith("openrouter/openrouter/")
        else model_id
    )
    return f"openrouter/{bare_id}"


class OpenRouterChatProvider(ChatProvider):
    """Stateless chat: each call carries only the current rendered message."""

    name = "openrouter"

    def __init__(
        self,
        model: str,
        system_prompt: str,
        *,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
    ):
        super().__init__(model, system_prompt)
        self.api_key = api_key
        self.base_url = base_url

    @classmethod
    def from_env(
        cls, model: str, system_prompt: str, *, base_url: str | None = None
    ) -> "OpenRouterChatProvider":
        api_key = os.environ.get(API_KEY_ENV)
        if not api_key:
            raise MissingCredentialError(f"{API_KEY_ENV} not found in environment")
        return cls(
            model,
            system_prompt,
            api_key=api_key,
            base_url=base_url or DEFAULT_BASE_URL,
        )

    def send(self, message: str) -> str:
        response = completion(
            model=litellm_model(self.model),
            messages=[{"role": "user", "content": self.render(message)}],
            api_key=self.api_key,
            api_base=self.base_url,
        )
        content = getattr(first_message(response), "content", None)
        if content is None:
            raise NoContentError("no content in response")
        return content
