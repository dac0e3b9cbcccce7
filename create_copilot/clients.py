"""OpenAI-compatible async client used for both the chat and blueprint models."""

from __future__ import annotations

import logging
import os
from typing import Any, Mapping, MutableMapping, Sequence

from openai import AsyncOpenAI

logger = logging.getLogger(__name__)


PROVIDER_KEY_ENV: Mapping[str, str] = {
    "groq": "GROQ_API_KEY",
    "gemini": "GEMINI_API_KEY",
    "openai": "OPENAI_API_KEY",
}


class LLMClient:
    """Thin wrapper over :class:`openai.AsyncOpenAI` with provider defaults.

    The underlying SDK client is created on the first request, so a runtime
    without credentials can still serve the operations that never call a
    model.
    """

    def __init__(
        self,
        *,
        base_url: str,
        model: str,
        provider: str = "openai",
        api_key: str | None = None,
        api_key_env: str | None = None,
        temperature: float | None = None,
        timeout: float | None = None,
    ) -> None:
        provider_key = provider.lower()
        if provider_key not in PROVIDER_KEY_ENV:
            raise ValueError(f"Unsupported provider '{provider}'")

        self.model = model
        self.provider = provider_key
        self.temperature = temperature
        self.base_url = base_url
        self.timeout = timeout
        self._api_key = api_key
        self._api_key_env = api_key_env or PROVIDER_KEY_ENV[provider_key]
        self._sdk_client: AsyncOpenAI | None = None

    @property
    def _client(self) -> AsyncOpenAI:
        if self._sdk_client is None:
            api_key = self._api_key or os.environ.get(self._api_key_env)
            if not api_key:
                raise RuntimeError(
                    f"No API key configured for provider '{self.provider}' (set {self._api_key_env})"
                )
            options: MutableMapping[str, Any] = {"base_url": self.base_url, "api_key": api_key}
            if self.timeout is not None:
                options["timeout"] = self.timeout
            self._sdk_client = AsyncOpenAI(**options)
        return self._sdk_client

    # ------------------------------------------------------------------
    # Chat completions
    # ------------------------------------------------------------------
    async def chat(
        self,
        messages: Sequence[Mapping[str, object]],
        *,
        temperature: float | None = None,
    ) -> str:
        """Send ``messages`` and return the completion text ("" when empty)."""

        payload: MutableMapping[str, Any] = {"model": self.model, "messages": list(messages)}
        effective = temperature if temperature is not None else self.temperature
        if effective is not None:
            payload["temperature"] = effective

        logger.debug("Dispatching chat request to %s: %s", self.provider, payload)
        response = await self._client.chat.completions.create(**payload)
        logger.debug("Chat raw response: %s", response)
        if not response.choices:
            return ""
        choice = response.choices[0].message
        return getattr(choice, "content", "") or ""

    async def complete(self, prompt: str) -> str:
        """Send a single user prompt and return the raw completion text."""

        return await self.chat([{"role": "user", "content": prompt}])


__all__ = ["LLMClient", "PROVIDER_KEY_ENV"]
