from __future__ import annotations

import asyncio
from types import SimpleNamespace
from typing import Any, List, Mapping

import pytest
from openai import AsyncOpenAI

from create_copilot.clients import LLMClient


class RecordingCompletions:
    """Stands in for ``AsyncOpenAI().chat.completions``."""

    def __init__(self, responses: List[Any]) -> None:
        self.responses = list(responses)
        self.requests: List[Mapping[str, Any]] = []

    async def create(self, **payload: Any) -> Any:
        self.requests.append(payload)
        return self.responses.pop(0)


def _client_with(responses: List[Any], **kwargs: Any) -> tuple[LLMClient, RecordingCompletions]:
    options = {"base_url": "http://localhost", "model": "m", "provider": "groq", "api_key": "test-key"}
    options.update(kwargs)
    client = LLMClient(**options)
    completions = RecordingCompletions(responses)
    client._sdk_client = SimpleNamespace(chat=SimpleNamespace(completions=completions))  # type: ignore[assignment]
    return client, completions


def _reply(content: Any) -> Any:
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def test_empty_choices_and_missing_content_become_empty_text() -> None:
    client, _ = _client_with([SimpleNamespace(choices=[]), _reply(None)], temperature=0.4)

    assert asyncio.run(client.chat([{"role": "user", "content": "hi"}])) == ""
    assert asyncio.run(client.chat([{"role": "user", "content": "hi"}])) == ""


def test_temperature_override_reaches_the_request() -> None:
    client, completions = _client_with([_reply("a"), _reply("b")], temperature=0.4)

    assert asyncio.run(client.chat([{"role": "user", "content": "hi"}], temperature=0.9)) == "a"
    assert asyncio.run(client.chat([{"role": "user", "content": "hi"}])) == "b"

    assert completions.requests[0]["temperature"] == 0.9
    assert completions.requests[1]["temperature"] == 0.4
    assert completions.requests[0]["model"] == "m"


def test_complete_sends_a_single_user_message() -> None:
    client, completions = _client_with([_reply("{}")])

    assert asyncio.run(client.complete("make a mill")) == "{}"

    assert completions.requests[0]["messages"] == [{"role": "user", "content": "make a mill"}]
    assert "temperature" not in completions.requests[0]


def test_sdk_client_is_built_on_first_use(monkeypatch) -> None:
    monkeypatch.setenv("GEMINI_API_KEY", "gemini-test")
    client = LLMClient(base_url="http://localhost/v1", model="m", provider="gemini", timeout=5)

    assert client._sdk_client is None
    sdk = client._client

    assert isinstance(sdk, AsyncOpenAI)
    assert sdk.api_key == "gemini-test"
    assert client._client is sdk


def test_missing_key_fails_at_request_time(monkeypatch) -> None:
    monkeypatch.delenv("GROQ_API_KEY", raising=False)
    client = LLMClient(base_url="http://localhost", model="m", provider="groq")

    with pytest.raises(RuntimeError, match="GROQ_API_KEY"):
        asyncio.run(client.chat([{"role": "user", "content": "hi"}]))


@pytest.mark.parametrize("provider", ["carrier-pigeon", "vllm"])
def test_client_rejects_unknown_provider(provider) -> None:
    with pytest.raises(ValueError):
        LLMClient(base_url="http://localhost", model="m", provider=provider)
