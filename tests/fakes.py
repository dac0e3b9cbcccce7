from __future__ import annotations

from typing import Any, List, Mapping, Optional, Sequence


class FakeLLMClient:
    """Replies from a queue keyed by system prompt; the ``None`` key matches anything."""

    def __init__(
        self,
        responses: Optional[Mapping[Optional[str], List[Any]]] = None,
        default: Optional[str] = None,
    ) -> None:
        self.responses = {key: list(queue) for key, queue in (responses or {}).items()}
        self.default = default
        self.calls: List[Mapping[str, Any]] = []

    async def chat(
        self, messages: Sequence[Mapping[str, Any]], *, temperature: float | None = None
    ) -> str:
        system_prompt = next((msg["content"] for msg in messages if msg["role"] == "system"), None)
        self.calls.append(
            {"system": system_prompt, "messages": list(messages), "temperature": temperature}
        )
        queue = self.responses.get(system_prompt) or self.responses.get(None)
        if not queue:
            if self.default is not None:
                return self.default
            raise AssertionError(f"No response queued for system prompt: {system_prompt!r}")
        reply = queue.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    async def complete(self, prompt: str) -> str:
        return await self.chat([{"role": "user", "content": prompt}])
