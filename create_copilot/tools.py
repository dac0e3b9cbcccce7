"""Mode routing, system-prompt composition and the stress estimator used by the pipelines."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

from .clients import LLMClient
from .prompts import AUTO_ROUTER_PROMPT, CREATE_MODE_PROMPT, GENERAL_MODE_PROMPT, PRO_MODE_PROMPT
from .schemas import (
    MODE_AUTO,
    MODE_CREATE,
    MODE_GENERAL,
    MODE_PRO,
    MODES,
    ROLE_SYSTEM,
    ROLE_USER,
    ConversationTurn,
    StyleProfile,
    loads_payload,
)

logger = logging.getLogger(__name__)

CREATE_KEYWORDS = ("create ", "factory", "kinetic")
PRO_KEYWORDS = ("forge", "fabric", "gradle")


def keyword_mode(message: str) -> str:
    """Pick a mode from keywords in ``message``. Never raises."""

    lower = (message or "").lower()
    if any(keyword in lower for keyword in CREATE_KEYWORDS):
        return MODE_CREATE
    if any(keyword in lower for keyword in PRO_KEYWORDS):
        return MODE_PRO
    return MODE_GENERAL


@dataclass
class ClassificationResult:
    """Outcome of asking the model for a mode: either ``mode`` or ``error``."""

    mode: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.mode is not None


@dataclass
class ModeClassifier:
    """Route a message to a persona, via the chat model or keyword fallback."""

    llm_client: LLMClient
    temperature: float | None = None

    async def classify(self, message: str, explicit_mode: str = MODE_AUTO) -> str:
        if explicit_mode != MODE_AUTO:
            return explicit_mode

        result = await self._ask_model(message)
        if result.ok:
            return result.mode  # type: ignore[return-value]

        logger.warning("Auto router failed; falling back to keywords: %s", result.error)
        return keyword_mode(message)

    async def _ask_model(self, message: str) -> ClassificationResult:
        messages = [
            {"role": ROLE_SYSTEM, "content": AUTO_ROUTER_PROMPT},
            {"role": ROLE_USER, "content": message},
        ]
        try:
            raw = await self.llm_client.chat(messages, temperature=self.temperature)
        except Exception as exc:
            return ClassificationResult(error=f"model call failed: {exc}")

        try:
            parsed = loads_payload(raw)
        except (ValueError, RecursionError) as exc:
            return ClassificationResult(error=f"unparseable router output {raw!r}: {exc}")

        mode = parsed.get("mode") if isinstance(parsed, Mapping) else None
        if mode not in MODES:
            return ClassificationResult(error=f"unrecognised mode {mode!r}")
        return ClassificationResult(mode=mode)


PERSONA_PROMPTS: Mapping[str, str] = {
    MODE_CREATE: CREATE_MODE_PROMPT,
    MODE_PRO: PRO_MODE_PROMPT,
    MODE_GENERAL: GENERAL_MODE_PROMPT,
}


@dataclass
class PromptComposer:
    """Build the system instruction for a chat call."""

    history_window: int = 4
    max_chars: int = 200

    def compose(
        self,
        mode: str,
        profile: StyleProfile,
        history: Optional[Sequence[ConversationTurn]] = None,
    ) -> str:
        parts = [
            PERSONA_PROMPTS.get(mode, GENERAL_MODE_PROMPT),
            self.style_block(profile),
            self.history_block(history),
        ]
        return "\n\n".join(part for part in parts if part)

    @staticmethod
    def style_block(profile: StyleProfile) -> str:
        return "\n".join(
            [
                "User style settings:",
                f"- tone: {profile.tone}",
                f"- detail: {profile.detail}",
                f"- emojis: {profile.emojis}",
                f"- formatting: {profile.formatting}",
                "",
                "Respect these settings while answering.",
            ]
        )

    def history_block(self, history: Optional[Sequence[ConversationTurn]]) -> str:
        if not history or self.history_window <= 0:
            return ""
        recent = list(history)[-self.history_window :]
        lines = [f"[{turn.role}] {turn.content[: self.max_chars]}" for turn in recent]
        return "Recent project messages:\n" + "\n".join(lines)


def estimate_stress(machines: int, base_stress: float) -> float:
    """Total stress units drawn by ``machines`` machines of ``base_stress`` each."""

    return float(machines) * float(base_stress)


__all__ = [
    "CREATE_KEYWORDS",
    "ClassificationResult",
    "ModeClassifier",
    "PERSONA_PROMPTS",
    "PRO_KEYWORDS",
    "PromptComposer",
    "estimate_stress",
    "keyword_mode",
]
