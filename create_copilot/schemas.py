"""Typed data structures shared by the chat and schematic pipelines."""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, MutableMapping, Optional, Union

MODE_CREATE = "create"
MODE_PRO = "pro"
MODE_GENERAL = "general"
MODE_AUTO = "auto"

MODES = (MODE_CREATE, MODE_PRO, MODE_GENERAL)

ROLE_SYSTEM = "system"
ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"

ROLES = (ROLE_SYSTEM, ROLE_USER, ROLE_ASSISTANT)


def _default_timestamp() -> str:
    return datetime.utcnow().isoformat()


@dataclass
class Message:
    """A single chat message sent to the model."""

    role: str
    content: str

    def __post_init__(self) -> None:
        if self.role not in ROLES:
            raise ValueError(f"Unsupported message role '{self.role}'")
        if self.role == ROLE_USER and not self.content:
            raise ValueError("User messages must have content")

    def to_payload(self) -> Mapping[str, str]:
        return {"role": self.role, "content": self.content}


STYLE_FIELDS = ("tone", "detail", "emojis", "formatting")

DEFAULT_STYLE: Mapping[str, str] = {
    "tone": "friendly",
    "detail": "medium",
    "emojis": "some",
    "formatting": "markdown",
}


@dataclass
class StyleProfile:
    """How replies should be phrased.

    Unknown fields found in the stored payload are kept in ``extras`` so that
    they survive a load/save cycle.
    """

    tone: str = DEFAULT_STYLE["tone"]
    detail: str = DEFAULT_STYLE["detail"]
    emojis: str = DEFAULT_STYLE["emojis"]
    formatting: str = DEFAULT_STYLE["formatting"]
    extras: MutableMapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> "StyleProfile":
        known = {key: str(data[key]) for key in STYLE_FIELDS if data.get(key) is not None}
        extras = {key: value for key, value in data.items() if key not in STYLE_FIELDS}
        return cls(**known, extras=extras)

    def merged(self, partial: Mapping[str, Any]) -> "StyleProfile":
        """Return a copy with the non-null fields of ``partial`` applied."""

        payload: Dict[str, Any] = dict(self.to_payload())
        for key, value in partial.items():
            if value is not None:
                payload[key] = value
        return StyleProfile.from_payload(payload)

    def to_payload(self) -> Mapping[str, Any]:
        payload: Dict[str, Any] = dict(self.extras)
        payload.update(
            {
                "tone": self.tone,
                "detail": self.detail,
                "emojis": self.emojis,
                "formatting": self.formatting,
            }
        )
        return payload


@dataclass
class ConversationTurn:
    """A persisted message in a project's conversation log."""

    role: str
    content: str
    timestamp: str = field(default_factory=_default_timestamp)

    def to_payload(self) -> Mapping[str, Any]:
        return {"role": self.role, "content": self.content, "timestamp": self.timestamp}


@dataclass
class ProjectRecord:
    """A named project with its conversation and saved schematics."""

    name: str
    conversation: List[ConversationTurn] = field(default_factory=list)
    schematics: List[Mapping[str, Any]] = field(default_factory=list)

    def to_payload(self) -> Mapping[str, Any]:
        return {
            "name": self.name,
            "conversation": [turn.to_payload() for turn in self.conversation],
            "schematics": list(self.schematics),
        }


@dataclass
class StructuredBlueprint:
    """A blueprint the model returned as a JSON object."""

    fields: MutableMapping[str, Any]
    stress_estimate: Optional[float] = None

    @property
    def name(self) -> Optional[str]:
        value = self.fields.get("name")
        return str(value) if value is not None else None

    @property
    def stress(self) -> Mapping[str, Any]:
        value = self.fields.get("stress")
        return value if isinstance(value, Mapping) else {}

    def to_payload(self) -> Mapping[str, Any]:
        payload: Dict[str, Any] = dict(self.fields)
        if self.stress_estimate is not None:
            payload["stressEstimate"] = self.stress_estimate
        return payload


@dataclass
class DegradedBlueprint:
    """Raw model output that could not be parsed into a blueprint."""

    parse_error: str
    raw: str

    @property
    def name(self) -> Optional[str]:
        return None

    def to_payload(self) -> Mapping[str, Any]:
        return {"parseError": self.parse_error, "raw": self.raw}


Blueprint = Union[StructuredBlueprint, DegradedBlueprint]


@dataclass
class ChatResult:
    """Outcome of a chat exchange."""

    mode: str
    reply: str

    def to_payload(self) -> Mapping[str, Any]:
        return {"mode": self.mode, "reply": self.reply}


def dumps_payload(data: Any) -> str:
    """Render ``data`` as formatted JSON for storage and files."""

    return json.dumps(data, ensure_ascii=False, indent=2)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Non-standard JSON constant {name!r}")


def _finite_float(text: str) -> float:
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"Number out of range: {text}")
    return value


_STRICT_DECODER = json.JSONDecoder(parse_constant=_reject_constant, parse_float=_finite_float)


def _strip_fences(message: str) -> str:
    text = message.strip()
    if text.startswith("```"):
        text = text[3:]
        if text.lower().startswith("json"):
            text = text[4:]
        text = text.strip()
        if text.endswith("```"):
            text = text[:-3].rstrip()
    elif text.lower().startswith("json"):
        text = text[4:].lstrip(": ")
    return text


def loads_payload(message: str) -> Any:
    """Parse model output as strict JSON.

    ``NaN``, ``Infinity`` and floats that overflow to infinity are rejected.
    Markdown code fences are stripped, and when the whole text is not JSON
    the first object embedded in it (``Here it is: {...}``) is used instead.
    Raises :class:`ValueError` when nothing parses, including for input
    nested too deeply to decode.
    """

    text = _strip_fences(message)
    try:
        return _STRICT_DECODER.decode(text)
    except RecursionError as exc:
        raise ValueError("JSON nesting too deep") from exc
    except ValueError as exc:
        error = exc

    start = text.find("{")
    if start > 0:
        try:
            parsed, _ = _STRICT_DECODER.raw_decode(text, start)
        except (ValueError, RecursionError):
            pass
        else:
            return parsed
    raise error


__all__ = [
    "Blueprint",
    "ChatResult",
    "ConversationTurn",
    "DEFAULT_STYLE",
    "DegradedBlueprint",
    "MODES",
    "MODE_AUTO",
    "MODE_CREATE",
    "MODE_GENERAL",
    "MODE_PRO",
    "Message",
    "ProjectRecord",
    "ROLES",
    "ROLE_ASSISTANT",
    "ROLE_SYSTEM",
    "ROLE_USER",
    "STYLE_FIELDS",
    "StructuredBlueprint",
    "StyleProfile",
    "dumps_payload",
    "loads_payload",
]
