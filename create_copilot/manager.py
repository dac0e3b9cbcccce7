"""High-level orchestration for chat exchanges and schematic generation."""

from __future__ import annotations

import logging
import math
import numbers
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional

from .clients import LLMClient
from .errors import InputValidationError, OperationError
from .prompts import render_schematic_prompt
from .schemas import (
    MODE_AUTO,
    ROLE_ASSISTANT,
    ROLE_SYSTEM,
    ROLE_USER,
    Blueprint,
    ChatResult,
    DegradedBlueprint,
    Message,
    StructuredBlueprint,
    loads_payload,
)
from .storage import BlueprintFileSink, ProjectDatabase
from .tools import ModeClassifier, PromptComposer, estimate_stress

logger = logging.getLogger(__name__)

NO_REPLY = "(no reply)"
CHAT_ERROR = "AI error"
SCHEMATIC_ERROR = "Schematic AI error"


def _require_text(value: Any, field_name: str) -> str:
    if not value or not isinstance(value, str):
        raise InputValidationError(f"Missing '{field_name}' string")
    return value


@dataclass
class ChatOrchestrator:
    """Classify, compose, call the chat model and record the exchange."""

    db: ProjectDatabase
    llm_client: LLMClient
    temperature: float | None = 0.4
    classifier: Optional[ModeClassifier] = None
    composer: PromptComposer = field(default_factory=PromptComposer)

    def __post_init__(self) -> None:
        if self.classifier is None:
            self.classifier = ModeClassifier(llm_client=self.llm_client, temperature=self.temperature)

    async def handle_chat(
        self,
        message: Any,
        mode: Optional[str] = MODE_AUTO,
        project_name: Optional[str] = None,
    ) -> ChatResult:
        message = _require_text(message, "message")
        try:
            return await self._run(message, mode or MODE_AUTO, project_name)
        except Exception as exc:
            logger.exception("AI chat error")
            raise OperationError(CHAT_ERROR, str(exc)) from exc

    async def _run(self, message: str, mode: str, project_name: Optional[str]) -> ChatResult:
        profile = self.db.load_style_profile()
        chosen_mode = await self.classifier.classify(message, mode)  # type: ignore[union-attr]

        history = None
        if project_name:
            history = self.db.load_recent_turns(project_name, self.composer.history_window) or None

        system_content = self.composer.compose(chosen_mode, profile, history)
        messages = [
            Message(ROLE_SYSTEM, system_content).to_payload(),
            Message(ROLE_USER, message).to_payload(),
        ]
        reply = await self.llm_client.chat(messages, temperature=self.temperature) or NO_REPLY

        if project_name:
            self.db.append_conversation(project_name, ROLE_USER, message)
            self.db.append_conversation(project_name, ROLE_ASSISTANT, reply)

        return ChatResult(mode=chosen_mode, reply=reply)


def parse_blueprint(raw: str) -> Blueprint:
    """Turn raw blueprint-model output into a structured or degraded blueprint."""

    try:
        parsed = loads_payload(raw)
    except (ValueError, RecursionError) as exc:
        return DegradedBlueprint(parse_error=str(exc), raw=raw)
    if not isinstance(parsed, Mapping):
        return DegradedBlueprint(
            parse_error=f"Expected a JSON object, got {type(parsed).__name__}",
            raw=raw,
        )
    return StructuredBlueprint(fields=dict(parsed))


@dataclass
class SchematicPipeline:
    """Prompt the blueprint model, parse its output and derive the stress estimate."""

    db: ProjectDatabase
    llm_client: LLMClient
    file_sink: BlueprintFileSink
    estimator: Callable[[int, float], float] = estimate_stress
    default_base_stress: float = 256

    async def generate_schematic(self, instructions: Any, project_name: Optional[str] = None) -> Blueprint:
        instructions = _require_text(instructions, "instructions")
        try:
            return await self._run(instructions, project_name)
        except Exception as exc:
            logger.exception("Schematic error")
            raise OperationError(SCHEMATIC_ERROR, str(exc)) from exc

    async def _run(self, instructions: str, project_name: Optional[str]) -> Blueprint:
        prompt = render_schematic_prompt(instructions)
        raw = await self.llm_client.complete(prompt)

        blueprint = parse_blueprint(raw)
        if isinstance(blueprint, DegradedBlueprint):
            logger.warning("Blueprint output was not valid JSON: %s", blueprint.parse_error)
        else:
            self.enrich(blueprint)

        if project_name:
            self.db.save_schematic(project_name, blueprint)
            self.file_sink.save_blueprint_file(project_name, blueprint)
        return blueprint

    def enrich(self, blueprint: StructuredBlueprint) -> StructuredBlueprint:
        stress = blueprint.stress
        machines = stress.get("machines")
        if not machines:
            return blueprint
        if isinstance(machines, bool) or not isinstance(machines, numbers.Real):
            logger.warning("Ignoring non-numeric stress.machines: %r", machines)
            return blueprint

        base_stress = stress.get("baseStress")
        if isinstance(base_stress, bool) or not isinstance(base_stress, numbers.Real) or not base_stress:
            base_stress = self.default_base_stress
        try:
            estimate = self.estimator(machines, base_stress)
        except OverflowError:
            estimate = math.inf
        if not math.isfinite(estimate):
            logger.warning("Stress estimate out of range for machines=%r baseStress=%r", machines, base_stress)
            return blueprint
        blueprint.stress_estimate = estimate
        return blueprint


__all__ = [
    "CHAT_ERROR",
    "ChatOrchestrator",
    "NO_REPLY",
    "SCHEMATIC_ERROR",
    "SchematicPipeline",
    "parse_blueprint",
]
