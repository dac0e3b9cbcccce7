"""Create-mod chat and schematic assistant.

This package routes a player's message to one of three personas and answers
it with a chat model, and turns free-text build instructions into a JSON
blueprint with a derived stress estimate. It wires together

* prompt templates for the personas, the mode router and the schematic request,
* OpenAI-compatible async clients for the chat and blueprint models,
* SQLite storage for the style profile, project history and schematics, and
* a FastAPI surface and command-line runtime over both pipelines.
"""

from .clients import LLMClient
from .config import AssistantConfig
from .errors import InputValidationError, OperationError
from .manager import ChatOrchestrator, SchematicPipeline, parse_blueprint
from .runtime import AssistantRuntime, main as runtime_main
from .schemas import (
    ChatResult,
    ConversationTurn,
    DegradedBlueprint,
    Message,
    ProjectRecord,
    StructuredBlueprint,
    StyleProfile,
)
from .storage import BlueprintFileSink, ProjectDatabase
from .tools import ModeClassifier, PromptComposer, estimate_stress, keyword_mode

__all__ = [
    "AssistantConfig",
    "AssistantRuntime",
    "BlueprintFileSink",
    "ChatOrchestrator",
    "ChatResult",
    "ConversationTurn",
    "DegradedBlueprint",
    "InputValidationError",
    "LLMClient",
    "Message",
    "ModeClassifier",
    "OperationError",
    "ProjectDatabase",
    "ProjectRecord",
    "PromptComposer",
    "SchematicPipeline",
    "StructuredBlueprint",
    "StyleProfile",
    "estimate_stress",
    "keyword_mode",
    "parse_blueprint",
    "runtime_main",
]
