"""Process-wide configuration, resolved once at startup and injected."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

GROQ_BASE_URL = "https://api.groq.com/openai/v1"
GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"


@dataclass
class AssistantConfig:
    """Models, credentials and storage locations for the assistant.

    Business logic receives an instance of this class and never reads the
    environment itself.
    """

    chat_base_url: str = GROQ_BASE_URL
    chat_model: str = "llama-3.1-70b-versatile"
    chat_provider: str = "groq"
    chat_api_key: Optional[str] = None
    chat_temperature: float = 0.4

    blueprint_base_url: str = GEMINI_BASE_URL
    blueprint_model: str = "gemini-1.5-flash"
    blueprint_provider: str = "gemini"
    blueprint_api_key: Optional[str] = None

    request_timeout: Optional[float] = None

    db_path: str = "data/create_copilot.sqlite"
    blueprint_dir: str = "data/blueprints"

    history_window: int = 4
    history_max_chars: int = 200
    default_base_stress: float = 256

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        *,
        dotenv: bool = True,
    ) -> "AssistantConfig":
        """Build a config from ``environ`` (defaults to ``os.environ``).

        ``.env`` in the working directory is loaded first unless ``dotenv`` is
        false. Unset variables keep the dataclass defaults.
        """

        if dotenv:
            load_dotenv()
        env = os.environ if environ is None else environ
        defaults = cls()

        timeout = env.get("REQUEST_TIMEOUT")
        return cls(
            chat_base_url=env.get("CHAT_BASE_URL", defaults.chat_base_url),
            chat_model=env.get("CHAT_MODEL", defaults.chat_model),
            chat_provider=env.get("CHAT_PROVIDER", defaults.chat_provider),
            chat_api_key=env.get("GROQ_API_KEY") or None,
            chat_temperature=float(env.get("CHAT_TEMPERATURE", defaults.chat_temperature)),
            blueprint_base_url=env.get("BLUEPRINT_BASE_URL", defaults.blueprint_base_url),
            blueprint_model=env.get("BLUEPRINT_MODEL", defaults.blueprint_model),
            blueprint_provider=env.get("BLUEPRINT_PROVIDER", defaults.blueprint_provider),
            blueprint_api_key=env.get("GEMINI_API_KEY") or None,
            request_timeout=float(timeout) if timeout else None,
            db_path=env.get("CREATE_COPILOT_DB", defaults.db_path),
            blueprint_dir=env.get("CREATE_COPILOT_BLUEPRINT_DIR", defaults.blueprint_dir),
        )


__all__ = ["AssistantConfig", "GEMINI_BASE_URL", "GROQ_BASE_URL"]
