"""Runtime helpers for deploying the assistant."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

from .clients import LLMClient
from .config import AssistantConfig
from .errors import InputValidationError, OperationError
from .manager import ChatOrchestrator, SchematicPipeline
from .schemas import MODE_AUTO, MODES, dumps_payload
from .storage import BlueprintFileSink, ProjectDatabase
from .tools import PromptComposer

logger = logging.getLogger(__name__)


@dataclass
class AssistantRuntime:
    """Wire config, model clients, stores and the two pipelines together."""

    config: AssistantConfig = field(default_factory=AssistantConfig)
    chat_client: Optional[LLMClient] = None
    blueprint_client: Optional[LLMClient] = None
    database: Optional[ProjectDatabase] = None

    def __post_init__(self) -> None:
        config = self.config
        if self.database is None:
            if config.db_path != ":memory:":
                Path(config.db_path).expanduser().resolve().parent.mkdir(parents=True, exist_ok=True)
                self.database = ProjectDatabase(str(Path(config.db_path).expanduser()))
            else:
                self.database = ProjectDatabase(":memory:")

        if self.chat_client is None:
            self.chat_client = LLMClient(
                base_url=config.chat_base_url,
                model=config.chat_model,
                provider=config.chat_provider,
                api_key=config.chat_api_key,
                temperature=config.chat_temperature,
                timeout=config.request_timeout,
            )
        if self.blueprint_client is None:
            self.blueprint_client = LLMClient(
                base_url=config.blueprint_base_url,
                model=config.blueprint_model,
                provider=config.blueprint_provider,
                api_key=config.blueprint_api_key,
                timeout=config.request_timeout,
            )

        self.file_sink = BlueprintFileSink(config.blueprint_dir)
        self.chat = ChatOrchestrator(
            db=self.database,
            llm_client=self.chat_client,
            temperature=config.chat_temperature,
            composer=PromptComposer(
                history_window=config.history_window,
                max_chars=config.history_max_chars,
            ),
        )
        self.schematics = SchematicPipeline(
            db=self.database,
            llm_client=self.blueprint_client,
            file_sink=self.file_sink,
            default_base_stress=config.default_base_stress,
        )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Create Copilot: Create-mod chat and schematic assistant")
    parser.add_argument("--db", help="SQLite file for style and project history")
    parser.add_argument("--blueprint-dir", help="Directory for generated blueprint files")
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging to trace prompt/response payloads.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    chat = sub.add_parser("chat", help="Send one chat message")
    chat.add_argument("message")
    chat.add_argument("--mode", choices=[MODE_AUTO, *MODES], default=MODE_AUTO)
    chat.add_argument("--project", help="Project whose history to use and extend")

    schematic = sub.add_parser("schematic", help="Generate a blueprint")
    schematic.add_argument("instructions")
    schematic.add_argument("--project", help="Project to save the blueprint under")

    style = sub.add_parser("style", help="Show or update reply style settings")
    style.add_argument("--tone")
    style.add_argument("--detail")
    style.add_argument("--emojis")
    style.add_argument("--formatting")

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    return parser


def main(argv: Optional[Iterable[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    config = AssistantConfig.from_env()
    if args.db:
        config.db_path = args.db
    if args.blueprint_dir:
        config.blueprint_dir = args.blueprint_dir
    runtime = AssistantRuntime(config=config)

    if args.command == "serve":
        import uvicorn

        from .http_api import create_app

        logger.info("Serving HTTP API on %s:%s", args.host, args.port)
        uvicorn.run(create_app(runtime), host=args.host, port=args.port)
        return 0

    try:
        if args.command == "chat":
            result = asyncio.run(runtime.chat.handle_chat(args.message, args.mode, args.project))
            payload = {"ok": True, **result.to_payload()}
        elif args.command == "schematic":
            blueprint = asyncio.run(runtime.schematics.generate_schematic(args.instructions, args.project))
            payload = {"ok": True, "schematic": blueprint.to_payload()}
        else:
            updates = {
                "tone": args.tone,
                "detail": args.detail,
                "emojis": args.emojis,
                "formatting": args.formatting,
            }
            if any(value is not None for value in updates.values()):
                profile = runtime.database.save_style_profile(updates)  # type: ignore[union-attr]
            else:
                profile = runtime.database.load_style_profile()  # type: ignore[union-attr]
            payload = {"ok": True, "profile": profile.to_payload()}
    except InputValidationError as exc:
        print(json.dumps({"ok": False, "error": str(exc)}, ensure_ascii=False), file=sys.stderr)
        return 2
    except OperationError as exc:
        print(json.dumps(exc.to_payload(), ensure_ascii=False), file=sys.stderr)
        return 1

    print(dumps_payload(payload))
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
