"""
HTTP API adapter for the assistant.

Endpoints (mounted under ``/api/ai`` by default):
- `POST /chat {message, mode?, projectName?}` -> `{ok, mode, reply}`
- `GET /style` -> `{ok, profile}`
- `POST /style {tone?, detail?, emojis?, formatting?}` -> `{ok, profile}`
- `POST /schematic {instructions, projectName?}` -> `{ok, schematic}`

Errors are returned as `{ok: false, error, details?}`: HTTP 400 for missing or
malformed required fields, HTTP 500 for operation failures. Request bodies are
parsed directly from `Request` so that an empty or non-object body reaches the
same validation path as a missing field.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse

from .config import AssistantConfig
from .errors import InputValidationError, OperationError
from .runtime import AssistantRuntime
from .schemas import MODE_AUTO, STYLE_FIELDS

logger = logging.getLogger(__name__)


async def _read_body(request: Request) -> Dict[str, Any]:
    try:
        body = await request.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def _error(status_code: int, error: str, details: Optional[str] = None) -> JSONResponse:
    content: Dict[str, Any] = {"ok": False, "error": error}
    if details is not None:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


def create_router(runtime: AssistantRuntime) -> APIRouter:
    router = APIRouter()

    @router.post("/chat")
    async def chat(request: Request):
        body = await _read_body(request)
        try:
            result = await runtime.chat.handle_chat(
                body.get("message"),
                body.get("mode") or MODE_AUTO,
                body.get("projectName") or None,
            )
        except InputValidationError as exc:
            return _error(400, str(exc))
        except OperationError as exc:
            return JSONResponse(status_code=500, content=exc.to_payload())
        return {"ok": True, **result.to_payload()}

    @router.get("/style")
    def get_style():
        try:
            profile = runtime.database.load_style_profile()  # type: ignore[union-attr]
        except Exception as exc:
            logger.exception("Load style error")
            return _error(500, "Failed to load style", str(exc))
        return {"ok": True, "profile": profile.to_payload()}

    @router.post("/style")
    async def save_style(request: Request):
        body = await _read_body(request)
        updates = {key: body.get(key) for key in STYLE_FIELDS}
        try:
            profile = runtime.database.save_style_profile(updates)  # type: ignore[union-attr]
        except Exception as exc:
            logger.exception("Save style error")
            return _error(500, "Failed to save style", str(exc))
        return {"ok": True, "profile": profile.to_payload()}

    @router.post("/schematic")
    async def schematic(request: Request):
        body = await _read_body(request)
        try:
            blueprint = await runtime.schematics.generate_schematic(
                body.get("instructions"),
                body.get("projectName") or None,
            )
        except InputValidationError as exc:
            return _error(400, str(exc))
        except OperationError as exc:
            return JSONResponse(status_code=500, content=exc.to_payload())
        return {"ok": True, "schematic": blueprint.to_payload()}

    return router


def create_app(runtime: Optional[AssistantRuntime] = None, *, prefix: str = "/api/ai") -> FastAPI:
    """Build the FastAPI application around ``runtime`` (created from env if omitted)."""

    if runtime is None:
        runtime = AssistantRuntime(config=AssistantConfig.from_env())

    app = FastAPI(title="Create Copilot")
    app.state.runtime = runtime
    app.include_router(create_router(runtime), prefix=prefix)
    return app


__all__ = ["create_app", "create_router"]
