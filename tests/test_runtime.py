from __future__ import annotations

import json

from fastapi.testclient import TestClient

from create_copilot.config import GEMINI_BASE_URL, GROQ_BASE_URL, AssistantConfig
from create_copilot.http_api import create_app
from create_copilot.runtime import AssistantRuntime, main


def test_config_defaults_from_empty_environment() -> None:
    config = AssistantConfig.from_env({}, dotenv=False)

    assert config.chat_base_url == GROQ_BASE_URL
    assert config.chat_model == "llama-3.1-70b-versatile"
    assert config.chat_temperature == 0.4
    assert config.blueprint_base_url == GEMINI_BASE_URL
    assert config.blueprint_model == "gemini-1.5-flash"
    assert config.chat_api_key is None
    assert config.request_timeout is None
    assert config.history_window == 4
    assert config.history_max_chars == 200
    assert config.default_base_stress == 256


def test_config_reads_overrides() -> None:
    config = AssistantConfig.from_env(
        {
            "CHAT_MODEL": "llama-3.3-70b",
            "BLUEPRINT_MODEL": "gemini-2.0-flash",
            "GROQ_API_KEY": "gsk-test",
            "GEMINI_API_KEY": "",
            "REQUEST_TIMEOUT": "30",
            "CREATE_COPILOT_DB": "/tmp/x.sqlite",
        },
        dotenv=False,
    )

    assert config.chat_model == "llama-3.3-70b"
    assert config.blueprint_model == "gemini-2.0-flash"
    assert config.chat_api_key == "gsk-test"
    assert config.blueprint_api_key is None
    assert config.request_timeout == 30.0
    assert config.db_path == "/tmp/x.sqlite"


def test_runtime_builds_clients_from_config(tmp_path) -> None:
    config = AssistantConfig(
        db_path=str(tmp_path / "nested" / "copilot.sqlite"),
        blueprint_dir=str(tmp_path / "blueprints"),
        chat_api_key="gsk-test",
        blueprint_api_key="gemini-test",
        chat_model="chat-model",
        blueprint_model="blueprint-model",
    )

    runtime = AssistantRuntime(config=config)

    assert (tmp_path / "nested" / "copilot.sqlite").exists()
    assert runtime.chat_client.model == "chat-model"
    assert runtime.chat_client.provider == "groq"
    assert runtime.chat_client.temperature == 0.4
    assert runtime.blueprint_client.model == "blueprint-model"
    assert runtime.blueprint_client.provider == "gemini"
    assert runtime.chat.composer.history_window == 4
    assert runtime.schematics.file_sink is runtime.file_sink


def _clear_model_keys(monkeypatch) -> None:
    for name in ("GROQ_API_KEY", "GEMINI_API_KEY", "OPENAI_API_KEY"):
        monkeypatch.delenv(name, raising=False)


def test_cli_style_update(tmp_path, capsys, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    _clear_model_keys(monkeypatch)
    args = ["--db", str(tmp_path / "cli.sqlite"), "--blueprint-dir", str(tmp_path / "bp")]

    assert main([*args, "style", "--tone", "blunt"]) == 0
    updated = json.loads(capsys.readouterr().out)
    assert main([*args, "style"]) == 0
    shown = json.loads(capsys.readouterr().out)

    assert updated["profile"]["tone"] == "blunt"
    assert shown == updated


def test_cli_rejects_empty_message(tmp_path, capsys, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    _clear_model_keys(monkeypatch)

    code = main(["--db", str(tmp_path / "cli.sqlite"), "chat", ""])

    assert code == 2
    assert json.loads(capsys.readouterr().err) == {"ok": False, "error": "Missing 'message' string"}


def test_style_endpoints_work_without_model_keys(tmp_path, monkeypatch) -> None:
    _clear_model_keys(monkeypatch)
    runtime = AssistantRuntime(
        config=AssistantConfig(db_path=":memory:", blueprint_dir=str(tmp_path / "bp"))
    )
    client = TestClient(create_app(runtime))

    shown = client.get("/api/ai/style")
    updated = client.post("/api/ai/style", json={"tone": "blunt"})

    assert shown.status_code == 200
    assert updated.json()["profile"]["tone"] == "blunt"


def test_chat_without_model_key_reports_error_envelope(tmp_path, monkeypatch) -> None:
    _clear_model_keys(monkeypatch)
    runtime = AssistantRuntime(
        config=AssistantConfig(db_path=":memory:", blueprint_dir=str(tmp_path / "bp"))
    )
    client = TestClient(create_app(runtime))

    response = client.post("/api/ai/chat", json={"message": "hello", "mode": "general"})

    assert response.status_code == 500
    body = response.json()
    assert body["ok"] is False
    assert body["error"] == "AI error"
    assert "GROQ_API_KEY" in body["details"]
