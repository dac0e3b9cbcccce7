from __future__ import annotations

from typing import Optional

import pytest

from create_copilot.config import AssistantConfig
from create_copilot.runtime import AssistantRuntime
from create_copilot.storage import ProjectDatabase
from fakes import FakeLLMClient


@pytest.fixture
def database() -> ProjectDatabase:
    return ProjectDatabase(":memory:")


@pytest.fixture
def make_runtime(database, tmp_path):
    def _make(
        chat_client: FakeLLMClient,
        blueprint_client: Optional[FakeLLMClient] = None,
    ) -> AssistantRuntime:
        config = AssistantConfig(db_path=":memory:", blueprint_dir=str(tmp_path / "blueprints"))
        return AssistantRuntime(
            config=config,
            chat_client=chat_client,  # type: ignore[arg-type]
            blueprint_client=blueprint_client or FakeLLMClient(default="{}"),  # type: ignore[arg-type]
            database=database,
        )

    return _make
