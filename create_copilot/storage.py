"""Persistent storage for style preferences, project history and schematics."""

from __future__ import annotations

import json
import logging
import re
import sqlite3
import threading
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, List, Mapping, Optional

from .schemas import Blueprint, ConversationTurn, ProjectRecord, StyleProfile, dumps_payload

logger = logging.getLogger(__name__)

STYLE_SETTING = "style_profile"


class ProjectDatabase:
    """Small SQLite wrapper that stores the style profile, projects, turns and schematics.

    Projects are created on first write: ``append_conversation`` and
    ``save_schematic`` upsert the project row before inserting.
    """

    def __init__(self, db_path: str = ":memory:") -> None:
        self.connection = sqlite3.connect(db_path, check_same_thread=False)
        self.connection.row_factory = sqlite3.Row
        self._lock = threading.Lock()
        self._create_schema()

    def _create_schema(self) -> None:
        with self._lock:
            cur = self.connection.cursor()
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS settings (
                    name TEXT PRIMARY KEY,
                    payload TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS projects (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL UNIQUE,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS conversation (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    project_id TEXT NOT NULL,
                    role TEXT NOT NULL,
                    content TEXT NOT NULL,
                    timestamp TEXT NOT NULL,
                    FOREIGN KEY(project_id) REFERENCES projects(id)
                )
                """
            )
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS schematics (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    id TEXT NOT NULL UNIQUE,
                    project_id TEXT NOT NULL,
                    payload TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    FOREIGN KEY(project_id) REFERENCES projects(id)
                )
                """
            )
            cur.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_conversation_project_id
                ON conversation(project_id)
                """
            )
            self.connection.commit()

    # ------------------------------------------------------------------
    # Style profile
    # ------------------------------------------------------------------
    def load_style_profile(self) -> StyleProfile:
        """Return the stored profile, writing the defaults on first use."""

        cur = self.connection.execute(
            "SELECT payload FROM settings WHERE name = ?",
            (STYLE_SETTING,),
        )
        row = cur.fetchone()
        if row is None:
            profile = StyleProfile()
            self._write_setting(STYLE_SETTING, profile.to_payload())
            return profile
        try:
            data = json.loads(row["payload"])
        except json.JSONDecodeError:
            logger.error("Failed to read stored style profile, using defaults", exc_info=True)
            return StyleProfile()
        if not isinstance(data, Mapping):
            logger.error("Stored style profile is not an object, using defaults: %r", data)
            return StyleProfile()
        return StyleProfile.from_payload(data)

    def save_style_profile(self, partial: Mapping[str, Any]) -> StyleProfile:
        """Merge ``partial`` over the stored profile and persist the full result."""

        updated = self.load_style_profile().merged(partial)
        self._write_setting(STYLE_SETTING, updated.to_payload())
        return updated

    def _write_setting(self, name: str, payload: Mapping[str, Any]) -> None:
        now = datetime.utcnow().isoformat()
        with self._lock:
            self.connection.execute(
                """
                INSERT INTO settings(name, payload, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(name) DO UPDATE SET payload = excluded.payload, updated_at = excluded.updated_at
                """,
                (name, json.dumps(payload, ensure_ascii=False), now),
            )
            self.connection.commit()

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------
    def _upsert_project(self, cur: sqlite3.Cursor, name: str, now: str) -> str:
        cur.execute("SELECT id FROM projects WHERE name = ?", (name,))
        row = cur.fetchone()
        if row:
            cur.execute("UPDATE projects SET updated_at = ? WHERE id = ?", (now, row["id"]))
            return row["id"]
        project_id = str(uuid.uuid4())
        cur.execute(
            "INSERT INTO projects(id, name, created_at, updated_at) VALUES (?, ?, ?, ?)",
            (project_id, name, now, now),
        )
        return project_id

    def append_conversation(self, name: str, role: str, content: str) -> None:
        now = datetime.utcnow().isoformat()
        with self._lock:
            cur = self.connection.cursor()
            project_id = self._upsert_project(cur, name, now)
            cur.execute(
                """
                INSERT INTO conversation(project_id, role, content, timestamp)
                VALUES (?, ?, ?, ?)
                """,
                (project_id, role, content, now),
            )
            self.connection.commit()

    def save_schematic(self, name: str, blueprint: Blueprint) -> str:
        now = datetime.utcnow().isoformat()
        with self._lock:
            cur = self.connection.cursor()
            project_id = self._upsert_project(cur, name, now)
            schematic_id = str(uuid.uuid4())
            cur.execute(
                """
                INSERT INTO schematics(id, project_id, payload, created_at)
                VALUES (?, ?, ?, ?)
                """,
                (
                    schematic_id,
                    project_id,
                    json.dumps(blueprint.to_payload(), ensure_ascii=False),
                    now,
                ),
            )
            self.connection.commit()
            return schematic_id

    def load_project(self, name: str) -> Optional[ProjectRecord]:
        """Return the project, or ``None`` if it has never been written."""

        cur = self.connection.execute("SELECT id FROM projects WHERE name = ?", (name,))
        row = cur.fetchone()
        if not row:
            return None
        project_id = row["id"]

        turns = self.connection.execute(
            "SELECT role, content, timestamp FROM conversation WHERE project_id = ? ORDER BY seq ASC",
            (project_id,),
        ).fetchall()
        schematics = self.connection.execute(
            "SELECT payload FROM schematics WHERE project_id = ? ORDER BY seq ASC",
            (project_id,),
        ).fetchall()
        return ProjectRecord(
            name=name,
            conversation=[
                ConversationTurn(role=turn["role"], content=turn["content"], timestamp=turn["timestamp"])
                for turn in turns
            ],
            schematics=[json.loads(item["payload"]) for item in schematics],
        )

    def load_recent_turns(self, name: str, limit: int) -> List[ConversationTurn]:
        """Return the last ``limit`` turns of a project, oldest first."""

        if limit <= 0:
            return []
        rows = self.connection.execute(
            """
            SELECT c.role, c.content, c.timestamp
            FROM conversation c
            JOIN projects p ON p.id = c.project_id
            WHERE p.name = ?
            ORDER BY c.seq DESC
            LIMIT ?
            """,
            (name, limit),
        ).fetchall()
        return [
            ConversationTurn(role=row["role"], content=row["content"], timestamp=row["timestamp"])
            for row in reversed(rows)
        ]

    def list_projects(self) -> List[str]:
        cur = self.connection.execute("SELECT name FROM projects ORDER BY rowid ASC")
        return [row["name"] for row in cur.fetchall()]


class BlueprintFileSink:
    """Write each generated blueprint to ``<root>/<project>/<stamp>-<name>.json``."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root).expanduser()

    @staticmethod
    def _slug(value: str) -> str:
        slug = re.sub(r"[^A-Za-z0-9_.-]+", "_", value.strip()).strip("._")
        return slug or "untitled"

    def save_blueprint_file(self, name: str, blueprint: Blueprint) -> Path:
        directory = self.root / self._slug(name)
        directory.mkdir(parents=True, exist_ok=True)
        stamp = datetime.utcnow().strftime("%Y%m%dT%H%M%S%f")
        path = directory / f"{stamp}-{self._slug(blueprint.name or 'blueprint')}.json"
        path.write_text(dumps_payload(blueprint.to_payload()), encoding="utf-8")
        logger.info("Wrote blueprint file %s", path)
        return path


__all__ = ["BlueprintFileSink", "ProjectDatabase", "STYLE_SETTING"]
