"""
note_writer: stores a short note in a local sqlite database.
"""

from __future__ import annotations

import asyncio
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

from pydantic import Field

from ..registry import ToolArgs, ToolDefinition

SCHEMA = """
CREATE TABLE IF NOT EXISTS notes (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT NOT NULL,
    content TEXT NOT NULL,
    created_at TEXT NOT NULL
)
"""


class NoteArgs(ToolArgs):
    title: str = Field(..., min_length=1, max_length=100)
    content: str = Field(..., min_length=1, max_length=5000)


NOTE_PARAMETERS = {
    "type": "object",
    "properties": {
        "title": {"type": "string", "description": "Short note title"},
        "content": {"type": "string", "description": "Note body text"},
    },
    "required": ["title", "content"],
    "additionalProperties": False,
}


class NoteStore:
    """Append-only note table. Each call opens its own connection."""

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)

    def _connect(self) -> sqlite3.Connection:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.db_path)
        conn.execute(SCHEMA)
        return conn

    def insert(self, title: str, content: str) -> Dict[str, Any]:
        created_at = datetime.now(timezone.utc).isoformat()
        conn = self._connect()
        try:
            with conn:
                cur = conn.execute(
                    "INSERT INTO notes (title, content, created_at) VALUES (?, ?, ?)",
                    (title, content, created_at),
                )
            return {"id": cur.lastrowid, "created_at": created_at}
        finally:
            conn.close()


def create_note_writer_tool(store: NoteStore) -> ToolDefinition:
    async def handler(args: NoteArgs) -> Dict[str, Any]:
        return await asyncio.to_thread(store.insert, args.title, args.content)

    return ToolDefinition(
        name="note_writer",
        description="Stores a short note in a local sqlite database",
        input_model=NoteArgs,
        handler=handler,
        parameters=NOTE_PARAMETERS,
        requires=("filesystem",),
    )
