"""Persistent log store backed by SQLite — survives process restarts.

Drop-in replacement for MemoryLogStore when logs must outlive the process.

Usage:
    store = SqliteLogStore("~/.content-moderator/logs.db")
    ref = store.append_log(entries, summary)
    store.read_log(ref)
"""

from __future__ import annotations
import json
import sqlite3
import threading
from pathlib import Path
from typing import Iterable

from .logstore import new_locator
from .types import EncryptionLogEntry


_SCHEMA = """
CREATE TABLE IF NOT EXISTS logs (
    locator TEXT PRIMARY KEY,
    summary TEXT NOT NULL DEFAULT '{}',
    created_at REAL NOT NULL DEFAULT (julianday('now'))
);
CREATE TABLE IF NOT EXISTS entries (
    locator TEXT NOT NULL REFERENCES logs(locator) ON DELETE CASCADE,
    seq INTEGER NOT NULL,
    kind TEXT NOT NULL,
    category TEXT NOT NULL,
    original TEXT NOT NULL,
    encrypted TEXT NOT NULL,
    position INTEGER NOT NULL,
    PRIMARY KEY (locator, seq)
);
"""


class SqliteLogStore:
    """Persistent encryption-log store."""

    __slots__ = ("_db", "_lock")

    def __init__(self, db_path: str | Path = "logs.db") -> None:
        db_path = Path(db_path).expanduser()
        db_path.parent.mkdir(parents=True, exist_ok=True)
        self._db = sqlite3.connect(str(db_path), check_same_thread=False)
        self._db.execute("PRAGMA foreign_keys = ON")
        self._db.executescript(_SCHEMA)
        self._lock = threading.Lock()

    def append_log(self, entries: Iterable[EncryptionLogEntry], summary: dict | None = None) -> str:
        rows = list(entries)
        with self._lock, self._db:
            locator = new_locator()
            while self._exists(locator):
                locator = new_locator()
            self._db.execute(
                "INSERT INTO logs (locator, summary) VALUES (?, ?)",
                (locator, json.dumps(summary or {}, ensure_ascii=False)),
            )
            self._db.executemany(
                "INSERT INTO entries (locator, seq, kind, category, original, encrypted, position)"
                " VALUES (?, ?, ?, ?, ?, ?, ?)",
                [
                    (locator, seq, str(e.kind), str(e.category), e.original, e.encrypted, e.position)
                    for seq, e in enumerate(rows)
                ],
            )
        return locator

    def read_log(self, locator: str) -> list[EncryptionLogEntry]:
        """Raises KeyError for an unknown locator."""
        if not self._exists(locator):
            raise KeyError(locator)
        rows = self._db.execute(
            "SELECT kind, category, original, encrypted, position FROM entries"
            " WHERE locator = ? ORDER BY seq",
            (locator,),
        ).fetchall()
        return [
            EncryptionLogEntry.from_dict({
                "type": kind, "category": category, "original": original,
                "encrypted": encrypted, "position": position,
            })
            for kind, category, original, encrypted, position in rows
        ]

    def read_summary(self, locator: str) -> dict | None:
        row = self._db.execute(
            "SELECT summary FROM logs WHERE locator = ?", (locator,)
        ).fetchone()
        return json.loads(row[0]) if row else None

    def list_logs(self) -> list[str]:
        rows = self._db.execute("SELECT locator FROM logs ORDER BY created_at, rowid").fetchall()
        return [r[0] for r in rows]

    def history(self) -> list[dict]:
        """Summaries, newest first, each tagged with its locator."""
        rows = self._db.execute(
            "SELECT locator, summary FROM logs ORDER BY created_at DESC, rowid DESC"
        ).fetchall()
        return [{"log_reference": ref, **json.loads(summary)} for ref, summary in rows]

    @property
    def size(self) -> int:
        return self._db.execute("SELECT COUNT(*) FROM logs").fetchone()[0]

    def delete_log(self, locator: str) -> None:
        with self._lock, self._db:
            self._db.execute("DELETE FROM entries WHERE locator = ?", (locator,))
            self._db.execute("DELETE FROM logs WHERE locator = ?", (locator,))

    def clear(self) -> None:
        with self._lock, self._db:
            self._db.execute("DELETE FROM entries")
            self._db.execute("DELETE FROM logs")

    def close(self) -> None:
        self._db.close()

    def _exists(self, locator: str) -> bool:
        return self._db.execute(
            "SELECT 1 FROM logs WHERE locator = ?", (locator,)
        ).fetchone() is not None
