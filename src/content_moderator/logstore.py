"""Log store — keeps encryption logs so processed text can be recovered later.

One call to ``append_log`` per processed text; the returned locator is
what the caller hands back to recover.

    store = MemoryLogStore()
    ref = store.append_log(result.encryption_log, summary)
    store.read_log(ref)        # [EncryptionLogEntry, ...]
"""

from __future__ import annotations
import uuid
from datetime import datetime, timezone
from typing import Iterable, Protocol

from .types import EncryptionLogEntry


def new_locator() -> str:
    """``log_<UTC timestamp>_<random suffix>`` — sortable by creation time."""
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    return f"log_{stamp}_{uuid.uuid4().hex[:8]}"


class LogStore(Protocol):
    def append_log(self, entries: Iterable[EncryptionLogEntry], summary: dict | None = None) -> str: ...
    def read_log(self, locator: str) -> list[EncryptionLogEntry]: ...
    def read_summary(self, locator: str) -> dict | None: ...
    def list_logs(self) -> list[str]: ...
    def history(self) -> list[dict]: ...


class MemoryLogStore:
    """In-process log store; contents vanish with the process."""

    __slots__ = ("_entries", "_summaries")

    def __init__(self) -> None:
        self._entries: dict[str, list[EncryptionLogEntry]] = {}
        self._summaries: dict[str, dict] = {}

    # ------------------------------------------------------------------
    # Core API
    # ------------------------------------------------------------------

    def append_log(self, entries: Iterable[EncryptionLogEntry], summary: dict | None = None) -> str:
        locator = new_locator()
        while locator in self._entries:
            locator = new_locator()
        self._entries[locator] = list(entries)
        self._summaries[locator] = dict(summary or {})
        return locator

    def read_log(self, locator: str) -> list[EncryptionLogEntry]:
        """Raises KeyError for an unknown locator."""
        return list(self._entries[locator])

    def read_summary(self, locator: str) -> dict | None:
        summary = self._summaries.get(locator)
        return dict(summary) if summary is not None else None

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def list_logs(self) -> list[str]:
        return list(self._entries)

    def history(self) -> list[dict]:
        """Summaries, newest first, each tagged with its locator."""
        return [
            {"log_reference": ref, **self._summaries[ref]}
            for ref in reversed(list(self._entries))
        ]

    @property
    def size(self) -> int:
        return len(self._entries)

    def delete_log(self, locator: str) -> None:
        self._entries.pop(locator, None)
        self._summaries.pop(locator, None)

    def clear(self) -> None:
        self._entries.clear()
        self._summaries.clear()

    def close(self) -> None:
        pass
