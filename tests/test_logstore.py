"""Tests for the in-memory and SQLite log stores."""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import re

import pytest

from content_moderator import MemoryLogStore, SqliteLogStore
from content_moderator.logstore import new_locator
from content_moderator.types import Category, EncryptionLogEntry, EntryKind


LOCATOR = re.compile(r"^log_\d{8}_\d{6}_[0-9a-f]{8}$")


def _entries():
    return [
        EncryptionLogEntry(EntryKind.SENSITIVE, Category.EMAILS, "foo@bar.com", "aa:bb", 5),
        EncryptionLogEntry(EntryKind.FLAGGED_WORD, Category.PROFANITY, "shit", "cc:dd", 30),
    ]


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    if request.param == "memory":
        s = MemoryLogStore()
    else:
        s = SqliteLogStore(tmp_path / "logs.db")
    yield s
    s.close()


def test_locator_format():
    assert LOCATOR.match(new_locator())
    assert new_locator() != new_locator()


def test_append_and_read(store):
    ref = store.append_log(_entries(), {"action": "encrypt"})
    assert LOCATOR.match(ref)
    assert store.read_log(ref) == _entries()
    assert store.read_summary(ref) == {"action": "encrypt"}


def test_empty_log(store):
    ref = store.append_log([])
    assert store.read_log(ref) == []
    assert store.read_summary(ref) == {}


def test_unknown_locator(store):
    with pytest.raises(KeyError):
        store.read_log("log_missing")
    assert store.read_summary("log_missing") is None


def test_list_and_history(store):
    first = store.append_log(_entries(), {"action": "encrypt"})
    second = store.append_log([], {"action": "remove"})
    assert store.list_logs() == [first, second]
    assert store.size == 2
    history = store.history()
    assert [h["log_reference"] for h in history] == [second, first]
    assert history[0]["action"] == "remove"


def test_delete_and_clear(store):
    first = store.append_log(_entries())
    second = store.append_log(_entries())
    store.delete_log(first)
    assert store.list_logs() == [second]
    store.clear()
    assert store.size == 0


# ── SQLite persistence ───────────────────────────────────────────────

def test_sqlite_survives_reopen(tmp_path):
    path = tmp_path / "nested" / "logs.db"
    store = SqliteLogStore(path)
    ref = store.append_log(_entries(), {"text_length": 42})
    store.close()

    reopened = SqliteLogStore(path)
    assert reopened.read_log(ref) == _entries()
    assert reopened.history()[0]["text_length"] == 42
    reopened.close()
