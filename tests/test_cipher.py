"""Tests for the cipher and key stores."""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import stat

import pytest

from content_moderator import Cipher, CipherError, FileKeyStore, MemoryKeyStore
from content_moderator.cipher import KEY_SIZE, NONCE_SIZE, generate_key


def test_round_trip(cipher):
    token = cipher.encrypt("4111111111111111")
    assert cipher.decrypt(token) == "4111111111111111"


def test_unicode_round_trip(cipher):
    assert cipher.decrypt(cipher.encrypt("नमस्ते 😀")) == "नमस्ते 😀"


def test_token_format(cipher):
    nonce, _, body = cipher.encrypt("secret").partition(":")
    assert len(bytes.fromhex(nonce)) == NONCE_SIZE
    assert body and bytes.fromhex(body)


def test_fresh_nonce_per_call(cipher):
    assert cipher.encrypt("same") != cipher.encrypt("same")


def test_wrong_key_raises(cipher):
    token = cipher.encrypt("secret")
    other = Cipher(generate_key())
    with pytest.raises(CipherError, match="key may have changed"):
        other.decrypt(token)


def test_tampered_token_raises(cipher):
    nonce, _, body = cipher.encrypt("secret").partition(":")
    flipped = body[:-2] + ("00" if body[-2:] != "00" else "11")
    with pytest.raises(CipherError):
        cipher.decrypt(f"{nonce}:{flipped}")


@pytest.mark.parametrize("bad", ["", "abc", "a:b:c", "zz:zz", "00:00", None])
def test_malformed_token_raises(cipher, bad):
    with pytest.raises(CipherError):
        cipher.decrypt(bad)


def test_bad_key_length():
    with pytest.raises(CipherError):
        Cipher(b"short")


# ── Key stores ───────────────────────────────────────────────────────

def test_memory_store_generates_once():
    store = MemoryKeyStore()
    first = Cipher.from_store(store)
    key = store.load_key()
    assert len(key) == KEY_SIZE
    second = Cipher.from_store(store)
    assert second.decrypt(first.encrypt("x")) == "x"


def test_file_store_persists_key(tmp_path):
    path = tmp_path / "keys" / "encryption.key"
    first = Cipher.from_store(FileKeyStore(path))
    assert path.exists()
    assert len(path.read_bytes()) == KEY_SIZE
    if os.name == "posix":
        assert stat.S_IMODE(path.stat().st_mode) == 0o600

    token = first.encrypt("persisted")
    second = Cipher.from_store(FileKeyStore(path))
    assert second.decrypt(token) == "persisted"


def test_file_store_missing_key(tmp_path):
    assert FileKeyStore(tmp_path / "nope.key").load_key() is None
