"""Cipher — AES-256-GCM over single text spans, with a persisted key.

Every call draws a fresh 96-bit nonce; the nonce travels with the
ciphertext as ``<hex nonce>:<hex ciphertext+tag>``.  GCM's tag makes a
wrong key or a tampered span fail loudly instead of decrypting to junk.

Usage:
    store = FileKeyStore("~/.content-moderator/encryption.key")
    cipher = Cipher.from_store(store)      # generates + saves on first run
    token = cipher.encrypt("4111111111111111")
    cipher.decrypt(token)                  # "4111111111111111"
"""

from __future__ import annotations
import logging
import os
import secrets
import tempfile
from pathlib import Path
from typing import Protocol

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .errors import CipherError

logger = logging.getLogger(__name__)

KEY_SIZE = 32    # AES-256
NONCE_SIZE = 12  # 96 bits, recommended for GCM
_DELIMITER = ":"


def generate_key() -> bytes:
    return secrets.token_bytes(KEY_SIZE)


class KeyStore(Protocol):
    def load_key(self) -> bytes | None: ...
    def save_key(self, key: bytes) -> None: ...


class MemoryKeyStore:
    """Key store that lives and dies with the process (tests, one-shot runs)."""

    __slots__ = ("_key",)

    def __init__(self, key: bytes | None = None) -> None:
        self._key = key

    def load_key(self) -> bytes | None:
        return self._key

    def save_key(self, key: bytes) -> None:
        self._key = key


class FileKeyStore:
    """Raw key bytes in a file, written atomically with mode 0600."""

    __slots__ = ("path",)

    def __init__(self, path: str | Path = "encryption.key") -> None:
        self.path = Path(path).expanduser()

    def load_key(self) -> bytes | None:
        try:
            return self.path.read_bytes()
        except FileNotFoundError:
            return None

    def save_key(self, key: bytes) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=".key-")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(key)
            os.chmod(tmp, 0o600)
            os.replace(tmp, self.path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
        logger.info("encryption key saved to %s", self.path)


class Cipher:
    """Symmetric encrypt/decrypt of one string span."""

    __slots__ = ("_aead",)

    def __init__(self, key: bytes) -> None:
        if not isinstance(key, bytes) or len(key) != KEY_SIZE:
            got = len(key) if isinstance(key, (bytes, bytearray)) else type(key).__name__
            raise CipherError(f"encryption key must be {KEY_SIZE} bytes (got {got})")
        self._aead = AESGCM(key)

    @classmethod
    def from_store(cls, store: KeyStore) -> "Cipher":
        """Load the key from *store*, generating and saving one if absent."""
        key = store.load_key()
        if key is None:
            logger.info("no existing encryption key found, generating a new one")
            key = generate_key()
            store.save_key(key)
        return cls(key)

    def encrypt(self, plaintext: str) -> str:
        if not isinstance(plaintext, str):
            plaintext = str(plaintext)
        nonce = os.urandom(NONCE_SIZE)
        sealed = self._aead.encrypt(nonce, plaintext.encode("utf-8"), None)
        return nonce.hex() + _DELIMITER + sealed.hex()

    def decrypt(self, ciphertext: str) -> str:
        """Raises:
            CipherError: malformed input, tampered data, or a different key.
        """
        if not isinstance(ciphertext, str):
            raise CipherError("ciphertext must be a string")
        parts = ciphertext.split(_DELIMITER)
        if len(parts) != 2:
            raise CipherError("invalid encrypted data format")
        try:
            nonce = bytes.fromhex(parts[0])
            sealed = bytes.fromhex(parts[1])
        except ValueError as exc:
            raise CipherError("encrypted data is not hex") from exc
        if len(nonce) != NONCE_SIZE:
            raise CipherError(f"nonce must be {NONCE_SIZE} bytes (got {len(nonce)})")
        try:
            plaintext = self._aead.decrypt(nonce, sealed, None)
        except InvalidTag as exc:
            raise CipherError(
                "failed to decrypt span; the encryption key may have changed"
            ) from exc
        return plaintext.decode("utf-8")
