"""Recovery engine — put encrypted spans back into processed text.

Entries are replayed from the highest recorded offset down, so restoring
one span never moves the placeholders still waiting to be restored.  An
entry whose placeholder sits exactly at its recorded offset is spliced
there; otherwise the first remaining occurrence of the placeholder is
used, and an entry with no placeholder left is skipped.
"""

from __future__ import annotations
import logging
from typing import Iterable

from .cipher import Cipher
from .errors import CipherError
from .types import EncryptionLogEntry, RecoveryReport

logger = logging.getLogger(__name__)


class RecoveryEngine:
    """Restores original text from an encryption log."""

    def __init__(self, cipher: Cipher) -> None:
        self.cipher = cipher

    def recover(self, processed_text: str, log: Iterable[EncryptionLogEntry | dict]) -> str:
        """Best-effort recovery; never raises."""
        return self.recover_with_report(processed_text, log).text

    def recover_with_report(
        self,
        processed_text: str,
        log: Iterable[EncryptionLogEntry | dict] | None,
    ) -> RecoveryReport:
        report = RecoveryReport(text=processed_text)
        entries = _coerce_entries(log, report)
        if not entries:
            logger.info("no encryption log provided, nothing to recover")
            return report

        text = processed_text
        for entry in sorted(entries, key=lambda e: e.position, reverse=True):
            placeholder = entry.placeholder
            if text.startswith(placeholder, entry.position):
                at = entry.position
            else:
                at = text.find(placeholder)
            if at == -1:
                report.skipped += 1
                report.errors.append(f"placeholder {placeholder} not found (offset {entry.position})")
                logger.warning("placeholder %s not found, skipping entry", placeholder)
                continue
            try:
                original = self.cipher.decrypt(entry.encrypted)
            except CipherError as exc:
                report.skipped += 1
                report.errors.append(f"{placeholder} at offset {entry.position}: {exc}")
                logger.warning("could not decrypt entry at offset %d: %s", entry.position, exc)
                continue
            text = text[:at] + original + text[at + len(placeholder):]
            report.restored += 1

        report.text = text
        return report

    def recover_entry(self, entry: EncryptionLogEntry | dict) -> str:
        """Decrypt a single entry.

        Raises:
            CipherError: the ciphertext is malformed or the key does not match.
        """
        if isinstance(entry, dict):
            try:
                entry = EncryptionLogEntry.from_dict(entry)
            except (KeyError, ValueError, TypeError) as exc:
                raise CipherError(f"malformed log entry: {exc}") from exc
        return self.cipher.decrypt(entry.encrypted)


def _coerce_entries(
    log: Iterable[EncryptionLogEntry | dict] | None,
    report: RecoveryReport,
) -> list[EncryptionLogEntry]:
    entries: list[EncryptionLogEntry] = []
    for raw in log or ():
        if isinstance(raw, EncryptionLogEntry):
            entries.append(raw)
            continue
        try:
            entries.append(EncryptionLogEntry.from_dict(raw))
        except (KeyError, ValueError, TypeError, AttributeError) as exc:
            report.skipped += 1
            report.errors.append(f"malformed log entry: {exc}")
            logger.warning("skipping malformed log entry: %s", exc)
    return entries
