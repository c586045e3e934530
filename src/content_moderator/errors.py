"""Exception taxonomy.

Only ``CipherError`` ever reaches callers, and only from the explicit
single-entry APIs.  Everything else is recovered where it happens.
"""

from __future__ import annotations


class ModerationError(Exception):
    """Base class for all content-moderator errors."""


class PatternError(ModerationError):
    """A matcher failed on its input; the category yields no matches."""

    def __init__(self, category: str, cause: Exception) -> None:
        super().__init__(f"pattern matching failed for {category}: {cause}")
        self.category = category
        self.cause = cause


class ValidationError(ModerationError):
    """A candidate match is not a genuine instance of its category."""

    def __init__(self, category: str, reason: str) -> None:
        super().__init__(f"{category}: {reason}")
        self.category = category
        self.reason = reason


class CipherError(ModerationError):
    """Ciphertext is malformed, the key does not match, or the key is unusable."""


class ClassifierUnavailable(ModerationError):
    """The optional classifier failed or did not answer in time."""
