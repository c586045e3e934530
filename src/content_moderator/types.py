"""Core types."""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum


class Category(str, Enum):
    """Closed set of things the detector can flag."""
    PHONE_NUMBERS = "phone_numbers"
    EMAILS = "emails"
    AADHAAR = "aadhaar"                  # 12-digit national ID
    PAN = "pan"                          # tax ID
    ACCOUNT_NUMBERS = "account_numbers"
    IFSC_CODES = "ifsc_codes"            # domestic routing code
    SWIFT_CODES = "swift_codes"
    PASSPORT_NUMBERS = "passport_numbers"
    CREDIT_CARDS = "credit_cards"
    GPS_COORDINATES = "gps_coordinates"
    SSN = "ssn"
    NHS_NUMBERS = "nhs_numbers"          # health-service number
    # content-policy kinds
    HATE_SPEECH = "hate_speech"
    PROFANITY = "profanity"

    def __str__(self) -> str:
        return self.value

    @property
    def tag(self) -> str:
        """Upper-cased name used inside placeholders."""
        return self.value.upper()

    @property
    def is_sensitive(self) -> bool:
        return self not in (Category.HATE_SPEECH, Category.PROFANITY)


class EntryKind(str, Enum):
    SENSITIVE = "sensitive"
    FLAGGED_WORD = "flagged_word"
    FLAGGED_SENTENCE = "flagged_sentence"

    def __str__(self) -> str:
        return self.value


class Action(str, Enum):
    KEEP = "keep"
    REMOVE = "remove"
    ENCRYPT = "encrypt"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class Match:
    """A located candidate produced during detection."""
    category: Category
    text: str
    start: int

    @property
    def end(self) -> int:
        return self.start + len(self.text)


@dataclass(slots=True)
class DetectionResult:
    """Output of one detection pass.

    All collections are ordered and deduplicated.  ``sensitive_info`` only
    carries sensitive categories, in priority order.
    """
    hate_speech: bool = False
    profanity: bool = False
    flagged_words: list[str] = field(default_factory=list)
    flagged_sentences: list[str] = field(default_factory=list)
    sensitive_info: dict[Category, list[str]] = field(default_factory=dict)

    @property
    def has_sensitive_info(self) -> bool:
        return any(self.sensitive_info.values())

    @property
    def is_clean(self) -> bool:
        return not (self.hate_speech or self.profanity or self.flagged_words
                    or self.flagged_sentences or self.has_sensitive_info)

    def to_dict(self) -> dict:
        return {
            "hate_speech": self.hate_speech,
            "profanity": self.profanity,
            "flagged_words": list(self.flagged_words),
            "flagged_sentences": list(self.flagged_sentences),
            "sensitive_info": {
                str(cat): list(items) for cat, items in self.sensitive_info.items()
            },
        }


@dataclass(frozen=True, slots=True)
class EncryptionLogEntry:
    """One encrypted span, enough to put it back later."""
    kind: EntryKind
    category: Category
    original: str
    encrypted: str          # "<hex nonce>:<hex ciphertext>"
    position: int           # placeholder offset in the processed text

    @property
    def placeholder(self) -> str:
        return placeholder_for(self.kind, self.category)

    def to_dict(self) -> dict:
        return {
            "type": str(self.kind),
            "category": str(self.category),
            "original": self.original,
            "encrypted": self.encrypted,
            "position": self.position,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "EncryptionLogEntry":
        return cls(
            kind=EntryKind(data["type"]),
            category=Category(data["category"]),
            original=data.get("original", ""),
            encrypted=data["encrypted"],
            position=int(data.get("position", 0)),
        )


def placeholder_for(kind: EntryKind, category: Category) -> str:
    """Placeholder that stands in for an encrypted span."""
    if kind is EntryKind.FLAGGED_WORD:
        return "[ENCRYPTED WORD]"
    if kind is EntryKind.FLAGGED_SENTENCE:
        return "[ENCRYPTED SENTENCE]"
    return f"[ENCRYPTED {category.tag}]"


@dataclass(slots=True)
class TransformResult:
    """Result of applying an action to a text."""
    processed_text: str
    encryption_log: list[EncryptionLogEntry] = field(default_factory=list)


@dataclass(slots=True)
class RecoveryReport:
    """Result of replaying an encryption log."""
    text: str
    restored: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)


@dataclass(slots=True)
class ModerationResponse:
    """What the extension layer receives for one text."""
    processed_text: str
    action: Action
    reasons: list[str] = field(default_factory=list)
    log_reference: str | None = None
    detection: DetectionResult = field(default_factory=DetectionResult)

    def to_dict(self) -> dict:
        return {
            "processed_text": self.processed_text,
            "action": str(self.action),
            "reasons": list(self.reasons),
            "log_reference": self.log_reference,
        }
