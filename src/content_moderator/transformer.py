"""Transformer — rewrite flagged spans according to an action.

Usage:
    transformer = Transformer(cipher)
    result = transformer.apply(text, detector.detect(text), Action.ENCRYPT)
    result.processed_text     # "... [ENCRYPTED EMAILS] ..."
    result.encryption_log     # one EncryptionLogEntry per replaced span

Spans are planned against the original text before anything is
rewritten.  Sensitive items go first, then flagged words, then flagged
sentences; inside each group longer items claim their spans first, and a
span that overlaps an already claimed one is left alone.  That keeps
"cat" from being replaced inside an already replaced "category".
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Callable, Iterator, Union

from .cipher import Cipher
from .errors import CipherError
from .types import (
    Action, Category, DetectionResult, EncryptionLogEntry, EntryKind,
    TransformResult, placeholder_for,
)

logger = logging.getLogger(__name__)

REMOVED_SENTENCE = "[SENTENCE REMOVED DUE TO POLICY VIOLATION]"
REMOVED_TEXT = "[ENTIRE TEXT REMOVED DUE TO HATE SPEECH POLICY VIOLATION]"

# True/False, or a callback asked once when hate speech is found under "remove"
DiscardDecision = Union[bool, Callable[[DetectionResult], bool], None]


@dataclass(frozen=True, slots=True)
class _Span:
    start: int
    end: int
    kind: EntryKind
    category: Category
    original: str


def redaction_marker(category: Category) -> str:
    return f"[REDACTED {Category(category).tag}]"


class Transformer:
    """Applies keep / remove / encrypt to a detection result."""

    def __init__(self, cipher: Cipher | None = None) -> None:
        self.cipher = cipher

    def apply(
        self,
        text: str,
        detection: DetectionResult | None,
        action: Action | str = Action.KEEP,
        *,
        discard_all: DiscardDecision = None,
    ) -> TransformResult:
        """Rewrite *text*.  Never raises; on failure the text comes back untouched."""
        try:
            action = Action(action)
        except ValueError:
            logger.warning("unknown action %r, keeping text unchanged", action)
            return TransformResult(processed_text=text)

        if action is Action.KEEP or not text:
            return TransformResult(processed_text=text)
        if detection is None:
            logger.warning("no detection results available, returning original text")
            return TransformResult(processed_text=text)
        if action is Action.ENCRYPT and self.cipher is None:
            logger.error("encrypt requested but no cipher configured, returning original text")
            return TransformResult(processed_text=text)

        try:
            result = self._rewrite(text, plan_spans(text, detection), action)
        except (CipherError, ValueError, TypeError) as exc:
            logger.error("transformation failed, returning original text: %s", exc)
            return TransformResult(processed_text=text)

        if (detection.hate_speech and action is Action.REMOVE
                and _wants_discard(discard_all, detection)):
            return TransformResult(processed_text=REMOVED_TEXT)
        return result

    def _rewrite(self, text: str, spans: list[_Span], action: Action) -> TransformResult:
        parts: list[str] = []
        log: list[tuple[int, EncryptionLogEntry]] = []
        length = 0
        cursor = 0
        for order, span in sorted(enumerate(spans), key=lambda p: p[1].start):
            parts.append(text[cursor:span.start])
            length += span.start - cursor
            if action is Action.REMOVE:
                replacement = _removal(span)
            else:
                replacement = placeholder_for(span.kind, span.category)
                log.append((order, EncryptionLogEntry(
                    kind=span.kind,
                    category=span.category,
                    original=span.original,
                    encrypted=self.cipher.encrypt(span.original),
                    position=length,
                )))
            parts.append(replacement)
            length += len(replacement)
            cursor = span.end
        parts.append(text[cursor:])
        # log in application order (longest first within each group)
        entries = [entry for _, entry in sorted(log, key=lambda p: p[0])]
        return TransformResult(processed_text="".join(parts), encryption_log=entries)


def plan_spans(text: str, detection: DetectionResult) -> list[_Span]:
    """Non-overlapping spans to replace, in application order."""
    sentence_category = Category.HATE_SPEECH if detection.hate_speech else Category.PROFANITY
    groups: list[tuple[EntryKind, list[tuple[Category, str]]]] = [
        (EntryKind.SENSITIVE, [
            (category, item)
            for category, items in _sensitive_groups(detection)
            for item in items
        ]),
        (EntryKind.FLAGGED_WORD, [
            (Category.PROFANITY, word) for word in (detection.flagged_words or [])
        ]),
        (EntryKind.FLAGGED_SENTENCE, [
            (sentence_category, sentence) for sentence in (detection.flagged_sentences or [])
        ]),
    ]

    claimed: list[tuple[int, int]] = []
    spans: list[_Span] = []
    for kind, items in groups:
        items = [(c, s) for c, s in items if isinstance(s, str) and s.strip()]
        items.sort(key=lambda p: len(p[1]), reverse=True)
        for category, item in items:
            for start in _occurrences(text, item):
                end = start + len(item)
                if any(start < e and end > s for s, e in claimed):
                    continue
                claimed.append((start, end))
                spans.append(_Span(start, end, kind, category, item))
    return spans


def _occurrences(text: str, needle: str) -> Iterator[int]:
    start = text.find(needle)
    while start != -1:
        yield start
        start = text.find(needle, start + len(needle))


def _removal(span: _Span) -> str:
    if span.kind is EntryKind.SENSITIVE:
        return redaction_marker(span.category)
    if span.kind is EntryKind.FLAGGED_WORD:
        return "*" * len(span.original)
    return REMOVED_SENTENCE


def _wants_discard(decision: DiscardDecision, detection: DetectionResult) -> bool:
    if callable(decision):
        try:
            return bool(decision(detection))
        except Exception as exc:
            logger.warning("discard decision callback failed, keeping partial removal: %s", exc)
            return False
    return bool(decision)


def _sensitive_groups(detection: DetectionResult) -> Iterator[tuple[Category, list[str]]]:
    for cat, items in (detection.sensitive_info or {}).items():
        try:
            category = Category(cat)
        except ValueError:
            logger.debug("ignoring unknown category %r", cat)
            continue
        if category.is_sensitive and items:
            yield category, list(items)
