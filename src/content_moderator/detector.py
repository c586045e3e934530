"""Detector — regex detection with a fixed priority order.

Usage:
    from content_moderator import Detector

    detector = Detector()
    result = detector.detect("Mail foo@bar.com or call 9876543210")
    result.sensitive_info[Category.EMAILS]        # ["foo@bar.com"]
    result.sensitive_info[Category.PHONE_NUMBERS] # ["9876543210"]

Two passes run over the text:

  1. Policy pass: split into sentences, flag any sentence that matches a
     hate-speech template or contains profanity.
  2. Sensitive pass: walk ``PRIORITY``.  A literal claimed by an earlier
     category is never reported again, so the most specific grammar wins.
"""

from __future__ import annotations
import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Iterator

from .errors import PatternError
from .patterns import HATE_SPEECH_PATTERNS, PROFANITY_PATTERNS, has_context, patterns_for
from .types import Category, DetectionResult, Match
from .validators import digits_of, is_valid, validate

logger = logging.getLogger(__name__)


# Most specific grammars first; generic digit runs last.
PRIORITY: tuple[Category, ...] = (
    Category.EMAILS,
    Category.PAN,
    Category.IFSC_CODES,
    Category.SWIFT_CODES,
    Category.PASSPORT_NUMBERS,
    Category.CREDIT_CARDS,
    Category.SSN,
    Category.GPS_COORDINATES,
    Category.PHONE_NUMBERS,
    Category.NHS_NUMBERS,
    Category.AADHAAR,
    Category.ACCOUNT_NUMBERS,
)


@dataclass(frozen=True, slots=True)
class Disambiguation:
    """A candidate of ``category`` is dropped when ``applies`` says it is
    really a ``yields_to``."""
    category: Category
    yields_to: Category
    applies: Callable[[str, str], bool]
    reason: str


def _is_national_id(text: str, context: str) -> bool:
    return len(digits_of(text)) == 12 and is_valid(Category.AADHAAR, text)


def _is_health_number_in_context(text: str, context: str) -> bool:
    return (has_context(Category.NHS_NUMBERS, context)
            and is_valid(Category.NHS_NUMBERS, text, context))


def _is_phone_length(text: str, context: str) -> bool:
    return len(digits_of(text)) == 10


DISAMBIGUATION: tuple[Disambiguation, ...] = (
    Disambiguation(Category.CREDIT_CARDS, Category.AADHAAR, _is_national_id,
                   "12-digit national ID"),
    Disambiguation(Category.PHONE_NUMBERS, Category.NHS_NUMBERS, _is_health_number_in_context,
                   "health-service number with health context"),
    Disambiguation(Category.ACCOUNT_NUMBERS, Category.PHONE_NUMBERS, _is_phone_length,
                   "10 digits reads as a phone number"),
    Disambiguation(Category.ACCOUNT_NUMBERS, Category.AADHAAR, _is_national_id,
                   "12-digit national ID"),
)


def yielding_rule(category: Category, text: str, context: str = "") -> Disambiguation | None:
    """First disambiguation rule that takes *text* away from *category*."""
    for rule in DISAMBIGUATION:
        if rule.category is category and rule.applies(text, context):
            return rule
    return None


@dataclass
class DetectorConfig:
    """Configuration for the Detector."""
    # Categories never reported (sensitive or policy kinds)
    skip_categories: set[Category] = field(default_factory=set)
    # Literal values that are never flagged
    allow_list: set[str] = field(default_factory=set)
    # Characters on each side of a match handed to validators as context
    context_window: int = 60


# ── Sentence pass ────────────────────────────────────────────────────

_SENTENCE_END = re.compile(r"(?<=[.!?])\s+")


def split_sentences(text: str) -> list[str]:
    """Paragraphs by line break, then sentences by terminal punctuation."""
    sentences: list[str] = []
    for paragraph in text.split("\n"):
        for sentence in _SENTENCE_END.split(paragraph):
            sentence = sentence.strip()
            if sentence:
                sentences.append(sentence)
    return sentences


def _add_unique(items: list[str], value: str) -> None:
    if value not in items:
        items.append(value)


# ── Detector ─────────────────────────────────────────────────────────

class Detector:
    """Regex detector for sensitive information, hate speech and profanity.

    Stateless after construction; safe to share across threads.
    """

    def __init__(self, config: DetectorConfig | None = None) -> None:
        self.config = config or DetectorConfig()

    def detect(self, text: str) -> DetectionResult:
        """Run both passes.  Never raises; bad input yields an empty result."""
        result = DetectionResult(sensitive_info={c: [] for c in PRIORITY})
        if not isinstance(text, str) or not text:
            return result

        try:
            self._scan_policy(text, result)
        except Exception as exc:
            logger.warning("policy scan failed, treating text as clean: %s", exc)
            result.hate_speech = result.profanity = False
            result.flagged_words, result.flagged_sentences = [], []

        for match in self.find_matches(text):
            result.sensitive_info[match.category].append(match.text)

        if not result.is_clean:
            found = {str(c): len(v) for c, v in result.sensitive_info.items() if v}
            logger.info(
                "content flagged: hate_speech=%s profanity=%s words=%d sentences=%d sensitive=%s",
                result.hate_speech, result.profanity, len(result.flagged_words),
                len(result.flagged_sentences), found,
            )
        return result

    def scan_sensitive(self, text: str) -> dict[Category, list[str]]:
        """Sensitive pass only, keyed by every category in ``PRIORITY``."""
        found: dict[Category, list[str]] = {c: [] for c in PRIORITY}
        for match in self.find_matches(text):
            found[match.category].append(match.text)
        return found

    def find_matches(self, text: str) -> list[Match]:
        """Validated, priority-resolved matches in discovery order."""
        if not isinstance(text, str) or not text:
            return []
        claimed: set[str] = set()
        occupied: list[tuple[int, int]] = []
        accepted: list[Match] = []
        for category in PRIORITY:
            if category in self.config.skip_categories:
                continue
            try:
                taken = self._resolve_category(category, text, claimed, occupied)
            except Exception as exc:
                err = PatternError(str(category), exc)
                logger.warning("%s", err)
                continue
            for match in taken:
                claimed.add(match.text)
            accepted.extend(taken)
        return accepted

    # ------------------------------------------------------------------

    def _resolve_category(
        self,
        category: Category,
        text: str,
        claimed: set[str],
        occupied: list[tuple[int, int]],
    ) -> list[Match]:
        taken: list[Match] = []
        local: set[str] = set()
        window = self.config.context_window
        for match in _candidates(category, text):
            # inside a span some other match already owns
            if any(match.start < e and match.end > s for s, e in occupied):
                continue
            if match.text in claimed or match.text in local:
                occupied.append((match.start, match.end))
                continue
            if match.text in self.config.allow_list:
                continue
            context = text[max(0, match.start - window):match.end + window]
            if not validate(category, match.text, context):
                continue
            rule = yielding_rule(category, match.text, context)
            if rule is not None:
                logger.debug("%s candidate yields to %s: %s", category, rule.yields_to, rule.reason)
                continue
            local.add(match.text)
            occupied.append((match.start, match.end))
            taken.append(match)
        return taken

    def _scan_policy(self, text: str, result: DetectionResult) -> None:
        check_hate = Category.HATE_SPEECH not in self.config.skip_categories
        check_profanity = Category.PROFANITY not in self.config.skip_categories
        for sentence in split_sentences(text):
            flagged = False
            if check_hate and any(p.search(sentence) for p in HATE_SPEECH_PATTERNS):
                result.hate_speech = True
                flagged = True
            if check_profanity:
                for pattern in PROFANITY_PATTERNS:
                    for m in pattern.finditer(sentence):
                        result.profanity = True
                        flagged = True
                        _add_unique(result.flagged_words, m.group())
            if flagged:
                _add_unique(result.flagged_sentences, sentence)


def _candidates(category: Category, text: str) -> Iterator[Match]:
    for pattern in patterns_for(category):
        value_group = "value" in pattern.groupindex
        for m in pattern.finditer(text):
            if value_group:
                yield Match(category, m.group("value"), m.start("value"))
            else:
                yield Match(category, m.group(), m.start())


def detect(text: str) -> DetectionResult:
    """Module-level convenience using the default configuration."""
    return _DEFAULT.detect(text)


_DEFAULT = Detector()
