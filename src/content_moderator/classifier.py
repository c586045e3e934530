"""Optional classifiers layered on top of the regex detector.

A classifier is anything with ``classify(text)`` returning a
``DetectionResult``, a plain mapping of the same shape (possibly partial
or sloppy), or ``None``.  Whatever comes back is structurally checked,
missing fields are filled from the regex result, and the two are merged:

  - booleans are OR-ed
  - flagged words / sentences are unioned
  - sensitive items are unioned per category, except that an item the
    regex pass already placed under a different category stays there

One attempt per text, bounded by a timeout.  Any failure means the regex
result is used unchanged.
"""

from __future__ import annotations
import json
import logging
import re
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from typing import TYPE_CHECKING, Any, Callable, Mapping, Protocol, Union

from .errors import ClassifierUnavailable
from .types import Category, DetectionResult

if TYPE_CHECKING:
    from presidio_analyzer import AnalyzerEngine

logger = logging.getLogger(__name__)

ClassifierOutput = Union[DetectionResult, Mapping[str, Any], None]


class Classifier(Protocol):
    def classify(self, text: str) -> ClassifierOutput: ...


# ── Tolerant decoding ────────────────────────────────────────────────

_JSON_BLOCK = re.compile(r"(\{.*\})", re.DOTALL)
_TRAILING_COMMA_OBJ = re.compile(r",\s*}")
_TRAILING_COMMA_ARR = re.compile(r",\s*]")


def decode_classifier_output(raw: str | None) -> dict | None:
    """Parse model output that should be JSON but may be wrapped in prose.

    Tries the whole string first, then the outermost ``{...}`` block with
    trailing commas stripped.  Returns None when nothing usable is found.
    """
    if not raw or not isinstance(raw, str):
        return None
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        block = _JSON_BLOCK.search(raw)
        if block is None:
            logger.warning("no JSON found in classifier response")
            return None
        cleaned = _TRAILING_COMMA_ARR.sub("]", _TRAILING_COMMA_OBJ.sub("}", block.group(1)))
        try:
            data = json.loads(cleaned)
        except json.JSONDecodeError as exc:
            logger.warning("could not parse classifier JSON: %s", exc)
            return None
    return data if isinstance(data, dict) else None


# ── Structural validation & merge ────────────────────────────────────

def _str_list(value: Any) -> list[str] | None:
    if not isinstance(value, (list, tuple, set)):
        return None
    out: list[str] = []
    for item in value:
        if isinstance(item, str) and item.strip() and item not in out:
            out.append(item)
    return out


def coerce_detection(data: ClassifierOutput, fallback: DetectionResult) -> DetectionResult | None:
    """Turn classifier output into a well-formed DetectionResult.

    Any field that is missing or of the wrong type takes its value from
    *fallback*.  Unknown sensitive categories are dropped.
    """
    if data is None:
        return None
    if isinstance(data, DetectionResult):
        data = data.to_dict()
    if not isinstance(data, Mapping):
        logger.warning("classifier returned %s, ignoring", type(data).__name__)
        return None

    result = DetectionResult()
    for name in ("hate_speech", "profanity"):
        value = data.get(name)
        setattr(result, name, value if isinstance(value, bool) else getattr(fallback, name))
    for name in ("flagged_words", "flagged_sentences"):
        value = _str_list(data.get(name))
        setattr(result, name, value if value is not None else list(getattr(fallback, name)))

    raw_info = data.get("sensitive_info")
    raw_info = raw_info if isinstance(raw_info, Mapping) else {}
    for category, items in fallback.sensitive_info.items():
        result.sensitive_info[category] = list(items)
    for key, items in raw_info.items():
        try:
            category = Category(key)
        except ValueError:
            continue
        if not category.is_sensitive:
            continue
        values = _str_list(items)
        if values is not None:
            result.sensitive_info[category] = values
    return result


def merge_results(base: DetectionResult, extra: DetectionResult | None) -> DetectionResult:
    """Union *extra* into *base* without breaking one-category-per-literal."""
    if extra is None:
        return base
    merged = DetectionResult(
        hate_speech=base.hate_speech or extra.hate_speech,
        profanity=base.profanity or extra.profanity,
        flagged_words=_union(base.flagged_words, extra.flagged_words),
        flagged_sentences=_union(base.flagged_sentences, extra.flagged_sentences),
        sensitive_info={c: list(v) for c, v in base.sensitive_info.items()},
    )
    owner: dict[str, Category] = {
        item: category for category, items in merged.sensitive_info.items() for item in items
    }
    for category, items in extra.sensitive_info.items():
        bucket = merged.sensitive_info.setdefault(category, [])
        for item in items:
            if owner.setdefault(item, category) is not category:
                continue
            if item not in bucket:
                bucket.append(item)
    return merged


def _union(a: list[str], b: list[str]) -> list[str]:
    out = list(a)
    for item in b:
        if item not in out:
            out.append(item)
    return out


# ── Timeout-bounded call ─────────────────────────────────────────────

def classify_with_timeout(classifier: Classifier, text: str, timeout: float) -> ClassifierOutput:
    """Single attempt.  Returns None on error or timeout (logged, not raised)."""
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="classifier")
    future = executor.submit(classifier.classify, text)
    try:
        return future.result(timeout=timeout)
    except FutureTimeout:
        future.cancel()
        err = ClassifierUnavailable(f"classifier timed out after {timeout:g}s")
    except Exception as exc:
        err = ClassifierUnavailable(f"classifier failed: {exc}")
    finally:
        executor.shutdown(wait=False, cancel_futures=True)
    logger.warning("%s; using regex results only", err)
    return None


def enrich(
    detection: DetectionResult,
    classifier: Classifier | None,
    text: str,
    *,
    timeout: float = 3.0,
) -> DetectionResult:
    """Regex result merged with the classifier's, or the regex result alone."""
    if classifier is None:
        return detection
    extra = coerce_detection(classify_with_timeout(classifier, text, timeout), detection)
    return merge_results(detection, extra)


# ── Prompt-driven classifier ─────────────────────────────────────────

DETECTION_PROMPT = """\
Analyze the following text and identify all problematic content including hate speech, profanity, and sensitive information in any language.
Return ONLY a valid JSON with these keys:
- "hate_speech": true/false if hate speech is detected
- "profanity": true/false if profanity is detected
- "flagged_words": array of specific problematic words detected
- "flagged_sentences": array of complete sentences containing hate speech or profanity
- "sensitive_info": object containing detected sensitive information with these keys:
  - "phone_numbers": array of detected phone numbers
  - "emails": array of detected email addresses
  - "aadhaar": array of detected Aadhaar numbers (12-digit Indian ID)
  - "pan": array of detected PAN numbers (Indian tax ID)
  - "account_numbers": array of detected bank account numbers
  - "ifsc_codes": array of detected IFSC codes
  - "swift_codes": array of detected SWIFT codes
  - "passport_numbers": array of detected passport numbers
  - "credit_cards": array of detected credit card numbers
  - "gps_coordinates": array of detected GPS coordinates
  - "ssn": array of detected Social Security Numbers
  - "nhs_numbers": array of detected NHS numbers

TEXT: {text}

Respond with ONLY the JSON object. No other text, no explanations.
"""


class PromptClassifier:
    """Wraps any ``complete(prompt) -> str`` callable (an LLM client, a stub)."""

    def __init__(self, complete: Callable[[str], str], *, template: str = DETECTION_PROMPT) -> None:
        self.complete = complete
        self.template = template

    def prompt(self, text: str) -> str:
        return self.template.replace("{text}", text)

    def classify(self, text: str) -> dict | None:
        raw = self.complete(self.prompt(text))
        preview = raw if not isinstance(raw, str) or len(raw) <= 100 else raw[:100] + "..."
        logger.debug("raw classifier response: %r", preview)
        return decode_classifier_output(raw)


# ── Presidio-backed classifier ───────────────────────────────────────

# Presidio entity → our category (anything else is ignored)
PRESIDIO_ENTITY_MAP: dict[str, Category] = {
    "EMAIL_ADDRESS": Category.EMAILS,
    "PHONE_NUMBER": Category.PHONE_NUMBERS,
    "CREDIT_CARD": Category.CREDIT_CARDS,
    "US_SSN": Category.SSN,
    "UK_NHS": Category.NHS_NUMBERS,
    "IN_PAN": Category.PAN,
    "IN_AADHAAR": Category.AADHAAR,
    "US_PASSPORT": Category.PASSPORT_NUMBERS,
    "US_BANK_NUMBER": Category.ACCOUNT_NUMBERS,
    "IBAN_CODE": Category.ACCOUNT_NUMBERS,
}


class PresidioClassifier:
    """Sensitive-info classifier backed by Presidio's recognizers.

    spaCy and Presidio are only imported on first use.
    """

    def __init__(self, *, language: str = "en", score_threshold: float = 0.35) -> None:
        self.language = language
        self.score_threshold = score_threshold
        self._engine: AnalyzerEngine | None = None

    def _get_engine(self) -> AnalyzerEngine:
        if self._engine is None:
            from presidio_analyzer import AnalyzerEngine
            from presidio_analyzer.nlp_engine import NlpEngineProvider

            provider = NlpEngineProvider(nlp_configuration={
                "nlp_engine_name": "spacy",
                "models": [{"lang_code": self.language, "model_name": f"{self.language}_core_web_sm"}],
            })
            self._engine = AnalyzerEngine(
                nlp_engine=provider.create_engine(),
                supported_languages=[self.language],
            )
        return self._engine

    def classify(self, text: str) -> DetectionResult:
        results = self._get_engine().analyze(
            text=text,
            language=self.language,
            score_threshold=self.score_threshold,
        )
        detection = DetectionResult()
        for r in sorted(results, key=lambda r: r.start):
            category = PRESIDIO_ENTITY_MAP.get(r.entity_type)
            if category is None:
                continue
            bucket = detection.sensitive_info.setdefault(category, [])
            value = text[r.start:r.end]
            if value not in bucket:
                bucket.append(value)
        return detection
