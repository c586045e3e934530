"""Tests for the transformer — keep / remove / encrypt."""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from content_moderator import Transformer
from content_moderator.transformer import REMOVED_SENTENCE, REMOVED_TEXT, plan_spans
from content_moderator.types import Action, Category, DetectionResult, EntryKind


HATE = "We should kill all those people. Have a nice day."


# ── Keep ─────────────────────────────────────────────────────────────

def test_keep_is_identity(transformer, detector):
    text = "Contact me at foo@bar.com or 9876543210"
    result = transformer.apply(text, detector.detect(text), Action.KEEP)
    assert result.processed_text == text
    assert result.encryption_log == []


def test_missing_detection_returns_text(transformer):
    assert transformer.apply("foo@bar.com", None, Action.REMOVE).processed_text == "foo@bar.com"


def test_unknown_action_returns_text(transformer, detector):
    text = "foo@bar.com"
    assert transformer.apply(text, detector.detect(text), "shred").processed_text == text


# ── Remove ───────────────────────────────────────────────────────────

def test_remove_sensitive(transformer, detector):
    text = "Contact me at foo@bar.com or 9876543210"
    result = transformer.apply(text, detector.detect(text), Action.REMOVE)
    assert result.processed_text == "Contact me at [REDACTED EMAILS] or [REDACTED PHONE_NUMBERS]"
    assert result.encryption_log == []


def test_remove_profanity_masks_word(transformer, detector):
    text = "This is shit. Have a nice day."
    result = transformer.apply(text, detector.detect(text), "remove")
    assert result.processed_text == "This is ****. Have a nice day."


def test_remove_replaces_every_occurrence(transformer, detector):
    text = "foo@bar.com wrote to foo@bar.com"
    result = transformer.apply(text, detector.detect(text), Action.REMOVE)
    assert result.processed_text == "[REDACTED EMAILS] wrote to [REDACTED EMAILS]"


def test_longer_word_claims_span_first(transformer):
    detection = DetectionResult(profanity=True, flagged_words=["cat", "category"])
    result = transformer.apply("category cat", detection, Action.REMOVE)
    assert result.processed_text == "******** ***"


def test_flagged_sentence_removed_when_no_word_inside(transformer):
    detection = DetectionResult(hate_speech=True, flagged_sentences=["We should kill all those people."])
    result = transformer.apply(HATE, detection, Action.REMOVE)
    assert result.processed_text == f"{REMOVED_SENTENCE} Have a nice day."


def test_discard_all_on_hate_speech(transformer, detector):
    detection = detector.detect(HATE)
    assert transformer.apply(HATE, detection, Action.REMOVE, discard_all=True).processed_text == REMOVED_TEXT
    assert transformer.apply(HATE, detection, Action.REMOVE, discard_all=lambda d: d.hate_speech) \
        .processed_text == REMOVED_TEXT


def test_discard_callback_failure_keeps_partial_removal(transformer, detector):
    def boom(_):
        raise RuntimeError("no answer")

    result = transformer.apply(HATE, detector.detect(HATE), Action.REMOVE, discard_all=boom)
    assert result.processed_text == f"{REMOVED_SENTENCE} Have a nice day."


def test_discard_ignored_without_hate_speech(transformer, detector):
    text = "This is shit."
    result = transformer.apply(text, detector.detect(text), Action.REMOVE, discard_all=True)
    assert result.processed_text == "This is ****."


# ── Encrypt ──────────────────────────────────────────────────────────

def test_encrypt_sensitive(transformer, detector, cipher):
    text = "Card 4111111111111111 ok"
    result = transformer.apply(text, detector.detect(text), Action.ENCRYPT)
    assert result.processed_text == "Card [ENCRYPTED CREDIT_CARDS] ok"
    assert len(result.encryption_log) == 1
    entry = result.encryption_log[0]
    assert entry.kind is EntryKind.SENSITIVE
    assert entry.category is Category.CREDIT_CARDS
    assert entry.position == 5
    assert entry.original == "4111111111111111"
    assert cipher.decrypt(entry.encrypted) == "4111111111111111"


def test_encrypt_positions_point_at_placeholders(transformer, detector):
    text = "Mail foo@bar.com, card 4111111111111111, call 9876543210."
    result = transformer.apply(text, detector.detect(text), Action.ENCRYPT)
    assert len(result.encryption_log) == 3
    for entry in result.encryption_log:
        assert result.processed_text.startswith(entry.placeholder, entry.position)


def test_encrypt_hate_sentence(transformer, detector, cipher):
    result = transformer.apply(HATE, detector.detect(HATE), Action.ENCRYPT)
    assert result.processed_text == "[ENCRYPTED SENTENCE] Have a nice day."
    entry = result.encryption_log[0]
    assert entry.kind is EntryKind.FLAGGED_SENTENCE
    assert entry.category is Category.HATE_SPEECH
    assert cipher.decrypt(entry.encrypted) == "We should kill all those people."


def test_encrypt_flagged_word(transformer, detector):
    result = transformer.apply("This is shit.", detector.detect("This is shit."), Action.ENCRYPT)
    assert result.processed_text == "This is [ENCRYPTED WORD]."


def test_encrypt_without_cipher_returns_text(detector):
    text = "foo@bar.com"
    result = Transformer().apply(text, detector.detect(text), Action.ENCRYPT)
    assert result.processed_text == text
    assert result.encryption_log == []


def test_unknown_category_ignored(transformer):
    detection = DetectionResult(sensitive_info={"bogus": ["x"], Category.EMAILS: ["foo@bar.com"]})
    result = transformer.apply("x foo@bar.com", detection, Action.REMOVE)
    assert result.processed_text == "x [REDACTED EMAILS]"


def test_plan_spans_skips_overlaps():
    detection = DetectionResult(
        profanity=True,
        flagged_words=["shit"],
        flagged_sentences=["This is shit."],
    )
    spans = plan_spans("This is shit.", detection)
    assert [(s.start, s.end, s.kind) for s in spans] == [(8, 12, EntryKind.FLAGGED_WORD)]


def test_profane_word_inside_hate_sentence_masks_word_only(transformer, detector):
    text = "We should kill all those damn people."
    detection = detector.detect(text)
    assert detection.hate_speech and detection.flagged_words == ["damn"]
    result = transformer.apply(text, detection, Action.REMOVE)
    assert result.processed_text == "We should kill all those **** people."
