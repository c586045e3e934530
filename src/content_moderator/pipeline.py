"""Moderation pipeline — detect, decide, transform, log.

Usage:
    pipeline = ModerationPipeline.create()
    response = pipeline.process("Mail foo@bar.com")
    response.to_dict()
    # {"processed_text": "Mail [ENCRYPTED EMAILS]", "action": "encrypt",
    #  "reasons": ["Emails detected"], "log_reference": "log_..."}

    pipeline.recover(response.processed_text, response.log_reference)
    # "Mail foo@bar.com"
"""

from __future__ import annotations
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone

from .cipher import Cipher, KeyStore, MemoryKeyStore
from .classifier import Classifier, enrich
from .detector import Detector, DetectorConfig
from .logstore import LogStore, MemoryLogStore
from .recovery import RecoveryEngine
from .transformer import DiscardDecision, Transformer
from .types import (
    Action, DetectionResult, EncryptionLogEntry, ModerationResponse,
    RecoveryReport, TransformResult,
)

logger = logging.getLogger(__name__)

_WORD_START = re.compile(r"\b\w")


def choose_action(detection: DetectionResult) -> Action:
    """Hate speech or profanity → remove; sensitive info → encrypt; else keep."""
    if detection.hate_speech or detection.profanity:
        return Action.REMOVE
    if detection.has_sensitive_info:
        return Action.ENCRYPT
    return Action.KEEP


def title_case(name: str) -> str:
    return _WORD_START.sub(lambda m: m.group().upper(), name.replace("_", " "))


def reasons_for(detection: DetectionResult) -> list[str]:
    reasons: list[str] = []
    if detection.hate_speech:
        reasons.append("Hate speech detected")
    if detection.profanity:
        reasons.append("Profanity detected")
    for category, items in detection.sensitive_info.items():
        if items:
            reasons.append(f"{title_case(str(category))} detected")
    return reasons


def build_summary(
    text: str,
    detection: DetectionResult,
    result: TransformResult,
    action: Action,
) -> dict:
    """Processing summary stored next to the encryption log."""
    return {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "action": str(action),
        "text_length": len(text),
        "detection_summary": {
            "hate_speech": detection.hate_speech,
            "profanity": detection.profanity,
            "flagged_words_count": len(detection.flagged_words),
            "flagged_sentences_count": len(detection.flagged_sentences),
            "sensitive_info_detected": detection.has_sensitive_info,
        },
        "changes_made": result.processed_text != text,
        "encryption_records": len(result.encryption_log),
    }


@dataclass
class ModerationPipeline:
    """Wires detector, optional classifier, transformer, cipher and log store."""

    detector: Detector
    transformer: Transformer
    recovery: RecoveryEngine
    log_store: LogStore
    classifier: Classifier | None = None
    classifier_timeout: float = 3.0
    default_action: Action | None = None          # None = choose from detection
    discard_on_hate_speech: DiscardDecision = field(default=None)

    @classmethod
    def create(
        cls,
        *,
        config: DetectorConfig | None = None,
        key_store: KeyStore | None = None,
        log_store: LogStore | None = None,
        classifier: Classifier | None = None,
        classifier_timeout: float = 3.0,
    ) -> "ModerationPipeline":
        """Factory — in-memory key and log store unless given."""
        cipher = Cipher.from_store(key_store or MemoryKeyStore())
        return cls(
            detector=Detector(config),
            transformer=Transformer(cipher),
            recovery=RecoveryEngine(cipher),
            log_store=log_store or MemoryLogStore(),
            classifier=classifier,
            classifier_timeout=classifier_timeout,
        )

    def analyze(self, text: str) -> DetectionResult:
        """Regex detection, merged with the classifier when one is configured."""
        detection = self.detector.detect(text)
        return enrich(detection, self.classifier, text, timeout=self.classifier_timeout)

    def process(
        self,
        text: str,
        action: Action | str | None = None,
        *,
        discard_all: DiscardDecision = None,
    ) -> ModerationResponse:
        """Full pass over one text.  Never raises for content problems."""
        detection = self.analyze(text)
        if action is None:
            action = self.default_action or choose_action(detection)
        try:
            action = Action(action)
        except ValueError:
            logger.warning("unknown action %r, falling back to keep", action)
            action = Action.KEEP
        logger.info("action determined for text: %s", action)

        decision = discard_all if discard_all is not None else self.discard_on_hate_speech
        result = self.transformer.apply(text, detection, action, discard_all=decision)

        log_reference = None
        if action is not Action.KEEP:
            log_reference = self.log_store.append_log(
                result.encryption_log, build_summary(text, detection, result, action),
            )
        return ModerationResponse(
            processed_text=result.processed_text,
            action=action,
            reasons=reasons_for(detection),
            log_reference=log_reference,
            detection=detection,
        )

    def read_log(self, log_reference: str) -> list[EncryptionLogEntry]:
        """Raises KeyError for an unknown reference."""
        return self.log_store.read_log(log_reference)

    def recover(self, processed_text: str, log_reference: str) -> str:
        return self.recover_with_report(processed_text, log_reference).text

    def recover_with_report(self, processed_text: str, log_reference: str) -> RecoveryReport:
        """Raises KeyError for an unknown reference; per-entry failures are reported."""
        return self.recovery.recover_with_report(processed_text, self.read_log(log_reference))

    def history(self) -> list[dict]:
        return self.log_store.history()

    @property
    def stats(self) -> dict:
        return {"logs": len(self.log_store.list_logs())}
