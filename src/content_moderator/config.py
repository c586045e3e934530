"""YAML/dict config loader for content-moderator.

Supports loading from a YAML file or a plain dict (for embedding in a
larger service config).

Example YAML:

    content_moderator:
      enabled: true
      skip_categories:
        - gps_coordinates
      allow_list:
        - support@example.com
      context_window: 60
      action: auto                 # auto | keep | remove | encrypt
      discard_on_hate_speech: false
      key_file: ~/.content-moderator/encryption.key
      classifier:
        backend: none              # "none" or "presidio"
        timeout: 3.0
        language: en
        score_threshold: 0.35
      log_store:
        backend: sqlite            # "memory" or "sqlite"
        path: ~/.content-moderator/logs.db
"""

from __future__ import annotations
from pathlib import Path
from typing import Any

import yaml

from .cipher import Cipher, FileKeyStore, MemoryKeyStore
from .classifier import PresidioClassifier
from .detector import Detector, DetectorConfig
from .logstore import MemoryLogStore
from .logstore_sqlite import SqliteLogStore
from .pipeline import ModerationPipeline
from .recovery import RecoveryEngine
from .transformer import Transformer
from .types import Action, Category, DetectionResult, ModerationResponse, RecoveryReport


class _PassthroughPipeline:
    """Pipeline stand-in when moderation is disabled."""

    def analyze(self, text: str) -> DetectionResult:
        return DetectionResult()

    def process(self, text: str, action=None, *, discard_all=None) -> ModerationResponse:
        return ModerationResponse(processed_text=text, action=Action.KEEP)

    def recover(self, processed_text: str, log_reference: str) -> str:
        return processed_text

    def recover_with_report(self, processed_text: str, log_reference: str) -> RecoveryReport:
        return RecoveryReport(text=processed_text)

    def read_log(self, log_reference: str) -> list:
        raise KeyError(log_reference)

    @property
    def log_store(self) -> MemoryLogStore:
        return MemoryLogStore()

    def history(self) -> list[dict]:
        return []

    @property
    def stats(self) -> dict:
        return {"logs": 0}


def load_config(data: dict[str, Any] | None) -> dict[str, Any]:
    """Normalize a config dict (from YAML or inline)."""
    data = data or {}
    # Support nested under "content_moderator" key or flat
    if "content_moderator" in data:
        data = data["content_moderator"] or {}

    classifier = data.get("classifier") or {}
    log_store = data.get("log_store") or {}
    action = data.get("action", "auto")

    return {
        "enabled": data.get("enabled", True),
        "skip_categories": {Category(c) for c in data.get("skip_categories", [])},
        "allow_list": set(data.get("allow_list", [])),
        "context_window": int(data.get("context_window", 60)),
        "action": None if action in (None, "auto") else Action(action),
        "discard_on_hate_speech": bool(data.get("discard_on_hate_speech", False)),
        "key_file": data.get("key_file"),
        "classifier_backend": classifier.get("backend", "none"),
        "classifier_timeout": float(classifier.get("timeout", 3.0)),
        "language": classifier.get("language", "en"),
        "score_threshold": float(classifier.get("score_threshold", 0.35)),
        "log_backend": log_store.get("backend", "memory"),
        "log_path": log_store.get("path", "logs.db"),
    }


def load_from_yaml(path: str | Path) -> dict[str, Any]:
    """Load config from a YAML file."""
    with open(Path(path).expanduser()) as f:
        return load_config(yaml.safe_load(f))


def create_pipeline(config: dict[str, Any] | None = None) -> ModerationPipeline:
    """Create a fully configured pipeline from a config dict."""
    config = config or {}
    cfg = config if "classifier_backend" in config else load_config(config)

    if not cfg["enabled"]:
        return _PassthroughPipeline()

    key_store = FileKeyStore(cfg["key_file"]) if cfg["key_file"] else MemoryKeyStore()
    cipher = Cipher.from_store(key_store)

    if cfg["log_backend"] == "sqlite":
        log_store = SqliteLogStore(cfg["log_path"])
    elif cfg["log_backend"] == "memory":
        log_store = MemoryLogStore()
    else:
        raise ValueError(f"unknown log store backend {cfg['log_backend']!r}")

    if cfg["classifier_backend"] == "presidio":
        classifier = PresidioClassifier(
            language=cfg["language"], score_threshold=cfg["score_threshold"],
        )
    elif cfg["classifier_backend"] in (None, "none"):
        classifier = None
    else:
        raise ValueError(f"unknown classifier backend {cfg['classifier_backend']!r}")

    detector_config = DetectorConfig(
        skip_categories=cfg["skip_categories"],
        allow_list=cfg["allow_list"],
        context_window=cfg["context_window"],
    )
    return ModerationPipeline(
        detector=Detector(detector_config),
        transformer=Transformer(cipher),
        recovery=RecoveryEngine(cipher),
        log_store=log_store,
        classifier=classifier,
        classifier_timeout=cfg["classifier_timeout"],
        default_action=cfg["action"],
        discard_on_hate_speech=cfg["discard_on_hate_speech"],
    )

