"""Content Moderator — sensitive-information, hate-speech and profanity moderation with reversible encryption."""

from .detector import Detector, DetectorConfig
from .transformer import Transformer
from .cipher import Cipher, FileKeyStore, MemoryKeyStore
from .recovery import RecoveryEngine
from .logstore import MemoryLogStore
from .logstore_sqlite import SqliteLogStore
from .pipeline import ModerationPipeline
from .config import create_pipeline, load_config, load_from_yaml
from .types import (
    Action, Category, DetectionResult, EncryptionLogEntry, EntryKind,
    ModerationResponse, RecoveryReport, TransformResult,
)
from .errors import CipherError, ClassifierUnavailable, ModerationError

__all__ = [
    "Detector", "DetectorConfig",
    "Transformer",
    "Cipher", "FileKeyStore", "MemoryKeyStore",
    "RecoveryEngine",
    "MemoryLogStore", "SqliteLogStore",
    "ModerationPipeline",
    "create_pipeline", "load_config", "load_from_yaml",
    "Action", "Category", "DetectionResult", "EncryptionLogEntry", "EntryKind",
    "ModerationResponse", "RecoveryReport", "TransformResult",
    "CipherError", "ClassifierUnavailable", "ModerationError",
]
__version__ = "0.1.0"
