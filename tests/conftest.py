import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import pytest

from content_moderator import (
    Cipher, Detector, MemoryKeyStore, MemoryLogStore, ModerationPipeline,
    RecoveryEngine, Transformer,
)


@pytest.fixture
def cipher():
    return Cipher.from_store(MemoryKeyStore())


@pytest.fixture
def detector():
    return Detector()


@pytest.fixture
def transformer(cipher):
    return Transformer(cipher)


@pytest.fixture
def recovery(cipher):
    return RecoveryEngine(cipher)


@pytest.fixture
def pipeline():
    return ModerationPipeline.create(log_store=MemoryLogStore())
