"""Tests for config loading and pipeline construction."""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import pytest

from content_moderator import SqliteLogStore, create_pipeline, load_config, load_from_yaml
from content_moderator.types import Action, Category


def test_defaults():
    cfg = load_config(None)
    assert cfg["enabled"] is True
    assert cfg["action"] is None
    assert cfg["context_window"] == 60
    assert cfg["classifier_backend"] == "none"
    assert cfg["log_backend"] == "memory"


def test_nested_key_and_parsing():
    cfg = load_config({"content_moderator": {
        "skip_categories": ["gps_coordinates", "profanity"],
        "allow_list": ["support@example.com"],
        "action": "encrypt",
        "classifier": {"timeout": 1.5},
    }})
    assert cfg["skip_categories"] == {Category.GPS_COORDINATES, Category.PROFANITY}
    assert cfg["allow_list"] == {"support@example.com"}
    assert cfg["action"] is Action.ENCRYPT
    assert cfg["classifier_timeout"] == 1.5


def test_unknown_category_rejected():
    with pytest.raises(ValueError):
        load_config({"skip_categories": ["pets"]})


def test_disabled_pipeline_passes_text_through():
    pipeline = create_pipeline({"enabled": False})
    response = pipeline.process("Mail foo@bar.com")
    assert response.processed_text == "Mail foo@bar.com"
    assert response.action is Action.KEEP
    assert pipeline.recover("x", "log_any") == "x"
    assert pipeline.history() == []


def test_default_action_from_config():
    pipeline = create_pipeline({"action": "remove"})
    assert pipeline.process("Mail foo@bar.com").processed_text == "Mail [REDACTED EMAILS]"


def test_unknown_backends_rejected():
    with pytest.raises(ValueError):
        create_pipeline({"log_store": {"backend": "redis"}})
    with pytest.raises(ValueError):
        create_pipeline({"classifier": {"backend": "oracle"}})


def test_yaml_config(tmp_path):
    path = tmp_path / "moderator.yaml"
    path.write_text(
        "content_moderator:\n"
        f"  key_file: {tmp_path / 'encryption.key'}\n"
        "  allow_list:\n"
        "    - support@example.com\n"
        "  log_store:\n"
        "    backend: sqlite\n"
        f"    path: {tmp_path / 'logs.db'}\n"
    )
    cfg = load_from_yaml(path)
    pipeline = create_pipeline(cfg)
    assert isinstance(pipeline.log_store, SqliteLogStore)

    response = pipeline.process("Write support@example.com or foo@bar.com")
    assert response.processed_text == "Write support@example.com or [ENCRYPTED EMAILS]"
    assert (tmp_path / "encryption.key").exists()

    # a second pipeline over the same files can recover
    again = create_pipeline(load_from_yaml(path))
    assert again.recover(response.processed_text, response.log_reference) == \
        "Write support@example.com or foo@bar.com"
