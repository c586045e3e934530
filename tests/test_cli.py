"""Tests for the CLI and the HTTP sidecar."""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import io
import json
import threading
import urllib.error
import urllib.request

import pytest

from content_moderator.cli import main
from content_moderator.server import ModerationServer
from content_moderator.transformer import REMOVED_SENTENCE, REMOVED_TEXT


# ── CLI ──────────────────────────────────────────────────────────────

def _run(monkeypatch, capsys, tmp_path, stdin, *argv):
    monkeypatch.setattr("sys.stdin", io.StringIO(stdin))
    main(["--db", str(tmp_path / "logs.db"), "--key-file", str(tmp_path / "key"), *argv])
    return capsys.readouterr().out


def test_cli_process_then_recover(monkeypatch, capsys, tmp_path):
    out = _run(monkeypatch, capsys, tmp_path, "Card 4111111111111111", "process", "--action", "encrypt")
    data = json.loads(out)
    assert data["processed_text"] == "Card [ENCRYPTED CREDIT_CARDS]"
    assert data["reasons"] == ["Credit Cards detected"]

    out = _run(monkeypatch, capsys, tmp_path, data["processed_text"],
               "recover", "--log-ref", data["log_reference"])
    assert out == "Card 4111111111111111"


def test_cli_detect(monkeypatch, capsys, tmp_path):
    out = _run(monkeypatch, capsys, tmp_path, "Mail foo@bar.com", "detect")
    assert json.loads(out)["sensitive_info"]["emails"] == ["foo@bar.com"]


def test_cli_history_and_logs(monkeypatch, capsys, tmp_path):
    out = _run(monkeypatch, capsys, tmp_path, "Mail foo@bar.com", "process")
    ref = json.loads(out)["log_reference"]
    assert json.loads(_run(monkeypatch, capsys, tmp_path, "", "logs")) == [ref]
    assert json.loads(_run(monkeypatch, capsys, tmp_path, "", "history"))[0]["log_reference"] == ref
    entries = json.loads(_run(monkeypatch, capsys, tmp_path, "", "log", "--log-ref", ref))
    assert entries[0]["category"] == "emails"


def test_cli_recover_unknown_reference(monkeypatch, capsys, tmp_path):
    with pytest.raises(SystemExit) as exc:
        _run(monkeypatch, capsys, tmp_path, "text", "recover", "--log-ref", "log_missing")
    assert exc.value.code == 1


# ── HTTP sidecar ─────────────────────────────────────────────────────

@pytest.fixture
def server(pipeline):
    srv = ModerationServer(("127.0.0.1", 0), pipeline)
    thread = threading.Thread(target=srv.serve_forever, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{srv.server_address[1]}"
    srv.shutdown()
    srv.server_close()


_OPENER = urllib.request.build_opener(urllib.request.ProxyHandler({}))


def _call(url, body=None):
    data = json.dumps(body).encode() if body is not None else None
    req = urllib.request.Request(url, data=data, headers={"Content-Type": "application/json"})
    try:
        with _OPENER.open(req, timeout=5) as resp:
            return resp.status, json.loads(resp.read())
    except urllib.error.HTTPError as e:
        return e.code, json.loads(e.read())


def test_server_analyze_and_recover(server):
    status, data = _call(server + "/analyze_text", {"text": "Mail foo@bar.com", "url": "https://example.com"})
    assert status == 200
    assert data["processed_text"] == "Mail [ENCRYPTED EMAILS]"

    status, rec = _call(server + "/recover", {"text": data["processed_text"],
                                              "log_reference": data["log_reference"]})
    assert status == 200
    assert rec["recovered_text"] == "Mail foo@bar.com"
    assert rec["errors"] == []


def test_server_errors(server):
    assert _call(server + "/analyze_text", {})[0] == 400
    assert _call(server + "/recover", {"text": "x", "log_reference": "log_missing"})[0] == 404
    assert _call(server + "/nowhere")[0] == 404


def test_server_status_endpoints(server):
    assert _call(server + "/ping") == (200, {"status": "ok", "message": "pong"})
    status, data = _call(server + "/api/status")
    assert status == 200 and data["active"] is True
    _call(server + "/analyze_text", {"text": "Mail foo@bar.com"})
    status, history = _call(server + "/history")
    assert status == 200 and len(history) == 1


def test_cli_discard_follows_config(monkeypatch, capsys, tmp_path):
    config = tmp_path / "moderator.yaml"
    config.write_text(
        "content_moderator:\n"
        "  discard_on_hate_speech: true\n"
        f"  key_file: {tmp_path / 'key'}\n"
    )
    out = _run(monkeypatch, capsys, tmp_path, "We should kill all those people. Have a nice day.",
               "--config", str(config), "process", "--action", "remove")
    assert json.loads(out)["processed_text"] == REMOVED_TEXT


def test_cli_discard_flag(monkeypatch, capsys, tmp_path):
    text = "We should kill all those people. Have a nice day."
    out = _run(monkeypatch, capsys, tmp_path, text, "process", "--action", "remove")
    assert json.loads(out)["processed_text"] == f"{REMOVED_SENTENCE} Have a nice day."
    out = _run(monkeypatch, capsys, tmp_path, text,
               "process", "--action", "remove", "--discard-on-hate-speech")
    assert json.loads(out)["processed_text"] == REMOVED_TEXT


def test_server_discard_accepts_only_booleans(server):
    text = "We should kill all those people. Have a nice day."
    status, data = _call(server + "/analyze_text", {"text": text, "action": "remove", "discard_all": "false"})
    assert status == 200
    assert data["processed_text"] == f"{REMOVED_SENTENCE} Have a nice day."
    _, data = _call(server + "/analyze_text", {"text": text, "action": "remove", "discard_all": True})
    assert data["processed_text"] == REMOVED_TEXT
