"""HTTP sidecar server for content-moderator.

Runs a lightweight stdlib HTTP server on localhost.  The browser
extension's backend calls it instead of spawning a process per request.

Endpoints:
    POST /analyze_text    — Detect + transform (JSON body: {"text", "action"?})
    POST /detect          — Detection only (JSON body: {"text"})
    POST /recover         — Recover text (JSON body: {"text", "log_reference"})
    GET  /history         — Processing summaries, newest first
    GET  /health          — Health check
    GET  /ping            — Liveness probe
    GET  /api/status      — Version + timestamp

All endpoints expect/return JSON.
"""

from __future__ import annotations
import argparse
import json
import logging
import os
from datetime import datetime, timezone
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Any

from . import __version__
from .config import create_pipeline, load_config, load_from_yaml
from .pipeline import ModerationPipeline

logger = logging.getLogger(__name__)

DEFAULT_PORT = int(os.environ.get("CONTENT_MODERATOR_PORT", "18792"))
DEFAULT_DB = os.environ.get(
    "CONTENT_MODERATOR_DB",
    str(Path.home() / ".content-moderator" / "logs.db"),
)
DEFAULT_KEY_FILE = os.environ.get(
    "CONTENT_MODERATOR_KEY_FILE",
    str(Path.home() / ".content-moderator" / "encryption.key"),
)


def _discard_flag(value: Any) -> bool | None:
    # JSON booleans only; anything else falls back to the configured default
    return value if isinstance(value, bool) else None


class ModerationServer(ThreadingHTTPServer):
    """HTTP server carrying the pipeline its handlers use."""

    daemon_threads = True

    def __init__(self, address: tuple[str, int], pipeline: ModerationPipeline) -> None:
        super().__init__(address, ModerationHandler)
        self.pipeline = pipeline


class ModerationHandler(BaseHTTPRequestHandler):
    """HTTP request handler for the moderation sidecar."""

    server: ModerationServer

    def _read_json(self) -> dict[str, Any]:
        length = int(self.headers.get("Content-Length", 0))
        body = self.rfile.read(length).decode("utf-8")
        data = json.loads(body) if body else {}
        if not isinstance(data, dict):
            raise ValueError("request body must be a JSON object")
        return data

    def _respond(self, status: int, data: Any) -> None:
        body = json.dumps(data, ensure_ascii=False).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.send_header("Access-Control-Allow-Origin", "*")
        self.send_header("Access-Control-Allow-Headers", "Content-Type")
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format: str, *args: Any) -> None:
        # Suppress default access logging
        pass

    def do_OPTIONS(self) -> None:
        self.send_response(204)
        self.send_header("Access-Control-Allow-Origin", "*")
        self.send_header("Access-Control-Allow-Methods", "GET, POST, OPTIONS")
        self.send_header("Access-Control-Allow-Headers", "Content-Type")
        self.end_headers()

    def do_GET(self) -> None:
        pipeline = self.server.pipeline
        if self.path == "/health":
            self._respond(200, {"status": "ok", **pipeline.stats})
        elif self.path == "/ping":
            self._respond(200, {"status": "ok", "message": "pong"})
        elif self.path == "/api/status":
            self._respond(200, {
                "active": True,
                "version": __version__,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            })
        elif self.path == "/history":
            self._respond(200, pipeline.history())
        else:
            self._respond(404, {"error": "not found"})

    def do_POST(self) -> None:
        pipeline = self.server.pipeline
        try:
            body = self._read_json()
        except ValueError as e:
            self._respond(400, {"error": f"invalid JSON: {e}"})
            return

        try:
            if self.path == "/analyze_text":
                text = body.get("text")
                if not isinstance(text, str) or not text:
                    self._respond(400, {"error": "No text provided"})
                    return
                url = body.get("url", "Unknown URL")
                logger.info("analyzing %d characters from %s", len(text), url)
                response = pipeline.process(
                    text,
                    body.get("action"),
                    discard_all=_discard_flag(body.get("discard_all")),
                )
                self._respond(200, response.to_dict())

            elif self.path == "/detect":
                text = body.get("text")
                if not isinstance(text, str) or not text:
                    self._respond(400, {"error": "No text provided"})
                    return
                self._respond(200, pipeline.analyze(text).to_dict())

            elif self.path == "/recover":
                text = body.get("text", "")
                ref = body.get("log_reference")
                if not ref:
                    self._respond(400, {"error": "No log_reference provided"})
                    return
                try:
                    report = pipeline.recover_with_report(text, ref)
                except KeyError:
                    self._respond(404, {"error": f"unknown log reference {ref}"})
                    return
                self._respond(200, {
                    "recovered_text": report.text,
                    "restored": report.restored,
                    "skipped": report.skipped,
                    "errors": report.errors,
                })

            else:
                self._respond(404, {"error": "not found"})

        except Exception as e:
            logger.exception("error handling %s", self.path)
            self._respond(500, {"error": str(e)})


def serve(
    port: int = DEFAULT_PORT,
    db_path: str = DEFAULT_DB,
    key_file: str = DEFAULT_KEY_FILE,
    config_path: str | None = None,
) -> None:
    """Start the moderation HTTP sidecar."""
    if config_path:
        cfg = load_from_yaml(config_path)
    else:
        cfg = load_config({
            "key_file": key_file,
            "log_store": {"backend": "sqlite", "path": db_path},
            "classifier": {"backend": os.environ.get("CONTENT_MODERATOR_CLASSIFIER", "none")},
        })
    server = ModerationServer(("127.0.0.1", port), create_pipeline(cfg))
    print(f"content-moderator sidecar listening on http://127.0.0.1:{port}")
    print(f"  log store: {cfg['log_backend']} {cfg['log_path'] if cfg['log_backend'] == 'sqlite' else ''}".rstrip())
    print(f"  classifier: {cfg['classifier_backend']}")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        print("\nShutting down...")
        server.server_close()


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="content-moderator HTTP sidecar")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    parser.add_argument("--db", default=DEFAULT_DB)
    parser.add_argument("--key-file", default=DEFAULT_KEY_FILE)
    parser.add_argument("--config", default=None)
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s: %(message)s")
    serve(port=args.port, db_path=args.db, key_file=args.key_file, config_path=args.config)


if __name__ == "__main__":
    main()
