"""CLI interface for content-moderator.

Usage:
    # Detect (stdin: text, stdout: detection JSON)
    echo 'Mail foo@bar.com or call 9876543210' | \
        python -m content_moderator.cli detect

    # Process (stdin: text, stdout: {processed_text, action, reasons, log_reference})
    echo 'Card 4111111111111111' | \
        python -m content_moderator.cli process --action encrypt

    # Recover (stdin: processed text, stdout: original text)
    echo 'Card [ENCRYPTED CREDIT_CARDS]' | \
        python -m content_moderator.cli recover --log-ref log_20260101_120000_ab12cd34

    # Inspect stored logs
    python -m content_moderator.cli logs
    python -m content_moderator.cli history

Keys and logs are persisted (key file + SQLite) so recovery works across calls.
"""

from __future__ import annotations
import argparse
import json
import logging
import os
import sys
from pathlib import Path

from .config import create_pipeline, load_config, load_from_yaml
from .pipeline import ModerationPipeline


DEFAULT_DB = os.environ.get(
    "CONTENT_MODERATOR_DB",
    str(Path.home() / ".content-moderator" / "logs.db"),
)
DEFAULT_KEY_FILE = os.environ.get(
    "CONTENT_MODERATOR_KEY_FILE",
    str(Path.home() / ".content-moderator" / "encryption.key"),
)
DEFAULT_CLASSIFIER = os.environ.get("CONTENT_MODERATOR_CLASSIFIER", "none")


def _build_pipeline(args: argparse.Namespace) -> ModerationPipeline:
    if args.config:
        cfg = load_from_yaml(args.config)
    else:
        cfg = load_config({
            "key_file": args.key_file,
            "log_store": {"backend": "sqlite", "path": args.db},
            "classifier": {"backend": args.classifier, "timeout": args.timeout},
        })
    if args.skip_categories:
        cfg["skip_categories"] |= load_config(
            {"skip_categories": args.skip_categories.split(",")}
        )["skip_categories"]
    if args.allow_list:
        cfg["allow_list"] |= set(args.allow_list.split(","))
    return create_pipeline(cfg)


def _dump(data: object) -> None:
    json.dump(data, sys.stdout, indent=2, ensure_ascii=False)
    sys.stdout.write("\n")


def cmd_detect(args: argparse.Namespace) -> None:
    """Print detection results for text on stdin."""
    pipeline = _build_pipeline(args)
    _dump(pipeline.analyze(sys.stdin.read()).to_dict())


def cmd_process(args: argparse.Namespace) -> None:
    """Detect and transform text on stdin."""
    pipeline = _build_pipeline(args)
    text = sys.stdin.read()
    action = None if args.action == "auto" else args.action
    response = pipeline.process(text, action, discard_all=args.discard_on_hate_speech)
    _dump(response.to_dict())


def cmd_recover(args: argparse.Namespace) -> None:
    """Restore processed text on stdin using a stored log."""
    pipeline = _build_pipeline(args)
    try:
        report = pipeline.recover_with_report(sys.stdin.read(), args.log_ref)
    except KeyError:
        sys.stderr.write(f"Unknown log reference {args.log_ref}\n")
        sys.exit(1)
    for err in report.errors:
        sys.stderr.write(f"skipped: {err}\n")
    sys.stdout.write(report.text)


def cmd_log(args: argparse.Namespace) -> None:
    """Dump one stored encryption log as JSON."""
    pipeline = _build_pipeline(args)
    try:
        entries = pipeline.read_log(args.log_ref)
    except KeyError:
        sys.stderr.write(f"Unknown log reference {args.log_ref}\n")
        sys.exit(1)
    _dump([e.to_dict() for e in entries])


def cmd_logs(args: argparse.Namespace) -> None:
    """List stored log references."""
    _dump(_build_pipeline(args).log_store.list_logs())


def cmd_history(args: argparse.Namespace) -> None:
    """Processing summaries, newest first."""
    _dump(_build_pipeline(args).history())


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="content_moderator",
        description="Sensitive-information and hate-speech moderation",
    )
    parser.add_argument("--config", default=None, help="YAML config file (overrides defaults)")
    parser.add_argument("--db", default=DEFAULT_DB, help="SQLite log store path")
    parser.add_argument("--key-file", default=DEFAULT_KEY_FILE, help="Encryption key file")
    parser.add_argument("--classifier", default=DEFAULT_CLASSIFIER, choices=["none", "presidio"],
                        help="Optional classifier layered on the regex detector")
    parser.add_argument("--timeout", type=float, default=3.0, help="Classifier timeout (seconds)")
    parser.add_argument("--skip-categories", default="", help="Comma-separated categories to skip")
    parser.add_argument("--allow-list", default="", help="Comma-separated values to never flag")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging on stderr")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("detect", help="Detect flagged content (stdin)")
    p_process = sub.add_parser("process", help="Detect and transform (stdin)")
    p_process.add_argument("--action", default="auto", choices=["auto", "keep", "remove", "encrypt"])
    p_process.add_argument("--discard-on-hate-speech", action="store_const", const=True, default=None,
                           help="Replace the whole text when hate speech is removed (default: config)")
    p_recover = sub.add_parser("recover", help="Recover encrypted text (stdin)")
    p_recover.add_argument("--log-ref", required=True)
    p_log = sub.add_parser("log", help="Dump one encryption log")
    p_log.add_argument("--log-ref", required=True)
    sub.add_parser("logs", help="List log references")
    sub.add_parser("history", help="Processing history")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        stream=sys.stderr,
        format="%(asctime)s - %(levelname)s - %(name)s: %(message)s",
    )

    cmds = {
        "detect": cmd_detect,
        "process": cmd_process,
        "recover": cmd_recover,
        "log": cmd_log,
        "logs": cmd_logs,
        "history": cmd_history,
    }
    cmds[args.command](args)


if __name__ == "__main__":
    main()
