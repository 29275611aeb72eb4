"""Application entry point for the wabridge command line."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

from art import tprint
from rich.console import Console

from wabridge import __version__
from wabridge.adapters.output_channels import to_jsonable
from wabridge.client import build_channel, build_host
from wabridge.core.classifier import EventClassifier
from wabridge.core.content import SendOptions
from wabridge.core.pipeline import OutboundPipeline
from wabridge.settings import PROJECT_ROOT, Settings, load_settings

NAME = "WABRIDGE"
FONT = "tarty-1"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"
DEFAULT_LOG_PATH = "logs/wabridge.log"


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)
    Console(stderr=True).print(f"[dim]wabridge {__version__}")


class _SecretMaskFilter(logging.Filter):
    """Replace configured secret values in the rendered message with ``***``."""

    def __init__(self, secrets: list[str]) -> None:
        super().__init__()
        # Longest first so a secret containing another is masked whole.
        self._secrets = sorted({secret for secret in secrets if secret}, key=len, reverse=True)

    def filter(self, record: logging.LogRecord) -> bool:
        if self._secrets:
            message = record.getMessage()
            for secret in self._secrets:
                message = message.replace(secret, "***")
            record.msg, record.args = message, None
        return True


def _secret_values(redact: dict) -> list[str]:
    """Values of the environment variables named under ``logging.redact``."""

    if not redact.get("enabled", False):
        return []
    return [os.environ[name] for name in redact.get("patterns", []) if os.environ.get(name)]


def _log_handlers(config: dict) -> list[logging.Handler]:
    handlers: list[logging.Handler] = []
    if config.get("console", True):
        # stderr keeps stdout free for the jsonl event stream.
        handlers.append(logging.StreamHandler(sys.stderr))

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", DEFAULT_LOG_PATH)
        if not os.path.isabs(path):
            path = os.path.join(PROJECT_ROOT, path)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                path,
                maxBytes=int(file_cfg.get("max_bytes", 5 * 1024 * 1024)),
                backupCount=int(file_cfg.get("backup_count", 5)),
                encoding="utf-8",
            )
        )
    return handlers


def _configure_logging(settings: Settings) -> None:
    """Install handlers from the ``logging`` config section; off unless enabled."""

    config = settings.logging or {}
    if not config.get("enabled", False):
        return

    handlers = _log_handlers(config)
    if not handlers:
        return

    level = getattr(logging, str(config.get("level", "INFO")).upper(), logging.INFO)
    formatter = logging.Formatter(LOG_FORMAT, LOG_DATEFMT)
    mask = _SecretMaskFilter(_secret_values(config.get("redact", {})))
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        handler.addFilter(mask)
    logging.basicConfig(level=level, handlers=handlers, force=True)


def _replay(settings: Settings, recording_path: str) -> None:
    logger = logging.getLogger(__name__)
    host = build_host(settings, recording_path)
    channel = build_channel(settings)

    # Attach before replaying so no notification reaches an unsubscribed host.
    classifier = EventClassifier(
        host,
        channel,
        reaction_table_min_version=settings.bridge.reaction_table_min_version,
    )
    classifier.attach()
    count = host.replay()
    logger.info(
        "Replay complete: notifications=%s, pending_ciphertext=%s",
        count,
        classifier.tracker.pending_count,
    )


def _send(settings: Settings, chat_id: str, text: str, send_seen: bool, link_preview: bool) -> None:
    host = build_host(settings, accept_unknown_chats=True)
    classifier = EventClassifier(host, build_channel(settings))
    classifier.attach()
    pipeline = OutboundPipeline(host, settings.bridge.channel_policy)
    options = SendOptions(
        send_seen=None if send_seen else False,
        link_preview=None if link_preview else False,
    )

    sent = asyncio.run(pipeline.send(chat_id, text, options))
    console = Console()
    if sent is None:
        console.print(f"[yellow]Send refused for {chat_id}")
        return
    for call in host.sent:
        console.print_json(json.dumps(to_jsonable({"body": call.body, "options": call.options})))


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="wabridge")
    parser.add_argument("--config", help="Path to the JSON config file")
    subparsers = parser.add_subparsers(dest="command")

    replay_parser = subparsers.add_parser("replay", help="Replay a recorded notification stream")
    replay_parser.add_argument("recording", help="JSON-lines recording file")

    send_parser = subparsers.add_parser("send", help="Dry-run a send through the outbound pipeline")
    send_parser.add_argument("chat_id")
    send_parser.add_argument("text")
    send_parser.add_argument("--no-seen", action="store_true", help="Do not mark the chat seen")
    send_parser.add_argument("--no-preview", action="store_true", help="Disable link previews")

    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return

    settings = load_settings(args.config)
    _configure_logging(settings)
    if settings.output_format == "console":
        _print_banner()

    if args.command == "replay":
        _replay(settings, args.recording)
        return
    _send(settings, args.chat_id, args.text, not args.no_seen, not args.no_preview)


if __name__ == "__main__":
    main()
