from __future__ import annotations

import json
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from wabridge.app import _log_handlers, _secret_values, _SecretMaskFilter, main

SAMPLE = Path(__file__).resolve().parents[1] / "recordings" / "sample.jsonl"


def _jsonl_config(tmp_path, monkeypatch) -> None:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"output": {"format": "jsonl"}}), encoding="utf-8")
    monkeypatch.setenv("WABRIDGE_CONFIG", str(path))


def test_replay_command_prints_envelopes(tmp_path, monkeypatch, capsys) -> None:
    _jsonl_config(tmp_path, monkeypatch)

    main(["replay", str(SAMPLE)])

    lines = capsys.readouterr().out.splitlines()
    events = [json.loads(line)["payload"]["event"] for line in lines]
    assert events[:3] == ["message_create", "message_received", "message_revoke_everyone"]
    assert events[-1] == "message_reaction"


def test_send_command_reports_host_options(tmp_path, monkeypatch, capsys) -> None:
    _jsonl_config(tmp_path, monkeypatch)

    main(["send", "1@c.us", "hello", "--no-preview"])

    out = capsys.readouterr().out
    assert '"event": "message_create"' in out
    assert '"parseVCards": true' in out
    assert "linkPreview" not in out


def test_secret_values_are_masked_in_log_records(monkeypatch) -> None:
    monkeypatch.setenv("WABRIDGE_TOKEN", "s3cr3t-token")
    secrets = _secret_values({"enabled": True, "patterns": ["WABRIDGE_TOKEN", "UNSET_VARIABLE"]})
    record = logging.LogRecord("wabridge", logging.INFO, __file__, 1, "token=%s", ("s3cr3t-token",), None)

    assert secrets == ["s3cr3t-token"]
    assert _SecretMaskFilter(secrets).filter(record) is True
    assert record.getMessage() == "token=***"
    assert _secret_values({"enabled": False, "patterns": ["WABRIDGE_TOKEN"]}) == []


def test_log_handlers_follow_config(tmp_path) -> None:
    handlers = _log_handlers(
        {"console": False, "file": {"enabled": True, "path": str(tmp_path / "logs" / "bridge.log"), "backup_count": 2}}
    )
    try:
        (handler,) = handlers
        assert isinstance(handler, RotatingFileHandler)
        assert handler.backupCount == 2
        assert (tmp_path / "logs").is_dir()
    finally:
        for handler in handlers:
            handler.close()
