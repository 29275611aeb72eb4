"""Configuration loading for wabridge.

All user-editable settings (host metadata, channel policy, reaction format
threshold, output format, logging) live in a single JSON file so they can be
changed without touching Python.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import Any, Optional

from dotenv import load_dotenv

from wabridge.core.config import REACTION_TABLE_MIN_VERSION, BridgeConfig, ChannelPolicy
from wabridge.core.content import ContentKind

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))

# Default config location; WABRIDGE_CONFIG overrides it.
CONFIG_PATH = os.path.join(PROJECT_ROOT, "config.json")

OUTPUT_FORMATS = ("jsonl", "console")


@dataclass(frozen=True)
class Settings:
    bridge: BridgeConfig = field(default_factory=BridgeConfig)
    host_version: Optional[str] = None
    me: Optional[str] = None
    output_format: str = "console"
    logging: dict[str, Any] = field(default_factory=dict)


def _load_json_config(path: Optional[str]) -> dict:
    """Load the config file; a missing default file means defaults."""

    explicit = path or os.getenv("WABRIDGE_CONFIG")
    config_path = explicit or CONFIG_PATH
    if not os.path.exists(config_path):
        if explicit:
            raise FileNotFoundError(f"Config file not found: {config_path}")
        return {}

    with open(config_path, "r", encoding="utf-8") as handle:
        return json.load(handle)


def _channel_policy(raw: dict) -> ChannelPolicy:
    defaults = ChannelPolicy()
    kinds = raw.get("allowed_kinds")
    refused = raw.get("refused_options")
    try:
        return ChannelPolicy(
            allowed_kinds=frozenset(ContentKind(kind) for kind in kinds) if kinds is not None else defaults.allowed_kinds,
            refused_options=tuple(refused) if refused is not None else defaults.refused_options,
        )
    except ValueError as exc:
        raise ValueError(f"Invalid channel_policy: {exc}") from exc


def load_settings(path: Optional[str] = None) -> Settings:
    """Read environment and config file into a Settings object."""

    load_dotenv()
    config = _load_json_config(path)

    host = config.get("host", {})
    reactions = config.get("reactions", {})
    output_format = config.get("output", {}).get("format", "console")
    if output_format not in OUTPUT_FORMATS:
        raise ValueError(f"output.format must be one of {', '.join(OUTPUT_FORMATS)}")

    bridge = BridgeConfig(
        channel_policy=_channel_policy(config.get("channel_policy", {})),
        reaction_table_min_version=reactions.get("table_min_version", REACTION_TABLE_MIN_VERSION),
    )
    return Settings(
        bridge=bridge,
        host_version=host.get("version"),
        me=host.get("me"),
        output_format=output_format,
        logging=config.get("logging", {}),
    )
