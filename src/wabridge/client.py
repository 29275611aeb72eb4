"""Host and output channel factory for wabridge.

We build the host adapter and the output channel explicitly so it is obvious
which capability surface drives the core and where events end up.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

from wabridge.adapters.output_channels import ConsoleChannel, JsonLinesChannel
from wabridge.adapters.replay_host import Recording, ReplayHost, load_recording
from wabridge.core.ports import OutputChannel
from wabridge.settings import Settings


def build_host(
    settings: Settings,
    recording_path: Optional[str] = None,
    accept_unknown_chats: bool = False,
) -> ReplayHost:
    """Create a dry-run host, optionally seeded from a recording file.

    The configured host version overrides the one stored in the recording so
    reaction-format selection can be exercised against either wire format.
    """

    recording = load_recording(recording_path) if recording_path else Recording()
    if settings.host_version:
        recording.version = settings.host_version
    if settings.me:
        recording.me = settings.me

    logging.getLogger(__name__).info("Initializing dry-run host (version %s)", recording.version)
    return ReplayHost(recording, accept_unknown_chats=accept_unknown_chats)


def build_channel(settings: Settings) -> OutputChannel:
    if settings.output_format == "jsonl":
        return JsonLinesChannel(sys.stdout)
    return ConsoleChannel()
