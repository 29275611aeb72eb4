from __future__ import annotations

import io
import json

from rich.console import Console

from wabridge.adapters.output_channels import (
    ENVELOPE_TYPE,
    CallbackChannel,
    ConsoleChannel,
    JsonLinesChannel,
    build_envelope,
)
from wabridge.core.events import DomainEvent, EventName
from wabridge.core.models import MessageKey, MessageView


def _event() -> DomainEvent:
    message = MessageView(
        key=MessageKey(from_me=False, remote="1@c.us", id="A"),
        type="chat",
        body="hi",
        raw={"secret": "host internals"},
    )
    return DomainEvent(EventName.MESSAGE_ACK, (message, 2))


def test_envelope_drops_raw_and_serializes_keys() -> None:
    envelope = build_envelope(_event())

    assert envelope["type"] == ENVELOPE_TYPE
    assert envelope["payload"]["event"] == "message_ack"
    message, ack = envelope["payload"]["args"]
    assert ack == 2
    assert "raw" not in message
    assert message["key"]["serialized"] == "false_1@c.us_A"
    assert message["recipients"] == []


def test_json_lines_channel_writes_one_line_per_event() -> None:
    stream = io.StringIO()
    channel = JsonLinesChannel(stream)

    channel.emit(_event())
    channel.emit(DomainEvent(EventName.STATE_CHANGED, ("CONNECTED",)))

    lines = stream.getvalue().splitlines()
    assert [json.loads(line)["payload"]["event"] for line in lines] == ["message_ack", "change_state"]


def test_callback_channel_preserves_order() -> None:
    received: list[dict] = []
    channel = CallbackChannel(received.append)

    for state in ("OPENING", "CONNECTED"):
        channel.emit(DomainEvent(EventName.STATE_CHANGED, (state,)))

    assert [item["payload"]["args"] for item in received] == [["OPENING"], ["CONNECTED"]]


def test_console_channel_renders_event_names() -> None:
    buffer = io.StringIO()
    channel = ConsoleChannel(Console(file=buffer, width=120, color_system=None))

    channel.emit(_event())

    assert channel.count == 1
    assert "message_ack" in buffer.getvalue()
