"""Output channel adapters.

Each channel delivers envelopes to exactly one outer listener, in emission
order, without acknowledgement or retry. Serialization lives here so every
channel renders events the same way.
"""

from __future__ import annotations

import dataclasses
import json
from enum import Enum
from typing import Any, Callable, Optional, TextIO

from rich.console import Console
from rich.pretty import Pretty

from wabridge.core.events import DomainEvent

ENVELOPE_TYPE = "NEW_WHATSAPP_MESSAGE"


def to_jsonable(value: Any) -> Any:
    """Convert core views into plain JSON-compatible structures.

    Raw host payloads are dropped; only the normalized fields travel.
    """

    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        result = {
            item.name: to_jsonable(getattr(value, item.name))
            for item in dataclasses.fields(value)
            if item.name != "raw"
        }
        serialized = getattr(value, "serialized", None)
        if isinstance(serialized, str):
            result["serialized"] = serialized
        return result
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {str(key): to_jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_jsonable(item) for item in value]
    return value


def build_envelope(event: DomainEvent) -> dict[str, Any]:
    return {"type": ENVELOPE_TYPE, "payload": to_jsonable(event.envelope())}


class CallbackChannel:
    """Hands each envelope to a single in-process listener."""

    def __init__(self, listener: Callable[[dict[str, Any]], None]) -> None:
        self._listener = listener

    def emit(self, event: DomainEvent) -> None:
        self._listener(build_envelope(event))


class JsonLinesChannel:
    """Writes one JSON envelope per line to a text stream."""

    def __init__(self, stream: TextIO) -> None:
        self._stream = stream

    def emit(self, event: DomainEvent) -> None:
        self._stream.write(json.dumps(build_envelope(event), ensure_ascii=False) + "\n")
        self._stream.flush()


class ConsoleChannel:
    """Renders envelopes on a rich console for interactive inspection."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self._console = console or Console()
        self.count = 0

    def emit(self, event: DomainEvent) -> None:
        self.count += 1
        payload = to_jsonable(event.envelope())
        self._console.rule(f"[bold cyan]{self.count}. {payload['event']}")
        self._console.print(Pretty(payload["args"], expand_all=False))
