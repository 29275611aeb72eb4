"""Helpers for working with host identities (wids) and message keys."""

from __future__ import annotations

import re
from typing import Any, Mapping, Optional

from wabridge.core.errors import InvalidArgumentError
from wabridge.core.models import MessageKey

USER_SUFFIX = "@c.us"
PHONE_SUFFIX = "@s.whatsapp.net"
GROUP_SUFFIX = "@g.us"

_CHANNEL_PATTERN = re.compile(r"@\w*newsletter\b")


def serialize_wid(value: Any) -> Optional[str]:
    """Return the serialized form of a wid given as a mapping or a string."""

    if value is None:
        return None
    if isinstance(value, Mapping):
        serialized = value.get("_serialized")
        if serialized:
            return str(serialized)
        user, server = value.get("user"), value.get("server")
        if user and server:
            return f"{user}@{server}"
        return None
    return str(value)


def is_channel_id(chat_id: str) -> bool:
    """True for broadcast-channel-class destinations (``...@newsletter``)."""

    return bool(_CHANNEL_PATTERN.search(chat_id))


def is_user_id(wid: str) -> bool:
    return wid.endswith(USER_SUFFIX) or wid.endswith(PHONE_SUFFIX)


def is_serialized_message_id(message_id: str) -> bool:
    return len(message_id.split("_")) in (3, 4)


def parse_message_key(serialized: str) -> MessageKey:
    """Split ``fromMe_remote_id[_participant]`` into a MessageKey."""

    parts = serialized.split("_")
    if len(parts) not in (3, 4) or parts[0] not in ("true", "false"):
        raise InvalidArgumentError(f"Invalid serialized message id: {serialized!r}")
    participant = parts[3] if len(parts) == 4 else None
    return MessageKey(
        from_me=parts[0] == "true",
        remote=parts[1],
        id=parts[2],
        participant=participant,
    )


def message_key_from(value: Any) -> MessageKey:
    """Build a MessageKey from a host key mapping or a serialized string."""

    if isinstance(value, MessageKey):
        return value
    if isinstance(value, str):
        return parse_message_key(value)
    if isinstance(value, Mapping):
        if "id" in value and "remote" in value:
            return MessageKey(
                from_me=bool(value.get("fromMe", False)),
                remote=serialize_wid(value["remote"]) or "",
                id=str(value["id"]),
                participant=serialize_wid(value.get("participant")),
            )
        serialized = value.get("_serialized")
        if serialized:
            return parse_message_key(str(serialized))
    raise InvalidArgumentError(f"Cannot build a message key from {value!r}")


def to_user_id(number: str) -> str:
    """Append the user suffix when a bare number is given."""

    if not number.endswith(USER_SUFFIX):
        number += USER_SUFFIX
    return number


def to_phone_id(number: str) -> str:
    """Normalize a number or user id into the phone-server form."""

    if not number.endswith(PHONE_SUFFIX):
        number = number.replace("c.us", "s.whatsapp.net")
    if PHONE_SUFFIX not in number:
        number = f"{number}{PHONE_SUFFIX}"
    return number


def to_bare_number(number: str) -> str:
    """Strip formatting so only the dialable number is left."""

    return number.replace(" ", "").replace("+", "").replace(USER_SUFFIX, "")
