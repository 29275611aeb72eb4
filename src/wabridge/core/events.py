"""Domain events emitted on the output channel."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Tuple


class EventName(str, Enum):
    """Names of the events delivered to the outer listener."""

    MESSAGE_CREATE = "message_create"
    MESSAGE_RECEIVED = "message_received"
    MESSAGE_ACK = "message_ack"
    MESSAGE_CIPHERTEXT = "message_ciphertext"
    MESSAGE_EDIT = "message_edit"
    MESSAGE_REVOKED_ME = "message_revoke_me"
    MESSAGE_REVOKED_EVERYONE = "message_revoke_everyone"
    MESSAGE_REACTION = "message_reaction"
    GROUP_JOIN = "group_join"
    GROUP_LEAVE = "group_leave"
    GROUP_ADMIN_CHANGED = "group_admin_changed"
    GROUP_MEMBERSHIP_REQUEST = "group_membership_request"
    GROUP_UPDATE = "group_update"
    CONTACT_CHANGED = "contact_changed"
    MEDIA_UPLOADED = "media_uploaded"
    STATE_CHANGED = "change_state"
    BATTERY_CHANGED = "battery_changed"
    INCOMING_CALL = "incoming_call"
    CHAT_REMOVED = "chat_removed"
    CHAT_ARCHIVED = "chat_archived"
    UNREAD_COUNT = "unread_count"
    VOTE_UPDATE = "vote_update"


@dataclass(frozen=True)
class DomainEvent:
    """One emitted event: a name plus positional arguments."""

    name: EventName
    args: Tuple[Any, ...] = ()

    def envelope(self) -> dict[str, Any]:
        """Return the ``{"event": ..., "args": [...]}`` envelope."""

        return {"event": self.name.value, "args": list(self.args)}
