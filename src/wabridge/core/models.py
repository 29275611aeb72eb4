"""Core domain models.

These dataclasses are read-only views derived from raw host payloads. They are
shared across the core and adapters to avoid coupling to the host's own types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Tuple

REVOKED_TYPE = "revoked"
CIPHERTEXT_TYPE = "ciphertext"
GROUP_NOTIFICATION_TYPE = "gp2"
TEMPLATE_NOTIFICATION_TYPE = "notification_template"


@dataclass(frozen=True)
class MessageKey:
    """Structured message identity (``fromMe_remote_id[_participant]``)."""

    from_me: bool
    remote: str
    id: str
    participant: Optional[str] = None

    @property
    def serialized(self) -> str:
        parts = ["true" if self.from_me else "false", self.remote, self.id]
        if self.participant:
            parts.append(self.participant)
        return "_".join(parts)


@dataclass(frozen=True)
class MessageView:
    """Minimal message view used by the classifier and the send pipeline."""

    key: MessageKey
    type: str
    body: str = ""
    subtype: Optional[str] = None
    author: Optional[str] = None
    to: Optional[str] = None
    recipients: Tuple[str, ...] = ()
    template_params: Tuple[str, ...] = ()
    is_new_msg: bool = False
    ack: Optional[int] = None
    timestamp: Optional[int] = None
    raw: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def from_me(self) -> bool:
        return self.key.from_me

    @property
    def is_revoked(self) -> bool:
        return self.type == REVOKED_TYPE


@dataclass(frozen=True)
class ChatView:
    """Minimal chat view."""

    id: str
    name: Optional[str] = None
    is_group: bool = False
    archived: bool = False
    pinned: bool = False
    unread_count: int = 0
    raw: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)


@dataclass(frozen=True)
class CallView:
    """Incoming call offer."""

    id: str
    peer: Optional[str]
    is_video: bool = False
    is_group: bool = False
    timestamp: Optional[int] = None
    raw: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)


@dataclass(frozen=True)
class PollVoteView:
    """A vote added to a poll."""

    voter: str
    parent_key: Optional[MessageKey]
    selected_options: Tuple[Any, ...] = ()
    timestamp: Optional[int] = None
    raw: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)


@dataclass(frozen=True)
class BatteryState:
    level: int
    plugged: bool


@dataclass(frozen=True)
class Reaction:
    """Normalized reaction record, independent of the host wire format."""

    msg_key: MessageKey
    parent_msg_key: MessageKey
    sender_user_jid: str
    timestamp: float
    text: Optional[str] = None
    raw: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)
