"""Ports (interfaces) between the core and the host runtime.

Ports define the minimal contracts for host adapters and output channels so
the core can be driven by a live host bridge, a replay file or test fakes.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Iterable, Optional, Protocol, Sequence

from wabridge.core.content import MessageMedia
from wabridge.core.events import DomainEvent
from wabridge.core.models import CallView, ChatView, MessageView, PollVoteView


class Topic(str, Enum):
    """Host mutation topics the classifier subscribes to."""

    MESSAGE_ADD = "Msg:add"
    MESSAGE_CHANGE = "Msg:change"
    MESSAGE_TYPE_CHANGE = "Msg:change:type"
    MESSAGE_ACK = "Msg:change:ack"
    MESSAGE_UNSENT_MEDIA = "Msg:change:isUnsentMedia"
    MESSAGE_REMOVE = "Msg:remove"
    MESSAGE_BODY_CHANGE = "Msg:change:body"
    MESSAGE_CAPTION_CHANGE = "Msg:change:caption"
    APP_STATE_CHANGE = "AppState:change:state"
    BATTERY_CHANGE = "Conn:change:battery"
    CALL_ADD = "Call:add"
    CHAT_REMOVE = "Chat:remove"
    CHAT_ARCHIVE_CHANGE = "Chat:change:archive"
    CHAT_UNREAD_CHANGE = "Chat:change:unreadCount"
    POLL_VOTE_ADD = "PollVote:add"


# Called with the raw batch and a callable that performs the original update.
ReactionBatchHook = Callable[[Sequence[Any], Callable[[Sequence[Any]], Any]], Any]


class HostEventSource(Protocol):
    """Mutation notifications and view derivation offered by the host."""

    @property
    def version(self) -> str:
        ...

    def subscribe(self, topic: Topic, handler: Callable[..., None]) -> None:
        ...

    def intercept_reaction_batch(self, entry_point: str, hook: ReactionBatchHook) -> None:
        ...

    def message_view(self, raw: Any) -> MessageView:
        ...

    def chat_view(self, raw: Any) -> ChatView:
        ...

    def call_view(self, raw: Any) -> CallView:
        ...

    def poll_vote_view(self, raw: Any) -> Optional[PollVoteView]:
        ...


class HostMessaging(Protocol):
    """Operations required by the outbound pipeline."""

    async def get_chat(self, chat_id: str) -> Optional[Any]:
        ...

    async def send_seen(self, chat_id: str) -> bool:
        ...

    async def send_message(self, chat: Any, body: str, options: dict[str, Any]) -> Optional[Any]:
        ...

    async def format_sticker(self, media: MessageMedia, metadata: dict[str, Any]) -> MessageMedia:
        ...

    def message_view(self, raw: Any) -> MessageView:
        ...


class HostAdmin(Protocol):
    """Straight-line host delegations used by the command surface.

    Methods raise ``HostTransportError`` for "not found / server refused".
    """

    @property
    def version(self) -> str:
        ...

    @property
    def platform(self) -> str:
        ...

    async def send_seen(self, chat_id: str) -> bool:
        ...

    async def get_chat_view(self, chat_id: str) -> Optional[ChatView]:
        ...

    async def get_cached_message(self, message_id: str) -> Optional[MessageView]:
        ...

    async def fetch_message(self, message_id: str) -> Optional[MessageView]:
        ...

    async def get_channel_metadata(self, invite_code: str) -> dict[str, Any]:
        ...

    async def accept_channel_admin_invite(self, channel_id: str) -> None:
        ...

    async def revoke_channel_admin_invite(self, channel_id: str, user_id: str) -> None:
        ...

    async def demote_channel_admin(self, channel_id: str, user_id: str) -> None:
        ...

    async def join_group_via_invite_v4(
        self, invite_code: str, expiration: str, group_id: str, inviter_id: str
    ) -> Any:
        ...

    async def get_profile_pic(self, contact_id: str, legacy: bool) -> Optional[dict[str, Any]]:
        ...

    async def query_exists(self, wid: str) -> Optional[dict[str, Any]]:
        ...

    async def formatted_phone_number(self, phone_id: str) -> str:
        ...

    async def find_country_code(self, number: str) -> str:
        ...

    async def mute_chat(self, chat_id: str, expiration: int) -> int:
        ...

    async def unmute_chat(self, chat_id: str) -> int:
        ...

    async def can_set_pushname(self) -> bool:
        ...

    async def set_pushname(self, name: str) -> None:
        ...

    async def get_setting(self, name: str) -> bool:
        ...

    async def set_setting(self, name: str, value: bool) -> None:
        ...

    async def get_device_ids(self, user_id: str) -> Optional[list[Any]]:
        ...

    async def get_labels(self) -> list[dict[str, Any]]:
        ...

    async def get_chat_labels(self, chat_ids: Iterable[str]) -> dict[str, list[Any]]:
        ...

    async def apply_label_actions(self, actions: list[dict[str, Any]], chat_ids: list[str]) -> Any:
        ...

    async def request_history_sync(self, chat_id: str) -> None:
        ...


class OutputChannel(Protocol):
    """One-way, fire-and-forget sink for domain events."""

    def emit(self, event: DomainEvent) -> None:
        ...
