"""Dry-run host adapter backed by a recorded notification stream.

A recording is a JSON-lines file. Each line is one of:
- ``{"host": {"version": ..., "me": ..., "platform": ...}}``: host metadata
  (first line; may also carry ``country_code`` and business ``labels``)
- ``{"chat": {...}}``: a chat model known to the host
- ``{"topic": "Msg:add", "args": [...]}``: a mutation notification
- ``{"entry_point": ..., "reactions": [...]}``: a reaction bulk update

Outbound and administrative calls are recorded instead of performed, so the
pipeline and the command surface can be run end to end without a live host.
"""

from __future__ import annotations

import json
import logging
import time
import uuid
from collections import defaultdict
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Iterable, Optional, Sequence

from wabridge.adapters.host_models import (
    call_view_from_model,
    chat_view_from_model,
    message_view_from_model,
    poll_vote_view_from_model,
)
from wabridge.core.content import MessageMedia
from wabridge.core.errors import HostTransportError
from wabridge.core.models import CallView, ChatView, MessageView, PollVoteView
from wabridge.core.ports import ReactionBatchHook, Topic
from wabridge.core.wids import message_key_from, serialize_wid

LOGGER = logging.getLogger(__name__)

DEFAULT_HOST_VERSION = "2.3000.1015000000"
DEFAULT_PLATFORM = "android"

_MESSAGE_TOPICS = frozenset({Topic.MESSAGE_ADD, Topic.MESSAGE_CHANGE, Topic.MESSAGE_TYPE_CHANGE})


@dataclass(frozen=True)
class RecordedNotification:
    """One replayable line of a recording."""

    topic: Optional[Topic] = None
    args: tuple[Any, ...] = ()
    entry_point: Optional[str] = None
    reactions: tuple[Any, ...] = ()


@dataclass
class Recording:
    version: str = DEFAULT_HOST_VERSION
    me: Optional[str] = None
    platform: str = DEFAULT_PLATFORM
    country_code: str = ""
    labels: list[dict[str, Any]] = field(default_factory=list)
    chats: dict[str, dict[str, Any]] = field(default_factory=dict)
    notifications: list[RecordedNotification] = field(default_factory=list)


def parse_recording(lines: Sequence[str]) -> Recording:
    """Parse recording lines; blank lines and ``#`` comments are skipped."""

    recording = Recording()
    for number, line in enumerate(lines, start=1):
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        try:
            entry = json.loads(line)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid JSON on recording line {number}: {exc.msg}") from exc

        if "host" in entry:
            recording.version = entry["host"].get("version", recording.version)
            recording.me = entry["host"].get("me", recording.me)
            recording.platform = entry["host"].get("platform", recording.platform)
            recording.country_code = entry["host"].get("country_code", recording.country_code)
            recording.labels = list(entry["host"].get("labels", recording.labels))
        elif "chat" in entry:
            chat_id = serialize_wid(entry["chat"]["id"])
            recording.chats[chat_id] = entry["chat"]
        elif "topic" in entry:
            recording.notifications.append(
                RecordedNotification(topic=Topic(entry["topic"]), args=tuple(entry.get("args", ())))
            )
        elif "reactions" in entry:
            recording.notifications.append(
                RecordedNotification(
                    entry_point=entry.get("entry_point"),
                    reactions=tuple(entry["reactions"]),
                )
            )
        else:
            raise ValueError(f"Unrecognized recording entry on line {number}")
    return recording


def load_recording(path: str) -> Recording:
    with open(path, "r", encoding="utf-8") as handle:
        return parse_recording(handle.readlines())


@dataclass(frozen=True)
class SentCall:
    chat: dict[str, Any]
    body: str
    options: dict[str, Any]


class ReplayHost:
    """Host adapter that replays recorded notifications and records sends."""

    def __init__(self, recording: Optional[Recording] = None, accept_unknown_chats: bool = False) -> None:
        self._recording = recording or Recording()
        self._accept_unknown_chats = accept_unknown_chats
        self._handlers: dict[Topic, list[Callable[..., None]]] = defaultdict(list)
        self._reaction_hooks: dict[str, ReactionBatchHook] = {}
        self.reaction_store: list[Any] = []
        self._messages: dict[str, dict[str, Any]] = {}
        self._settings: dict[str, Any] = {}
        self.seen: list[str] = []
        self.sent: list[SentCall] = []
        self.admin_calls: list[tuple[Any, ...]] = []

    @property
    def version(self) -> str:
        return self._recording.version

    @property
    def platform(self) -> str:
        return self._recording.platform

    # Event source

    def subscribe(self, topic: Topic, handler: Callable[..., None]) -> None:
        self._handlers[topic].append(handler)

    def intercept_reaction_batch(self, entry_point: str, hook: ReactionBatchHook) -> None:
        self._reaction_hooks[entry_point] = hook

    def message_view(self, raw: Any) -> MessageView:
        return message_view_from_model(raw)

    def chat_view(self, raw: Any) -> ChatView:
        return chat_view_from_model(raw)

    def call_view(self, raw: Any) -> CallView:
        return call_view_from_model(raw)

    def poll_vote_view(self, raw: Any) -> Optional[PollVoteView]:
        return poll_vote_view_from_model(raw)

    def dispatch(self, topic: Topic, *args: Any) -> None:
        if topic in _MESSAGE_TOPICS and args:
            self._cache_message(args[0])
        for handler in list(self._handlers.get(topic, ())):
            handler(*args)

    def apply_reactions(self, entry_point: str, batch: Sequence[Any]) -> None:
        hook = self._reaction_hooks.get(entry_point)
        if hook is None:
            # No interception on this entry point: the update just happens.
            self._store_reactions(batch)
            return
        hook(batch, self._store_reactions)

    def _store_reactions(self, batch: Sequence[Any]) -> None:
        self.reaction_store.extend(batch)

    def _cache_message(self, model: Any) -> None:
        if isinstance(model, dict) and "id" in model:
            self._messages[message_key_from(model["id"]).serialized] = model

    def replay(self) -> int:
        """Dispatch every recorded notification in order; return the count."""

        count = 0
        for notification in self._recording.notifications:
            if notification.topic is not None:
                self.dispatch(notification.topic, *notification.args)
            else:
                entry_point = notification.entry_point or next(iter(self._reaction_hooks), "")
                self.apply_reactions(entry_point, notification.reactions)
            count += 1
        LOGGER.info("Replayed %s notifications", count)
        return count

    # Messaging

    async def get_chat(self, chat_id: str) -> Optional[dict[str, Any]]:
        chat = self._recording.chats.get(chat_id)
        if chat is None and self._accept_unknown_chats:
            chat = {"id": chat_id}
        return chat

    async def send_seen(self, chat_id: str) -> bool:
        self.seen.append(chat_id)
        return True

    async def send_message(self, chat: Any, body: str, options: dict[str, Any]) -> Optional[dict[str, Any]]:
        remote = serialize_wid(chat["id"]) or ""
        self.sent.append(SentCall(chat=chat, body=body, options=options))
        msg_id = uuid.uuid4().hex[:20].upper()
        model = {
            "id": {"fromMe": True, "remote": remote, "id": msg_id, "_serialized": f"true_{remote}_{msg_id}"},
            "type": _message_type(options),
            "body": body or options.get("caption") or "",
            "to": remote,
            "from": self._recording.me,
            "isNewMsg": True,
            "ack": 0,
            "t": int(time.time()),
        }
        # A live host reports its own sends through the add notification too.
        self.dispatch(Topic.MESSAGE_ADD, model)
        return model

    async def format_sticker(self, media: MessageMedia, metadata: dict[str, Any]) -> MessageMedia:
        LOGGER.info("Dry-run sticker conversion for %s (%s)", media.filename or media.mimetype, metadata)
        return replace(media, mimetype="image/webp")

    # Administration

    def _chat_model(self, chat_id: str) -> dict[str, Any]:
        chat = self._recording.chats.get(chat_id)
        if chat is None:
            raise HostTransportError(f"Chat {chat_id} not found")
        return chat

    def _record_admin(self, name: str, *args: Any) -> None:
        LOGGER.info("Dry-run %s%s", name, args)
        self.admin_calls.append((name, *args))

    async def get_chat_view(self, chat_id: str) -> Optional[ChatView]:
        chat = self._recording.chats.get(chat_id)
        return chat_view_from_model(chat) if chat is not None else None

    async def get_cached_message(self, message_id: str) -> Optional[MessageView]:
        model = self._messages.get(message_id)
        return message_view_from_model(model) if model is not None else None

    async def fetch_message(self, message_id: str) -> Optional[MessageView]:
        # Nothing beyond the recording is reachable.
        return await self.get_cached_message(message_id)

    async def get_channel_metadata(self, invite_code: str) -> dict[str, Any]:
        for chat in self._recording.chats.values():
            if chat.get("inviteCode") == invite_code:
                return chat
        raise HostTransportError(f"No channel for invite code {invite_code}")

    async def accept_channel_admin_invite(self, channel_id: str) -> None:
        self._chat_model(channel_id)
        self._record_admin("accept_channel_admin_invite", channel_id)

    async def revoke_channel_admin_invite(self, channel_id: str, user_id: str) -> None:
        self._chat_model(channel_id)
        self._record_admin("revoke_channel_admin_invite", channel_id, user_id)

    async def demote_channel_admin(self, channel_id: str, user_id: str) -> None:
        self._chat_model(channel_id)
        self._record_admin("demote_channel_admin", channel_id, user_id)

    async def join_group_via_invite_v4(
        self, invite_code: str, expiration: str, group_id: str, inviter_id: str
    ) -> Any:
        self._record_admin("join_group_via_invite_v4", invite_code, expiration, group_id, inviter_id)
        return {"status": 200}

    async def get_profile_pic(self, contact_id: str, legacy: bool) -> Optional[dict[str, Any]]:
        url = self._chat_model(contact_id).get("profilePicUrl")
        if not url:
            raise HostTransportError(f"No profile picture for {contact_id}")
        return {"eurl": url}

    async def query_exists(self, wid: str) -> Optional[dict[str, Any]]:
        if wid not in self._recording.chats:
            return None
        return {"wid": wid}

    async def formatted_phone_number(self, phone_id: str) -> str:
        return "+" + phone_id.split("@", 1)[0]

    async def find_country_code(self, number: str) -> str:
        return self._recording.country_code

    async def mute_chat(self, chat_id: str, expiration: int) -> int:
        self._chat_model(chat_id)["muteExpiration"] = expiration
        return expiration

    async def unmute_chat(self, chat_id: str) -> int:
        self._chat_model(chat_id)["muteExpiration"] = 0
        return 0

    async def can_set_pushname(self) -> bool:
        return True

    async def set_pushname(self, name: str) -> None:
        self._record_admin("set_pushname", name)

    async def get_setting(self, name: str) -> bool:
        return bool(self._settings.get(name, False))

    async def set_setting(self, name: str, value: bool) -> None:
        self._record_admin("set_setting", name, value)
        self._settings[name] = value

    async def get_device_ids(self, user_id: str) -> Optional[list[Any]]:
        chat = self._recording.chats.get(user_id)
        if chat is None or "devices" not in chat:
            return None
        return [{"devices": list(chat["devices"])}]

    async def get_labels(self) -> list[dict[str, Any]]:
        return list(self._recording.labels)

    async def get_chat_labels(self, chat_ids: Iterable[str]) -> dict[str, list[Any]]:
        return {chat_id: list(self._chat_model(chat_id).get("labels", [])) for chat_id in chat_ids}

    async def apply_label_actions(self, actions: list[dict[str, Any]], chat_ids: list[str]) -> Any:
        self._record_admin("apply_label_actions", actions, chat_ids)
        removed = {str(action["id"]) for action in actions if action["type"] == "remove"}
        added = [action["id"] for action in actions if action["type"] == "add"]
        for chat_id in chat_ids:
            chat = self._chat_model(chat_id)
            labels = [label for label in chat.get("labels", []) if str(label) not in removed]
            labels.extend(label for label in added if label not in labels)
            chat["labels"] = labels
        return True

    async def request_history_sync(self, chat_id: str) -> None:
        self._chat_model(chat_id)
        self._record_admin("request_history_sync", chat_id)


def _message_type(options: dict[str, Any]) -> str:
    if options.get("sendMediaAsSticker") and "media" in options:
        return "sticker"
    if "media" in options:
        family = options["media"].mimetype.split("/", 1)[0]
        return "document" if family == "application" else family
    for key, message_type in (
        ("location", "location"),
        ("poll", "poll_creation"),
        ("contactCard", "vcard"),
        ("contactCardList", "multi_vcard"),
        ("buttons", "buttons"),
        ("list", "list"),
    ):
        if key in options:
            return message_type
    return "chat"
