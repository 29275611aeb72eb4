"""Host-to-core model mapping adapter.

The host serializes its models as camelCase dicts. This keeps those details
out of the core, which only sees the frozen views in ``core.models``.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from wabridge.core.models import CallView, ChatView, MessageView, PollVoteView
from wabridge.core.wids import message_key_from, serialize_wid


def _wid_list(values: Any) -> tuple[str, ...]:
    if not values:
        return ()
    return tuple(wid for wid in (serialize_wid(value) for value in values) if wid)


def message_view_from_model(model: Mapping[str, Any]) -> MessageView:
    """Build a MessageView from a serialized host message model."""

    return MessageView(
        key=message_key_from(model["id"]),
        type=model.get("type", "chat"),
        body=model.get("body") or "",
        subtype=model.get("subtype"),
        author=serialize_wid(model.get("author")),
        to=serialize_wid(model.get("to")),
        recipients=_wid_list(model.get("recipients")),
        template_params=tuple(str(param) for param in model.get("templateParams") or ()),
        is_new_msg=bool(model.get("isNewMsg", False)),
        ack=model.get("ack"),
        timestamp=model.get("t"),
        raw=model,
    )


def chat_view_from_model(model: Mapping[str, Any]) -> ChatView:
    chat_id = serialize_wid(model["id"]) or ""
    return ChatView(
        id=chat_id,
        name=model.get("name") or model.get("formattedTitle"),
        is_group=bool(model.get("isGroup", chat_id.endswith("@g.us"))),
        archived=bool(model.get("archive", False)),
        pinned=bool(model.get("pin", False)),
        unread_count=int(model.get("unreadCount") or 0),
        raw=model,
    )


def call_view_from_model(model: Mapping[str, Any]) -> CallView:
    return CallView(
        id=str(model["id"]),
        peer=serialize_wid(model.get("peerJid")),
        is_video=bool(model.get("isVideo", False)),
        is_group=bool(model.get("isGroup", False)),
        timestamp=model.get("offerTime"),
        raw=model,
    )


def poll_vote_view_from_model(model: Mapping[str, Any]) -> Optional[PollVoteView]:
    """Return None when the vote cannot be tied to a voter."""

    voter = serialize_wid(model.get("sender"))
    if not voter:
        return None
    parent = model.get("parentMsgKey")
    return PollVoteView(
        voter=voter,
        parent_key=message_key_from(parent) if parent else None,
        selected_options=tuple(model.get("selectedOptionLocalIds") or ()),
        timestamp=model.get("senderTimestampMs"),
        raw=model,
    )
