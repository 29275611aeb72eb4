"""Content resolution (core domain).

Maps a tagged ``Content`` plus caller ``SendOptions`` into the internal record
the host send operation expects. Everything here is pure: no host calls.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

from wabridge.core.config import ChannelPolicy
from wabridge.core.content import (
    Buttons,
    ContactRef,
    Content,
    ContentKind,
    GroupMention,
    ListMessage,
    Location,
    MessageMedia,
    Poll,
    SendOptions,
)
from wabridge.core.wids import is_channel_id

LOGGER = logging.getLogger(__name__)

# Internal field name -> host option name, in host record order.
_HOST_FIELDS = (
    ("link_preview", "linkPreview"),
    ("send_audio_as_voice", "sendAudioAsVoice"),
    ("send_video_as_gif", "sendVideoAsGif"),
    ("send_media_as_sticker", "sendMediaAsSticker"),
    ("send_media_as_document", "sendMediaAsDocument"),
    ("send_media_as_hd", "sendMediaAsHd"),
    ("caption", "caption"),
    ("quoted_message_id", "quotedMessageId"),
    ("parse_vcards", "parseVCards"),
    ("mentioned_jid_list", "mentionedJidList"),
    ("group_mentions", "groupMentions"),
    ("invoked_bot_wid", "invokedBotWid"),
    ("ignore_quote_errors", "ignoreQuoteErrors"),
    ("extra_options", "extraOptions"),
    ("is_view_once", "isViewOnce"),
    ("media", "media"),
    ("location", "location"),
    ("poll", "poll"),
    ("contact_card", "contactCard"),
    ("contact_card_list", "contactCardList"),
    ("buttons", "buttons"),
    ("list", "list"),
    ("attachment", "attachment"),
)

CONTENT_FIELDS = (
    "media",
    "location",
    "poll",
    "contact_card",
    "contact_card_list",
    "buttons",
    "list",
)


@dataclass(frozen=True)
class InternalSendOptions:
    """Normalized record handed to the host send operation.

    Created fresh per send call. Unset fields stay ``None`` and are omitted
    from the host record.
    """

    link_preview: Optional[bool] = True
    send_audio_as_voice: Optional[bool] = None
    send_video_as_gif: Optional[bool] = None
    send_media_as_sticker: Optional[bool] = None
    send_media_as_document: Optional[bool] = None
    send_media_as_hd: Optional[bool] = None
    caption: Optional[str] = None
    quoted_message_id: Optional[str] = None
    parse_vcards: bool = True
    mentioned_jid_list: Tuple[str, ...] = ()
    group_mentions: Optional[Tuple[GroupMention, ...]] = None
    invoked_bot_wid: Optional[str] = None
    ignore_quote_errors: bool = True
    extra_options: Any = field(default=None, hash=False)
    is_view_once: Optional[bool] = None
    media: Optional[MessageMedia] = None
    location: Optional[Location] = None
    poll: Optional[Poll] = None
    contact_card: Optional[str] = None
    contact_card_list: Optional[Tuple[str, ...]] = None
    buttons: Optional[Buttons] = None
    list: Optional[ListMessage] = None
    attachment: Any = None

    def populated_content_fields(self) -> List[str]:
        return [name for name in CONTENT_FIELDS if getattr(self, name) is not None]

    def to_host(self) -> dict[str, Any]:
        """Return the host camelCase record, leaving out unset fields."""

        record: dict[str, Any] = {}
        for name, host_name in _HOST_FIELDS:
            value = getattr(self, name)
            if value is None:
                continue
            if isinstance(value, tuple):
                value = list(value)
            record[host_name] = value
        return record


@dataclass(frozen=True)
class ResolvedSend:
    """Outgoing body plus internal options for one send call."""

    body: str
    options: InternalSendOptions
    send_seen: bool


def refuses_for_channel(content: Content, options: SendOptions, policy: ChannelPolicy) -> bool:
    """True when a channel destination cannot accept this content/options pair."""

    if content.kind not in policy.allowed_kinds:
        return True
    return any(bool(getattr(options, name)) for name in policy.refused_options)


def should_refuse(chat_id: str, content: Content, options: SendOptions, policy: ChannelPolicy) -> bool:
    if not is_channel_id(chat_id):
        return False
    if refuses_for_channel(content, options, policy):
        LOGGER.warning(
            "Refusing %s send to channel %s: supported message types are text, image, "
            "sticker, gif, video, voice and poll",
            content.kind.value,
            chat_id,
        )
        return True
    return False


def normalize_mentions(mentions: Any) -> Tuple[str, ...]:
    """Return mentions as a tuple of serialized ids.

    A single value is wrapped. Contact objects are downgraded to their ids
    (deprecated path, logged).
    """

    if mentions is None:
        return ()
    if not isinstance(mentions, (list, tuple)):
        mentions = [mentions]
    if any(isinstance(item, ContactRef) for item in mentions):
        LOGGER.warning("Mentions given as contacts are deprecated; pass serialized ids instead")
        return tuple(item.id if isinstance(item, ContactRef) else item for item in mentions)
    return tuple(mentions)


def normalize_group_mentions(group_mentions: Any) -> Optional[Tuple[GroupMention, ...]]:
    if group_mentions is None:
        return None
    if not isinstance(group_mentions, (list, tuple)):
        return (group_mentions,)
    return tuple(group_mentions)


def resolve_send(content: Content, options: SendOptions) -> ResolvedSend:
    """Resolve caller content and options into the internal send record.

    Exactly one content branch fires, in this precedence: media content,
    media given through options (the text becomes the caption), location,
    poll, contact, contact list, buttons, list, plain text. Every non-text
    branch empties the body.
    """

    base = dict(
        link_preview=None if options.link_preview is False else True,
        send_audio_as_voice=options.send_audio_as_voice,
        send_video_as_gif=options.send_video_as_gif,
        send_media_as_sticker=options.send_media_as_sticker,
        send_media_as_document=options.send_media_as_document,
        send_media_as_hd=options.send_media_as_hd,
        caption=options.caption,
        quoted_message_id=options.quoted_message_id,
        parse_vcards=options.parse_vcards is not False,
        mentioned_jid_list=normalize_mentions(options.mentions),
        group_mentions=normalize_group_mentions(options.group_mentions),
        invoked_bot_wid=options.invoked_bot_wid,
        ignore_quote_errors=options.ignore_quote_errors is not False,
        extra_options=options.extra,
    )
    body = ""
    kind, payload = content.kind, content.payload

    if kind is ContentKind.MEDIA:
        base.update(media=payload, is_view_once=options.is_view_once)
    elif kind is ContentKind.TEXT and options.media is not None:
        base.update(media=options.media, caption=payload, is_view_once=options.is_view_once)
    elif kind is ContentKind.LOCATION:
        base["location"] = payload
    elif kind is ContentKind.POLL:
        base["poll"] = payload
    elif kind is ContentKind.CONTACT:
        base["contact_card"] = payload.id
    elif kind is ContentKind.CONTACT_LIST:
        base["contact_card_list"] = tuple(contact.id for contact in payload)
    elif kind is ContentKind.BUTTONS:
        LOGGER.warning("Buttons are deprecated by the host and may not be delivered")
        if payload.type != "chat":
            base["attachment"] = payload.body
        base["buttons"] = payload
    elif kind is ContentKind.LIST:
        LOGGER.warning("Lists are deprecated by the host and may not be delivered")
        base["list"] = payload
    else:
        body = payload

    return ResolvedSend(
        body=body,
        options=InternalSendOptions(**base),
        send_seen=options.send_seen is not False,
    )
