"""Caller-facing content variants and send options.

Callers hand the outbound pipeline one of several content shapes. The shape is
classified exactly once, at the API boundary, into a tagged ``Content`` value
so the resolver dispatches on ``Content.kind`` instead of sniffing types.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Mapping, Optional, Sequence, Tuple, Union

from wabridge.core.errors import InvalidArgumentError

LOGGER = logging.getLogger(__name__)


class ContentKind(str, Enum):
    TEXT = "text"
    MEDIA = "media"
    LOCATION = "location"
    POLL = "poll"
    CONTACT = "contact"
    CONTACT_LIST = "contact_list"
    BUTTONS = "buttons"
    LIST = "list"


@dataclass(frozen=True)
class MessageMedia:
    """Base64-encoded media attachment."""

    mimetype: str
    data: str
    filename: Optional[str] = None
    filesize: Optional[int] = None


@dataclass(frozen=True)
class Location:
    latitude: float
    longitude: float
    name: Optional[str] = None
    address: Optional[str] = None
    url: Optional[str] = None


@dataclass(frozen=True)
class Poll:
    name: str
    options: Tuple[str, ...]
    allow_multiple_answers: bool = False
    message_secret: Optional[Tuple[int, ...]] = None


@dataclass(frozen=True)
class ContactRef:
    """A contact known to the host, referenced by its serialized id."""

    id: str
    name: Optional[str] = None


@dataclass(frozen=True)
class GroupMention:
    subject: str
    id: str


@dataclass(frozen=True)
class Buttons:
    """Legacy interactive buttons payload (deprecated by the host)."""

    body: Union[str, MessageMedia]
    buttons: Tuple[Mapping[str, Any], ...]
    title: Optional[str] = None
    footer: Optional[str] = None

    @property
    def type(self) -> str:
        if isinstance(self.body, MessageMedia):
            return self.body.mimetype.split("/", 1)[0]
        return "chat"


@dataclass(frozen=True)
class ListMessage:
    """Legacy interactive list payload (deprecated by the host)."""

    body: str
    button_text: str
    sections: Tuple[Mapping[str, Any], ...]
    title: Optional[str] = None
    footer: Optional[str] = None


_VARIANTS = (
    (MessageMedia, ContentKind.MEDIA),
    (Location, ContentKind.LOCATION),
    (Poll, ContentKind.POLL),
    (ContactRef, ContentKind.CONTACT),
    (Buttons, ContentKind.BUTTONS),
    (ListMessage, ContentKind.LIST),
)


@dataclass(frozen=True)
class Content:
    """Tagged content union: exactly one kind with its payload."""

    kind: ContentKind
    payload: Any

    @classmethod
    def text(cls, body: str) -> "Content":
        return cls(ContentKind.TEXT, body)

    @classmethod
    def from_value(cls, value: Any) -> "Content":
        """Classify a caller-supplied value into a tagged Content.

        Raises InvalidArgumentError for values that match no variant.
        """

        if isinstance(value, Content):
            return value
        if isinstance(value, str):
            return cls(ContentKind.TEXT, value)
        for variant, kind in _VARIANTS:
            if isinstance(value, variant):
                return cls(kind, value)
        if isinstance(value, (list, tuple)):
            if value and all(isinstance(item, ContactRef) for item in value):
                return cls(ContentKind.CONTACT_LIST, tuple(value))
            raise InvalidArgumentError("A content list must be a non-empty list of contacts")
        raise InvalidArgumentError(f"Unsupported content type: {type(value).__name__}")


MentionValue = Union[str, ContactRef]


@dataclass(frozen=True)
class SendOptions:
    """Caller options for one send call.

    Tri-state flags use ``None`` for "not given" so the resolver can tell an
    explicit ``False`` apart from the default.
    """

    link_preview: Optional[bool] = None
    send_audio_as_voice: Optional[bool] = None
    send_video_as_gif: Optional[bool] = None
    send_media_as_sticker: Optional[bool] = None
    send_media_as_document: Optional[bool] = None
    send_media_as_hd: Optional[bool] = None
    is_view_once: Optional[bool] = None
    parse_vcards: Optional[bool] = None
    caption: Optional[str] = None
    quoted_message_id: Optional[str] = None
    mentions: Union[None, MentionValue, Sequence[MentionValue]] = None
    group_mentions: Union[None, GroupMention, Sequence[GroupMention]] = None
    send_seen: Optional[bool] = None
    invoked_bot_wid: Optional[str] = None
    sticker_author: Optional[str] = None
    sticker_name: Optional[str] = None
    sticker_categories: Optional[Tuple[str, ...]] = None
    ignore_quote_errors: Optional[bool] = None
    media: Optional[MessageMedia] = None
    extra: Optional[Mapping[str, Any]] = field(default=None, hash=False)

    @classmethod
    def field_name(cls, key: str) -> str:
        """Return the field for a snake_case or camelCase option name."""

        known = {f.name: f.name for f in fields(cls)}
        known.update({_camel(name): name for name in list(known)})
        known["parseVCards"] = "parse_vcards"
        name = known.get(key)
        if name is None:
            raise InvalidArgumentError(f"Unknown send option: {key}")
        return name

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "SendOptions":
        """Build options from snake_case or camelCase keys.

        Unknown keys raise InvalidArgumentError instead of being dropped, so a
        typo cannot silently disable an option. Host-specific passthrough
        values belong under ``extra``.
        """

        return cls(**{cls.field_name(key): value for key, value in raw.items()})


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)
