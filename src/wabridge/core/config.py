"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Tuple

from wabridge.core.content import ContentKind, SendOptions

# First host version whose reactions flow through the addon reaction table.
REACTION_TABLE_MIN_VERSION = "2.3000.1014111620"

# Hosts older than this resolve profile pictures through the legacy lookup.
PROFILE_PIC_SERVER_MIN_VERSION = "2.3000.0"


@dataclass(frozen=True)
class ChannelPolicy:
    """Content kinds and options accepted by broadcast-channel destinations."""

    allowed_kinds: FrozenSet[ContentKind] = frozenset(
        {ContentKind.TEXT, ContentKind.MEDIA, ContentKind.POLL}
    )
    refused_options: Tuple[str, ...] = (
        "send_media_as_document",
        "quoted_message_id",
        "parse_vcards",
        "is_view_once",
    )

    def __post_init__(self) -> None:
        # Accept the camelCase host names too; unknown names raise.
        names = tuple(SendOptions.field_name(name) for name in self.refused_options)
        object.__setattr__(self, "refused_options", names)


@dataclass(frozen=True)
class BridgeConfig:
    """Settings consumed by the classifier and the outbound pipeline."""

    channel_policy: ChannelPolicy = field(default_factory=ChannelPolicy)
    reaction_table_min_version: str = REACTION_TABLE_MIN_VERSION
