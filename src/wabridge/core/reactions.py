"""Reaction batch adapters.

The host delivers reactions through a bulk-update entry point whose name and
record shape depend on the host version. One adapter per wire format
normalizes records into ``Reaction`` values; the classifier picks one at
startup with ``select_reaction_adapter``.
"""

from __future__ import annotations

from typing import Any, Mapping, Protocol

from wabridge.core.config import REACTION_TABLE_MIN_VERSION
from wabridge.core.models import Reaction
from wabridge.core.versions import compare_versions
from wabridge.core.wids import message_key_from, serialize_wid


class ReactionAdapter(Protocol):
    entry_point: str

    def normalize(self, record: Mapping[str, Any]) -> Reaction:
        ...


class ReactionTableAdapter:
    """Records passed to ``AddonReactionTable.bulkUpsert`` on current hosts."""

    entry_point = "AddonReactionTable.bulkUpsert"

    def normalize(self, record: Mapping[str, Any]) -> Reaction:
        sender = record.get("author") or record.get("from")
        return Reaction(
            msg_key=message_key_from(record["id"]),
            parent_msg_key=message_key_from(record["reactionParentKey"]),
            sender_user_jid=serialize_wid(sender) or "",
            timestamp=record["reactionTimestamp"] / 1000,
            text=record.get("reactionText"),
            raw=record,
        )


class LegacyReactionsAdapter:
    """Records passed to ``createOrUpdateReactions`` on older hosts."""

    entry_point = "createOrUpdateReactionsModule.createOrUpdateReactions"

    def normalize(self, record: Mapping[str, Any]) -> Reaction:
        return Reaction(
            msg_key=message_key_from(record["msgKey"]),
            parent_msg_key=message_key_from(record["parentMsgKey"]),
            sender_user_jid=serialize_wid(record.get("senderUserJid")) or "",
            timestamp=record["timestamp"] / 1000,
            text=record.get("reactionText"),
            raw=record,
        )


def select_reaction_adapter(host_version: str, threshold: str = REACTION_TABLE_MIN_VERSION) -> ReactionAdapter:
    """Pick the adapter matching the host's reaction wire format."""

    if compare_versions(host_version, ">=", threshold):
        return ReactionTableAdapter()
    return LegacyReactionsAdapter()
