"""Administrative command surface.

Each command is a thin delegation to the host. Host transport errors ("not
found / server refused") become neutral return values; every other error
propagates unchanged. Structurally invalid arguments raise
``InvalidArgumentError``.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Iterable, Mapping, Optional

from wabridge.core.config import PROFILE_PIC_SERVER_MIN_VERSION
from wabridge.core.errors import HostTransportError, InvalidArgumentError, UnsupportedOperationError
from wabridge.core.models import ChatView, MessageView
from wabridge.core.ports import HostAdmin
from wabridge.core.versions import compare_versions
from wabridge.core.wids import (
    is_serialized_message_id,
    serialize_wid,
    to_bare_number,
    to_phone_id,
    to_user_id,
)

LOGGER = logging.getLogger(__name__)

AUTO_DOWNLOAD_SETTINGS = {
    "audio": "autoDownloadAudio",
    "documents": "autoDownloadDocuments",
    "photos": "autoDownloadPhotos",
    "videos": "autoDownloadVideos",
}
BACKGROUND_SYNC_SETTING = "globalOfflineNotifications"
BUSINESS_PLATFORMS = frozenset({"smba", "smbi"})


class CommandSurface:
    """Chat, channel, contact and settings commands backed by ``HostAdmin``."""

    def __init__(self, host: HostAdmin) -> None:
        self._host = host

    async def send_seen(self, chat_id: str) -> bool:
        return await self._host.send_seen(chat_id)

    async def get_chat_by_id(self, chat_id: str) -> Optional[ChatView]:
        return await self._host.get_chat_view(chat_id)

    async def get_message_by_id(self, message_id: str) -> Optional[MessageView]:
        """Return a cached message, else fetch it by its serialized id."""

        cached = await self._host.get_cached_message(message_id)
        if cached is not None:
            return cached
        if not is_serialized_message_id(message_id):
            raise InvalidArgumentError("Invalid serialized message id specified")
        return await self._host.fetch_message(message_id)

    async def get_channel_by_invite_code(self, invite_code: str) -> Optional[ChatView]:
        try:
            metadata = await self._host.get_channel_metadata(invite_code)
        except HostTransportError:
            return None
        return await self._host.get_chat_view(serialize_wid(metadata["id"]) or "")

    async def accept_channel_admin_invite(self, channel_id: str) -> bool:
        try:
            await self._host.accept_channel_admin_invite(channel_id)
        except HostTransportError:
            return False
        return True

    async def revoke_channel_admin_invite(self, channel_id: str, user_id: str) -> bool:
        try:
            await self._host.revoke_channel_admin_invite(channel_id, user_id)
        except HostTransportError:
            return False
        return True

    async def demote_channel_admin(self, channel_id: str, user_id: str) -> bool:
        try:
            await self._host.demote_channel_admin(channel_id, user_id)
        except HostTransportError:
            return False
        return True

    async def accept_group_v4_invite(self, invite: Mapping[str, Any]) -> Any:
        """Join a group through a private (v4) invite taken from a message."""

        if not invite.get("inviteCode"):
            raise InvalidArgumentError("Invalid invite code, pass the message's inviteV4 payload")
        if invite.get("inviteCodeExp") == 0:
            raise InvalidArgumentError("Expired invite code")
        return await self._host.join_group_via_invite_v4(
            invite["inviteCode"],
            str(invite["inviteCodeExp"]),
            invite["groupId"],
            invite["fromId"],
        )

    async def get_profile_pic_url(self, contact_id: str) -> Optional[str]:
        legacy = compare_versions(self._host.version, "<", PROFILE_PIC_SERVER_MIN_VERSION)
        try:
            picture = await self._host.get_profile_pic(contact_id, legacy)
        except HostTransportError:
            return None
        return picture.get("eurl") if picture else None

    async def get_number_id(self, number: str) -> Optional[str]:
        """Return the registered id for a number, or None when unregistered."""

        result = await self._host.query_exists(to_user_id(number))
        if not result or result.get("wid") is None:
            return None
        return serialize_wid(result["wid"])

    async def is_registered_user(self, number: str) -> bool:
        return bool(await self.get_number_id(number))

    async def get_formatted_number(self, number: str) -> str:
        return await self._host.formatted_phone_number(to_phone_id(number))

    async def get_country_code(self, number: str) -> str:
        return await self._host.find_country_code(to_bare_number(number))

    async def mute_chat(self, chat_id: str, unmute_at: Optional[datetime] = None) -> dict[str, Any]:
        expiration = int(unmute_at.timestamp()) if unmute_at else -1
        remaining = await self._host.mute_chat(chat_id, expiration)
        return {"is_muted": remaining != 0, "mute_expiration": remaining}

    async def unmute_chat(self, chat_id: str) -> dict[str, Any]:
        remaining = await self._host.unmute_chat(chat_id)
        return {"is_muted": remaining != 0, "mute_expiration": remaining}

    async def set_display_name(self, display_name: str) -> bool:
        if not await self._host.can_set_pushname():
            return False
        await self._host.set_pushname(display_name)
        return True

    async def set_auto_download(self, kind: str, flag: bool) -> bool:
        setting = AUTO_DOWNLOAD_SETTINGS.get(kind)
        if setting is None:
            raise InvalidArgumentError(f"Unknown auto-download kind: {kind}")
        return await self._toggle(setting, flag)

    async def set_background_sync(self, flag: bool) -> bool:
        # Takes effect after the host restarts.
        return await self._toggle(BACKGROUND_SYNC_SETTING, flag)

    async def _toggle(self, setting: str, flag: bool) -> bool:
        if await self._host.get_setting(setting) == flag:
            return flag
        await self._host.set_setting(setting, flag)
        return flag

    async def get_contact_device_count(self, user_id: str) -> int:
        devices = await self._host.get_device_ids(user_id)
        if devices and devices[0] is not None and isinstance(devices[0].get("devices"), list):
            return len(devices[0]["devices"])
        return 0

    async def add_or_remove_labels(self, label_ids: Iterable[Any], chat_ids: Iterable[str]) -> Any:
        """Apply ``label_ids`` to the chats and drop every other label on them."""

        if self._host.platform not in BUSINESS_PLATFORMS:
            raise UnsupportedOperationError("Labels are only available on business accounts")

        wanted = {str(label_id) for label_id in label_ids}
        chat_ids = list(chat_ids)
        labels = [label for label in await self._host.get_labels() if str(label["id"]) in wanted]
        actions = [{"id": label["id"], "type": "add"} for label in labels]

        chat_labels = await self._host.get_chat_labels(chat_ids)
        for chat_id in chat_ids:
            for label_id in chat_labels.get(chat_id, []):
                if not any(str(action["id"]) == str(label_id) for action in actions):
                    actions.append({"id": label_id, "type": "remove"})

        LOGGER.info("Applying %s label actions to %s chats", len(actions), len(chat_ids))
        return await self._host.apply_label_actions(actions, chat_ids)

    async def sync_history(self, chat_id: str) -> bool:
        chat = await self._host.get_chat_view(chat_id)
        if chat is None or chat.raw.get("endOfHistoryTransferType") != 0:
            return False
        await self._host.request_history_sync(chat_id)
        return True
