"""Outbound send pipeline.

The pipeline enforces a strict order per call:
1) Classify the caller content at the boundary
2) Refuse unsupported content for broadcast channels (no host call)
3) Resolve content and options into the internal record
4) Transcode stickers when requested
5) Resolve the chat handle; unknown chats end with an empty result
6) Mark the chat seen (default on), awaited before sending
7) Send and wrap the returned handle into a message view

Calls for different chats are independent; nothing here serializes calls to
the same chat.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Mapping, Optional, Union

from wabridge.core.config import ChannelPolicy
from wabridge.core.content import Content, SendOptions
from wabridge.core.models import MessageView
from wabridge.core.ports import HostMessaging
from wabridge.core.resolver import ResolvedSend, resolve_send, should_refuse

LOGGER = logging.getLogger(__name__)


class OutboundPipeline:
    """Orchestrates resolution, mark-seen and the host send call."""

    def __init__(self, host: HostMessaging, channel_policy: Optional[ChannelPolicy] = None) -> None:
        self._host = host
        self._policy = channel_policy or ChannelPolicy()

    async def send(
        self,
        chat_id: str,
        content: Any,
        options: Union[None, SendOptions, Mapping[str, Any]] = None,
    ) -> Optional[MessageView]:
        """Send ``content`` to ``chat_id``; return the sent message or None."""

        if options is None:
            options = SendOptions()
        elif not isinstance(options, SendOptions):
            options = SendOptions.from_mapping(options)
        tagged = Content.from_value(content)

        if should_refuse(chat_id, tagged, options, self._policy):
            return None

        resolved = resolve_send(tagged, options)
        resolved = await self._prepare_sticker(resolved, options)

        chat = await self._host.get_chat(chat_id)
        if chat is None:
            LOGGER.info("Send skipped: chat %s not found", chat_id)
            return None

        if resolved.send_seen:
            await self._host.send_seen(chat_id)

        sent = await self._host.send_message(chat, resolved.body, resolved.options.to_host())
        if sent is None:
            return None
        return self._host.message_view(sent)

    async def _prepare_sticker(self, resolved: ResolvedSend, options: SendOptions) -> ResolvedSend:
        internal = resolved.options
        if not (internal.send_media_as_sticker and internal.media is not None):
            return resolved
        metadata = {
            "name": options.sticker_name,
            "author": options.sticker_author,
            "categories": list(options.sticker_categories) if options.sticker_categories else None,
        }
        sticker = await self._host.format_sticker(internal.media, metadata)
        return replace(resolved, options=replace(internal, media=sticker))
