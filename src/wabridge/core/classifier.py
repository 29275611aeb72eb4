"""Event classification (core domain).

Subscribes to host mutation topics and maps each raw notification to zero or
more domain events on the output channel. The only state is the revoke
correlation slot and the ciphertext tracker, both owned by the instance.

Classification rules:
- Added, newly created messages emit ``message_create`` and, unless authored
  locally, ``message_received``. Group system messages emit the group event
  for their subtype instead.
- Ciphertext placeholders emit ``message_ciphertext`` at once; the created /
  received pair follows on the message's first type change.
- A type change to ``revoked`` emits ``message_revoke_everyone`` with the
  remembered original when its id matches.
- Edits of revoked messages are suppressed.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional, Sequence

from wabridge.core.config import REACTION_TABLE_MIN_VERSION
from wabridge.core.correlation import CiphertextTracker, CorrelationState
from wabridge.core.events import DomainEvent, EventName
from wabridge.core.models import (
    CIPHERTEXT_TYPE,
    GROUP_NOTIFICATION_TYPE,
    TEMPLATE_NOTIFICATION_TYPE,
    BatteryState,
    MessageView,
)
from wabridge.core.ports import HostEventSource, OutputChannel, Topic
from wabridge.core.reactions import ReactionAdapter, select_reaction_adapter

LOGGER = logging.getLogger(__name__)

GROUP_SUBTYPE_EVENTS = {
    "add": EventName.GROUP_JOIN,
    "invite": EventName.GROUP_JOIN,
    "linked_group_join": EventName.GROUP_JOIN,
    "remove": EventName.GROUP_LEAVE,
    "leave": EventName.GROUP_LEAVE,
    "promote": EventName.GROUP_ADMIN_CHANGED,
    "demote": EventName.GROUP_ADMIN_CHANGED,
    "membership_approval_request": EventName.GROUP_MEMBERSHIP_REQUEST,
}


class EventClassifier:
    """Turns host notifications into domain events."""

    def __init__(
        self,
        host: HostEventSource,
        channel: OutputChannel,
        correlation: Optional[CorrelationState] = None,
        tracker: Optional[CiphertextTracker] = None,
        reaction_table_min_version: str = REACTION_TABLE_MIN_VERSION,
    ) -> None:
        self._host = host
        self._channel = channel
        self.correlation = correlation if correlation is not None else CorrelationState()
        self.tracker = tracker if tracker is not None else CiphertextTracker()
        self._reaction_threshold = reaction_table_min_version
        self.reaction_adapter: Optional[ReactionAdapter] = None
        self._attached = False

    def attach(self) -> None:
        """Subscribe once to every host topic and install the reaction hook."""

        if self._attached:
            return
        handlers: dict[Topic, Callable[..., None]] = {
            Topic.MESSAGE_ADD: self.on_message_added,
            Topic.MESSAGE_CHANGE: self.on_message_changed,
            Topic.MESSAGE_TYPE_CHANGE: self.on_message_type_changed,
            Topic.MESSAGE_ACK: self.on_message_ack,
            Topic.MESSAGE_UNSENT_MEDIA: self.on_unsent_media_changed,
            Topic.MESSAGE_REMOVE: self.on_message_removed,
            Topic.MESSAGE_BODY_CHANGE: self.on_message_edited,
            Topic.MESSAGE_CAPTION_CHANGE: self.on_message_edited,
            Topic.APP_STATE_CHANGE: self.on_app_state_changed,
            Topic.BATTERY_CHANGE: self.on_battery_changed,
            Topic.CALL_ADD: self.on_incoming_call,
            Topic.CHAT_REMOVE: self.on_chat_removed,
            Topic.CHAT_ARCHIVE_CHANGE: self.on_chat_archived,
            Topic.CHAT_UNREAD_CHANGE: self.on_unread_count_changed,
            Topic.POLL_VOTE_ADD: self.on_poll_vote_added,
        }
        for topic, handler in handlers.items():
            self._host.subscribe(topic, handler)

        self.reaction_adapter = select_reaction_adapter(self._host.version, self._reaction_threshold)
        self._host.intercept_reaction_batch(self.reaction_adapter.entry_point, self.on_reaction_batch)
        self._attached = True
        LOGGER.info(
            "Classifier attached to host %s (reactions via %s)",
            self._host.version,
            self.reaction_adapter.entry_point,
        )

    def _emit(self, name: EventName, *args: Any) -> None:
        LOGGER.debug("Emitting %s", name.value)
        self._channel.emit(DomainEvent(name, args))

    # Messages

    def on_message_added(self, raw: Any) -> None:
        message = self._host.message_view(raw)
        # Historical backfill arrives with is_new_msg unset.
        if not message.is_new_msg:
            return
        if message.type == CIPHERTEXT_TYPE:
            self.tracker.await_resolution(message)
            self._emit(EventName.MESSAGE_CIPHERTEXT, message)
            return
        self._classify_added(message)

    def _classify_added(self, message: MessageView) -> None:
        if message.type == GROUP_NOTIFICATION_TYPE:
            name = GROUP_SUBTYPE_EVENTS.get(message.subtype or "", EventName.GROUP_UPDATE)
            self._emit(name, message)
            return

        self._emit(EventName.MESSAGE_CREATE, message)
        if message.from_me:
            return
        self._emit(EventName.MESSAGE_RECEIVED, message)

    def on_message_changed(self, raw: Any) -> None:
        message = self._host.message_view(raw)
        self.correlation.remember(message)

        is_participant = message.type == GROUP_NOTIFICATION_TYPE and message.subtype == "modify"
        is_contact = (
            message.type == TEMPLATE_NOTIFICATION_TYPE and message.subtype == "change_number"
        )
        if not (is_participant or is_contact):
            return

        if is_participant:
            new_id = message.recipients[0] if message.recipients else None
            old_id = message.author
        else:
            new_id = message.to
            old_id = next((wid for wid in message.template_params if wid != new_id), None)
        self._emit(EventName.CONTACT_CHANGED, message, old_id, new_id, is_contact)

    def on_message_type_changed(self, raw: Any) -> None:
        message = self._host.message_view(raw)
        self.correlation.remember(message)

        if message.is_revoked:
            original = self.correlation.original_for(message)
            self._emit(EventName.MESSAGE_REVOKED_EVERYONE, message, original)

        if message.type != CIPHERTEXT_TYPE and self.tracker.resolve(message):
            self._classify_added(message)

    def on_message_ack(self, raw: Any, ack: int) -> None:
        self._emit(EventName.MESSAGE_ACK, self._host.message_view(raw), ack)

    def on_unsent_media_changed(self, raw: Any, unsent: bool) -> None:
        message = self._host.message_view(raw)
        if message.from_me and not unsent:
            self._emit(EventName.MEDIA_UPLOADED, message)

    def on_message_removed(self, raw: Any) -> None:
        message = self._host.message_view(raw)
        self.tracker.forget(message)
        if not message.is_new_msg:
            return
        self._emit(EventName.MESSAGE_REVOKED_ME, message)

    def on_message_edited(self, raw: Any, new_body: Optional[str], prev_body: Optional[str]) -> None:
        message = self._host.message_view(raw)
        if message.is_revoked:
            return
        self._emit(EventName.MESSAGE_EDIT, message, new_body, prev_body)

    # Connection, calls and chats

    def on_app_state_changed(self, state: str) -> None:
        self._emit(EventName.STATE_CHANGED, state)

    def on_battery_changed(self, payload: Any) -> None:
        level = payload.get("battery")
        if level is None:
            return
        self._emit(EventName.BATTERY_CHANGED, BatteryState(level=level, plugged=bool(payload.get("plugged"))))

    def on_incoming_call(self, raw: Any) -> None:
        self._emit(EventName.INCOMING_CALL, self._host.call_view(raw))

    def on_chat_removed(self, raw: Any) -> None:
        self._emit(EventName.CHAT_REMOVED, self._host.chat_view(raw))

    def on_chat_archived(self, raw: Any, current: bool, previous: bool) -> None:
        self._emit(EventName.CHAT_ARCHIVED, self._host.chat_view(raw), current, previous)

    def on_unread_count_changed(self, raw: Any) -> None:
        self._emit(EventName.UNREAD_COUNT, self._host.chat_view(raw))

    def on_poll_vote_added(self, raw: Any) -> None:
        vote = self._host.poll_vote_view(raw)
        if vote is None:
            return
        self._emit(EventName.VOTE_UPDATE, vote)

    # Reactions

    def on_reaction_batch(self, batch: Sequence[Any], proceed: Callable[[Sequence[Any]], Any]) -> Any:
        """Emit one reaction event per record, then run the original update."""

        try:
            for record in batch:
                self._emit(EventName.MESSAGE_REACTION, self.reaction_adapter.normalize(record))
        finally:
            result = proceed(batch)
        return result
