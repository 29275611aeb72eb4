from __future__ import annotations

from dataclasses import replace
from typing import Any, Callable

from wabridge.core.classifier import EventClassifier
from wabridge.core.events import DomainEvent, EventName
from wabridge.core.models import MessageKey, MessageView
from wabridge.core.ports import Topic


class FakeHost:
    """Host whose raw payloads are already MessageView objects."""

    version = "2.3000.1015000000"

    def __init__(self) -> None:
        self.handlers: dict[Topic, list[Callable[..., None]]] = {}

    def subscribe(self, topic: Topic, handler: Callable[..., None]) -> None:
        self.handlers.setdefault(topic, []).append(handler)

    def intercept_reaction_batch(self, entry_point: str, hook) -> None:
        pass

    def message_view(self, raw: Any) -> MessageView:
        return raw

    def fire(self, topic: Topic, *args: Any) -> None:
        for handler in self.handlers.get(topic, []):
            handler(*args)


class RecordingChannel:
    def __init__(self) -> None:
        self.events: list[DomainEvent] = []

    def emit(self, event: DomainEvent) -> None:
        self.events.append(event)

    @property
    def names(self) -> list[EventName]:
        return [event.name for event in self.events]


def _msg(msg_id: str, type: str = "chat", *, from_me: bool = False, is_new: bool = True, **kwargs) -> MessageView:
    key = MessageKey(from_me=from_me, remote="123@c.us", id=msg_id)
    return MessageView(key=key, type=type, is_new_msg=is_new, **kwargs)


def _attached() -> tuple[FakeHost, RecordingChannel, EventClassifier]:
    host = FakeHost()
    channel = RecordingChannel()
    classifier = EventClassifier(host, channel)
    classifier.attach()
    return host, channel, classifier


def test_incoming_message_emits_create_then_received() -> None:
    host, channel, _ = _attached()
    message = _msg("A1", body="hi")

    host.fire(Topic.MESSAGE_ADD, message)

    assert channel.names == [EventName.MESSAGE_CREATE, EventName.MESSAGE_RECEIVED]
    assert all(event.args == (message,) for event in channel.events)


def test_local_message_emits_only_create() -> None:
    host, channel, _ = _attached()

    host.fire(Topic.MESSAGE_ADD, _msg("A1", from_me=True, body="hello"))

    assert channel.names == [EventName.MESSAGE_CREATE]


def test_historical_message_is_ignored() -> None:
    host, channel, _ = _attached()

    host.fire(Topic.MESSAGE_ADD, _msg("A1", is_new=False))

    assert channel.events == []


def test_ciphertext_defers_create_until_type_changes() -> None:
    host, channel, classifier = _attached()
    placeholder = _msg("C1", "ciphertext")

    host.fire(Topic.MESSAGE_ADD, placeholder)
    assert channel.names == [EventName.MESSAGE_CIPHERTEXT]
    assert classifier.tracker.pending_count == 1

    decrypted = replace(placeholder, type="chat", body="secret")
    host.fire(Topic.MESSAGE_TYPE_CHANGE, decrypted)
    assert channel.names == [
        EventName.MESSAGE_CIPHERTEXT,
        EventName.MESSAGE_CREATE,
        EventName.MESSAGE_RECEIVED,
    ]
    assert channel.events[1].args == (decrypted,)

    # The follow-up is one-shot.
    host.fire(Topic.MESSAGE_TYPE_CHANGE, replace(decrypted, type="image"))
    assert len(channel.events) == 3
    assert classifier.tracker.pending_count == 0


def test_type_change_of_untracked_message_does_not_create() -> None:
    host, channel, _ = _attached()

    host.fire(Topic.MESSAGE_TYPE_CHANGE, _msg("X1", "image"))

    assert channel.events == []


def test_revoke_carries_original_when_ids_match() -> None:
    host, channel, _ = _attached()
    original = _msg("R1", body="to be deleted")

    host.fire(Topic.MESSAGE_CHANGE, original)
    revoked = replace(original, type="revoked", body="")
    host.fire(Topic.MESSAGE_TYPE_CHANGE, revoked)

    assert channel.events == [DomainEvent(EventName.MESSAGE_REVOKED_EVERYONE, (revoked, original))]


def test_revoke_loses_original_after_unrelated_change() -> None:
    host, channel, _ = _attached()
    original = _msg("R1", body="first")

    host.fire(Topic.MESSAGE_CHANGE, original)
    host.fire(Topic.MESSAGE_CHANGE, _msg("N1", body="second"))
    host.fire(Topic.MESSAGE_TYPE_CHANGE, replace(original, type="revoked"))

    assert channel.names == [EventName.MESSAGE_REVOKED_EVERYONE]
    assert channel.events[0].args[1] is None


def test_revoked_change_does_not_overwrite_correlation() -> None:
    host, _, classifier = _attached()
    original = _msg("R1")

    host.fire(Topic.MESSAGE_CHANGE, original)
    host.fire(Topic.MESSAGE_CHANGE, _msg("R2", "revoked"))

    assert classifier.correlation.last_message == original


def test_edit_emits_new_and_previous_body() -> None:
    host, channel, _ = _attached()
    message = _msg("E1", body="new")

    host.fire(Topic.MESSAGE_BODY_CHANGE, message, "new", "old")
    host.fire(Topic.MESSAGE_CAPTION_CHANGE, message, "cap2", "cap1")

    assert channel.events == [
        DomainEvent(EventName.MESSAGE_EDIT, (message, "new", "old")),
        DomainEvent(EventName.MESSAGE_EDIT, (message, "cap2", "cap1")),
    ]


def test_edit_of_revoked_message_is_suppressed() -> None:
    host, channel, _ = _attached()

    host.fire(Topic.MESSAGE_BODY_CHANGE, _msg("E1", "revoked"), "", "old")

    assert channel.events == []


def test_group_subtypes_map_to_group_events() -> None:
    host, channel, _ = _attached()
    expected = {
        "add": EventName.GROUP_JOIN,
        "invite": EventName.GROUP_JOIN,
        "linked_group_join": EventName.GROUP_JOIN,
        "remove": EventName.GROUP_LEAVE,
        "leave": EventName.GROUP_LEAVE,
        "promote": EventName.GROUP_ADMIN_CHANGED,
        "demote": EventName.GROUP_ADMIN_CHANGED,
        "membership_approval_request": EventName.GROUP_MEMBERSHIP_REQUEST,
        "subject": EventName.GROUP_UPDATE,
    }
    for index, subtype in enumerate(expected):
        host.fire(Topic.MESSAGE_ADD, _msg(f"G{index}", "gp2", subtype=subtype))

    assert channel.names == list(expected.values())
    assert EventName.MESSAGE_CREATE not in channel.names


def test_participant_modify_emits_contact_changed() -> None:
    host, channel, _ = _attached()
    message = _msg(
        "P1",
        "gp2",
        subtype="modify",
        author="111@c.us",
        recipients=("222@c.us",),
    )

    host.fire(Topic.MESSAGE_CHANGE, message)

    assert channel.events == [
        DomainEvent(EventName.CONTACT_CHANGED, (message, "111@c.us", "222@c.us", False))
    ]


def test_number_change_notification_emits_contact_changed() -> None:
    host, channel, _ = _attached()
    message = _msg(
        "N1",
        "notification_template",
        subtype="change_number",
        to="222@c.us",
        template_params=("222@c.us", "111@c.us"),
    )

    host.fire(Topic.MESSAGE_CHANGE, message)

    assert channel.events == [
        DomainEvent(EventName.CONTACT_CHANGED, (message, "111@c.us", "222@c.us", True))
    ]


def test_removed_message_only_emits_for_new_messages() -> None:
    host, channel, _ = _attached()
    fresh = _msg("D1")

    host.fire(Topic.MESSAGE_REMOVE, fresh)
    host.fire(Topic.MESSAGE_REMOVE, _msg("D2", is_new=False))

    assert channel.events == [DomainEvent(EventName.MESSAGE_REVOKED_ME, (fresh,))]


def test_ack_is_emitted_unconditionally() -> None:
    host, channel, _ = _attached()
    message = _msg("K1", from_me=True, is_new=False)

    host.fire(Topic.MESSAGE_ACK, message, 3)

    assert channel.events == [DomainEvent(EventName.MESSAGE_ACK, (message, 3))]


def test_media_uploaded_requires_local_author_and_finished_upload() -> None:
    host, channel, _ = _attached()
    mine = _msg("M1", "image", from_me=True)

    host.fire(Topic.MESSAGE_UNSENT_MEDIA, mine, True)
    host.fire(Topic.MESSAGE_UNSENT_MEDIA, _msg("M2", "image"), False)
    host.fire(Topic.MESSAGE_UNSENT_MEDIA, mine, False)

    assert channel.events == [DomainEvent(EventName.MEDIA_UPLOADED, (mine,))]


def test_type_change_also_refreshes_correlation() -> None:
    host, channel, _ = _attached()
    original = _msg("T1", "image", body="photo")

    host.fire(Topic.MESSAGE_TYPE_CHANGE, original)
    host.fire(Topic.MESSAGE_TYPE_CHANGE, replace(original, type="revoked"))

    assert channel.events == [
        DomainEvent(EventName.MESSAGE_REVOKED_EVERYONE, (replace(original, type="revoked"), original))
    ]


def test_removed_placeholder_is_no_longer_tracked() -> None:
    host, channel, classifier = _attached()
    placeholder = _msg("C2", "ciphertext")

    host.fire(Topic.MESSAGE_ADD, placeholder)
    host.fire(Topic.MESSAGE_REMOVE, placeholder)
    host.fire(Topic.MESSAGE_TYPE_CHANGE, replace(placeholder, type="chat"))

    assert classifier.tracker.pending_count == 0
    assert not classifier.tracker.is_pending(placeholder)
    assert channel.names == [EventName.MESSAGE_CIPHERTEXT, EventName.MESSAGE_REVOKED_ME]
