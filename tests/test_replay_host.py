from __future__ import annotations

import asyncio
import json
from pathlib import Path

import pytest

from wabridge.adapters.host_models import chat_view_from_model, message_view_from_model
from wabridge.adapters.replay_host import ReplayHost, load_recording, parse_recording
from wabridge.core.classifier import EventClassifier
from wabridge.core.commands import CommandSurface
from wabridge.core.events import DomainEvent, EventName
from wabridge.core.pipeline import OutboundPipeline

SAMPLE = Path(__file__).resolve().parents[1] / "recordings" / "sample.jsonl"


class RecordingChannel:
    def __init__(self) -> None:
        self.events: list[DomainEvent] = []

    def emit(self, event: DomainEvent) -> None:
        self.events.append(event)


def test_message_model_mapping() -> None:
    view = message_view_from_model(
        {
            "id": {"fromMe": False, "remote": "1@g.us", "id": "X", "participant": {"_serialized": "2@c.us"}},
            "type": "gp2",
            "subtype": "modify",
            "author": {"user": "2", "server": "c.us"},
            "recipients": [{"_serialized": "3@c.us"}],
            "templateParams": ["3@c.us"],
            "isNewMsg": True,
            "t": 1700000000,
        }
    )

    assert view.key.serialized == "false_1@g.us_X_2@c.us"
    assert view.author == "2@c.us"
    assert view.recipients == ("3@c.us",)
    assert view.template_params == ("3@c.us",)
    assert view.is_new_msg is True
    assert view.timestamp == 1700000000


def test_chat_model_mapping() -> None:
    chat = chat_view_from_model({"id": "9@g.us", "formattedTitle": "Team", "archive": True, "pin": 1})

    assert (chat.id, chat.name, chat.is_group, chat.archived, chat.pinned) == ("9@g.us", "Team", True, True, True)


def test_parse_recording_skips_comments_and_rejects_unknown_lines() -> None:
    recording = parse_recording(
        [
            "# comment",
            "",
            json.dumps({"host": {"version": "2.2412.1"}}),
            json.dumps({"chat": {"id": {"_serialized": "1@c.us"}}}),
            json.dumps({"topic": "AppState:change:state", "args": ["OPENING"]}),
        ]
    )

    assert recording.version == "2.2412.1"
    assert list(recording.chats) == ["1@c.us"]
    assert len(recording.notifications) == 1

    with pytest.raises(ValueError, match="line 1"):
        parse_recording(["{not json"])
    with pytest.raises(ValueError, match="Unrecognized"):
        parse_recording([json.dumps({"something": 1})])


def test_sample_recording_replays_into_domain_events() -> None:
    host = ReplayHost(load_recording(str(SAMPLE)))
    channel = RecordingChannel()
    classifier = EventClassifier(host, channel)
    classifier.attach()

    assert host.replay() == 9

    assert [event.name for event in channel.events] == [
        EventName.MESSAGE_CREATE,
        EventName.MESSAGE_RECEIVED,
        EventName.MESSAGE_REVOKED_EVERYONE,
        EventName.MESSAGE_CIPHERTEXT,
        EventName.MESSAGE_CREATE,
        EventName.MESSAGE_RECEIVED,
        EventName.MESSAGE_ACK,
        EventName.BATTERY_CHANGED,
        EventName.STATE_CHANGED,
        EventName.MESSAGE_REACTION,
    ]
    revoke = channel.events[2]
    assert revoke.args[1] is not None
    assert revoke.args[1].body == "hello"
    assert channel.events[4].args[0].body == "decrypted"
    assert len(host.reaction_store) == 1
    assert classifier.tracker.pending_count == 0


def test_unintercepted_reactions_are_stored_directly() -> None:
    host = ReplayHost()

    host.apply_reactions("AddonReactionTable.bulkUpsert", [{"id": "x"}])

    assert host.reaction_store == [{"id": "x"}]


def test_dry_run_send_is_recorded_and_reported_as_created() -> None:
    host = ReplayHost(accept_unknown_chats=True)
    channel = RecordingChannel()
    EventClassifier(host, channel).attach()
    pipeline = OutboundPipeline(host)

    sent = asyncio.run(pipeline.send("1@c.us", "hi"))

    assert sent is not None
    assert sent.from_me is True
    assert host.seen == ["1@c.us"]
    assert [call.body for call in host.sent] == ["hi"]
    assert [event.name for event in channel.events] == [EventName.MESSAGE_CREATE]


def test_unknown_chat_is_rejected_by_default() -> None:
    host = ReplayHost()

    assert asyncio.run(OutboundPipeline(host).send("1@c.us", "hi")) is None
    assert host.sent == []


def _admin_recording():
    return parse_recording(
        [
            json.dumps({"host": {"platform": "smba", "labels": [{"id": "1"}, {"id": "2"}]}}),
            json.dumps({"chat": {"id": "120363@newsletter", "inviteCode": "NEWS", "name": "News"}}),
            json.dumps(
                {
                    "chat": {
                        "id": "1@c.us",
                        "labels": ["2"],
                        "devices": [0, 12],
                        "profilePicUrl": "https://pps.example/1.jpg",
                        "endOfHistoryTransferType": 0,
                    }
                }
            ),
        ]
    )


def test_command_surface_runs_against_replay_host() -> None:
    host = ReplayHost(_admin_recording())
    surface = CommandSurface(host)

    async def _run():
        channel = await surface.get_channel_by_invite_code("NEWS")
        missing = await surface.get_channel_by_invite_code("NOPE")
        accepted = await surface.accept_channel_admin_invite("999@newsletter")
        picture = await surface.get_profile_pic_url("1@c.us")
        number = await surface.get_number_id("1")
        devices = await surface.get_contact_device_count("1@c.us")
        await surface.add_or_remove_labels(["1"], ["1@c.us"])
        synced = await surface.sync_history("1@c.us")
        return channel, missing, accepted, picture, number, devices, synced

    channel, missing, accepted, picture, number, devices, synced = asyncio.run(_run())

    assert channel is not None and channel.name == "News"
    assert missing is None
    assert accepted is False
    assert picture == "https://pps.example/1.jpg"
    assert number == "1@c.us"
    assert devices == 2
    assert synced is True
    assert asyncio.run(host.get_chat_labels(["1@c.us"])) == {"1@c.us": ["1"]}
    assert host.admin_calls[-1] == ("request_history_sync", "1@c.us")


def test_replayed_messages_are_cached_for_lookup() -> None:
    host = ReplayHost(load_recording(str(SAMPLE)))
    host.replay()

    message = asyncio.run(CommandSurface(host).get_message_by_id("false_15551234567@c.us_3EB0B2"))

    assert message is not None
    assert message.body == "decrypted"
