"""Tests for event decoding and batch processing."""

import copy
import logging
import sys
from unittest.mock import MagicMock
import os

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from vkteams.events import (
    KNOWN_EVENT_TYPES,
    CallbackQueryEvent,
    ChangedChatInfoEvent,
    DecodeErrorEvent,
    DeletedMessageEvent,
    EditedMessageEvent,
    LeftChatMemberEvent,
    NewChatMembersEvent,
    NewMessageEvent,
    PinnedMessageEvent,
    UnknownEvent,
    UnpinnedMessageEvent,
    decode_event,
    last_event_id,
    parse_chat,
    parse_user,
    process_events,
)
from vkteams.models import ChatType


MESSAGE_PAYLOAD = {
    "msgId": "123",
    "text": "Hello",
    "timestamp": 1234567890,
    "chat": {"chatId": "chat123", "type": "private"},
    "from": {"userId": "user123", "firstName": "John"},
}

CHAT = {"chatId": "group@chat.agent", "type": "group", "title": "Team", "public": False}


def _envelope(event_type, payload, event_id=1) -> dict:
    return {"eventId": event_id, "eventType": event_type, "payload": payload}


# ── Shared parsers ───────────────────────────────────────────────────────────


class TestParsers:
    def test_absent_sub_objects(self) -> None:
        assert parse_chat(None) is None
        assert parse_user(None) is None

    def test_chat(self) -> None:
        chat = parse_chat(CHAT)
        assert chat.id == "group@chat.agent"
        assert chat.type is ChatType.group
        assert chat.public is False

    def test_unrecognised_chat_type_kept_as_text(self) -> None:
        event = decode_event(_envelope("newMessage", {"msgId": "1", "chat": {"chatId": "c", "type": "supergroup"}}))
        assert isinstance(event, NewMessageEvent)
        assert event.message.chat.type == "supergroup"


# ── Known variants ───────────────────────────────────────────────────────────


class TestMessageEvents:
    def test_new_message_scenario(self) -> None:
        event = decode_event(_envelope("newMessage", MESSAGE_PAYLOAD))
        assert isinstance(event, NewMessageEvent)
        assert event.message.id == "123"
        assert event.message.text == "Hello"
        assert event.message.timestamp == 1234567890
        assert event.message.chat.id == "chat123"
        assert event.message.chat.type is ChatType.private
        assert event.message.from_field.id == "user123"
        assert event.message.from_field.first_name == "John"

    @pytest.mark.parametrize("tag,cls", [
        ("newMessage", NewMessageEvent),
        ("editedMessage", EditedMessageEvent),
        ("deletedMessage", DeletedMessageEvent),
        ("pinnedMessage", PinnedMessageEvent),
        ("unpinnedMessage", UnpinnedMessageEvent),
    ])
    def test_variant(self, tag, cls) -> None:
        event = decode_event(_envelope(tag, MESSAGE_PAYLOAD))
        assert type(event) is cls
        assert event.event_type == tag
        assert event.message.id == "123"

    def test_partial_payload(self) -> None:
        event = decode_event(_envelope("newMessage", {"msgId": "9", "text": "x"}))
        assert isinstance(event, NewMessageEvent)
        assert event.message.chat is None
        assert event.message.from_field is None

    def test_missing_payload(self) -> None:
        event = decode_event({"eventType": "deletedMessage"})
        assert isinstance(event, DeletedMessageEvent)
        assert event.message is None


class TestChatEvents:
    def test_new_chat_members(self) -> None:
        event = decode_event(_envelope("newChatMembers", {
            "chat": CHAT,
            "newMembers": [{"userId": "u1", "firstName": "Ann"}, {"userId": "u2", "nick": "bob"}],
        }))
        assert isinstance(event, NewChatMembersEvent)
        assert event.chat.title == "Team"
        assert [m.id for m in event.new_members] == ["u1", "u2"]
        assert event.new_members[1].nick == "bob"

    def test_new_chat_members_without_list(self) -> None:
        event = decode_event(_envelope("newChatMembers", {"chat": CHAT}))
        assert event.new_members == []

    def test_left_chat_member(self) -> None:
        event = decode_event(_envelope("leftChatMember", {
            "chat": CHAT,
            "leftMember": {"userId": "u3", "lastName": "Smith"},
        }))
        assert isinstance(event, LeftChatMemberEvent)
        assert event.chat.id == "group@chat.agent"
        assert event.left_member.id == "u3"
        assert event.left_member.last_name == "Smith"

    def test_changed_chat_info(self) -> None:
        event = decode_event(_envelope("changedChatInfo", CHAT))
        assert isinstance(event, ChangedChatInfoEvent)
        assert event.chat.title == "Team"


class TestCallbackQueryEvent:
    def test_scenario(self) -> None:
        event = decode_event(_envelope("callbackQuery", {
            "queryId": "q1", "callbackData": "btn1", "from": {"userId": "u1"},
        }))
        assert isinstance(event, CallbackQueryEvent)
        assert event.query.id == "q1"
        assert event.query.data == "btn1"
        assert event.query.from_field.id == "u1"
        assert event.query.message is None

    def test_with_message(self) -> None:
        event = decode_event(_envelope("callbackQuery", {
            "queryId": "q2", "callbackData": "yes", "message": MESSAGE_PAYLOAD,
        }))
        assert event.query.message.chat.id == "chat123"


def test_all_nine_types_known() -> None:
    assert KNOWN_EVENT_TYPES == {
        "newMessage", "editedMessage", "deletedMessage", "pinnedMessage", "unpinnedMessage",
        "newChatMembers", "leftChatMember", "changedChatInfo", "callbackQuery",
    }


# ── Fallbacks ────────────────────────────────────────────────────────────────


class TestUnknownEvent:
    def test_unrecognised_tag(self) -> None:
        raw = _envelope("reactionAdded", {"emoji": ":)"})
        original = copy.deepcopy(raw)
        event = decode_event(raw)
        assert isinstance(event, UnknownEvent)
        assert event.type_tag == "reactionAdded"
        assert event.raw_event == original
        assert raw == original

    def test_missing_tag(self) -> None:
        event = decode_event({"payload": {}})
        assert isinstance(event, UnknownEvent)
        assert event.type_tag is None

    def test_non_string_tag(self) -> None:
        event = decode_event({"eventType": ["newMessage"]})
        assert isinstance(event, UnknownEvent)


class TestDecodeError:
    @pytest.mark.parametrize("raw", [
        _envelope("newMessage", "not an object"),
        _envelope("newMessage", {"msgId": "1", "chat": "chat123"}),
        _envelope("newMessage", {"msgId": "1", "timestamp": "yesterday"}),
        _envelope("newChatMembers", {"newMembers": 5}),
        _envelope("newChatMembers", ["u1"]),
        _envelope("leftChatMember", {"leftMember": "u1"}),
        _envelope("callbackQuery", {"queryId": "q", "from": [1, 2]}),
        _envelope("changedChatInfo", {"chatId": "c", "type": ["group"]}),
    ])
    def test_malformed_payload(self, raw) -> None:
        original = copy.deepcopy(raw)
        event = decode_event(raw)
        assert isinstance(event, DecodeErrorEvent)
        assert event.error.startswith("Failed to decode event")
        assert event.raw_event == original

    @pytest.mark.parametrize("raw", [None, "newMessage", 42, ["a"]])
    def test_envelope_not_an_object(self, raw) -> None:
        event = decode_event(raw)
        assert isinstance(event, DecodeErrorEvent)
        assert event.raw_event == raw


# ── Batch processing ─────────────────────────────────────────────────────────


class TestProcessEvents:
    def test_order_and_malformed_middle(self) -> None:
        seen = []
        batch = [
            _envelope("newMessage", MESSAGE_PAYLOAD, 1),
            _envelope("newMessage", {"chat": 7}, 2),
            _envelope("callbackQuery", {"queryId": "q1"}, 3),
        ]
        process_events(batch, seen.append)
        assert len(seen) == 3
        assert isinstance(seen[0], NewMessageEvent)
        assert isinstance(seen[1], DecodeErrorEvent)
        assert isinstance(seen[2], CallbackQueryEvent)

    def test_handler_failure_does_not_abort(self) -> None:
        calls = []

        def handler(event) -> None:
            calls.append(event)
            if len(calls) == 1:
                raise RuntimeError("boom")

        decoded = process_events([_envelope("newMessage", MESSAGE_PAYLOAD, i) for i in range(3)], handler)
        assert len(calls) == 3
        assert len(decoded) == 3

    def test_empty_batch(self) -> None:
        assert process_events([], lambda e: None) == []


class TestLastEventId:
    def test_highest_id(self) -> None:
        assert last_event_id([{"eventId": 3}, {"eventId": 7}, {"eventId": 5}]) == 7

    def test_default_kept(self) -> None:
        assert last_event_id([], default=12) == 12
        assert last_event_id([{"eventId": 2}], default=12) == 12

    def test_ignores_garbage(self) -> None:
        assert last_event_id([None, {"eventId": "9"}, {"eventId": True}, {"eventId": 4}]) == 4


# ── Injected logger ──────────────────────────────────────────────────────────


class TestInjectedLogger:
    def test_malformed_envelope_reported(self) -> None:
        log = MagicMock(spec=logging.Logger)
        event = decode_event(_envelope("newMessage", "not an object"), log)
        assert isinstance(event, DecodeErrorEvent)
        log.warning.assert_called_once()
        assert log.warning.call_args.args[0] == "Failed to decode event"

    def test_valid_event_not_reported(self) -> None:
        log = MagicMock(spec=logging.Logger)
        decode_event(_envelope("newMessage", MESSAGE_PAYLOAD), log)
        log.warning.assert_not_called()
        log.error.assert_not_called()

    def test_handler_failure_reported(self) -> None:
        log = MagicMock(spec=logging.Logger)

        def handler(event) -> None:
            raise RuntimeError("boom")

        process_events([_envelope("newMessage", MESSAGE_PAYLOAD)], handler, log)
        log.error.assert_called_once()
        assert log.error.call_args.kwargs["extra"]["error"] == "boom"
        assert log.error.call_args.kwargs["exc_info"] is True

    def test_batch_decode_failure_reported_to_same_logger(self) -> None:
        log = MagicMock(spec=logging.Logger)
        process_events([_envelope("leftChatMember", {"leftMember": "u1"})], lambda e: None, log)
        log.warning.assert_called_once()
