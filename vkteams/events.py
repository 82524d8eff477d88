"""Event decoding: raw ``events/get`` envelopes → typed domain events.

An envelope looks like ``{"eventId": 7, "type": ..., "eventType": "newMessage",
"payload": {...}}``.  :func:`decode_event` classifies it by ``eventType`` and
parses the payload into one variant of the closed :data:`DomainEvent` union.
Unrecognised tags become :class:`UnknownEvent`; anything that fails to parse
becomes :class:`DecodeErrorEvent`.  Both keep the original envelope.

Decoding is stateless and never raises.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, ClassVar, Dict, Iterable, List, Mapping, Optional, Protocol, Union

from pydantic import BaseModel, Field

from vkteams.models import CallbackQuery, Chat, Message, User

_sdk_logger = logging.getLogger("vkteams.sdk.events")


# ── Shared payload parsers ───────────────────────────────────────────────────


def parse_chat(data: Any) -> Optional[Chat]:
    return None if data is None else Chat.model_validate(data)


def parse_user(data: Any) -> Optional[User]:
    return None if data is None else User.model_validate(data)


def parse_message(data: Any) -> Optional[Message]:
    return None if data is None else Message.model_validate(data)


def parse_callback_query(data: Any) -> Optional[CallbackQuery]:
    return None if data is None else CallbackQuery.model_validate(data)


# ── Variants ─────────────────────────────────────────────────────────────────


class _Event(BaseModel):
    event_type: ClassVar[str] = ""

    model_config = {"frozen": True}


class NewMessageEvent(_Event):
    event_type: ClassVar[str] = "newMessage"
    message: Optional[Message] = None


class EditedMessageEvent(_Event):
    event_type: ClassVar[str] = "editedMessage"
    message: Optional[Message] = None


class DeletedMessageEvent(_Event):
    event_type: ClassVar[str] = "deletedMessage"
    message: Optional[Message] = None


class PinnedMessageEvent(_Event):
    event_type: ClassVar[str] = "pinnedMessage"
    message: Optional[Message] = None


class UnpinnedMessageEvent(_Event):
    event_type: ClassVar[str] = "unpinnedMessage"
    message: Optional[Message] = None


class NewChatMembersEvent(_Event):
    event_type: ClassVar[str] = "newChatMembers"
    chat: Optional[Chat] = None
    new_members: List[User] = Field(default_factory=list)


class LeftChatMemberEvent(_Event):
    event_type: ClassVar[str] = "leftChatMember"
    chat: Optional[Chat] = None
    left_member: Optional[User] = None


class ChangedChatInfoEvent(_Event):
    event_type: ClassVar[str] = "changedChatInfo"
    chat: Optional[Chat] = None


class CallbackQueryEvent(_Event):
    event_type: ClassVar[str] = "callbackQuery"
    query: Optional[CallbackQuery] = None


class UnknownEvent(_Event):
    """Envelope whose ``eventType`` is not one of the known tags."""

    event_type: ClassVar[str] = "unknown"
    type_tag: Optional[str] = None
    raw_event: Any = None


class DecodeErrorEvent(_Event):
    """Envelope that declared a known type but could not be parsed."""

    event_type: ClassVar[str] = "error"
    error: str
    raw_event: Any = None


DomainEvent = Union[
    NewMessageEvent,
    EditedMessageEvent,
    DeletedMessageEvent,
    PinnedMessageEvent,
    UnpinnedMessageEvent,
    NewChatMembersEvent,
    LeftChatMemberEvent,
    ChangedChatInfoEvent,
    CallbackQueryEvent,
    UnknownEvent,
    DecodeErrorEvent,
]

MESSAGE_EVENTS = (
    NewMessageEvent,
    EditedMessageEvent,
    DeletedMessageEvent,
    PinnedMessageEvent,
    UnpinnedMessageEvent,
)


# ── Payload parsing per variant ──────────────────────────────────────────────


def _as_mapping(payload: Any) -> Mapping[str, Any]:
    if payload is None:
        return {}
    if not isinstance(payload, Mapping):
        raise TypeError(f"payload must be an object, got {type(payload).__name__}")
    return payload


def _parse_new_chat_members(payload: Any) -> NewChatMembersEvent:
    payload = _as_mapping(payload)
    members = [parse_user(item) for item in payload.get("newMembers") or []]
    return NewChatMembersEvent(
        chat=parse_chat(payload.get("chat")),
        new_members=[member for member in members if member is not None],
    )


def _parse_left_chat_member(payload: Any) -> LeftChatMemberEvent:
    payload = _as_mapping(payload)
    return LeftChatMemberEvent(
        chat=parse_chat(payload.get("chat")),
        left_member=parse_user(payload.get("leftMember")),
    )


_PAYLOAD_PARSERS: Dict[str, Callable[[Any], DomainEvent]] = {
    **{cls.event_type: (lambda payload, cls=cls: cls(message=parse_message(payload))) for cls in MESSAGE_EVENTS},
    NewChatMembersEvent.event_type: _parse_new_chat_members,
    LeftChatMemberEvent.event_type: _parse_left_chat_member,
    ChangedChatInfoEvent.event_type: lambda payload: ChangedChatInfoEvent(chat=parse_chat(payload)),
    CallbackQueryEvent.event_type: lambda payload: CallbackQueryEvent(query=parse_callback_query(payload)),
}

KNOWN_EVENT_TYPES = frozenset(_PAYLOAD_PARSERS)


def decode_event(raw_event: Any, logger: Optional[logging.Logger] = None) -> DomainEvent:
    """Decode one raw envelope.  Never raises."""
    log = logger or _sdk_logger
    try:
        if not isinstance(raw_event, Mapping):
            raise TypeError(f"event envelope must be an object, got {type(raw_event).__name__}")
        type_tag = raw_event.get("eventType")
        parser = _PAYLOAD_PARSERS.get(type_tag) if isinstance(type_tag, str) else None
        if parser is None:
            log.debug("Unknown event type", extra={"event_type": repr(type_tag)})
            return UnknownEvent(
                type_tag=type_tag if isinstance(type_tag, str) else None,
                raw_event=raw_event,
            )
        return parser(raw_event.get("payload"))
    except Exception as exc:
        log.warning("Failed to decode event", extra={"error": str(exc), "raw_event": raw_event})
        return DecodeErrorEvent(error=f"Failed to decode event: {exc}", raw_event=raw_event)


# ── Batch processing ─────────────────────────────────────────────────────────


class EventHandler(Protocol):
    """Anything that can receive every :data:`DomainEvent` variant."""

    def __call__(self, event: DomainEvent) -> Any: ...  # noqa: E704


def process_events(
    raw_events: Iterable[Any],
    handler: EventHandler,
    logger: Optional[logging.Logger] = None,
) -> List[DomainEvent]:
    """Decode *raw_events* in order and hand each one to *handler*.

    A handler exception is logged and the batch continues with the next
    event.  Returns the decoded events.
    """
    log = logger or _sdk_logger
    decoded: List[DomainEvent] = []
    for raw_event in raw_events:
        event = decode_event(raw_event, log)
        decoded.append(event)
        try:
            handler(event)
        except Exception as exc:
            log.error(
                "Error handling event",
                extra={"event_type": event.event_type, "error": str(exc)},
                exc_info=True,
            )
    return decoded


def last_event_id(raw_events: Iterable[Any], default: int = 0) -> int:
    """Highest integer ``eventId`` among *raw_events*, for the next poll."""
    ids = [
        raw.get("eventId")
        for raw in raw_events
        if isinstance(raw, Mapping) and isinstance(raw.get("eventId"), int) and not isinstance(raw.get("eventId"), bool)
    ]
    return max([default, *ids])
