"""Event router — single source of truth for event variant → handler mapping.

An :class:`EventRouter` is the handler passed to
:func:`vkteams.events.process_events`.  Callbacks are registered either per
variant class::

    router = EventRouter()

    @router.on(NewChatMembersEvent)
    def greet(event: NewChatMembersEvent) -> None: ...

or through the shorthand slots: *on_message* receives the ``Message`` of new
and edited messages, *on_callback* the ``CallbackQuery``, *on_chat_event*
the whole membership / chat-info event.  Everything without a route goes to
*default* — including ``UnknownEvent`` and ``DecodeErrorEvent``.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Any, Callable, Optional

from vkteams.events import (
    CallbackQueryEvent,
    ChangedChatInfoEvent,
    DomainEvent,
    EditedMessageEvent,
    LeftChatMemberEvent,
    NewChatMembersEvent,
    NewMessageEvent,
)
from vkteams.models import CallbackQuery, Message

EventCallback = Callable[[DomainEvent], Any]

CHAT_EVENTS = (NewChatMembersEvent, LeftChatMemberEvent, ChangedChatInfoEvent)


@dataclasses.dataclass(frozen=True, slots=True)
class Route:
    """A registered callback for one event variant."""

    event_class: type
    handler: EventCallback
    description: str = ""


class EventRouter:
    """Dispatch each decoded event to the callback registered for its variant."""

    def __init__(
        self,
        on_message: Optional[Callable[[Optional[Message]], Any]] = None,
        on_callback: Optional[Callable[[Optional[CallbackQuery]], Any]] = None,
        on_chat_event: Optional[EventCallback] = None,
        default: Optional[EventCallback] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._routes: dict[type, Route] = {}
        self._default = default
        self._logger = logger or logging.getLogger("vkteams.bot.router")

        if on_message is not None:
            for cls in (NewMessageEvent, EditedMessageEvent):
                self.add(cls, lambda event, fn=on_message: fn(event.message), "message handler")
        if on_callback is not None:
            self.add(CallbackQueryEvent, lambda event, fn=on_callback: fn(event.query), "callback handler")
        if on_chat_event is not None:
            for cls in CHAT_EVENTS:
                self.add(cls, on_chat_event, "chat event handler")

    # ── registration ─────────────────────────────────────────────────────

    def add(self, event_class: type, handler: EventCallback, description: str = "") -> None:
        self._routes[event_class] = Route(event_class, handler, description)

    def on(self, *event_classes: type, description: str = "") -> Callable[[EventCallback], EventCallback]:
        """Decorator that registers the decorated callback for *event_classes*."""
        def decorator(func: EventCallback) -> EventCallback:
            for cls in event_classes:
                self.add(cls, func, description)
            return func
        return decorator

    def set_default(self, handler: Optional[EventCallback]) -> None:
        self._default = handler

    # ── lookup helpers ───────────────────────────────────────────────────

    def get(self, event_class: type) -> Route | None:
        return self._routes.get(event_class)

    def routes(self) -> dict[type, Route]:
        """Return a copy of all registered routes."""
        return dict(self._routes)

    # ── dispatch ─────────────────────────────────────────────────────────

    def __call__(self, event: DomainEvent) -> Any:
        route = self._routes.get(type(event))
        self._logger.debug("Handling event", extra={"event_type": event.event_type, "routed": route is not None})
        if route is not None:
            return route.handler(event)
        if self._default is not None:
            return self._default(event)
        return None
