"""VK Teams Bot API SDK — session, client, event decoding and keyboards.

The :class:`VKTeamsClient` class wraps every bot API endpoint with
synchronous methods returning :class:`ApiResult`; ``get_events_async``
offloads the long poll to a worker thread.  :func:`decode_event` and
:func:`process_events` turn raw event envelopes into typed events.

Usage::

    from vkteams import VKTeamsClient, create_session
    from vkteams.events import NewMessageEvent, process_events

    client = VKTeamsClient(create_session("001.0123456789.0123456789:1000000000"))
    result = client.send_message("user@example.com", "Hello")
    if not result.ok:
        print(result.error)
"""

from vkteams.client import BotClient, VKTeamsClient, is_client
from vkteams.events import DomainEvent, decode_event, process_events
from vkteams.exceptions import (
    ApiError,
    ConfigError,
    NetworkError,
    RequestCancelled,
    RequestFailure,
    ValidationError,
    VKTeamsError,
)
from vkteams.models import ApiResult
from vkteams.session import BotConfig, BotSession, create_session, create_session_from_config

__all__ = [
    "BotClient",
    "VKTeamsClient",
    "is_client",
    "BotConfig",
    "BotSession",
    "create_session",
    "create_session_from_config",
    "ApiResult",
    "DomainEvent",
    "decode_event",
    "process_events",
    "VKTeamsError",
    "ValidationError",
    "ConfigError",
    "RequestFailure",
    "ApiError",
    "NetworkError",
    "RequestCancelled",
]
