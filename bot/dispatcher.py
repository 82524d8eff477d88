"""Long-polling loop.

Fetches event batches with ``events/get`` and hands every batch to
:func:`vkteams.events.process_events` in a worker thread, so handlers may
call the blocking client without stalling the event loop.  Events inside a
batch are handled in order; the highest ``eventId`` of batch N becomes the
``lastEventId`` of poll N+1.
"""

import asyncio
import logging
from typing import Any, Optional

from vkteams.client import DEFAULT_POLL_TIME, VKTeamsClient
from vkteams.events import EventHandler, last_event_id, process_events

logger = logging.getLogger("vkteams.bot.dispatcher")

ERROR_PAUSE: float = 5.0


async def _pause(seconds: float, stop_event: Optional[asyncio.Event]) -> None:
    """Sleep for *seconds*, waking early when *stop_event* is set."""
    if stop_event is None:
        await asyncio.sleep(seconds)
        return
    try:
        await asyncio.wait_for(stop_event.wait(), timeout=seconds)
    except asyncio.TimeoutError:
        pass


def _batch(data: Any) -> list:
    if not isinstance(data, dict):
        return []
    events = data.get("events")
    return events if isinstance(events, list) else []


async def poll_once(
    client: VKTeamsClient,
    handler: EventHandler,
    last_id: int = 0,
    poll_time: int = DEFAULT_POLL_TIME,
    stop_event: Optional[asyncio.Event] = None,
) -> tuple[bool, int]:
    """Run one poll + batch.  Returns ``(keep_going, next_last_event_id)``."""
    result = await client.get_events_async(
        poll_time=poll_time,
        last_event_id=last_id,
        cancel_event=stop_event,
    )
    if result.cancelled:
        logger.info("Polling cancelled", extra={"last_event_id": last_id})
        return False, last_id

    if not result.ok:
        logger.warning(
            "events/get failed, retrying",
            extra={"api_endpoint": "/events/get", "error": str(result.error), "pause_s": ERROR_PAUSE},
        )
        await _pause(ERROR_PAUSE, stop_event)
        return True, last_id

    raw_events = _batch(result.data)
    if raw_events:
        logger.debug("Received events", extra={"count": len(raw_events)})
        await asyncio.to_thread(process_events, raw_events, handler)
    return True, last_event_id(raw_events, last_id)


async def run(
    client: VKTeamsClient,
    handler: EventHandler,
    stop_event: Optional[asyncio.Event] = None,
    poll_time: int = DEFAULT_POLL_TIME,
    last_id: int = 0,
) -> int:
    """Poll until *stop_event* is set.  Returns the last event id handled."""
    logger.info("Bot is running. Polling for events...", extra={"poll_time": poll_time})
    keep_going = True
    while keep_going and not (stop_event is not None and stop_event.is_set()):
        keep_going, last_id = await poll_once(client, handler, last_id, poll_time, stop_event)
    logger.info("Polling stopped", extra={"last_event_id": last_id})
    return last_id
