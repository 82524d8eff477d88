"""Bot application layer — event routing and the long-polling loop.

This package may import from ``core/``, ``config`` and the ``vkteams`` SDK.
"""

from bot.dispatcher import poll_once, run
from bot.router import EventRouter, Route

__all__ = [
    # Dispatcher
    "run",
    "poll_once",
    # Routing
    "EventRouter",
    "Route",
]
