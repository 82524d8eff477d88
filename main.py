"""Entry point: an echo bot built on the VK Teams SDK.

Echoes every text message back to its chat, answers ``/menu`` with a yes/no
keyboard and acknowledges button presses.

    VKTEAMS_BOT_API_TOKEN=... python main.py [path/to/.env] [path/to/config.yaml]
"""

import asyncio
import sys
from typing import Optional

from bot.dispatcher import run
from bot.router import EventRouter
from config import load_config
from core.logger import VKTeamsLogger
from vkteams.client import VKTeamsClient
from vkteams.events import DecodeErrorEvent, DomainEvent, UnknownEvent
from vkteams.exceptions import ConfigError
from vkteams.keyboard import yes_no_keyboard
from vkteams.models import CallbackQuery, Message
from vkteams.session import create_session_from_config

logger = VKTeamsLogger.get_logger()

CALLBACK_REPLIES: dict[str, str] = {
    "yes": "You selected Yes!",
    "no": "You selected No!",
    "confirm": "Confirmed!",
    "cancel": "Cancelled!",
}


def build_router(client: VKTeamsClient) -> EventRouter:
    """Wire the demo handlers to *client*."""

    def on_message(message: Optional[Message]) -> None:
        if message is None or message.chat is None or not message.text:
            return
        chat_id = message.chat.id
        if message.text.strip() == "/menu":
            client.send_message_with_keyboard(chat_id, "Do you like this bot?", yes_no_keyboard())
            return
        logger.info("Echoing message", extra={"chat_id": chat_id, "text_preview": message.text[:80]})
        client.reply_to_message(chat_id, message.text, message.id)

    def on_callback(query: Optional[CallbackQuery]) -> None:
        if query is None or not query.id:
            return
        reply = CALLBACK_REPLIES.get(query.data or "", "Unknown callback")
        logger.info("Callback received", extra={"query_id": query.id, "callback_data": query.data})
        client.answer_callback_query(query.id, text=reply)

    def on_other(event: DomainEvent) -> None:
        if isinstance(event, (UnknownEvent, DecodeErrorEvent)):
            logger.warning("Skipping event", extra={"event_type": event.event_type, "raw_event": event.raw_event})
        else:
            logger.debug("Unhandled event", extra={"event_type": event.event_type})

    return EventRouter(on_message=on_message, on_callback=on_callback, default=on_other)


def main(argv: Optional[list[str]] = None) -> int:
    argv = sys.argv if argv is None else argv
    try:
        config = load_config(
            argv[1] if len(argv) > 1 else None,
            config_file=argv[2] if len(argv) > 2 else None,
        )
    except ConfigError as exc:
        logger.error("Failed to start bot", extra={"error": str(exc), "problems": exc.problems})
        return 1

    VKTeamsLogger.set_level(config.log_level)
    client = VKTeamsClient(create_session_from_config(config), logger=logger.getChild("sdk"))
    logger.info("VK Teams bot started", extra={"api_url": config.api_url})

    try:
        asyncio.run(run(client, build_router(client)))
    except KeyboardInterrupt:
        logger.info("Bot stopped by user")
    finally:
        VKTeamsLogger().cleanup()
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv))
