"""VKTeamsClient -- service layer wrapping the VK Teams Bot API endpoints.

Every operation validates its required arguments, builds the argument map,
encodes it with :func:`vkteams.params.encode_params` and issues exactly one
``GET`` through :func:`vkteams.transport.invoke` against a fixed endpoint
path.  Operations return an :class:`~vkteams.models.ApiResult`; API and
network failures are carried in it, never raised.  A missing required
argument raises :class:`~vkteams.exceptions.ValidationError` before any
request is made.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Protocol, Union, runtime_checkable

from pydantic import ValidationError as ModelValidationError

from vkteams.exceptions import ValidationError
from vkteams.keyboard import Keyboard
from vkteams.models import ApiResult, FileInfo, ParseMode
from vkteams.params import encode_params
from vkteams.session import BotSession
from vkteams.transport import download, invoke, invoke_async

_sdk_logger = logging.getLogger("vkteams.sdk.client")

DEFAULT_POLL_TIME: int = 30

# ── Endpoint paths ───────────────────────────────────────────────────────────

SEND_TEXT = "/messages/sendText"
SEND_FILE = "/messages/sendFile"
EDIT_TEXT = "/messages/editText"
DELETE_MESSAGES = "/messages/deleteMessages"
ANSWER_CALLBACK_QUERY = "/messages/answerCallbackQuery"
PIN_MESSAGE = "/messages/pinMessage"
UNPIN_MESSAGE = "/messages/unpinMessage"
CHAT_INFO = "/chats/getInfo"
CHAT_MEMBERS = "/chats/getMembers"
CHAT_ADMINS = "/chats/getAdmins"
CHAT_SET_TITLE = "/chats/setTitle"
CHAT_SET_ABOUT = "/chats/setAbout"
EVENTS_GET = "/events/get"
FILES_GET = "/files/getFile"
FILES_INFO = "/files/getInfo"


def _require(**fields: Any) -> None:
    """Raise :class:`ValidationError` for the first ``None`` or blank argument."""
    for name, value in fields.items():
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValidationError(f"{name} is required", field=name)


def _markup(value: Any) -> Any:
    if isinstance(value, Keyboard):
        return value.to_markup()
    return value


@runtime_checkable
class BotClient(Protocol):
    """Capability surface of a VK Teams bot: one method per API endpoint."""

    def send_message(self, chat_id: str, text: str, reply_msg_id: Optional[str] = None, parse_mode: Optional[ParseMode] = None, inline_keyboard_markup: Optional[Any] = None, **extra: Any) -> ApiResult: ...  # noqa: E704
    def send_file(self, chat_id: str, file_path: str, caption: Optional[str] = None, **extra: Any) -> ApiResult: ...  # noqa: E704
    def edit_message(self, chat_id: str, message_id: str, text: str, parse_mode: Optional[ParseMode] = None, inline_keyboard_markup: Optional[Any] = None) -> ApiResult: ...  # noqa: E704
    def delete_message(self, chat_id: str, message_id: str) -> ApiResult: ...  # noqa: E704
    def answer_callback_query(self, query_id: str, text: Optional[str] = None, show_alert: Optional[bool] = None, url: Optional[str] = None) -> ApiResult: ...  # noqa: E704
    def get_chat_info(self, chat_id: str) -> ApiResult: ...  # noqa: E704
    def get_chat_members(self, chat_id: str) -> ApiResult: ...  # noqa: E704
    def get_chat_admins(self, chat_id: str) -> ApiResult: ...  # noqa: E704
    def pin_message(self, chat_id: str, message_id: str) -> ApiResult: ...  # noqa: E704
    def unpin_message(self, chat_id: str, message_id: str) -> ApiResult: ...  # noqa: E704
    def set_chat_title(self, chat_id: str, title: str) -> ApiResult: ...  # noqa: E704
    def set_chat_about(self, chat_id: str, about: str) -> ApiResult: ...  # noqa: E704
    def get_events(self, poll_time: Optional[int] = DEFAULT_POLL_TIME, last_event_id: int = 0, limit: Optional[int] = None) -> ApiResult: ...  # noqa: E704
    def get_file(self, file_id: str, path: Optional[Union[str, Path]] = None) -> ApiResult: ...  # noqa: E704
    def get_file_info(self, file_id: str) -> ApiResult: ...  # noqa: E704


class VKTeamsClient:
    """Client-side service layer for the VK Teams Bot API.

    The client holds nothing but the read-only :class:`BotSession` and a
    logger, so one instance may be used from several threads at once.
    """

    def __init__(self, session: BotSession, logger: Optional[logging.Logger] = None) -> None:
        self._session = session
        self._logger = logger or _sdk_logger

    @property
    def session(self) -> BotSession:
        return self._session

    # ------------------------------------------------------------------
    #  Internal helpers
    # ------------------------------------------------------------------

    def _call(self, path: str, args: Dict[str, Any], timeout: Optional[float] = None) -> ApiResult:
        params = encode_params(args)
        return invoke("GET", path, self._session.token, params, self._session, timeout=timeout, logger=self._logger)

    def _poll_timeout(self, poll_time: Optional[int]) -> float:
        """The server holds a long poll for *poll_time* seconds; wait beyond that."""
        return (poll_time or 0) + self._session.timeout

    # ------------------------------------------------------------------
    #  Messages
    # ------------------------------------------------------------------

    def send_message(
        self,
        chat_id: str,
        text: str,
        reply_msg_id: Optional[str] = None,
        parse_mode: Optional[ParseMode] = None,
        inline_keyboard_markup: Optional[Any] = None,
        **extra: Any,
    ) -> ApiResult:
        """Send a text message.  *extra* keys are passed through as wire parameters."""
        _require(chat_id=chat_id, text=text)
        args: Dict[str, Any] = {
            "replyMsgId": reply_msg_id,
            "parseMode": parse_mode,
            "inlineKeyboardMarkup": _markup(inline_keyboard_markup),
            **extra,
        }
        # Required keys last: extra must not replace them.
        args.update(chatId=chat_id, text=text)
        return self._call(SEND_TEXT, args)

    def send_file(self, chat_id: str, file_path: str, caption: Optional[str] = None, **extra: Any) -> ApiResult:
        """Send a file to a chat.  *extra* keys are passed through as wire parameters."""
        _require(chat_id=chat_id, file_path=file_path)
        args: Dict[str, Any] = {"caption": caption, **extra}
        args.update(chatId=chat_id, file=file_path)
        return self._call(SEND_FILE, args)

    def edit_message(
        self,
        chat_id: str,
        message_id: str,
        text: str,
        parse_mode: Optional[ParseMode] = None,
        inline_keyboard_markup: Optional[Any] = None,
    ) -> ApiResult:
        """Replace the text (and optionally the keyboard) of a sent message."""
        _require(chat_id=chat_id, message_id=message_id, text=text)
        return self._call(
            EDIT_TEXT,
            {
                "chatId": chat_id,
                "msgId": message_id,
                "text": text,
                "parseMode": parse_mode,
                "inlineKeyboardMarkup": _markup(inline_keyboard_markup),
            },
        )

    def delete_message(self, chat_id: str, message_id: str) -> ApiResult:
        """Delete a message from a chat."""
        _require(chat_id=chat_id, message_id=message_id)
        return self._call(DELETE_MESSAGES, {"chatId": chat_id, "msgId": message_id})

    def answer_callback_query(
        self,
        query_id: str,
        text: Optional[str] = None,
        show_alert: Optional[bool] = None,
        url: Optional[str] = None,
    ) -> ApiResult:
        """Acknowledge a button press so the client stops showing a spinner."""
        _require(query_id=query_id)
        return self._call(
            ANSWER_CALLBACK_QUERY,
            {"queryId": query_id, "text": text, "showAlert": show_alert, "url": url},
        )

    def pin_message(self, chat_id: str, message_id: str) -> ApiResult:
        """Pin a message in a chat."""
        _require(chat_id=chat_id, message_id=message_id)
        return self._call(PIN_MESSAGE, {"chatId": chat_id, "msgId": message_id})

    def unpin_message(self, chat_id: str, message_id: str) -> ApiResult:
        """Unpin a message in a chat."""
        _require(chat_id=chat_id, message_id=message_id)
        return self._call(UNPIN_MESSAGE, {"chatId": chat_id, "msgId": message_id})

    def reply_to_message(self, chat_id: str, text: str, reply_msg_id: str) -> ApiResult:
        """Send *text* as a reply to message *reply_msg_id*."""
        _require(reply_msg_id=reply_msg_id)
        return self.send_message(chat_id, text, reply_msg_id=reply_msg_id)

    def send_message_with_keyboard(self, chat_id: str, text: str, keyboard: Keyboard) -> ApiResult:
        """Send *text* with an inline keyboard attached."""
        return self.send_message(chat_id, text, inline_keyboard_markup=keyboard)

    # ------------------------------------------------------------------
    #  Chats
    # ------------------------------------------------------------------

    def get_chat_info(self, chat_id: str) -> ApiResult:
        """Get the title, type and description of a chat."""
        _require(chat_id=chat_id)
        return self._call(CHAT_INFO, {"chatId": chat_id})

    def get_chat_members(self, chat_id: str) -> ApiResult:
        """List the members of a chat."""
        _require(chat_id=chat_id)
        return self._call(CHAT_MEMBERS, {"chatId": chat_id})

    def get_chat_admins(self, chat_id: str) -> ApiResult:
        """List the administrators of a chat."""
        _require(chat_id=chat_id)
        return self._call(CHAT_ADMINS, {"chatId": chat_id})

    def set_chat_title(self, chat_id: str, title: str) -> ApiResult:
        """Change the title of a chat."""
        _require(chat_id=chat_id, title=title)
        return self._call(CHAT_SET_TITLE, {"chatId": chat_id, "title": title})

    def set_chat_about(self, chat_id: str, about: str) -> ApiResult:
        """Change the description of a chat."""
        _require(chat_id=chat_id, about=about)
        return self._call(CHAT_SET_ABOUT, {"chatId": chat_id, "about": about})

    # ------------------------------------------------------------------
    #  Events
    # ------------------------------------------------------------------

    def get_events(
        self,
        poll_time: Optional[int] = DEFAULT_POLL_TIME,
        last_event_id: int = 0,
        limit: Optional[int] = None,
    ) -> ApiResult:
        """Long-poll for events.  The result data holds an ``events`` array."""
        return self._call(
            EVENTS_GET,
            {"pollTime": poll_time, "lastEventId": last_event_id, "limit": limit},
            timeout=self._poll_timeout(poll_time),
        )

    async def get_events_async(
        self,
        poll_time: Optional[int] = DEFAULT_POLL_TIME,
        last_event_id: int = 0,
        limit: Optional[int] = None,
        cancel_event: Optional[asyncio.Event] = None,
        cancel_after: Optional[float] = None,
    ) -> ApiResult:
        """Non-blocking :meth:`get_events`.

        Setting *cancel_event* (or exceeding *cancel_after* seconds) yields a
        result whose ``cancelled`` property is true.
        """
        params = encode_params({"pollTime": poll_time, "lastEventId": last_event_id, "limit": limit})
        return await invoke_async(
            "GET",
            EVENTS_GET,
            self._session.token,
            params,
            self._session,
            timeout=self._poll_timeout(poll_time),
            logger=self._logger,
            cancel_event=cancel_event,
            cancel_after=cancel_after,
        )

    # ------------------------------------------------------------------
    #  Files
    # ------------------------------------------------------------------

    def get_file_info(self, file_id: str) -> ApiResult:
        """Get the type, size, name and download url of a file."""
        _require(file_id=file_id)
        return self._call(FILES_INFO, {"fileId": file_id})

    def get_file(self, file_id: str, path: Optional[Union[str, Path]] = None) -> ApiResult:
        """Fetch file metadata and, when *path* is given, save the file there.

        The saved location is added to the result data as ``"path"``.
        """
        _require(file_id=file_id)
        result = self._call(FILES_GET, {"fileId": file_id})
        if path is None or not result.ok:
            return result

        try:
            url = FileInfo.model_validate(result.data).url
        except ModelValidationError:
            url = None
        if not url:
            self._logger.warning("getFile response has no download url", extra={"api_endpoint": FILES_GET, "file_id": file_id})
            return result

        saved = download(url, path, self._session, logger=self._logger)
        if not saved.ok:
            return saved
        return ApiResult.success({**result.data, "path": saved.data["path"]})


def is_client(obj: Any) -> bool:
    """Check whether *obj* is a VK Teams client instance."""
    return isinstance(obj, VKTeamsClient)
