"""Pydantic data models for VK Teams Bot API payloads.

Every field is optional: inbound payloads are frequently partial and a
missing sub-object decodes to ``None`` instead of failing.  A field that is
present but of the wrong shape still raises :class:`pydantic.ValidationError`,
which the event decoder turns into a ``DecodeErrorEvent``.

Field names are snake_case; the wire names (``chatId``, ``msgId``, ...)
are declared as aliases.
"""

from __future__ import annotations

import dataclasses
from enum import Enum
from typing import Any, List, Optional, Union

from pydantic import BaseModel, Field, field_validator

from vkteams.exceptions import RequestCancelled, VKTeamsError

_MODEL_CONFIG = {
    "populate_by_name": True,
    "frozen": True,
    "coerce_numbers_to_str": True,
}


class ChatType(str, Enum):
    """Kind of chat.  Member names match the wire values."""

    private = "private"
    group = "group"
    channel = "channel"


class ParseMode(str, Enum):
    """Text formatting mode accepted by ``sendText`` and ``editText``."""

    MarkdownV2 = "MarkdownV2"
    HTML = "HTML"


class Chat(BaseModel):
    """A private dialog, group or channel."""

    id: Optional[str] = Field(None, alias="chatId")
    type: Optional[Union[ChatType, str]] = None
    title: Optional[str] = None
    public: Optional[bool] = None

    model_config = _MODEL_CONFIG

    @field_validator("type", mode="before")
    @classmethod
    def _known_chat_type(cls, value: Any) -> Any:
        """Known tags become :class:`ChatType`; others stay plain strings."""
        if isinstance(value, str):
            try:
                return ChatType(value)
            except ValueError:
                return value
        return value


class User(BaseModel):
    """A VK Teams user or bot."""

    id: Optional[str] = Field(None, alias="userId")
    first_name: Optional[str] = Field(None, alias="firstName")
    last_name: Optional[str] = Field(None, alias="lastName")
    nick: Optional[str] = None

    model_config = _MODEL_CONFIG


class Message(BaseModel):
    """A chat message.  ``chat`` and ``from_field`` may be absent."""

    id: Optional[str] = Field(None, alias="msgId")
    timestamp: Optional[int] = None
    text: Optional[str] = None
    chat: Optional[Chat] = None
    from_field: Optional[User] = Field(None, alias="from")

    model_config = _MODEL_CONFIG


class CallbackQuery(BaseModel):
    """An inline-button press."""

    id: Optional[str] = Field(None, alias="queryId")
    from_field: Optional[User] = Field(None, alias="from")
    message: Optional[Message] = None
    data: Optional[str] = Field(None, alias="callbackData")

    model_config = _MODEL_CONFIG


class ChatMember(BaseModel):
    """Entry of ``getMembers`` / ``getAdmins`` responses."""

    user_id: Optional[str] = Field(None, alias="userId")
    creator: Optional[bool] = None
    admin: Optional[bool] = None

    model_config = _MODEL_CONFIG


class FileInfo(BaseModel):
    """Metadata returned by ``files/getInfo``."""

    type: Optional[str] = None
    size: Optional[int] = None
    filename: Optional[str] = None
    url: Optional[str] = None

    model_config = _MODEL_CONFIG


# ── Call results ─────────────────────────────────────────────────────────────


@dataclasses.dataclass(frozen=True, slots=True)
class ApiResult:
    """Outcome of exactly one API call: decoded JSON *data* or an *error*.

    ``error`` is an :class:`~vkteams.exceptions.ApiError`,
    :class:`~vkteams.exceptions.NetworkError` or
    :class:`~vkteams.exceptions.RequestCancelled`.
    """

    data: Any = None
    error: Optional[VKTeamsError] = None

    @classmethod
    def success(cls, data: Any) -> ApiResult:
        return cls(data=data)

    @classmethod
    def failure(cls, error: VKTeamsError) -> ApiResult:
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def cancelled(self) -> bool:
        return isinstance(self.error, RequestCancelled)

    def unwrap(self) -> Any:
        """Return ``data``, or raise the carried error."""
        if self.error is not None:
            raise self.error
        return self.data


def parse_members(data: Any, key: str = "members") -> List[ChatMember]:
    """Decode the member list of a ``getMembers``/``getAdmins`` response."""
    if not isinstance(data, dict):
        return []
    return [ChatMember.model_validate(item) for item in data.get(key) or []]
