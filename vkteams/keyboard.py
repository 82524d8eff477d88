"""Inline keyboard builders.

A :class:`Keyboard` is a list of button rows.  The wire form is a JSON array
of rows, passed as the ``inlineKeyboardMarkup`` parameter of ``sendText``::

    kb = create_keyboard(
        [callback_button("Stats", "stats"), callback_button("Help", "help")],
        [url_button("Docs", "https://teams.vk.com/botapi/")],
    )
    client.send_message(chat_id, "Choose:", inline_keyboard_markup=kb)
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from pydantic import BaseModel, Field

from vkteams.params import encode_value


class ButtonStyle(str, Enum):
    primary = "primary"
    secondary = "secondary"
    attention = "attention"


class Button(BaseModel):
    """A single inline button.  Either *url* or *callback_data* is set."""

    text: str
    url: Optional[str] = None
    callback_data: Optional[str] = Field(None, alias="callbackData")
    style: Optional[ButtonStyle] = None

    model_config = {"populate_by_name": True, "frozen": True}


class Keyboard(BaseModel):
    """Rows of buttons, top to bottom."""

    buttons: List[List[Button]] = Field(default_factory=list)

    model_config = {"frozen": True}

    def to_markup(self) -> List[List[Dict[str, Any]]]:
        """Return the wire form: rows of button dicts, ``None`` fields dropped."""
        return [
            [button.model_dump(mode="json", by_alias=True, exclude_none=True) for button in row]
            for row in self.buttons
        ]


# ── Buttons ──────────────────────────────────────────────────────────────────


def create_button(
    text: str,
    url_or_callback: Optional[str] = None,
    callback_data: Optional[str] = None,
    style: Optional[ButtonStyle] = None,
) -> Button:
    """Create a button.

    With two arguments the second one is treated as a URL when it starts
    with ``http``, and as callback data otherwise.
    """
    if url_or_callback is not None and callback_data is None and not url_or_callback.startswith("http"):
        return Button(text=text, callback_data=url_or_callback, style=style)
    return Button(text=text, url=url_or_callback, callback_data=callback_data, style=style)


def url_button(text: str, url: str, style: Optional[ButtonStyle] = None) -> Button:
    return Button(text=text, url=url, style=style)


def callback_button(text: str, callback_data: str, style: Optional[ButtonStyle] = None) -> Button:
    return Button(text=text, callback_data=callback_data, style=style)


# ── Keyboards ────────────────────────────────────────────────────────────────


def create_keyboard(*rows: Sequence[Button]) -> Keyboard:
    return Keyboard(buttons=[list(row) for row in rows])


def single_row_keyboard(*buttons: Button) -> Keyboard:
    return create_keyboard(list(buttons))


def button_grid(buttons: Sequence[Button], columns: int) -> Keyboard:
    """Lay *buttons* out left-to-right in rows of *columns* buttons."""
    if columns < 1:
        raise ValueError("columns must be at least 1")
    return create_keyboard(*(buttons[i : i + columns] for i in range(0, len(buttons), columns)))


def yes_no_keyboard(yes_text: str = "Yes", no_text: str = "No") -> Keyboard:
    return single_row_keyboard(
        callback_button(yes_text, "yes", ButtonStyle.primary),
        callback_button(no_text, "no", ButtonStyle.secondary),
    )


def confirm_keyboard(confirm_text: str = "Confirm", cancel_text: str = "Cancel") -> Keyboard:
    return single_row_keyboard(
        callback_button(confirm_text, "confirm", ButtonStyle.primary),
        callback_button(cancel_text, "cancel", ButtonStyle.attention),
    )


def menu_keyboard(options: Iterable[Union[str, Dict[str, str]]]) -> Keyboard:
    """One button per row.  Options are plain labels or ``{"text", "data"}`` dicts."""
    buttons = []
    for option in options:
        if isinstance(option, str):
            buttons.append(callback_button(option, option))
        else:
            buttons.append(callback_button(option["text"], option["data"]))
    return create_keyboard(*([b] for b in buttons))


def numbered_keyboard(options: Iterable[str]) -> Keyboard:
    """``"1. first"``, ``"2. second"``, ... with the zero-based index as callback data."""
    return create_keyboard(
        *([callback_button(f"{idx + 1}. {option}", str(idx))] for idx, option in enumerate(options))
    )


def keyboard_to_json(keyboard: Keyboard) -> str:
    return encode_value(keyboard.to_markup())


def inline_keyboard(keyboard: Keyboard) -> Dict[str, str]:
    """Build the ``sendText`` option map carrying *keyboard*."""
    return {"inlineKeyboardMarkup": keyboard_to_json(keyboard)}


def remove_keyboard() -> Dict[str, bool]:
    return {"removeKeyboard": True}
