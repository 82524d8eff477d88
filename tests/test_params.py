"""Tests for the parameter codec."""

import json
import sys
import os
from enum import Enum

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from vkteams.keyboard import Button
from vkteams.models import ChatType, ParseMode
from vkteams.params import encode_params, encode_value


class Color(Enum):
    RED = 1


class TestEncodeParams:
    """Validate the coercion rules of encode_params."""

    def test_none_values_dropped(self) -> None:
        params = encode_params({"chatId": "c1", "replyMsgId": None, "text": "hi"})
        assert params == {"chatId": "c1", "text": "hi"}
        assert "replyMsgId" not in params

    def test_no_null_or_empty_placeholders(self) -> None:
        params = encode_params({"a": None, "b": None})
        assert params == {}

    def test_enum_rendered_as_bare_name(self) -> None:
        params = encode_params({"parseMode": ParseMode.HTML, "type": ChatType.private, "color": Color.RED})
        assert params == {"parseMode": "HTML", "type": "private", "color": "RED"}

    def test_mapping_rendered_as_json(self) -> None:
        params = encode_params({"markup": {"text": "Yes", "callbackData": "yes"}})
        assert json.loads(params["markup"]) == {"text": "Yes", "callbackData": "yes"}
        assert params["markup"] == '{"text":"Yes","callbackData":"yes"}'

    def test_nested_rows_rendered_as_json(self) -> None:
        rows = [[{"text": "A", "callbackData": "a"}], [{"text": "B", "url": "https://b"}]]
        params = encode_params({"inlineKeyboardMarkup": rows})
        assert json.loads(params["inlineKeyboardMarkup"]) == rows

    def test_model_rendered_with_aliases(self) -> None:
        value = encode_value(Button(text="Go", callback_data="go"))
        assert json.loads(value) == {"text": "Go", "callbackData": "go"}

    def test_non_ascii_kept(self) -> None:
        assert encode_value({"text": "Привет"}) == '{"text":"Привет"}'

    def test_primitives_use_str(self) -> None:
        params = encode_params({"limit": 10, "ratio": 1.5, "text": "hi"})
        assert params == {"limit": "10", "ratio": "1.5", "text": "hi"}

    def test_booleans_lowercase(self) -> None:
        assert encode_params({"showAlert": True, "public": False}) == {"showAlert": "true", "public": "false"}

    def test_keys_are_strings(self) -> None:
        assert encode_params({1: "x"}) == {"1": "x"}

    def test_order_preserved(self) -> None:
        params = encode_params({"b": 1, "a": 2, "c": 3})
        assert list(params) == ["b", "a", "c"]

    def test_idempotent(self) -> None:
        once = encode_params({
            "chatId": "c1",
            "parseMode": ParseMode.MarkdownV2,
            "markup": {"k": [1, 2]},
            "flag": True,
            "skip": None,
        })
        assert encode_params(once) == once

    def test_input_not_mutated(self) -> None:
        args = {"chatId": "c1", "skip": None}
        encode_params(args)
        assert args == {"chatId": "c1", "skip": None}
