"""Parameter codec: typed call arguments → flat query-string parameters.

Coercion rules, applied per value:

- ``None`` → entry dropped
- :class:`enum.Enum` member → its bare member name
- mapping, list/tuple or Pydantic model → canonical JSON text
- ``bool`` → ``"true"`` / ``"false"``
- anything else → ``str(value)``

The function is pure.  Re-encoding its own output returns the same mapping.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any, Dict, Mapping

from pydantic import BaseModel


def _to_json_ready(value: Any) -> Any:
    """Recursively convert models and enums into plain JSON-ready values."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True, exclude_none=True)
    if isinstance(value, Enum):
        return value.name
    if isinstance(value, Mapping):
        return {str(k): _to_json_ready(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_json_ready(v) for v in value]
    return value


def encode_value(value: Any) -> str:
    """Render a single non-``None`` argument value as a parameter string."""
    if isinstance(value, Enum):
        return value.name
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (Mapping, list, tuple, BaseModel)):
        return json.dumps(_to_json_ready(value), ensure_ascii=False, separators=(",", ":"))
    return str(value)


def encode_params(args: Mapping[str, Any]) -> Dict[str, str]:
    """Encode *args* into a new ``{str: str}`` parameter set.

    Insertion order of *args* is preserved.
    """
    return {str(key): encode_value(value) for key, value in args.items() if value is not None}
