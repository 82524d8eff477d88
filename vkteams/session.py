"""Resolved configuration and the immutable authenticated bot session."""

from __future__ import annotations

import dataclasses
from typing import Optional

from vkteams.exceptions import ValidationError

DEFAULT_API_URL: str = "https://myteam.mail.ru/bot/v1"
DEFAULT_TIMEOUT_MS: int = 30_000
LOG_LEVELS: tuple[str, ...] = ("debug", "info", "warning", "error")


@dataclasses.dataclass(frozen=True, slots=True)
class BotConfig:
    """Configuration as consumed by the SDK.  Loading it is the caller's job
    (see :mod:`config`)."""

    token: str = dataclasses.field(default="", repr=False)
    api_url: str = DEFAULT_API_URL
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    log_level: str = "info"


@dataclasses.dataclass(frozen=True, slots=True)
class BotSession:
    """Authenticated context threaded through every client operation.

    Read-only after construction, so one instance can be shared between
    threads and tasks without locking.

    Raises:
        ValidationError: If *token* is empty or blank.
    """

    token: str = dataclasses.field(repr=False)
    config: BotConfig = dataclasses.field(default_factory=BotConfig)

    def __post_init__(self) -> None:
        if not isinstance(self.token, str) or not self.token.strip():
            raise ValidationError("Bot token cannot be empty", field="token")

    @property
    def api_url(self) -> str:
        return self.config.api_url.rstrip("/")

    @property
    def timeout_ms(self) -> int:
        return self.config.timeout_ms

    @property
    def timeout(self) -> float:
        """Request timeout in seconds, as expected by :mod:`requests`."""
        return self.config.timeout_ms / 1000


def create_session(token: Optional[str], config: Optional[BotConfig] = None) -> BotSession:
    """Create a session for *token*, using defaults when *config* is omitted."""
    if config is None:
        config = BotConfig(token=token or "")
    return BotSession(token=token or "", config=config)


def create_session_from_config(config: BotConfig) -> BotSession:
    """Create a session from a fully resolved :class:`BotConfig`."""
    return create_session(config.token, config)
