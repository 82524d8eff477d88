"""Exception hierarchy for the VK Teams bot SDK.

``ValidationError`` and ``ConfigError`` are raised synchronously.
``ApiError`` and ``NetworkError`` are never raised by client operations;
they travel inside an :class:`~vkteams.models.ApiResult` and only surface
as exceptions when the caller calls ``ApiResult.unwrap()``.
"""

import logging
from typing import Any, Dict, Optional


class VKTeamsError(Exception):
    """Base class for every error produced by the SDK."""


class ValidationError(VKTeamsError):
    """A required argument is missing or malformed.

    Always detected before any network call is attempted.
    """

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        self.field = field
        super().__init__(message)


class ConfigError(VKTeamsError):
    """Configuration is missing a field or holds an invalid value."""

    def __init__(self, message: str, problems: Optional[Dict[str, str]] = None) -> None:
        self.problems = problems or {}
        super().__init__(message)


class RequestFailure(VKTeamsError):
    """A request reached the transport but did not produce a usable result."""


class ApiError(RequestFailure):
    """The bot API rejected the call or answered with an unusable body.

    Attributes:
        status_code: HTTP status code returned by the API.
        response_body: Parsed JSON body, when the body was valid JSON.
        diagnostic_body: Raw response text, kept only when the body could
            not be parsed.  Never included in ``str(exc)``.
    """

    def __init__(
        self,
        status_code: int,
        response_body: Optional[Any] = None,
        message: Optional[str] = None,
        diagnostic_body: Optional[str] = None,
    ) -> None:
        self.status_code = status_code
        self.response_body = response_body if response_body is not None else {}
        self.diagnostic_body = diagnostic_body
        if message is None:
            description = "Unknown error"
            if isinstance(self.response_body, dict):
                description = str(
                    self.response_body.get("description")
                    or self.response_body.get("error")
                    or description
                )
            message = description
        super().__init__(f"API error {status_code}: {message}")


class NetworkError(RequestFailure):
    """The network was unreachable: DNS failure, refused connection, timeout."""

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        self.cause = cause
        super().__init__(message)


class RequestCancelled(VKTeamsError):
    """A long-running call was cancelled by the caller before it completed."""


def log_error(logger: logging.Logger, error: VKTeamsError, **extra: Any) -> None:
    """Log *error* at the level its kind deserves."""
    extra = {"error_type": type(error).__name__, "error": str(error), **extra}
    if isinstance(error, ApiError):
        extra["status_code"] = error.status_code
        logger.error("API error", extra=extra)
    elif isinstance(error, NetworkError):
        logger.error("Network error", extra=extra)
    elif isinstance(error, ConfigError):
        logger.error("Config error", extra=extra)
    elif isinstance(error, RequestCancelled):
        logger.info("Request cancelled", extra=extra)
    else:
        logger.warning("Validation error", extra=extra)
