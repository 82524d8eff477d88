"""Transport invoker — the single blocking point of the SDK.

One HTTP request per call via :mod:`requests`.  The outcome is always an
:class:`~vkteams.models.ApiResult`; ordinary HTTP failures and network
faults are returned, not raised, each with its own error type so callers
can tell "the API said no" apart from "the network was unreachable".
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import requests

from vkteams.exceptions import ApiError, NetworkError, RequestCancelled, log_error
from vkteams.models import ApiResult
from vkteams.session import BotSession

_sdk_logger = logging.getLogger("vkteams.sdk.transport")

_HEADERS: Dict[str, str] = {"Content-Type": "application/json"}

PARSE_FAILURE_MESSAGE = "failed to parse response"
DOWNLOAD_CHUNK_SIZE = 64 * 1024


def _redact(text: str, token: str) -> str:
    """Strip the bot token from *text* (requests echoes the full URL in errors)."""
    return text.replace(token, "***") if token else text


def decode_response(path: str, response: requests.Response, logger: logging.Logger) -> ApiResult:
    """Turn an HTTP response into an :class:`ApiResult`."""
    status = response.status_code
    if status != 200:
        try:
            body: Any = response.json()
        except ValueError:
            body = None
        error = ApiError(
            status,
            response_body=body,
            message=None if isinstance(body, dict) else f"Request failed with status {status}",
            diagnostic_body=response.text,
        )
        log_error(logger, error, api_endpoint=path)
        return ApiResult.failure(error)

    try:
        body = response.json()
    except ValueError:
        # The raw text is kept for diagnostics only; it is never part of the message.
        error = ApiError(status, message=PARSE_FAILURE_MESSAGE, diagnostic_body=response.text)
        log_error(logger, error, api_endpoint=path)
        return ApiResult.failure(error)

    if isinstance(body, dict) and (body.get("ok") is False or body.get("error")):
        error = ApiError(status, response_body=body)
        log_error(logger, error, api_endpoint=path, api_response=body)
        return ApiResult.failure(error)

    return ApiResult.success(body)


def invoke(
    method: str,
    path: str,
    token: str,
    params: Mapping[str, str],
    session: BotSession,
    *,
    timeout: Optional[float] = None,
    logger: Optional[logging.Logger] = None,
) -> ApiResult:
    """Issue one request against ``session.api_url + path``.

    *params* must already be encoded; the auth token is merged in here.
    *timeout* (seconds) overrides the session timeout.
    """
    log = logger or _sdk_logger
    url = f"{session.api_url}{path}"
    query = {"token": token, **params}
    log.debug("Making request", extra={"api_endpoint": path, "params": dict(params)})

    func = getattr(requests, method.lower())
    try:
        response = func(url, params=query, headers=_HEADERS, timeout=timeout or session.timeout)
    except requests.RequestException as exc:
        error = NetworkError(_redact(f"{type(exc).__name__}: {exc}", token), cause=exc)
        log_error(log, error, api_endpoint=path)
        return ApiResult.failure(error)

    return decode_response(path, response, log)


def download(
    url: str,
    destination: Union[str, Path],
    session: BotSession,
    *,
    logger: Optional[logging.Logger] = None,
) -> ApiResult:
    """Stream *url* to *destination* in chunks.

    On success the result data is ``{"path": <destination>, "size": <bytes>}``.
    A transfer that breaks off midway leaves no partial file behind.
    """
    log = logger or _sdk_logger
    target = Path(destination)
    size = 0
    writing = False
    try:
        with requests.get(url, stream=True, timeout=session.timeout) as response:
            if response.status_code != 200:
                error = ApiError(
                    response.status_code,
                    message=f"Download failed with status {response.status_code}",
                    diagnostic_body=response.text,
                )
                log_error(log, error, api_endpoint="download")
                return ApiResult.failure(error)

            target.parent.mkdir(parents=True, exist_ok=True)
            with target.open("wb") as fh:
                writing = True
                for chunk in response.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                    if chunk:
                        fh.write(chunk)
                        size += len(chunk)
    except requests.RequestException as exc:
        if writing:
            target.unlink(missing_ok=True)
        error = NetworkError(_redact(f"{type(exc).__name__}: {exc}", session.token), cause=exc)
        log_error(log, error, api_endpoint="download")
        return ApiResult.failure(error)

    log.info("File downloaded", extra={"api_endpoint": "download", "path": str(target), "size": size})
    return ApiResult.success({"path": str(target), "size": size})


async def invoke_async(
    method: str,
    path: str,
    token: str,
    params: Mapping[str, str],
    session: BotSession,
    *,
    timeout: Optional[float] = None,
    logger: Optional[logging.Logger] = None,
    cancel_event: Optional[asyncio.Event] = None,
    cancel_after: Optional[float] = None,
) -> ApiResult:
    """Run :func:`invoke` in a worker thread so the event loop stays free.

    When *cancel_event* is set, or *cancel_after* seconds elapse, before
    the response arrives, the result carries
    :class:`~vkteams.exceptions.RequestCancelled`.  The worker thread cannot
    be interrupted; its late result is discarded.
    """
    log = logger or _sdk_logger
    call = asyncio.ensure_future(
        asyncio.to_thread(invoke, method, path, token, params, session, timeout=timeout, logger=log)
    )
    waiters = {call}
    if cancel_event is not None:
        waiters.add(asyncio.ensure_future(cancel_event.wait()))

    try:
        done, _ = await asyncio.wait(waiters, timeout=cancel_after, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for fut in waiters:
            if not fut.done():
                fut.cancel()

    if call in done:
        return call.result()

    error = RequestCancelled(f"Request to {path} was cancelled")
    log_error(log, error, api_endpoint=path)
    return ApiResult.failure(error)
