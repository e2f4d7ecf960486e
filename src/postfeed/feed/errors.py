"""Posts API exceptions and failure-message extraction."""

from __future__ import annotations

import json
from typing import Any

from postfeed.feed.types import ErrorKind, FeedError

GENERIC_ERROR_MESSAGE = "Unknown server error."


class PostsAPIError(Exception):
    """Base class for failures talking to the posts service."""

    kind = ErrorKind.SERVER

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message


class TransportError(PostsAPIError):
    """The request did not complete (connection, DNS, timeout)."""

    kind = ErrorKind.TRANSPORT


class ServerError(PostsAPIError):
    """The service answered with a failure status or an unusable body."""

    kind = ErrorKind.SERVER

    def __init__(self, message: str = "", status_code: int | None = None, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


def _body_message(body: str) -> str | None:
    """Return ``message`` from a JSON object body, if there is one."""
    try:
        data: Any = json.loads(body)
    except ValueError:
        return None
    if isinstance(data, dict):
        message = data.get("message")
        if isinstance(message, str) and message.strip():
            return message.strip()
    return None


def failure_message(exc: PostsAPIError) -> str:
    """Most specific text for a failure.

    Precedence: ``message`` field of the error body, then the raw body,
    then the transport-level message, then a generic fallback.
    """
    body = getattr(exc, "body", "") or ""
    if body.strip():
        return _body_message(body) or body.strip()
    if exc.message.strip():
        return exc.message.strip()
    return GENERIC_ERROR_MESSAGE


def to_feed_error(exc: PostsAPIError) -> FeedError:
    return FeedError(
        kind=exc.kind,
        message=failure_message(exc),
        status_code=getattr(exc, "status_code", None),
    )
