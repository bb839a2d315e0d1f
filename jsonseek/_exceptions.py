from __future__ import annotations

import typing

import httpx
import ijson

__all__ = [
    "AbortedUnmatched",
    "HTTPStatusError",
    "ParseError",
    "RequestAborted",
    "SeekError",
]


class SeekError(Exception):
    """Base class for every error raised by jsonseek itself."""


class HTTPStatusError(SeekError, httpx.HTTPStatusError):
    def __init__(self, response: httpx.Response, body: str) -> None:
        super().__init__(
            f"HTTP error: {response.status_code} {body}",
            request=response.request,
            response=response,
        )
        self.status_code = response.status_code
        self.body = body


class ParseError(SeekError, ijson.JSONError):
    pass


class AbortedUnmatched(SeekError):
    """The request was aborted before any value was found at the path.

    Unlike a ``None`` result this does not mean the value is absent, only
    that the stream was cut short before it could be seen.
    """

    def __init__(self, path: str, reason: typing.Any = None) -> None:
        super().__init__(f'Request aborted before finding JSON path "{path}".')
        self.path = path
        self.reason = reason


class RequestAborted(SeekError):
    def __init__(self, reason: typing.Any = None) -> None:
        super().__init__(f"Request aborted: {reason}" if reason else "Request aborted")
        self.reason = reason
