from __future__ import annotations

import typing
from collections.abc import AsyncGenerator, Iterator

import httpx

from ._exceptions import RequestAborted

__all__ = ["AbortSignal", "aiter_body", "iter_body"]


class AbortSignal:
    """One-shot cooperative cancellation flag for a single request."""

    __slots__ = ("_aborted", "_reason")

    def __init__(self) -> None:
        self._aborted = False
        self._reason: typing.Any = None

    @property
    def aborted(self) -> bool:
        return self._aborted

    @property
    def reason(self) -> typing.Any:
        return self._reason

    def abort(self, reason: typing.Any = None) -> bool:
        """Mark the signal aborted.  Returns ``False`` if it already was."""
        if self._aborted:
            return False
        self._aborted = True
        self._reason = reason
        return True

    def raise_if_aborted(self) -> None:
        if self._aborted:
            raise RequestAborted(self._reason)

    def __repr__(self) -> str:
        if self._aborted:
            return f"AbortSignal(aborted=True, reason={self._reason!r})"
        return "AbortSignal(aborted=False)"


def iter_body(response: httpx.Response, signal: AbortSignal) -> Iterator[bytes]:
    """Yield decoded body chunks until the stream ends or *signal* aborts.

    The signal is checked before the first read and again each time the
    consumer asks for the next chunk, so an abort raised while a chunk is
    being processed lets that processing finish and fails the following
    read with :class:`RequestAborted`.
    """
    signal.raise_if_aborted()
    for chunk in response.iter_bytes():
        if not chunk:
            continue
        yield chunk
        signal.raise_if_aborted()


async def aiter_body(
    response: httpx.Response, signal: AbortSignal
) -> AsyncGenerator[bytes, None]:
    """Async version of :func:`iter_body`."""
    signal.raise_if_aborted()
    chunks = response.aiter_bytes()
    try:
        async for chunk in chunks:
            if not chunk:
                continue
            yield chunk
            signal.raise_if_aborted()
    finally:
        await chunks.aclose()  # type: ignore[attr-defined]
