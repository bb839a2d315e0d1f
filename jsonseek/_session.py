from __future__ import annotations

import enum
import logging
import typing
from collections.abc import AsyncGenerator, Iterator

import anyio
import httpx
import ijson

from ._exceptions import AbortedUnmatched, HTTPStatusError, ParseError, RequestAborted
from ._matcher import Match, PathMatcher
from ._path import JSONPath, PathLike
from ._transport import AbortSignal, aiter_body, iter_body

__all__ = ["FetchSession", "SessionState"]

logger = logging.getLogger("jsonseek.session")

_MATCH_REASON = "path matched"


class SessionState(enum.Enum):
    REQUESTING = "requesting"
    STREAMING = "streaming"
    CANCELLING = "cancelling"
    RESOLVED = "resolved"
    FAILED = "failed"


class FetchSession:
    """Fetches one URL and stops the transfer once a value at *path* is found.

    A session is single use.  :meth:`run` drives it with an
    :class:`httpx.Client`, :meth:`arun` with an :class:`httpx.AsyncClient`.
    Either returns the first matching value, or ``None`` when the body ended
    without one.

    The early exit works by aborting the request from inside the match
    handler.  Whether an abort means success is decided by :attr:`found`,
    which is set together with :attr:`result` before the abort is requested;
    an abort without a match (see :meth:`abort`) raises
    :class:`~jsonseek.AbortedUnmatched`.
    """

    def __init__(
        self,
        url: str | httpx.URL,
        path: PathLike,
        *,
        method: str = "GET",
        use_float: bool = True,
        multiple_values: bool = False,
        **request_options: typing.Any,
    ) -> None:
        self.url = url
        self.path = JSONPath(path)
        self.method = method
        self.request_options = request_options
        self.signal = AbortSignal()
        self.state = SessionState.REQUESTING
        self.result: typing.Any = None
        self.match: Match | None = None
        self.error: ijson.JSONError | None = None
        self.found = False
        self._matcher_options = {
            "use_float": use_float,
            "multiple_values": multiple_values,
        }
        self._started = False
        self._scope: anyio.CancelScope | None = None

    def __repr__(self) -> str:
        return (
            f"<FetchSession {self.method} {self.url} "
            f"path={self.path.expression!r} state={self.state.value}>"
        )

    # ------------------------------------------------------------------
    # Control
    # ------------------------------------------------------------------

    def abort(self, reason: typing.Any = "aborted by caller") -> None:
        """Abort the request from outside the session.

        In :meth:`arun` a pending read is interrupted right away; in
        :meth:`run` the abort takes effect at the next chunk boundary.
        Unless a value was already found the run fails with
        :class:`~jsonseek.AbortedUnmatched`.
        """
        if self.signal.abort(reason):
            logger.debug("%r aborted: %s", self, reason)
        if self._scope is not None:
            self._scope.cancel()

    def _on_match(self, match: Match) -> None:
        self.match = match
        self.result = match.value
        self.found = True
        self.state = SessionState.CANCELLING
        logger.debug(
            "Found %r at %r, aborting %s", self.path.expression, match.path, self.url
        )
        self.signal.abort(_MATCH_REASON)

    def _on_error(self, exc: ijson.JSONError) -> None:
        self.error = exc
        logger.debug("Parse error in %s: %s", self.url, exc)

    def _begin(self) -> None:
        if self._started:
            raise RuntimeError("A FetchSession can only be run once.")
        self._started = True
        logger.debug(
            "Requesting %s %s for path %r", self.method, self.url, self.path.expression
        )

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def _observe(
        self, step: typing.Callable[..., list[Match]], *args: typing.Any
    ) -> bool:
        """Run one matcher step.  Returns ``False`` once feeding must stop."""
        try:
            matches = step(*args)
        except ijson.JSONError as exc:
            self._on_error(exc)
            return False
        if matches and not self.found:
            self._on_match(matches[0])
        return True

    def _pump(self, chunks: Iterator[bytes]) -> None:
        matcher = PathMatcher(self.path, **self._matcher_options)
        try:
            for chunk in chunks:
                if not self._observe(matcher.feed, chunk):
                    return
            self._observe(matcher.close)
        finally:
            chunks.close()  # type: ignore[attr-defined]

    async def _apump(self, chunks: AsyncGenerator[bytes, None]) -> None:
        matcher = PathMatcher(self.path, **self._matcher_options)
        try:
            async for chunk in chunks:
                if not self._observe(matcher.feed, chunk):
                    return
            self._observe(matcher.close)
        finally:
            await chunks.aclose()

    def _fail_status(self, response: httpx.Response) -> typing.NoReturn:
        self.state = SessionState.FAILED
        logger.debug("%s %s returned %d", self.method, self.url, response.status_code)
        raise HTTPStatusError(response, response.text)

    # ------------------------------------------------------------------
    # Outcomes
    # ------------------------------------------------------------------

    def _settle(self) -> typing.Any:
        if self.error is not None:
            self.state = SessionState.FAILED
            raise ParseError(str(self.error)) from self.error
        self.state = SessionState.RESOLVED
        if not self.found:
            logger.debug("%r not found in %s", self.path.expression, self.url)
            return None
        return self.result

    def _settle_aborted(self) -> typing.Any:
        if self.found:
            self.state = SessionState.RESOLVED
            return self.result
        self.state = SessionState.FAILED
        raise AbortedUnmatched(self.path.expression, self.signal.reason)

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def run(self, client: httpx.Client) -> typing.Any:
        self._begin()
        try:
            self.signal.raise_if_aborted()
            with client.stream(
                self.method, self.url, **self.request_options
            ) as response:
                if response.status_code >= 400:
                    response.read()
                    self._fail_status(response)
                self.state = SessionState.STREAMING
                self._pump(iter_body(response, self.signal))
        except RequestAborted:
            return self._settle_aborted()
        except BaseException:
            self.state = SessionState.FAILED
            raise
        return self._settle()

    async def arun(self, client: httpx.AsyncClient) -> typing.Any:
        self._begin()
        with anyio.CancelScope() as scope:
            self._scope = scope
            try:
                self.signal.raise_if_aborted()
                async with client.stream(
                    self.method, self.url, **self.request_options
                ) as response:
                    if response.status_code >= 400:
                        await response.aread()
                        self._fail_status(response)
                    self.state = SessionState.STREAMING
                    await self._apump(aiter_body(response, self.signal))
            except RequestAborted:
                return self._settle_aborted()
            except BaseException:
                self.state = SessionState.FAILED
                raise
            finally:
                self._scope = None
        if scope.cancelled_caught:
            return self._settle_aborted()
        return self._settle()
