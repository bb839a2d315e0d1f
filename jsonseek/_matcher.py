from __future__ import annotations

import typing

import ijson
from ijson.common import ObjectBuilder

from ._path import JSONPath, Key, PathLike

__all__ = ["Match", "PathMatcher"]

_VALUE_STARTS = frozenset(
    {"start_map", "start_array", "string", "number", "boolean", "null"}
)


class Match(typing.NamedTuple):
    path: tuple[Key, ...]
    value: typing.Any


class PathMatcher:
    """Incrementally parses JSON bytes and reports values found at a path.

    Bytes are pushed with :meth:`feed`; every call returns the matches
    completed by that chunk.  :meth:`close` flushes the parser at end of
    stream.

    A value is reported when it completes, so with recursive descent an
    inner match comes before the value that contains it: ``"..a"`` over
    ``{"a": {"a": 1}}`` reports ``1`` first, then ``{"a": 1}``.  ``null``
    values are never reported.

    Malformed input raises :class:`ijson.JSONError`.  Matches completed in
    the same chunk before the bad bytes are returned first, and the error is
    raised by the next :meth:`feed` or :meth:`close`.
    """

    def __init__(
        self,
        path: PathLike,
        *,
        use_float: bool = True,
        multiple_values: bool = False,
    ) -> None:
        self.path = JSONPath(path)
        self._use_float = use_float
        self._multiple_values = multiple_values
        self._events = ijson.sendable_list()
        self._parser: typing.Any = None
        self._closed = False
        self.error: ijson.JSONError | None = None
        # One entry per open container: the current key (maps) or index
        # (arrays, starting at -1 before the first item).
        self._keys: list[typing.Any] = []
        self._in_array: list[bool] = []
        # Values being assembled, innermost last.
        self._captures: list[_Capture] = []

    def feed(self, chunk: bytes) -> list[Match]:
        if self._closed:
            raise RuntimeError("Cannot feed a closed PathMatcher.")
        self._raise_pending()
        if not chunk:
            return []
        if self._parser is None:
            self._parser = ijson.basic_parse_coro(
                self._events,
                use_float=self._use_float,
                multiple_values=self._multiple_values,
            )
        return self._step(self._parser.send, bytes(chunk))

    def close(self) -> list[Match]:
        if self._closed:
            return []
        self._closed = True
        self._raise_pending()
        if self._parser is None:
            # Nothing was ever fed: an empty body holds no values.
            return []
        return self._step(self._parser.close)

    def _step(
        self, call: typing.Callable[..., typing.Any], *args: typing.Any
    ) -> list[Match]:
        try:
            call(*args)
        except ijson.JSONError as exc:
            matches = self._drain()
            if not matches:
                raise
            self.error = exc
            return matches
        return self._drain()

    def _raise_pending(self) -> None:
        if self.error is not None:
            raise self.error

    def _drain(self) -> list[Match]:
        matches: list[Match] = []
        for event, value in self._events:
            match = self._on_event(event, value)
            if match is not None:
                matches.append(match)
        del self._events[:]
        return matches

    def _on_event(self, event: str, value: typing.Any) -> Match | None:
        if event == "map_key":
            self._keys[-1] = value
        elif event in _VALUE_STARTS:
            if self._in_array and self._in_array[-1]:
                self._keys[-1] += 1
            if self.path.matches(self._keys):
                self._captures.append(_Capture(tuple(self._keys), len(self._keys)))

        for capture in self._captures:
            capture.builder.event(event, value)

        if event == "start_map":
            self._keys.append(None)
            self._in_array.append(False)
        elif event == "start_array":
            self._keys.append(-1)
            self._in_array.append(True)
        elif event in ("end_map", "end_array"):
            self._keys.pop()
            self._in_array.pop()

        if event in ("start_map", "start_array", "map_key") or not self._captures:
            return None
        capture = self._captures[-1]
        if capture.depth != len(self._keys):
            return None
        self._captures.pop()
        if capture.builder.value is None:
            return None
        return Match(capture.path, capture.builder.value)


class _Capture:
    __slots__ = ("path", "depth", "builder")

    def __init__(self, path: tuple[Key, ...], depth: int) -> None:
        self.path = path
        self.depth = depth
        self.builder = ObjectBuilder()
