from __future__ import annotations

import typing

import httpx

from ._path import PathLike
from ._session import FetchSession

__all__ = ["afetch_and_find_path", "fetch_and_find_path"]


def fetch_and_find_path(
    url: str | httpx.URL,
    path: PathLike,
    *,
    client: httpx.Client | None = None,
    method: str = "GET",
    use_float: bool = True,
    multiple_values: bool = False,
    **request_options: typing.Any,
) -> typing.Any:
    """Fetch *url* and return the first JSON value found at *path*.

    The response body is parsed while it streams in and the transfer is
    aborted as soon as the value is complete, so the rest of a large or
    never-ending body is never downloaded.

    Parameters
    ----------
    url:
        Absolute URL to request.
    path:
        Where to look, e.g. ``"data3"``, ``"rows.*.id"``, ``"a..b"``, or a
        structured selector such as ``["rows", True, re.compile("^id")]``.
        See :class:`~jsonseek.JSONPath`.
    client:
        An open :class:`httpx.Client`.  A short-lived one is created when
        omitted.
    method:
        HTTP method (default ``"GET"``).
    use_float:
        Decode non-integer numbers as ``float`` instead of ``Decimal``.
    multiple_values:
        Accept a body made of several concatenated top-level JSON values
        (e.g. NDJSON).
    **request_options:
        Forwarded to :meth:`httpx.Client.stream` (``headers``, ``params``,
        ``content``, ``json``, ``timeout`` …).

    Returns
    -------
    Any
        The matched value, or ``None`` when the body ended without one.

    Raises
    ------
    jsonseek.HTTPStatusError
        The server answered with a status code of 400 or above.
    jsonseek.ParseError
        The body is not valid JSON.
    httpx.TransportError
        The connection failed, timed out or was reset.

    Examples
    --------
    >>> fetch_and_find_path("https://example.com/feed.json", "data3")
    {'message': 'Data chunk 3', 'timestamp': '...'}
    """
    session = FetchSession(
        url,
        path,
        method=method,
        use_float=use_float,
        multiple_values=multiple_values,
        **request_options,
    )
    if client is not None:
        return session.run(client)
    with httpx.Client() as own_client:
        return session.run(own_client)


async def afetch_and_find_path(
    url: str | httpx.URL,
    path: PathLike,
    *,
    client: httpx.AsyncClient | None = None,
    method: str = "GET",
    use_float: bool = True,
    multiple_values: bool = False,
    **request_options: typing.Any,
) -> typing.Any:
    """Async version of :func:`fetch_and_find_path`."""
    session = FetchSession(
        url,
        path,
        method=method,
        use_float=use_float,
        multiple_values=multiple_values,
        **request_options,
    )
    if client is not None:
        return await session.arun(client)
    async with httpx.AsyncClient() as own_client:
        return await session.arun(own_client)
