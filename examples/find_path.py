"""
Finding a Value in a Streamed JSON Response
===========================================

Fetch a large or endless JSON body, return the first value at a path and
drop the connection as soon as it has arrived.
"""

import asyncio
import re

import httpx

import jsonseek

FEED_URL = "https://httpbin.org/stream/100"
JSON_URL = "https://httpbin.org/json"


def sync_find() -> None:
    """Simple one-shot lookup with a throwaway client."""
    print("── Sync lookup ────────────────────────────────────────────────")

    title = jsonseek.fetch_and_find_path(JSON_URL, "slideshow.title")
    print(f"  slideshow.title = {title!r}")

    # Wildcards and structured selectors
    first_slide = jsonseek.fetch_and_find_path(JSON_URL, "slideshow.slides.*.title")
    print(f"  first slide title = {first_slide!r}")

    author = jsonseek.fetch_and_find_path(
        JSON_URL, ["slideshow", re.compile("^auth")]
    )
    print(f"  author = {author!r}")

    missing = jsonseek.fetch_and_find_path(JSON_URL, "slideshow.nothing")
    print(f"  slideshow.nothing = {missing!r}")
    print()


def ndjson_find() -> None:
    """NDJSON feeds are several top-level values back to back."""
    print("── NDJSON feed ───────────────────────────────────────────────")
    with httpx.Client(timeout=10) as client:
        value = jsonseek.fetch_and_find_path(
            FEED_URL, "id", client=client, multiple_values=True
        )
    print(f"  first id = {value!r}")
    print()


async def async_find() -> None:
    """Async lookup, plus aborting a session from another task."""
    print("── Async lookup ──────────────────────────────────────────────")
    async with httpx.AsyncClient() as client:
        title = await jsonseek.afetch_and_find_path(
            JSON_URL, "slideshow.title", client=client
        )
        print(f"  slideshow.title = {title!r}")

        session = jsonseek.FetchSession(FEED_URL, "never.there", multiple_values=True)

        async def give_up() -> None:
            await asyncio.sleep(0.5)
            session.abort("took too long")

        task = asyncio.ensure_future(give_up())
        try:
            await session.arun(client)
        except jsonseek.AbortedUnmatched as exc:
            print(f"  {exc} ({exc.reason})")
        finally:
            task.cancel()
    print()


def error_handling() -> None:
    print("── Errors ─────────────────────────────────────────────────────")
    try:
        jsonseek.fetch_and_find_path("https://httpbin.org/status/404", "a")
    except jsonseek.HTTPStatusError as exc:
        print(f"  {exc.status_code}: {exc}")
    try:
        jsonseek.fetch_and_find_path("https://httpbin.org/html", "a")
    except jsonseek.ParseError as exc:
        print(f"  ParseError: {exc}")
    print()


if __name__ == "__main__":
    sync_find()
    ndjson_find()
    asyncio.run(async_find())
    error_handling()
