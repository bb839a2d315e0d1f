import asyncio
import datetime
import json
import threading
import time
import typing
from urllib.parse import parse_qs

import httpx
import pytest
from uvicorn.config import Config
from uvicorn.server import Server


@pytest.fixture
def anyio_backend():
    return "asyncio"


Message = typing.Dict[str, typing.Any]
Receive = typing.Callable[[], typing.Awaitable[Message]]
Send = typing.Callable[
    [typing.Dict[str, typing.Any]], typing.Coroutine[None, None, None]
]
Scope = typing.Dict[str, typing.Any]


def _query(scope: Scope, name: str, default: str) -> str:
    params = parse_qs(scope.get("query_string", b"").decode())
    return params.get(name, [default])[0]


async def app(scope: Scope, receive: Receive, send: Send) -> None:
    assert scope["type"] == "http"
    if scope["path"].startswith("/error"):
        await not_found(scope, receive, send)
    elif scope["path"].startswith("/reset"):
        await reset_stream(scope, receive, send)
    elif scope["path"].startswith("/invalid"):
        await invalid_json(scope, receive, send)
    elif scope["path"].startswith("/nulls"):
        await with_nulls(scope, receive, send)
    else:
        await slow_stream(scope, receive, send)


async def not_found(scope: Scope, receive: Receive, send: Send) -> None:
    await send(
        {
            "type": "http.response.start",
            "status": 404,
            "headers": [[b"content-type", b"application/json"]],
        }
    )
    await send({"type": "http.response.body", "body": b'{"error":"Not Found"}'})


def _data_chunk(counter: int) -> bytes:
    data = {
        "message": f"Data chunk {counter}",
        "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
    }
    return f'"data{counter}": {json.dumps(data)},'.encode()


async def slow_stream(scope: Scope, receive: Receive, send: Send) -> None:
    """Stream ``{"start": ..., "data0": {...}, ..., "end": ...}`` slowly.

    ``?chunks=N`` sets how many data entries are sent, ``?interval=S`` the
    pause before each one.  Streaming stops early when the client leaves.
    """
    chunks = int(_query(scope, "chunks", "100"))
    interval = float(_query(scope, "interval", "0.05"))

    disconnected = asyncio.Event()

    async def watch_disconnect() -> None:
        while True:
            message = await receive()
            if message["type"] == "http.disconnect":
                disconnected.set()
                return

    watcher = asyncio.ensure_future(watch_disconnect())
    try:
        await send(
            {
                "type": "http.response.start",
                "status": 200,
                "headers": [[b"content-type", b"application/json"]],
            }
        )
        await send(
            {"type": "http.response.body", "body": b'{"start":"here",', "more_body": True}
        )
        for counter in range(chunks):
            await asyncio.sleep(interval)
            if disconnected.is_set():
                return
            await send(
                {
                    "type": "http.response.body",
                    "body": _data_chunk(counter),
                    "more_body": True,
                }
            )
        await send({"type": "http.response.body", "body": b'"end":"here"}'})
    finally:
        watcher.cancel()


async def reset_stream(scope: Scope, receive: Receive, send: Send) -> None:
    await send(
        {
            "type": "http.response.start",
            "status": 200,
            "headers": [[b"content-type", b"application/json"]],
        }
    )
    await send(
        {"type": "http.response.body", "body": b'{"start":"here",', "more_body": True}
    )
    await send(
        {"type": "http.response.body", "body": _data_chunk(0), "more_body": True}
    )
    await asyncio.sleep(0.05)
    # Raising after the response started makes the server drop the connection
    # in the middle of the chunked body.
    raise RuntimeError("Simulated connection reset")


async def invalid_json(scope: Scope, receive: Receive, send: Send) -> None:
    await send(
        {
            "type": "http.response.start",
            "status": 200,
            "headers": [[b"content-type", b"application/json"]],
        }
    )
    await send(
        {"type": "http.response.body", "body": b'{"start":"here",', "more_body": True}
    )
    await send({"type": "http.response.body", "body": b'"data0": nope}'})


async def with_nulls(scope: Scope, receive: Receive, send: Send) -> None:
    await send(
        {
            "type": "http.response.start",
            "status": 200,
            "headers": [[b"content-type", b"application/json"]],
        }
    )
    await send(
        {
            "type": "http.response.body",
            "body": b'{"start": null, "rows": [{"id": null}, {"id": 5}]}',
        }
    )


class TestServer(Server):
    __test__ = False

    def install_signal_handlers(self) -> None:
        # Disable the default installation of handlers for signals such as SIGTERM,
        # because it can only be done in the main thread.
        pass

    @property
    def url(self) -> httpx.URL:
        protocol = "https" if self.config.is_ssl else "http"
        port = self.servers[0].sockets[0].getsockname()[1]
        return httpx.URL(f"{protocol}://{self.config.host}:{port}/")


def serve_in_thread(server: TestServer) -> typing.Iterator[TestServer]:
    thread = threading.Thread(target=server.run, daemon=True)
    thread.start()
    try:
        deadline = time.monotonic() + 10
        while not server.started:
            if time.monotonic() > deadline or not thread.is_alive():
                raise RuntimeError("Server failed to start within 10 seconds")
            time.sleep(1e-3)
        yield server
    finally:
        server.should_exit = True
        thread.join(timeout=5)


@pytest.fixture(scope="session")
def server() -> typing.Iterator[TestServer]:
    config = Config(
        app=app,
        lifespan="off",
        loop="asyncio",
        host="127.0.0.1",
        port=0,
        log_level="critical",
        timeout_graceful_shutdown=1,
    )
    server = TestServer(config=config)
    yield from serve_in_thread(server)
