import gzip
import time
from collections.abc import Callable
from http import HTTPStatus

import httpx
import pytest
from flask import make_response, redirect, request
from http_server_mock import HttpServerMock

pytest_plugins = ["pytester"]

collect_ignore = ["integration/examples"]

app = HttpServerMock(__name__)


@app.get("/json")
def json_ok():
    return {"a": "1"}, HTTPStatus.OK


@app.get("/missing")
def json_missing():
    return {"a": "1"}, HTTPStatus.NOT_FOUND


@app.get("/headers")
def echo_headers():
    return {"headers": dict(request.headers)}, HTTPStatus.OK


@app.post("/echo")
def echo_body():
    return {"body": request.get_data(as_text=True), "content_type": request.content_type}, HTTPStatus.OK


@app.get("/cookie")
def set_cookie():
    response = make_response({"set": True})
    response.set_cookie("session", "abc")
    return response


@app.get("/redirect")
def redirect_to_json():
    return redirect("/json", code=HTTPStatus.FOUND)


@app.get("/gzip")
def gzipped():
    response = make_response(gzip.compress(b'{"a":"1"}'))
    response.headers["Content-Encoding"] = "gzip"
    response.headers["Content-Type"] = "application/json"
    return response


@app.get("/delay/<float:seconds>")
def delay(seconds: float):
    time.sleep(seconds)
    return {"delayed": seconds}, HTTPStatus.OK


@pytest.fixture
def flask_app():
    return app


@pytest.fixture
def server():
    with app.run("localhost", 5005):
        yield "http://localhost:5005"


class CountingReporter:
    """Reporter that counts calls and never terminates the run."""

    def __init__(self):
        self.failures: list[str] = []
        self.aborts = 0
        self.traces = 0

    def fail(self, message: str) -> None:
        self.failures.append(message)

    def abort(self) -> None:
        self.aborts += 1

    def trace(self) -> None:
        self.traces += 1


class CountingExecutor:
    """Executor stub that counts calls and builds responses with ``respond``."""

    def __init__(self, respond: Callable[[httpx.Request], httpx.Response]):
        self.respond = respond
        self.calls = 0
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls += 1
        self.requests.append(request)
        return self.respond(request)


class TrackingStream(httpx.SyncByteStream):
    """Body stream yielding ``chunks`` and optionally failing on read or close."""

    def __init__(self, chunks: list[bytes] | None = None, read_error: Exception | None = None, close_error: Exception | None = None):
        self.chunks = chunks or []
        self.read_error = read_error
        self.close_error = close_error
        self.reads = 0
        self.closes = 0

    def __iter__(self):
        self.reads += 1
        if self.read_error is not None:
            raise self.read_error
        yield from self.chunks

    def close(self) -> None:
        self.closes += 1
        if self.close_error is not None:
            raise self.close_error


@pytest.fixture
def reporter() -> CountingReporter:
    return CountingReporter()


@pytest.fixture
def json_executor() -> CountingExecutor:
    return CountingExecutor(lambda request: httpx.Response(200, content=b'{"a":"1"}', headers={"Content-Type": "application/json"}, request=request))
