from http import HTTPStatus

import httpx
import pytest
from flask import request
from http_server_mock import HttpServerMock

from pytest_httpexpect.executors import with_handler

app = HttpServerMock(__name__)


@app.get("/json")
def json_ok():
    return {"a": "1"}, HTTPStatus.OK


@app.get("/user-agent")
def user_agent():
    return {"user_agent": request.headers.get("User-Agent")}, HTTPStatus.OK


@pytest.fixture
def server():
    with app.run("localhost", 5006):
        yield "http://localhost:5006"


def respond(request: httpx.Request) -> httpx.Response:
    match request.url.path:
        case "/json":
            return httpx.Response(200, json={"a": "1"})
        case "/missing":
            return httpx.Response(404, json={"a": "1"})
        case _:
            return httpx.Response(500)


@pytest.fixture
def in_process():
    with with_handler(respond) as executor:
        yield executor
