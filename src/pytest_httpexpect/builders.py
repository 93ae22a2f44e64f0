"""Request builders.

A builder is any callable taking a Request and mutating it in place. It
signals failure by raising; the pipeline then stops applying builders and
aborts the run. Builders never perform I/O.
"""

import base64
import json
import re
from collections.abc import Callable
from typing import Any

import httpx

from .request import METHOD_PATTERN, Body, Request, read_body

RequestBuilder = Callable[[Request], None]

_INVALID_VALUE = re.compile(r"[\r\n\x00]")


def _check_header(name: str, values: tuple[str, ...]) -> None:
    if not METHOD_PATTERN.match(name):
        raise ValueError(f"invalid header name {name!r}")
    for value in values:
        if _INVALID_VALUE.search(value):
            raise ValueError(f"invalid value for header {name!r}")


def _replace_header(request: Request, name: str, values: tuple[str, ...]) -> None:
    items = [(k, v) for k, v in request.headers.multi_items() if k.lower() != name.lower()]
    items.extend((name, value) for value in values)
    request.headers = httpx.Headers(items)


def with_header(name: str, value: str, *values: str) -> RequestBuilder:
    """Set a header, replacing existing values.

    The first value replaces whatever the request carried under ``name``;
    any further values are appended after it.
    """

    def builder(request: Request) -> None:
        all_values = (value, *values)
        _check_header(name, all_values)
        _replace_header(request, name, all_values)

    return builder


def with_user_agent(name: str) -> RequestBuilder:
    return with_header("User-Agent", name)


def with_basic_auth(username: str, password: str) -> RequestBuilder:
    def builder(request: Request) -> None:
        if ":" in username:
            raise ValueError("basic auth username must not contain ':'")
        credentials = base64.b64encode(f"{username}:{password}".encode()).decode("ascii")
        _replace_header(request, "Authorization", (f"Basic {credentials}",))

    return builder


def with_authorization(scheme: str, credentials: str) -> RequestBuilder:
    return with_header("Authorization", f"{scheme} {credentials}")


def with_bearer_token(token: str) -> RequestBuilder:
    return with_authorization("Bearer", token)


def with_host(host: str) -> RequestBuilder:
    """Override the Host header, which otherwise comes from the url."""
    return with_header("Host", host)


def with_cookie(name: str, value: str) -> RequestBuilder:
    def builder(request: Request) -> None:
        if not METHOD_PATTERN.match(name):
            raise ValueError(f"invalid cookie name {name!r}")
        if _INVALID_VALUE.search(value) or ";" in value:
            raise ValueError(f"invalid value for cookie {name!r}")

        existing = request.headers.get("Cookie")
        pair = f"{name}={value}"
        _replace_header(request, "Cookie", (f"{existing}; {pair}" if existing else pair,))

    return builder


def with_body(content: Body, content_type: str | None = None) -> RequestBuilder:
    def builder(request: Request) -> None:
        request.content = read_body(content)
        if content_type is not None:
            _check_header("Content-Type", (content_type,))
            _replace_header(request, "Content-Type", (content_type,))

    return builder


def with_json(obj: Any) -> RequestBuilder:
    def builder(request: Request) -> None:
        request.content = json.dumps(obj).encode("utf-8")
        _replace_header(request, "Content-Type", ("application/json",))

    return builder


def with_query_param(key: str, value: str) -> RequestBuilder:
    def builder(request: Request) -> None:
        request.url = request.url.copy_add_param(key, value)

    return builder


def with_timeout(seconds: float) -> RequestBuilder:
    def builder(request: Request) -> None:
        if seconds <= 0:
            raise ValueError(f"timeout must be positive, got {seconds}")
        request.timeout = seconds

    return builder
