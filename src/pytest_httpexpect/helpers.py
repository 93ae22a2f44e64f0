import json
import logging
from collections.abc import Callable
from typing import Any

import httpx

from .exceptions import VerificationError

logger = logging.getLogger(__name__)

UrlOption = Callable[[httpx.URL], httpx.URL]


def assert_that(condition: bool, message: str, *args: Any) -> VerificationError | None:
    """Return a VerificationError built from ``message % args`` unless ``condition`` holds.

    Lets callbacks stay compact:

        body_json(lambda data: assert_that(data.get("id") is not None, "id is missing"))
    """
    if condition:
        return None
    return VerificationError(message % args if args else message)


def multiple(*errors: BaseException | None) -> VerificationError | None:
    """Combine several errors into one, ignoring None entries."""
    messages = [str(e) for e in errors if e is not None]
    if not messages:
        return None
    if len(messages) == 1:
        return VerificationError(messages[0])
    return VerificationError("multiple errors:\n" + "\n".join(f"- {m}" for m in messages))


def url(base: str, *options: UrlOption) -> str:
    """Build a url from ``base`` and options; returns an empty string if ``base`` is malformed."""
    try:
        result = httpx.URL(base)
    except httpx.InvalidURL as e:
        logger.debug(f"Cannot parse base url {base!r}: {e}")
        return ""
    for option in options:
        result = option(result)
    return str(result)


def with_path(part: str, *parts: str) -> UrlOption:
    def option(u: httpx.URL) -> httpx.URL:
        return u.copy_with(path="/".join([u.path.rstrip("/"), part, *parts]))

    return option


def with_query_param(key: str, value: str) -> UrlOption:
    def option(u: httpx.URL) -> httpx.URL:
        return u.copy_add_param(key, value)

    return option


def with_username_password(username: str, password: str) -> UrlOption:
    def option(u: httpx.URL) -> httpx.URL:
        return u.copy_with(username=username, password=password)

    return option


def empty_body() -> bytes:
    return b""


def serialize_json(obj: Any) -> bytes:
    return (json.dumps(obj, separators=(",", ":")) + "\n").encode("utf-8")
