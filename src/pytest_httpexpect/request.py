import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from http import HTTPMethod
from typing import IO, Any

import httpx

from .exceptions import ConstructionError

logger = logging.getLogger(__name__)

METHOD_PATTERN = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")

Body = bytes | str | IO[bytes] | None


@dataclass
class Request:
    """Outbound request owned by the pipeline until it is handed to an executor.

    Builders mutate an instance in place. ``timeout`` is the per-request
    deadline in seconds and is passed to the executor as the httpx ``timeout``
    extension.
    """

    method: str
    url: httpx.URL
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    content: bytes | None = None
    timeout: float | None = None

    def build(self) -> httpx.Request:
        extensions: dict[str, Any] = {}
        if self.timeout is not None:
            extensions["timeout"] = httpx.Timeout(self.timeout).as_dict()
        return httpx.Request(
            self.method,
            self.url,
            headers=self.headers,
            content=self.content,
            extensions=extensions,
        )


RequestFactory = Callable[[], Request]


def read_body(body: Body) -> bytes | None:
    match body:
        case None:
            return None
        case bytes():
            return body
        case str():
            return body.encode("utf-8")
        case _ if hasattr(body, "read"):
            data = body.read()
            if isinstance(data, str):
                return data.encode("utf-8")
            return data
        case _:
            raise TypeError(f"unsupported body type {type(body).__name__}")


def using(method: str, url: str, body: Body = None, timeout: float | None = None) -> RequestFactory:
    """Return a factory producing a request with the given method, url and body.

    Validation happens when the factory is invoked: an invalid method token,
    an unparseable url or an unreadable body raise ConstructionError.
    """

    def factory() -> Request:
        if not METHOD_PATTERN.match(method):
            raise ConstructionError(f"invalid method {method!r}")

        try:
            parsed_url = httpx.URL(url)
        except (httpx.InvalidURL, TypeError) as e:
            raise ConstructionError(f"invalid url {url!r}: {str(e)}") from e

        try:
            content = read_body(body)
        except (OSError, TypeError, ValueError) as e:
            raise ConstructionError(f"cannot read request body: {str(e)}") from e

        if timeout is not None and timeout <= 0:
            raise ConstructionError(f"timeout must be positive, got {timeout}")

        logger.debug(f"Created request {method} {parsed_url}")
        return Request(method=str(method), url=parsed_url, content=content, timeout=timeout)

    return factory


def get(url: str) -> RequestFactory:
    return using(HTTPMethod.GET, url)


def post(url: str, body: Body = None) -> RequestFactory:
    return using(HTTPMethod.POST, url, body)


def put(url: str, body: Body = None) -> RequestFactory:
    return using(HTTPMethod.PUT, url, body)


def delete(url: str) -> RequestFactory:
    return using(HTTPMethod.DELETE, url)
