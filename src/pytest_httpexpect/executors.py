"""Executors turn an outgoing httpx.Request into an unread httpx.Response.

Any callable with that shape is an executor. The ones provided here wrap an
httpx.Client: a network client configured through options, and in-process
variants that dispatch to a handler function or a WSGI application without
touching the network.
"""

import logging
from collections.abc import Callable
from typing import Any, Self

import httpx
from pydantic import BaseModel, ConfigDict, Field, PositiveFloat

from .exceptions import ExecutionError
from .settings import Settings

logger = logging.getLogger(__name__)

Executor = Callable[[httpx.Request], httpx.Response]


class ClientConfig(BaseModel):
    timeout: PositiveFloat | None = Field(default=5.0, description="Timeout in seconds, None disables it.")
    follow_redirects: bool = Field(default=True, description="Whether redirects are followed.")
    base_url: str = Field(default="", description="Base URL for relative request URLs.")
    headers: dict[str, str] = Field(default_factory=dict, description="Default headers sent with every request.")
    cookies: httpx.Cookies | None = Field(default=None, description="Cookie jar consulted and updated by the client.")
    transport: httpx.BaseTransport | None = Field(default=None, description="Custom transport.")

    model_config = ConfigDict(arbitrary_types_allowed=True, validate_assignment=True)

    @classmethod
    def from_settings(cls, settings: Settings) -> Self:
        headers = {"User-Agent": settings.user_agent} if settings.user_agent else {}
        return cls(timeout=settings.timeout, follow_redirects=settings.follow_redirects, headers=headers)

    def client_kwargs(self) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "timeout": self.timeout,
            "follow_redirects": self.follow_redirects,
            "base_url": self.base_url,
            "headers": self.headers,
        }
        if self.cookies is not None:
            # httpx copies a Cookies instance but shares a bare CookieJar
            kwargs["cookies"] = self.cookies.jar
        if self.transport is not None:
            kwargs["transport"] = self.transport
        return kwargs


ClientOption = Callable[[ClientConfig], None]


class ClientExecutor:
    """Executor backed by an httpx.Client.

    The response is returned in streaming mode so the body is read exactly
    once, by whoever captures it.
    """

    def __init__(self, client: httpx.Client):
        self.client = client

    def __call__(self, request: httpx.Request) -> httpx.Response:
        outgoing = self.client.build_request(
            request.method,
            request.url,
            headers=request.headers,
            content=request.content,
            extensions=request.extensions,
        )
        logger.info(f"Sending {outgoing.method} {outgoing.url}")
        try:
            return self.client.send(outgoing, stream=True)
        except httpx.TimeoutException as e:
            raise ExecutionError(f"HTTP request timed out: {str(e)}") from None
        except httpx.ConnectError as e:
            raise ExecutionError(f"HTTP connection error: {str(e)}") from None
        except httpx.HTTPError as e:
            raise ExecutionError(f"HTTP request failed: {str(e)}") from None

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


def with_client(*options: ClientOption, settings: Settings | None = None) -> ClientExecutor:
    """Return a network executor; options customise the client before it is created."""
    config = ClientConfig.from_settings(settings or Settings())
    for option in options:
        option(config)
    return ClientExecutor(httpx.Client(**config.client_kwargs()))


def with_default_client() -> ClientExecutor:
    return with_client()


def with_timeout(seconds: float | None) -> ClientOption:
    def option(config: ClientConfig) -> None:
        config.timeout = seconds

    return option


def with_cookie_jar(jar: httpx.Cookies) -> ClientOption:
    """Use the given jar for outgoing cookies and store response cookies in it."""

    def option(config: ClientConfig) -> None:
        config.cookies = jar

    return option


def with_transport(transport: httpx.BaseTransport) -> ClientOption:
    def option(config: ClientConfig) -> None:
        config.transport = transport

    return option


def with_no_redirect() -> ClientOption:
    def option(config: ClientConfig) -> None:
        config.follow_redirects = False

    return option


def with_base_url(base_url: str) -> ClientOption:
    def option(config: ClientConfig) -> None:
        config.base_url = base_url

    return option


def with_handler(handler: Callable[[httpx.Request], httpx.Response], base_url: str | None = None, settings: Settings | None = None) -> ClientExecutor:
    """Return an executor that calls ``handler`` in-process instead of going over the network.

    Relative URLs resolve against ``base_url``, or ``settings.base_url`` when it is not given.
    """
    base_url = base_url or (settings or Settings()).base_url
    return ClientExecutor(httpx.Client(transport=httpx.MockTransport(handler), base_url=base_url))


def with_wsgi_app(app: Callable[..., Any], base_url: str | None = None, settings: Settings | None = None) -> ClientExecutor:
    """Return an executor that drives a WSGI application in-process."""
    base_url = base_url or (settings or Settings()).base_url
    return ClientExecutor(httpx.Client(transport=httpx.WSGITransport(app=app), base_url=base_url))
