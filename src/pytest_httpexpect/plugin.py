"""Pytest plugin for declarative HTTP endpoint tests.

Registers ini options, validates them into Settings, and provides fixtures:

- ``http_settings``: effective Settings for the session
- ``http_reporter``: a PytestReporter bound to the current test
- ``http_client``: a network executor configured from ``http_settings``
- ``http_handler``, ``http_wsgi_app``: factories for in-process executors
  resolving relative URLs against ``http_settings.base_url``

A test that recorded failures through ``http_reporter`` is failed once its
call phase finishes, with every recorded message in the report.
"""

import logging
from collections.abc import Callable, Generator
from typing import Any

import httpx
import pytest
from _pytest import config, nodes
from _pytest.config import argparsing
from pydantic import ValidationError

from .constants import ConfigOptions
from .executors import ClientExecutor, with_client, with_handler, with_wsgi_app
from .reporter import PytestReporter
from .settings import Settings

logger = logging.getLogger(__name__)

settings_key = pytest.StashKey[Settings]()


def pytest_addoption(parser: argparsing.Parser) -> None:
    """Add ini options for the plugin.

    Empty values leave the setting to the HTTPEXPECT_* environment variables
    or the built-in default.

    Args:
        parser: Pytest's argument parser to add options to
    """
    parser.addini(
        name=ConfigOptions.TIMEOUT,
        help="Timeout in seconds for network executors.",
        type="string",
        default="",
    )
    parser.addini(
        name=ConfigOptions.BASE_URL,
        help="Base URL for relative request URLs in the http_handler and http_wsgi_app executors.",
        type="string",
        default="",
    )


def pytest_configure(config: config.Config) -> None:
    """Validate configuration settings and store them for the session.

    Raises:
        ValueError: If configuration values are invalid
    """
    overrides: dict[str, Any] = {}
    timeout = str(config.getini(ConfigOptions.TIMEOUT))
    if timeout:
        overrides["timeout"] = timeout
    base_url = str(config.getini(ConfigOptions.BASE_URL))
    if base_url:
        overrides["base_url"] = base_url

    try:
        settings = Settings(**overrides)
    except ValidationError as e:
        error_details = []
        for error in e.errors():
            loc = " -> ".join(str(x) for x in error["loc"])
            error_details.append(f"  - {loc}: {error['msg']}")
        raise ValueError("Invalid httpexpect configuration:\n" + "\n".join(error_details)) from None

    config.stash[settings_key] = settings


@pytest.fixture(scope="session")
def http_settings(pytestconfig: config.Config) -> Settings:
    return pytestconfig.stash[settings_key]


@pytest.fixture
def http_reporter() -> PytestReporter:
    return PytestReporter()


@pytest.fixture
def http_client(http_settings: Settings) -> Generator[ClientExecutor, None, None]:
    with with_client(settings=http_settings) as executor:
        yield executor


@pytest.fixture
def http_handler(http_settings: Settings) -> Generator[Callable[[Callable[[httpx.Request], httpx.Response]], ClientExecutor], None, None]:
    """Factory for in-process executors over a handler function, closed at teardown."""
    executors: list[ClientExecutor] = []

    def make(handler: Callable[[httpx.Request], httpx.Response]) -> ClientExecutor:
        executor = with_handler(handler, settings=http_settings)
        executors.append(executor)
        return executor

    yield make

    for executor in executors:
        executor.close()


@pytest.fixture
def http_wsgi_app(http_settings: Settings) -> Generator[Callable[[Callable[..., Any]], ClientExecutor], None, None]:
    """Factory for in-process executors over a WSGI application, closed at teardown."""
    executors: list[ClientExecutor] = []

    def make(app: Callable[..., Any]) -> ClientExecutor:
        executor = with_wsgi_app(app, settings=http_settings)
        executors.append(executor)
        return executor

    yield make

    for executor in executors:
        executor.close()


def _recorded_failures(item: nodes.Item) -> PytestReporter | None:
    reporter = getattr(item, "funcargs", {}).get("http_reporter")
    if isinstance(reporter, PytestReporter) and reporter.failed and not reporter.aborted:
        return reporter
    return None


@pytest.hookimpl(wrapper=True)
def pytest_runtest_call(item: nodes.Item) -> Generator[None, None, None]:
    """Fail the test after its call phase if the reporter recorded failures.

    When the test body raises on its own, the recorded failures are attached
    to the report as an ``httpexpect`` section instead.
    """
    try:
        result = yield
    except BaseException:
        reporter = _recorded_failures(item)
        if reporter is not None:
            item.add_report_section("call", "httpexpect", reporter.summary())
        raise

    reporter = _recorded_failures(item)
    if reporter is not None:
        logger.error(f"{item.nodeid}: {len(reporter.failures)} assertion failure(s)")
        pytest.fail(reason=reporter.summary(), pytrace=False)

    return result
