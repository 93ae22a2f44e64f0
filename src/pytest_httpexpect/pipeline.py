"""Request pipeline: factory, builders, executor, buffer, assertions.

``Pipeline.make_request`` performs every stage up to and including capture
of the response body. Any failure there is a structural one: the returned
Expectation remembers it, and ``expect_it`` reports it as a single failure
followed by an abort request. Once assertions start, the run always reaches
the end; each failing assertion is recorded and the next one still runs.
"""

import logging
from collections.abc import Iterable
from enum import StrEnum

import httpx
import pytest

from .assertions import Assertion
from .buffer import ResponseBuffer
from .builders import RequestBuilder
from .exceptions import ConstructionError, ExecutionError, HttpExpectError
from .executors import Executor
from .reporter import Reporter
from .request import RequestFactory

logger = logging.getLogger(__name__)


class Stage(StrEnum):
    BUILDING = "building"
    EXECUTING = "executing"
    BUFFERING = "buffering"
    ASSERTING = "asserting"
    DONE = "done"
    ABORTED = "aborted"


def _describe(error: BaseException) -> str:
    return str(error) or type(error).__name__


class Expectation:
    """Outcome of the request stages, ready to have assertions applied.

    Either ``buffer`` is set, or ``error`` holds the ConstructionError or
    ExecutionError that stopped the run at ``failed_stage``.
    """

    def __init__(
        self,
        buffer: ResponseBuffer | None = None,
        request: httpx.Request | None = None,
        error: HttpExpectError | None = None,
        failed_stage: Stage | None = None,
    ):
        self.buffer = buffer
        self.request = request
        self.error = error
        self.failed_stage = failed_stage

    @property
    def response(self) -> httpx.Response | None:
        return self.buffer.view() if self.buffer is not None else None

    def expect_it(self, reporter: Reporter, *assertions: Assertion) -> Stage:
        """Apply ``assertions`` in order, reporting each failure to ``reporter``.

        Returns the terminal stage: ABORTED when the request stages failed,
        DONE otherwise (whatever the assertions found).
        """
        reporter.trace()

        if self.error is not None or self.buffer is None:
            message = str(self.error) if self.error is not None else "httpexpect: no response captured"
            logger.error(message)
            reporter.fail(message)
            reporter.abort()
            return Stage.ABORTED

        run_assertions(self.buffer, reporter, assertions)
        return Stage.DONE


def run_assertions(buffer: ResponseBuffer, reporter: Reporter, assertions: Iterable[Assertion]) -> int:
    """Run every assertion against its own view of ``buffer``; return the number of failures.

    ``pytest.fail`` inside an assertion counts as an ordinary failure.
    """
    failures = 0
    for index, assertion in enumerate(assertions):
        try:
            assertion(buffer.view())
        except (Exception, pytest.fail.Exception) as e:
            failures += 1
            message = f"httpexpect: assertion: {_describe(e)}"
            logger.info(f"Assertion {index} failed: {_describe(e)}")
            reporter.fail(message)
    return failures


class Pipeline:
    """Drives requests through an executor.

    Holds nothing but the executor, so one instance can serve concurrent
    invocations; every call owns its request, response, buffer and reporter.
    """

    def __init__(self, executor: Executor):
        self.executor = executor

    def make_request(self, factory: RequestFactory, *builders: RequestBuilder) -> Expectation:
        stage = Stage.BUILDING
        logger.debug(f"Pipeline stage: {stage}")
        try:
            request = factory()
        except Exception as e:
            return self._aborted(stage, ConstructionError(f"httpexpect: failed to create request: {_describe(e)}"))

        for builder in builders:
            try:
                builder(request)
            except Exception as e:
                return self._aborted(stage, ConstructionError(f"httpexpect: builder: {_describe(e)}"))

        try:
            outgoing = request.build()
        except Exception as e:
            return self._aborted(stage, ConstructionError(f"httpexpect: failed to create request: {_describe(e)}"))

        stage = Stage.EXECUTING
        logger.debug(f"Pipeline stage: {stage}")
        try:
            response = self.executor(outgoing)
        except Exception as e:
            return self._aborted(stage, ExecutionError(f"httpexpect: failed to execute request: {_describe(e)}"))

        stage = Stage.BUFFERING
        logger.debug(f"Pipeline stage: {stage}")
        try:
            buffer = ResponseBuffer.capture(response, outgoing)
        except ExecutionError as e:
            return self._aborted(stage, ExecutionError(f"httpexpect: {_describe(e)}"))

        logger.info(f"{outgoing.method} {outgoing.url} -> {buffer.status_code}")
        return Expectation(buffer=buffer, request=outgoing)

    def run(
        self,
        reporter: Reporter,
        factory: RequestFactory,
        builders: Iterable[RequestBuilder] = (),
        assertions: Iterable[Assertion] = (),
    ) -> Stage:
        return self.make_request(factory, *builders).expect_it(reporter, *assertions)

    @staticmethod
    def _aborted(stage: Stage, error: HttpExpectError) -> Expectation:
        logger.debug(f"Pipeline aborted while {stage}: {error}")
        return Expectation(error=error, failed_stage=stage)


def make_request(executor: Executor, factory: RequestFactory, *builders: RequestBuilder) -> Expectation:
    return Pipeline(executor).make_request(factory, *builders)
