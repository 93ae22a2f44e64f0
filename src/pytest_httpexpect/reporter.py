"""Reporters receive failure notifications from the pipeline.

A reporter records failures, can be asked to terminate the current test, and
exposes a tracing hook the pipeline calls on entry. One reporter instance
serves one invocation.
"""

import logging
from typing import Protocol, runtime_checkable

import pytest

from .exceptions import PipelineAborted

logger = logging.getLogger(__name__)


@runtime_checkable
class Reporter(Protocol):
    def fail(self, message: str) -> None: ...

    def abort(self) -> None: ...

    def trace(self) -> None: ...


class RecordingReporter:
    """Reporter collecting failure messages; ``abort`` raises PipelineAborted."""

    def __init__(self) -> None:
        self.failures: list[str] = []
        self.aborted = False

    def fail(self, message: str) -> None:
        self.failures.append(message)

    def abort(self) -> None:
        self.aborted = True
        raise PipelineAborted(self.summary())

    def trace(self) -> None:
        logger.debug("Pipeline entered")

    @property
    def failed(self) -> bool:
        return len(self.failures) > 0

    def summary(self) -> str:
        return "\n".join(self.failures)


class PytestReporter(RecordingReporter):
    """Reporter bound to the running pytest test.

    Recorded failures do not stop the test; the plugin fails it after the
    call phase. ``abort`` fails the test immediately.
    """

    def abort(self) -> None:
        self.aborted = True
        pytest.fail(reason=self.summary(), pytrace=False)
