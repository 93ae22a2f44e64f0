"""Single-read, multi-view capture of a response body.

The transport hands over a response whose body stream can be consumed only
once. ``ResponseBuffer.capture`` drains that stream into an immutable byte
snapshot and releases the stream exactly once. Each assertion then gets its
own view over the snapshot, so no assertion can observe how much of the body
another one has read.
"""

import copy
import io
import logging

import httpx

from .exceptions import ExecutionError

logger = logging.getLogger(__name__)


class ResponseBuffer:
    def __init__(self, response: httpx.Response, content: bytes, request: httpx.Request | None = None):
        self._response = response
        self._content = content
        self._request = request

    @classmethod
    def capture(cls, response: httpx.Response, request: httpx.Request | None = None) -> "ResponseBuffer":
        """Read the body of ``response`` to completion and release it.

        The stream is closed on every path. A close error is surfaced only when
        the read itself succeeded; after a failed read it is logged and dropped
        so the read error is the one reported.

        Args:
            response: Response returned by an executor, body not yet consumed
            request: Request to attach to views when the response carries none

        Raises:
            ExecutionError: If the body cannot be read or the stream cannot be closed
        """
        try:
            content = response.read()
        except Exception as e:
            try:
                response.close()
            except Exception as close_error:
                logger.debug(f"Discarding error while closing response after failed read: {close_error}")
            raise ExecutionError(f"failed to read response body: {str(e)}") from e

        try:
            response.close()
        except Exception as e:
            raise ExecutionError(f"failed to close response body: {str(e)}") from e

        try:
            request = response.request
        except RuntimeError:
            pass

        logger.debug(f"Captured {len(content)} bytes of response body (status {response.status_code})")
        return cls(response, content, request)

    @property
    def status_code(self) -> int:
        return self._response.status_code

    @property
    def content(self) -> bytes:
        return self._content

    def view(self) -> httpx.Response:
        """Return an independent, fully readable response over the snapshot."""
        view = copy.copy(self._response)
        view.headers = self._response.headers.copy()
        view.extensions = dict(self._response.extensions)
        if self._request is not None:
            view.request = self._request
        return view

    def reader(self) -> io.BytesIO:
        """Return a new reader positioned at offset zero."""
        return io.BytesIO(self._content)
