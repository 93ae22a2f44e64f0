class HttpExpectError(Exception):
    pass


class ConstructionError(HttpExpectError):
    """Request factory or builder failed."""


class ExecutionError(HttpExpectError):
    """Executor failed, or the response body could not be read or released."""


class VerificationError(HttpExpectError):
    """An individual assertion did not hold."""


class PipelineAborted(HttpExpectError):
    """Raised by reporters that terminate the run on abort."""
