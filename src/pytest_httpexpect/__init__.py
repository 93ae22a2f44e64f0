from .buffer import ResponseBuffer
from .exceptions import ConstructionError, ExecutionError, HttpExpectError, PipelineAborted, VerificationError
from .pipeline import Expectation, Pipeline, Stage, make_request
from .reporter import PytestReporter, RecordingReporter, Reporter
from .request import Request, delete, get, post, put, using

__all__ = [
    "Pipeline",
    "Expectation",
    "Stage",
    "make_request",
    "ResponseBuffer",
    "Request",
    "using",
    "get",
    "post",
    "put",
    "delete",
    "Reporter",
    "RecordingReporter",
    "PytestReporter",
    "HttpExpectError",
    "ConstructionError",
    "ExecutionError",
    "VerificationError",
    "PipelineAborted",
]
