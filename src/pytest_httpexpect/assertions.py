"""Assertions over a captured response.

An assertion is any callable taking an httpx.Response and raising when the
response does not meet expectations. Callbacks handed to the assertions in
this module may either raise or return an exception instance (for example the
result of ``assert_that`` or ``multiple``); returning ``None`` means success.
"""

import inspect
import json
import logging
import re
from collections.abc import Callable
from http.cookiejar import Cookie
from pathlib import Path
from typing import Any

import httpx
import jmespath
import jmespath.exceptions
import jsonschema
from pydantic import TypeAdapter, ValidationError

from .exceptions import ConstructionError, VerificationError
from .helpers import assert_that

logger = logging.getLogger(__name__)

Assertion = Callable[[httpx.Response], None]


def _describe(error: BaseException) -> str:
    return str(error) or type(error).__name__


def _invoke(prefix: str, callback: Callable[[Any], Any], value: Any) -> None:
    try:
        result = callback(value)
    except Exception as e:
        raise VerificationError(f"{prefix}: {_describe(e)}") from e

    match result:
        case None:
            return
        case BaseException():
            raise VerificationError(f"{prefix}: {_describe(result)}") from result
        case _:
            raise VerificationError(f"{prefix}: callback must return None or an exception, got {type(result).__name__}")


def failed(error: Exception) -> Assertion:
    """Return an assertion that always fails with ``error``."""

    def assertion(response: httpx.Response) -> None:
        raise error

    return assertion


def to_have_status(status: int) -> Assertion:
    def assertion(response: httpx.Response) -> None:
        error = assert_that(
            response.status_code == status,
            "status: returned status (%d) not equal to expected status (%d)",
            response.status_code,
            status,
        )
        if error is not None:
            raise error

    return assertion


def with_header(name: str, handler: Callable[[str | None], Any]) -> Assertion:
    """Invoke ``handler`` with the value of header ``name``, or None when absent.

    Multiple values are joined with a comma, as httpx does.
    """

    def assertion(response: httpx.Response) -> None:
        _invoke("header", handler, response.headers.get(name))

    return assertion


def have_header(name: str) -> Assertion:
    return with_header(name, lambda header: assert_that(header is not None, "header with name '%s' not found", name))


def with_cookie(name: str, handler: Callable[[Cookie | None], Any]) -> Assertion:
    """Invoke ``handler`` with the last cookie named ``name`` set by the response, or None."""

    def assertion(response: httpx.Response) -> None:
        cookie = None
        for candidate in response.cookies.jar:
            if candidate.name == name:
                cookie = candidate
        _invoke("cookie", handler, cookie)

    return assertion


def have_cookie(name: str) -> Assertion:
    return with_cookie(name, lambda cookie: assert_that(cookie is not None, "cookie with name '%s' not set", name))


def body_bytes(callback: Callable[[bytes], Any]) -> Assertion:
    def assertion(response: httpx.Response) -> None:
        _invoke("body", callback, response.content)

    return assertion


def _single_parameter(callback: Callable[..., Any]) -> inspect.Parameter:
    signature = inspect.signature(callback, eval_str=True)
    positional = []
    for parameter in signature.parameters.values():
        match parameter.kind:
            case inspect.Parameter.POSITIONAL_ONLY | inspect.Parameter.POSITIONAL_OR_KEYWORD:
                positional.append(parameter)
            case inspect.Parameter.VAR_POSITIONAL | inspect.Parameter.VAR_KEYWORD:
                raise ConstructionError("json: callback must only accept single argument")
            case inspect.Parameter.KEYWORD_ONLY if parameter.default is inspect.Parameter.empty:
                raise ConstructionError("json: callback must only accept single argument")
    if len(positional) != 1:
        raise ConstructionError("json: callback must only accept single argument")
    return positional[0]


def body_json(callback: Callable[[Any], Any], target: Any = None) -> Assertion:
    """Decode the body as JSON into ``target`` and invoke ``callback`` with the result.

    When ``target`` is not given it is taken from the annotation of the
    callback's only parameter, falling back to ``Any``. The callback is checked
    here: if it is not a callable accepting exactly one argument, or the target
    type is unsupported, the returned assertion always fails.

    Example:
        >>> body_json(lambda data: assert_that(data["a"] == "1", "a is not 1"), dict[str, str])
    """
    if not callable(callback):
        return failed(ConstructionError("json: given callback is not a function"))

    try:
        parameter = _single_parameter(callback)
    except ConstructionError as e:
        return failed(e)
    except (TypeError, ValueError, NameError) as e:
        return failed(ConstructionError(f"json: cannot inspect callback: {str(e)}"))

    if target is None:
        target = Any if parameter.annotation is inspect.Parameter.empty else parameter.annotation

    try:
        adapter = TypeAdapter(target)
    except Exception as e:
        return failed(ConstructionError(f"json: unsupported decode target {target!r}: {str(e)}"))

    def assertion(response: httpx.Response) -> None:
        try:
            value = adapter.validate_json(response.content)
        except ValidationError as e:
            raise VerificationError(f"json: failed to decode response body: {str(e)}") from None
        _invoke("json", callback, value)

    return assertion


def body_contains(substring: str) -> Assertion:
    def assertion(response: httpx.Response) -> None:
        if substring not in response.text:
            raise VerificationError(f"body: doesn't contain '{substring}'")

    return assertion


def body_not_contains(substring: str) -> Assertion:
    def assertion(response: httpx.Response) -> None:
        if substring in response.text:
            raise VerificationError(f"body: contains '{substring}' while it shouldn't")

    return assertion


def body_matches(pattern: str) -> Assertion:
    try:
        compiled = re.compile(pattern)
    except re.error as e:
        return failed(ConstructionError(f"body: invalid pattern '{pattern}': {str(e)}"))

    def assertion(response: httpx.Response) -> None:
        if not compiled.search(response.text):
            raise VerificationError(f"body: doesn't match '{pattern}'")

    return assertion


def body_not_matches(pattern: str) -> Assertion:
    try:
        compiled = re.compile(pattern)
    except re.error as e:
        return failed(ConstructionError(f"body: invalid pattern '{pattern}': {str(e)}"))

    def assertion(response: httpx.Response) -> None:
        if compiled.search(response.text):
            raise VerificationError(f"body: matches '{pattern}' while it shouldn't")

    return assertion


def body_schema(schema: dict[str, Any] | str | Path) -> Assertion:
    """Validate the JSON body against a JSON Schema given inline or as a file path."""
    if isinstance(schema, str | Path):
        schema_path = Path(schema)
        try:
            schema = json.loads(schema_path.read_text())
        except (OSError, json.JSONDecodeError) as e:
            return failed(ConstructionError(f"schema: error reading schema file '{schema_path}': {str(e)}"))

    try:
        validator_class = jsonschema.validators.validator_for(schema)
        validator_class.check_schema(schema)
    except jsonschema.SchemaError as e:
        return failed(ConstructionError(f"schema: invalid JSON Schema: {e.message}"))
    validator = validator_class(schema)

    def assertion(response: httpx.Response) -> None:
        try:
            instance = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise VerificationError(f"schema: response is not valid JSON: {str(e)}") from None

        try:
            validator.validate(instance)
        except jsonschema.ValidationError as e:
            raise VerificationError(f"schema: body schema validation failed: {e.message}") from None

    return assertion


def body_jmespath(expression: str, expected: Any) -> Assertion:
    """Search the JSON body with a JMESPath expression and compare the result to ``expected``."""
    try:
        compiled = jmespath.compile(expression)
    except jmespath.exceptions.JMESPathError as e:
        return failed(ConstructionError(f"jmespath: invalid expression '{expression}': {str(e)}"))

    def assertion(response: httpx.Response) -> None:
        try:
            instance = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise VerificationError(f"jmespath: response is not valid JSON: {str(e)}") from None

        try:
            actual = compiled.search(instance)
        except jmespath.exceptions.JMESPathError as e:
            raise VerificationError(f"jmespath: error evaluating '{expression}': {str(e)}") from None

        if actual != expected:
            raise VerificationError(f"jmespath: '{expression}' doesn't match: expected {expected!r}, got {actual!r}")

    return assertion
