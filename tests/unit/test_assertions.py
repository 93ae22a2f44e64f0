import json
from http.cookiejar import Cookie

import httpx
import pytest
from pydantic import BaseModel

from pytest_httpexpect.assertions import (
    body_bytes,
    body_contains,
    body_jmespath,
    body_json,
    body_matches,
    body_not_contains,
    body_not_matches,
    body_schema,
    have_cookie,
    have_header,
    to_have_status,
    with_cookie,
    with_header,
)
from pytest_httpexpect.exceptions import ConstructionError, VerificationError
from pytest_httpexpect.helpers import assert_that, multiple

REQUEST = httpx.Request("GET", "https://example.com/api")


def make_response(status: int = 200, content: bytes = b'{"a":"1"}', headers: dict | list | None = None) -> httpx.Response:
    return httpx.Response(status, content=content, headers=headers or {"Content-Type": "application/json"}, request=REQUEST)


class User(BaseModel):
    id: int
    name: str


class TestStatus:
    def test_matching_status(self):
        to_have_status(200)(make_response(200))

    def test_mismatched_status(self):
        with pytest.raises(VerificationError, match=r"status: returned status \(404\) not equal to expected status \(200\)"):
            to_have_status(200)(make_response(404))


class TestHeaders:
    def test_have_header(self):
        have_header("Content-Type")(make_response())

    def test_have_header_missing(self):
        with pytest.raises(VerificationError, match="header: header with name 'X-Missing' not found"):
            have_header("X-Missing")(make_response())

    def test_with_header_passes_value(self):
        seen = []
        with_header("Content-Type", seen.append)(make_response())
        assert seen == ["application/json"]

    def test_with_header_handler_raising(self):
        def handler(value):
            assert value == "text/plain", "wrong content type"

        with pytest.raises(VerificationError, match="header: wrong content type"):
            with_header("Content-Type", handler)(make_response())

    def test_with_header_handler_returning_error(self):
        handler = lambda value: assert_that(value == "text/plain", "got %s", value)  # noqa: E731

        with pytest.raises(VerificationError, match="header: got application/json"):
            with_header("Content-Type", handler)(make_response())

    def test_handler_returning_non_error(self):
        with pytest.raises(VerificationError, match="callback must return None or an exception, got bool"):
            with_header("Content-Type", lambda value: True)(make_response())


class TestCookies:
    @pytest.fixture
    def response(self) -> httpx.Response:
        return make_response(headers=[("Set-Cookie", "session=old; Path=/"), ("Set-Cookie", "session=abc; Path=/"), ("Set-Cookie", "theme=dark")])

    def test_have_cookie(self, response):
        have_cookie("session")(response)

    def test_have_cookie_missing(self, response):
        with pytest.raises(VerificationError, match="cookie: cookie with name 'token' not set"):
            have_cookie("token")(response)

    def test_with_cookie_gets_last_match(self, response):
        seen: list[Cookie | None] = []
        with_cookie("session", seen.append)(response)

        assert seen[0] is not None
        assert seen[0].value == "abc"

    def test_with_cookie_missing_passes_none(self):
        seen = []
        with_cookie("session", seen.append)(make_response())
        assert seen == [None]


class TestBodyBytes:
    def test_callback_receives_body(self):
        seen = []
        body_bytes(seen.append)(make_response(content=b"raw"))
        assert seen == [b"raw"]

    def test_callback_error_is_prefixed(self):
        with pytest.raises(VerificationError, match="body: empty"):
            body_bytes(lambda body: multiple(assert_that(len(body) > 10, "empty")))(make_response(content=b"x"))


class TestBodyJson:
    def test_decodes_untyped(self):
        seen = []
        body_json(seen.append)(make_response())
        assert seen == [{"a": "1"}]

    def test_target_from_annotation(self):
        seen = []

        def callback(user: User) -> None:
            seen.append(user)

        body_json(callback)(make_response(content=b'{"id": 7, "name": "alice"}'))

        assert seen == [User(id=7, name="alice")]

    def test_explicit_target(self):
        seen = []
        body_json(seen.append, dict[str, str])(make_response())
        assert seen == [{"a": "1"}]

    def test_scenario_key_check(self):
        assertion = body_json(lambda data: assert_that(data["a"] == "1", "a is not 1"), dict[str, str])
        assertion(make_response())

        with pytest.raises(VerificationError, match="json: a is not 1"):
            assertion(make_response(content=b'{"a":"2"}'))

    def test_invalid_json(self):
        with pytest.raises(VerificationError, match="json: failed to decode response body"):
            body_json(lambda data: None)(make_response(content=b"not json"))

    def test_validation_failure_is_decode_failure(self):
        with pytest.raises(VerificationError, match="json: failed to decode response body"):
            body_json(lambda data: None, list[int])(make_response())

    def test_not_callable(self):
        assertion = body_json("not a function")

        with pytest.raises(ConstructionError, match="json: given callback is not a function"):
            assertion(make_response())

    @pytest.mark.parametrize(
        "callback",
        [
            lambda: None,
            lambda a, b: None,
            lambda *args: None,
            lambda data, **kwargs: None,
            lambda data, *, required: None,
        ],
        ids=["no_args", "two_args", "varargs", "kwargs", "required_kwonly"],
    )
    def test_wrong_arity(self, callback):
        assertion = body_json(callback)

        with pytest.raises(ConstructionError, match="json: callback must only accept single argument"):
            assertion(make_response())

    def test_optional_keyword_only_allowed(self):
        seen = []

        def callback(data, *, strict=False):
            seen.append(data)

        body_json(callback)(make_response())

        assert seen == [{"a": "1"}]


class TestBodyText:
    def test_contains(self):
        body_contains('"a"')(make_response())

        with pytest.raises(VerificationError, match="body: doesn't contain 'zzz'"):
            body_contains("zzz")(make_response())

    def test_not_contains(self):
        body_not_contains("zzz")(make_response())

        with pytest.raises(VerificationError, match="body: contains '\"a\"' while it shouldn't"):
            body_not_contains('"a"')(make_response())

    def test_matches(self):
        body_matches(r'"a":"\d+"')(make_response())

        with pytest.raises(VerificationError, match="body: doesn't match"):
            body_matches(r"^\[")(make_response())

    def test_not_matches(self):
        body_not_matches(r"^\[")(make_response())

        with pytest.raises(VerificationError, match="while it shouldn't"):
            body_not_matches(r"^\{")(make_response())

    def test_invalid_pattern(self):
        with pytest.raises(ConstructionError, match="invalid pattern"):
            body_matches("(unclosed")(make_response())


class TestBodySchema:
    SCHEMA = {"type": "object", "properties": {"a": {"type": "string"}}, "required": ["a"]}

    def test_valid(self):
        body_schema(self.SCHEMA)(make_response())

    def test_invalid_instance(self):
        with pytest.raises(VerificationError, match="schema: body schema validation failed"):
            body_schema(self.SCHEMA)(make_response(content=b'{"a": 1}'))

    def test_not_json(self):
        with pytest.raises(VerificationError, match="schema: response is not valid JSON"):
            body_schema(self.SCHEMA)(make_response(content=b"<html/>"))

    def test_schema_from_file(self, tmp_path):
        schema_path = tmp_path / "schema.json"
        schema_path.write_text(json.dumps(self.SCHEMA))

        body_schema(schema_path)(make_response())

    def test_missing_schema_file(self, tmp_path):
        with pytest.raises(ConstructionError, match="error reading schema file"):
            body_schema(str(tmp_path / "missing.json"))(make_response())

    def test_invalid_schema(self):
        with pytest.raises(ConstructionError, match="invalid JSON Schema"):
            body_schema({"type": "not-a-type"})(make_response())


class TestBodyJmespath:
    def test_match(self):
        body_jmespath("a", "1")(make_response())

    def test_mismatch(self):
        with pytest.raises(VerificationError, match="jmespath: 'a' doesn't match: expected '2', got '1'"):
            body_jmespath("a", "2")(make_response())

    def test_invalid_expression(self):
        with pytest.raises(ConstructionError, match="jmespath: invalid expression"):
            body_jmespath("a[", "1")(make_response())
