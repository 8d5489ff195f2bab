"""Problem object and reference problem handler tests."""

from __future__ import annotations

import json
import logging

import pytest
from starlette.requests import Request
from starlette.responses import JSONResponse

from oasparams.gateway.problem import (
    ErrorItem,
    Problem,
    describe_error,
    error_payload,
    json_problem_handler,
    logging_problem_handler,
    render_errors,
)
from oasparams.shared.errors import (
    InvalidDefaultError,
    MissingOperationContextError,
    MissingRequiredParamError,
    MultiError,
    TypeMismatchError,
)


def _request() -> Request:
    return Request({"type": "http", "method": "GET", "path": "/", "headers": [], "query_string": b""})


@pytest.fixture()
def multi() -> MultiError:
    return MultiError(
        [
            MissingRequiredParamError("password"),
            TypeMismatchError("age", ["abc"], "integer", "int32"),
        ]
    )


class TestProblem:
    def test_errors_from_multi_error(self, multi: MultiError) -> None:
        problem = Problem(multi, _request())
        assert problem.errors == multi.errors
        assert problem.cause is multi

    def test_single_cause_wrapped(self) -> None:
        cause = MissingOperationContextError()
        assert Problem(cause, _request()).errors == (cause,)

    def test_no_response_until_written(self, multi: MultiError) -> None:
        assert Problem(multi, _request()).response is None

    def test_write(self, multi: MultiError) -> None:
        problem = Problem(multi, _request())
        problem.write("bad", status_code=422, headers={"X-Reason": "params"})
        assert problem.response is not None
        assert problem.response.status_code == 422
        assert problem.response.body == b"bad"
        assert problem.response.headers["x-reason"] == "params"

    def test_respond(self, multi: MultiError) -> None:
        problem = Problem(multi, _request())
        response = JSONResponse({"ok": False})
        problem.respond(response)
        assert problem.response is response


class TestErrorItem:
    def test_missing_required_has_field_only(self) -> None:
        item = ErrorItem.from_error(MissingRequiredParamError("password"))
        assert item.model_dump(exclude_unset=True) == {
            "message": "param password is required",
            "field": "password",
        }

    def test_type_mismatch_has_value(self) -> None:
        item = ErrorItem.from_error(TypeMismatchError("age", ["abc"], "integer"))
        assert item.model_dump(exclude_unset=True)["value"] == ["abc"]

    def test_invalid_default_value_is_default(self) -> None:
        item = ErrorItem.from_error(InvalidDefaultError("flag", 123, "boolean"))
        assert item.value == 123

    def test_configuration_error_message_only(self) -> None:
        item = ErrorItem.from_error(MissingOperationContextError())
        assert item.model_dump(exclude_unset=True) == {
            "message": "request has no OpenAPI parameters in its context"
        }


class TestRendering:
    def test_error_payload_in_order(self, multi: MultiError) -> None:
        payload = error_payload(Problem(multi, _request()))
        assert payload == {
            "errors": [
                {"message": "param password is required", "field": "password"},
                {
                    "message": (
                        "cannot use values [abc] as parameter age with type integer and format int32"
                    ),
                    "field": "age",
                    "value": ["abc"],
                },
            ]
        }

    def test_render_errors_accepts_multi_error(self, multi: MultiError) -> None:
        assert len(render_errors(multi)["errors"]) == 2

    def test_json_handler(self, multi: MultiError) -> None:
        problem = Problem(multi, _request())
        json_problem_handler(status_code=422)(problem)
        assert problem.response is not None
        assert problem.response.status_code == 422
        assert json.loads(problem.response.body)["errors"][0]["field"] == "password"

    def test_describe_error(self) -> None:
        item = ErrorItem.from_error(TypeMismatchError("age", ["abc"], "integer"))
        assert describe_error(item) == (
            "field=age value=['abc'] message=cannot use values [abc] as parameter age "
            "with type integer"
        )

    def test_describe_error_redacts_sensitive_value(self) -> None:
        item = ErrorItem.from_error(TypeMismatchError("password", ["hunter2"], "integer"))
        assert "value=[REDACTED]" in describe_error(item)


class TestLoggingProblemHandler:
    def test_logs_each_error(self, multi: MultiError, caplog: pytest.LogCaptureFixture) -> None:
        log = logging.getLogger("test.problems")
        problem = Problem(multi, _request())
        with caplog.at_level(logging.INFO, logger="test.problems"):
            logging_problem_handler(log)(problem)

        messages = [r.getMessage() for r in caplog.records]
        assert messages == [
            "problem handler: validation error: field=password message=param password is required",
            "problem handler: validation error: field=age value=['abc'] "
            "message=cannot use values [abc] as parameter age with type integer and format int32",
        ]
        assert problem.response is None

    def test_logs_single_cause(self, caplog: pytest.LogCaptureFixture) -> None:
        log = logging.getLogger("test.problems.single")
        with caplog.at_level(logging.INFO, logger="test.problems.single"):
            logging_problem_handler(log)(Problem(MissingOperationContextError(), _request()))
        assert caplog.records[0].getMessage() == (
            "problem handler: request has no OpenAPI parameters in its context"
        )
