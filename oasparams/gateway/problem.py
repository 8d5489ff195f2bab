"""Validation problems and reference problem handlers.

The query validator never formats a response itself. On failure it builds a
Problem (the aggregated cause plus a way to write the response) and hands
it to a problem handler supplied by the application. Two handlers ship
with the package:

- json_problem_handler: ``{"errors": [{"message", "field"?, "value"?}]}``
- logging_problem_handler: logs every error and writes nothing
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel
from starlette.responses import JSONResponse, Response

from oasparams.shared.errors import MultiError, OasError, ParameterError
from oasparams.shared.logging.error_handler import redact_sensitive

if TYPE_CHECKING:
    from starlette.requests import Request

    from oasparams.spec.parameter import OperationSpec

logger = logging.getLogger(__name__)


class Problem:
    """A rejected request: the failure cause plus response-writing capability."""

    def __init__(
        self,
        cause: OasError,
        request: Request,
        operation: OperationSpec | None = None,
    ) -> None:
        self._cause = cause
        self._request = request
        self._operation = operation
        self._response: Response | None = None

    @property
    def cause(self) -> OasError:
        return self._cause

    @property
    def request(self) -> Request:
        return self._request

    @property
    def operation(self) -> OperationSpec | None:
        return self._operation

    @property
    def errors(self) -> tuple[OasError, ...]:
        """Individual failures, in decode order."""
        if isinstance(self._cause, MultiError):
            return self._cause.errors
        return (self._cause,)

    @property
    def response(self) -> Response | None:
        """Whatever the problem handler wrote, if anything."""
        return self._response

    def respond(self, response: Response) -> None:
        self._response = response

    def write(
        self,
        content: str | bytes,
        *,
        status_code: int = 400,
        media_type: str = "text/plain",
        headers: dict[str, str] | None = None,
    ) -> None:
        self._response = Response(
            content=content,
            status_code=status_code,
            media_type=media_type,
            headers=headers,
        )


ProblemHandler = Callable[[Problem], "Awaitable[None] | None"]


# -- Response models --


class ErrorItem(BaseModel):
    """One rendered failure. Unset optional keys are left out of the body."""

    message: str
    field: str | None = None
    value: Any = None

    @classmethod
    def from_error(cls, error: OasError) -> ErrorItem:
        if isinstance(error, ParameterError):
            if error.has_value:
                return cls(message=str(error), field=error.field, value=error.value)
            return cls(message=str(error), field=error.field)
        return cls(message=str(error))


class ErrorPayload(BaseModel):
    errors: list[ErrorItem]


def render_errors(errors: Iterable[OasError]) -> dict[str, Any]:
    """Render failures as ``{"errors": [...]}``, one entry per error."""
    payload = ErrorPayload(errors=[ErrorItem.from_error(e) for e in errors])
    return payload.model_dump(exclude_unset=True)


def error_payload(problem: Problem) -> dict[str, Any]:
    """Render a problem as ``{"errors": [...]}``."""
    return render_errors(problem.errors)


def json_problem_handler(status_code: int = 400) -> ProblemHandler:
    """Problem handler writing the JSON error payload with ``status_code``."""

    def handle(problem: Problem) -> None:
        problem.respond(JSONResponse(error_payload(problem), status_code=status_code))

    return handle


def describe_error(item: ErrorItem) -> str:
    """``field=<f> value=<v> message=<m>``; sensitive values are redacted."""
    data = item.model_dump(exclude_unset=True)
    msg = ""
    if "field" in data:
        msg += f"field={item.field} "
    if "value" in data:
        value = redact_sensitive({item.field or "": item.value})[item.field or ""]
        msg += f"value={value} "
    return msg + f"message={item.message}"


def logging_problem_handler(
    problem_logger: logging.Logger | None = None,
    level: int = logging.INFO,
) -> ProblemHandler:
    """Problem handler that only logs; the response stays empty."""
    log = problem_logger or logger

    def handle(problem: Problem) -> None:
        cause = problem.cause
        if isinstance(cause, MultiError):
            for error in cause.errors:
                log.log(
                    level,
                    "problem handler: %s: %s",
                    cause.message,
                    describe_error(ErrorItem.from_error(error)),
                )
        else:
            log.log(level, "problem handler: %s", cause)

    return handle
