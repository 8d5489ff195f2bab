"""Query/path parameter validation middleware.

- Reads the OperationContext the router attached to the request
- Validates raw values against the operation's declared parameters
- On failure hands a Problem to the configured problem handler and skips
  the wrapped handler; the middleware writes nothing itself
- A request without operation context is a wiring fault: raises
  MissingOperationContextError instead of passing the request through

Usage::

    validator = query_validator(json_problem_handler())
    router = OperationRouter(middlewares=[validator])
"""

from __future__ import annotations

import functools
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from starlette.responses import Response

from oasparams.binding.decoder import validate_params
from oasparams.gateway.context import get_operation_context
from oasparams.gateway.problem import Problem
from oasparams.shared.errors import MissingOperationContextError, MultiError
from oasparams.shared.logging.error_handler import redact_sensitive

if TYPE_CHECKING:
    from starlette.requests import Request

    from oasparams.gateway.problem import ProblemHandler

logger = logging.getLogger(__name__)

Handler = Callable[["Request"], Awaitable[Response]]
Middleware = Callable[[Handler], Handler]


class QueryValidator:
    """Wraps request handlers with parameter validation."""

    def __init__(
        self,
        problem_handler: ProblemHandler,
        *,
        log_problems: bool = True,
    ) -> None:
        self._problem_handler = problem_handler
        self._log_problems = log_problems

    def __call__(self, handler: Handler) -> Handler:
        @functools.wraps(handler)
        async def validated(request: Request) -> Response:
            return await self.dispatch(request, handler)

        return validated

    async def dispatch(self, request: Request, handler: Handler) -> Response:
        context = get_operation_context(request)
        if context is None:
            raise MissingOperationContextError()

        raw = context.raw_values()
        try:
            validate_params(context.operation.parameters, raw)
        except MultiError as exc:
            if self._log_problems:
                logger.info(
                    "Rejected %s %s operation=%s errors=%d params=%s",
                    request.method,
                    request.url.path,
                    context.operation.operation_id,
                    len(exc),
                    redact_sensitive(raw),
                )
            problem = Problem(exc, request, context.operation)
            result = self._problem_handler(problem)
            if inspect.isawaitable(result):
                await result
            if problem.response is None:
                return Response()
            return problem.response

        return await handler(request)


def query_validator(
    problem_handler: ProblemHandler,
    *,
    log_problems: bool = True,
) -> Middleware:
    """Build a validation middleware reporting failures to ``problem_handler``."""
    return QueryValidator(problem_handler, log_problems=log_problems)
