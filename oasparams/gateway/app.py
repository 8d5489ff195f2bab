"""FastAPI application factory.

Composition root for a validated API:
- operations come from a Swagger 2.0 document (handlers keyed by
  operationId) and/or explicit (OperationSpec, handler) pairs
- every operation route runs the query validator first
- configuration faults (missing operation context, unsettable fields,
  bad destinations) are logged as structured errors and answered with 500;
  they never reach the client as validation problems
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from oasparams.gateway.config import GatewayConfig
from oasparams.gateway.context import get_operation_context
from oasparams.gateway.middleware.query_validator import query_validator
from oasparams.gateway.problem import json_problem_handler, render_errors
from oasparams.gateway.router import OperationRouter
from oasparams.shared.errors import ConfigurationError, MultiError, OasError
from oasparams.shared.logging.error_handler import log_structured_error

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from oasparams.gateway.middleware.query_validator import Handler, Middleware
    from oasparams.gateway.problem import ProblemHandler
    from oasparams.spec.parameter import OperationSpec

logger = logging.getLogger(__name__)


def _log_fault(request: Request, exc: OasError) -> None:
    context = get_operation_context(request)
    operation = context.operation if context else None
    log_structured_error(
        logger,
        exc,
        operation_id=operation.operation_id if operation else "",
        method=request.method,
        path=request.url.path,
        parameters=[p.name for p in operation.parameters] if operation else (),
        context={"query": dict(request.query_params)},
    )


def create_app(
    *,
    document: Mapping[str, Any] | None = None,
    handlers: Mapping[str, Handler] | None = None,
    operations: Sequence[tuple[OperationSpec, Handler]] | None = None,
    config: GatewayConfig | None = None,
    problem_handler: ProblemHandler | None = None,
    middlewares: Sequence[Middleware] | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        document: Parsed Swagger 2.0 document to mount.
        handlers: operationId -> async handler for ``document``.
        operations: Extra (OperationSpec, handler) pairs to mount.
        config: Gateway configuration. Falls back to environment variables.
        problem_handler: Renders validation problems. Defaults to the JSON
            ``{"errors": [...]}`` handler with ``config.problem_status_code``.
        middlewares: Extra per-operation middlewares, run after validation.

    Returns:
        Configured FastAPI application.
    """
    cfg = config or GatewayConfig.from_env()
    on_problem = problem_handler or json_problem_handler(cfg.problem_status_code)

    router = OperationRouter(
        middlewares=[
            query_validator(on_problem, log_problems=cfg.log_problems),
            *(middlewares or []),
        ],
        check_defaults=cfg.check_defaults,
    )
    if document is not None:
        router.add_document(document, handlers or {})
    for operation, handler in operations or []:
        router.add_operation(operation, handler)

    app = FastAPI(
        title="oas-params gateway",
        version="0.1.0",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.config = cfg
    app.state.operation_router = router
    app.router.routes.extend(router.routes)

    # -- Error handlers --

    @app.exception_handler(ConfigurationError)
    async def _configuration_error(request: Request, exc: ConfigurationError) -> JSONResponse:
        _log_fault(request, exc)
        return JSONResponse(
            status_code=500,
            content={"error": exc.code, "message": str(exc)},
        )

    # Handlers that decode directly (ParameterBinder) and let MultiError escape.
    @app.exception_handler(MultiError)
    async def _multi_error(_: Request, exc: MultiError) -> JSONResponse:
        return JSONResponse(
            status_code=cfg.problem_status_code,
            content=render_errors(exc),
        )

    @app.exception_handler(OasError)
    async def _oas_error(request: Request, exc: OasError) -> JSONResponse:
        _log_fault(request, exc)
        return JSONResponse(
            status_code=500,
            content={"error": exc.code, "message": str(exc)},
        )

    @app.get("/healthz", tags=["system"])
    async def healthz() -> dict[str, str]:
        return {"status": "ok"}

    logger.info("Gateway ready: %d operations mounted", len(router.operations))
    return app
