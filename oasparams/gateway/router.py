"""Operation router.

Mounts one Starlette route per declared operation. Every matched request
gets an OperationContext attached before the per-route middleware chain
runs, so the query validator always sees the operation it belongs to.

Middlewares are applied in list order, first one outermost:
    middlewares=[mw_1, mw_2] -> mw_1(mw_2(handler))
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from starlette.routing import Route

from oasparams.binding.decoder import check_defaults
from oasparams.gateway.context import OperationContext, attach_operation_context
from oasparams.shared.errors import ConfigurationError, MultiError
from oasparams.spec.document import operations_from_document

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from starlette.requests import Request
    from starlette.responses import Response

    from oasparams.gateway.middleware.query_validator import Handler, Middleware
    from oasparams.spec.parameter import OperationSpec

logger = logging.getLogger(__name__)


class OperationRouter:
    """Registry of operations and their handlers, exposed as Starlette routes."""

    def __init__(
        self,
        *,
        middlewares: Sequence[Middleware] | None = None,
        check_defaults: bool = True,
    ) -> None:
        self._middlewares = list(middlewares or [])
        self._check_defaults = check_defaults
        self._operations: dict[str, OperationSpec] = {}
        self._routes: list[Route] = []

    @property
    def routes(self) -> list[Route]:
        return list(self._routes)

    @property
    def operations(self) -> dict[str, OperationSpec]:
        return dict(self._operations)

    def add_operation(self, operation: OperationSpec, handler: Handler) -> Route:
        """Register ``handler`` for ``operation``.

        Raises:
            ConfigurationError: duplicate operation id, or (when default
                checking is on) a declared default of the wrong type.
        """
        if operation.operation_id in self._operations:
            msg = f"operation {operation.operation_id} is already registered"
            raise ConfigurationError(msg, code="DUPLICATE_OPERATION")

        if self._check_defaults:
            try:
                check_defaults(operation.parameters)
            except MultiError as exc:
                msg = f"operation {operation.operation_id} declares invalid defaults: {exc}"
                raise ConfigurationError(msg, code="INVALID_DEFAULTS") from exc

        endpoint = handler
        for middleware in reversed(self._middlewares):
            endpoint = middleware(endpoint)

        async def with_operation(request: Request, _next: Handler = endpoint) -> Response:
            attach_operation_context(request, OperationContext.from_request(request, operation))
            return await _next(request)

        route = Route(
            operation.path,
            with_operation,
            methods=[operation.method],
            name=operation.operation_id,
        )
        self._operations[operation.operation_id] = operation
        self._routes.append(route)
        logger.debug(
            "Registered operation %s: %s %s (%d params)",
            operation.operation_id,
            operation.method,
            operation.path,
            len(operation.parameters),
        )
        return route

    def add_document(
        self,
        document: Mapping[str, Any],
        handlers: Mapping[str, Handler],
    ) -> list[Route]:
        """Register every operation of ``document`` that has a handler.

        Handlers are keyed by operationId; operations without one are skipped.
        """
        routes: list[Route] = []
        for operation in operations_from_document(document):
            handler = handlers.get(operation.operation_id)
            if handler is None:
                logger.debug("No handler for operation %s, skipped", operation.operation_id)
                continue
            routes.append(self.add_operation(operation, handler))
        return routes
