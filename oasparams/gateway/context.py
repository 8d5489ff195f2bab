"""Per-request operation context.

The router attaches an OperationContext to every request it matches to an
operation. Downstream middleware (the query validator) reads it back from
``request.state``.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from oasparams.spec.parameter import OperationSpec, ParameterLocation  # noqa: TC001

if TYPE_CHECKING:
    from starlette.requests import Request

_STATE_ATTR = "operation_context"


@dataclass(frozen=True)
class OperationContext:
    """Matched operation plus the request's raw query and path values."""

    operation: OperationSpec
    query: Mapping[str, Sequence[str]] = field(default_factory=dict)
    path: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_request(cls, request: Request, operation: OperationSpec) -> OperationContext:
        query = {key: request.query_params.getlist(key) for key in request.query_params}
        path = {key: str(value) for key, value in request.path_params.items()}
        return cls(operation=operation, query=query, path=path)

    def raw_values(self) -> dict[str, list[str]]:
        """Raw values for each declared parameter, read from its location."""
        raw: dict[str, list[str]] = {}
        for spec in self.operation.parameters:
            if spec.location is ParameterLocation.PATH:
                if spec.name in self.path:
                    raw[spec.name] = [self.path[spec.name]]
            elif spec.name in self.query:
                raw[spec.name] = list(self.query[spec.name])
        return raw


def attach_operation_context(request: Request, context: OperationContext) -> None:
    setattr(request.state, _STATE_ATTR, context)


def get_operation_context(request: Request) -> OperationContext | None:
    return getattr(request.state, _STATE_ATTR, None)
