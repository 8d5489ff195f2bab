"""Structured error logging handler.

- Error logs contain: error_code, stack_trace, context
- Request logs also name the operation and its declared parameters, plus
  the parameter or record field the fault is about when there is one
- JSON-friendly dict output for log aggregation
- Sensitive fields (password, token, ...) are redacted, including raw
  parameter values keyed by a sensitive parameter name
"""

from __future__ import annotations

import logging
import traceback
from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Sequence


@dataclass(frozen=True)
class StructuredError:
    """Structured representation of an error for logging."""

    error_code: str
    message: str
    stack_trace: str
    context: dict[str, Any] = field(default_factory=dict)
    operation_id: str = ""
    method: str = ""
    path: str = ""
    parameters: tuple[str, ...] = ()
    parameter: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict suitable for JSON logging."""
        d = asdict(self)
        d["parameters"] = list(self.parameters)
        if "context" in d:
            d["context"] = redact_sensitive(d["context"])
        return d


_SENSITIVE_KEYS = frozenset(
    {
        "password",
        "token",
        "secret",
        "api_key",
        "authorization",
        "cookie",
        "jwt",
        "credential",
    }
)


def redact_sensitive(data: dict[str, Any]) -> dict[str, Any]:
    """Redact values of sensitive keys, recursing into nested dicts."""
    result: dict[str, Any] = {}
    for key, value in data.items():
        if key.lower() in _SENSITIVE_KEYS:
            result[key] = "[REDACTED]"
        elif isinstance(value, dict):
            result[key] = redact_sensitive(value)
        else:
            result[key] = value
    return result


def _error_parameter(exc: Exception) -> str:
    # ParameterError carries the parameter name, FieldNotSettableError the attribute.
    return getattr(exc, "field", "") or getattr(exc, "attribute", "")


def create_structured_error(
    exc: Exception,
    *,
    error_code: str = "",
    operation_id: str = "",
    method: str = "",
    path: str = "",
    parameters: Sequence[str] = (),
    context: dict[str, Any] | None = None,
) -> StructuredError:
    """Create a StructuredError from an exception.

    If the exception has a `.code` attribute (e.g. OasError subclass),
    it is used as the error_code unless overridden.
    """
    code = error_code or getattr(exc, "code", type(exc).__name__)
    stack = traceback.format_exception(type(exc), exc, exc.__traceback__)
    return StructuredError(
        error_code=code,
        message=str(exc),
        stack_trace="".join(stack),
        context=context or {},
        operation_id=operation_id,
        method=method,
        path=path,
        parameters=tuple(parameters),
        parameter=_error_parameter(exc),
    )


def log_structured_error(
    logger: logging.Logger,
    exc: Exception,
    *,
    error_code: str = "",
    operation_id: str = "",
    method: str = "",
    path: str = "",
    parameters: Sequence[str] = (),
    context: dict[str, Any] | None = None,
    level: int = logging.ERROR,
) -> StructuredError:
    """Log an exception as a structured error.

    Returns the StructuredError for further processing.
    """
    structured = create_structured_error(
        exc,
        error_code=error_code,
        operation_id=operation_id,
        method=method,
        path=path,
        parameters=parameters,
        context=context,
    )
    logger.log(level, "structured_error", extra={"structured_error": structured.to_dict()})
    return structured
