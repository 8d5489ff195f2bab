"""Unified error hierarchy for oas-params.

All errors inherit from OasError. Two families hang off it:

- ParameterError: validation-class failures caused by request input.
  They are collected exhaustively and surfaced to the client, wrapped
  in a MultiError.
- ConfigurationError: wiring faults between the declared parameters,
  the destination record type and the request pipeline. They are raised
  immediately and must never be merged into the client-facing list.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from typing import Any


class OasError(Exception):
    """Base error for all oas-params exceptions."""

    def __init__(self, message: str, code: str = "OAS_ERROR") -> None:
        self.code = code
        super().__init__(message)


# -- Validation errors (one per failed parameter) --


class ParameterError(OasError):
    """A single parameter failed validation.

    ``field`` is always the parameter name. ``value`` is only meaningful
    when ``has_value`` is true.
    """

    def __init__(
        self,
        message: str,
        *,
        field: str,
        code: str,
        value: Any = None,
        has_value: bool = False,
    ) -> None:
        self.field = field
        self.value = value
        self.has_value = has_value
        super().__init__(message, code=code)


class MissingRequiredParamError(ParameterError):
    """Required parameter is absent and declares no default."""

    def __init__(self, field: str) -> None:
        super().__init__(
            f"param {field} is required",
            field=field,
            code="PARAM_REQUIRED",
        )


def _describe_type(declared_type: str, declared_format: str | None) -> str:
    if declared_format:
        return f"type {declared_type} and format {declared_format}"
    return f"type {declared_type}"


def _format_values(values: Sequence[Any]) -> str:
    return "[" + " ".join(str(v) for v in values) + "]"


class TypeMismatchError(ParameterError):
    """Raw values cannot be coerced to the declared type/format."""

    def __init__(
        self,
        field: str,
        raw_values: Sequence[str],
        declared_type: str,
        declared_format: str | None = None,
    ) -> None:
        self.raw_values = list(raw_values)
        self.declared_type = declared_type
        self.declared_format = declared_format
        super().__init__(
            f"cannot use values {_format_values(self.raw_values)} as parameter {field} "
            f"with {_describe_type(declared_type, declared_format)}",
            field=field,
            code="PARAM_TYPE_MISMATCH",
            value=self.raw_values,
            has_value=True,
        )


class InvalidDefaultError(ParameterError):
    """Declared default does not satisfy the declared type/format."""

    def __init__(
        self,
        field: str,
        default: Any,
        declared_type: str,
        declared_format: str | None = None,
    ) -> None:
        self.declared_type = declared_type
        self.declared_format = declared_format
        shown = default if isinstance(default, (list, tuple)) else [default]
        super().__init__(
            f"cannot use values {_format_values(shown)} as parameter {field} "
            f"with {_describe_type(declared_type, declared_format)}",
            field=field,
            code="PARAM_INVALID_DEFAULT",
            value=default,
            has_value=True,
        )


class MultiError(OasError):
    """Every parameter failure of one decode/validation pass, in order.

    Never constructed empty.
    """

    def __init__(self, errors: Sequence[ParameterError], message: str = "") -> None:
        if not errors:
            msg = "MultiError requires at least one error"
            raise ValueError(msg)
        self.errors: tuple[ParameterError, ...] = tuple(errors)
        self.message = message or "validation error"
        super().__init__(
            f"{self.message}: " + "; ".join(str(e) for e in self.errors),
            code="VALIDATION",
        )

    def __iter__(self) -> Iterator[ParameterError]:
        return iter(self.errors)

    def __len__(self) -> int:
        return len(self.errors)

    @property
    def fields(self) -> list[str]:
        return [e.field for e in self.errors]


# -- Configuration errors (wiring defects, raised immediately) --


class ConfigurationError(OasError):
    """Declared schema, destination type and pipeline wiring are out of sync."""


class DestinationInvalidError(ConfigurationError):
    """Decode destination is not a mutable dataclass instance."""

    def __init__(self, message: str = "dst is not a mutable dataclass instance (cannot modify)") -> None:
        super().__init__(message, code="DESTINATION_INVALID")


class FieldNotSettableError(ConfigurationError):
    """A parameter is bound to a field that may not be written."""

    def __init__(self, attribute: str, record_type: str) -> None:
        self.attribute = attribute
        self.record_type = record_type
        super().__init__(
            f"field {attribute} of type {record_type} is not settable",
            code="FIELD_NOT_SETTABLE",
        )


class MissingOperationContextError(ConfigurationError):
    """Validator mounted on a route that carries no matched operation."""

    def __init__(self) -> None:
        super().__init__(
            "request has no OpenAPI parameters in its context",
            code="MISSING_OPERATION_CONTEXT",
        )


__all__ = [
    "ConfigurationError",
    "DestinationInvalidError",
    "FieldNotSettableError",
    "InvalidDefaultError",
    "MissingOperationContextError",
    "MissingRequiredParamError",
    "MultiError",
    "OasError",
    "ParameterError",
    "TypeMismatchError",
]
