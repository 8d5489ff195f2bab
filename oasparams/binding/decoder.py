"""Parameter decoding: raw request values -> typed destination record.

Entry points:
- decode_query_params(): bind typed values into a dataclass instance.
- validate_params(): same coercion/required rules with no destination.
- ParameterBinder: a record type and parameter list checked once at
  registration, then decoded per request.

Validation failures for individual parameters never stop the pass: every
failure is collected and raised together as a MultiError, in parameter
order. Configuration faults (bad destination, unsettable field) are
raised immediately on their own.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

from oasparams.binding.coercion import coerce_default, coerce_values
from oasparams.binding.fields import RecordBinding, is_mutable_record
from oasparams.shared.errors import (
    DestinationInvalidError,
    InvalidDefaultError,
    MissingRequiredParamError,
    MultiError,
    ParameterError,
)

if TYPE_CHECKING:
    from oasparams.spec.parameter import ParameterSpec

logger = logging.getLogger(__name__)

RawParameterValues = Mapping[str, Sequence[str]]

_ABSENT = object()


def _lookup(raw: Any, name: str) -> list[str]:
    # Starlette QueryParams / multidicts return only the last value from get().
    if hasattr(raw, "getlist"):
        return list(raw.getlist(name))
    values = raw.get(name)
    if values is None:
        return []
    if isinstance(values, str):
        return [values]
    return list(values)


def _resolve(spec: ParameterSpec, raw: Any) -> Any:
    """Typed value for ``spec``, or _ABSENT when there is nothing to assign.

    Raises:
        ParameterError: missing required value, bad default or bad raw value.
    """
    values = _lookup(raw, spec.name)
    if not values:
        if spec.has_default:
            return coerce_default(spec)
        if spec.required:
            raise MissingRequiredParamError(spec.name)
        return _ABSENT
    return coerce_values(spec, values)


def decode_query_params(
    specs: Sequence[ParameterSpec],
    raw: RawParameterValues,
    dst: Any,
) -> None:
    """Decode ``raw`` into the bound fields of ``dst``.

    Args:
        specs: Declared parameters, processed in order.
        raw: Parameter name -> raw string values.
        dst: Mutable dataclass instance with ``param()`` bindings.

    Raises:
        DestinationInvalidError: ``dst`` is not a mutable dataclass instance;
            nothing is touched.
        FieldNotSettableError: a parameter with a value is bound to a
            private field; raised as soon as it is reached.
        MultiError: one or more parameters failed validation. Fields that
            decoded cleanly are still assigned.
    """
    if not is_mutable_record(dst):
        raise DestinationInvalidError()

    binding = RecordBinding.for_type(type(dst))
    errors: list[ParameterError] = []
    for spec in specs:
        field_binding = binding.get(spec.name)
        if field_binding is None:
            continue
        try:
            value = _resolve(spec, raw)
        except ParameterError as exc:
            errors.append(exc)
            continue
        if value is _ABSENT:
            continue
        field_binding.assign(dst, value)

    if errors:
        logger.debug(
            "decode failed for %s: %d error(s)", type(dst).__name__, len(errors)
        )
        raise MultiError(errors)


def validate_params(
    specs: Sequence[ParameterSpec],
    raw: RawParameterValues,
) -> dict[str, Any]:
    """Validate ``raw`` against every spec without binding.

    Returns:
        Parameter name -> typed value, for parameters that have one.

    Raises:
        MultiError: one or more parameters failed validation.
    """
    values: dict[str, Any] = {}
    errors: list[ParameterError] = []
    for spec in specs:
        try:
            value = _resolve(spec, raw)
        except ParameterError as exc:
            errors.append(exc)
            continue
        if value is not _ABSENT:
            values[spec.name] = value

    if errors:
        raise MultiError(errors)
    return values


def check_defaults(specs: Sequence[ParameterSpec]) -> None:
    """Reject declared defaults that do not satisfy their declared type.

    Raises:
        MultiError: one InvalidDefaultError per offending parameter.
    """
    errors: list[ParameterError] = []
    for spec in specs:
        if not spec.has_default:
            continue
        try:
            coerce_default(spec)
        except InvalidDefaultError as exc:
            errors.append(exc)
    if errors:
        raise MultiError(errors, message="invalid parameter defaults")


class ParameterBinder:
    """A record type bound to an operation's parameters, checked up front.

    Construction fails on everything that would otherwise only surface on
    the first request: a record type that is not a mutable dataclass, a
    parameter bound to a private field, and declared defaults of the wrong
    type.

    Usage::

        binder = ParameterBinder(Member, operation.parameters)
        member = binder.decode(request.query_params)
    """

    def __init__(self, record_type: type, specs: Sequence[ParameterSpec]) -> None:
        if not isinstance(record_type, type):
            raise DestinationInvalidError()
        self._binding = RecordBinding.for_type(record_type)
        self._record_type = record_type
        self._specs = tuple(specs)

        bound = [s for s in self._specs if self._binding.get(s.name) is not None]
        for spec in bound:
            self._binding.fields[spec.name].check_settable()
        check_defaults(bound)

    @property
    def record_type(self) -> type:
        return self._record_type

    @property
    def specs(self) -> tuple[ParameterSpec, ...]:
        return self._specs

    def decode(self, raw: RawParameterValues, dst: Any = None) -> Any:
        """Decode into ``dst``, or into a fresh ``record_type()`` when omitted.

        Raises:
            MultiError: one or more parameters failed validation.
        """
        if dst is None:
            dst = self._record_type()
        elif not isinstance(dst, self._record_type):
            raise DestinationInvalidError(
                f"dst is not a {self._record_type.__name__} instance (cannot modify)"
            )
        decode_query_params(self._specs, raw, dst)
        return dst
