"""Parameter type coercion.

Converts raw query/path strings (and declared defaults) into typed values
according to a ParameterSpec's type and format.

Boolean tokens (case-insensitive):
    true:  true, t, 1, yes, y, on
    false: false, f, 0, no, n, off
Anything else is a type mismatch.

Integers are range-checked against their format; an integer with no
format (or an unknown one) gets the int64 range. Number literals that
overflow to infinity are rejected; only the explicit ``inf``/``infinity``
tokens produce an infinite value.
"""

from __future__ import annotations

import math
import re
from typing import TYPE_CHECKING, Any

from oasparams.shared.errors import InvalidDefaultError, TypeMismatchError
from oasparams.spec.parameter import ParameterType

if TYPE_CHECKING:
    from collections.abc import Sequence

    from oasparams.spec.parameter import ParameterSpec


class CoercionError(ValueError):
    """A single value cannot be converted to the declared type."""


TRUE_TOKENS = frozenset({"true", "t", "1", "yes", "y", "on"})
FALSE_TOKENS = frozenset({"false", "f", "0", "no", "n", "off"})

_INTEGER_RE = re.compile(r"[+-]?[0-9]+")
_NUMBER_RE = re.compile(
    r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|[+-]?(?:inf|infinity|nan)",
    re.IGNORECASE,
)

_INF_TOKENS = frozenset({"inf", "infinity"})

_INT_RANGES: dict[str, tuple[int, int]] = {
    "int32": (-(2**31), 2**31 - 1),
    "int64": (-(2**63), 2**63 - 1),
}
_DEFAULT_INT_FORMAT = "int64"
# Longest int64 magnitude, 9223372036854775808.
_MAX_INT_DIGITS = 19

_FLOAT32_MAX = 3.4028234663852886e38


def _parse_integer(raw: str, fmt: str | None) -> int:
    if not _INTEGER_RE.fullmatch(raw):
        raise CoercionError(f"invalid integer: {raw!r}")
    digits = raw.lstrip("+-").lstrip("0")
    if len(digits) > _MAX_INT_DIGITS:
        raise CoercionError(f"{len(digits)}-digit integer out of range")
    return _check_int_range(int(raw), fmt)


def _check_int_range(value: int, fmt: str | None) -> int:
    """Integers without a known width are held to the int64 range."""
    name = fmt if fmt is not None and fmt in _INT_RANGES else _DEFAULT_INT_FORMAT
    low, high = _INT_RANGES[name]
    if not low <= value <= high:
        raise CoercionError(f"{value} out of range for {name}")
    return value


def _parse_number(raw: str, fmt: str | None) -> float:
    if not _NUMBER_RE.fullmatch(raw):
        raise CoercionError(f"invalid number: {raw!r}")
    value = float(raw)
    if math.isinf(value) and raw.lstrip("+-").lower() not in _INF_TOKENS:
        raise CoercionError(f"{raw!r} out of range for {fmt or 'double'}")
    return _check_float_range(value, fmt)


def _check_float_range(value: float, fmt: str | None) -> float:
    if fmt == "float" and math.isfinite(value) and abs(value) > _FLOAT32_MAX:
        raise CoercionError(f"{value} out of range for float")
    return value


def _parse_boolean(raw: str) -> bool:
    token = raw.lower()
    if token in TRUE_TOKENS:
        return True
    if token in FALSE_TOKENS:
        return False
    raise CoercionError(f"invalid boolean: {raw!r}")


def parse_scalar(raw: str, param_type: ParameterType, fmt: str | None = None) -> Any:
    """Parse one raw string as the given primitive type.

    Raises:
        CoercionError: if the string is not a valid value of the type.
    """
    if param_type is ParameterType.STRING:
        return raw
    if param_type is ParameterType.INTEGER:
        return _parse_integer(raw, fmt)
    if param_type is ParameterType.NUMBER:
        return _parse_number(raw, fmt)
    if param_type is ParameterType.BOOLEAN:
        return _parse_boolean(raw)
    raise CoercionError(f"unsupported type {param_type!r}")


def _check_typed(value: Any, param_type: ParameterType, fmt: str | None) -> Any:
    """Accept an already-typed default value, normalising where lossless."""
    if isinstance(value, str):
        return parse_scalar(value, param_type, fmt)
    if param_type is ParameterType.BOOLEAN:
        if isinstance(value, bool):
            return value
    elif param_type is ParameterType.INTEGER:
        # YAML/JSON loaders hand integral defaults over as float (10.0).
        if isinstance(value, int) and not isinstance(value, bool):
            return _check_int_range(value, fmt)
        if isinstance(value, float) and value.is_integer():
            return _check_int_range(int(value), fmt)
    elif param_type is ParameterType.NUMBER:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return _check_float_range(float(value), fmt)
    raise CoercionError(f"{value!r} is not a {param_type.value}")


def split_raw_values(spec: ParameterSpec, raw_values: Sequence[str]) -> list[str]:
    """Expand delimited array values (csv, pipes, ...) into single elements."""
    delimiter = spec.delimiter
    if delimiter is None:
        return list(raw_values)
    items: list[str] = []
    for raw in raw_values:
        if raw == "":
            continue
        items.extend(raw.split(delimiter))
    return items


def coerce_values(spec: ParameterSpec, raw_values: Sequence[str]) -> Any:
    """Coerce raw request values for ``spec``.

    Scalars use the first raw value. Arrays coerce every element and fail
    as a whole if any element fails.

    Raises:
        TypeMismatchError: one error for the field, carrying all raw values.
    """
    try:
        if spec.is_array:
            return [
                parse_scalar(item, spec.type, spec.format)
                for item in split_raw_values(spec, raw_values)
            ]
        return parse_scalar(raw_values[0], spec.type, spec.format)
    except CoercionError:
        raise TypeMismatchError(
            spec.name, raw_values, spec.type.value, spec.format
        ) from None


def coerce_default(spec: ParameterSpec) -> Any:
    """Coerce the declared default of ``spec`` the way a raw value would be.

    Raises:
        InvalidDefaultError: the default does not satisfy the declared type.
    """
    default = spec.default
    try:
        if spec.is_array:
            if isinstance(default, str):
                default_items: Any = split_raw_values(spec, [default])
            elif isinstance(default, (list, tuple)):
                default_items = default
            else:
                raise CoercionError(f"{default!r} is not an array")
            return [_check_typed(item, spec.type, spec.format) for item in default_items]
        return _check_typed(default, spec.type, spec.format)
    except CoercionError:
        raise InvalidDefaultError(
            spec.name, default, spec.type.value, spec.format
        ) from None
