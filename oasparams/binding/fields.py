"""Destination record bindings.

A destination record is a regular (non-frozen) dataclass whose fields
declare the parameter they bind to with ``param()``::

    @dataclass
    class Member:
        nickname: str = param("nickname", default="")
        age: int = param("age", default=0)
        height: float | None = param("height", default=None)

Fields without ``param()`` are never touched by the decoder. Bound fields
whose attribute name starts with an underscore are private and cannot be
assigned; binding a parameter to one is a configuration error.

The binding for a type is computed once and cached, so per-request decoding
never walks dataclass metadata again.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

from oasparams.shared.errors import (
    ConfigurationError,
    DestinationInvalidError,
    FieldNotSettableError,
)

BINDING_KEY = "oas"


def param(name: str, **kwargs: Any) -> Any:
    """Declare a dataclass field bound to the parameter ``name``.

    Accepts the same keyword arguments as ``dataclasses.field``.
    """
    metadata = {**(kwargs.pop("metadata", None) or {}), BINDING_KEY: name}
    return dataclasses.field(metadata=metadata, **kwargs)


@dataclass(frozen=True)
class FieldBinding:
    """One parameter -> attribute association on a record type."""

    param_name: str
    attribute: str
    record_type: type

    @property
    def settable(self) -> bool:
        return not self.attribute.startswith("_")

    def check_settable(self) -> None:
        if not self.settable:
            raise FieldNotSettableError(self.attribute, self.record_type.__name__)

    def assign(self, dst: Any, value: Any) -> None:
        self.check_settable()
        setattr(dst, self.attribute, value)


@dataclass(frozen=True)
class RecordBinding:
    """All parameter bindings declared by one dataclass type."""

    record_type: type
    fields: dict[str, FieldBinding]

    @staticmethod
    def for_type(record_type: type) -> RecordBinding:
        """Return the cached binding for ``record_type``.

        Raises:
            DestinationInvalidError: not a mutable dataclass type.
            ConfigurationError: two fields bind the same parameter.
        """
        return _build_binding(record_type)

    def get(self, param_name: str) -> FieldBinding | None:
        return self.fields.get(param_name)


def is_mutable_record(obj: Any) -> bool:
    """True for dataclass instances (not classes) that are not frozen."""
    if isinstance(obj, type) or not dataclasses.is_dataclass(obj):
        return False
    return not type(obj).__dataclass_params__.frozen  # type: ignore[attr-defined]


@lru_cache(maxsize=None)
def _build_binding(record_type: type) -> RecordBinding:
    if (
        not isinstance(record_type, type)
        or not dataclasses.is_dataclass(record_type)
        or record_type.__dataclass_params__.frozen  # type: ignore[attr-defined]
    ):
        name = getattr(record_type, "__name__", type(record_type).__name__)
        raise DestinationInvalidError(f"{name} is not a mutable dataclass (cannot modify)")

    fields: dict[str, FieldBinding] = {}
    for f in dataclasses.fields(record_type):
        param_name = f.metadata.get(BINDING_KEY)
        if not param_name:
            continue
        if param_name in fields:
            msg = (
                f"parameter {param_name} is bound to both {fields[param_name].attribute} "
                f"and {f.name} on {record_type.__name__}"
            )
            raise ConfigurationError(msg, code="DUPLICATE_BINDING")
        fields[param_name] = FieldBinding(
            param_name=param_name,
            attribute=f.name,
            record_type=record_type,
        )
    return RecordBinding(record_type=record_type, fields=fields)
