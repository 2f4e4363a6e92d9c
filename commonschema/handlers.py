"""
Traversal handler types.

This module defines the values exchanged between Schema's traversal
engine and caller-supplied handlers:
- MISSING: The "no such field" marker
- Handlers: A bundle of optional on_field / on_unknown_field / post_field callables
- StopTransform / SetAndStopTransform: Results that end descent into one field

Invariants:
    - MISSING is a singleton and survives copy/deepcopy
    - A handler result that is not a TransformResult is the field's new value
    - Stop results affect only the field that returned them; siblings proceed

Example:
    >>> handlers = Handlers(on_field=lambda field, value, subschema, schema_type: value)
    >>> schema.transform(obj, handlers)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional


class _MissingType:
    """Type of the MISSING sentinel."""

    _instance: Optional[_MissingType] = None

    def __new__(cls) -> _MissingType:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False

    def __copy__(self) -> _MissingType:
        return self

    def __deepcopy__(self, memo: dict) -> _MissingType:
        return self

    def __reduce__(self) -> str:
        return "MISSING"


# Value of a field that is absent from its container. Returning it from a
# transform handler deletes the field.
MISSING: Any = _MissingType()


def is_missing(value: Any) -> bool:
    """Whether value is the MISSING sentinel."""
    return value is MISSING


def is_empty(value: Any) -> bool:
    """Whether value carries no data (None or MISSING)."""
    return value is None or value is MISSING


@dataclass
class Handlers:
    """Optional callbacks for Schema.traverse(), transform() and transform_async().

    Attributes:
        on_field: Called as on_field(field, value, subschema, schema_type)
        on_unknown_field: Called as on_unknown_field(field, value)
        post_field: Called as post_field(field, value, subschema, schema_type)
            after the field's children are transformed
    """

    on_field: Optional[Callable[..., Any]] = None
    on_unknown_field: Optional[Callable[..., Any]] = None
    post_field: Optional[Callable[..., Any]] = None


class TransformResult:
    """Base class for results that stop descent into a field."""

    __slots__ = ()


class StopTransform(TransformResult):
    """Keep the original value and do not descend."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "StopTransform()"


class SetAndStopTransform(TransformResult):
    """Install a replacement value and do not descend."""

    __slots__ = ("value",)

    def __init__(self, value: Any) -> None:
        self.value = value

    def __repr__(self) -> str:
        return f"SetAndStopTransform({self.value!r})"
