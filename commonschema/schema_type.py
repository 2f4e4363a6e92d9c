"""
Base contract for schema types.

A SchemaType knows how to:
- Recognize and expand its shorthand form
- Validate and normalize its own canonical subschema
- Enumerate and access child fields of a subschema and of a value
- Validate, normalize and score values against a subschema
- Export a subschema as JSON-Schema

Container types (object, array, arrayset, map, or, autodetect) override the
child accessors; primitive types override validate/normalize. Every method
receives the owning Schema so that types can recurse into the engine.

Invariants:
    - A type instance is stateless with respect to values; caches, if any,
      depend only on the owning factory
    - check_type_match never raises for a bad value; it scores it 0
    - Default traverse/transform visit every value entry, plus every
      declared-but-absent key (as MISSING) when
      container_schema_keys_match_value_keys is set

How to change safely:
    - Override the smallest accessor that expresses the new behaviour;
      the default traverse/transform are built from them
    - Keep set_value_subfield(..., MISSING) meaning "remove this entry"
"""

from __future__ import annotations

from enum import IntEnum
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Tuple

from .config import NormalizeOptions, ValidateOptions
from .errors import FieldError
from .handlers import MISSING
from .utils import join_path

if TYPE_CHECKING:
    from .schema import Schema


class TypeMatch(IntEnum):
    """How well a value fits a type, used by the or-type resolver."""

    NONE = 0
    CONTAINER = 1
    COERCIBLE = 2
    EXACT = 3


class SchemaType:
    """Base class for all schema types.

    Attributes:
        name: Registered type name, stored in canonical subschemas as ``type``
        container: Whether values of this type may have child fields
        container_schema_keys_match_value_keys: Whether the subschema's
            declared subfields correspond one-to-one with value keys (object)
    """

    name: str = ""
    container: bool = False
    container_schema_keys_match_value_keys: bool = False

    def __init__(self, name: Optional[str] = None) -> None:
        if name is not None:
            self.name = name
        if not self.name:
            raise ValueError(f"{type(self).__name__} must define a type name")

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"

    # -- Schema definition -------------------------------------------------

    def match_shorthand_type(self, raw: Any) -> bool:
        """Whether a raw (non-canonical) type marker belongs to this type."""
        return False

    def normalize_shorthand_schema(self, subschema: Dict[str, Any], schema: Schema) -> Dict[str, Any]:
        """Expand the shorthand stored in subschema['type'] into canonical keys."""
        return subschema

    def normalize_schema(self, subschema: Dict[str, Any], schema: Schema) -> Dict[str, Any]:
        """Validate and canonicalize type-specific parameters.

        Raises:
            SchemaError: If a required parameter is missing or malformed
        """
        return subschema

    def list_schema_subfields(self, subschema: Dict[str, Any], schema: Schema) -> List[str]:
        """Child field names declared by the subschema."""
        return []

    def get_field_subschema(
        self, subschema: Dict[str, Any], field: str, schema: Schema
    ) -> Optional[Dict[str, Any]]:
        """Subschema for a child field, or None if the field is not declared."""
        return None

    def get_field_subschema_for_modify(
        self, subschema: Dict[str, Any], field: str, schema: Schema
    ) -> Optional[Dict[str, Any]]:
        """Like get_field_subschema, but returns a node safe to mutate for this field."""
        return self.get_field_subschema(subschema, field, schema)

    def get_field_subschema_path(self, subschema: Dict[str, Any], field: str, schema: Schema) -> Optional[str]:
        """Location of a child's subschema inside this subschema's dict."""
        return None

    def traverse_schema(
        self, subschema: Dict[str, Any], path: str, raw_path: str, on_subschema: Any, schema: Schema
    ) -> None:
        """Visit each declared child subschema."""
        for field in self.list_schema_subfields(subschema, schema):
            field_subschema = self.get_field_subschema(subschema, field, schema)
            if field_subschema is None:
                continue
            raw_field = self.get_field_subschema_path(subschema, field, schema) or field
            schema._traverse_subschema(
                field_subschema,
                join_path(path, field),
                join_path(raw_path, raw_field),
                on_subschema,
            )

    # -- Value access ------------------------------------------------------

    def is_container(self, value: Any, subschema: Dict[str, Any], schema: Schema) -> bool:
        """Whether value should be descended into."""
        return self.container

    def get_field_value_subschema(
        self, value: Any, subschema: Dict[str, Any], field: str, schema: Schema
    ) -> Optional[Dict[str, Any]]:
        """Subschema for a child of a concrete value."""
        return self.get_field_subschema(subschema, field, schema)

    def list_value_subfields(self, value: Any, subschema: Dict[str, Any], schema: Schema) -> List[str]:
        return []

    def list_value_subfield_entries(
        self, value: Any, subschema: Dict[str, Any], schema: Schema
    ) -> List[Tuple[str, Any]]:
        return [
            (field, self.get_value_subfield(value, subschema, field, schema))
            for field in self.list_value_subfields(value, subschema, schema)
        ]

    def get_value_subfield(self, value: Any, subschema: Dict[str, Any], field: str, schema: Schema) -> Any:
        return MISSING

    def set_value_subfield(
        self, value: Any, subschema: Dict[str, Any], field: str, field_value: Any, schema: Schema
    ) -> None:
        """Set a child entry; MISSING removes it."""
        raise TypeError(f"Values of type {self.name} have no subfields")

    def set_value_subfield_batch(
        self, value: Any, subschema: Dict[str, Any], new_values: Mapping[str, Any], schema: Schema
    ) -> None:
        for field, field_value in new_values.items():
            self.set_value_subfield(value, subschema, field, field_value, schema)

    def new_empty_container(self, template: Any, subschema: Dict[str, Any], schema: Schema) -> Any:
        raise TypeError(f"Cannot create an empty container of type {self.name}")

    # -- Traversal ---------------------------------------------------------

    def _traversal_entries(self, value: Any, subschema: Dict[str, Any], schema: Schema) -> List[Tuple[str, Any]]:
        entries = self.list_value_subfield_entries(value, subschema, schema)
        if self.container_schema_keys_match_value_keys:
            present = {field for field, _ in entries}
            for field in self.list_schema_subfields(subschema, schema):
                if field not in present:
                    entries.append((field, MISSING))
        return entries

    def traverse(self, value: Any, subschema: Dict[str, Any], field: str, handlers: Any, schema: Schema) -> None:
        """Dispatch each child of value back into the engine."""
        if not self.is_container(value, subschema, schema):
            return
        for key, field_value in self._traversal_entries(value, subschema, schema):
            schema._traverse_subschema_value(
                field_value,
                self.get_field_value_subschema(value, subschema, key, schema),
                join_path(field, key),
                handlers,
            )

    def transform(self, value: Any, subschema: Dict[str, Any], field: str, handlers: Any, schema: Schema) -> Any:
        """Transform each child of value in place; returns the (possibly new) value."""
        if not self.is_container(value, subschema, schema):
            return value
        for key, field_value in self._traversal_entries(value, subschema, schema):
            new_value = schema._transform_subschema_value(
                field_value,
                self.get_field_value_subschema(value, subschema, key, schema),
                join_path(field, key),
                handlers,
            )
            if new_value is not field_value:
                self.set_value_subfield(value, subschema, key, new_value, schema)
        return value

    async def transform_async(
        self, value: Any, subschema: Dict[str, Any], field: str, handlers: Any, schema: Schema
    ) -> Any:
        """Async form of transform(); children are processed one at a time."""
        if not self.is_container(value, subschema, schema):
            return value
        for key, field_value in self._traversal_entries(value, subschema, schema):
            new_value = await schema._transform_subschema_value_async(
                field_value,
                self.get_field_value_subschema(value, subschema, key, schema),
                join_path(field, key),
                handlers,
            )
            if new_value is not field_value:
                self.set_value_subfield(value, subschema, key, new_value, schema)
        return value

    # -- Values ------------------------------------------------------------

    def validate(self, value: Any, subschema: Dict[str, Any], field: str, options: Any, schema: Schema) -> None:
        """Strictly check value.

        Raises:
            FieldError: If value does not satisfy the type
        """

    def normalize(self, value: Any, subschema: Dict[str, Any], field: str, options: Any, schema: Schema) -> Any:
        """Coerce value into the type's canonical form.

        Raises:
            FieldError: If value cannot be coerced
        """
        return value

    def check_enum(self, value: Any, valid_values: List[Any]) -> bool:
        return value in valid_values

    def check_type_match(self, value: Any, subschema: Dict[str, Any], schema: Schema) -> TypeMatch:
        """Score value: validates -> EXACT, normalizes -> COERCIBLE, else NONE."""
        try:
            self.validate(value, subschema, "", ValidateOptions(), schema)
            return TypeMatch.EXACT
        except FieldError:
            pass
        try:
            self.normalize(value, subschema, "", NormalizeOptions(), schema)
            return TypeMatch.COERCIBLE
        except FieldError:
            return TypeMatch.NONE

    def to_json_schema(self, subschema: Dict[str, Any], schema: Schema) -> Optional[Dict[str, Any]]:
        """Export subschema as JSON-Schema; None omits the field."""
        raise NotImplementedError(f"Cannot convert type {self.name} to JSON schema")
