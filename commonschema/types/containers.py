"""
Container schema types: object, array, arrayset and map.

- object: fixed set of named properties; shorthand is a bare dict
- array: homogeneous list; shorthand is a one-element list
- arrayset: list with set semantics, elements identified by a key
- map: dict with arbitrary keys and homogeneous values

Array-set and map subschemas may carry ``keySchemas``: per-key overrides of
the element/value subschema, created on demand by
get_field_subschema_for_modify().

Invariants:
    - Normalized arrays never contain MISSING holes or None elements
    - Normalized arraysets hold at most one element per key, first
      occurrence wins
    - Setting a child to MISSING removes it; array slots become holes
      that the enclosing transform pass compacts
"""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Tuple

from ..errors import FieldError, SchemaError
from ..handlers import MISSING, is_empty
from ..schema_type import SchemaType, TypeMatch
from ..utils import content_hash, get_path, is_scalar, join_path, stringify

if TYPE_CHECKING:
    from ..schema import Schema

ARRAY_WILDCARDS = ("$", "#", "_", "*")


def compact_list(value: List[Any]) -> None:
    value[:] = [element for element in value if element is not MISSING]


def _normalize_key_schemas(subschema: Dict[str, Any], schema: Schema) -> None:
    key_schemas = subschema.get("keySchemas")
    if key_schemas is None:
        return
    if not isinstance(key_schemas, dict):
        raise SchemaError("keySchemas must be an object")
    for key, key_subschema in key_schemas.items():
        key_schemas[key] = schema._normalize_subschema(key_subschema)


class ObjectType(SchemaType):
    """Dict with declared properties."""

    name = "object"
    container = True
    container_schema_keys_match_value_keys = True

    def match_shorthand_type(self, raw: Any) -> bool:
        return isinstance(raw, dict)

    def normalize_shorthand_schema(self, subschema: Dict[str, Any], schema: Schema) -> Dict[str, Any]:
        if isinstance(subschema.get("type"), dict):
            subschema["properties"] = subschema["type"]
        return subschema

    def normalize_schema(self, subschema: Dict[str, Any], schema: Schema) -> Dict[str, Any]:
        properties = subschema.get("properties")
        if not isinstance(properties, dict):
            raise SchemaError("Object in schema must have properties field")
        for prop, prop_subschema in properties.items():
            properties[prop] = schema._normalize_subschema(prop_subschema)
        return subschema

    def list_schema_subfields(self, subschema: Dict[str, Any], schema: Schema) -> List[str]:
        return list(subschema["properties"])

    def get_field_subschema(self, subschema, field, schema):
        return subschema["properties"].get(field)

    def get_field_subschema_path(self, subschema, field, schema):
        return join_path("properties", field)

    def is_container(self, value, subschema, schema):
        return isinstance(value, dict)

    def list_value_subfields(self, value, subschema, schema):
        return list(value) if isinstance(value, dict) else []

    def get_value_subfield(self, value, subschema, field, schema):
        return value.get(field, MISSING)

    def set_value_subfield(self, value, subschema, field, field_value, schema):
        if field_value is MISSING:
            value.pop(field, None)
        else:
            value[field] = field_value

    def new_empty_container(self, template, subschema, schema):
        return {}

    def validate(self, value, subschema, field, options, schema):
        if not isinstance(value, dict):
            raise FieldError("invalid_type", "Must be an object")

    def normalize(self, value, subschema, field, options, schema):
        self.validate(value, subschema, field, options, schema)
        return value

    def check_type_match(self, value, subschema, schema):
        return TypeMatch.CONTAINER if isinstance(value, dict) else TypeMatch.NONE

    def to_json_schema(self, subschema, schema):
        properties = {}
        required = []
        for prop, prop_subschema in subschema["properties"].items():
            prop_json = schema._subschema_to_json_schema(prop_subschema)
            if prop_json is None:
                continue
            properties[prop] = prop_json
            if prop_subschema.get("required"):
                required.append(prop)
        json_schema: Dict[str, Any] = {"type": "object", "properties": properties}
        if required:
            json_schema["required"] = required
        return json_schema


class ArrayType(SchemaType):
    """List whose elements share one subschema."""

    name = "array"
    container = True

    def match_shorthand_type(self, raw: Any) -> bool:
        return isinstance(raw, list) and len(raw) == 1

    def normalize_shorthand_schema(self, subschema, schema):
        if self.match_shorthand_type(subschema.get("type")):
            subschema["elements"] = subschema["type"][0]
        return subschema

    def normalize_schema(self, subschema, schema):
        if subschema.get("elements") is None:
            raise SchemaError("Array schema must have elements field")
        subschema["elements"] = schema._normalize_subschema(subschema["elements"])
        return subschema

    def list_schema_subfields(self, subschema, schema):
        return ["$"]

    def get_field_subschema(self, subschema, field, schema):
        if field.isdigit() or field in ARRAY_WILDCARDS:
            return subschema["elements"]
        return None

    def get_field_subschema_path(self, subschema, field, schema):
        return "elements"

    def is_container(self, value, subschema, schema):
        return isinstance(value, list)

    def list_value_subfields(self, value, subschema, schema):
        return [str(index) for index in range(len(value))] if isinstance(value, list) else []

    def get_value_subfield(self, value, subschema, field, schema):
        if not field.isdigit() or int(field) >= len(value):
            return MISSING
        return value[int(field)]

    def set_value_subfield(self, value, subschema, field, field_value, schema):
        if not field.isdigit():
            raise KeyError(f"Invalid array index: {field}")
        index = int(field)
        if index < len(value):
            value[index] = field_value
        elif index == len(value):
            if field_value is not MISSING:
                value.append(field_value)
        else:
            raise IndexError(f"Array index {index} out of range")

    def new_empty_container(self, template, subschema, schema):
        return []

    def transform(self, value, subschema, field, handlers, schema):
        value = super().transform(value, subschema, field, handlers, schema)
        if isinstance(value, list):
            compact_list(value)
        return value

    async def transform_async(self, value, subschema, field, handlers, schema):
        value = await super().transform_async(value, subschema, field, handlers, schema)
        if isinstance(value, list):
            compact_list(value)
        return value

    def validate(self, value, subschema, field, options, schema):
        if not isinstance(value, list):
            raise FieldError("invalid_type", "Must be an array")
        if any(is_empty(element) for element in value):
            raise FieldError("invalid", "Arrays may not contain empty elements")

    def normalize(self, value, subschema, field, options, schema):
        if isinstance(value, list):
            compact_list(value)
        self.validate(value, subschema, field, options, schema)
        return value

    def check_type_match(self, value, subschema, schema):
        return TypeMatch.CONTAINER if isinstance(value, list) else TypeMatch.NONE

    def to_json_schema(self, subschema, schema):
        json_schema: Dict[str, Any] = {"type": "array"}
        items = schema._subschema_to_json_schema(subschema["elements"])
        if items is not None:
            json_schema["items"] = items
        return json_schema


class ArraySetType(SchemaType):
    """List treated as a set of elements identified by a key.

    The key of an element is taken from ``keyField`` (a dot path, or a list
    of dot paths joined with '$'); without keyField the element itself is
    the key. Scalars key by their string form, anything else by a content
    hash.
    """

    name = "arrayset"
    container = True

    def normalize_schema(self, subschema, schema):
        if subschema.get("elements") is None:
            raise SchemaError("ArraySet schema must have elements field")
        key_field = subschema.get("keyField")
        if key_field is not None and not (
            isinstance(key_field, str)
            or (isinstance(key_field, list) and all(isinstance(k, str) for k in key_field))
        ):
            raise SchemaError("ArraySet keyField must be a string or list of strings")
        subschema["elements"] = schema._normalize_subschema(subschema["elements"])
        _normalize_key_schemas(subschema, schema)
        return subschema

    def _encode_key(self, key: Any) -> Optional[str]:
        if is_empty(key):
            return None
        if isinstance(key, list):
            return "$".join(self._encode_key(part) or "" for part in key)
        if is_scalar(key):
            return stringify(key)
        return content_hash(key)

    def get_element_key(self, element: Any, subschema: Dict[str, Any], schema: Schema) -> Optional[str]:
        """Encoded key of one element, or None if it has no key."""
        key_field = subschema.get("keyField")
        if isinstance(key_field, list):
            parts = [get_path(element, path) for path in key_field]
            if all(is_empty(part) for part in parts):
                return None
            return self._encode_key(parts)
        if isinstance(key_field, str):
            return self._encode_key(get_path(element, key_field))
        return self._encode_key(element)

    def _require_key(self, element: Any, subschema: Dict[str, Any], schema: Schema) -> str:
        key = self.get_element_key(element, subschema, schema)
        if key is None:
            raise SchemaError("ArraySet element key does not exist")
        return key

    def _dedupe(self, value: List[Any], subschema: Dict[str, Any], schema: Schema) -> List[Any]:
        seen = set()
        result = []
        for element in value:
            if element is MISSING:
                continue
            key = self.get_element_key(element, subschema, schema)
            if key is not None:
                if key in seen:
                    continue
                seen.add(key)
            result.append(element)
        return result

    def _unique_entries(self, value: List[Any], subschema: Dict[str, Any], schema: Schema) -> List[Tuple[str, Any]]:
        entries = []
        seen = set()
        for element in value:
            key = self.get_element_key(element, subschema, schema)
            if key is None or key in seen:
                continue
            seen.add(key)
            entries.append((key, element))
        return entries

    def list_schema_subfields(self, subschema, schema):
        return ["$", *subschema.get("keySchemas", {})]

    def get_field_subschema(self, subschema, field, schema):
        key_schemas = subschema.get("keySchemas") or {}
        if field in key_schemas:
            return key_schemas[field]
        return subschema["elements"]

    def get_field_subschema_for_modify(self, subschema, field, schema):
        if field == "$":
            return subschema["elements"]
        key_schemas = subschema.setdefault("keySchemas", {})
        if field not in key_schemas:
            key_schemas[field] = copy.deepcopy(subschema["elements"])
        return key_schemas[field]

    def get_field_subschema_path(self, subschema, field, schema):
        if field in (subschema.get("keySchemas") or {}):
            return join_path("keySchemas", field)
        return "elements"

    def is_container(self, value, subschema, schema):
        return isinstance(value, list)

    def list_value_subfields(self, value, subschema, schema):
        if not isinstance(value, list):
            return []
        return [key for key, _ in self.list_value_subfield_entries(value, subschema, schema)]

    def list_value_subfield_entries(self, value, subschema, schema):
        if not isinstance(value, list):
            return []
        entries = []
        seen = set()
        for element in value:
            key = self._require_key(element, subschema, schema)
            if key not in seen:
                seen.add(key)
                entries.append((key, element))
        return entries

    def get_value_subfield(self, value, subschema, field, schema):
        for element in value:
            if self.get_element_key(element, subschema, schema) == field:
                return element
        return MISSING

    def set_value_subfield(self, value, subschema, field, field_value, schema):
        for index, element in enumerate(value):
            if self.get_element_key(element, subschema, schema) == field:
                if field_value is MISSING:
                    del value[index]
                else:
                    value[index] = field_value
                return
        if field_value is not MISSING:
            value.append(field_value)

    def set_value_subfield_batch(
        self, value: List[Any], subschema: Dict[str, Any], new_values: Mapping[str, Any], schema: Schema
    ) -> None:
        key_to_index: Dict[str, int] = {}
        for index, element in enumerate(value):
            key = self.get_element_key(element, subschema, schema)
            if key is not None:
                key_to_index.setdefault(key, index)
        for new_element in new_values.values():
            if new_element is MISSING:
                continue
            key = self._require_key(new_element, subschema, schema)
            if key in key_to_index:
                value[key_to_index[key]] = new_element
            else:
                key_to_index[key] = len(value)
                value.append(new_element)

    def new_empty_container(self, template, subschema, schema):
        return []

    def traverse(self, value, subschema, field, handlers, schema):
        if not isinstance(value, list):
            return
        for key, element in self._unique_entries(value, subschema, schema):
            schema._traverse_subschema_value(
                element,
                self.get_field_subschema(subschema, key, schema),
                join_path(field, key),
                handlers,
            )

    def transform(self, value, subschema, field, handlers, schema):
        if not isinstance(value, list):
            return value
        visited = self._unique_entries(value, subschema, schema)
        visited_ids = {id(element) for _, element in visited}
        result = []
        for element in list(value):
            if id(element) not in visited_ids:
                if self.get_element_key(element, subschema, schema) is None:
                    result.append(element)
                continue
            visited_ids.discard(id(element))
            key = self.get_element_key(element, subschema, schema)
            result.append(
                schema._transform_subschema_value(
                    element,
                    self.get_field_subschema(subschema, key, schema),
                    join_path(field, key),
                    handlers,
                )
            )
        value[:] = self._dedupe(result, subschema, schema)
        return value

    async def transform_async(self, value, subschema, field, handlers, schema):
        if not isinstance(value, list):
            return value
        visited = self._unique_entries(value, subschema, schema)
        visited_ids = {id(element) for _, element in visited}
        result = []
        for element in list(value):
            if id(element) not in visited_ids:
                if self.get_element_key(element, subschema, schema) is None:
                    result.append(element)
                continue
            visited_ids.discard(id(element))
            key = self.get_element_key(element, subschema, schema)
            result.append(
                await schema._transform_subschema_value_async(
                    element,
                    self.get_field_subschema(subschema, key, schema),
                    join_path(field, key),
                    handlers,
                )
            )
        value[:] = self._dedupe(result, subschema, schema)
        return value

    def validate(self, value, subschema, field, options, schema):
        if not isinstance(value, list):
            raise FieldError("invalid_type", "Must be an array")
        for element in value:
            if is_empty(element):
                raise FieldError("invalid", "Arrays may not contain empty elements")
            if self.get_element_key(element, subschema, schema) is None:
                raise FieldError("invalid", "ArraySet element has no key")

    def normalize(self, value, subschema, field, options, schema):
        if isinstance(value, list):
            value[:] = self._dedupe(value, subschema, schema)
        self.validate(value, subschema, field, options, schema)
        return value

    def check_type_match(self, value, subschema, schema):
        return TypeMatch.CONTAINER if isinstance(value, list) else TypeMatch.NONE

    def to_json_schema(self, subschema, schema):
        json_schema: Dict[str, Any] = {"type": "array", "uniqueItems": True}
        items = schema._subschema_to_json_schema(subschema["elements"])
        if items is not None:
            json_schema["items"] = items
        return json_schema


class MapType(SchemaType):
    """Dict with arbitrary keys whose values share one subschema."""

    name = "map"
    container = True

    def normalize_schema(self, subschema, schema):
        if subschema.get("values") is None:
            raise SchemaError("Map schema must have values field")
        subschema["values"] = schema._normalize_subschema(subschema["values"])
        _normalize_key_schemas(subschema, schema)
        return subschema

    def list_schema_subfields(self, subschema, schema):
        return ["$", *subschema.get("keySchemas", {})]

    def get_field_subschema(self, subschema, field, schema):
        key_schemas = subschema.get("keySchemas") or {}
        if field in key_schemas:
            return key_schemas[field]
        return subschema["values"]

    def get_field_subschema_for_modify(self, subschema, field, schema):
        if field == "$":
            return subschema["values"]
        key_schemas = subschema.setdefault("keySchemas", {})
        if field not in key_schemas:
            key_schemas[field] = copy.deepcopy(subschema["values"])
        return key_schemas[field]

    def get_field_subschema_path(self, subschema, field, schema):
        if field in (subschema.get("keySchemas") or {}):
            return join_path("keySchemas", field)
        return "values"

    def is_container(self, value, subschema, schema):
        return isinstance(value, dict)

    def list_value_subfields(self, value, subschema, schema):
        return list(value) if isinstance(value, dict) else []

    def get_value_subfield(self, value, subschema, field, schema):
        return value.get(field, MISSING)

    def set_value_subfield(self, value, subschema, field, field_value, schema):
        if field_value is MISSING:
            value.pop(field, None)
        else:
            value[field] = field_value

    def new_empty_container(self, template, subschema, schema):
        return {}

    def validate(self, value, subschema, field, options, schema):
        if not isinstance(value, dict):
            raise FieldError("invalid_type", "Must be an object")

    def normalize(self, value, subschema, field, options, schema):
        self.validate(value, subschema, field, options, schema)
        return value

    def check_type_match(self, value, subschema, schema):
        return TypeMatch.CONTAINER if isinstance(value, dict) else TypeMatch.NONE

    def to_json_schema(self, subschema, schema):
        json_schema: Dict[str, Any] = {"type": "object"}
        values = schema._subschema_to_json_schema(subschema["values"])
        if values is not None:
            json_schema["patternProperties"] = {"^.*$": values}
        key_schemas = subschema.get("keySchemas") or {}
        properties = {}
        for key, key_subschema in key_schemas.items():
            key_json = schema._subschema_to_json_schema(key_subschema)
            if key_json is not None:
                properties[key] = key_json
        if properties:
            json_schema["properties"] = properties
        return json_schema
