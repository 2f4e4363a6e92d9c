"""
The ``autodetect`` schema type: structure is read from the value itself.

Dicts and lists are containers; each child gets a subschema chosen from
its own Python type (string, number, boolean, date, binary) or
autodetect again. Useful for walking schemaless data with the same
traversal handlers as schema'd data.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict

from ..handlers import MISSING
from ..schema_type import SchemaType
from .containers import compact_list


def _detect_subschema(value: Any) -> Dict[str, Any]:
    if isinstance(value, str):
        return {"type": "string"}
    if isinstance(value, bool):
        return {"type": "boolean"}
    if isinstance(value, (int, float)):
        return {"type": "number"}
    if isinstance(value, datetime):
        return {"type": "date"}
    if isinstance(value, (bytes, bytearray)):
        return {"type": "binary"}
    return {"type": "autodetect"}


class AutodetectType(SchemaType):
    name = "autodetect"
    container = True

    def is_container(self, value, subschema, schema):
        return isinstance(value, (dict, list))

    def get_field_subschema(self, subschema, field, schema):
        return {"type": "autodetect"}

    def get_field_value_subschema(self, value, subschema, field, schema):
        return _detect_subschema(self.get_value_subfield(value, subschema, field, schema))

    def list_value_subfields(self, value, subschema, schema):
        if isinstance(value, list):
            return [str(index) for index in range(len(value))]
        if isinstance(value, dict):
            return list(value)
        return []

    def get_value_subfield(self, value, subschema, field, schema):
        if isinstance(value, list):
            if field.isdigit() and int(field) < len(value):
                return value[int(field)]
            return MISSING
        return value.get(field, MISSING)

    def set_value_subfield(self, value, subschema, field, field_value, schema):
        if isinstance(value, list):
            index = int(field)
            if index == len(value):
                value.append(field_value)
            else:
                value[index] = field_value
        elif field_value is MISSING:
            value.pop(field, None)
        else:
            value[field] = field_value

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

    def new_empty_container(self, template, subschema, schema):
        if isinstance(template, list):
            return []
        if template is None or isinstance(template, dict):
            return {}
        raise TypeError("Value template is not a container type")

    def to_json_schema(self, subschema, schema):
        return {}
