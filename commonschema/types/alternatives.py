"""
The ``or`` schema type: a value matches one of several alternatives.

For each value the resolver scores every alternative with
check_type_match(), picks a sole best scorer, and breaks ties by probing:

1. Does the value strictly validate against the alternative?
2. Does a copy of the value normalize against it?
3. Does a copy normalize when unknown fields are allowed?
4. Otherwise the first tied alternative wins.

If every alternative scores NONE, the first alternative is used.
Alternatives should therefore be listed in order of preference.

Traversal re-dispatches the same field with the chosen alternative, so
handlers see an or-field twice: once with the or subschema and once with
the alternative.
"""

from __future__ import annotations

import copy
import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from ..config import NormalizeOptions, ValidateOptions
from ..errors import SchemaError
from ..schema_type import SchemaType, TypeMatch
from ..utils import join_path

if TYPE_CHECKING:
    from ..schema import Schema

logger = logging.getLogger(__name__)


class OrType(SchemaType):
    """Union of alternative subschemas."""

    name = "or"
    container = True

    def normalize_schema(self, subschema, schema):
        alternatives = subschema.get("alternatives")
        if not isinstance(alternatives, list):
            raise SchemaError("Or schema must have alternatives field")
        if len(alternatives) < 2:
            raise SchemaError("Or schema must have at least 2 options")
        subschema["alternatives"] = [schema._normalize_subschema(alt) for alt in alternatives]
        return subschema

    def traverse_schema(self, subschema, path, raw_path, on_subschema, schema):
        for index, alt in enumerate(subschema["alternatives"]):
            schema._traverse_subschema(
                alt,
                path,
                join_path(raw_path, f"alternatives.{index}"),
                on_subschema,
            )

    def get_field_subschema(self, subschema, field, schema):
        for alt in subschema["alternatives"]:
            field_subschema = schema.get_schema_type(alt).get_field_subschema(alt, field, schema)
            if field_subschema is not None:
                return field_subschema
        return None

    def get_field_subschema_for_modify(self, subschema, field, schema):
        for alt in subschema["alternatives"]:
            field_subschema = schema.get_schema_type(alt).get_field_subschema_for_modify(alt, field, schema)
            if field_subschema is not None:
                return field_subschema
        return None

    # Value accessors act through whichever alternative the value resolves to.

    def is_container(self, value, subschema, schema):
        alt = self.match_alternative(value, subschema, schema)
        return schema.get_schema_type(alt).is_container(value, alt, schema)

    def get_field_value_subschema(self, value, subschema, field, schema):
        alt = self.match_alternative(value, subschema, schema)
        return schema.get_schema_type(alt).get_field_value_subschema(value, alt, field, schema)

    def get_value_subfield(self, value, subschema, field, schema):
        alt = self.match_alternative(value, subschema, schema)
        return schema.get_schema_type(alt).get_value_subfield(value, alt, field, schema)

    def set_value_subfield(self, value, subschema, field, field_value, schema):
        alt = self.match_alternative(value, subschema, schema)
        schema.get_schema_type(alt).set_value_subfield(value, alt, field, field_value, schema)

    def new_empty_container(self, template, subschema, schema):
        for alt in subschema["alternatives"]:
            try:
                return schema.get_schema_type(alt).new_empty_container(template, alt, schema)
            except TypeError:
                continue
        raise TypeError("No alternative of or type is a container")

    def traverse(self, value, subschema, field, handlers, schema):
        alt = self.match_alternative(value, subschema, schema)
        schema._traverse_subschema_value(value, alt, field, handlers)

    def transform(self, value, subschema, field, handlers, schema):
        alt = self.match_alternative(value, subschema, schema)
        return schema._transform_subschema_value(value, alt, field, handlers)

    async def transform_async(self, value, subschema, field, handlers, schema):
        alt = self.match_alternative(value, subschema, schema)
        return await schema._transform_subschema_value_async(value, alt, field, handlers)

    def match_alternative(self, value: Any, subschema: Dict[str, Any], schema: Schema) -> Dict[str, Any]:
        """Return the alternative subschema that best fits value."""
        alternatives = subschema["alternatives"]
        by_match: Dict[TypeMatch, List[Dict[str, Any]]] = {level: [] for level in TypeMatch}
        for alt in alternatives:
            level = schema.get_schema_type(alt).check_type_match(value, alt, schema)
            by_match[TypeMatch(level)].append(alt)

        tied: Optional[List[Dict[str, Any]]] = None
        for level in (TypeMatch.EXACT, TypeMatch.COERCIBLE, TypeMatch.CONTAINER):
            if len(by_match[level]) == 1:
                return by_match[level][0]
            if len(by_match[level]) >= 2:
                tied = by_match[level]
                break
        if tied is None:
            return alternatives[0]

        logger.debug(f"Breaking tie between {len(tied)} alternatives: {[alt['type'] for alt in tied]}")
        for alt in tied:
            if not schema._create_subschema(alt).collect_validation_errors(value, ValidateOptions()):
                return alt
        for alt in tied:
            _, errors = schema._create_subschema(alt).normalize_collecting_errors(
                copy.deepcopy(value), NormalizeOptions()
            )
            if not errors:
                return alt
        for alt in tied:
            _, errors = schema._create_subschema(alt).normalize_collecting_errors(
                copy.deepcopy(value), NormalizeOptions(allow_unknown_fields=True)
            )
            if not errors:
                return alt
        return tied[0]

    def check_type_match(self, value, subschema, schema):
        return max(
            TypeMatch(schema.get_schema_type(alt).check_type_match(value, alt, schema))
            for alt in subschema["alternatives"]
        )

    def to_json_schema(self, subschema, schema):
        return {"anyOf": [schema._subschema_to_json_schema(alt) for alt in subschema["alternatives"]]}
