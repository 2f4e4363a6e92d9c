"""
common-schema: runtime schemas for plain Python data.

Schemas are written in a compact shorthand and normalized into canonical
dict form. A normalized schema can:
- Validate values strictly, collecting every field error
- Normalize values (coerce types, fill defaults, drop unknown fields)
- Traverse and transform values field by field, sync or async
- Export itself as JSON-Schema

Invariants:
    - Schema definitions are normalized once, at construction
    - Validation never mutates the value; normalization may
    - All errors derive from CommonSchemaError

Example:
    >>> from commonschema import create_schema, or_
    >>> schema = create_schema({
    ...     "name": {"type": str, "required": True},
    ...     "tags": [str],
    ...     "id": or_(int, str),
    ... })
    >>> schema.normalize({"name": "widget", "tags": [1, 2], "id": 7})
    {'name': 'widget', 'tags': ['1', '2'], 'id': 7}
"""

from .config import NormalizeOptions, Settings, ValidateOptions, get_settings
from .errors import (
    CommonSchemaError,
    DuplicateTypeError,
    FieldError,
    RegistryFrozenError,
    SchemaError,
    ValidationError,
)
from .handlers import MISSING, Handlers, SetAndStopTransform, StopTransform, is_missing
from .normalizer import Normalizer
from .registry import SchemaFactory, create_schema, get_default_factory, reset_default_factory
from .schema import Schema
from .schema_type import SchemaType, TypeMatch
from .shorthand import Mixed, map_, or_
from .validator import Validator

__all__ = [
    # Schema
    "Schema",
    "create_schema",
    # Factory
    "SchemaFactory",
    "get_default_factory",
    "reset_default_factory",
    # Types
    "SchemaType",
    "TypeMatch",
    # Shorthand
    "Mixed",
    "or_",
    "map_",
    # Handlers
    "Handlers",
    "MISSING",
    "is_missing",
    "StopTransform",
    "SetAndStopTransform",
    "Validator",
    "Normalizer",
    # Config
    "Settings",
    "get_settings",
    "ValidateOptions",
    "NormalizeOptions",
    # Errors
    "CommonSchemaError",
    "SchemaError",
    "FieldError",
    "ValidationError",
    "RegistryFrozenError",
    "DuplicateTypeError",
]
