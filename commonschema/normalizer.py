"""
Normalizer: transform handler that coerces values to a schema.

Schema.normalize() transforms the value with a Normalizer. Each declared
field gets its default filled in, is run through the subschema's inline
``normalize`` function, the type's normalize(), and the inline
``validate`` function, then is checked against ``enum``.

Invariants:
    - A field that fails is removed from the result (MISSING) and its
      FieldError is collected; traversal continues with its siblings
    - Non-callable defaults are deep-copied so results never share them
    - Exceptions other than FieldError propagate unchanged
"""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from .config import NormalizeOptions
from .errors import FieldError
from .handlers import MISSING, is_empty
from .schema_type import SchemaType

if TYPE_CHECKING:
    from .schema import Schema


class Normalizer:
    """Collects FieldErrors and returns coerced values for one normalization pass."""

    def __init__(self, schema: Schema, options: Optional[NormalizeOptions] = None) -> None:
        self.schema = schema
        self.options = options or NormalizeOptions()
        self.field_errors: List[FieldError] = []

    def add_field_error(self, field_error: FieldError) -> None:
        self.field_errors.append(field_error)

    def get_field_errors(self) -> List[FieldError]:
        return self.field_errors

    def on_field(self, field: str, value: Any, subschema: Dict[str, Any], schema_type: SchemaType) -> Any:
        default = subschema.get("default")
        if is_empty(value) and default is not None and not self.options.ignore_defaults:
            value = default() if callable(default) else copy.deepcopy(default)

        if is_empty(value):
            if subschema.get("required") and not self.options.allow_missing_fields:
                self.add_field_error(
                    FieldError("required", subschema.get("requiredError") or "Field is required", field=field)
                )
                return MISSING
            return value

        try:
            normalize_fn = subschema.get("normalize")
            if callable(normalize_fn):
                value = normalize_fn(value, subschema, field, self.options, self.schema)
            value = schema_type.normalize(value, subschema, field, self.options, self.schema)
            validate_fn = subschema.get("validate")
            if callable(validate_fn):
                validate_fn(value, subschema, field, self.options, self.schema)
        except FieldError as e:
            e.field = field
            self.add_field_error(e)
            return MISSING

        enum = subschema.get("enum")
        if isinstance(enum, list) and not schema_type.check_enum(value, enum):
            self.add_field_error(
                FieldError(
                    "unrecognized",
                    subschema.get("enumError") or "Unrecognized value",
                    {"value": value, "enum": enum},
                    field=field,
                )
            )
            return MISSING
        return value

    def on_unknown_field(self, field: str, value: Any) -> Any:
        if self.options.remove_unknown_fields:
            return MISSING
        if not self.options.allow_unknown_fields:
            self.add_field_error(FieldError("unknown_field", "Unknown field", field=field))
        return value
