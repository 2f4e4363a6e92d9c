"""
Validator: traversal handler that checks values strictly.

Schema.validate() walks the value with a Validator and raises a
ValidationError if it collected any FieldErrors. Values are checked as if
already normalized: a numeric string does not validate as a number.

Invariants:
    - A missing required field fails unless the subschema has a default
    - A field that fails is not descended into
    - Exceptions other than FieldError propagate unchanged
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional

from .config import ValidateOptions
from .errors import FieldError
from .handlers import is_empty
from .schema_type import SchemaType

if TYPE_CHECKING:
    from .schema import Schema


class Validator:
    """Collects FieldErrors for one validation pass.

    Subclass and pass as ``validator=`` to customize error handling.
    """

    def __init__(self, schema: Schema, options: Optional[ValidateOptions] = None) -> None:
        self.schema = schema
        self.options = options or ValidateOptions()
        self.field_errors: List[FieldError] = []

    def add_field_error(self, field_error: FieldError) -> None:
        self.field_errors.append(field_error)

    def get_field_errors(self) -> List[FieldError]:
        return self.field_errors

    def on_field(self, field: str, value: Any, subschema: Dict[str, Any], schema_type: SchemaType) -> Optional[bool]:
        default = subschema.get("default")
        if is_empty(value) and default is not None:
            value = default() if callable(default) else default

        if is_empty(value):
            if subschema.get("required") and not self.options.allow_missing_fields:
                self.add_field_error(
                    FieldError("required", subschema.get("requiredError") or "Field is required", field=field)
                )
                return False
            return None

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
            return False

        try:
            schema_type.validate(value, subschema, field, self.options, self.schema)
            validate_fn = subschema.get("validate")
            if callable(validate_fn):
                validate_fn(value, subschema, field, self.options, self.schema)
        except FieldError as e:
            e.field = field
            self.add_field_error(e)
            return False
        return None

    def on_unknown_field(self, field: str, value: Any) -> None:
        if not self.options.allow_unknown_fields:
            self.add_field_error(FieldError("unknown_field", "Unknown field", field=field))
