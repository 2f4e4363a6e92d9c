"""
Error types for common-schema.

This module defines all exception types raised by the library:
- CommonSchemaError: Base exception
- SchemaError: The schema definition itself is malformed
- FieldError: A single field of a value failed validation or coercion
- ValidationError: Aggregate of every FieldError found in one pass
- RegistryFrozenError / DuplicateTypeError: Type registry misuse

Invariants:
    - All errors inherit from CommonSchemaError
    - SchemaError is raised while building a schema, never while checking a value
    - ValidationError always carries a non-empty, ordered list of FieldErrors
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional


class CommonSchemaError(Exception):
    """Base exception for all common-schema errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "common_schema_error"
        self.details = details or {}


class SchemaError(CommonSchemaError):
    """Schema syntax error.

    Raised when:
    - A type name is not registered
    - A container is missing a structural parameter (properties, elements, values)
    - An or-type has fewer than two alternatives
    - A min/max bound cannot be parsed
    """

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or "Schema syntax error", code="schema_error")


class FieldError(CommonSchemaError):
    """A single field of a value is invalid.

    Raised by SchemaType.validate()/normalize() and by inline refinement
    functions. The traversal stamps ``field`` with the dot path before
    collecting it.

    Attributes:
        code: One of required, unrecognized, unknown_field, invalid_type,
            invalid_format, too_long, too_short, too_large, too_small, invalid
        message: Human-readable message
        details: Optional machine-readable context
        field: Dot-separated path to the field ('' is the root)
    """

    def __init__(
        self,
        code: str,
        message: Optional[str] = None,
        details: Any = None,
        field: Optional[str] = None,
    ) -> None:
        super().__init__(message or "Invalid value", code=code)
        self.details = details
        self.field = field

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "field": self.field,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return f"FieldError(code={self.code!r}, message={self.message!r}, field={self.field!r})"


class ValidationError(CommonSchemaError):
    """A value failed validation against an otherwise valid schema.

    The message is taken from the first field error, suffixed with its
    field path. The full ordered list stays attached for programmatic use.

    Attributes:
        field_errors: Errors on each of the offending fields
    """

    def __init__(self, field_errors: Optional[List[FieldError]] = None) -> None:
        field_errors = list(field_errors or [])
        if field_errors:
            message = field_errors[0].message or "Validation failure"
            if field_errors[0].field:
                message += ": " + field_errors[0].field
        else:
            message = "Validation failure"
        super().__init__(
            message,
            code="validation_error",
            details={"errors": [e.to_dict() for e in field_errors]},
        )
        self.field_errors = field_errors


class RegistryFrozenError(CommonSchemaError):
    """Raised when attempting to modify a frozen type registry."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="registry_frozen")


class DuplicateTypeError(CommonSchemaError):
    """Raised when a type name is registered twice."""

    def __init__(self, type_name: str) -> None:
        super().__init__(
            f"Schema type '{type_name}' is already registered",
            code="duplicate_type",
            details={"type_name": type_name},
        )
        self.type_name = type_name
