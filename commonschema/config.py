"""
Configuration for common-schema.

Process-wide defaults come from environment variables (prefix
``COMMONSCHEMA_``) through pydantic-settings. Per-call behaviour is
carried by the frozen ValidateOptions / NormalizeOptions dataclasses,
which start from those defaults and are overridden by keyword arguments
at the call site.

Invariants:
    - All settings default to the strict behaviour (unknown and missing
      fields are errors, defaults are applied, values are not serialized)
    - Options objects are immutable; overriding produces a new instance

How to change safely:
    - Add new settings with defaults that keep current behaviour
    - Mirror every new flag on the matching options dataclass
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Optional, Type

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Library-wide defaults."""

    # Validate/normalize defaults
    allow_unknown_fields: bool = Field(default=False)
    allow_missing_fields: bool = Field(default=False)
    remove_unknown_fields: bool = Field(default=False)
    ignore_defaults: bool = Field(default=False)
    serialize: bool = Field(default=False)

    # Default factory contents
    load_geo_types: bool = Field(
        default=True,
        description="Register the geopoint/geojson plugin types on the default factory",
    )

    model_config = {"env_prefix": "COMMONSCHEMA_"}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the cached process-wide settings."""
    return Settings()


@dataclass(frozen=True)
class ValidateOptions:
    """Options for Schema.validate().

    Attributes:
        allow_unknown_fields: Suppress errors for fields not in the schema
        allow_missing_fields: Suppress errors for missing required fields
        validator: Handler class to use instead of the default Validator
    """

    allow_unknown_fields: bool = False
    allow_missing_fields: bool = False
    validator: Optional[Type[Any]] = None

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None, **overrides: Any) -> ValidateOptions:
        """Build options from settings, then apply keyword overrides."""
        settings = settings or get_settings()
        base = cls(
            allow_unknown_fields=settings.allow_unknown_fields,
            allow_missing_fields=settings.allow_missing_fields,
        )
        return dataclasses.replace(base, **overrides)


@dataclass(frozen=True)
class NormalizeOptions:
    """Options for Schema.normalize().

    Attributes:
        allow_unknown_fields: Leave unknown fields in place without error
        allow_missing_fields: Suppress errors for missing required fields
        remove_unknown_fields: Delete unknown fields instead of reporting them
        ignore_defaults: Do not fill in field defaults
        serialize: Coerce to JSON-friendly forms (binary -> base64, date -> ISO string)
        normalizer: Handler class to use instead of the default Normalizer
    """

    allow_unknown_fields: bool = False
    allow_missing_fields: bool = False
    remove_unknown_fields: bool = False
    ignore_defaults: bool = False
    serialize: bool = False
    normalizer: Optional[Type[Any]] = None

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None, **overrides: Any) -> NormalizeOptions:
        """Build options from settings, then apply keyword overrides."""
        settings = settings or get_settings()
        base = cls(
            allow_unknown_fields=settings.allow_unknown_fields,
            allow_missing_fields=settings.allow_missing_fields,
            remove_unknown_fields=settings.remove_unknown_fields,
            ignore_defaults=settings.ignore_defaults,
            serialize=settings.serialize,
        )
        return dataclasses.replace(base, **overrides)
