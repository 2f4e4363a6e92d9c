"""
Primitive schema types: string, number, date, binary, boolean and mixed.

Each primitive's normalize() coerces loosely (numeric strings to numbers,
"yes" to True, base64 to bytes) and enforces bounds; validate() first
requires the exact Python type and then applies the same bounds.

Shorthands:
    str -> string, int/float -> number, datetime -> date,
    bytes/bytearray -> binary, bool -> boolean, Mixed -> mixed
"""

from __future__ import annotations

import base64
import binascii
import json
import math
import re
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

from ..errors import FieldError, SchemaError
from ..schema_type import SchemaType, TypeMatch
from ..shorthand import Mixed
from ..utils import stringify

_INTEGER_RE = re.compile(r"^\s*[+-]?\d+\s*$")
_NUMBER_RE = re.compile(r"^\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?\s*$")
_NOT_BASE64_RE = re.compile(r"[^a-z0-9+/=]", re.IGNORECASE)
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_INLINE_FLAGS_RE = re.compile(r"^\(\?([aimsx]+)\)")

# Flags of a compiled match pattern, kept as an inline group on the stored string.
_INLINE_FLAGS = ((re.ASCII, "a"), (re.IGNORECASE, "i"), (re.MULTILINE, "m"), (re.DOTALL, "s"), (re.VERBOSE, "x"))


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _parse_number(value: str) -> Optional[float]:
    if _INTEGER_RE.match(value):
        return int(value)
    if _NUMBER_RE.match(value):
        return float(value)
    return None


def _as_aware(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


def _epoch_ms(value: datetime) -> int:
    return (_as_aware(value) - _EPOCH) // timedelta(milliseconds=1)


def _pattern_string(pattern: re.Pattern) -> str:
    flags = "".join(letter for flag, letter in _INLINE_FLAGS if pattern.flags & flag)
    return f"(?{flags}){pattern.pattern}" if flags else pattern.pattern


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_date(value: Any) -> Optional[datetime]:
    """Coerce a datetime, date, epoch-milliseconds number or ISO string.

    Naive values are taken to be UTC; the result is always in UTC.

    Returns:
        A datetime, or None if value is not a valid date
    """
    if isinstance(value, datetime):
        return _as_aware(value).astimezone(timezone.utc)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if is_number(value):
        if not math.isfinite(value):
            return None
        try:
            return _EPOCH + timedelta(milliseconds=value)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            return _as_aware(datetime.fromisoformat(text)).astimezone(timezone.utc)
        except ValueError:
            return None
    return None


def to_iso_string(value: datetime) -> str:
    """Render as an ISO-8601 UTC string with millisecond precision."""
    text = _as_aware(value).astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return text.replace("+00:00", "Z")


class PrimitiveType(SchemaType):
    """Leaf type matched by identity against a tuple of shorthand markers."""

    shorthands: Tuple[Any, ...] = ()

    def match_shorthand_type(self, raw: Any) -> bool:
        return any(raw is shorthand for shorthand in self.shorthands)

    def validate(self, value, subschema, field, options, schema):
        self.normalize(value, subschema, field, options, schema)


class StringType(PrimitiveType):
    name = "string"
    shorthands = (str,)

    def normalize_schema(self, subschema, schema):
        if isinstance(subschema.get("match"), re.Pattern):
            subschema["match"] = _pattern_string(subschema["match"])
        return subschema

    def normalize(self, value, subschema, field, options, schema):
        str_value = stringify(value)
        max_length = subschema.get("maxLength")
        if is_number(max_length) and len(str_value) > max_length:
            raise FieldError("too_long", subschema.get("maxLengthError") or "String is too long")
        min_length = subschema.get("minLength")
        if is_number(min_length) and len(str_value) < min_length:
            raise FieldError("too_short", subschema.get("minLengthError") or "String is too short")
        match = subschema.get("match")
        if isinstance(match, str) and not re.search(match, str_value):
            raise FieldError(
                "invalid_format",
                subschema.get("matchError") or "Invalid format",
                {"regex": match},
            )
        return str_value

    def validate(self, value, subschema, field, options, schema):
        if not isinstance(value, str):
            raise FieldError("invalid_type", "Must be a string")
        super().validate(value, subschema, field, options, schema)

    def check_type_match(self, value, subschema, schema):
        if isinstance(value, str):
            return TypeMatch.EXACT
        if value is None or isinstance(value, (bool, int, float)):
            return TypeMatch.COERCIBLE
        return TypeMatch.NONE

    def to_json_schema(self, subschema, schema):
        json_schema: Dict[str, Any] = {"type": "string"}
        for key in ("minLength", "maxLength"):
            if subschema.get(key) is not None:
                json_schema[key] = subschema[key]
        if subschema.get("match") is not None:
            json_schema["pattern"] = _INLINE_FLAGS_RE.sub("", subschema["match"])
        return json_schema


class NumberType(PrimitiveType):
    name = "number"
    shorthands = (int, float)

    def normalize(self, value, subschema, field, options, schema):
        if isinstance(value, str):
            number = _parse_number(value)
            if number is None:
                raise FieldError("invalid_type", "Must be a number")
            value = number
        elif isinstance(value, datetime):
            value = _epoch_ms(value)
        elif not is_number(value):
            raise FieldError("invalid_type", "Must be a number")
        maximum = subschema.get("max")
        if is_number(maximum) and value > maximum:
            raise FieldError("too_large", subschema.get("maxError") or "Too large")
        minimum = subschema.get("min")
        if is_number(minimum) and value < minimum:
            raise FieldError("too_small", subschema.get("minError") or "Too small")
        return value

    def validate(self, value, subschema, field, options, schema):
        if not is_number(value):
            raise FieldError("invalid_type", "Must be a number")
        super().validate(value, subschema, field, options, schema)

    def check_type_match(self, value, subschema, schema):
        if is_number(value):
            return TypeMatch.EXACT
        if isinstance(value, str) and _parse_number(value) is not None:
            return TypeMatch.COERCIBLE
        return TypeMatch.NONE

    def to_json_schema(self, subschema, schema):
        json_schema: Dict[str, Any] = {"type": "number"}
        if is_number(subschema.get("min")):
            json_schema["minimum"] = subschema["min"]
        if is_number(subschema.get("max")):
            json_schema["maximum"] = subschema["max"]
        return json_schema


class DateType(PrimitiveType):
    name = "date"
    shorthands = (datetime,)

    def normalize_schema(self, subschema, schema):
        if subschema.get("default") in (datetime.now, datetime.utcnow):
            subschema["default"] = _utc_now
        for key in ("min", "max"):
            if subschema.get(key) is not None:
                bound = to_date(subschema[key])
                if bound is None:
                    raise SchemaError(f"Date {key} must be valid date")
                subschema[key] = bound
        return subschema

    def normalize(self, value, subschema, field, options, schema):
        date_value = to_date(value)
        if date_value is None:
            raise FieldError("invalid_type", "Must be a date")
        if subschema.get("max") is not None and _epoch_ms(date_value) > _epoch_ms(subschema["max"]):
            raise FieldError("too_large", subschema.get("maxError") or "Too large")
        if subschema.get("min") is not None and _epoch_ms(date_value) < _epoch_ms(subschema["min"]):
            raise FieldError("too_small", subschema.get("minError") or "Too small")
        if getattr(options, "serialize", False):
            return to_iso_string(date_value)
        return date_value

    def validate(self, value, subschema, field, options, schema):
        if not isinstance(value, datetime):
            raise FieldError("invalid_type", "Must be a date")
        super().validate(value, subschema, field, options, schema)

    def check_type_match(self, value, subschema, schema):
        if isinstance(value, datetime):
            return TypeMatch.EXACT
        if to_date(value) is not None:
            return TypeMatch.COERCIBLE
        return TypeMatch.NONE

    def to_json_schema(self, subschema, schema):
        return {"type": "string", "format": "date-time"}


class BinaryType(PrimitiveType):
    name = "binary"
    shorthands = (bytes, bytearray)

    def normalize(self, value, subschema, field, options, schema):
        if isinstance(value, bytearray):
            value = bytes(value)
        elif isinstance(value, str):
            if _NOT_BASE64_RE.search(value):
                raise FieldError("invalid_type", "Must be base64 data")
            try:
                value = base64.b64decode(value)
            except binascii.Error as e:
                raise FieldError("invalid_type", "Must be base64 data") from e
        elif isinstance(value, list) and all(is_number(byte) for byte in value):
            try:
                value = bytes(value)
            except (TypeError, ValueError) as e:
                raise FieldError("invalid_type", "Must be binary data") from e
        elif not isinstance(value, bytes):
            raise FieldError("invalid_type", "Must be binary data")
        max_length = subschema.get("maxLength")
        if is_number(max_length) and len(value) > max_length:
            raise FieldError("too_long", subschema.get("maxLengthError") or "Data is too long")
        min_length = subschema.get("minLength")
        if is_number(min_length) and len(value) < min_length:
            raise FieldError("too_short", subschema.get("minLengthError") or "Data is too short")
        if getattr(options, "serialize", False):
            return base64.b64encode(value).decode("ascii")
        return value

    def validate(self, value, subschema, field, options, schema):
        if not isinstance(value, bytes):
            raise FieldError("invalid_type", "Must be bytes")
        super().validate(value, subschema, field, options, schema)

    def check_type_match(self, value, subschema, schema):
        if isinstance(value, bytes):
            return TypeMatch.EXACT
        if isinstance(value, bytearray):
            return TypeMatch.COERCIBLE
        if isinstance(value, list) and all(is_number(byte) for byte in value):
            return TypeMatch.COERCIBLE
        if isinstance(value, str) and not _NOT_BASE64_RE.search(value):
            return TypeMatch.COERCIBLE
        return TypeMatch.NONE

    def to_json_schema(self, subschema, schema):
        return {"type": "string", "contentEncoding": "base64"}


class BooleanType(PrimitiveType):
    name = "boolean"
    shorthands = (bool,)

    TRUE_STRINGS = frozenset(["true", "t", "y", "yes", "1", "on", "totallydude"])
    FALSE_STRINGS = frozenset(["false", "f", "n", "no", "0", "off", "definitelynot"])

    def normalize(self, value, subschema, field, options, schema):
        if isinstance(value, bool):
            return value
        if is_number(value) and value in (0, 1):
            return value == 1
        if isinstance(value, str):
            lowered = value.lower()
            if lowered in self.TRUE_STRINGS:
                return True
            if lowered in self.FALSE_STRINGS:
                return False
        raise FieldError("invalid_type", "Must be boolean")

    def validate(self, value, subschema, field, options, schema):
        if not isinstance(value, bool):
            raise FieldError("invalid_type", "Must be a boolean")
        super().validate(value, subschema, field, options, schema)

    def check_type_match(self, value, subschema, schema):
        if isinstance(value, bool):
            return TypeMatch.EXACT
        if is_number(value) and value in (0, 1):
            return TypeMatch.COERCIBLE
        if isinstance(value, str) and value.lower() in self.TRUE_STRINGS | self.FALSE_STRINGS:
            return TypeMatch.COERCIBLE
        return TypeMatch.NONE

    def to_json_schema(self, subschema, schema):
        return {"type": "boolean"}


class MixedType(PrimitiveType):
    """Any value. With ``serializeMixed`` the value travels as a JSON string."""

    name = "mixed"
    shorthands = (Mixed,)

    def get_field_subschema(self, subschema, field, schema):
        return {"type": "mixed"}

    def normalize(self, value, subschema, field, options, schema):
        if not subschema.get("serializeMixed"):
            return value
        if getattr(options, "serialize", False):
            if isinstance(value, str):
                raise FieldError("invalid_type", "Mixed type value must not be a string")
            return json.dumps(value)
        if isinstance(value, str):
            try:
                return json.loads(value)
            except json.JSONDecodeError as e:
                raise FieldError("invalid_format", f"can't parse string {value}") from e
        return value

    def check_type_match(self, value, subschema, schema):
        return TypeMatch.NONE

    def to_json_schema(self, subschema, schema):
        if subschema.get("serializeMixed"):
            return {"type": "string"}
        return {}
