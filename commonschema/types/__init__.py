"""
Built-in schema types.

CORE_TYPES are registered on every SchemaFactory by default, in shorthand
lookup order. GEO_TYPES are the optional geographic plugin.
"""

from .alternatives import OrType
from .autodetect import AutodetectType
from .containers import ArraySetType, ArrayType, MapType, ObjectType
from .geo import GeoJSONType, GeoPointType
from .primitives import BinaryType, BooleanType, DateType, MixedType, NumberType, StringType

CORE_TYPES = (
    ObjectType,
    ArrayType,
    ArraySetType,
    MapType,
    OrType,
    StringType,
    NumberType,
    DateType,
    BinaryType,
    BooleanType,
    MixedType,
    AutodetectType,
)

GEO_TYPES = (GeoPointType, GeoJSONType)

__all__ = [
    "CORE_TYPES",
    "GEO_TYPES",
    "ObjectType",
    "ArrayType",
    "ArraySetType",
    "MapType",
    "OrType",
    "StringType",
    "NumberType",
    "DateType",
    "BinaryType",
    "BooleanType",
    "MixedType",
    "AutodetectType",
    "GeoPointType",
    "GeoJSONType",
]
