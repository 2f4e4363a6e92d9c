"""
Geographic plugin types: geopoint and geojson.

- geopoint: a [longitude, latitude] pair; normalize also accepts "lon,lat"
- geojson: a GeoJSON geometry object, checked against an internal schema
  per geometry type; ``allowedTypes`` restricts which geometries pass

Registered on the default factory unless settings.load_geo_types is off.

Invariants:
    - Longitude is within [-180, 180] and latitude within [-90, 90]
    - Errors from a geometry's internal schema surface as one
      invalid_format FieldError on the geojson field
"""

from __future__ import annotations

import copy
import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from ..config import NormalizeOptions, ValidateOptions
from ..errors import FieldError
from ..schema_type import SchemaType
from .primitives import NumberType, is_number

if TYPE_CHECKING:
    from ..schema import Schema

logger = logging.getLogger(__name__)

_number_type = NumberType()
_LONGITUDE = {"type": "number", "min": -180, "max": 180}
_LATITUDE = {"type": "number", "min": -90, "max": 90}


def validate_position(value: Any) -> None:
    """Check a [longitude, latitude] pair.

    Raises:
        FieldError: invalid_type for a malformed pair, invalid_format
            for an out-of-range coordinate
    """
    if not isinstance(value, list) or len(value) != 2 or not all(is_number(v) for v in value):
        raise FieldError("invalid_type", "Must be array in form [ long, lat ]")
    if value[0] < -180 or value[0] > 180:
        raise FieldError("invalid_format", "Longitude must be between -180 and 180")
    if value[1] < -90 or value[1] > 90:
        raise FieldError("invalid_format", "Latitude must be between -90 and 90")


def normalize_position(value: Any) -> List[Any]:
    """Coerce "lon,lat" or a pair of numeric values to [longitude, latitude]."""
    if isinstance(value, str):
        value = value.split(",")
    if isinstance(value, list):
        if len(value) != 2:
            raise FieldError("invalid_type", "Must be array in form [ long, lat ]")
        value[0] = _number_type.normalize(value[0], _LONGITUDE, "", NormalizeOptions(), None)
        value[1] = _number_type.normalize(value[1], _LATITUDE, "", NormalizeOptions(), None)
    validate_position(value)
    return value


class GeoPointType(SchemaType):
    name = "geopoint"

    def validate(self, value, subschema, field, options, schema):
        validate_position(value)

    def normalize(self, value, subschema, field, options, schema):
        return normalize_position(value)

    def to_json_schema(self, subschema, schema):
        return {
            "type": "array",
            "items": {"type": "number"},
            "minItems": 2,
            "maxItems": 2,
            "description": subschema.get("description") or "Longitude, Latitude",
        }


GEOMETRY_SCHEMAS: Dict[str, Dict[str, Any]] = {
    "Point": {"type": "object", "properties": {"type": str, "coordinates": "geopoint"}},
    "LineString": {"type": "object", "properties": {"type": str, "coordinates": ["geopoint"]}},
    "Polygon": {"type": "object", "properties": {"type": str, "coordinates": [["geopoint"]]}},
    "MultiPoint": {"type": "object", "properties": {"type": str, "coordinates": ["geopoint"]}},
    "MultiLineString": {"type": "object", "properties": {"type": str, "coordinates": [["geopoint"]]}},
    "MultiPolygon": {"type": "object", "properties": {"type": str, "coordinates": [[["geopoint"]]]}},
    "GeometryCollection": {"type": "object", "properties": {"type": str, "geometries": ["geojson"]}},
}

_POSITION_REF = {"$ref": "#/definitions/position"}

JSON_SCHEMA_DEFINITIONS: Dict[str, Any] = {
    "position": {
        "type": "array",
        "items": {"type": "number"},
        "minItems": 2,
        "maxItems": 2,
    },
    "point": {
        "type": "object",
        "properties": {"type": {"enum": ["Point"]}, "coordinates": _POSITION_REF},
        "required": ["type", "coordinates"],
    },
    "lineString": {
        "type": "object",
        "properties": {"type": {"enum": ["LineString"]}, "coordinates": {"type": "array", "items": _POSITION_REF}},
        "required": ["type", "coordinates"],
    },
    "polygon": {
        "type": "object",
        "properties": {
            "type": {"enum": ["Polygon"]},
            "coordinates": {"type": "array", "items": {"type": "array", "items": _POSITION_REF}},
        },
        "required": ["type", "coordinates"],
    },
    "multiPoint": {
        "type": "object",
        "properties": {"type": {"enum": ["MultiPoint"]}, "coordinates": {"type": "array", "items": _POSITION_REF}},
        "required": ["type", "coordinates"],
    },
    "multiLineString": {
        "type": "object",
        "properties": {
            "type": {"enum": ["MultiLineString"]},
            "coordinates": {"type": "array", "items": {"type": "array", "items": _POSITION_REF}},
        },
        "required": ["type", "coordinates"],
    },
    "multiPolygon": {
        "type": "object",
        "properties": {
            "type": {"enum": ["MultiPolygon"]},
            "coordinates": {
                "type": "array",
                "items": {"type": "array", "items": {"type": "array", "items": _POSITION_REF}},
            },
        },
        "required": ["type", "coordinates"],
    },
    "geometryCollection": {
        "type": "object",
        "properties": {
            "type": {"enum": ["GeometryCollection"]},
            "geometries": {"type": "array", "items": {"$ref": "#/definitions/geometry"}},
        },
        "required": ["type", "geometries"],
    },
    "geometry": {
        "oneOf": [
            {"$ref": "#/definitions/point"},
            {"$ref": "#/definitions/lineString"},
            {"$ref": "#/definitions/polygon"},
            {"$ref": "#/definitions/multiPoint"},
            {"$ref": "#/definitions/multiLineString"},
            {"$ref": "#/definitions/multiPolygon"},
            {"$ref": "#/definitions/geometryCollection"},
        ]
    },
}


class GeoJSONType(SchemaType):
    """GeoJSON geometry object.

    Geometry schemas are built lazily on the owning schema's factory and
    cached per instance.
    """

    name = "geojson"

    def __init__(self, name: Optional[str] = None) -> None:
        super().__init__(name)
        self._geometry_schemas: Dict[str, Schema] = {}

    def get_geometry_schema(self, geometry_type: str, schema: Schema) -> Schema:
        """Internal schema for one geometry type.

        Raises:
            FieldError: If geometry_type is not a GeoJSON geometry
        """
        if geometry_type not in self._geometry_schemas:
            if geometry_type not in GEOMETRY_SCHEMAS:
                raise FieldError("invalid_type", f"Unrecognized GeoJSON type: {geometry_type}")
            logger.debug(f"Building GeoJSON schema for {geometry_type}")
            self._geometry_schemas[geometry_type] = schema.factory.create_schema(
                copy.deepcopy(GEOMETRY_SCHEMAS[geometry_type])
            )
        return self._geometry_schemas[geometry_type]

    def _check_shape(self, value: Any, subschema: Dict[str, Any]) -> None:
        if not isinstance(value, dict):
            raise FieldError("invalid_type", "GeoJSON object must be object")
        if not isinstance(value.get("type"), str):
            raise FieldError("invalid_type", 'GeoJSON object must have a "type" property')
        allowed_types = subschema.get("allowedTypes")
        if isinstance(allowed_types, list) and value["type"] not in allowed_types:
            raise FieldError("invalid_type", "GeoJSON object must have type " + ", ".join(allowed_types))

    def validate(self, value, subschema, field, options, schema):
        self._check_shape(value, subschema)
        geometry_schema = self.get_geometry_schema(value["type"], schema)
        errors = geometry_schema.collect_validation_errors(value, ValidateOptions())
        if errors:
            raise FieldError("invalid_format", errors[0].message)

    def normalize(self, value, subschema, field, options, schema):
        self._check_shape(value, subschema)
        geometry_schema = self.get_geometry_schema(value["type"], schema)
        result, errors = geometry_schema.normalize_collecting_errors(value, NormalizeOptions())
        if errors:
            raise FieldError("invalid_format", errors[0].message)
        return result

    def to_json_schema(self, subschema, schema):
        if schema.json_schema_definitions is not None:
            schema.json_schema_definitions.update(copy.deepcopy(JSON_SCHEMA_DEFINITIONS))
        json_schema: Dict[str, Any] = {"$ref": "#/definitions/geometry"}
        if subschema.get("description"):
            json_schema["description"] = subschema["description"]
        return json_schema
