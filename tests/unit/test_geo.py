"""
Unit tests for the geo plugin types.

Tests cover:
- geopoint validation and coercion
- geojson geometry checks and allowedTypes
- Nested GeometryCollection errors
"""

import pytest

from commonschema import ValidationError, create_schema


class TestGeoPoint:
    """Tests for the geopoint type."""

    @pytest.fixture
    def schema(self):
        return create_schema({"p": "geopoint"})

    def test_valid(self, schema):
        """[longitude, latitude] pairs validate."""
        assert schema.is_valid({"p": [23, 23]}) is True
        assert schema.is_valid({"p": [-180, 90]}) is True

    def test_out_of_range(self, schema):
        """Coordinates outside the globe fail with specific messages."""
        with pytest.raises(ValidationError, match="Longitude must be between -180 and 180"):
            schema.validate({"p": [200, 0]})
        with pytest.raises(ValidationError, match="Latitude must be between -90 and 90"):
            schema.validate({"p": [0, 91]})

    def test_malformed(self, schema):
        """Anything but a numeric pair is invalid_type."""
        for value in ("foo", [1], [1, 2, 3], ["1", "2"]):
            with pytest.raises(ValidationError) as exc_info:
                schema.validate({"p": value})
            assert exc_info.value.field_errors[0].code == "invalid_type"

    def test_normalize_string(self, schema):
        """'lon,lat' strings parse."""
        assert schema.normalize({"p": "10,20"}) == {"p": [10, 20]}
        assert schema.normalize({"p": " 1.5 , -2 "}) == {"p": [1.5, -2]}

    def test_normalize_numeric_strings(self, schema):
        """Pairs of numeric strings coerce."""
        assert schema.normalize({"p": ["10", "20"]}) == {"p": [10, 20]}

    def test_normalize_out_of_range(self, schema):
        """Coercion enforces the coordinate bounds."""
        with pytest.raises(ValidationError):
            schema.normalize({"p": [0, 100]})


class TestGeoJSON:
    """Tests for the geojson type."""

    @pytest.fixture
    def schema(self):
        return create_schema({"g": "geojson"})

    def test_geometries(self, schema):
        """Each geometry type validates its coordinates."""
        values = [
            {"type": "Point", "coordinates": [23, 23]},
            {"type": "MultiPoint", "coordinates": [[23, 23], [33, 33]]},
            {"type": "LineString", "coordinates": [[23, 23], [33, 33]]},
            {"type": "MultiLineString", "coordinates": [[[23, 23], [33, 33]]]},
            {"type": "Polygon", "coordinates": [[[23, 23], [33, 33], [33, 23], [23, 23]]]},
            {"type": "MultiPolygon", "coordinates": [[[[23, 23], [33, 33], [33, 23], [23, 23]]]]},
        ]
        for value in values:
            assert schema.is_valid({"g": value}) is True, value["type"]

    def test_inner_error(self, schema):
        """Inner coordinate errors surface as invalid_format on the field."""
        with pytest.raises(ValidationError) as exc_info:
            schema.validate({"g": {"type": "Point", "coordinates": [23, 230]}})

        error = exc_info.value.field_errors[0]
        assert (error.field, error.code, error.message) == (
            "g",
            "invalid_format",
            "Latitude must be between -90 and 90",
        )

    def test_geometry_collection(self, schema):
        """Collections check each member geometry."""
        value = {
            "type": "GeometryCollection",
            "geometries": [
                {"type": "Point", "coordinates": [23, 23]},
                {"type": "LineString", "coordinates": [[23, 23], [44, 444]]},
            ],
        }

        with pytest.raises(ValidationError, match="Latitude must be between -90 and 90: g"):
            schema.validate({"g": value})

    def test_unrecognized_type(self, schema):
        """Unknown geometry types are rejected."""
        with pytest.raises(ValidationError, match="Unrecognized GeoJSON type: Circle"):
            schema.validate({"g": {"type": "Circle", "coordinates": [0, 0]}})

    def test_shape(self, schema):
        """Values must be dicts with a string type."""
        with pytest.raises(ValidationError, match="GeoJSON object must be object"):
            schema.validate({"g": [0, 0]})
        with pytest.raises(ValidationError, match='must have a "type" property'):
            schema.validate({"g": {"coordinates": [0, 0]}})

    def test_allowed_types(self):
        """allowedTypes restricts geometry types."""
        schema = create_schema({"g": {"type": "geojson", "allowedTypes": ["Point"]}})

        assert schema.is_valid({"g": {"type": "Point", "coordinates": [0, 0]}}) is True
        with pytest.raises(ValidationError, match="GeoJSON object must have type Point"):
            schema.validate({"g": {"type": "LineString", "coordinates": [[0, 0], [1, 1]]}})

    def test_normalize(self, schema):
        """Normalization coerces coordinates inside the geometry."""
        result = schema.normalize({"g": {"type": "Point", "coordinates": "23,24"}})

        assert result == {"g": {"type": "Point", "coordinates": [23, 24]}}

    def test_normalize_unknown_member(self, schema):
        """Undeclared geometry members are rejected."""
        with pytest.raises(ValidationError) as exc_info:
            schema.normalize({"g": {"type": "Point", "coordinates": [0, 0], "radius": 5}})

        assert exc_info.value.field_errors[0].code == "invalid_format"
