"""
Unit tests for schema definitions.

Tests cover:
- Shorthand normalization into canonical form
- Schema syntax errors
- Schema-only traversal (traverse_schema, list_fields, filter_schema)
- Subschema lookup and modification
- Schema-aware value paths
"""

import copy
import re
from datetime import datetime

import pytest

from commonschema import MISSING, Mixed, Schema, SchemaError, create_schema, map_, or_


class TestShorthandNormalization:
    """Tests for shorthand -> canonical conversion."""

    def test_primitive_markers(self):
        """Python type markers map to primitive type names."""
        assert create_schema(str).data == {"type": "string"}
        assert create_schema(int).data == {"type": "number"}
        assert create_schema(float).data == {"type": "number"}
        assert create_schema(bool).data == {"type": "boolean"}
        assert create_schema(datetime).data == {"type": "date"}
        assert create_schema(bytes).data == {"type": "binary"}
        assert create_schema(Mixed).data == {"type": "mixed"}

    def test_type_name_string(self):
        """A bare string is a type name."""
        assert create_schema("number").data == {"type": "number"}

    def test_nested_shorthand(self):
        """Dicts become objects and one-element lists become arrays."""
        schema = create_schema({"foo": str, "bar": [int], "baz": {"biz": bool}})

        assert schema.data == {
            "type": "object",
            "properties": {
                "foo": {"type": "string"},
                "bar": {"type": "array", "elements": {"type": "number"}},
                "baz": {"type": "object", "properties": {"biz": {"type": "boolean"}}},
            },
        }

    def test_shorthand_type_with_options(self):
        """Options next to a shorthand type are kept."""
        schema = create_schema({"foo": {"type": str, "required": True}})

        assert schema.data["properties"]["foo"] == {"type": "string", "required": True}

    def test_dict_as_type_value(self):
        """A dict under 'type' becomes the object's properties."""
        schema = create_schema({"type": {"a": int}, "required": True})

        assert schema.data == {
            "type": "object",
            "properties": {"a": {"type": "number"}},
            "required": True,
        }

    def test_list_as_type_value(self):
        """A one-element list under 'type' becomes the array's elements."""
        schema = create_schema({"type": [str], "description": "tags"})

        assert schema.data == {
            "type": "array",
            "elements": {"type": "string"},
            "description": "tags",
        }

    def test_or_and_map_helpers(self):
        """or_() and map_() produce canonical or/map subschemas."""
        schema = create_schema({"id": or_(int, str), "counts": map_({"required": True}, int)})

        assert schema.data["properties"]["id"] == {
            "type": "or",
            "alternatives": [{"type": "number"}, {"type": "string"}],
        }
        assert schema.data["properties"]["counts"] == {
            "type": "map",
            "required": True,
            "values": {"type": "number"},
        }

    def test_compiled_regex_is_stored_as_pattern(self):
        """A compiled match regex is stored as its pattern string."""
        schema = create_schema({"type": str, "match": re.compile("^a")})

        assert schema.data["match"] == "^a"

    def test_normalization_is_idempotent(self):
        """Normalizing canonical data again leaves it unchanged."""
        schema = create_schema({
            "foo": {"type": str, "required": True, "default": "x"},
            "arr": [{"zip": datetime}],
            "set": {"type": "arrayset", "elements": str},
            "m": map_(bool),
            "o": or_(int, {"a": str}),
            "geo": "geopoint",
        })

        again = create_schema(copy.deepcopy(schema.data))

        assert again.data == schema.data

    def test_skip_normalize(self):
        """skip_normalize trusts the data as given."""
        data = {"type": "string"}
        schema = create_schema(data, skip_normalize=True)

        assert schema.data is data


class TestSchemaErrors:
    """Tests for schema syntax errors."""

    def test_unknown_type_name(self):
        """Unknown type names are rejected."""
        with pytest.raises(SchemaError, match="Unknown schema type"):
            create_schema("nope")

    def test_unknown_shorthand(self):
        """Values that match no shorthand are rejected."""
        with pytest.raises(SchemaError, match="Unknown schema type"):
            create_schema({"foo": set})

    def test_object_requires_properties(self):
        """An explicit object needs properties."""
        with pytest.raises(SchemaError, match="must have properties field"):
            create_schema({"type": "object"})

    def test_array_requires_elements(self):
        """An explicit array needs elements."""
        with pytest.raises(SchemaError, match="Array schema must have elements field"):
            create_schema({"type": "array"})

    def test_map_requires_values(self):
        """An explicit map needs values."""
        with pytest.raises(SchemaError, match="Map schema must have values field"):
            create_schema({"type": "map"})

    def test_or_requires_two_alternatives(self):
        """An or needs at least two alternatives."""
        with pytest.raises(SchemaError, match="at least 2 options"):
            create_schema(or_(str))
        with pytest.raises(SchemaError, match="must have alternatives field"):
            create_schema({"type": "or"})

    def test_invalid_date_bound(self):
        """Date bounds must parse as dates."""
        with pytest.raises(SchemaError, match="Date min must be valid date"):
            create_schema({"type": "date", "min": "not a date"})

    def test_nested_error_propagates(self):
        """Errors deep in the definition surface from create_schema."""
        with pytest.raises(SchemaError):
            create_schema({"a": {"b": [{"c": "nope"}]}})


class TestIsSchema:
    """Tests for Schema.is_schema."""

    def test_is_schema(self):
        """Only Schema instances are schemas."""
        schema = create_schema({"foo": str})

        assert Schema.is_schema(schema) is True
        for value in ("foo", True, 64, {"foo": "bar"}, [4, 16, 256], re.compile("foo"), datetime.now()):
            assert Schema.is_schema(value) is False


class TestTraverseSchema:
    """Tests for Schema.traverse_schema."""

    def test_traverse(self):
        """Visits every subschema in pre-order."""
        types = []
        paths = []
        schema = create_schema({"foo": {"bar": int, "baz": str}})

        def on_subschema(subschema, path, schema_type, raw_path):
            types.append(subschema["type"])
            paths.append(path)

        schema.traverse_schema(on_subschema)

        assert types == ["object", "object", "number", "string"]
        assert paths == ["", "foo", "foo.bar", "foo.baz"]

    def test_stop_on_false(self):
        """Returning False skips the subschema's children."""
        types = []
        paths = []
        schema = create_schema({"bat": {"num": int}, "foo": [{"bar": int, "baz": str}]})

        def on_subschema(subschema, path, schema_type, raw_path):
            types.append(subschema["type"])
            paths.append(path)
            if subschema["type"] == "array":
                return False
            return True

        schema.traverse_schema(on_subschema)

        assert types == ["object", "object", "number", "array"]
        assert paths == ["", "bat", "bat.num", "foo"]

    def test_raw_paths(self):
        """raw_path locates each subschema inside the schema data."""
        raw_paths = {}
        schema = create_schema({"arr": [{"zip": str}], "o": or_(int, str)})

        def on_subschema(subschema, path, schema_type, raw_path):
            raw_paths.setdefault(path, []).append(raw_path)

        schema.traverse_schema(on_subschema)

        assert raw_paths["arr.$.zip"] == ["properties.arr.elements.properties.zip"]
        assert raw_paths["o"] == ["properties.o", "properties.o.alternatives.0", "properties.o.alternatives.1"]


class TestListFields:
    """Tests for Schema.list_fields."""

    @pytest.fixture
    def schema(self):
        return create_schema({
            "foo": str,
            "bar": {"type": "map", "values": int},
            "baz": {"biz": {"buz": bool}},
            "arr": [{"zip": str}],
        })

    def test_default(self, schema):
        """Arrays and maps are terminal by default."""
        assert schema.list_fields() == ["foo", "bar", "baz", "baz.biz", "baz.biz.buz", "arr"]

    def test_no_stop_at_arrays(self, schema):
        """Element paths use '$'."""
        assert schema.list_fields(stop_at_arrays=False) == [
            "foo", "bar", "bar.$", "baz", "baz.biz", "baz.biz.buz", "arr", "arr.$", "arr.$.zip",
        ]

    def test_max_depth(self, schema):
        """Paths stop at max_depth components."""
        assert schema.list_fields(max_depth=2) == ["foo", "bar", "baz", "baz.biz", "arr"]

    def test_only_leaves(self, schema):
        """Intermediate containers are dropped."""
        assert schema.list_fields(only_leaves=True) == ["foo", "bar", "baz.biz.buz", "arr"]

    def test_or_field_listed_once(self):
        """An or-field's alternatives do not repeat its path."""
        schema = create_schema({"o": or_(int, str), "s": str})

        assert schema.list_fields() == ["o", "s"]


class TestFilterSchema:
    """Tests for Schema.filter_schema."""

    def test_remove_subschemas(self):
        """False removes a subschema; None decides per child."""
        schema = create_schema({"a": str, "b": {"c": int, "d": str}})

        filtered = schema.filter_schema(
            lambda subschema, path, raw_path: False if subschema["type"] == "number" else None
        )

        assert filtered.data == {
            "type": "object",
            "properties": {
                "a": {"type": "string"},
                "b": {"type": "object", "properties": {"d": {"type": "string"}}},
            },
        }
        assert "c" in schema.data["properties"]["b"]["properties"]

    def test_keep_subtree(self):
        """True keeps the whole subtree without consulting children."""
        schema = create_schema({"keep": {"n": int}, "n": int})
        seen = []

        def fn(subschema, path, raw_path):
            seen.append(path)
            if path == "keep":
                return True
            return False if subschema["type"] == "number" else None

        filtered = schema.filter_schema(fn)

        assert filtered.data["properties"] == {"keep": {"type": "object", "properties": {"n": {"type": "number"}}}}
        assert "keep.n" not in seen

    def test_remove_or_alternative(self):
        """Alternatives are removed by list position."""
        schema = create_schema({"x": or_(str, int, bool)})

        filtered = schema.filter_schema(
            lambda subschema, path, raw_path: False if subschema["type"] == "number" else None
        )

        assert filtered.data["properties"]["x"]["alternatives"] == [{"type": "string"}, {"type": "boolean"}]

    def test_invalid_result(self):
        """Anything other than True/False/None is rejected."""
        schema = create_schema({"a": str})

        with pytest.raises(ValueError, match="Invalid filter result"):
            schema.filter_schema(lambda subschema, path, raw_path: "yes")


class TestSubschemaData:
    """Tests for get_subschema_data and get_field_subschema."""

    def test_basic(self):
        """Value paths resolve through arrays by index."""
        schema = create_schema({"foo": [{"bar": int}]})

        assert schema.get_subschema_data("foo.8.bar") is schema.data["properties"]["foo"]["elements"]["properties"]["bar"]

    def test_root_path(self):
        """The empty path is the root."""
        schema = create_schema(int)

        assert schema.get_subschema_data("") is schema.data

    def test_not_found(self):
        """Undeclared paths return None."""
        schema = create_schema({"foo": int})

        assert schema.get_subschema_data("bar") is None
        assert schema.get_subschema("bar") is None

    def test_get_subschema(self):
        """get_subschema wraps the node on the same factory."""
        schema = create_schema({"foo": {"bar": int}})

        subschema = schema.get_subschema("foo")

        assert subschema.data is schema.data["properties"]["foo"]
        assert subschema.factory is schema.factory

    def _field_subschema(self, schema, field):
        return schema.get_schema_type(schema.data).get_field_subschema(schema.data, field, schema)

    def test_field_subschema_object(self):
        """Objects return declared properties only."""
        schema = create_schema({"foo": int})

        assert self._field_subschema(schema, "foo") == {"type": "number"}
        assert self._field_subschema(schema, "bar") is None

    def test_field_subschema_array(self):
        """Arrays accept indexes and '$'."""
        schema = create_schema([int])

        assert self._field_subschema(schema, "17") == {"type": "number"}
        assert self._field_subschema(schema, "length") is None
        assert self._field_subschema(schema, "$") == {"type": "number"}

    def test_field_subschema_map(self):
        """Maps accept any key."""
        schema = create_schema(map_(int))

        assert self._field_subschema(schema, "foo") == {"type": "number"}

    def test_field_subschema_or(self):
        """Or uses the first alternative that declares the field."""
        schema = create_schema(or_({}, int, {"foo": int}, {"bar": str}))

        assert self._field_subschema(schema, "foo") == {"type": "number"}
        assert self._field_subschema(schema, "bar") == {"type": "string"}
        assert self._field_subschema(schema, "baz") is None

    def test_field_subschema_primitive(self):
        """Primitives have no fields."""
        schema = create_schema(int)

        assert self._field_subschema(schema, "foo") is None

    def test_field_subschema_mixed(self):
        """Every field of a mixed value is mixed."""
        schema = create_schema({"type": "mixed"})

        assert self._field_subschema(schema, "foo") == {"type": "mixed"}


class TestSetSubschemaOption:
    """Tests for Schema.set_subschema_option."""

    def test_set_options(self):
        """Options land on the addressed subschemas, creating keySchemas."""
        schema = create_schema({
            "scalarTest": str,
            "nestedObjectTest": {"foo": str},
            "arrayTest": [str],
            "arraySetTest": {"type": "arrayset", "elements": str},
            "mapTest": {"type": "map", "values": str},
        })
        schema.set_subschema_option("", "testOpt", True)
        schema.set_subschema_option("scalarTest", "testOpt", True)
        schema.set_subschema_option("nestedObjectTest", "testOpt", "foo")
        schema.set_subschema_option("nestedObjectTest.foo", "testOpt", "bar")
        schema.set_subschema_option("arrayTest", "testOpt", "foo")
        schema.set_subschema_option("arrayTest.$", "testOpt", "bar")
        schema.set_subschema_option("arraySetTest.$", "testOpt", "foo")
        schema.set_subschema_option("arraySetTest.el", "testOpt", "bar")
        schema.set_subschema_option("mapTest.$", "testOpt", "foo")
        schema.set_subschema_option("mapTest.el", "testOpt", "bar")

        assert schema.get_data() == {
            "type": "object",
            "testOpt": True,
            "properties": {
                "scalarTest": {"type": "string", "testOpt": True},
                "nestedObjectTest": {
                    "type": "object",
                    "testOpt": "foo",
                    "properties": {"foo": {"type": "string", "testOpt": "bar"}},
                },
                "arrayTest": {
                    "type": "array",
                    "testOpt": "foo",
                    "elements": {"type": "string", "testOpt": "bar"},
                },
                "arraySetTest": {
                    "type": "arrayset",
                    "elements": {"type": "string", "testOpt": "foo"},
                    "keySchemas": {"el": {"type": "string", "testOpt": "bar"}},
                },
                "mapTest": {
                    "type": "map",
                    "values": {"type": "string", "testOpt": "foo"},
                    "keySchemas": {"el": {"type": "string", "testOpt": "bar"}},
                },
            },
        }

    def test_dotted_option_name(self):
        """Dotted option names create nested dicts."""
        schema = create_schema({"foo": str})

        schema.set_subschema_option("foo", "ui.label", "Foo")

        assert schema.data["properties"]["foo"]["ui"] == {"label": "Foo"}

    def test_missing_path(self):
        """Undeclared paths are rejected."""
        schema = create_schema({"foo": str})

        with pytest.raises(SchemaError, match="does not exist"):
            schema.set_subschema_option("bar", "testOpt", True)


class TestHasParentType:
    """Tests for Schema.has_parent_type."""

    @pytest.fixture
    def schema(self):
        return create_schema({"arr": [{"foo": str}], "obj": {"bar": str}})

    def test_inside_array(self, schema):
        """A field under an array has an array parent."""
        assert schema.has_parent_type("arr.0.foo", "array") is True

    def test_not_inside_array(self, schema):
        """A field under objects only has no array parent."""
        assert schema.has_parent_type("obj.bar", "array") is False

    def test_skip_last_field(self, schema):
        """skip_last_field ignores the field itself."""
        assert schema.has_parent_type("arr", "array") is True
        assert schema.has_parent_type("arr", "array", skip_last_field=True) is False

    def test_unknown_path(self, schema):
        """Undeclared prefixes are errors."""
        with pytest.raises(SchemaError, match="Did not find field in schema"):
            schema.has_parent_type("nope.foo", "array")


class TestObjectPath:
    """Tests for get_object_path and set_object_path."""

    def test_get_object_path(self):
        """Reads through arrays by index."""
        schema = create_schema({"foo": [{"bar": str}]})
        obj = {"foo": [{"bar": "a"}, {"bar": "b"}]}

        assert schema.get_object_path(obj, "foo.1.bar") == "b"

    def test_get_object_path_missing(self):
        """Absent steps yield MISSING."""
        schema = create_schema({"foo": [{"bar": str}]})

        assert schema.get_object_path({"foo": [{"bar": "a"}]}, "foo.3.bar") is MISSING
        assert schema.get_object_path({}, "foo.0.bar") is MISSING

    def test_get_object_path_through_or(self):
        """Or-fields resolve through the matching alternative."""
        schema = create_schema({"o": or_(int, {"x": str})})

        assert schema.get_object_path({"o": {"x": "hi"}}, "o.x") == "hi"

    def test_set_existing_parent(self):
        """Writes into an existing container."""
        schema = create_schema({"foo": {"bar": {"baz": str}}})
        obj = {"foo": {"bar": {}}}

        schema.set_object_path(obj, "foo.bar.baz", "value")

        assert obj["foo"]["bar"]["baz"] == "value"

    def test_set_creates_intermediate(self):
        """Missing intermediate containers are created."""
        schema = create_schema({"foo": {"bar": {"baz": str}}})
        obj = {"foo": {}}

        schema.set_object_path(obj, "foo.bar.baz", "value")

        assert obj["foo"]["bar"]["baz"] == "value"

    def test_set_replaces_leaf(self):
        """The last step replaces whatever is there."""
        schema = create_schema({"foo": "string"})
        obj = {"foo": {}}

        schema.set_object_path(obj, "foo", "value")

        assert obj["foo"] == "value"

    def test_set_array_append(self):
        """Writing one past the end of an array appends."""
        schema = create_schema({"arr": [{"foo": "string"}]})
        obj = {"arr": [{"foo": "a"}]}

        schema.set_object_path(obj, "arr.0.foo", "b")
        schema.set_object_path(obj, "arr.1.foo", "c")

        assert obj["arr"] == [{"foo": "b"}, {"foo": "c"}]

    def test_set_outside_schema(self):
        """Paths leaving the schema are errors."""
        schema = create_schema({"foo": {"bar": str}})

        with pytest.raises(SchemaError, match="No subschema for object path"):
            schema.set_object_path({}, "nope.x", 1)

    def test_set_through_primitive(self):
        """A primitive cannot hold children."""
        schema = create_schema({"foo": str})

        with pytest.raises(TypeError, match="not container"):
            schema.set_object_path({"foo": "a"}, "foo.bar", 1)

    def test_set_empty_path(self):
        """The root cannot be set."""
        schema = create_schema({"foo": str})

        with pytest.raises(ValueError, match="Invalid path"):
            schema.set_object_path({}, "", 1)
