"""
Schema: a normalized schema definition bound to a SchemaFactory.

A Schema owns canonical subschema data (nested dicts with a ``type`` key)
and provides:
- Shorthand normalization of the definition on construction
- Schema-only traversal (traverse_schema, list_fields, filter_schema)
- Value traversal and transformation, sync and async
- validate / is_valid / normalize / serialize entry points
- Schema-aware path access on values (get_object_path / set_object_path)
- JSON-Schema export

Invariants:
    - Canonical data is a fixed point of normalization
    - Every subschema dict reachable from the root carries a registered type name
    - transform() may mutate its input in place; the returned value is authoritative
    - ValidationError lists every field error found in one pass, in traversal order

How to change safely:
    - Add behaviour to SchemaType subclasses rather than branching on type
      names here
    - Keep on_field's call signature (field, value, subschema, schema_type)
      stable; custom handlers and Validator/Normalizer depend on it

Example:
    >>> schema = create_schema({"foo": str, "bar": [int]})
    >>> schema.normalize({"foo": 12, "bar": ["3"]})
    {'foo': '12', 'bar': [3]}
"""

from __future__ import annotations

import copy
import dataclasses
import inspect
from functools import partial
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Tuple

from .config import NormalizeOptions, ValidateOptions
from .errors import FieldError, SchemaError, ValidationError
from .handlers import MISSING, SetAndStopTransform, StopTransform, is_empty
from .normalizer import Normalizer
from .schema_type import SchemaType
from .utils import delete_path, join_path, set_path, split_path
from .validator import Validator

if TYPE_CHECKING:
    from .registry import SchemaFactory


async def _resolve(result: Any) -> Any:
    if inspect.isawaitable(result):
        return await result
    return result


class Schema:
    """A normalized schema.

    Normally created through SchemaFactory.create_schema() or the
    module-level create_schema().

    Attributes:
        json_schema_definitions: Shared definitions collected while
            to_json_schema() runs; None otherwise
    """

    def __init__(self, data: Any, factory: SchemaFactory, skip_normalize: bool = False) -> None:
        self._data = data
        self._factory = factory
        self.json_schema_definitions: Optional[Dict[str, Any]] = None
        if not skip_normalize:
            self.normalize_schema()

    def __repr__(self) -> str:
        return f"Schema({self._data!r})"

    @property
    def data(self) -> Dict[str, Any]:
        """Canonical schema data."""
        return self._data

    def get_data(self) -> Dict[str, Any]:
        return self._data

    @property
    def factory(self) -> SchemaFactory:
        return self._factory

    @staticmethod
    def is_schema(value: Any) -> bool:
        """Whether value is a Schema instance."""
        return isinstance(value, Schema)

    # -- Types -------------------------------------------------------------

    def get_type(self, name: str) -> SchemaType:
        """Look up a type on this schema's factory.

        Raises:
            SchemaError: If the type is not registered
        """
        return self._factory.get_type(name)

    def get_schema_type(self, subschema: Dict[str, Any]) -> SchemaType:
        return self.get_type(subschema["type"])

    def _create_subschema(self, data: Dict[str, Any]) -> Schema:
        """Wrap already-canonical subschema data, sharing this factory."""
        return Schema(data, self._factory, skip_normalize=True)

    # -- Normalization -----------------------------------------------------

    def normalize_schema(self) -> None:
        """Normalize the wrapped definition into canonical form.

        Runs on construction; call again after editing the data by hand.

        Raises:
            SchemaError: On an unknown type or malformed parameters
        """
        self._data = self._normalize_subschema(self._data)

    def _normalize_subschema(self, subschema: Any) -> Dict[str, Any]:
        if isinstance(subschema, dict) and isinstance(subschema.get("type"), str):
            schema_type = self.get_type(subschema["type"])
            return schema_type.normalize_schema(subschema, self)

        if isinstance(subschema, str):
            schema_type = self.get_type(subschema)
            return schema_type.normalize_schema({"type": subschema}, self)

        if isinstance(subschema, dict) and subschema.get("type") is not None:
            raw_type = subschema["type"]
            name, schema_type = self._find_shorthand_type(raw_type)
            subschema = schema_type.normalize_shorthand_schema(subschema, self)
        else:
            name, schema_type = self._find_shorthand_type(subschema)
            subschema = schema_type.normalize_shorthand_schema({"type": subschema}, self)
        subschema = schema_type.normalize_schema(subschema, self)
        subschema["type"] = name
        return subschema

    def _find_shorthand_type(self, raw: Any) -> Tuple[str, SchemaType]:
        found = self._factory.find_shorthand_type(raw)
        if found is None:
            raise SchemaError(f"Unknown schema type: {raw!r}")
        return found

    # -- Schema traversal --------------------------------------------------

    def traverse_schema(self, on_subschema: Callable[..., Optional[bool]]) -> None:
        """Visit every subschema in pre-order.

        Args:
            on_subschema: Called as on_subschema(subschema, path, schema_type, raw_path).
                ``path`` uses '$' for array/map elements; ``raw_path`` is the
                location inside the schema data. Returning False skips the
                subschema's children.
        """
        self._traverse_subschema(self._data, "", "", on_subschema)

    def _traverse_subschema(
        self, subschema: Dict[str, Any], path: str, raw_path: str, on_subschema: Callable[..., Optional[bool]]
    ) -> None:
        schema_type = self.get_schema_type(subschema)
        result = on_subschema(subschema, path, schema_type, raw_path)
        if result is not False:
            schema_type.traverse_schema(subschema, path, raw_path, on_subschema, self)

    def list_fields(
        self,
        stop_at_arrays: bool = True,
        max_depth: Optional[int] = None,
        only_leaves: bool = False,
    ) -> List[str]:
        """List the field paths the schema declares.

        Args:
            stop_at_arrays: Treat array and map fields as terminal
            max_depth: Stop descending once paths have this many components
            only_leaves: Drop paths that have descendants in the result

        Returns:
            Paths in traversal order, with '$' for array/map elements
        """
        fields: List[str] = []
        last_field: Optional[str] = None

        def on_subschema(subschema: Dict[str, Any], path: str, schema_type: SchemaType, raw_path: str) -> bool:
            nonlocal last_field
            if not path:
                return True
            if only_leaves and last_field is not None and path.startswith(last_field + "."):
                fields.pop()
            elif last_field == path:
                fields.pop()
            fields.append(path)
            last_field = path
            if stop_at_arrays and subschema["type"] in ("array", "map"):
                return False
            if max_depth is not None and len(split_path(path)) >= max_depth:
                return False
            return True

        self.traverse_schema(on_subschema)
        return fields

    def filter_schema(self, fn: Callable[..., Optional[bool]]) -> Schema:
        """Copy the schema, keeping only subschemas that pass fn.

        Args:
            fn: Called as fn(subschema, path, raw_path). True keeps the
                subschema with all descendants, False removes it, None
                decides per child.

        Returns:
            A new Schema on the same factory

        Raises:
            ValueError: If fn returns anything else
        """
        filtered = copy.deepcopy(self._data)
        removed: List[str] = []

        def on_subschema(subschema: Dict[str, Any], path: str, schema_type: SchemaType, raw_path: str) -> bool:
            include = fn(subschema, path, raw_path)
            if include is True:
                return False
            if include is False:
                if not raw_path:
                    raise ValueError("Cannot filter out the root schema")
                removed.append(raw_path)
                return False
            if include is None:
                return True
            raise ValueError(f"Invalid filter result {include!r}")

        self.traverse_schema(on_subschema)
        # Later list positions come later in pre-order; delete back to front.
        for raw_path in reversed(removed):
            delete_path(filtered, raw_path)
        return Schema(filtered, self._factory)

    def has_parent_type(self, path: str, type_name: str, skip_last_field: bool = False) -> bool:
        """Whether any prefix of path resolves to a subschema of type_name.

        Raises:
            SchemaError: If a prefix of path is not in the schema
        """
        parts = split_path(path)
        if skip_last_field:
            parts = parts[:-1]
        field = ""
        for part in parts:
            field = join_path(field, part)
            subschema = self.get_subschema_data(field)
            if subschema is None:
                raise SchemaError(f"Did not find field in schema: {field}")
            if subschema["type"] == type_name:
                return True
        return False

    # -- Subschema access --------------------------------------------------

    def get_subschema_data(self, path: str) -> Optional[Dict[str, Any]]:
        """Subschema at a value path ('' is the root), or None."""
        subschema: Optional[Dict[str, Any]] = self._data
        for part in split_path(path):
            if subschema is None:
                return None
            subschema = self.get_schema_type(subschema).get_field_subschema(subschema, part, self)
        return subschema

    def get_subschema_data_for_modify(self, path: str) -> Optional[Dict[str, Any]]:
        """Like get_subschema_data, but materializes per-key nodes of arraysets and maps."""
        subschema: Optional[Dict[str, Any]] = self._data
        for part in split_path(path):
            if subschema is None:
                return None
            subschema = self.get_schema_type(subschema).get_field_subschema_for_modify(subschema, part, self)
        return subschema

    def get_subschema(self, path: str) -> Optional[Schema]:
        """Subschema at path wrapped as a Schema, or None."""
        subschema = self.get_subschema_data(path)
        if subschema is None:
            return None
        return self._create_subschema(subschema)

    def set_subschema_option(self, path: str, option_name: str, value: Any) -> None:
        """Set a (possibly dotted) option on the subschema at path.

        Raises:
            SchemaError: If path is not in the schema
        """
        subschema = self.get_subschema_data_for_modify(path)
        if subschema is None:
            raise SchemaError(f"Subschema path {path} does not exist on schema")
        set_path(subschema, option_name, value)

    # -- Value paths -------------------------------------------------------

    def get_object_path(self, obj: Any, path: str) -> Any:
        """Read path from obj using the schema to address children.

        Returns:
            The value, or MISSING if any step is absent
        """
        value = obj
        subschema: Optional[Dict[str, Any]] = self._data
        for part in split_path(path):
            if is_empty(value):
                return MISSING
            if subschema is None:
                if isinstance(value, dict):
                    value = value.get(part, MISSING)
                    continue
                return MISSING
            schema_type = self.get_schema_type(subschema)
            if not schema_type.is_container(value, subschema, self):
                return MISSING
            field_subschema = schema_type.get_field_value_subschema(value, subschema, part, self)
            value = schema_type.get_value_subfield(value, subschema, part, self)
            subschema = field_subschema
        return value

    def set_object_path(self, obj: Any, path: str, new_value: Any) -> None:
        """Write new_value at path in obj, creating intermediate containers.

        Raises:
            ValueError: If obj is None or path is empty
            SchemaError: If path leaves the schema
            TypeError: If a step along path is not a container
        """
        parts = split_path(path)
        if not parts:
            raise ValueError("Invalid path")
        value = obj
        subschema: Optional[Dict[str, Any]] = self._data
        for index, part in enumerate(parts):
            if is_empty(value):
                raise ValueError("Cannot set field on None")
            if subschema is None:
                raise SchemaError(f"No subschema for object path {path}")
            schema_type = self.get_schema_type(subschema)
            if not schema_type.is_container(value, subschema, self):
                raise TypeError(f"Subschema is not container for path {path}")
            if index == len(parts) - 1:
                schema_type.set_value_subfield(value, subschema, part, new_value, self)
                return
            field_subschema = schema_type.get_field_value_subschema(value, subschema, part, self)
            if field_subschema is None:
                raise SchemaError(f"No subschema for object path {path}")
            field_value = schema_type.get_value_subfield(value, subschema, part, self)
            if is_empty(field_value):
                try:
                    field_value = self.get_schema_type(field_subschema).new_empty_container(
                        None, field_subschema, self
                    )
                except TypeError as e:
                    raise TypeError(f"Cannot create empty container for setting value {path}") from e
                schema_type.set_value_subfield(value, subschema, part, field_value, self)
            value = field_value
            subschema = field_subschema

    # -- Value traversal ---------------------------------------------------

    def traverse(self, obj: Any, handlers: Any) -> None:
        """Walk obj alongside the schema.

        on_field(field, value, subschema, schema_type) is called for every
        declared field, including ones absent from obj (value MISSING), in
        pre-order. Returning False skips the field's children.
        on_unknown_field(field, value) is called for fields obj has that the
        schema does not declare; they are not descended into.
        """
        self._traverse_subschema_value(obj, self._data, "", handlers)

    def _traverse_subschema_value(
        self, value: Any, subschema: Optional[Dict[str, Any]], field: str, handlers: Any
    ) -> None:
        if subschema is not None:
            schema_type = self.get_schema_type(subschema)
            result = None
            on_field = getattr(handlers, "on_field", None)
            if on_field is not None:
                result = on_field(field, value, subschema, schema_type)
            if result is not False and not is_empty(value):
                schema_type.traverse(value, subschema, field, handlers, self)
        elif value is not MISSING:
            on_unknown_field = getattr(handlers, "on_unknown_field", None)
            if on_unknown_field is not None:
                on_unknown_field(field, value)

    def transform(self, obj: Any, handlers: Any) -> Any:
        """Like traverse(), but each handler returns the field's new value.

        A parent's on_field runs and its result is installed before its
        children are visited; post_field runs after them. Returning MISSING
        deletes the field. StopTransform / SetAndStopTransform end descent
        into one field.

        Returns:
            The transformed value; obj may have been mutated in place
        """
        return self._transform_subschema_value(obj, self._data, "", handlers)

    def _transform_subschema_value(
        self, value: Any, subschema: Optional[Dict[str, Any]], field: str, handlers: Any
    ) -> Any:
        new_value = value
        if subschema is not None:
            schema_type = self.get_schema_type(subschema)
            on_field = getattr(handlers, "on_field", None)
            if on_field is not None:
                new_value = on_field(field, new_value, subschema, schema_type)
                if isinstance(new_value, StopTransform):
                    return value
                if isinstance(new_value, SetAndStopTransform):
                    return new_value.value
            if not is_empty(new_value):
                new_value = schema_type.transform(new_value, subschema, field, handlers, self)
            post_field = getattr(handlers, "post_field", None)
            if post_field is not None:
                new_value = post_field(field, new_value, subschema, schema_type)
        elif value is not MISSING:
            on_unknown_field = getattr(handlers, "on_unknown_field", None)
            if on_unknown_field is not None:
                new_value = on_unknown_field(field, value)
        return new_value

    async def transform_async(self, obj: Any, handlers: Any) -> Any:
        """Async form of transform(); handlers may be sync or coroutine functions.

        Handlers run one at a time in the same order as transform().
        """
        return await self._transform_subschema_value_async(obj, self._data, "", handlers)

    async def _transform_subschema_value_async(
        self, value: Any, subschema: Optional[Dict[str, Any]], field: str, handlers: Any
    ) -> Any:
        new_value = value
        if subschema is not None:
            schema_type = self.get_schema_type(subschema)
            on_field = getattr(handlers, "on_field", None)
            if on_field is not None:
                new_value = await _resolve(on_field(field, new_value, subschema, schema_type))
                if isinstance(new_value, StopTransform):
                    return value
                if isinstance(new_value, SetAndStopTransform):
                    return new_value.value
            if not is_empty(new_value):
                new_value = await schema_type.transform_async(new_value, subschema, field, handlers, self)
            post_field = getattr(handlers, "post_field", None)
            if post_field is not None:
                new_value = await _resolve(post_field(field, new_value, subschema, schema_type))
        elif value is not MISSING:
            on_unknown_field = getattr(handlers, "on_unknown_field", None)
            if on_unknown_field is not None:
                new_value = await _resolve(on_unknown_field(field, value))
        return new_value

    @staticmethod
    def stop_transform() -> StopTransform:
        """Handler result: keep the field's original value and do not descend."""
        return StopTransform()

    @staticmethod
    def set_and_stop_transform(value: Any) -> SetAndStopTransform:
        """Handler result: install value and do not descend."""
        return SetAndStopTransform(value)

    # -- Validation and normalization --------------------------------------

    def validate(self, value: Any, options: Optional[ValidateOptions] = None, **overrides: Any) -> None:
        """Strictly validate value, which must already be normalized.

        Args:
            value: Value to check
            options: Explicit options; defaults come from settings
            **overrides: Individual ValidateOptions fields

        Raises:
            ValidationError: With every failing field
        """
        errors = self.collect_validation_errors(value, _validate_options(options, overrides))
        if errors:
            raise ValidationError(errors)

    def is_valid(self, value: Any, options: Optional[ValidateOptions] = None, **overrides: Any) -> bool:
        return not self.collect_validation_errors(value, _validate_options(options, overrides))

    def collect_validation_errors(self, value: Any, options: ValidateOptions) -> List[FieldError]:
        """Run validation and return the field errors instead of raising."""
        validator_class = options.validator or Validator
        validator = validator_class(self, options)
        self.traverse(value, validator)
        return validator.get_field_errors()

    def normalize(self, value: Any, options: Optional[NormalizeOptions] = None, **overrides: Any) -> Any:
        """Coerce value to the schema, filling defaults.

        Args:
            value: Value to normalize; containers are modified in place
            options: Explicit options; defaults come from settings
            **overrides: Individual NormalizeOptions fields

        Returns:
            The normalized value

        Raises:
            ValidationError: With every field that could not be coerced
        """
        result, errors = self.normalize_collecting_errors(value, _normalize_options(options, overrides))
        if errors:
            raise ValidationError(errors)
        return result

    def normalize_collecting_errors(self, value: Any, options: NormalizeOptions) -> Tuple[Any, List[FieldError]]:
        """Run normalization and return (result, field errors) instead of raising."""
        normalizer_class = options.normalizer or Normalizer
        normalizer = normalizer_class(self, options)
        result = self.transform(value, normalizer)
        return result, normalizer.get_field_errors()

    def serialize(self, value: Any, options: Optional[NormalizeOptions] = None, **overrides: Any) -> Any:
        """normalize() with serialize=True: binary to base64, dates to ISO strings."""
        overrides["serialize"] = True
        return self.normalize(value, options, **overrides)

    def create_validate_fn(self, options: Optional[ValidateOptions] = None, **overrides: Any) -> Callable[[Any], None]:
        return partial(self.validate, options=_validate_options(options, overrides))

    def create_normalize_fn(self, options: Optional[NormalizeOptions] = None, **overrides: Any) -> Callable[[Any], Any]:
        return partial(self.normalize, options=_normalize_options(options, overrides))

    # -- JSON-Schema -------------------------------------------------------

    def to_json_schema(self) -> Dict[str, Any]:
        """Export as a JSON-Schema document.

        Types that share structure (such as geojson) register entries in
        json_schema_definitions; they are emitted under ``definitions``.
        """
        self.json_schema_definitions = {}
        try:
            json_schema = self._subschema_to_json_schema(self._data) or {}
            if self.json_schema_definitions:
                json_schema["definitions"] = copy.deepcopy(self.json_schema_definitions)
        finally:
            self.json_schema_definitions = None
        return json_schema

    def _subschema_to_json_schema(self, subschema: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        json_schema = self.get_schema_type(subschema).to_json_schema(subschema, self)
        if json_schema is None:
            return None
        if subschema.get("description"):
            json_schema["description"] = subschema["description"]
        if subschema.get("enum"):
            json_schema["enum"] = copy.deepcopy(subschema["enum"])
        default = subschema.get("default")
        if default is not None and not callable(default):
            json_schema["default"] = copy.deepcopy(default)
        return json_schema


def _validate_options(options: Optional[ValidateOptions], overrides: Dict[str, Any]) -> ValidateOptions:
    if options is None:
        return ValidateOptions.from_settings(**overrides)
    return dataclasses.replace(options, **overrides)


def _normalize_options(options: Optional[NormalizeOptions], overrides: Dict[str, Any]) -> NormalizeOptions:
    if options is None:
        return NormalizeOptions.from_settings(**overrides)
    return dataclasses.replace(options, **overrides)
