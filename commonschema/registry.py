"""
SchemaFactory: the registry of schema types and named schemas.

Every Schema is bound to the factory that created it and resolves type
names through it. The factory provides:
- Registration of SchemaType instances, in shorthand lookup order
- Lookup of types by name and by shorthand marker
- A name -> Schema registry for reusable schemas
- Freeze mechanism to prevent runtime modifications

Invariants:
    - Type names are unique within a factory unless replaced explicitly
    - Shorthand lookup scans types in registration order; first match wins
    - Once frozen, no types or schemas can be registered

How to change safely:
    - Register custom types before creating schemas that use them
    - Call freeze() once setup is complete in long-running processes
    - Use a fresh SchemaFactory in tests instead of the default one

Example:
    >>> factory = SchemaFactory()
    >>> factory.register_type(MyType())
    >>> schema = factory.create_schema({"foo": "mytype"})
    >>> factory.freeze()
"""

from __future__ import annotations

import hashlib
import json
import logging
import threading
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple, Type

from .config import get_settings
from .errors import DuplicateTypeError, RegistryFrozenError, SchemaError
from .schema import Schema
from .schema_type import SchemaType
from .types import CORE_TYPES, GEO_TYPES

logger = logging.getLogger(__name__)

# Default factory instance
_default_factory: Optional[SchemaFactory] = None
_factory_lock = threading.Lock()


class SchemaFactory:
    """Registry of schema types and named schemas.

    Thread-safety:
        - Registration is thread-safe (uses internal lock)
        - Lookups are lock-free
        - Freeze is atomic and irreversible

    Attributes:
        frozen: Whether the factory is frozen (immutable)
        fingerprint: SHA-256 hash of the registered type names (computed on freeze)
    """

    def __init__(self, load_core_types: bool = True, load_geo_types: Optional[bool] = None) -> None:
        """Initialize a factory.

        Args:
            load_core_types: Register the built-in types
            load_geo_types: Register geopoint/geojson; defaults to
                settings.load_geo_types
        """
        self._types: Dict[str, SchemaType] = {}
        self._schemas: Dict[str, Schema] = {}
        self._frozen = False
        self._fingerprint: Optional[str] = None
        self._lock = threading.Lock()

        if load_core_types:
            self.load_types(CORE_TYPES)
        if load_geo_types is None:
            load_geo_types = get_settings().load_geo_types
        if load_geo_types:
            self.load_types(GEO_TYPES)

    @property
    def frozen(self) -> bool:
        """Whether the factory is frozen."""
        return self._frozen

    @property
    def fingerprint(self) -> Optional[str]:
        """Type registry fingerprint (available after freeze)."""
        return self._fingerprint

    def load_types(self, type_classes: Iterable[Type[SchemaType]]) -> None:
        """Instantiate and register each type class with its default name."""
        for type_class in type_classes:
            self.register_type(type_class())

    def register_type(self, schema_type: SchemaType, name: Optional[str] = None, replace: bool = False) -> None:
        """Register a schema type.

        Args:
            schema_type: The type instance
            name: Registered name; defaults to schema_type.name
            replace: Allow replacing an existing type of the same name

        Raises:
            RegistryFrozenError: If the factory is frozen
            DuplicateTypeError: If the name is taken and replace is False
        """
        name = name or schema_type.name
        with self._lock:
            if self._frozen:
                raise RegistryFrozenError(f"Cannot register schema type '{name}': factory is frozen")
            if name in self._types:
                if not replace:
                    raise DuplicateTypeError(name)
                logger.warning(f"Replacing schema type '{name}' with {type(schema_type).__name__}")
            self._types[name] = schema_type
            logger.debug(f"Registered schema type: {name} ({type(schema_type).__name__})")

    def get_type(self, name: str) -> SchemaType:
        """Look up a type by name.

        Raises:
            SchemaError: If no type is registered under name
        """
        schema_type = self._types.get(name)
        if schema_type is None:
            raise SchemaError(f"Unknown schema type: {name}")
        return schema_type

    def has_type(self, name: str) -> bool:
        return name in self._types

    def iter_types(self) -> Iterator[Tuple[str, SchemaType]]:
        """Iterate (name, type) pairs in registration order."""
        return iter(list(self._types.items()))

    def type_names(self) -> List[str]:
        return list(self._types)

    def find_shorthand_type(self, raw: Any) -> Optional[Tuple[str, SchemaType]]:
        """First registered type whose shorthand matches raw, or None."""
        for name, schema_type in self.iter_types():
            if schema_type.match_shorthand_type(raw):
                return name, schema_type
        return None

    def create_schema(self, data: Any, skip_normalize: bool = False) -> Schema:
        """Create a Schema bound to this factory.

        Args:
            data: Schema definition, shorthand or canonical
            skip_normalize: Trust data to be canonical already

        Raises:
            SchemaError: If data is not a valid schema
        """
        return Schema(data, self, skip_normalize=skip_normalize)

    def register_schema(self, name: str, schema: Schema) -> None:
        """Store a schema under a name for later retrieval.

        Raises:
            RegistryFrozenError: If the factory is frozen
        """
        with self._lock:
            if self._frozen:
                raise RegistryFrozenError(f"Cannot register schema '{name}': factory is frozen")
            self._schemas[name] = schema
            logger.debug(f"Registered schema: {name}")

    def get_registered_schema(self, name: str) -> Optional[Schema]:
        return self._schemas.get(name)

    def freeze(self) -> str:
        """Freeze the factory and compute its fingerprint.

        Returns:
            Fingerprint string

        Raises:
            RegistryFrozenError: If already frozen
        """
        with self._lock:
            if self._frozen:
                raise RegistryFrozenError("Schema factory is already frozen")
            canonical = json.dumps(
                {name: type(schema_type).__qualname__ for name, schema_type in self._types.items()},
                sort_keys=True,
                separators=(",", ":"),
            )
            self._fingerprint = f"sha256:{hashlib.sha256(canonical.encode('utf-8')).hexdigest()}"
            self._frozen = True
            logger.info(
                f"Schema factory frozen with {len(self._types)} types, "
                f"{len(self._schemas)} named schemas, fingerprint={self._fingerprint}"
            )
            return self._fingerprint


def get_default_factory() -> SchemaFactory:
    """Get the process-wide default factory, creating it on first use.

    Example:
        >>> get_default_factory().register_type(MyType())
    """
    global _default_factory
    with _factory_lock:
        if _default_factory is None:
            _default_factory = SchemaFactory()
        return _default_factory


def reset_default_factory() -> None:
    """Drop the default factory (for tests).

    The next get_default_factory() call builds a fresh one from current settings.
    """
    global _default_factory
    with _factory_lock:
        _default_factory = None


def create_schema(data: Any, skip_normalize: bool = False) -> Schema:
    """Create a Schema on the default factory."""
    return get_default_factory().create_schema(data, skip_normalize=skip_normalize)
