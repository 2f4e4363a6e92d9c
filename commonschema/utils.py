"""
Pure helpers shared by the schema engine and the type implementations.

No I/O and no schema knowledge: dot-path joins, path access on plain
dict/list data, default string conversion, and content hashing.
"""

from __future__ import annotations

import hashlib
import json
import math
from datetime import date, datetime, timezone
from typing import Any, List, Union

from .handlers import MISSING


def join_path(path: str, component: Union[str, int]) -> str:
    """Append a component to a dot-separated path ('' is the root)."""
    component = str(component)
    return f"{path}.{component}" if path else component


def split_path(path: str) -> List[str]:
    """Split a dot-separated path; the root path has no components."""
    return path.split(".") if path else []


def get_path(value: Any, path: str) -> Any:
    """Read a dot path from nested dicts/lists.

    Returns:
        The value at the path, or MISSING if any component is absent
    """
    current = value
    for part in split_path(path):
        if isinstance(current, dict):
            current = current.get(part, MISSING)
        elif isinstance(current, list) and part.isdigit() and int(part) < len(current):
            current = current[int(part)]
        else:
            return MISSING
        if current is MISSING:
            return MISSING
    return current


def set_path(value: dict, path: str, new_value: Any) -> None:
    """Write a dot path into nested dicts, creating intermediate dicts."""
    parts = split_path(path)
    if not parts:
        raise ValueError("Cannot set the root path")
    current = value
    for part in parts[:-1]:
        child = current.get(part)
        if not isinstance(child, dict):
            child = {}
            current[part] = child
        current = child
    current[parts[-1]] = new_value


def delete_path(value: Any, path: str) -> None:
    """Remove the entry at a dot path from nested dicts/lists, if present."""
    parts = split_path(path)
    if not parts:
        raise ValueError("Cannot delete the root path")
    parent = get_path(value, ".".join(parts[:-1]))
    last = parts[-1]
    if isinstance(parent, dict):
        parent.pop(last, None)
    elif isinstance(parent, list) and last.isdigit() and int(last) < len(parent):
        del parent[int(last)]


def is_scalar(value: Any) -> bool:
    """Whether value is a leaf (not a dict, list, tuple or set)."""
    return not isinstance(value, (dict, list, tuple, set))


def stringify(value: Any) -> str:
    """Default string conversion used by the string type and array-set keys.

    Booleans render as 'true'/'false' and integral floats drop the
    fractional part so that keys and coerced strings are stable across
    int/float inputs.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return str(int(value))
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def content_hash(value: Any) -> str:
    """SHA-256 hash of a canonical JSON rendering of value."""
    canonical = json.dumps(value, sort_keys=True, separators=(",", ":"), default=stringify)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
