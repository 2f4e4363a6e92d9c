"""
Helpers for writing schemas in shorthand.

Example:
    >>> create_schema({
    ...     "tags": map_({"required": True}, int),
    ...     "id": or_(str, int),
    ...     "extra": Mixed,
    ... })
"""

from __future__ import annotations

from typing import Any, Dict


class Mixed:
    """Shorthand marker for the ``mixed`` type (any value, unchecked)."""


def or_(*args: Any) -> Dict[str, Any]:
    """Build an ``or`` subschema.

    The first argument may be a dict of extra subschema parameters; every
    remaining argument is an alternative.

    Example:
        >>> or_({"required": True}, str, int)
        {'required': True, 'type': 'or', 'alternatives': [<class 'str'>, <class 'int'>]}
    """
    params: Dict[str, Any] = {}
    alternatives = list(args)
    if alternatives and isinstance(alternatives[0], dict):
        params = alternatives.pop(0)
    params["type"] = "or"
    params["alternatives"] = alternatives
    return params


def map_(params: Any = None, values: Any = None) -> Dict[str, Any]:
    """Build a ``map`` subschema.

    Args:
        params: Extra subschema parameters; may be omitted, in which case
            the first argument is the value schema
        values: Subschema for every value
    """
    if not isinstance(params, dict):
        params, values = {}, params
    params["type"] = "map"
    params["values"] = values if values is not None else {}
    return params
