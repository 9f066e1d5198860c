"""Field extraction from untyped JSON/TOML payloads.

``alr --format=JSON show`` and ``gh api`` both hand back loosely typed data.
These helpers validate at the boundary and narrow types for the checker.
"""

from __future__ import annotations

import json
from typing import Mapping, TypeGuard, cast

StrDict = dict[str, object]


def is_str_dict(obj: object) -> TypeGuard[StrDict]:
    """Return True if obj is a dict with string keys."""
    if not isinstance(obj, dict):
        return False
    d = cast(dict[object, object], obj)
    return all(isinstance(k, str) for k in d.keys())


def as_str_dict(obj: object) -> StrDict | None:
    if is_str_dict(obj):
        return obj
    return None


def get_str(table: Mapping[str, object], key: str) -> str | None:
    """Get a string value, stripped.

    Returns None if missing, not a str, or empty after stripping.
    """
    value = table.get(key)
    if not isinstance(value, str):
        return None
    s = value.strip()
    return s or None


def get_table(table: Mapping[str, object], key: str) -> StrDict | None:
    return as_str_dict(table.get(key))


def json_field(payload: str, key: str) -> str | None:
    """Return the string field ``key`` of a JSON object payload.

    Returns None when the payload is not a JSON object or the field is absent.
    """
    try:
        obj: object = json.loads(payload)
    except json.JSONDecodeError:
        return None
    data = as_str_dict(obj)
    if data is None:
        return None
    return get_str(data, key)
