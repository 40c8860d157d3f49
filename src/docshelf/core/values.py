from __future__ import annotations

from typing import Any, MutableMapping, Union

# A YAML tree: null, bool, number, string, list or string-keyed mapping.
ConfigValue = Union[None, bool, int, float, str, list["ConfigValue"], dict[str, "ConfigValue"]]


def insert_if_absent(mapping: MutableMapping[str, Any], key: str, value: ConfigValue) -> bool:
    """Set ``mapping[key]`` only when the key is missing. Returns True on insert."""
    if not isinstance(mapping, MutableMapping):
        raise TypeError(f"insert_if_absent requires a mapping, got {type(mapping).__name__}")
    if key in mapping:
        return False
    mapping[key] = value
    return True


def ensure_mapping(mapping: MutableMapping[str, Any], key: str) -> dict[str, Any]:
    """Return the mapping stored under ``key``, replacing a missing or non-mapping value."""
    current = mapping.get(key)
    if isinstance(current, dict):
        return current
    fresh: dict[str, Any] = {}
    mapping[key] = fresh
    return fresh
