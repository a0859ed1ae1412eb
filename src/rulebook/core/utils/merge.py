"""Deep merge used to layer configuration files.

Bundled defaults, project config and environment overrides are combined with
``deep_merge``. Lists follow override semantics driven by a marker in the
first element of the higher-priority list:

- no marker: the override list replaces the base list
- ``"+"``: append the remaining items to the base list
- ``"="``: explicit replace with the remaining items
- ``"-"``: remove the remaining items from the base list
"""
from __future__ import annotations

from typing import Any, Dict, List


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge dictionaries without mutating inputs.

    Example:
        >>> deep_merge({"packages": {"max_workers": 4}}, {"packages": {"search_paths": ["vendor"]}})
        {'packages': {'max_workers': 4, 'search_paths': ['vendor']}}
    """
    result: Dict[str, Any] = dict(base)
    for key, value in (override or {}).items():
        current = result.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            result[key] = deep_merge(current, value)
        elif isinstance(current, list) and isinstance(value, list):
            result[key] = merge_arrays(current, value)
        else:
            result[key] = value
    return result


def merge_arrays(base: List[Any], override: List[Any]) -> List[Any]:
    """Merge two lists according to the marker in ``override[0]``.

    Example:
        >>> merge_arrays(["node_modules"], ["+", "vendor"])
        ['node_modules', 'vendor']
        >>> merge_arrays(["a", "b", "c"], ["-", "b"])
        ['a', 'c']
    """
    if not override:
        return list(override)
    marker = override[0]
    if marker == "+":
        return [*base, *override[1:]]
    if marker == "=":
        return list(override[1:])
    if marker == "-":
        removed = override[1:]
        return [item for item in base if item not in removed]
    return list(override)


__all__ = ["deep_merge", "merge_arrays"]
