"""Layer merging for configuration files.

Mappings merge key by key. A list in a higher layer replaces the lower one,
unless its first item is ``"+"``, in which case the remaining items are
appended (``shared_paths: ["+", ./more]`` adds to the user's paths).
"""
from __future__ import annotations

import copy
from typing import Any, Dict

LIST_APPEND = "+"


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Return ``base`` with ``override`` layered on top; inputs are not mutated."""
    merged = copy.deepcopy(base)
    for key, value in (override or {}).items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        elif isinstance(value, list) and value[:1] == [LIST_APPEND]:
            prefix = current if isinstance(current, list) else []
            merged[key] = prefix + copy.deepcopy(value[1:])
        else:
            merged[key] = copy.deepcopy(value)
    return merged


__all__ = ["LIST_APPEND", "deep_merge"]
