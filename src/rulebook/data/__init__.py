"""
Rulebook data resource helpers.

Provides access to the bundled default configuration and JSON schemas
using importlib.resources.
"""

from __future__ import annotations

import json
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any


def get_data_path(subpackage: str, filename: str = "") -> Path:
    """
    Get absolute path to a data file or directory.

    Example:
        >>> get_data_path("schemas", "config.schema.json")
        PosixPath('/path/to/rulebook/data/schemas/config.schema.json')
    """
    pkg = resources.files("rulebook.data")
    base = Path(str(pkg / subpackage))
    return base / filename if filename else base


@lru_cache(maxsize=16)
def read_schema(name: str) -> dict[str, Any]:
    """Read a bundled JSON schema by name (``config`` -> ``config.schema.json``)."""
    path = get_data_path("schemas", f"{name}.schema.json")
    return json.loads(path.read_text(encoding="utf-8"))


def clear_caches() -> None:
    """Clear all read caches."""
    read_schema.cache_clear()


__all__ = ["get_data_path", "read_schema", "clear_caches"]
