"""File I/O helpers: atomic writes, JSON and YAML readers."""
from __future__ import annotations

from .core import PathLike, atomic_write, ensure_parent_dir, read_text
from .json import read_json, write_json_atomic
from .yaml import iter_yaml_files, read_yaml

__all__ = [
    "PathLike",
    "atomic_write",
    "ensure_parent_dir",
    "read_text",
    "read_json",
    "write_json_atomic",
    "iter_yaml_files",
    "read_yaml",
]
