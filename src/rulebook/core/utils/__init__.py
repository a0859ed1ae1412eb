"""Utility helpers for Rulebook core.

- io/: file I/O (atomic writes, JSON and YAML readers)
- merge: layered configuration merging
- patterns: glob matching for source discovery
- logging: stdlib logging setup for the CLI
"""
from __future__ import annotations

from .io import atomic_write, ensure_parent_dir, read_json, read_yaml, write_json_atomic
from .merge import deep_merge, merge_arrays
from .patterns import expand_braces, matches_any_pattern

__all__ = [
    "atomic_write",
    "ensure_parent_dir",
    "read_json",
    "read_yaml",
    "write_json_atomic",
    "deep_merge",
    "merge_arrays",
    "expand_braces",
    "matches_any_pattern",
]
