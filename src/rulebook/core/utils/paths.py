"""Project root resolution.

Resolution priority:
1. ``RULEBOOK_PROJECT_ROOT`` environment variable
2. Nearest ancestor of the working directory holding a ``.rulebook/``
   config directory or a ``package.json`` manifest
3. The working directory itself
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

PROJECT_ROOT_ENV = "RULEBOOK_PROJECT_ROOT"
PROJECT_CONFIG_DIR = ".rulebook"
_ROOT_MARKERS = (PROJECT_CONFIG_DIR, "package.json")


def resolve_project_root(start: Optional[Path] = None) -> Path:
    """Return the absolute project root.

    Raises:
        FileNotFoundError: If ``RULEBOOK_PROJECT_ROOT`` points at a missing path
    """
    env_root = os.environ.get(PROJECT_ROOT_ENV)
    if env_root:
        path = Path(env_root).expanduser().resolve()
        if not path.is_dir():
            raise FileNotFoundError(f"{PROJECT_ROOT_ENV} points at missing directory: {path}")
        return path

    here = (start or Path.cwd()).resolve()
    for candidate in (here, *here.parents):
        if any((candidate / marker).exists() for marker in _ROOT_MARKERS):
            return candidate
    return here


def get_project_config_dir(repo_root: Path) -> Path:
    """Return ``<repo_root>/.rulebook``."""
    return Path(repo_root) / PROJECT_CONFIG_DIR


__all__ = ["PROJECT_ROOT_ENV", "PROJECT_CONFIG_DIR", "resolve_project_root", "get_project_config_dir"]
