"""Rule source discovery."""
from __future__ import annotations

import glob
import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from rulebook.core.exceptions import NoMatchError
from rulebook.core.utils.patterns import expand_braces, matches_any_pattern

logger = logging.getLogger(__name__)


def locate(
    patterns: Sequence[str],
    ignore: Sequence[str] = (),
    *,
    root: Optional[Path] = None,
) -> List[Path]:
    """Expand glob ``patterns`` into an ordered, deduplicated list of files.

    Relative patterns are matched from ``root`` (default: working
    directory). Results keep pattern order, then path order within one
    pattern. A file matching any ``ignore`` glob is dropped even when an
    include pattern selected it.

    Raises:
        NoMatchError: if no file remains
    """
    base = Path(root).resolve() if root else Path.cwd().resolve()
    found: Dict[Path, None] = {}

    for pattern in patterns:
        for expanded in expand_braces(pattern):
            full = expanded if Path(expanded).is_absolute() else str(base / expanded)
            for match in sorted(glob.glob(full, recursive=True)):
                path = Path(match).resolve()
                if not path.is_file() or path in found:
                    continue
                if ignore and matches_any_pattern(_display_path(path, base), ignore):
                    logger.debug("Ignoring %s", path)
                    continue
                found[path] = None

    if not found:
        raise NoMatchError(patterns, ignore)
    return list(found)


def _display_path(path: Path, base: Path) -> str:
    try:
        return path.relative_to(base).as_posix()
    except ValueError:
        return path.as_posix()


__all__ = ["locate"]
