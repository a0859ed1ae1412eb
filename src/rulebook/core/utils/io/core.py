"""Low-level file primitives used by the JSON and YAML helpers."""
from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Callable, Optional, TextIO, Union

PathLike = Union[str, Path]


def ensure_parent_dir(path: PathLike) -> Path:
    """Create the directory that will hold ``path`` and return ``path``."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    return target


def atomic_write(
    path: PathLike,
    write_fn: Callable[[TextIO], None],
    *,
    encoding: str = "utf-8",
) -> None:
    """Replace ``path`` with the text produced by ``write_fn`` in one step.

    ``write_fn`` fills a sibling temporary file, which is fsync'd and then
    renamed over the target, so readers see either the old file or the new
    one. The temporary file is removed if ``write_fn`` raises.
    """
    target = ensure_parent_dir(path)

    staged: Optional[Path] = None
    try:
        with tempfile.NamedTemporaryFile(
            "w",
            encoding=encoding,
            dir=target.parent,
            prefix=f".{target.name}.",
            suffix=".tmp",
            delete=False,
        ) as handle:
            staged = Path(handle.name)
            write_fn(handle)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(staged, target)
        staged = None
    finally:
        if staged is not None:
            staged.unlink(missing_ok=True)


def read_text(path: PathLike) -> str:
    """Return the UTF-8 content of ``path``.

    Raises:
        FileNotFoundError: if ``path`` does not exist
        UnicodeDecodeError: if the file is not valid UTF-8
    """
    return Path(path).read_text(encoding="utf-8")


__all__ = ["PathLike", "ensure_parent_dir", "atomic_write", "read_text"]
