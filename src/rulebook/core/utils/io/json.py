"""JSON I/O for compiled rule models."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Dict, TextIO

from .core import atomic_write

DEFAULT_JSON_CONFIG: Dict[str, Any] = {
    "indent": 2,
    "ensure_ascii": False,
    "encoding": "utf-8",
}


def _json_writer(data: Any, cfg: Dict[str, Any]) -> Callable[[TextIO], None]:
    def _writer(f: TextIO) -> None:
        json.dump(
            data,
            f,
            indent=cfg["indent"],
            ensure_ascii=cfg["ensure_ascii"],
        )
        f.write("\n")

    return _writer


def read_json(file_path: Path | str) -> Any:
    """Read JSON; raises FileNotFoundError on missing files."""
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"JSON file not found: {path}")
    with open(path, "r", encoding=DEFAULT_JSON_CONFIG["encoding"]) as f:
        return json.load(f)


def write_json_atomic(file_path: Path | str, data: Any, *, indent: int | None = None) -> None:
    """Atomically write JSON to ``file_path``.

    Key order is preserved: rule tables are written in compile order.
    """
    cfg = dict(DEFAULT_JSON_CONFIG)
    if indent is not None:
        cfg["indent"] = indent
    atomic_write(Path(file_path), _json_writer(data, cfg), encoding=cfg["encoding"])


__all__ = ["read_json", "write_json_atomic"]
