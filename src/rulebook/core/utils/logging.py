from __future__ import annotations

import logging
import sys
from pathlib import Path

_RULEBOOK_HANDLERS: list[logging.Handler] = []
_CONFIGURED_KEY: tuple[str | None, int, bool] | None = None

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_STDERR_FORMAT = "%(levelname)s %(name)s: %(message)s"


def _level_from_name(name: str) -> int:
    level = logging.getLevelName(str(name).upper())
    return level if isinstance(level, int) else logging.WARNING


def configure_logging(
    *,
    level: str = "WARNING",
    path: Path | str | None = None,
    verbose: bool = False,
    stderr: bool = True,
) -> None:
    """Configure stdlib logging for a CLI invocation.

    Installs a stderr handler (unless ``stderr`` is False, as in JSON mode)
    and a file handler when ``path`` is set. ``verbose`` lowers the threshold
    to INFO so compile diagnostics become visible.

    Idempotent per-process: calling again with the same settings is a no-op,
    different settings replace the handlers installed previously.
    """
    global _CONFIGURED_KEY

    resolved = str(Path(path).resolve()) if path else None
    threshold = _level_from_name(level)
    if verbose:
        threshold = min(threshold, logging.INFO)

    key = (resolved, threshold, stderr)
    if _CONFIGURED_KEY == key and _RULEBOOK_HANDLERS:
        return

    reset_logging()

    root = logging.getLogger()
    root.setLevel(threshold)

    if stderr:
        sh = logging.StreamHandler(sys.stderr)
        sh.setLevel(threshold)
        sh.setFormatter(logging.Formatter(_STDERR_FORMAT))
        root.addHandler(sh)
        _RULEBOOK_HANDLERS.append(sh)

    if resolved is not None:
        Path(resolved).parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(resolved, encoding="utf-8")
        fh.setLevel(threshold)
        fh.setFormatter(logging.Formatter(_FORMAT))
        root.addHandler(fh)
        _RULEBOOK_HANDLERS.append(fh)

    if not _RULEBOOK_HANDLERS:
        # Keeps the lastResort handler from writing warnings to stderr.
        nh = logging.NullHandler()
        root.addHandler(nh)
        _RULEBOOK_HANDLERS.append(nh)

    _CONFIGURED_KEY = key


def reset_logging() -> None:
    """Remove the handlers installed by ``configure_logging``."""
    global _CONFIGURED_KEY
    root = logging.getLogger()
    for handler in _RULEBOOK_HANDLERS:
        root.removeHandler(handler)
        handler.close()
    _RULEBOOK_HANDLERS.clear()
    _CONFIGURED_KEY = None


__all__ = ["configure_logging", "reset_logging"]
