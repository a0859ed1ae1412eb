from __future__ import annotations

import logging
from pathlib import Path

from rulebook.core.utils.logging import configure_logging, reset_logging


def _installed() -> list:
    return [h for h in logging.getLogger().handlers if not type(h).__name__.startswith("LogCapture")]


def test_verbose_lowers_threshold_to_info() -> None:
    before = _installed()

    configure_logging(level="WARNING", verbose=True)

    assert logging.getLogger().level == logging.INFO
    reset_logging()
    assert _installed() == before


def test_configure_is_idempotent() -> None:
    configure_logging(level="DEBUG")
    first = _installed()

    configure_logging(level="DEBUG")

    assert _installed() == first


def test_file_handler_writes_records(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "rulebook.log"
    configure_logging(level="INFO", path=log_file, stderr=False)

    logging.getLogger("rulebook.test").info("compiled")
    reset_logging()

    assert "compiled" in log_file.read_text(encoding="utf-8")


def test_no_handlers_installs_null_handler() -> None:
    configure_logging(stderr=False)

    assert any(isinstance(h, logging.NullHandler) for h in _installed())
