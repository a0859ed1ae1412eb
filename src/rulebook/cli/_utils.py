"""Shared CLI utilities."""
from __future__ import annotations

import argparse
from pathlib import Path

from rulebook.core.config import CompilerConfig
from rulebook.core.utils.logging import configure_logging
from rulebook.core.utils.paths import resolve_project_root


def get_repo_root(args: argparse.Namespace) -> Path:
    """Return ``--repo-root`` when given, else the auto-detected project root."""
    if getattr(args, "repo_root", None):
        return Path(args.repo_root).resolve()
    return resolve_project_root()


def load_cli_config(args: argparse.Namespace) -> CompilerConfig:
    """Load the layered configuration of the project the command runs on.

    Raises:
        ConfigError: if the merged configuration is invalid
    """
    return CompilerConfig(get_repo_root(args))


def setup_logging(args: argparse.Namespace, config: CompilerConfig) -> None:
    """Configure logging from the ``logging`` section and CLI flags."""
    configure_logging(
        level=config.logging.level,
        path=config.logging.path,
        verbose=bool(getattr(args, "verbose", False)),
        stderr=not getattr(args, "json", False),
    )


__all__ = ["get_repo_root", "load_cli_config", "setup_logging"]
