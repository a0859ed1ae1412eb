"""Common CLI argument registration utilities."""
from __future__ import annotations

import argparse


def add_json_flag(parser: argparse.ArgumentParser) -> None:
    """Add --json flag for JSON output mode."""
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output as JSON",
    )


def add_repo_root_flag(parser: argparse.ArgumentParser) -> None:
    """Add --repo-root flag for project root override."""
    parser.add_argument(
        "--repo-root",
        type=str,
        help="Override project root path",
    )


def add_verbose_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log compile diagnostics (INFO level)",
    )


def add_source_args(parser: argparse.ArgumentParser) -> None:
    """Add positional source patterns and repeatable --ignore globs.

    Args:
        parser: ArgumentParser to add the arguments to
    """
    parser.add_argument(
        "patterns",
        nargs="*",
        metavar="PATTERN",
        help="Glob patterns of rule files (default: sources.patterns from config)",
    )
    parser.add_argument(
        "--ignore",
        action="append",
        default=[],
        metavar="GLOB",
        help="Glob of files to skip; repeatable, added to sources.ignore",
    )


__all__ = ["add_json_flag", "add_repo_root_flag", "add_verbose_flag", "add_source_args"]
