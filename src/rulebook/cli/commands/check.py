"""Rulebook check command.

SUMMARY: Compile rule files without writing the model.
"""
from __future__ import annotations

import argparse

from rulebook.cli import (
    OutputFormatter,
    add_json_flag,
    add_repo_root_flag,
    add_source_args,
    add_verbose_flag,
    load_cli_config,
    setup_logging,
)
from rulebook.core.compilation import compile_model
from rulebook.core.exceptions import RulebookError

SUMMARY = "Check that rule files and their imports compile"


def register_args(parser: argparse.ArgumentParser) -> None:
    add_source_args(parser)
    add_verbose_flag(parser)
    add_json_flag(parser)
    add_repo_root_flag(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        config = load_cli_config(args)
        setup_logging(args, config)
        table = compile_model(
            args.patterns,
            ignore=args.ignore,
            verbose=args.verbose,
            root=config.repo_root,
            config=config,
        )
    except RulebookError as e:
        formatter.error(e, error_code=type(e).__name__, context=e.context)
        return 1

    formatter.success(
        {"rules": len(table), "local": len(table.local()), "imported": len(table.imported())},
        f"OK: {len(table)} rule(s) ({len(table.local())} local, {len(table.imported())} imported)",
    )
    return 0
