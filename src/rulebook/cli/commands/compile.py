"""Rulebook compile command.

SUMMARY: Compile rule files and their imports into a JSON model.
"""
from __future__ import annotations

import argparse
from pathlib import Path

from rulebook.cli import (
    OutputFormatter,
    add_json_flag,
    add_repo_root_flag,
    add_source_args,
    add_verbose_flag,
    load_cli_config,
    setup_logging,
)
from rulebook.core.compilation import compile_model, write_model
from rulebook.core.exceptions import RulebookError

SUMMARY = "Compile rule files and their imports into a JSON model"


def register_args(parser: argparse.ArgumentParser) -> None:
    add_source_args(parser)
    parser.add_argument(
        "--output",
        "-o",
        type=str,
        help="Model file to write (default: output.path from config)",
    )
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
        if args.output:
            output = Path(args.output)
            if not output.is_absolute():
                output = Path.cwd() / output
        else:
            output = config.output.path
        write_model(table, output, indent=config.output.indent)
    except RulebookError as e:
        formatter.error(e, error_code=type(e).__name__, context=e.context)
        return 1

    local_count = len(table.local())
    imported_count = len(table.imported())
    formatter.success(
        {
            "rules": len(table),
            "local": local_count,
            "imported": imported_count,
            "output": str(output),
        },
        f"Compiled {len(table)} rule(s) ({local_count} local, {imported_count} imported) to {output}",
    )
    return 0
