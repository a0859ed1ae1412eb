"""
Rulebook command dispatcher.

Every public module under ``cli/commands`` is a subcommand named after the
module (underscores become dashes). A command module provides:

- ``SUMMARY``: one-line help
- ``register_args(parser)``: adds its arguments
- ``main(args) -> int``: runs it and returns the exit code
"""
from __future__ import annotations

import argparse
import importlib
import pkgutil
import sys
from functools import lru_cache
from types import ModuleType
from typing import Callable, NamedTuple, Optional

from rulebook import __version__
from rulebook.cli import commands as _commands_pkg


class Command(NamedTuple):
    name: str
    summary: str
    module: ModuleType

    @property
    def handler(self) -> Optional[Callable[[argparse.Namespace], int]]:
        return getattr(self.module, "main", None)


@lru_cache(maxsize=1)
def discover_commands() -> tuple[Command, ...]:
    """Import every command module, skipping (with a warning) broken ones."""
    found: list[Command] = []
    for info in sorted(pkgutil.iter_modules(_commands_pkg.__path__), key=lambda m: m.name):
        if info.name.startswith("_") or info.ispkg:
            continue
        qualified = f"{_commands_pkg.__name__}.{info.name}"
        try:
            module = importlib.import_module(qualified)
        except ImportError as e:
            print(f"Warning: skipping command '{info.name}': {e}", file=sys.stderr)
            continue
        found.append(Command(info.name, getattr(module, "SUMMARY", info.name), module))
    return tuple(found)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rulebook",
        description="Compile rule files and the rules they import into one flat model.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", title="commands", metavar="<command>")
    for command in discover_commands():
        cli_name = command.name.replace("_", "-")
        sub = subparsers.add_parser(
            cli_name,
            aliases=[command.name] if cli_name != command.name else [],
            help=command.summary,
        )
        register = getattr(command.module, "register_args", None)
        if register is not None:
            register(sub)
        if command.handler is not None:
            sub.set_defaults(_func=command.handler)
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Console entry point; returns the process exit code."""
    parser = build_parser()
    args = parser.parse_args(sys.argv[1:] if argv is None else argv)

    handler = getattr(args, "_func", None)
    if args.command is None:
        parser.print_help()
        return 0
    if handler is None:
        parser.error(f"command '{args.command}' has no handler")

    try:
        return int(handler(args))
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return 130
    except Exception as e:
        # Compile errors are reported by the commands; this covers everything else.
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
