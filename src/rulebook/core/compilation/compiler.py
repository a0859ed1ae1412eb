"""Compile entry point: sources -> parsed rules -> expanded imports -> rule table."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from rulebook.core.config import CompilerConfig
from rulebook.core.exceptions import InvalidPackageModelError
from rulebook.core.utils.io import read_json, write_json_atomic

from .imports import ImportResolver
from .merger import merge
from .models import ImportDirective, RawDefinition, Rule, RuleOrigin, RuleTable
from .parser import parse_file
from .registry import PackageCache, PackageRegistry
from .sources import locate

logger = logging.getLogger(__name__)


def compile_model(
    patterns: Sequence[str],
    *,
    ignore: Sequence[str] = (),
    verbose: bool = False,
    root: Optional[Path] = None,
    config: Optional[CompilerConfig] = None,
) -> RuleTable:
    """Compile the rule files matched by ``patterns`` into one rule table.

    Empty ``patterns`` fall back to ``sources.patterns``; ``ignore`` globs are
    added to ``sources.ignore``. Relative patterns and package search paths
    are anchored at ``root`` (default: the project root).

    Raises:
        CompileError: any subclass; no partial table is returned
    """
    cfg = config or CompilerConfig(root)
    base = Path(root) if root else cfg.repo_root
    level = logging.INFO if verbose else logging.DEBUG

    include = list(patterns) or cfg.sources.patterns
    exclude = [*cfg.sources.ignore, *ignore]
    files = locate(include, exclude, root=base)
    logger.log(level, "Found %d rule file(s)", len(files))

    local_rules: List[Rule] = []
    directives: List[ImportDirective] = []
    for path in files:
        parsed = parse_file(path)
        local_rules.extend(
            Rule(name=r.name, definition=r.definition, origin=RuleOrigin.from_file(path, r.line))
            for r in parsed.rules
        )
        directives.extend(parsed.imports)
    logger.log(level, "Parsed %d local rule(s), %d import directive(s)", len(local_rules), len(directives))

    cache = PackageCache(
        PackageRegistry(cfg.packages.search_paths),
        timeout=cfg.packages.resolve_timeout_seconds,
        max_workers=cfg.packages.max_workers,
    )
    cache.prefetch((d.package, d.source) for d in directives)

    resolver = ImportResolver(cache, verbose=verbose)
    imported_rules: List[Rule] = []
    for directive in directives:
        imported_rules.extend(resolver.expand(directive))

    table = merge(local_rules, imported_rules)
    logger.log(
        level,
        "Compiled %d rule(s) (%d local, %d imported from %d package(s))",
        len(table),
        len(table.local()),
        len(table.imported()),
        len(cache),
    )
    return table


def write_model(table: RuleTable, path: Path, indent: Optional[int] = 2) -> Path:
    """Atomically write ``table`` as a flat JSON object and return the path."""
    path = Path(path)
    write_json_atomic(path, table.to_json(), indent=indent)
    logger.info("Wrote %d rule(s) to %s", len(table), path)
    return path


def read_model(path: Path) -> Dict[str, RawDefinition]:
    """Read a compiled model written by ``write_model``.

    Raises:
        InvalidPackageModelError: if the file is not a JSON object
    """
    data: Any = read_json(path)
    if not isinstance(data, dict):
        raise InvalidPackageModelError(str(path), path, "model must be a JSON object")
    return data


__all__ = ["compile_model", "write_model", "read_model"]
