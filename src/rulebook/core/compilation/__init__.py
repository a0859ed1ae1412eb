"""Rule model compilation.

Pipeline: ``sources.locate`` -> ``parser.parse_file`` -> ``imports.ImportResolver``
-> ``merger.merge`` -> ``RuleTable``. ``compile_model`` runs all of it.
"""
from __future__ import annotations

from .compiler import compile_model, read_model, write_model
from .imports import ImportResolver
from .merger import merge
from .models import (
    NAMESPACE_SEPARATOR,
    ImportDirective,
    PackageModel,
    RequestedRule,
    Rule,
    RuleOrigin,
    RuleTable,
)
from .parser import parse, parse_file
from .references import extract_references, resolve_reference
from .registry import PackageCache, PackageRegistry
from .sources import locate

__all__ = [
    "NAMESPACE_SEPARATOR",
    "ImportDirective",
    "ImportResolver",
    "PackageCache",
    "PackageModel",
    "PackageRegistry",
    "RequestedRule",
    "Rule",
    "RuleOrigin",
    "RuleTable",
    "compile_model",
    "extract_references",
    "locate",
    "merge",
    "parse",
    "parse_file",
    "read_model",
    "resolve_reference",
    "write_model",
]
