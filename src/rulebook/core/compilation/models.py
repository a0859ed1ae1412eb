"""
Data models for the rule compiler.

- RuleOrigin: where a rule came from (file and line, or package)
- Rule: one named rule and its raw definition
- ImportDirective / RequestedRule: a parsed ``importer!`` block
- PackageModel: the compiled rule table of a published package
- RuleTable: the final, read-only, flat rule table
"""
from __future__ import annotations

import copy
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

NAMESPACE_SEPARATOR = " . "

RawDefinition = Any


@dataclass(frozen=True)
class RuleOrigin:
    """Source of a rule, kept for error messages only."""

    file: Optional[Path] = None
    line: Optional[int] = None
    package: Optional[str] = None
    # Directive that brought an imported rule in, "<file>:<line>" or "package '<name>'".
    imported_by: Optional[str] = field(default=None, compare=False)

    @classmethod
    def from_file(cls, file: Path, line: Optional[int] = None) -> "RuleOrigin":
        return cls(file=Path(file), line=line)

    @classmethod
    def from_package(cls, package: str, imported_by: Optional[str] = None) -> "RuleOrigin":
        return cls(package=package, imported_by=imported_by or None)

    @property
    def is_imported(self) -> bool:
        return self.package is not None

    def __str__(self) -> str:
        if self.package is not None:
            if self.imported_by:
                return f"package '{self.package}' (imported by {self.imported_by})"
            return f"package '{self.package}'"
        if self.line is not None:
            return f"{self.file}:{self.line}"
        return str(self.file)


@dataclass
class Rule:
    name: str
    definition: RawDefinition
    origin: RuleOrigin


@dataclass(frozen=True)
class RequestedRule:
    """One entry of ``les règles``: a rule name (or ``ns . *``) and its overrides."""

    name: str
    overrides: Mapping[str, Any] = field(default_factory=dict)

    @property
    def is_wildcard(self) -> bool:
        return self.name == "*" or self.name.endswith(NAMESPACE_SEPARATOR + "*")

    @property
    def namespace(self) -> str:
        """Namespace covered by a wildcard request (empty for a bare ``*``)."""
        if self.name == "*":
            return ""
        return self.name[: -len(NAMESPACE_SEPARATOR + "*")]


@dataclass(frozen=True)
class ImportDirective:
    """A parsed ``importer!`` block."""

    package: str
    rules: Tuple[RequestedRule, ...]
    source: Optional[str] = None
    url: Optional[str] = None
    # Where the directive was declared: a file path or "package '<name>'".
    declared_in: str = ""
    line: Optional[int] = None

    @property
    def location(self) -> str:
        if self.line is not None:
            return f"{self.declared_in}:{self.line}"
        return self.declared_in

    def identity(self) -> str:
        """Canonical text of the directive, used to detect repeated expansions."""
        payload = {
            "package": self.package,
            "source": self.source,
            "rules": [[r.name, dict(r.overrides)] for r in self.rules],
        }
        return json.dumps(payload, sort_keys=True, ensure_ascii=False, default=str)


@dataclass
class PackageModel:
    name: str
    path: Path
    rules: Dict[str, RawDefinition]


class RuleTable(Mapping[str, Rule]):
    """Final flat rule table: read-only mapping of rule name to Rule.

    The table is built once by the merger and never mutated afterwards.
    """

    __slots__ = ("_rules",)

    def __init__(self, rules: Mapping[str, Rule]) -> None:
        self._rules: Dict[str, Rule] = dict(rules)

    def __getitem__(self, name: str) -> Rule:
        return self._rules[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __repr__(self) -> str:
        return f"RuleTable({len(self._rules)} rules)"

    def definitions(self) -> Dict[str, RawDefinition]:
        """Return ``{name: definition}`` as an independent copy."""
        return {name: copy.deepcopy(rule.definition) for name, rule in self._rules.items()}

    def to_json(self) -> Dict[str, RawDefinition]:
        """Flat JSON object consumed by the evaluator and by importing projects."""
        return self.definitions()

    def imported(self) -> List[Rule]:
        return [r for r in self._rules.values() if r.origin.is_imported]

    def local(self) -> List[Rule]:
        return [r for r in self._rules.values() if not r.origin.is_imported]


def parent_name(name: str) -> Optional[str]:
    """Return the parent namespace of ``name`` (``a . b . c`` -> ``a . b``)."""
    head, sep, _ = name.rpartition(NAMESPACE_SEPARATOR)
    return head if sep else None


def join_name(*parts: str) -> str:
    return NAMESPACE_SEPARATOR.join(p for p in parts if p)


__all__ = [
    "NAMESPACE_SEPARATOR",
    "RawDefinition",
    "RuleOrigin",
    "Rule",
    "RequestedRule",
    "ImportDirective",
    "PackageModel",
    "RuleTable",
    "parent_name",
    "join_name",
]
