"""Expansion of ``importer!`` directives.

For each directive the resolver:

1. fetches the package model through the per-compile ``PackageCache``
2. seeds a frontier with the requested rules (``ns . *`` selects a subtree)
3. walks the frontier breadth-first, collecting each rule once and queueing
   the rules it depends on (references and parent namespace)
4. applies overrides to the requested rules only
5. emits every collected rule under its package name as origin, noting the
   directive that imported it

Directives met inside imported definitions are expanded the same way; each
``(package, directive)`` pair is expanded at most once per resolver.
"""
from __future__ import annotations

import copy
import logging
from collections import deque
from typing import Any, Deque, Dict, List, Mapping, Optional, Set, Tuple

from rulebook.core.exceptions import UnknownImportedRuleError

from .definition import IMPORT_KEYWORD, as_record, classify, NodeKind
from .models import (
    NAMESPACE_SEPARATOR,
    ImportDirective,
    PackageModel,
    RawDefinition,
    RequestedRule,
    Rule,
    RuleOrigin,
)
from .parser import parse_import_value
from .references import rule_dependencies
from .registry import PackageCache

logger = logging.getLogger(__name__)


def split_import_directives(
    definition: RawDefinition, *, declared_in: str
) -> Tuple[RawDefinition, List[ImportDirective]]:
    """Remove an ``importer!`` attribute from ``definition`` and parse it."""
    tagged = classify(definition)
    if tagged.kind is not NodeKind.RECORD or IMPORT_KEYWORD not in tagged.payload:
        return definition, []
    cleaned = dict(tagged.payload)
    raw = cleaned.pop(IMPORT_KEYWORD)
    return cleaned, parse_import_value(raw, declared_in=declared_in)


def apply_overrides(definition: RawDefinition, overrides: Mapping[str, Any]) -> RawDefinition:
    """Shallow attribute merge; override values win on conflicting keys."""
    if not overrides:
        return definition
    merged = as_record(definition)
    merged.update(copy.deepcopy(dict(overrides)))
    return merged


class ImportResolver:
    """Expands import directives against packages held in a ``PackageCache``."""

    def __init__(self, cache: PackageCache, *, verbose: bool = False) -> None:
        self.cache = cache
        self._expanded: Set[Tuple[str, str]] = set()
        self._log_level = logging.INFO if verbose else logging.DEBUG

    def expand(self, directive: ImportDirective) -> List[Rule]:
        """Return the rules brought in by ``directive`` and its nested imports.

        Raises:
            PackageNotFoundError: if the package cannot be resolved
            UnknownImportedRuleError: if a needed rule is not in the package
        """
        rules: List[Rule] = []
        queue: Deque[ImportDirective] = deque([directive])
        while queue:
            current = queue.popleft()
            key = (current.package, current.identity())
            if key in self._expanded:
                logger.debug("Skipping already expanded import of %s", current.package)
                continue
            self._expanded.add(key)

            collected, nested = self._expand_one(current)
            rules.extend(collected)
            queue.extend(nested)
        return rules

    def _expand_one(self, directive: ImportDirective) -> Tuple[List[Rule], List[ImportDirective]]:
        package = self.cache.get(directive.package, directive.source)
        requested = self._requested_rules(package, directive.rules)
        known = set(package.rules)

        collected: Dict[str, RawDefinition] = {}
        nested: List[ImportDirective] = []
        frontier: Deque[Tuple[str, Optional[str]]] = deque((name, None) for name in requested)

        while frontier:
            name, required_by = frontier.popleft()
            if name in collected:
                continue
            if name not in package.rules:
                raise UnknownImportedRuleError(package.name, name, required_by=required_by)

            definition, directives = split_import_directives(
                copy.deepcopy(package.rules[name]),
                declared_in=f"package '{package.name}'",
            )
            collected[name] = definition
            nested.extend(directives)

            # Names brought in by the rule's own importer! resolve through it.
            provided = self._provided_names(directives)
            deps = rule_dependencies(name, definition, known | provided)
            if deps.unresolved:
                raise UnknownImportedRuleError(package.name, sorted(deps.unresolved)[0], required_by=name)
            for dep in sorted(deps.resolved):
                if dep in known and dep not in collected:
                    frontier.append((dep, name))

        for name, overrides in requested.items():
            collected[name] = apply_overrides(collected[name], overrides)

        logger.log(
            self._log_level,
            "Imported %d rule(s) from %s (%d requested)",
            len(collected),
            package.name,
            len(requested),
        )
        origin = RuleOrigin.from_package(package.name, imported_by=directive.location)
        return [Rule(name=n, definition=d, origin=origin) for n, d in collected.items()], nested

    def _provided_names(self, directives: List[ImportDirective]) -> Set[str]:
        names: Set[str] = set()
        for directive in directives:
            package = self.cache.get(directive.package, directive.source)
            names.update(self._requested_rules(package, directive.rules))
        return names

    def _requested_rules(
        self, package: PackageModel, requests: Tuple[RequestedRule, ...]
    ) -> Dict[str, Mapping[str, Any]]:
        """Map each requested rule name to its overrides, expanding wildcards."""
        requested: Dict[str, Mapping[str, Any]] = {}
        for request in requests:
            if not request.is_wildcard:
                requested[request.name] = {**requested.get(request.name, {}), **request.overrides}
                continue
            namespace = request.namespace
            prefix = namespace + NAMESPACE_SEPARATOR
            matches = [n for n in package.rules if not namespace or n == namespace or n.startswith(prefix)]
            if not matches:
                raise UnknownImportedRuleError(package.name, request.name)
            for name in matches:
                requested[name] = {**requested.get(name, {}), **request.overrides}
        return requested


__all__ = ["ImportResolver", "apply_overrides", "split_import_directives"]
