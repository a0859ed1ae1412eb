"""Merge local and imported rules into the final rule table."""
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Tuple

from rulebook.core.exceptions import DuplicateRuleNameError, UnresolvedReferencesError

from .models import Rule, RuleTable, parent_name
from .references import rule_dependencies

logger = logging.getLogger(__name__)


def merge(local_rules: Iterable[Rule], imported_rules: Iterable[Rule]) -> RuleTable:
    """Build the rule table, local rules first.

    Raises:
        DuplicateRuleNameError: if two rules share a name (the same package
            supplying the same definition twice is tolerated; a rule overridden
            by one directive and plain in another is not)
        UnresolvedReferencesError: with every dangling reference or missing
            parent namespace
    """
    rules: Dict[str, Rule] = {}
    for rule in (*local_rules, *imported_rules):
        existing = rules.get(rule.name)
        if existing is None:
            rules[rule.name] = rule
            continue
        if _same_import(existing, rule):
            logger.debug("Rule %s imported twice from %s", rule.name, rule.origin.package)
            continue
        raise DuplicateRuleNameError(rule.name, existing.origin, rule.origin)

    violations = validate(rules)
    if violations:
        raise UnresolvedReferencesError(violations)
    return RuleTable(rules)


def validate(rules: Dict[str, Rule]) -> List[Tuple[str, str]]:
    """Return ``(rule, missing name)`` for every reference that matches no rule."""
    known = set(rules)
    violations: List[Tuple[str, str]] = []
    for name, rule in rules.items():
        deps = rule_dependencies(name, rule.definition, known)
        violations.extend((name, ref) for ref in sorted(deps.unresolved))
        parent = parent_name(name)
        if parent is not None and parent not in known:
            violations.append((name, parent))
    return violations


def _same_import(first: Rule, second: Rule) -> bool:
    return (
        first.origin.is_imported
        and first.origin.package == second.origin.package
        and first.definition == second.definition
    )


__all__ = ["merge", "validate"]
