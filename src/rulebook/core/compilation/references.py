"""Reference extraction and namespace resolution.

``extract_references`` lists the rule names a raw definition mentions. It
errs on the side of returning too many names: a missed reference would leave
an import closure incomplete, while an extra one is reported by the merger.
"""
from __future__ import annotations

import re
from typing import AbstractSet, Any, NamedTuple, Optional, Set

from .definition import AttributeKind, NodeKind, attribute_kind, classify
from .models import NAMESPACE_SEPARATOR, RawDefinition, join_name, parent_name

# Binary operators must be surrounded by whitespace; "auto-entrepreneur" and
# "€/mois" are single tokens.
_OPERATOR_RE = re.compile(r"\s+(?:\*\*|>=|<=|!=|=|[-+*/<>])\s+")
_PARENS_RE = re.compile(r"[()]")
_QUOTED_RE = re.compile(r"'[^']*'|\"[^\"]*\"")
_INTERPOLATION_RE = re.compile(r"\{\{(.*?)\}\}", re.DOTALL)
# Numbers, percentages, quantities with units and dates all start with a digit.
_LITERAL_RE = re.compile(r"^[-+]?\s*\.?\d")
_SEPARATOR_RE = re.compile(r"\s+\.\s+")
_BOOLEAN_LITERALS = frozenset({"oui", "non"})

RECALCUL_RULE_KEY = "règle"
RECALCUL_CONTEXT_KEY = "avec"


def normalize_name(name: str) -> str:
    """Collapse whitespace and normalise the namespace separator."""
    collapsed = " ".join(str(name).split())
    return _SEPARATOR_RE.sub(NAMESPACE_SEPARATOR, collapsed)


def expression_references(expression: str) -> Set[str]:
    """Return the rule names used in one expression string."""
    refs: Set[str] = set()
    text = _QUOTED_RE.sub(" '' ", expression)
    for operand in _OPERATOR_RE.split(" ".join(text.split())):
        for piece in _PARENS_RE.split(operand):
            candidate = piece.strip()
            if not candidate or candidate.startswith("'") or _LITERAL_RE.match(candidate):
                continue
            candidate = candidate.lstrip("-+").strip()
            if not candidate or candidate in _BOOLEAN_LITERALS:
                continue
            refs.add(normalize_name(candidate))
    return refs


def extract_references(definition: RawDefinition) -> Set[str]:
    """Return every rule name referenced by ``definition``."""
    refs: Set[str] = set()
    _collect(definition, refs)
    return refs


def _collect(node: Any, refs: Set[str]) -> None:
    tagged = classify(node)
    if tagged.kind is NodeKind.EXPRESSION:
        refs.update(expression_references(tagged.payload))
    elif tagged.kind is NodeKind.SEQUENCE:
        for item in tagged.payload:
            _collect(item, refs)
    elif tagged.kind is NodeKind.RECORD:
        for key, value in tagged.payload.items():
            _collect_attribute(key, value, refs)


def _collect_attribute(key: Any, value: Any, refs: Set[str]) -> None:
    kind = attribute_kind(key)
    if kind is AttributeKind.LITERAL:
        return
    if kind is AttributeKind.TEXT and isinstance(value, str):
        for fragment in _INTERPOLATION_RE.findall(value):
            refs.update(expression_references(fragment))
        return
    if kind is AttributeKind.REFERENCE_KEYS and isinstance(value, dict):
        for name, sub in value.items():
            refs.add(normalize_name(name))
            _collect(sub, refs)
        return
    if kind is AttributeKind.RECALCUL and isinstance(value, dict):
        for sub_key, sub in value.items():
            if sub_key == RECALCUL_CONTEXT_KEY:
                _collect_attribute("contexte", sub, refs)
            else:
                _collect(sub, refs)
        return
    _collect(value, refs)


def resolve_reference(reference: str, context: str, known: AbstractSet[str]) -> Optional[str]:
    """Resolve ``reference`` as written inside rule ``context``.

    Candidates are tried from the most specific namespace outwards: from
    inside ``a . b``, ``c`` resolves to the first existing of ``a . b . c``,
    ``a . c`` and ``c``. Returns None when nothing matches.
    """
    namespace: Optional[str] = context
    while namespace:
        candidate = join_name(namespace, reference)
        if candidate in known:
            return candidate
        namespace = parent_name(namespace)
    return reference if reference in known else None


class Dependencies(NamedTuple):
    resolved: Set[str]
    unresolved: Set[str]


def rule_dependencies(name: str, definition: RawDefinition, known: AbstractSet[str]) -> Dependencies:
    """Rules that ``name`` needs from ``known``.

    Includes every resolved reference and the parent namespace rule when it
    exists. References that match no rule are returned separately.
    """
    resolved: Set[str] = set()
    unresolved: Set[str] = set()
    for ref in extract_references(definition):
        target = resolve_reference(ref, name, known)
        if target is None:
            unresolved.add(ref)
        elif target != name:
            resolved.add(target)
    parent = parent_name(name)
    if parent is not None and parent in known:
        resolved.add(parent)
    return Dependencies(resolved, unresolved)


__all__ = [
    "normalize_name",
    "expression_references",
    "extract_references",
    "resolve_reference",
    "Dependencies",
    "rule_dependencies",
]
