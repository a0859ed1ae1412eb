"""Tagged view over raw rule definitions.

A raw definition is whatever the YAML/JSON parser produced: ``None``, a
scalar, a list, or a mapping of attributes. ``classify`` tags each node with
a ``NodeKind`` and ``attribute_kind`` tags each attribute/mechanism key with
the way its value has to be read, so consumers (reference extraction,
override merging) dispatch on explicit kinds instead of probing fields.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict

IMPORT_KEYWORD = "importer!"
NESTED_RULES_KEYWORD = "avec"
VALUE_KEYWORD = "valeur"


class NodeKind(str, Enum):
    EMPTY = "empty"
    CONSTANT = "constant"
    EXPRESSION = "expression"
    SEQUENCE = "sequence"
    RECORD = "record"


class AttributeKind(str, Enum):
    # Metadata or enumerations, never references.
    LITERAL = "literal"
    # Value is an expression, a list of expressions or a nested mechanism.
    EXPRESSION = "expression"
    # Free text whose ``{{ ... }}`` interpolations are expressions.
    TEXT = "text"
    # Mapping whose keys are rule names (``contexte``).
    REFERENCE_KEYS = "reference_keys"
    # ``recalcul``: ``règle`` is a rule name and ``avec`` a REFERENCE_KEYS mapping.
    RECALCUL = "recalcul"


LITERAL_ATTRIBUTES = frozenset(
    {
        "titre",
        "description",
        "note",
        "unité",
        "question",
        "résumé",
        "références",
        "icônes",
        "type",
        "privé",
        "experimental",
        "identifiant court",
        "meta",
        "avertissement",
    }
)

_SPECIAL_ATTRIBUTES: Dict[str, AttributeKind] = {
    "texte": AttributeKind.TEXT,
    "contexte": AttributeKind.REFERENCE_KEYS,
    "recalcul": AttributeKind.RECALCUL,
    IMPORT_KEYWORD: AttributeKind.LITERAL,
}


@dataclass(frozen=True)
class DefinitionNode:
    kind: NodeKind
    payload: Any


def classify(node: Any) -> DefinitionNode:
    """Tag a raw definition node.

    Raises:
        TypeError: for values that cannot appear in a parsed rule tree
    """
    if node is None:
        return DefinitionNode(NodeKind.EMPTY, None)
    if isinstance(node, (bool, int, float)):
        return DefinitionNode(NodeKind.CONSTANT, node)
    if isinstance(node, str):
        return DefinitionNode(NodeKind.EXPRESSION, node)
    if isinstance(node, (list, tuple)):
        return DefinitionNode(NodeKind.SEQUENCE, list(node))
    if isinstance(node, dict):
        return DefinitionNode(NodeKind.RECORD, node)
    raise TypeError(f"Unsupported value in rule definition: {node!r}")


def attribute_kind(key: Any) -> AttributeKind:
    name = str(key)
    if name in LITERAL_ATTRIBUTES:
        return AttributeKind.LITERAL
    return _SPECIAL_ATTRIBUTES.get(name, AttributeKind.EXPRESSION)


def as_record(definition: Any) -> Dict[str, Any]:
    """Return ``definition`` as an attribute mapping.

    An empty rule becomes ``{}`` and a scalar shorthand (``a: 10``) becomes
    ``{"valeur": 10}`` so attributes can be merged into it.
    """
    tagged = classify(definition)
    if tagged.kind is NodeKind.RECORD:
        return dict(tagged.payload)
    if tagged.kind is NodeKind.EMPTY:
        return {}
    return {VALUE_KEYWORD: tagged.payload}


__all__ = [
    "IMPORT_KEYWORD",
    "NESTED_RULES_KEYWORD",
    "VALUE_KEYWORD",
    "NodeKind",
    "AttributeKind",
    "LITERAL_ATTRIBUTES",
    "DefinitionNode",
    "classify",
    "attribute_kind",
    "as_record",
]
