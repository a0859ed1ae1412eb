"""Rule file parser.

Turns one YAML rule file into an ordered list of rules and the import
directives it declares. Parsing is syntax-only: references between rules
are not resolved here.

File layout::

    salaire:
      titre: Salaire
      avec:
        brut: 3000 €/mois          # -> "salaire . brut"
        net: brut * 78%            # -> "salaire . net"

    importer!:
      depuis:
        nom: some-package
      les règles:
        - impôt . taux
"""
from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import jsonschema
import yaml

from rulebook.core.exceptions import ParseError
from rulebook.core.utils.io import read_text
from rulebook.data import read_schema

from .definition import IMPORT_KEYWORD, NESTED_RULES_KEYWORD
from .models import ImportDirective, RawDefinition, RequestedRule, join_name
from .references import normalize_name

logger = logging.getLogger(__name__)

_TIMESTAMP_TAG = "tag:yaml.org,2002:timestamp"
_MERGE_TAG = "tag:yaml.org,2002:merge"


class _RuleLoader(yaml.SafeLoader):
    """SafeLoader that rejects duplicate keys and keeps dates as strings."""

    def construct_mapping(self, node: yaml.MappingNode, deep: bool = False) -> Dict[Any, Any]:
        seen: Dict[Any, yaml.Mark] = {}
        for key_node, _ in node.value:
            # Keys brought in by "<<" merges may be overridden explicitly.
            if key_node.tag == _MERGE_TAG:
                continue
            key = self.construct_object(key_node, deep=deep)
            try:
                duplicate = key in seen
            except TypeError:
                duplicate = False
            if duplicate:
                raise yaml.constructor.ConstructorError(
                    "while constructing a mapping",
                    node.start_mark,
                    f"found duplicate key '{key}' (first defined on line {seen[key].line + 1})",
                    key_node.start_mark,
                )
            seen[key] = key_node.start_mark
        return super().construct_mapping(node, deep=deep)


_RuleLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != _TIMESTAMP_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


@dataclass
class ParsedRule:
    name: str
    definition: RawDefinition
    line: Optional[int] = None


@dataclass
class ParsedFile:
    path: Path
    rules: List[ParsedRule] = field(default_factory=list)
    imports: List[ImportDirective] = field(default_factory=list)


def parse(path: Path) -> List[Tuple[str, RawDefinition]]:
    """Return the ``(name, definition)`` pairs declared in ``path``."""
    return [(r.name, r.definition) for r in parse_file(path).rules]


def parse_file(path: Path) -> ParsedFile:
    """Parse one rule file.

    Raises:
        ParseError: on invalid YAML, duplicate keys, or malformed rules/imports
    """
    path = Path(path)
    try:
        content = read_text(path)
    except (OSError, UnicodeDecodeError) as exc:
        raise ParseError(path, f"cannot read file: {exc}") from exc
    parsed = parse_text(content, path)
    logger.debug(
        "Parsed %s: %d rule(s), %d import(s)", path, len(parsed.rules), len(parsed.imports)
    )
    return parsed


def parse_text(content: str, path: Path) -> ParsedFile:
    """Parse rule file ``content``; ``path`` is used for origins and errors."""
    result = ParsedFile(path=Path(path))
    loader = _RuleLoader(content)
    try:
        root = loader.get_single_node()
        if root is None:
            return result
        if not isinstance(root, yaml.MappingNode):
            raise ParseError(path, "a rule file must be a mapping of rule names", line=root.start_mark.line + 1)

        entries: List[Tuple[Any, Any, int]] = []
        seen: Dict[Any, int] = {}
        for key_node, value_node in root.value:
            line = key_node.start_mark.line + 1
            if key_node.tag == _MERGE_TAG:
                raise ParseError(path, "merge keys ('<<') are not allowed between rules", line=line)
            key = loader.construct_object(key_node, deep=True)
            value = loader.construct_object(value_node, deep=True)
            if isinstance(key, str) and key in seen:
                raise ParseError(path, f"duplicate key '{key}' (first defined on line {seen[key]})", line=line)
            if isinstance(key, str):
                seen[key] = line
            entries.append((key, value, line))
    except yaml.MarkedYAMLError as exc:
        mark = exc.problem_mark or exc.context_mark
        line = mark.line + 1 if mark is not None else None
        raise ParseError(path, _yaml_message(exc), line=line) from exc
    except yaml.YAMLError as exc:
        raise ParseError(path, str(exc)) from exc
    finally:
        loader.dispose()

    for key, value, line in entries:
        if key == IMPORT_KEYWORD:
            result.imports.extend(parse_import_value(value, declared_in=str(path), line=line, path=path))
            continue
        if not isinstance(key, str):
            raise ParseError(path, f"rule name must be a string, got {key!r}", line=line)
        name = normalize_name(key)
        if not name:
            raise ParseError(path, "rule name must not be empty", line=line)
        _flatten(name, value, line, path, result)

    return result


def _flatten(name: str, value: Any, line: int, path: Path, result: ParsedFile) -> None:
    """Append ``name`` and its ``avec`` children (depth-first) to ``result``."""
    definition = copy.deepcopy(value)
    children: Dict[Any, Any] = {}
    if isinstance(definition, dict):
        if IMPORT_KEYWORD in definition:
            raw = definition.pop(IMPORT_KEYWORD)
            result.imports.extend(parse_import_value(raw, declared_in=str(path), line=line, path=path))
        if NESTED_RULES_KEYWORD in definition:
            nested = definition.pop(NESTED_RULES_KEYWORD)
            if nested is not None and not isinstance(nested, dict):
                raise ParseError(
                    path,
                    f"'{NESTED_RULES_KEYWORD}' of rule '{name}' must be a mapping of rules",
                    line=line,
                )
            children = nested or {}

    result.rules.append(ParsedRule(name=name, definition=definition, line=line))

    for child_key, child_value in children.items():
        if not isinstance(child_key, str) or not normalize_name(child_key):
            raise ParseError(path, f"invalid nested rule name {child_key!r} under '{name}'", line=line)
        _flatten(join_name(name, normalize_name(child_key)), child_value, line, path, result)


def parse_import_value(
    value: Any,
    *,
    declared_in: str,
    line: Optional[int] = None,
    path: Optional[Path] = None,
) -> List[ImportDirective]:
    """Parse the value of an ``importer!`` key (one directive or a list).

    Raises:
        ParseError: when a directive does not match the import schema
    """
    raw_directives = value if isinstance(value, list) else [value]
    validator = jsonschema.Draft202012Validator(read_schema("import-directive"))
    directives: List[ImportDirective] = []
    for raw in raw_directives:
        errors = sorted(validator.iter_errors(raw), key=lambda e: list(e.path))
        if errors:
            err = errors[0]
            where = "/".join(str(p) for p in err.path) or "<root>"
            raise ParseError(
                path or declared_in,
                f"invalid '{IMPORT_KEYWORD}' directive at {where}: {err.message}",
                line=line,
            )
        directives.append(_build_directive(raw, declared_in=declared_in, line=line))
    return directives


def _build_directive(raw: Dict[str, Any], *, declared_in: str, line: Optional[int]) -> ImportDirective:
    source = raw["depuis"]
    requested: List[RequestedRule] = []
    for item in raw["les règles"]:
        if isinstance(item, str):
            requested.append(RequestedRule(name=normalize_name(item)))
        else:
            (name, overrides), = item.items()
            requested.append(RequestedRule(name=normalize_name(name), overrides=dict(overrides or {})))
    return ImportDirective(
        package=str(source["nom"]),
        rules=tuple(requested),
        source=source.get("source"),
        url=source.get("url"),
        declared_in=declared_in,
        line=line,
    )


def _yaml_message(exc: yaml.MarkedYAMLError) -> str:
    parts = [p for p in (exc.context, exc.problem) if p]
    return "; ".join(parts) or str(exc)


__all__ = [
    "ParsedRule",
    "ParsedFile",
    "parse",
    "parse_file",
    "parse_text",
    "parse_import_value",
]
