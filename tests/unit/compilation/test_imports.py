from __future__ import annotations

import copy
from pathlib import Path
from typing import Any, Dict

import pytest

from helpers.io_utils import write_package
from rulebook.core.compilation.imports import ImportResolver, apply_overrides
from rulebook.core.compilation.models import ImportDirective, RequestedRule
from rulebook.core.compilation.registry import PackageCache, PackageRegistry
from rulebook.core.exceptions import PackageNotFoundError, UnknownImportedRuleError


def _cache(root: Path) -> PackageCache:
    return PackageCache(PackageRegistry([root / "node_modules"]), timeout=5)


def _directive(package: str, *rules: Any) -> ImportDirective:
    requested = []
    for rule in rules:
        if isinstance(rule, tuple):
            requested.append(RequestedRule(name=rule[0], overrides=rule[1]))
        else:
            requested.append(RequestedRule(name=rule))
    return ImportDirective(package=package, rules=tuple(requested), declared_in="test")


def _by_name(rules) -> Dict[str, Any]:
    return {r.name: r.definition for r in rules}


def test_requested_rule_pulls_its_references(tmp_path: Path) -> None:
    write_package(tmp_path, "P", {"x": "y * 2", "y": 10, "z": 3})

    rules = ImportResolver(_cache(tmp_path)).expand(_directive("P", "x"))

    assert _by_name(rules) == {"x": "y * 2", "y": 10}
    assert {str(r.origin) for r in rules} == {"package 'P' (imported by test)"}


def test_closure_follows_namespaces_and_parents(tmp_path: Path) -> None:
    write_package(
        tmp_path,
        "P",
        {
            "a": None,
            "a . b": "c + d . e",
            "a . c": 1,
            "d": None,
            "d . e": 2,
            "unrelated": 3,
        },
    )

    rules = ImportResolver(_cache(tmp_path)).expand(_directive("P", "a . b"))

    assert set(_by_name(rules)) == {"a . b", "a", "a . c", "d . e", "d"}


def test_cycles_terminate(tmp_path: Path) -> None:
    write_package(tmp_path, "P", {"x": "y + 1", "y": "x - 1"})

    rules = ImportResolver(_cache(tmp_path)).expand(_directive("P", "x"))

    assert sorted(_by_name(rules)) == ["x", "y"]


def test_overrides_apply_only_to_requested_rules(tmp_path: Path) -> None:
    write_package(
        tmp_path,
        "P",
        {
            "x": {"titre": "X", "valeur": "y"},
            "y": {"titre": "Y", "valeur": 1},
        },
    )
    cache = _cache(tmp_path)

    rules = ImportResolver(cache).expand(_directive("P", ("x", {"titre": "Custom"})))

    assert _by_name(rules) == {
        "x": {"titre": "Custom", "valeur": "y"},
        "y": {"titre": "Y", "valeur": 1},
    }
    assert cache.get("P").rules["x"]["titre"] == "X"


def test_scalar_definition_is_normalized_before_override() -> None:
    assert apply_overrides(5, {"titre": "Cinq"}) == {"valeur": 5, "titre": "Cinq"}
    assert apply_overrides(None, {"titre": "Vide"}) == {"titre": "Vide"}
    assert apply_overrides("a + 1", {}) == "a + 1"


def test_expansion_is_idempotent(tmp_path: Path) -> None:
    write_package(tmp_path, "P", {"x": {"valeur": "y"}, "y": {"valeur": 1}})
    cache = _cache(tmp_path)
    directive = _directive("P", ("x", {"titre": "T"}))
    before = copy.deepcopy(cache.get("P").rules)

    first = ImportResolver(cache).expand(directive)
    second = ImportResolver(cache).expand(directive)

    assert _by_name(first) == _by_name(second)
    assert cache.get("P").rules == before


def test_wildcard_imports_a_namespace(tmp_path: Path) -> None:
    write_package(tmp_path, "P", {"a": None, "a . b": 1, "a . c": 2, "ab": 3, "d": 4})

    rules = ImportResolver(_cache(tmp_path)).expand(_directive("P", ("a . *", {"privé": True})))

    assert _by_name(rules) == {
        "a": {"privé": True},
        "a . b": {"valeur": 1, "privé": True},
        "a . c": {"valeur": 2, "privé": True},
    }


def test_wildcard_matching_nothing_is_an_error(tmp_path: Path) -> None:
    write_package(tmp_path, "P", {"a": 1})

    with pytest.raises(UnknownImportedRuleError) as exc:
        ImportResolver(_cache(tmp_path)).expand(_directive("P", "b . *"))

    assert exc.value.rule == "b . *"


def test_unknown_requested_rule(tmp_path: Path) -> None:
    write_package(tmp_path, "P", {"x": 1})

    with pytest.raises(UnknownImportedRuleError) as exc:
        ImportResolver(_cache(tmp_path)).expand(_directive("P", "nope"))

    assert (exc.value.package, exc.value.rule, exc.value.required_by) == ("P", "nope", None)


def test_dangling_reference_inside_package(tmp_path: Path) -> None:
    write_package(tmp_path, "P", {"x": "ghost + 1"})

    with pytest.raises(UnknownImportedRuleError) as exc:
        ImportResolver(_cache(tmp_path)).expand(_directive("P", "x"))

    assert exc.value.rule == "ghost"
    assert exc.value.required_by == "x"
    assert "referenced by 'x'" in str(exc.value)


def test_missing_package(tmp_path: Path) -> None:
    with pytest.raises(PackageNotFoundError):
        ImportResolver(_cache(tmp_path)).expand(_directive("absent", "x"))


def test_nested_imports_are_expanded(tmp_path: Path) -> None:
    write_package(
        tmp_path,
        "P1",
        {
            "x": {
                "valeur": 1,
                "importer!": {"depuis": {"nom": "P2"}, "les règles": ["q"]},
            },
        },
    )
    write_package(tmp_path, "P2", {"q": 2})

    rules = ImportResolver(_cache(tmp_path)).expand(_directive("P1", "x"))

    assert _by_name(rules) == {"x": {"valeur": 1}, "q": 2}
    assert {r.name: str(r.origin) for r in rules} == {
        "x": "package 'P1' (imported by test)",
        "q": "package 'P2' (imported by package 'P1')",
    }


def test_rule_can_reference_names_it_imports(tmp_path: Path) -> None:
    write_package(
        tmp_path,
        "P1",
        {
            "x": {
                "valeur": "q + 1",
                "importer!": {"depuis": {"nom": "P2"}, "les règles": ["q"]},
            },
        },
    )
    write_package(tmp_path, "P2", {"q": 2, "unused": 3})

    rules = ImportResolver(_cache(tmp_path)).expand(_directive("P1", "x"))

    assert _by_name(rules) == {"x": {"valeur": "q + 1"}, "q": 2}
    assert {r.name: str(r.origin) for r in rules} == {
        "x": "package 'P1' (imported by test)",
        "q": "package 'P2' (imported by package 'P1')",
    }


def test_nested_import_of_unknown_rule_is_an_error(tmp_path: Path) -> None:
    write_package(
        tmp_path,
        "P1",
        {"x": {"valeur": "q + 1", "importer!": {"depuis": {"nom": "P2"}, "les règles": ["r"]}}},
    )
    write_package(tmp_path, "P2", {"q": 2})

    with pytest.raises(UnknownImportedRuleError):
        ImportResolver(_cache(tmp_path)).expand(_directive("P1", "x"))


def test_nested_import_cycles_terminate(tmp_path: Path) -> None:
    write_package(
        tmp_path,
        "P1",
        {"x": {"valeur": 1, "importer!": {"depuis": {"nom": "P2"}, "les règles": ["q"]}}},
    )
    write_package(
        tmp_path,
        "P2",
        {"q": {"valeur": 2, "importer!": {"depuis": {"nom": "P1"}, "les règles": ["x"]}}},
    )

    rules = ImportResolver(_cache(tmp_path)).expand(_directive("P1", "x"))

    assert [r.name for r in rules] == ["x", "q"]


def test_repeated_directive_is_expanded_once_per_resolver(tmp_path: Path) -> None:
    write_package(tmp_path, "P", {"x": 1})
    resolver = ImportResolver(_cache(tmp_path))

    assert len(resolver.expand(_directive("P", "x"))) == 1
    assert resolver.expand(_directive("P", "x")) == []
