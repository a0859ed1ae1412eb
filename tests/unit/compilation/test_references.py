from __future__ import annotations

import pytest

from rulebook.core.compilation.references import (
    expression_references,
    extract_references,
    normalize_name,
    resolve_reference,
    rule_dependencies,
)


@pytest.mark.parametrize(
    "expression, expected",
    [
        ("a + b * 2", {"a", "b"}),
        ("salaire . brut * 78%", {"salaire . brut"}),
        ("auto-entrepreneur", {"auto-entrepreneur"}),
        ("(a + b) / c", {"a", "b", "c"}),
        ("prix >= 10 €/mois", {"prix"}),
        ("statut = 'cadre'", {"statut"}),
        ("-a", {"a"}),
        ("oui", set()),
        ("3000 €/mois", set()),
    ],
)
def test_expression_references(expression: str, expected: set) -> None:
    assert expression_references(expression) == expected


def test_metadata_attributes_are_not_references() -> None:
    definition = {
        "titre": "Salaire net",
        "description": "a + b",
        "unité": "€/mois",
        "valeur": "brut - cotisations",
    }

    assert extract_references(definition) == {"brut", "cotisations"}


def test_mechanisms_are_walked_recursively() -> None:
    definition = {
        "somme": ["a", {"produit": {"assiette": "b", "taux": "5%"}}],
        "plafond": "c",
    }

    assert extract_references(definition) == {"a", "b", "c"}


def test_text_contributes_only_interpolations() -> None:
    definition = {"texte": "Vous gagnez {{ salaire . net }} soit {{ salaire . net * 12 }} par an"}

    assert extract_references(definition) == {"salaire . net"}


def test_context_keys_are_references() -> None:
    definition = {"valeur": "impôt", "contexte": {"revenu": "salaire"}}

    assert extract_references(definition) == {"impôt", "revenu", "salaire"}


def test_recalcul_rule_and_context_are_references() -> None:
    definition = {"recalcul": {"règle": "impôt", "avec": {"revenu": 1000}}}

    assert extract_references(definition) == {"impôt", "revenu"}


def test_scalars_and_empty_definitions_have_no_references() -> None:
    assert extract_references(None) == set()
    assert extract_references(12) == set()
    assert extract_references(True) == set()


def test_normalize_name() -> None:
    assert normalize_name("  a   .  b ") == "a . b"


def test_resolution_prefers_the_closest_namespace() -> None:
    known = {"a . b . c", "a . c", "c"}

    assert resolve_reference("c", "a . b", known) == "a . b . c"
    assert resolve_reference("c", "a . b", known - {"a . b . c"}) == "a . c"
    assert resolve_reference("c", "a . b", {"c"}) == "c"
    assert resolve_reference("c", "a . b", set()) is None


def test_qualified_references_resolve_from_the_root() -> None:
    assert resolve_reference("x . y", "a", {"x . y"}) == "x . y"


def test_rule_dependencies_include_parent_namespace() -> None:
    deps = rule_dependencies("a . b", "c + ghost", {"a", "a . b", "a . c"})

    assert deps.resolved == {"a", "a . c"}
    assert deps.unresolved == {"ghost"}


def test_self_reference_is_not_a_dependency() -> None:
    deps = rule_dependencies("a", {"valeur": "a + 1"}, {"a"})

    assert deps.resolved == set()
    assert deps.unresolved == set()


def test_possibilities_are_child_rule_references() -> None:
    definition = {
        "une possibilité": {
            "choix obligatoire": "oui",
            "possibilités": ["salarié", "auto-entrepreneur"],
        }
    }
    known = {"statut", "statut . salarié", "statut . auto-entrepreneur"}

    assert extract_references(definition) == {"salarié", "auto-entrepreneur"}
    deps = rule_dependencies("statut", definition, known)
    assert deps.resolved == {"statut . salarié", "statut . auto-entrepreneur"}
    assert deps.unresolved == set()
