from __future__ import annotations

from rulebook.core.utils.merge import deep_merge, merge_arrays


def test_deep_merge_recurses_into_mappings() -> None:
    base = {"packages": {"max_workers": 4, "search_paths": ["node_modules"]}}
    override = {"packages": {"max_workers": 8}}

    assert deep_merge(base, override) == {"packages": {"max_workers": 8, "search_paths": ["node_modules"]}}
    assert base["packages"]["max_workers"] == 4


def test_list_without_marker_replaces() -> None:
    assert merge_arrays(["a", "b"], ["c"]) == ["c"]


def test_list_markers() -> None:
    assert merge_arrays(["a"], ["+", "b"]) == ["a", "b"]
    assert merge_arrays(["a"], ["=", "b"]) == ["b"]
    assert merge_arrays(["a", "b", "c"], ["-", "b"]) == ["a", "c"]


def test_empty_override_list_clears() -> None:
    assert deep_merge({"ignore": ["x"]}, {"ignore": []}) == {"ignore": []}
