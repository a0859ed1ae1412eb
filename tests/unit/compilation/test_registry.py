from __future__ import annotations

import threading
from pathlib import Path
from typing import List, Optional

import pytest

from helpers.io_utils import write_json, write_package
from rulebook.core.compilation.models import PackageModel
from rulebook.core.compilation.registry import PackageCache, PackageRegistry, default_model_filename
from rulebook.core.exceptions import InvalidPackageModelError, PackageNotFoundError


class RecordingRegistry(PackageRegistry):
    """Registry returning canned models and recording every lookup."""

    def __init__(self, models: dict, *, blocker: Optional[threading.Event] = None) -> None:
        super().__init__([])
        self.models = models
        self.blocker = blocker
        self.calls: List[str] = []
        self._lock = threading.Lock()

    def resolve(self, name: str, source: Optional[str] = None) -> PackageModel:
        with self._lock:
            self.calls.append(name)
        if self.blocker is not None and name == "slow":
            self.blocker.wait(5)
        if name not in self.models:
            raise PackageNotFoundError(name)
        return PackageModel(name=name, path=Path(name), rules=self.models[name])


def test_default_model_filename_uses_last_segment() -> None:
    assert default_model_filename("impots") == "impots.model.json"
    assert default_model_filename("@scope/impots") == "impots.model.json"


def test_resolve_reads_default_model_file(tmp_path: Path) -> None:
    write_package(tmp_path, "@scope/impots", {"taux": "10%"})

    model = PackageRegistry([tmp_path / "node_modules"]).resolve("@scope/impots")

    assert model.name == "@scope/impots"
    assert model.rules == {"taux": "10%"}
    assert model.path == tmp_path / "node_modules" / "@scope" / "impots" / "impots.model.json"


def test_resolve_uses_explicit_source(tmp_path: Path) -> None:
    write_package(tmp_path, "impots", {"taux": 1}, source="dist/rules.json")

    model = PackageRegistry([tmp_path / "node_modules"]).resolve("impots", "dist/rules.json")

    assert model.rules == {"taux": 1}


def test_first_search_path_wins(tmp_path: Path) -> None:
    write_package(tmp_path, "impots", {"taux": 1}, search_path="vendor")
    write_package(tmp_path, "impots", {"taux": 2})

    registry = PackageRegistry([tmp_path / "vendor", tmp_path / "node_modules"])

    assert registry.resolve("impots").rules == {"taux": 1}


def test_missing_package_lists_searched_paths(tmp_path: Path) -> None:
    registry = PackageRegistry([tmp_path / "node_modules"])

    with pytest.raises(PackageNotFoundError) as exc:
        registry.resolve("absent")

    assert exc.value.package == "absent"
    assert exc.value.searched == [str(tmp_path / "node_modules" / "absent" / "absent.model.json")]


@pytest.mark.parametrize("content", ["{not json", "[1, 2]", '{"": 1}'])
def test_invalid_model_is_rejected(tmp_path: Path, content: str) -> None:
    path = tmp_path / "node_modules" / "broken" / "broken.model.json"
    path.parent.mkdir(parents=True)
    path.write_text(content, encoding="utf-8")

    with pytest.raises(InvalidPackageModelError) as exc:
        PackageRegistry([tmp_path / "node_modules"]).resolve("broken")

    assert isinstance(exc.value, PackageNotFoundError)
    assert exc.value.path == str(path)


def test_cache_resolves_each_package_once(tmp_path: Path) -> None:
    registry = RecordingRegistry({"a": {"x": 1}})
    cache = PackageCache(registry)

    first = cache.get("a")
    second = cache.get("a")

    assert first is second
    assert registry.calls == ["a"]
    assert ("a", None) in cache


def test_prefetch_resolves_distinct_packages() -> None:
    registry = RecordingRegistry({"a": {}, "b": {}})
    cache = PackageCache(registry, max_workers=2)

    cache.prefetch([("a", None), ("b", None), ("a", None)])

    assert sorted(registry.calls) == ["a", "b"]
    assert len(cache) == 2


def test_prefetch_raises_first_failure_in_request_order() -> None:
    registry = RecordingRegistry({"a": {}})
    cache = PackageCache(registry)

    with pytest.raises(PackageNotFoundError) as exc:
        cache.prefetch([("missing-1", None), ("a", None), ("missing-2", None)])

    assert exc.value.package == "missing-1"
    assert len(cache) == 0


def test_prefetch_timeout_is_a_package_error() -> None:
    release = threading.Event()
    registry = RecordingRegistry({"slow": {}}, blocker=release)
    cache = PackageCache(registry, timeout=0.05)

    try:
        with pytest.raises(PackageNotFoundError, match="Timed out"):
            cache.get("slow")
    finally:
        release.set()

    assert ("slow", None) not in cache


def test_real_registry_through_cache(tmp_path: Path) -> None:
    write_json(tmp_path / "node_modules" / "p" / "p.model.json", {"x": 1})
    cache = PackageCache(PackageRegistry([tmp_path / "node_modules"]), timeout=5)

    assert cache.get("p").rules == {"x": 1}
