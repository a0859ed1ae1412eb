"""Package registry and per-compile package cache.

Imported packages are already installed (by an external package manager)
into one of the search paths; the registry only locates and reads their
compiled model:

- ``<search path>/<package>/<source>`` when the directive gives ``source``
- ``<search path>/<package>/<last segment of package>.model.json`` otherwise
"""
from __future__ import annotations

import concurrent.futures
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import jsonschema

from rulebook.core.exceptions import InvalidPackageModelError, PackageNotFoundError
from rulebook.core.utils.io import read_json
from rulebook.data import read_schema

from .models import PackageModel

logger = logging.getLogger(__name__)

MODEL_SUFFIX = ".model.json"

PackageKey = Tuple[str, Optional[str]]


def default_model_filename(package: str) -> str:
    """``@scope/pkg`` and ``pkg`` both publish ``pkg.model.json``."""
    return package.rstrip("/").rsplit("/", 1)[-1] + MODEL_SUFFIX


class PackageRegistry:
    """Resolve package names to their compiled rule tables."""

    def __init__(self, search_paths: Sequence[Path]) -> None:
        self.search_paths: List[Path] = [Path(p) for p in search_paths]

    def candidates(self, name: str, source: Optional[str] = None) -> List[Path]:
        filename = source or default_model_filename(name)
        return [root / name / filename for root in self.search_paths]

    def resolve(self, name: str, source: Optional[str] = None) -> PackageModel:
        """Return the compiled model of package ``name``.

        Raises:
            PackageNotFoundError: if no search path holds the model file
            InvalidPackageModelError: if the model file is not a rule table
        """
        candidates = self.candidates(name, source)
        for path in candidates:
            if path.is_file():
                logger.debug("Package %s resolved to %s", name, path)
                return self._load(name, path)
        raise PackageNotFoundError(name, searched=candidates)

    def _load(self, name: str, path: Path) -> PackageModel:
        try:
            data = read_json(path)
        except (OSError, ValueError) as exc:
            raise InvalidPackageModelError(name, path, str(exc)) from exc

        validator = jsonschema.Draft202012Validator(read_schema("package-model"))
        error = jsonschema.exceptions.best_match(validator.iter_errors(data))
        if error is not None:
            raise InvalidPackageModelError(name, path, error.message)
        return PackageModel(name=name, path=path, rules=dict(data))


class PackageCache:
    """Memo of resolved packages, owned by one compile invocation.

    ``prefetch`` resolves distinct packages concurrently; everything else
    (closure computation, merging) reads the cache from the calling thread.
    """

    def __init__(
        self,
        registry: PackageRegistry,
        *,
        timeout: Optional[float] = None,
        max_workers: int = 4,
    ) -> None:
        self.registry = registry
        self.timeout = timeout
        self.max_workers = max(1, int(max_workers))
        self._models: Dict[PackageKey, PackageModel] = {}

    def __contains__(self, key: PackageKey) -> bool:
        return key in self._models

    def __len__(self) -> int:
        return len(self._models)

    def get(self, name: str, source: Optional[str] = None) -> PackageModel:
        key = (name, source)
        if key not in self._models:
            self.prefetch([key])
        return self._models[key]

    def prefetch(self, keys: Iterable[PackageKey]) -> None:
        """Resolve every not-yet-cached package in ``keys``.

        Lookups run in a thread pool; results are stored in request order.
        The first failure (in request order) is raised once every lookup
        has finished or timed out.
        """
        pending: List[PackageKey] = []
        for key in keys:
            if key not in self._models and key not in pending:
                pending.append(key)
        if not pending:
            return

        logger.debug("Resolving %d package(s): %s", len(pending), ", ".join(k[0] for k in pending))
        pool = concurrent.futures.ThreadPoolExecutor(
            max_workers=min(self.max_workers, len(pending)),
            thread_name_prefix="rulebook-package",
        )
        results: List[Tuple[PackageKey, Optional[PackageModel], Optional[PackageNotFoundError]]] = []
        try:
            futures = [(key, pool.submit(self.registry.resolve, *key)) for key in pending]
            for key, future in futures:
                try:
                    results.append((key, future.result(timeout=self.timeout), None))
                except concurrent.futures.TimeoutError:
                    timeout_error = PackageNotFoundError(
                        key[0],
                        reason=f"Timed out after {self.timeout}s resolving package '{key[0]}'",
                    )
                    results.append((key, None, timeout_error))
                except PackageNotFoundError as exc:
                    results.append((key, None, exc))
        finally:
            # A lookup stuck past its timeout must not hold up the compile.
            pool.shutdown(wait=False, cancel_futures=True)

        for key, model, error in results:
            if error is not None:
                raise error
            self._models[key] = model  # type: ignore[assignment]


__all__ = ["MODEL_SUFFIX", "default_model_filename", "PackageRegistry", "PackageCache"]
