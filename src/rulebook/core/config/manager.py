"""
Rulebook configuration management (YAML layers + environment overrides).
"""
from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

import jsonschema

from rulebook.core.exceptions import ConfigError
from rulebook.core.utils.io import iter_yaml_files, read_yaml
from rulebook.core.utils.merge import deep_merge as _deep_merge
from rulebook.core.utils.paths import get_project_config_dir, resolve_project_root
from rulebook.data import get_data_path, read_schema

logger = logging.getLogger(__name__)

ENV_PREFIX = "RULEBOOK_"
# Environment keys that configure the loader itself rather than the config tree.
_RESERVED_ENV_KEYS = frozenset({"PROJECT_ROOT"})


class ConfigManager:
    """Load, merge, and validate Rulebook configuration.

    Configuration sources (highest to lowest priority):
    1. Environment variables: RULEBOOK_<section>__<key>
    2. Project config: <repo-root>/.rulebook/config/*.yaml (alphabetical order)
    3. Bundled defaults: rulebook.data/config/*.yaml (alphabetical order)
    """

    ARRAY_APPEND_MARKER = object()

    def __init__(self, repo_root: Optional[Path] = None) -> None:
        self.repo_root = Path(repo_root) if repo_root else resolve_project_root()
        self.core_config_dir = get_data_path("config")
        self.project_config_dir = get_project_config_dir(self.repo_root) / "config"

    def deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge dictionaries. Delegates to shared implementation."""
        return _deep_merge(base, override)

    def _load_directory(self, directory: Path, cfg: Dict[str, Any]) -> Dict[str, Any]:
        for path in iter_yaml_files(directory):
            try:
                # Fail closed: configuration must never silently ignore invalid YAML.
                layer = read_yaml(path, default={}, raise_on_error=True) or {}
            except Exception as exc:
                raise ConfigError(f"Invalid YAML in {path}: {exc}", context={"path": str(path)}) from exc
            if not isinstance(layer, dict):
                raise ConfigError(f"Config file {path} must contain a mapping", context={"path": str(path)})
            logger.debug("Merging config layer %s", path)
            cfg = self.deep_merge(cfg, layer)
        return cfg

    # ---------- environment overrides ----------

    def _as_bool(self, v: str) -> Optional[bool]:
        low = v.strip().lower()
        if low in {"true", "false"}:
            return low == "true"
        return None

    def _as_int(self, v: str) -> Optional[int]:
        if re.fullmatch(r"[-+]?\d+", v.strip() or " "):
            return int(v)
        return None

    def _as_float(self, v: str) -> Optional[float]:
        s = v.strip()
        if re.fullmatch(r"[-+]?\d*\.\d+", s) or re.fullmatch(r"[-+]?\d+\.\d*", s):
            return float(s)
        return None

    def _as_json(self, v: str) -> Optional[Any]:
        s = v.strip()
        if (s.startswith("{") and s.endswith("}")) or (s.startswith("[") and s.endswith("]")):
            try:
                return json.loads(s)
            except ValueError:
                return None
        return None

    def _coerce_type(self, value: str) -> Any:
        for caster in (self._as_bool, self._as_int, self._as_float, self._as_json):
            result = caster(value)
            if result is not None:
                return result
        return value.strip()

    def _parse_env_key(self, raw: str) -> List[Union[str, object]]:
        processed: List[Union[str, object]] = []
        for seg in raw.split("__"):
            if seg == "":
                raise ConfigError(f"Malformed {ENV_PREFIX}* key: empty segment in '{raw}'")
            if seg.upper() == "APPEND":
                processed.append(self.ARRAY_APPEND_MARKER)
            else:
                processed.append(seg.lower())
        return processed

    def _iter_env_overrides(self) -> Iterator[Tuple[List[Union[str, object]], Any]]:
        for key in sorted(os.environ.keys()):
            if not key.startswith(ENV_PREFIX):
                continue
            raw = key[len(ENV_PREFIX) :]
            if not raw or raw.upper() in _RESERVED_ENV_KEYS:
                continue
            yield self._parse_env_key(raw), self._coerce_type(os.environ[key])

    def _set_nested(self, root: Dict[str, Any], path: List[Union[str, object]], value: Any) -> None:
        cur: Any = root
        for i, part in enumerate(path):
            is_last = i == len(path) - 1
            if part is self.ARRAY_APPEND_MARKER:
                if not is_last or not isinstance(cur, list):
                    raise ConfigError("APPEND may only target an existing list at the leaf")
                cur.append(value)
                return
            if not isinstance(cur, dict):
                raise ConfigError(f"Path {'.'.join(map(str, path))} traverses a non-mapping value")
            if is_last:
                cur[part] = value
                return
            nxt = path[i + 1]
            if part not in cur:
                cur[part] = [] if nxt is self.ARRAY_APPEND_MARKER else {}
            cur = cur[part]

    def apply_env_overrides(self, cfg: Dict[str, Any]) -> None:
        for path, typed_value in self._iter_env_overrides():
            self._set_nested(cfg, path, typed_value)

    # ---------- loading ----------

    def validate_schema(self, config: Dict[str, Any]) -> None:
        validator = jsonschema.Draft202012Validator(read_schema("config"))
        errors = sorted(validator.iter_errors(config), key=lambda e: list(e.path))
        if errors:
            details = [f"{'.'.join(str(p) for p in e.path) or '<root>'}: {e.message}" for e in errors]
            raise ConfigError(
                "Invalid configuration:\n  " + "\n  ".join(details),
                context={"errors": details},
            )

    def load_config(self, validate: bool = True) -> Dict[str, Any]:
        """Load and merge configuration from every layer.

        Args:
            validate: If True, validate the merged result against the bundled schema

        Returns:
            Merged configuration dictionary
        """
        cfg: Dict[str, Any] = {}
        cfg = self._load_directory(self.core_config_dir, cfg)
        cfg = self._load_directory(self.project_config_dir, cfg)
        self.apply_env_overrides(cfg)
        if validate:
            self.validate_schema(cfg)
        return cfg


__all__ = ["ConfigManager", "ENV_PREFIX"]
