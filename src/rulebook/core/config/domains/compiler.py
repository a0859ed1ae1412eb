"""Configuration accessors for the model compiler."""
from __future__ import annotations

from functools import cached_property
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..base import BaseDomainConfig
from ..manager import ConfigManager


class SourcesConfig(BaseDomainConfig):
    """Default rule source patterns and ignore globs."""

    def _config_section(self) -> str:
        return "sources"

    @cached_property
    def patterns(self) -> List[str]:
        return [str(p) for p in self.section.get("patterns") or []]

    @cached_property
    def ignore(self) -> List[str]:
        return [str(p) for p in self.section.get("ignore") or []]


class PackagesConfig(BaseDomainConfig):
    """Where imported packages are looked up and how long a lookup may take."""

    def _config_section(self) -> str:
        return "packages"

    @cached_property
    def search_paths(self) -> List[Path]:
        """Package search directories, relative entries anchored at the repo root."""
        raw = self.section.get("search_paths") or ["node_modules"]
        return [p if p.is_absolute() else self.repo_root / p for p in (Path(str(r)) for r in raw)]

    @cached_property
    def resolve_timeout_seconds(self) -> float:
        return float(self.section.get("resolve_timeout_seconds", 30))

    @cached_property
    def max_workers(self) -> int:
        return int(self.section.get("max_workers", 4))


class OutputConfig(BaseDomainConfig):
    """Location and formatting of the compiled model."""

    def _config_section(self) -> str:
        return "output"

    @cached_property
    def path(self) -> Path:
        p = Path(str(self.section.get("path") or "model.json"))
        return p if p.is_absolute() else self.repo_root / p

    @cached_property
    def indent(self) -> Optional[int]:
        indent = self.section.get("indent", 2)
        return None if indent is None else int(indent)


class LoggingConfig(BaseDomainConfig):
    def _config_section(self) -> str:
        return "logging"

    @cached_property
    def level(self) -> str:
        return str(self.section.get("level") or "WARNING").upper()

    @cached_property
    def path(self) -> Optional[Path]:
        raw = self.section.get("path")
        if not raw:
            return None
        p = Path(str(raw))
        return p if p.is_absolute() else self.repo_root / p


class CompilerConfig:
    """All compiler sections over one merged configuration.

    The layered config is loaded once and shared by the section accessors.
    """

    def __init__(self, repo_root: Optional[Path] = None, *, config: Optional[Dict[str, Any]] = None) -> None:
        manager = ConfigManager(repo_root)
        self.repo_root = manager.repo_root
        self.data = config if config is not None else manager.load_config()

    @cached_property
    def sources(self) -> SourcesConfig:
        return SourcesConfig(self.repo_root, config=self.data)

    @cached_property
    def packages(self) -> PackagesConfig:
        return PackagesConfig(self.repo_root, config=self.data)

    @cached_property
    def output(self) -> OutputConfig:
        return OutputConfig(self.repo_root, config=self.data)

    @cached_property
    def logging(self) -> LoggingConfig:
        return LoggingConfig(self.repo_root, config=self.data)


__all__ = ["CompilerConfig", "SourcesConfig", "PackagesConfig", "OutputConfig", "LoggingConfig"]
