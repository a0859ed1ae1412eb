"""Base class for section-scoped configuration accessors."""
from __future__ import annotations

from abc import ABC, abstractmethod
from functools import cached_property
from pathlib import Path
from typing import Any, Dict, Optional

from .manager import ConfigManager


class BaseDomainConfig(ABC):
    """Typed accessor over one top-level section of the merged configuration.

    Usage:
        class OutputConfig(BaseDomainConfig):
            def _config_section(self) -> str:
                return "output"

            @cached_property
            def indent(self) -> int:
                return int(self.section.get("indent", 2))

    A preloaded ``config`` dict may be passed in; otherwise the layered
    configuration of ``repo_root`` is loaded once per instance.
    """

    def __init__(self, repo_root: Optional[Path] = None, *, config: Optional[Dict[str, Any]] = None) -> None:
        self._manager = ConfigManager(repo_root)
        self._config = config if config is not None else self._manager.load_config()

    @property
    def repo_root(self) -> Path:
        return self._manager.repo_root

    @abstractmethod
    def _config_section(self) -> str:
        """Return the top-level config key for this domain."""
        ...

    @cached_property
    def section(self) -> Dict[str, Any]:
        return self._config.get(self._config_section(), {}) or {}


__all__ = ["BaseDomainConfig"]
