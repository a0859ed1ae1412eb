"""Rulebook configuration: layered YAML defaults, project config and env overrides."""
from __future__ import annotations

from .base import BaseDomainConfig
from .domains import CompilerConfig, LoggingConfig, OutputConfig, PackagesConfig, SourcesConfig
from .manager import ENV_PREFIX, ConfigManager

__all__ = [
    "BaseDomainConfig",
    "CompilerConfig",
    "ConfigManager",
    "ENV_PREFIX",
    "LoggingConfig",
    "OutputConfig",
    "PackagesConfig",
    "SourcesConfig",
]
