"""Section-scoped configuration accessors."""
from __future__ import annotations

from .compiler import CompilerConfig, LoggingConfig, OutputConfig, PackagesConfig, SourcesConfig

__all__ = ["CompilerConfig", "LoggingConfig", "OutputConfig", "PackagesConfig", "SourcesConfig"]
