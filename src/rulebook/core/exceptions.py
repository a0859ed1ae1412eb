from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Mapping, Sequence, Tuple


class RulebookError(Exception):
    """Base exception for Rulebook."""

    context: Dict[str, Any]

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        if context is not None:
            # Store a shallow copy to avoid accidental mutation.
            self.context = dict(context)
        else:
            self.context = {}

    def to_json_error(self) -> Dict[str, Any]:
        """Return a JSON-serializable error payload."""
        return {
            "message": str(self),
            "code": self.__class__.__name__,
            "context": self.context,
        }


class ConfigError(RulebookError, ValueError):
    """Raised when the merged configuration is invalid."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        RulebookError.__init__(self, message, context=context)
        ValueError.__init__(self, message)


class CompileError(RulebookError):
    """Base class for errors that abort a compile invocation."""


class NoMatchError(CompileError):
    """Raised when the source patterns match no rule file."""

    def __init__(self, patterns: Sequence[str], ignore: Sequence[str] = ()) -> None:
        self.patterns = list(patterns)
        self.ignore = list(ignore)
        message = f"No rule file matches {', '.join(self.patterns) or '<no pattern>'}"
        if self.ignore:
            message += f" (ignoring {', '.join(self.ignore)})"
        super().__init__(message, context={"patterns": self.patterns, "ignore": self.ignore})


class ParseError(CompileError):
    """Raised when a rule file is malformed."""

    def __init__(self, file: Path | str, message: str, *, line: int | None = None) -> None:
        self.file = str(file)
        self.line = line
        self.reason = message
        location = f"{self.file}:{line}" if line is not None else self.file
        super().__init__(
            f"{location}: {message}",
            context={"file": self.file, "line": line, "message": message},
        )


class PackageNotFoundError(CompileError):
    """Raised when an imported package cannot be resolved to a compiled model."""

    def __init__(
        self,
        package: str,
        *,
        searched: Sequence[Path | str] = (),
        reason: str | None = None,
    ) -> None:
        self.package = package
        self.searched = [str(p) for p in searched]
        message = reason or f"Package '{package}' not found"
        if self.searched:
            message += f" (searched: {', '.join(self.searched)})"
        super().__init__(message, context={"package": package, "searched": self.searched})


class InvalidPackageModelError(PackageNotFoundError):
    """Raised when a package model file exists but is not a valid rule table."""

    def __init__(self, package: str, path: Path | str, reason: str) -> None:
        super().__init__(package, reason=f"Invalid model for package '{package}' at {path}: {reason}")
        self.path = str(path)
        self.context["path"] = self.path


class UnknownImportedRuleError(CompileError):
    """Raised when an import needs a rule the package does not publish."""

    def __init__(self, package: str, rule: str, *, required_by: str | None = None) -> None:
        self.package = package
        self.rule = rule
        self.required_by = required_by
        message = f"Rule '{rule}' not found in package '{package}'"
        if required_by:
            message += f" (referenced by '{required_by}')"
        super().__init__(
            message,
            context={"package": package, "rule": rule, "required_by": required_by},
        )


class DuplicateRuleNameError(CompileError):
    """Raised when two rules share the same name."""

    def __init__(self, name: str, first_origin: Any, second_origin: Any) -> None:
        self.name = name
        self.first_origin = first_origin
        self.second_origin = second_origin
        super().__init__(
            f"Rule '{name}' is defined twice: {first_origin} and {second_origin}",
            context={
                "name": name,
                "first_origin": str(first_origin),
                "second_origin": str(second_origin),
            },
        )


class UnresolvedReferencesError(CompileError):
    """Raised once with every reference that points to no rule."""

    def __init__(self, violations: Sequence[Tuple[str, str]]) -> None:
        self.violations: List[Tuple[str, str]] = list(violations)
        lines = [f"  - '{rule}' references unknown rule '{ref}'" for rule, ref in self.violations]
        super().__init__(
            f"{len(self.violations)} unresolved reference(s):\n" + "\n".join(lines),
            context={"violations": [{"rule": r, "reference": ref} for r, ref in self.violations]},
        )


__all__ = [
    "RulebookError",
    "ConfigError",
    "CompileError",
    "NoMatchError",
    "ParseError",
    "PackageNotFoundError",
    "InvalidPackageModelError",
    "UnknownImportedRuleError",
    "DuplicateRuleNameError",
    "UnresolvedReferencesError",
]
