"""CLI output formatting for JSON and text modes."""
from __future__ import annotations

import json
import sys
from typing import Any, Dict, Optional


class OutputFormatter:
    """Unified output formatter for CLI commands."""

    def __init__(self, json_mode: bool = False, indent: int = 2):
        self.json_mode = json_mode
        self.indent = indent

    def success(
        self,
        data: Dict[str, Any],
        message: str,
        *,
        status: str = "success",
    ) -> None:
        """Print ``message`` in text mode, ``{"status": ..., **data}`` in JSON mode."""
        if self.json_mode:
            print(json.dumps({"status": status, **data}, indent=self.indent, ensure_ascii=False, default=str))
        else:
            print(message)

    def error(
        self,
        error: Exception | str,
        message: Optional[str] = None,
        *,
        error_code: str = "error",
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Report a failure on stderr.

        Args:
            error: The exception (or message) that occurred
            message: Optional human-readable message (defaults to str(error))
            error_code: Error code for JSON output
            context: Structured details added to the JSON payload
        """
        msg = message or str(error)
        if self.json_mode:
            output: Dict[str, Any] = {"error": error_code, "message": msg}
            if context:
                output["context"] = context
            print(json.dumps(output, indent=self.indent, ensure_ascii=False, default=str), file=sys.stderr)
        else:
            print(f"Error: {msg}", file=sys.stderr)


__all__ = ["OutputFormatter"]
