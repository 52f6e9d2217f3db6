"""Output helpers shared by the built-in commands.

Every built-in accepts ``--json``; in that mode only machine-readable
documents go to stdout and errors become ``{"error": ..., "message": ...}``
on stderr.
"""
from __future__ import annotations

import json
import sys
from typing import Any, Dict, Iterable, List, Optional, Sequence


class OutputFormatter:
    """Text or JSON output for one command run."""

    def __init__(self, json_mode: bool = False, indent: int = 2):
        self.json_mode = json_mode
        self.indent = indent

    def _dump(self, data: Any, *, stream=None) -> None:
        print(json.dumps(data, indent=self.indent, default=str), file=stream or sys.stdout)

    def success(self, data: Dict[str, Any], message: str) -> None:
        """Print ``message``, or ``data`` tagged ``"status": "ok"`` in JSON mode."""
        if self.json_mode:
            self._dump({"status": "ok", **data})
        else:
            print(message)

    def error(self, exc: Exception, message: Optional[str] = None, *, code: str = "error") -> None:
        msg = message or str(exc)
        if self.json_mode:
            self._dump({"error": code, "message": msg}, stream=sys.stderr)
        else:
            print(f"Error: {msg}", file=sys.stderr)

    def json_output(self, data: Any) -> None:
        self._dump(data)

    def text(self, message: str = "") -> None:
        print(message)

    def text_kv(self, key: str, value: Any, prefix: str = "  ") -> None:
        """Print ``key: value`` (ignored in JSON mode)."""
        if not self.json_mode:
            print(f"{prefix}{key}: {value}")

    def table(self, rows: Iterable[Sequence[Any]], *, prefix: str = "  ", gap: int = 2) -> None:
        """Print rows as left-aligned columns; the last column is not padded."""
        materialized: List[List[str]] = [[str(cell) for cell in row] for row in rows]
        if not materialized:
            return
        ncols = max(len(r) for r in materialized)
        widths = [
            max((len(r[i]) for r in materialized if i < len(r)), default=0)
            for i in range(ncols - 1)
        ]
        for row in materialized:
            cells = [cell.ljust(widths[i] + gap) for i, cell in enumerate(row[:-1])]
            print((prefix + "".join(cells) + row[-1]).rstrip())


__all__ = ["OutputFormatter"]
