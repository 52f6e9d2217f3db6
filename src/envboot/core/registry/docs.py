"""Inline documentation of command scripts.

Scripts describe themselves without being imported or executed:

- Python files use their module docstring (read with ``ast``);
- any other script uses its leading ``#`` comment block (shebang skipped).

Within that text a ``SUMMARY: ...`` line sets the synopsis and
``HIDDEN: true`` hides the command from help listings. All other lines form
the description. Without a SUMMARY line the first line is the synopsis.
"""

from __future__ import annotations

import ast
import logging
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class ScriptDoc:
    synopsis: str = ""
    description: str = ""
    hidden: bool = False


def _python_docstring(path: Path) -> str:
    try:
        tree = ast.parse(path.read_text(encoding="utf-8"), filename=str(path))
    except (OSError, SyntaxError, UnicodeDecodeError, ValueError) as exc:
        logger.debug("Cannot read docstring of %s: %s", path, exc)
        return ""
    return ast.get_docstring(tree) or ""


def _comment_header(path: Path) -> str:
    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except (OSError, UnicodeDecodeError) as exc:
        logger.debug("Cannot read header of %s: %s", path, exc)
        return ""

    out: list[str] = []
    for i, line in enumerate(lines):
        stripped = line.strip()
        if i == 0 and stripped.startswith("#!"):
            continue
        if not stripped.startswith("#"):
            if not stripped and not out:
                continue
            break
        out.append(stripped.lstrip("#").strip())
    return "\n".join(out)


def parse_doc_text(text: str) -> ScriptDoc:
    """Extract synopsis/description/hidden markers from free text."""
    synopsis = ""
    hidden = False
    body: list[str] = []
    for line in text.splitlines():
        stripped = line.strip()
        key, sep, value = stripped.partition(":")
        if sep and key.upper() == "SUMMARY" and not synopsis:
            synopsis = value.strip()
            continue
        if sep and key.upper() == "HIDDEN":
            hidden = value.strip().lower() in _TRUE_VALUES
            continue
        body.append(line.rstrip())

    while body and not body[0].strip():
        body.pop(0)
    if not synopsis and body:
        synopsis = body.pop(0).strip()
    description = "\n".join(body).strip()
    return ScriptDoc(synopsis=synopsis, description=description, hidden=hidden)


def read_script_doc(path: Path) -> ScriptDoc:
    """Read the inline documentation of a script file."""
    path = Path(path)
    if path.suffix == ".py":
        return parse_doc_text(_python_docstring(path))
    return parse_doc_text(_comment_header(path))


__all__ = ["ScriptDoc", "parse_doc_text", "read_script_doc"]
