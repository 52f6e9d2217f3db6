"""Execution modes and entry-point resolution.

Each installed console script maps to one mode. The mode selects which
built-in command directory and which embedded function prefix apply.
"""

from __future__ import annotations

from enum import Enum
from pathlib import PurePath
from typing import Dict

from envboot.core.errors import ModeResolutionError


class Mode(Enum):
    GLOBAL = "global"
    PROJECT = "project"

    @property
    def program(self) -> str:
        """Canonical program name for usage/help text."""
        return PROGRAM_NAMES[self]

    @property
    def function_prefix(self) -> str:
        """Prefix of embedded command functions for this mode."""
        return self.value


PROGRAM_NAMES: Dict[Mode, str] = {
    Mode.GLOBAL: "envboot",
    Mode.PROJECT: "envboot-project",
}

# Extra program names accepted for each mode (short links, legacy names).
MODE_ALIASES: Dict[str, Mode] = {
    "eb": Mode.GLOBAL,
    "ebp": Mode.PROJECT,
    "envboot_project": Mode.PROJECT,
}

_STRIPPED_SUFFIXES = (".py", ".exe")


def _entry_point_name(entry_point: str) -> str:
    name = PurePath(str(entry_point)).name
    for suffix in _STRIPPED_SUFFIXES:
        if name.lower().endswith(suffix):
            name = name[: -len(suffix)]
            break
    return name


def resolve_mode(entry_point: str) -> Mode:
    """Resolve the invoked program name (or path) to a Mode.

    Raises:
        ModeResolutionError: When the entry point is not recognised.
    """
    name = _entry_point_name(entry_point)
    for mode, program in PROGRAM_NAMES.items():
        if name == program:
            return mode
    mode = MODE_ALIASES.get(name)
    if mode is None:
        known = ", ".join(sorted([*PROGRAM_NAMES.values(), *MODE_ALIASES.keys()]))
        raise ModeResolutionError(
            f"Unrecognised entry point '{entry_point}' (expected one of: {known})"
        )
    return mode


__all__ = ["Mode", "PROGRAM_NAMES", "MODE_ALIASES", "resolve_mode"]
