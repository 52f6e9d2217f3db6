"""Path resolution for envboot.

- User home: ``ENVBOOT_HOME`` or ``~/.envboot``.
- Project root: ``ENVBOOT_PROJECT_ROOT`` or the nearest ancestor of the
  working directory that holds a ``.envboot/`` directory, then one holding
  ``.git/``. Outside a project there is no project root (``None``); the
  global manager works without one.
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from envboot.core.errors import ConfigError

PROJECT_DIR_NAME = ".envboot"
USER_DIR_NAME = ".envboot"
_VCS_MARKERS = (".git",)


def get_user_home() -> Path:
    """Return the user-level envboot directory (not created)."""
    raw = os.environ.get("ENVBOOT_HOME")
    if raw and raw.strip():
        return Path(raw.strip()).expanduser().resolve()
    return Path.home() / USER_DIR_NAME


def find_project_root(start: Optional[Path] = None, *, project_dir: str = PROJECT_DIR_NAME) -> Optional[Path]:
    """Find the enclosing project root, or None outside a project.

    Raises:
        ConfigError: If ``ENVBOOT_PROJECT_ROOT`` points at a missing path or
            at the project config directory itself.
    """
    env_root = os.environ.get("ENVBOOT_PROJECT_ROOT")
    if env_root and env_root.strip():
        path = Path(env_root.strip()).expanduser().resolve()
        if not path.is_dir():
            raise ConfigError(f"ENVBOOT_PROJECT_ROOT points at missing directory: {path}")
        if path.name == project_dir:
            raise ConfigError(
                f"ENVBOOT_PROJECT_ROOT points to the {project_dir} directory ({path}); "
                "it must point to the project root"
            )
        return path

    cwd = Path(start or Path.cwd()).resolve()
    candidates = [cwd, *cwd.parents]
    for candidate in candidates:
        if (candidate / project_dir).is_dir() and candidate.name != project_dir:
            return candidate
    for candidate in candidates:
        if any((candidate / marker).exists() for marker in _VCS_MARKERS):
            return candidate
    return None


__all__ = ["PROJECT_DIR_NAME", "USER_DIR_NAME", "get_user_home", "find_project_root"]
