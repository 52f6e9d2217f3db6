"""YAML file helpers.

Writes go through a sibling temp file and ``os.replace`` so a config file is
either the old or the new version, never a partial one.
"""
from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Any

import yaml

_DUMP_OPTIONS = {"default_flow_style": False, "allow_unicode": True}


def ensure_directory(path: Path) -> Path:
    path = Path(path)
    if path.exists() and not path.is_dir():
        raise NotADirectoryError(f"Not a directory: {path}")
    path.mkdir(parents=True, exist_ok=True)
    return path


def atomic_write_text(path: Path, text: str, *, encoding: str = "utf-8") -> None:
    """Replace ``path`` with ``text``, creating parent directories."""
    path = Path(path)
    ensure_directory(path.parent)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding=encoding) as fh:
            fh.write(text)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_name, str(path))
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


def read_yaml(path: Path, default: Any = None, raise_on_error: bool = False) -> Any:
    """Load a YAML file.

    A missing file, an empty document or (unless ``raise_on_error``) a file
    that cannot be read or parsed yields ``default``.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
        data = yaml.safe_load(text)
    except FileNotFoundError:
        if raise_on_error:
            raise
        return default
    except (OSError, yaml.YAMLError):
        if raise_on_error:
            raise
        return default
    return default if data is None else data


def dump_yaml_string(data: Any, sort_keys: bool = True) -> str:
    return yaml.safe_dump(data, sort_keys=sort_keys, **_DUMP_OPTIONS)


def write_yaml(path: Path, data: Any) -> None:
    atomic_write_text(path, dump_yaml_string(data))


__all__ = [
    "ensure_directory",
    "atomic_write_text",
    "read_yaml",
    "write_yaml",
    "dump_yaml_string",
]
