"""
envboot data resource helpers.

Provides access to the bundled configuration defaults, JSON schemas and the
built-in command/module trees shipped inside the package.
"""

from __future__ import annotations

from importlib import resources
from pathlib import Path


def get_data_path(subpackage: str, filename: str = "") -> Path:
    """
    Get absolute path to a data file or directory.

    Args:
        subpackage: Name of the data subfolder (e.g., "config", "schemas")
        filename: Optional filename within the subfolder

    Returns:
        Absolute path to the file or directory

    Example:
        >>> get_data_path("schemas", "module.schema.yaml")
        PosixPath('/path/to/envboot/data/schemas/module.schema.yaml')
    """
    pkg = resources.files("envboot.data")
    base = Path(str(pkg / subpackage))
    return base / filename if filename else base


__all__ = ["get_data_path"]
