from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

from envboot.core.utils.io import ensure_directory

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_STDERR_FORMAT = "%(levelname)s %(name)s: %(message)s"

_CONFIGURED_LOG_PATH: Optional[str] = None
_FILE_HANDLER: Optional[logging.Handler] = None
_STDERR_HANDLER: Optional[logging.Handler] = None


def _level_from_name(name: str) -> int:
    level = logging.getLevelName(str(name).upper())
    return level if isinstance(level, int) else logging.INFO


def _drop(handler: Optional[logging.Handler]) -> None:
    if handler is None:
        return
    logging.getLogger().removeHandler(handler)
    handler.close()


def configure_logging(
    *,
    level: str = "INFO",
    log_path: Optional[Path] = None,
    verbose: bool = False,
) -> None:
    """Configure stdlib logging for one CLI run.

    - ``log_path``: install a FileHandler there (replacing a previous one).
    - ``verbose``: also log to stderr, at DEBUG.

    Without either, nothing is installed and library warnings fall through to
    logging's last-resort handler. Idempotent for the same arguments.
    """
    global _CONFIGURED_LOG_PATH, _FILE_HANDLER, _STDERR_HANDLER

    root = logging.getLogger()
    file_level = _level_from_name(level)
    root.setLevel(logging.DEBUG if verbose else file_level)

    resolved = str(Path(log_path).expanduser().resolve()) if log_path else None
    if resolved != _CONFIGURED_LOG_PATH or (resolved and _FILE_HANDLER is None):
        _drop(_FILE_HANDLER)
        _FILE_HANDLER = None
        _CONFIGURED_LOG_PATH = None
        if resolved:
            ensure_directory(Path(resolved).parent)
            fh = logging.FileHandler(resolved, encoding="utf-8")
            fh.setFormatter(logging.Formatter(_LOG_FORMAT))
            root.addHandler(fh)
            _FILE_HANDLER = fh
            _CONFIGURED_LOG_PATH = resolved
    if _FILE_HANDLER is not None:
        _FILE_HANDLER.setLevel(file_level)

    if verbose and _STDERR_HANDLER is None:
        sh = logging.StreamHandler(sys.stderr)
        sh.setFormatter(logging.Formatter(_STDERR_FORMAT))
        sh.setLevel(logging.DEBUG)
        root.addHandler(sh)
        _STDERR_HANDLER = sh
    elif not verbose and _STDERR_HANDLER is not None:
        _drop(_STDERR_HANDLER)
        _STDERR_HANDLER = None


def reset_logging_for_tests() -> None:
    """Test-only: remove the handlers installed by configure_logging."""
    global _CONFIGURED_LOG_PATH, _FILE_HANDLER, _STDERR_HANDLER
    _drop(_FILE_HANDLER)
    _drop(_STDERR_HANDLER)
    _CONFIGURED_LOG_PATH = None
    _FILE_HANDLER = None
    _STDERR_HANDLER = None
    logging.getLogger().setLevel(logging.WARNING)


__all__ = ["configure_logging", "reset_logging_for_tests"]
