from __future__ import annotations

import hashlib
import importlib.util
import logging
import os
import subprocess
import sys
import time
from dataclasses import dataclass, field
from pathlib import Path
from types import ModuleType
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from envboot.core.registry.models import FileAndFunction, FunctionName, HandlerReference

logger = logging.getLogger(__name__)

DEFAULT_INTERPRETERS: Dict[str, List[str]] = {
    ".py": [sys.executable],
    ".sh": ["sh"],
}


@dataclass(frozen=True)
class ExecutionContext:
    """Environment handed to handlers by the router."""

    mode: str = ""
    project_root: Optional[Path] = None
    home: Optional[Path] = None
    interpreters: Mapping[str, Sequence[str]] = field(default_factory=lambda: dict(DEFAULT_INTERPRETERS))

    def child_env(self, command_path: Sequence[str]) -> Dict[str, str]:
        env = os.environ.copy()
        env["ENVBOOT_MODE"] = self.mode
        env["ENVBOOT_COMMAND"] = " ".join(command_path)
        if self.project_root is not None:
            env["ENVBOOT_PROJECT_ROOT"] = str(self.project_root)
        if self.home is not None:
            env["ENVBOOT_HOME"] = str(self.home)
        return env


def script_argv(path: Path, args: Sequence[str], interpreters: Mapping[str, Sequence[str]]) -> List[str]:
    """Build the argv for a script: interpreter by suffix, else run directly."""
    interpreter = interpreters.get(path.suffix.lower())
    if interpreter:
        return [*interpreter, str(path), *args]
    return [str(path), *args]


def run_script(
    path: Path,
    args: Sequence[str],
    *,
    command_path: Sequence[str],
    context: ExecutionContext,
) -> int:
    """Run a script as a subprocess and return its exit code.

    Streams stdio (no output capture) so behavior matches direct execution.
    """
    argv = script_argv(Path(path), args, context.interpreters)
    started = time.time()
    logger.debug("exec start: %s", argv)
    proc = subprocess.run(argv, env=context.child_env(command_path))
    code = int(proc.returncode)
    logger.debug(
        "exec end: %s exit_code=%d duration_ms=%d",
        argv[0],
        code,
        int((time.time() - started) * 1000),
    )
    return code


def load_function(path: Path, name: str) -> Callable[..., Any]:
    """Import a Python file by path and return one of its functions."""
    path = Path(path)
    digest = hashlib.sha1(str(path.resolve()).encode("utf-8")).hexdigest()[:12]
    module_name = f"envboot_handler_{path.stem}_{digest}"
    module = sys.modules.get(module_name)
    if module is None:
        spec = importlib.util.spec_from_file_location(module_name, path)
        if spec is None or spec.loader is None:
            raise ImportError(f"cannot load handler file {path}")
        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except BaseException:
            sys.modules.pop(module_name, None)
            raise
    return _get_callable(module, name, path)


def _get_callable(module: ModuleType, name: str, path: Path) -> Callable[..., Any]:
    fn = getattr(module, name, None)
    if not callable(fn):
        raise AttributeError(f"{path} has no callable '{name}'")
    return fn


def resolve_callable(
    functions: Mapping[str, Callable[..., Any]],
    handler: HandlerReference,
) -> Callable[..., Any]:
    """Return the in-process callable behind a function-style handler reference."""
    if isinstance(handler, FunctionName):
        fn = functions.get(handler.name)
        if fn is None:
            raise LookupError(f"function '{handler.name}' is not registered")
        return fn
    if isinstance(handler, FileAndFunction):
        return load_function(handler.path, handler.name)
    raise TypeError(f"cannot call {handler!r} in-process")


def normalize_status(result: Any) -> int:
    """Map a handler's return value to an exit status."""
    if result is None:
        return 0
    if isinstance(result, bool):
        return 0 if result else 1
    if isinstance(result, int):
        return result
    raise TypeError(f"handler returned {type(result).__name__}, expected an int status")


__all__ = [
    "DEFAULT_INTERPRETERS",
    "ExecutionContext",
    "script_argv",
    "run_script",
    "load_function",
    "resolve_callable",
    "normalize_status",
]
