"""
envboot CLI entry point.

Both console scripts (``envboot`` and ``envboot-project``) land here; the
program name selects the mode. Only the leading global options are parsed
here, everything after them is routed through the command registry
untouched::

    envboot [--verbose] [--trace] <command> [<subcommand>] [args...]
    envboot help [<command> [<subcommand>]]
"""
from __future__ import annotations

import argparse
import logging
import os
import sys
from contextlib import nullcontext
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from envboot import __version__
from envboot.core.config import ConfigManager, get_value
from envboot.core.errors import ConfigError, ModeResolutionError
from envboot.core.logging import configure_logging
from envboot.core.modes import Mode, resolve_mode
from envboot.core.registry import Invocation, discovery, router
from envboot.core.registry.router import HELP_COMMAND
from envboot.core.registry.runner import DEFAULT_INTERPRETERS, ExecutionContext
from envboot.core.registry.trace import TraceRecorder, enable_tracing

logger = logging.getLogger(__name__)

EXIT_USAGE = 2

_GLOBAL_FLAGS = {"--version", "-v", "--verbose", "--trace", "-h", "--help"}


def build_parser(mode: Mode) -> argparse.ArgumentParser:
    """Parser for the global options that precede the command."""
    parser = argparse.ArgumentParser(prog=mode.program, add_help=False)
    parser.add_argument("--version", action="store_true", help="Show the version and exit")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log diagnostics to stderr")
    parser.add_argument("--trace", action="store_true", help="Print discovery and routing decisions")
    parser.add_argument("-h", "--help", action="store_true", help="Show help")
    return parser


def split_global_options(argv: Sequence[str]) -> Tuple[List[str], List[str]]:
    """Split argv into leading global options and the command tokens."""
    tokens = list(argv)
    for i, token in enumerate(tokens):
        if token not in _GLOBAL_FLAGS:
            return tokens[:i], tokens[i:]
    return tokens, []


def _interpreters(cfg: Dict[str, Any]) -> Dict[str, List[str]]:
    merged: Dict[str, List[str]] = {k: list(v) for k, v in DEFAULT_INTERPRETERS.items()}
    for suffix, command in (get_value(cfg, "execution.interpreters") or {}).items():
        merged[str(suffix).lower()] = [str(c) for c in command]
    return merged


def _log_path(cfg: Dict[str, Any], home: Path) -> Optional[Path]:
    raw = get_value(cfg, "logging.path")
    if not raw:
        return None
    path = Path(str(raw)).expanduser()
    return path if path.is_absolute() else home / path


def _print_trace(recorder: TraceRecorder) -> None:
    for rec in recorder.records:
        print(f"[trace] {rec.format()}", file=sys.stderr)


def main(argv: Optional[Sequence[str]] = None, prog: Optional[str] = None) -> int:
    """
    Main entry point for the envboot CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])
        prog: Program name used to pick the mode (defaults to sys.argv[0])

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    if argv is None:
        argv = sys.argv[1:]
    if prog is None:
        prog = os.path.basename(sys.argv[0]) if sys.argv and sys.argv[0] else Mode.GLOBAL.program

    try:
        mode = resolve_mode(prog)
    except ModeResolutionError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_USAGE

    global_argv, rest = split_global_options(argv)
    opts = build_parser(mode).parse_args(global_argv)

    if opts.version:
        print(f"{mode.program} {__version__}")
        return 0
    if opts.help:
        rest = [HELP_COMMAND, *[t for t in rest if not t.startswith("-")]]

    try:
        manager = ConfigManager()
        cfg = manager.load_config()
    except ConfigError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    configure_logging(
        level=str(get_value(cfg, "logging.level", "INFO")),
        log_path=_log_path(cfg, manager.user_home),
        verbose=opts.verbose,
    )
    logger.debug("envboot %s mode=%s project_root=%s", __version__, mode.value, manager.project_root)

    context = ExecutionContext(
        mode=mode.value,
        project_root=manager.project_root,
        home=manager.user_home,
        interpreters=_interpreters(cfg),
    )
    layout = discovery.layout_for(mode, cfg, manager.project_root)

    recorder = TraceRecorder() if opts.trace else None
    with enable_tracing(recorder) if recorder is not None else nullcontext():
        registry = discovery.scan(mode, layout)
        status = router.dispatch(
            registry,
            Invocation.from_argv(mode, rest),
            out=sys.stdout,
            err=sys.stderr,
            context=context,
            width=get_value(cfg, "help.width"),
        )

    if recorder is not None:
        _print_trace(recorder)
    return status


if __name__ == "__main__":
    sys.exit(main())
