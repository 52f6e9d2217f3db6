"""argparse options shared by the built-in commands."""
from __future__ import annotations

import argparse
import os

from envboot.core.modes import Mode


def add_json_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--json", action="store_true", help="Print machine-readable JSON")


def add_force_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-f", "--force", action="store_true", help="Replace files that already exist")


def add_dry_run_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-n", "--dry-run", action="store_true", help="Report changes without writing anything")


def add_mode_option(parser: argparse.ArgumentParser) -> None:
    """Add ``--mode``, defaulting to the mode of the running entry point.

    Scripts learn it from ``ENVBOOT_MODE``; in-process calls fall back to
    the global mode.
    """
    parser.add_argument(
        "--mode",
        choices=[m.value for m in Mode],
        default=os.environ.get("ENVBOOT_MODE") or Mode.GLOBAL.value,
        help="Mode whose commands to list (default: current mode)",
    )


__all__ = ["add_json_flag", "add_force_flag", "add_dry_run_flag", "add_mode_option"]
