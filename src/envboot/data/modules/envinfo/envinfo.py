"""Handlers for the envinfo module."""
from __future__ import annotations

import os
import platform
import sys
from typing import Dict, List


def invoke_collect_environment(prefix: str = "") -> Dict[str, str]:
    return {k: v for k, v in sorted(os.environ.items()) if k.startswith(prefix)}


def invoke_env_show(args: List[str]) -> int:
    print(f"python: {sys.executable} ({platform.python_version()})")
    variables = invoke_collect_environment("ENVBOOT_")
    if not variables:
        print("no ENVBOOT_* variables set")
    for key, value in variables.items():
        print(f"{key}={value}")
    return 0


def invoke_env_path(args: List[str]) -> int:
    missing = 0
    for entry in os.environ.get("PATH", "").split(os.pathsep):
        if not entry:
            continue
        if os.path.isdir(entry):
            print(entry)
        else:
            missing += 1
            print(f"{entry}  (missing)")
    # Non-zero when --strict is given and some entries are missing.
    return 1 if missing and "--strict" in args else 0


def invoke_env_debug(args: List[str]) -> int:
    for key, value in invoke_collect_environment().items():
        print(f"{key}={value}")
    print("")
    print("sys.path:")
    for entry in sys.path:
        print(f"  {entry}")
    return 0
