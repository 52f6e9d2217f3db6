"""Embedded registration: commands from in-process functions.

Used by single-file/bundled distributions where no built-in command
directory ships on disk. Functions named ``<prefix>_<command>[_<suffix>]``
become commands, e.g. for the ``project`` mode::

    project_init          -> project init
    project_env_list      -> project env list
    project_env_set_path  -> project env set-path

Functions sharing a base command are grouped into one descriptor; a function
without a suffix is that command's direct handler. No filesystem access.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field
from types import ModuleType
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from envboot.core.modes import Mode
from envboot.core.registry.docs import parse_doc_text
from envboot.core.registry.models import (
    CommandDescriptor,
    CommandKind,
    FunctionName,
    SourceTier,
    SubcommandDescriptor,
)

logger = logging.getLogger(__name__)

SEPARATOR = "_"

Namespace = Union[ModuleType, Mapping[str, Any]]


@dataclass
class EmbeddedScan:
    """Descriptors plus the function table the router resolves them from."""

    descriptors: List[CommandDescriptor] = field(default_factory=list)
    functions: Dict[str, Callable[..., Any]] = field(default_factory=dict)


def _members(namespace: Namespace) -> List[tuple[str, Callable[..., Any]]]:
    if isinstance(namespace, ModuleType):
        return [
            (name, fn)
            for name, fn in inspect.getmembers(namespace, inspect.isfunction)
            if fn.__module__ == namespace.__name__
        ]
    return sorted((name, fn) for name, fn in namespace.items() if inspect.isfunction(fn))


def split_function_name(mode: Mode, name: str) -> Optional[tuple[str, Optional[str]]]:
    """Split a function name into (command, subcommand) for ``mode``.

    Returns None when the name does not follow the mode's convention.
    """
    prefix = f"{mode.function_prefix}{SEPARATOR}"
    if not name.startswith(prefix):
        return None
    rest = name[len(prefix):]
    base, sep, suffix = rest.partition(SEPARATOR)
    if not base:
        return None
    if not sep:
        return base, None
    parts = [p for p in suffix.split(SEPARATOR) if p]
    if not parts:
        return None
    return base, "-".join(parts)


def scan(mode: Mode, namespace: Namespace) -> EmbeddedScan:
    """Build one descriptor per base command from matching functions."""
    direct: Dict[str, tuple[str, Callable[..., Any]]] = {}
    grouped: Dict[str, Dict[str, tuple[str, Callable[..., Any]]]] = {}
    result = EmbeddedScan()

    for func_name, fn in _members(namespace):
        parsed = split_function_name(mode, func_name)
        if parsed is None:
            continue
        base, sub = parsed
        result.functions[func_name] = fn
        if sub is None:
            direct[base] = (func_name, fn)
        else:
            grouped.setdefault(base, {})[sub] = (func_name, fn)

    source = namespace.__name__ if isinstance(namespace, ModuleType) else "<namespace>"
    for base in sorted(set(direct) | set(grouped)):
        subcommands: Dict[str, SubcommandDescriptor] = {}
        for sub, (func_name, fn) in sorted(grouped.get(base, {}).items()):
            doc = parse_doc_text(inspect.getdoc(fn) or "")
            subcommands[sub] = SubcommandDescriptor(
                name=sub,
                handler=FunctionName(func_name),
                synopsis=doc.synopsis,
                description=doc.description,
                hidden=doc.hidden,
            )

        handler = None
        doc = parse_doc_text("")
        if base in direct:
            func_name, fn = direct[base]
            handler = FunctionName(func_name)
            doc = parse_doc_text(inspect.getdoc(fn) or "")

        result.descriptors.append(
            CommandDescriptor(
                name=base,
                kind=CommandKind.EMBEDDED_FUNCTION,
                tier=SourceTier.EMBEDDED,
                source=source,
                synopsis=doc.synopsis,
                description=doc.description,
                hidden=doc.hidden,
                handler=handler,
                subcommands=subcommands,
            )
        )

    logger.debug(
        "Embedded scan for %s: %d commands from %d functions",
        mode.value,
        len(result.descriptors),
        len(result.functions),
    )
    return result


__all__ = ["EmbeddedScan", "SEPARATOR", "split_function_name", "scan"]
