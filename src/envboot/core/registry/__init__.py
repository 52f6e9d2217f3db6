"""Command registry: discovery, metadata validation, routing and help.

Typical use::

    registry = discovery.scan(mode, discovery.layout_for(mode, config, project_root))
    status = router.dispatch(registry, Invocation.from_argv(mode, argv), out=sys.stdout, err=sys.stderr)
"""
from __future__ import annotations

from .discovery import ModuleLayout, layout_for, scan
from .help import render
from .models import (
    CommandDescriptor,
    CommandKind,
    FileAndFunction,
    FunctionName,
    Invocation,
    ModuleMetadata,
    Registry,
    ScriptPath,
    SourceTier,
    SubcommandDescriptor,
)
from .router import Action, Resolution, dispatch, execute, resolve

__all__ = [
    "ModuleLayout",
    "layout_for",
    "scan",
    "render",
    "CommandDescriptor",
    "CommandKind",
    "FileAndFunction",
    "FunctionName",
    "Invocation",
    "ModuleMetadata",
    "Registry",
    "ScriptPath",
    "SourceTier",
    "SubcommandDescriptor",
    "Action",
    "Resolution",
    "dispatch",
    "execute",
    "resolve",
]
