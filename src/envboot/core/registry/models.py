"""Command registry data model.

Everything here is created once during discovery and treated as immutable
afterwards: descriptors are frozen dataclasses and every mapping is exposed
through a read-only ``MappingProxyType``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Callable, Iterator, Mapping, Optional, Sequence, Union

from envboot.core.modes import Mode


class CommandKind(Enum):
    EMBEDDED_FUNCTION = "embedded-function"
    EXTERNAL_SCRIPT = "external-script"
    EXTERNAL_DIRECTORY = "external-directory"
    METADATA_MODULE = "metadata-module"


class SourceTier(Enum):
    """Discovery sources, declared in priority order (first wins)."""

    OVERRIDE = "override"
    BUILTIN = "built-in"
    SHARED = "shared"
    EMBEDDED = "embedded"


@dataclass(frozen=True)
class ScriptPath:
    """Handler run as an external process."""

    path: Path


@dataclass(frozen=True)
class FunctionName:
    """Handler looked up in the registry's in-process function table."""

    name: str


@dataclass(frozen=True)
class FileAndFunction:
    """Handler defined as a top-level function in a Python file."""

    path: Path
    name: str


HandlerReference = Union[ScriptPath, FunctionName, FileAndFunction]


def _frozen_map(value: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    if isinstance(value, MappingProxyType):
        return value
    return MappingProxyType(dict(value or {}))


@dataclass(frozen=True)
class SubcommandDescriptor:
    name: str
    handler: HandlerReference
    synopsis: str = ""
    description: str = ""
    hidden: bool = False


@dataclass(frozen=True)
class ModuleHooks:
    on_load: Optional[FileAndFunction] = None
    on_unload: Optional[FileAndFunction] = None


@dataclass(frozen=True)
class CommandDescriptor:
    """A discovered top-level command.

    A descriptor has a direct ``handler`` (the default command), a
    ``subcommands`` map, both, or a ``dispatcher`` that owns all routing below
    the command. ``subcommands`` without ``handler`` means "show help when
    invoked bare".
    """

    name: str
    kind: CommandKind
    tier: SourceTier
    source: str
    synopsis: str = ""
    description: str = ""
    hidden: bool = False
    handler: Optional[HandlerReference] = None
    subcommands: Mapping[str, SubcommandDescriptor] = field(default_factory=dict)
    dispatcher: Optional[HandlerReference] = None
    help_handler: Optional[HandlerReference] = None
    module_name: Optional[str] = None
    hooks: ModuleHooks = field(default_factory=ModuleHooks)

    def __post_init__(self) -> None:
        object.__setattr__(self, "subcommands", _frozen_map(self.subcommands))
        if self.dispatcher is not None and (self.subcommands or self.handler is not None):
            raise ValueError(
                f"command '{self.name}': a dispatcher excludes handler and subcommands"
            )
        if self.handler is None and self.dispatcher is None and not self.subcommands:
            raise ValueError(f"command '{self.name}' has nothing to execute")

    def visible_subcommands(self) -> list[SubcommandDescriptor]:
        return [s for _, s in sorted(self.subcommands.items()) if not s.hidden]


@dataclass(frozen=True)
class ModuleMetadata:
    """Parsed (schema-checked) contents of a ``module.yaml`` descriptor."""

    module_name: str
    version: str
    commands: Mapping[str, Mapping[str, Any]]
    description: str = ""
    private_functions: frozenset[str] = frozenset()
    on_load: Optional[str] = None
    on_unload: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ModuleMetadata":
        return cls(
            module_name=str(data["ModuleName"]),
            version=str(data["Version"]),
            description=str(data.get("Description") or ""),
            commands=_frozen_map(
                {str(k): _frozen_map(v) for k, v in (data.get("Commands") or {}).items()}
            ),
            private_functions=frozenset(str(n) for n in data.get("PrivateFunctions") or []),
            on_load=data.get("OnLoad"),
            on_unload=data.get("OnUnload"),
        )


@dataclass(frozen=True)
class Registry:
    """The complete set of commands resolved for one process run."""

    mode: Mode
    commands: Mapping[str, CommandDescriptor] = field(default_factory=dict)
    functions: Mapping[str, Callable[..., Any]] = field(default_factory=dict)
    rejected: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "commands", _frozen_map(self.commands))
        object.__setattr__(self, "functions", _frozen_map(self.functions))
        object.__setattr__(self, "rejected", _frozen_map(self.rejected))

    def get(self, name: str) -> Optional[CommandDescriptor]:
        return self.commands.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self.commands

    def __iter__(self) -> Iterator[CommandDescriptor]:
        """Iterate descriptors (hidden ones included) sorted by name."""
        return iter([d for _, d in sorted(self.commands.items())])

    def __len__(self) -> int:
        return len(self.commands)

    def visible(self) -> list[CommandDescriptor]:
        """Non-hidden commands sorted by name."""
        return [d for _, d in sorted(self.commands.items()) if not d.hidden]


@dataclass(frozen=True)
class Invocation:
    mode: Mode
    command_path: tuple[str, ...]
    args: tuple[str, ...] = ()

    @classmethod
    def from_argv(cls, mode: Mode, argv: Sequence[str]) -> "Invocation":
        """Split argv into command path segments and argument tokens.

        Leading tokens that do not start with ``-`` are path segments; the
        first option-like token and everything after it are arguments.
        """
        tokens = [str(a) for a in argv]
        split = len(tokens)
        for i, token in enumerate(tokens):
            if token.startswith("-"):
                split = i
                break
        return cls(mode=mode, command_path=tuple(tokens[:split]), args=tuple(tokens[split:]))


__all__ = [
    "CommandKind",
    "SourceTier",
    "ScriptPath",
    "FunctionName",
    "FileAndFunction",
    "HandlerReference",
    "SubcommandDescriptor",
    "ModuleHooks",
    "CommandDescriptor",
    "ModuleMetadata",
    "Registry",
    "Invocation",
]
