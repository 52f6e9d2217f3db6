"""
Command discovery for envboot.

Scans command sources in a fixed priority order and builds the Registry:

1. override  - ``<project>/.envboot/commands/<mode>/`` (project customisations)
2. built-in  - ``envboot/data/commands/<mode>/`` (shipped with the package)
3. shared    - every subdirectory of the configured shared module roots
4. embedded  - functions in ``envboot.embedded``; only consulted when the
               built-in directory for the mode does not exist

Adding a command = dropping a script, a directory of scripts, or a
``module.yaml`` module into one of these locations. When two sources define
the same command name the first one scanned wins; the other is logged and
traced as shadowed. Commands are never merged across sources.
"""

from __future__ import annotations

import importlib
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from envboot.core.errors import DiscoveryWarning, ModuleValidationError
from envboot.core.modes import Mode
from envboot.core.registry import embedded
from envboot.core.registry.docs import ScriptDoc, read_script_doc
from envboot.core.registry.metadata import is_metadata_module, load_metadata_module
from envboot.core.registry.models import (
    CommandDescriptor,
    CommandKind,
    Registry,
    ScriptPath,
    SourceTier,
    SubcommandDescriptor,
)
from envboot.core.registry.trace import record
from envboot.data import get_data_path

logger = logging.getLogger(__name__)

EMBEDDED_NAMESPACE = "envboot.embedded"


@dataclass(frozen=True)
class ModuleLayout:
    """Where each tier looks for commands."""

    override_dir: Optional[Path] = None
    builtin_dir: Optional[Path] = None
    shared_dirs: Tuple[Path, ...] = ()
    embedded_namespace: Optional[Any] = None


def _resolve_dir(raw: str, project_root: Optional[Path]) -> Path:
    p = Path(str(raw)).expanduser()
    if not p.is_absolute() and project_root is not None:
        p = project_root / p
    return p


def layout_for(mode: Mode, config: Mapping[str, Any], project_root: Optional[Path]) -> ModuleLayout:
    """Build the tier layout for ``mode`` from merged configuration."""
    paths_cfg = config.get("paths") or {}
    modules_cfg = config.get("modules") or {}

    override_dir = None
    if project_root is not None:
        project_dir = str(paths_cfg.get("project_dir") or ".envboot")
        override_dir = project_root / project_dir / "commands" / mode.value

    builtin_root = paths_cfg.get("builtin_commands_dir")
    if builtin_root:
        builtin_dir = _resolve_dir(builtin_root, project_root) / mode.value
    else:
        builtin_dir = get_data_path("commands") / mode.value

    shared: List[Path] = [_resolve_dir(p, project_root) for p in modules_cfg.get("shared_paths") or []]
    if modules_cfg.get("include_bundled", True):
        shared.append(get_data_path("modules"))

    return ModuleLayout(
        override_dir=override_dir,
        builtin_dir=builtin_dir,
        shared_dirs=tuple(shared),
        embedded_namespace=EMBEDDED_NAMESPACE,
    )


def _is_candidate(path: Path) -> bool:
    return not path.name.startswith(("_", "."))


def _list_dir(directory: Path) -> List[Path]:
    # Materialise the listing so no directory handle outlives this call.
    return sorted(directory.iterdir())


def _warn_missing(tier: SourceTier, directory: Optional[Path]) -> None:
    warning = DiscoveryWarning(f"{tier.value} directory not found: {directory}")
    logger.debug("%s", warning)
    record("discovery.missing", tier=tier.value, path=str(directory))


def describe_script(path: Path, *, tier: SourceTier) -> CommandDescriptor:
    doc = read_script_doc(path)
    return CommandDescriptor(
        name=path.stem,
        kind=CommandKind.EXTERNAL_SCRIPT,
        tier=tier,
        source=str(path),
        synopsis=doc.synopsis,
        description=doc.description,
        hidden=doc.hidden,
        handler=ScriptPath(path),
    )


def describe_directory(directory: Path, *, tier: SourceTier) -> Optional[CommandDescriptor]:
    """Describe a plain directory of scripts.

    Every file becomes a subcommand except the one named after the directory,
    which is the default handler run when no subcommand is given.
    """
    name = directory.name
    default: Optional[Path] = None
    subcommands: Dict[str, SubcommandDescriptor] = {}

    for item in _list_dir(directory):
        if not item.is_file() or not _is_candidate(item):
            continue
        if item.stem == name:
            if default is not None:
                logger.warning("Duplicate default handler for '%s' in %s; keeping %s", name, directory, default.name)
                continue
            default = item
            continue
        if item.stem in subcommands:
            logger.warning("Duplicate subcommand '%s' in %s; keeping first", item.stem, directory)
            continue
        doc = read_script_doc(item)
        subcommands[item.stem] = SubcommandDescriptor(
            name=item.stem,
            handler=ScriptPath(item),
            synopsis=doc.synopsis,
            description=doc.description,
            hidden=doc.hidden,
        )

    if default is None and not subcommands:
        logger.debug("Skipping empty command directory %s", directory)
        return None

    doc: ScriptDoc = ScriptDoc()
    if default is not None:
        doc = read_script_doc(default)
    elif (directory / "__init__.py").is_file():
        doc = read_script_doc(directory / "__init__.py")

    return CommandDescriptor(
        name=name,
        kind=CommandKind.EXTERNAL_DIRECTORY,
        tier=tier,
        source=str(directory),
        synopsis=doc.synopsis,
        description=doc.description,
        hidden=doc.hidden,
        handler=ScriptPath(default) if default is not None else None,
        subcommands=subcommands,
    )


class _RegistryBuilder:
    """Applies the first-claim-wins insertion rule."""

    def __init__(self, mode: Mode) -> None:
        self.mode = mode
        self.commands: Dict[str, CommandDescriptor] = {}
        self.functions: Dict[str, Callable[..., Any]] = {}
        self.rejected: Dict[str, str] = {}

    def add(self, descriptor: CommandDescriptor) -> bool:
        existing = self.commands.get(descriptor.name)
        if existing is not None:
            logger.info(
                "Command '%s' from %s (%s) is shadowed by %s (%s)",
                descriptor.name,
                descriptor.tier.value,
                descriptor.source,
                existing.tier.value,
                existing.source,
            )
            record(
                "discovery.shadowed",
                command=descriptor.name,
                winner=existing.tier.value,
                winner_source=existing.source,
                shadowed=descriptor.tier.value,
                shadowed_source=descriptor.source,
            )
            return False
        self.commands[descriptor.name] = descriptor
        record(
            "discovery.admitted",
            command=descriptor.name,
            tier=descriptor.tier.value,
            kind=descriptor.kind.value,
            source=descriptor.source,
        )
        return True

    def reject(self, module_dir: Path, error: ModuleValidationError) -> None:
        logger.warning("Skipping module %s (%s): %s", error.module_name, module_dir, "; ".join(error.issues))
        record("discovery.rejected", module=error.module_name, path=str(module_dir), issues=len(error.issues))
        self.rejected[error.module_name] = str(error)

    def build(self) -> Registry:
        return Registry(
            mode=self.mode,
            commands=self.commands,
            functions=self.functions,
            rejected=self.rejected,
        )


def _scan_module_dir(builder: _RegistryBuilder, directory: Path, tier: SourceTier) -> None:
    if is_metadata_module(directory):
        try:
            descriptors = load_metadata_module(directory, tier=tier)
        except ModuleValidationError as exc:
            builder.reject(directory, exc)
            return
        for descriptor in descriptors:
            builder.add(descriptor)
        return

    descriptor = describe_directory(directory, tier=tier)
    if descriptor is not None:
        builder.add(descriptor)


def _scan_command_dir(builder: _RegistryBuilder, directory: Optional[Path], tier: SourceTier) -> None:
    """Scan an override/built-in directory (scripts, directories, modules)."""
    if directory is None or not directory.is_dir():
        _warn_missing(tier, directory)
        return
    for item in _list_dir(directory):
        if not _is_candidate(item):
            continue
        if item.is_file():
            builder.add(describe_script(item, tier=tier))
        elif item.is_dir():
            _scan_module_dir(builder, item, tier)


def _scan_shared_roots(builder: _RegistryBuilder, roots: Iterable[Path]) -> None:
    for root in roots:
        if not root.is_dir():
            _warn_missing(SourceTier.SHARED, root)
            continue
        for item in _list_dir(root):
            if item.is_dir() and _is_candidate(item):
                _scan_module_dir(builder, item, SourceTier.SHARED)


def _load_namespace(namespace: Any) -> Any:
    if isinstance(namespace, str):
        return importlib.import_module(namespace)
    return namespace


def _scan_embedded(builder: _RegistryBuilder, namespace: Any) -> None:
    if namespace is None:
        return
    result = embedded.scan(builder.mode, _load_namespace(namespace))
    builder.functions.update(result.functions)
    for descriptor in result.descriptors:
        builder.add(descriptor)


def scan(mode: Mode, layout: ModuleLayout) -> Registry:
    """Discover every command for ``mode`` and return the Registry."""
    builder = _RegistryBuilder(mode)

    _scan_command_dir(builder, layout.override_dir, SourceTier.OVERRIDE)
    _scan_command_dir(builder, layout.builtin_dir, SourceTier.BUILTIN)
    _scan_shared_roots(builder, layout.shared_dirs)

    builtin_present = layout.builtin_dir is not None and layout.builtin_dir.is_dir()
    if not builtin_present:
        _scan_embedded(builder, layout.embedded_namespace)

    registry = builder.build()
    logger.debug(
        "Discovered %d commands for %s mode (%d modules rejected)",
        len(registry),
        mode.value,
        len(registry.rejected),
    )
    return registry


__all__ = [
    "EMBEDDED_NAMESPACE",
    "ModuleLayout",
    "layout_for",
    "describe_script",
    "describe_directory",
    "scan",
]
