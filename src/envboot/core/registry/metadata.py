"""Metadata module validation.

A metadata module is a directory holding a ``module.yaml`` descriptor next to
the Python files (and scripts) that implement its commands::

    ModuleName: git-tools
    Version: 1.2.0
    Commands:
      pull:
        Handler: pull.py            # script file   -> ScriptPath
        Synopsis: Pull all repositories
      status:
        Handler: invoke_status      # function name -> FileAndFunction
      remote:
        Subcommands:
          add: {Handler: "remote.py:invoke_remote_add"}
      ext:
        Dispatcher: invoke_ext
        Help: invoke_ext_help
    PrivateFunctions: [invoke_shared_helper]

Admission is atomic: the descriptor must pass the JSON schema, every target
must resolve, and every ``invoke_*`` function found in the module's Python
files must be referenced by a command/hook or listed in ``PrivateFunctions``.
Any problem rejects the whole module with one ``ModuleValidationError``
listing every issue. Python files are parsed with ``ast`` and never imported
here.
"""

from __future__ import annotations

import ast
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Set, Tuple

import yaml

from envboot.core.errors import ModuleValidationError
from envboot.core.registry.models import (
    CommandDescriptor,
    CommandKind,
    FileAndFunction,
    HandlerReference,
    ModuleHooks,
    ModuleMetadata,
    ScriptPath,
    SourceTier,
    SubcommandDescriptor,
)
from envboot.core.schemas import validate_payload_safe
from envboot.core.utils.io import read_yaml

logger = logging.getLogger(__name__)

METADATA_FILENAME = "module.yaml"
HANDLER_PREFIX = "invoke_"
_EXCLUSIVE_KEYS = ("Handler", "Dispatcher", "Subcommands")


def is_metadata_module(path: Path) -> bool:
    return Path(path).is_dir() and (Path(path) / METADATA_FILENAME).is_file()


def load_module_metadata(module_dir: Path) -> ModuleMetadata:
    """Read and schema-check ``module.yaml``.

    Raises:
        ModuleValidationError: If the file is unreadable, not a mapping or
            violates the module schema.
    """
    module_dir = Path(module_dir)
    path = module_dir / METADATA_FILENAME
    try:
        data = read_yaml(path, default=None, raise_on_error=True)
    except (OSError, yaml.YAMLError) as exc:
        raise ModuleValidationError(module_dir.name, [f"{METADATA_FILENAME}: {exc}"]) from exc

    if not isinstance(data, dict):
        raise ModuleValidationError(
            module_dir.name, [f"{METADATA_FILENAME}: expected a mapping, got {type(data).__name__}"]
        )

    errors = validate_payload_safe(data, "module")
    if errors:
        name = data.get("ModuleName")
        raise ModuleValidationError(str(name) if isinstance(name, str) and name else module_dir.name, errors)
    return ModuleMetadata.from_dict(data)


@dataclass
class ModuleSources:
    """Index of a module directory: its files and top-level functions."""

    root: Path
    functions: Dict[str, List[Path]] = field(default_factory=dict)
    issues: List[str] = field(default_factory=list)

    def functions_in(self, path: Path) -> Set[str]:
        return {name for name, files in self.functions.items() if path in files}


def _top_level_functions(path: Path) -> List[str]:
    tree = ast.parse(path.read_text(encoding="utf-8"), filename=str(path))
    return [node.name for node in tree.body if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef))]


def index_module_sources(module_dir: Path) -> ModuleSources:
    """Collect top-level function definitions from every ``.py`` file."""
    module_dir = Path(module_dir)
    sources = ModuleSources(root=module_dir)
    for path in sorted(module_dir.rglob("*.py")):
        if "__pycache__" in path.parts:
            continue
        rel = path.relative_to(module_dir).as_posix()
        try:
            names = _top_level_functions(path)
        except SyntaxError as exc:
            sources.issues.append(f"{rel}: syntax error on line {exc.lineno}: {exc.msg}")
            continue
        except (OSError, UnicodeDecodeError) as exc:
            sources.issues.append(f"{rel}: unreadable ({exc})")
            continue
        for name in names:
            sources.functions.setdefault(name, []).append(path)
    return sources


def _inside(path: Path, root: Path) -> bool:
    try:
        path.resolve().relative_to(root.resolve())
    except ValueError:
        return False
    return True


def _resolve_target(
    target: str,
    sources: ModuleSources,
    *,
    functions_only: bool,
) -> Tuple[Optional[HandlerReference], Optional[str]]:
    """Resolve a handler target to a reference, or return an error reason."""
    root = sources.root

    if ":" in target:
        file_part, _, func = target.rpartition(":")
        path = root / file_part
        if not (path.is_file() and _inside(path, root)):
            return None, f"file '{file_part}' not found"
        if func not in sources.functions_in(path):
            return None, f"function '{func}' not defined in '{file_part}'"
        return FileAndFunction(path=path, name=func), None

    if "." in target or "/" in target:
        if functions_only:
            return None, f"'{target}' must name a function"
        path = root / target
        if not (path.is_file() and _inside(path, root)):
            return None, f"target '{target}' not found"
        return ScriptPath(path=path), None

    defined = sources.functions.get(target, [])
    if len(defined) > 1:
        files = ", ".join(p.relative_to(root).as_posix() for p in defined)
        return None, f"function '{target}' is defined more than once ({files})"
    if not defined:
        return None, f"target '{target}' not found"
    return FileAndFunction(path=defined[0], name=target), None


class _ModuleChecker:
    """Accumulates issues and referenced functions while building descriptors."""

    def __init__(self, metadata: ModuleMetadata, sources: ModuleSources) -> None:
        self.metadata = metadata
        self.sources = sources
        self.issues: List[str] = list(sources.issues)
        self.referenced: Set[str] = set()

    def resolve(self, owner: str, role: str, target: str, *, functions_only: bool = False) -> Optional[HandlerReference]:
        ref, reason = _resolve_target(target, self.sources, functions_only=functions_only)
        if ref is None:
            self.issues.append(f"{owner}: {role} {reason}")
            return None
        if isinstance(ref, FileAndFunction):
            self.referenced.add(ref.name)
        return ref

    def hook(self, role: str, target: Optional[str]) -> Optional[FileAndFunction]:
        if not target:
            return None
        ref = self.resolve(self.metadata.module_name, role, target, functions_only=True)
        return ref if isinstance(ref, FileAndFunction) else None

    def subcommands(self, command: str, raw: Mapping[str, Mapping]) -> Dict[str, SubcommandDescriptor]:
        out: Dict[str, SubcommandDescriptor] = {}
        for sub_name, sub in sorted(raw.items()):
            handler = self.resolve(f"{command} {sub_name}", "handler", str(sub["Handler"]))
            if handler is None:
                continue
            out[sub_name] = SubcommandDescriptor(
                name=sub_name,
                handler=handler,
                synopsis=str(sub.get("Synopsis") or ""),
                description=str(sub.get("Description") or ""),
                hidden=bool(sub.get("Hidden", False)),
            )
        return out

    def undeclared_functions(self) -> List[str]:
        candidates = {n for n in self.sources.functions if n.startswith(HANDLER_PREFIX)}
        return sorted(candidates - self.referenced - set(self.metadata.private_functions))


def validate(
    metadata: ModuleMetadata,
    module_dir: Path,
    *,
    tier: SourceTier = SourceTier.SHARED,
) -> List[CommandDescriptor]:
    """Cross-check a parsed descriptor against the module's files.

    Returns:
        One descriptor per declared command.

    Raises:
        ModuleValidationError: Naming every unresolved target and every
            undeclared ``invoke_*`` function.
    """
    module_dir = Path(module_dir)
    checker = _ModuleChecker(metadata, index_module_sources(module_dir))

    hooks = ModuleHooks(
        on_load=checker.hook("OnLoad", metadata.on_load),
        on_unload=checker.hook("OnUnload", metadata.on_unload),
    )

    pending: List[dict] = []
    for name, spec in sorted(metadata.commands.items()):
        present = [k for k in _EXCLUSIVE_KEYS if spec.get(k)]
        if len(present) != 1:
            found = ", ".join(present) or "none"
            checker.issues.append(
                f"{name}: must declare exactly one of Handler, Dispatcher or Subcommands (found: {found})"
            )
            continue

        entry: dict = {"name": name, "spec": spec}
        if spec.get("Handler"):
            entry["handler"] = checker.resolve(name, "handler", str(spec["Handler"]))
        elif spec.get("Dispatcher"):
            entry["dispatcher"] = checker.resolve(name, "dispatcher", str(spec["Dispatcher"]), functions_only=True)
        else:
            entry["subcommands"] = checker.subcommands(name, spec["Subcommands"])
        if spec.get("Help"):
            entry["help_handler"] = checker.resolve(name, "help handler", str(spec["Help"]), functions_only=True)
        pending.append(entry)

    undeclared = checker.undeclared_functions()
    if undeclared:
        checker.issues.append(
            "undeclared handler functions (reference them from a command or list them in "
            f"PrivateFunctions): {', '.join(undeclared)}"
        )

    if checker.issues:
        raise ModuleValidationError(metadata.module_name, checker.issues)

    descriptors: List[CommandDescriptor] = []
    for entry in pending:
        spec = entry["spec"]
        descriptors.append(
            CommandDescriptor(
                name=entry["name"],
                kind=CommandKind.METADATA_MODULE,
                tier=tier,
                source=str(module_dir),
                synopsis=str(spec.get("Synopsis") or ""),
                description=str(spec.get("Description") or metadata.description or ""),
                hidden=bool(spec.get("Hidden", False)),
                handler=entry.get("handler"),
                subcommands=entry.get("subcommands") or {},
                dispatcher=entry.get("dispatcher"),
                help_handler=entry.get("help_handler"),
                module_name=metadata.module_name,
                hooks=hooks,
            )
        )
    logger.debug(
        "Validated module %s %s (%d commands)",
        metadata.module_name,
        metadata.version,
        len(descriptors),
    )
    return descriptors


def load_metadata_module(module_dir: Path, *, tier: SourceTier) -> List[CommandDescriptor]:
    """Load ``module.yaml`` and validate it against the module's files."""
    return validate(load_module_metadata(module_dir), module_dir, tier=tier)


__all__ = [
    "METADATA_FILENAME",
    "HANDLER_PREFIX",
    "ModuleSources",
    "is_metadata_module",
    "load_module_metadata",
    "index_module_sources",
    "validate",
    "load_metadata_module",
]
