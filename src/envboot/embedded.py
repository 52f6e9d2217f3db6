"""Built-in command implementations.

These functions serve two purposes:

- the scripts under ``envboot/data/commands`` delegate to them;
- when no built-in command directory ships on disk (single-file
  distributions) they are registered directly as the embedded tier, using
  the ``<mode>_<command>[_<subcommand>]`` naming convention.

Each takes the remaining argument tokens and returns an exit status.
Helpers must not start with a mode prefix or they would become commands.
"""
from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any, Dict, List, Optional

from envboot import __version__
from envboot.cli._args import add_dry_run_flag, add_force_flag, add_json_flag, add_mode_option
from envboot.cli._output import OutputFormatter
from envboot.core.config import ConfigManager, get_value
from envboot.core.errors import ConfigError
from envboot.core.modes import Mode
from envboot.core.paths import PROJECT_DIR_NAME, find_project_root
from envboot.core.registry import discovery
from envboot.core.utils.io import dump_yaml_string, ensure_directory, write_yaml

STARTER_CONFIG: Dict[str, Any] = {
    "modules": {"shared_paths": []},
}


def _parser(mode: Mode, command: str, description: str) -> argparse.ArgumentParser:
    return argparse.ArgumentParser(prog=f"{mode.program} {command}", description=description)


# ---------- shared implementations ----------


def _config_show(mode: Mode, args: List[str]) -> int:
    parser = _parser(mode, "config show", "Show the effective configuration.")
    parser.add_argument("key", nargs="?", help="Dotted key to show (e.g. help.width)")
    add_json_flag(parser)
    ns = parser.parse_args(args)
    out = OutputFormatter(json_mode=ns.json)

    try:
        cfg = ConfigManager().load_config()
    except ConfigError as exc:
        out.error(exc, code="config_error")
        return 1

    data: Any = cfg
    if ns.key:
        missing = object()
        data = get_value(cfg, ns.key, missing)
        if data is missing:
            out.error(KeyError(ns.key), f"Unknown configuration key: {ns.key}", code="unknown_key")
            return 1

    if ns.json:
        out.json_output(data)
    elif isinstance(data, (dict, list)):
        out.text(dump_yaml_string(data).rstrip("\n"))
    else:
        out.text("null" if data is None else str(data))
    return 0


def _config_path(mode: Mode, args: List[str]) -> int:
    parser = _parser(mode, "config path", "List configuration files in merge order.")
    add_json_flag(parser)
    ns = parser.parse_args(args)
    out = OutputFormatter(json_mode=ns.json)

    try:
        manager = ConfigManager()
    except ConfigError as exc:
        out.error(exc, code="config_error")
        return 1
    layers = [
        {"layer": name, "path": str(path), "exists": path.is_file()}
        for name, path in manager.layer_paths()
    ]
    if ns.json:
        out.json_output({"layers": layers})
        return 0
    for layer in layers:
        marker = "" if layer["exists"] else "  (missing)"
        out.text(f"{layer['layer']:<9}{layer['path']}{marker}")
    return 0


# ---------- global mode ----------


def global_version(args: List[str]) -> int:
    """Show the envboot version."""
    parser = _parser(Mode.GLOBAL, "version", "Show the envboot version.")
    add_json_flag(parser)
    ns = parser.parse_args(args)
    OutputFormatter(json_mode=ns.json).success({"version": __version__}, f"envboot {__version__}")
    return 0


def global_config_show(args: List[str]) -> int:
    """Show the effective configuration."""
    return _config_show(Mode.GLOBAL, args)


def global_config_path(args: List[str]) -> int:
    """List the configuration files that apply, in merge order."""
    return _config_path(Mode.GLOBAL, args)


def global_modules(args: List[str]) -> int:
    """List discovered commands with their source tier.

    Modules that failed validation are listed separately with the reason.
    """
    parser = _parser(Mode.GLOBAL, "modules", "List discovered commands and rejected modules.")
    add_mode_option(parser)
    parser.add_argument("--all", action="store_true", help="Include hidden commands")
    add_json_flag(parser)
    ns = parser.parse_args(args)
    out = OutputFormatter(json_mode=ns.json)

    mode = Mode(ns.mode)
    try:
        manager = ConfigManager()
        cfg = manager.load_config()
    except ConfigError as exc:
        out.error(exc, code="config_error")
        return 1
    registry = discovery.scan(mode, discovery.layout_for(mode, cfg, manager.project_root))

    commands = [
        {
            "name": d.name,
            "tier": d.tier.value,
            "kind": d.kind.value,
            "source": d.source,
            "hidden": d.hidden,
        }
        for d in registry
        if ns.all or not d.hidden
    ]
    if ns.json:
        out.json_output({"mode": mode.value, "commands": commands, "rejected": dict(registry.rejected)})
        return 0

    out.text(f"Commands ({mode.program}):")
    if not commands:
        out.text("  (none)")
    out.table(
        (c["name"], c["tier"], c["source"] + (" [hidden]" if c["hidden"] else ""))
        for c in commands
    )
    if registry.rejected:
        out.text()
        out.text("Rejected modules:")
        for name, reason in sorted(registry.rejected.items()):
            out.text_kv(name, reason)
    return 0


# ---------- project mode ----------


def project_init(args: List[str]) -> int:
    """Initialize envboot in the current project.

    Creates the project configuration file and the directory for project
    command overrides. Existing files are kept unless --force is given.
    """
    parser = _parser(Mode.PROJECT, "init", "Initialize envboot in the current project.")
    parser.add_argument("path", nargs="?", help="Project root (default: detected root or cwd)")
    add_force_flag(parser)
    add_dry_run_flag(parser)
    add_json_flag(parser)
    ns = parser.parse_args(args)
    out = OutputFormatter(json_mode=ns.json)

    # The project layer may not exist yet (or be what --force replaces).
    try:
        cfg = ConfigManager(discover_project=False).load_config()
        dir_name = get_value(cfg, "paths.project_dir") or PROJECT_DIR_NAME
        root: Optional[Path] = Path(ns.path).resolve() if ns.path else None
        if root is None:
            root = find_project_root(project_dir=dir_name) or Path.cwd()
    except ConfigError as exc:
        out.error(exc, code="config_error")
        return 1

    project_dir = root / dir_name
    config_path = project_dir / "config.yaml"
    commands_dir = project_dir / "commands" / Mode.PROJECT.value

    created: List[str] = []
    skipped: List[str] = []
    if config_path.exists() and not ns.force:
        skipped.append(str(config_path))
    else:
        if not ns.dry_run:
            write_yaml(config_path, STARTER_CONFIG)
        created.append(str(config_path))
    if commands_dir.is_dir():
        skipped.append(str(commands_dir))
    else:
        if not ns.dry_run:
            ensure_directory(commands_dir)
        created.append(str(commands_dir))

    lines = [f"{'Would create' if ns.dry_run else 'Created'}: {p}" for p in created]
    lines += [f"Exists: {p}" for p in skipped]
    out.success(
        {"root": str(root), "created": created, "skipped": skipped, "dry_run": ns.dry_run},
        "\n".join(lines),
    )
    return 0


def project_config_show(args: List[str]) -> int:
    """Show the effective configuration for this project."""
    return _config_show(Mode.PROJECT, args)


def project_config_path(args: List[str]) -> int:
    """List the configuration files that apply to this project."""
    return _config_path(Mode.PROJECT, args)
