"""Help text generation from the registry.

Rendering is a pure function of the registry and the requested path, so the
same registry always produces the same text. Hidden commands and subcommands
never appear in listings but can still be shown by asking for them directly.
A metadata module may supply a ``Help`` handler for a command; its text then
replaces the generated help for that command and everything below it.
"""

from __future__ import annotations

import textwrap
from typing import List, Optional, Sequence, Tuple

from envboot.core.errors import HandlerExecutionError, UnknownCommandError, UnknownSubcommandError
from envboot.core.registry.models import CommandDescriptor, Registry, SubcommandDescriptor
from envboot.core.registry.runner import resolve_callable

DEFAULT_WIDTH = 80
NO_SYNOPSIS = "No synopsis available."
NO_DESCRIPTION = "No description available."


def _listing(entries: Sequence[Tuple[str, str]], width: int, indent: int = 2) -> List[str]:
    if not entries:
        return [" " * indent + "(none)"]
    column = max(len(name) for name, _ in entries) + indent + 2
    text_width = max(width - column, 20)
    lines: List[str] = []
    for name, synopsis in entries:
        wrapped = textwrap.wrap(synopsis or NO_SYNOPSIS, width=text_width) or [NO_SYNOPSIS]
        lines.append(f"{' ' * indent}{name.ljust(column - indent)}{wrapped[0]}".rstrip())
        lines.extend(" " * column + more for more in wrapped[1:])
    return lines


def _paragraphs(text: str, width: int) -> List[str]:
    text = textwrap.dedent(text or "").strip() or NO_DESCRIPTION
    lines: List[str] = []
    for i, para in enumerate(p for p in text.split("\n\n") if p.strip()):
        if i:
            lines.append("")
        lines.extend(textwrap.wrap(" ".join(para.split()), width=width) or [""])
    return lines


def _render_top(registry: Registry, width: int) -> str:
    prog = registry.mode.program
    lines = [
        f"usage: {prog} <command> [<subcommand>] [args...]",
        f"       {prog} help [<command> [<subcommand>]]",
        "",
        "Commands:",
    ]
    lines.extend(_listing([(d.name, d.synopsis) for d in registry.visible()], width))
    lines.extend(["", f"Run '{prog} help <command>' for details on a command."])
    return "\n".join(lines)


def _render_command(registry: Registry, descriptor: CommandDescriptor, width: int) -> str:
    prog = registry.mode.program
    lines = [f"{prog} {descriptor.name} - {descriptor.synopsis or NO_SYNOPSIS}", ""]
    lines.extend(_paragraphs(descriptor.description, width))

    visible = descriptor.visible_subcommands()
    if visible:
        lines.extend(["", "Subcommands:"])
        lines.extend(_listing([(s.name, s.synopsis) for s in visible], width))
        lines.extend(
            ["", f"Run '{prog} help {descriptor.name} <subcommand>' for details on a subcommand."]
        )
    return "\n".join(lines)


def _render_subcommand(registry: Registry, descriptor: CommandDescriptor, sub: SubcommandDescriptor, width: int) -> str:
    prog = registry.mode.program
    lines = [f"{prog} {descriptor.name} {sub.name} - {sub.synopsis or NO_SYNOPSIS}", ""]
    lines.extend(_paragraphs(sub.description, width))
    return "\n".join(lines)


def _render_custom(registry: Registry, descriptor: CommandDescriptor, rest: Sequence[str]) -> str:
    assert descriptor.help_handler is not None
    try:
        text = resolve_callable(registry.functions, descriptor.help_handler)(list(rest))
    except Exception as exc:
        raise HandlerExecutionError(("help", descriptor.name, *rest), exc) from exc
    if not isinstance(text, str):
        raise HandlerExecutionError(
            ("help", descriptor.name, *rest),
            TypeError(f"help handler returned {type(text).__name__}, expected str"),
        )
    return text.rstrip("\n")


def render(registry: Registry, command_path: Sequence[str] = (), *, width: Optional[int] = None) -> str:
    """Render help for the top level, a command, or one of its subcommands.

    Raises:
        UnknownCommandError: The command does not exist.
        UnknownSubcommandError: The subcommand does not exist.
        HandlerExecutionError: A custom help handler failed.
    """
    width = width or DEFAULT_WIDTH
    path = tuple(command_path)
    if not path:
        return _render_top(registry, width)

    name, rest = path[0], path[1:]
    descriptor = registry.get(name)
    if descriptor is None:
        raise UnknownCommandError(name)

    if descriptor.help_handler is not None:
        return _render_custom(registry, descriptor, rest)

    if not rest or descriptor.dispatcher is not None:
        return _render_command(registry, descriptor, width)

    sub = descriptor.subcommands.get(rest[0])
    if sub is None or len(rest) > 1:
        raise UnknownSubcommandError(name, " ".join(rest))
    return _render_subcommand(registry, descriptor, sub, width)


__all__ = ["DEFAULT_WIDTH", "NO_SYNOPSIS", "NO_DESCRIPTION", "render"]
