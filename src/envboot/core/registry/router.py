"""Route an invocation to its handler.

The router never parses flags or positionals: a handler receives the
remaining argument tokens in order and owns their interpretation.

Resolution rules for ``<command> [<segment>...] [args...]``:

- ``help [<command> [<subcommand>]]`` shows help unless a command is
  actually named ``help``;
- a dispatcher receives the remaining path segments and arguments untouched;
- with subcommands, the next segment selects one of them (one level only)
  and an unknown segment is an ``UnknownSubcommandError``;
- without subcommands, leftover segments are handed to the handler as
  leading arguments;
- a bare command runs its default handler or, lacking one, shows help.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, TextIO

from envboot.core.errors import HandlerExecutionError, RoutingError, UnknownCommandError, UnknownSubcommandError
from envboot.core.registry.help import render
from envboot.core.registry.models import (
    CommandDescriptor,
    HandlerReference,
    Invocation,
    Registry,
    ScriptPath,
)
from envboot.core.registry.runner import ExecutionContext, normalize_status, resolve_callable, run_script
from envboot.core.registry.trace import record

logger = logging.getLogger(__name__)

HELP_COMMAND = "help"


class Action(Enum):
    EXECUTE = "execute"
    DISPATCH = "dispatch"
    HELP = "help"


@dataclass(frozen=True)
class Resolution:
    """Outcome of routing: what to run (or which help to show) and with what."""

    action: Action
    command_path: tuple[str, ...]
    descriptor: Optional[CommandDescriptor] = None
    handler: Optional[HandlerReference] = None
    path: tuple[str, ...] = ()
    args: tuple[str, ...] = ()

    @property
    def help_path(self) -> tuple[str, ...]:
        return self.command_path


def _resolved(resolution: Resolution) -> Resolution:
    descriptor = resolution.descriptor
    record(
        "route.resolved",
        command=" ".join(resolution.command_path) or "<help>",
        action=resolution.action.value,
        tier=descriptor.tier.value if descriptor is not None else "-",
        source=descriptor.source if descriptor is not None else "-",
    )
    return resolution


def resolve(registry: Registry, command_path: Sequence[str], args: Sequence[str] = ()) -> Resolution:
    """Resolve a command path against the registry.

    Raises:
        UnknownCommandError: The first segment names no command.
        UnknownSubcommandError: The second segment names no subcommand of a
            command that has subcommands.
    """
    path = tuple(command_path)
    args = tuple(args)
    if not path:
        return _resolved(Resolution(action=Action.HELP, command_path=()))

    name, rest = path[0], path[1:]
    if name == HELP_COMMAND and name not in registry:
        return _resolved(Resolution(action=Action.HELP, command_path=rest))

    descriptor = registry.get(name)
    if descriptor is None:
        raise UnknownCommandError(name)

    if descriptor.dispatcher is not None:
        return _resolved(
            Resolution(
                action=Action.DISPATCH,
                command_path=(name,),
                descriptor=descriptor,
                handler=descriptor.dispatcher,
                path=rest,
                args=args,
            )
        )

    if rest and descriptor.subcommands:
        sub = descriptor.subcommands.get(rest[0])
        if sub is not None:
            return _resolved(
                Resolution(
                    action=Action.EXECUTE,
                    command_path=(name, sub.name),
                    descriptor=descriptor,
                    handler=sub.handler,
                    args=rest[1:] + args,
                )
            )
        raise UnknownSubcommandError(name, rest[0])

    if descriptor.handler is not None:
        return _resolved(
            Resolution(
                action=Action.EXECUTE,
                command_path=(name,),
                descriptor=descriptor,
                handler=descriptor.handler,
                args=rest + args,
            )
        )

    return _resolved(Resolution(action=Action.HELP, command_path=(name,), descriptor=descriptor))


def _call(registry: Registry, handler: HandlerReference, *call_args: object):
    return resolve_callable(registry.functions, handler)(*call_args)


def _exit_status(exc: SystemExit, err: TextIO) -> int:
    code = exc.code
    if code is None:
        return 0
    if isinstance(code, bool):
        return int(code)
    if isinstance(code, int):
        return code
    print(code, file=err)
    return 1


def execute(
    registry: Registry,
    resolution: Resolution,
    *,
    context: Optional[ExecutionContext] = None,
    err: Optional[TextIO] = None,
) -> int:
    """Run the handler selected by ``resolve``.

    A ``SystemExit`` message from an in-process handler goes to ``err``
    (default ``sys.stderr``).

    Returns:
        The handler's status, forwarded unmodified.

    Raises:
        HandlerExecutionError: The handler raised or could not be started.
    """
    if resolution.action is Action.HELP or resolution.handler is None:
        raise ValueError("help resolutions have nothing to execute")
    context = context or ExecutionContext(mode=registry.mode.value)
    descriptor = resolution.descriptor
    hooks = descriptor.hooks if descriptor is not None else None
    handler = resolution.handler

    try:
        if hooks is not None and hooks.on_load is not None:
            _call(registry, hooks.on_load)
        try:
            if isinstance(handler, ScriptPath):
                return run_script(
                    handler.path,
                    resolution.args,
                    command_path=resolution.command_path,
                    context=context,
                )
            if resolution.action is Action.DISPATCH:
                result = _call(registry, handler, list(resolution.path), list(resolution.args))
            else:
                result = _call(registry, handler, list(resolution.args))
            return normalize_status(result)
        finally:
            if hooks is not None and hooks.on_unload is not None:
                _call(registry, hooks.on_unload)
    except SystemExit as exc:
        # In-process handlers commonly end with argparse's sys.exit().
        return _exit_status(exc, err or sys.stderr)
    except Exception as exc:
        raise HandlerExecutionError(resolution.command_path, exc) from exc


def dispatch(
    registry: Registry,
    invocation: Invocation,
    *,
    out: TextIO,
    err: TextIO,
    context: Optional[ExecutionContext] = None,
    width: Optional[int] = None,
) -> int:
    """Resolve and run one invocation, reporting failures the CLI way.

    Exit codes: the handler's own status on execution, 0 for help, 2 for
    routing errors, 1 for handler failures.
    """
    try:
        resolution = resolve(registry, invocation.command_path, invocation.args)
        if resolution.action is Action.HELP:
            print(render(registry, resolution.help_path, width=width), file=out)
            return 0
        status = execute(registry, resolution, context=context, err=err)
    except RoutingError as exc:
        print(f"Error: {exc}", file=err)
        try:
            usage = render(registry, exc.help_path, width=width)
        except HandlerExecutionError as help_exc:
            logger.debug("Help failed for %s", " ".join(help_exc.command_path), exc_info=help_exc.cause)
            print(f"Error: {help_exc}", file=err)
        else:
            print(usage, file=err)
        return 2
    except HandlerExecutionError as exc:
        logger.debug("Handler failed for %s", " ".join(exc.command_path), exc_info=exc.cause)
        print(f"Error: {exc}", file=err)
        return 1

    if status != 0:
        logger.debug("%s exited with status %d", " ".join(resolution.command_path), status)
    return status


__all__ = ["HELP_COMMAND", "Action", "Resolution", "resolve", "execute", "dispatch"]
