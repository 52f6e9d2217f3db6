"""Stable error types for discovery, validation and routing.

This module intentionally contains only exception classes so that tests that
reload other envboot modules do not create multiple distinct exception class
objects (which breaks `pytest.raises` matching).
"""

from __future__ import annotations

from typing import Iterable, Sequence


class EnvbootError(Exception):
    """Base class for all envboot errors."""


class ModeResolutionError(EnvbootError, ValueError):
    """Raised when the invoked entry point does not map to a known mode."""


class ConfigError(EnvbootError, ValueError):
    """Raised when configuration files or overrides are malformed."""


class DiscoveryWarning(UserWarning):
    """A non-fatal discovery problem (e.g. an optional directory is missing).

    Instances are built and logged by the discovery engine; they are never
    raised.
    """


class ModuleValidationError(EnvbootError):
    """A metadata module is inconsistent and was not admitted."""

    def __init__(self, module_name: str, issues: Iterable[str]) -> None:
        self.module_name = module_name
        self.issues = list(issues)
        details = "; ".join(self.issues) or "unknown problem"
        super().__init__(f"module '{module_name}' failed validation: {details}")


class RoutingError(EnvbootError):
    """Base class for invocation routing failures.

    ``help_path`` is the command path whose help should be shown alongside
    the error message.
    """

    help_path: tuple[str, ...] = ()


class UnknownCommandError(RoutingError):
    def __init__(self, command: str) -> None:
        self.command = command
        self.help_path = ()
        super().__init__(f"unknown command '{command}'")


class UnknownSubcommandError(RoutingError):
    def __init__(self, command: str, subcommand: str) -> None:
        self.command = command
        self.subcommand = subcommand
        self.help_path = (command,)
        super().__init__(f"unknown subcommand '{subcommand}' for command '{command}'")


class HandlerExecutionError(EnvbootError):
    """The resolved handler itself failed.

    Carries the command path for context; the original exception is kept as
    ``cause`` and chained as ``__cause__``.
    """

    def __init__(self, command_path: Sequence[str], cause: BaseException) -> None:
        self.command_path = tuple(command_path)
        self.cause = cause
        super().__init__(f"{' '.join(self.command_path)}: {cause}")


__all__ = [
    "EnvbootError",
    "ModeResolutionError",
    "ConfigError",
    "DiscoveryWarning",
    "ModuleValidationError",
    "RoutingError",
    "UnknownCommandError",
    "UnknownSubcommandError",
    "HandlerExecutionError",
]
