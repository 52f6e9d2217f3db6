from __future__ import annotations

from pathlib import Path

import pytest

from envboot.core.modes import Mode
from envboot.core.registry.models import (
    CommandDescriptor,
    CommandKind,
    FunctionName,
    Invocation,
    Registry,
    ScriptPath,
    SourceTier,
    SubcommandDescriptor,
)

pytestmark = pytest.mark.fast


def _cmd(name: str, **kwargs) -> CommandDescriptor:
    kwargs.setdefault("handler", FunctionName(f"global_{name}"))
    return CommandDescriptor(
        name=name,
        kind=CommandKind.EMBEDDED_FUNCTION,
        tier=SourceTier.EMBEDDED,
        source="test",
        **kwargs,
    )


def test_dispatcher_excludes_subcommands() -> None:
    sub = SubcommandDescriptor(name="a", handler=FunctionName("f"))
    with pytest.raises(ValueError, match="dispatcher"):
        _cmd("x", handler=None, dispatcher=FunctionName("d"), subcommands={"a": sub})


def test_dispatcher_excludes_direct_handler() -> None:
    with pytest.raises(ValueError, match="dispatcher"):
        _cmd("x", dispatcher=FunctionName("d"))


def test_descriptor_needs_something_to_execute() -> None:
    with pytest.raises(ValueError, match="nothing to execute"):
        _cmd("x", handler=None)


def test_subcommands_only_descriptor_is_valid() -> None:
    sub = SubcommandDescriptor(name="a", handler=ScriptPath(Path("a.sh")))
    desc = _cmd("pkg", handler=None, subcommands={"a": sub})
    assert desc.handler is None
    assert list(desc.subcommands) == ["a"]


def test_descriptor_mappings_are_read_only() -> None:
    sub = SubcommandDescriptor(name="a", handler=FunctionName("f"))
    desc = _cmd("pkg", subcommands={"a": sub})
    with pytest.raises(TypeError):
        desc.subcommands["b"] = sub  # type: ignore[index]


def test_visible_subcommands_are_sorted_and_skip_hidden() -> None:
    subs = {
        "zeta": SubcommandDescriptor(name="zeta", handler=FunctionName("z")),
        "alpha": SubcommandDescriptor(name="alpha", handler=FunctionName("a")),
        "secret": SubcommandDescriptor(name="secret", handler=FunctionName("s"), hidden=True),
    }
    desc = _cmd("pkg", subcommands=subs)
    assert [s.name for s in desc.visible_subcommands()] == ["alpha", "zeta"]


def test_registry_iteration_and_visibility() -> None:
    registry = Registry(
        mode=Mode.GLOBAL,
        commands={"b": _cmd("b"), "a": _cmd("a"), "h": _cmd("h", hidden=True)},
    )
    assert [d.name for d in registry] == ["a", "b", "h"]
    assert [d.name for d in registry.visible()] == ["a", "b"]
    assert "h" in registry
    assert registry.get("missing") is None
    assert len(registry) == 3
    with pytest.raises(TypeError):
        registry.commands["c"] = _cmd("c")  # type: ignore[index]


@pytest.mark.parametrize(
    "argv, path, args",
    [
        ([], (), ()),
        (["pkg"], ("pkg",), ()),
        (["pkg", "install", "x"], ("pkg", "install", "x"), ()),
        (["pkg", "install", "--force", "x"], ("pkg", "install"), ("--force", "x")),
        (["--json"], (), ("--json",)),
    ],
)
def test_invocation_from_argv_splits_at_first_option(argv, path, args) -> None:
    inv = Invocation.from_argv(Mode.PROJECT, argv)
    assert inv.mode is Mode.PROJECT
    assert inv.command_path == path
    assert inv.args == args
