from __future__ import annotations

from pathlib import Path

import pytest

from envboot.core.errors import ModuleValidationError
from envboot.core.registry.metadata import (
    index_module_sources,
    is_metadata_module,
    load_metadata_module,
    load_module_metadata,
)
from envboot.core.registry.models import CommandKind, FileAndFunction, ScriptPath, SourceTier
from helpers.modules import write_module

pytestmark = pytest.mark.fast

GIT_TOOLS_PY = """
def invoke_status(args):
    return 0


def invoke_remote_add(args):
    return 0


def invoke_ext(path, args):
    return 0


def invoke_ext_help(rest):
    return "ext help"


def invoke_shared_helper():
    return None


def invoke_setup():
    return None


def helper_not_a_handler():
    return None
"""


def _git_tools(tmp_path: Path, **overrides) -> Path:
    descriptor = {
        "ModuleName": "git-tools",
        "Version": "1.2.0",
        "Commands": {
            "pull": {"Handler": "pull.sh", "Synopsis": "Pull all repositories"},
            "status": {"Handler": "invoke_status"},
            "remote": {"Subcommands": {"add": {"Handler": "tools.py:invoke_remote_add", "Synopsis": "Add"}}},
            "ext": {"Dispatcher": "invoke_ext", "Help": "invoke_ext_help"},
        },
        "PrivateFunctions": ["invoke_shared_helper"],
        "OnLoad": "invoke_setup",
    }
    descriptor.update(overrides)
    return write_module(
        tmp_path / "git-tools",
        descriptor,
        {"tools.py": GIT_TOOLS_PY, "pull.sh": "#!/bin/sh\nexit 0\n"},
    )


def test_valid_module_produces_one_descriptor_per_command(tmp_path: Path) -> None:
    module_dir = _git_tools(tmp_path)
    descriptors = {d.name: d for d in load_metadata_module(module_dir, tier=SourceTier.SHARED)}

    assert sorted(descriptors) == ["ext", "pull", "remote", "status"]
    for d in descriptors.values():
        assert d.kind is CommandKind.METADATA_MODULE
        assert d.tier is SourceTier.SHARED
        assert d.module_name == "git-tools"

    assert descriptors["pull"].handler == ScriptPath(module_dir / "pull.sh")
    assert descriptors["pull"].synopsis == "Pull all repositories"
    assert descriptors["status"].handler == FileAndFunction(module_dir / "tools.py", "invoke_status")
    assert descriptors["remote"].handler is None
    assert descriptors["remote"].subcommands["add"].handler == FileAndFunction(
        module_dir / "tools.py", "invoke_remote_add"
    )
    assert descriptors["ext"].dispatcher == FileAndFunction(module_dir / "tools.py", "invoke_ext")
    assert descriptors["ext"].help_handler == FileAndFunction(module_dir / "tools.py", "invoke_ext_help")
    assert descriptors["status"].hooks.on_load == FileAndFunction(module_dir / "tools.py", "invoke_setup")


def test_missing_handler_file_names_command_and_target(tmp_path: Path) -> None:
    module_dir = write_module(
        tmp_path / "ps",
        {"ModuleName": "ps", "Version": 1, "Commands": {"pull": {"Handler": "pull.ps1"}}},
    )
    with pytest.raises(ModuleValidationError) as excinfo:
        load_metadata_module(module_dir, tier=SourceTier.SHARED)

    err = excinfo.value
    assert err.module_name == "ps"
    assert any("pull" in issue and "pull.ps1" in issue for issue in err.issues)
    assert "pull.ps1" in str(err)


def test_missing_function_is_reported(tmp_path: Path) -> None:
    module_dir = _git_tools(
        tmp_path,
        Commands={"status": {"Handler": "tools.py:invoke_nope"}},
        PrivateFunctions=[
            "invoke_status",
            "invoke_remote_add",
            "invoke_ext",
            "invoke_ext_help",
            "invoke_shared_helper",
        ],
    )
    with pytest.raises(ModuleValidationError) as excinfo:
        load_metadata_module(module_dir, tier=SourceTier.SHARED)
    assert excinfo.value.issues == ["status: handler function 'invoke_nope' not defined in 'tools.py'"]


def test_undeclared_invoke_functions_reject_the_module(tmp_path: Path) -> None:
    module_dir = _git_tools(tmp_path, PrivateFunctions=[])
    with pytest.raises(ModuleValidationError) as excinfo:
        load_metadata_module(module_dir, tier=SourceTier.SHARED)

    (issue,) = excinfo.value.issues
    assert "undeclared handler functions" in issue
    assert issue.endswith("invoke_shared_helper")
    assert "helper_not_a_handler" not in issue


def test_undeclared_async_invoke_function_rejects_the_module(tmp_path: Path) -> None:
    module_dir = _git_tools(tmp_path)
    with open(module_dir / "tools.py", "a", encoding="utf-8") as fh:
        fh.write("\n\nasync def invoke_background(args):\n    return 0\n")

    with pytest.raises(ModuleValidationError) as excinfo:
        load_metadata_module(module_dir, tier=SourceTier.SHARED)

    (issue,) = excinfo.value.issues
    assert issue.endswith("invoke_background")


def test_all_issues_are_reported_together(tmp_path: Path) -> None:
    module_dir = write_module(
        tmp_path / "multi",
        {
            "ModuleName": "multi",
            "Version": "0.1",
            "Commands": {
                "a": {"Handler": "a.sh"},
                "b": {"Handler": "invoke_b"},
            },
        },
        {"extra.py": "def invoke_orphan(args):\n    return 0\n"},
    )
    with pytest.raises(ModuleValidationError) as excinfo:
        load_metadata_module(module_dir, tier=SourceTier.SHARED)
    issues = excinfo.value.issues
    assert len(issues) == 3
    assert issues[0].startswith("a: ")
    assert issues[1].startswith("b: ")
    assert "invoke_orphan" in issues[2]


def test_command_must_declare_exactly_one_entrypoint(tmp_path: Path) -> None:
    module_dir = write_module(
        tmp_path / "both",
        {
            "ModuleName": "both",
            "Version": "1",
            "Commands": {
                "x": {"Handler": "invoke_x", "Dispatcher": "invoke_x"},
                "y": {"Synopsis": "nothing to run"},
            },
        },
        {"m.py": "def invoke_x(args):\n    return 0\n"},
    )
    with pytest.raises(ModuleValidationError) as excinfo:
        load_metadata_module(module_dir, tier=SourceTier.SHARED)
    issues = excinfo.value.issues
    assert "x: must declare exactly one of Handler, Dispatcher or Subcommands (found: Handler, Dispatcher)" in issues
    assert "y: must declare exactly one of Handler, Dispatcher or Subcommands (found: none)" in issues


def test_ambiguous_bare_function_name_is_rejected(tmp_path: Path) -> None:
    module_dir = write_module(
        tmp_path / "dup",
        {"ModuleName": "dup", "Version": "1", "Commands": {"go": {"Handler": "invoke_go"}}},
        {
            "one.py": "def invoke_go(args):\n    return 0\n",
            "two.py": "def invoke_go(args):\n    return 1\n",
        },
    )
    with pytest.raises(ModuleValidationError, match="defined more than once"):
        load_metadata_module(module_dir, tier=SourceTier.SHARED)


def test_dispatcher_must_be_a_function(tmp_path: Path) -> None:
    module_dir = write_module(
        tmp_path / "disp",
        {"ModuleName": "disp", "Version": "1", "Commands": {"go": {"Dispatcher": "go.sh"}}},
        {"go.sh": "exit 0\n"},
    )
    with pytest.raises(ModuleValidationError, match="must name a function"):
        load_metadata_module(module_dir, tier=SourceTier.SHARED)


def test_targets_cannot_escape_the_module_directory(tmp_path: Path) -> None:
    (tmp_path / "outside.sh").write_text("exit 0\n", encoding="utf-8")
    module_dir = write_module(
        tmp_path / "esc",
        {"ModuleName": "esc", "Version": "1", "Commands": {"go": {"Handler": "../outside.sh"}}},
    )
    with pytest.raises(ModuleValidationError, match="not found"):
        load_metadata_module(module_dir, tier=SourceTier.SHARED)


def test_schema_violations_are_validation_errors(tmp_path: Path) -> None:
    module_dir = write_module(
        tmp_path / "bad",
        {"ModuleName": "bad", "Commands": {"x": {"Handler": "x.sh", "Colour": "red"}}},
    )
    with pytest.raises(ModuleValidationError) as excinfo:
        load_module_metadata(module_dir)
    text = "; ".join(excinfo.value.issues)
    assert "Version" in text
    assert "Colour" in text


def test_unparseable_yaml_names_the_directory(tmp_path: Path) -> None:
    module_dir = tmp_path / "garbled"
    module_dir.mkdir()
    (module_dir / "module.yaml").write_text("Commands: [oops\n", encoding="utf-8")
    with pytest.raises(ModuleValidationError) as excinfo:
        load_module_metadata(module_dir)
    assert excinfo.value.module_name == "garbled"


def test_syntax_errors_in_module_sources_are_issues(tmp_path: Path) -> None:
    module_dir = write_module(
        tmp_path / "syn",
        {"ModuleName": "syn", "Version": "1", "Commands": {"go": {"Handler": "go.sh"}}},
        {"go.sh": "exit 0\n", "broken.py": "def invoke_(:\n"},
    )
    sources = index_module_sources(module_dir)
    assert sources.issues and sources.issues[0].startswith("broken.py: syntax error")
    with pytest.raises(ModuleValidationError):
        load_metadata_module(module_dir, tier=SourceTier.SHARED)


def test_module_sources_are_not_imported(tmp_path: Path) -> None:
    module_dir = write_module(
        tmp_path / "inert",
        {"ModuleName": "inert", "Version": "1", "Commands": {"go": {"Handler": "invoke_go"}}},
        {"inert.py": "raise RuntimeError('imported!')\n\ndef invoke_go(args):\n    return 0\n"},
    )
    (descriptor,) = load_metadata_module(module_dir, tier=SourceTier.OVERRIDE)
    assert descriptor.tier is SourceTier.OVERRIDE


def test_is_metadata_module(tmp_path: Path) -> None:
    assert not is_metadata_module(tmp_path)
    (tmp_path / "module.yaml").write_text("ModuleName: x\n", encoding="utf-8")
    assert is_metadata_module(tmp_path)
