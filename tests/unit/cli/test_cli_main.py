from __future__ import annotations

import os
from pathlib import Path

import pytest

from envboot import __version__
from envboot.cli._dispatcher import main, split_global_options
from helpers.modules import write_module

GREET_PY = """
def invoke_greet(args):
    print("greet:" + ",".join(args))
    return 0
"""


@pytest.mark.fast
class TestGlobalOptions:
    def test_split_stops_at_first_command_token(self) -> None:
        assert split_global_options(["-v", "--trace", "pkg", "-v"]) == (["-v", "--trace"], ["pkg", "-v"])
        assert split_global_options(["--help"]) == (["--help"], [])
        assert split_global_options([]) == ([], [])

    def test_version_flag_uses_program_name(self, capsys) -> None:
        assert main(["--version"], prog="envboot-project") == 0
        assert capsys.readouterr().out.strip() == f"envboot-project {__version__}"

    def test_unknown_program_name_is_a_usage_error(self, capsys) -> None:
        assert main([], prog="not-envboot") == 2
        assert "Unrecognised entry point" in capsys.readouterr().err


@pytest.mark.fast
class TestRouting:
    def test_no_arguments_prints_top_level_help(self, capsys) -> None:
        assert main([], prog="envboot") == 0
        out = capsys.readouterr().out
        assert out.startswith("usage: envboot <command>")
        for name in ("config", "env", "modules", "version"):
            assert f"\n  {name} " in out
        assert "env-debug" not in out

    def test_project_mode_lists_project_commands(self, capsys) -> None:
        assert main(["help"], prog="envboot-project") == 0
        out = capsys.readouterr().out
        assert "\n  init " in out
        assert "\n  version " not in out

    def test_help_flag_and_help_command_agree(self, capsys) -> None:
        assert main(["help", "env"], prog="envboot") == 0
        via_command = capsys.readouterr().out
        assert main(["-h", "env"], prog="envboot") == 0
        via_flag = capsys.readouterr().out
        assert via_command == via_flag
        assert "Subcommands:" in via_command

    def test_unknown_command_exits_2(self, capsys) -> None:
        assert main(["frobnicate"], prog="envboot") == 2
        err = capsys.readouterr().err
        assert "unknown command 'frobnicate'" in err
        assert "Commands:" in err

    def test_metadata_handlers_run_in_process(self, capsys) -> None:
        assert main(["env", "show"], prog="envboot") == 0
        assert capsys.readouterr().out.startswith("python: ")

    def test_project_override_module_wins(self, capsys, project_root: Path) -> None:
        write_module(
            project_root / ".envboot" / "commands" / "global" / "greet",
            {"ModuleName": "greet", "Version": "1", "Commands": {"env": {"Handler": "invoke_greet"}}},
            {"greet.py": GREET_PY},
        )
        assert main(["env", "a", "--loud"], prog="envboot") == 0
        assert capsys.readouterr().out.strip() == "greet:a,--loud"

    def test_embedded_tier_used_without_builtin_directory(self, capsys, monkeypatch, tmp_path: Path) -> None:
        monkeypatch.setenv("ENVBOOT_PATHS__BUILTIN_COMMANDS_DIR", str(tmp_path / "no-builtins"))
        assert main(["version"], prog="envboot") == 0
        assert capsys.readouterr().out.strip() == f"envboot {__version__}"

    def test_trace_prints_decisions(self, capsys) -> None:
        assert main(["--trace", "help"], prog="envboot") == 0
        err = capsys.readouterr().err
        assert "[trace] discovery.admitted command=version" in err
        assert "[trace] route.resolved" in err

    def test_invalid_configuration_exits_1(self, capsys, monkeypatch) -> None:
        monkeypatch.setenv("ENVBOOT_HELP__WIDTH", "wide")
        assert main(["help"], prog="envboot") == 1
        assert capsys.readouterr().err.startswith("Error: Invalid configuration")

    def test_verbose_logs_to_stderr(self, capsys) -> None:
        assert main(["-v", "help"], prog="envboot") == 0
        assert "envboot.cli._dispatcher" in capsys.readouterr().err

    def test_log_file_from_configuration(self, envboot_home: Path, monkeypatch) -> None:
        monkeypatch.setenv("ENVBOOT_LOGGING__PATH", "logs/envboot.log")
        monkeypatch.setenv("ENVBOOT_LOGGING__LEVEL", "DEBUG")
        assert main(["help"], prog="envboot") == 0
        log_file = envboot_home.resolve() / "logs" / "envboot.log"
        assert log_file.is_file()


@pytest.mark.slow
class TestBundledScripts:
    @pytest.fixture(autouse=True)
    def _importable_src(self, monkeypatch) -> None:
        src = Path(__file__).resolve().parents[3] / "src"
        existing = os.environ.get("PYTHONPATH")
        monkeypatch.setenv("PYTHONPATH", os.pathsep.join(p for p in (str(src), existing) if p))

    def test_version_script_runs_as_subprocess(self, capfd) -> None:
        assert main(["version"], prog="envboot") == 0
        assert capfd.readouterr().out.strip() == f"envboot {__version__}"

    def test_init_script_creates_project(self, capfd, tmp_path: Path) -> None:
        root = tmp_path / "scripted"
        root.mkdir()
        assert main(["init", str(root)], prog="envboot-project") == 0
        assert (root / ".envboot" / "config.yaml").is_file()
        assert "Created:" in capfd.readouterr().out
