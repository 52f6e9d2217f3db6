import os
import sys
from pathlib import Path

import pytest

# Keep the repository free of Python bytecode and __pycache__ artifacts during tests.
sys.dont_write_bytecode = True

TESTS_ROOT = Path(__file__).resolve().parent
REPO_ROOT = TESTS_ROOT.parent
SRC_ROOT = REPO_ROOT / "src"

# Make src/ importable as 'envboot' and tests/ as 'helpers'
for p in (SRC_ROOT, TESTS_ROOT):
    if str(p) not in sys.path:
        sys.path.insert(0, str(p))


from envboot.core.logging import reset_logging_for_tests  # noqa: E402
from envboot.core.schemas import load_schema  # noqa: E402


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Run every test outside any project with a private ENVBOOT_HOME."""
    for key in list(os.environ):
        if key.startswith("ENVBOOT_"):
            monkeypatch.delenv(key, raising=False)

    home = tmp_path / "envboot-home"
    home.mkdir()
    monkeypatch.setenv("ENVBOOT_HOME", str(home))

    work = tmp_path / "work"
    work.mkdir()
    monkeypatch.chdir(work)

    yield home

    reset_logging_for_tests()
    load_schema.cache_clear()


@pytest.fixture
def envboot_home(isolated_env: Path) -> Path:
    return isolated_env


@pytest.fixture
def project_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """A project directory (with ``.envboot/``) that is also the cwd."""
    root = tmp_path / "project"
    (root / ".envboot").mkdir(parents=True)
    monkeypatch.chdir(root)
    return root
