from __future__ import annotations

import logging
from pathlib import Path

import pytest

from envboot.core.logging import configure_logging, reset_logging_for_tests

pytestmark = pytest.mark.fast


def test_file_logging_writes_to_configured_path(tmp_path: Path) -> None:
    log_path = tmp_path / "logs" / "envboot.log"
    configure_logging(level="INFO", log_path=log_path)

    logging.getLogger("envboot.test").info("hello from test")
    for h in logging.getLogger().handlers:
        h.flush()

    text = log_path.read_text(encoding="utf-8")
    assert "INFO envboot.test: hello from test" in text


def test_configure_is_idempotent_for_same_path(tmp_path: Path) -> None:
    log_path = tmp_path / "envboot.log"
    before = len(logging.getLogger().handlers)
    configure_logging(log_path=log_path)
    configure_logging(log_path=log_path)
    assert len(logging.getLogger().handlers) == before + 1


def test_verbose_adds_stderr_handler_and_reset_removes_it() -> None:
    before = list(logging.getLogger().handlers)
    configure_logging(verbose=True)
    added = [h for h in logging.getLogger().handlers if h not in before]
    assert len(added) == 1
    assert added[0].level == logging.DEBUG
    assert logging.getLogger().level == logging.DEBUG

    reset_logging_for_tests()
    assert logging.getLogger().handlers == before


def test_unknown_level_falls_back_to_info(tmp_path: Path) -> None:
    configure_logging(level="chatty", log_path=tmp_path / "x.log")
    assert logging.getLogger().level == logging.INFO
