from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from skills_manager.config import (
    APP_NAME,
    Layout,
    resolve_global_dir,
    resolve_home,
    resolve_log_file,
    resolve_ops_log_file,
)
from skills_manager.log import configure_logging, log_operation


def test_home_from_skills_home(home: Path) -> None:
    assert resolve_home() == home


def test_home_falls_back_to_home_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("SKILLS_HOME", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))
    assert resolve_home() == tmp_path


def test_global_dir_default_and_override(home: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    assert resolve_global_dir() == home / ".agents" / "skills"
    assert Layout.from_env() == Layout.for_home(home)

    monkeypatch.setenv("GLOBAL_SKILLS_DIR", str(tmp_path / "elsewhere"))
    layout = Layout.from_env()
    assert layout.home == home
    assert layout.global_dir == tmp_path / "elsewhere"
    assert layout.global_skill("x") == tmp_path / "elsewhere" / "x"


def test_log_files_default_under_home(home: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("LOG_FILE", raising=False)
    monkeypatch.delenv("OPS_LOG_FILE", raising=False)
    assert resolve_log_file().parent == home / ".agents" / "logs"
    assert resolve_ops_log_file().parent == home / ".agents" / "logs"
    assert resolve_log_file() != resolve_ops_log_file()


def test_configure_logging_writes_file_once(home: Path) -> None:
    logger = configure_logging()
    again = configure_logging()

    assert logger is again
    assert logger.name == APP_NAME
    assert len(logger.handlers) == 2
    logging.getLogger(f"{APP_NAME}.test").info("hello from a child logger")
    for handler in logger.handlers:
        handler.flush()

    text = resolve_log_file().read_text(encoding="utf-8")
    assert "Logging initialized" in text
    assert "hello from a child logger" in text


def test_log_operation_appends_json_lines(home: Path) -> None:
    log_operation("link", {"agent": "cursor", "skill": "a"})
    log_operation("unlink", {"agent": "cursor", "skill": "a"})

    lines = resolve_ops_log_file().read_text(encoding="utf-8").splitlines()
    records = [json.loads(line) for line in lines]
    assert [r["op"] for r in records] == ["link", "unlink"]
    assert records[0]["agent"] == "cursor"
    assert "ts" in records[0]


def test_relative_paths_are_made_absolute(home: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(home)
    monkeypatch.setenv("GLOBAL_SKILLS_DIR", "shared/skills")
    monkeypatch.setenv("SKILLS_HOME", ".")

    layout = Layout.from_env()
    assert layout.home == home
    assert layout.global_dir == home / "shared" / "skills"
    assert Layout.for_home(Path(".")).global_dir == home / ".agents" / "skills"
