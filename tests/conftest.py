from __future__ import annotations

import logging
from pathlib import Path

import pytest

from skills_manager.agents import get_agent
from skills_manager.config import APP_NAME, Layout
from skills_manager.metadata import format_skill_md
from skills_manager.models import SkillMetadata


@pytest.fixture
def home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """A throwaway home directory; every path the code resolves hangs off it."""
    home_dir = tmp_path / "home"
    home_dir.mkdir()
    monkeypatch.setenv("SKILLS_HOME", str(home_dir))
    monkeypatch.delenv("GLOBAL_SKILLS_DIR", raising=False)
    monkeypatch.setenv("LOG_FILE", str(tmp_path / "logs" / "skills_manager.log"))
    monkeypatch.setenv("OPS_LOG_FILE", str(tmp_path / "logs" / "operations.log"))
    return home_dir


@pytest.fixture
def layout(home: Path) -> Layout:
    return Layout.for_home(home)


@pytest.fixture(autouse=True)
def _reset_app_logger():
    yield
    logger = logging.getLogger(APP_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def write_skill(
    parent: Path,
    name: str,
    description: str = "",
    allowed_tools: tuple[str, ...] = (),
    extra_files: dict[str, str] | None = None,
) -> Path:
    """Create <parent>/<name>/SKILL.md (plus optional extra files) and return the skill dir."""
    skill_dir = parent / name
    skill_dir.mkdir(parents=True)
    meta = SkillMetadata(
        name=name,
        description=description or f"{name} description",
        allowed_tools=allowed_tools,
    )
    (skill_dir / "SKILL.md").write_text(format_skill_md(meta, f"# {name}\n"), encoding="utf-8")
    for rel, content in (extra_files or {}).items():
        target = skill_dir / rel
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
    return skill_dir


def agent_dir(layout: Layout, agent_id: str, create: bool = True) -> Path:
    path = layout.agent_dir(get_agent(agent_id, layout.home).path)
    if create:
        path.mkdir(parents=True, exist_ok=True)
    return path


def snapshot_tree(root: Path) -> dict[str, bytes]:
    """Map of relative file path -> bytes, for byte-for-byte comparisons."""
    return {
        p.relative_to(root).as_posix(): p.read_bytes()
        for p in sorted(root.rglob("*"))
        if p.is_file()
    }
