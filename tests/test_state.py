from __future__ import annotations

import os
from pathlib import Path

import pytest

from conftest import agent_dir, write_skill
from skills_manager import scanner, state
from skills_manager.agents import AGENT_DEFINITIONS
from skills_manager.config import Layout
from skills_manager.errors import UnknownAgent
from skills_manager.metadata import NO_DESCRIPTION
from skills_manager.models import AgentSkillStatus
from skills_manager.state import scan_agent, scan_all


@pytest.fixture
def scenario(layout: Layout) -> Layout:
    """
    Global: tailwind-v4-shadcn, ui-ux-pro-max.
    Cursor: symlink tailwind-v4-shadcn -> global copy, real directory custom-skill.
    """
    write_skill(layout.global_dir, "tailwind-v4-shadcn", "Tailwind v4 with shadcn/ui")
    write_skill(layout.global_dir, "ui-ux-pro-max", "UI/UX guidance")
    cursor = agent_dir(layout, "cursor")
    os.symlink(layout.global_dir / "tailwind-v4-shadcn", cursor / "tailwind-v4-shadcn")
    write_skill(cursor, "custom-skill", "Only lives in Cursor")
    return layout


def test_end_to_end_global_view(scenario: Layout) -> None:
    app = scan_all(scenario)

    assert [s.name for s in app.skills] == ["tailwind-v4-shadcn", "ui-ux-pro-max"]
    tailwind = app.get("tailwind-v4-shadcn")
    assert tailwind.linked_agents == {"cursor"}
    assert tailwind.symlinked_agents == {"cursor"}
    assert tailwind.metadata.description == "Tailwind v4 with shadcn/ui"
    ui = app.get("ui-ux-pro-max")
    assert ui.linked_agents == frozenset()
    assert ui.symlinked_agents == frozenset()
    # custom-skill lives only in an agent directory
    assert app.get("custom-skill") is None
    assert app.scan_errors == {}


def test_end_to_end_agent_view(scenario: Layout) -> None:
    detail = scan_agent(scenario, "cursor")

    assert detail.agent.id == "cursor"
    assert detail.agent.detected
    assert {s.name for s in detail.skills} == {"tailwind-v4-shadcn", "ui-ux-pro-max", "custom-skill"}

    tailwind = detail.get("tailwind-v4-shadcn")
    assert tailwind.status is AgentSkillStatus.SYMLINK
    assert tailwind.in_global
    assert tailwind.source_path == str(scenario.global_dir / "tailwind-v4-shadcn")

    ui = detail.get("ui-ux-pro-max")
    assert ui.status is AgentSkillStatus.NOT_INSTALLED
    assert ui.in_global
    assert ui.source_path is None
    assert ui.metadata.description == "UI/UX guidance"

    custom = detail.get("custom-skill")
    assert custom.status is AgentSkillStatus.LOCAL
    assert not custom.in_global
    assert custom.source_path == str(agent_dir(scenario, "cursor") / "custom-skill")
    assert custom.metadata.description == "Only lives in Cursor"


def test_local_copy_counts_as_linked_but_not_symlinked(layout: Layout) -> None:
    write_skill(layout.global_dir, "shared")
    write_skill(agent_dir(layout, "codex"), "shared", "codex's own copy")
    os.symlink(layout.global_dir / "shared", agent_dir(layout, "cursor") / "shared")

    skill = scan_all(layout).get("shared")
    assert skill.linked_agents == {"codex", "cursor"}
    assert skill.symlinked_agents == {"cursor"}

    codex_view = scan_agent(layout, "codex").get("shared")
    assert codex_view.status is AgentSkillStatus.LOCAL
    assert codex_view.in_global
    # local status reads the agent's own copy
    assert codex_view.metadata.description == "codex's own copy"


def test_symlinked_agents_subset_of_linked_agents(layout: Layout) -> None:
    for name in ("a", "b", "c"):
        write_skill(layout.global_dir, name)
    os.symlink(layout.global_dir / "a", agent_dir(layout, "cursor") / "a")
    write_skill(agent_dir(layout, "cursor"), "b")
    os.symlink(layout.global_dir / "b", agent_dir(layout, "goose") / "b")
    os.symlink(layout.home / "missing", agent_dir(layout, "goose") / "c")

    for skill in scan_all(layout).skills:
        assert skill.symlinked_agents <= skill.linked_agents


def test_status_matches_entry_kind(layout: Layout) -> None:
    write_skill(layout.global_dir, "in-global")
    cursor = agent_dir(layout, "cursor")
    os.symlink(layout.global_dir / "in-global", cursor / "in-global")
    write_skill(cursor, "real-dir")
    os.symlink(layout.home / "nowhere", cursor / "dangling")
    (cursor / "README.txt").write_text("stray file")

    detail = scan_agent(layout, "cursor")
    statuses = {s.name: s.status for s in detail.skills}
    assert statuses == {
        "in-global": AgentSkillStatus.SYMLINK,
        "real-dir": AgentSkillStatus.LOCAL,
        "dangling": AgentSkillStatus.SYMLINK,
    }


def test_broken_symlink_reports_raw_target_and_default_metadata(layout: Layout) -> None:
    cursor = agent_dir(layout, "cursor")
    os.symlink("../../.agents/skills/deleted", cursor / "deleted")

    skill = scan_agent(layout, "cursor").get("deleted")
    assert skill.status is AgentSkillStatus.SYMLINK
    assert skill.source_path == "../../.agents/skills/deleted"
    assert not skill.in_global
    assert skill.metadata.name == "deleted"
    assert skill.metadata.description == NO_DESCRIPTION


def test_stray_symlink_in_global_directory_is_skipped(layout: Layout) -> None:
    write_skill(layout.global_dir, "real")
    elsewhere = write_skill(layout.home / "elsewhere", "linked-in")
    os.symlink(elsewhere, layout.global_dir / "linked-in")

    assert [s.name for s in scan_all(layout).skills] == ["real"]
    assert scan_agent(layout, "cursor").get("linked-in") is None


def test_missing_global_directory_is_empty(layout: Layout) -> None:
    write_skill(agent_dir(layout, "cursor"), "mine")

    assert scan_all(layout).skills == ()
    detail = scan_agent(layout, "cursor")
    assert [(s.name, s.in_global) for s in detail.skills] == [("mine", False)]


def test_undetected_agent_view_lists_global_skills_as_not_installed(layout: Layout) -> None:
    write_skill(layout.global_dir, "g")

    detail = scan_agent(layout, "windsurf")
    assert not detail.agent.detected
    assert [(s.name, s.status) for s in detail.skills] == [("g", AgentSkillStatus.NOT_INSTALLED)]


def test_unknown_agent(layout: Layout) -> None:
    with pytest.raises(UnknownAgent):
        scan_agent(layout, "nope")


def test_global_view_scan_count_is_agents_plus_one(
    layout: Layout, monkeypatch: pytest.MonkeyPatch
) -> None:
    for i in range(6):
        write_skill(layout.global_dir, f"skill-{i}")
    for agent_id in ("cursor", "codex", "goose"):
        write_skill(agent_dir(layout, agent_id), "skill-0")

    calls: list[Path] = []

    def counting_list_entries(dir_path: Path):
        calls.append(dir_path)
        return scanner.list_entries(dir_path)

    monkeypatch.setattr(state, "list_entries", counting_list_entries)
    scan_all(layout)

    assert len(calls) == len(AGENT_DEFINITIONS) + 1
    assert len(set(calls)) == len(calls), "each directory is listed once"


def test_agent_view_scans_two_directories(layout: Layout, monkeypatch: pytest.MonkeyPatch) -> None:
    write_skill(layout.global_dir, "a")
    calls: list[Path] = []

    def counting_list_entries(dir_path: Path):
        calls.append(dir_path)
        return scanner.list_entries(dir_path)

    monkeypatch.setattr(state, "list_entries", counting_list_entries)
    scan_agent(layout, "cursor")
    assert sorted(map(str, calls)) == sorted(
        [str(layout.global_dir), str(layout.home / ".cursor/skills")]
    )


def test_one_agent_scan_failure_does_not_abort_aggregate(
    layout: Layout, monkeypatch: pytest.MonkeyPatch
) -> None:
    write_skill(layout.global_dir, "s")
    os.symlink(layout.global_dir / "s", agent_dir(layout, "cursor") / "s")
    claude = agent_dir(layout, "claude-code")
    write_skill(claude, "s")
    # A file where an agent's directory should be
    (layout.home / ".codex").mkdir()
    (layout.home / ".codex" / "skills").write_text("oops")

    real_scandir = os.scandir

    def fake_scandir(path):
        if Path(path) == claude:
            raise PermissionError(13, "Permission denied", str(claude))
        return real_scandir(path)

    monkeypatch.setattr(scanner.os, "scandir", fake_scandir)
    app = scan_all(layout)

    assert set(app.scan_errors) == {"claude-code", "codex"}
    assert app.scan_errors["claude-code"]["kind"] == "io_failure"
    assert app.scan_errors["codex"]["kind"] == "invalid_path"
    assert app.scan_errors["codex"]["agent_id"] == "codex"
    assert app.get("s").linked_agents == {"cursor"}
