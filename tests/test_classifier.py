from __future__ import annotations

from pathlib import Path

import pytest

from skills_manager.classifier import classify, source_path_for
from skills_manager.models import AgentSkillStatus, DirEntry, EntryKind


def _entry(kind: EntryKind, target: str | None = None) -> DirEntry:
    return DirEntry(name="s", kind=kind, path=Path("/agent/skills/s"), target=target)


@pytest.mark.parametrize("in_global", [True, False])
def test_absent_is_not_installed(in_global: bool) -> None:
    assert classify(None, in_global) is AgentSkillStatus.NOT_INSTALLED
    assert source_path_for(None) is None


@pytest.mark.parametrize("in_global", [True, False])
def test_symlink_is_symlink_even_when_broken(in_global: bool) -> None:
    entry = _entry(EntryKind.SYMLINK, "/gone/s")
    assert classify(entry, in_global) is AgentSkillStatus.SYMLINK
    assert source_path_for(entry) == "/gone/s"


@pytest.mark.parametrize("in_global", [True, False])
def test_directory_is_local(in_global: bool) -> None:
    entry = _entry(EntryKind.DIRECTORY)
    assert classify(entry, in_global) is AgentSkillStatus.LOCAL
    assert source_path_for(entry) == "/agent/skills/s"


def test_stray_entries_are_rejected() -> None:
    with pytest.raises(ValueError):
        classify(_entry(EntryKind.OTHER))
