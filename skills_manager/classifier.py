"""
skills_manager.classifier

Per (skill, agent) status classification. Pure: no filesystem access.
"""

from __future__ import annotations

from skills_manager.models import AgentSkillStatus, DirEntry, EntryKind


def classify(agent_entry: DirEntry | None, in_global: bool = False) -> AgentSkillStatus:
    """
    function_purpose: Map an agent-directory entry (or its absence) to an AgentSkillStatus.

    - absent -> NOT_INSTALLED
    - symlink -> SYMLINK, whether or not the target still resolves
    - directory -> LOCAL

    `in_global` is accepted so callers can pass both facts together, but it never
    changes the result; it is surfaced separately as AgentSkill.in_global.
    Stray entries (EntryKind.OTHER) must be filtered out before classification.
    """
    if agent_entry is None:
        return AgentSkillStatus.NOT_INSTALLED
    if agent_entry.kind is EntryKind.SYMLINK:
        return AgentSkillStatus.SYMLINK
    if agent_entry.kind is EntryKind.DIRECTORY:
        return AgentSkillStatus.LOCAL
    raise ValueError(f"cannot classify entry {agent_entry.name!r} of kind {agent_entry.kind.value}")


def source_path_for(agent_entry: DirEntry | None) -> str | None:
    """Raw symlink target, the local directory's own path, or None."""
    status = classify(agent_entry)
    if status is AgentSkillStatus.SYMLINK:
        return agent_entry.target
    if status is AgentSkillStatus.LOCAL:
        return str(agent_entry.path)
    return None
