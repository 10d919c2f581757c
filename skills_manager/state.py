"""
skills_manager.state

Builds the two views consumed by clients:

- the global view (AppData): every skill in the global directory with the sets
  of agents that have it installed, by any means and by symlink;
- the per-agent view (AgentDetailData): every skill name in the agent directory
  or the global directory, with its status, source path and in_global flag.

Each directory is listed at most once per call. The global view therefore costs
1 + N listings for N known agents regardless of how many skills exist.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

from skills_manager.agents import detect_agents, get_agent
from skills_manager.classifier import classify, source_path_for
from skills_manager.config import APP_NAME, Layout
from skills_manager.errors import SkillsError
from skills_manager.metadata import load_skill_metadata
from skills_manager.models import (
    AgentDetailData,
    AgentSkill,
    AgentSkillStatus,
    AppData,
    DirEntry,
    EntryKind,
    Skill,
    SkillMetadata,
)
from skills_manager.scanner import list_entries

logger = logging.getLogger(f"{APP_NAME}.state")


def _installed_entries(entries: Iterable[DirEntry]) -> dict[str, DirEntry]:
    # Stray files never take part in the status model.
    return {e.name: e for e in entries if e.kind is not EntryKind.OTHER}


def _global_skill_entries(layout: Layout) -> dict[str, DirEntry]:
    # Skills in the global directory are real directories; stray symlinks there are skipped.
    return {
        e.name: e
        for e in list_entries(layout.global_dir)
        if e.kind is EntryKind.DIRECTORY
    }


def scan_all(layout: Layout) -> AppData:
    """
    function_purpose: Build the global view from one global scan plus one scan per known agent.

    An agent whose directory cannot be read is recorded in AppData.scan_errors and
    contributes nothing to the skill sets; the rest of the aggregate is unaffected.
    A failure reading the global directory itself propagates.
    """
    agents = detect_agents(layout.home)
    global_entries = _global_skill_entries(layout)

    agent_entries: dict[str, dict[str, DirEntry]] = {}
    scan_errors: dict[str, dict[str, Any]] = {}
    for agent in agents:
        try:
            agent_entries[agent.id] = _installed_entries(
                list_entries(layout.agent_dir(agent.path))
            )
        except SkillsError as exc:
            logger.warning("Scan of agent '%s' failed: %s", agent.id, exc.message)
            scan_errors[agent.id] = {**exc.to_dict(), "agent_id": agent.id}
            agent_entries[agent.id] = {}

    skills: list[Skill] = []
    for name, entry in sorted(global_entries.items()):
        linked: set[str] = set()
        symlinked: set[str] = set()
        for agent in agents:
            status = classify(agent_entries[agent.id].get(name), True)
            if status is AgentSkillStatus.SYMLINK:
                linked.add(agent.id)
                symlinked.add(agent.id)
            elif status is AgentSkillStatus.LOCAL:
                linked.add(agent.id)
        skills.append(
            Skill(
                name=name,
                metadata=load_skill_metadata(entry.path, name),
                linked_agents=frozenset(linked),
                symlinked_agents=frozenset(symlinked),
            )
        )

    logger.debug(
        "Global scan: %d skills, %d agents (%d detected), %d agent errors",
        len(skills),
        len(agents),
        sum(1 for a in agents if a.detected),
        len(scan_errors),
    )
    return AppData(agents=tuple(agents), skills=tuple(skills), scan_errors=scan_errors)


def _agent_skill_metadata(
    status: AgentSkillStatus,
    name: str,
    agent_entry: DirEntry | None,
    global_entry: DirEntry | None,
) -> SkillMetadata:
    if status is AgentSkillStatus.LOCAL:
        return load_skill_metadata(agent_entry.path, name)
    if global_entry is not None:
        return load_skill_metadata(global_entry.path, name)
    # A symlink with no global counterpart: read through the link. A broken
    # link falls back to default metadata.
    return load_skill_metadata(agent_entry.path, name)


def scan_agent(layout: Layout, agent_id: str) -> AgentDetailData:
    """
    function_purpose: Build the per-agent view for one agent.

    Lists the agent directory and the global directory once each, unions the
    names, and classifies every name. Names that only exist on the agent side
    are included with in_global=False.

    Raises UnknownAgent for ids not in the registry; scan errors propagate.
    """
    agent = get_agent(agent_id, layout.home)
    agent_side = _installed_entries(list_entries(layout.agent_dir(agent.path)))
    global_side = _global_skill_entries(layout)

    skills: list[AgentSkill] = []
    for name in sorted(set(agent_side) | set(global_side)):
        entry = agent_side.get(name)
        in_global = name in global_side
        status = classify(entry, in_global)
        skills.append(
            AgentSkill(
                agent_id=agent.id,
                name=name,
                metadata=_agent_skill_metadata(status, name, entry, global_side.get(name)),
                status=status,
                source_path=source_path_for(entry),
                in_global=in_global,
            )
        )

    logger.debug("Agent scan '%s': %d skills", agent.id, len(skills))
    return AgentDetailData(agent=agent, skills=tuple(skills))
