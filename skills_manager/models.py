"""
skills_manager.models

Scan-scoped value snapshots. Every object here is built fresh by a scan and never
mutated afterwards; a mutation changes the filesystem and the next scan produces
new snapshots.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Mapping


class EntryKind(str, Enum):
    DIRECTORY = "directory"
    SYMLINK = "symlink"
    OTHER = "other"


class AgentSkillStatus(str, Enum):
    SYMLINK = "symlink"
    LOCAL = "local"
    NOT_INSTALLED = "not_installed"


@dataclass(frozen=True)
class DirEntry:
    """One immediate child of a scanned directory."""

    name: str
    kind: EntryKind
    path: Path
    # Raw link target as stored by the filesystem; only set for symlinks.
    target: str | None = None


@dataclass(frozen=True)
class Agent:
    id: str
    name: str
    path: str  # relative to home, e.g. ".cursor/skills"
    detected: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "path": self.path,
            "detected": self.detected,
        }


@dataclass(frozen=True)
class SkillMetadata:
    name: str = ""
    description: str = ""
    allowed_tools: tuple[str, ...] = ()

    def is_empty(self) -> bool:
        return not (self.name or self.description or self.allowed_tools)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "allowed_tools": list(self.allowed_tools),
        }


@dataclass(frozen=True)
class Skill:
    """A skill as seen from the global directory."""

    name: str
    metadata: SkillMetadata
    linked_agents: frozenset[str] = frozenset()
    symlinked_agents: frozenset[str] = frozenset()

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "metadata": self.metadata.to_dict(),
            "linked_agents": sorted(self.linked_agents),
            "symlinked_agents": sorted(self.symlinked_agents),
        }


@dataclass(frozen=True)
class AgentSkill:
    """A skill as seen from one agent's directory."""

    agent_id: str
    name: str
    metadata: SkillMetadata
    status: AgentSkillStatus
    source_path: str | None
    in_global: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "metadata": self.metadata.to_dict(),
            "status": self.status.value,
            "source_path": self.source_path,
            "in_global": self.in_global,
        }


@dataclass(frozen=True)
class AgentDetailData:
    agent: Agent
    skills: tuple[AgentSkill, ...] = ()

    def get(self, name: str) -> AgentSkill | None:
        for skill in self.skills:
            if skill.name == name:
                return skill
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "agent": self.agent.to_dict(),
            "skills": [s.to_dict() for s in self.skills],
        }


@dataclass(frozen=True)
class AppData:
    """
    The global view: every known agent plus every skill in the global directory.

    `scan_errors` maps agent id -> error payload for agents whose directory could
    not be read; those agents simply contribute nothing to the skill sets.
    """

    agents: tuple[Agent, ...] = ()
    skills: tuple[Skill, ...] = ()
    scan_errors: Mapping[str, dict[str, Any]] = field(default_factory=dict)

    def get(self, name: str) -> Skill | None:
        for skill in self.skills:
            if skill.name == name:
                return skill
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "agents": [a.to_dict() for a in self.agents],
            "skills": [s.to_dict() for s in self.skills],
            "scan_errors": dict(self.scan_errors),
        }


@dataclass(frozen=True)
class FailedOperation:
    target: str
    kind: str
    error: str

    def to_dict(self) -> dict[str, Any]:
        return {"target": self.target, "kind": self.kind, "error": self.error}


@dataclass(frozen=True)
class BatchResult:
    success: frozenset[str] = frozenset()
    failed: tuple[FailedOperation, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": sorted(self.success),
            "failed": [f.to_dict() for f in self.failed],
        }
