"""
skills_manager.errors

Error taxonomy for scans and mutations.

Every error carries its kind plus the offending agent id and skill name so the
caller can render a specific message instead of a generic failure.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    INVALID_PATH = "invalid_path"
    UNKNOWN_AGENT = "unknown_agent"
    AGENT_NOT_DETECTED = "agent_not_detected"
    INVALID_SKILL_NAME = "invalid_skill_name"
    SKILL_NOT_IN_GLOBAL = "skill_not_in_global"
    ALREADY_LINKED = "already_linked"
    ALREADY_IN_GLOBAL = "already_in_global"
    NOT_A_SYMLINK = "not_a_symlink"
    NOT_LOCAL = "not_local"
    NOT_INSTALLED = "not_installed"
    IO_FAILURE = "io_failure"


class SkillsError(Exception):
    """
    function_purpose: Base class for every error raised by the reconciliation engine.
    """

    kind: ErrorKind = ErrorKind.IO_FAILURE

    def __init__(
        self,
        message: str,
        *,
        agent_id: str | None = None,
        skill_name: str | None = None,
        path: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.agent_id = agent_id
        self.skill_name = skill_name
        self.path = path

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "agent_id": self.agent_id,
            "skill_name": self.skill_name,
            "path": self.path,
        }


class InvalidPath(SkillsError):
    kind = ErrorKind.INVALID_PATH


class UnknownAgent(SkillsError):
    kind = ErrorKind.UNKNOWN_AGENT


class AgentNotDetected(SkillsError):
    kind = ErrorKind.AGENT_NOT_DETECTED


class InvalidSkillName(SkillsError):
    kind = ErrorKind.INVALID_SKILL_NAME


class SkillNotInGlobal(SkillsError):
    kind = ErrorKind.SKILL_NOT_IN_GLOBAL


class AlreadyLinked(SkillsError):
    kind = ErrorKind.ALREADY_LINKED


class AlreadyInGlobal(SkillsError):
    kind = ErrorKind.ALREADY_IN_GLOBAL


class NotASymlink(SkillsError):
    kind = ErrorKind.NOT_A_SYMLINK


class NotLocal(SkillsError):
    kind = ErrorKind.NOT_LOCAL


class NotInstalled(SkillsError):
    kind = ErrorKind.NOT_INSTALLED


class IoFailure(SkillsError):
    """
    function_purpose: Wrap an unexpected OSError (permission denied, disk full, ...).

    Raise with `raise IoFailure(...) from exc` so the original error stays attached.
    """

    kind = ErrorKind.IO_FAILURE

    @classmethod
    def wrap(
        cls,
        exc: OSError,
        action: str,
        *,
        agent_id: str | None = None,
        skill_name: str | None = None,
    ) -> "IoFailure":
        path = str(exc.filename) if exc.filename is not None else None
        reason = exc.strerror or str(exc)
        return cls(
            f"Failed to {action}: {reason}",
            agent_id=agent_id,
            skill_name=skill_name,
            path=path,
        )
