"""
skills_manager.config

Path resolution for the global skills directory, the home directory agent paths
are relative to, and the log files.

Environment (optional):
- SKILLS_HOME: home directory agent skill paths are relative to (default: $HOME)
- GLOBAL_SKILLS_DIR: override the global skills directory (default: <home>/.agents/skills)
- LOG_FILE: override log file path (default: <home>/.agents/logs/skills_manager.log)
- OPS_LOG_FILE: override operations log path (default: <home>/.agents/logs/skills_manager_operations.log)

Values are read on every call; nothing is cached so a long-running server picks
up the filesystem as it is now.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

# --- Paths & constants ---
APP_NAME = "SkillsManager"
GLOBAL_SKILLS_REL = Path(".agents") / "skills"
LOG_DIR_REL = Path(".agents") / "logs"
LOG_FILE_NAME = "skills_manager.log"
OPS_LOG_FILE_NAME = "skills_manager_operations.log"
SKILL_MD = "SKILL.md"


def resolve_home() -> Path:
    """
    function_purpose: Resolve the home directory from SKILLS_HOME, HOME, or the user profile.
    """
    env_home = os.environ.get("SKILLS_HOME") or os.environ.get("HOME")
    return Path(env_home).expanduser().resolve() if env_home else Path.home().resolve()


def resolve_global_dir(home: Path | None = None) -> Path:
    """
    function_purpose: Resolve the global skills directory from environment or default location.
    """
    env_dir = os.environ.get("GLOBAL_SKILLS_DIR")
    # Absolute, so symlinks created against it resolve from any agent directory.
    if env_dir:
        return Path(env_dir).expanduser().resolve()
    return (home or resolve_home()) / GLOBAL_SKILLS_REL


def resolve_log_file() -> Path:
    log_file_env = os.environ.get("LOG_FILE")
    if log_file_env:
        return Path(log_file_env).expanduser().resolve()
    return resolve_home() / LOG_DIR_REL / LOG_FILE_NAME


def resolve_ops_log_file() -> Path:
    ops_env = os.environ.get("OPS_LOG_FILE")
    if ops_env:
        return Path(ops_env).expanduser().resolve()
    return resolve_home() / LOG_DIR_REL / OPS_LOG_FILE_NAME


@dataclass(frozen=True)
class Layout:
    """
    Where things live on disk for one call: the home directory agent paths hang
    off, and the global skills directory.
    """

    home: Path
    global_dir: Path

    @classmethod
    def from_env(cls) -> "Layout":
        home = resolve_home()
        return cls(home=home, global_dir=resolve_global_dir(home))

    @classmethod
    def for_home(cls, home: Path) -> "Layout":
        home = home.expanduser().resolve()
        return cls(home=home, global_dir=home / GLOBAL_SKILLS_REL)

    def agent_dir(self, rel_path: str) -> Path:
        return self.home / rel_path

    def global_skill(self, name: str) -> Path:
        return self.global_dir / name
