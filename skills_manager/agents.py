"""
skills_manager.agents

Static registry of supported agents and their home-relative skills directories.
"""

from __future__ import annotations

from pathlib import Path

from skills_manager.errors import UnknownAgent
from skills_manager.models import Agent

# (id, display name, skills directory relative to home)
AGENT_DEFINITIONS: tuple[tuple[str, str, str], ...] = (
    ("amp", "Amp", ".config/agents/skills"),
    ("antigravity", "Antigravity", ".gemini/antigravity/global_skills"),
    ("claude-code", "Claude Code", ".claude/skills"),
    ("clawdbot", "Clawdbot", ".clawdbot/skills"),
    ("cline", "Cline", ".cline/skills"),
    ("codex", "Codex", ".codex/skills"),
    ("command-code", "Command Code", ".commandcode/skills"),
    ("continue", "Continue", ".continue/skills"),
    ("crush", "Crush", ".config/crush/skills"),
    ("cursor", "Cursor", ".cursor/skills"),
    ("droid", "Droid", ".factory/skills"),
    ("gemini-cli", "Gemini CLI", ".gemini/skills"),
    ("github-copilot", "GitHub Copilot", ".copilot/skills"),
    ("goose", "Goose", ".config/goose/skills"),
    ("kilo-code", "Kilo Code", ".kilocode/skills"),
    ("kiro-cli", "Kiro CLI", ".kiro/skills"),
    ("mcpjam", "MCPJam", ".mcpjam/skills"),
    ("opencode", "OpenCode", ".config/opencode/skills"),
    ("openhands", "OpenHands", ".openhands/skills"),
    ("pi", "Pi", ".pi/agent/skills"),
    ("qoder", "Qoder", ".qoder/skills"),
    ("qwen-code", "Qwen Code", ".qwen/skills"),
    ("roo-code", "Roo Code", ".roo/skills"),
    ("trae", "Trae", ".trae/skills"),
    ("windsurf", "Windsurf", ".codeium/windsurf/skills"),
    ("zencoder", "Zencoder", ".zencoder/skills"),
    ("neovate", "Neovate", ".neovate/skills"),
)


def list_known_agents() -> list[tuple[str, str, str]]:
    return list(AGENT_DEFINITIONS)


def detect_agents(home: Path) -> list[Agent]:
    """
    function_purpose: Build Agent snapshots for every known agent, marking which directories exist.

    `detected` follows symlinks, so an agent whose skills directory is itself a
    symlink to a real directory counts as detected.
    """
    return [
        Agent(id=agent_id, name=name, path=rel_path, detected=(home / rel_path).is_dir())
        for agent_id, name, rel_path in AGENT_DEFINITIONS
    ]


def get_agent(agent_id: str, home: Path) -> Agent:
    """
    function_purpose: Look up one agent by id and compute its detection state.

    Raises UnknownAgent if the id is not in the registry.
    """
    for known_id, name, rel_path in AGENT_DEFINITIONS:
        if known_id == agent_id:
            return Agent(
                id=known_id,
                name=name,
                path=rel_path,
                detected=(home / rel_path).is_dir(),
            )
    raise UnknownAgent(f"Agent '{agent_id}' not found", agent_id=agent_id)
