"""
skills_manager.server

FastMCP stdio server and inspection CLI for managing which agents have which
skills installed.

Server-level documentation:
- Purpose: expose the global skills directory (~/.agents/skills) and the skills
  directories of every supported agent (Cursor, Claude Code, Codex, ...) to
  MCP-aware clients.
- Why use it:
  * See, per skill, which agents have it installed and whether via symlink or a local copy
  * See, per agent, every skill with its status (symlink / local / not_installed)
  * Link and unlink global skills into agents, one at a time or in batches
  * Promote an agent's local skill to the global directory, or delete it
- Transport: STDIO by default
- Safety: links never overwrite, unlink never removes real directories, uploads
  never overwrite global skills
- Logging: console (stderr) + rotating file logs; mutations are also recorded in
  a JSON-lines operations log

Environment (optional): see skills_manager.config
(SKILLS_HOME, GLOBAL_SKILLS_DIR, LOG_FILE, OPS_LOG_FILE).

Usage:
  python -m skills_manager            # starts stdio server
  python -m skills_manager --help     # CLI for inspection and one-shot mutations
"""

from __future__ import annotations

import json
from typing import Any, Callable

from fastmcp import FastMCP

from skills_manager import mutations, state
from skills_manager.agents import detect_agents
from skills_manager.config import APP_NAME, Layout
from skills_manager.errors import SkillsError
from skills_manager.log import configure_logging
from skills_manager.models import AgentDetailData, AppData

SERVER_NAME = APP_NAME


def _server_description() -> str:
    """
    function_purpose: Provide a server-level description that clients can display.
    """
    return (
        "SkillsManager MCP Server: shows which agent applications have which skills from the "
        "global skills directory installed, and links, unlinks, uploads or deletes skills "
        "across agent skills directories using symlinks."
    )


def _mutation(action: Callable[[], Any]) -> dict[str, Any]:
    """
    function_purpose: Run a single mutation and turn its outcome into a status dict.

    Mutations are reported, not raised, so clients always get the error kind and the
    offending agent/skill back.
    """
    try:
        result = action()
    except SkillsError as exc:
        return {"ok": False, "error": exc.to_dict()}
    payload: dict[str, Any] = {"ok": True}
    if result is not None:
        payload["path"] = str(result)
    return payload


def _tool_error(exc: SkillsError) -> ValueError:
    """
    function_purpose: Turn a scan failure into the error a read tool raises.

    The message is the JSON error payload, so clients get the same kind, agent_id,
    skill_name and path that mutation tools return.
    """
    return ValueError(json.dumps(exc.to_dict(), ensure_ascii=False))


def _global_markdown(app: AppData) -> str:
    names = {a.id: a.name for a in app.agents}
    lines = ["# Global Skills\n\n"]
    for skill in app.skills:
        lines.append(f"## {skill.name}\n")
        lines.append(f"{skill.metadata.description}\n\n")
        if skill.metadata.allowed_tools:
            lines.append(f"**Allowed Tools:** {', '.join(skill.metadata.allowed_tools)}  \n")
        symlinked = sorted(names.get(a, a) for a in skill.symlinked_agents)
        local = sorted(names.get(a, a) for a in skill.linked_agents - skill.symlinked_agents)
        lines.append(f"**Symlinked:** {', '.join(symlinked) or '-'}  \n")
        lines.append(f"**Local copies:** {', '.join(local) or '-'}  \n\n")
    if app.scan_errors:
        lines.append("## Scan errors\n\n")
        for agent_id, err in sorted(app.scan_errors.items()):
            lines.append(f"- `{agent_id}`: {err['message']}\n")
    return "".join(lines)


def _agent_markdown(detail: AgentDetailData) -> str:
    agent = detail.agent
    lines = [f"# {agent.name} (`{agent.id}`)\n\n"]
    lines.append(f"**Path:** `~/{agent.path}`  \n")
    lines.append(f"**Detected:** {'yes' if agent.detected else 'no'}\n\n")
    lines.append("| Skill | Status | In global | Source |\n")
    lines.append("|---|---|---|---|\n")
    for skill in detail.skills:
        source = f"`{skill.source_path}`" if skill.source_path else "-"
        in_global = "yes" if skill.in_global else "no"
        lines.append(f"| {skill.name} | {skill.status.value} | {in_global} | {source} |\n")
    return "".join(lines)


mcp = FastMCP(
    SERVER_NAME,
    instructions=(
        "SkillsManager MCP Server\n"
        "\n"
        "Purpose:\n"
        "- Manage a single global skills directory (~/.agents/skills) and distribute skills to the\n"
        "  skills directories of supported agents (Cursor, Claude Code, Codex, Windsurf, ...) via symlinks.\n"
        "\n"
        "State model:\n"
        "- For each (agent, skill) the status is one of: symlink, local (a real directory), not_installed.\n"
        "- State is re-read from disk on every call; call a listing tool again after mutating.\n"
        "\n"
        "Exposed tools:\n"
        "- skills_server_info(): server name, description, global_dir, home, transport\n"
        "- skills_list_agents(): supported agents and whether their skills directory exists\n"
        "- skills_list_global(markdown_output?): global skills with linked/symlinked agents\n"
        "- skills_agent_detail(agent_id, markdown_output?): every skill for one agent with status\n"
        "- skill_link(agent_id, skill_name): symlink a global skill into an agent\n"
        "- skill_unlink(agent_id, skill_name): remove a skill symlink from an agent\n"
        "- skill_delete_local(agent_id, skill_name): delete an agent's local (non-symlink) skill copy\n"
        "- skill_upload_to_global(agent_id, skill_name): copy an agent's local skill into the global directory\n"
        "- skill_batch_link(skill_name, agent_ids?): link to several agents (all detected agents if omitted)\n"
        "- skill_batch_unlink(skill_name, agent_ids?): unlink from several agents (all symlinked agents if omitted)\n"
        "- skill_agent_batch_link(agent_id, skill_names): link several global skills into one agent\n"
        "- skill_agent_batch_unlink(agent_id, skill_names): remove several skill symlinks from one agent\n"
        "\n"
        "Safety:\n"
        "- Links never overwrite existing entries; unlink refuses real directories; uploads never overwrite.\n"
        "- Mutation tools return {ok, error?}; errors carry kind, agent_id and skill_name.\n"
        "- Listing tools raise on failure with the same error payload as their message.\n"
        "- Batch tools return {success, failed}; one failed target never stops the others.\n"
    ),
)


@mcp.tool
def skills_server_info() -> dict[str, Any]:
    """
    function_purpose: Return server-level documentation and the directories in use.

    Returns:
    - name: str          Server name
    - description: str   High-level description of the server
    - home: str          Home directory agent paths are relative to
    - global_dir: str    Global skills directory
    - transport: str     Transport used by the server ("stdio")
    """
    layout = Layout.from_env()
    return {
        "name": SERVER_NAME,
        "description": _server_description(),
        "home": str(layout.home),
        "global_dir": str(layout.global_dir),
        "transport": "stdio",
    }


@mcp.tool
def skills_list_agents() -> list[dict[str, Any]]:
    """
    function_purpose: List every supported agent with its skills path and detection state.
    """
    layout = Layout.from_env()
    return [agent.to_dict() for agent in detect_agents(layout.home)]


@mcp.tool
def skills_list_global(markdown_output: bool = False) -> dict[str, Any] | str:
    """
    function_purpose: Scan the global directory and all agents; list global skills with their installations.

    Args:
    - markdown_output: bool   If True, return a formatted markdown string (default: False)

    Returns:
    - If markdown_output=False: {agents, skills, scan_errors} where each skill has
      name, metadata, linked_agents (symlink or local) and symlinked_agents
    - If markdown_output=True: formatted markdown string
    """
    try:
        app = state.scan_all(Layout.from_env())
    except SkillsError as exc:
        raise _tool_error(exc) from exc
    if markdown_output:
        return _global_markdown(app)
    return app.to_dict()


@mcp.tool
def skills_agent_detail(agent_id: str, markdown_output: bool = False) -> dict[str, Any] | str:
    """
    function_purpose: List every skill known to one agent or to the global directory, with status.

    Args:
    - agent_id: str           Agent id, e.g. "cursor" or "claude-code"
    - markdown_output: bool   If True, return a formatted markdown table (default: False)

    Returns:
    - If markdown_output=False: {agent, skills} where each skill has name, metadata,
      status (symlink/local/not_installed), source_path and in_global
    - If markdown_output=True: formatted markdown string
    """
    try:
        detail = state.scan_agent(Layout.from_env(), agent_id)
    except SkillsError as exc:
        raise _tool_error(exc) from exc
    if markdown_output:
        return _agent_markdown(detail)
    return detail.to_dict()


@mcp.tool
def skill_link(agent_id: str, skill_name: str) -> dict[str, Any]:
    """
    function_purpose: Symlink a global skill into an agent's skills directory.

    Fails (ok=False) with skill_not_in_global, agent_not_detected or already_linked.
    """
    layout = Layout.from_env()
    return _mutation(lambda: mutations.link_skill(layout, agent_id, skill_name))


@mcp.tool
def skill_unlink(agent_id: str, skill_name: str) -> dict[str, Any]:
    """
    function_purpose: Remove a skill symlink from an agent; real directories are refused (not_a_symlink).
    """
    layout = Layout.from_env()
    return _mutation(lambda: mutations.unlink_skill(layout, agent_id, skill_name))


@mcp.tool
def skill_delete_local(agent_id: str, skill_name: str) -> dict[str, Any]:
    """
    function_purpose: Permanently delete an agent's local (non-symlink) skill directory.

    Symlinks are refused with not_local; use skill_unlink for those.
    """
    layout = Layout.from_env()
    return _mutation(lambda: mutations.delete_local_skill(layout, agent_id, skill_name))


@mcp.tool
def skill_upload_to_global(agent_id: str, skill_name: str) -> dict[str, Any]:
    """
    function_purpose: Copy an agent's local skill into the global skills directory.

    The local copy is left in place. Fails with already_in_global rather than overwrite.
    """
    layout = Layout.from_env()
    return _mutation(lambda: mutations.upload_to_global(layout, agent_id, skill_name))


@mcp.tool
def skill_batch_link(skill_name: str, agent_ids: list[str] | None = None) -> dict[str, Any]:
    """
    function_purpose: Link one global skill into several agents.

    Args:
    - skill_name: str               Global skill to link
    - agent_ids: list[str] | None   Target agents; all detected agents when omitted

    Returns:
    - {success: [agent_id], failed: [{target, kind, error}]}
    """
    layout = Layout.from_env()
    try:
        if agent_ids is None:
            result = mutations.link_skill_to_all(layout, skill_name)
        else:
            result = mutations.batch_link(layout, skill_name, agent_ids)
    except SkillsError as exc:
        return {"success": [], "failed": [], "error": exc.to_dict()}
    return result.to_dict()


@mcp.tool
def skill_batch_unlink(skill_name: str, agent_ids: list[str] | None = None) -> dict[str, Any]:
    """
    function_purpose: Remove one skill's symlink from several agents.

    Args:
    - skill_name: str               Skill to unlink
    - agent_ids: list[str] | None   Target agents; every agent holding a symlink when omitted

    Returns:
    - {success: [agent_id], failed: [{target, kind, error}]}
    """
    layout = Layout.from_env()
    try:
        if agent_ids is None:
            result = mutations.unlink_skill_from_all(layout, skill_name)
        else:
            result = mutations.batch_unlink(layout, skill_name, agent_ids)
    except SkillsError as exc:
        return {"success": [], "failed": [], "error": exc.to_dict()}
    return result.to_dict()


@mcp.tool
def skill_agent_batch_link(agent_id: str, skill_names: list[str]) -> dict[str, Any]:
    """
    function_purpose: Link several global skills into one agent.

    Args:
    - agent_id: str            Target agent
    - skill_names: list[str]   Global skills to link, attempted in order

    Returns:
    - {success: [skill_name], failed: [{target, kind, error}]}
    - {success: [], failed: [], error} when the agent id is unknown
    """
    layout = Layout.from_env()
    try:
        result = mutations.link_skills_to_agent(layout, agent_id, skill_names)
    except SkillsError as exc:
        return {"success": [], "failed": [], "error": exc.to_dict()}
    return result.to_dict()


@mcp.tool
def skill_agent_batch_unlink(agent_id: str, skill_names: list[str]) -> dict[str, Any]:
    """
    function_purpose: Remove several skill symlinks from one agent; local copies are reported as failures.
    """
    layout = Layout.from_env()
    try:
        result = mutations.unlink_skills_from_agent(layout, agent_id, skill_names)
    except SkillsError as exc:
        return {"success": [], "failed": [], "error": exc.to_dict()}
    return result.to_dict()


# --- Entry points ---
def run() -> None:
    """
    function_purpose: Entry point to start the MCP stdio server.
    """
    logger = configure_logging()
    layout = Layout.from_env()
    logger.info(
        "Server starting with home=%s global_dir=%s", str(layout.home), str(layout.global_dir)
    )
    mcp.run()  # stdio transport by default


def cli_main(argv: list[str] | None = None) -> int:
    """
    function_purpose: CLI for inspecting and mutating skill installations without starting the MCP server.

    Usage:
      python -m skills_manager --list
      python -m skills_manager --agents
      python -m skills_manager --agent <AGENT_ID>
      python -m skills_manager --link <AGENT_ID> <SKILL>
      python -m skills_manager --unlink <AGENT_ID> <SKILL>
      python -m skills_manager --delete-local <AGENT_ID> <SKILL>
      python -m skills_manager --upload <AGENT_ID> <SKILL>
      python -m skills_manager --link-all <SKILL>
      python -m skills_manager --unlink-all <SKILL>
      python -m skills_manager --agent-link <AGENT_ID> <SKILL> [<SKILL> ...]
      python -m skills_manager --agent-unlink <AGENT_ID> <SKILL> [<SKILL> ...]

    Returns the process exit code: 0 on success, 1 when a mutation or scan failed.
    """
    import argparse

    parser = argparse.ArgumentParser(
        prog="skills_manager",
        description="Inspect and manage agent skill installations, or start the stdio MCP server.",
    )
    parser.add_argument(
        "--list", action="store_true", help="List global skills with the agents that have them"
    )
    parser.add_argument("--agents", action="store_true", help="List supported agents")
    parser.add_argument("--agent", metavar="AGENT_ID", help="Show every skill for one agent")
    for flag, help_text in (
        ("--link", "Symlink global SKILL into AGENT_ID"),
        ("--unlink", "Remove SKILL symlink from AGENT_ID"),
        ("--delete-local", "Delete AGENT_ID's local copy of SKILL"),
        ("--upload", "Copy AGENT_ID's local SKILL into the global directory"),
    ):
        parser.add_argument(flag, nargs=2, metavar=("AGENT_ID", "SKILL"), help=help_text)
    parser.add_argument("--link-all", metavar="SKILL", help="Link SKILL into every detected agent")
    parser.add_argument("--unlink-all", metavar="SKILL", help="Remove SKILL symlinks from every agent")
    parser.add_argument(
        "--agent-link",
        nargs="+",
        metavar="ARG",
        help="AGENT_ID SKILL [SKILL ...]: link several global skills into one agent",
    )
    parser.add_argument(
        "--agent-unlink",
        nargs="+",
        metavar="ARG",
        help="AGENT_ID SKILL [SKILL ...]: remove several skill symlinks from one agent",
    )
    parser.add_argument(
        "--serve",
        action="store_true",
        help="Start MCP stdio server (default when no flags used)",
    )

    args = parser.parse_args(argv)
    for flag, values in (("--agent-link", args.agent_link), ("--agent-unlink", args.agent_unlink)):
        if values is not None and len(values) < 2:
            parser.error(f"{flag} requires AGENT_ID and at least one SKILL")
    logger = configure_logging()
    layout = Layout.from_env()

    def emit(payload: Any) -> None:
        print(json.dumps(payload, indent=2, ensure_ascii=False))

    single_ops = {
        "link": mutations.link_skill,
        "unlink": mutations.unlink_skill,
        "delete_local": mutations.delete_local_skill,
        "upload": mutations.upload_to_global,
    }

    try:
        if args.list:
            logger.info("Listing global skills...")
            emit(state.scan_all(layout).to_dict())
            return 0

        if args.agents:
            emit([agent.to_dict() for agent in detect_agents(layout.home)])
            return 0

        if args.agent:
            logger.info("Detail for agent: %s", args.agent)
            emit(state.scan_agent(layout, args.agent).to_dict())
            return 0

        for op, func in single_ops.items():
            op_args = getattr(args, op)
            if op_args:
                agent_id, skill_name = op_args
                logger.info("%s: agent=%s skill=%s", op, agent_id, skill_name)
                result = _mutation(lambda: func(layout, agent_id, skill_name))
                emit(result)
                return 0 if result["ok"] else 1

        if args.link_all or args.unlink_all:
            if args.link_all:
                batch = mutations.link_skill_to_all(layout, args.link_all)
            else:
                batch = mutations.unlink_skill_from_all(layout, args.unlink_all)
            emit(batch.to_dict())
            return 1 if batch.failed else 0

        if args.agent_link or args.agent_unlink:
            if args.agent_link:
                agent_id, *skill_names = args.agent_link
                batch = mutations.link_skills_to_agent(layout, agent_id, skill_names)
            else:
                agent_id, *skill_names = args.agent_unlink
                batch = mutations.unlink_skills_from_agent(layout, agent_id, skill_names)
            emit(batch.to_dict())
            return 1 if batch.failed else 0
    except SkillsError as exc:
        logger.error("%s", exc.message)
        emit({"ok": False, "error": exc.to_dict()})
        return 1

    # Default: start server
    run()
    return 0


if __name__ == "__main__":
    raise SystemExit(cli_main())
