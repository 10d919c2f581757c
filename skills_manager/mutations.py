"""
skills_manager.mutations

Filesystem mutations and their batch wrappers.

Primitives:
- link_skill: create <agent_dir>/<skill> -> <global_dir>/<skill>
- unlink_skill: remove that symlink (never a real directory)
- delete_local_skill: remove a real (non-symlink) skill directory from an agent
- upload_to_global: copy an agent's local skill into the global directory

Every primitive re-checks its own preconditions against the filesystem at call
time and never overwrites an existing entry. Single primitives raise
SkillsError subclasses; batch wrappers collect per-target outcomes and keep
going. There is no rollback: a partially failed batch leaves partial state,
which the next scan reports as it is.
"""

from __future__ import annotations

import logging
import os
import shutil
import stat
import tempfile
from pathlib import Path
from typing import Callable, Iterable

from skills_manager.agents import detect_agents, get_agent
from skills_manager.config import APP_NAME, Layout
from skills_manager.errors import (
    AgentNotDetected,
    AlreadyInGlobal,
    AlreadyLinked,
    InvalidSkillName,
    IoFailure,
    NotASymlink,
    NotInstalled,
    NotLocal,
    SkillNotInGlobal,
    SkillsError,
)
from skills_manager.log import log_operation
from skills_manager.models import Agent, BatchResult, FailedOperation

logger = logging.getLogger(f"{APP_NAME}.mutations")


# --- Precondition helpers ---
def validate_skill_name(skill_name: str) -> str:
    """
    function_purpose: Reject names that are not a single, visible directory entry.

    Empty names, path separators, '.'/'..' and hidden names would escape or be
    invisible to the scanner.
    """
    if (
        not skill_name
        or skill_name.strip() != skill_name
        or "/" in skill_name
        or "\\" in skill_name
        or "\x00" in skill_name
        or skill_name.startswith(".")
    ):
        raise InvalidSkillName(
            f"Invalid skill name: {skill_name!r}", skill_name=skill_name
        )
    return skill_name


def _lstat(path: Path, *, agent_id: str | None, skill_name: str) -> os.stat_result | None:
    try:
        return os.lstat(path)
    except FileNotFoundError:
        return None
    except OSError as exc:
        raise IoFailure.wrap(
            exc, f"inspect {path}", agent_id=agent_id, skill_name=skill_name
        ) from exc


def _detected_agent_dir(layout: Layout, agent: Agent, skill_name: str) -> Path:
    agent_dir = layout.agent_dir(agent.path)
    if not agent_dir.is_dir():
        raise AgentNotDetected(
            f"Agent '{agent.id}' is not installed ({agent_dir} does not exist)",
            agent_id=agent.id,
            skill_name=skill_name,
            path=str(agent_dir),
        )
    return agent_dir


# --- Primitives ---
def link_skill(layout: Layout, agent_id: str, skill_name: str) -> Path:
    """
    function_purpose: Symlink a global skill into an agent's skills directory.

    Preconditions:
    - the skill is a directory in the global directory (SkillNotInGlobal)
    - the agent's skills directory exists; it is never created here (AgentNotDetected)
    - no entry of that name exists in the agent directory, symlink or not (AlreadyLinked)

    Returns the path of the new symlink.
    """
    validate_skill_name(skill_name)
    agent = get_agent(agent_id, layout.home)
    global_skill = layout.global_skill(skill_name)

    st = _lstat(global_skill, agent_id=agent.id, skill_name=skill_name)
    if st is None or not stat.S_ISDIR(st.st_mode):
        raise SkillNotInGlobal(
            f"Global skill '{skill_name}' does not exist",
            agent_id=agent.id,
            skill_name=skill_name,
            path=str(global_skill),
        )

    agent_dir = _detected_agent_dir(layout, agent, skill_name)
    link_path = agent_dir / skill_name
    if _lstat(link_path, agent_id=agent.id, skill_name=skill_name) is not None:
        raise AlreadyLinked(
            f"'{skill_name}' already exists in {agent.name}'s skills directory",
            agent_id=agent.id,
            skill_name=skill_name,
            path=str(link_path),
        )

    try:
        os.symlink(global_skill, link_path, target_is_directory=True)
    except FileExistsError as exc:
        raise AlreadyLinked(
            f"'{skill_name}' already exists in {agent.name}'s skills directory",
            agent_id=agent.id,
            skill_name=skill_name,
            path=str(link_path),
        ) from exc
    except OSError as exc:
        raise IoFailure.wrap(
            exc, "create symlink", agent_id=agent.id, skill_name=skill_name
        ) from exc

    logger.info("Linked %s -> %s", link_path, global_skill)
    log_operation(
        "link",
        {"agent": agent.id, "skill": skill_name, "link": str(link_path), "target": str(global_skill)},
    )
    return link_path


def unlink_skill(layout: Layout, agent_id: str, skill_name: str) -> None:
    """
    function_purpose: Remove a skill symlink from an agent's skills directory.

    Only symlinks are removed. A real directory raises NotASymlink and is left
    untouched; an absent entry raises NotInstalled. The global copy and other
    agents are never touched.
    """
    validate_skill_name(skill_name)
    agent = get_agent(agent_id, layout.home)
    agent_dir = _detected_agent_dir(layout, agent, skill_name)
    link_path = agent_dir / skill_name

    st = _lstat(link_path, agent_id=agent.id, skill_name=skill_name)
    if st is None:
        raise NotInstalled(
            f"'{skill_name}' is not installed for {agent.name}",
            agent_id=agent.id,
            skill_name=skill_name,
            path=str(link_path),
        )
    if not stat.S_ISLNK(st.st_mode):
        raise NotASymlink(
            f"'{skill_name}' in {agent.name} is not a symlink; refusing to remove it",
            agent_id=agent.id,
            skill_name=skill_name,
            path=str(link_path),
        )

    try:
        os.unlink(link_path)
    except FileNotFoundError as exc:
        raise NotInstalled(
            f"'{skill_name}' is not installed for {agent.name}",
            agent_id=agent.id,
            skill_name=skill_name,
            path=str(link_path),
        ) from exc
    except OSError as exc:
        raise IoFailure.wrap(
            exc, "remove symlink", agent_id=agent.id, skill_name=skill_name
        ) from exc

    logger.info("Unlinked %s", link_path)
    log_operation("unlink", {"agent": agent.id, "skill": skill_name, "link": str(link_path)})


def _require_local_dir(link_path: Path, agent: Agent, skill_name: str) -> os.stat_result:
    st = _lstat(link_path, agent_id=agent.id, skill_name=skill_name)
    if st is None:
        raise NotLocal(
            f"Local skill '{skill_name}' not found for {agent.name}",
            agent_id=agent.id,
            skill_name=skill_name,
            path=str(link_path),
        )
    if stat.S_ISLNK(st.st_mode):
        raise NotLocal(
            f"'{skill_name}' in {agent.name} is a symlink, not a local copy",
            agent_id=agent.id,
            skill_name=skill_name,
            path=str(link_path),
        )
    if not stat.S_ISDIR(st.st_mode):
        raise NotLocal(
            f"'{skill_name}' in {agent.name} is not a directory",
            agent_id=agent.id,
            skill_name=skill_name,
            path=str(link_path),
        )
    return st


def delete_local_skill(layout: Layout, agent_id: str, skill_name: str) -> None:
    """
    function_purpose: Irrecoverably remove a local (real directory) skill from an agent.

    Symlinks and missing entries raise NotLocal; use unlink_skill for symlinks.
    """
    validate_skill_name(skill_name)
    agent = get_agent(agent_id, layout.home)
    skill_path = _detected_agent_dir(layout, agent, skill_name) / skill_name
    _require_local_dir(skill_path, agent, skill_name)

    try:
        shutil.rmtree(skill_path)
    except OSError as exc:
        raise IoFailure.wrap(
            exc, "delete directory", agent_id=agent.id, skill_name=skill_name
        ) from exc

    logger.info("Deleted local skill %s", skill_path)
    log_operation("delete_local", {"agent": agent.id, "skill": skill_name, "path": str(skill_path)})


def upload_to_global(layout: Layout, agent_id: str, skill_name: str) -> Path:
    """
    function_purpose: Copy an agent's local skill directory into the global directory.

    - The source must be a real directory (NotLocal otherwise) and is left as it is;
      converting it into a symlink is a separate link step.
    - An existing global entry is never overwritten (AlreadyInGlobal).
    - The global directory is created if missing.
    - Contents are copied into a hidden staging directory and renamed into place,
      so a failed copy never leaves a half-written skill in the global view.

    Returns the path of the new global skill.
    """
    validate_skill_name(skill_name)
    agent = get_agent(agent_id, layout.home)
    local_path = _detected_agent_dir(layout, agent, skill_name) / skill_name
    _require_local_dir(local_path, agent, skill_name)

    global_skill = layout.global_skill(skill_name)

    def _already_in_global() -> AlreadyInGlobal:
        return AlreadyInGlobal(
            f"Skill '{skill_name}' already exists in global skills",
            agent_id=agent.id,
            skill_name=skill_name,
            path=str(global_skill),
        )

    if _lstat(global_skill, agent_id=agent.id, skill_name=skill_name) is not None:
        raise _already_in_global()

    try:
        layout.global_dir.mkdir(parents=True, exist_ok=True)
        staging = Path(
            tempfile.mkdtemp(prefix=f".{skill_name}.", suffix=".upload", dir=layout.global_dir)
        )
    except OSError as exc:
        raise IoFailure.wrap(
            exc, "prepare global skills directory", agent_id=agent.id, skill_name=skill_name
        ) from exc

    try:
        shutil.copytree(local_path, staging, symlinks=True, dirs_exist_ok=True)
        if _lstat(global_skill, agent_id=agent.id, skill_name=skill_name) is not None:
            raise _already_in_global()
        os.rename(staging, global_skill)
    except SkillsError:
        shutil.rmtree(staging, ignore_errors=True)
        raise
    except OSError as exc:
        # shutil.Error is an OSError too and carries the per-file failures.
        shutil.rmtree(staging, ignore_errors=True)
        raise IoFailure.wrap(
            exc, "copy skill to global", agent_id=agent.id, skill_name=skill_name
        ) from exc

    logger.info("Uploaded %s -> %s", local_path, global_skill)
    log_operation(
        "upload_to_global",
        {"agent": agent.id, "skill": skill_name, "source": str(local_path), "path": str(global_skill)},
    )
    return global_skill


# --- Batches ---
def _require_global_skill(layout: Layout, skill_name: str) -> None:
    validate_skill_name(skill_name)
    global_skill = layout.global_skill(skill_name)
    st = _lstat(global_skill, agent_id=None, skill_name=skill_name)
    if st is None or not stat.S_ISDIR(st.st_mode):
        raise SkillNotInGlobal(
            f"Global skill '{skill_name}' does not exist",
            skill_name=skill_name,
            path=str(global_skill),
        )


def _run_batch(op: str, targets: Iterable[str], attempt: Callable[[str], object]) -> BatchResult:
    success: set[str] = set()
    failed: list[FailedOperation] = []
    # Duplicate targets are attempted once, in first-seen order.
    for target in dict.fromkeys(targets):
        try:
            attempt(target)
        except SkillsError as exc:
            logger.warning("%s failed for '%s': %s", op, target, exc.message)
            failed.append(FailedOperation(target=target, kind=exc.kind.value, error=exc.message))
        else:
            success.add(target)
    logger.info("%s: %d succeeded, %d failed", op, len(success), len(failed))
    return BatchResult(success=frozenset(success), failed=tuple(failed))


def batch_link(layout: Layout, skill_name: str, agent_ids: Iterable[str]) -> BatchResult:
    """
    function_purpose: Link one global skill into several agents, reporting per-agent outcomes.

    Fails outright (raises) only when the skill name is invalid or the skill is not
    in the global directory, since no target could succeed.
    """
    _require_global_skill(layout, skill_name)
    return _run_batch(
        "batch_link", agent_ids, lambda agent_id: link_skill(layout, agent_id, skill_name)
    )


def batch_unlink(layout: Layout, skill_name: str, agent_ids: Iterable[str]) -> BatchResult:
    """
    function_purpose: Remove one skill's symlink from several agents, reporting per-agent outcomes.
    """
    validate_skill_name(skill_name)
    return _run_batch(
        "batch_unlink", agent_ids, lambda agent_id: unlink_skill(layout, agent_id, skill_name)
    )


def link_skills_to_agent(layout: Layout, agent_id: str, skill_names: Iterable[str]) -> BatchResult:
    """
    function_purpose: Link several global skills into one agent, reporting per-skill outcomes.

    Raises UnknownAgent outright for an id outside the registry.
    """
    get_agent(agent_id, layout.home)
    return _run_batch(
        "link_skills_to_agent", skill_names, lambda name: link_skill(layout, agent_id, name)
    )


def unlink_skills_from_agent(layout: Layout, agent_id: str, skill_names: Iterable[str]) -> BatchResult:
    get_agent(agent_id, layout.home)
    return _run_batch(
        "unlink_skills_from_agent", skill_names, lambda name: unlink_skill(layout, agent_id, name)
    )


def link_skill_to_all(layout: Layout, skill_name: str) -> BatchResult:
    """
    function_purpose: Link a global skill into every detected agent.

    Agents that already hold a symlink for the skill count as successes, so the
    call can be repeated. Agents holding a real directory of that name fail with
    AlreadyLinked and keep their copy.
    """
    _require_global_skill(layout, skill_name)
    targets = [agent.id for agent in detect_agents(layout.home) if agent.detected]

    def _ensure_linked(agent_id: str) -> None:
        try:
            link_skill(layout, agent_id, skill_name)
        except AlreadyLinked as exc:
            if not exc.path or not os.path.islink(exc.path):
                raise

    return _run_batch("link_skill_to_all", targets, _ensure_linked)


def unlink_skill_from_all(layout: Layout, skill_name: str) -> BatchResult:
    """
    function_purpose: Remove a skill's symlink from every agent that has one.

    Agents with a local copy or without the skill are not targets at all.
    """
    validate_skill_name(skill_name)
    targets = [
        agent.id
        for agent in detect_agents(layout.home)
        if (layout.agent_dir(agent.path) / skill_name).is_symlink()
    ]
    return batch_unlink(layout, skill_name, targets)
