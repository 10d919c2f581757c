"""
skills_manager.metadata

SKILL.md reader. Two formats are understood:

1. YAML frontmatter delimited by '---' lines (name, description, allowed-tools)
2. Heading-based fallback:

       # Skill Name

       One paragraph of description.

       ## Allowed Tools
       - tool1
       - tool2

Reading never raises: a missing, unreadable or malformed file yields empty
metadata so scans can proceed without special-casing parse failures.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any

import yaml

from skills_manager.config import APP_NAME, SKILL_MD
from skills_manager.models import SkillMetadata

logger = logging.getLogger(f"{APP_NAME}.metadata")

NO_DESCRIPTION = "No description available"


def _parse_frontmatter_and_body(text: str) -> tuple[dict[str, Any], str]:
    """
    function_purpose: Parse YAML frontmatter delimited by '---' lines, followed by markdown body.

    Returns a (frontmatter_dict, body_text) tuple.
    """
    lines = text.lstrip().splitlines(keepends=False)
    if not lines or lines[0].strip() != "---":
        raise ValueError("SKILL.md does not begin with a '---' line")

    fm_lines: list[str] = []
    idx = 1
    while idx < len(lines) and lines[idx].strip() != "---":
        fm_lines.append(lines[idx])
        idx += 1

    if idx >= len(lines):
        raise ValueError("YAML frontmatter must end with a '---' line")

    fm = yaml.safe_load("\n".join(fm_lines)) or {}
    if not isinstance(fm, dict):
        raise ValueError("YAML frontmatter must parse to a mapping")
    return fm, "\n".join(lines[idx + 1 :])


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _as_tools(value: Any) -> tuple[str, ...]:
    # Lists keep source order and duplicates; a plain string is the
    # space/comma separated form.
    if isinstance(value, list):
        return tuple(str(v).strip() for v in value if v is not None and str(v).strip())
    if isinstance(value, str):
        return tuple(t for t in re.split(r"[,\s]+", value) if t)
    return ()


def _parse_heading_format(text: str) -> SkillMetadata:
    lines = text.splitlines()
    name = ""
    i = 0

    while i < len(lines):
        line = lines[i].strip()
        i += 1
        if line.startswith("# "):
            name = line[2:].strip()
            break

    while i < len(lines) and not lines[i].strip():
        i += 1

    desc_lines: list[str] = []
    while i < len(lines):
        line = lines[i].strip()
        if not line or line.startswith("#"):
            break
        desc_lines.append(line)
        i += 1

    tools: list[str] = []
    while i < len(lines):
        line = lines[i].strip()
        i += 1
        if line.startswith("#") and "allowed tools" in line.lower():
            while i < len(lines):
                item = lines[i].strip()
                if item.startswith("#"):
                    break
                if item.startswith(("- ", "* ")):
                    tool = item[2:].strip()
                    if tool:
                        tools.append(tool)
                i += 1
            break

    return SkillMetadata(
        name=name, description=" ".join(desc_lines), allowed_tools=tuple(tools)
    )


def parse_skill_md(text: str) -> SkillMetadata:
    """
    function_purpose: Extract SkillMetadata from SKILL.md content.

    Tries YAML frontmatter first and falls back to the heading format when there is
    no frontmatter or it does not parse to a mapping. Missing fields are empty.
    """
    try:
        fm, _body = _parse_frontmatter_and_body(text)
    except (ValueError, yaml.YAMLError):
        return _parse_heading_format(text)

    return SkillMetadata(
        name=_as_text(fm.get("name")),
        description=_as_text(fm.get("description")),
        allowed_tools=_as_tools(fm.get("allowed-tools", fm.get("allowed_tools"))),
    )


def read_metadata(skill_dir: Path) -> SkillMetadata:
    """
    function_purpose: Read and parse <skill_dir>/SKILL.md.

    Returns empty metadata when the file is missing, unreadable, or the skill
    directory is a broken symlink.
    """
    md_path = skill_dir / SKILL_MD
    try:
        text = md_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return SkillMetadata()
    except (OSError, UnicodeDecodeError) as exc:
        logger.debug("Could not read %s: %s", md_path, exc)
        return SkillMetadata()
    return parse_skill_md(text)


def load_skill_metadata(skill_dir: Path, dir_name: str) -> SkillMetadata:
    """
    function_purpose: read_metadata plus display fallbacks (directory name, placeholder description).
    """
    parsed = read_metadata(skill_dir)
    return SkillMetadata(
        name=parsed.name or dir_name,
        description=parsed.description or NO_DESCRIPTION,
        allowed_tools=parsed.allowed_tools,
    )


def format_skill_md(metadata: SkillMetadata, body: str = "") -> str:
    """
    function_purpose: Render SkillMetadata as SKILL.md frontmatter followed by an optional body.
    """
    fm: dict[str, Any] = {"name": metadata.name, "description": metadata.description}
    if metadata.allowed_tools:
        fm["allowed-tools"] = list(metadata.allowed_tools)
    fm_text = yaml.safe_dump(
        fm, sort_keys=False, allow_unicode=True, default_flow_style=False
    )
    out = f"---\n{fm_text}---\n"
    if body.strip():
        out += "\n" + body.rstrip() + "\n"
    return out
