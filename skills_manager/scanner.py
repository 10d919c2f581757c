"""
skills_manager.scanner

Immediate-children listing of a skills directory. A skill is exactly one level
deep, so there is no recursion.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from skills_manager.config import APP_NAME
from skills_manager.errors import InvalidPath, IoFailure
from skills_manager.models import DirEntry, EntryKind

logger = logging.getLogger(f"{APP_NAME}.scanner")


def _classify_entry(entry: os.DirEntry[str]) -> DirEntry:
    path = Path(entry.path)
    if entry.is_symlink():
        target = os.readlink(entry.path)
        # Broken links still count as symlinks; links to something that exists
        # but is not a directory are stray files.
        if path.exists() and not path.is_dir():
            return DirEntry(name=entry.name, kind=EntryKind.OTHER, path=path)
        return DirEntry(name=entry.name, kind=EntryKind.SYMLINK, path=path, target=target)
    if entry.is_dir(follow_symlinks=False):
        return DirEntry(name=entry.name, kind=EntryKind.DIRECTORY, path=path)
    return DirEntry(name=entry.name, kind=EntryKind.OTHER, path=path)


def list_entries(dir_path: Path) -> list[DirEntry]:
    """
    function_purpose: List the immediate children of dir_path, classified by kind.

    - Missing directory -> [] (an agent that was never installed is normal state)
    - Exists but is not a directory -> InvalidPath
    - Any other OS error (permission denied, ...) -> IoFailure
    - Hidden entries (leading '.') are skipped
    - Entries are returned sorted by name
    """
    try:
        exists = dir_path.exists()
        is_dir = dir_path.is_dir()
    except OSError as exc:
        raise IoFailure.wrap(exc, f"stat {dir_path}") from exc
    if not exists:
        return []
    if not is_dir:
        raise InvalidPath(f"{dir_path} is not a directory", path=str(dir_path))

    entries: list[DirEntry] = []
    try:
        with os.scandir(dir_path) as it:
            for entry in it:
                if entry.name.startswith("."):
                    continue
                entries.append(_classify_entry(entry))
    except FileNotFoundError:
        # Removed between the existence check and the listing.
        return []
    except OSError as exc:
        raise IoFailure.wrap(exc, f"read directory {dir_path}") from exc

    entries.sort(key=lambda e: e.name)
    logger.debug("Scanned %s: %d entries", dir_path, len(entries))
    return entries
