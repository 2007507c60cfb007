from __future__ import annotations

import fnmatch
from pathlib import Path
from typing import List, Optional

from core.errors import InvalidArgumentError


def get_files_within_limits(path: str, search_pattern: str, limits: int) -> Optional[List[str]]:
    """Return at most ``limits`` files under ``path`` whose names match ``search_pattern``.

    Subdirectories are walked depth-first, in name order, before the files of
    the directory itself. Returns ``None`` when ``path`` is not a directory or
    ``limits`` is below one.
    """
    if not path:
        raise InvalidArgumentError("path must be a non-empty string.", argument="path")
    if not search_pattern:
        raise InvalidArgumentError("search_pattern must be a non-empty string.", argument="search_pattern")

    root = Path(path)
    if not root.is_dir():
        return None
    if limits < 1:
        return None

    children = sorted(root.iterdir(), key=lambda p: p.name)
    result: List[str] = []
    for folder in children:
        if len(result) >= limits:
            break
        # symlinked directories can loop back onto an ancestor
        if not folder.is_dir() or folder.is_symlink():
            continue
        files = get_files_within_limits(str(folder), search_pattern, limits - len(result))
        if files:
            result.extend(files[: limits - len(result)])

    if len(result) < limits:
        files = [str(p) for p in children if p.is_file() and fnmatch.fnmatch(p.name, search_pattern)]
        result.extend(files[: limits - len(result)])
    return result
