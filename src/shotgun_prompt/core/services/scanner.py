from __future__ import annotations

"""
Selection Expansion Service.

Flattens the paths given on the command line into the ordered list of
files the builder embeds. Directories are walked with their own ignore
files applied and the default excluded directories pruned; explicit file
arguments are always kept.
"""

import logging
import os
from typing import Iterable, List

from shotgun_prompt.core.pipeline.components.filters import (
    IgnoreRule,
    is_default_excluded,
    is_ignored,
    load_ignore_rules,
)

logger = logging.getLogger(__name__)


def expand_selection(paths: Iterable[str], *, respect_ignore_files: bool = True) -> List[str]:
    """
    Flatten a mixed list of files and directories into regular file paths.

    Directories are walked recursively and their files are emitted in
    sorted order. Explicit file arguments keep their original spelling.
    Duplicates are dropped while preserving first-seen order.

    Args:
        paths: Raw paths supplied by the caller.
        respect_ignore_files: Apply .gitignore/.shotgunignore found at the
            top of each selected directory.

    Returns:
        List[str]: Ordered, de-duplicated file paths.
    """
    seen = set()
    selected: List[str] = []

    for raw in paths:
        if os.path.isdir(raw):
            rules = load_ignore_rules(raw) if respect_ignore_files else []
            candidates = _walk_directory(raw, rules)
        else:
            candidates = [raw]

        for candidate in candidates:
            if candidate not in seen:
                seen.add(candidate)
                selected.append(candidate)

    return selected


def _walk_directory(root_path: str, rules: List[IgnoreRule]) -> List[str]:
    found: List[str] = []
    skipped = 0

    for root, dirs, files in os.walk(root_path):
        rel_root = os.path.relpath(root, root_path)
        base_parts = [] if rel_root == os.curdir else rel_root.split(os.sep)

        # In-place pruning keeps os.walk out of excluded subtrees
        kept_dirs = []
        for d in sorted(dirs):
            if is_default_excluded(d) or is_ignored(rules, base_parts + [d], True):
                skipped += 1
                continue
            kept_dirs.append(d)
        dirs[:] = kept_dirs

        for name in sorted(files):
            if is_ignored(rules, base_parts + [name], False):
                skipped += 1
                continue
            found.append(os.path.join(root, name))

    if skipped:
        logger.debug(f"Skipped {skipped} ignored entr(ies) under {root_path}")
    return found
