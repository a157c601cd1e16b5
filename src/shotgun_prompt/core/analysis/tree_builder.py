from __future__ import annotations

"""
Selection Tree Builder.

Turns a flat list of selected paths into a recursive DirectoryNode tree.
Intermediate segments become directory nodes; the final segment of each
path becomes a leaf that remembers the original path string. A path that
would need a node to be both a file and a directory is recorded on the
root as a conflict instead of being placed.
"""

import os
from typing import Iterable, List

from shotgun_prompt.domain.tree_models import DirectoryNode

# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

def build_directory_tree(paths: Iterable[str]) -> DirectoryNode:
    """
    Build the selection tree.

    Paths are split on '/' and on the platform separator, so a backslash
    is only a separator where the OS treats it as one. Empty segments
    (leading separator, doubled separators) are skipped. The first path
    to claim a segment fixes its kind; a later path that needs the other
    kind lands in ``root.conflicts``.

    Args:
        paths: Selected file paths.

    Returns:
        DirectoryNode: Unnamed root directory.
    """
    root = DirectoryNode(name="")

    for original in paths:
        parts = split_path(original)
        current = root

        for i, part in enumerate(parts):
            is_dir = i < len(parts) - 1
            child = current.children.get(part)
            if child is None:
                child = DirectoryNode(
                    name=part,
                    path="" if is_dir else original,
                    is_directory=is_dir,
                )
                current.children[part] = child
            elif child.is_directory != is_dir:
                # Only pre-existing nodes can conflict, so nothing was added for this path
                if original not in root.conflicts:
                    root.conflicts.append(original)
                break
            current = child

    return root


def split_path(path: str) -> List[str]:
    """Split on '/' and the OS separator, dropping empty segments."""
    if os.sep != "/":
        path = path.replace(os.sep, "/")
    return [p for p in path.split("/") if p]


def sorted_children(node: DirectoryNode) -> List[DirectoryNode]:
    """Return children with directories first, then by name."""
    return sorted(node.children.values(), key=lambda c: (not c.is_directory, c.name))


def count_leaves(node: DirectoryNode) -> int:
    """Count leaf nodes below ``node``."""
    if node.is_file:
        return 1
    return sum(count_leaves(child) for child in node.children.values())


def count_directories(node: DirectoryNode) -> int:
    """Count directory nodes below ``node``, excluding ``node`` itself."""
    return sum(
        1 + count_directories(child)
        for child in node.children.values()
        if child.is_directory
    )
