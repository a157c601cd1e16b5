from __future__ import annotations

"""
Tree Renderer.

Serializes a DirectoryNode tree depth-first into branch lines, embedding
each leaf's resolved content inside a ``<file path="...">`` block.
"""

from dataclasses import dataclass
from typing import List, Mapping, Optional

from shotgun_prompt.core.analysis.tree_builder import sorted_children
from shotgun_prompt.domain.constants import FILE_CLOSE_TAG, FILE_OPEN_TAG_PREFIX, FILE_OPEN_TAG_SUFFIX
from shotgun_prompt.domain.tree_models import (
    DEFAULT_TREE_FORMAT,
    DirectoryNode,
    FileContent,
    TreeFormat,
)

PATH_CONFLICT_MESSAGE = "path is both a file and a directory in the selection"


@dataclass(frozen=True)
class _Glyphs:
    branch: str
    last: str
    pipe: str
    blank: str


def resolve_glyphs(fmt: TreeFormat) -> _Glyphs:
    """
    Build connector strings for the configured style and indent width.

    With the default format this yields '├── ', '└── ', '│   ' and four
    spaces.
    """
    width = fmt.indent_size
    dashes = max(width - 2, 0)
    if fmt.use_unicode:
        return _Glyphs(
            branch="├" + "─" * dashes + " ",
            last="└" + "─" * dashes + " ",
            pipe="│" + " " * (width - 1),
            blank=" " * width,
        )
    return _Glyphs(
        branch="|" + "-" * dashes + " ",
        last="`" + "-" * dashes + " ",
        pipe="|" + " " * (width - 1),
        blank=" " * width,
    )

# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

def render_tree_with_content(
        root: DirectoryNode,
        contents: Mapping[str, FileContent],
        fmt: TreeFormat = DEFAULT_TREE_FORMAT,
) -> str:
    """
    Render the whole tree and its embedded file blocks.

    The unnamed root is not printed; its children start at column zero.
    Paths the builder could not place follow the tree as error blocks.

    Args:
        root: Tree produced by build_directory_tree.
        contents: Load results keyed by original leaf path.
        fmt: Rendering options.

    Returns:
        str: The structure document.
    """
    lines: List[str] = []
    glyphs = resolve_glyphs(fmt)

    children = sorted_children(root)
    for i, child in enumerate(children):
        _render_node(child, "", i == len(children) - 1, contents, fmt, glyphs, lines)

    for path in root.conflicts:
        lines.append(format_file_block(path, f"ERROR: {PATH_CONFLICT_MESSAGE}"))

    return "".join(lines)


def format_file_block(path: str, body: str) -> str:
    """Wrap a leaf body in its file tag."""
    return f"{FILE_OPEN_TAG_PREFIX}{path}{FILE_OPEN_TAG_SUFFIX}{body}{FILE_CLOSE_TAG}\n"

# -----------------------------------------------------------------------------
# INTERNAL HELPERS
# -----------------------------------------------------------------------------

def _render_node(
        node: DirectoryNode,
        prefix: str,
        is_last: bool,
        contents: Mapping[str, FileContent],
        fmt: TreeFormat,
        glyphs: _Glyphs,
        lines: List[str],
) -> None:
    connector = glyphs.last if is_last else glyphs.branch
    loaded = contents.get(node.path) if node.is_file else None

    label = node.name
    if node.is_file and fmt.show_sizes and loaded is not None and loaded.error is None:
        label = f"{label} ({loaded.size} bytes)"
    lines.append(f"{prefix}{connector}{label}\n")

    if node.is_file:
        _render_leaf(node, loaded, fmt, lines)
        return

    child_prefix = prefix + (glyphs.blank if is_last else glyphs.pipe)
    children = sorted_children(node)
    for i, child in enumerate(children):
        _render_node(child, child_prefix, i == len(children) - 1, contents, fmt, glyphs, lines)


def _render_leaf(
        node: DirectoryNode,
        loaded: Optional[FileContent],
        fmt: TreeFormat,
        lines: List[str],
) -> None:
    if loaded is None:
        lines.append(format_file_block(node.path, "ERROR: File not found in content map"))
    elif loaded.error is not None:
        lines.append(format_file_block(node.path, f"ERROR: {loaded.error}"))
    elif loaded.is_binary and not fmt.show_binary:
        return
    else:
        lines.append(format_file_block(node.path, loaded.content))
