from __future__ import annotations

"""
Directory Tree Structure Data Models.

Provides the recursive node type built from a selection of paths, the
per-leaf content record, and the rendering options for the tree block.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

# -----------------------------------------------------------------------------
# STRUCTURAL COMPONENTS
# -----------------------------------------------------------------------------

@dataclass
class DirectoryNode:
    """
    A node in the selection tree: either a directory or a leaf, never both.

    Attributes:
        name: Path segment shown in the tree.
        path: Original selected path string (leaves only, empty otherwise).
        is_directory: True for intermediate nodes and the root.
        children: Child nodes keyed by segment name.
        conflicts: Root only. Selected paths that could not be placed because
            a segment is a file in one path and a directory in another.
    """
    name: str
    path: str = ""
    is_directory: bool = True
    children: Dict[str, "DirectoryNode"] = field(default_factory=dict)
    conflicts: List[str] = field(default_factory=list)

    @property
    def is_file(self) -> bool:
        return not self.is_directory


@dataclass(frozen=True)
class FileContent:
    """
    Load result for one leaf.

    Attributes:
        path: Original selected path.
        content: Escaped text or a fixed-format placeholder sentence.
        error: Cause of a per-file failure, if any.
        size: On-disk size in bytes (0 when stat failed).
        is_binary: True when the content is the binary placeholder.
    """
    path: str
    content: str = ""
    error: Optional[str] = None
    size: int = 0
    is_binary: bool = False

# -----------------------------------------------------------------------------
# RENDERING OPTIONS
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class TreeFormat:
    """
    Formatting options for the tree visualization.

    Attributes:
        use_unicode: Box-drawing connectors (├── └── │) or plain ASCII (|-- `--).
        show_sizes: Append the byte size to leaf lines.
        show_binary: Emit the placeholder block for binary leaves.
        indent_size: Width of one indentation level.
    """
    use_unicode: bool = True
    show_sizes: bool = False
    show_binary: bool = True
    indent_size: int = 4


DEFAULT_TREE_FORMAT = TreeFormat()
