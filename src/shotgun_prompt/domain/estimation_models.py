from __future__ import annotations

"""
Size Estimation Data Models.

Defines the inputs and the byte breakdown produced by the size estimator,
together with the warning tier classification.
"""

import math
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Dict, List, Optional

from shotgun_prompt.domain.constants import CHARS_PER_TOKEN_AVG
from shotgun_prompt.domain.template_models import Template


class WarningLevel(IntEnum):
    """Ordered size tiers derived from the total estimated document size."""
    NORMAL = 0
    LARGE = 1
    VERY_LARGE = 2
    EXCESSIVE = 3

    @property
    def label(self) -> str:
        return _LEVEL_LABELS[self]


_LEVEL_LABELS: Dict[WarningLevel, str] = {
    WarningLevel.NORMAL: "Normal",
    WarningLevel.LARGE: "Large",
    WarningLevel.VERY_LARGE: "Very Large",
    WarningLevel.EXCESSIVE: "Excessive",
}


@dataclass(frozen=True)
class EstimationConfig:
    """
    Inputs for a size estimate.

    Attributes:
        template: Template whose rendered length is measured.
        variables: Caller bindings keyed by placeholder name.
        selected_files: Paths that will be embedded.
        include_tree: Account for tree glyph overhead.
    """
    template: Optional[Template]
    variables: Dict[str, str] = field(default_factory=dict)
    selected_files: List[str] = field(default_factory=list)
    include_tree: bool = True


@dataclass(frozen=True)
class SizeEstimate:
    """
    Four-part byte breakdown of the projected document.

    Attributes:
        total_size: Sum of all parts.
        template_size: Rendered template length.
        file_content_size: Sum of on-disk file sizes.
        tree_struct_size: Branch glyph and path display overhead.
        overhead_size: Tag, escaping, and markdown allowances.
        warning_level: Tier derived from total_size.
    """
    total_size: int = 0
    template_size: int = 0
    file_content_size: int = 0
    tree_struct_size: int = 0
    overhead_size: int = 0
    warning_level: WarningLevel = WarningLevel.NORMAL

    @property
    def estimated_tokens(self) -> int:
        """Rough token projection using the characters-per-token ratio."""
        return math.ceil(self.total_size / CHARS_PER_TOKEN_AVG)
