from __future__ import annotations

"""
Prompt Size Estimation Service.

Projects the byte size of a prompt before the structure document is
assembled. Only ``stat`` calls touch the filesystem, so an estimate stays
cheap even for large selections. Tree and tag overheads are approximated
from path lengths instead of being rendered.
"""

import logging
import os
import stat
import threading
from typing import Callable, Mapping, Optional, Sequence, Tuple

from shotgun_prompt.core.cancellation import check_cancelled
from shotgun_prompt.core.services.templates import TemplateRenderer, dotted_placeholder
from shotgun_prompt.domain.constants import (
    ESCAPING_OVERHEAD_DIVISOR,
    EXCESSIVE_SIZE_THRESHOLD,
    FILE_CLOSE_TAG,
    FILE_OPEN_TAG_PREFIX,
    FILE_OPEN_TAG_SUFFIX,
    LARGE_SIZE_THRESHOLD,
    MARKDOWN_OVERHEAD_PER_FILE,
    TREE_CHARS_PER_LEVEL,
    VERY_LARGE_SIZE_THRESHOLD,
)
from shotgun_prompt.domain.errors import TemplateRenderError
from shotgun_prompt.domain.estimation_models import EstimationConfig, SizeEstimate, WarningLevel
from shotgun_prompt.domain.template_models import Template

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, str], None]


class SizeEstimator:
    """
    Computes four-part size breakdowns and warning tiers.

    A template renderer is optional. Without one, the template size is
    projected from placeholder occurrences instead of rendered.
    """

    def __init__(self, renderer: Optional[TemplateRenderer] = None) -> None:
        self._renderer = renderer

    def estimate_prompt_size(
            self,
            config: EstimationConfig,
            cancellation_event: Optional[threading.Event] = None,
    ) -> SizeEstimate:
        """
        Estimate the total size of the prompt output.

        Args:
            config: Template, bindings, and selected paths.
            cancellation_event: Optional event polled before each stat.

        Returns:
            SizeEstimate: Byte breakdown and warning tier.

        Raises:
            ValueError: If no template is supplied.
            TemplateRenderError: If the renderer collaborator fails.
            GenerationCancelledError: If cancellation is observed.
        """
        if config.template is None:
            raise ValueError("template is required for size estimation")

        template_size = self.calculate_template_size(config.template, config.variables)
        content_size, tree_size = self._calculate_file_structure_size(
            config.selected_files, config.include_tree, cancellation_event
        )
        overhead_size = calculate_formatting_overhead(config.selected_files, content_size)

        total = template_size + content_size + tree_size + overhead_size
        level = determine_warning_level(total)

        if level >= WarningLevel.LARGE:
            logger.warning(f"Estimated prompt size {total} bytes ({level.label}).")
        else:
            logger.debug(f"Estimated prompt size {total} bytes ({level.label}).")

        return SizeEstimate(
            total_size=total,
            template_size=template_size,
            file_content_size=content_size,
            tree_struct_size=tree_size,
            overhead_size=overhead_size,
            warning_level=level,
        )

    def calculate_progressively(
            self,
            paths: Sequence[str],
            on_progress: Optional[ProgressCallback] = None,
            cancellation_event: Optional[threading.Event] = None,
    ) -> int:
        """
        Sum on-disk file sizes while reporting progress.

        ``on_progress(processed, total, current_path)`` is invoked before
        each stat and once more at the end with an empty path.

        Raises:
            GenerationCancelledError: As soon as cancellation is observed.
        """
        total_size = 0
        total = len(paths)

        for i, path in enumerate(paths):
            check_cancelled(cancellation_event, "progressive size calculation")

            if on_progress:
                on_progress(i, total, path)

            total_size += _file_size_or_zero(path)

        if on_progress:
            on_progress(total, total, "")

        return total_size

    def calculate_template_size(self, template: Template, variables: Mapping[str, str]) -> int:
        """
        Measure or project the rendered template size in UTF-8 bytes.

        With a renderer the exact rendered size is returned. Otherwise each
        ``{{.NAME}}`` occurrence contributes the byte difference between the
        value and the placeholder.
        """
        if self._renderer is None:
            size = byte_length(template.content)
            for key, value in variables.items():
                token = dotted_placeholder(key)
                occurrences = template.content.count(token)
                size += occurrences * (byte_length(value) - byte_length(token))
            return size

        try:
            rendered = self._renderer.render(template, variables)
        except Exception as e:
            raise TemplateRenderError(f"failed to process template: {e}") from e
        return byte_length(rendered)

    def _calculate_file_structure_size(
            self,
            paths: Sequence[str],
            include_tree: bool,
            cancellation_event: Optional[threading.Event],
    ) -> Tuple[int, int]:
        content_size = 0
        tree_size = 0

        for path in paths:
            check_cancelled(cancellation_event, "size estimation")

            try:
                st = os.stat(path)
            except OSError as e:
                logger.debug(f"Excluded from estimate, cannot stat '{path}': {e}")
                continue

            if stat.S_ISDIR(st.st_mode):
                continue

            content_size += st.st_size
            if include_tree:
                tree_size += calculate_tree_structure_overhead(path)

        return content_size, tree_size

# -----------------------------------------------------------------------------
# PURE CALCULATIONS
# -----------------------------------------------------------------------------

def byte_length(text: str) -> int:
    """Size of ``text`` once encoded as UTF-8."""
    return len(text.encode("utf-8", errors="surrogateescape"))


def calculate_tree_structure_overhead(path: str) -> int:
    """Approximate branch glyphs and indentation for one path."""
    levels = path.count(os.sep)
    return levels * TREE_CHARS_PER_LEVEL + byte_length(path)


def calculate_formatting_overhead(paths: Sequence[str], content_size: int) -> int:
    """Tag bytes per file, plus escaping and markdown allowances."""
    tag_bytes = 0
    for path in paths:
        open_tag = byte_length(FILE_OPEN_TAG_PREFIX) + byte_length(path) + byte_length(FILE_OPEN_TAG_SUFFIX)
        tag_bytes += open_tag + byte_length(FILE_CLOSE_TAG)

    escaping = content_size // ESCAPING_OVERHEAD_DIVISOR
    markdown = len(paths) * MARKDOWN_OVERHEAD_PER_FILE
    return tag_bytes + escaping + markdown


def determine_warning_level(total_size: int) -> WarningLevel:
    """Map a byte total to its warning tier."""
    if total_size >= EXCESSIVE_SIZE_THRESHOLD:
        return WarningLevel.EXCESSIVE
    if total_size >= VERY_LARGE_SIZE_THRESHOLD:
        return WarningLevel.VERY_LARGE
    if total_size >= LARGE_SIZE_THRESHOLD:
        return WarningLevel.LARGE
    return WarningLevel.NORMAL


def _file_size_or_zero(path: str) -> int:
    try:
        st = os.stat(path)
    except OSError:
        return 0
    if stat.S_ISDIR(st.st_mode):
        return 0
    return st.st_size
