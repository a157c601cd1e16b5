from __future__ import annotations

"""
Guarded File Reading Component.

Resolves the embeddable body of one selected file. Guards run in a fixed
order (size limit, sensitive name, binary content) and each one replaces
the body with a placeholder sentence instead of reading. Text that does
get read is decoded leniently and markup-escaped so it cannot be mistaken
for structural tags.
"""

import html
import logging
import os
import re
from typing import Optional, Sequence

from shotgun_prompt.core.services.classifier import BinaryClassifier, is_sensitive_file
from shotgun_prompt.domain.tree_models import FileContent

logger = logging.getLogger(__name__)

# -----------------------------------------------------------------------------
# PLACEHOLDER SENTENCES
# -----------------------------------------------------------------------------

def too_large_placeholder(size: int, limit: int) -> str:
    return f"File too large ({size} bytes, limit {limit} bytes)"


def sensitive_placeholder(size: int) -> str:
    return f"⚠️ Potentially sensitive file detected ({size} bytes) - Use caution with file contents"


def binary_placeholder(size: int) -> str:
    return f"Binary file ({size} bytes)"

# -----------------------------------------------------------------------------
# READ OPERATIONS
# -----------------------------------------------------------------------------

def read_text_file(file_path: str) -> str:
    """
    Read a whole file as UTF-8, replacing undecodable byte sequences.

    Raises:
        OSError: If the file cannot be opened or read.
    """
    with open(file_path, "r", encoding="utf-8", errors="replace") as f:
        return f.read()


def escape_markup(text: str) -> str:
    """Escape '&', '<', '>', and both quote characters."""
    return html.escape(text, quote=True)


def load_file_content(
        file_path: str,
        max_file_size: int,
        detector: BinaryClassifier,
        sensitive_patterns: Optional[Sequence[re.Pattern]] = None,
) -> FileContent:
    """
    Produce the FileContent for one leaf.

    Failures are captured on the returned record rather than raised, so one
    unreadable file never aborts a batch.

    Args:
        file_path: Original selected path.
        max_file_size: Byte limit above which content is not read.
        detector: Binary classifier collaborator.
        sensitive_patterns: Compiled sensitive-name patterns (defaults apply if None).

    Returns:
        FileContent: Escaped text, a placeholder, or an error annotation.
    """
    try:
        size = os.stat(file_path).st_size
    except OSError as e:
        logger.warning(f"Cannot stat '{file_path}': {e}")
        return FileContent(path=file_path, error=f"failed to stat file: {e}")

    if size > max_file_size:
        logger.debug(f"Oversized, not embedded: {file_path} ({size} > {max_file_size})")
        return FileContent(path=file_path, content=too_large_placeholder(size, max_file_size), size=size)

    if is_sensitive_file(file_path, sensitive_patterns):
        logger.debug(f"Sensitive name, redacted: {file_path}")
        return FileContent(path=file_path, content=sensitive_placeholder(size), size=size)

    if detector.is_binary(file_path):
        logger.debug(f"Binary content, not embedded: {file_path}")
        return FileContent(path=file_path, content=binary_placeholder(size), size=size, is_binary=True)

    try:
        text = read_text_file(file_path)
    except OSError as e:
        logger.warning(f"Cannot read '{file_path}': {e}")
        return FileContent(path=file_path, error=f"failed to read file: {e}", size=size)

    return FileContent(path=file_path, content=escape_markup(text), size=size)
