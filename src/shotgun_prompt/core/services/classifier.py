from __future__ import annotations

"""
File Classification Service.

Answers two questions about a selected path before its content is
embedded: does it look binary, and does its name suggest it holds
secrets. Binary detection sniffs the leading bytes for known container
signatures and falls back to a NUL-byte heuristic.
"""

import logging
import os
import re
from typing import Final, List, Optional, Protocol, Sequence, Tuple

from shotgun_prompt.domain.constants import (
    BINARY_SNIFF_BYTES,
    DEFAULT_MAX_FILE_SIZE,
    SENSITIVE_PATTERNS,
)

logger = logging.getLogger(__name__)

# -----------------------------------------------------------------------------
# MAGIC SIGNATURES
# -----------------------------------------------------------------------------
# (offset, signature) pairs for common non-text formats.
_MAGIC_SIGNATURES: Final[List[Tuple[int, bytes]]] = [
    (0, b"\x89PNG\r\n\x1a\n"),
    (0, b"\xff\xd8\xff"),
    (0, b"GIF87a"),
    (0, b"GIF89a"),
    (0, b"II*\x00"),
    (0, b"MM\x00*"),
    (0, b"RIFF"),
    (0, b"%PDF-"),
    (0, b"PK\x03\x04"),
    (0, b"PK\x05\x06"),
    (0, b"\x1f\x8b"),
    (0, b"BZh"),
    (0, b"\xfd7zXZ\x00"),
    (0, b"7z\xbc\xaf\x27\x1c"),
    (0, b"Rar!\x1a\x07"),
    (0, b"\x7fELF"),
    (0, b"MZ"),
    (0, b"\xca\xfe\xba\xbe"),
    (0, b"\xcf\xfa\xed\xfe"),
    (0, b"\x00asm"),
    (0, b"SQLite format 3\x00"),
    (0, b"OggS"),
    (0, b"fLaC"),
    (0, b"ID3"),
    (0, b"wOFF"),
    (0, b"wOF2"),
    (4, b"ftyp"),
    (257, b"ustar"),
]


class BinaryClassifier(Protocol):
    """Collaborator contract for binary detection."""

    def is_binary(self, path: str) -> bool:
        ...


class BinaryDetector:
    """
    Default binary classifier.

    Files larger than ``max_file_size`` are reported as not binary so the
    size guard, not the sniffer, decides how they are rendered. Files that
    cannot be opened are also reported as not binary; the subsequent read
    surfaces the real error.
    """

    def __init__(self, max_file_size: int = DEFAULT_MAX_FILE_SIZE) -> None:
        self.max_file_size = max_file_size

    def is_binary(self, path: str) -> bool:
        try:
            if os.path.getsize(path) > self.max_file_size:
                return False
            with open(path, "rb") as f:
                head = f.read(BINARY_SNIFF_BYTES)
        except OSError as e:
            logger.debug(f"Binary sniff skipped for {path}: {e}")
            return False

        if not head:
            return False
        return has_magic_signature(head) or b"\x00" in head


def has_magic_signature(head: bytes) -> bool:
    """Return True if the buffer starts with a known binary signature."""
    for offset, signature in _MAGIC_SIGNATURES:
        if head[offset:offset + len(signature)] == signature:
            return True
    return False

# -----------------------------------------------------------------------------
# SENSITIVE PATH DETECTION
# -----------------------------------------------------------------------------

def compile_sensitive_patterns(patterns: Optional[Sequence[str]] = None) -> List[re.Pattern]:
    """
    Compile the sensitive filename catalogue, case-insensitively.

    Invalid expressions are logged and skipped.
    """
    compiled: List[re.Pattern] = []
    for pattern in patterns if patterns is not None else SENSITIVE_PATTERNS:
        try:
            compiled.append(re.compile(pattern, re.IGNORECASE))
        except re.error as e:
            logger.warning(f"Ignoring invalid sensitive pattern '{pattern}': {e}")
    return compiled


_COMPILED_SENSITIVE: Final[List[re.Pattern]] = compile_sensitive_patterns()


def is_sensitive_file(path: str, patterns: Optional[Sequence[re.Pattern]] = None) -> bool:
    """
    Check whether a path's name suggests it contains credentials or keys.

    Args:
        path: File path, any separator style.
        patterns: Compiled patterns; defaults to the built-in catalogue.

    Returns:
        bool: True if any pattern matches the '/'-normalized path.
    """
    normalized = path.replace("\\", "/")
    for rx in patterns if patterns is not None else _COMPILED_SENSITIVE:
        if rx.search(normalized):
            return True
    return False
