from __future__ import annotations

"""
Ignore-file Filtering.

Parses .gitignore and .shotgunignore rules from a selected directory and
decides which entries of a directory walk are excluded. Rules follow the
gitignore conventions: '#' comments, '!' negation, a trailing '/' for
directory-only rules, and a leading or inner '/' anchoring the rule to
the selected directory. The last matching rule wins.
"""

import fnmatch
import logging
import os
from dataclasses import dataclass
from typing import List, Optional, Sequence

from shotgun_prompt.domain.constants import DEFAULT_EXCLUDED_DIRS, IGNORE_FILE_NAMES

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IgnoreRule:
    """One parsed line of an ignore file."""
    parts: List[str]
    negated: bool = False
    dir_only: bool = False
    anchored: bool = False

    def matches(self, rel_parts: Sequence[str], is_dir: bool) -> bool:
        """
        Check the rule against a path relative to the selected directory.

        A rule matching any parent directory also matches the path.
        """
        pattern = self.parts if self.anchored else ["**"] + self.parts
        for k in range(1, len(rel_parts) + 1):
            candidate_is_dir = k < len(rel_parts) or is_dir
            if self.dir_only and not candidate_is_dir:
                continue
            if _match_segments(pattern, list(rel_parts[:k])):
                return True
        return False

# -----------------------------------------------------------------------------
# PARSING
# -----------------------------------------------------------------------------

def parse_ignore_line(line: str) -> Optional[IgnoreRule]:
    """Translate one ignore-file line into a rule, or None for blanks and comments."""
    text = line.strip()
    if not text or text.startswith("#"):
        return None

    negated = text.startswith("!")
    if negated:
        text = text[1:]

    dir_only = text.endswith("/")
    text = text.rstrip("/")

    anchored = "/" in text
    parts = [p for p in text.split("/") if p]
    if not parts:
        return None

    return IgnoreRule(parts=parts, negated=negated, dir_only=dir_only, anchored=anchored)


def load_ignore_rules(root_path: str) -> List[IgnoreRule]:
    """
    Read the ignore files found directly in ``root_path``.

    Files are read in IGNORE_FILE_NAMES order, so .shotgunignore rules
    override .gitignore rules. Unreadable files are logged and skipped.
    """
    rules: List[IgnoreRule] = []
    for file_name in IGNORE_FILE_NAMES:
        ignore_path = os.path.join(root_path, file_name)
        if not os.path.isfile(ignore_path):
            continue
        try:
            with open(ignore_path, "r", encoding="utf-8", errors="replace") as f:
                loaded = [r for r in (parse_ignore_line(line) for line in f) if r is not None]
        except OSError as e:
            logger.warning(f"Could not read ignore file '{ignore_path}': {e}")
            continue
        logger.debug(f"Loaded {len(loaded)} rule(s) from {ignore_path}")
        rules.extend(loaded)
    return rules

# -----------------------------------------------------------------------------
# MATCHING
# -----------------------------------------------------------------------------

def is_ignored(rules: Sequence[IgnoreRule], rel_parts: Sequence[str], is_dir: bool) -> bool:
    """Apply ``rules`` in order; the last rule that matches decides."""
    ignored = False
    for rule in rules:
        if rule.matches(rel_parts, is_dir):
            ignored = not rule.negated
    return ignored


def is_default_excluded(dir_name: str) -> bool:
    """VCS metadata, editor state and dependency caches are never walked."""
    return dir_name in DEFAULT_EXCLUDED_DIRS


def _match_segments(pattern: Sequence[str], parts: Sequence[str]) -> bool:
    # '**' spans any number of segments; other segments are fnmatch globs
    if not pattern:
        return not parts
    head = pattern[0]
    if head == "**":
        return any(_match_segments(pattern[1:], parts[i:]) for i in range(len(parts) + 1))
    if not parts:
        return False
    return fnmatch.fnmatchcase(parts[0], head) and _match_segments(pattern[1:], parts[1:])
