from __future__ import annotations

"""
Global Pytest Configuration and Fixtures.

This module sets up the testing environment, including:
1. Path manipulation to ensure the 'src' directory is importable.
2. An offline stand-in for tiktoken encoders so no test downloads BPE files.
3. Shared fixtures for settings dictionaries and small project trees.
"""

import os
import sys
from pathlib import Path
from typing import Any, Dict, List
from unittest.mock import patch

import pytest

# -----------------------------------------------------------------------------
# Path Configuration
# -----------------------------------------------------------------------------
_SRC_PATH = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src"))
if _SRC_PATH not in sys.path:
    sys.path.insert(0, _SRC_PATH)


# -----------------------------------------------------------------------------
# Offline Tokenizer
# -----------------------------------------------------------------------------
class _WhitespaceEncoding:
    """Counts whitespace-separated words; enough to exercise the counting path."""

    def encode(self, text: str, disallowed_special: Any = ()) -> List[str]:
        return text.split()


@pytest.fixture(autouse=True)
def offline_tokenizer():
    """Replace encoder loading so tests never reach the network."""
    with patch(
        "shotgun_prompt.core.services.tokenizer._get_encoding",
        return_value=_WhitespaceEncoding(),
    ) as mock_get:
        yield mock_get


# -----------------------------------------------------------------------------
# Shared Fixtures
# -----------------------------------------------------------------------------
@pytest.fixture
def mock_settings_dict() -> Dict[str, Any]:
    """
    Return a valid, complete settings dictionary for testing.

    Mirrors the keys defined in 'shotgun_prompt.domain.config'.
    """
    return {
        # Builder
        "max_file_size": 1024 * 1024,
        "max_concurrency": 4,

        # Tree format
        "use_unicode": True,
        "show_sizes": False,
        "show_binary": True,
        "indent_size": 4,

        # Selection
        "respect_ignore_files": True,

        # Output
        "output_dir": "",
        "target_model": "gpt-4o",

        # Safety
        "confirm_excessive": True,
    }


@pytest.fixture
def sample_project(tmp_path: Path) -> Path:
    """
    Create a small project tree.

    Structure:
    /project
      /src
        app.py
      /docs
        notes.md
      README.md
      .env
    """
    root = tmp_path / "project"
    (root / "src").mkdir(parents=True)
    (root / "docs").mkdir()

    (root / "src" / "app.py").write_text("def main():\n    return 1 < 2\n", encoding="utf-8")
    (root / "docs" / "notes.md").write_text("# Notes & ideas\n", encoding="utf-8")
    (root / "README.md").write_text("Hello\n", encoding="utf-8")
    (root / ".env").write_text("API_KEY=secret\n", encoding="utf-8")

    return root
