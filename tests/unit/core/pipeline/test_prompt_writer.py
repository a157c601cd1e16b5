from __future__ import annotations

"""
Unit tests for the Prompt File Persistence component.

Verifies:
1. Timestamped naming and collision suffixes.
2. Atomic write behaviour (no temp file left behind).
3. Target directory validation.
"""

import os
from datetime import datetime
from pathlib import Path
from unittest.mock import patch

import pytest

from shotgun_prompt.core.pipeline.components.writer import FileWriter, write_prompt_file
from shotgun_prompt.domain.errors import WriteTargetError

FIXED_NOW = datetime(2025, 9, 4, 14, 25, 30)


@pytest.fixture
def writer() -> FileWriter:
    return FileWriter(clock=lambda: FIXED_NOW)


def test_generate_filename(writer: FileWriter) -> None:
    assert writer.generate_filename(FIXED_NOW) == "shotgun_prompt_20250904_1425.md"


def test_write_creates_file(writer: FileWriter, tmp_path: Path) -> None:
    path = writer.write_prompt_file("hello prompt", str(tmp_path))

    assert path == str(tmp_path / "shotgun_prompt_20250904_1425.md")
    assert Path(path).read_text(encoding="utf-8") == "hello prompt"
    assert sorted(os.listdir(tmp_path)) == ["shotgun_prompt_20250904_1425.md"]


def test_second_write_gets_suffix(writer: FileWriter, tmp_path: Path) -> None:
    first = writer.write_prompt_file("one", str(tmp_path))
    second = writer.write_prompt_file("two", str(tmp_path))

    assert second == first.replace(".md", "_1.md")
    assert Path(first).read_text(encoding="utf-8") == "one"
    assert Path(second).read_text(encoding="utf-8") == "two"


def test_check_collisions_free_path(writer: FileWriter, tmp_path: Path) -> None:
    target = str(tmp_path / "a.md")
    assert writer.check_collisions(target) == target


def test_check_collisions_exhausted_uses_timestamp(writer: FileWriter, tmp_path: Path) -> None:
    target = str(tmp_path / "a.md")

    with patch("shotgun_prompt.core.pipeline.components.writer.os.path.exists", return_value=True), \
            patch("shotgun_prompt.core.pipeline.components.writer.time.time_ns", return_value=123):
        assert writer.check_collisions(target) == f"{target}_123"


def test_empty_content_rejected(writer: FileWriter, tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="content cannot be empty"):
        writer.write_prompt_file("", str(tmp_path))
    assert os.listdir(tmp_path) == []


def test_missing_directory_rejected(writer: FileWriter, tmp_path: Path) -> None:
    missing = tmp_path / "nope"
    with pytest.raises(WriteTargetError, match="directory does not exist") as exc_info:
        writer.write_prompt_file("x", str(missing))
    assert exc_info.value.path == str(missing)


def test_file_target_rejected(writer: FileWriter, tmp_path: Path) -> None:
    f = tmp_path / "file.txt"
    f.write_text("x", encoding="utf-8")

    with pytest.raises(WriteTargetError, match="not a directory"):
        writer.validate_write_permissions(str(f))


def test_probe_failure_rejected(writer: FileWriter, tmp_path: Path) -> None:
    with patch("builtins.open", side_effect=PermissionError("denied")):
        with pytest.raises(WriteTargetError, match="no write permission"):
            writer.validate_write_permissions(str(tmp_path))


def test_probe_file_is_removed(writer: FileWriter, tmp_path: Path) -> None:
    writer.validate_write_permissions(str(tmp_path))
    assert not (tmp_path / ".shotgun_write_test").exists()


def test_rename_failure_cleans_temp_file(writer: FileWriter, tmp_path: Path) -> None:
    with patch(
        "shotgun_prompt.core.pipeline.components.writer.os.replace",
        side_effect=OSError("disk gone"),
    ):
        with pytest.raises(OSError, match="disk gone"):
            writer.write_prompt_file("data", str(tmp_path))

    assert os.listdir(tmp_path) == []


def test_empty_directory_means_cwd(writer: FileWriter, tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    path = write_prompt_file("x", "", writer)
    assert os.path.dirname(path) == os.getcwd()
