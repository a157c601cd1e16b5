from __future__ import annotations

"""
Unit tests for the Selection Expansion service.

Verifies sorted directory expansion, de-duplication, ignore-file rules,
and the directories that are never walked.
"""

import os
from pathlib import Path

from shotgun_prompt.core.services.scanner import expand_selection


def _rel(paths, root: Path):
    return [os.path.relpath(p, root) for p in paths]


def test_expand_directory_sorted(sample_project: Path) -> None:
    selected = expand_selection([str(sample_project)])

    assert _rel(selected, sample_project) == [
        ".env",
        "README.md",
        os.path.join("docs", "notes.md"),
        os.path.join("src", "app.py"),
    ]


def test_expand_mixed_and_deduplicated(sample_project: Path) -> None:
    readme = str(sample_project / "README.md")
    selected = expand_selection([readme, str(sample_project / "src"), readme])

    assert selected == [readme, str(sample_project / "src" / "app.py")]


def test_missing_paths_pass_through(tmp_path: Path) -> None:
    ghost = str(tmp_path / "ghost.txt")
    assert expand_selection([ghost]) == [ghost]


def test_gitignore_prunes_directories_and_files(tmp_path: Path) -> None:
    (tmp_path / "build").mkdir()
    (tmp_path / "build" / "out.txt").write_text("artifact", encoding="utf-8")
    (tmp_path / "pkg").mkdir()
    (tmp_path / "pkg" / "mod.py").write_text("x = 1\n", encoding="utf-8")
    (tmp_path / "pkg" / "debug.log").write_text("noise", encoding="utf-8")
    (tmp_path / ".gitignore").write_text("# artifacts\nbuild/\n*.log\n", encoding="utf-8")

    selected = _rel(expand_selection([str(tmp_path)]), tmp_path)

    assert selected == [".gitignore", os.path.join("pkg", "mod.py")]


def test_shotgunignore_overrides_gitignore(tmp_path: Path) -> None:
    (tmp_path / "keep.log").write_text("k", encoding="utf-8")
    (tmp_path / "drop.log").write_text("d", encoding="utf-8")
    (tmp_path / ".gitignore").write_text("*.log\n", encoding="utf-8")
    (tmp_path / ".shotgunignore").write_text("!keep.log\n.*ignore\n", encoding="utf-8")

    assert _rel(expand_selection([str(tmp_path)]), tmp_path) == ["keep.log"]


def test_ignore_files_can_be_disabled(tmp_path: Path) -> None:
    (tmp_path / "a.log").write_text("a", encoding="utf-8")
    (tmp_path / ".gitignore").write_text("*.log\n", encoding="utf-8")

    selected = _rel(expand_selection([str(tmp_path)], respect_ignore_files=False), tmp_path)
    assert selected == [".gitignore", "a.log"]


def test_default_excluded_directories_never_walked(tmp_path: Path) -> None:
    for name in (".git", "node_modules", "__pycache__"):
        (tmp_path / name).mkdir()
        (tmp_path / name / "inner.txt").write_text("x", encoding="utf-8")
    (tmp_path / "main.py").write_text("pass\n", encoding="utf-8")

    assert _rel(expand_selection([str(tmp_path)], respect_ignore_files=False), tmp_path) == ["main.py"]


def test_explicit_file_is_kept_even_if_ignored(tmp_path: Path) -> None:
    log = tmp_path / "trace.log"
    log.write_text("t", encoding="utf-8")
    (tmp_path / ".gitignore").write_text("*.log\n", encoding="utf-8")

    assert expand_selection([str(log)]) == [str(log)]
