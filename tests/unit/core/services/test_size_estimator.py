from __future__ import annotations

"""
Unit tests for the Size Estimation service.

Verifies the four-part breakdown, the warning tier boundaries, renderer
integration, and the progressive (cancellable) variant.
"""

import os
import threading
from pathlib import Path
from typing import List, Tuple

import pytest

from shotgun_prompt.core.services.estimator import (
    SizeEstimator,
    calculate_formatting_overhead,
    calculate_tree_structure_overhead,
    determine_warning_level,
)
from shotgun_prompt.core.services.templates import PlaceholderRenderer
from shotgun_prompt.domain.errors import GenerationCancelledError, TemplateRenderError
from shotgun_prompt.domain.estimation_models import EstimationConfig, SizeEstimate, WarningLevel
from shotgun_prompt.domain.template_models import Template

KIB = 1024

# -----------------------------------------------------------------------------
# TIERS
# -----------------------------------------------------------------------------

@pytest.mark.parametrize("size, expected", [
    (50 * KIB, WarningLevel.NORMAL),
    (150 * KIB, WarningLevel.LARGE),
    (700 * KIB, WarningLevel.VERY_LARGE),
    (3 * KIB * KIB, WarningLevel.EXCESSIVE),
    (100 * KIB - 1, WarningLevel.NORMAL),
    (100 * KIB, WarningLevel.LARGE),
    (500 * KIB, WarningLevel.VERY_LARGE),
    (2048 * KIB, WarningLevel.EXCESSIVE),
])
def test_warning_tiers(size: int, expected: WarningLevel) -> None:
    assert determine_warning_level(size) == expected


def test_tier_labels() -> None:
    assert WarningLevel.VERY_LARGE.label == "Very Large"
    assert WarningLevel.NORMAL < WarningLevel.EXCESSIVE

# -----------------------------------------------------------------------------
# PURE CALCULATIONS
# -----------------------------------------------------------------------------

def test_tree_overhead_counts_separators() -> None:
    path = os.path.join("a", "b", "c.txt")
    assert calculate_tree_structure_overhead(path) == 2 * 6 + len(path)


def test_formatting_overhead() -> None:
    paths = ["x.py", "dir/y.py"]
    tags = (len('<file path="') + 4 + 2 + 7) + (len('<file path="') + 8 + 2 + 7)
    expected = tags + 1000 // 20 + 2 * 50

    assert calculate_formatting_overhead(paths, 1000) == expected


def test_estimated_tokens_rounds_up() -> None:
    assert SizeEstimate(total_size=9).estimated_tokens == 3

# -----------------------------------------------------------------------------
# FULL ESTIMATE
# -----------------------------------------------------------------------------

def test_estimate_breakdown(tmp_path: Path) -> None:
    a = tmp_path / "a.txt"
    a.write_text("a" * 300, encoding="utf-8")
    b = tmp_path / "b.txt"
    b.write_text("b" * 100, encoding="utf-8")
    paths = [str(a), str(b), str(tmp_path / "missing.txt"), str(tmp_path)]

    config = EstimationConfig(
        template=Template(content="Task: {{.TASK}}"),
        variables={"TASK": "refactor"},
        selected_files=paths,
    )
    est = SizeEstimator().estimate_prompt_size(config)

    assert est.template_size == len("Task: refactor")
    assert est.file_content_size == 400
    assert est.tree_struct_size == (
        calculate_tree_structure_overhead(str(a)) + calculate_tree_structure_overhead(str(b))
    )
    assert est.overhead_size == calculate_formatting_overhead(paths, 400)
    assert est.total_size == (
        est.template_size + est.file_content_size + est.tree_struct_size + est.overhead_size
    )
    assert est.warning_level == WarningLevel.NORMAL


def test_estimate_without_tree(tmp_path: Path) -> None:
    f = tmp_path / "f.txt"
    f.write_text("data", encoding="utf-8")

    config = EstimationConfig(template=Template(content="x"), selected_files=[str(f)], include_tree=False)
    assert SizeEstimator().estimate_prompt_size(config).tree_struct_size == 0


def test_estimate_requires_template() -> None:
    with pytest.raises(ValueError, match="template is required"):
        SizeEstimator().estimate_prompt_size(EstimationConfig(template=None))


def test_estimate_uses_renderer() -> None:
    config = EstimationConfig(
        template=Template(content="{{TASK}} / {{ .RULES }}"),
        variables={"TASK": "t", "RULES": "rr"},
    )
    est = SizeEstimator(renderer=PlaceholderRenderer()).estimate_prompt_size(config)
    assert est.template_size == len("t / rr")


def test_template_size_counts_utf8_bytes() -> None:
    """Two-byte characters count twice, so the tier follows the encoded size."""
    config = EstimationConfig(template=Template(content="é" * 60 * KIB))

    est = SizeEstimator(renderer=PlaceholderRenderer()).estimate_prompt_size(config)

    assert est.template_size == 120 * KIB
    assert est.warning_level == WarningLevel.LARGE


def test_projected_delta_uses_byte_lengths() -> None:
    config = EstimationConfig(
        template=Template(content="日本 {{.TASK}}"),
        variables={"TASK": "é"},
    )
    est = SizeEstimator().estimate_prompt_size(config)
    assert est.template_size == len("日本 é".encode("utf-8"))


def test_non_ascii_paths_count_bytes() -> None:
    path = "données.txt"
    assert calculate_tree_structure_overhead(path) == len(path.encode("utf-8"))

    tags = len('<file path="') + len(path.encode("utf-8")) + 2 + 7
    assert calculate_formatting_overhead([path], 0) == tags + 50


def test_renderer_failure_is_wrapped() -> None:
    class BrokenRenderer:
        def render(self, template, variables):
            raise KeyError("boom")

    config = EstimationConfig(template=Template(content="x"))
    with pytest.raises(TemplateRenderError, match="failed to process template"):
        SizeEstimator(renderer=BrokenRenderer()).estimate_prompt_size(config)


def test_estimate_honours_cancellation(tmp_path: Path) -> None:
    f = tmp_path / "f.txt"
    f.write_text("data", encoding="utf-8")
    event = threading.Event()
    event.set()

    config = EstimationConfig(template=Template(content="x"), selected_files=[str(f)])
    with pytest.raises(GenerationCancelledError):
        SizeEstimator().estimate_prompt_size(config, event)

# -----------------------------------------------------------------------------
# PROGRESSIVE VARIANT
# -----------------------------------------------------------------------------

def test_progressive_reports_each_step(tmp_path: Path) -> None:
    files = []
    for i, size in enumerate([10, 20]):
        f = tmp_path / f"f{i}.txt"
        f.write_bytes(b"z" * size)
        files.append(str(f))
    files.append(str(tmp_path / "missing"))

    calls: List[Tuple[int, int, str]] = []
    total = SizeEstimator().calculate_progressively(files, lambda *a: calls.append(a))

    assert total == 30
    assert calls == [(0, 3, files[0]), (1, 3, files[1]), (2, 3, files[2]), (3, 3, "")]


def test_progressive_cancel_mid_loop(tmp_path: Path) -> None:
    files = []
    for i in range(3):
        f = tmp_path / f"f{i}.txt"
        f.write_text("x", encoding="utf-8")
        files.append(str(f))

    event = threading.Event()
    calls: List[Tuple[int, int, str]] = []

    def _on_progress(done: int, total: int, path: str) -> None:
        calls.append((done, total, path))
        event.set()

    with pytest.raises(GenerationCancelledError):
        SizeEstimator().calculate_progressively(files, _on_progress, event)

    assert len(calls) == 1
