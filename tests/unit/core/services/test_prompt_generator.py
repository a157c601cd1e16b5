from __future__ import annotations

"""
Unit tests for the Prompt Generation service.

Verifies variable layering, literal substitution, metadata, and the
asynchronous variant's progress and completion protocol.
"""

import threading
import time
from datetime import datetime
from pathlib import Path
from typing import List
from unittest.mock import MagicMock

import pytest

from shotgun_prompt.core.services.generator import PromptGenerator
from shotgun_prompt.domain.errors import GenerationCancelledError
from shotgun_prompt.domain.generation_models import (
    GenerationComplete,
    GenerationConfig,
    GenerationProgress,
    GenerationStage,
)
from shotgun_prompt.domain.template_models import Template

FIXED_NOW = datetime(2025, 9, 4, 14, 25, 30)


@pytest.fixture
def generator() -> PromptGenerator:
    return PromptGenerator(clock=lambda: FIXED_NOW)


def test_task_and_metadata_substitution(generator: PromptGenerator) -> None:
    template = Template(content="{{TASK}}|{{RULES}}|{{CURRENT_DATE}}|{{SELECTED_FILES_COUNT}}|{{UNKNOWN}}")
    config = GenerationConfig(template=template, task_content="Fix <bug> & ship", rules_content="be brief")

    prompt = generator.generate_prompt(config)

    assert prompt.content == "Fix <bug> & ship|be brief|2025-09-04|0|{{UNKNOWN}}"
    assert prompt.template_size == len(template.content.encode("utf-8"))
    assert prompt.total_size == len(prompt.content.encode("utf-8"))
    assert prompt.file_count == 0
    assert prompt.generated_at == FIXED_NOW


def test_sizes_are_utf8_bytes(generator: PromptGenerator) -> None:
    config = GenerationConfig(template=Template(content="日本語{{TASK}}"), task_content="é")

    prompt = generator.generate_prompt(config)

    assert prompt.content == "日本語é"
    assert prompt.template_size == 17
    assert prompt.total_size == 11


def test_fixed_names_override_caller_bindings(generator: PromptGenerator) -> None:
    config = GenerationConfig(
        template=Template(content="{{TASK}} {{NAME}}"),
        variables={"TASK": "caller", "NAME": "Ada"},
        task_content="fixed",
    )
    assert generator.generate_prompt(config).content == "fixed Ada"


def test_values_are_not_rescanned(generator: PromptGenerator) -> None:
    config = GenerationConfig(template=Template(content="{{TASK}}"), task_content="{{RULES}}", rules_content="x")
    assert generator.generate_prompt(config).content == "{{RULES}}"


def test_file_structure_is_embedded(generator: PromptGenerator, sample_project: Path) -> None:
    path = str(sample_project / "README.md")
    config = GenerationConfig(
        template=Template(content="Files ({{SELECTED_FILES_COUNT}}):\n{{FILE_STRUCTURE}}"),
        selected_files=[path],
    )
    prompt = generator.generate_prompt(config)

    assert prompt.content.startswith("Files (1):\n")
    assert f'<file path="{path}">Hello\n</file>' in prompt.content
    assert prompt.file_count == 1


def test_structure_builder_skipped_without_files() -> None:
    builder = MagicMock()
    gen = PromptGenerator(structure_builder=builder)

    prompt = gen.generate_prompt(GenerationConfig(template=Template(content="[{{FILE_STRUCTURE}}]")))

    builder.generate_structure.assert_not_called()
    assert prompt.content == "[]"


def test_token_count_is_reported(generator: PromptGenerator) -> None:
    config = GenerationConfig(template=Template(content="one two three"))
    # The offline encoder in conftest counts whitespace-separated words
    assert generator.generate_prompt(config).token_count == 3


def test_missing_template_raises(generator: PromptGenerator) -> None:
    with pytest.raises(ValueError, match="template is required"):
        generator.generate_prompt(GenerationConfig(template=None))


def test_cancelled_before_start(generator: PromptGenerator) -> None:
    event = threading.Event()
    event.set()

    with pytest.raises(GenerationCancelledError):
        generator.generate_prompt(GenerationConfig(template=Template(content="x")), event)

# -----------------------------------------------------------------------------
# ASYNC VARIANT
# -----------------------------------------------------------------------------

def test_async_success_progress_sequence(generator: PromptGenerator) -> None:
    progress: List[GenerationProgress] = []
    completions: List[GenerationComplete] = []

    handle = generator.generate_async(
        GenerationConfig(template=Template(content="{{TASK}}"), task_content="go"),
        on_progress=progress.append,
        on_complete=completions.append,
    )
    outcome = handle.join(timeout=10)

    assert outcome is not None and outcome.ok
    assert outcome.result.content == "go"
    assert [p.progress for p in progress] == [0.0, 0.25, 0.50, 0.75, 1.0]
    assert progress[-1].stage == GenerationStage.COMPLETE.value
    assert handle.done
    assert len(completions) == 1


def test_async_failure_reports_error(generator: PromptGenerator) -> None:
    progress: List[GenerationProgress] = []

    handle = generator.generate_async(GenerationConfig(template=None), on_progress=progress.append)
    outcome = handle.join(timeout=10)

    assert outcome is not None and not outcome.ok
    assert isinstance(outcome.error, ValueError)
    assert progress[-1].stage == "Generation failed"
    values = [p.progress for p in progress]
    assert values == sorted(values)


def test_async_cancellation_delivers_cancelled_error() -> None:
    started = threading.Event()
    release = threading.Event()

    def _slow_structure(paths, cancellation_event=None):
        started.set()
        release.wait(5)
        return "tree"

    builder = MagicMock()
    builder.generate_structure.side_effect = _slow_structure
    gen = PromptGenerator(structure_builder=builder)

    handle = gen.generate_async(
        GenerationConfig(template=Template(content="{{FILE_STRUCTURE}}"), selected_files=["a.txt"])
    )
    assert started.wait(5)
    handle.cancel()
    release.set()
    outcome = handle.join(timeout=10)

    assert outcome is not None
    assert isinstance(outcome.error, GenerationCancelledError)
    assert outcome.result is None


def test_async_join_waits_for_completion_callback(generator: PromptGenerator) -> None:
    completions: List[GenerationComplete] = []

    def _slow_complete(outcome: GenerationComplete) -> None:
        time.sleep(0.2)
        completions.append(outcome)

    handle = generator.generate_async(
        GenerationConfig(template=Template(content="x")),
        on_complete=_slow_complete,
    )
    outcome = handle.join(timeout=10)

    assert handle.done
    assert completions == [outcome]


def test_async_callback_error_stays_in_worker(generator: PromptGenerator) -> None:
    def _broken_complete(outcome: GenerationComplete) -> None:
        raise RuntimeError("listener exploded")

    handle = generator.generate_async(
        GenerationConfig(template=Template(content="{{TASK}}"), task_content="ok"),
        on_complete=_broken_complete,
    )
    outcome = handle.join(timeout=10)

    assert handle.done
    assert outcome is not None and outcome.ok
    assert outcome.result.content == "ok"
