from __future__ import annotations

"""
Pipeline Domain Data Models.

Defines the unified result returned by the generation engine to the
interface layer, plus factory helpers for the success and failure paths.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from shotgun_prompt.domain.estimation_models import SizeEstimate
from shotgun_prompt.domain.generation_models import GeneratedPrompt


@dataclass(frozen=True)
class GenerationResult:
    """
    Outcome of a complete estimate, generate and write run.

    Attributes:
        ok: Flag indicating success or failure.
        error: Descriptive message in case of failure.
        estimate: Pre-commit size estimate, when it was computed.
        prompt: Generated prompt, when generation completed.
        output_path: Absolute path of the written file ("" when not written).
        cancelled: True when the run stopped on a cancellation signal.
        summary: Flat execution metrics for reporting.
    """
    ok: bool
    error: str = ""
    estimate: Optional[SizeEstimate] = None
    prompt: Optional[GeneratedPrompt] = None
    output_path: str = ""
    cancelled: bool = False
    summary: Dict[str, Any] = field(default_factory=dict)


def create_error_result(
        error: str,
        estimate: Optional[SizeEstimate] = None,
        cancelled: bool = False,
        summary_extra: Optional[Dict[str, Any]] = None,
) -> GenerationResult:
    """Create a failed result instance."""
    return GenerationResult(
        ok=False,
        error=error,
        estimate=estimate,
        cancelled=cancelled,
        summary=summary_extra or {},
    )


def create_success_result(
        estimate: Optional[SizeEstimate],
        prompt: Optional[GeneratedPrompt],
        output_path: str = "",
        summary_extra: Optional[Dict[str, Any]] = None,
) -> GenerationResult:
    """Create a successful result instance."""
    return GenerationResult(
        ok=True,
        estimate=estimate,
        prompt=prompt,
        output_path=output_path,
        summary=summary_extra or {},
    )
