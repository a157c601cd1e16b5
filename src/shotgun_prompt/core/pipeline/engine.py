from __future__ import annotations

"""
Core orchestration pipeline.

Coordinates one prompt run end to end:
1. Validates settings and template bindings, then builds the services.
2. Estimates the prompt size from stat calls only.
3. Gates the run when the estimate reaches the Excessive tier.
4. Generates the prompt (structure build plus substitution).
5. Writes the prompt atomically to the output directory.

Failures never escape as exceptions; they are folded into a
GenerationResult so interface layers can map them to exit codes.
"""

import logging
import threading
from typing import Any, Dict, Mapping, Optional, Sequence

from shotgun_prompt.core.pipeline.components.writer import FileWriter
from shotgun_prompt.core.pipeline.validator import validate_config
from shotgun_prompt.core.services.estimator import SizeEstimator
from shotgun_prompt.core.services.generator import PromptGenerator
from shotgun_prompt.core.services.structure_builder import FileStructureBuilder
from shotgun_prompt.core.services.templates import (
    PlaceholderRenderer,
    default_bindings,
    validate_bindings,
)
from shotgun_prompt.domain.constants import (
    VAR_CURRENT_DATE,
    VAR_FILE_STRUCTURE,
    VAR_RULES,
    VAR_SELECTED_FILES_COUNT,
    VAR_TASK,
)
from shotgun_prompt.domain.errors import GenerationCancelledError, TemplateRenderError
from shotgun_prompt.domain.estimation_models import EstimationConfig, SizeEstimate, WarningLevel
from shotgun_prompt.domain.generation_models import GenerationConfig
from shotgun_prompt.domain.pipeline_models import (
    GenerationResult,
    create_error_result,
    create_success_result,
)
from shotgun_prompt.domain.template_models import Template
from shotgun_prompt.domain.tree_models import TreeFormat
from shotgun_prompt.infra.fs import normalize_path

logger = logging.getLogger(__name__)

CONFIRMATION_REQUIRED = "requires_confirmation"
INVALID_BINDINGS = "invalid_bindings"

_AUTOMATIC_VARIABLES = (VAR_CURRENT_DATE, VAR_SELECTED_FILES_COUNT, VAR_FILE_STRUCTURE)


def run_generation(
        settings: Optional[Dict[str, Any]],
        *,
        template: Template,
        selected_files: Sequence[str],
        task: str = "",
        rules: str = "",
        variables: Optional[Mapping[str, str]] = None,
        estimate_only: bool = False,
        assume_yes: bool = False,
        cancellation_event: Optional[threading.Event] = None,
        writer: Optional[FileWriter] = None,
) -> GenerationResult:
    """
    Execute the estimate, generate, and write stages.

    Args:
        settings: Raw or partial settings dictionary (validated here).
        template: Template to render.
        selected_files: Ordered file paths to embed.
        task: Text bound to TASK.
        rules: Text bound to RULES.
        variables: Extra caller bindings, layered over the template defaults.
        estimate_only: Stop after the estimate without generating.
        assume_yes: Skip the Excessive-tier confirmation gate.
        cancellation_event: Cooperative cancellation flag shared by all stages.
        writer: Optional FileWriter (injected by tests to pin the clock).

    Returns:
        GenerationResult: Status, estimate, prompt, output path, and summary.
    """
    logger.info("Generation run started.")

    cfg, warnings = validate_config(settings or {}, strict=False)
    for warning in warnings:
        logger.warning(f"Configuration Warning: {warning}")

    bindings: Dict[str, str] = default_bindings(template)
    bindings.update(variables or {})
    files = list(selected_files)
    summary: Dict[str, Any] = {"file_count": len(files), "estimate_only": estimate_only}

    # -------------------------------------------------------------------------
    # 1) Template Variable Constraints
    # -------------------------------------------------------------------------
    problems = validate_bindings(
        template, _estimation_bindings(bindings, task, rules), provided=_AUTOMATIC_VARIABLES
    )
    if problems:
        msg = f"Invalid template variables: {'; '.join(problems)}"
        logger.error(msg)
        summary[INVALID_BINDINGS] = True
        return create_error_result(msg, summary_extra=summary)

    # -------------------------------------------------------------------------
    # 2) Service Construction
    # -------------------------------------------------------------------------
    try:
        builder = FileStructureBuilder(
            max_file_size=cfg["max_file_size"],
            max_concurrency=cfg["max_concurrency"],
            tree_format=TreeFormat(
                use_unicode=cfg["use_unicode"],
                show_sizes=cfg["show_sizes"],
                show_binary=cfg["show_binary"],
                indent_size=cfg["indent_size"],
            ),
        )
    except ValueError as e:
        logger.error(f"Invalid builder settings: {e}")
        return create_error_result(str(e), summary_extra=summary)

    # -------------------------------------------------------------------------
    # 3) Estimation
    # -------------------------------------------------------------------------
    estimate: Optional[SizeEstimate] = None
    try:
        estimate = SizeEstimator(renderer=PlaceholderRenderer()).estimate_prompt_size(
            EstimationConfig(
                template=template,
                variables=_estimation_bindings(bindings, task, rules),
                selected_files=files,
            ),
            cancellation_event,
        )
    except GenerationCancelledError as e:
        logger.warning(f"Run cancelled: {e}")
        return create_error_result(str(e), cancelled=True, summary_extra=summary)
    except (ValueError, TemplateRenderError) as e:
        logger.error(f"Estimation failed: {e}")
        return create_error_result(f"Estimation failure: {e}", summary_extra=summary)

    summary.update({
        "estimated_size": estimate.total_size,
        "estimated_tokens": estimate.estimated_tokens,
        "warning_level": estimate.warning_level.label,
    })

    if estimate_only:
        logger.info("Estimate-only run finished.")
        return create_success_result(estimate, None, summary_extra=summary)

    # -------------------------------------------------------------------------
    # 4) Confirmation Gate
    # -------------------------------------------------------------------------
    if (
            estimate.warning_level >= WarningLevel.EXCESSIVE
            and cfg["confirm_excessive"]
            and not assume_yes
    ):
        msg = (
            f"Estimated prompt size {estimate.total_size} bytes is "
            f"{estimate.warning_level.label}. Confirmation required."
        )
        logger.warning(msg)
        summary[CONFIRMATION_REQUIRED] = True
        return create_error_result(msg, estimate=estimate, summary_extra=summary)

    # -------------------------------------------------------------------------
    # 5) Generation
    # -------------------------------------------------------------------------
    gen_config = GenerationConfig(
        template=template,
        variables=bindings,
        selected_files=files,
        task_content=task,
        rules_content=rules,
        output_path=normalize_path(cfg["output_dir"], "") if cfg["output_dir"] else "",
        target_model=cfg["target_model"],
    )
    generator = PromptGenerator(structure_builder=builder)
    try:
        prompt = generator.generate_prompt(gen_config, cancellation_event)
    except GenerationCancelledError as e:
        logger.warning(f"Run cancelled: {e}")
        return create_error_result(str(e), estimate=estimate, cancelled=True, summary_extra=summary)
    except ValueError as e:
        logger.error(f"Generation failed: {e}")
        return create_error_result(f"Generation failure: {e}", estimate=estimate, summary_extra=summary)

    summary.update({"total_size": prompt.total_size, "token_count": prompt.token_count})

    # -------------------------------------------------------------------------
    # 6) Persistence
    # -------------------------------------------------------------------------
    try:
        output_path = (writer or FileWriter()).write_prompt_file(prompt.content, gen_config.output_path)
    except (ValueError, OSError) as e:
        logger.error(f"Write failed: {e}")
        return create_error_result(f"Write failure: {e}", estimate=estimate, summary_extra=summary)

    logger.info("Generation run finished.")
    return create_success_result(estimate, prompt, output_path, summary_extra=summary)


def _estimation_bindings(bindings: Mapping[str, str], task: str, rules: str) -> Dict[str, str]:
    # The estimator sees the same free-text values the generator will bind
    merged = dict(bindings)
    merged[VAR_TASK] = task
    merged[VAR_RULES] = rules
    return merged
