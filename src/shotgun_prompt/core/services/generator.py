from __future__ import annotations

"""
Prompt Generation Service.

Merges caller bindings, task and rules text, automatic metadata, and the
structure document into a template. The asynchronous variant runs the
same work on a daemon thread and talks to the caller only through
progress and completion callbacks plus the cancellation handle it owns.
"""

import logging
import threading
from datetime import datetime
from typing import Callable, Dict, Optional

from shotgun_prompt.core.cancellation import check_cancelled
from shotgun_prompt.core.services.estimator import byte_length
from shotgun_prompt.core.services.structure_builder import FileStructureBuilder
from shotgun_prompt.core.services.templates import substitute_placeholders
from shotgun_prompt.core.services.tokenizer import TokenizerService
from shotgun_prompt.domain.constants import (
    DEFAULT_TARGET_MODEL,
    VAR_CURRENT_DATE,
    VAR_FILE_STRUCTURE,
    VAR_RULES,
    VAR_SELECTED_FILES_COUNT,
    VAR_TASK,
)
from shotgun_prompt.domain.generation_models import (
    GeneratedPrompt,
    GenerationComplete,
    GenerationConfig,
    GenerationProgress,
    GenerationStage,
)

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[GenerationProgress], None]
CompletionCallback = Callable[[GenerationComplete], None]


class PromptGenerator:
    """Combines template, variables, and file structure into a final prompt."""

    def __init__(
            self,
            structure_builder: Optional[FileStructureBuilder] = None,
            clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.structure_builder = structure_builder or FileStructureBuilder()
        self._clock = clock

    def generate_prompt(
            self,
            config: GenerationConfig,
            cancellation_event: Optional[threading.Event] = None,
    ) -> GeneratedPrompt:
        """
        Render the prompt described by ``config``.

        Variables are layered in order: caller bindings, TASK and RULES,
        then CURRENT_DATE, SELECTED_FILES_COUNT and FILE_STRUCTURE. Later
        layers override earlier ones on name clashes.

        Raises:
            ValueError: If no template is supplied.
            GenerationCancelledError: If cancellation is observed at a stage boundary.
        """
        if config.template is None:
            raise ValueError("template is required for generation")

        start_time = self._clock()
        check_cancelled(cancellation_event, "generation start")

        # Step 1: variables
        variables: Dict[str, str] = dict(config.variables)
        variables[VAR_TASK] = config.task_content
        variables[VAR_RULES] = config.rules_content
        variables[VAR_CURRENT_DATE] = start_time.strftime("%Y-%m-%d")
        variables[VAR_SELECTED_FILES_COUNT] = str(len(config.selected_files))

        check_cancelled(cancellation_event, "variable preparation")

        # Step 2: structure
        file_structure = ""
        if config.selected_files:
            logger.info(f"Assembling structure for {len(config.selected_files)} file(s).")
            file_structure = self.structure_builder.generate_structure(
                config.selected_files, cancellation_event
            )
        variables[VAR_FILE_STRUCTURE] = file_structure

        check_cancelled(cancellation_event, "structure assembly")

        # Step 3: substitution
        content = substitute_placeholders(config.template.content, variables)

        check_cancelled(cancellation_event, "template substitution")

        # Step 4: metadata
        token_count = TokenizerService(config.target_model or DEFAULT_TARGET_MODEL).count(content)
        total_size = byte_length(content)
        logger.info(f"Prompt generated: {total_size} bytes, {token_count} tokens.")

        return GeneratedPrompt(
            content=content,
            template_size=byte_length(config.template.content),
            file_count=len(config.selected_files),
            total_size=total_size,
            generated_at=start_time,
            token_count=token_count,
        )

    def generate_async(
            self,
            config: GenerationConfig,
            on_progress: Optional[ProgressCallback] = None,
            on_complete: Optional[CompletionCallback] = None,
    ) -> "GenerationHandle":
        """
        Run generate_prompt on a background thread.

        Progress is reported at 0, 0.25, 0.50 and 0.75 before the work, then
        1.0 on success; failures repeat 0.75 under the FAILED stage so the
        sequence never decreases. Exactly one GenerationComplete is delivered,
        and it is delivered before join() returns or done turns True. Errors
        raised by the callbacks are logged and never leave the worker.

        Returns:
            GenerationHandle: Owns the cancellation event and worker thread.
        """
        handle = GenerationHandle()

        def _emit(stage: GenerationStage, progress: float, message: str = "") -> None:
            if on_progress:
                on_progress(GenerationProgress(stage=stage.value, progress=progress, message=message))

        def _run() -> None:
            result: Optional[GeneratedPrompt] = None
            error: Optional[BaseException] = None
            try:
                _emit(GenerationStage.PROCESSING_TEMPLATE, 0.0)
                _emit(GenerationStage.PROCESSING_TEMPLATE, 0.25)
                _emit(GenerationStage.LOADING_FILES, 0.50)
                _emit(GenerationStage.ASSEMBLING_STRUCTURE, 0.75)

                result = self.generate_prompt(config, handle.cancellation_event)
                _emit(GenerationStage.COMPLETE, 1.0)
            except Exception as e:
                logger.error(f"Async generation failed: {e}")
                result = None
                error = e
                try:
                    _emit(GenerationStage.FAILED, 0.75, str(e))
                except Exception as cb_error:
                    logger.error(f"Progress callback failed: {cb_error}")
            finally:
                outcome = GenerationComplete(result=result, error=error)
                if on_complete:
                    try:
                        on_complete(outcome)
                    except Exception as e:
                        logger.error(f"Completion callback failed: {e}", exc_info=True)
                # join() and done only report completion once the callback has run
                handle._finish(outcome)

        handle._start(threading.Thread(target=_run, name="PromptGenerator", daemon=True))
        return handle


class GenerationHandle:
    """
    Controls one asynchronous generation.

    ``cancel()`` sets the owned event; the worker observes it at the next
    stage boundary and completes with GenerationCancelledError.
    """

    def __init__(self) -> None:
        self.cancellation_event = threading.Event()
        self._done = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.outcome: Optional[GenerationComplete] = None

    @property
    def done(self) -> bool:
        return self._done.is_set()

    def cancel(self) -> None:
        self.cancellation_event.set()

    def join(self, timeout: Optional[float] = None) -> Optional[GenerationComplete]:
        """Wait for completion and return the outcome (None on timeout)."""
        self._done.wait(timeout)
        return self.outcome

    def _start(self, thread: threading.Thread) -> None:
        self._thread = thread
        thread.start()

    def _finish(self, outcome: GenerationComplete) -> None:
        self.outcome = outcome
        self._done.set()
