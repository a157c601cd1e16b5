from __future__ import annotations

"""
Prompt Generation Data Models.

Defines the generation request, the generated prompt with its metadata,
the progress stages, and the messages exchanged by the asynchronous
generation variant.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from shotgun_prompt.domain.template_models import Template


class GenerationStage(str, Enum):
    """Coarse phases reported while a prompt is being generated."""
    PROCESSING_TEMPLATE = "Processing template"
    LOADING_FILES = "Loading file contents"
    ASSEMBLING_STRUCTURE = "Assembling file structure"
    COMPLETE = "Generation complete"
    FAILED = "Generation failed"


@dataclass(frozen=True)
class GenerationConfig:
    """
    Everything needed to render one prompt.

    Attributes:
        template: Template to render (required).
        variables: Caller bindings, applied before the fixed names.
        selected_files: Paths embedded via the structure builder.
        task_content: Value bound to TASK.
        rules_content: Value bound to RULES.
        output_path: Destination directory for the writer ("" = cwd).
        target_model: Model identifier used for token counting.
    """
    template: Optional[Template]
    variables: Dict[str, str] = field(default_factory=dict)
    selected_files: List[str] = field(default_factory=list)
    task_content: str = ""
    rules_content: str = ""
    output_path: str = ""
    target_model: str = ""


@dataclass(frozen=True)
class GeneratedPrompt:
    """
    A rendered prompt and its metadata.

    Attributes:
        content: Final rendered text.
        template_size: UTF-8 byte size of the raw template.
        file_count: Number of selected paths.
        total_size: UTF-8 byte size of the rendered text.
        generated_at: Time generation started.
        token_count: Token count of the rendered text.
    """
    content: str
    template_size: int
    file_count: int
    total_size: int
    generated_at: datetime
    token_count: int = 0


@dataclass(frozen=True)
class GenerationProgress:
    """Progress message emitted by the asynchronous generator."""
    stage: str
    progress: float
    message: str = ""


@dataclass(frozen=True)
class GenerationComplete:
    """Completion message carrying either a result or an error."""
    result: Optional[GeneratedPrompt] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.result is not None
