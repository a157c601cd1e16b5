from __future__ import annotations

"""
Domain Exceptions.

Fatal configuration failures reuse the builtin ValueError; the types here
cover the cases callers need to tell apart from generic errors.
"""


class GenerationCancelledError(RuntimeError):
    """Raised when a cooperative cancellation signal is observed."""

    def __init__(self, stage: str = "") -> None:
        self.stage = stage
        message = "operation cancelled"
        if stage:
            message = f"operation cancelled during {stage}"
        super().__init__(message)


class WriteTargetError(OSError):
    """Raised when the output directory cannot receive the prompt file."""

    def __init__(self, message: str, path: str) -> None:
        super().__init__(message)
        self.path = path


class TemplateRenderError(RuntimeError):
    """Raised when a template renderer collaborator fails."""
