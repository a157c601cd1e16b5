from __future__ import annotations

"""
Cooperative Cancellation Helpers.

Long-running operations accept an optional ``threading.Event`` and poll it
at stage and loop boundaries. Nothing is ever interrupted forcibly.
"""

import threading
from typing import Optional

from shotgun_prompt.domain.errors import GenerationCancelledError


def is_cancelled(cancellation_event: Optional[threading.Event]) -> bool:
    """Return True if the event exists and has been set."""
    return cancellation_event is not None and cancellation_event.is_set()


def check_cancelled(cancellation_event: Optional[threading.Event], stage: str = "") -> None:
    """
    Raise if cancellation has been requested.

    Args:
        cancellation_event: Event flag used to abort execution.
        stage: Label of the boundary being crossed, for the error message.

    Raises:
        GenerationCancelledError: If the event is set.
    """
    if is_cancelled(cancellation_event):
        raise GenerationCancelledError(stage)
