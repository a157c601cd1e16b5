from __future__ import annotations

"""
Prompt File Persistence Component.

Writes the final prompt under a timestamped, collision-free name. Content
goes to a sibling temporary file that is flushed and fsynced before being
renamed over the final name, so readers never observe a partial prompt.
"""

import logging
import os
import time
from datetime import datetime
from typing import Callable, Optional

from shotgun_prompt.domain.constants import (
    MAX_COLLISION_ATTEMPTS,
    OUTPUT_FILE_EXTENSION,
    OUTPUT_FILE_PREFIX,
    OUTPUT_TIMESTAMP_FORMAT,
    TEMP_FILE_SUFFIX,
    WRITE_PROBE_NAME,
)
from shotgun_prompt.domain.errors import WriteTargetError

logger = logging.getLogger(__name__)


class FileWriter:
    """Handles writing prompt files to disk."""

    def __init__(self, clock: Callable[[], datetime] = datetime.now) -> None:
        self._clock = clock

    def write_prompt_file(self, content: str, directory: str = "") -> str:
        """
        Persist ``content`` atomically inside ``directory``.

        Args:
            content: Final prompt text (must not be empty).
            directory: Target directory; "" means the current working directory.

        Returns:
            str: Path of the written file.

        Raises:
            ValueError: If content is empty.
            WriteTargetError: If the directory is missing, not a directory,
                or not writable.
            OSError: If writing, syncing, or renaming the file fails.
        """
        if not content:
            raise ValueError("content cannot be empty")

        base_filename = self.generate_filename(self._clock())
        directory = directory or os.getcwd()

        self.validate_write_permissions(directory)

        full_path = self.check_collisions(os.path.join(directory, base_filename))
        temp_path = full_path + TEMP_FILE_SUFFIX

        try:
            with open(temp_path, "w", encoding="utf-8", newline="") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_path, full_path)
        except OSError as e:
            logger.error(f"Failed to write prompt file '{full_path}': {e}")
            raise
        finally:
            if os.path.exists(temp_path):
                os.remove(temp_path)

        logger.info(f"Prompt written to: {full_path}")
        return full_path

    def generate_filename(self, timestamp: datetime) -> str:
        """Return ``shotgun_prompt_YYYYMMDD_HHMM.md`` for ``timestamp``."""
        stamp = timestamp.strftime(OUTPUT_TIMESTAMP_FORMAT)
        return f"{OUTPUT_FILE_PREFIX}_{stamp}{OUTPUT_FILE_EXTENSION}"

    def check_collisions(self, path: str) -> str:
        """
        Return a free variant of ``path``.

        Tries ``name_1.ext`` through ``name_1000.ext``; past that a
        nanosecond timestamp is appended to the original path.
        """
        if not os.path.exists(path):
            return path

        base, ext = os.path.splitext(path)
        for counter in range(1, MAX_COLLISION_ATTEMPTS + 1):
            candidate = f"{base}_{counter}{ext}"
            if not os.path.exists(candidate):
                return candidate

        logger.warning(f"Collision limit reached for '{path}'. Using timestamp suffix.")
        return f"{path}_{time.time_ns()}"

    def validate_write_permissions(self, path: str) -> None:
        """
        Confirm ``path`` is an existing, writable directory.

        A probe file is created and removed to test writability.

        Raises:
            WriteTargetError: On any of the failure modes.
        """
        if not os.path.exists(path):
            raise WriteTargetError(f"directory does not exist: {path}", path)
        if not os.path.isdir(path):
            raise WriteTargetError(f"path is not a directory: {path}", path)

        probe = os.path.join(path, WRITE_PROBE_NAME)
        try:
            with open(probe, "w", encoding="utf-8"):
                pass
            os.remove(probe)
        except PermissionError as e:
            raise WriteTargetError(f"no write permission for directory: {path}", path) from e
        except OSError as e:
            raise WriteTargetError(f"cannot write to directory: {path} ({e})", path) from e


def write_prompt_file(content: str, directory: str = "", writer: Optional[FileWriter] = None) -> str:
    """Module-level shortcut for FileWriter.write_prompt_file."""
    return (writer or FileWriter()).write_prompt_file(content, directory)
