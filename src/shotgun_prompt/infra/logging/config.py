from __future__ import annotations

"""
Logging Settings.

The CLI derives one LoggingConfig per run from ``--debug``: INFO records
go to stderr, and a debug run adds DEBUG detail plus a rotating file in
the user data directory.
"""

import logging
from dataclasses import dataclass
from typing import Optional

CONSOLE_FORMAT = "%(levelname)s | %(message)s"
FILE_FORMAT = "%(asctime)s | %(levelname)s | %(threadName)s | %(name)s | %(message)s"
FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass(frozen=True)
class LoggingConfig:
    """
    Destinations and verbosity for one process.

    ``level`` is a standard level name; an unrecognised name means INFO.
    ``log_file`` of None disables the rotating file.
    """
    level: str = "INFO"
    console: bool = True
    log_file: Optional[str] = None
    max_bytes: int = 1024 * 1024
    backup_count: int = 2

    @classmethod
    def for_cli(cls, debug: bool, log_file: Optional[str] = None) -> "LoggingConfig":
        if debug:
            return cls(level="DEBUG", console=True, log_file=log_file)
        return cls(level="INFO", console=True)

    @property
    def level_int(self) -> int:
        value = logging.getLevelName(str(self.level or "").strip().upper())
        return value if isinstance(value, int) else logging.INFO

    def console_formatter(self) -> logging.Formatter:
        return logging.Formatter(CONSOLE_FORMAT)

    def file_formatter(self) -> logging.Formatter:
        return logging.Formatter(FILE_FORMAT, datefmt=FILE_DATE_FORMAT)
