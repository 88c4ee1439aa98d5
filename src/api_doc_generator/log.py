"""Structured generation log.

The pipeline collects leveled messages here instead of printing them, so
the caller decides how to present them. Every entry is forwarded to the
stdlib logger as well.
"""

import logging
from enum import Enum

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class Level(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


_STDLIB_LEVELS = {
    Level.INFO: logging.INFO,
    Level.WARNING: logging.WARNING,
    Level.ERROR: logging.ERROR,
}


class LogEntry(BaseModel):
    """A single message recorded during generation."""

    level: Level
    message: str
    file: str | None = None


class GenerationLog:
    """Ordered, in-memory sink of generation messages."""

    def __init__(self):
        self.entries: list[LogEntry] = []

    def add(self, level: Level, message: str, file: str | None = None) -> LogEntry:
        entry = LogEntry(level=level, message=message, file=file)
        self.entries.append(entry)
        logger.log(_STDLIB_LEVELS[level], "%s%s", message, f" ({file})" if file else "")
        return entry

    def info(self, message: str, file: str | None = None) -> LogEntry:
        return self.add(Level.INFO, message, file)

    def warning(self, message: str, file: str | None = None) -> LogEntry:
        return self.add(Level.WARNING, message, file)

    def error(self, message: str, file: str | None = None) -> LogEntry:
        return self.add(Level.ERROR, message, file)

    def by_level(self, level: Level) -> list[LogEntry]:
        return [e for e in self.entries if e.level == level]

    def __len__(self) -> int:
        return len(self.entries)

    def __bool__(self) -> bool:
        # an empty log is still a log
        return True

    def __iter__(self):
        return iter(self.entries)
