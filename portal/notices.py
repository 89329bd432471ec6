"""Transient user notices (toasts).

Presentation is external; controllers only emit notices through a
NoticeSink. NoticeBoard keeps them in memory so the HTTP surface and
tests can read what would have been shown.
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Protocol, runtime_checkable

import structlog
from pydantic import BaseModel, Field

logger = structlog.get_logger()


class NoticeLevel(str, Enum):
    """Severity of a notice."""

    SUCCESS = "success"
    ERROR = "error"


class Notice(BaseModel):
    """A notice shown to the user."""

    level: NoticeLevel
    message: str
    emitted_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


@runtime_checkable
class NoticeSink(Protocol):
    """Anything that can present notices to the user."""

    def success(self, message: str) -> None:
        """Show a success notice."""
        ...

    def error(self, message: str) -> None:
        """Show an error notice."""
        ...


class NoticeBoard:
    """In-memory NoticeSink."""

    def __init__(self):
        """Initialize empty board."""
        self._notices: list[Notice] = []

    def success(self, message: str) -> None:
        self._emit(NoticeLevel.SUCCESS, message)

    def error(self, message: str) -> None:
        self._emit(NoticeLevel.ERROR, message)

    def _emit(self, level: NoticeLevel, message: str) -> None:
        self._notices.append(Notice(level=level, message=message))
        logger.info("notice emitted", level=level.value, message=message)

    @property
    def last(self) -> Notice | None:
        """Most recent notice, if any."""
        return self._notices[-1] if self._notices else None

    def get_notices(self) -> list[Notice]:
        """Return copy of emitted notices."""
        return list(self._notices)

    def clear(self) -> None:
        """Drop all notices."""
        self._notices.clear()
