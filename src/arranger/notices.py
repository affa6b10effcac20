"""User-facing notices raised when a collaborator call fails."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal

LOGGER = logging.getLogger(__name__)

NoticeLevel = Literal["info", "warning", "error"]


@dataclass(slots=True, frozen=True)
class Notice:
    """A transient toast-style message.

    Attributes:
        level: Severity used for styling.
        message: Human-readable text.
        created_at: Time the notice was raised.
    """

    level: NoticeLevel
    message: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class NoticeLog:
    """Notifier that keeps every notice it receives, newest last."""

    def __init__(self) -> None:
        self._notices: list[Notice] = []

    def notify(self, notice: Notice) -> None:
        LOGGER.debug("Notice (%s): %s", notice.level, notice.message)
        self._notices.append(notice)

    @property
    def notices(self) -> list[Notice]:
        return list(self._notices)

    def messages(self, level: NoticeLevel | None = None) -> list[str]:
        return [n.message for n in self._notices if level is None or n.level == level]

    def clear(self) -> None:
        self._notices.clear()


__all__ = ["Notice", "NoticeLevel", "NoticeLog"]
