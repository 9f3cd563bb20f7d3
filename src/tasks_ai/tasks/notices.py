# src/tasks_ai/tasks/notices.py

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


class NoticeBoard:
    """
    Single-slot holder for the transient, dismissible error banner.

    Deliberately not part of any Task: a failed decomposition leaves the task
    itself clean (idle, no subtasks) and only this banner tells the user.
    """

    def __init__(self) -> None:
        self._current: str | None = None

    @property
    def current(self) -> str | None:
        return self._current

    def publish(self, text: str) -> None:
        self._current = text
        logger.info("Notice: %s", text)

    def dismiss(self) -> None:
        self._current = None

    def take(self) -> str | None:
        text, self._current = self._current, None
        return text
