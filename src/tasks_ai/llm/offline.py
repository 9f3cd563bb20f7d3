# src/tasks_ai/llm/offline.py

from __future__ import annotations

import asyncio
import logging

logger = logging.getLogger(__name__)


class OfflineDecomposer:
    """
    Offline deterministic decomposer used for demos when no API key is configured.

    Always returns the same three generic steps after a short delay, so the
    pending/idle cycle is still visible in the UI.
    """

    def __init__(self, delay_seconds: float = 1.0) -> None:
        self._delay = max(0.0, float(delay_seconds))

    async def decompose(self, task_text: str) -> list[str]:
        logger.warning("No API key configured; returning demo subtasks.")
        if self._delay:
            await asyncio.sleep(self._delay)
        return [
            f"Research {task_text}",
            f"Draft outline for {task_text}",
            f"Review and finalize {task_text}",
        ]
