# src/tasks_ai/tasks/decomposition.py

from __future__ import annotations

"""
Decomposition coordinator.

Bridges the synchronous TaskStore to the asynchronous, fallible decomposer:
- claims the task via begin_generation (precondition errors surface to the caller,
  the service is not contacted),
- awaits the decomposer,
- reconciles the result with resolve_generation using the claim token,
- normalizes every service failure into a DecompositionFailure + a user notice.

The coordinator never cancels in-flight calls. A result for a task that was
deleted meanwhile falls through the StaleToken path and is dropped.
"""

import asyncio
import logging

from ..core.ports import Decomposer, Notifier
from ..llm.client import friendly_llm_error_message
from .errors import StaleToken
from .task_models import DecompositionFailure, DecompositionOutcome, DecompositionSuccess, Task
from .task_store import TaskStore

logger = logging.getLogger(__name__)

FAILURE_NOTICE = "Failed to generate subtasks. Please try again or check your API key."


class DecompositionCoordinator:
    def __init__(self, store: TaskStore, decomposer: Decomposer, notifier: Notifier | None = None) -> None:
        self._store = store
        self._decomposer = decomposer
        self._notifier = notifier
        self._in_flight: set[asyncio.Task[Task | None]] = set()

    @property
    def decomposer(self) -> Decomposer:
        return self._decomposer

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    async def request_decomposition(self, task_id: str, task_text: str | None = None) -> Task | None:
        """
        Decompose one task end to end.

        Raises NotFound / AlreadyPending / InvalidState if the task cannot be claimed.
        Returns the task as reconciled, or None if the result turned out stale.
        """
        token = self._claim(task_id)
        text = task_text if task_text is not None else self._store.get(task_id).text
        return await self._run(task_id, text, token)

    def start_decomposition(self, task_id: str, task_text: str | None = None) -> asyncio.Task[Task | None]:
        """
        Claim now, decompose in the background.

        Must be called from inside a running event loop. Precondition errors are
        raised synchronously, before anything is scheduled.
        """
        token = self._claim(task_id)
        text = task_text if task_text is not None else self._store.get(task_id).text
        bg = asyncio.get_running_loop().create_task(
            self._run(task_id, text, token), name=f"decompose-{task_id}"
        )
        self._in_flight.add(bg)
        bg.add_done_callback(self._in_flight.discard)
        return bg

    async def drain(self) -> None:
        """Wait until every background decomposition has settled."""
        while True:
            pending = [t for t in self._in_flight if not t.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    # ---- internals ----

    def _claim(self, task_id: str) -> str:
        token = self._store.begin_generation(task_id)
        if self._notifier is not None:
            self._notifier.dismiss()
        return token

    async def _run(self, task_id: str, text: str, token: str) -> Task | None:
        outcome: DecompositionOutcome
        try:
            items = await self._decomposer.decompose(text)
            outcome = _to_outcome(items)
        except asyncio.CancelledError:
            # Still release the claim; the caller gave up, the task must not stay pending.
            self._resolve(task_id, token, DecompositionFailure("cancelled"))
            raise
        except Exception as e:
            logger.info("Decomposition failed task_id=%s (%s: %s)", task_id, e.__class__.__name__, e)
            outcome = DecompositionFailure(friendly_llm_error_message(e))

        task = self._resolve(task_id, token, outcome)
        if task is not None and isinstance(outcome, DecompositionFailure):
            self._notify_failure(outcome)
        return task

    def _resolve(self, task_id: str, token: str, outcome: DecompositionOutcome) -> Task | None:
        try:
            task = self._store.resolve_generation(task_id, token, outcome)
        except StaleToken:
            logger.debug("Discarding stale decomposition result task_id=%s", task_id)
            return None

        if isinstance(outcome, DecompositionSuccess) and not task.subtasks:
            # Nothing usable survived cleaning; the store already reverted to idle.
            self._notify_failure(DecompositionFailure("no usable subtasks"))
        elif task.subtasks:
            logger.info("Task %s decomposed into %d subtasks", task_id, len(task.subtasks))
        return task

    def _notify_failure(self, failure: DecompositionFailure) -> None:
        if self._notifier is None:
            return
        reason = (failure.reason or "").strip()
        self._notifier.publish(f"{FAILURE_NOTICE} ({reason})" if reason else FAILURE_NOTICE)


def _to_outcome(items: object) -> DecompositionOutcome:
    """Empty or malformed service output counts as a failure, never as an empty success."""
    if not isinstance(items, (list, tuple)):
        return DecompositionFailure("malformed response")
    texts = tuple(t.strip() for t in items if isinstance(t, str) and t.strip())
    if not texts:
        return DecompositionFailure("empty response")
    return DecompositionSuccess(texts)
