# src/tasks_ai/tasks/task_store.py

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterable, Iterator
from dataclasses import replace
from typing import Any

from .errors import AlreadyPending, InvalidInput, InvalidState, NotFound, StaleToken
from .task_models import (
    DecompositionOutcome,
    DecompositionSuccess,
    Filter,
    GenerationState,
    Subtask,
    Task,
    new_id,
)

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1

StoreListener = Callable[["TaskStore"], None]


class TaskView:
    """
    Lazy filtered view over the store.

    Every iteration walks the store's *current* ordering again, so one view
    object can be re-iterated after mutations (e.g. kept by a renderer).
    """

    def __init__(self, store: TaskStore, task_filter: Filter) -> None:
        self._store = store
        self.filter = task_filter

    def __iter__(self) -> Iterator[Task]:
        for task in self._store._snapshot_list():
            if self.filter.matches(task):
                yield task

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def __bool__(self) -> bool:
        return any(True for _ in self)


class TaskStore:
    """
    In-memory ordered task collection (most recent first).

    All operations are synchronous and run to completion; the only place where
    another piece of code can interleave is between begin_generation and
    resolve_generation, which is what the pending token guards.

    Task values are immutable; every mutation swaps in a new Task, so values
    handed out earlier never change under the caller.
    """

    def __init__(self, tasks: Iterable[Task] | None = None) -> None:
        self._tasks: list[Task] = list(tasks or [])
        self._listeners: list[StoreListener] = []

    # ---- low-level helpers ----

    def _snapshot_list(self) -> tuple[Task, ...]:
        return tuple(self._tasks)

    def _index_of(self, task_id: str) -> int:
        for i, t in enumerate(self._tasks):
            if t.id == task_id:
                return i
        raise NotFound("task", task_id)

    def _replace_at(self, index: int, task: Task) -> Task:
        self._tasks[index] = task
        self._changed()
        return task

    def _changed(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("TaskStore listener failed: %r", listener)

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        """Call `listener(store)` after each mutation. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # ---- read API ----

    def __len__(self) -> int:
        return len(self._tasks)

    def __iter__(self) -> Iterator[Task]:
        return iter(self._snapshot_list())

    def __contains__(self, task_id: object) -> bool:
        return any(t.id == task_id for t in self._tasks)

    def get(self, task_id: str) -> Task:
        return self._tasks[self._index_of(task_id)]

    def filtered_view(self, task_filter: Filter = Filter.ALL) -> TaskView:
        return TaskView(self, task_filter)

    def items_left(self) -> int:
        return sum(1 for t in self._tasks if not t.completed)

    def has_completed(self) -> bool:
        return any(t.completed for t in self._tasks)

    # ---- commands ----

    def add(self, text: str) -> Task:
        clean = (text or "").strip()
        if not clean:
            raise InvalidInput("task text is required")

        task = Task(id=new_id(), text=clean)
        self._tasks.insert(0, task)
        logger.debug("Task added id=%s", task.id)
        self._changed()
        return task

    def toggle_completed(self, task_id: str) -> Task:
        i = self._index_of(task_id)
        task = self._tasks[i]
        completed = not task.completed

        subtasks = task.subtasks
        if completed:
            subtasks = tuple(replace(s, completed=True) for s in subtasks)

        logger.debug("Task %s completed=%s", task_id, completed)
        return self._replace_at(i, replace(task, completed=completed, subtasks=subtasks))

    def toggle_expanded(self, task_id: str) -> Task:
        i = self._index_of(task_id)
        task = self._tasks[i]
        return self._replace_at(i, replace(task, expanded=not task.expanded))

    def delete(self, task_id: str) -> bool:
        try:
            i = self._index_of(task_id)
        except NotFound:
            return False
        del self._tasks[i]
        logger.debug("Task deleted id=%s", task_id)
        self._changed()
        return True

    def toggle_subtask(self, task_id: str, subtask_id: str) -> Task:
        i = self._index_of(task_id)
        task = self._tasks[i]

        if not any(s.id == subtask_id for s in task.subtasks):
            raise NotFound("subtask", subtask_id)

        subtasks = tuple(
            replace(s, completed=not s.completed) if s.id == subtask_id else s
            for s in task.subtasks
        )
        completed = bool(subtasks) and all(s.completed for s in subtasks)
        return self._replace_at(i, replace(task, subtasks=subtasks, completed=completed))

    def clear_completed(self) -> int:
        before = len(self._tasks)
        self._tasks = [t for t in self._tasks if not t.completed]
        removed = before - len(self._tasks)
        if removed:
            logger.debug("Cleared %d completed task(s)", removed)
            self._changed()
        return removed

    # ---- decomposition ----

    def begin_generation(self, task_id: str) -> str:
        """
        Claim the task for one decomposition attempt.

        Returns the token the result must be resolved with.
        """
        i = self._index_of(task_id)
        task = self._tasks[i]

        if task.is_pending:
            raise AlreadyPending(f"decomposition already in progress for task {task_id}")
        if task.subtasks:
            raise InvalidState(f"task {task_id} already has subtasks")
        if task.completed:
            raise InvalidState(f"task {task_id} is already completed")

        token = new_id()
        self._replace_at(
            i,
            replace(task, generation_state=GenerationState.PENDING, pending_token=token),
        )
        logger.debug("Task %s -> pending token=%s", task_id, token)
        return token

    def resolve_generation(self, task_id: str, token: str, outcome: DecompositionOutcome) -> Task:
        """
        Apply a decomposition outcome.

        Raises StaleToken (without touching anything) if the task is gone or the
        attempt identified by `token` is no longer the pending one.
        """
        try:
            i = self._index_of(task_id)
        except NotFound:
            raise StaleToken(f"task {task_id} no longer exists") from None

        task = self._tasks[i]
        if not task.is_pending or task.pending_token != token:
            raise StaleToken(f"token does not match pending attempt for task {task_id}")

        texts: list[str] = []
        if isinstance(outcome, DecompositionSuccess):
            texts = [t.strip() for t in outcome.texts if isinstance(t, str) and t.strip()]

        if not texts:
            # Failure, or a "success" with nothing usable: back to idle so the user can retry.
            logger.debug("Task %s -> idle (no subtasks)", task_id)
            return self._replace_at(
                i,
                replace(task, generation_state=GenerationState.IDLE, pending_token=None),
            )

        subtasks = tuple(Subtask(id=new_id(), text=t) for t in texts)
        logger.debug("Task %s -> idle with %d subtasks", task_id, len(subtasks))
        return self._replace_at(
            i,
            replace(
                task,
                subtasks=subtasks,
                generation_state=GenerationState.IDLE,
                pending_token=None,
                expanded=True,
            ),
        )

    # ---- snapshots ----

    def persist_snapshot(self) -> str:
        data = {
            "version": SNAPSHOT_VERSION,
            "tasks": [_task_to_dict(t) for t in self._tasks],
        }
        return json.dumps(data, ensure_ascii=False)

    def restore_snapshot(self, blob: str | bytes | None) -> int:
        """
        Replace the collection with the one encoded in `blob`.

        Missing or malformed input yields an empty collection; this never raises.
        Returns the number of restored tasks.
        """
        self._tasks = _decode_snapshot(blob)
        logger.info("TaskStore restored total=%d", len(self._tasks))
        return len(self._tasks)


def _task_to_dict(task: Task) -> dict[str, Any]:
    return {
        "id": task.id,
        "text": task.text,
        "completed": task.completed,
        "expanded": task.expanded,
        "subtasks": [{"id": s.id, "text": s.text, "completed": s.completed} for s in task.subtasks],
    }


def _req_str(d: dict[str, Any], key: str) -> str:
    v = d.get(key)
    if not isinstance(v, str) or not v.strip():
        raise ValueError(f"missing or empty {key!r}")
    return v


def _opt_bool(d: dict[str, Any], *keys: str) -> bool:
    for k in keys:
        if k in d:
            v = d[k]
            if not isinstance(v, bool):
                raise ValueError(f"{k!r} must be a bool")
            return v
    return False


def _task_from_dict(d: Any) -> Task:
    if not isinstance(d, dict):
        raise ValueError("task entry must be an object")

    raw_subs = d.get("subtasks", [])
    if not isinstance(raw_subs, list):
        raise ValueError("'subtasks' must be a list")

    subtasks: list[Subtask] = []
    for s in raw_subs:
        if not isinstance(s, dict):
            raise ValueError("subtask entry must be an object")
        subtasks.append(
            Subtask(id=_req_str(s, "id"), text=_req_str(s, "text"), completed=_opt_bool(s, "completed"))
        )

    # "isExpanded" is the layout written by the browser front-end; "isGenerating" is ignored
    # because nothing survives a restart to resolve it.
    return Task(
        id=_req_str(d, "id"),
        text=_req_str(d, "text"),
        completed=_opt_bool(d, "completed"),
        expanded=_opt_bool(d, "expanded", "isExpanded"),
        subtasks=tuple(subtasks),
    )


def _decode_snapshot(blob: str | bytes | None) -> list[Task]:
    if blob is None:
        return []
    try:
        if isinstance(blob, bytes):
            blob = blob.decode("utf-8")
        if not blob.strip():
            return []

        data = json.loads(blob)
        if isinstance(data, dict):
            entries = data.get("tasks")
        else:
            entries = data
        if not isinstance(entries, list):
            raise ValueError("snapshot must hold a list of tasks")

        tasks = [_task_from_dict(e) for e in entries]

        seen: set[str] = set()
        for t in tasks:
            for ident in (t.id, *(s.id for s in t.subtasks)):
                if ident in seen:
                    raise ValueError(f"duplicate id {ident!r}")
                seen.add(ident)
        return tasks
    except (ValueError, TypeError, RecursionError) as e:
        logger.warning("Ignoring malformed task snapshot (%s); starting empty.", e)
        return []
