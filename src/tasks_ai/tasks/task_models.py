# src/tasks_ai/tasks/task_models.py

from __future__ import annotations

import uuid
from dataclasses import dataclass
from enum import StrEnum


def new_id() -> str:
    """Fresh opaque id, unique for the process lifetime (and in practice, forever)."""
    return uuid.uuid4().hex


class GenerationState(StrEnum):
    """
    Decomposition lifecycle of a single task.

    PENDING doubles as the concurrency token: a task in PENDING has exactly one
    decomposition in flight and refuses to start another.
    """

    IDLE = "idle"
    PENDING = "pending"


class Filter(StrEnum):
    ALL = "all"
    ACTIVE = "active"
    COMPLETED = "completed"

    @classmethod
    def parse(cls, raw: str | None) -> Filter:
        if not raw:
            return cls.ALL
        try:
            return cls(raw.strip().lower())
        except ValueError:
            return cls.ALL

    def matches(self, task: Task) -> bool:
        if self is Filter.ACTIVE:
            return not task.completed
        if self is Filter.COMPLETED:
            return task.completed
        return True


@dataclass(slots=True, frozen=True)
class Subtask:
    id: str
    text: str
    completed: bool = False


@dataclass(slots=True, frozen=True)
class Task:
    id: str
    text: str
    completed: bool = False
    expanded: bool = False  # display-only
    subtasks: tuple[Subtask, ...] = ()
    generation_state: GenerationState = GenerationState.IDLE

    # Set iff generation_state is PENDING. Never persisted.
    pending_token: str | None = None

    @property
    def is_pending(self) -> bool:
        return self.generation_state is GenerationState.PENDING

    @property
    def can_decompose(self) -> bool:
        """Whether the "break down" action applies (the listing shows a /break hint for it)."""
        return not self.subtasks and not self.completed and not self.is_pending


@dataclass(slots=True, frozen=True)
class DecompositionSuccess:
    texts: tuple[str, ...]


@dataclass(slots=True, frozen=True)
class DecompositionFailure:
    reason: str = ""


DecompositionOutcome = DecompositionSuccess | DecompositionFailure


def progress(task: Task) -> int:
    """
    Completion percentage shown next to the subtask list.

    The task itself counts as one item, so a task with three subtasks done out
    of three but not yet checked off reports 75%.
    """
    total = 1 + len(task.subtasks)
    done = (1 if task.completed else 0) + sum(1 for s in task.subtasks if s.completed)
    return round(done * 100 / total)
