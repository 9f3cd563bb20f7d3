# src/tasks_ai/tasks/errors.py

from __future__ import annotations


class TaskStoreError(Exception):
    """Base class for everything the task store raises on purpose."""


class InvalidInput(TaskStoreError, ValueError):
    pass


class NotFound(TaskStoreError, KeyError):
    def __init__(self, kind: str, ident: str) -> None:
        super().__init__(f"{kind} not found: {ident}")
        self.kind = kind
        self.ident = ident

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message.
        return str(self.args[0])


class AlreadyPending(TaskStoreError):
    pass


class InvalidState(TaskStoreError):
    pass


class StaleToken(TaskStoreError):
    """
    A decomposition result arrived for an attempt that is no longer current
    (task deleted or attempt superseded). Callers discard it silently.
    """
