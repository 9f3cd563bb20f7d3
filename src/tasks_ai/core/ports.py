# src/tasks_ai/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps the generation backend and the snapshot medium swappable and makes testing easier.
"""

from typing import Protocol


class Decomposer(Protocol):
    """
    External text-generation service.

    Given a free-text task description, return 3 to 5 short actionable phrases.
    Any failure (network, timeout, missing credentials, garbage output) is raised.
    """

    async def decompose(self, task_text: str) -> list[str]: ...


class SnapshotStorage(Protocol):
    """Durable medium for the serialized task collection."""

    def load(self) -> str | None: ...
    def save(self, blob: str) -> None: ...


class Notifier(Protocol):
    """Where user-visible transient errors go (console banner, toast, ...)."""

    def publish(self, text: str) -> None: ...
    def dismiss(self) -> None: ...
