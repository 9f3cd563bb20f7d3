# src/tasks_ai/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..tasks.decomposition import DecompositionCoordinator
from ..tasks.notices import NoticeBoard
from ..tasks.task_models import Filter
from ..tasks.task_store import TaskStore
from .ports import SnapshotStorage


@dataclass
class AppState:
    # Settings object (real Settings or a SimpleNamespace in tests).
    settings: Any

    store: TaskStore
    coordinator: DecompositionCoordinator
    notices: NoticeBoard
    storage: SnapshotStorage | None = None

    # Presentation state: which listing the console shows.
    filter: Filter = Filter.ALL
