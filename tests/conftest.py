# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from tasks_ai.cli.bootstrap import create_initial_state
from tasks_ai.core.state import AppState
from tasks_ai.tasks.notices import NoticeBoard
from tasks_ai.tasks.task_store import TaskStore

from .fakes import FakeDecomposer, MemorySnapshotStorage


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and core modules.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="tasks.ai-test",
        log_level="DEBUG",
        data_dir=tmp_path,
        snapshot_path=tmp_path / "tasks.json",
        autosave=True,
        openrouter_api_key=None,
        openrouter_base_url="https://llm.invalid/api/v1",
        llm_models=["model-a", "model-b"],
        extra_headers={},
        llm_connect_timeout=1.0,
        llm_read_timeout=2.0,
        subtasks_max=5,
        offline_demo=True,
        offline_delay_seconds=0.0,
    )


@pytest.fixture()
def store() -> TaskStore:
    return TaskStore()


@pytest.fixture()
def notices() -> NoticeBoard:
    return NoticeBoard()


@pytest.fixture()
def decomposer() -> FakeDecomposer:
    return FakeDecomposer()


@pytest.fixture()
def storage() -> MemorySnapshotStorage:
    return MemorySnapshotStorage()


@pytest.fixture()
def state(settings: SimpleNamespace, decomposer: FakeDecomposer, storage: MemorySnapshotStorage) -> AppState:
    """AppState wired with deterministic fakes (no network, no disk)."""
    return create_initial_state(settings=settings, decomposer=decomposer, storage=storage)
