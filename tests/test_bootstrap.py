# tests/test_bootstrap.py

from __future__ import annotations

from pathlib import Path

import pytest

from tasks_ai.cli.bootstrap import build_decomposer, create_initial_state, save_snapshot
from tasks_ai.config import Settings
from tasks_ai.llm.client import OpenRouterDecomposer
from tasks_ai.llm.offline import OfflineDecomposer
from tasks_ai.tasks.snapshot_file import SnapshotFile

from .fakes import MemorySnapshotStorage


def test_decomposer_selection(settings) -> None:
    assert isinstance(build_decomposer(settings), OfflineDecomposer)

    settings.offline_demo = False
    assert isinstance(build_decomposer(settings), OpenRouterDecomposer)

    settings.offline_demo = True
    settings.openrouter_api_key = "sk-test"
    assert isinstance(build_decomposer(settings), OpenRouterDecomposer)


def test_state_survives_restart_on_disk(settings) -> None:
    state = create_initial_state(settings=settings)
    assert isinstance(state.storage, SnapshotFile)
    task = state.store.add("persist me")
    state.store.toggle_completed(task.id)

    again = create_initial_state(settings=settings)
    assert [(t.id, t.text, t.completed) for t in again.store] == [(task.id, "persist me", True)]


def test_corrupted_snapshot_starts_empty(settings) -> None:
    Path(settings.snapshot_path).write_text("{definitely not json", "utf-8")

    state = create_initial_state(settings=settings)

    assert len(state.store) == 0


def test_autosave_can_be_disabled(settings) -> None:
    settings.autosave = False
    storage = MemorySnapshotStorage()
    state = create_initial_state(settings=settings, storage=storage)

    state.store.add("x")
    assert storage.saves == 0

    assert save_snapshot(state) is True
    assert storage.saves == 1


def test_save_snapshot_never_raises(settings) -> None:
    class Broken(MemorySnapshotStorage):
        def save(self, blob: str) -> None:
            raise OSError("disk full")

    state = create_initial_state(settings=settings, storage=Broken())
    state.store.add("x")  # autosave fails, logged only
    assert save_snapshot(state) is False


def test_settings_from_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("TASKS_AI_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("TASKS_AI_LLM_MODELS", "m1, m2  m3")
    monkeypatch.setenv("TASKS_AI_SUBTASKS_MAX", "not-a-number")
    monkeypatch.setenv("TASKS_AI_OFFLINE_DEMO", "no")
    monkeypatch.setenv("TASKS_AI_LLM_READ_TIMEOUT_SECONDS", "1")
    monkeypatch.delenv("TASKS_AI_SNAPSHOT_PATH", raising=False)

    s = Settings.from_env()

    assert s.data_dir == tmp_path
    assert s.snapshot_path == tmp_path / "tasks.json"
    assert s.llm_models == ["m1", "m2", "m3"]
    assert s.subtasks_max == 5
    assert s.offline_demo is False
    assert s.llm_read_timeout >= s.llm_connect_timeout


def test_deeply_nested_snapshot_starts_empty(settings) -> None:
    state = create_initial_state(settings=settings, storage=MemorySnapshotStorage("[" * 100000))

    assert len(state.store) == 0
