# src/tasks_ai/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations into AppState (decomposer/store/snapshot file),
- restores the saved task snapshot and hooks up autosave.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.ports import Decomposer, SnapshotStorage
from ..core.state import AppState
from ..llm.client import OpenRouterDecomposer
from ..llm.offline import OfflineDecomposer
from ..tasks.decomposition import DecompositionCoordinator
from ..tasks.notices import NoticeBoard
from ..tasks.snapshot_file import SnapshotFile
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.snapshot_path.parent.mkdir(parents=True, exist_ok=True)


def build_decomposer(settings) -> Decomposer:
    """
    Pick the generation backend.

    Without an API key and with offline demo mode on, use the deterministic demo
    decomposer. Otherwise use the real client; if the key is missing there, every
    decomposition fails cleanly with a notice instead of crashing.
    """
    api_key = (getattr(settings, "openrouter_api_key", None) or "").strip()
    if not api_key and getattr(settings, "offline_demo", False):
        logger.info("No LLM API key configured; using offline demo decomposer.")
        return OfflineDecomposer(delay_seconds=getattr(settings, "offline_delay_seconds", 1.0))
    return OpenRouterDecomposer(settings)


def create_initial_state(
    *,
    settings=None,
    decomposer: Decomposer | None = None,
    storage: SnapshotStorage | None = None,
) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    if storage is None:
        _ensure_local_dirs(settings)
        storage = SnapshotFile(settings.snapshot_path)

    if decomposer is None:
        decomposer = build_decomposer(settings)

    store = TaskStore()
    notices = NoticeBoard()
    state = AppState(
        settings=settings,
        store=store,
        coordinator=DecompositionCoordinator(store, decomposer, notices),
        notices=notices,
        storage=storage,
    )

    load_snapshot(state)

    if getattr(settings, "autosave", True):
        store.subscribe(lambda _store: save_snapshot(state))

    return state


def load_snapshot(state: AppState) -> int:
    if state.storage is None:
        return 0
    try:
        blob = state.storage.load()
    except Exception:
        logger.exception("Failed to load task snapshot.")
        blob = None
    return state.store.restore_snapshot(blob)


def save_snapshot(state: AppState) -> bool:
    """Persist the store (best-effort: errors are logged, never raised)."""
    if state.storage is None:
        return False
    try:
        state.storage.save(state.store.persist_snapshot())
        return True
    except Exception:
        logger.exception("Failed to save task snapshot.")
        return False
