# tests/test_commands.py

from __future__ import annotations

import json

import pytest

from tasks_ai.cli.bootstrap import create_initial_state
from tasks_ai.cli.commands import CommandRegistry, registry, resolve_task_ref
from tasks_ai.connectors.console_connector import handle_line
from tasks_ai.tasks.errors import NotFound
from tasks_ai.tasks.task_models import Filter

from .fakes import FakeDecomposer


def test_command_registry_routes_2_and_3_params(state) -> None:
    reg = CommandRegistry()
    called = {"h2": 0, "h3": 0}

    def h2(state, args):
        called["h2"] += 1
        return "h2"

    def h3(state, args, emit):
        called["h3"] += 1
        if emit is not None:
            emit("note")
        return "h3"

    reg.register("a", h2, "a")
    reg.register("b", h3, "b")

    assert reg.handle(state, "/a x") == "h2"
    assert reg.handle(state, "/b y", emit=lambda _: None) == "h3"
    assert called["h2"] == 1
    assert called["h3"] == 1


def test_command_registry_unknown_and_non_command(state) -> None:
    reg = CommandRegistry()
    assert reg.handle(state, "hello") is None
    assert "Unknown command" in (reg.handle(state, "/nope") or "")


def test_plain_text_adds_task_and_autosaves(state, storage) -> None:
    assert handle_line(state, "Buy milk") == "Added: Buy milk"
    assert handle_line(state, "/add Walk the dog") == "Added: Walk the dog"

    assert [t.text for t in state.store] == ["Walk the dog", "Buy milk"]
    saved = json.loads(storage.blob)
    assert [t["text"] for t in saved["tasks"]] == ["Walk the dog", "Buy milk"]


def test_store_errors_become_replies(state) -> None:
    assert "InvalidInput" in (registry.handle(state, "/add    ") or "")
    assert "NotFound" in (registry.handle(state, "/done 7") or "")


def test_task_refs_by_position_and_id_prefix(state) -> None:
    a = state.store.add("a")
    b = state.store.add("b")
    state.store.toggle_completed(b.id)

    assert resolve_task_ref(state, "1").id == b.id
    assert resolve_task_ref(state, a.id[:8]).id == a.id

    state.filter = Filter.ACTIVE
    assert resolve_task_ref(state, "1").id == a.id
    with pytest.raises(NotFound):
        resolve_task_ref(state, "2")


def test_digit_ref_falls_back_to_id_prefix(state) -> None:
    state.store.restore_snapshot(
        json.dumps({"version": 1, "tasks": [{"id": "123abc", "text": "numeric id"}, {"id": "f00d", "text": "other"}]})
    )

    assert resolve_task_ref(state, "2").id == "f00d"
    assert resolve_task_ref(state, "123").id == "123abc"
    assert registry.handle(state, "/done 123") == "Completed: numeric id"
    with pytest.raises(NotFound):
        resolve_task_ref(state, "999")


def test_listing_hints_break_only_where_it_applies(state) -> None:
    plain = state.store.add("plain")
    done = state.store.add("done")
    state.store.toggle_completed(done.id)

    lines = (registry.handle(state, "/list") or "").splitlines()
    plain_line = next(ln for ln in lines if "plain" in ln)
    done_line = next(ln for ln in lines if "done" in ln)

    assert plain.can_decompose
    assert "/break" in plain_line
    assert "/break" not in done_line


def test_done_clear_and_filter(state) -> None:
    state.store.add("a")
    state.store.add("b")

    assert registry.handle(state, "/done 1") == "Completed: b"
    listing = registry.handle(state, "/filter completed") or ""
    assert "b" in listing and "1 items left" in listing
    assert state.filter is Filter.COMPLETED

    assert registry.handle(state, "/clear") == "Cleared 1 completed task(s)."
    assert [t.text for t in state.store] == ["a"]


@pytest.mark.asyncio
async def test_break_then_toggle_subtasks(state, decomposer: FakeDecomposer) -> None:
    state.store.add("Plan trip")
    emitted: list[str] = []

    reply = registry.handle(state, "/break 1", emit=emitted.append) or ""
    assert "Working on it" in reply
    assert emitted and "Plan trip" in emitted[0]
    assert "AlreadyPending" in (registry.handle(state, "/break 1") or "")

    await state.coordinator.drain()
    listing = registry.handle(state, "/list") or ""
    assert "1) [ ] step one" in listing

    registry.handle(state, "/sub 1 1")
    registry.handle(state, "/sub 1 2")
    reply = registry.handle(state, "/sub 1 3") or ""
    assert "completed: Plan trip" in reply
    assert state.store.items_left() == 0


@pytest.mark.asyncio
async def test_failed_break_shows_notice_until_dismissed(settings, storage) -> None:
    state = create_initial_state(
        settings=settings, decomposer=FakeDecomposer(ConnectionError("offline")), storage=storage
    )
    state.store.add("X")

    registry.handle(state, "/break 1")
    await state.coordinator.drain()

    notice = state.notices.current
    assert notice is not None
    assert registry.handle(state, "/dismiss") == f"Dismissed: {notice}"
    assert state.notices.current is None
    assert registry.handle(state, "/dismiss") == "Nothing to dismiss."
