# src/tasks_ai/cli/commands.py

from __future__ import annotations

import contextlib
import inspect
import logging
from collections.abc import Callable
from typing import cast

from ..core.state import AppState
from ..tasks.errors import NotFound, TaskStoreError
from ..tasks.task_models import Filter, Task, progress

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.

        Task-store errors (unknown task, already pending, ...) become a one-line reply.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except Exception:
            nparams = 3

        try:
            if nparams >= 3:
                h3 = cast(CommandHandler3, handler)
                return h3(state, args, emit)
            h2 = cast(CommandHandler2, handler)
            return h2(state, args)
        except TaskStoreError as e:
            return f"{e.__class__.__name__}: {e}"

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        lines.append("Plain text (no slash) adds a task.")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- rendering ----


def render_task(task: Task, index: int) -> list[str]:
    mark = "x" if task.completed else " "
    line = f"{index:>2}. [{mark}] {task.text}  ({task.id[:6]})"
    if task.is_pending:
        line += "  ...breaking down"
    elif task.subtasks:
        line += f"  {progress(task)}%"
        if not task.expanded:
            line += f"  [{len(task.subtasks)} subtasks hidden]"
    elif task.can_decompose:
        line += "  (/break to split)"

    lines = [line]
    if task.subtasks and task.expanded:
        for k, s in enumerate(task.subtasks, start=1):
            sub_mark = "x" if s.completed else " "
            lines.append(f"      {k}) [{sub_mark}] {s.text}")
    return lines


def render_tasks(state: AppState) -> str:
    view = list(state.store.filtered_view(state.filter))
    header = f"Tasks ({state.filter.value}) - {state.store.items_left()} items left"
    if not view:
        hint = (
            "Start completing tasks to see them here!"
            if state.filter is Filter.COMPLETED
            else "Add a new task to get started."
        )
        return f"{header}\n  No tasks found. {hint}"

    lines = [header]
    for i, task in enumerate(view, start=1):
        lines.extend(render_task(task, i))
    if state.store.has_completed():
        lines.append("  (/clear removes completed tasks)")
    return "\n".join(lines)


def resolve_task_ref(state: AppState, ref: str) -> Task:
    """
    A task reference is either the 1-based position in the current listing or
    a (unique) id prefix. Digits that are not a valid position are tried as an
    id prefix too, since ids are hex.
    """
    ref = (ref or "").strip()
    if not ref:
        raise NotFound("task", ref)

    if ref.isdigit():
        view = list(state.store.filtered_view(state.filter))
        pos = int(ref)
        if 1 <= pos <= len(view):
            return view[pos - 1]

    matches = [t for t in state.store if t.id.startswith(ref)]
    if len(matches) == 1:
        return matches[0]
    raise NotFound("task", ref)


# ---- handlers ----


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_add(state: AppState, args: list[str]) -> str:
    task = state.store.add(" ".join(args))
    return f"Added: {task.text}"


def cmd_list(state: AppState, args: list[str]) -> str:
    if args:
        state.filter = Filter.parse(args[0])
    return render_tasks(state)


def cmd_filter(state: AppState, args: list[str]) -> str:
    if not args:
        return f"Filter is {state.filter.value}. Use /filter all | active | completed."
    state.filter = Filter.parse(args[0])
    return render_tasks(state)


def cmd_done(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /done <n|id>"
    task = state.store.toggle_completed(resolve_task_ref(state, args[0]).id)
    return f"{'Completed' if task.completed else 'Reopened'}: {task.text}"


def cmd_sub(state: AppState, args: list[str]) -> str:
    """
    /sub <task> <k>  -> toggle the k-th subtask (1-based) of a task
    """
    if len(args) < 2 or not args[1].isdigit():
        return "Usage: /sub <n|id> <subtask number>"
    task = resolve_task_ref(state, args[0])
    k = int(args[1])
    if not 1 <= k <= len(task.subtasks):
        raise NotFound("subtask", args[1])
    updated = state.store.toggle_subtask(task.id, task.subtasks[k - 1].id)
    sub = updated.subtasks[k - 1]
    reply = f"{'Done' if sub.completed else 'Undone'}: {sub.text} ({progress(updated)}%)"
    if updated.completed and not task.completed:
        reply += f"\nAll subtasks done, completed: {updated.text}"
    return reply


def cmd_break(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /break <task>  -> ask the LLM to split the task into subtasks (runs in background)
    """
    if not args:
        return "Usage: /break <n|id>"
    task = resolve_task_ref(state, args[0])
    state.coordinator.start_decomposition(task.id)

    if emit:
        with contextlib.suppress(Exception):
            emit(f"[AI] Breaking down: {task.text} ...")

    logger.debug("Decomposition requested task_id=%s", task.id)
    return "Working on it. Use /list to see the subtasks once they arrive."


def cmd_expand(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /expand <n|id>"
    task = state.store.toggle_expanded(resolve_task_ref(state, args[0]).id)
    return f"{'Expanded' if task.expanded else 'Collapsed'}: {task.text}"


def cmd_rm(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /rm <n|id>"
    task = resolve_task_ref(state, args[0])
    state.store.delete(task.id)
    return f"Deleted: {task.text}"


def cmd_clear(state: AppState, args: list[str]) -> str:
    n = state.store.clear_completed()
    return f"Cleared {n} completed task(s)." if n else "Nothing to clear."


def cmd_dismiss(state: AppState, args: list[str]) -> str:
    text = state.notices.take()
    return f"Dismissed: {text}" if text else "Nothing to dismiss."


def cmd_status(state: AppState, args: list[str]) -> str:
    s = state.settings
    backend = state.coordinator.decomposer.__class__.__name__
    models = ", ".join(list(getattr(s, "llm_models", []) or []))
    return (
        "Status:\n"
        f"  Tasks: {len(state.store)} ({state.store.items_left()} left)\n"
        f"  Decompositions in flight: {state.coordinator.in_flight}\n"
        f"  Backend: {backend}\n"
        f"  Models (priority -> fallback): {models}\n"
        f"  Snapshot: {getattr(s, 'snapshot_path', '-')}"
    )


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("add", cmd_add, help_text="Add a task: /add <text>.", aliases=["a"])
registry.register("list", cmd_list, help_text="List tasks: /list [all|active|completed].", aliases=["ls", "l"])
registry.register("filter", cmd_filter, help_text="Set the listing filter: /filter all | active | completed.")
registry.register("done", cmd_done, help_text="Toggle a task done/undone: /done <n|id>.", aliases=["x"])
registry.register("sub", cmd_sub, help_text="Toggle a subtask: /sub <n|id> <k>.")
registry.register("break", cmd_break, help_text="AI break down into subtasks: /break <n|id>.", aliases=["b"])
registry.register("expand", cmd_expand, help_text="Show/hide subtasks: /expand <n|id>.", aliases=["e"])
registry.register("rm", cmd_rm, help_text="Delete a task: /rm <n|id>.", aliases=["del"])
registry.register("clear", cmd_clear, help_text="Remove all completed tasks.")
registry.register("dismiss", cmd_dismiss, help_text="Dismiss the current error notice.")
registry.register("status", cmd_status, help_text="Show counts, backend and models.")
