# src/tasks_ai/connectors/console_connector.py

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..cli.commands import render_tasks
from ..core.state import AppState
from ..tasks.errors import TaskStoreError

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}")


def handle_line(state: AppState, line: str) -> str | None:
    """
    One console input line -> reply text (None = nothing to print).

    Must run on the event loop thread: /break schedules background work on it.
    """
    def emit(text: str) -> None:
        # Immediate user-visible feedback for long operations
        print(f"[{_ts_local()}] {text}", flush=True)

    try:
        reply = command_registry.handle(state, line, emit=emit)
    except Exception:
        logger.exception("Command handler crashed.")
        return "Internal error while handling a command."

    if reply is not None:
        return reply

    # Plain text: add a task.
    try:
        task = state.store.add(line)
    except TaskStoreError as e:
        return str(e)
    return f"Added: {task.text}"


async def run_console_loop(state: AppState) -> None:
    logger.info("Console connector started (tasks=%d).", len(state.store))
    app_name = str(getattr(getattr(state, "settings", None), "app_name", "tasks.ai"))
    _print_ts(f"[{app_name}] Type a task to add it. Use /help for commands. Use /exit to quit.\n")
    print(render_tasks(state))

    shown_notice: str | None = None

    while True:
        notice = state.notices.current
        if notice and notice != shown_notice:
            _print_ts(f"[!] {notice}  (/dismiss to hide)")
        shown_notice = notice

        try:
            # input() runs in a worker thread so background decompositions keep progressing.
            user_input = (await asyncio.to_thread(input, ">>> ")).strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        reply = handle_line(state, user_input)
        if reply:
            _print_ts(reply)

    logger.info("Console connector finished.")
