# src/tasks_ai/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState (restoring the saved snapshot), then runs
the console REPL on an asyncio loop. On exit, waits for in-flight
decompositions to settle and saves a final snapshot.
"""

from __future__ import annotations

import asyncio
import logging

from ..cli.bootstrap import create_initial_state, save_snapshot
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..core.state import AppState
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


async def _run(state: AppState) -> None:
    try:
        await run_console_loop(state)
    finally:
        if state.coordinator.in_flight:
            logger.info("Waiting for %d decomposition(s) to finish...", state.coordinator.in_flight)
        await state.coordinator.drain()


def main() -> None:
    settings = get_settings()

    # choose console log level from settings.log_level
    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)

    logger.info("Starting %s...", settings.app_name)

    state = create_initial_state(settings=settings)

    try:
        asyncio.run(_run(state))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down...")
    finally:
        save_snapshot(state)
        logger.info("Bye.")


if __name__ == "__main__":
    main()
