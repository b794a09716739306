# src/taskdesk/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState (the task store selected by settings),
then runs the console REPL in the main thread.
"""

from __future__ import annotations

import logging

from ..cli.bootstrap import create_initial_state
from ..cli.console import run_console_loop
from ..config import get_settings
from ..logging_setup import setup_logging
from ..tasks.errors import TaskStorageError

logger = logging.getLogger(__name__)


def _shutdown(state) -> None:
    """Best-effort shutdown."""
    store = getattr(state, "task_store", None)
    if store is None:
        return
    try:
        store.close()
    except TaskStorageError:
        logger.debug("Task store close failed.", exc_info=True)


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    log_dir = getattr(settings, "data_dir", ".local/taskdesk")
    setup_logging(log_dir=log_dir, console_level=console_level)

    logger.info("Starting %s...", getattr(settings, "app_name", "taskdesk"))

    # The process must not start without a working store.
    try:
        state = create_initial_state(settings=settings)
    except (TaskStorageError, ValueError, OSError) as e:
        logger.critical("Cannot open task store: %s", e)
        raise SystemExit(1) from e

    try:
        run_console_loop(state)
    finally:
        _shutdown(state)
        logger.info("Bye.")


if __name__ == "__main__":
    main()
