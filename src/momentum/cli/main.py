# src/momentum/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds the coordinator, restores saved tasks,
then runs the console loop until /exit or EOF.
"""

from __future__ import annotations

import asyncio
import logging

from ..config import get_settings
from ..logging_setup import setup_logging
from .bootstrap import create_coordinator
from .commands import format_result
from .console import run_console_loop

logger = logging.getLogger(__name__)


def main() -> None:
    settings = get_settings()

    level_name = str(settings.log_level).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    # keep noisy libs readable
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)

    logger.info("Starting %s...", settings.app_name)

    coordinator = create_coordinator(settings=settings)
    loaded = coordinator.load()
    if not loaded.ok:
        print(format_result(loaded))

    try:
        asyncio.run(run_console_loop(coordinator))
    except KeyboardInterrupt:
        logger.info("Interrupted.")
    finally:
        coordinator.close()
        logger.info("Bye.")


if __name__ == "__main__":
    main()
