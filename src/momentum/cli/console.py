# src/momentum/cli/console.py

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from ..core.coordinator import TaskCoordinator
from .commands import format_result, registry as command_registry, render_tree

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


def _warn_if_unsaved(coordinator: TaskCoordinator) -> None:
    if coordinator.last_storage_error is not None:
        _print_ts(f"Warning: changes were not saved ({coordinator.last_storage_error}).")


async def run_console_loop(coordinator: TaskCoordinator) -> None:
    logger.info("Console started (%d root tasks).", len(coordinator.tree))
    _print_ts("Describe your problem to break it into tasks. Use /help for commands, /exit to quit.\n")
    if coordinator.tree:
        print(render_tree(coordinator.tree, coordinator.state.focused_id))

    while True:
        try:
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

        try:
            reply = await command_registry.handle(coordinator, user_input, emit=_print_ts)
        except Exception:
            logger.exception("Command handler crashed.")
            reply = "Internal error while handling a command."

        if reply is not None:
            _print_ts(reply)
            _warn_if_unsaved(coordinator)
            continue

        # Free text: break it down into a fresh task tree.
        _print_ts("Breaking it down...")
        result = await coordinator.ingest(user_input)
        _print_ts(format_result(result))
        if result.ok:
            print(render_tree(coordinator.tree, coordinator.state.focused_id))
        _warn_if_unsaved(coordinator)

    logger.info("Console finished.")
