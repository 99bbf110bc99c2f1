# src/momentum/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations (LLM client, JSON store) into the coordinator.
"""

from __future__ import annotations

import logging

from ..config import Settings, get_settings
from ..core.coordinator import TaskCoordinator
from ..core.ports import LLMClient
from ..llm.client import OpenRouterLLMClient, friendly_llm_error_message
from ..llm.flows import LLMFirstStepSuggester, LLMTaskIngestor
from ..llm.offline import OfflineLLMClient
from ..tasks.task_store import JsonBlobStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings: Settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_path.parent.mkdir(parents=True, exist_ok=True)


def create_llm_client(settings: Settings) -> LLMClient:
    if settings.offline:
        logger.info("Offline mode forced by settings.")
        return OfflineLLMClient()
    try:
        return OpenRouterLLMClient(settings)
    except RuntimeError as e:
        # Fallback for demos / local runs without external services.
        logger.warning("Using offline LLM client: %s", friendly_llm_error_message(e))
        return OfflineLLMClient()


def create_coordinator(*, settings: Settings | None = None) -> TaskCoordinator:
    """
    Build a TaskCoordinator from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    llm = create_llm_client(settings)
    return TaskCoordinator(
        store=JsonBlobStore(settings.tasks_path),
        ingestor=LLMTaskIngestor(llm),
        suggester=LLMFirstStepSuggester(llm),
    )
