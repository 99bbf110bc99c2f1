# src/momentum/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The coordinator depends on Protocols instead of concrete implementations.
This keeps LLM providers and storage swappable and makes testing easier.
"""

from typing import Awaitable, Protocol

from ..tasks.task_models import RawTask

ChatMessage = dict[str, str]
# OpenAI-style chat messages: {"role": "...", "content": "..."}.


class LLMClient(Protocol):
    """Blocking chat completion client (OpenAI/OpenRouter-compatible)."""

    def complete(self, messages: list[ChatMessage], system_prompt: str) -> str: ...


class TaskIngestor(Protocol):
    """Turns a natural-language problem into a list of {title, subtasks?} records."""

    def ingest(self, text: str) -> Awaitable[list[RawTask]]: ...


class FirstStepSuggester(Protocol):
    """Suggests a very small first action for a task title."""

    def suggest_first_step(self, task_title: str) -> Awaitable[str]: ...


class BlobStore(Protocol):
    """Key-value store for serialized blobs. get() returns None for a missing key."""

    def get(self, key: str) -> str | None: ...
    def put(self, key: str, value: str) -> None: ...
