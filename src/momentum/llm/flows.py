# src/momentum/llm/flows.py

"""
LLM-backed implementations of the TaskIngestor and FirstStepSuggester ports.

The blocking LLM client runs in a worker thread so the event loop stays free.
Replies are parsed and validated here; anything unexpected becomes
ExternalCallFailure.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from typing import Any

from ..core.errors import ExternalCallFailure
from ..core.ports import LLMClient
from ..tasks.task_models import RawTask

logger = logging.getLogger(__name__)

INGEST_SYSTEM_PROMPT = """\
You are a task management expert. Your job is to take a user's problem or list of tasks \
described in natural language, and create a basic structured list.

Return ONLY a JSON array of tasks. Each task is an object with a "title" string. \
Tasks can optionally have "subtasks", which is an array of tasks with the same shape.
"""

FIRST_STEP_SYSTEM_PROMPT = """\
You help people get started. Given a task, suggest a very small first step \
the user can take to get started easily.

Return ONLY a JSON object: {"firstStep": "<one short sentence>"}.
"""

_FENCE_RE = re.compile(r"^\s*```[a-zA-Z0-9_-]*\s*\n(.*?)\n?\s*```\s*$", re.DOTALL)


def _strip_code_fence(text: str) -> str:
    m = _FENCE_RE.match(text)
    return m.group(1) if m else text


def _validate_raw_tasks(nodes: list[Any]) -> list[RawTask]:
    """Check every node of the reply and copy out {title, subtasks?}, walking with an explicit stack."""
    out: list[RawTask] = []
    stack: list[tuple[Any, str, list[RawTask]]] = [
        (node, f"tasks[{i}]", out) for i, node in reversed(list(enumerate(nodes)))
    ]
    while stack:
        node, path, into = stack.pop()
        if not isinstance(node, dict):
            raise ExternalCallFailure(f"{path}: expected an object, got {type(node).__name__}")
        title = node.get("title")
        if not isinstance(title, str):
            raise ExternalCallFailure(f"{path}: 'title' must be a string")

        task: RawTask = {"title": title}
        into.append(task)
        subtasks = node.get("subtasks")
        if subtasks is not None:
            if not isinstance(subtasks, list):
                raise ExternalCallFailure(f"{path}: 'subtasks' must be a list")
            children: list[RawTask] = []
            task["subtasks"] = children
            stack.extend(
                (s, f"{path}.subtasks[{i}]", children) for i, s in reversed(list(enumerate(subtasks)))
            )
    return out


def parse_raw_tasks(reply: str) -> list[RawTask]:
    """
    Parse an ingestion reply.

    Accepts a bare JSON array or an object with a "tasks" array,
    optionally wrapped in a markdown code fence.
    """
    try:
        data = json.loads(_strip_code_fence(reply))
    except ValueError as e:
        raise ExternalCallFailure(f"Ingestion reply is not valid JSON: {e}") from e
    except RecursionError as e:
        raise ExternalCallFailure("Ingestion reply is nested too deeply") from e

    if isinstance(data, dict) and "tasks" in data:
        data = data["tasks"]
    if not isinstance(data, list):
        raise ExternalCallFailure("Ingestion reply is not a list of tasks")

    return _validate_raw_tasks(data)


def parse_first_step(reply: str) -> str:
    """Accept {"firstStep": "..."} JSON or plain text."""
    text = _strip_code_fence(reply).strip()
    try:
        data = json.loads(text)
    except (ValueError, RecursionError):
        data = text

    if isinstance(data, dict):
        data = data.get("firstStep")
    if not isinstance(data, str):
        raise ExternalCallFailure("First step reply has no 'firstStep' string")

    step = data.strip().strip('"').strip()
    if not step:
        raise ExternalCallFailure("First step reply is empty")
    return step


class LLMTaskIngestor:
    def __init__(self, llm: LLMClient) -> None:
        self._llm = llm

    async def ingest(self, text: str) -> list[RawTask]:
        messages = [{"role": "user", "content": f"Here is the user's input:\n{text}"}]
        try:
            reply = await asyncio.to_thread(self._llm.complete, messages, INGEST_SYSTEM_PROMPT)
        except RuntimeError as e:
            raise ExternalCallFailure(str(e)) from e
        tasks = parse_raw_tasks(reply)
        logger.debug("Ingestion reply parsed: %d root tasks", len(tasks))
        return tasks


class LLMFirstStepSuggester:
    def __init__(self, llm: LLMClient) -> None:
        self._llm = llm

    async def suggest_first_step(self, task_title: str) -> str:
        messages = [{"role": "user", "content": f"Task: {task_title}"}]
        try:
            reply = await asyncio.to_thread(self._llm.complete, messages, FIRST_STEP_SYSTEM_PROMPT)
        except RuntimeError as e:
            raise ExternalCallFailure(str(e)) from e
        return parse_first_step(reply)
