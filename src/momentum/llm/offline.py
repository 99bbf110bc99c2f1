# src/momentum/llm/offline.py

from __future__ import annotations

import json

from ..core.ports import ChatMessage

OFFLINE_TASKS = [
    {"title": "Find a venue"},
    {"title": "Send invites"},
    {"title": "Get a cake"},
    {"title": "Plan activities"},
]

OFFLINE_FIRST_STEP = "Set a 5-minute timer and write down what 'done' looks like."


class OfflineLLMClient:
    """
    Offline deterministic LLM client used for demos when no external API is configured.

    Behavior:
    - Task ingestion prompts -> a fixed party-planning task list
    - First step prompts -> a fixed tiny first action
    """

    def complete(self, messages: list[ChatMessage], system_prompt: str) -> str:
        sp = (system_prompt or "").lower()

        if "task management expert" in sp:
            return json.dumps(OFFLINE_TASKS)

        if "first step" in sp:
            return json.dumps({"firstStep": OFFLINE_FIRST_STEP})

        return "Offline demo mode: no external LLM is configured."
