# src/momentum/tasks/ingestion.py

from __future__ import annotations

import uuid
from collections.abc import Iterable

from .task_models import RawTask, Task, TaskTree, build_tasks


def new_task_id() -> str:
    return uuid.uuid4().hex


def new_task(title: str) -> Task:
    """A fresh task with default fields. Title is not validated here."""
    return Task(id=new_task_id(), title=title)


def map_raw_tasks(raw_tasks: Iterable[RawTask]) -> TaskTree:
    """
    Turn external {title, subtasks?} records into Tasks with fresh ids.

    Titles are copied verbatim, order is preserved, nothing is deduplicated.
    """
    return build_tasks(
        raw_tasks,
        lambda raw: raw.get("subtasks") or (),
        lambda raw, subtasks: Task(id=new_task_id(), title=raw["title"], subtasks=subtasks),
    )
