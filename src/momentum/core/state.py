# src/momentum/core/state.py

from __future__ import annotations

from dataclasses import dataclass, field

from ..tasks.task_models import TaskTree


@dataclass
class CoordinatorState:
    """
    Everything the coordinator owns.

    `tree` is the only persisted part; the rest is view-adjacent state.
    `editing_ids` keeps the per-task edit mode out of the Task entity.
    """

    tree: TaskTree = ()
    focused_id: str | None = None
    focus_active: bool = False
    ingestion_busy: bool = False
    suggestion_busy: bool = False
    editing_ids: set[str] = field(default_factory=set)


@dataclass(slots=True, frozen=True)
class CommandResult:
    """Outcome of a command, shown to the user as a short notification."""

    ok: bool
    title: str
    message: str = ""
    task_id: str | None = None
