# src/momentum/tasks/task_models.py

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, NotRequired, TypedDict


class RawTask(TypedDict):
    """Task record as returned by the external ingestion capability."""

    title: str
    subtasks: NotRequired[list[RawTask]]


class Direction(StrEnum):
    UP = "up"
    DOWN = "down"

    @classmethod
    def parse(cls, raw: str | Direction) -> Direction:
        if isinstance(raw, Direction):
            return raw
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            raise ValueError(f"direction must be 'up' or 'down', got {raw!r}") from None


@dataclass(frozen=True, slots=True)
class Task:
    """
    A node in the task tree.

    Instances are immutable: every change produces a new Task (see task_tree).
    Position is defined only by the index in the parent's subtasks (or the root tuple).
    """

    id: str
    title: str
    subtasks: tuple[Task, ...] = ()
    is_completed: bool = False
    first_step: str = ""
    is_first_step_completed: bool = False

    def _shallow_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "subtasks": [],
            "isCompleted": self.is_completed,
            "firstStep": self.first_step,
            "isFirstStepCompleted": self.is_first_step_completed,
        }

    def to_dict(self) -> dict[str, Any]:
        root = self._shallow_dict()
        stack: list[tuple[Task, dict[str, Any]]] = [(self, root)]
        while stack:
            task, out = stack.pop()
            for child in task.subtasks:
                child_out = child._shallow_dict()
                out["subtasks"].append(child_out)
                stack.append((child, child_out))
        return root

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Task:
        """
        Build a Task from its persisted form.

        Optional fields fall back to defaults; unknown keys (e.g. a legacy
        "isEditing") are ignored.
        """
        (task,) = build_tasks([data], _persisted_children, _task_from_persisted)
        return task


TaskTree = tuple[Task, ...]


def build_tasks(
    roots: Iterable[Any],
    children_of: Callable[[Any], Iterable[Any]],
    make: Callable[[Any, TaskTree], Task],
) -> TaskTree:
    """
    Build Tasks bottom-up from nested records, without recursion.

    children_of(record) returns the record's child records in order;
    make(record, subtasks) builds one Task once its children are built.
    """
    # pre-order: (record, index of parent entry or -1)
    entries: list[tuple[Any, int]] = []
    stack: list[tuple[Any, int]] = [(r, -1) for r in reversed(list(roots))]
    while stack:
        record, parent = stack.pop()
        index = len(entries)
        entries.append((record, parent))
        stack.extend((c, index) for c in reversed(list(children_of(record))))

    built: list[list[Task]] = [[] for _ in entries]
    top: list[Task] = []
    for index in range(len(entries) - 1, -1, -1):
        record, parent = entries[index]
        task = make(record, tuple(reversed(built[index])))
        (built[parent] if parent >= 0 else top).append(task)
    return tuple(reversed(top))


def _persisted_children(data: Any) -> list[Any]:
    if not isinstance(data, Mapping):
        raise ValueError(f"task must be an object, got {type(data).__name__}")
    raw_subtasks = data.get("subtasks") or []
    if not isinstance(raw_subtasks, list):
        raise ValueError(f"subtasks of task {data.get('id')} must be a list")
    return raw_subtasks


def _task_from_persisted(data: Mapping[str, Any], subtasks: TaskTree) -> Task:
    task_id = data.get("id")
    if not isinstance(task_id, str) or not task_id.strip():
        raise ValueError("task id is missing or blank")
    return Task(
        id=task_id,
        title=str(data.get("title", "")),
        subtasks=subtasks,
        is_completed=bool(data.get("isCompleted", False)),
        first_step=str(data.get("firstStep") or ""),
        is_first_step_completed=bool(data.get("isFirstStepCompleted", False)),
    )


def tree_to_list(tree: TaskTree) -> list[dict[str, Any]]:
    return [t.to_dict() for t in tree]


def tree_from_list(data: Any) -> TaskTree:
    if not isinstance(data, list):
        raise ValueError(f"task tree must be a list, got {type(data).__name__}")
    return build_tasks(data, _persisted_children, _task_from_persisted)
